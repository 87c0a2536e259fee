"""Join the models, SKU and retailer tables into catalog entries.

The joiner is a pure transformation: rows that cannot be joined, are out of
stock, or repeat an already emitted identity are dropped and counted, never
raised. Whole-source failures are handled by the source reader.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from catalog.identity import resolve_identity
from catalog.logging_config import get_logger, log_pipeline_event
from catalog.models import CatalogEntry, ModelRecord, RetailerRecord, SkuRecord
from catalog.normalize import is_truthy_flag

__all__ = [
    "JoinStats",
    "build_catalog",
    "build_catalog_with_stats",
    "index_by",
    "catalog_sort_key",
]

logger = get_logger("joiner")

Row = Mapping[str, Any]


@dataclass
class JoinStats:
    """Counters for one pipeline run."""

    skus_seen: int = 0
    emitted: int = 0
    dropped: Counter = field(default_factory=Counter)
    tiers: Counter = field(default_factory=Counter)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skus_seen": self.skus_seen,
            "emitted": self.emitted,
            "dropped": dict(self.dropped),
            "csid_tiers": dict(self.tiers),
        }


def index_by(records: Iterable[Any], key: str) -> Dict[str, Any]:
    """Index records by an attribute. Later duplicates replace earlier ones."""
    index: Dict[str, Any] = {}
    for record in records:
        index[getattr(record, key)] = record
    return index


def _pick_identifier(sku_value: Optional[str], retail_value: Optional[str]) -> str:
    """The SKU table's column wins whenever it exists, even if the cell is empty."""
    if sku_value is not None:
        return sku_value
    if retail_value is not None:
        return retail_value
    return ""


def _or_none(value: str) -> Optional[str]:
    return value or None


def _make_entry(
    csid: str,
    sku: SkuRecord,
    model: ModelRecord,
    retail: RetailerRecord,
    mpn: str,
    gtin: str,
) -> CatalogEntry:
    battery_wh = sku.battery_wh if sku.battery_wh is not None else model.battery_default_wh

    return CatalogEntry(
        csid=csid,
        retailer_join_id=sku.sku_id,
        mpn=_or_none(mpn),
        gtin=_or_none(gtin),
        brand=model.brand,
        model_name=model.model_name,
        model_year=_or_none(model.model_year),
        category=_or_none(model.category),
        use_cases=_or_none(model.use_cases),
        surfaces=_or_none(model.surfaces),
        frame_style=_or_none(sku.frame_style),
        frame_styles=_or_none(model.frame_styles),
        frame_size_label=_or_none(sku.frame_size_label),
        colour=_or_none(sku.colour),
        motor_brand=_or_none(model.motor_brand),
        motor_system=_or_none(model.motor_system),
        motor_torque_nm=model.motor_torque_nm,
        battery_wh=battery_wh,
        battery_removable=_or_none(model.battery_removable),
        in_stock=True,
        price_rrp_gbp=retail.price_rrp_gbp,
        price_sale_gbp=retail.price_sale_gbp,
        product_url=retail.product_url,
        image_url=retail.image_url,
        equipped_lights=_or_none(model.equipped_lights),
        equipped_mudguards=_or_none(model.equipped_mudguards),
        equipped_rear_rack=_or_none(model.equipped_rear_rack),
        equipped_kickstand=_or_none(model.equipped_kickstand),
        equipped_chainguard=_or_none(model.equipped_chainguard),
        weight_kg=model.weight_kg,
        notes=_or_none(model.notes),
        model_id=model.model_id,
    )


def catalog_sort_key(entry: CatalogEntry) -> Tuple[str, str, float]:
    """Brand, then model name (both case-insensitive), then effective price."""
    return (entry.brand.lower(), entry.model_name.lower(), entry.effective_price)


def build_catalog_with_stats(
    models: Iterable[Row],
    skus: Iterable[Row],
    retailer_rows: Iterable[Row],
) -> Tuple[List[CatalogEntry], JoinStats]:
    """Join the three source tables and report what was dropped.

    Args:
        models: Rows of the models table.
        skus: Rows of the SKU table, in source order.
        retailer_rows: Rows of the retailer stock/price feed.

    Returns:
        Tuple of (sorted catalog entries, join statistics).
    """
    stats = JoinStats()
    models_by_id = index_by(
        (ModelRecord.from_row(r) for r in models if isinstance(r, Mapping)), "model_id"
    )
    retail_by_sku = index_by(
        (RetailerRecord.from_row(r) for r in retailer_rows if isinstance(r, Mapping)), "sku_id"
    )

    entries: List[CatalogEntry] = []
    seen_csids = set()

    for row in skus:
        stats.skus_seen += 1
        if not isinstance(row, Mapping):
            stats.dropped["malformed_row"] += 1
            continue
        sku = SkuRecord.from_row(row)
        if not sku.sku_id or not sku.model_id:
            stats.dropped["missing_ids"] += 1
            continue

        model = models_by_id.get(sku.model_id)
        if model is None:
            stats.dropped["unknown_model"] += 1
            continue
        retail = retail_by_sku.get(sku.sku_id)
        if retail is None:
            stats.dropped["unknown_retailer_row"] += 1
            continue

        # Only in-stock variants are published
        if not is_truthy_flag(retail.in_stock):
            stats.dropped["out_of_stock"] += 1
            continue

        mpn = _pick_identifier(sku.mpn, retail.mpn)
        gtin = _pick_identifier(sku.gtin, retail.gtin)

        csid, tier = resolve_identity(
            gtin=gtin,
            mpn=mpn,
            brand=model.brand,
            model_name=model.model_name,
            size=sku.frame_size_label,
            colour=sku.colour,
        )
        if csid in seen_csids:
            stats.dropped["duplicate_csid"] += 1
            logger.debug(f"Duplicate CSID {csid} for SKU {sku.sku_id}, keeping first")
            continue
        seen_csids.add(csid)
        stats.tiers[tier] += 1

        entries.append(_make_entry(csid, sku, model, retail, mpn, gtin))

    # sorted() is stable, so full ties keep SKU table order
    entries = sorted(entries, key=catalog_sort_key)
    stats.emitted = len(entries)

    log_pipeline_event(
        "catalog_built",
        {
            "message": f"Built catalog: {stats.emitted} of {stats.skus_seen} SKUs emitted",
            "models_indexed": len(models_by_id),
            "retailer_rows_indexed": len(retail_by_sku),
            **stats.to_dict(),
        },
    )
    return entries, stats


def build_catalog(
    models: Iterable[Row],
    skus: Iterable[Row],
    retailer_rows: Iterable[Row],
) -> List[CatalogEntry]:
    """Join the three source tables into an ordered list of catalog entries."""
    entries, _ = build_catalog_with_stats(models, skus, retailer_rows)
    return entries
