"""Data models for source rows and catalog entries."""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from catalog.normalize import extract_number, is_truthy_flag, normalize

__all__ = [
    "ModelRecord",
    "SkuRecord",
    "RetailerRecord",
    "CatalogEntry",
    "EQUIPMENT_FLAGS",
]

EQUIPMENT_FLAGS: Tuple[str, ...] = (
    "equipped_lights",
    "equipped_mudguards",
    "equipped_rear_rack",
    "equipped_kickstand",
    "equipped_chainguard",
)

_SCALARS = (str, int, float)
_NUMERIC_FIELDS = frozenset(
    ("motor_torque_nm", "battery_wh", "price_rrp_gbp", "price_sale_gbp", "weight_kg")
)
_REQUIRED_TEXT_FIELDS = frozenset(
    ("csid", "retailer_join_id", "brand", "model_name", "product_url", "image_url", "model_id")
)


def _optional_column(row: Mapping[str, Any], key: str) -> Optional[str]:
    """None when the column is absent from the table, else the trimmed cell."""
    if key not in row:
        return None
    return normalize(row[key])


@dataclass(frozen=True)
class ModelRecord:
    """One row of the models table, keyed by model_id."""

    model_id: str
    brand: str = ""
    model_name: str = ""
    model_year: str = ""
    category: str = ""
    use_cases: str = ""
    surfaces: str = ""
    frame_styles: str = ""
    motor_brand: str = ""
    motor_system: str = ""
    motor_torque_nm: Optional[float] = None
    battery_default_wh: Optional[float] = None
    battery_removable: str = ""
    equipped_lights: str = ""
    equipped_mudguards: str = ""
    equipped_rear_rack: str = ""
    equipped_kickstand: str = ""
    equipped_chainguard: str = ""
    weight_kg: Optional[float] = None
    notes: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ModelRecord":
        values: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name in ("motor_torque_nm", "battery_default_wh", "weight_kg"):
                values[f.name] = extract_number(row.get(f.name))
            else:
                values[f.name] = normalize(row.get(f.name))
        return cls(**values)


@dataclass(frozen=True)
class SkuRecord:
    """One row of the SKU table.

    mpn/gtin are None when the table has no such column, which is different
    from an empty cell: a present column wins over the retailer feed even
    when empty.
    """

    sku_id: str
    model_id: str
    frame_size_label: str = ""
    colour: str = ""
    frame_style: str = ""
    battery_wh: Optional[float] = None
    mpn: Optional[str] = None
    gtin: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SkuRecord":
        return cls(
            sku_id=normalize(row.get("sku_id")),
            model_id=normalize(row.get("model_id")),
            frame_size_label=normalize(row.get("frame_size_label")),
            colour=normalize(row.get("colour")),
            frame_style=normalize(row.get("frame_style")),
            battery_wh=extract_number(row.get("battery_wh")),
            mpn=_optional_column(row, "mpn"),
            gtin=_optional_column(row, "gtin"),
        )


@dataclass(frozen=True)
class RetailerRecord:
    """One row of the retailer stock/price feed, keyed by the join id."""

    sku_id: str
    in_stock: str = ""
    price_rrp_gbp: Optional[float] = None
    price_sale_gbp: Optional[float] = None
    product_url: str = ""
    image_url: str = ""
    mpn: Optional[str] = None
    gtin: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RetailerRecord":
        return cls(
            sku_id=normalize(row.get("sku_id")),
            in_stock=normalize(row.get("in_stock")),
            price_rrp_gbp=extract_number(row.get("price_rrp_gbp")),
            price_sale_gbp=extract_number(row.get("price_sale_gbp")),
            product_url=normalize(row.get("product_url")),
            image_url=normalize(row.get("image_url")),
            mpn=_optional_column(row, "mpn"),
            gtin=_optional_column(row, "gtin"),
        )


@dataclass(frozen=True)
class CatalogEntry:
    """A joined, in-stock product variant as published in the snapshot.

    Optional attributes are None when the sources hold no data for them and
    are left out of the serialized form, so consumers can tell "no data"
    from zero or an empty string.
    """

    # IDs
    csid: str
    retailer_join_id: str
    mpn: Optional[str] = None
    gtin: Optional[str] = None

    # Descriptive
    brand: str = ""
    model_name: str = ""
    model_year: Optional[str] = None
    category: Optional[str] = None

    # Fit / usage
    use_cases: Optional[str] = None
    surfaces: Optional[str] = None
    frame_style: Optional[str] = None
    frame_styles: Optional[str] = None
    frame_size_label: Optional[str] = None
    colour: Optional[str] = None

    # Motor / battery
    motor_brand: Optional[str] = None
    motor_system: Optional[str] = None
    motor_torque_nm: Optional[float] = None
    battery_wh: Optional[float] = None
    battery_removable: Optional[str] = None

    # Retail
    in_stock: bool = True
    price_rrp_gbp: Optional[float] = None
    price_sale_gbp: Optional[float] = None
    product_url: str = ""
    image_url: str = ""

    # Equipment
    equipped_lights: Optional[str] = None
    equipped_mudguards: Optional[str] = None
    equipped_rear_rack: Optional[str] = None
    equipped_kickstand: Optional[str] = None
    equipped_chainguard: Optional[str] = None

    # Meta
    weight_kg: Optional[float] = None
    notes: Optional[str] = None
    model_id: str = field(default="", repr=False)

    # Serialized names that differ from attribute names
    _ALIASES = {"csid": "sku_id", "model_id": "_model_id"}

    @property
    def effective_price(self) -> float:
        """Sale price, else RRP, else 0 (used for catalog ordering)."""
        if self.price_sale_gbp is not None:
            return self.price_sale_gbp
        if self.price_rrp_gbp is not None:
            return self.price_rrp_gbp
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in snapshot field order, omitting fields with no data."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[self._ALIASES.get(f.name, f.name)] = value
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CatalogEntry":
        """Rebuild an entry from its serialized form (unknown keys ignored).

        Values are coerced to the field types, so a hand-edited snapshot
        with "500" for battery_wh still loads as 500.0. Non-scalar values
        such as lists are dropped.
        """
        reverse = {alias: name for name, alias in cls._ALIASES.items()}
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = reverse.get(key, key)
            if name not in known or not isinstance(value, _SCALARS):
                continue
            if name in _NUMERIC_FIELDS:
                values[name] = extract_number(value)
            elif name == "in_stock":
                values[name] = value if isinstance(value, bool) else is_truthy_flag(value)
            elif name in _REQUIRED_TEXT_FIELDS:
                values[name] = normalize(value)
            else:
                values[name] = normalize(value) or None
        values.setdefault("csid", "")
        values.setdefault("retailer_join_id", "")
        return cls(**values)
