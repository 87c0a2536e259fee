"""Snapshot file: the generated catalog plus its generation timestamp.

The snapshot is replaced atomically (write to a temp file in the same
directory, then rename) so concurrent readers never see a partial file.
"""

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import pandas as pd

from catalog.logging_config import get_logger, log_pipeline_event
from catalog.models import CatalogEntry

__all__ = [
    "Snapshot",
    "format_timestamp",
    "build_snapshot",
    "serialize_snapshot",
    "write_snapshot",
    "load_snapshot",
    "summarize_snapshot",
]

logger = get_logger("snapshot")

PathLike = Union[str, Path]


@dataclass(frozen=True)
class Snapshot:
    """A loaded snapshot: generation time and catalog entries in file order."""

    generated_at: Optional[str]
    items: Tuple[CatalogEntry, ...]


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2025-01-31T09:15:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_snapshot(
    entries: Iterable[CatalogEntry],
    generated_at: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "generated_at": generated_at or format_timestamp(),
        "items": [entry.to_dict() for entry in entries],
    }


def serialize_snapshot(snapshot: Dict[str, Any]) -> str:
    return json.dumps(snapshot, indent=2, ensure_ascii=False)


def write_snapshot(
    entries: Iterable[CatalogEntry],
    path: PathLike,
    generated_at: Optional[str] = None,
) -> Path:
    """Write the snapshot JSON, replacing any previous file atomically.

    Args:
        entries: Catalog entries in publication order.
        path: Output file path; parent directories are created.
        generated_at: Override for the generation timestamp.

    Returns:
        The output path.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    snapshot = build_snapshot(entries, generated_at)
    payload = serialize_snapshot(snapshot)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    log_pipeline_event(
        "snapshot_written",
        {
            "message": f"Wrote {len(snapshot['items'])} bikes to {target}",
            "path": str(target),
            "items": len(snapshot["items"]),
            "generated_at": snapshot["generated_at"],
        },
    )
    return target


def load_snapshot(path: PathLike) -> Snapshot:
    """Load a snapshot file written by write_snapshot.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a snapshot document
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Snapshot {path} is not a JSON object")

    raw_items = data.get("items")
    if not isinstance(raw_items, list):
        raw_items = []

    entries = []
    for item in raw_items:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(CatalogEntry.from_dict(item))
        except (TypeError, ValueError) as e:
            logger.debug(f"Dropping snapshot item {item.get('sku_id')!r}: {e}")
    items = tuple(entries)
    skipped = len(raw_items) - len(items)
    if skipped:
        logger.warning(f"Skipped {skipped} malformed items in {path}")

    return Snapshot(generated_at=data.get("generated_at"), items=items)


def summarize_snapshot(snapshot: Snapshot) -> pd.DataFrame:
    """Per-brand counts and effective price range of a snapshot.

    Returns:
        DataFrame indexed by brand with columns: variants, models,
        min_price, max_price.
    """
    columns = ["variants", "models", "min_price", "max_price"]
    if not snapshot.items:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        [
            {
                "brand": entry.brand or "(unknown)",
                "model_name": entry.model_name,
                "price": entry.effective_price,
            }
            for entry in snapshot.items
        ]
    )
    summary = df.groupby("brand").agg(
        variants=("model_name", "size"),
        models=("model_name", "nunique"),
        min_price=("price", "min"),
        max_price=("price", "max"),
    )
    return summary[columns]
