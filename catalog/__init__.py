"""Bike catalog pipeline: join the model, SKU and retailer sheets into bikes.json."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from catalog.identity import is_valid_gtin, resolve_csid, resolve_identity
from catalog.joiner import JoinStats, build_catalog, build_catalog_with_stats
from catalog.models import CatalogEntry, ModelRecord, RetailerRecord, SkuRecord
from catalog.normalize import extract_number, normalize, normalize_lower
from catalog.snapshot import Snapshot, load_snapshot, write_snapshot
from catalog.sources import SourceError, SourceMalformed, SourceUnreachable, read_source

__all__ = [
    # Version
    "__version__",
    # Models
    "CatalogEntry",
    "ModelRecord",
    "RetailerRecord",
    "SkuRecord",
    "Snapshot",
    "JoinStats",
    # Normalization and identity
    "normalize",
    "normalize_lower",
    "extract_number",
    "is_valid_gtin",
    "resolve_csid",
    "resolve_identity",
    # Pipeline
    "build_catalog",
    "build_catalog_with_stats",
    "read_source",
    "write_snapshot",
    "load_snapshot",
    # Errors
    "SourceError",
    "SourceMalformed",
    "SourceUnreachable",
]
