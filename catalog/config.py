"""Configuration and constants for the catalog pipeline."""

import os
from typing import Dict, Optional

__all__ = [
    "MODELS_CSV",
    "SKU_CSV",
    "RETAILER_CSV",
    "OUTPUT_JSON",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_BACKOFF_BASE",
    "MAX_RETRY_BACKOFF",
    "RETRY_STATUS_CODES",
    "HTML_SNIFF_BYTES",
    "SOURCE_WORKERS",
    "get_source_locations",
    "get_output_path",
]


def _env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


# Source locations (local path or http(s) URL). No defaults: a pipeline run
# without all three is a startup error.
MODELS_CSV = _env("MODELS_CSV")
SKU_CSV = _env("SKU_CSV")
RETAILER_CSV = _env("RETAILER_CSV")

# Snapshot output
OUTPUT_JSON = os.getenv("OUTPUT_JSON", "public/bikes.json")

# Some spreadsheet publish links return an HTML page unless a browser UA is sent
HEADERS: Dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
    "Accept": "text/csv, text/plain;q=0.9, */*;q=0.1",
    "Cache-Control": "no-store",
}

# Request timeouts
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))

# Retry settings with exponential backoff
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_BACKOFF_BASE = 2.0  # 2^attempt seconds
MAX_RETRY_BACKOFF = 30.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# How many leading bytes are inspected when checking for an HTML document
HTML_SNIFF_BYTES = 100

# The three sources are read concurrently
SOURCE_WORKERS = 3


def get_source_locations() -> Dict[str, Optional[str]]:
    """Return the configured source locations, re-read from the environment.

    Re-reading lets a CLI load a ``.env`` file after this module was imported.
    """
    return {
        "models": _env("MODELS_CSV"),
        "skus": _env("SKU_CSV"),
        "retailer": _env("RETAILER_CSV"),
    }


def get_output_path() -> str:
    return _env("OUTPUT_JSON") or OUTPUT_JSON
