"""Normalization helpers for noisy spreadsheet cells."""

import math
import re
from typing import Any, List, Optional

__all__ = [
    "normalize",
    "normalize_lower",
    "extract_number",
    "is_truthy_flag",
    "split_tags",
]

# Optionally signed, comma-grouped, optional decimal part: "-1,299.50"
NUMBER_PATTERN = re.compile(r"-?\d[\d,]*\.?\d*")


def normalize(value: Any) -> str:
    """Return the trimmed string form of a cell, or "" for None."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def normalize_lower(value: Any) -> str:
    return normalize(value).lower()


def extract_number(value: Any) -> Optional[float]:
    """Extract the first numeric token from a cell.

    Thousands separators are ignored and surrounding currency symbols or
    units are tolerated: "£1,999.00" -> 1999.0, "500 Wh" -> 500.0.

    Args:
        value: Raw cell value.

    Returns:
        Parsed float, or None if the cell holds no numeric token.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    match = NUMBER_PATTERN.search(normalize(value))
    if not match:
        return None
    try:
        number = float(match.group().replace(",", ""))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def is_truthy_flag(value: Any) -> bool:
    """Boolean-as-string cells are true only when they read "true"."""
    return normalize_lower(value) == "true"


def split_tags(value: Any) -> List[str]:
    """Split a comma-delimited tag list into lowercased, trimmed tags."""
    return [tag.strip() for tag in normalize_lower(value).split(",") if tag.strip()]
