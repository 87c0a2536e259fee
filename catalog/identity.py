"""GTIN checksum validation and canonical SKU identity (CSID) resolution.

A CSID is the cross-retailer key for one product variant. It is derived from
the most trustworthy identifier available:

1. a GTIN that passes its check digit: ``gtin|size|colour``
2. a manufacturer part number: ``brand|mpn|size|colour``
3. a content hash of the descriptive fields: ``csid_<8 hex chars>``

Size and colour are lowercased in every tier so casing differences between
sources do not split one variant into two.
"""

import hashlib
import re
from typing import Any, Tuple

from catalog.normalize import normalize, normalize_lower

__all__ = [
    "is_valid_gtin",
    "resolve_csid",
    "resolve_identity",
    "HASH_PREFIX",
]

HASH_PREFIX = "csid_"

GTIN_PATTERN = re.compile(r"(?:\d{8}|\d{12}|\d{13}|\d{14})", re.ASCII)


def is_valid_gtin(code: Any) -> bool:
    """Validate a GTIN-8/12/13/14 check digit.

    The code must already be stripped: surrounding whitespace, separators or
    any non-digit character make it invalid.

    Args:
        code: Candidate GTIN string.

    Returns:
        True if the length is valid and the check digit matches.
    """
    if not isinstance(code, str) or not GTIN_PATTERN.fullmatch(code):
        return False

    digits = [int(d) for d in code]
    check = digits.pop()

    # Weights alternate 3,1,3,1... from the rightmost non-check digit inward
    total = sum(
        digit * (3 if position % 2 == 0 else 1)
        for position, digit in enumerate(reversed(digits))
    )
    return (10 - total % 10) % 10 == check


def _escape_token(token: str) -> str:
    return token.replace("\\", "\\\\").replace("|", "\\|")


def _content_hash(*tokens: str) -> str:
    key = "|".join(_escape_token(t) for t in tokens)
    return hashlib.md5(key.encode("utf-8")).hexdigest()[:8]


def resolve_identity(
    gtin: Any = None,
    mpn: Any = None,
    brand: Any = None,
    model_name: Any = None,
    size: Any = None,
    colour: Any = None,
) -> Tuple[str, str]:
    """Derive the canonical SKU identity for a product variant.

    Never fails: when neither a valid GTIN nor an MPN is available the
    descriptive fields are hashed, accepting that two genuinely different
    variants described identically will share a CSID.

    Args:
        gtin: Optional GTIN; only used when its check digit is valid.
        mpn: Optional manufacturer part number (case preserved).
        brand: Brand name.
        model_name: Model name.
        size: Frame size label.
        colour: Colour name.

    Returns:
        Tuple of (CSID, tier), where tier is "gtin", "mpn" or "hash".
    """
    size_key = normalize_lower(size)
    colour_key = normalize_lower(colour)

    if isinstance(gtin, str) and is_valid_gtin(gtin):
        return f"{gtin}|{size_key}|{colour_key}", "gtin"

    mpn_value = normalize(mpn)
    if mpn_value:
        return f"{normalize_lower(brand)}|{mpn_value}|{size_key}|{colour_key}", "mpn"

    digest = _content_hash(normalize_lower(brand), normalize_lower(model_name), size_key, colour_key)
    return f"{HASH_PREFIX}{digest}", "hash"


def resolve_csid(
    gtin: Any = None,
    mpn: Any = None,
    brand: Any = None,
    model_name: Any = None,
    size: Any = None,
    colour: Any = None,
) -> str:
    """Derive the CSID string alone; see resolve_identity."""
    csid, _ = resolve_identity(gtin, mpn, brand, model_name, size, colour)
    return csid
