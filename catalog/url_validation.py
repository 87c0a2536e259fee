"""URL validation and sanitization for remote source locations."""

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

__all__ = [
    "is_http_source",
    "sanitize_url",
    "validate_source_url",
    "csv_export_hint",
    "URLValidationError",
]


class URLValidationError(Exception):
    """Raised when URL validation fails."""
    pass


HTTP_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

# Dangerous URL schemes to reject
DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}


def is_http_source(src: str) -> bool:
    """True when a source location is an http(s) URL rather than a path."""
    return bool(HTTP_PATTERN.match((src or "").strip()))


def sanitize_url(url: str) -> str:
    """Strip whitespace and control characters from a URL.

    Args:
        url: Raw URL string

    Returns:
        Sanitized URL string
    """
    if not url:
        return ""

    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    url = url.replace("%00", "")

    return url


def validate_source_url(url: str) -> str:
    """Validate a remote source URL.

    Args:
        url: URL to validate

    Returns:
        Validated URL

    Raises:
        URLValidationError: If the URL is empty, malformed or not http(s)
    """
    if not url:
        raise URLValidationError("URL is empty")

    url = sanitize_url(url)

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise URLValidationError(f"Failed to parse URL: {e}") from e

    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid URL scheme: {scheme or '(none)'}")
    if not parsed.netloc:
        raise URLValidationError("URL has no domain")

    return url


def csv_export_hint(url: str) -> Optional[str]:
    """Suggest the raw CSV form of a spreadsheet preview URL.

    Google Sheets "publish to web" and editor links serve an HTML page;
    the tabular export lives at ``output=csv`` or ``export?format=csv``.

    Args:
        url: The URL that returned HTML.

    Returns:
        A human-readable hint, or None if the URL is not a known
        spreadsheet preview.
    """
    parsed = urlparse(url or "")
    if "docs.google.com" not in parsed.netloc.lower() or "/spreadsheets/" not in parsed.path:
        return None

    query = parse_qs(parsed.query)
    if parsed.path.endswith("/pub") or parsed.path.endswith("/pubhtml"):
        if query.get("output") != ["csv"]:
            base = parsed.path.rsplit("/", 1)[0] + "/pub"
            gid = query.get("gid", ["0"])[0]
            return (
                f"use the published CSV form: "
                f"https://docs.google.com{base}?gid={gid}&single=true&output=csv"
            )
        return None

    if parsed.path.endswith("/export") and query.get("format") == ["csv"]:
        # Already the export form; HTML here usually means the sheet is private
        return "make sure the sheet is shared or published so the export is public"

    match = re.search(r"/spreadsheets/d/([^/]+)", parsed.path)
    if match:
        gid_match = re.search(r"gid=(\d+)", url)
        gid = gid_match.group(1) if gid_match else "0"
        return (
            f"use the export form: https://docs.google.com/spreadsheets/d/"
            f"{match.group(1)}/export?format=csv&gid={gid}"
        )
    return None
