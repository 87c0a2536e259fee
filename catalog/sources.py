"""Read the three source tables from local files or HTTP(S) URLs.

Failures here are fatal to a pipeline run: the caller gets a SourceError
with a descriptive message and no snapshot is written.
"""

import io
import random
import re
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import requests  # type: ignore[import-untyped]
from bs4 import BeautifulSoup

from catalog.config import (
    HEADERS,
    HTML_SNIFF_BYTES,
    MAX_RETRIES,
    MAX_RETRY_BACKOFF,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    RETRY_STATUS_CODES,
    SOURCE_WORKERS,
)
from catalog.logging_config import get_logger, log_pipeline_event
from catalog.url_validation import (
    URLValidationError,
    csv_export_hint,
    is_http_source,
    validate_source_url,
)

__all__ = [
    "SourceError",
    "SourceUnreachable",
    "SourceMalformed",
    "create_session",
    "fetch_bytes",
    "looks_like_html",
    "parse_csv",
    "read_source",
    "read_sources",
]

logger = get_logger("sources")

Rows = List[Dict[str, str]]

HTML_PATTERN = re.compile(rb"<!doctype html|<html", re.IGNORECASE)


class SourceError(Exception):
    """A source table could not be used; aborts the pipeline run."""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class SourceUnreachable(SourceError):
    """The source could not be read or fetched."""


class SourceMalformed(SourceError):
    """The source was read but does not contain tabular data."""


def create_session() -> requests.Session:
    """Create a requests Session with the headers spreadsheet hosts expect."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


def _backoff(attempt: int) -> float:
    return min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)


def fetch_bytes(url: str, session: Optional[requests.Session] = None) -> bytes:
    """HTTP GET with exponential backoff retry.

    Args:
        url: URL to fetch
        session: Optional requests.Session for connection reuse

    Returns:
        Response body as bytes

    Raises:
        SourceUnreachable: If the URL is invalid or the request fails after
            all retries
    """
    try:
        url = validate_source_url(url)
    except URLValidationError as e:
        raise SourceUnreachable(url, f"Invalid source URL {url!r}: {e}") from e

    sess = session or create_session()

    for attempt in range(MAX_RETRIES + 1):
        try:
            resp = sess.get(url, timeout=REQUEST_TIMEOUT, allow_redirects=True)

            if resp.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                backoff = _backoff(attempt)
                logger.warning(
                    f"Received {resp.status_code} from {url}, backing off {backoff:.1f}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                time.sleep(backoff)
                continue

            resp.raise_for_status()
            return bytes(resp.content)

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else "unknown"
            reason = e.response.reason if e.response is not None else "unknown"
            logger.error(f"HTTP error fetching {url}: {e}")
            raise SourceUnreachable(
                url,
                f"HTTP Error {status_code}: {reason}\n"
                f"Failed to fetch: {url}\n"
                f"Please verify the URL is correct and publicly accessible.",
            ) from e

        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            if attempt < MAX_RETRIES:
                backoff = _backoff(attempt)
                logger.warning(
                    f"{type(e).__name__} fetching {url}, backing off {backoff:.1f}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                time.sleep(backoff)
                continue
            logger.error(f"Giving up on {url}: {e}")
            raise SourceUnreachable(
                url,
                f"Failed to fetch {url}: {e}\n"
                f"Please check your internet connection and verify the URL is accessible.",
            ) from e

        except requests.exceptions.RequestException as e:
            logger.error(f"Request error fetching {url}: {e}")
            raise SourceUnreachable(url, f"Failed to fetch {url}: {e}") from e

    raise SourceUnreachable(url, f"Failed to fetch {url} after {MAX_RETRIES} retries")


def looks_like_html(content: bytes) -> bool:
    """True when the leading bytes look like an HTML document, not a table."""
    return bool(HTML_PATTERN.search(content[:HTML_SNIFF_BYTES]))


def _html_rejection(src: str, content: bytes) -> SourceMalformed:
    soup = BeautifulSoup(content, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else ""

    lines = [f"Expected CSV but got HTML from: {src}"]
    if title:
        lines.append(f"Page title: {title!r}")
    hint = csv_export_hint(src) if is_http_source(src) else None
    lines.append(
        f"Tip: {hint}"
        if hint
        else "Tip: ensure the link ends with output=csv (Publish to web -> CSV) "
        "or use the export?format=csv&gid=... form."
    )
    return SourceMalformed(src, "\n".join(lines))


def parse_csv(content: bytes, src: str = "<memory>") -> Rows:
    """Parse CSV bytes into a list of row dicts.

    Every cell is kept as a string (empty cells become ""), blank lines are
    skipped and header names are trimmed. Columns missing from the header
    are absent from the row dicts.

    Raises:
        SourceMalformed: If the content is HTML, empty, or not parseable CSV
    """
    if looks_like_html(content):
        raise _html_rejection(src, content)

    try:
        df = pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as e:
        raise SourceMalformed(src, f"Source is empty: {src}") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise SourceMalformed(src, f"Could not parse CSV from {src}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def read_source(src: str, session: Optional[requests.Session] = None) -> Rows:
    """Read one source table from a local path or an http(s) URL.

    Args:
        src: File path or URL.
        session: Optional requests.Session for URL sources.

    Returns:
        List of row dicts keyed by header name.

    Raises:
        SourceUnreachable: If the file or URL cannot be read
        SourceMalformed: If the content is not tabular
    """
    if is_http_source(src):
        content = fetch_bytes(src.strip(), session=session)
    else:
        path = Path(src).expanduser()
        try:
            content = path.read_bytes()
        except OSError as e:
            raise SourceUnreachable(src, f"Cannot read source file {src}: {e}") from e

    rows = parse_csv(content, src)
    log_pipeline_event(
        "source_read",
        {"message": f"Read {len(rows)} rows from {src}", "source": src, "rows": len(rows)},
    )
    return rows


def read_sources(
    models_src: str,
    skus_src: str,
    retailer_src: str,
    session: Optional[requests.Session] = None,
) -> Dict[str, Rows]:
    """Read the three independent source tables concurrently.

    Args:
        models_src: Location of the models table.
        skus_src: Location of the SKU table.
        retailer_src: Location of the retailer feed.
        session: Optional requests.Session shared by URL reads.

    Returns:
        Dict with 'models', 'skus' and 'retailer' row lists.

    Raises:
        SourceError: The first failure among the three reads.
    """
    sources = {"models": models_src, "skus": skus_src, "retailer": retailer_src}

    # Without an explicit session each URL read opens its own
    with ThreadPoolExecutor(max_workers=SOURCE_WORKERS) as pool:
        futures = {name: pool.submit(read_source, src, session) for name, src in sources.items()}
        return {name: future.result() for name, future in futures.items()}
