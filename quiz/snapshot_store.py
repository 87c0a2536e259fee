"""Snapshot-backed catalog for the quiz service.

The snapshot is re-read only when its modification time changes, so a new
pipeline run is picked up without restarting the app.
"""

import logging
import os
import threading
from typing import Dict, Optional, Tuple

from catalog.snapshot import Snapshot, load_snapshot

__all__ = ["get_catalog", "clear_cache", "EMPTY_SNAPSHOT"]

logger = logging.getLogger(__name__)

EMPTY_SNAPSHOT = Snapshot(generated_at=None, items=())

_cache: Dict[str, Tuple[float, Snapshot]] = {}
_lock = threading.Lock()


def get_catalog(path: str) -> Snapshot:
    """Return the snapshot at ``path``.

    A missing or unreadable snapshot yields an empty catalog rather than an
    error, so the quiz degrades to "no matches".

    Args:
        path: Snapshot file path.

    Returns:
        The loaded (possibly cached) snapshot.
    """
    try:
        mtime = os.path.getmtime(path)
    except OSError:
        logger.warning(f"Snapshot not found: {path}")
        return EMPTY_SNAPSHOT

    with _lock:
        cached = _cache.get(path)
        if cached and cached[0] == mtime:
            return cached[1]

    try:
        snapshot = load_snapshot(path)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load snapshot {path}: {e}")
        return EMPTY_SNAPSHOT

    with _lock:
        _cache[path] = (mtime, snapshot)
    logger.info(f"Loaded {len(snapshot.items)} bikes from {path}")
    return snapshot


def clear_cache(path: Optional[str] = None) -> None:
    with _lock:
        if path is None:
            _cache.clear()
        else:
            _cache.pop(path, None)
