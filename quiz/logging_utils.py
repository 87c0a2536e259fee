"""Logging utilities for the quiz service.

Provides structured JSONL logging for match requests and widget events.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = ["log_interaction", "LOG_DIR"]

LOG_DIR = Path(__file__).parent / "logs"


def _log_file(log_dir: Path) -> Path:
    return log_dir / f"quiz_interactions_{datetime.now().strftime('%Y%m%d')}.jsonl"


def log_interaction(event_type: str, data: Dict[str, Any], log_dir: Optional[Path] = None) -> None:
    """Append an interaction event to the day's JSONL file.

    Args:
        event_type: Type of event (match_request, widget_event, quiz_step, etc.)
        data: Event-specific data to log
        log_dir: Directory override (default: quiz/logs)
    """
    target_dir = log_dir or LOG_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_entry = {"timestamp": datetime.now().isoformat(), "event_type": event_type, **data}
    with open(_log_file(target_dir), "a", encoding="utf-8") as f:
        f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
