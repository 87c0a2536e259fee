"""Quiz question registry and the bands that answers are compared against.

Budget bands and range bands are ordered, contiguous, non-overlapping
buckets; the last budget band is unbounded.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

from catalog.normalize import extract_number, normalize_lower

__all__ = [
    "UNSURE",
    "QUIZ_QUESTIONS",
    "QUESTION_ORDER",
    "BUDGET_BANDS",
    "RANGE_BANDS",
    "UNKNOWN_RANGE",
    "UnknownBudgetBand",
    "is_unsure",
    "resolve_budget",
    "derive_range_band",
    "get_question",
    "questions_payload",
]

UNSURE = "unsure"


class UnknownBudgetBand(ValueError):
    """Raised when a budget answer is neither a number nor a known band key."""


# =============================================================================
# Budget Bands
# =============================================================================
# (key, display name, upper bound in GBP; None = unbounded)

BUDGET_BANDS: List[Tuple[str, str, Optional[float]]] = [
    ("under_1500", "Under £1,500", 1500.0),
    ("1500_2500", "£1,500 to £2,500", 2500.0),
    ("2500_3500", "£2,500 to £3,500", 3500.0),
    ("3500_5000", "£3,500 to £5,000", 5000.0),
    ("5000_plus", "£5,000 and above", None),
]

_BUDGET_UPPER: Dict[str, Optional[float]] = {key: upper for key, _, upper in BUDGET_BANDS}


# =============================================================================
# Range Bands
# =============================================================================
# Derived from battery capacity: short below 400 Wh, medium 400 to 550 Wh
# inclusive, long above 550 Wh.

RANGE_SHORT_BELOW_WH = 400.0
RANGE_MEDIUM_MAX_WH = 550.0

RANGE_BANDS: List[Tuple[str, str]] = [
    ("short", "Under 400 Wh (shorter rides)"),
    ("medium", "400 to 550 Wh (most day rides)"),
    ("long", "Over 550 Wh (long days out)"),
]

UNKNOWN_RANGE = "unknown"


# =============================================================================
# Quiz Questions
# =============================================================================
# Each question defines:
#   - answer_key: Field of the answers payload it fills
#   - prompt / hint: Text shown to the shopper
#   - options: Allowed answer values (UNSURE is always accepted)

QUIZ_QUESTIONS: Dict[str, Dict[str, Any]] = {
    "use_case": {
        "display_name": "Riding Style",
        "prompt": "What will you mostly use the bike for?",
        "hint": "Pick the trips you make most often.",
        "options": ["commuting", "leisure", "fitness", "touring", "cargo", "trail"],
    },
    "terrain": {
        "display_name": "Terrain",
        "prompt": "Where will you ride?",
        "hint": "Think about the surface under your wheels on a typical ride.",
        "options": ["road", "gravel", "mixed", "trail"],
    },
    "range": {
        "display_name": "Range",
        "prompt": "How far do you want to go on one charge?",
        "hint": "Bigger batteries go further but weigh more.",
        "options": [key for key, _ in RANGE_BANDS],
    },
    "equipped": {
        "display_name": "Equipment",
        "prompt": "Do you want lights, mudguards and a rack fitted?",
        "hint": "Fully equipped bikes are ready for everyday riding in all weather.",
        "options": ["yes", "no"],
    },
    "budget": {
        "display_name": "Budget",
        "prompt": "What is your budget?",
        "hint": "We only show bikes at or below this price.",
        "options": [key for key, _, _ in BUDGET_BANDS],
    },
}

QUESTION_ORDER: List[str] = ["use_case", "terrain", "range", "equipped", "budget"]


def is_unsure(value: Any) -> bool:
    """Missing, empty and "unsure" answers express no preference."""
    return normalize_lower(value) in ("", UNSURE)


def resolve_budget(value: Any) -> float:
    """Resolve a budget answer to a price ceiling.

    Args:
        value: A number, a numeric string ("£2,000"), a band key, or an
            unsure/empty answer.

    Returns:
        The ceiling; math.inf when there is no limit.

    Raises:
        UnknownBudgetBand: If a non-numeric string is not a known band key,
            or the value has an unsupported type such as a list.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str, type(None))):
        raise UnknownBudgetBand(f"Invalid budget: {value!r}")
    if isinstance(value, (int, float)):
        return float(value) if not math.isnan(value) else math.inf
    if is_unsure(value):
        return math.inf

    key = normalize_lower(value)
    if key in _BUDGET_UPPER:
        upper = _BUDGET_UPPER[key]
        return math.inf if upper is None else upper

    number = extract_number(key)
    if number is None:
        raise UnknownBudgetBand(f"Unknown budget band: {value!r}")
    return number


def derive_range_band(battery_wh: Optional[float]) -> str:
    """Map a battery capacity to short / medium / long, or unknown."""
    if battery_wh is None or battery_wh <= 0:
        return UNKNOWN_RANGE
    if battery_wh < RANGE_SHORT_BELOW_WH:
        return "short"
    if battery_wh <= RANGE_MEDIUM_MAX_WH:
        return "medium"
    return "long"


def get_question(key: str) -> Optional[Dict[str, Any]]:
    return QUIZ_QUESTIONS.get(key)


def questions_payload() -> List[Dict[str, Any]]:
    """Questions in quiz order, shaped for the JSON API."""
    payload: List[Dict[str, Any]] = []
    for key in QUESTION_ORDER:
        question = QUIZ_QUESTIONS[key]
        payload.append(
            {
                "key": key,
                "display_name": question["display_name"],
                "prompt": question["prompt"],
                "hint": question["hint"],
                "options": list(question["options"]) + [UNSURE],
            }
        )
    return payload
