"""Score catalog entries against a shopper's quiz answers.

Each entry earns up to four points, one per answered criterion (use case,
terrain, range, equipment). Budget is not scored: entries priced above the
budget are excluded before scoring. Results are ranked by score, then by
price, and capped.

Everything here is a pure function of (catalog, answers, policy); the
catalog is never mutated.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from catalog.models import EQUIPMENT_FLAGS, CatalogEntry
from catalog.normalize import is_truthy_flag, normalize_lower, split_tags

from .bands import UNSURE, UnknownBudgetBand, derive_range_band, is_unsure, resolve_budget

__all__ = [
    "MAX_SCORE",
    "CRITERIA_LABELS",
    "ShopperAnswers",
    "ScoringPolicy",
    "ScoredEntry",
    "parse_answers",
    "budget_price",
    "ranking_price",
    "is_equipped",
    "score_entry",
    "score_and_rank",
]

logger = logging.getLogger(__name__)

MAX_SCORE = 4

CRITERIA_LABELS: Dict[str, str] = {
    "use_case": "Use case",
    "terrain": "Terrain",
    "range": "Range",
    "equipped": "Equipped",
}

TERRAIN_MATCH_MODES = ("membership", "primary")

Budget = Union[float, int, str, None]


@dataclass(frozen=True)
class ShopperAnswers:
    """One shopper's answers. "unsure" means no preference."""

    use_case: str = UNSURE
    terrain: str = UNSURE
    range: str = UNSURE
    equipped: str = UNSURE
    budget: Budget = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "use_case": self.use_case,
            "terrain": self.terrain,
            "range": self.range,
            "equipped": self.equipped,
            "budget": self.budget,
        }


@dataclass(frozen=True)
class ScoringPolicy:
    """Knobs where deployments have disagreed.

    equipped_threshold: how many of the five equipment flags must be true
        for a bike to count as equipped (1 = any flag).
    terrain_match: "membership" matches any surface tag, "primary" only the
        first one.
    """

    equipped_threshold: int = 3
    terrain_match: str = "membership"

    def __post_init__(self) -> None:
        if self.terrain_match not in TERRAIN_MATCH_MODES:
            raise ValueError(
                f"terrain_match must be one of {TERRAIN_MATCH_MODES}, got {self.terrain_match!r}"
            )
        if not 1 <= self.equipped_threshold <= len(EQUIPMENT_FLAGS):
            raise ValueError(
                f"equipped_threshold must be between 1 and {len(EQUIPMENT_FLAGS)}, "
                f"got {self.equipped_threshold}"
            )


@dataclass(frozen=True)
class ScoredEntry:
    """A catalog entry with its score and the values it was compared on."""

    entry: CatalogEntry
    score: int
    missed: Tuple[str, ...]
    range_band: str
    equipped: bool
    effective_price: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bike": self.entry.to_dict(),
            "score": self.score,
            "max_score": MAX_SCORE,
            "missed": list(self.missed),
            "range_band": self.range_band,
            "equipped": self.equipped,
            "effective_price": self.effective_price,
        }


def _parse_option(value: Any) -> Optional[str]:
    """Lowercased option value; None for a value that is not a string."""
    if value is None:
        return UNSURE
    if not isinstance(value, str):
        return None
    return normalize_lower(value) or UNSURE


def parse_answers(data: Any) -> Optional[ShopperAnswers]:
    """Coerce a JSON-style answers payload into ShopperAnswers.

    Option values are trimmed and lowercased; missing ones mean "unsure".
    Budget may be a number, a numeric string ("£2,000"), a band key, or be
    given as ``max_budget``.

    Args:
        data: Decoded request payload.

    Returns:
        ShopperAnswers, or None if the payload is malformed (not a mapping,
        non-string option values, an unknown equipment answer or an
        unrecognized budget).
    """
    if not isinstance(data, Mapping):
        return None

    options: Dict[str, str] = {}
    for key in ("use_case", "terrain", "range", "equipped"):
        parsed = _parse_option(data.get(key))
        if parsed is None:
            return None
        options[key] = parsed

    if options["equipped"] not in ("yes", "no", UNSURE):
        return None

    budget = data.get("budget", data.get("max_budget"))
    if isinstance(budget, str):
        budget = budget.strip() or None
    if budget is not None:
        try:
            resolve_budget(budget)
        except UnknownBudgetBand:
            return None
    if isinstance(budget, float) and not math.isfinite(budget):
        budget = None

    return ShopperAnswers(budget=budget, **options)


def budget_price(entry: CatalogEntry) -> float:
    """Price tested against the budget: sale, else RRP, else unbounded."""
    if entry.price_sale_gbp is not None:
        return entry.price_sale_gbp
    if entry.price_rrp_gbp is not None:
        return entry.price_rrp_gbp
    return math.inf


def ranking_price(entry: CatalogEntry) -> float:
    """Price used to break score ties: sale, else RRP, else 0."""
    return entry.effective_price


def is_equipped(entry: CatalogEntry, threshold: int = 3) -> bool:
    """True when at least ``threshold`` of the equipment flags are true."""
    count = sum(1 for flag in EQUIPMENT_FLAGS if is_truthy_flag(getattr(entry, flag)))
    return count >= threshold


def _terrain_matches(entry: CatalogEntry, terrain: str, mode: str) -> bool:
    surfaces = split_tags(entry.surfaces)
    if mode == "primary":
        return bool(surfaces) and surfaces[0] == terrain
    return terrain in surfaces


def score_entry(
    entry: CatalogEntry,
    answers: ShopperAnswers,
    policy: Optional[ScoringPolicy] = None,
    ceiling: Optional[float] = None,
) -> Optional[ScoredEntry]:
    """Score one entry.

    Args:
        entry: Catalog entry.
        answers: Shopper answers.
        policy: Scoring policy (default ScoringPolicy()).
        ceiling: Pre-resolved budget ceiling; resolved from the answers
            when omitted.

    Returns:
        The scored entry, or None if the entry is over budget.

    Raises:
        UnknownBudgetBand: If the ceiling must be resolved and the budget
            answer is not recognized.
    """
    policy = policy or ScoringPolicy()
    if ceiling is None:
        ceiling = resolve_budget(answers.budget)

    if budget_price(entry) > ceiling:
        return None

    score = 0
    missed: List[str] = []

    def check(criterion: str, answer: str, satisfied: bool) -> None:
        nonlocal score
        if is_unsure(answer):
            return
        if satisfied:
            score += 1
        else:
            missed.append(CRITERIA_LABELS[criterion])

    use_case = normalize_lower(answers.use_case)
    check("use_case", use_case, use_case in split_tags(entry.use_cases))

    terrain = normalize_lower(answers.terrain)
    check("terrain", terrain, _terrain_matches(entry, terrain, policy.terrain_match))

    range_band = derive_range_band(entry.battery_wh)
    wanted_range = normalize_lower(answers.range)
    check("range", wanted_range, range_band != "unknown" and wanted_range == range_band)

    equipped = is_equipped(entry, policy.equipped_threshold)
    wants_equipped = normalize_lower(answers.equipped) == "yes"
    check("equipped", answers.equipped, wants_equipped == equipped)

    price = budget_price(entry)
    return ScoredEntry(
        entry=entry,
        score=score,
        missed=tuple(missed),
        range_band=range_band,
        equipped=equipped,
        effective_price=None if math.isinf(price) else price,
    )


def score_and_rank(
    catalog: Iterable[CatalogEntry],
    answers: ShopperAnswers,
    limit: int = 8,
    min_score: int = 0,
    policy: Optional[ScoringPolicy] = None,
) -> List[ScoredEntry]:
    """Score every entry, drop over-budget and low scores, rank and cap.

    Args:
        catalog: Catalog entries (read only).
        answers: Shopper answers.
        limit: Maximum number of results.
        min_score: Entries scoring below this are dropped.
        policy: Scoring policy (default ScoringPolicy()).

    Returns:
        Scored entries, best first: score descending, then price ascending.
        Empty if the budget answer cannot be resolved.
    """
    if limit <= 0:
        return []

    try:
        ceiling = resolve_budget(answers.budget)
    except UnknownBudgetBand as e:
        logger.warning(f"Unresolvable budget, returning no matches: {e}")
        return []

    policy = policy or ScoringPolicy()
    scored: List[ScoredEntry] = []
    for entry in catalog:
        result = score_entry(entry, answers, policy, ceiling)
        if result is not None and result.score >= min_score:
            scored.append(result)

    scored.sort(key=lambda s: (-s.score, ranking_price(s.entry)))
    return scored[:limit]
