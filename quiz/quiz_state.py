"""Quiz flow as an explicit state machine.

States: intro -> question[0..4] -> results, and closed from anywhere.
Every transition is a pure function returning a new QuizState; a transition
that is not legal in the current state returns the state unchanged.
"""

import math
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from catalog.normalize import normalize_lower

from .bands import QUESTION_ORDER, QUIZ_QUESTIONS, UNSURE, UnknownBudgetBand, resolve_budget
from .scoring import ShopperAnswers, parse_answers

__all__ = [
    "INTRO",
    "QUESTION",
    "RESULTS",
    "CLOSED",
    "QuizState",
    "QuizView",
    "initial_state",
    "start",
    "answer",
    "back",
    "restart",
    "close",
    "render",
    "apply_action",
    "answers_for",
    "state_to_dict",
    "state_from_dict",
]

INTRO = "intro"
QUESTION = "question"
RESULTS = "results"
CLOSED = "closed"

SCREENS = (INTRO, QUESTION, RESULTS, CLOSED)


@dataclass(frozen=True)
class QuizState:
    screen: str = INTRO
    index: int = 0
    answers: Tuple[Tuple[str, Any], ...] = ()

    @property
    def answers_dict(self) -> Dict[str, Any]:
        return dict(self.answers)

    @property
    def current_key(self) -> Optional[str]:
        if self.screen != QUESTION:
            return None
        return QUESTION_ORDER[self.index]


@dataclass(frozen=True)
class QuizView:
    """What to show for a state, plus the transitions the screen offers."""

    screen: str
    question: Optional[Dict[str, Any]]
    step: int
    total_steps: int
    answers: Dict[str, Any]
    transitions: Dict[str, Callable[..., QuizState]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "screen": self.screen,
            "question": self.question,
            "step": self.step,
            "total_steps": self.total_steps,
            "answers": self.answers,
            "actions": sorted(self.transitions),
        }


def initial_state() -> QuizState:
    return QuizState()


def _with_answer(state: QuizState, key: str, value: Any) -> Tuple[Tuple[str, Any], ...]:
    answers = state.answers_dict
    answers[key] = value
    return tuple((k, answers[k]) for k in QUESTION_ORDER if k in answers)


def _accepts(key: str, value: Any) -> bool:
    if key == "budget":
        try:
            resolve_budget(value)
        except UnknownBudgetBand:
            return False
        return True
    if not isinstance(value, str):
        return False
    choice = normalize_lower(value)
    return choice in ("", UNSURE) or choice in QUIZ_QUESTIONS[key]["options"]


def _stored_value(key: str, value: Any) -> Any:
    if key == "budget" and not isinstance(value, str):
        # NaN and infinite budgets are kept as "no limit"
        if value is None or not math.isfinite(value):
            return None
        return value
    return normalize_lower(value) or UNSURE


def start(state: QuizState) -> QuizState:
    if state.screen != INTRO:
        return state
    return QuizState(screen=QUESTION, index=0, answers=state.answers)


def answer(state: QuizState, value: Any) -> QuizState:
    """Record the answer to the current question and advance."""
    key = state.current_key
    if key is None or not _accepts(key, value):
        return state

    answers = _with_answer(state, key, _stored_value(key, value))
    if state.index + 1 < len(QUESTION_ORDER):
        return QuizState(screen=QUESTION, index=state.index + 1, answers=answers)
    return QuizState(screen=RESULTS, index=0, answers=answers)


def back(state: QuizState) -> QuizState:
    if state.screen == QUESTION:
        if state.index == 0:
            return QuizState(screen=INTRO, answers=state.answers)
        return QuizState(screen=QUESTION, index=state.index - 1, answers=state.answers)
    if state.screen == RESULTS:
        return QuizState(screen=QUESTION, index=len(QUESTION_ORDER) - 1, answers=state.answers)
    return state


def restart(state: QuizState) -> QuizState:
    if state.screen == CLOSED:
        return state
    return initial_state()


def close(state: QuizState) -> QuizState:
    if state.screen == CLOSED:
        return state
    return QuizState(screen=CLOSED, answers=state.answers)


_TRANSITIONS: Dict[str, Callable[..., QuizState]] = {
    "start": start,
    "answer": answer,
    "back": back,
    "restart": restart,
    "close": close,
}

# Which transitions each screen offers
_SCREEN_ACTIONS: Dict[str, Tuple[str, ...]] = {
    INTRO: ("start", "close"),
    QUESTION: ("answer", "back", "restart", "close"),
    RESULTS: ("back", "restart", "close"),
    CLOSED: (),
}


def render(state: QuizState) -> QuizView:
    """Build the view for a state.

    The view's transitions are bound to ``state``: ``view.transitions["answer"]("yes")``
    returns the next state.
    """
    question = None
    key = state.current_key
    if key is not None:
        config = QUIZ_QUESTIONS[key]
        question = {
            "key": key,
            "prompt": config["prompt"],
            "hint": config["hint"],
            "options": list(config["options"]) + [UNSURE],
        }

    return QuizView(
        screen=state.screen,
        question=question,
        step=state.index + 1 if state.screen == QUESTION else 0,
        total_steps=len(QUESTION_ORDER),
        answers=state.answers_dict,
        transitions={
            name: partial(_TRANSITIONS[name], state) for name in _SCREEN_ACTIONS[state.screen]
        },
    )


def apply_action(state: QuizState, action: str, value: Any = None) -> QuizState:
    """Apply a named transition; unknown actions leave the state unchanged."""
    if action not in _TRANSITIONS:
        return state
    if action == "answer":
        return answer(state, value)
    return _TRANSITIONS[action](state)


def answers_for(state: QuizState) -> ShopperAnswers:
    """Shopper answers collected so far; unanswered questions are unsure."""
    return parse_answers(state.answers_dict) or ShopperAnswers()


def state_to_dict(state: QuizState) -> Dict[str, Any]:
    return {"screen": state.screen, "index": state.index, "answers": state.answers_dict}


def state_from_dict(data: Any) -> QuizState:
    """Rebuild a state sent back by a client; anything invalid starts over."""
    if not isinstance(data, Mapping):
        return initial_state()

    screen = data.get("screen", INTRO)
    index = data.get("index", 0)
    raw_answers = data.get("answers") or {}
    if (
        screen not in SCREENS
        or not isinstance(index, int)
        or isinstance(index, bool)
        or not 0 <= index < len(QUESTION_ORDER)
        or not isinstance(raw_answers, Mapping)
    ):
        return initial_state()

    answers = tuple(
        (key, _stored_value(key, raw_answers[key]))
        for key in QUESTION_ORDER
        if key in raw_answers and _accepts(key, raw_answers[key])
    )
    return QuizState(screen=screen, index=index if screen == QUESTION else 0, answers=answers)
