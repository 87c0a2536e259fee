"""API endpoints for the bike match quiz.

Endpoints:
1. GET  /api/questions  - quiz questions and bands
2. GET  /api/catalog    - snapshot metadata
3. POST /api/match      - score the catalog against answers
4. POST /api/quiz       - advance the quiz state machine
5. POST /api/events     - record a widget event
6. GET  /api/embed-url  - iframe URL for the loader
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request

from .bands import BUDGET_BANDS, RANGE_BANDS, questions_payload
from .embed import WidgetConfig, build_app_url
from .events import EVENT_PAYLOADS, EventBus, EventValidationError, WidgetEvent, parse_event
from .logging_utils import log_interaction
from .quiz_state import (
    RESULTS,
    answers_for,
    apply_action,
    render,
    state_from_dict,
    state_to_dict,
)
from .scoring import ScoredEntry, ShopperAnswers, parse_answers, score_and_rank
from .snapshot_store import get_catalog

__all__ = ["api", "event_bus", "format_price"]

logger = logging.getLogger(__name__)

# Create blueprint for API
api = Blueprint("api", __name__, url_prefix="/api")

event_bus = EventBus()

MAX_LIMIT = 50

ApiResponse = Union[Response, Tuple[Response, int]]


def _log_widget_event(event: WidgetEvent) -> None:
    log_interaction("widget_event", event.to_dict())


for _event_type in EVENT_PAYLOADS:
    event_bus.subscribe(_event_type, _log_widget_event)


def format_price(amount: Optional[float]) -> str:
    """Whole-pound display price, e.g. £1,999; N/A when unknown."""
    if amount is None:
        return "N/A"
    return f"£{amount:,.0f}"


def _int_param(value: Any, default: int, low: int, high: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return max(low, min(high, number))


def _match(answers: ShopperAnswers, limit: int, min_score: int) -> List[ScoredEntry]:
    snapshot = get_catalog(current_app.config["SNAPSHOT_PATH"])
    return score_and_rank(
        snapshot.items,
        answers,
        limit=limit,
        min_score=min_score,
        policy=current_app.config["SCORING_POLICY"],
    )


def _result_payload(result: ScoredEntry) -> Dict[str, Any]:
    data = result.to_dict()
    data["price_display"] = format_price(result.effective_price)
    return data


@api.route("/questions", methods=["GET"])
def get_questions() -> ApiResponse:
    """Return the quiz questions in order, with budget and range bands."""
    return jsonify(
        {
            "questions": questions_payload(),
            "budget_bands": [
                {"key": key, "display_name": name, "max": upper}
                for key, name, upper in BUDGET_BANDS
            ],
            "range_bands": [{"key": key, "display_name": name} for key, name in RANGE_BANDS],
        }
    )


@api.route("/catalog", methods=["GET"])
def get_catalog_info() -> ApiResponse:
    snapshot = get_catalog(current_app.config["SNAPSHOT_PATH"])
    return jsonify({"generated_at": snapshot.generated_at, "count": len(snapshot.items)})


@api.route("/match", methods=["POST"])
def match() -> ApiResponse:
    """Score the catalog against the posted answers.

    Malformed answers give an empty result list, not an error.
    """
    data = request.get_json(silent=True)
    answers = parse_answers(data)

    limit = current_app.config["RESULT_LIMIT"]
    min_score = current_app.config["MIN_SCORE"]
    if isinstance(data, dict):
        limit = _int_param(data.get("limit"), limit, 0, MAX_LIMIT)
        min_score = _int_param(data.get("min_score"), min_score, 0, 4)

    if answers is None:
        logger.info("Malformed match request, returning no results")
        results: List[ScoredEntry] = []
    else:
        results = _match(answers, limit, min_score)

    log_interaction(
        "match_request",
        {
            "answers": answers.to_dict() if answers else None,
            "malformed": answers is None,
            "limit": limit,
            "min_score": min_score,
            "result_count": len(results),
            "top_sku_ids": [r.entry.csid for r in results[:3]],
        },
    )
    return jsonify({"results": [_result_payload(r) for r in results], "count": len(results)})


@api.route("/quiz", methods=["POST"])
def quiz_step() -> ApiResponse:
    """Apply one quiz action to a client-held state.

    Body: {"state": {...}, "action": "start|answer|back|restart|close", "value": ...}
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    state = state_from_dict(data.get("state"))
    action = data.get("action")
    new_state = apply_action(state, action, data.get("value")) if isinstance(action, str) else state

    view = render(new_state).to_dict()
    if new_state.screen == RESULTS:
        results = _match(
            answers_for(new_state),
            current_app.config["RESULT_LIMIT"],
            current_app.config["MIN_SCORE"],
        )
        view["results"] = [_result_payload(r) for r in results]

    log_interaction(
        "quiz_step",
        {"action": action, "from": state.screen, "to": new_state.screen, "index": new_state.index},
    )
    return jsonify({"state": state_to_dict(new_state), "view": view})


@api.route("/events", methods=["POST"])
def record_event() -> ApiResponse:
    """Validate and publish a widget event posted by the quiz frame."""
    try:
        event = parse_event(request.get_json(silent=True))
    except EventValidationError as e:
        return jsonify({"error": str(e)}), 400

    delivered = event_bus.publish(event)
    return jsonify({"status": "accepted", "type": event.type, "delivered": delivered}), 202


@api.route("/embed-url", methods=["GET"])
def embed_url() -> ApiResponse:
    """Return the iframe URL for the loader, with per-button overrides."""
    config = WidgetConfig(
        app_url=current_app.config["WIDGET_APP_URL"],
        retailer=current_app.config["WIDGET_RETAILER"],
        theme=current_app.config["WIDGET_THEME"],
    )
    params = {
        key: request.args.get(key)
        for key in ("retailer", "theme", "budget", "use_case")
    }
    return jsonify({"url": build_app_url(config, **params)})
