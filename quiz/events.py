"""Widget event contract between the embedded quiz and its host page.

The quiz frame and the loader exchange a small set of named events. This
module defines their payload shapes and a minimal in-process bus; the
transport (postMessage, HTTP) is up to the caller.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, Dict, List, Mapping, Tuple

__all__ = [
    "WIDGET_OPEN",
    "WIDGET_CLOSE",
    "WIDGET_LOADED",
    "WIDGET_RESULTS_SHOWN",
    "WIDGET_PURCHASE_CLICK",
    "EVENT_PAYLOADS",
    "EventValidationError",
    "WidgetEvent",
    "parse_event",
    "EventBus",
]

logger = logging.getLogger(__name__)

WIDGET_OPEN = "widget:open"
WIDGET_CLOSE = "widget:close"
WIDGET_LOADED = "widget:loaded"
WIDGET_RESULTS_SHOWN = "widget:resultsShown"
WIDGET_PURCHASE_CLICK = "widget:purchaseClick"

# Required payload fields and their types, per event type
EVENT_PAYLOADS: Dict[str, Dict[str, Tuple[type, ...]]] = {
    WIDGET_OPEN: {},
    WIDGET_CLOSE: {},
    WIDGET_LOADED: {},
    WIDGET_RESULTS_SHOWN: {"count": (int,)},
    WIDGET_PURCHASE_CLICK: {"sku_id": (str,), "product_url": (str,)},
}


class EventValidationError(ValueError):
    """Raised when an event has an unknown type or a malformed payload."""
    pass


@dataclass(frozen=True)
class WidgetEvent:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.payload:
            data["payload"] = dict(self.payload)
        return data


def parse_event(data: Any) -> WidgetEvent:
    """Validate a decoded event message.

    Args:
        data: Mapping with 'type' and an optional 'payload' mapping.

    Returns:
        The validated event; payload keys outside the contract are dropped.

    Raises:
        EventValidationError: If the type is unknown or a payload field is
            missing or has the wrong type.
    """
    if not isinstance(data, Mapping):
        raise EventValidationError("Event must be an object")

    event_type = data.get("type")
    if event_type not in EVENT_PAYLOADS:
        raise EventValidationError(f"Unknown event type: {event_type!r}")

    raw_payload = data.get("payload") or {}
    if not isinstance(raw_payload, Mapping):
        raise EventValidationError(f"Payload of {event_type} must be an object")

    payload: Dict[str, Any] = {}
    for name, types in EVENT_PAYLOADS[event_type].items():
        value = raw_payload.get(name)
        if isinstance(value, bool) or not isinstance(value, types):
            raise EventValidationError(
                f"{event_type} requires '{name}' of type {'/'.join(t.__name__ for t in types)}"
            )
        payload[name] = value

    if event_type == WIDGET_RESULTS_SHOWN and payload["count"] < 0:
        raise EventValidationError("count must not be negative")

    return WidgetEvent(type=event_type, payload=payload)


Handler = Callable[[WidgetEvent], None]


class EventBus:
    """Synchronous publish/subscribe for widget events.

    Usage:
        bus = EventBus()
        bus.subscribe(WIDGET_CLOSE, lambda event: print("closed"))
        bus.publish(WidgetEvent(WIDGET_CLOSE))
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a function that unsubscribes it."""
        if event_type not in EVENT_PAYLOADS:
            raise EventValidationError(f"Unknown event type: {event_type!r}")
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event: WidgetEvent) -> int:
        """Deliver an event to its handlers in subscription order.

        A failing handler is logged and does not stop delivery to the rest.

        Returns:
            Number of handlers that ran successfully.
        """
        delivered = 0
        for handler in list(self._handlers.get(event.type, [])):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception(f"Handler for {event.type} failed")
        return delivered
