"""Tests for the widget event contract."""

import pytest

from quiz.events import (
    WIDGET_CLOSE,
    WIDGET_PURCHASE_CLICK,
    WIDGET_RESULTS_SHOWN,
    EventBus,
    EventValidationError,
    WidgetEvent,
    parse_event,
)


class TestParseEvent:
    def test_event_without_payload(self):
        assert parse_event({"type": "widget:open"}) == WidgetEvent("widget:open")

    def test_results_shown(self):
        event = parse_event({"type": WIDGET_RESULTS_SHOWN, "payload": {"count": 3}})
        assert event.payload == {"count": 3}

    def test_extra_payload_keys_dropped(self):
        event = parse_event(
            {
                "type": WIDGET_PURCHASE_CLICK,
                "payload": {"sku_id": "csid_5f0e3bad", "product_url": "https://shop.example/1", "x": 1},
            }
        )
        assert event.to_dict() == {
            "type": WIDGET_PURCHASE_CLICK,
            "payload": {"sku_id": "csid_5f0e3bad", "product_url": "https://shop.example/1"},
        }

    @pytest.mark.parametrize(
        "data",
        [
            None,
            "widget:open",
            {"type": "widget:explode"},
            {"type": WIDGET_RESULTS_SHOWN},
            {"type": WIDGET_RESULTS_SHOWN, "payload": {"count": "3"}},
            {"type": WIDGET_RESULTS_SHOWN, "payload": {"count": True}},
            {"type": WIDGET_RESULTS_SHOWN, "payload": {"count": -1}},
            {"type": WIDGET_RESULTS_SHOWN, "payload": [3]},
            {"type": WIDGET_PURCHASE_CLICK, "payload": {"sku_id": "a"}},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(EventValidationError):
            parse_event(data)


class TestEventBus:
    def test_publish_in_subscription_order(self):
        bus = EventBus()
        seen = []
        bus.subscribe(WIDGET_CLOSE, lambda e: seen.append("first"))
        bus.subscribe(WIDGET_CLOSE, lambda e: seen.append("second"))

        assert bus.publish(WidgetEvent(WIDGET_CLOSE)) == 2
        assert seen == ["first", "second"]

    def test_only_matching_type_delivered(self):
        bus = EventBus()
        seen = []
        bus.subscribe(WIDGET_RESULTS_SHOWN, seen.append)
        assert bus.publish(WidgetEvent(WIDGET_CLOSE)) == 0
        assert seen == []

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(WIDGET_CLOSE, seen.append)
        unsubscribe()
        unsubscribe()
        bus.publish(WidgetEvent(WIDGET_CLOSE))
        assert seen == []

    def test_failing_handler_does_not_stop_delivery(self, caplog):
        bus = EventBus()
        seen = []

        def boom(event):
            raise RuntimeError("boom")

        bus.subscribe(WIDGET_CLOSE, boom)
        bus.subscribe(WIDGET_CLOSE, seen.append)

        assert bus.publish(WidgetEvent(WIDGET_CLOSE)) == 1
        assert len(seen) == 1
        assert "widget:close" in caplog.text

    def test_unknown_type_cannot_be_subscribed(self):
        with pytest.raises(EventValidationError):
            EventBus().subscribe("widget:explode", print)
