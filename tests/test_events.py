"""Unit tests for :mod:`template_editor.engine.events`."""

from __future__ import annotations

import gc
import logging

import pytest

from template_editor.engine.events import (
    EVENT_NAMES,
    ComponentStateChanged,
    DocumentChanged,
    Event,
    EventBus,
    ExampleChanged,
    SelectionChanged,
)


class TestEventTypes:
    """Tests for the engine event dataclasses."""

    def test_events_use_slots(self) -> None:
        """Event dataclasses should use slots."""
        event = SelectionChanged(node_id="n1")
        assert hasattr(event, "__slots__")
        assert event.node_id == "n1"

    def test_wire_names(self) -> None:
        """Every wire name maps to its event class."""
        assert EVENT_NAMES == {
            "doc:change": DocumentChanged,
            "selection:change": SelectionChanged,
            "example:change": ExampleChanged,
            "component-state:change": ComponentStateChanged,
        }


class TestEventBusSubscription:
    """Tests for subscribe/unsubscribe."""

    def test_subscribe_and_publish(self) -> None:
        """Handlers receive events of the subscribed type only."""
        bus: EventBus[Event] = EventBus()
        selections: list[SelectionChanged] = []
        states: list[ComponentStateChanged] = []

        bus.subscribe(SelectionChanged, selections.append)
        bus.subscribe(ComponentStateChanged, states.append)
        bus.publish(SelectionChanged(node_id="a"))

        assert [event.node_id for event in selections] == ["a"]
        assert states == []

    def test_handlers_run_in_order(self) -> None:
        """Handlers run in subscription order."""
        bus: EventBus[Event] = EventBus()
        order: list[int] = []

        bus.subscribe(SelectionChanged, lambda e: order.append(1))
        bus.subscribe(SelectionChanged, lambda e: order.append(2))
        bus.publish(SelectionChanged(node_id=None))

        assert order == [1, 2]

    def test_unsubscribe_removes_first_registration(self) -> None:
        """A handler registered twice is removed one registration at a time."""
        bus: EventBus[Event] = EventBus()
        received: list[Event] = []

        def handler(event: Event) -> None:
            received.append(event)

        bus.subscribe(SelectionChanged, handler)
        bus.subscribe(SelectionChanged, handler)
        bus.unsubscribe(SelectionChanged, handler)
        bus.publish(SelectionChanged(node_id="x"))

        assert len(received) == 1
        assert bus.handler_count(SelectionChanged) == 1

    def test_unsubscribe_unknown_is_safe(self) -> None:
        """Unsubscribing something never subscribed does nothing."""
        bus: EventBus[Event] = EventBus()
        bus.unsubscribe(SelectionChanged, lambda e: None)
        assert bus.handler_count() == 0


class TestOn:
    """Tests for the wire-name subscription helper."""

    def test_on_by_name_returns_unsubscribe(self) -> None:
        """``on`` accepts wire names and returns an unsubscribe callable."""
        bus: EventBus[Event] = EventBus()
        received: list[ExampleChanged] = []

        unsubscribe = bus.on("example:change", received.append)
        bus.publish(ExampleChanged(index=1, example={"id": "x"}))
        unsubscribe()
        bus.publish(ExampleChanged(index=2, example=None))

        assert [event.index for event in received] == [1]

    def test_on_by_class(self) -> None:
        """``on`` also accepts event classes."""
        bus: EventBus[Event] = EventBus()
        received: list[ComponentStateChanged] = []

        bus.on(ComponentStateChanged, received.append)
        bus.publish(ComponentStateChanged(key="k", value=1))

        assert received[0].value == 1

    def test_unknown_name_raises(self) -> None:
        """Unknown wire names raise ``KeyError``."""
        bus: EventBus[Event] = EventBus()
        with pytest.raises(KeyError):
            bus.on("doc:changed", lambda e: None)


class TestPublish:
    """Tests for publish error handling."""

    def test_handler_exception_is_logged_and_others_run(self, caplog) -> None:
        """A raising handler does not stop the remaining handlers."""
        bus: EventBus[Event] = EventBus()
        received: list[int] = []

        def broken(event: SelectionChanged) -> None:
            raise ValueError("boom")

        bus.subscribe(SelectionChanged, lambda e: received.append(1))
        bus.subscribe(SelectionChanged, broken)
        bus.subscribe(SelectionChanged, lambda e: received.append(3))

        with caplog.at_level(logging.ERROR, logger="template_editor.engine.events"):
            bus.publish(SelectionChanged(node_id="n"))

        assert received == [1, 3]
        assert any("broken" in record.getMessage() for record in caplog.records)

    def test_handler_may_unsubscribe_itself(self) -> None:
        """Handlers can unsubscribe while the event is being delivered."""
        bus: EventBus[Event] = EventBus()
        calls: list[str] = []
        unsubscribe = None

        def once(event: SelectionChanged) -> None:
            calls.append("once")
            unsubscribe()

        unsubscribe = bus.on("selection:change", once)
        bus.subscribe(SelectionChanged, lambda e: calls.append("always"))

        bus.publish(SelectionChanged(node_id="a"))
        bus.publish(SelectionChanged(node_id="b"))

        assert calls == ["once", "always", "always"]

    def test_publish_without_handlers_is_safe(self) -> None:
        """publish is safe when no handlers are subscribed."""
        EventBus().publish(SelectionChanged(node_id=None))


class TestEventBusWeakReferences:
    """Tests for weak reference handling."""

    def test_bound_method_handler_cleaned_up_on_gc(self) -> None:
        """Bound method handlers are dropped once their owner is collected."""
        bus: EventBus[Event] = EventBus()
        received: list[SelectionChanged] = []

        class Subscriber:
            def handle(self, event: SelectionChanged) -> None:
                received.append(event)

        subscriber = Subscriber()
        bus.subscribe(SelectionChanged, subscriber.handle)
        bus.publish(SelectionChanged(node_id="before"))

        del subscriber
        gc.collect()
        bus.publish(SelectionChanged(node_id="after"))

        assert [event.node_id for event in received] == ["before"]
        assert bus.handler_count(SelectionChanged) == 0

    def test_clear_removes_everything(self) -> None:
        """clear drops every handler."""
        bus: EventBus[Event] = EventBus()
        bus.subscribe(SelectionChanged, lambda e: None)
        bus.subscribe(DocumentChanged, lambda e: None)

        bus.clear()

        assert bus.handler_count() == 0
