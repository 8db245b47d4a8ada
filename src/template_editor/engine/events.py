"""Synchronous publish/subscribe bus for engine notifications.

The engine publishes typed event dataclasses; embedders subscribe by event
class or by the wire names used by the editor shell (``doc:change``,
``selection:change``, ``example:change``, ``component-state:change``).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar
from weakref import WeakMethod, ref

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

    from ..model.document import NodeId, TemplateDocument
    from .indexes import DocumentIndexes

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]
Unsubscribe = Callable[[], None]


@dataclass(slots=True)
class Event:
    """Base class for all engine events."""


@dataclass(slots=True)
class DocumentChanged(Event):
    """Emitted after every successful document mutation.

    Attributes:
        doc: The new document snapshot.
        indexes: Indexes matching ``doc``.
    """

    doc: "TemplateDocument"
    indexes: "DocumentIndexes"


@dataclass(slots=True)
class SelectionChanged(Event):
    node_id: "NodeId | None"


@dataclass(slots=True)
class ExampleChanged(Event):
    """Emitted when the current data example switches.

    Attributes:
        index: Position of the new example in ``data_examples``.
        example: The example payload as supplied by the embedder.
    """

    index: int
    example: Any


@dataclass(slots=True)
class ComponentStateChanged(Event):
    key: str
    value: Any


EVENT_NAMES: dict[str, type[Event]] = {
    "doc:change": DocumentChanged,
    "selection:change": SelectionChanged,
    "example:change": ExampleChanged,
    "component-state:change": ComponentStateChanged,
}

# Published on every keystroke-level sync; not logged per publish.
_QUIET_EVENT_TYPES: set[type] = {DocumentChanged}


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus.

    Handlers run synchronously in subscription order. Bound methods are held
    through :class:`weakref.WeakMethod` and dropped once their owner is
    collected; plain functions and lambdas are held strongly.

    Example::

        bus = EventBus()
        unsubscribe = bus.on("selection:change", lambda event: print(event.node_id))
        bus.publish(SelectionChanged(node_id="abc"))
        unsubscribe()

    Not thread-safe; use it from the thread that owns the engine.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``.

        Subscribing the same handler twice results in two invocations.
        """
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed handler %s to event type %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return

        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                logger.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def on(self, event: str | type[E], handler: Handler[E]) -> Unsubscribe:
        """Subscribe by wire name or event class and return an unsubscribe callable.

        Raises:
            KeyError: if ``event`` is an unknown wire name.
        """
        if isinstance(event, str):
            try:
                event_type = EVENT_NAMES[event]
            except KeyError:
                raise KeyError(f"Unknown event name: {event!r}") from None
        else:
            event_type = event

        self.subscribe(event_type, handler)

        def unsubscribe() -> None:
            self.unsubscribe(event_type, handler)

        return unsubscribe

    def publish(self, event: E) -> None:
        """Deliver ``event`` to its handlers.

        A handler that raises is logged and the remaining handlers still run.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        is_quiet = event_type in _QUIET_EVENT_TYPES

        if not handlers:
            if not is_quiet:
                logger.debug("No handlers for event type %s", event_type.__name__)
            return

        if not is_quiet:
            logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        dead: list[_HandlerRef] = []
        # Handlers may unsubscribe while being called.
        for handler_ref in tuple(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(handler_ref)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for handler_ref in dead:
            if handler_ref in handlers:
                handlers.remove(handler_ref)

    def clear(self) -> None:
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the number of handlers for ``event_type`` (or in total)."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | ref | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "ComponentStateChanged",
    "DocumentChanged",
    "EVENT_NAMES",
    "Event",
    "EventBus",
    "ExampleChanged",
    "Handler",
    "SelectionChanged",
    "Unsubscribe",
]
