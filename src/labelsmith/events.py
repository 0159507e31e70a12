"""Event bus used to observe document residency and rename outcomes.

Hosts subscribe to these events to refresh their own views (buffer lists,
status lines) without the core depending on them.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, TypeVar
from weakref import WeakMethod, ref

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events in the system."""

    pass


# =============================================================================
# Document Events
# =============================================================================


@dataclass(slots=True)
class DocumentOpened(Event):
    """Emitted when a document becomes resident in the workspace.

    Attributes:
        document_id: The unique identifier of the document.
        path: The filesystem path the document was read from.
        transient: True when opened by an access scope rather than the user.
    """

    document_id: str
    path: str
    transient: bool = False


@dataclass(slots=True)
class DocumentReleased(Event):
    """Emitted when a document stops being resident in the workspace."""

    document_id: str
    path: str


# =============================================================================
# Rename Events
# =============================================================================


@dataclass(slots=True)
class RenameCommitted(Event):
    """Emitted after every occurrence of ``old_name`` was rewritten.

    Attributes:
        transaction_id: Identifier of the rename transaction.
        old_name: The label name before the rename.
        new_name: The label name after the rename.
        paths: Documents whose text changed, in corpus order.
        occurrences: Number of rewritten tokens.
    """

    transaction_id: str
    old_name: str
    new_name: str
    paths: tuple[str, ...] = field(default_factory=tuple)
    occurrences: int = 0


@dataclass(slots=True)
class RenameAborted(Event):
    """Emitted when a rename stops before committing."""

    transaction_id: str
    old_name: str
    new_name: str | None
    reason: str


class EventBus:
    """Synchronous publish/subscribe hub.

    Handlers are stored as weak references where possible (bound methods)
    so subscribers do not need to unsubscribe before being collected.

    This implementation is NOT thread-safe; all operations run on the
    editing thread.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register a handler to receive events of the specified type."""
        handler_ref = _HandlerRef.create(handler)
        self._handlers[event_type].append(handler_ref)
        logger.debug(
            "Subscribed handler %s to event type %s",
            _handler_name(handler),
            event_type.__name__,
        )

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler`` for ``event_type``."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return

        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                return

    def publish(self, event: E) -> None:
        """Broadcast an event to all registered handlers.

        Handlers run in registration order. A failing handler is logged and
        the remaining handlers still run.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            return

        logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        dead_indices: list[int] = []
        for i, handler_ref in enumerate(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                dead_indices.append(i)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for i in reversed(dead_indices):
            handlers.pop(i)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Wrapper for handler references supporting both weak and strong refs."""

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
        cls_name = type(handler.__self__).__name__
        return f"{cls_name}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "DocumentOpened",
    "DocumentReleased",
    "RenameCommitted",
    "RenameAborted",
]
