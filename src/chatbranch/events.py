"""Branch events and the observer registry that dispatches them.

Listeners subscribe per event class. Subscribing to ``BranchEvent`` itself
receives every event. Owned by a BranchStore instance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from chatbranch.models.branch import Branch, Message
    from chatbranch.protocols import BranchListener

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BranchEvent:
    """Base class for all store events."""

    timestamp: datetime = field(default_factory=_utcnow, kw_only=True)


@dataclass(frozen=True)
class BranchCreated(BranchEvent):
    branch: Branch


@dataclass(frozen=True)
class BranchSwitched(BranchEvent):
    name: str
    previous: str


@dataclass(frozen=True)
class BranchMerged(BranchEvent):
    source: str
    target: str
    messages: list[Message]


@dataclass(frozen=True)
class BranchDeleted(BranchEvent):
    name: str


@dataclass(frozen=True)
class CheckpointRestored(BranchEvent):
    name: str


class EventBus:
    """Registry of listeners keyed by event class."""

    def __init__(self) -> None:
        self._listeners: dict[type[BranchEvent], list[BranchListener]] = {}

    def subscribe(
        self,
        event_type: type[BranchEvent],
        listener: BranchListener,
    ) -> Callable[[], None]:
        """Register ``listener`` for ``event_type`` (and its subclasses).

        Returns a zero-argument callable that removes the subscription.
        """
        if not (isinstance(event_type, type) and issubclass(event_type, BranchEvent)):
            raise TypeError(f"Not a BranchEvent type: {event_type!r}")
        self._listeners.setdefault(event_type, []).append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(event_type, listener)

        return _unsubscribe

    def unsubscribe(self, event_type: type[BranchEvent], listener: BranchListener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        try:
            listeners.remove(listener)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event_type]

    def listener_count(self, event_type: type[BranchEvent] | None = None) -> int:
        if event_type is None:
            return sum(len(v) for v in self._listeners.values())
        return len(self._listeners.get(event_type, []))

    def emit(self, event: BranchEvent) -> None:
        """Deliver ``event`` to every matching listener.

        Listeners of the same event class run in subscription order.

        A failing listener is logged and skipped; the remaining listeners
        still run and the emitting operation is not rolled back.
        """
        for event_type, listeners in list(self._listeners.items()):
            if not isinstance(event, event_type):
                continue
            for listener in list(listeners):
                try:
                    listener(event)
                except Exception:
                    logger.exception(
                        "Listener %r failed on %s", listener, type(event).__name__
                    )

    def clear(self) -> None:
        self._listeners.clear()
