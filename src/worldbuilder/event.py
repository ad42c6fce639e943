"""Event bus for presentation feedback.

Floating numbers, celebrations, notifications and sound cues live outside the
simulation core. They subscribe here; the core publishes structured events
and never depends on anyone listening.

* Delivery order is priority first, publication order second.
* Consumers subscribe with callables and an optional predicate.
* Every published event is kept in an outbox that tests and debug tools can
  inspect without subscribing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
import heapq
import itertools
from typing import Callable, Dict, Iterable, List, Optional


class EventPriority(Enum):
    """Delivery priority classes, ``HIGH`` before ``NORMAL`` before ``LOW``."""

    HIGH = auto()
    NORMAL = auto()
    LOW = auto()

    @property
    def queue_index(self) -> int:
        return {
            EventPriority.HIGH: 0,
            EventPriority.NORMAL: 1,
            EventPriority.LOW: 2,
        }[self]


@dataclass(slots=True)
class Event:
    """Canonical event record carried on the bus."""

    id: str
    type: str
    t_ms: float
    payload: Dict[str, object] = field(default_factory=dict)
    priority: EventPriority = EventPriority.NORMAL


Subscriber = Callable[[Event], None]
Predicate = Callable[[Event], bool]


@dataclass
class Subscription:
    """Handle returned when subscribing to the event bus."""

    predicate: Predicate
    callback: Subscriber
    active: bool = True

    def matches(self, event: Event) -> bool:
        return self.active and self.predicate(event)


class EventBus:
    """Priority queue based event dispatcher."""

    def __init__(self) -> None:
        self._subscriptions: List[Subscription] = []
        self._queue: List[tuple[int, int, Event]] = []
        self._counter = itertools.count()
        self._ids = itertools.count(1)
        self._outbox: List[Event] = []

    def subscribe(
        self,
        callback: Subscriber,
        *,
        predicate: Optional[Predicate] = None,
        event_type: Optional[str] = None,
    ) -> Subscription:
        """Register a subscriber and return the :class:`Subscription`.

        ``event_type`` is a shorthand for a predicate matching one type.
        Callers can deactivate a subscription by setting
        ``subscription.active = False``.
        """

        if predicate is None:
            if event_type is None:
                predicate = lambda event: True
            else:
                predicate = lambda event: event.type == event_type
        sub = Subscription(predicate=predicate, callback=callback)
        self._subscriptions.append(sub)
        return sub

    def next_id(self) -> str:
        return f"evt:{next(self._ids)}"

    def publish(self, event: Event) -> None:
        """Queue ``event`` for delivery."""

        heapq.heappush(self._queue, (event.priority.queue_index, next(self._counter), event))
        self._outbox.append(event)

    def dispatch(self) -> List[Event]:
        """Drain the queue and notify matching subscribers.

        Returns the delivered events in delivery order.
        """

        delivered: List[Event] = []
        while self._queue:
            _, _, event = heapq.heappop(self._queue)
            delivered.append(event)
            for subscription in self._subscriptions:
                if subscription.matches(event):
                    subscription.callback(event)
        return delivered

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def outbox(self) -> Iterable[Event]:
        """Iterate over emitted events without mutating the bus."""

        return tuple(self._outbox)

    def clear_outbox(self) -> None:
        self._outbox.clear()


__all__ = ["Event", "EventBus", "EventPriority", "Subscription"]
