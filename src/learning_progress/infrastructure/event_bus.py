"""Observer bus for progress notifications.

The tracking service publishes events here after each successful persist.
Observers subscribe per event type and may narrow a subscription to a single
user, which is how a screen showing one learner's progress listens without
filtering events itself.

Dispatch is synchronous and happens on the publishing thread.  A handler that
raises is logged and skipped, so one broken observer never undoes or blocks
the write that preceded the notification.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from learning_progress.domain.events import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], None]


@dataclass(frozen=True, eq=False)
class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`; pass it back to unsubscribe.

    ``event_type`` of ``None`` means every event type.
    """

    handler: Handler
    event_type: type[DomainEvent] | None = None
    user_id: str | None = None

    def matches(self, event: DomainEvent) -> bool:
        if self.event_type is not None and not isinstance(event, self.event_type):
            return False
        if self.user_id is not None and getattr(event, "user_id", None) != self.user_id:
            return False
        return True


class EventBus:
    """Thread-safe synchronous observer registry.

    Handlers run in subscription order.  Typed subscriptions also receive
    subclasses of their event type.

    Usage::

        bus = EventBus()
        sub = bus.subscribe(ProgressChanged, refresh_view, user_id="u1")
        ...
        bus.unsubscribe(sub)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: Handler,
        *,
        user_id: str | None = None,
    ) -> Subscription:
        """Register *handler* for *event_type*, optionally only for *user_id*."""
        subscription = Subscription(handler=handler, event_type=event_type, user_id=user_id)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def subscribe_all(self, handler: Handler) -> Subscription:
        """Register *handler* to receive every published event."""
        subscription = Subscription(handler=handler)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove *subscription*. Returns ``True`` if it was registered."""
        with self._lock:
            try:
                self._subscriptions.remove(subscription)
                return True
            except ValueError:
                return False

    def unsubscribe_all(self, handler: Handler) -> int:
        """Remove every subscription of *handler*. Returns how many were removed."""
        with self._lock:
            before = len(self._subscriptions)
            self._subscriptions = [s for s in self._subscriptions if s.handler != handler]
            return before - len(self._subscriptions)

    def publish(self, event: DomainEvent) -> int:
        """Deliver *event* to every matching handler.

        Returns the number of handlers that completed without raising.
        """
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.handler(event)
            except Exception:
                logger.exception(
                    "Observer %r failed on %s", subscription.handler, type(event).__name__
                )
            else:
                delivered += 1
        return delivered

    def publish_many(self, events: Iterable[DomainEvent]) -> int:
        """Publish *events* in order; returns the total number of deliveries."""
        return sum(self.publish(event) for event in events)

    def handler_count(self, event_type: type[DomainEvent] | None = None) -> int:
        """Number of subscriptions, or only those registered for *event_type*."""
        with self._lock:
            if event_type is None:
                return len(self._subscriptions)
            return sum(1 for s in self._subscriptions if s.event_type is event_type)

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()
