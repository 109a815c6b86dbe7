"""Notification fan-out — best-effort delivery of reservation events.

Subscribers (websocket connections, badge counters, tests) register a
``deliver`` callable together with their user id and role. ``broadcast`` hands
a message to every subscriber accepted by the caller's filter, at most once per
call. Nothing is persisted or retried; a failing subscriber is logged and
skipped so it can never affect engine state.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

SubscriberFilter = Callable[[str, str], bool]  # (user_id, role) -> wanted?

MASS_INTENTION_UPDATED = "MASS_INTENTION_UPDATED"
THANKSGIVING_UPDATED = "THANKSGIVING_UPDATED"


@dataclass(frozen=True)
class ReservationEvent:
    """Ephemeral payload describing one reservation state change."""

    kind: str
    reservation_id: str
    mass_id: str
    action: str  # created | statusUpdated | deleted
    status: Optional[str] = None

    def data(self) -> dict[str, Any]:
        data = {"id": self.reservation_id, "action": self.action, "massId": self.mass_id}
        if self.status is not None:
            data["status"] = self.status
        return data


@dataclass
class Subscriber:
    token: int
    user_id: str
    role: str
    deliver: Callable[[dict[str, Any]], None]


class NotificationHub:
    """In-process subscriber registry. Safe to call from any thread."""

    def __init__(self) -> None:
        self._subscribers: dict[int, Subscriber] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, user_id: str, role: str, deliver: Callable[[dict[str, Any]], None]) -> int:
        """Register a subscriber; returns a token for ``unsubscribe``."""
        with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = Subscriber(token, user_id, role, deliver)
        logger.debug("Subscriber %d registered for user %s (%s)", token, user_id, role)
        return token

    def unsubscribe(self, token: int) -> None:
        with self._lock:
            self._subscribers.pop(token, None)
        logger.debug("Subscriber %d removed", token)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def broadcast(
        self,
        kind: str,
        payload: dict[str, Any],
        subscriber_filter: Optional[SubscriberFilter] = None,
    ) -> int:
        """Deliver ``{"type": kind, "data": payload}`` to matching subscribers.

        Returns the number of successful deliveries.
        """
        message = {"type": kind, "data": payload}
        with self._lock:
            subscribers = list(self._subscribers.values())

        delivered = 0
        for sub in subscribers:
            try:
                if subscriber_filter is not None and not subscriber_filter(sub.user_id, sub.role):
                    continue
                sub.deliver(message)
                delivered += 1
            except Exception:
                logger.exception("Delivery of %s to subscriber %d failed", kind, sub.token)
        logger.debug("Broadcast %s reached %d of %d subscribers", kind, delivered, len(subscribers))
        return delivered

    def publish(self, event: ReservationEvent, subscriber_filter: Optional[SubscriberFilter] = None) -> int:
        return self.broadcast(event.kind, event.data(), subscriber_filter)


hub = NotificationHub()
