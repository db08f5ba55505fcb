"""Session-change notifications.

Each subscriber gets an async iterator of ``Identity | None`` events for one
user: an identity after sign-in or a profile change, ``None`` after sign-out.
The stream ends when the subscription is closed.
"""

import asyncio
from collections import defaultdict

from structlog import get_logger

from pain_tracker.schemas.auth import Identity

logger = get_logger(__name__)

_CLOSED = object()


class SessionSubscription:
    """Finite-until-unsubscribed stream of identity-or-absent events."""

    def __init__(self, broker: "SessionEventBroker", uid: str, maxsize: int):
        """Attach a bounded queue for ``uid`` to ``broker``."""
        self.uid = uid
        self._broker = broker
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _push(self, item: object) -> None:
        # Slow consumers lose the oldest event rather than blocking publishers.
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(item)

    def __aiter__(self) -> "SessionSubscription":
        return self

    async def __anext__(self) -> Identity | None:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Unsubscribe; pending iteration finishes after queued events."""
        if self._closed:
            return
        self._closed = True
        self._broker._unsubscribe(self)
        self._push(_CLOSED)

    async def __aenter__(self) -> "SessionSubscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class SessionEventBroker:
    """In-process fan-out of session changes to per-user subscribers."""

    def __init__(self, queue_size: int = 16):
        """Create a broker whose subscriber queues hold ``queue_size`` events."""
        self.queue_size = queue_size
        self._subscribers: dict[str, set[SessionSubscription]] = defaultdict(set)

    def subscribe(self, uid: str) -> SessionSubscription:
        subscription = SessionSubscription(self, uid, self.queue_size)
        self._subscribers[uid].add(subscription)
        logger.debug("session_subscribed", uid=uid, subscribers=len(self._subscribers[uid]))
        return subscription

    def _unsubscribe(self, subscription: SessionSubscription) -> None:
        subscribers = self._subscribers.get(subscription.uid)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscribers[subscription.uid]
        logger.debug("session_unsubscribed", uid=subscription.uid)

    def publish(self, uid: str, identity: Identity | None) -> int:
        """Deliver an event to every subscriber of ``uid``; return how many got it."""
        subscribers = list(self._subscribers.get(uid, ()))
        for subscription in subscribers:
            subscription._push(identity)
        logger.info(
            "session_event_published",
            uid=uid,
            signed_in=identity is not None,
            delivered=len(subscribers),
        )
        return len(subscribers)

    def subscriber_count(self, uid: str) -> int:
        return len(self._subscribers.get(uid, ()))
