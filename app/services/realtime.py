"""
Realtime hub
Best-effort push of row changes and broadcast events to subscribers
"""

import asyncio
import logging
import uuid
from typing import Dict, Any, Optional, Callable, Awaitable, Set, Union

from app.core.config import settings
from app.core.redis_client import redis_manager
from app.schemas.realtime import ChangeEvent, ChangeType, BroadcastEvent

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]
BroadcastHandler = Callable[[BroadcastEvent], Awaitable[None]]


class Subscription:
    """A registered interest in one table (filtered) or one broadcast channel"""

    def __init__(
        self,
        handler: Union[ChangeHandler, BroadcastHandler],
        table: Optional[str] = None,
        filter: Optional[Dict[str, Any]] = None,
        events: Optional[Set[ChangeType]] = None,
        channel: Optional[str] = None,
    ):
        self.id = str(uuid.uuid4())
        self.handler = handler
        self.table = table
        self.filter = filter or {}
        self.events = events
        self.channel = channel

    def matches_change(self, event: ChangeEvent) -> bool:
        if self.table != event.table:
            return False
        if self.events and event.event not in self.events:
            return False
        row = event.row
        return all(row.get(key) == value for key, value in self.filter.items())

    def __repr__(self):
        target = self.channel or self.table
        return f"<Subscription(id={self.id}, target={target}, filter={self.filter})>"


class RealtimeHub:
    """
    In-process fan-out of row changes and broadcasts.

    Handlers run as background tasks so a publisher never waits on a
    subscriber. Delivery is best effort: a failing handler is logged and
    dropped. With REALTIME_REDIS_FANOUT enabled, events are also published
    to Redis so hubs in other worker processes can deliver them.
    """

    def __init__(self, redis_fanout: Optional[bool] = None):
        self.origin = str(uuid.uuid4())
        self._subscriptions: Dict[str, Subscription] = {}
        self._pending: Set[asyncio.Task] = set()
        self._redis_fanout = settings.REALTIME_REDIS_FANOUT if redis_fanout is None else redis_fanout

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        table: str,
        filter: Optional[Dict[str, Any]],
        handler: ChangeHandler,
        events: Optional[Set[ChangeType]] = None,
    ) -> Subscription:
        """Register a handler for changes on a table whose row matches filter"""
        subscription = Subscription(handler, table=table, filter=filter, events=events)
        self._subscriptions[subscription.id] = subscription
        return subscription

    def subscribe_channel(self, channel: str, handler: BroadcastHandler) -> Subscription:
        """Register a handler for broadcast events on a channel"""
        subscription = Subscription(handler, channel=channel)
        self._subscriptions[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.id, None)

    async def publish_change(self, event: ChangeEvent) -> None:
        """Deliver a row change locally and fan it out"""
        self._dispatch_change(event)
        await self._fan_out("change", event.model_dump(mode="json"), event.row.get("room_id") or event.row.get("id"))

    async def publish_broadcast(self, event: BroadcastEvent) -> None:
        """Deliver a broadcast event locally and fan it out"""
        self._dispatch_broadcast(event)
        await self._fan_out("broadcast", event.model_dump(mode="json"), event.channel)

    async def deliver_remote(self, channel: str, message: Dict[str, Any]) -> None:
        """Relay callback for events published by another worker"""
        if message.get("origin") == self.origin:
            return
        try:
            if message.get("kind") == "change":
                self._dispatch_change(ChangeEvent.model_validate(message["event"]))
            elif message.get("kind") == "broadcast":
                self._dispatch_broadcast(BroadcastEvent.model_validate(message["event"]))
        except (KeyError, ValueError) as e:
            logger.warning(f"Dropping malformed realtime message from {channel}: {e}")

    async def start_relay(self) -> None:
        """Listen for events from other workers"""
        if self._redis_fanout and redis_manager.is_available:
            await redis_manager.listen(f"{settings.REALTIME_CHANNEL_PREFIX}:*", self.deliver_remote)

    async def drain(self) -> None:
        """Wait until every handler scheduled so far, and those they schedule, finishes"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        await asyncio.gather(*list(self._pending), return_exceptions=True)
        self._pending.clear()
        self._subscriptions.clear()

    def _dispatch_change(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscriptions.values()):
            if subscription.channel is None and subscription.matches_change(event):
                self._schedule(subscription, event)

    def _dispatch_broadcast(self, event: BroadcastEvent) -> None:
        for subscription in list(self._subscriptions.values()):
            if subscription.channel == event.channel:
                self._schedule(subscription, event)

    def _schedule(self, subscription: Subscription, event) -> None:
        task = asyncio.create_task(self._run_handler(subscription, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_handler(self, subscription: Subscription, event) -> None:
        try:
            await subscription.handler(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Realtime handler {subscription!r} failed: {e}")

    async def _fan_out(self, kind: str, event: Dict[str, Any], key: Optional[str]) -> None:
        if not (self._redis_fanout and redis_manager.is_available):
            return
        channel = f"{settings.REALTIME_CHANNEL_PREFIX}:{key or 'global'}"
        try:
            await redis_manager.publish_message(channel, {"origin": self.origin, "kind": kind, "event": event})
        except Exception as e:
            logger.warning(f"Realtime fan-out to {channel} failed: {e}")


# Global realtime hub instance
realtime_hub = RealtimeHub()
