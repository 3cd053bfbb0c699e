"""
Subscription manager bridging committed changes to tracking screens.

Each subscription owns one reader task that pulls from the change feed and
hands payloads to the subscriber in arrival order. When the feed drops, the
subscription is flagged degraded and the reader resubscribes with back-off.
Changes committed while disconnected are not replayed; screens recover them
through ``refresh_order`` / ``refresh_rider_location``.
"""
import asyncio
import contextlib
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from channels.db import database_sync_to_async
from django.conf import settings

from apps.core.exceptions import TransportDisconnected
from apps.events.constants import EventTypes

from .feeds import ChangeFeed, change_feed, order_topic, rider_location_topic, rider_orders_topic

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Union[None, Awaitable[None]]]

ORDER = "order"
RIDER_LOCATION = "rider_location"
RIDER_ORDERS = "rider_orders"


@dataclass(eq=False)
class SubscriptionHandle:
    kind: str
    key: str
    topic: str
    on_change: Callback
    on_notify: Optional[Callback] = None
    on_degraded: Optional[Callback] = None
    token: Optional[str] = None
    degraded: bool = False
    closed: bool = False
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def active(self):
        return not self.closed


class LiveSync:
    def __init__(self, feed: Optional[ChangeFeed] = None, retry_delays=None):
        self.feed = feed or change_feed
        self.retry_delays = list(retry_delays or settings.LIVESYNC_RESUBSCRIBE_DELAYS) or [1]
        self._handles = set()

    async def subscribe_order(self, order_id, on_change, on_notify=None, on_degraded=None):
        """
        Follow status changes of one order.

        ``on_notify`` receives the DeliveryCompleted event that follows the
        change to delivered; ``on_change`` never sees it.
        """
        return await self._start(
            SubscriptionHandle(
                kind=ORDER,
                key=str(order_id),
                topic=order_topic(order_id),
                on_change=on_change,
                on_notify=on_notify,
                on_degraded=on_degraded,
            )
        )

    async def subscribe_rider_location(self, rider_id, on_change, on_degraded=None):
        """Follow one rider's current position (``{lat, lng, updated_at, ...}``)."""
        return await self._start(
            SubscriptionHandle(
                kind=RIDER_LOCATION,
                key=str(rider_id),
                topic=rider_location_topic(rider_id),
                on_change=on_change,
                on_degraded=on_degraded,
            )
        )

    async def subscribe_rider_orders(self, rider_id, on_change, on_degraded=None):
        """Follow orders addressed to a rider: creations and their later changes."""
        return await self._start(
            SubscriptionHandle(
                kind=RIDER_ORDERS,
                key=str(rider_id),
                topic=rider_orders_topic(rider_id),
                on_change=on_change,
                on_degraded=on_degraded,
            )
        )

    async def unsubscribe(self, handle: Optional[SubscriptionHandle]):
        """Release the feed and the listener. Safe to call repeatedly."""
        if handle is None or handle.closed:
            return
        handle.closed = True
        self._handles.discard(handle)

        task = handle.task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._release(handle)
        logger.debug("Unsubscribed from %s", handle.topic)

    async def close(self):
        for handle in list(self._handles):
            await self.unsubscribe(handle)

    @property
    def degraded(self):
        return any(handle.degraded for handle in self._handles)

    async def refresh_order(self, order_id):
        """Current stored snapshot, for screens that lost their feed."""
        from apps.orders.services import order_service

        return await database_sync_to_async(order_service.get_snapshot)(order_id)

    async def refresh_rider_location(self, rider_id):
        from apps.riders.services import rider_service

        return await database_sync_to_async(rider_service.get_rider_location)(rider_id)

    async def _start(self, handle):
        self._handles.add(handle)
        await self._open(handle)
        handle.task = asyncio.ensure_future(self._run(handle))
        return handle

    async def _open(self, handle) -> bool:
        try:
            handle.token = await self.feed.open(handle.topic)
        except TransportDisconnected as e:
            logger.warning("Could not subscribe to %s: %s", handle.topic, e)
            await self._set_degraded(handle, True)
            return False
        await self._set_degraded(handle, False)
        return True

    async def _release(self, handle):
        token, handle.token = handle.token, None
        if token is None:
            return
        try:
            await self.feed.close(handle.topic, token)
        except TransportDisconnected as e:
            logger.warning("Could not release %s cleanly: %s", handle.topic, e)

    def _delay(self, attempt):
        return self.retry_delays[min(attempt, len(self.retry_delays) - 1)]

    async def _run(self, handle):
        attempt = 0
        while not handle.closed:
            if handle.token is None:
                await asyncio.sleep(self._delay(attempt))
                attempt += 1
                if handle.closed:
                    break
                if not await self._open(handle):
                    continue
                logger.info("Resubscribed to %s after %d attempt(s)", handle.topic, attempt)
                attempt = 0

            try:
                payload = await self.feed.receive(handle.token)
            except TransportDisconnected as e:
                logger.warning("Change feed lost for %s: %s", handle.topic, e)
                await self._release(handle)
                await self._set_degraded(handle, True)
                continue

            if handle.closed:
                break
            await self._deliver(handle, payload)

    async def _deliver(self, handle, payload):
        if handle.kind == ORDER and payload.get("event") == EventTypes.DELIVERY_COMPLETED:
            await self._call(handle, handle.on_notify, payload)
            return
        await self._call(handle, handle.on_change, payload)

    async def _set_degraded(self, handle, degraded):
        if handle.degraded == degraded:
            return
        handle.degraded = degraded
        await self._call(handle, handle.on_degraded, degraded)

    @staticmethod
    async def _call(handle, callback, value):
        if callback is None:
            return
        try:
            result = callback(value)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Subscriber of %s failed handling a change", handle.topic)
