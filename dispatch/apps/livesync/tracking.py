"""
Customer-side tracking of one order.

Combines the order's status feed with the assigned rider's location feed
and recomputes distance/ETA to the order's fixed destination on every ping.
"""
import inspect
import logging

from django.conf import settings

from apps.geo import GeoPoint, estimate_arrival
from apps.orders.constants import CLOSED_STATUSES, TERMINAL_STATUSES

from .snapshots import OrderSnapshot, apply_patch

logger = logging.getLogger(__name__)


class TrackingSession:
    """
    Pushes plain dicts to ``on_update``:

    - ``{"type": "order_status", ...}`` on every applied status change
    - ``{"type": "location_update", ...}`` with distance/ETA on every ping
    - ``{"type": "notify_user", ...}`` once the order is delivered
    - ``{"type": "connection", "degraded": bool}`` when the feed drops or recovers
    - ``{"type": "tracking_closed", ...}`` when nothing is left to follow
    """

    def __init__(self, live_sync, snapshot: OrderSnapshot, on_update, speed_kmh=None):
        self.live_sync = live_sync
        self.snapshot = snapshot
        self.on_update = on_update
        self.speed_kmh = speed_kmh or settings.TRACKING_SPEED_KMH
        self.location = None
        self.order_handle = None
        self.location_handle = None
        self.closed = False

    @property
    def degraded(self):
        return any(
            handle.degraded
            for handle in (self.order_handle, self.location_handle)
            if handle is not None and handle.active
        )

    async def start(self, location=None):
        self.location = location
        if self.snapshot.status in CLOSED_STATUSES:
            self.closed = True
            return
        self.order_handle = await self.live_sync.subscribe_order(
            self.snapshot.order_id,
            self._on_order_change,
            on_notify=self._on_notify,
            on_degraded=self._on_degraded,
        )
        await self._follow_rider()

    async def stop(self):
        self.closed = True
        logger.debug("Stopped tracking order %s", self.snapshot.order_id)
        await self._stop_following_rider()
        await self.live_sync.unsubscribe(self.order_handle)

    async def refresh(self):
        """
        Reload order and rider position from storage and push a full snapshot.

        A stored order older than the one already applied from the feed is
        discarded. The result then goes through the same follow/close handling
        as a feed change.
        """
        stored = await self.live_sync.refresh_order(self.snapshot.order_id)
        if stored.version >= self.snapshot.version:
            self.snapshot = stored
        if self._tracks_location():
            self.location = await self.live_sync.refresh_rider_location(self.snapshot.rider_id)
        await self._emit(self.snapshot_message())
        await self._settle()

    def estimate(self):
        distance, eta = estimate_arrival(
            GeoPoint.from_mapping(self.location),
            self.snapshot.destination,
            self.speed_kmh,
        )
        return {
            "distance_km": round(distance, 2) if distance is not None else None,
            "eta_minutes": eta,
        }

    def snapshot_message(self):
        return {
            "type": "snapshot",
            "order": self.snapshot.as_dict(),
            "location": self.location,
            "degraded": self.degraded,
            **self.estimate(),
        }

    def _tracks_location(self):
        return (
            not self.closed
            and self.snapshot.rider_id is not None
            and self.snapshot.status not in TERMINAL_STATUSES
        )

    async def _follow_rider(self):
        if self.location_handle is not None or not self._tracks_location():
            return
        self.location_handle = await self.live_sync.subscribe_rider_location(
            self.snapshot.rider_id, self._on_location, on_degraded=self._on_degraded
        )

    async def _stop_following_rider(self):
        handle, self.location_handle = self.location_handle, None
        await self.live_sync.unsubscribe(handle)

    async def _on_order_change(self, payload):
        previous = self.snapshot
        self.snapshot = apply_patch(previous, payload)
        if self.snapshot is previous:
            return

        await self._emit(
            {
                "type": "order_status",
                "order": self.snapshot.as_dict(),
                "from_status": payload.get("from_status", previous.status),
                "to_status": self.snapshot.status,
            }
        )

        await self._settle()

    async def _settle(self):
        if self.snapshot.status in TERMINAL_STATUSES:
            # delivered: stop recomputing, keep listening for completion
            await self._stop_following_rider()
        else:
            await self._follow_rider()

        if self.snapshot.status in CLOSED_STATUSES and not self.closed:
            await self._emit(
                {
                    "type": "tracking_closed",
                    "order_id": self.snapshot.order_id,
                    "status": self.snapshot.status,
                }
            )
            await self.stop()

    async def _on_notify(self, payload):
        await self._emit(
            {
                "type": "notify_user",
                "order_id": self.snapshot.order_id,
                "status": self.snapshot.status,
            }
        )

    async def _on_location(self, payload):
        if not self._tracks_location():
            return
        self.location = payload
        await self._emit(
            {
                "type": "location_update",
                "rider_id": self.snapshot.rider_id,
                "location": payload,
                **self.estimate(),
            }
        )

    async def _on_degraded(self, degraded):
        await self._emit({"type": "connection", "degraded": self.degraded or degraded})

    async def _emit(self, message):
        result = self.on_update(message)
        if inspect.isawaitable(result):
            await result
