import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from apps.core.exceptions import NotFound
from apps.livesync.sync import LiveSync

from .serializers import LocationPingSerializer
from .services import rider_service

logger = logging.getLogger(__name__)


class RiderConsumer(AsyncWebsocketConsumer):
    """Rider app socket: inbox of addressed orders plus location pings."""

    async def connect(self):
        self.rider_id = self.scope["url_route"]["kwargs"]["rider_id"]
        self.live_sync = LiveSync()
        self.connected = False

        try:
            await database_sync_to_async(rider_service.get_rider)(self.rider_id)
        except NotFound:
            await self.close(code=4404)
            return

        await self.accept()
        self.connected = True
        await self.live_sync.subscribe_rider_orders(
            self.rider_id, self.order_event, on_degraded=self.connection_state
        )

    async def disconnect(self, close_code):
        self.connected = False
        await self.live_sync.close()

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            return
        if not isinstance(data, dict):
            return

        message_type = data.get("type")
        if message_type == "ping":
            await self.send_json({"type": "pong"})
        elif message_type == "location":
            await self.location_ping(data)

    async def location_ping(self, data):
        serializer = LocationPingSerializer(data=data)
        if not serializer.is_valid():
            await self.send_json({"type": "error", "errors": serializer.errors})
            return
        _, applied = await database_sync_to_async(rider_service.update_rider_location)(
            self.rider_id, **serializer.validated_data
        )
        await self.send_json({"type": "location_ack", "applied": applied})

    async def order_event(self, payload):
        await self.send_json({"type": "order_event", "data": payload})

    async def connection_state(self, degraded):
        await self.send_json({"type": "connection", "degraded": degraded})

    async def send_json(self, message):
        if not self.connected:
            logger.debug("Dropping %s for closed rider socket %s", message.get("type"), self.rider_id)
            return
        await self.send(text_data=json.dumps(message, default=str))
