import json
import logging

from channels.generic.websocket import AsyncWebsocketConsumer

from apps.core.exceptions import NotFound
from apps.livesync.sync import LiveSync
from apps.livesync.tracking import TrackingSession

logger = logging.getLogger(__name__)


class OrderConsumer(AsyncWebsocketConsumer):
    """Customer tracking screen for one order."""

    async def connect(self):
        self.order_id = self.scope["url_route"]["kwargs"]["order_id"]
        self.live_sync = LiveSync()
        self.session = None
        self.connected = False

        try:
            snapshot = await self.live_sync.refresh_order(self.order_id)
        except NotFound:
            await self.close(code=4404)
            return

        await self.accept()
        self.connected = True
        self.session = TrackingSession(self.live_sync, snapshot, self.send_json)
        await self.session.start()
        # subscribed first, so nothing committed from here on is missed
        await self.session.refresh()

    async def disconnect(self, close_code):
        self.connected = False
        if self.session is not None:
            await self.session.stop()
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
        elif message_type == "refresh" and self.session is not None:
            await self.session.refresh()

    async def send_json(self, message):
        if not self.connected:
            logger.debug("Dropping %s for closed order socket %s", message.get("type"), self.order_id)
            return
        await self.send(text_data=json.dumps(message, default=str))
