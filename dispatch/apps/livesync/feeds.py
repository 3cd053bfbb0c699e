"""
Change feeds: row-level change notifications pushed from the service that
commits a write to every process watching that row.

``ChangeFeed`` is the seam; ``ChannelLayerFeed`` implements it on top of the
Channels layer (Redis pub/sub in production, in-memory under test).
"""
import abc
import logging

from asgiref.sync import async_to_sync
from channels import DEFAULT_CHANNEL_LAYER
from channels.layers import get_channel_layer

from apps.core.exceptions import TransportDisconnected

logger = logging.getLogger(__name__)

MESSAGE_TYPE = "change.event"


def order_topic(order_id):
    return f"order.{order_id}"


def rider_location_topic(rider_id):
    return f"rider_location.{rider_id}"


def rider_orders_topic(rider_id):
    return f"rider_orders.{rider_id}"


class ChangeFeed(abc.ABC):
    """Subscribe/publish primitive over the backing store's notifications."""

    @abc.abstractmethod
    async def open(self, topic: str) -> str:
        """Start listening on ``topic`` and return a token for ``receive``."""

    @abc.abstractmethod
    async def receive(self, token: str) -> dict:
        """Wait for the next change delivered to ``token``."""

    @abc.abstractmethod
    async def close(self, topic: str, token: str) -> None:
        """Stop listening. Must tolerate an already-closed token."""

    @abc.abstractmethod
    async def publish(self, topic: str, payload: dict) -> None:
        """Fan ``payload`` out to every open subscription on ``topic``."""

    def publish_sync(self, topic: str, payload: dict) -> None:
        async_to_sync(self.publish)(topic, payload)


class ChannelLayerFeed(ChangeFeed):
    def __init__(self, channel_layer=None, alias=DEFAULT_CHANNEL_LAYER):
        self._layer = channel_layer
        self.alias = alias

    @property
    def layer(self):
        if self._layer is None:
            self._layer = get_channel_layer(self.alias)
        if self._layer is None:
            raise TransportDisconnected(f"No channel layer configured for '{self.alias}'")
        return self._layer

    async def open(self, topic):
        try:
            token = await self.layer.new_channel()
            await self.layer.group_add(topic, token)
        except TransportDisconnected:
            raise
        except Exception as exc:
            raise TransportDisconnected(f"Could not subscribe to {topic}: {exc}") from exc
        logger.debug("Opened %s on %s", token, topic)
        return token

    async def receive(self, token):
        try:
            message = await self.layer.receive(token)
        except Exception as exc:
            raise TransportDisconnected(f"Feed {token} lost: {exc}") from exc
        return message.get("data", {})

    async def close(self, topic, token):
        try:
            await self.layer.group_discard(topic, token)
        except Exception as exc:
            raise TransportDisconnected(f"Could not release {token}: {exc}") from exc

    async def publish(self, topic, payload):
        try:
            await self.layer.group_send(
                topic, {"type": MESSAGE_TYPE, "topic": topic, "data": payload}
            )
        except TransportDisconnected:
            raise
        except Exception as exc:
            raise TransportDisconnected(f"Could not publish to {topic}: {exc}") from exc


change_feed = ChannelLayerFeed()
