import asyncio
from collections import defaultdict
from decimal import Decimal
from itertools import count
from unittest import mock

import pytest
from channels.layers import InMemoryChannelLayer
from django.core.cache import cache

from apps.core.exceptions import TransportDisconnected
from apps.events.services import event_service
from apps.livesync.feeds import ChangeFeed, change_feed
from apps.orders.constants import OrderType
from apps.riders.models import Rider

_phones = count(1)


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def channel_layer(monkeypatch):
    """A fresh in-memory layer behind the shared change feed."""
    layer = InMemoryChannelLayer()
    monkeypatch.setattr(change_feed, "_layer", layer)
    return layer


@pytest.fixture
def feed_spy(monkeypatch):
    """Records change feed publications made by the event service."""
    spy = mock.Mock(spec=ChangeFeed)
    monkeypatch.setattr(event_service, "feed", spy)
    return spy


@pytest.fixture
def make_rider(db):
    def _make_rider(**kwargs):
        defaults = {
            "name": "Budi",
            "phone": f"0812{next(_phones):07d}",
            "rating": Decimal("4.50"),
            "stock_count": 12,
            "is_active": True,
            "is_online": True,
            "is_shift_active": True,
        }
        defaults.update(kwargs)
        return Rider.objects.create(**defaults)

    return _make_rider


@pytest.fixture
def rider(make_rider):
    return make_rider()


@pytest.fixture
def customer_id():
    return "6f1c2b8e-4a55-4c1f-9c5e-0c7d1c1f2a10"


@pytest.fixture
def delivery_payload():
    return {
        "order_type": OrderType.OUTLET_DELIVERY,
        "destination": {"lat": -6.2, "lng": 106.816666},
        "delivery_address": "Jl. Sudirman No. 1",
        "items": [{"sku": "KOPI-SUSU", "quantity": 2}],
        "total_price": Decimal("46000.00"),
        "delivery_fee": Decimal("8000.00"),
        "payment_method": "cash",
    }


class FakeFeed(ChangeFeed):
    """In-process change feed whose connection can be dropped on demand."""

    def __init__(self):
        self.queues = {}
        self.members = defaultdict(set)
        self.opened = []
        self.released = []
        self.fail_opens = 0
        self._tokens = count(1)

    async def open(self, topic):
        if self.fail_opens:
            self.fail_opens -= 1
            raise TransportDisconnected(f"cannot reach feed for {topic}")
        token = f"{topic}!{next(self._tokens)}"
        self.queues[token] = asyncio.Queue()
        self.members[topic].add(token)
        self.opened.append(topic)
        return token

    async def receive(self, token):
        item = await self.queues[token].get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self, topic, token):
        self.members[topic].discard(token)
        self.queues.pop(token, None)
        self.released.append(topic)

    async def publish(self, topic, payload):
        for token in list(self.members[topic]):
            self.queues[token].put_nowait(payload)

    def drop(self, topic):
        for token in list(self.members[topic]):
            self.queues[token].put_nowait(TransportDisconnected("connection reset"))

    def subscribers(self, topic):
        return len(self.members[topic])


@pytest.fixture
def fake_feed():
    return FakeFeed()


class Inbox:
    """Collects callback values so async tests can wait on them."""

    def __init__(self):
        self.queue = asyncio.Queue()

    def __call__(self, value):
        self.queue.put_nowait(value)

    async def next(self, timeout=1):
        return await asyncio.wait_for(self.queue.get(), timeout)

    async def assert_quiet(self, wait=0.05):
        await asyncio.sleep(wait)
        assert self.queue.empty(), f"unexpected message: {self.queue.get_nowait()}"


@pytest.fixture
def inbox():
    return Inbox()
