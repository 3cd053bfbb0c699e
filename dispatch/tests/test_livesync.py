import asyncio

import pytest

from apps.livesync.feeds import ChannelLayerFeed, order_topic, rider_location_topic, rider_orders_topic
from apps.livesync.sync import LiveSync

ORDER_ID = "0b6d1f4e-8f63-4d38-9f3b-1f1a4c9d2e77"
RIDER_ID = "6f1c2b8e-4a55-4c1f-9c5e-0c7d1c1f2a10"


def status_changed(status, version):
    return {
        "event": "order_status_changed",
        "order_id": ORDER_ID,
        "status": status,
        "version": version,
    }


def delivery_completed():
    return {"event": "delivery_completed", "order_id": ORDER_ID, "rider_id": RIDER_ID}


@pytest.fixture
def live_sync(fake_feed):
    return LiveSync(feed=fake_feed, retry_delays=[0.01])


@pytest.mark.asyncio
async def test_changes_delivered_in_order(live_sync, fake_feed, inbox):
    await live_sync.subscribe_order(ORDER_ID, inbox)

    for version, status in enumerate(("accepted", "in_progress"), start=1):
        await fake_feed.publish(order_topic(ORDER_ID), status_changed(status, version))

    assert (await inbox.next())["status"] == "accepted"
    assert (await inbox.next())["status"] == "in_progress"
    await live_sync.close()


@pytest.mark.asyncio
async def test_delivery_completed_goes_to_notify_only(live_sync, fake_feed):
    calls = []
    done = asyncio.Event()

    def on_notify(payload):
        calls.append(("notify", payload["event"]))
        done.set()

    await live_sync.subscribe_order(
        ORDER_ID, lambda payload: calls.append(("change", payload["status"])), on_notify=on_notify
    )
    await fake_feed.publish(order_topic(ORDER_ID), status_changed("in_progress", 2))
    await fake_feed.publish(order_topic(ORDER_ID), status_changed("delivered", 3))
    await fake_feed.publish(order_topic(ORDER_ID), delivery_completed())
    await asyncio.wait_for(done.wait(), 1)

    assert calls == [
        ("change", "in_progress"),
        ("change", "delivered"),
        ("notify", "delivery_completed"),
    ]
    await live_sync.close()


@pytest.mark.asyncio
async def test_rider_feeds_are_separate(live_sync, fake_feed, inbox):
    await live_sync.subscribe_rider_location(RIDER_ID, inbox)
    await live_sync.subscribe_rider_orders(RIDER_ID, lambda payload: None)

    await fake_feed.publish(rider_location_topic(RIDER_ID), {"lat": -6.2, "lng": 106.8})

    assert (await inbox.next())["lat"] == -6.2
    assert fake_feed.subscribers(rider_orders_topic(RIDER_ID)) == 1
    await live_sync.close()
    assert fake_feed.subscribers(rider_orders_topic(RIDER_ID)) == 0


@pytest.mark.asyncio
async def test_unsubscribe_is_idempotent(live_sync, fake_feed, inbox):
    handle = await live_sync.subscribe_order(ORDER_ID, inbox)

    await live_sync.unsubscribe(handle)
    await live_sync.unsubscribe(handle)
    await live_sync.unsubscribe(None)

    assert fake_feed.released == [order_topic(ORDER_ID)]
    assert not handle.active
    await fake_feed.publish(order_topic(ORDER_ID), status_changed("accepted", 1))
    await inbox.assert_quiet()


@pytest.mark.asyncio
async def test_subscriber_may_unsubscribe_from_its_callback(live_sync, fake_feed):
    released = asyncio.Event()
    holder = {}

    async def on_change(payload):
        await live_sync.unsubscribe(holder["handle"])
        released.set()

    holder["handle"] = await live_sync.subscribe_order(ORDER_ID, on_change)
    await fake_feed.publish(order_topic(ORDER_ID), status_changed("cancelled", 1))
    await asyncio.wait_for(released.wait(), 1)

    assert fake_feed.subscribers(order_topic(ORDER_ID)) == 0


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_stop_the_feed(live_sync, fake_feed, inbox):
    def on_change(payload):
        if payload["version"] == 1:
            raise RuntimeError("render failed")
        inbox(payload)

    await live_sync.subscribe_order(ORDER_ID, on_change)
    await fake_feed.publish(order_topic(ORDER_ID), status_changed("accepted", 1))
    await fake_feed.publish(order_topic(ORDER_ID), status_changed("in_progress", 2))

    assert (await inbox.next())["version"] == 2
    await live_sync.close()


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_drop_marks_degraded_then_resubscribes(self, live_sync, fake_feed, inbox):
        states = []
        recovered = asyncio.Event()

        def on_degraded(degraded):
            states.append(degraded)
            if not degraded:
                recovered.set()

        handle = await live_sync.subscribe_order(ORDER_ID, inbox, on_degraded=on_degraded)
        fake_feed.fail_opens = 2
        fake_feed.drop(order_topic(ORDER_ID))
        await asyncio.wait_for(recovered.wait(), 1)

        assert states == [True, False]
        assert not handle.degraded
        assert not live_sync.degraded
        assert fake_feed.opened.count(order_topic(ORDER_ID)) == 2

        await fake_feed.publish(order_topic(ORDER_ID), status_changed("accepted", 1))
        assert (await inbox.next())["status"] == "accepted"
        await live_sync.close()

    @pytest.mark.asyncio
    async def test_subscribe_while_feed_down(self, live_sync, fake_feed, inbox):
        fake_feed.fail_opens = 1

        handle = await live_sync.subscribe_rider_location(RIDER_ID, inbox)

        assert handle.degraded
        assert live_sync.degraded
        for _ in range(100):
            if not handle.degraded:
                break
            await asyncio.sleep(0.01)
        assert not handle.degraded
        await live_sync.close()

    @pytest.mark.asyncio
    async def test_unsubscribe_while_degraded(self, live_sync, fake_feed, inbox):
        fake_feed.fail_opens = 1000
        handle = await live_sync.subscribe_order(ORDER_ID, inbox)

        await live_sync.unsubscribe(handle)

        assert handle.task.done()
        assert fake_feed.released == []


@pytest.mark.asyncio
async def test_channel_layer_feed_round_trip(channel_layer):
    feed = ChannelLayerFeed(channel_layer)
    token = await feed.open(order_topic(ORDER_ID))

    await feed.publish(order_topic(ORDER_ID), {"status": "accepted"})

    assert await asyncio.wait_for(feed.receive(token), 1) == {"status": "accepted"}
    await feed.close(order_topic(ORDER_ID), token)
