import pytest
import pytest_asyncio

from apps.geo import GeoPoint
from apps.livesync.feeds import order_topic, rider_location_topic
from apps.livesync.snapshots import OrderSnapshot
from apps.livesync.sync import LiveSync
from apps.livesync.tracking import TrackingSession

ORDER_ID = "0b6d1f4e-8f63-4d38-9f3b-1f1a4c9d2e77"
RIDER_ID = "6f1c2b8e-4a55-4c1f-9c5e-0c7d1c1f2a10"


def make_snapshot(status="accepted", version=1, rider_id=RIDER_ID):
    return OrderSnapshot(
        order_id=ORDER_ID,
        status=status,
        version=version,
        rider_id=rider_id,
        order_type="outlet_delivery",
        destination=GeoPoint(-6.2, 106.816666),
    )


def change(status, version, **extra):
    return {
        "event": "order_status_changed",
        "order_id": ORDER_ID,
        "status": status,
        "version": version,
        **extra,
    }


@pytest.fixture
def live_sync(fake_feed):
    return LiveSync(feed=fake_feed, retry_delays=[0.01])


@pytest_asyncio.fixture
async def session(live_sync, inbox):
    session = TrackingSession(live_sync, make_snapshot(), inbox, speed_kmh=20)
    yield session
    await session.stop()


@pytest.mark.asyncio
async def test_location_ping_recomputes_eta(session, fake_feed, inbox):
    await session.start()

    await fake_feed.publish(rider_location_topic(RIDER_ID), {"lat": -6.21, "lng": 106.816666})

    message = await inbox.next()
    assert message["type"] == "location_update"
    assert message["distance_km"] == 1.11
    assert message["eta_minutes"] == 4


@pytest.mark.asyncio
async def test_estimate_unknown_without_location(session):
    await session.start()
    assert session.estimate() == {"distance_km": None, "eta_minutes": None}


@pytest.mark.asyncio
async def test_delivery_notifies_and_stops_following_rider(session, fake_feed, inbox):
    await session.start(location={"lat": -6.21, "lng": 106.816666})

    await fake_feed.publish(order_topic(ORDER_ID), change("in_progress", 2, from_status="accepted"))
    message = await inbox.next()
    assert (message["type"], message["from_status"], message["to_status"]) == (
        "order_status",
        "accepted",
        "in_progress",
    )

    await fake_feed.publish(order_topic(ORDER_ID), change("delivered", 3))
    await fake_feed.publish(
        order_topic(ORDER_ID),
        {"event": "delivery_completed", "order_id": ORDER_ID, "rider_id": RIDER_ID},
    )
    assert (await inbox.next())["to_status"] == "delivered"
    assert await inbox.next() == {"type": "notify_user", "order_id": ORDER_ID, "status": "delivered"}
    assert fake_feed.subscribers(rider_location_topic(RIDER_ID)) == 0

    await fake_feed.publish(rider_location_topic(RIDER_ID), {"lat": -6.2, "lng": 106.816666})
    await inbox.assert_quiet()


@pytest.mark.asyncio
async def test_closed_status_ends_session(session, fake_feed, inbox):
    await session.start()

    await fake_feed.publish(order_topic(ORDER_ID), change("cancelled", 2))

    assert (await inbox.next())["to_status"] == "cancelled"
    closing = await inbox.next()
    assert closing == {"type": "tracking_closed", "order_id": ORDER_ID, "status": "cancelled"}
    assert session.closed
    assert fake_feed.subscribers(order_topic(ORDER_ID)) == 0


@pytest.mark.asyncio
async def test_stale_change_is_ignored(session, fake_feed, inbox):
    await session.start()

    await fake_feed.publish(order_topic(ORDER_ID), change("pending", 1))

    await inbox.assert_quiet()
    assert session.snapshot.status == "accepted"


@pytest.mark.asyncio
async def test_rider_followed_once_assigned(live_sync, fake_feed, inbox):
    session = TrackingSession(live_sync, make_snapshot(status="pending", version=0, rider_id=None), inbox)
    await session.start()
    assert fake_feed.subscribers(rider_location_topic(RIDER_ID)) == 0

    await fake_feed.publish(order_topic(ORDER_ID), change("accepted", 1, rider_id=RIDER_ID))
    await inbox.next()

    assert fake_feed.subscribers(rider_location_topic(RIDER_ID)) == 1
    await session.stop()
    assert fake_feed.subscribers(rider_location_topic(RIDER_ID)) == 0


@pytest.mark.asyncio
async def test_already_closed_order_is_not_followed(live_sync, fake_feed, inbox):
    session = TrackingSession(live_sync, make_snapshot(status="completed", version=5), inbox)

    await session.start()

    assert session.closed
    assert fake_feed.opened == []


@pytest.mark.asyncio
async def test_feed_drop_is_reported(session, fake_feed, inbox):
    await session.start()

    fake_feed.drop(order_topic(ORDER_ID))

    assert await inbox.next() == {"type": "connection", "degraded": True}
    assert await inbox.next() == {"type": "connection", "degraded": False}


@pytest.mark.asyncio
async def test_refresh_pushes_stored_state(session, live_sync, inbox, monkeypatch):
    async def refresh_order(order_id):
        return make_snapshot(status="in_progress", version=2)

    async def refresh_rider_location(rider_id):
        return {"lat": -6.21, "lng": 106.816666}

    monkeypatch.setattr(live_sync, "refresh_order", refresh_order)
    monkeypatch.setattr(live_sync, "refresh_rider_location", refresh_rider_location)
    await session.start()

    await session.refresh()

    message = await inbox.next()
    assert message["type"] == "snapshot"
    assert message["order"]["status"] == "in_progress"
    assert message["eta_minutes"] == 4
    assert message["degraded"] is False


@pytest.mark.asyncio
async def test_refresh_follows_rider_assigned_meanwhile(live_sync, fake_feed, inbox, monkeypatch):
    async def refresh_order(order_id):
        return make_snapshot(status="accepted", version=1)

    async def refresh_rider_location(rider_id):
        return None

    monkeypatch.setattr(live_sync, "refresh_order", refresh_order)
    monkeypatch.setattr(live_sync, "refresh_rider_location", refresh_rider_location)
    session = TrackingSession(live_sync, make_snapshot(status="pending", version=0, rider_id=None), inbox)
    await session.start()

    await session.refresh()
    assert (await inbox.next())["type"] == "snapshot"
    assert fake_feed.subscribers(rider_location_topic(RIDER_ID)) == 1

    await fake_feed.publish(rider_location_topic(RIDER_ID), {"lat": -6.21, "lng": 106.816666})
    message = await inbox.next()
    assert message["type"] == "location_update"
    assert message["eta_minutes"] == 4
    await session.stop()


@pytest.mark.asyncio
async def test_refresh_to_closed_order_ends_session(session, live_sync, fake_feed, inbox, monkeypatch):
    async def refresh_order(order_id):
        return make_snapshot(status="completed", version=4)

    monkeypatch.setattr(live_sync, "refresh_order", refresh_order)
    await session.start()

    await session.refresh()

    assert (await inbox.next())["type"] == "snapshot"
    assert await inbox.next() == {"type": "tracking_closed", "order_id": ORDER_ID, "status": "completed"}
    assert session.closed
    assert fake_feed.subscribers(order_topic(ORDER_ID)) == 0
    assert fake_feed.subscribers(rider_location_topic(RIDER_ID)) == 0


@pytest.mark.asyncio
async def test_refresh_keeps_newer_feed_state(session, live_sync, fake_feed, inbox, monkeypatch):
    async def refresh_order(order_id):
        # the feed delivers version 2 while the stored read is in flight
        await fake_feed.publish(order_topic(ORDER_ID), change("in_progress", 2))
        assert (await inbox.next())["to_status"] == "in_progress"
        return make_snapshot(status="accepted", version=1)

    async def refresh_rider_location(rider_id):
        return None

    monkeypatch.setattr(live_sync, "refresh_order", refresh_order)
    monkeypatch.setattr(live_sync, "refresh_rider_location", refresh_rider_location)
    await session.start()

    await session.refresh()

    message = await inbox.next()
    assert message["order"]["status"] == "in_progress"
    assert (session.snapshot.status, session.snapshot.version) == ("in_progress", 2)
