from .feeds import (
    ChangeFeed,
    ChannelLayerFeed,
    order_topic,
    rider_location_topic,
    rider_orders_topic,
)
from .snapshots import OrderSnapshot, apply_patch
from .sync import LiveSync, SubscriptionHandle
from .tracking import TrackingSession

__all__ = [
    "ChangeFeed",
    "ChannelLayerFeed",
    "LiveSync",
    "OrderSnapshot",
    "SubscriptionHandle",
    "TrackingSession",
    "apply_patch",
    "order_topic",
    "rider_location_topic",
    "rider_orders_topic",
]
