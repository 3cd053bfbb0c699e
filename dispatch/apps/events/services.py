"""
Domain event publication.

Every event is written to the ``order_events`` audit table inside the
caller's transaction. Fan-out to change feeds and Kafka happens only after
that transaction commits, so subscribers never observe a rolled-back change.
"""
import logging
from functools import partial

from django.db import transaction

from apps.core.exceptions import TransportDisconnected
from apps.livesync.feeds import (
    change_feed,
    order_topic,
    rider_location_topic,
    rider_orders_topic,
)
from apps.livesync.snapshots import OrderSnapshot
from infrastructure.kafka_client import kafka_client

from .constants import KAFKA_TOPICS, EventTypes
from .models import OrderEvent

logger = logging.getLogger(__name__)


class EventService:
    def __init__(self, feed=None, kafka=None):
        self.feed = feed or change_feed
        self.kafka = kafka or kafka_client

    def order_created(self, order, actor=None):
        payload = {
            **OrderSnapshot.from_order(order).as_dict(),
            "event": EventTypes.ORDER_CREATED,
        }
        self._record(order, EventTypes.ORDER_CREATED, payload, actor)
        self._after_commit(self._topics_for(order), payload)
        self._after_commit_kafka("ORDER_CREATED", payload, key=str(order.id))
        return payload

    def order_status_changed(self, order, previous_status, actor=None):
        payload = {
            **OrderSnapshot.from_order(order).as_dict(),
            "event": EventTypes.ORDER_STATUS_CHANGED,
            "from_status": str(previous_status),
            "to_status": str(order.status),
        }
        self._record(order, EventTypes.ORDER_STATUS_CHANGED, payload, actor)
        self._after_commit(self._topics_for(order), payload)
        self._after_commit_kafka("ORDER_STATUS_CHANGED", payload, key=str(order.id))
        return payload

    def delivery_completed(self, order):
        payload = {
            "event": EventTypes.DELIVERY_COMPLETED,
            "order_id": str(order.id),
            "rider_id": str(order.rider_id) if order.rider_id else None,
        }
        self._record(order, EventTypes.DELIVERY_COMPLETED, payload)
        self._after_commit(self._topics_for(order), payload)
        self._after_commit_kafka("DELIVERY_COMPLETED", payload, key=str(order.id))
        return payload

    def rider_location_updated(self, rider_id, payload):
        payload = {**payload, "event": EventTypes.RIDER_LOCATION_UPDATED}
        self._after_commit([rider_location_topic(rider_id)], payload)
        # pings are superseded by the next one, not worth dead-lettering
        self._after_commit_kafka(
            "RIDER_LOCATION_UPDATE", payload, key=str(rider_id), dead_letter=False
        )
        return payload

    @staticmethod
    def get_order_events(order_id):
        return OrderEvent.objects.filter(order_id=order_id).order_by("timestamp", "created_at")

    @staticmethod
    def _topics_for(order):
        topics = [order_topic(order.id)]
        if order.rider_id:
            topics.append(rider_orders_topic(order.rider_id))
        return topics

    @staticmethod
    def _record(order, event_type, event_data, actor=None):
        return OrderEvent.objects.create(
            order=order,
            rider_id=order.rider_id,
            event_type=event_type,
            event_data=event_data,
            actor=actor,
        )

    def _after_commit(self, topics, payload):
        for topic in topics:
            transaction.on_commit(partial(self._broadcast, topic, payload))

    def _after_commit_kafka(self, topic_key, payload, key=None, dead_letter=True):
        transaction.on_commit(
            partial(
                self.kafka.publish,
                topic=KAFKA_TOPICS[topic_key],
                event_data=payload,
                key=key,
                dead_letter=dead_letter,
            )
        )

    def _broadcast(self, topic, payload):
        try:
            self.feed.publish_sync(topic, payload)
        except TransportDisconnected as e:
            # subscribers recover through resubscription + manual refresh
            logger.error("Change feed publish to %s failed: %s", topic, e)


event_service = EventService()
