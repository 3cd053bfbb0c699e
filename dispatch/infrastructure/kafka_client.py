"""
Kafka publication of dispatch domain events.

Publication is best-effort: a failed produce is parked in the dead letter
queue and retried by ``manage.py process_dlq``.
"""
import json
import logging
from datetime import timedelta

from confluent_kafka import KafkaException, Producer
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


def dlq_backoff(retry_count):
    """Minutes to wait before the next retry, capped at an hour."""
    return timedelta(minutes=min(2 ** retry_count, 60))


class KafkaClient:
    def __init__(self, bootstrap_servers=None, client_id=None):
        self._bootstrap_servers = bootstrap_servers
        self._client_id = client_id
        self._producer = None

    @property
    def bootstrap_servers(self):
        return self._bootstrap_servers or settings.KAFKA_BOOTSTRAP_SERVERS

    @property
    def enabled(self):
        return bool(self.bootstrap_servers)

    @property
    def producer(self):
        if self._producer is None:
            self._producer = Producer(
                {
                    "bootstrap.servers": self.bootstrap_servers,
                    "client.id": self._client_id or settings.KAFKA_CLIENT_ID,
                }
            )
        return self._producer

    def publish(self, topic: str, event_data: dict, key=None, dead_letter=True):
        """Publish event to Kafka topic. Returns True once the broker acknowledged it."""
        if not self.enabled:
            logger.debug("Kafka disabled, skipping publish to %s", topic)
            return False

        delivery_failed = {"failed": False, "error": None}

        def delivery_callback(err, msg):
            if err is not None:
                delivery_failed["failed"] = True
                delivery_failed["error"] = str(err)

        try:
            produce_kwargs = {
                "value": json.dumps(event_data, default=str).encode("utf-8"),
                "callback": delivery_callback,
            }
            if key:
                produce_kwargs["key"] = key.encode("utf-8") if isinstance(key, str) else key

            self.producer.produce(topic, **produce_kwargs)
            self.producer.poll(0)
            self.producer.flush(timeout=5)
        except (KafkaException, BufferError) as e:
            delivery_failed["failed"] = True
            delivery_failed["error"] = str(e)

        if delivery_failed["failed"]:
            logger.warning("Kafka delivery to %s failed: %s", topic, delivery_failed["error"])
            if dead_letter:
                self._send_to_dlq(topic, event_data, delivery_failed["error"])
            return False
        return True

    def _send_to_dlq(self, topic: str, event_data: dict, error_message: str):
        from apps.events.models import DeadLetterQueue

        DeadLetterQueue.objects.create(
            topic=topic,
            event_data=json.loads(json.dumps(event_data, default=str)),
            error_message=error_message,
            retry_count=0,
            status=DeadLetterQueue.STATUS_PENDING,
            next_retry_at=timezone.now() + dlq_backoff(0),
        )
        logger.info("Event parked in DLQ: %s", topic)

    def close(self):
        if self._producer is not None:
            self._producer.flush()


kafka_client = KafkaClient()
