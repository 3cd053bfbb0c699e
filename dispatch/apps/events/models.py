from apps.core.models import TimeStampedUUIDModel
from django.db import models

from .constants import EventTypes


class OrderEvent(TimeStampedUUIDModel):
    """Append-only audit trail of order domain events."""

    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="events"
    )
    rider = models.ForeignKey(
        "riders.Rider",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_events",
    )
    event_type = models.CharField(max_length=100, choices=EventTypes.CHOICES)
    event_data = models.JSONField(default=dict, blank=True)
    actor = models.CharField(max_length=100, null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_events"
        indexes = [
            models.Index(fields=["order", "timestamp"], name="order_events_order_ts_idx"),
            models.Index(fields=["event_type"], name="order_events_type_idx"),
        ]
        ordering = ["timestamp", "created_at"]

    def __str__(self):
        return f"{self.event_type} - {self.order_id}"


class DeadLetterQueue(TimeStampedUUIDModel):
    STATUS_PENDING = "pending"
    STATUS_RETRYING = "retrying"
    STATUS_PROCESSED = "processed"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_RETRYING, "Retrying"),
        (STATUS_PROCESSED, "Processed"),
        (STATUS_FAILED, "Failed"),
    ]

    topic = models.CharField(max_length=255, help_text="Kafka topic name")
    event_data = models.JSONField(help_text="Original event data")
    error_message = models.TextField(null=True, blank=True)
    retry_count = models.IntegerField(default=0)
    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default=STATUS_PENDING)
    next_retry_at = models.DateTimeField(null=True, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "dead_letter_queue"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="dead_letter_status_idx"),
            models.Index(fields=["next_retry_at"], name="dead_letter_next_retry_idx"),
        ]

    def __str__(self):
        return f"DLQ {self.topic} ({self.status})"
