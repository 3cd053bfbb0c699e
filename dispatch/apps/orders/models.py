from apps.core.models import TimeStampedUUIDModel
from django.db import models

from .constants import OrderStatus, OrderType


class Order(TimeStampedUUIDModel):
    customer_id = models.UUIDField()
    rider = models.ForeignKey(
        "riders.Rider",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING
    )
    order_type = models.CharField(max_length=20, choices=OrderType.choices)
    destination_lat = models.DecimalField(
        max_digits=11, decimal_places=8, null=True, blank=True
    )
    destination_lng = models.DecimalField(
        max_digits=11, decimal_places=8, null=True, blank=True
    )
    delivery_address = models.CharField(max_length=255, blank=True, default="")
    items = models.JSONField(default=list, blank=True)
    payment_method = models.CharField(max_length=30, blank=True, default="")
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    delivery_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    voucher_id = models.CharField(max_length=64, null=True, blank=True)
    rejection_reason = models.TextField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=100, null=True, blank=True)
    version = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "orders"
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["customer_id"], name="orders_customer_idx"),
            models.Index(fields=["rider", "status"], name="orders_rider_status_idx"),
            models.Index(fields=["created_at"], name="orders_created_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        return f"Order #{self.short_code} - {self.status}"

    @property
    def short_code(self):
        return self.id.hex[:8].upper()
