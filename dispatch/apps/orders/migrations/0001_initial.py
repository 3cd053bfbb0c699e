import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("riders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("customer_id", models.UUIDField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("accepted", "Accepted"),
                            ("in_progress", "In Progress"),
                            ("delivered", "Delivered"),
                            ("completed", "Completed"),
                            ("rejected", "Rejected"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "order_type",
                    models.CharField(
                        choices=[
                            ("outlet_pickup", "Outlet Pickup"),
                            ("outlet_delivery", "Outlet Delivery"),
                            ("on_the_wheels", "On The Wheels"),
                        ],
                        max_length=20,
                    ),
                ),
                ("destination_lat", models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True)),
                ("destination_lng", models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True)),
                ("delivery_address", models.CharField(blank=True, default="", max_length=255)),
                ("items", models.JSONField(blank=True, default=list)),
                ("payment_method", models.CharField(blank=True, default="", max_length=30)),
                ("total_price", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("delivery_fee", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("voucher_id", models.CharField(blank=True, max_length=64, null=True)),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                ("cancelled_by", models.CharField(blank=True, max_length=100, null=True)),
                ("version", models.PositiveIntegerField(default=0)),
                (
                    "rider",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="riders.rider",
                    ),
                ),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="orders_status_idx"),
                    models.Index(fields=["customer_id"], name="orders_customer_idx"),
                    models.Index(fields=["rider", "status"], name="orders_rider_status_idx"),
                    models.Index(fields=["created_at"], name="orders_created_idx"),
                ],
            },
        ),
    ]
