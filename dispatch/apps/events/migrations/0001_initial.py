import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        ("riders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="OrderEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("order_created", "Order Created"),
                            ("order_status_changed", "Order Status Changed"),
                            ("delivery_completed", "Delivery Completed"),
                        ],
                        max_length=100,
                    ),
                ),
                ("event_data", models.JSONField(blank=True, default=dict)),
                ("actor", models.CharField(blank=True, max_length=100, null=True)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to="orders.order",
                    ),
                ),
                (
                    "rider",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_events",
                        to="riders.rider",
                    ),
                ),
            ],
            options={
                "db_table": "order_events",
                "ordering": ["timestamp", "created_at"],
                "indexes": [
                    models.Index(fields=["order", "timestamp"], name="order_events_order_ts_idx"),
                    models.Index(fields=["event_type"], name="order_events_type_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DeadLetterQueue",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("topic", models.CharField(help_text="Kafka topic name", max_length=255)),
                ("event_data", models.JSONField(help_text="Original event data")),
                ("error_message", models.TextField(blank=True, null=True)),
                ("retry_count", models.IntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("retrying", "Retrying"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=50,
                    ),
                ),
                ("next_retry_at", models.DateTimeField(blank=True, null=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "dead_letter_queue",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="dead_letter_status_idx"),
                    models.Index(fields=["next_retry_at"], name="dead_letter_next_retry_idx"),
                ],
            },
        ),
    ]
