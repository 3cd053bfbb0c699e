import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Rider",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100)),
                ("phone", models.CharField(max_length=20, unique=True)),
                ("photo_url", models.URLField(blank=True, max_length=500, null=True)),
                (
                    "rating",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        max_digits=3,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(5),
                        ],
                    ),
                ),
                ("stock_count", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("is_online", models.BooleanField(default=False)),
                ("is_shift_active", models.BooleanField(default=False)),
            ],
            options={
                "db_table": "riders",
                "indexes": [
                    models.Index(fields=["is_active"], name="riders_is_active_idx"),
                    models.Index(fields=["is_online"], name="riders_is_online_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RiderLocation",
            fields=[
                (
                    "rider",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="location",
                        serialize=False,
                        to="riders.rider",
                    ),
                ),
                ("lat", models.DecimalField(decimal_places=8, max_digits=11)),
                ("lng", models.DecimalField(decimal_places=8, max_digits=11)),
                ("accuracy", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("speed", models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ("heading", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("updated_at", models.DateTimeField(help_text="Device timestamp of the ping")),
                ("received_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "rider_locations",
            },
        ),
    ]
