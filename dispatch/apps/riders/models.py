from apps.core.models import TimeStampedUUIDModel
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Rider(TimeStampedUUIDModel):
    name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, unique=True)
    photo_url = models.URLField(max_length=500, null=True, blank=True)
    rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    stock_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    is_online = models.BooleanField(default=False)
    is_shift_active = models.BooleanField(default=False)

    class Meta:
        db_table = "riders"
        indexes = [
            models.Index(fields=["is_active"], name="riders_is_active_idx"),
            models.Index(fields=["is_online"], name="riders_is_online_idx"),
        ]

    def __str__(self):
        return f"{self.name} - ({self.phone})"


class RiderLocation(models.Model):
    """Latest known position of a rider. Exactly one row per rider, overwritten on each ping."""

    rider = models.OneToOneField(
        Rider, on_delete=models.CASCADE, primary_key=True, related_name="location"
    )
    lat = models.DecimalField(max_digits=11, decimal_places=8)
    lng = models.DecimalField(max_digits=11, decimal_places=8)
    accuracy = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True
    )
    speed = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    heading = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    updated_at = models.DateTimeField(help_text="Device timestamp of the ping")
    received_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "rider_locations"

    def __str__(self):
        return f"{self.rider_id} @ ({self.lat}, {self.lng})"
