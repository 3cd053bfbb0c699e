import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import NotFound
from apps.events.services import event_service
from apps.geo import GeoPoint, RiderCandidate, RiderMatch, find_nearby
from infrastructure.cache import CacheError, get_cache_key_value, set_cache_key

from .models import Rider, RiderLocation

logger = logging.getLogger(__name__)


def location_cache_key(rider_id) -> str:
    return f"rider:location:{rider_id}"


def location_payload(location: RiderLocation) -> Dict[str, Any]:
    return {
        "rider_id": str(location.rider_id),
        "lat": float(location.lat),
        "lng": float(location.lng),
        "updated_at": location.updated_at.isoformat(),
        "accuracy": float(location.accuracy) if location.accuracy is not None else None,
        "speed": float(location.speed) if location.speed is not None else None,
        "heading": float(location.heading) if location.heading is not None else None,
    }


def current_location(rider: Rider) -> Optional[RiderLocation]:
    try:
        return rider.location
    except RiderLocation.DoesNotExist:
        return None


class RiderService:
    @staticmethod
    def get_rider(rider_id) -> Rider:
        try:
            return Rider.objects.get(id=rider_id)
        except (Rider.DoesNotExist, ValueError, DjangoValidationError):
            raise NotFound(f"Rider {rider_id} not found")

    @staticmethod
    def update_rider_location(
        rider_id,
        lat: float,
        lng: float,
        updated_at: Optional[datetime] = None,
        accuracy: Optional[float] = None,
        speed: Optional[float] = None,
        heading: Optional[float] = None,
    ):
        """
        Overwrite the rider's single current-location row.

        Last write wins unless ``REJECT_STALE_LOCATION_PINGS`` is enabled, in
        which case a ping older than the stored one is dropped.

        Returns:
            ``(location, applied)`` where ``applied`` is False for a dropped ping.
        """
        updated_at = updated_at or timezone.now()
        with transaction.atomic():
            try:
                rider = Rider.objects.select_for_update().get(id=rider_id)
            except (Rider.DoesNotExist, ValueError, DjangoValidationError):
                raise NotFound(f"Rider {rider_id} not found")

            stored = RiderLocation.objects.filter(rider=rider).first()
            if (
                stored is not None
                and settings.REJECT_STALE_LOCATION_PINGS
                and updated_at < stored.updated_at
            ):
                logger.info(
                    "Dropping stale ping for rider %s (%s < %s)",
                    rider_id,
                    updated_at.isoformat(),
                    stored.updated_at.isoformat(),
                )
                return stored, False

            location, _ = RiderLocation.objects.update_or_create(
                rider=rider,
                defaults={
                    "lat": lat,
                    "lng": lng,
                    "accuracy": accuracy,
                    "speed": speed,
                    "heading": heading,
                    "updated_at": updated_at,
                },
            )
            # refresh so Decimal fields carry their stored precision
            location.refresh_from_db()
            payload = location_payload(location)
            transaction.on_commit(lambda: RiderService._cache_location(rider.id, payload))
            event_service.rider_location_updated(rider.id, payload)

        return location, True

    @staticmethod
    def get_rider_location(rider_id) -> Optional[Dict[str, Any]]:
        try:
            cached = get_cache_key_value(location_cache_key(rider_id))
        except CacheError:
            cached = None
        if cached:
            return cached

        location = RiderLocation.objects.filter(rider_id=rider_id).first()
        if location is None:
            return None
        payload = location_payload(location)
        RiderService._cache_location(rider_id, payload)
        return payload

    @staticmethod
    def _cache_location(rider_id, payload):
        try:
            set_cache_key(
                location_cache_key(rider_id), payload, settings.RIDER_LOCATION_CACHE_TTL
            )
        except CacheError:
            logger.warning("Could not cache location for rider %s", rider_id)


class RiderDirectory:
    """Read-only source of matchable riders."""

    @staticmethod
    def to_candidate(rider: Rider) -> RiderCandidate:
        location = current_location(rider)
        return RiderCandidate(
            id=str(rider.id),
            name=rider.name,
            phone=rider.phone,
            photo_url=rider.photo_url,
            rating=float(rider.rating),
            stock_count=rider.stock_count,
            is_online=rider.is_online,
            is_shift_active=rider.is_shift_active,
            location=GeoPoint.from_values(location.lat, location.lng) if location else None,
            location_updated_at=location.updated_at if location else None,
        )

    def candidates(self) -> List[RiderCandidate]:
        riders = Rider.objects.filter(is_active=True).select_related("location")
        return [self.to_candidate(rider) for rider in riders]

    def find_nearby(
        self,
        customer_location: Optional[GeoPoint],
        radius_km: Optional[float] = None,
        speed_kmh: Optional[float] = None,
    ) -> List[RiderMatch]:
        return find_nearby(
            customer_location,
            self.candidates(),
            radius_km if radius_km is not None else settings.RIDER_SEARCH_RADIUS_KM,
            speed_kmh if speed_kmh is not None else settings.MATCHING_SPEED_KMH,
        )


rider_service = RiderService()
rider_directory = RiderDirectory()
