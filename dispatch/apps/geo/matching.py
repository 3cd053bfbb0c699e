"""
Rank riders around a customer.

The candidate set comes from the RiderDirectory (see
``apps.riders.services``); this module only filters and orders it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from apps.core.exceptions import LocationUnavailable

from .distance import GeoPoint, distance_km, eta_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiderCandidate:
    """Read-only view of a rider as supplied by the directory."""

    id: str
    name: str
    phone: str = ""
    photo_url: Optional[str] = None
    rating: float = 0.0
    stock_count: int = 0
    is_online: bool = False
    is_shift_active: bool = False
    location: Optional[GeoPoint] = None
    location_updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class RiderMatch:
    """One ranked result. Transient: valid only for the query that made it."""

    rider: RiderCandidate
    distance_km: float
    eta_minutes: int


def _sort_key(match: RiderMatch):
    # nearer first, then better rated, then online before shift-only
    return (match.distance_km, -match.rider.rating, 0 if match.rider.is_online else 1)


def find_nearby(
    customer_location: Optional[GeoPoint],
    candidates: Iterable[RiderCandidate],
    radius_km: float,
    speed_kmh: float,
) -> List[RiderMatch]:
    """
    Filter ``candidates`` to those within ``radius_km`` of the customer and
    rank them.

    Raises:
        LocationUnavailable: the customer position is unknown.

    Returns:
        Matches sorted ascending by distance. An empty list is a valid answer.
    """
    if customer_location is None:
        raise LocationUnavailable("Customer location is not available")

    matches = []
    for rider in candidates:
        if rider.location is None:
            continue
        distance = distance_km(customer_location, rider.location)
        if distance > radius_km:
            continue
        matches.append(
            RiderMatch(
                rider=rider,
                distance_km=distance,
                eta_minutes=eta_minutes(distance, speed_kmh),
            )
        )

    matches.sort(key=_sort_key)
    logger.debug(
        "find_nearby at (%s, %s) radius=%skm: %d match(es)",
        customer_location.lat,
        customer_location.lng,
        radius_km,
        len(matches),
    )
    return matches
