"""
Great-circle distance and ETA estimation.

Pure functions, no Django imports. Missing coordinates yield ``None``
rather than an error so callers can render "unknown" without branching.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    @classmethod
    def from_values(cls, lat, lng) -> Optional["GeoPoint"]:
        """Build a point from loosely-typed values (Decimal, str, None)."""
        if lat is None or lng is None:
            return None
        return cls(float(lat), float(lng))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["GeoPoint"]:
        if not data:
            return None
        return cls.from_values(data.get("lat"), data.get("lng"))

    def as_dict(self):
        return {"lat": self.lat, "lng": self.lng}


def distance_km(a: Optional[GeoPoint], b: Optional[GeoPoint]) -> Optional[float]:
    """Haversine distance in kilometres, or None if either point is missing."""
    if a is None or b is None:
        return None

    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    # float error can push h slightly outside [0, 1] at antipodes
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def eta_minutes(distance: Optional[float], speed_kmh: float) -> Optional[int]:
    """Whole minutes to cover ``distance`` km at ``speed_kmh``, rounded up."""
    if distance is None:
        return None
    if speed_kmh <= 0:
        raise ValueError(f"speed_kmh must be positive, got {speed_kmh}")
    return max(0, math.ceil(distance / speed_kmh * 60))


def estimate_arrival(origin: Optional[GeoPoint], destination: Optional[GeoPoint], speed_kmh: float):
    """Return ``(distance_km, eta_minutes)``; both None when a point is missing."""
    distance = distance_km(origin, destination)
    return distance, eta_minutes(distance, speed_kmh)
