from .distance import GeoPoint, distance_km, estimate_arrival, eta_minutes
from .matching import RiderCandidate, RiderMatch, find_nearby

__all__ = [
    "GeoPoint",
    "distance_km",
    "eta_minutes",
    "estimate_arrival",
    "RiderCandidate",
    "RiderMatch",
    "find_nearby",
]
