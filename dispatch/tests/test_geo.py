import pytest

from apps.core.exceptions import LocationUnavailable
from apps.geo import GeoPoint, RiderCandidate, distance_km, estimate_arrival, eta_minutes, find_nearby

CUSTOMER = GeoPoint(-6.2, 106.816666)


def candidate(rider_id, lat=None, lng=None, rating=4.0, is_online=True):
    return RiderCandidate(
        id=rider_id,
        name=f"Rider {rider_id}",
        rating=rating,
        is_online=is_online,
        is_shift_active=True,
        location=GeoPoint.from_values(lat, lng),
    )


class TestDistance:
    def test_one_hundredth_of_a_degree_of_latitude(self):
        distance = distance_km(CUSTOMER, GeoPoint(-6.21, 106.816666))
        assert distance == pytest.approx(1.11, abs=0.01)
        assert eta_minutes(distance, 20) == 4

    def test_identical_points(self):
        assert distance_km(CUSTOMER, CUSTOMER) == 0
        assert eta_minutes(0, 20) == 0

    def test_symmetric(self):
        other = GeoPoint(-6.3011, 106.8165)
        assert distance_km(CUSTOMER, other) == pytest.approx(distance_km(other, CUSTOMER))

    def test_antipodal_points_do_not_raise(self):
        distance = distance_km(GeoPoint(0, 0), GeoPoint(0, 180))
        assert distance == pytest.approx(20015.09, abs=0.1)

    def test_missing_point_is_unknown(self):
        assert distance_km(None, CUSTOMER) is None
        assert distance_km(CUSTOMER, None) is None
        assert estimate_arrival(None, CUSTOMER, 20) == (None, None)

    def test_eta_rounds_up(self):
        assert eta_minutes(0.01, 20) == 1
        assert eta_minutes(10, 20) == 30

    def test_eta_needs_positive_speed(self):
        with pytest.raises(ValueError):
            eta_minutes(1, 0)

    def test_geopoint_from_loose_values(self):
        assert GeoPoint.from_values("-6.2", "106.8") == GeoPoint(-6.2, 106.8)
        assert GeoPoint.from_mapping({"lat": -6.2}) is None
        assert GeoPoint.from_mapping(None) is None


class TestFindNearby:
    def test_requires_customer_location(self):
        with pytest.raises(LocationUnavailable):
            find_nearby(None, [candidate("a", -6.2, 106.8)], radius_km=50, speed_kmh=20)

    def test_skips_riders_without_location_or_out_of_range(self):
        riders = [
            candidate("near", -6.21, 106.816666),
            candidate("unknown"),
            candidate("bandung", -6.9175, 107.6191),
        ]
        matches = find_nearby(CUSTOMER, riders, radius_km=50, speed_kmh=20)
        assert [m.rider.id for m in matches] == ["near"]
        assert matches[0].eta_minutes == 4

    def test_sorted_by_distance(self):
        riders = [
            candidate("far", -6.3011, 106.8165),
            candidate("near", -6.21, 106.816666),
            candidate("mid", -6.2297, 106.8239),
        ]
        matches = find_nearby(CUSTOMER, riders, radius_km=50, speed_kmh=20)
        assert [m.rider.id for m in matches] == ["near", "mid", "far"]
        distances = [m.distance_km for m in matches]
        assert distances == sorted(distances)

    def test_ties_prefer_rating_then_online(self):
        riders = [
            candidate("shift-only", -6.21, 106.816666, rating=4.8, is_online=False),
            candidate("low", -6.21, 106.816666, rating=4.1),
            candidate("online", -6.21, 106.816666, rating=4.8),
        ]
        matches = find_nearby(CUSTOMER, riders, radius_km=50, speed_kmh=20)
        assert [m.rider.id for m in matches] == ["online", "shift-only", "low"]

    def test_radius_is_inclusive_and_empty_is_fine(self):
        rider = candidate("edge", -6.21, 106.816666)
        distance = distance_km(CUSTOMER, rider.location)
        assert len(find_nearby(CUSTOMER, [rider], radius_km=distance, speed_kmh=20)) == 1
        assert find_nearby(CUSTOMER, [rider], radius_km=1, speed_kmh=20) == []
