from datetime import date
from decimal import Decimal

import pytest

from apps.compliance.models import DailyTrip
from apps.compliance.services import DistanceTracker, quantize_miles
from .conftest import local, base_point, point_north_of_base


class TestRadiusBoundary:
    @pytest.mark.parametrize('distance, exceeded', [
        (149.99, False),
        (150.00, False),
        (150.004, False),
        (149.99999999997, False),
        (150.00000000002, False),
        (150.005, True),
        (150.01, True),
    ])
    def test_exceeds_radius(self, rules, distance, exceeded):
        assert DistanceTracker(rules).exceeds_radius(distance) is exceeded

    def test_quantize_miles(self):
        assert quantize_miles(149.994) == Decimal('149.99')
        assert quantize_miles(149.995) == Decimal('150.00')

    @pytest.mark.parametrize('air_miles, exceeded', [
        (149.99, False),
        (150.00, False),
        (150.01, True),
    ])
    def test_boundary_from_coordinates(self, db, rules, driver, air_miles, exceeded):
        tracker = DistanceTracker(rules)
        trip = tracker.get_trip(driver, date(2025, 6, 2))

        tracker.record(trip, local(2025, 6, 2, 10), point_north_of_base(air_miles))
        trip = tracker.finalize(driver, date(2025, 6, 2))

        assert trip.max_distance_air_miles == Decimal(str(air_miles)).quantize(Decimal('0.01'))
        assert trip.exceeded_radius is exceeded


class TestFinalize:
    def test_furthest_point_from_all_waypoints(self, db, rules, driver):
        tracker = DistanceTracker(rules)
        trip = tracker.get_trip(driver, date(2025, 6, 2))
        for hour, miles in [(8, 0), (10, 80), (12, 175), (15, 40)]:
            tracker.record(trip, local(2025, 6, 2, hour), point_north_of_base(miles))

        trip = tracker.finalize(driver, date(2025, 6, 2))

        assert trip.max_distance_air_miles == Decimal('175.00')
        assert trip.exceeded_radius
        assert trip.has_location_data
        assert trip.waypoint_count == 4
        assert trip.finalized_at is not None
        assert float(trip.furthest_latitude) == pytest.approx(point_north_of_base(175)[0], abs=1e-6)

    def test_no_waypoints(self, db, rules, driver):
        trip = DistanceTracker(rules).finalize(driver, date(2025, 6, 2))

        assert not trip.has_location_data
        assert not trip.exceeded_radius
        assert trip.max_distance_air_miles == Decimal('0.00')
        assert DailyTrip.objects.filter(driver=driver).count() == 1

    def test_custom_base(self, db, rules, driver):
        tracker = DistanceTracker(rules, base=(38.2975, -122.2869))
        trip = tracker.get_trip(driver, date(2025, 6, 2))

        tracker.record(trip, local(2025, 6, 2, 10), (38.2975, -122.2869))

        assert trip.base_latitude == Decimal('38.2975')
        assert trip.max_distance_air_miles == Decimal('0.00')

    def test_start_day_records_first_waypoint(self, ledger, driver, vehicle):
        time_card = ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 8))

        trip = DistanceTracker().start_day(time_card, base_point())

        assert trip.waypoints.get().recorded_at == time_card.clock_in_time
