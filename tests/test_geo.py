import math
from unittest import mock

import pytest
from geopy.exc import GeocoderTimedOut

from mapping.services import describe_location
from mapping.utils import (
    EARTH_RADIUS_AIR_MILES, Coordinate, InvalidCoordinate,
    air_miles_between, format_coordinate_label, to_coordinate, validate_coordinates
)


def law_of_cosines_miles(a, b):
    lat1, lon1, lat2, lon2 = map(math.radians, (a[0], a[1], b[0], b[1]))
    cos_angle = (math.sin(lat1) * math.sin(lat2)
                 + math.cos(lat1) * math.cos(lat2) * math.cos(lon2 - lon1))
    return math.acos(max(-1.0, min(1.0, cos_angle))) * EARTH_RADIUS_AIR_MILES


class TestAirMilesBetween:
    def test_same_point_is_zero(self):
        assert air_miles_between((46.0645, -118.3430), (46.0645, -118.3430)) == 0

    def test_one_degree_of_latitude(self):
        expected = math.radians(1) * EARTH_RADIUS_AIR_MILES
        assert air_miles_between((46.0, -118.0), (47.0, -118.0)) == pytest.approx(expected, abs=0.01)

    @pytest.mark.parametrize('a, b', [
        ((46.0645, -118.3430), (47.6062, -122.3321)),  # Walla Walla -> Seattle
        ((46.0645, -118.3430), (45.5152, -122.6784)),  # Walla Walla -> Portland
        ((38.2975, -122.2869), (36.6002, -121.8947)),  # Napa -> Monterey
    ])
    def test_matches_reference_formula(self, a, b):
        assert air_miles_between(a, b) == pytest.approx(law_of_cosines_miles(a, b), abs=0.01)

    def test_symmetric(self):
        a, b = (46.0645, -118.3430), (47.6062, -122.3321)
        assert air_miles_between(a, b) == pytest.approx(air_miles_between(b, a))

    def test_accepts_coordinates(self):
        a = Coordinate(46.0, -118.0, accuracy=5.0)
        assert air_miles_between(a, (46.0, -118.0)) == 0

    @pytest.mark.parametrize('point', [
        (91, 0), (-90.5, 0), (0, 181), (0, -180.1), (float('nan'), 0), ('north', 0), None, (1,),
    ])
    def test_rejects_invalid_points(self, point):
        with pytest.raises(InvalidCoordinate):
            air_miles_between(point, (0, 0))


class TestCoordinateHelpers:
    def test_validate_coordinates(self):
        assert validate_coordinates(90, 180)
        assert validate_coordinates(-90, -180)
        assert not validate_coordinates(90.0001, 0)
        assert not validate_coordinates(None, 0)

    def test_invalid_coordinate_is_value_error(self):
        with pytest.raises(ValueError):
            to_coordinate((100, 0))

    def test_to_coordinate_keeps_accuracy(self):
        assert to_coordinate(Coordinate(1, 2, 7.5)).accuracy == 7.5
        assert to_coordinate((1, 2), accuracy=3.0) == Coordinate(1.0, 2.0, 3.0)

    def test_label(self):
        assert format_coordinate_label((46.0645, -118.343)) == "Lat: 46.064500, Lng: -118.343000"


class TestDescribeLocation:
    def test_plain_label_when_geocoding_disabled(self, settings):
        settings.REVERSE_GEOCODE_CLOCK_LOCATIONS = False
        with mock.patch('mapping.services.Nominatim') as nominatim:
            assert describe_location((46.0645, -118.343)) == "Lat: 46.064500, Lng: -118.343000"
        nominatim.assert_not_called()

    def test_uses_reverse_geocode_address(self, settings):
        settings.REVERSE_GEOCODE_CLOCK_LOCATIONS = True
        with mock.patch('mapping.services.Nominatim') as nominatim:
            nominatim.return_value.reverse.return_value = mock.Mock(address="Main St, Walla Walla, WA")
            assert describe_location((46.0645, -118.343)) == "Main St, Walla Walla, WA"

    def test_falls_back_when_geocoder_fails(self, settings):
        settings.REVERSE_GEOCODE_CLOCK_LOCATIONS = True
        with mock.patch('mapping.services.Nominatim') as nominatim:
            nominatim.return_value.reverse.side_effect = GeocoderTimedOut("timed out")
            assert describe_location((46.0645, -118.343)) == "Lat: 46.064500, Lng: -118.343000"
