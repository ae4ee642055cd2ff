"""
Utility functions for geographic calculations.
"""
import math
from typing import NamedTuple, Optional, Tuple, Union

# Mean earth radius expressed in nautical miles ("air miles").
EARTH_RADIUS_AIR_MILES = 3440.065


class InvalidCoordinate(ValueError):
    """Raised when a latitude/longitude pair is missing, non-numeric or out of range."""

    code = 'invalid_coordinate'


class Coordinate(NamedTuple):
    latitude: float
    longitude: float
    accuracy: Optional[float] = None

    def as_point(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


PointLike = Union[Coordinate, Tuple[float, float]]


def validate_coordinates(lat: float, lng: float) -> bool:
    """
    Validate latitude and longitude coordinates.

    Args:
        lat: Latitude
        lng: Longitude

    Returns:
        True if coordinates are valid
    """
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return (-90 <= lat <= 90) and (-180 <= lng <= 180)


def to_coordinate(point: PointLike, accuracy: Optional[float] = None) -> Coordinate:
    """
    Normalize a (lat, lng) pair or Coordinate into a validated Coordinate.

    Raises:
        InvalidCoordinate: if the pair is malformed or out of range
    """
    if point is None:
        raise InvalidCoordinate("Coordinate is required")
    try:
        lat, lng = point[0], point[1]
    except (TypeError, IndexError):
        raise InvalidCoordinate(f"Malformed coordinate: {point!r}")

    if not validate_coordinates(lat, lng):
        raise InvalidCoordinate(f"Coordinate out of range: ({lat}, {lng})")

    if isinstance(point, Coordinate) and accuracy is None:
        accuracy = point.accuracy
    return Coordinate(float(lat), float(lng), accuracy)


def air_miles_between(point1: PointLike, point2: PointLike) -> float:
    """
    Calculate the great circle distance between two points using Haversine formula.

    Args:
        point1: (latitude, longitude) tuple or Coordinate
        point2: (latitude, longitude) tuple or Coordinate

    Returns:
        Distance in air (nautical) miles

    Raises:
        InvalidCoordinate: if either point is out of range
    """
    a_point = to_coordinate(point1)
    b_point = to_coordinate(point2)

    lat1, lon1 = math.radians(a_point.latitude), math.radians(a_point.longitude)
    lat2, lon2 = math.radians(b_point.latitude), math.radians(b_point.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (math.sin(dlat/2)**2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2)
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return c * EARTH_RADIUS_AIR_MILES


def format_coordinate_label(point: PointLike) -> str:
    """Plain-text location label used when no reverse geocode is available."""
    coordinate = to_coordinate(point)
    return f"Lat: {coordinate.latitude:.6f}, Lng: {coordinate.longitude:.6f}"
