"""
External geocoding services.
"""
from django.conf import settings
from geopy.geocoders import Nominatim
from geopy.exc import GeopyError
import logging

from .utils import format_coordinate_label, to_coordinate

logger = logging.getLogger(__name__)


def describe_location(point):
    """
    Build a readable label for a clock location.

    Reverse geocoding through Nominatim is attempted only when
    REVERSE_GEOCODE_CLOCK_LOCATIONS is enabled; any lookup failure falls
    back to the plain coordinate label so clocking is never blocked.
    """
    coordinate = to_coordinate(point)
    fallback = format_coordinate_label(coordinate)

    if not getattr(settings, 'REVERSE_GEOCODE_CLOCK_LOCATIONS', False):
        return fallback

    try:
        address = _reverse_geocode_with_nominatim(coordinate.latitude, coordinate.longitude)
    except GeopyError as e:
        logger.warning(f"Reverse geocoding failed for {fallback}: {str(e)}")
        return fallback

    return address or fallback


def _reverse_geocode_with_nominatim(lat, lng):
    """
    Reverse geocode a coordinate using Nominatim (OpenStreetMap).
    """
    geolocator = Nominatim(user_agent=settings.GEOCODER_USER_AGENT)
    location = geolocator.reverse((lat, lng), timeout=10)

    if location:
        return location.address[:255]

    return None
