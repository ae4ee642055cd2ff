import math
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from django.conf import settings

from apps.core.models import Driver, Vehicle
from apps.compliance.rules import ComplianceRules
from apps.compliance.services import TimeCardLedger
from mapping.utils import EARTH_RADIUS_AIR_MILES

CARRIER_TZ = ZoneInfo('America/Los_Angeles')


def local(year, month, day, hour=0, minute=0):
    """Aware datetime in the carrier's timezone."""
    return datetime(year, month, day, hour, minute, tzinfo=CARRIER_TZ)


def base_point():
    return (settings.CARRIER_BASE_LATITUDE, settings.CARRIER_BASE_LONGITUDE)


def point_north_of_base(air_miles):
    """A point due north of the base at the given great-circle distance."""
    lat, lng = base_point()
    return (lat + math.degrees(air_miles / EARTH_RADIUS_AIR_MILES), lng)


@pytest.fixture
def driver(db):
    return Driver.objects.create(name="Ana Torres", license_number="WA1234567", employee_id="EMP001")


@pytest.fixture
def other_driver(db):
    return Driver.objects.create(name="Marcus Reed", license_number="WA7654321", employee_id="EMP002")


@pytest.fixture
def vehicle(db):
    return Vehicle.objects.create(vehicle_number="101", license_plate="WINE101", make="Mercedes-Benz", model="Sprinter")


@pytest.fixture
def other_vehicle(db):
    return Vehicle.objects.create(vehicle_number="102", license_plate="WINE102", make="Ford", model="Transit")


@pytest.fixture
def rules():
    return ComplianceRules()


@pytest.fixture
def ledger(db, rules):
    return TimeCardLedger(rules)


@pytest.fixture
def work_day(ledger, driver, vehicle):
    """Clock a driver in and out on a given day; returns the ClockOutResult."""
    def _work_day(clock_in, clock_out, location=None, signature='driver-signature'):
        ledger.clock_in(driver.id, vehicle.id, clock_in, location=location)
        return ledger.clock_out(driver.id, clock_out, location=location, signature=signature)
    return _work_day
