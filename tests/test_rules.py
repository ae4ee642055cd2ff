from decimal import Decimal

import pytest
from django.core.exceptions import ImproperlyConfigured

from apps.compliance.rules import ComplianceRules, carrier_base, end_of_local_day, local_date
from .conftest import local


def test_defaults(rules):
    assert rules.max_driving_hours_per_day == Decimal('10')
    assert rules.exemption_radius_air_miles == Decimal('150')
    assert rules.weekly_hour_limit == Decimal('60')
    assert rules.weekly_window_days == 7


def test_from_settings(settings):
    settings.COMPLIANCE_RULES = {
        'MAX_DRIVING_HOURS_PER_DAY': '11',
        'WEEKLY_MODE': '70_8',
        'MAX_EXCEEDANCE_DAYS': 5,
        'REQUIRE_CLOCK_OUT_SIGNATURE': False,
    }

    rules = ComplianceRules.from_settings()

    assert rules.max_driving_hours_per_day == Decimal('11')
    assert rules.weekly_hour_limit == Decimal('70')
    assert rules.weekly_window_days == 8
    assert rules.max_exceedance_days == 5
    assert rules.require_clock_out_signature is False
    assert rules.min_off_duty_hours == Decimal('8')


def test_unknown_weekly_mode(settings):
    settings.COMPLIANCE_RULES = {'WEEKLY_MODE': '80_9'}

    with pytest.raises(ImproperlyConfigured):
        ComplianceRules.from_settings()


def test_carrier_calendar(settings):
    settings.CARRIER_TIMEZONE = 'America/Los_Angeles'

    # 05:30 UTC on June 3 is still June 2 in the carrier's timezone
    assert local_date(local(2025, 6, 2, 22, 30)).isoformat() == '2025-06-02'
    end = end_of_local_day(local(2025, 6, 2).date())
    assert end.hour == 23 and end.microsecond == 999999


def test_carrier_base(settings):
    settings.CARRIER_BASE_LATITUDE = 38.2975
    settings.CARRIER_BASE_LONGITUDE = -122.2869

    assert carrier_base().as_point() == (38.2975, -122.2869)
