"""
Jurisdictional thresholds for hours-of-service and the short-haul radius exemption.

Every number the compliance services compare against lives on
ComplianceRules; nothing downstream hardcodes a limit.
"""
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone

from mapping.utils import Coordinate, to_coordinate

# Operating pattern -> (weekly on-duty limit, rolling window length in days)
WEEKLY_MODES = {
    '60_7': (Decimal('60'), 7),
    '70_8': (Decimal('70'), 8),
}


@dataclass(frozen=True)
class ComplianceRules:
    max_driving_hours_per_day: Decimal = Decimal('10')
    max_on_duty_hours_per_day: Decimal = Decimal('15')
    min_off_duty_hours: Decimal = Decimal('8')
    weekly_mode: str = '60_7'
    exemption_radius_air_miles: Decimal = Decimal('150')
    exemption_window_days: int = 30
    max_exceedance_days: int = 8
    warning_threshold_percent: Decimal = Decimal('80')
    critical_threshold_percent: Decimal = Decimal('100')
    stale_time_card_hours: int = 24
    require_clock_out_signature: bool = True

    def __post_init__(self):
        if self.weekly_mode not in WEEKLY_MODES:
            raise ImproperlyConfigured(
                f"Unknown weekly mode '{self.weekly_mode}'; expected one of {sorted(WEEKLY_MODES)}"
            )
        if self.exemption_window_days < 1:
            raise ImproperlyConfigured("Exemption window must be at least one day")

    @property
    def weekly_hour_limit(self):
        return WEEKLY_MODES[self.weekly_mode][0]

    @property
    def weekly_window_days(self):
        return WEEKLY_MODES[self.weekly_mode][1]

    @classmethod
    def from_settings(cls):
        """Build the rules from the COMPLIANCE_RULES settings dict."""
        conf = getattr(settings, 'COMPLIANCE_RULES', {})
        defaults = cls()

        return cls(
            max_driving_hours_per_day=Decimal(str(conf.get('MAX_DRIVING_HOURS_PER_DAY', defaults.max_driving_hours_per_day))),
            max_on_duty_hours_per_day=Decimal(str(conf.get('MAX_ON_DUTY_HOURS_PER_DAY', defaults.max_on_duty_hours_per_day))),
            min_off_duty_hours=Decimal(str(conf.get('MIN_OFF_DUTY_HOURS', defaults.min_off_duty_hours))),
            weekly_mode=str(conf.get('WEEKLY_MODE', defaults.weekly_mode)),
            exemption_radius_air_miles=Decimal(str(conf.get('EXEMPTION_RADIUS_AIR_MILES', defaults.exemption_radius_air_miles))),
            exemption_window_days=int(conf.get('EXEMPTION_WINDOW_DAYS', defaults.exemption_window_days)),
            max_exceedance_days=int(conf.get('MAX_EXCEEDANCE_DAYS', defaults.max_exceedance_days)),
            warning_threshold_percent=Decimal(str(conf.get('WARNING_THRESHOLD_PERCENT', defaults.warning_threshold_percent))),
            critical_threshold_percent=Decimal(str(conf.get('CRITICAL_THRESHOLD_PERCENT', defaults.critical_threshold_percent))),
            stale_time_card_hours=int(conf.get('STALE_TIME_CARD_HOURS', defaults.stale_time_card_hours)),
            require_clock_out_signature=bool(conf.get('REQUIRE_CLOCK_OUT_SIGNATURE', defaults.require_clock_out_signature)),
        )


def carrier_base():
    """The carrier's base coordinate that air-mile distances are measured from."""
    return to_coordinate((settings.CARRIER_BASE_LATITUDE, settings.CARRIER_BASE_LONGITUDE))


def carrier_timezone():
    return ZoneInfo(settings.CARRIER_TIMEZONE)


def local_date(moment):
    """Calendar date of an aware timestamp in the carrier's timezone."""
    return timezone.localtime(moment, carrier_timezone()).date()


def start_of_local_day(day):
    """First instant of a carrier-local calendar day."""
    return datetime.combine(day, time.min, tzinfo=carrier_timezone())


def end_of_local_day(day):
    """Last representable instant of a carrier-local calendar day."""
    return datetime.combine(day, time.max, tzinfo=carrier_timezone())


__all__ = [
    'ComplianceRules', 'Coordinate', 'WEEKLY_MODES',
    'carrier_base', 'carrier_timezone', 'local_date', 'start_of_local_day', 'end_of_local_day',
]
