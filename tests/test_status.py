from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.compliance.models import DailyTrip, ComplianceViolation
from apps.compliance.services import ComplianceStatusService
from .conftest import local, base_point, point_north_of_base


@pytest.fixture
def status_service(ledger, rules):
    return ComplianceStatusService(rules, ledger)


def usage_by_category(view):
    return {item.category: item for item in view.usage}


def alert_codes(view):
    return [alert.code for alert in view.alerts]


class TestTodayStatus:
    def test_off_duty_driver(self, status_service, driver):
        view = status_service.today_status(driver.id, now=local(2025, 6, 2, 9))

        assert view.date == date(2025, 6, 2)
        assert not view.clocked_in
        assert view.hours_so_far == Decimal('0.00')
        assert view.time_card is None
        assert view.daily_trip is None
        assert view.alerts == []
        assert view.exemption['remaining_exceedance_days'] == 8
        assert view.weekly['hour_limit'] == Decimal('60')

    def test_open_card_reports_live_hours(self, status_service, ledger, driver, vehicle):
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 8), location=base_point())

        view = status_service.today_status(driver.id, now=local(2025, 6, 2, 12, 15))

        assert view.clocked_in
        assert view.hours_so_far == Decimal('4.25')
        assert view.time_card['status'] == 'OPEN'
        assert view.weekly['total_on_duty_hours'] == Decimal('4.25')
        usage = usage_by_category(view)
        assert usage['daily_driving'].percent_used == Decimal('42.5')
        assert usage['daily_on_duty'].remaining == Decimal('10.75')
        assert all(item.level == 'ok' for item in view.usage)

    def test_driving_warning_at_eighty_percent(self, status_service, ledger, driver, vehicle):
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 8), location=base_point())

        view = status_service.today_status(driver.id, now=local(2025, 6, 2, 16))

        driving = usage_by_category(view)['daily_driving']
        assert driving.percent_used == Decimal('80.0')
        assert driving.level == 'warning'
        assert alert_codes(view) == ['DAILY_DRIVING_LIMIT']
        assert view.alerts[0].level == 'warning'

    def test_driving_critical_at_limit(self, status_service, ledger, driver, vehicle):
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 6), location=base_point())

        view = status_service.today_status(driver.id, now=local(2025, 6, 2, 16, 30))

        usage = usage_by_category(view)
        assert usage['daily_driving'].level == 'critical'
        assert usage['daily_driving'].remaining == Decimal('0')
        assert usage['daily_on_duty'].level == 'ok'

    def test_closed_day_and_radius_alert(self, status_service, ledger, driver, vehicle):
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 8), location=base_point())
        ledger.record_waypoint(driver.id, local(2025, 6, 2, 11), point_north_of_base(200))
        ledger.clock_out(driver.id, local(2025, 6, 2, 16, 30), location=base_point(), signature='sig')

        view = status_service.today_status(driver.id, now=local(2025, 6, 2, 18))

        assert not view.clocked_in
        assert view.hours_so_far == Decimal('8.50')
        assert view.time_card['status'] == 'CLOSED'
        assert view.daily_trip['exceeded_radius']
        assert 'RADIUS_EXCEEDED_TODAY' in alert_codes(view)
        assert view.exemption['exceedance_days'] == 1

    def test_overnight_shift_reports_its_own_trip(self, status_service, ledger, driver, vehicle):
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 20), location=base_point())
        ledger.record_waypoint(driver.id, local(2025, 6, 2, 23), point_north_of_base(200))

        view = status_service.today_status(driver.id, now=local(2025, 6, 3, 1))

        assert view.date == date(2025, 6, 3)
        assert view.clocked_in
        assert view.daily_trip['trip_date'] == date(2025, 6, 2)
        assert view.daily_trip['exceeded_radius']
        assert 'RADIUS_EXCEEDED_TODAY' in alert_codes(view)

    def test_no_location_data_after_close(self, status_service, ledger, driver, vehicle):
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 8))
        assert 'NO_LOCATION_DATA' not in alert_codes(status_service.today_status(driver.id, now=local(2025, 6, 2, 9)))

        ledger.clock_out(driver.id, local(2025, 6, 2, 12), signature='sig')
        view = status_service.today_status(driver.id, now=local(2025, 6, 2, 13))

        assert alert_codes(view) == ['NO_LOCATION_DATA']

    def test_exemption_loss_visible_next_call_and_critical_first(self, status_service, ledger, driver, vehicle):
        for offset in range(1, 9):
            DailyTrip.objects.create(
                driver=driver,
                trip_date=date(2025, 6, 2) - timedelta(days=offset * 2),
                base_latitude=Decimal('46.0645'),
                base_longitude=Decimal('-118.3430'),
                max_distance_air_miles=Decimal('170.00'),
                exceeded_radius=True,
                has_location_data=True,
                finalized_at=timezone.now(),
            )
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 2, 8), location=base_point())
        ledger.record_waypoint(driver.id, local(2025, 6, 2, 11), point_north_of_base(200))
        ledger.clock_out(driver.id, local(2025, 6, 2, 16, 30), location=base_point(), signature='sig')

        view = status_service.today_status(driver.id, now=local(2025, 6, 2, 17))

        assert view.exemption['requires_detailed_logs']
        assert view.exemption['remaining_exceedance_days'] == 0
        codes = alert_codes(view)
        assert 'DETAILED_LOGS_REQUIRED' in codes
        assert 'EXEMPTION_LOST' not in codes
        exemption_usage = usage_by_category(view)['exemption_window']
        assert exemption_usage.percent_used == Decimal('112.5')
        assert exemption_usage.level == 'critical'
        levels = [alert.level for alert in view.alerts]
        assert levels == sorted(levels, key=lambda level: 0 if level == 'critical' else 1)
        assert levels[0] == 'critical' and levels[-1] == 'warning'

    def test_off_duty_violation_listed(self, status_service, ledger, work_day, driver, vehicle):
        work_day(local(2025, 6, 2, 10), local(2025, 6, 2, 18))
        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 3, 0, 30))
        ledger.clock_out(driver.id, local(2025, 6, 3, 6), signature='sig')

        view = status_service.today_status(driver.id, now=local(2025, 6, 3, 7))

        assert alert_codes(view) == ['INSUFFICIENT_OFF_DUTY', 'NO_LOCATION_DATA']
        assert ComplianceViolation.objects.filter(violation_type='INSUFFICIENT_OFF_DUTY').count() == 1

    def test_as_dict(self, status_service, driver):
        data = status_service.today_status(driver.id, now=local(2025, 6, 2, 9)).as_dict()

        assert data['driver_name'] == driver.name
        assert {item['category'] for item in data['usage']} == {
            'daily_driving', 'daily_on_duty', 'weekly_on_duty', 'exemption_window'
        }
