from datetime import date
from decimal import Decimal

import pytest

from apps.compliance.models import TimeCard, WeeklyHOS
from apps.compliance.rules import ComplianceRules
from apps.compliance.services import HOSLimitEvaluator
from .conftest import local


@pytest.fixture
def backfill(ledger, driver, vehicle):
    """Enter completed shifts starting at 08:00 local on each given (day, hours) pair."""
    def _backfill(month, shifts):
        results = []
        for day_of_month, hours in shifts:
            if not hours:
                continue
            clock_in = local(2025, month, day_of_month, 8)
            clock_out = local(2025, month, day_of_month, 8 + int(hours), int(hours % 1 * 60))
            results.append(ledger.record_historical_entry(driver.id, vehicle.id, clock_in, clock_out))
        return results
    return _backfill


class TestDailyLimits:
    def test_at_limits_is_compliant(self, rules, driver, vehicle):
        time_card = TimeCard(
            driver=driver, vehicle=vehicle, work_date=date(2025, 6, 2),
            clock_in_time=local(2025, 6, 2, 6)
        )
        time_card.record_clock_out(local(2025, 6, 2, 16))

        assert HOSLimitEvaluator(rules).evaluate_day(time_card) == []

    def test_over_both_daily_limits(self, rules, driver, vehicle):
        time_card = TimeCard(
            driver=driver, vehicle=vehicle, work_date=date(2025, 6, 2),
            clock_in_time=local(2025, 6, 2, 5)
        )
        time_card.record_clock_out(local(2025, 6, 2, 21))

        violations = HOSLimitEvaluator(rules).evaluate_day(time_card)

        assert [v.violation_type for v in violations] == ['DRIVING_LIMIT_EXCEEDED', 'ON_DUTY_LIMIT_EXCEEDED']
        assert violations[1].measured_value == Decimal('16.00')
        assert violations[1].limit_value == Decimal('15')

    def test_insufficient_off_duty(self, ledger, work_day, driver, vehicle):
        work_day(local(2025, 6, 2, 10), local(2025, 6, 2, 18))

        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 3, 0, 30))
        result = ledger.clock_out(driver.id, local(2025, 6, 3, 6), signature='sig')

        off_duty = [v for v in result.violations if v.violation_type == 'INSUFFICIENT_OFF_DUTY']
        assert len(off_duty) == 1
        assert off_duty[0].measured_value == Decimal('6.50')

    def test_enough_off_duty(self, ledger, work_day, driver, vehicle):
        work_day(local(2025, 6, 2, 8), local(2025, 6, 2, 16))

        ledger.clock_in(driver.id, vehicle.id, local(2025, 6, 3, 0))
        result = ledger.clock_out(driver.id, local(2025, 6, 3, 6), signature='sig')

        assert result.violations == []


class TestWeeklyLimit:
    def test_under_limit(self, rules, driver, backfill):
        backfill(6, [(2, 10), (3, 10), (4, 10), (5, 10), (6, 10), (7, 5), (8, 0)])

        weekly = HOSLimitEvaluator(rules).evaluate_week(driver, date(2025, 6, 8))

        assert weekly.window_start == date(2025, 6, 2)
        assert weekly.total_on_duty_hours == Decimal('55.00')
        assert weekly.remaining_hours == Decimal('5.00')
        assert not weekly.is_violation

    def test_over_limit_records_violation(self, rules, driver, backfill):
        backfill(6, [(2, 10), (3, 10), (4, 10), (5, 10), (6, 10), (7, 5)])

        result, = backfill(6, [(8, 10)])

        assert result.weekly.total_on_duty_hours == Decimal('65.00')
        assert result.weekly.is_violation
        assert [v.violation_type for v in result.violations] == ['WEEKLY_LIMIT_EXCEEDED']
        assert result.violations[0].severity == 'CRITICAL'

    def test_days_outside_window_ignored(self, rules, driver, backfill):
        backfill(6, [(1, 10), (2, 10), (3, 10), (4, 10), (5, 10), (6, 10), (7, 5)])

        weekly = HOSLimitEvaluator(rules).evaluate_week(driver, date(2025, 6, 8))

        assert weekly.total_on_duty_hours == Decimal('55.00')

    def test_seventy_hour_eight_day_mode(self, driver, backfill):
        backfill(6, [(1, 10), (2, 10), (3, 10), (4, 10), (5, 10), (6, 10), (7, 5)])

        weekly = HOSLimitEvaluator(ComplianceRules(weekly_mode='70_8')).evaluate_week(driver, date(2025, 6, 8))

        assert weekly.window_days == 8
        assert weekly.hour_limit == Decimal('70')
        assert weekly.total_on_duty_hours == Decimal('65.00')
        assert not weekly.is_violation

    def test_live_hours_and_superseded_cards(self, rules, ledger, driver, backfill):
        first, = backfill(6, [(2, 10)])
        ledger.correct_time_card(first.time_card.id, local(2025, 6, 2, 8), local(2025, 6, 2, 12), reason="Short day")

        weekly = HOSLimitEvaluator(rules).evaluate_week(driver, date(2025, 6, 3), live_hours=Decimal('2.25'))

        assert weekly.total_on_duty_hours == Decimal('6.25')
        assert WeeklyHOS.objects.filter(driver=driver, window_end=date(2025, 6, 3)).count() == 1
