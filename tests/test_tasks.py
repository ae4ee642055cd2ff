from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.compliance.models import TimeCard, DailyTrip, MonthlyExemptionStatus, ComplianceViolation
from apps.compliance.rules import local_date
from apps.compliance.tasks import close_stale_time_cards, snapshot_exemption_statuses


@pytest.fixture
def stale_card(driver, vehicle):
    clock_in_time = timezone.now() - timedelta(hours=30)
    return TimeCard.objects.create(
        driver=driver,
        vehicle=vehicle,
        work_date=local_date(clock_in_time),
        clock_in_time=clock_in_time,
    )


def test_close_stale_time_cards(stale_card):
    summary = close_stale_time_cards.delay().get()

    stale_card.refresh_from_db()
    assert stale_card.status == 'AUTO_CLOSED'
    assert stale_card.on_duty_hours is not None
    assert summary == "Auto-closed 1 stale time cards"


def test_close_stale_time_cards_nothing_to_do(db):
    assert close_stale_time_cards() == "Auto-closed 0 stale time cards"


def test_snapshot_exemption_statuses(driver, other_driver):
    other_driver.is_active = False
    other_driver.save()

    summary = snapshot_exemption_statuses()

    assert summary == "Refreshed 1 exemption statuses; 0 require detailed logs"
    status = MonthlyExemptionStatus.objects.get(driver=driver)
    assert status.window_end == local_date(timezone.now())
    assert not MonthlyExemptionStatus.objects.filter(driver=other_driver).exists()


def test_snapshot_records_unrecorded_exemption_loss(driver):
    today = local_date(timezone.now())
    for offset in range(1, 10):
        DailyTrip.objects.create(
            driver=driver,
            trip_date=today - timedelta(days=offset),
            base_latitude=Decimal('46.0645'),
            base_longitude=Decimal('-118.3430'),
            max_distance_air_miles=Decimal('175.00'),
            exceeded_radius=True,
            has_location_data=True,
            finalized_at=timezone.now(),
        )

    assert snapshot_exemption_statuses() == "Refreshed 1 exemption statuses; 1 require detailed logs"
    snapshot_exemption_statuses()

    lost = ComplianceViolation.objects.get(driver=driver, violation_type='EXEMPTION_LOST')
    assert lost.violation_date == today
    assert lost.time_card is None
