"""
Celery tasks for time-card housekeeping and exemption snapshots.
"""
from celery import shared_task
from django.utils import timezone
from apps.core.models import Driver
from .rules import local_date
from .services import TimeCardLedger, ExemptionTracker
import logging

logger = logging.getLogger(__name__)


@shared_task
def close_stale_time_cards():
    """
    Periodic task to auto-close time cards drivers forgot to clock out of.
    """
    closed = TimeCardLedger().close_stale_time_cards(timezone.now())

    if closed:
        logger.info(f"Auto-closed {len(closed)} stale time cards")
    return f"Auto-closed {len(closed)} stale time cards"


@shared_task
def snapshot_exemption_statuses():
    """
    Periodic task to refresh the rolling exemption status of every active driver.

    A loss of the exemption that no clock-out recorded is recorded here.
    """
    today = local_date(timezone.now())
    tracker = ExemptionTracker()

    requiring_logs = 0
    drivers = Driver.objects.filter(is_active=True)
    for driver in drivers:
        status = tracker.recompute(driver, today)
        if status.requires_detailed_logs:
            requiring_logs += 1

        violation = tracker.lost_violation(status)
        if violation is not None:
            violation.save()
            logger.warning(f"Recorded exemption loss for driver {driver.id} as of {today}")

    logger.info(f"Refreshed exemption status for {drivers.count()} drivers ({requiring_logs} require detailed logs)")
    return f"Refreshed {drivers.count()} exemption statuses; {requiring_logs} require detailed logs"
