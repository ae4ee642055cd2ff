"""
Compliance service classes: the time-card ledger, distance-from-base tracking,
the rolling radius-exemption window, HOS limit evaluation and the composed
"today's status" view.
"""
from dataclasses import dataclass, field, asdict
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from functools import wraps
from django.db import transaction, IntegrityError, DatabaseError
from django.db.models import F, Sum
from django.utils import timezone
from apps.core.models import Driver, Vehicle
from mapping.services import describe_location
from mapping.utils import air_miles_between, to_coordinate
from .models import (
    TimeCard, DailyTrip, GpsWaypoint, MonthlyExemptionStatus, WeeklyHOS,
    ComplianceViolation, TimeCardAuditLog, elapsed_hours, HOURS_QUANTUM
)
from .rules import ComplianceRules, carrier_base, local_date, start_of_local_day, end_of_local_day
from .exceptions import (
    AlreadyClockedIn, VehicleInUse, NoOpenTimeCard, IncompletePreviousTimeCard,
    DayAlreadyClosed, TimeCardSuperseded, ClockOutBeforeClockIn, SignatureRequired,
    InvalidOdometerReading, TimeCardNotClosed, CorrectionReasonRequired,
    DriverInactive, VehicleUnavailable, DriverNotFound, VehicleNotFound,
    TimeCardNotFound, StorageUnavailable
)
import logging

logger = logging.getLogger(__name__)

DISTANCE_QUANTUM = Decimal('0.01')
PERCENT_QUANTUM = Decimal('0.1')
AUTO_CLOSE_SIGNATURE = 'SYSTEM_AUTO_CLOSE'
ZERO_HOURS = Decimal('0.00')


def quantize_miles(value):
    """Round an air-mile distance to 0.01 so boundary comparisons ignore float noise."""
    return Decimal(str(value)).quantize(DISTANCE_QUANTUM, rounding=ROUND_HALF_UP)


def storage_guard(func):
    """
    Surface database failures that escape a service call as StorageUnavailable.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.error(f"Storage failure in {func.__qualname__}: {str(e)}")
            raise StorageUnavailable() from e
    return wrapper


@dataclass
class ClockOutResult:
    time_card: TimeCard
    hours_worked: Decimal
    violations: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    daily_trip: DailyTrip = None
    exemption: MonthlyExemptionStatus = None
    weekly: WeeklyHOS = None


class DistanceTracker:
    """
    Tracks how far from the carrier's base a driver travels each day.
    """

    def __init__(self, rules=None, base=None):
        self.rules = rules or ComplianceRules.from_settings()
        self.base = to_coordinate(base) if base is not None else carrier_base()

    def exceeds_radius(self, distance):
        return quantize_miles(distance) > self.rules.exemption_radius_air_miles

    def get_trip(self, driver, trip_date):
        trip, created = DailyTrip.objects.get_or_create(
            driver=driver,
            trip_date=trip_date,
            defaults={
                'base_latitude': Decimal(str(self.base.latitude)),
                'base_longitude': Decimal(str(self.base.longitude)),
            }
        )
        if created:
            logger.debug(f"Started daily trip for driver {driver.id} on {trip_date}")
        return trip

    def start_day(self, time_card, location=None):
        trip = self.get_trip(time_card.driver, time_card.work_date)
        if location is not None:
            self.record(trip, time_card.clock_in_time, location)
        return trip

    def record(self, trip, timestamp, location):
        """
        Append a waypoint to a trip and raise its running maximum.

        A second sample with the same timestamp is ignored. The maximum is
        only ever raised, via a conditional update, so concurrent or
        out-of-order samples cannot lower it.
        """
        coordinate = to_coordinate(location)
        base = (trip.base_latitude, trip.base_longitude)
        distance = quantize_miles(air_miles_between(base, coordinate))

        waypoint, created = GpsWaypoint.objects.get_or_create(
            daily_trip=trip,
            recorded_at=timestamp,
            defaults={
                'latitude': Decimal(str(coordinate.latitude)),
                'longitude': Decimal(str(coordinate.longitude)),
                'accuracy': coordinate.accuracy,
                'distance_from_base': distance,
            }
        )
        if not created:
            return waypoint

        DailyTrip.objects.filter(pk=trip.pk).update(
            waypoint_count=F('waypoint_count') + 1,
            has_location_data=True,
        )
        DailyTrip.objects.filter(pk=trip.pk, max_distance_air_miles__lt=distance).update(
            max_distance_air_miles=distance,
            furthest_latitude=waypoint.latitude,
            furthest_longitude=waypoint.longitude,
            exceeded_radius=self.exceeds_radius(distance),
        )
        trip.refresh_from_db()
        return waypoint

    def finalize(self, driver, trip_date):
        """
        Recompute a day's furthest point from every recorded waypoint.
        """
        trip = self.get_trip(driver, trip_date)
        base = (trip.base_latitude, trip.base_longitude)
        waypoints = list(trip.waypoints.all())

        max_distance = Decimal('0.00')
        furthest = None
        for waypoint in waypoints:
            distance = quantize_miles(air_miles_between(base, (waypoint.latitude, waypoint.longitude)))
            if furthest is None or distance > max_distance:
                max_distance = distance
                furthest = waypoint

        trip.max_distance_air_miles = max_distance
        trip.furthest_latitude = furthest.latitude if furthest else None
        trip.furthest_longitude = furthest.longitude if furthest else None
        trip.exceeded_radius = self.exceeds_radius(max_distance)
        trip.has_location_data = bool(waypoints)
        trip.waypoint_count = len(waypoints)
        trip.finalized_at = timezone.now()
        trip.save()

        if not waypoints:
            logger.warning(f"No location data recorded for driver {driver.id} on {trip_date}")
        elif trip.exceeded_radius:
            logger.info(
                f"Driver {driver.id} exceeded the {self.rules.exemption_radius_air_miles} air-mile radius "
                f"on {trip_date} ({max_distance} nm)"
            )
        return trip


class ExemptionTracker:
    """
    Rolling-window count of radius exceedance days per driver.
    """

    def __init__(self, rules=None):
        self.rules = rules or ComplianceRules.from_settings()

    def window_for(self, as_of):
        return as_of - timedelta(days=self.rules.exemption_window_days - 1), as_of

    def recompute(self, driver, as_of):
        """
        Re-scan the trailing window of daily trips and store the result.

        Only finalized trips count: a day still in progress cannot add an
        exceedance day until its card is closed. The returned status carries
        ``previously_required``, the detailed-log flag of the most recent
        status at or before ``as_of`` prior to this recompute, so callers can
        detect a flip.
        """
        window_start, window_end = self.window_for(as_of)

        exceedance_dates = list(
            DailyTrip.objects.filter(
                driver=driver,
                trip_date__gte=window_start,
                trip_date__lte=window_end,
                exceeded_radius=True,
                finalized_at__isnull=False,
            ).order_by('trip_date').values_list('trip_date', flat=True)
        )
        count = len(exceedance_dates)
        requires_detailed_logs = count > self.rules.max_exceedance_days

        previous = MonthlyExemptionStatus.objects.filter(
            driver=driver,
            window_end__lte=window_end,
        ).order_by('-window_end', '-computed_at').first()

        status, _ = MonthlyExemptionStatus.objects.update_or_create(
            driver=driver,
            window_start=window_start,
            defaults={
                'window_end': window_end,
                'exceedance_days': count,
                'exceedance_dates': [day.isoformat() for day in exceedance_dates],
                'requires_detailed_logs': requires_detailed_logs,
                'computed_at': timezone.now(),
            }
        )
        status.previously_required = previous.requires_detailed_logs if previous else False

        if self.flipped_on(status):
            logger.warning(
                f"Driver {driver.id} lost the radius exemption: {count} exceedance days "
                f"between {window_start} and {window_end}"
            )
        elif status.previously_required and not requires_detailed_logs:
            logger.info(f"Driver {driver.id} regained the radius exemption as of {window_end}")

        return status

    def recompute_through(self, driver, as_of):
        """
        Recompute the window ending ``as_of`` and every stored window it overlaps.

        A day closed late (an overnight shift, a backfilled paper record)
        changes windows that were already snapshotted; refreshing them keeps
        later comparisons honest.

        Returns:
            (status for as_of, earliest recomputed status whose flag flipped on, or None)
        """
        status = self.recompute(driver, as_of)
        flipped = status if self.flipped_on(status) else None

        later_ends = list(
            MonthlyExemptionStatus.objects.filter(
                driver=driver,
                window_end__gt=as_of,
                window_end__lt=as_of + timedelta(days=self.rules.exemption_window_days),
            ).order_by('window_end').values_list('window_end', flat=True)
        )
        for window_end in later_ends:
            later = self.recompute(driver, window_end)
            if flipped is None and self.flipped_on(later):
                flipped = later

        return status, flipped

    def flipped_on(self, status):
        return status.requires_detailed_logs and not getattr(status, 'previously_required', False)

    def remaining_exceedance_days(self, status):
        return max(self.rules.max_exceedance_days - status.exceedance_days, 0)

    def lost_violation(self, status, time_card=None):
        """
        Violation for a false-to-true flip of the detailed-log flag, if one happened
        and has not been recorded for that window yet.
        """
        if not self.flipped_on(status):
            return None

        already_recorded = ComplianceViolation.objects.filter(
            driver_id=status.driver_id,
            violation_type='EXEMPTION_LOST',
            violation_date=status.window_end,
        ).exclude(time_card__is_superseded=True).exists()
        if already_recorded:
            return None

        return ComplianceViolation(
            driver_id=status.driver_id,
            time_card=time_card,
            violation_date=status.window_end,
            violation_type='EXEMPTION_LOST',
            severity='CRITICAL',
            description=(
                f'{status.exceedance_days} days beyond {self.rules.exemption_radius_air_miles} air-miles '
                f'in the {self.rules.exemption_window_days} days ending {status.window_end} '
                f'(max: {self.rules.max_exceedance_days}); detailed duty logs required'
            ),
            measured_value=Decimal(status.exceedance_days),
            limit_value=Decimal(self.rules.max_exceedance_days),
        )


class HOSLimitEvaluator:
    """
    Service for checking Hours of Service compliance.
    """

    def __init__(self, rules=None):
        self.rules = rules or ComplianceRules.from_settings()

    def evaluate_day(self, time_card):
        """
        Check a closed time card against the daily limits.

        Returns:
            List of unsaved ComplianceViolation instances
        """
        violations = []
        max_driving = self.rules.max_driving_hours_per_day
        max_on_duty = self.rules.max_on_duty_hours_per_day

        if time_card.driving_hours is not None and time_card.driving_hours > max_driving:
            violations.append(self._violation(
                time_card,
                'DRIVING_LIMIT_EXCEEDED',
                'HIGH',
                f'Daily driving time of {time_card.driving_hours} hours exceeds {max_driving}-hour limit',
                time_card.driving_hours,
                max_driving,
            ))

        if time_card.on_duty_hours is not None and time_card.on_duty_hours > max_on_duty:
            violations.append(self._violation(
                time_card,
                'ON_DUTY_LIMIT_EXCEEDED',
                'HIGH',
                f'Daily on-duty time of {time_card.on_duty_hours} hours exceeds {max_on_duty}-hour limit',
                time_card.on_duty_hours,
                max_on_duty,
            ))

        off_duty = self.off_duty_gap(time_card)
        if off_duty is not None and off_duty < self.rules.min_off_duty_hours:
            violations.append(self._violation(
                time_card,
                'INSUFFICIENT_OFF_DUTY',
                'HIGH',
                f'Only {off_duty} hours off duty before this shift (min: {self.rules.min_off_duty_hours}h)',
                off_duty,
                self.rules.min_off_duty_hours,
            ))

        for violation in violations:
            logger.warning(f"Driver {time_card.driver_id} {time_card.work_date}: {violation.description}")

        return violations

    def previous_closed_card(self, time_card):
        return TimeCard.objects.filter(
            driver_id=time_card.driver_id,
            work_date__lt=time_card.work_date,
            is_superseded=False,
            clock_out_time__isnull=False,
        ).exclude(pk=time_card.pk).order_by('-work_date', '-clock_out_time').first()

    def off_duty_gap(self, time_card):
        """Hours between the previous shift's clock-out and this clock-in, if there was one."""
        previous = self.previous_closed_card(time_card)
        if previous is None:
            return None
        return elapsed_hours(previous.clock_out_time, time_card.clock_in_time)

    def evaluate_week(self, driver, as_of, live_hours=ZERO_HOURS):
        """
        Sum on-duty hours over the rolling window ending on ``as_of``.

        ``live_hours`` adds the elapsed time of a still-open card, which has
        no computed hours yet.
        """
        window_days = self.rules.weekly_window_days
        window_start = as_of - timedelta(days=window_days - 1)

        closed_total = TimeCard.objects.filter(
            driver=driver,
            work_date__gte=window_start,
            work_date__lte=as_of,
            is_superseded=False,
            on_duty_hours__isnull=False,
        ).aggregate(total=Sum('on_duty_hours'))['total'] or ZERO_HOURS

        total = (Decimal(closed_total) + Decimal(live_hours)).quantize(HOURS_QUANTUM)
        limit = self.rules.weekly_hour_limit

        weekly, _ = WeeklyHOS.objects.update_or_create(
            driver=driver,
            window_end=as_of,
            defaults={
                'window_start': window_start,
                'window_days': window_days,
                'total_on_duty_hours': total,
                'hour_limit': limit,
                'is_violation': total > limit,
            }
        )
        return weekly

    def weekly_violation(self, weekly, time_card=None):
        if not weekly.is_violation:
            return None

        violation = ComplianceViolation(
            driver_id=weekly.driver_id,
            time_card=time_card,
            violation_date=weekly.window_end,
            violation_type='WEEKLY_LIMIT_EXCEEDED',
            severity='CRITICAL',
            description=(
                f'{weekly.window_days}-day on-duty total of {weekly.total_on_duty_hours} hours '
                f'exceeds {weekly.hour_limit}-hour limit'
            ),
            measured_value=weekly.total_on_duty_hours,
            limit_value=weekly.hour_limit,
        )
        logger.warning(f"Driver {weekly.driver_id} {weekly.window_end}: {violation.description}")
        return violation

    def _violation(self, time_card, violation_type, severity, description, measured, limit):
        return ComplianceViolation(
            driver_id=time_card.driver_id,
            time_card=time_card,
            violation_date=time_card.work_date,
            violation_type=violation_type,
            severity=severity,
            description=description,
            measured_value=measured,
            limit_value=limit,
        )


class TimeCardLedger:
    """
    Service owning the clock-in/clock-out lifecycle of time cards.
    """

    def __init__(self, rules=None, distance_tracker=None, exemption_tracker=None, evaluator=None):
        self.rules = rules or ComplianceRules.from_settings()
        self.distance_tracker = distance_tracker or DistanceTracker(self.rules)
        self.exemption_tracker = exemption_tracker or ExemptionTracker(self.rules)
        self.evaluator = evaluator or HOSLimitEvaluator(self.rules)

    @storage_guard
    def clock_in(self, driver_id, vehicle_id, timestamp, location=None, notes='', start_odometer=None,
                 force_close_previous=False):
        """
        Open a time card for the driver's current calendar day.

        Args:
            driver_id: Roster driver id
            vehicle_id: Roster vehicle id
            timestamp: Aware clock-in datetime
            location: Optional (lat, lng) pair or Coordinate
            notes: Free-text notes
            start_odometer: Optional odometer reading
            force_close_previous: Auto-close an open card from an earlier day
                even if it is not stale yet (supervisor override)

        Returns:
            The new OPEN TimeCard
        """
        coordinate = to_coordinate(location) if location is not None else None
        driver = self._get_driver(driver_id)
        if not driver.is_active:
            raise DriverInactive(f"Driver {driver.name} is not active", driver_id=driver.id)
        vehicle = self._get_vehicle(vehicle_id)
        if not vehicle.is_active:
            raise VehicleUnavailable(
                f"Vehicle #{vehicle.vehicle_number} is not available for service",
                vehicle_id=vehicle.id
            )

        work_date = local_date(timestamp)
        label = describe_location(coordinate) if coordinate else ''

        with transaction.atomic():
            self._close_previous_day_card(driver, timestamp, work_date, force=force_close_previous)
            self._ensure_can_clock_in(driver, vehicle, work_date)

            try:
                with transaction.atomic():
                    time_card = TimeCard.objects.create(
                        driver=driver,
                        vehicle=vehicle,
                        work_date=work_date,
                        status='OPEN',
                        clock_in_time=timestamp,
                        clock_in_latitude=Decimal(str(coordinate.latitude)) if coordinate else None,
                        clock_in_longitude=Decimal(str(coordinate.longitude)) if coordinate else None,
                        clock_in_accuracy=coordinate.accuracy if coordinate else None,
                        clock_in_location_label=label,
                        start_odometer=start_odometer,
                        notes=notes or '',
                    )
            except IntegrityError as e:
                raise self._classify_conflict(driver, vehicle, work_date) from e

            self.distance_tracker.start_day(time_card, coordinate)
            self._audit(
                time_card,
                'CLOCK_IN',
                f'Clocked in with vehicle #{vehicle.vehicle_number}',
                actor_name=driver.name,
                new_values=self._snapshot(time_card),
            )

        logger.info(f"Driver {driver.id} clocked in on {work_date} with vehicle {vehicle.id} (time card {time_card.id})")
        return time_card

    @storage_guard
    def record_waypoint(self, driver_id, timestamp, location):
        """
        Append a GPS sample to the driver's open day.

        Returns the waypoint, or None when the driver is not on duty.
        """
        coordinate = to_coordinate(location)
        driver = self._get_driver(driver_id)

        time_card = self._open_card_for_driver(driver)
        if time_card is None or timestamp < time_card.clock_in_time:
            logger.debug(f"Discarding waypoint for driver {driver.id} at {timestamp}: not on duty")
            return None

        with transaction.atomic():
            trip = self.distance_tracker.get_trip(driver, time_card.work_date)
            return self.distance_tracker.record(trip, timestamp, coordinate)

    @storage_guard
    def clock_out(self, driver_id, timestamp, location=None, signature='', notes='', end_odometer=None):
        """
        Close the driver's open time card and evaluate the day.

        Violations found are recorded and returned; they never block the clock-out.
        """
        coordinate = to_coordinate(location) if location is not None else None
        if self.rules.require_clock_out_signature and not (signature or '').strip():
            raise SignatureRequired()
        driver = self._get_driver(driver_id)

        with transaction.atomic():
            time_card = TimeCard.objects.select_for_update().filter(
                driver=driver,
                clock_out_time__isnull=True
            ).first()
            if time_card is None:
                raise NoOpenTimeCard(f"Driver {driver.name} has no open time card", driver_id=driver.id)
            if timestamp <= time_card.clock_in_time:
                raise ClockOutBeforeClockIn(
                    f"Clock-out {timestamp.isoformat()} is not after clock-in {time_card.clock_in_time.isoformat()}",
                    time_card_id=time_card.id
                )
            if (end_odometer is not None and time_card.start_odometer is not None
                    and end_odometer < time_card.start_odometer):
                raise InvalidOdometerReading(
                    f"Ending odometer {end_odometer} is below starting odometer {time_card.start_odometer}",
                    time_card_id=time_card.id
                )

            if coordinate:
                trip = self.distance_tracker.get_trip(driver, time_card.work_date)
                self.distance_tracker.record(trip, timestamp, coordinate)
                time_card.clock_out_latitude = Decimal(str(coordinate.latitude))
                time_card.clock_out_longitude = Decimal(str(coordinate.longitude))
                time_card.clock_out_accuracy = coordinate.accuracy

            time_card.clock_out_signature = signature or ''
            time_card.end_odometer = end_odometer
            time_card.notes = self._append_note(time_card.notes, notes)
            time_card.record_clock_out(timestamp)
            time_card.save()

            self._audit(
                time_card,
                'CLOCK_OUT',
                f'Clocked out after {time_card.on_duty_hours} hours',
                actor_name=driver.name,
                new_values=self._snapshot(time_card),
            )
            result = self._complete(time_card)

        logger.info(
            f"Driver {driver.id} clocked out of time card {time_card.id}: "
            f"{result.hours_worked}h, {len(result.violations)} violation(s)"
        )
        return result

    @storage_guard
    def close_stale_time_cards(self, now=None, driver=None):
        """
        Close cards left open past the stale threshold at the end of their work day.

        Staleness here is measured from the clock-in, so an overnight shift
        still in progress is left alone.

        Returns:
            List of auto-closed TimeCards
        """
        now = now or timezone.now()
        cutoff = now - timedelta(hours=self.rules.stale_time_card_hours)

        queryset = TimeCard.objects.filter(clock_out_time__isnull=True, clock_in_time__lt=cutoff)
        if driver is not None:
            queryset = queryset.filter(driver=driver)

        closed = []
        for time_card in queryset.select_related('driver').order_by('clock_in_time'):
            self._auto_close(
                time_card,
                f'Automatically closed after more than {self.rules.stale_time_card_hours} hours open'
            )
            closed.append(time_card)

        return closed

    def _close_previous_day_card(self, driver, now, work_date, force=False):
        """
        Auto-close the driver's open card from an earlier day before a new clock-in.

        The card is stale once more than the stale threshold has passed since
        the start of its work date; ``force`` closes it regardless.
        """
        time_card = TimeCard.objects.select_related('driver').filter(
            driver=driver,
            clock_out_time__isnull=True,
            work_date__lt=work_date,
        ).first()
        if time_card is None:
            return None

        stale_after = start_of_local_day(time_card.work_date) + timedelta(hours=self.rules.stale_time_card_hours)
        if not force and now <= stale_after:
            return None

        if force:
            description = 'Closed on clock-in by supervisor override'
        else:
            description = f'Automatically closed more than {self.rules.stale_time_card_hours} hours after its work day began'
        return self._auto_close(time_card, description)

    def _auto_close(self, time_card, description):
        with transaction.atomic():
            close_at = max(
                end_of_local_day(time_card.work_date),
                time_card.clock_in_time + timedelta(seconds=1)
            )
            time_card.record_clock_out(close_at, status='AUTO_CLOSED')
            time_card.clock_out_signature = AUTO_CLOSE_SIGNATURE
            time_card.notes = self._append_note(
                time_card.notes,
                f'Auto-closed at end of {time_card.work_date}: driver did not clock out'
            )
            time_card.save()

            self._audit(
                time_card,
                'AUTO_CLOSE',
                description,
                actor_name='System',
                new_values=self._snapshot(time_card),
            )
            self._complete(time_card)

        logger.warning(
            f"Auto-closed stale time card {time_card.id} for driver {time_card.driver_id} ({time_card.work_date})"
        )
        return time_card

    @storage_guard
    def correct_time_card(self, time_card_id, clock_in_time, clock_out_time, reason, corrected_by='', notes=None):
        """
        Supersede a completed time card with corrected times.

        The original card is kept and flagged as superseded; aggregates for
        the affected dates are recomputed from scratch.
        """
        if not (reason or '').strip():
            raise CorrectionReasonRequired()
        if clock_out_time <= clock_in_time:
            raise ClockOutBeforeClockIn()

        with transaction.atomic():
            try:
                original = TimeCard.objects.select_for_update().get(pk=time_card_id)
            except TimeCard.DoesNotExist:
                raise TimeCardNotFound(f"Time card {time_card_id} not found", time_card_id=time_card_id)

            if original.is_open:
                raise TimeCardNotClosed(time_card_id=original.id)
            if original.is_superseded:
                raise TimeCardSuperseded(time_card_id=original.id)

            work_date = local_date(clock_in_time)
            if work_date != original.work_date and TimeCard.objects.filter(
                driver_id=original.driver_id, work_date=work_date, is_superseded=False
            ).exists():
                raise DayAlreadyClosed(
                    f"Driver already has a time card on {work_date}",
                    driver_id=original.driver_id
                )

            old_values = self._snapshot(original)
            original.is_superseded = True
            original.save(update_fields=['is_superseded', 'updated_at'])

            corrected = TimeCard(
                driver=original.driver,
                vehicle=original.vehicle,
                work_date=work_date,
                clock_in_time=clock_in_time,
                clock_in_latitude=original.clock_in_latitude,
                clock_in_longitude=original.clock_in_longitude,
                clock_in_accuracy=original.clock_in_accuracy,
                clock_in_location_label=original.clock_in_location_label,
                clock_out_latitude=original.clock_out_latitude,
                clock_out_longitude=original.clock_out_longitude,
                clock_out_accuracy=original.clock_out_accuracy,
                clock_out_signature=original.clock_out_signature,
                start_odometer=original.start_odometer,
                end_odometer=original.end_odometer,
                notes=original.notes if notes is None else notes,
                is_historical_entry=original.is_historical_entry,
                historical_source=original.historical_source,
                supersedes=original,
            )
            corrected.record_clock_out(clock_out_time)
            corrected.save()

            new_values = self._snapshot(corrected)
            self._audit(
                original,
                'SUPERSEDED',
                f'Superseded by corrected time card {corrected.id}',
                actor_name=corrected_by,
                reason=reason,
                old_values=old_values,
            )
            self._audit(
                corrected,
                'CORRECTION',
                f'Correction of time card {original.id}',
                actor_name=corrected_by,
                reason=reason,
                old_values=old_values,
                new_values=new_values,
            )

            if work_date != original.work_date:
                self.distance_tracker.finalize(original.driver, original.work_date)
                self.exemption_tracker.recompute_through(original.driver, original.work_date)
                self.evaluator.evaluate_week(original.driver, original.work_date)

            result = self._complete(corrected)

        logger.info(f"Time card {original.id} corrected by {corrected_by or 'unknown'} as {corrected.id}: {reason}")
        return result

    @storage_guard
    def record_historical_entry(self, driver_id, vehicle_id, clock_in_time, clock_out_time,
                                furthest_point=None, historical_source='paper_form', notes='', entered_by=''):
        """
        Backfill a completed time card from a paper or spreadsheet record.

        A clock-out earlier in the day than the clock-in is read as an
        overnight shift ending the next day.
        """
        if clock_out_time < clock_in_time and clock_in_time - clock_out_time < timedelta(days=1):
            clock_out_time = clock_out_time + timedelta(days=1)
        if clock_out_time <= clock_in_time:
            raise ClockOutBeforeClockIn()

        furthest = to_coordinate(furthest_point) if furthest_point is not None else None
        driver = self._get_driver(driver_id)
        vehicle = self._get_vehicle(vehicle_id)
        work_date = local_date(clock_in_time)

        with transaction.atomic():
            if TimeCard.objects.filter(driver=driver, work_date=work_date, is_superseded=False).exists():
                raise DayAlreadyClosed(f"Driver already has a time card on {work_date}", driver_id=driver.id)

            time_card = TimeCard(
                driver=driver,
                vehicle=vehicle,
                work_date=work_date,
                clock_in_time=clock_in_time,
                clock_out_signature=f'HISTORICAL:{historical_source}',
                notes=notes or '',
                is_historical_entry=True,
                historical_source=historical_source,
            )
            time_card.record_clock_out(clock_out_time)
            try:
                with transaction.atomic():
                    time_card.save()
            except IntegrityError as e:
                raise DayAlreadyClosed(f"Driver already has a time card on {work_date}", driver_id=driver.id) from e

            if furthest is not None:
                trip = self.distance_tracker.get_trip(driver, work_date)
                midpoint = clock_in_time + (clock_out_time - clock_in_time) / 2
                self.distance_tracker.record(trip, midpoint, furthest)

            self._audit(
                time_card,
                'HISTORICAL_ENTRY',
                f'Historical entry from {time_card.get_historical_source_display() or historical_source}',
                actor_name=entered_by,
                new_values=self._snapshot(time_card),
            )
            result = self._complete(time_card)

        logger.info(f"Historical time card {time_card.id} recorded for driver {driver.id} on {work_date}")
        return result

    @storage_guard
    def actual_hours(self, driver_id, work_date):
        """
        Worked hours for invoicing, or None if the day has no completed time card.
        """
        driver = self._get_driver(driver_id)
        time_card = TimeCard.objects.filter(
            driver=driver,
            work_date=work_date,
            is_superseded=False,
            clock_out_time__isnull=False,
        ).first()
        return time_card.on_duty_hours if time_card else None

    def _complete(self, time_card):
        """
        Run the post-close pipeline for a card: trip, exemption, limits.
        """
        driver = time_card.driver
        trip = self.distance_tracker.finalize(driver, time_card.work_date)
        exemption, flipped = self.exemption_tracker.recompute_through(driver, time_card.work_date)

        violations = self.evaluator.evaluate_day(time_card)
        weekly = self.evaluator.evaluate_week(driver, time_card.work_date)
        weekly_violation = self.evaluator.weekly_violation(weekly, time_card)
        if weekly_violation is not None:
            violations.append(weekly_violation)
        exemption_violation = self.exemption_tracker.lost_violation(flipped, time_card) if flipped else None
        if exemption_violation is not None:
            violations.append(exemption_violation)

        if violations:
            ComplianceViolation.objects.bulk_create(violations)

        warnings = []
        if not trip.has_location_data:
            warnings.append({
                'code': 'NO_LOCATION_DATA',
                'message': f'No GPS location recorded on {time_card.work_date}; distance from base is unknown',
            })

        return ClockOutResult(
            time_card=time_card,
            hours_worked=time_card.on_duty_hours,
            violations=violations,
            warnings=warnings,
            daily_trip=trip,
            exemption=exemption,
            weekly=weekly,
        )

    def _ensure_can_clock_in(self, driver, vehicle, work_date):
        open_card = self._open_card_for_driver(driver)
        if open_card is not None:
            if open_card.work_date == work_date:
                raise AlreadyClockedIn(
                    f"Driver {driver.name} has been clocked in since {open_card.clock_in_time.isoformat()}",
                    time_card_id=open_card.id
                )
            raise IncompletePreviousTimeCard(
                f"Driver {driver.name} did not clock out on {open_card.work_date}",
                time_card_id=open_card.id
            )

        if TimeCard.objects.filter(driver=driver, work_date=work_date, is_superseded=False).exists():
            raise DayAlreadyClosed(f"Driver {driver.name} already completed a shift on {work_date}", driver_id=driver.id)

        holder = self._open_card_for_vehicle(vehicle)
        if holder is not None:
            raise VehicleInUse(
                f"Vehicle #{vehicle.vehicle_number} is in use by {holder.driver.name}",
                vehicle_id=vehicle.id
            )

    def _classify_conflict(self, driver, vehicle, work_date):
        """Map a unique-constraint failure on insert to the conflict that caused it."""
        open_card = self._open_card_for_driver(driver)
        if open_card is not None:
            return AlreadyClockedIn(f"Driver {driver.name} is already clocked in", time_card_id=open_card.id)
        if self._open_card_for_vehicle(vehicle) is not None:
            return VehicleInUse(f"Vehicle #{vehicle.vehicle_number} is already in use", vehicle_id=vehicle.id)
        if TimeCard.objects.filter(driver=driver, work_date=work_date, is_superseded=False).exists():
            return DayAlreadyClosed(driver_id=driver.id)
        logger.error(f"Unclassified integrity conflict clocking in driver {driver.id}")
        return StorageUnavailable()

    def _open_card_for_driver(self, driver):
        return TimeCard.objects.filter(driver=driver, clock_out_time__isnull=True).first()

    def _open_card_for_vehicle(self, vehicle):
        return TimeCard.objects.filter(vehicle=vehicle, clock_out_time__isnull=True).select_related('driver').first()

    def _get_driver(self, driver_id):
        try:
            return Driver.objects.get(pk=driver_id)
        except Driver.DoesNotExist:
            raise DriverNotFound(f"Driver {driver_id} not found", driver_id=driver_id)

    def _get_vehicle(self, vehicle_id):
        try:
            return Vehicle.objects.get(pk=vehicle_id)
        except Vehicle.DoesNotExist:
            raise VehicleNotFound(f"Vehicle {vehicle_id} not found", vehicle_id=vehicle_id)

    def _append_note(self, existing, addition):
        if not addition:
            return existing or ''
        return f"{existing}\n{addition}" if existing else addition

    def _snapshot(self, time_card):
        return {
            'work_date': time_card.work_date.isoformat(),
            'status': time_card.status,
            'clock_in_time': time_card.clock_in_time.isoformat(),
            'clock_out_time': time_card.clock_out_time.isoformat() if time_card.clock_out_time else None,
            'on_duty_hours': str(time_card.on_duty_hours) if time_card.on_duty_hours is not None else None,
            'vehicle_id': time_card.vehicle_id,
        }

    def _audit(self, time_card, action, description, actor_name='', reason='', old_values=None, new_values=None):
        return TimeCardAuditLog.objects.create(
            time_card=time_card,
            action=action,
            description=description,
            actor_name=actor_name or '',
            reason=reason or '',
            old_values=old_values,
            new_values=new_values,
        )


@dataclass
class LimitUsage:
    category: str
    used: Decimal
    limit: Decimal
    remaining: Decimal
    percent_used: Decimal
    level: str


@dataclass
class Alert:
    level: str
    code: str
    message: str


@dataclass
class StatusView:
    driver_id: int
    driver_name: str
    date: object
    clocked_in: bool
    hours_so_far: Decimal
    time_card: dict = None
    daily_trip: dict = None
    exemption: dict = None
    weekly: dict = None
    usage: list = field(default_factory=list)
    alerts: list = field(default_factory=list)

    def as_dict(self):
        return asdict(self)


ALERT_LEVEL_ORDER = {'critical': 0, 'warning': 1}

# Persisted violations already represented by a usage category alert.
USAGE_VIOLATION_TYPES = {
    'DRIVING_LIMIT_EXCEEDED', 'ON_DUTY_LIMIT_EXCEEDED', 'WEEKLY_LIMIT_EXCEEDED', 'EXEMPTION_LOST',
}

USAGE_LABELS = {
    'daily_driving': 'Daily driving',
    'daily_on_duty': 'Daily on-duty',
    'weekly_on_duty': 'Weekly on-duty',
    'exemption_window': 'Radius exceedance days',
}


class ComplianceStatusService:
    """
    Composes the ledger, trackers and evaluator into one read model per driver.
    """

    def __init__(self, rules=None, ledger=None):
        self.rules = rules or ComplianceRules.from_settings()
        self.ledger = ledger or TimeCardLedger(self.rules)

    @storage_guard
    @transaction.atomic
    def today_status(self, driver_id, now=None):
        now = now or timezone.now()
        driver = self.ledger._get_driver(driver_id)
        today = local_date(now)

        time_card = self.ledger._open_card_for_driver(driver) or TimeCard.objects.filter(
            driver=driver, work_date=today, is_superseded=False
        ).first()

        hours_so_far = time_card.hours_so_far(now) if time_card else ZERO_HOURS
        driving_hours = hours_so_far if time_card is None or time_card.is_open else time_card.driving_hours
        live_hours = hours_so_far if time_card is not None and time_card.is_open else ZERO_HOURS

        trip_date = time_card.work_date if time_card is not None and time_card.is_open else today
        trip = DailyTrip.objects.filter(driver=driver, trip_date=trip_date).first()
        exemption = self.ledger.exemption_tracker.recompute(driver, today)
        weekly = self.ledger.evaluator.evaluate_week(driver, today, live_hours=live_hours)

        usage = [
            self._usage('daily_driving', driving_hours, self.rules.max_driving_hours_per_day),
            self._usage('daily_on_duty', hours_so_far, self.rules.max_on_duty_hours_per_day),
            self._usage('weekly_on_duty', weekly.total_on_duty_hours, weekly.hour_limit),
            self._usage(
                'exemption_window',
                Decimal(exemption.exceedance_days),
                Decimal(self.rules.max_exceedance_days)
            ),
        ]

        alerts = [self._usage_alert(item) for item in usage if item.level != 'ok']
        if exemption.requires_detailed_logs:
            alerts.append(Alert(
                'critical',
                'DETAILED_LOGS_REQUIRED',
                f'{exemption.exceedance_days} exceedance days in the last {self.rules.exemption_window_days} days; '
                f'detailed duty logs are required'
            ))
        if trip is not None and trip.finalized_at and not trip.has_location_data:
            alerts.append(Alert('warning', 'NO_LOCATION_DATA', f'No GPS location recorded on {trip.trip_date}'))
        if trip is not None and trip.exceeded_radius:
            alerts.append(Alert(
                'warning',
                'RADIUS_EXCEEDED_TODAY',
                f'{trip.max_distance_air_miles} air-miles from base today '
                f'(radius: {self.rules.exemption_radius_air_miles})'
            ))

        todays_violations = ComplianceViolation.objects.filter(
            driver=driver,
            violation_date=today,
            is_resolved=False,
        ).exclude(time_card__is_superseded=True).exclude(violation_type__in=USAGE_VIOLATION_TYPES)
        for violation in todays_violations:
            alerts.append(Alert('critical', violation.violation_type, violation.description))

        alerts.sort(key=lambda alert: ALERT_LEVEL_ORDER[alert.level])

        return StatusView(
            driver_id=driver.id,
            driver_name=driver.name,
            date=today,
            clocked_in=bool(time_card and time_card.is_open),
            hours_so_far=hours_so_far,
            time_card=self._time_card_summary(time_card),
            daily_trip=self._trip_summary(trip),
            exemption={
                'window_start': exemption.window_start,
                'window_end': exemption.window_end,
                'exceedance_days': exemption.exceedance_days,
                'exceedance_dates': exemption.exceedance_dates,
                'requires_detailed_logs': exemption.requires_detailed_logs,
                'remaining_exceedance_days': self.ledger.exemption_tracker.remaining_exceedance_days(exemption),
            },
            weekly={
                'window_start': weekly.window_start,
                'window_end': weekly.window_end,
                'window_days': weekly.window_days,
                'total_on_duty_hours': weekly.total_on_duty_hours,
                'hour_limit': weekly.hour_limit,
                'remaining_hours': weekly.remaining_hours,
                'is_violation': weekly.is_violation,
            },
            usage=usage,
            alerts=alerts,
        )

    def _usage(self, category, used, limit):
        used = Decimal(used or 0)
        limit = Decimal(limit)
        if limit > 0:
            percent = (used / limit * 100).quantize(PERCENT_QUANTUM, rounding=ROUND_HALF_UP)
        else:
            percent = Decimal('0.0')

        if percent >= self.rules.critical_threshold_percent:
            level = 'critical'
        elif percent >= self.rules.warning_threshold_percent:
            level = 'warning'
        else:
            level = 'ok'

        return LimitUsage(
            category=category,
            used=used,
            limit=limit,
            remaining=max(limit - used, Decimal('0')),
            percent_used=percent,
            level=level,
        )

    def _usage_alert(self, usage):
        label = USAGE_LABELS[usage.category]
        return Alert(
            usage.level,
            f'{usage.category.upper()}_LIMIT',
            f'{label} at {usage.percent_used}% of limit ({usage.used} of {usage.limit})'
        )

    def _time_card_summary(self, time_card):
        if time_card is None:
            return None
        return {
            'id': time_card.id,
            'status': time_card.status,
            'work_date': time_card.work_date,
            'vehicle_id': time_card.vehicle_id,
            'clock_in_time': time_card.clock_in_time,
            'clock_out_time': time_card.clock_out_time,
            'on_duty_hours': time_card.on_duty_hours,
        }

    def _trip_summary(self, trip):
        if trip is None:
            return None
        return {
            'trip_date': trip.trip_date,
            'max_distance_air_miles': trip.max_distance_air_miles,
            'exceeded_radius': trip.exceeded_radius,
            'has_location_data': trip.has_location_data,
            'waypoint_count': trip.waypoint_count,
        }
