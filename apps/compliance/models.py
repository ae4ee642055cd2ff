"""
Compliance models: time cards, daily trips, rolling exemption and weekly HOS aggregates.
"""
from decimal import Decimal, ROUND_HALF_UP
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from apps.core.models import BaseModel, Driver, Vehicle

HOURS_QUANTUM = Decimal('0.01')


def elapsed_hours(start, end):
    """Hours between two timestamps, rounded half-up to two decimal places."""
    seconds = Decimal((end - start).total_seconds())
    return (seconds / Decimal(3600)).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


class TimeCard(BaseModel):
    """
    A driver's worked interval for one calendar day.
    """
    STATUS_CHOICES = [
        ('OPEN', 'On Duty'),
        ('CLOSED', 'Completed'),
        ('AUTO_CLOSED', 'Auto-closed'),
    ]

    HISTORICAL_SOURCES = [
        ('paper_form', 'Paper Form'),
        ('spreadsheet', 'Spreadsheet'),
        ('manual_entry', 'Manual Entry'),
    ]

    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        related_name='time_cards'
    )
    vehicle = models.ForeignKey(
        Vehicle,
        on_delete=models.PROTECT,
        related_name='time_cards'
    )
    work_date = models.DateField(help_text="Calendar date in the carrier's timezone")
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='OPEN')

    # Clock-in
    clock_in_time = models.DateTimeField()
    clock_in_latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    clock_in_longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    clock_in_accuracy = models.FloatField(null=True, blank=True, help_text="GPS accuracy in meters")
    clock_in_location_label = models.CharField(max_length=255, blank=True)

    # Clock-out
    clock_out_time = models.DateTimeField(null=True, blank=True)
    clock_out_latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    clock_out_longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    clock_out_accuracy = models.FloatField(null=True, blank=True)
    clock_out_signature = models.TextField(blank=True, help_text="Opaque signature reference")

    # Computed at clock-out
    on_duty_hours = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    driving_hours = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    start_odometer = models.PositiveIntegerField(null=True, blank=True)
    end_odometer = models.PositiveIntegerField(null=True, blank=True)

    notes = models.TextField(blank=True)

    # Backfill and corrections
    is_historical_entry = models.BooleanField(default=False)
    historical_source = models.CharField(max_length=20, choices=HISTORICAL_SOURCES, blank=True)
    is_superseded = models.BooleanField(default=False)
    supersedes = models.OneToOneField(
        'self',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='superseded_by'
    )

    class Meta:
        db_table = 'compliance_time_card'
        ordering = ['-work_date', '-clock_in_time']
        constraints = [
            models.UniqueConstraint(
                fields=['driver'],
                condition=Q(clock_out_time__isnull=True),
                name='uniq_open_time_card_per_driver',
            ),
            models.UniqueConstraint(
                fields=['vehicle'],
                condition=Q(clock_out_time__isnull=True),
                name='uniq_open_time_card_per_vehicle',
            ),
            models.UniqueConstraint(
                fields=['driver', 'work_date'],
                condition=Q(is_superseded=False),
                name='uniq_active_time_card_per_driver_day',
            ),
            models.CheckConstraint(
                condition=Q(clock_out_time__isnull=True) | Q(clock_out_time__gt=F('clock_in_time')),
                name='time_card_clock_out_after_clock_in',
            ),
        ]
        indexes = [
            models.Index(fields=['driver', 'work_date'], name='time_card_driver_date_idx'),
            models.Index(fields=['status'], name='time_card_status_idx'),
        ]

    def __str__(self):
        return f"Time Card - {self.driver.name} - {self.work_date} ({self.status})"

    @property
    def is_open(self):
        return self.clock_out_time is None

    @property
    def miles_driven(self):
        if self.start_odometer is None or self.end_odometer is None:
            return None
        return self.end_odometer - self.start_odometer

    def hours_so_far(self, now=None):
        """On-duty hours, using the live elapsed time while the card is open."""
        if not self.is_open:
            return self.on_duty_hours
        now = now or timezone.now()
        if now <= self.clock_in_time:
            return Decimal('0.00')
        return elapsed_hours(self.clock_in_time, now)

    def record_clock_out(self, clock_out_time, status='CLOSED'):
        """Close the interval and compute hours; driving time equals on-duty time."""
        self.clock_out_time = clock_out_time
        self.status = status
        self.on_duty_hours = elapsed_hours(self.clock_in_time, clock_out_time)
        self.driving_hours = self.on_duty_hours


class DailyTrip(BaseModel):
    """
    Furthest distance from base a driver reached on a calendar day.
    """
    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        related_name='daily_trips'
    )
    trip_date = models.DateField()

    base_latitude = models.DecimalField(max_digits=10, decimal_places=7)
    base_longitude = models.DecimalField(max_digits=10, decimal_places=7)
    furthest_latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    furthest_longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)

    max_distance_air_miles = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        default=Decimal('0.00')
    )
    exceeded_radius = models.BooleanField(default=False)
    has_location_data = models.BooleanField(default=False)
    waypoint_count = models.PositiveIntegerField(default=0)
    finalized_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'compliance_daily_trip'
        ordering = ['-trip_date']
        constraints = [
            models.UniqueConstraint(fields=['driver', 'trip_date'], name='uniq_daily_trip_per_driver_day'),
        ]

    def __str__(self):
        return f"Daily Trip - {self.driver.name} - {self.trip_date} ({self.max_distance_air_miles} nm)"


class GpsWaypoint(models.Model):
    """
    A GPS sample recorded while a driver was on duty.
    """
    daily_trip = models.ForeignKey(
        DailyTrip,
        on_delete=models.CASCADE,
        related_name='waypoints'
    )
    recorded_at = models.DateTimeField()
    latitude = models.DecimalField(max_digits=10, decimal_places=7)
    longitude = models.DecimalField(max_digits=10, decimal_places=7)
    accuracy = models.FloatField(null=True, blank=True)
    distance_from_base = models.DecimalField(max_digits=8, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'compliance_gps_waypoint'
        ordering = ['daily_trip', 'recorded_at']
        constraints = [
            models.UniqueConstraint(fields=['daily_trip', 'recorded_at'], name='uniq_waypoint_per_timestamp'),
        ]

    def __str__(self):
        return f"({self.latitude}, {self.longitude}) @ {self.recorded_at}"


class MonthlyExemptionStatus(BaseModel):
    """
    Radius-exemption standing over a trailing window of calendar days.
    """
    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        related_name='exemption_statuses'
    )
    window_start = models.DateField()
    window_end = models.DateField(help_text="As-of date the window was evaluated for")
    exceedance_days = models.PositiveIntegerField(default=0)
    exceedance_dates = models.JSONField(default=list, blank=True)
    requires_detailed_logs = models.BooleanField(default=False)
    computed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'compliance_monthly_exemption_status'
        ordering = ['-window_end']
        constraints = [
            models.UniqueConstraint(fields=['driver', 'window_start'], name='uniq_exemption_status_window'),
        ]

    def __str__(self):
        flag = 'detailed logs' if self.requires_detailed_logs else 'exempt'
        return f"{self.driver.name} {self.window_start}..{self.window_end}: {self.exceedance_days} days ({flag})"


class WeeklyHOS(BaseModel):
    """
    Cumulative on-duty hours over the rolling 7- or 8-day window ending on window_end.
    """
    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        related_name='weekly_hos'
    )
    window_start = models.DateField()
    window_end = models.DateField()
    window_days = models.PositiveSmallIntegerField()
    total_on_duty_hours = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal('0.00'))
    hour_limit = models.DecimalField(max_digits=5, decimal_places=2)
    is_violation = models.BooleanField(default=False)

    class Meta:
        db_table = 'compliance_weekly_hos'
        ordering = ['-window_end']
        constraints = [
            models.UniqueConstraint(fields=['driver', 'window_end'], name='uniq_weekly_hos_window'),
        ]

    def __str__(self):
        return f"{self.driver.name} {self.window_start}..{self.window_end}: {self.total_on_duty_hours}/{self.hour_limit} h"

    @property
    def remaining_hours(self):
        return max(self.hour_limit - self.total_on_duty_hours, Decimal('0.00'))


class ComplianceViolation(BaseModel):
    """
    A recorded hours-of-service or exemption violation.
    """
    VIOLATION_TYPES = [
        ('DRIVING_LIMIT_EXCEEDED', 'Daily driving limit exceeded'),
        ('ON_DUTY_LIMIT_EXCEEDED', 'Daily on-duty limit exceeded'),
        ('INSUFFICIENT_OFF_DUTY', 'Insufficient off-duty time'),
        ('WEEKLY_LIMIT_EXCEEDED', 'Weekly on-duty limit exceeded'),
        ('EXEMPTION_LOST', 'Radius exemption lost'),
    ]

    SEVERITY_CHOICES = [
        ('HIGH', 'High'),
        ('CRITICAL', 'Critical'),
    ]

    driver = models.ForeignKey(
        Driver,
        on_delete=models.PROTECT,
        related_name='compliance_violations'
    )
    time_card = models.ForeignKey(
        TimeCard,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='violations'
    )
    violation_date = models.DateField()
    violation_type = models.CharField(max_length=30, choices=VIOLATION_TYPES)
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES)
    description = models.TextField()
    measured_value = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    limit_value = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    detected_at = models.DateTimeField(default=timezone.now)

    is_resolved = models.BooleanField(default=False)
    resolution_notes = models.TextField(blank=True)

    class Meta:
        db_table = 'compliance_violation'
        ordering = ['-violation_date', '-detected_at']
        indexes = [
            models.Index(fields=['driver', 'violation_date'], name='violation_driver_date_idx'),
        ]

    def __str__(self):
        return f"{self.get_violation_type_display()} - {self.driver.name} - {self.violation_date}"


class TimeCardAuditLog(BaseModel):
    """
    Append-only audit trail for time card changes.
    """
    ACTION_CHOICES = [
        ('CLOCK_IN', 'Clocked In'),
        ('CLOCK_OUT', 'Clocked Out'),
        ('AUTO_CLOSE', 'Auto-closed'),
        ('CORRECTION', 'Correction Entered'),
        ('SUPERSEDED', 'Superseded by Correction'),
        ('HISTORICAL_ENTRY', 'Historical Entry'),
    ]

    time_card = models.ForeignKey(
        TimeCard,
        on_delete=models.PROTECT,
        related_name='audit_entries'
    )
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    description = models.TextField()
    actor_name = models.CharField(max_length=100, blank=True)
    reason = models.TextField(blank=True)
    old_values = models.JSONField(null=True, blank=True)
    new_values = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = 'compliance_time_card_audit_log'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_action_display()} - {self.created_at}"
