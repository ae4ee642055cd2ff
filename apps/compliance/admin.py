"""
Admin configuration for the compliance app.

Compliance records are evidence: the admin shows them but never deletes them.
Corrections go through the time-card correction endpoint so they are audited.
"""
from django.contrib import admin
from .models import (
    TimeCard, DailyTrip, GpsWaypoint, MonthlyExemptionStatus, WeeklyHOS,
    ComplianceViolation, TimeCardAuditLog
)


class ReadOnlyAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ComplianceViolationInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = ComplianceViolation
    extra = 0
    fields = ['violation_type', 'severity', 'description', 'detected_at', 'is_resolved']
    readonly_fields = fields


class TimeCardAuditLogInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = TimeCardAuditLog
    extra = 0
    fields = ['action', 'description', 'actor_name', 'reason', 'created_at']
    readonly_fields = fields


class GpsWaypointInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = GpsWaypoint
    extra = 0
    fields = ['recorded_at', 'latitude', 'longitude', 'accuracy', 'distance_from_base']
    readonly_fields = fields


@admin.register(TimeCard)
class TimeCardAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        'id', 'work_date', 'driver', 'vehicle', 'status', 'clock_in_time',
        'clock_out_time', 'on_duty_hours', 'is_historical_entry', 'is_superseded'
    ]
    list_filter = ['status', 'is_historical_entry', 'is_superseded', 'work_date']
    search_fields = ['driver__name', 'vehicle__vehicle_number', 'notes']
    inlines = [ComplianceViolationInline, TimeCardAuditLogInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('driver', 'vehicle', 'work_date', 'status')
        }),
        ('Clock In', {
            'fields': (
                'clock_in_time', 'clock_in_location_label',
                ('clock_in_latitude', 'clock_in_longitude', 'clock_in_accuracy'),
                'start_odometer'
            )
        }),
        ('Clock Out', {
            'fields': (
                'clock_out_time',
                ('clock_out_latitude', 'clock_out_longitude', 'clock_out_accuracy'),
                'end_odometer', 'clock_out_signature'
            )
        }),
        ('Hours', {
            'fields': ('on_duty_hours', 'driving_hours')
        }),
        ('History', {
            'fields': ('is_historical_entry', 'historical_source', 'is_superseded', 'supersedes', 'notes')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]


@admin.register(DailyTrip)
class DailyTripAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        'trip_date', 'driver', 'max_distance_air_miles', 'exceeded_radius',
        'has_location_data', 'waypoint_count'
    ]
    list_filter = ['exceeded_radius', 'has_location_data', 'trip_date']
    search_fields = ['driver__name']
    inlines = [GpsWaypointInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]


@admin.register(MonthlyExemptionStatus)
class MonthlyExemptionStatusAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        'driver', 'window_start', 'window_end', 'exceedance_days',
        'requires_detailed_logs', 'computed_at'
    ]
    list_filter = ['requires_detailed_logs', 'window_end']
    search_fields = ['driver__name']
    readonly_fields = [
        'driver', 'window_start', 'window_end', 'exceedance_days',
        'exceedance_dates', 'requires_detailed_logs', 'computed_at',
        'created_at', 'updated_at'
    ]


@admin.register(WeeklyHOS)
class WeeklyHOSAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = [
        'driver', 'window_start', 'window_end', 'total_on_duty_hours',
        'hour_limit', 'is_violation'
    ]
    list_filter = ['is_violation', 'window_days']
    search_fields = ['driver__name']
    readonly_fields = [
        'driver', 'window_start', 'window_end', 'window_days',
        'total_on_duty_hours', 'hour_limit', 'is_violation',
        'created_at', 'updated_at'
    ]


@admin.register(ComplianceViolation)
class ComplianceViolationAdmin(admin.ModelAdmin):
    list_display = [
        'violation_date', 'driver', 'violation_type', 'severity',
        'measured_value', 'limit_value', 'is_resolved'
    ]
    list_filter = ['violation_type', 'severity', 'is_resolved', 'violation_date']
    search_fields = ['driver__name', 'description']
    readonly_fields = [
        'driver', 'time_card', 'violation_date', 'violation_type', 'severity',
        'description', 'measured_value', 'limit_value', 'detected_at',
        'created_at', 'updated_at'
    ]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(TimeCardAuditLog)
class TimeCardAuditLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ['time_card', 'action', 'actor_name', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['time_card__driver__name', 'actor_name', 'description', 'reason']
    readonly_fields = [
        'time_card', 'action', 'description', 'actor_name', 'reason',
        'old_values', 'new_values', 'created_at', 'updated_at'
    ]
