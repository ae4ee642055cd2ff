"""
Serializers for the compliance app.
"""
from rest_framework import serializers
from apps.core.serializers import DriverSummarySerializer
from .models import (
    TimeCard, DailyTrip, GpsWaypoint, MonthlyExemptionStatus, WeeklyHOS,
    ComplianceViolation, TimeCardAuditLog
)


class ComplianceViolationSerializer(serializers.ModelSerializer):
    """
    Serializer for ComplianceViolation model.
    """
    violation_type_display = serializers.CharField(source='get_violation_type_display', read_only=True)
    severity_display = serializers.CharField(source='get_severity_display', read_only=True)

    class Meta:
        model = ComplianceViolation
        fields = [
            'id', 'driver', 'time_card', 'violation_date', 'violation_type',
            'violation_type_display', 'severity', 'severity_display',
            'description', 'measured_value', 'limit_value', 'detected_at',
            'is_resolved', 'resolution_notes'
        ]


class TimeCardAuditLogSerializer(serializers.ModelSerializer):
    action_display = serializers.CharField(source='get_action_display', read_only=True)

    class Meta:
        model = TimeCardAuditLog
        fields = [
            'id', 'action', 'action_display', 'description', 'actor_name',
            'reason', 'old_values', 'new_values', 'created_at'
        ]


class TimeCardSerializer(serializers.ModelSerializer):
    """
    Serializer for TimeCard model.
    """
    driver = DriverSummarySerializer(read_only=True)
    vehicle_number = serializers.CharField(source='vehicle.vehicle_number', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    miles_driven = serializers.IntegerField(read_only=True)
    superseded_by = serializers.SerializerMethodField()

    class Meta:
        model = TimeCard
        fields = [
            'id', 'driver', 'vehicle', 'vehicle_number', 'work_date',
            'status', 'status_display',
            'clock_in_time', 'clock_in_latitude', 'clock_in_longitude',
            'clock_in_accuracy', 'clock_in_location_label',
            'clock_out_time', 'clock_out_latitude', 'clock_out_longitude',
            'clock_out_accuracy', 'on_duty_hours', 'driving_hours',
            'start_odometer', 'end_odometer', 'miles_driven', 'notes',
            'is_historical_entry', 'historical_source',
            'is_superseded', 'supersedes', 'superseded_by',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_superseded_by(self, obj):
        if not obj.is_superseded:
            return None
        successor = TimeCard.objects.filter(supersedes=obj).values_list('id', flat=True).first()
        return successor


class GpsWaypointSerializer(serializers.ModelSerializer):
    class Meta:
        model = GpsWaypoint
        fields = ['id', 'recorded_at', 'latitude', 'longitude', 'accuracy', 'distance_from_base']


class DailyTripSerializer(serializers.ModelSerializer):
    """
    Serializer for DailyTrip model.
    """

    class Meta:
        model = DailyTrip
        fields = [
            'id', 'trip_date', 'base_latitude', 'base_longitude',
            'furthest_latitude', 'furthest_longitude', 'max_distance_air_miles',
            'exceeded_radius', 'has_location_data', 'waypoint_count', 'finalized_at'
        ]


class MonthlyExemptionStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = MonthlyExemptionStatus
        fields = [
            'window_start', 'window_end', 'exceedance_days', 'exceedance_dates',
            'requires_detailed_logs', 'computed_at'
        ]


class WeeklyHOSSerializer(serializers.ModelSerializer):
    remaining_hours = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)

    class Meta:
        model = WeeklyHOS
        fields = [
            'window_start', 'window_end', 'window_days', 'total_on_duty_hours',
            'hour_limit', 'remaining_hours', 'is_violation'
        ]


class LocationInputSerializer(serializers.Serializer):
    """
    GPS fix submitted by the driver app. Range checks happen in the services
    so every caller gets the same InvalidCoordinate error.
    """
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    accuracy = serializers.FloatField(required=False, allow_null=True)


class ClockInSerializer(serializers.Serializer):
    driver_id = serializers.IntegerField()
    vehicle_id = serializers.IntegerField()
    timestamp = serializers.DateTimeField(required=False)
    location = LocationInputSerializer(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    start_odometer = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    force_close_previous = serializers.BooleanField(required=False, default=False)


class WaypointSerializer(serializers.Serializer):
    driver_id = serializers.IntegerField()
    timestamp = serializers.DateTimeField(required=False)
    location = LocationInputSerializer()


class ClockOutSerializer(serializers.Serializer):
    driver_id = serializers.IntegerField()
    timestamp = serializers.DateTimeField(required=False)
    location = LocationInputSerializer(required=False, allow_null=True)
    signature = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    end_odometer = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class TimeCardCorrectionSerializer(serializers.Serializer):
    clock_in_time = serializers.DateTimeField()
    clock_out_time = serializers.DateTimeField()
    reason = serializers.CharField()
    corrected_by = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class HistoricalEntrySerializer(serializers.Serializer):
    driver_id = serializers.IntegerField()
    vehicle_id = serializers.IntegerField()
    clock_in_time = serializers.DateTimeField()
    clock_out_time = serializers.DateTimeField()
    furthest_point = LocationInputSerializer(required=False, allow_null=True)
    historical_source = serializers.ChoiceField(choices=TimeCard.HISTORICAL_SOURCES, default='paper_form')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    entered_by = serializers.CharField(required=False, allow_blank=True, default='')
