"""
Serializers for the roster models.
"""
from rest_framework import serializers
from .models import Driver, Vehicle


class DriverSerializer(serializers.ModelSerializer):
    """
    Read-only view of a roster driver.
    """

    class Meta:
        model = Driver
        fields = [
            'id', 'name', 'license_number', 'license_state',
            'phone', 'email', 'employee_id', 'is_active',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class VehicleSerializer(serializers.ModelSerializer):
    """
    Read-only view of a roster vehicle.
    """
    display_name = serializers.CharField(source='__str__', read_only=True)
    vehicle_type_display = serializers.CharField(source='get_vehicle_type_display', read_only=True)

    class Meta:
        model = Vehicle
        fields = [
            'id', 'display_name', 'vehicle_number', 'license_plate', 'vin',
            'make', 'model', 'year', 'vehicle_type', 'vehicle_type_display',
            'capacity', 'is_active'
        ]
        read_only_fields = fields


class DriverSummarySerializer(serializers.ModelSerializer):
    """Lightweight driver serializer for lists and references."""

    class Meta:
        model = Driver
        fields = ['id', 'name', 'employee_id', 'is_active']
