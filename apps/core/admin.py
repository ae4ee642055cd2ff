"""
Admin configuration for the roster models.
"""
from django.contrib import admin
from .models import Driver, Vehicle


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ['name', 'license_number', 'employee_id', 'phone', 'is_active', 'created_at']
    list_filter = ['is_active', 'license_state', 'created_at']
    search_fields = ['name', 'license_number', 'email', 'employee_id']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Basic Information', {
            'fields': (
                ('name', 'employee_id'),
                ('license_number', 'license_state'),
                ('phone', 'email'),
                'is_active'
            )
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = [
        'vehicle_number', 'license_plate', 'vehicle_type', 'capacity',
        'make', 'model', 'is_active'
    ]
    list_filter = ['vehicle_type', 'is_active', 'make']
    search_fields = ['vehicle_number', 'license_plate', 'vin']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Identification', {
            'fields': (
                ('vehicle_number', 'license_plate'),
                'vin',
                ('make', 'model', 'year')
            )
        }),
        ('Service', {
            'fields': ('vehicle_type', 'capacity', 'is_active')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        })
    )
