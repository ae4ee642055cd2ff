"""
Roster models shared across the platform.

Drivers and vehicles are reference data for the compliance core: they are
read to validate clock-ins, never mutated by it.
"""
from django.db import models
import logging

logger = logging.getLogger(__name__)


class BaseModel(models.Model):
    """
    Abstract base model that provides common fields for all models.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Driver(BaseModel):
    """
    Tour driver on the carrier's roster.
    """
    name = models.CharField(max_length=100)
    license_number = models.CharField(max_length=50, unique=True)
    license_state = models.CharField(max_length=2, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    employee_id = models.CharField(
        max_length=50,
        blank=True,
        help_text="Carrier-assigned employee identifier"
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'core_driver'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active'], name='core_driver_active_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.license_number})"


class Vehicle(BaseModel):
    """
    Passenger vehicle on the carrier's roster.
    """
    VEHICLE_TYPES = [
        ('SEDAN', 'Sedan'),
        ('SUV', 'SUV'),
        ('SPRINTER', 'Sprinter Van'),
        ('MINICOACH', 'Mini Coach'),
        ('COACH', 'Motor Coach'),
    ]

    vehicle_number = models.CharField(
        max_length=20,
        unique=True,
        help_text="Fleet unit number painted on the vehicle"
    )
    vin = models.CharField(max_length=17, blank=True)
    license_plate = models.CharField(max_length=20)
    make = models.CharField(max_length=50, blank=True)
    model = models.CharField(max_length=50, blank=True)
    year = models.IntegerField(null=True, blank=True)
    vehicle_type = models.CharField(
        max_length=20,
        choices=VEHICLE_TYPES,
        default='SPRINTER'
    )
    capacity = models.PositiveIntegerField(
        default=14,
        help_text="Passenger seats"
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'core_vehicle'
        ordering = ['vehicle_number']
        indexes = [
            models.Index(fields=['is_active'], name='core_vehicle_active_idx'),
        ]

    def __str__(self):
        display = f"#{self.vehicle_number} ({self.license_plate})"
        if self.make and self.model:
            display = f"{display} {self.make} {self.model}"
        return display
