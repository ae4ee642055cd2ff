# apps/core/management/commands/seed_roster.py
from django.core.management.base import BaseCommand
from django.db import transaction
from apps.core.models import Driver, Vehicle


SAMPLE_DRIVERS = [
    ("Ana Torres", "WA1234567", "EMP001"),
    ("Marcus Reed", "WA7654321", "EMP002"),
    ("Priya Nair", "OR1122334", "EMP003"),
]

SAMPLE_VEHICLES = [
    ("101", "TEST101", "Mercedes-Benz", "Sprinter", "SPRINTER", 14),
    ("102", "TEST102", "Ford", "Transit", "SPRINTER", 12),
    ("201", "TEST201", "Chevrolet", "Suburban", "SUV", 6),
]


class Command(BaseCommand):
    help = 'Create sample drivers and vehicles for local development'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Remove previously seeded roster entries first',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing seeded roster...')
            Driver.objects.filter(
                employee_id__in=[employee_id for _, _, employee_id in SAMPLE_DRIVERS],
                time_cards__isnull=True,
            ).delete()
            Vehicle.objects.filter(
                license_plate__startswith='TEST',
                time_cards__isnull=True,
            ).delete()

        self.stdout.write('Creating roster...')

        for name, license_number, employee_id in SAMPLE_DRIVERS:
            driver, created = Driver.objects.get_or_create(
                license_number=license_number,
                defaults={
                    'name': name,
                    'license_state': license_number[:2],
                    'employee_id': employee_id,
                    'email': f"{name.lower().replace(' ', '.')}@example.com",
                }
            )
            self.stdout.write(f"  {'Created' if created else 'Found'} driver {driver}")

        for number, plate, make, model, vehicle_type, capacity in SAMPLE_VEHICLES:
            vehicle, created = Vehicle.objects.get_or_create(
                vehicle_number=number,
                defaults={
                    'license_plate': plate,
                    'make': make,
                    'model': model,
                    'vehicle_type': vehicle_type,
                    'capacity': capacity,
                }
            )
            self.stdout.write(f"  {'Created' if created else 'Found'} vehicle {vehicle}")

        self.stdout.write(
            self.style.SUCCESS(
                f'Roster ready: {Driver.objects.count()} drivers, {Vehicle.objects.count()} vehicles'
            )
        )
