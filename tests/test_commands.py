from io import StringIO

from django.core.management import call_command

from apps.core.models import Driver, Vehicle


def test_seed_roster_is_idempotent(db):
    call_command('seed_roster', stdout=StringIO())
    call_command('seed_roster', stdout=StringIO())

    assert Driver.objects.count() == 3
    assert Vehicle.objects.count() == 3


def test_seed_roster_clear(db):
    call_command('seed_roster', stdout=StringIO())
    Vehicle.objects.filter(vehicle_number='201').update(vehicle_type='SUV', make='GMC')

    out = StringIO()
    call_command('seed_roster', '--clear', stdout=out)

    assert Vehicle.objects.get(vehicle_number='201').make == 'Chevrolet'
    assert 'Roster ready' in out.getvalue()
