import pytest
from django.urls import reverse

from .conftest import local


@pytest.mark.parametrize('model_name', [
    'timecard', 'dailytrip', 'monthlyexemptionstatus', 'weeklyhos',
    'complianceviolation', 'timecardauditlog',
])
def test_changelists_render(admin_client, work_day, model_name):
    work_day(local(2025, 6, 2, 6), local(2025, 6, 2, 17))

    response = admin_client.get(reverse(f'admin:compliance_{model_name}_changelist'))

    assert response.status_code == 200


def test_time_cards_cannot_be_added_or_deleted(admin_client, work_day):
    time_card = work_day(local(2025, 6, 2, 8), local(2025, 6, 2, 12)).time_card

    assert admin_client.get(reverse('admin:compliance_timecard_add')).status_code == 403
    assert admin_client.get(reverse('admin:compliance_timecard_change', args=[time_card.id])).status_code == 200
    assert admin_client.get(reverse('admin:compliance_timecard_delete', args=[time_card.id])).status_code == 403
