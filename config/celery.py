"""
Celery configuration for the tour compliance project.
"""
import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

app = Celery('tour_compliance')

app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Celery beat schedule for periodic tasks
app.conf.beat_schedule = {
    'close-stale-time-cards': {
        'task': 'apps.compliance.tasks.close_stale_time_cards',
        'schedule': 3600.0,  # Hourly
    },
    'snapshot-exemption-statuses': {
        'task': 'apps.compliance.tasks.snapshot_exemption_statuses',
        # Shortly after midnight in the carrier's timezone
        'schedule': crontab(hour=0, minute=15),
    },
}

app.conf.timezone = 'America/Los_Angeles'
