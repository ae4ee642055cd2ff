# config/settings/production.py
"""
Production settings for the tour compliance project.
"""
from .base import *

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = config('DEBUG', default=False, cast=bool)

SECRET_KEY = config('SECRET_KEY')

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='').split(',')

# Production database - PostgreSQL
DATABASES = {
    'default': dj_database_url.config(
        default=config('DATABASE_URL'),
        conn_max_age=600,
        conn_health_checks=True,
    )
}

if 'postgresql' in DATABASES['default']['ENGINE']:
    DATABASES['default']['OPTIONS'] = {
        'sslmode': 'require',
    }

# Security settings
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SECURE_HSTS_SECONDS = 31536000
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_REFERRER_POLICY = 'strict-origin-when-cross-origin'
SECURE_SSL_REDIRECT = config('SECURE_SSL_REDIRECT', default=True, cast=bool)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
X_FRAME_OPTIONS = 'DENY'

# CORS settings for production
CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='').split(',')
CORS_ALLOW_CREDENTIALS = True

# Static files configuration for production
STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage',
    },
}

# Django's built-in Redis cache, shared with the Celery broker
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.redis.RedisCache',
        'LOCATION': config('REDIS_URL'),
        'TIMEOUT': 300,
        'KEY_PREFIX': config('CACHE_KEY_PREFIX', default='tour_compliance'),
    }
}

# Celery Configuration for Production
CELERY_BROKER_URL = config('REDIS_URL')
CELERY_RESULT_BACKEND = config('REDIS_URL')
CELERY_ENABLE_UTC = True

CELERY_TASK_ROUTES = {
    'apps.compliance.tasks.*': {'queue': 'compliance'},
}

CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_ACKS_LATE = True
CELERY_WORKER_MAX_TASKS_PER_CHILD = 1000

# Sentry configuration for error tracking
if config('SENTRY_DSN', default=''):
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration
    from sentry_sdk.integrations.celery import CeleryIntegration

    sentry_sdk.init(
        dsn=config('SENTRY_DSN'),
        integrations=[
            DjangoIntegration(),
            CeleryIntegration(monitor_beat_tasks=True),
        ],
        traces_sample_rate=config('SENTRY_TRACES_SAMPLE_RATE', default=0.1, cast=float),
        send_default_pii=False,
        environment=config('ENVIRONMENT', default='production'),
    )

# Production logging: rotating files alongside the base console handler
log_dir = BASE_DIR / 'logs'
log_dir.mkdir(exist_ok=True)


def rotating_file(filename, backup_count):
    return {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': log_dir / filename,
        'maxBytes': 1024 * 1024 * 15,
        'backupCount': backup_count,
        'formatter': 'verbose',
        'level': 'INFO',
    }


LOGGING['handlers'].update({
    'file': rotating_file('django.log', 10),
    # Exemption flips and auto-closes are retained for audits
    'compliance_file': rotating_file('compliance.log', 30),
    'celery_file': rotating_file('celery.log', 5),
})
LOGGING['root']['handlers'] = ['console', 'file']
LOGGING['loggers']['django']['handlers'] = ['console', 'file']
LOGGING['loggers']['apps'].update({'handlers': ['console', 'file'], 'level': 'INFO'})
LOGGING['loggers']['mapping'].update({'handlers': ['console', 'file'], 'level': 'WARNING'})
LOGGING['loggers']['apps.compliance'] = {
    'handlers': ['console', 'compliance_file'],
    'level': 'INFO',
    'propagate': False,
}
LOGGING['loggers']['celery'] = {
    'handlers': ['console', 'celery_file'],
    'level': 'INFO',
    'propagate': False,
}

# Session security
SESSION_COOKIE_AGE = 3600  # 1 hour
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = 'Lax'

CSRF_COOKIE_HTTPONLY = True
CSRF_COOKIE_SAMESITE = 'Lax'
CSRF_TRUSTED_ORIGINS = config('CSRF_TRUSTED_ORIGINS', default='').split(',')

REST_FRAMEWORK['DEFAULT_THROTTLE_RATES'] = {
    'anon': config('ANON_THROTTLE_RATE', default='100/hour'),
    'user': config('USER_THROTTLE_RATE', default='5000/hour'),
}
