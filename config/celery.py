"""
Celery configuration for the retail POS backend.

Only receipt delivery runs in the background; billing itself is synchronous.
"""

import os

from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.development")

app = Celery("retail_pos")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.task_routes = {
    "apps.sales.tasks.*": {"queue": "notifications"},
}
