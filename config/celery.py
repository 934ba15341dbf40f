"""
Celery configuration for the pharmacy POS platform.
"""

import os

from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.development")

app = Celery("pharmatrack")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Celery Beat Schedule for periodic tasks
app.conf.beat_schedule = {
    # Expiry and low-stock digest every morning at 7:00 AM
    "daily-alert-digest": {
        "task": "apps.notifications.tasks.send_daily_alert_digest",
        "schedule": crontab(hour=7, minute=0),
        "options": {"queue": "notifications", "priority": 6},
    },
    # Expire lapsed trials and subscriptions every hour
    "expire-subscriptions": {
        "task": "apps.core.tasks.expire_subscriptions",
        "schedule": crontab(minute=5),
        "options": {"queue": "default", "priority": 8},
    },
    # Reset AI scan counters on the 1st of each month at 00:10
    "reset-ai-scan-counters": {
        "task": "apps.ai.tasks.reset_monthly_ai_scans",
        "schedule": crontab(hour=0, minute=10, day_of_month=1),
        "options": {"queue": "default", "priority": 5},
    },
    # Mark lapsed prescriptions expired daily at 1:00 AM
    "expire-prescriptions": {
        "task": "apps.crm.tasks.expire_prescriptions",
        "schedule": crontab(hour=1, minute=0),
        "options": {"queue": "default", "priority": 3},
    },
}

# Task routing configuration
app.conf.task_routes = {
    "apps.notifications.tasks.*": {"queue": "notifications", "priority": 5},
    "apps.ai.tasks.*": {"queue": "default", "priority": 5},
}


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """Debug task for testing Celery setup."""
    print(f"Request: {self.request!r}")
