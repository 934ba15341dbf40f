"""
Celery tasks for CRM housekeeping.
"""

import logging

from celery import shared_task

from .services import expire_prescriptions as expire_past_prescriptions

logger = logging.getLogger(__name__)


@shared_task(name="apps.crm.tasks.expire_prescriptions")
def expire_prescriptions():
    """Nightly sweep of prescriptions that have passed their expiry date."""
    count = expire_past_prescriptions()
    return f"Expired {count} prescriptions"
