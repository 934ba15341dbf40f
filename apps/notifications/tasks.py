"""
Celery tasks for stock alert notifications.
"""

import logging

from django.utils import timezone

from celery import shared_task

from apps.core.models import Pharmacy

from .services import send_pharmacy_digest

logger = logging.getLogger(__name__)


@shared_task(name="apps.notifications.tasks.send_daily_alert_digest")
def send_daily_alert_digest():
    """
    Send every pharmacy its daily expiry and low-stock digest.

    One pharmacy failing does not stop the others.

    Returns:
        list: Per-pharmacy results
    """
    now = timezone.now()
    results = []

    for pharmacy in Pharmacy.objects.order_by("name"):
        try:
            results.append(send_pharmacy_digest(pharmacy, now=now))
        except Exception as e:
            logger.exception(f"Daily digest failed for pharmacy {pharmacy.id}: {e}")
            results.append({"pharmacy": pharmacy.name, "alerts": 0, "sent": False, "error": str(e)})

    sent = sum(1 for result in results if result["sent"])
    logger.info(f"Daily alert digest finished: {sent}/{len(results)} pharmacies notified")
    return results
