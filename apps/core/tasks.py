"""
Celery tasks for subscription housekeeping.
"""

import logging

from django.db.models import Q
from django.utils import timezone

from celery import shared_task

from apps.core.models import Pharmacy

logger = logging.getLogger(__name__)


@shared_task(name="apps.core.tasks.expire_subscriptions")
def expire_subscriptions() -> str:
    """
    Mark trials and paid subscriptions whose period has ended as expired.

    Returns:
        str: Summary of the sweep
    """
    now = timezone.now()

    lapsed = Pharmacy.objects.filter(
        Q(subscription_status=Pharmacy.STATUS_TRIAL, trial_ends_at__lt=now)
        | Q(subscription_status=Pharmacy.STATUS_ACTIVE, subscription_ends_at__lt=now)
    )

    expired_ids = list(lapsed.values_list("id", flat=True))
    count = Pharmacy.objects.filter(id__in=expired_ids).update(
        subscription_status=Pharmacy.STATUS_EXPIRED, updated_at=now
    )

    for pharmacy_id in expired_ids:
        logger.info(f"Subscription expired for pharmacy {pharmacy_id}")

    return f"Expired {count} subscriptions"
