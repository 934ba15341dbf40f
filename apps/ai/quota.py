"""
Monthly invoice-scan allowance per pharmacy.
"""

import logging

from django.db.models import F
from django.utils import timezone

from apps.core import plans
from apps.core.models import Pharmacy

logger = logging.getLogger(__name__)


def current_month_start(now=None):
    now = now or timezone.now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def reset_if_new_month(pharmacy, now=None):
    """Zero the counter when it was last reset before this month started."""
    now = now or timezone.now()
    if pharmacy.ai_scans_reset_at is None or pharmacy.ai_scans_reset_at < current_month_start(now):
        pharmacy.ai_scans_used = 0
        pharmacy.ai_scans_reset_at = now
        pharmacy.save(update_fields=["ai_scans_used", "ai_scans_reset_at", "updated_at"])
    return pharmacy


def get_scan_usage(pharmacy, now=None):
    reset_if_new_month(pharmacy, now)
    limit = plans.get_ai_scan_limit(pharmacy.subscription_plan)
    return {
        "used": pharmacy.ai_scans_used,
        "limit": limit,
        "remaining": max(limit - pharmacy.ai_scans_used, 0),
        "is_unlimited": limit >= plans.UNLIMITED_AI_SCANS,
    }


def is_limit_reached(pharmacy, now=None):
    usage = get_scan_usage(pharmacy, now)
    return usage["used"] >= usage["limit"]


def increment_scan_count(pharmacy):
    Pharmacy.objects.filter(id=pharmacy.id).update(ai_scans_used=F("ai_scans_used") + 1)
    pharmacy.refresh_from_db(fields=["ai_scans_used"])
    return pharmacy.ai_scans_used


def reset_all_scan_counters(now=None):
    now = now or timezone.now()
    count = Pharmacy.objects.update(ai_scans_used=0, ai_scans_reset_at=now)
    logger.info(f"Reset AI scan counters for {count} pharmacies")
    return count
