"""
Celery tasks for AI usage housekeeping.
"""

import logging

from celery import shared_task

from .quota import reset_all_scan_counters

logger = logging.getLogger(__name__)


@shared_task(name="apps.ai.tasks.reset_monthly_ai_scans")
def reset_monthly_ai_scans() -> str:
    """Start every pharmacy's invoice-scan allowance afresh on the first of the month."""
    count = reset_all_scan_counters()
    return f"Reset AI scan counters for {count} pharmacies"
