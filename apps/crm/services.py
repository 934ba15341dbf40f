"""
Customer search and prescription housekeeping.
"""

import logging

from django.db.models import Q
from django.utils import timezone

from .models import Customer, Prescription

logger = logging.getLogger(__name__)


def search_customers(pharmacy, term):
    queryset = Customer.objects.filter(pharmacy=pharmacy)
    if term:
        queryset = queryset.filter(
            Q(full_name__icontains=term) | Q(phone__icontains=term) | Q(email__icontains=term)
        )
    return queryset


def expire_prescriptions(pharmacy=None, today=None):
    """
    Mark active prescriptions past their expiry date as expired.

    Returns:
        int: Number of prescriptions expired
    """
    today = today or timezone.localdate()
    queryset = Prescription.objects.filter(status=Prescription.ACTIVE, expiry_date__lt=today)
    if pharmacy is not None:
        queryset = queryset.filter(pharmacy=pharmacy)

    count = queryset.update(status=Prescription.EXPIRED, updated_at=timezone.now())
    if count:
        logger.info(f"Expired {count} prescriptions")
    return count
