"""
Stock operations and inventory reporting.
"""

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.inventory.fefo import normalize_name
from apps.inventory.models import BranchStock, Medication

logger = logging.getLogger(__name__)


def medications_for(pharmacy, branch=None):
    """
    Batches visible to a pharmacy, optionally narrowed to a branch.

    Pharmacy-wide batches (no branch) are visible from every branch.
    """
    queryset = Medication.objects.filter(pharmacy=pharmacy)
    if branch is not None:
        queryset = queryset.filter(Q(branch=branch) | Q(branch__isnull=True))
    return queryset


def search_medications(queryset, term):
    if not term:
        return queryset
    return queryset.filter(
        Q(name__icontains=term) | Q(barcode_id__icontains=term) | Q(batch_number__icontains=term)
    )


def lock_batches_by_name(pharmacy, names, branch=None):
    """
    Lock every batch whose name matches one of ``names`` (normalised).

    Returns the locked batches; callers must be inside a transaction.
    """
    wanted = {normalize_name(name) for name in names if name}
    if not wanted:
        return []

    return list(
        medications_for(pharmacy, branch)
        .filter(normalized_name__in=wanted)
        .select_for_update()
    )


# Branch stock


@transaction.atomic
def receive_branch_stock(branch, medication, quantity):
    """Add stock at a branch, creating the branch row if it does not exist."""
    if quantity <= 0:
        raise ValueError("Quantity to receive must be positive")

    stock, _created = BranchStock.objects.select_for_update().get_or_create(
        branch=branch,
        medication=medication,
        defaults={"quantity": 0, "reorder_level": medication.reorder_level},
    )
    stock.add_quantity(quantity)
    logger.info(f"Received {quantity} x {medication.name} at branch {branch.id}")
    return stock


@transaction.atomic
def deduct_branch_stock(branch, medication, quantity):
    """
    Deduct stock at a branch.

    Raises:
        ValueError: If the branch holds no stock row or not enough stock
    """
    try:
        stock = BranchStock.objects.select_for_update().get(branch=branch, medication=medication)
    except BranchStock.DoesNotExist:
        raise ValueError(f"{medication.name} is not stocked at {branch.name}")

    stock.deduct_quantity(quantity)
    return stock


# Reporting


def get_inventory_metrics(pharmacy, branch=None, today=None):
    """
    Headline inventory figures.

    total_value only counts batches that have not expired.
    """
    today = today or timezone.localdate()
    soon = today + timedelta(days=settings.EXPIRY_WARNING_DAYS)
    medications = medications_for(pharmacy, branch)

    total_value = Decimal("0.00")
    for med in medications.filter(expiry_date__gte=today):
        total_value += med.calculate_stock_value()

    return {
        "total_skus": medications.count(),
        "low_stock": medications.filter(current_stock__lte=F("reorder_level")).count(),
        "expired": medications.filter(expiry_date__lt=today).count(),
        "expiring_soon": medications.filter(expiry_date__gte=today, expiry_date__lte=soon).count(),
        "total_value": total_value,
    }


def get_inventory_alerts(pharmacy, branch=None, today=None):
    """Low-stock and expiring batches, each as a flat alert dict."""
    today = today or timezone.localdate()
    soon = today + timedelta(days=settings.EXPIRY_WARNING_DAYS)
    medications = medications_for(pharmacy, branch)

    alerts = []
    for med in medications.filter(current_stock__lte=F("reorder_level")).order_by("current_stock"):
        alerts.append(
            {
                "type": "out_of_stock" if med.current_stock == 0 else "low_stock",
                "medication_id": str(med.id),
                "name": med.name,
                "batch_number": med.batch_number,
                "current_stock": med.current_stock,
                "reorder_level": med.reorder_level,
            }
        )

    expiring = medications.filter(
        expiry_date__lte=soon, current_stock__gt=0
    ).order_by("expiry_date")
    for med in expiring:
        alerts.append(
            {
                "type": "expired" if med.expiry_date < today else "expiring",
                "medication_id": str(med.id),
                "name": med.name,
                "batch_number": med.batch_number,
                "current_stock": med.current_stock,
                "expiry_date": med.expiry_date.isoformat(),
                "days_to_expiry": (med.expiry_date - today).days,
            }
        )

    return alerts
