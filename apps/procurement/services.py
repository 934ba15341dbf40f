"""
Reorder suggestions and the reorder request workflow.
"""

import logging

from django.db import transaction
from django.db.models import F

from apps.inventory.services import medications_for

from .models import ReorderRequest, SupplierProduct

logger = logging.getLogger(__name__)


def cheapest_supplier_product(medication):
    """The lowest-priced available offer for a medication from an active supplier."""
    return (
        SupplierProduct.objects.filter(
            medication=medication,
            is_available=True,
            supplier__is_active=True,
            supplier__pharmacy_id=medication.pharmacy_id,
        )
        .select_related("supplier")
        .order_by("unit_price", "lead_time_days")
        .first()
    )


def suggested_quantity(medication, product=None):
    """Enough to reach twice the reorder level, never below the supplier minimum."""
    min_order = product.min_order_quantity if product else 1
    return max(medication.reorder_level * 2 - medication.current_stock, min_order, 1)


def get_reorder_suggestions(pharmacy, branch=None):
    """
    One suggestion per low-stock medication.

    Returns:
        list of dicts with the medication, the suggested quantity and the
        cheapest available supplier product (or None)
    """
    low_stock = (
        medications_for(pharmacy, branch)
        .filter(current_stock__lte=F("reorder_level"))
        .order_by("current_stock", "name")
    )

    suggestions = []
    for medication in low_stock:
        product = cheapest_supplier_product(medication)
        quantity = suggested_quantity(medication, product)
        suggestions.append(
            {
                "medication_id": str(medication.id),
                "medication_name": medication.name,
                "current_stock": medication.current_stock,
                "reorder_level": medication.reorder_level,
                "suggested_quantity": quantity,
                "supplier_product": (
                    {
                        "id": str(product.id),
                        "supplier_id": str(product.supplier_id),
                        "supplier_name": product.supplier.name,
                        "product_name": product.product_name,
                        "unit_price": str(product.unit_price),
                        "min_order_quantity": product.min_order_quantity,
                        "lead_time_days": product.lead_time_days,
                        "estimated_cost": str(product.unit_price * quantity),
                    }
                    if product
                    else None
                ),
            }
        )
    return suggestions


def create_reorder_request(
    pharmacy, user, medication, quantity, supplier=None, unit_price=None, branch=None, **extra
):
    """
    Create a pending reorder request.

    Without an explicit unit price the supplier's offer for the medication is
    used, falling back to the medication's cost price.
    """
    if quantity <= 0:
        raise ValueError("Quantity must be positive")

    if unit_price is None:
        product = None
        if supplier is not None:
            product = (
                supplier.products.filter(medication=medication, is_available=True)
                .order_by("unit_price")
                .first()
            )
        unit_price = product.unit_price if product else medication.unit_price

    reorder = ReorderRequest.objects.create(
        pharmacy=pharmacy,
        branch=branch if branch is not None else medication.branch,
        supplier=supplier,
        medication=medication,
        quantity=quantity,
        unit_price=unit_price,
        requested_by=user,
        **extra,
    )
    logger.info(
        f"Reorder request {reorder.id} created for {quantity} x {medication.name} "
        f"by {user.username}"
    )
    return reorder


@transaction.atomic
def deliver_reorder_request(reorder, receive_stock=False):
    """Mark a shipped request delivered and optionally put the stock on the shelf."""
    reorder.mark_delivered(receive_stock=receive_stock)
    reorder.save()
    if receive_stock:
        logger.info(
            f"Reorder {reorder.id} delivered; {reorder.quantity} units added to "
            f"medication {reorder.medication_id}"
        )
    return reorder
