"""
Signal handlers for CRM app.

- Automatic points accrual on completed sales
- Points reversal when a sale is voided
"""

import logging

from django.conf import settings
from django.db.models import F, Sum
from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.sales.models import Sale

logger = logging.getLogger(__name__)


def calculate_points(total):
    """One point per LOYALTY_CURRENCY_PER_POINT spent, whole points only."""
    return int(total) // settings.LOYALTY_CURRENCY_PER_POINT


@receiver(post_save, sender=Sale)
def award_loyalty_points_on_sale(sender, instance, created, **kwargs):
    """
    Award loyalty points to the customer when a sale is completed.

    Also rolls the sale into the customer's purchase totals. Runs once per
    sale: later saves of the same sale find the existing EARNED entry.
    """
    if not instance.customer_id or instance.status != Sale.COMPLETED:
        return

    from apps.crm.models import Customer, LoyaltyTransaction

    if LoyaltyTransaction.objects.filter(
        sale=instance, transaction_type=LoyaltyTransaction.EARNED
    ).exists():
        return

    customer = instance.customer
    Customer.objects.filter(id=customer.id).update(
        total_purchases=F("total_purchases") + instance.total,
        last_purchase_at=instance.created_at,
    )

    points = calculate_points(instance.total)
    if points <= 0:
        return

    customer.add_loyalty_points(
        points,
        description=f"Purchase: {instance.receipt_number} ({instance.total})",
        sale=instance,
    )
    logger.info(f"Awarded {points} points to customer {customer.id} for {instance.receipt_number}")


@receiver(post_save, sender=Sale)
def reverse_loyalty_points_on_void(sender, instance, created, **kwargs):
    """Take back the points a voided sale earned, once."""
    if created or not instance.customer_id or instance.status != Sale.VOIDED:
        return

    from apps.crm.models import Customer, LoyaltyTransaction

    entries = LoyaltyTransaction.objects.filter(sale=instance)
    if entries.filter(transaction_type=LoyaltyTransaction.REVERSED).exists():
        return

    earned = (
        entries.filter(transaction_type=LoyaltyTransaction.EARNED).aggregate(total=Sum("points"))[
            "total"
        ]
        or 0
    )

    Customer.objects.filter(id=instance.customer_id).update(
        total_purchases=F("total_purchases") - instance.total
    )

    if earned <= 0:
        return

    instance.customer.reverse_loyalty_points(
        earned, description=f"Void: {instance.receipt_number}", sale=instance
    )
    logger.info(f"Reversed {earned} points for voided sale {instance.receipt_number}")
