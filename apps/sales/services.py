"""
Sale recording, voids, shifts, daily summaries and offline replay.
"""

import logging
import uuid
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Count, F, Sum
from django.utils import timezone

from apps.core.models import Pharmacy
from apps.core.services import is_branch_within_limit
from apps.inventory import fefo
from apps.inventory.services import lock_batches_by_name, medications_for
from apps.sales.models import HeldTransaction, Sale, SaleItem, Shift

logger = logging.getLogger(__name__)

SYNCED = "synced"
DUPLICATE = "duplicate"
FAILED = "failed"

# 9999-12-31T23:59:59.999Z
MAX_TIMESTAMP_MS = 253402300799999


class SaleResult:
    """A recorded sale plus the low-stock alerts it produced."""

    def __init__(self, sale, low_stock_alerts):
        self.sale = sale
        self.low_stock_alerts = low_stock_alerts


def next_receipt_number(pharmacy):
    """
    Next sequential receipt number for a pharmacy.

    Locks the pharmacy row so concurrent sales cannot draw the same number.
    """
    Pharmacy.objects.select_for_update().filter(id=pharmacy.id).first()
    last_sale = Sale.objects.filter(pharmacy=pharmacy).order_by("-receipt_number").first()
    if last_sale and last_sale.receipt_number:
        try:
            last_number = int(last_sale.receipt_number.split("-")[-1])
            return f"RX-{last_number + 1:08d}"
        except (ValueError, IndexError):
            pass
    return f"RX-{Sale.objects.filter(pharmacy=pharmacy).count() + 1:08d}"


def get_open_shift(user):
    return Shift.objects.filter(staff=user, clock_out__isnull=True).order_by("-clock_in").first()


@transaction.atomic
def complete_sale(
    pharmacy,
    user,
    items,
    branch=None,
    customer=None,
    customer_name="",
    payment_method=Sale.CASH,
    shift=None,
    staff_name="",
    client_transaction_id=None,
    offline_created_at=None,
    allow_shortfall=False,
):
    """
    Record a sale and take its stock out of the shelves, earliest expiry first.

    Args:
        items: List of dicts with ``medication_id`` and ``quantity``; an
            optional ``unit_price`` overrides the current batch price
        allow_shortfall: Record the sale even when stock runs out, clamping
            batches at zero. Used when replaying sales made offline.

    Returns:
        SaleResult

    Raises:
        ValueError: Unknown medication, bad quantity, branch outside the plan
            limit or insufficient stock
    """
    if not items:
        raise ValueError("At least one item is required.")

    if branch is not None and not is_branch_within_limit(branch):
        raise ValueError("Branch is outside your plan's branch limit.")

    medication_ids = {_normalize_id(item["medication_id"]) for item in items}
    anchors = {
        str(med.id): med
        for med in medications_for(pharmacy, branch).filter(
            id__in=[value for value in medication_ids if _is_uuid(value)]
        )
    }
    missing = medication_ids - set(anchors)
    if missing:
        raise ValueError(f"Medication not found: {', '.join(sorted(missing))}")

    batches = lock_batches_by_name(pharmacy, [med.name for med in anchors.values()], branch)

    lines = []
    touched = {}
    for item in items:
        anchor = anchors[_normalize_id(item["medication_id"])]
        quantity = int(item["quantity"])
        if quantity < 1:
            raise ValueError(f"Quantity for {anchor.name} must be at least 1.")

        unit_price = item.get("unit_price")
        unit_price = Decimal(str(unit_price)) if unit_price is not None else anchor.get_price()

        if allow_shortfall:
            result = fefo.plan_deduction(batches, anchor.name, quantity)
            for deduction in result.batch_deductions:
                deduction.medication.deduct_quantity(deduction.quantity)
        else:
            result = fefo.deduct_fefo(batches, anchor.name, quantity)

        for deduction, info in zip(result.batch_deductions, result.batch_expiry_info):
            lines.append((deduction.medication, anchor.name, deduction.quantity, unit_price, info))
            touched[deduction.medication.id] = deduction.medication

        shortfall = quantity - result.total_deducted
        if shortfall > 0:
            logger.warning(
                f"Offline sale recorded {shortfall} x {anchor.name} beyond available stock "
                f"for pharmacy {pharmacy.id}"
            )
            # No batch held these units, so a void has nothing to restock
            lines.append((None, anchor.name, shortfall, unit_price, ""))

    total = sum(
        (price * quantity for _med, _name, quantity, price, _info in lines), Decimal("0.00")
    )

    if shift is None:
        shift = get_open_shift(user)

    sale = Sale.objects.create(
        pharmacy=pharmacy,
        branch=branch,
        receipt_number=next_receipt_number(pharmacy),
        customer=customer,
        customer_name=customer_name or (customer.full_name if customer else ""),
        sold_by=user,
        staff_name=staff_name or user.get_display_name(),
        shift=shift,
        payment_method=payment_method,
        total=total,
        client_transaction_id=client_transaction_id,
        is_offline=offline_created_at is not None,
        offline_created_at=offline_created_at,
    )

    SaleItem.objects.bulk_create(
        [
            SaleItem(
                sale=sale,
                medication=medication,
                medication_name=name,
                quantity=quantity,
                unit_price=price,
                total_price=price * quantity,
                batch_expiry_info=info,
            )
            for medication, name, quantity, price, info in lines
        ]
    )

    if shift is not None:
        Shift.objects.filter(id=shift.id).update(
            total_sales=F("total_sales") + total,
            total_transactions=F("total_transactions") + 1,
        )

    low_stock_alerts = [
        {
            "medication_id": str(med.id),
            "name": med.name,
            "batch_number": med.batch_number,
            "current_stock": med.current_stock,
            "reorder_level": med.reorder_level,
        }
        for med in touched.values()
        if med.is_low_stock()
    ]

    logger.info(f"Sale {sale.receipt_number} recorded for pharmacy {pharmacy.id} ({total})")

    return SaleResult(sale, low_stock_alerts)


@transaction.atomic
def void_sale(sale, user, reason=""):
    """
    Void a completed sale and return its stock to the batches it came from.

    Raises:
        ValueError: If the sale is not completed
    """
    sale = Sale.objects.select_for_update().get(id=sale.id)
    if not sale.can_be_voided():
        raise ValueError(
            f"Sale {sale.receipt_number} cannot be voided. Current status: {sale.status}"
        )

    for item in sale.items.select_related("medication"):
        if item.medication is not None:
            item.medication.add_quantity(item.quantity)

    if sale.shift_id:
        Shift.objects.filter(id=sale.shift_id).update(
            total_sales=F("total_sales") - sale.total,
            total_transactions=F("total_transactions") - 1,
        )

    sale.status = Sale.VOIDED
    sale.voided_by = user
    sale.voided_at = timezone.now()
    sale.void_reason = reason
    sale.save(update_fields=["status", "voided_by", "voided_at", "void_reason", "updated_at"])

    logger.info(f"Sale {sale.receipt_number} voided by {user.username}")
    return sale


def get_daily_summary(pharmacy, day=None, branch=None):
    """Completed sales count and revenue for a day, split by payment method."""
    day = day or timezone.localdate()
    sales = Sale.objects.filter(pharmacy=pharmacy, created_at__date=day)
    if branch is not None:
        sales = sales.filter(branch=branch)

    completed = sales.filter(status=Sale.COMPLETED)
    totals = completed.aggregate(count=Count("id"), revenue=Sum("total"))

    by_payment_method = {
        method: {"count": 0, "revenue": "0.00"} for method, _label in Sale.PAYMENT_METHOD_CHOICES
    }
    for row in completed.values("payment_method").annotate(count=Count("id"), revenue=Sum("total")):
        by_payment_method[row["payment_method"]] = {
            "count": row["count"],
            "revenue": str(row["revenue"]),
        }

    return {
        "date": day.isoformat(),
        "count": totals["count"] or 0,
        "revenue": str(totals["revenue"] or Decimal("0.00")),
        "voided": sales.filter(status=Sale.VOIDED).count(),
        "by_payment_method": by_payment_method,
    }


# Shifts


def clock_in(user, branch=None, notes=""):
    """
    Raises:
        ValueError: If the user already has an open shift
    """
    if get_open_shift(user) is not None:
        raise ValueError("You already have an open shift. Clock out first.")

    shift = Shift.objects.create(
        pharmacy=user.pharmacy,
        branch=branch or user.branch,
        staff=user,
        clock_in=timezone.now(),
        notes=notes,
    )
    logger.info(f"{user.username} clocked in (shift {shift.id})")
    return shift


def clock_out(user, notes=""):
    shift = get_open_shift(user)
    if shift is None:
        raise ValueError("No open shift to clock out of.")

    shift.clock_out = timezone.now()
    if notes:
        shift.notes = f"{shift.notes}\n{notes}".strip()
    shift.save(update_fields=["clock_out", "notes"])
    logger.info(f"{user.username} clocked out (shift {shift.id})")
    return shift


# Held transactions


def hold_transaction(user, items, total, customer_name=""):
    return HeldTransaction.objects.create(
        pharmacy=user.pharmacy,
        held_by=user,
        items=items,
        total=total,
        customer_name=customer_name,
    )


@transaction.atomic
def resume_transaction(held):
    """Return the parked cart and delete the record."""
    cart = {
        "id": str(held.id),
        "short_code": held.short_code,
        "customer_name": held.customer_name,
        "items": held.items,
        "total": str(held.total),
        "held_at": held.held_at.isoformat(),
    }
    held.delete()
    return cart


def clear_held_transactions(user):
    deleted, _ = HeldTransaction.objects.filter(held_by=user).delete()
    return deleted


# Offline replay


def validate_offline_transactions(pharmacy, transactions, branch=None):
    """
    Dry-run check of queued offline sales against current stock.

    Stock is counted across every non-expired batch sharing the medication's
    name, the same pool a sale draws from.
    """
    results = []
    for txn in transactions:
        conflicts = []
        requested_by_name = {}

        for item in txn.get("items", []):
            medication_id = str(item.get("medication_id", ""))
            quantity = int(item.get("quantity", 1) or 1)
            medication = None
            if _is_uuid(medication_id):
                medication = medications_for(pharmacy, branch).filter(id=medication_id).first()

            if medication is None:
                conflicts.append(
                    {
                        "medication_id": medication_id,
                        "conflict_type": "medication_not_found",
                        "requested": quantity,
                        "available": 0,
                    }
                )
                continue

            key = fefo.normalize_name(medication.name)
            requested_by_name[key] = requested_by_name.get(key, 0) + quantity
            batches = medications_for(pharmacy, branch).filter(normalized_name=key)
            available = sum(
                batch.current_stock for batch in fefo.sellable_batches(batches, medication.name)
            )

            if requested_by_name[key] > available:
                conflicts.append(
                    {
                        "medication_id": medication_id,
                        "medication_name": medication.name,
                        "conflict_type": "insufficient_stock",
                        "requested": requested_by_name[key],
                        "available": available,
                    }
                )

        results.append(
            {
                "client_transaction_id": txn.get("client_transaction_id"),
                "valid": not conflicts,
                "conflicts": conflicts,
            }
        )
    return results


def sync_offline_sales(pharmacy, user, pending_sales, branch=None):
    """
    Replay sales queued on a disconnected device.

    Sales are applied oldest first, each in its own transaction, so one
    failure leaves the others recorded. A client transaction id that was
    already synced is reported as a duplicate with its existing receipt.
    """
    from apps.crm.models import Customer

    results = []
    for pending in sorted(pending_sales, key=lambda sale: sale.get("timestamp") or 0):
        client_id = str(pending["client_transaction_id"])

        existing = Sale.objects.filter(pharmacy=pharmacy, client_transaction_id=client_id).first()
        if existing is not None:
            results.append(
                {
                    "client_transaction_id": client_id,
                    "status": DUPLICATE,
                    "receipt_number": existing.receipt_number,
                }
            )
            continue

        customer = None
        if _is_uuid(pending.get("customer_id")):
            customer = Customer.objects.filter(pharmacy=pharmacy, id=pending["customer_id"]).first()

        shift = None
        if _is_uuid(pending.get("shift_id")):
            shift = Shift.objects.filter(pharmacy=pharmacy, id=pending["shift_id"]).first()

        try:
            with transaction.atomic():
                result = complete_sale(
                    pharmacy,
                    user,
                    pending["items"],
                    branch=branch,
                    customer=customer,
                    customer_name=pending.get("customer_name", ""),
                    payment_method=pending.get("payment_method") or Sale.CASH,
                    shift=shift,
                    staff_name=pending.get("staff_name", ""),
                    client_transaction_id=client_id,
                    offline_created_at=_from_timestamp(pending.get("timestamp")),
                    allow_shortfall=True,
                )
        except (ValueError, OverflowError, OSError, IntegrityError) as e:
            logger.warning(f"Offline sale {client_id} failed to sync: {e}")
            results.append({"client_transaction_id": client_id, "status": FAILED, "error": str(e)})
            continue

        results.append(
            {
                "client_transaction_id": client_id,
                "status": SYNCED,
                "receipt_number": result.sale.receipt_number,
            }
        )

    synced = sum(1 for result in results if result["status"] == SYNCED)
    logger.info(f"Offline sync for pharmacy {pharmacy.id}: {synced}/{len(results)} synced")
    return {"results": results, "last_sync_time": timezone.now().isoformat()}


def _from_timestamp(value):
    """Epoch milliseconds from the device clock, or now when absent."""
    if not value:
        return timezone.now()
    return datetime.fromtimestamp(int(value) / 1000, tz=dt_timezone.utc)


def _normalize_id(value):
    return str(uuid.UUID(str(value))) if _is_uuid(value) else str(value)


def _is_uuid(value):
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True
