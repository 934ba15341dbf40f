"""
First-expiry-first-out helpers.

Batches of the same product share a normalised name. Sales always draw from
the non-expired batch that expires first, and the POS shows one grouped row
per product priced from that batch.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from django.utils import timezone

_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Trim, lower-case and collapse internal whitespace."""
    return _WHITESPACE.sub(" ", (name or "").strip().lower())


def format_batch_expiry(quantity: int, expiry_date) -> str:
    """Receipt annotation such as ``2x exp Mar 26``."""
    return f"{quantity}x exp {expiry_date.strftime('%b %y')}"


@dataclass
class BatchDeduction:
    medication: object
    quantity: int
    expiry_date: object


@dataclass
class FEFOResult:
    batch_deductions: List[BatchDeduction] = field(default_factory=list)
    total_deducted: int = 0
    batch_expiry_info: List[str] = field(default_factory=list)

    @property
    def used_multiple_batches(self) -> bool:
        return len(self.batch_deductions) > 1


def sellable_batches(medications, name: str, today=None):
    """Non-expired batches with stock for a product name, earliest expiry first."""
    today = today or timezone.localdate()
    key = normalize_name(name)
    batches = [
        med
        for med in medications
        if normalize_name(med.name) == key and med.current_stock > 0 and med.expiry_date >= today
    ]
    return sorted(batches, key=lambda med: med.expiry_date)


def plan_deduction(medications, name: str, quantity: int, today=None) -> FEFOResult:
    """
    Work out which batches a sale of ``quantity`` units draws from.

    Nothing is written; the caller decides whether a short result is an error.
    """
    result = FEFOResult()
    remaining = quantity

    for batch in sellable_batches(medications, name, today=today):
        if remaining <= 0:
            break
        take = min(remaining, batch.current_stock)
        result.batch_deductions.append(BatchDeduction(batch, take, batch.expiry_date))
        result.batch_expiry_info.append(format_batch_expiry(take, batch.expiry_date))
        remaining -= take

    result.total_deducted = quantity - remaining
    return result


def deduct_fefo(medications, name: str, quantity: int, today=None) -> FEFOResult:
    """
    Deduct ``quantity`` units of a product across its batches.

    Raises:
        ValueError: If the non-expired batches do not hold enough stock
    """
    if quantity <= 0:
        raise ValueError("Quantity must be positive")

    result = plan_deduction(medications, name, quantity, today=today)
    if result.total_deducted < quantity:
        raise ValueError(
            f"Insufficient stock for {name}. "
            f"Available: {result.total_deducted}, Requested: {quantity}"
        )

    for deduction in result.batch_deductions:
        deduction.medication.deduct_quantity(deduction.quantity)

    return result


def group_by_name(medications, today=None) -> List[dict]:
    """
    Collapse batches into one entry per product for POS display.

    Stock totals and prices only consider non-expired batches; an entry is
    still returned when every batch has expired so the product stays visible.
    """
    today = today or timezone.localdate()
    groups = {}
    for med in medications:
        groups.setdefault(normalize_name(med.name), []).append(med)

    products = []
    for key, batches in groups.items():
        batches = sorted(batches, key=lambda med: med.expiry_date)
        valid = [med for med in batches if med.expiry_date >= today]
        earliest = _display_batch(valid) or batches[0]
        total_stock = sum(med.current_stock for med in valid)
        prices = [med.get_price() for med in valid if med.get_price() > 0]
        reorder_level = (
            sum(med.reorder_level for med in valid) / len(valid) if valid else 10
        )

        products.append(
            {
                "key": key,
                "name": earliest.name,
                "category": earliest.category,
                "total_stock": total_stock,
                "display_price": earliest.get_price() if valid else Decimal("0.00"),
                "lowest_price": min(prices) if prices else Decimal("0.00"),
                "highest_price": max(prices) if prices else Decimal("0.00"),
                "earliest_expiry": earliest.expiry_date,
                "batches": batches,
                "has_multiple_batches": len(valid) > 1,
                "has_expired_batch": len(valid) < len(batches),
                "has_low_stock": total_stock <= reorder_level,
                "barcode_id": earliest.barcode_id
                or next((med.barcode_id for med in batches if med.barcode_id), ""),
            }
        )

    return sorted(products, key=lambda product: product["key"])


def _display_batch(valid_batches) -> Optional[object]:
    # Price from what sells first: the earliest batch that still has stock
    for med in valid_batches:
        if med.current_stock > 0:
            return med
    return valid_batches[0] if valid_batches else None
