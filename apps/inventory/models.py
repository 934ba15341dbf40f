"""
Inventory models for pharmacy stock management.

- Medications are stored one row per batch, so the same product name can
  appear several times with different batch numbers and expiry dates
- Branch stock tracks per-branch quantities for multi-branch pharmacies
- Stock transfers move quantities between branches through an approval workflow
"""

import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from apps.core.models import Branch, Pharmacy, User
from apps.inventory.fefo import normalize_name


class Medication(models.Model):
    """
    A single batch of a medication held by a pharmacy.
    """

    UNIT = "unit"
    PACK = "pack"
    TAB = "tab"
    BOTTLE = "bottle"

    DISPENSING_UNIT_CHOICES = [
        (UNIT, "Unit"),
        (PACK, "Pack"),
        (TAB, "Tablet"),
        (BOTTLE, "Bottle"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the medication batch",
    )

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        related_name="medications",
        help_text="Pharmacy that owns this batch",
    )

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="medications",
        help_text="Branch holding the batch (null means pharmacy-wide)",
    )

    name = models.CharField(max_length=255, help_text="Product name")

    normalized_name = models.CharField(
        max_length=255,
        editable=False,
        help_text="Trimmed, lower-cased name with single spaces; batches of one product share it",
    )

    category = models.CharField(max_length=100, blank=True, help_text="Therapeutic category")

    batch_number = models.CharField(max_length=100, help_text="Manufacturer batch number")

    current_stock = models.IntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Units of this batch in stock",
    )

    reorder_level = models.IntegerField(
        default=10,
        validators=[MinValueValidator(0)],
        help_text="Stock level at or below which the batch is low on stock",
    )

    expiry_date = models.DateField(help_text="Batch expiry date")

    manufacturing_date = models.DateField(null=True, blank=True)

    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Cost price per unit",
    )

    selling_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Retail price per unit (falls back to the cost price when unset)",
    )

    wholesale_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    barcode_id = models.CharField(max_length=100, blank=True, help_text="Scannable barcode")

    is_controlled = models.BooleanField(
        default=False, help_text="Controlled drug requiring a register entry"
    )

    nafdac_reg_number = models.CharField(
        max_length=50, blank=True, help_text="NAFDAC registration number"
    )

    dispensing_unit = models.CharField(
        max_length=20, choices=DISPENSING_UNIT_CHOICES, default=UNIT
    )

    is_shelved = models.BooleanField(
        default=True, help_text="Whether the batch is on the shelf and sellable"
    )

    last_notified_at = models.DateTimeField(
        null=True, blank=True, help_text="When the batch last appeared in an alert digest"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "medications"
        ordering = ["name", "expiry_date"]
        verbose_name = "Medication"
        verbose_name_plural = "Medications"
        indexes = [
            models.Index(fields=["pharmacy", "name"], name="med_pharmacy_name_idx"),
            models.Index(
                fields=["pharmacy", "normalized_name"], name="med_pharmacy_norm_name_idx"
            ),
            models.Index(fields=["pharmacy", "branch"], name="med_pharmacy_branch_idx"),
            models.Index(fields=["pharmacy", "expiry_date"], name="med_pharmacy_expiry_idx"),
            models.Index(fields=["barcode_id"], name="med_barcode_idx"),
            models.Index(fields=["batch_number"], name="med_batch_idx"),
            models.Index(
                fields=["pharmacy", "current_stock", "reorder_level"],
                name="med_low_stock_idx",
            ),
        ]

    def __str__(self):
        return f"{self.name} (batch {self.batch_number})"

    def save(self, *args, **kwargs):
        self.normalized_name = normalize_name(self.name)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "name" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"normalized_name"}
        super().save(*args, **kwargs)

    def get_price(self):
        """Selling price when set and positive, otherwise the cost price."""
        if self.selling_price is not None and self.selling_price > 0:
            return self.selling_price
        return self.unit_price

    def is_expired(self, today=None):
        today = today or timezone.localdate()
        return self.expiry_date < today

    def is_expiring_soon(self, days=None, today=None):
        """Not yet expired, but expiring within the warning window."""
        today = today or timezone.localdate()
        days = settings.EXPIRY_WARNING_DAYS if days is None else days
        return today <= self.expiry_date <= today + timedelta(days=days)

    def is_low_stock(self):
        return self.current_stock <= self.reorder_level

    def is_out_of_stock(self):
        return self.current_stock == 0

    def calculate_stock_value(self):
        return self.get_price() * self.current_stock

    def can_deduct_quantity(self, quantity):
        return self.current_stock >= quantity

    def deduct_quantity(self, quantity):
        """
        Deduct stock from this batch.

        Raises:
            ValueError: If insufficient stock
        """
        if not self.can_deduct_quantity(quantity):
            raise ValueError(
                f"Insufficient stock for {self.name}. "
                f"Available: {self.current_stock}, Requested: {quantity}"
            )
        self.current_stock -= quantity
        self.save(update_fields=["current_stock", "updated_at"])

    def add_quantity(self, quantity):
        if quantity <= 0:
            raise ValueError("Quantity to add must be positive")
        self.current_stock += quantity
        self.save(update_fields=["current_stock", "updated_at"])


class BranchStock(models.Model):
    """
    Quantity of a medication held at a specific branch.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    branch = models.ForeignKey(
        Branch,
        on_delete=models.CASCADE,
        related_name="stock",
        help_text="Branch holding the stock",
    )

    medication = models.ForeignKey(
        Medication,
        on_delete=models.CASCADE,
        related_name="branch_stock",
        help_text="Medication batch",
    )

    quantity = models.IntegerField(default=0, validators=[MinValueValidator(0)])

    reorder_level = models.IntegerField(default=10, validators=[MinValueValidator(0)])

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "branch_stock"
        ordering = ["branch", "medication__name"]
        unique_together = [["branch", "medication"]]
        indexes = [
            models.Index(fields=["branch", "quantity"], name="branch_stock_qty_idx"),
        ]

    def __str__(self):
        return f"{self.medication.name} @ {self.branch.name}: {self.quantity}"

    def is_low_stock(self):
        return self.quantity <= self.reorder_level

    def deduct_quantity(self, quantity):
        if self.quantity < quantity:
            raise ValueError(
                f"Insufficient stock for {self.medication.name} at {self.branch.name}. "
                f"Available: {self.quantity}, Requested: {quantity}"
            )
        self.quantity -= quantity
        self.save(update_fields=["quantity", "updated_at"])

    def add_quantity(self, quantity):
        self.quantity += quantity
        self.save(update_fields=["quantity", "updated_at"])


class StockTransfer(models.Model):
    """
    Inter-branch stock transfer with FSM workflow.

    State transitions:
    pending → approved → in_transit → received
    pending → rejected (terminal state)
    pending/approved → cancelled
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_TRANSIT = "in_transit"
    RECEIVED = "received"
    CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (PENDING, "Pending Approval"),
        (APPROVED, "Approved"),
        (REJECTED, "Rejected"),
        (IN_TRANSIT, "In Transit"),
        (RECEIVED, "Received"),
        (CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the transfer",
    )

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        related_name="stock_transfers",
    )

    transfer_number = models.CharField(
        max_length=50,
        help_text="Transfer number (e.g., TRF-20240315-0001)",
    )

    from_branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="transfers_out",
        help_text="Source branch sending the stock",
    )

    to_branch = models.ForeignKey(
        Branch,
        on_delete=models.PROTECT,
        related_name="transfers_in",
        help_text="Destination branch receiving the stock",
    )

    medication = models.ForeignKey(
        Medication,
        on_delete=models.PROTECT,
        related_name="transfers",
    )

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    status = FSMField(
        default=PENDING,
        choices=STATUS_CHOICES,
        protected=True,
        help_text="Current status of the transfer",
    )

    requested_by = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name="transfers_requested",
    )

    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transfers_approved",
    )

    rejected_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transfers_rejected",
    )

    shipped_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transfers_shipped",
    )

    received_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transfers_received",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)

    class Meta:
        db_table = "stock_transfers"
        ordering = ["-created_at"]
        verbose_name = "Stock Transfer"
        verbose_name_plural = "Stock Transfers"
        unique_together = [["pharmacy", "transfer_number"]]
        indexes = [
            models.Index(fields=["pharmacy", "status"], name="transfer_pharmacy_status_idx"),
            models.Index(fields=["pharmacy", "from_branch"], name="transfer_from_branch_idx"),
            models.Index(fields=["pharmacy", "to_branch"], name="transfer_to_branch_idx"),
        ]

    def __str__(self):
        return f"{self.transfer_number} ({self.from_branch.name} → {self.to_branch.name})"

    def save(self, *args, **kwargs):
        """Generate transfer number if not provided."""
        if not self.transfer_number:
            date_str = timezone.now().strftime("%Y%m%d")
            today_count = (
                StockTransfer.objects.filter(
                    pharmacy=self.pharmacy, transfer_number__startswith=f"TRF-{date_str}"
                ).count()
                + 1
            )
            self.transfer_number = f"TRF-{date_str}-{today_count:04d}"

        super().save(*args, **kwargs)

    @transition(field=status, source=PENDING, target=APPROVED)
    def approve(self, user):
        self.approved_by = user
        self.approved_at = timezone.now()

    @transition(field=status, source=PENDING, target=REJECTED)
    def reject(self, user, reason=""):
        """
        Reject the transfer request.

        Args:
            user: User rejecting the transfer
            reason: Reason for rejection
        """
        self.rejected_by = user
        self.rejected_at = timezone.now()
        self.rejection_reason = reason

    @transition(field=status, source=APPROVED, target=IN_TRANSIT)
    def mark_shipped(self, user):
        """
        Mark the transfer as in transit and take the stock out of the source branch.

        Raises:
            ValueError: If the source branch does not hold enough stock
        """
        from apps.inventory.services import deduct_branch_stock

        deduct_branch_stock(self.from_branch, self.medication, self.quantity)
        self.shipped_by = user
        self.shipped_at = timezone.now()

    @transition(field=status, source=IN_TRANSIT, target=RECEIVED)
    def mark_received(self, user):
        """Add the stock to the destination branch."""
        from apps.inventory.services import receive_branch_stock

        receive_branch_stock(self.to_branch, self.medication, self.quantity)
        self.received_by = user
        self.received_at = timezone.now()

    @transition(field=status, source=[PENDING, APPROVED], target=CANCELLED)
    def cancel(self, user, reason=""):
        self.notes = f"{self.notes}\n\nCancelled by {user.username}: {reason}".strip()

    def can_approve(self, user):
        """Owners and managers of the same pharmacy, other than the requester."""
        return (
            user.is_owner_or_manager()
            and user.id != self.requested_by_id
            and user.pharmacy_id == self.pharmacy_id
        )

    def calculate_total_value(self):
        return self.medication.get_price() * self.quantity
