"""
Sales models for the pharmacy point of sale.

- Sales with line items and the batches they were drawn from
- Staff shifts with running sales totals
- Held (parked) carts that can be resumed later
- Offline sales carry the client's transaction id so replays are idempotent
"""

import secrets
import string
import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from apps.core.models import Branch, Pharmacy, User
from apps.inventory.models import Medication


class Shift(models.Model):
    """
    A staff member's working shift.

    total_sales and total_transactions accumulate the sales recorded while
    the shift is open.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.CASCADE, related_name="shifts")

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="shifts",
    )

    staff = models.ForeignKey(User, on_delete=models.CASCADE, related_name="shifts")

    clock_in = models.DateTimeField(help_text="When the shift started")

    clock_out = models.DateTimeField(
        null=True, blank=True, help_text="When the shift ended (null while open)"
    )

    notes = models.TextField(blank=True)

    total_sales = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    total_transactions = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "shifts"
        ordering = ["-clock_in"]
        indexes = [
            models.Index(fields=["pharmacy", "staff"], name="shift_pharmacy_staff_idx"),
            models.Index(fields=["staff", "clock_out"], name="shift_staff_open_idx"),
        ]

    def __str__(self):
        return f"{self.staff.username} shift from {self.clock_in:%Y-%m-%d %H:%M}"

    def is_open(self):
        return self.clock_out is None

    def duration_hours(self):
        from django.utils import timezone

        end = self.clock_out or timezone.now()
        return round((end - self.clock_in).total_seconds() / 3600, 2)


class Sale(models.Model):
    """
    A completed point-of-sale transaction.
    """

    COMPLETED = "completed"
    VOIDED = "voided"

    STATUS_CHOICES = [
        (COMPLETED, "Completed"),
        (VOIDED, "Voided"),
    ]

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    POS = "pos"

    PAYMENT_METHOD_CHOICES = [
        (CASH, "Cash"),
        (CARD, "Card"),
        (TRANSFER, "Bank Transfer"),
        (POS, "POS Terminal"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the sale",
    )

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        related_name="sales",
        help_text="Pharmacy that owns this sale",
    )

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
    )

    receipt_number = models.CharField(
        max_length=50,
        help_text="Sequential receipt number per pharmacy (e.g., RX-00000042)",
    )

    customer = models.ForeignKey(
        "crm.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
    )

    customer_name = models.CharField(max_length=255, blank=True)

    sold_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Staff member who made the sale",
    )

    staff_name = models.CharField(max_length=255, blank=True)

    shift = models.ForeignKey(
        Shift,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
    )

    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHOD_CHOICES, default=CASH
    )

    total = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=COMPLETED)

    # Offline replay
    client_transaction_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        help_text="Client-generated id of an offline sale; unique per pharmacy",
    )

    is_offline = models.BooleanField(default=False)

    offline_created_at = models.DateTimeField(
        null=True, blank=True, help_text="When the sale was made on the disconnected device"
    )

    voided_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="voided_sales",
    )

    voided_at = models.DateTimeField(null=True, blank=True)

    void_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sales"
        ordering = ["-created_at"]
        verbose_name = "Sale"
        verbose_name_plural = "Sales"
        unique_together = [["pharmacy", "receipt_number"]]
        constraints = [
            models.UniqueConstraint(
                fields=["pharmacy", "client_transaction_id"],
                condition=Q(client_transaction_id__isnull=False),
                name="sale_unique_client_txn",
            )
        ]
        indexes = [
            models.Index(fields=["pharmacy", "-created_at"], name="sale_pharmacy_created_idx"),
            models.Index(fields=["pharmacy", "branch"], name="sale_pharmacy_branch_idx"),
            models.Index(fields=["pharmacy", "sold_by"], name="sale_pharmacy_staff_idx"),
            models.Index(fields=["pharmacy", "status"], name="sale_pharmacy_status_idx"),
        ]

    def __str__(self):
        return f"{self.receipt_number} - {self.total}"

    def is_voided(self):
        return self.status == self.VOIDED

    def can_be_voided(self):
        return self.status == self.COMPLETED


class SaleItem(models.Model):
    """
    A line on a sale, drawn from one medication batch.

    A cart line that spans several batches is stored as one item per batch so
    a void can put stock back where it came from.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="items")

    medication = models.ForeignKey(
        Medication,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sale_items",
    )

    medication_name = models.CharField(max_length=255)

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)

    total_price = models.DecimalField(max_digits=14, decimal_places=2)

    batch_expiry_info = models.CharField(
        max_length=255, blank=True, help_text="Receipt annotation such as '2x exp Mar 26'"
    )

    class Meta:
        db_table = "sale_items"
        ordering = ["sale", "medication_name"]

    def __str__(self):
        return f"{self.quantity} x {self.medication_name}"

    def save(self, *args, **kwargs):
        self.total_price = self.unit_price * self.quantity
        super().save(*args, **kwargs)


def generate_short_code(length=6):
    alphabet = string.ascii_uppercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


class HeldTransaction(models.Model):
    """
    A parked cart that can be resumed later, on any device.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        Pharmacy, on_delete=models.CASCADE, related_name="held_transactions"
    )

    held_by = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="held_transactions"
    )

    customer_name = models.CharField(max_length=255, blank=True)

    items = models.JSONField(default=list, help_text="Cart lines as sent by the POS")

    total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    short_code = models.CharField(
        max_length=6, help_text="Code for recalling the cart at another till"
    )

    held_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "held_transactions"
        ordering = ["-held_at"]
        unique_together = [["pharmacy", "short_code"]]

    def __str__(self):
        return f"Held {self.short_code} ({self.customer_name or 'walk-in'})"

    def save(self, *args, **kwargs):
        if not self.short_code:
            code = generate_short_code()
            while HeldTransaction.objects.filter(pharmacy=self.pharmacy, short_code=code).exists():
                code = generate_short_code()
            self.short_code = code
        super().save(*args, **kwargs)
