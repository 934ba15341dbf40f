"""
Procurement models for pharmacy purchasing.

- Suppliers and the products they offer
- Reorder requests that move from request to delivery through an FSM
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from apps.core.models import Branch, Pharmacy, User
from apps.inventory.models import Medication


class Supplier(models.Model):
    """
    Supplier model for managing pharmaceutical wholesalers and distributors.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the supplier",
    )

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        related_name="suppliers",
        help_text="Pharmacy that owns this supplier record",
    )

    name = models.CharField(max_length=255, help_text="Supplier company name")

    contact_person = models.CharField(max_length=255, blank=True)

    email = models.EmailField(blank=True)

    phone = models.CharField(max_length=20, blank=True)

    address = models.TextField(blank=True)

    website = models.URLField(blank=True)

    payment_terms = models.CharField(
        max_length=100, blank=True, help_text="Payment terms (e.g., Net 30, COD)"
    )

    notes = models.TextField(blank=True)

    is_active = models.BooleanField(default=True, help_text="Whether the supplier is active")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "suppliers"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["pharmacy", "name"], name="supplier_pharmacy_name_idx"),
            models.Index(fields=["pharmacy", "is_active"], name="supplier_pharmacy_active_idx"),
        ]

    def __str__(self):
        return self.name


class SupplierProduct(models.Model):
    """
    A product a supplier sells, optionally linked to a medication in stock.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name="products")

    medication = models.ForeignKey(
        Medication,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="supplier_products",
        help_text="Matching medication in inventory, if any",
    )

    product_name = models.CharField(max_length=255)

    sku = models.CharField(max_length=100, blank=True, help_text="Supplier's product code")

    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    min_order_quantity = models.PositiveIntegerField(default=1)

    lead_time_days = models.PositiveIntegerField(
        default=0, help_text="Typical days between order and delivery"
    )

    is_available = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "supplier_products"
        ordering = ["product_name"]
        indexes = [
            models.Index(fields=["medication", "is_available"], name="supprod_med_avail_idx"),
        ]

    def __str__(self):
        return f"{self.product_name} from {self.supplier.name}"


class ReorderRequest(models.Model):
    """
    A request to restock a medication from a supplier.

    Flow: pending -> approved -> ordered -> shipped -> delivered. Anything
    before shipping can be cancelled.
    """

    PENDING = "pending"
    APPROVED = "approved"
    ORDERED = "ordered"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (PENDING, "Pending Approval"),
        (APPROVED, "Approved"),
        (ORDERED, "Ordered"),
        (SHIPPED, "Shipped"),
        (DELIVERED, "Delivered"),
        (CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        Pharmacy, on_delete=models.CASCADE, related_name="reorder_requests"
    )

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reorder_requests",
    )

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reorder_requests",
    )

    medication = models.ForeignKey(
        Medication,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reorder_requests",
    )

    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    unit_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="quantity x unit_price",
    )

    status = FSMField(
        default=PENDING,
        choices=STATUS_CHOICES,
        protected=True,
        help_text="Current status of the reorder request",
    )

    requested_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name="reorder_requests",
    )

    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_reorder_requests",
    )

    approved_at = models.DateTimeField(null=True, blank=True)

    expected_delivery = models.DateField(null=True, blank=True)

    actual_delivery = models.DateField(null=True, blank=True)

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "reorder_requests"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["pharmacy", "status"], name="reorder_pharmacy_status_idx"),
            models.Index(fields=["supplier", "status"], name="reorder_supplier_status_idx"),
        ]

    def __str__(self):
        name = self.medication.name if self.medication else "unknown item"
        return f"Reorder {self.quantity} x {name} ({self.status})"

    def save(self, *args, **kwargs):
        self.total_amount = (self.unit_price or Decimal("0.00")) * self.quantity
        super().save(*args, **kwargs)

    @transition(field=status, source=PENDING, target=APPROVED)
    def approve(self, user):
        self.approved_by = user
        self.approved_at = timezone.now()

    @transition(field=status, source=APPROVED, target=ORDERED)
    def mark_ordered(self):
        pass

    @transition(field=status, source=ORDERED, target=SHIPPED)
    def mark_shipped(self):
        pass

    @transition(field=status, source=SHIPPED, target=DELIVERED)
    def mark_delivered(self, receive_stock=False, today=None):
        """
        Record delivery, optionally adding the quantity to the medication.
        """
        self.actual_delivery = today or timezone.localdate()
        if receive_stock and self.medication is not None:
            self.medication.add_quantity(self.quantity)

    @transition(field=status, source=[PENDING, APPROVED, ORDERED], target=CANCELLED)
    def cancel(self, user, reason=""):
        self.notes = f"{self.notes}\n\nCancelled by {user.username}: {reason}".strip()
