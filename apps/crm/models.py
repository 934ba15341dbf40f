"""
CRM models for pharmacy customers.

- Customer profiles with purchase history totals
- Loyalty points ledger (earned on sales, redeemed at the till, reversed on voids)
- Prescriptions with refill tracking
"""

import uuid
from decimal import Decimal

from django.db import models, transaction
from django.utils import timezone

from apps.core.models import Pharmacy, User


class Customer(models.Model):
    """
    A pharmacy customer.

    Loyalty points are only ever changed through add_loyalty_points,
    redeem_loyalty_points and reverse_loyalty_points so every change is
    recorded in the ledger.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the customer",
    )

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        related_name="customers",
        help_text="Pharmacy that owns this customer record",
    )

    full_name = models.CharField(max_length=255)

    phone = models.CharField(max_length=20, blank=True, help_text="Customer phone number")

    email = models.EmailField(blank=True)

    date_of_birth = models.DateField(null=True, blank=True)

    address = models.TextField(blank=True)

    notes = models.TextField(blank=True, help_text="Allergies, preferences and other notes")

    loyalty_points = models.IntegerField(default=0, help_text="Current loyalty points balance")

    total_purchases = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Total amount spent by customer",
    )

    last_purchase_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "customers"
        ordering = ["full_name"]
        verbose_name = "Customer"
        verbose_name_plural = "Customers"
        indexes = [
            models.Index(fields=["pharmacy", "full_name"], name="customer_pharmacy_name_idx"),
            models.Index(fields=["pharmacy", "phone"], name="customer_pharmacy_phone_idx"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.phone or 'no phone'})"

    @transaction.atomic
    def add_loyalty_points(self, points, description="", sale=None, created_by=None):
        """
        Credit loyalty points.

        Raises:
            ValueError: If points is not positive
        """
        if points <= 0:
            raise ValueError("Points to add must be positive")

        Customer.objects.filter(id=self.id).update(
            loyalty_points=models.F("loyalty_points") + points
        )
        self.refresh_from_db(fields=["loyalty_points"])

        return LoyaltyTransaction.objects.create(
            customer=self,
            sale=sale,
            transaction_type=LoyaltyTransaction.EARNED,
            points=points,
            description=description or f"Points earned: {points}",
            created_by=created_by,
        )

    @transaction.atomic
    def redeem_loyalty_points(self, points, description="", created_by=None):
        """
        Debit loyalty points.

        Raises:
            ValueError: If points is not positive or exceeds the balance
        """
        customer = Customer.objects.select_for_update().get(id=self.id)
        if points <= 0 or points > customer.loyalty_points:
            raise ValueError("Invalid points amount for redemption")

        customer.loyalty_points -= points
        customer.save(update_fields=["loyalty_points", "updated_at"])
        self.loyalty_points = customer.loyalty_points

        return LoyaltyTransaction.objects.create(
            customer=self,
            transaction_type=LoyaltyTransaction.REDEEMED,
            points=-points,
            description=description or f"Points redeemed: {points}",
            created_by=created_by,
        )

    @transaction.atomic
    def reverse_loyalty_points(self, points, description="", sale=None):
        """Take back points awarded for a voided sale; the balance never goes below zero."""
        customer = Customer.objects.select_for_update().get(id=self.id)
        reversed_points = min(points, customer.loyalty_points)
        customer.loyalty_points -= reversed_points
        customer.save(update_fields=["loyalty_points", "updated_at"])
        self.loyalty_points = customer.loyalty_points

        return LoyaltyTransaction.objects.create(
            customer=self,
            sale=sale,
            transaction_type=LoyaltyTransaction.REVERSED,
            points=-reversed_points,
            description=description or f"Points reversed: {reversed_points}",
        )


class LoyaltyTransaction(models.Model):
    """
    Ledger entry for a loyalty points change.
    """

    EARNED = "EARNED"
    REDEEMED = "REDEEMED"
    REVERSED = "REVERSED"

    TRANSACTION_TYPE_CHOICES = [
        (EARNED, "Points Earned"),
        (REDEEMED, "Points Redeemed"),
        (REVERSED, "Points Reversed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name="loyalty_transactions",
    )

    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPE_CHOICES)

    points = models.IntegerField(
        help_text="Points amount (positive for earned, negative for redeemed/reversed)"
    )

    description = models.CharField(max_length=255)

    sale = models.ForeignKey(
        "sales.Sale",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="loyalty_transactions",
        help_text="Sale that generated this transaction (if applicable)",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        help_text="User who made a manual adjustment",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "loyalty_transactions"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "-created_at"], name="loyalty_cust_date_idx"),
            models.Index(fields=["sale", "transaction_type"], name="loyalty_sale_type_idx"),
        ]

    def __str__(self):
        return f"{self.customer.full_name} - {self.transaction_type}: {self.points} points"


class Prescription(models.Model):
    """
    A prescription held on file for a customer, with refill tracking.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (ACTIVE, "Active"),
        (COMPLETED, "Completed"),
        (EXPIRED, "Expired"),
        (CANCELLED, "Cancelled"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.CASCADE, related_name="prescriptions")

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="prescriptions")

    prescription_number = models.CharField(
        max_length=50, help_text="Prescription reference (e.g., PRE-000042)"
    )

    prescriber_name = models.CharField(max_length=255)

    prescriber_phone = models.CharField(max_length=20, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ACTIVE)

    refill_count = models.PositiveIntegerField(default=0)

    max_refills = models.PositiveIntegerField(default=0)

    issued_date = models.DateField(default=timezone.localdate)

    expiry_date = models.DateField(null=True, blank=True)

    notes = models.TextField(blank=True)

    items = models.JSONField(
        default=list,
        blank=True,
        help_text="Prescribed items: [{'medication_name', 'dosage', 'quantity', 'instructions'}]",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "prescriptions"
        ordering = ["-issued_date", "-created_at"]
        unique_together = [["pharmacy", "prescription_number"]]
        indexes = [
            models.Index(fields=["pharmacy", "status"], name="rx_pharmacy_status_idx"),
            models.Index(fields=["customer", "status"], name="rx_customer_status_idx"),
        ]

    def __str__(self):
        return f"{self.prescription_number} for {self.customer.full_name}"

    def save(self, *args, **kwargs):
        if not self.prescription_number:
            count = Prescription.objects.filter(pharmacy=self.pharmacy).count() + 1
            self.prescription_number = f"PRE-{count:06d}"
        super().save(*args, **kwargs)

    def can_refill(self):
        return self.status == self.ACTIVE and self.refill_count < self.max_refills

    def refill(self):
        """
        Record a refill; the prescription completes when its refills run out.

        Raises:
            ValueError: If the prescription is not active or has no refills left
        """
        if not self.can_refill():
            raise ValueError(
                f"Prescription {self.prescription_number} cannot be refilled "
                f"({self.status}, {self.refill_count}/{self.max_refills} refills used)"
            )
        self.refill_count += 1
        if self.refill_count >= self.max_refills:
            self.status = self.COMPLETED
        self.save(update_fields=["refill_count", "status", "updated_at"])

    def is_past_expiry(self, today=None):
        today = today or timezone.localdate()
        return self.expiry_date is not None and self.expiry_date < today
