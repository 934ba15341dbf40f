"""
Core models for the pharmacy POS platform.
"""

import math
import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

from apps.core import plans


class Pharmacy(models.Model):
    """
    Core tenant model for multi-tenancy.

    Each pharmacy is a business subscribed to the platform. Every tenant-owned
    row carries a ``pharmacy`` foreign key and all queries are scoped to the
    requesting user's pharmacy.
    """

    # Subscription status choices
    STATUS_TRIAL = "trial"
    STATUS_ACTIVE = "active"
    STATUS_CANCELLED = "cancelled"
    STATUS_EXPIRED = "expired"

    STATUS_CHOICES = [
        (STATUS_TRIAL, "Trial"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_EXPIRED, "Expired"),
    ]

    # Alert channel choices
    CHANNEL_SMS = "sms"
    CHANNEL_WHATSAPP = "whatsapp"

    CHANNEL_CHOICES = [
        (CHANNEL_SMS, "SMS"),
        (CHANNEL_WHATSAPP, "WhatsApp"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the pharmacy",
    )

    name = models.CharField(max_length=255, help_text="Trading name of the pharmacy")

    slug = models.SlugField(
        unique=True, max_length=255, help_text="URL-friendly identifier for the pharmacy"
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="owned_pharmacies",
        help_text="User who registered and owns the pharmacy",
    )

    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)

    alert_recipient_phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Phone that receives the daily alert digest (defaults to the pharmacy phone)",
    )

    alert_channel = models.CharField(
        max_length=20,
        choices=CHANNEL_CHOICES,
        default=CHANNEL_SMS,
        help_text="Preferred delivery channel for alert digests",
    )

    # Subscription
    subscription_plan = models.CharField(
        max_length=20,
        choices=plans.PLAN_CHOICES,
        default=plans.STARTER,
        help_text="Subscription tier that decides limits and features",
    )

    subscription_status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_TRIAL,
        help_text="Current subscription status",
    )

    trial_ends_at = models.DateTimeField(null=True, blank=True)
    subscription_ends_at = models.DateTimeField(null=True, blank=True)

    active_branches_limit = models.PositiveIntegerField(
        default=1, help_text="Number of branches the pharmacy pays for"
    )

    branch_fee_per_month = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("15000.00"),
        help_text="Monthly fee per additional branch",
    )

    # AI usage
    ai_scans_used = models.PositiveIntegerField(
        default=0, help_text="Invoice scans used in the current month"
    )
    ai_scans_reset_at = models.DateTimeField(
        null=True, blank=True, help_text="When the scan counter was last reset"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "pharmacies"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["subscription_status"], name="pharmacy_sub_status_idx"),
            models.Index(fields=["slug"], name="pharmacy_slug_idx"),
        ]
        verbose_name = "Pharmacy"
        verbose_name_plural = "Pharmacies"

    def __str__(self):
        return f"{self.name} ({self.subscription_plan})"

    def save(self, *args, **kwargs):
        """
        Override save to auto-generate slug from name if not provided.
        """
        if not self.slug:
            self.slug = slugify(self.name) or "pharmacy"
            if Pharmacy.objects.filter(slug=self.slug).exists():
                self.slug = f"{self.slug}-{str(uuid.uuid4())[:8]}"
        super().save(*args, **kwargs)

    # Subscription state

    def is_subscription_expired(self):
        """Trials expire at trial_ends_at, paid plans at subscription_ends_at."""
        now = timezone.now()
        if self.subscription_status == self.STATUS_TRIAL:
            return self.trial_ends_at is not None and now > self.trial_ends_at
        if self.subscription_status == self.STATUS_ACTIVE:
            return self.subscription_ends_at is not None and now > self.subscription_ends_at
        return True

    def days_remaining(self):
        """
        Whole days left in the current trial or paid period.

        Returns the default trial length when a trial has no end date, and
        None for an open-ended active subscription.
        """
        now = timezone.now()
        if self.subscription_status == self.STATUS_TRIAL:
            if not self.trial_ends_at:
                return settings.TRIAL_PERIOD_DAYS
            seconds = (self.trial_ends_at - now).total_seconds()
            return max(0, math.ceil(seconds / 86400))
        if self.subscription_status == self.STATUS_ACTIVE:
            if not self.subscription_ends_at:
                return None
            seconds = (self.subscription_ends_at - now).total_seconds()
            return max(0, math.ceil(seconds / 86400))
        return 0

    def can_access_features(self):
        """Only trial and active subscriptions that have not lapsed unlock features."""
        return (
            self.subscription_status in (self.STATUS_TRIAL, self.STATUS_ACTIVE)
            and not self.is_subscription_expired()
        )

    def start_trial(self, days=None):
        """Start a trial period on the current plan."""
        days = settings.TRIAL_PERIOD_DAYS if days is None else days
        self.subscription_status = self.STATUS_TRIAL
        self.trial_ends_at = timezone.now() + timedelta(days=days)
        self.save(update_fields=["subscription_status", "trial_ends_at", "updated_at"])

    def activate_subscription(self, plan, months=1):
        """
        Activate a paid subscription for the given number of months.

        Args:
            plan: One of the plan keys in ``apps.core.plans``
            months: Length of the paid period
        """
        from dateutil.relativedelta import relativedelta

        if plan not in plans.PLAN_LIMITS:
            raise ValueError(f"Unknown subscription plan: {plan}")

        self.subscription_plan = plan
        self.subscription_status = self.STATUS_ACTIVE
        self.subscription_ends_at = timezone.now() + relativedelta(months=months)
        self.active_branches_limit = min(self.active_branches_limit, plans.get_limits(plan)["max_branches"])
        self.save(
            update_fields=[
                "subscription_plan",
                "subscription_status",
                "subscription_ends_at",
                "active_branches_limit",
                "updated_at",
            ]
        )

    def cancel_subscription(self):
        """Cancel the subscription; features lock immediately."""
        self.subscription_status = self.STATUS_CANCELLED
        self.save(update_fields=["subscription_status", "updated_at"])

    # Limits

    def get_limits(self):
        return plans.get_limits(self.subscription_plan)

    def get_branch_limit(self):
        """Paid-for branch slots, capped by the plan maximum."""
        return max(1, min(self.active_branches_limit, self.get_limits()["max_branches"]))

    def get_user_limit(self):
        return self.get_limits()["max_users"]


class Branch(models.Model):
    """
    Branch model for multi-branch pharmacies.

    Each pharmacy has at least one branch; additional branches depend on the plan.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the branch",
    )

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        related_name="branches",
        help_text="Pharmacy that owns this branch",
    )

    name = models.CharField(max_length=255, help_text="Branch name")

    address = models.TextField(blank=True, help_text="Branch address")

    phone = models.CharField(max_length=20, blank=True, help_text="Branch phone number")

    is_main = models.BooleanField(default=False, help_text="Whether this is the head office")

    is_active = models.BooleanField(default=True, help_text="Whether the branch is active")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "branches"
        ordering = ["created_at"]
        verbose_name = "Branch"
        verbose_name_plural = "Branches"
        unique_together = [["pharmacy", "name"]]
        indexes = [
            models.Index(fields=["pharmacy", "is_active"], name="branch_pharmacy_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.pharmacy.name})"


class User(AbstractUser):
    """
    Extended user model with pharmacy association and role-based access.
    """

    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    STAFF = "STAFF"

    ROLE_CHOICES = [
        (PLATFORM_ADMIN, "Platform Administrator"),
        (OWNER, "Pharmacy Owner"),
        (MANAGER, "Pharmacy Manager"),
        (STAFF, "Pharmacy Staff"),
    ]

    PHARMACY_ROLES = [OWNER, MANAGER, STAFF]

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="users",
        help_text="Pharmacy that this user belongs to (null for platform admins)",
    )

    role = models.CharField(
        max_length=50,
        choices=ROLE_CHOICES,
        default=STAFF,
        help_text="User's role in the pharmacy",
    )

    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        help_text="Branch that this user is assigned to",
    )

    phone = models.CharField(max_length=20, blank=True, help_text="User's phone number")

    class Meta:
        db_table = "users"
        ordering = ["username"]
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["pharmacy", "role"], name="user_pharmacy_role_idx"),
            models.Index(fields=["pharmacy", "branch"], name="user_pharmacy_branch_idx"),
        ]

    def __str__(self):
        if self.pharmacy:
            return f"{self.username} ({self.get_role_display()} - {self.pharmacy.name})"
        return f"{self.username} ({self.get_role_display()})"

    def is_platform_admin(self):
        return self.role == self.PLATFORM_ADMIN

    def is_owner(self):
        return self.role == self.OWNER

    def is_manager(self):
        return self.role == self.MANAGER

    def is_owner_or_manager(self):
        return self.role in [self.OWNER, self.MANAGER]

    def has_pharmacy_access(self):
        """Check if user can work inside a pharmacy."""
        return self.pharmacy_id is not None and self.role in self.PHARMACY_ROLES

    def get_display_name(self):
        return self.get_full_name() or self.username

    def save(self, *args, **kwargs):
        """
        Override save to ensure data consistency.
        """
        if self.role == self.PLATFORM_ADMIN:
            self.pharmacy = None
            self.branch = None

        if self.role in self.PHARMACY_ROLES and not self.pharmacy_id:
            raise ValueError(f"Users with role {self.role} must have a pharmacy assigned")

        if self.branch_id and self.pharmacy_id:
            if hasattr(self.branch, "pharmacy_id"):
                branch_pharmacy_id = self.branch.pharmacy_id
            else:
                branch_pharmacy_id = (
                    Branch.objects.filter(id=self.branch_id)
                    .values_list("pharmacy_id", flat=True)
                    .first()
                )

            if branch_pharmacy_id != self.pharmacy_id:
                raise ValueError("Branch must belong to the same pharmacy as the user")

        super().save(*args, **kwargs)


class StaffPermission(models.Model):
    """
    Explicit permission grant for a staff member.

    Owners and managers hold every permission implicitly; staff only hold
    the keys granted here.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="staff_permissions",
    )

    permission_key = models.CharField(max_length=50, choices=plans.PERMISSION_CHOICES)

    is_granted = models.BooleanField(default=True)

    granted_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="permissions_granted",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "staff_permissions"
        unique_together = [["user", "permission_key"]]
        verbose_name = "Staff Permission"
        verbose_name_plural = "Staff Permissions"

    def __str__(self):
        state = "granted" if self.is_granted else "revoked"
        return f"{self.user.username}: {self.permission_key} ({state})"
