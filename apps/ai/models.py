"""
Models for AI feature analytics.
"""

import uuid

from django.db import models

from apps.core.models import Pharmacy, User
from apps.inventory.models import Medication


class UpsellEvent(models.Model):
    """
    A smart-upsell suggestion that was shown at the till, or accepted.
    """

    SHOWN = "shown"
    ACCEPTED = "accepted"

    EVENT_TYPE_CHOICES = [
        (SHOWN, "Shown"),
        (ACCEPTED, "Accepted"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        Pharmacy, on_delete=models.CASCADE, related_name="upsell_events"
    )

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="upsell_events",
    )

    medication = models.ForeignKey(
        Medication,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="upsell_events",
        help_text="Suggested product",
    )

    product_name = models.CharField(max_length=255)

    event_type = models.CharField(max_length=20, choices=EVENT_TYPE_CHOICES)

    reason = models.CharField(max_length=255, blank=True)

    confidence = models.DecimalField(max_digits=4, decimal_places=2, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "upsell_events"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["pharmacy", "event_type"], name="upsell_pharmacy_type_idx"),
            models.Index(fields=["pharmacy", "-created_at"], name="upsell_pharmacy_date_idx"),
        ]

    def __str__(self):
        return f"{self.product_name} {self.event_type}"
