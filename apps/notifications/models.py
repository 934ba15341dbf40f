import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.core.models import Pharmacy, User


class Notification(models.Model):
    """
    In-app notification.

    A notification without a user is shown to every staff member of the
    pharmacy.
    """

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"

    NOTIFICATION_TYPES = [
        (INFO, _("Information")),
        (SUCCESS, _("Success")),
        (WARNING, _("Warning")),
        (DANGER, _("Danger")),
    ]

    PRIORITY_LOW = "low"
    PRIORITY_MEDIUM = "medium"
    PRIORITY_HIGH = "high"
    PRIORITY_CRITICAL = "critical"

    PRIORITY_CHOICES = [
        (PRIORITY_LOW, _("Low")),
        (PRIORITY_MEDIUM, _("Medium")),
        (PRIORITY_HIGH, _("High")),
        (PRIORITY_CRITICAL, _("Critical")),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(
        Pharmacy,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text=_("Pharmacy this notification belongs to"),
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="notifications",
        help_text=_("Recipient; empty means every staff member of the pharmacy"),
    )
    title = models.CharField(max_length=255, help_text=_("Notification title"))
    message = models.TextField(help_text=_("Notification message content"))
    notification_type = models.CharField(
        max_length=20,
        choices=NOTIFICATION_TYPES,
        default=INFO,
        help_text=_("Type of notification for styling and filtering"),
    )
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM)
    link = models.CharField(
        max_length=255, blank=True, help_text=_("Client route to open when clicked")
    )
    metadata = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(
        default=False, help_text=_("Whether the notification has been read")
    )
    read_at = models.DateTimeField(
        null=True, blank=True, help_text=_("When the notification was marked as read")
    )
    created_at = models.DateTimeField(
        auto_now_add=True, help_text=_("When the notification was created")
    )

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["pharmacy", "-created_at"], name="notif_pharmacy_created_idx"),
            models.Index(fields=["user", "is_read", "-created_at"], name="notif_user_read_idx"),
        ]
        verbose_name = _("Notification")
        verbose_name_plural = _("Notifications")

    def __str__(self):
        return f"{self.title} - {self.user.username if self.user else 'all staff'}"

    def mark_as_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=["is_read", "read_at"])


class SentAlert(models.Model):
    """
    Log of an alert message sent by SMS or WhatsApp.
    """

    DAILY_DIGEST = "daily_digest"
    MANUAL = "manual"

    ALERT_TYPES = [
        (DAILY_DIGEST, _("Daily Digest")),
        (MANUAL, _("Manual Alert")),
    ]

    CHANNEL_SMS = "sms"
    CHANNEL_WHATSAPP = "whatsapp"

    CHANNEL_CHOICES = [
        (CHANNEL_SMS, _("SMS")),
        (CHANNEL_WHATSAPP, _("WhatsApp")),
    ]

    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_SENT, _("Sent")),
        (STATUS_FAILED, _("Failed")),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.CASCADE, related_name="sent_alerts")
    alert_type = models.CharField(max_length=30, choices=ALERT_TYPES, default=DAILY_DIGEST)
    channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES)
    recipient_phone = models.CharField(max_length=20)
    message = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SENT)
    provider_message_id = models.CharField(
        max_length=255, blank=True, help_text=_("Message id returned by the SMS provider")
    )
    items_included = models.JSONField(
        default=list, blank=True, help_text=_("Ids of the medications the alert covered")
    )
    error_message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "sent_alerts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["pharmacy", "-created_at"], name="alert_pharmacy_created_idx"),
        ]

    def __str__(self):
        return f"{self.alert_type} to {self.recipient_phone} via {self.channel} ({self.status})"
