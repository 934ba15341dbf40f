from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Notification, SentAlert


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin interface for Notification model"""

    list_display = ["title", "pharmacy", "user", "notification_type", "priority", "is_read", "created_at"]
    list_filter = ["notification_type", "priority", "is_read", "created_at"]
    search_fields = ["title", "message", "user__username"]
    readonly_fields = ["created_at", "read_at"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (_("Basic Information"), {"fields": ("pharmacy", "user", "title", "message")}),
        (_("Display"), {"fields": ("notification_type", "priority", "link", "metadata")}),
        (_("Status"), {"fields": ("is_read", "read_at", "created_at")}),
    )


@admin.register(SentAlert)
class SentAlertAdmin(admin.ModelAdmin):
    list_display = ["pharmacy", "alert_type", "channel", "recipient_phone", "status", "created_at"]
    list_filter = ["alert_type", "channel", "status", "created_at"]
    search_fields = ["recipient_phone", "pharmacy__name"]
    readonly_fields = [field.name for field in SentAlert._meta.fields]
