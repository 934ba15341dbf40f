from django.contrib import admin

from .models import UpsellEvent


@admin.register(UpsellEvent)
class UpsellEventAdmin(admin.ModelAdmin):
    list_display = ["product_name", "event_type", "pharmacy", "confidence", "created_at"]
    list_filter = ["event_type", "created_at"]
    search_fields = ["product_name"]
    readonly_fields = ["created_at"]
