"""
Admin configuration for CRM models.
"""

from django.contrib import admin

from .models import Customer, LoyaltyTransaction, Prescription


class LoyaltyTransactionInline(admin.TabularInline):
    model = LoyaltyTransaction
    extra = 0
    readonly_fields = ["transaction_type", "points", "description", "sale", "created_at"]
    can_delete = False


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["full_name", "phone", "pharmacy", "loyalty_points", "total_purchases"]
    list_filter = ["pharmacy"]
    search_fields = ["full_name", "phone", "email"]
    readonly_fields = ["loyalty_points", "total_purchases", "last_purchase_at", "created_at"]
    inlines = [LoyaltyTransactionInline]


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = [
        "prescription_number",
        "customer",
        "prescriber_name",
        "status",
        "refill_count",
        "max_refills",
        "expiry_date",
    ]
    list_filter = ["status", "pharmacy"]
    search_fields = ["prescription_number", "customer__full_name", "prescriber_name"]
