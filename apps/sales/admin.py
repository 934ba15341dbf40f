"""
Admin configuration for sales models.
"""

from django.contrib import admin

from .models import HeldTransaction, Sale, SaleItem, Shift


class SaleItemInline(admin.TabularInline):
    model = SaleItem
    extra = 0
    readonly_fields = [
        "medication",
        "medication_name",
        "quantity",
        "unit_price",
        "total_price",
        "batch_expiry_info",
    ]
    can_delete = False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    """Admin interface for Sale."""

    list_display = [
        "receipt_number",
        "pharmacy",
        "branch",
        "staff_name",
        "payment_method",
        "total",
        "status",
        "is_offline",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "is_offline", "created_at"]
    search_fields = ["receipt_number", "customer_name", "staff_name", "client_transaction_id"]
    readonly_fields = ["receipt_number", "created_at", "updated_at", "voided_at"]
    inlines = [SaleItemInline]


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ["staff", "pharmacy", "branch", "clock_in", "clock_out", "total_sales"]
    list_filter = ["pharmacy"]
    search_fields = ["staff__username"]


@admin.register(HeldTransaction)
class HeldTransactionAdmin(admin.ModelAdmin):
    list_display = ["short_code", "pharmacy", "held_by", "customer_name", "total", "held_at"]
    search_fields = ["short_code", "customer_name"]
