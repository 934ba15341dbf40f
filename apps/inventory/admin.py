"""
Admin configuration for inventory models.
"""

from django.contrib import admin

from .models import BranchStock, Medication, StockTransfer


@admin.register(Medication)
class MedicationAdmin(admin.ModelAdmin):
    """Admin interface for Medication batches."""

    list_display = [
        "name",
        "batch_number",
        "pharmacy",
        "branch",
        "current_stock",
        "reorder_level",
        "expiry_date",
        "is_controlled",
    ]
    list_filter = ["is_controlled", "is_shelved", "dispensing_unit", "pharmacy"]
    search_fields = ["name", "batch_number", "barcode_id", "nafdac_reg_number"]
    readonly_fields = ["created_at", "updated_at", "last_notified_at"]
    fieldsets = (
        (
            "Product",
            {
                "fields": (
                    "pharmacy",
                    "branch",
                    "name",
                    "category",
                    "dispensing_unit",
                    "barcode_id",
                    "nafdac_reg_number",
                    "is_controlled",
                ),
            },
        ),
        (
            "Batch",
            {
                "fields": (
                    "batch_number",
                    "manufacturing_date",
                    "expiry_date",
                    "current_stock",
                    "reorder_level",
                    "is_shelved",
                ),
            },
        ),
        ("Pricing", {"fields": ("unit_price", "selling_price", "wholesale_price")}),
        (
            "Timestamps",
            {
                "fields": ("last_notified_at", "created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )


@admin.register(BranchStock)
class BranchStockAdmin(admin.ModelAdmin):
    list_display = ["medication", "branch", "quantity", "reorder_level", "updated_at"]
    list_filter = ["branch"]
    search_fields = ["medication__name", "branch__name"]


@admin.register(StockTransfer)
class StockTransferAdmin(admin.ModelAdmin):
    """Admin interface for StockTransfer."""

    list_display = [
        "transfer_number",
        "from_branch",
        "to_branch",
        "medication",
        "quantity",
        "status",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["transfer_number", "medication__name"]
    readonly_fields = [
        "transfer_number",
        "status",
        "created_at",
        "approved_at",
        "rejected_at",
        "shipped_at",
        "received_at",
    ]
