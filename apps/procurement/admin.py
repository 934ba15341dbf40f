"""
Admin configuration for procurement models.
"""

from django.contrib import admin

from .models import ReorderRequest, Supplier, SupplierProduct


class SupplierProductInline(admin.TabularInline):
    model = SupplierProduct
    extra = 0
    fields = ["product_name", "sku", "medication", "unit_price", "min_order_quantity", "is_available"]


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    """Admin interface for Supplier model."""

    list_display = ["name", "pharmacy", "contact_person", "phone", "is_active", "created_at"]
    list_filter = ["is_active", "created_at"]
    search_fields = ["name", "contact_person", "email", "phone"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [SupplierProductInline]

    fieldsets = (
        ("Basic Information", {"fields": ("pharmacy", "name", "contact_person", "is_active")}),
        ("Contact Information", {"fields": ("email", "phone", "address", "website")}),
        ("Business Information", {"fields": ("payment_terms",)}),
        ("Notes", {"fields": ("notes",)}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )


@admin.register(ReorderRequest)
class ReorderRequestAdmin(admin.ModelAdmin):
    """Admin interface for ReorderRequest model."""

    list_display = [
        "medication",
        "supplier",
        "quantity",
        "total_amount",
        "status",
        "requested_by",
        "created_at",
    ]
    list_filter = ["status", "created_at"]
    search_fields = ["medication__name", "supplier__name"]
    readonly_fields = ["status", "total_amount", "approved_by", "approved_at", "created_at"]
