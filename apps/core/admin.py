"""
Django admin configuration for core models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Branch, Pharmacy, StaffPermission, User


@admin.register(Pharmacy)
class PharmacyAdmin(admin.ModelAdmin):
    """Admin interface for Pharmacy model."""

    list_display = [
        "name",
        "slug",
        "subscription_plan",
        "subscription_status",
        "trial_ends_at",
        "subscription_ends_at",
        "active_branches_limit",
        "created_at",
    ]

    list_filter = ["subscription_plan", "subscription_status", "created_at"]

    search_fields = ["name", "slug", "email", "phone"]

    readonly_fields = ["id", "created_at", "updated_at", "ai_scans_used", "ai_scans_reset_at"]


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ["name", "pharmacy", "is_main", "is_active", "created_at"]
    list_filter = ["is_active", "is_main"]
    search_fields = ["name", "pharmacy__name"]


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for User model."""

    list_display = [
        "username",
        "email",
        "first_name",
        "last_name",
        "role",
        "pharmacy",
        "branch",
        "is_active",
    ]

    list_filter = ["role", "is_active", "is_staff", "is_superuser", "pharmacy"]

    search_fields = ["username", "email", "first_name", "last_name", "phone", "pharmacy__name"]

    readonly_fields = ["date_joined", "last_login"]

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (
            "Personal Information",
            {"fields": ("first_name", "last_name", "email", "phone")},
        ),
        (
            "Pharmacy & Role",
            {"fields": ("pharmacy", "role", "branch")},
        ),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )


@admin.register(StaffPermission)
class StaffPermissionAdmin(admin.ModelAdmin):
    list_display = ["user", "permission_key", "is_granted", "granted_by", "updated_at"]
    list_filter = ["permission_key", "is_granted"]
    search_fields = ["user__username"]
