"""
Permission classes for pharmacy-scoped access control.
"""

from rest_framework import permissions

from apps.core.feature_flags import is_feature_enabled
from apps.core.services import is_branch_within_limit, user_has_permission


class HasPharmacyAccess(permissions.BasePermission):
    """
    Permission class to ensure users can only access resources from their own pharmacy.
    """

    message = "Access denied. User must belong to a pharmacy."

    def has_permission(self, request, view):
        return (
            request.user.is_authenticated
            and getattr(request.user, "pharmacy_id", None) is not None
            and request.user.has_pharmacy_access()
        )

    def has_object_permission(self, request, view, obj):
        if hasattr(obj, "pharmacy_id"):
            return obj.pharmacy_id == request.user.pharmacy_id
        return True


class IsOwnerOrManager(permissions.BasePermission):
    """
    Only pharmacy owners and managers.
    """

    message = "Only pharmacy owners and managers can perform this action."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_owner_or_manager()


class IsPharmacyOwner(permissions.BasePermission):
    message = "Only the pharmacy owner can perform this action."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_owner()


class HasActiveSubscription(permissions.BasePermission):
    """
    Block feature access once a trial or paid period has lapsed.
    """

    message = "Your subscription has expired. Please renew to continue."

    def has_permission(self, request, view):
        pharmacy = getattr(request.user, "pharmacy", None)
        return pharmacy is not None and pharmacy.can_access_features()


def HasStaffPermission(permission_key):
    """
    Build a permission class requiring a staff permission key.

    Usage:
        @permission_classes([IsAuthenticated, HasPharmacyAccess, HasStaffPermission("view_reports")])
    """

    class _HasStaffPermission(permissions.BasePermission):
        message = f"You do not have the '{permission_key}' permission."

        def has_permission(self, request, view):
            return user_has_permission(request.user, permission_key)

    _HasStaffPermission.__name__ = f"HasStaffPermission_{permission_key}"
    return _HasStaffPermission


def RequiresPlanFeature(feature):
    """
    Build a permission class requiring a subscription plan feature.
    """

    class _RequiresPlanFeature(permissions.BasePermission):
        message = "This feature is not available on your current plan. Upgrade to unlock it."

        def has_permission(self, request, view):
            return is_feature_enabled(getattr(request.user, "pharmacy", None), feature)

    _RequiresPlanFeature.__name__ = f"RequiresPlanFeature_{feature}"
    return _RequiresPlanFeature


def branch_within_limit_or_error(branch):
    """
    Return an error message when a branch is outside the paid branch limit, else None.
    """
    if branch is not None and not is_branch_within_limit(branch):
        return "Branch is outside your plan's branch limit. Upgrade to use this branch."
    return None
