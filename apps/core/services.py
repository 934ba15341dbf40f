"""
Service functions for pharmacy onboarding, staff permissions, branch limits
and subscription summaries.
"""

import logging
from decimal import Decimal

from django.db import transaction

from apps.core import plans
from apps.core.feature_flags import get_enabled_features
from apps.core.models import Branch, Pharmacy, StaffPermission, User

logger = logging.getLogger(__name__)


# Onboarding


@transaction.atomic
def register_pharmacy(name, owner_username, owner_password, owner_email="", phone="", address=""):
    """
    Create a pharmacy, its owner and its main branch, and start the trial.

    Returns:
        Tuple of (pharmacy, owner, main_branch)
    """
    pharmacy = Pharmacy.objects.create(name=name, email=owner_email, phone=phone, address=address)
    pharmacy.start_trial()

    owner = User.objects.create_user(
        username=owner_username,
        email=owner_email,
        password=owner_password,
        pharmacy=pharmacy,
        role=User.OWNER,
        phone=phone,
    )

    main_branch = Branch.objects.create(
        pharmacy=pharmacy, name="Main Branch", address=address, phone=phone, is_main=True
    )

    owner.branch = main_branch
    owner.save(update_fields=["branch"])

    pharmacy.owner = owner
    pharmacy.save(update_fields=["owner", "updated_at"])

    logger.info(f"Registered pharmacy {pharmacy.name} ({pharmacy.id}) for owner {owner.username}")
    return pharmacy, owner, main_branch


# Permissions


def get_effective_permissions(user):
    """
    Permission keys the user currently holds.

    Owners and managers hold every key; staff hold only explicit grants.
    """
    if not user or not user.is_authenticated or not user.has_pharmacy_access():
        return []

    if user.is_owner_or_manager():
        return list(plans.ALL_PERMISSIONS)

    return list(
        StaffPermission.objects.filter(user=user, is_granted=True).values_list(
            "permission_key", flat=True
        )
    )


def user_has_permission(user, permission_key):
    return permission_key in get_effective_permissions(user)


def set_staff_permission(user, permission_key, is_granted, granted_by=None):
    """Grant or revoke a single permission key for a staff member."""
    if permission_key not in plans.ALL_PERMISSIONS:
        raise ValueError(f"Unknown permission: {permission_key}")

    permission, _created = StaffPermission.objects.update_or_create(
        user=user,
        permission_key=permission_key,
        defaults={"is_granted": is_granted, "granted_by": granted_by},
    )
    return permission


@transaction.atomic
def apply_role_template(user, template, granted_by=None):
    """
    Grant the keys of a role template and revoke every other key.

    Returns:
        List of permission keys granted
    """
    if template not in plans.ROLE_TEMPLATES:
        raise ValueError(f"Unknown role template: {template}")

    granted = plans.ROLE_TEMPLATES[template]
    for key in plans.ALL_PERMISSIONS:
        set_staff_permission(user, key, key in granted, granted_by=granted_by)

    logger.info(f"Applied role template {template} to {user.username}")
    return list(granted)


# Branch limits


def get_active_branches(pharmacy):
    return Branch.objects.filter(pharmacy=pharmacy, is_active=True).order_by("created_at", "id")


def get_branch_position(branch):
    """1-based position of a branch among its pharmacy's active branches, or None."""
    branch_ids = list(get_active_branches(branch.pharmacy).values_list("id", flat=True))
    try:
        return branch_ids.index(branch.id) + 1
    except ValueError:
        return None


def is_branch_within_limit(branch):
    """The first N active branches (by creation) are usable, where N is the paid limit."""
    position = get_branch_position(branch)
    if position is None:
        return False
    return position <= branch.pharmacy.get_branch_limit()


def can_add_branch(pharmacy):
    if not plans.can_add_branches(pharmacy.subscription_plan):
        return False
    return get_active_branches(pharmacy).count() < pharmacy.get_branch_limit()


def upgrade_branch_limit(pharmacy, new_limit):
    """
    Change the number of paid branch slots.

    Returns:
        Monthly cost of the additional branches
    """
    max_branches = pharmacy.get_limits()["max_branches"]
    if not plans.can_add_branches(pharmacy.subscription_plan):
        raise ValueError("Your plan does not support additional branches.")
    if new_limit < 1 or new_limit > max_branches:
        raise ValueError(f"Branch limit must be between 1 and {max_branches}.")

    pharmacy.active_branches_limit = new_limit
    pharmacy.save(update_fields=["active_branches_limit", "updated_at"])

    monthly_cost = Decimal(new_limit - 1) * pharmacy.branch_fee_per_month
    logger.info(f"Pharmacy {pharmacy.id} branch limit set to {new_limit} ({monthly_cost}/month)")
    return monthly_cost


# Subscription summary


def get_ai_scan_usage(pharmacy):
    from apps.ai.quota import get_scan_usage

    return get_scan_usage(pharmacy)


def get_subscription_summary(pharmacy):
    """Everything the client needs to render plan state and upgrade prompts."""
    limits = pharmacy.get_limits()
    active_branches = get_active_branches(pharmacy).count()
    return {
        "plan": pharmacy.subscription_plan,
        "plan_name": plans.PLAN_DISPLAY_NAMES.get(pharmacy.subscription_plan, ""),
        "status": pharmacy.subscription_status,
        "is_expired": pharmacy.is_subscription_expired(),
        "can_access_features": pharmacy.can_access_features(),
        "days_remaining": pharmacy.days_remaining(),
        "trial_ends_at": pharmacy.trial_ends_at,
        "subscription_ends_at": pharmacy.subscription_ends_at,
        "limits": {
            "max_users": limits["max_users"],
            "max_branches": limits["max_branches"],
        },
        "features": get_enabled_features(pharmacy),
        "branches": {
            "active": active_branches,
            "limit": pharmacy.get_branch_limit(),
            "can_add": can_add_branch(pharmacy),
            "fee_per_month": str(pharmacy.branch_fee_per_month),
        },
        "ai_scans": get_ai_scan_usage(pharmacy),
    }
