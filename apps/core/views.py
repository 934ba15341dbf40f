"""
Views for pharmacy onboarding, profile, subscription, branches and staff.
"""

import logging

from django.shortcuts import get_object_or_404

from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core import plans
from apps.core.models import Branch, User
from apps.core.permissions import HasPharmacyAccess, HasStaffPermission, IsPharmacyOwner
from apps.core.serializers import (
    BranchLimitSerializer,
    BranchSerializer,
    CurrentUserSerializer,
    PermissionUpdateSerializer,
    PharmacyRegistrationSerializer,
    PharmacySerializer,
    RoleTemplateSerializer,
    StaffCreateSerializer,
    StaffSerializer,
)
from apps.core.services import (
    apply_role_template,
    can_add_branch,
    get_enabled_features,
    get_subscription_summary,
    register_pharmacy,
    set_staff_permission,
    upgrade_branch_limit,
    user_has_permission,
)

logger = logging.getLogger(__name__)


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def register(request):
    """
    Register a new pharmacy with its owner account.

    Creates the pharmacy on the starter plan with a trial, the owner user
    and a main branch.
    """
    serializer = PharmacyRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    pharmacy, owner, _branch = register_pharmacy(
        name=data["pharmacy_name"],
        owner_username=data["username"],
        owner_password=data["password"],
        owner_email=data.get("email", ""),
        phone=data.get("phone", ""),
        address=data.get("address", ""),
    )

    return Response(
        {
            "pharmacy": PharmacySerializer(pharmacy).data,
            "user": {"id": owner.id, "username": owner.username, "role": owner.role},
        },
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated])
def current_user(request):
    """Current user with role, pharmacy, permissions and enabled plan features."""
    data = CurrentUserSerializer(request.user).data
    data["features"] = get_enabled_features(request.user.pharmacy)
    return Response(data, status=status.HTTP_200_OK)


@api_view(["GET", "PATCH"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def pharmacy_detail(request):
    pharmacy = request.user.pharmacy

    if request.method == "GET":
        return Response(PharmacySerializer(pharmacy).data, status=status.HTTP_200_OK)

    if not user_has_permission(request.user, plans.MANAGE_SETTINGS):
        return Response(
            {"detail": f"You do not have the '{plans.MANAGE_SETTINGS}' permission."},
            status=status.HTTP_403_FORBIDDEN,
        )

    serializer = PharmacySerializer(pharmacy, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def subscription_status(request):
    """Plan, status, limits, features, branch usage and AI scan usage."""
    return Response(get_subscription_summary(request.user.pharmacy), status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsPharmacyOwner])
def upgrade_branches(request):
    """Change the number of paid branch slots."""
    serializer = BranchLimitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    pharmacy = request.user.pharmacy
    try:
        monthly_cost = upgrade_branch_limit(
            pharmacy, serializer.validated_data["active_branches_limit"]
        )
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(
        {
            "active_branches_limit": pharmacy.active_branches_limit,
            "monthly_cost": str(monthly_cost),
        },
        status=status.HTTP_200_OK,
    )


# Branches


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def branch_list(request):
    pharmacy = request.user.pharmacy

    if request.method == "GET":
        branches = Branch.objects.filter(pharmacy=pharmacy).order_by("created_at")
        serializer = BranchSerializer(branches, many=True, context={"request": request})
        return Response({"results": serializer.data}, status=status.HTTP_200_OK)

    if not request.user.is_owner_or_manager():
        return Response(
            {"detail": "Only pharmacy owners and managers can add branches."},
            status=status.HTTP_403_FORBIDDEN,
        )

    if not plans.can_add_branches(pharmacy.subscription_plan):
        return Response(
            {"detail": "Your plan does not support multiple branches. Upgrade to add branches."},
            status=status.HTTP_403_FORBIDDEN,
        )

    if not can_add_branch(pharmacy):
        return Response(
            {"detail": "Branch limit reached. Purchase additional branch slots to continue."},
            status=status.HTTP_403_FORBIDDEN,
        )

    serializer = BranchSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)
    branch = serializer.save(pharmacy=pharmacy)

    logger.info(f"Branch {branch.name} created for pharmacy {pharmacy.id}")
    return Response(
        BranchSerializer(branch, context={"request": request}).data,
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET", "PATCH", "DELETE"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def branch_detail(request, branch_id):
    branch = get_object_or_404(Branch, id=branch_id, pharmacy=request.user.pharmacy)

    if request.method == "GET":
        return Response(
            BranchSerializer(branch, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    if not request.user.is_owner_or_manager():
        return Response(
            {"detail": "Only pharmacy owners and managers can change branches."},
            status=status.HTTP_403_FORBIDDEN,
        )

    if request.method == "DELETE":
        if branch.is_main:
            return Response(
                {"detail": "The main branch cannot be deactivated."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        branch.is_active = False
        branch.save(update_fields=["is_active", "updated_at"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = BranchSerializer(
        branch, data=request.data, partial=True, context={"request": request}
    )
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data, status=status.HTTP_200_OK)


# Staff


def _member_change_error(request, member):
    """
    Staff granted staff management may only change other plain staff accounts.
    """
    if request.user.is_owner_or_manager():
        return None
    if member.id == request.user.id:
        return "You cannot change your own account here."
    if member.is_owner_or_manager():
        return "Only pharmacy owners and managers can change managers."
    return None


@api_view(["GET", "POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasPharmacyAccess, HasStaffPermission(plans.MANAGE_STAFF)]
)
def staff_list(request):
    pharmacy = request.user.pharmacy

    if request.method == "GET":
        staff = User.objects.filter(pharmacy=pharmacy).select_related("branch")
        serializer = StaffSerializer(staff, many=True, context={"request": request})
        return Response({"results": serializer.data}, status=status.HTTP_200_OK)

    active_users = User.objects.filter(pharmacy=pharmacy, is_active=True).count()
    if active_users >= pharmacy.get_user_limit():
        return Response(
            {"detail": "User limit reached for your plan. Upgrade to add more staff."},
            status=status.HTTP_403_FORBIDDEN,
        )

    serializer = StaffCreateSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)
    user = serializer.save()

    logger.info(f"Staff {user.username} added to pharmacy {pharmacy.id} by {request.user.username}")
    return Response(
        StaffSerializer(user, context={"request": request}).data,
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET", "PATCH"])
@permission_classes(
    [permissions.IsAuthenticated, HasPharmacyAccess, HasStaffPermission(plans.MANAGE_STAFF)]
)
def staff_detail(request, user_id):
    member = get_object_or_404(User, id=user_id, pharmacy=request.user.pharmacy)

    if request.method == "GET":
        return Response(
            StaffSerializer(member, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    if member.is_owner():
        return Response(
            {"detail": "The pharmacy owner cannot be modified here."},
            status=status.HTTP_400_BAD_REQUEST,
        )

    error = _member_change_error(request, member)
    if error:
        return Response({"detail": error}, status=status.HTTP_403_FORBIDDEN)

    serializer = StaffSerializer(
        member, data=request.data, partial=True, context={"request": request}
    )
    serializer.is_valid(raise_exception=True)
    serializer.save()
    return Response(serializer.data, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasPharmacyAccess, HasStaffPermission(plans.MANAGE_STAFF)]
)
def staff_permission_update(request, user_id):
    """Grant or revoke a single permission key."""
    member = get_object_or_404(User, id=user_id, pharmacy=request.user.pharmacy)
    error = _member_change_error(request, member)
    if error:
        return Response({"detail": error}, status=status.HTTP_403_FORBIDDEN)

    serializer = PermissionUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    set_staff_permission(
        member,
        serializer.validated_data["permission_key"],
        serializer.validated_data["is_granted"],
        granted_by=request.user,
    )
    return Response(
        StaffSerializer(member, context={"request": request}).data,
        status=status.HTTP_200_OK,
    )


@api_view(["POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasPharmacyAccess, HasStaffPermission(plans.MANAGE_STAFF)]
)
def staff_apply_role_template(request, user_id):
    member = get_object_or_404(User, id=user_id, pharmacy=request.user.pharmacy)
    error = _member_change_error(request, member)
    if error:
        return Response({"detail": error}, status=status.HTTP_403_FORBIDDEN)

    serializer = RoleTemplateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    apply_role_template(member, serializer.validated_data["template"], granted_by=request.user)
    return Response(
        StaffSerializer(member, context={"request": request}).data,
        status=status.HTTP_200_OK,
    )
