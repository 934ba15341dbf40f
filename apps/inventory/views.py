"""
Views for inventory management.

- Medication batch list/detail/create/update/delete with search and filters
- Grouped POS product list (FEFO pricing)
- Branch stock receive/deduct
- Inter-branch stock transfers
- Inventory metrics and alerts
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.shortcuts import get_object_or_404
from django.utils import timezone

from django_fsm import TransitionNotAllowed
from rest_framework import filters, generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from apps.core import plans
from apps.core.mixins import PharmacyScopedMixin
from apps.core.models import Branch
from apps.core.params import branch_param, uuid_param
from apps.core.permissions import (
    HasActiveSubscription,
    HasPharmacyAccess,
    HasStaffPermission,
    IsOwnerOrManager,
    branch_within_limit_or_error,
)

from . import fefo
from .models import BranchStock, Medication, StockTransfer
from .serializers import (
    BranchStockSerializer,
    GroupedProductSerializer,
    MedicationSerializer,
    StockMovementSerializer,
    StockTransferCreateSerializer,
    StockTransferSerializer,
)
from .services import (
    deduct_branch_stock,
    get_inventory_alerts,
    get_inventory_metrics,
    medications_for,
    receive_branch_stock,
    search_medications,
)

logger = logging.getLogger(__name__)

TRUTHY = ["true", "1", "yes"]

TRANSITION_LABELS = {
    "approve": "approved",
    "reject": "rejected",
    "mark_shipped": "shipped",
    "mark_received": "received",
    "cancel": "cancelled",
}


class MedicationListCreateView(PharmacyScopedMixin, generics.ListCreateAPIView):
    """
    List medication batches with search and filters, or add a batch.

    Supports:
    - Search by name, barcode or batch number
    - Filter by branch, category, low_stock, expired, expiring_soon
    """

    serializer_class = MedicationSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess, HasActiveSubscription]
    queryset = Medication.objects.select_related("branch")
    filter_backends = [filters.OrderingFilter]
    ordering_fields = ["name", "expiry_date", "current_stock", "created_at"]
    ordering = ["name", "expiry_date"]

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        today = timezone.localdate()

        queryset = search_medications(queryset, params.get("search"))

        branch_id = uuid_param(self.request, "branch")
        if branch_id:
            queryset = queryset.filter(branch_id=branch_id)

        category = params.get("category")
        if category:
            queryset = queryset.filter(category__iexact=category)

        if params.get("low_stock", "").lower() in TRUTHY:
            queryset = queryset.filter(current_stock__lte=F("reorder_level"))

        if params.get("expired", "").lower() in TRUTHY:
            queryset = queryset.filter(expiry_date__lt=today)

        if params.get("expiring_soon", "").lower() in TRUTHY:
            soon = today + timedelta(days=settings.EXPIRY_WARNING_DAYS)
            queryset = queryset.filter(expiry_date__gte=today, expiry_date__lte=soon)

        return queryset


class MedicationDetailView(PharmacyScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = MedicationSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess, HasActiveSubscription]
    queryset = Medication.objects.select_related("branch")
    lookup_field = "id"

    def perform_destroy(self, instance):
        if not self.request.user.is_owner_or_manager():
            raise PermissionDenied("Only pharmacy owners and managers can delete medications.")
        logger.info(f"Medication {instance.id} deleted by {self.request.user.username}")
        instance.delete()


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, HasActiveSubscription])
def pos_products(request):
    """
    One row per product for the POS screen, with batches in FEFO order.

    Query params: branch, search
    """
    branch = branch_param(request)
    medications = search_medications(
        medications_for(request.user.pharmacy, branch).filter(is_shelved=True),
        request.query_params.get("search"),
    )
    products = fefo.group_by_name(list(medications))
    serializer = GroupedProductSerializer(products, many=True)
    return Response({"results": serializer.data}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes(
    [permissions.IsAuthenticated, HasPharmacyAccess, HasStaffPermission(plans.VIEW_DASHBOARD)]
)
def inventory_metrics(request):
    branch = branch_param(request)
    metrics = get_inventory_metrics(request.user.pharmacy, branch)
    metrics["total_value"] = str(metrics["total_value"])
    return Response(metrics, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def inventory_alerts(request):
    """Low-stock and expiring batches."""
    branch = branch_param(request)
    return Response(
        {"results": get_inventory_alerts(request.user.pharmacy, branch)},
        status=status.HTTP_200_OK,
    )


# Branch stock


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def branch_stock_list(request, branch_id):
    branch = get_object_or_404(Branch, id=branch_id, pharmacy=request.user.pharmacy)
    stock = BranchStock.objects.filter(branch=branch).select_related("medication", "branch")
    if request.query_params.get("low_stock", "").lower() in TRUTHY:
        stock = stock.filter(quantity__lte=F("reorder_level"))
    serializer = BranchStockSerializer(stock, many=True)
    return Response({"results": serializer.data}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, HasActiveSubscription])
def stock_movement(request):
    """
    Receive or deduct stock at a branch.

    Request body:
    {
        "branch_id": "...",
        "medication_id": "...",
        "action": "receive" | "deduct",
        "quantity": 10
    }
    """
    serializer = StockMovementSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    error = branch_within_limit_or_error(data["branch"])
    if error:
        return Response({"detail": error}, status=status.HTTP_403_FORBIDDEN)

    try:
        if data["action"] == StockMovementSerializer.ACTION_RECEIVE:
            stock = receive_branch_stock(data["branch"], data["medication"], data["quantity"])
        else:
            stock = deduct_branch_stock(data["branch"], data["medication"], data["quantity"])
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(BranchStockSerializer(stock).data, status=status.HTTP_200_OK)


# Stock transfers


class StockTransferListCreateView(PharmacyScopedMixin, generics.ListCreateAPIView):
    """
    List transfers (filter by status, from_branch, to_branch) or request one.
    """

    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess, HasActiveSubscription]
    queryset = StockTransfer.objects.select_related(
        "from_branch", "to_branch", "medication", "requested_by"
    )

    def get_serializer_class(self):
        if self.request.method == "POST":
            return StockTransferCreateSerializer
        return StockTransferSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        status_filter = params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        from_branch_id = uuid_param(self.request, "from_branch")
        if from_branch_id:
            queryset = queryset.filter(from_branch_id=from_branch_id)

        to_branch_id = uuid_param(self.request, "to_branch")
        if to_branch_id:
            queryset = queryset.filter(to_branch_id=to_branch_id)

        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        for branch in (serializer.validated_data["from_branch"], serializer.validated_data["to_branch"]):
            error = branch_within_limit_or_error(branch)
            if error:
                return Response({"detail": error}, status=status.HTTP_403_FORBIDDEN)

        transfer = serializer.save()
        logger.info(f"Transfer {transfer.transfer_number} requested by {request.user.username}")
        return Response(StockTransferSerializer(transfer).data, status=status.HTTP_201_CREATED)


class StockTransferDetailView(PharmacyScopedMixin, generics.RetrieveAPIView):
    serializer_class = StockTransferSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = StockTransfer.objects.select_related(
        "from_branch", "to_branch", "medication", "requested_by"
    )
    lookup_field = "id"


def _run_transfer_transition(request, transfer_id, action, *args):
    """
    Apply one workflow transition to a transfer under a row lock.

    Illegal transitions and stock shortfalls come back as 400.
    """
    with transaction.atomic():
        transfer = get_object_or_404(
            StockTransfer.objects.select_for_update(),
            id=transfer_id,
            pharmacy=request.user.pharmacy,
        )
        try:
            getattr(transfer, action)(request.user, *args)
        except TransitionNotAllowed:
            return Response(
                {
                    "detail": f"Transfer cannot be {TRANSITION_LABELS[action]}. "
                    f"Current status: {transfer.get_status_display()}"
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        transfer.save()

    logger.info(f"Transfer {transfer.transfer_number} → {transfer.status} by {request.user.username}")
    return Response(StockTransferSerializer(transfer).data, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def approve_transfer(request, transfer_id):
    """Owners and managers approve transfers they did not request themselves."""
    transfer = get_object_or_404(StockTransfer, id=transfer_id, pharmacy=request.user.pharmacy)
    if not transfer.can_approve(request.user):
        return Response(
            {"detail": "You do not have permission to approve this transfer."},
            status=status.HTTP_403_FORBIDDEN,
        )
    return _run_transfer_transition(request, transfer_id, "approve")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def reject_transfer(request, transfer_id):
    """
    Reject a pending transfer.

    Request body:
    {
        "reason": "Reason for rejection"
    }
    """
    reason = request.data.get("reason", "")
    if not reason:
        return Response(
            {"detail": "Rejection reason is required."},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return _run_transfer_transition(request, transfer_id, "reject", reason)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def ship_transfer(request, transfer_id):
    return _run_transfer_transition(request, transfer_id, "mark_shipped")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def receive_transfer(request, transfer_id):
    return _run_transfer_transition(request, transfer_id, "mark_received")


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def cancel_transfer(request, transfer_id):
    return _run_transfer_transition(
        request, transfer_id, "cancel", request.data.get("reason", "")
    )
