"""
Views for the point of sale.

- Complete, list, retrieve and void sales
- Daily sales summary
- Shift clock-in/clock-out
- Held transactions (park and resume carts)
- Offline sale validation and replay
"""

import logging
from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core import plans
from apps.core.mixins import PharmacyScopedMixin
from apps.core.models import Branch
from apps.core.params import branch_param, date_param, int_param, uuid_param
from apps.core.permissions import (
    HasActiveSubscription,
    HasPharmacyAccess,
    HasStaffPermission,
    IsOwnerOrManager,
    RequiresPlanFeature,
    branch_within_limit_or_error,
)

from .models import HeldTransaction, Sale, Shift
from .serializers import (
    ClockSerializer,
    HeldTransactionSerializer,
    OfflineSyncSerializer,
    OfflineValidateSerializer,
    SaleCreateSerializer,
    SaleListSerializer,
    SaleSerializer,
    ShiftSerializer,
    VoidSaleSerializer,
)
from .services import (
    clear_held_transactions,
    clock_in,
    clock_out,
    get_daily_summary,
    get_open_shift,
    hold_transaction,
    resume_transaction,
    sync_offline_sales,
    validate_offline_transactions,
    void_sale,
)

logger = logging.getLogger(__name__)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, HasActiveSubscription])
def pos_complete_sale(request):
    """
    Complete a sale through the POS.

    Request body:
    {
        "items": [{"medication_id": "uuid", "quantity": 2}],
        "branch_id": "uuid" (optional, defaults to the cashier's branch),
        "customer_id": "uuid" (optional),
        "customer_name": "" (optional),
        "payment_method": "cash|card|transfer|pos"
    }

    Stock is deducted earliest-expiry first across batches of the same
    product. The response includes any low-stock alerts the sale produced.
    """
    serializer = SaleCreateSerializer(data=request.data, context={"request": request})
    serializer.is_valid(raise_exception=True)

    error = branch_within_limit_or_error(serializer.get_branch())
    if error:
        return Response({"detail": error}, status=status.HTTP_403_FORBIDDEN)

    result = serializer.save()
    data = SaleSerializer(result.sale).data
    data["low_stock_alerts"] = result.low_stock_alerts
    return Response(data, status=status.HTTP_201_CREATED)


class SaleListView(PharmacyScopedMixin, generics.ListAPIView):
    """
    List sales with filters.

    Supports:
    - branch, staff (user id), status
    - start_date / end_date (YYYY-MM-DD, inclusive)
    """

    serializer_class = SaleListSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Sale.objects.select_related("branch", "sold_by").prefetch_related("items")

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        branch_id = uuid_param(self.request, "branch")
        if branch_id:
            queryset = queryset.filter(branch_id=branch_id)

        staff_id = int_param(self.request, "staff")
        if staff_id is not None:
            queryset = queryset.filter(sold_by_id=staff_id)

        status_filter = params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        start_date = date_param(self.request, "start_date")
        if start_date:
            queryset = queryset.filter(created_at__date__gte=start_date)

        end_date = date_param(self.request, "end_date")
        if end_date:
            queryset = queryset.filter(created_at__date__lte=end_date)

        # Staff only see their own sales
        if not self.request.user.is_owner_or_manager():
            queryset = queryset.filter(sold_by=self.request.user)

        return queryset


class SaleDetailView(PharmacyScopedMixin, generics.RetrieveAPIView):
    serializer_class = SaleSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Sale.objects.select_related("branch").prefetch_related("items")
    lookup_field = "id"


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def void_sale_view(request, sale_id):
    """Void a completed sale, restock its batches and reverse loyalty points."""
    sale = get_object_or_404(Sale, id=sale_id, pharmacy=request.user.pharmacy)
    serializer = VoidSaleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        sale = void_sale(sale, request.user, serializer.validated_data.get("reason", ""))
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(SaleSerializer(sale).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes(
    [
        permissions.IsAuthenticated,
        HasPharmacyAccess,
        HasStaffPermission(plans.VIEW_FINANCIAL_DATA),
    ]
)
def daily_summary(request):
    """
    Sales count and revenue for one day.

    Query params: date (YYYY-MM-DD, default today), branch
    """
    return Response(
        get_daily_summary(
            request.user.pharmacy,
            day=date_param(request, "date"),
            branch=branch_param(request),
        ),
        status=status.HTTP_200_OK,
    )


# Shifts


@api_view(["POST"])
@permission_classes(
    [
        permissions.IsAuthenticated,
        HasPharmacyAccess,
        RequiresPlanFeature(plans.STAFF_CLOCK_IN),
    ]
)
def shift_clock_in(request):
    serializer = ClockSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        shift = clock_in(request.user, notes=serializer.validated_data.get("notes", ""))
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(ShiftSerializer(shift).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def shift_clock_out(request):
    serializer = ClockSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        shift = clock_out(request.user, notes=serializer.validated_data.get("notes", ""))
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(ShiftSerializer(shift).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def current_shift(request):
    shift = get_open_shift(request.user)
    return Response(
        {"shift": ShiftSerializer(shift).data if shift else None},
        status=status.HTTP_200_OK,
    )


class ShiftListView(PharmacyScopedMixin, generics.ListAPIView):
    """Shifts with their sales totals; owners and managers see every staff member."""

    serializer_class = ShiftSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Shift.objects.select_related("staff", "branch")

    def get_queryset(self):
        queryset = super().get_queryset()
        user = self.request.user
        if not user.is_owner_or_manager():
            return queryset.filter(staff=user)

        staff_id = int_param(self.request, "staff")
        if staff_id is not None:
            queryset = queryset.filter(staff_id=staff_id)
        return queryset


# Held transactions


@api_view(["GET", "POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def held_transaction_list(request):
    """
    List the current user's held carts, or park a new one.

    Request body (POST):
    {
        "items": [...cart lines...],
        "total": "1500.00",
        "customer_name": "" (optional)
    }
    """
    if request.method == "GET":
        held = HeldTransaction.objects.filter(held_by=request.user)
        serializer = HeldTransactionSerializer(held, many=True)
        return Response(
            {"results": serializer.data, "count": len(serializer.data)},
            status=status.HTTP_200_OK,
        )

    serializer = HeldTransactionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    held = hold_transaction(
        request.user,
        items=serializer.validated_data["items"],
        total=serializer.validated_data.get("total", 0),
        customer_name=serializer.validated_data.get("customer_name", ""),
    )
    return Response(HeldTransactionSerializer(held).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def held_transaction_resume(request, held_id):
    held = get_object_or_404(HeldTransaction, id=held_id, held_by=request.user)
    return Response(resume_transaction(held), status=status.HTTP_200_OK)


@api_view(["DELETE"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def held_transaction_delete(request, held_id):
    held = get_object_or_404(HeldTransaction, id=held_id, held_by=request.user)
    held.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["DELETE"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def held_transaction_clear(request):
    deleted = clear_held_transactions(request.user)
    return Response({"deleted": deleted}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def held_transaction_by_code(request, short_code):
    """Look up a held cart by its short code anywhere in the pharmacy."""
    held = get_object_or_404(
        HeldTransaction, pharmacy=request.user.pharmacy, short_code=short_code.upper()
    )
    return Response(HeldTransactionSerializer(held).data, status=status.HTTP_200_OK)


# Offline sync


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def pos_offline_validate(request):
    """
    Check queued offline sales against current stock before replaying them.

    Request body:
    {
        "transactions": [
            {
                "client_transaction_id": "offline_1700000000000_abc",
                "items": [{"medication_id": "uuid", "quantity": 1}]
            }
        ]
    }

    Response:
    {
        "validation_results": [
            {
                "client_transaction_id": "...",
                "valid": false,
                "conflicts": [
                    {
                        "medication_id": "uuid",
                        "conflict_type": "insufficient_stock",
                        "requested": 3,
                        "available": 1
                    }
                ]
            }
        ]
    }
    """
    serializer = OfflineValidateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    results = validate_offline_transactions(
        request.user.pharmacy,
        serializer.validated_data["transactions"],
        branch=request.user.branch,
    )
    return Response({"validation_results": results}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, HasActiveSubscription])
def pos_offline_sync(request):
    """
    Replay sales made while the device was offline.

    Each sale is reported as synced, duplicate or failed; one failure does
    not undo the others.
    """
    serializer = OfflineSyncSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    branch = request.user.branch
    branch_id = serializer.validated_data.get("branch_id")
    if branch_id:
        branch = get_object_or_404(Branch, id=branch_id, pharmacy=request.user.pharmacy)

    error = branch_within_limit_or_error(branch)
    if error:
        return Response({"detail": error}, status=status.HTTP_403_FORBIDDEN)

    payload = sync_offline_sales(
        request.user.pharmacy,
        request.user,
        serializer.validated_data["sales"],
        branch=branch,
    )
    return Response(payload, status=status.HTTP_200_OK)
