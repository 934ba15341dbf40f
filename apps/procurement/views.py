"""
Views for suppliers and the reorder workflow.

- Supplier and supplier product CRUD
- Reorder request create, list and status transitions
- Reorder suggestions for low-stock medications
"""

import logging

from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404

from django_fsm import TransitionNotAllowed
from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.mixins import PharmacyScopedMixin
from apps.core.params import branch_param, uuid_param
from apps.core.permissions import HasPharmacyAccess, IsOwnerOrManager

from .models import ReorderRequest, Supplier, SupplierProduct
from .serializers import (
    DeliverSerializer,
    ReorderRequestSerializer,
    SupplierProductSerializer,
    SupplierSerializer,
)
from .services import create_reorder_request, deliver_reorder_request, get_reorder_suggestions

logger = logging.getLogger(__name__)

TRANSITION_LABELS = {
    "approve": "approved",
    "mark_ordered": "marked as ordered",
    "mark_shipped": "marked as shipped",
    "mark_delivered": "marked as delivered",
    "cancel": "cancelled",
}


class SupplierListCreateView(PharmacyScopedMixin, generics.ListCreateAPIView):
    """
    List suppliers or add one.

    Supports:
    - search: name, contact person or email
    - active: true/false
    """

    serializer_class = SupplierSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Supplier.objects.all()

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params

        search = params.get("search")
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(contact_person__icontains=search)
                | Q(email__icontains=search)
            )

        active = params.get("active")
        if active is not None:
            queryset = queryset.filter(is_active=active.lower() == "true")

        return queryset


class SupplierDetailView(PharmacyScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = SupplierSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Supplier.objects.all()
    lookup_field = "id"


class SupplierProductListCreateView(generics.ListCreateAPIView):
    """Products offered by one supplier."""

    serializer_class = SupplierProductSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]

    def get_supplier(self):
        return get_object_or_404(
            Supplier, id=self.kwargs["supplier_id"], pharmacy=self.request.user.pharmacy
        )

    def get_queryset(self):
        return SupplierProduct.objects.filter(supplier=self.get_supplier()).select_related(
            "supplier"
        )

    def perform_create(self, serializer):
        serializer.save(supplier=self.get_supplier())


class SupplierProductDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = SupplierProductSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    lookup_field = "id"

    def get_queryset(self):
        return SupplierProduct.objects.filter(
            supplier__pharmacy=self.request.user.pharmacy
        ).select_related("supplier")


class ReorderRequestListCreateView(PharmacyScopedMixin, generics.ListCreateAPIView):
    """
    List reorder requests (filter by status, supplier) or raise one.

    Request body (POST):
    {
        "medication": "uuid",
        "quantity": 50,
        "supplier": "uuid" (optional),
        "unit_price": "120.00" (optional, defaults to the supplier's price),
        "expected_delivery": "YYYY-MM-DD" (optional)
    }
    """

    serializer_class = ReorderRequestSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = ReorderRequest.objects.select_related("medication", "supplier")

    def get_queryset(self):
        queryset = super().get_queryset()
        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        supplier_id = uuid_param(self.request, "supplier")
        if supplier_id:
            queryset = queryset.filter(supplier_id=supplier_id)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        try:
            reorder = create_reorder_request(
                request.user.pharmacy,
                request.user,
                data.pop("medication"),
                data.pop("quantity"),
                supplier=data.pop("supplier", None),
                unit_price=data.pop("unit_price", None),
                branch=data.pop("branch", None),
                **data,
            )
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ReorderRequestSerializer(reorder).data, status=status.HTTP_201_CREATED)


class ReorderRequestDetailView(PharmacyScopedMixin, generics.RetrieveAPIView):
    serializer_class = ReorderRequestSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = ReorderRequest.objects.select_related("medication", "supplier")
    lookup_field = "id"


def _run_reorder_transition(request, reorder_id, action, apply):
    with transaction.atomic():
        reorder = get_object_or_404(
            ReorderRequest.objects.select_for_update(),
            id=reorder_id,
            pharmacy=request.user.pharmacy,
        )
        try:
            apply(reorder)
        except TransitionNotAllowed:
            return Response(
                {
                    "detail": f"Reorder request cannot be {TRANSITION_LABELS[action]}. "
                    f"Current status: {reorder.get_status_display()}"
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Reorder request {reorder.id} → {reorder.status} by {request.user.username}")
    return Response(ReorderRequestSerializer(reorder).data, status=status.HTTP_200_OK)


def _transition_and_save(action, *args):
    def apply(reorder):
        getattr(reorder, action)(*args)
        reorder.save()

    return apply


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def approve_reorder(request, reorder_id):
    return _run_reorder_transition(
        request, reorder_id, "approve", _transition_and_save("approve", request.user)
    )


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def order_reorder(request, reorder_id):
    return _run_reorder_transition(
        request, reorder_id, "mark_ordered", _transition_and_save("mark_ordered")
    )


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def ship_reorder(request, reorder_id):
    return _run_reorder_transition(
        request, reorder_id, "mark_shipped", _transition_and_save("mark_shipped")
    )


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def deliver_reorder(request, reorder_id):
    """
    Mark a shipped request delivered.

    Request body:
    {
        "receive_stock": true (optional, adds the quantity to the medication)
    }
    """
    serializer = DeliverSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    receive_stock = serializer.validated_data["receive_stock"]

    return _run_reorder_transition(
        request,
        reorder_id,
        "mark_delivered",
        lambda reorder: deliver_reorder_request(reorder, receive_stock=receive_stock),
    )


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def cancel_reorder(request, reorder_id):
    return _run_reorder_transition(
        request,
        reorder_id,
        "cancel",
        _transition_and_save("cancel", request.user, request.data.get("reason", "")),
    )


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def reorder_suggestions(request):
    """Low-stock medications with a suggested order quantity and the cheapest offer."""
    suggestions = get_reorder_suggestions(request.user.pharmacy, branch=branch_param(request))
    return Response(
        {"results": suggestions, "count": len(suggestions)}, status=status.HTTP_200_OK
    )
