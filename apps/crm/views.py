"""
Views for customers, loyalty points and prescriptions.
"""

import logging

from django.shortcuts import get_object_or_404

from rest_framework import filters, generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.mixins import PharmacyScopedMixin
from apps.core.params import uuid_param
from apps.core.permissions import HasPharmacyAccess, IsOwnerOrManager

from .models import Customer, Prescription
from .serializers import (
    CustomerSerializer,
    LoyaltyPointsSerializer,
    LoyaltyTransactionSerializer,
    PrescriptionSerializer,
)
from .services import expire_prescriptions, search_customers

logger = logging.getLogger(__name__)


class CustomerListCreateView(PharmacyScopedMixin, generics.ListCreateAPIView):
    """
    List customers (search by name, phone or email) or add one.
    """

    serializer_class = CustomerSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Customer.objects.all()
    filter_backends = [filters.OrderingFilter]
    ordering_fields = ["full_name", "total_purchases", "loyalty_points", "last_purchase_at"]
    ordering = ["full_name"]

    def get_queryset(self):
        return search_customers(self.request.user.pharmacy, self.request.query_params.get("search"))


class CustomerDetailView(PharmacyScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = CustomerSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Customer.objects.all()
    lookup_field = "id"


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def loyalty_history(request, customer_id):
    customer = get_object_or_404(Customer, id=customer_id, pharmacy=request.user.pharmacy)
    transactions = customer.loyalty_transactions.select_related("sale")
    return Response(
        {
            "loyalty_points": customer.loyalty_points,
            "results": LoyaltyTransactionSerializer(transactions, many=True).data,
        },
        status=status.HTTP_200_OK,
    )


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def loyalty_redeem(request, customer_id):
    """
    Redeem loyalty points.

    Request body:
    {
        "points": 50,
        "description": "Discount on RX-00000042" (optional)
    }
    """
    customer = get_object_or_404(Customer, id=customer_id, pharmacy=request.user.pharmacy)
    serializer = LoyaltyPointsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        customer.redeem_loyalty_points(
            serializer.validated_data["points"],
            description=serializer.validated_data.get("description", ""),
            created_by=request.user,
        )
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({"loyalty_points": customer.loyalty_points}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def loyalty_add(request, customer_id):
    """Manually credit points (owners and managers only)."""
    customer = get_object_or_404(Customer, id=customer_id, pharmacy=request.user.pharmacy)
    serializer = LoyaltyPointsSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    customer.add_loyalty_points(
        serializer.validated_data["points"],
        description=serializer.validated_data.get("description", ""),
        created_by=request.user,
    )
    logger.info(
        f"{request.user.username} added {serializer.validated_data['points']} points "
        f"to customer {customer.id}"
    )
    return Response({"loyalty_points": customer.loyalty_points}, status=status.HTTP_200_OK)


# Prescriptions


class PrescriptionListCreateView(PharmacyScopedMixin, generics.ListCreateAPIView):
    """
    List prescriptions (filter by customer, status) or add one.
    """

    serializer_class = PrescriptionSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Prescription.objects.select_related("customer")

    def get_queryset(self):
        queryset = super().get_queryset()

        customer_id = uuid_param(self.request, "customer")
        if customer_id:
            queryset = queryset.filter(customer_id=customer_id)

        status_filter = self.request.query_params.get("status")
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        return queryset


class PrescriptionDetailView(PharmacyScopedMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = PrescriptionSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]
    queryset = Prescription.objects.select_related("customer")
    lookup_field = "id"


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def prescription_refill(request, prescription_id):
    prescription = get_object_or_404(
        Prescription, id=prescription_id, pharmacy=request.user.pharmacy
    )
    try:
        prescription.refill()
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(PrescriptionSerializer(prescription).data, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def prescription_expire(request):
    """Expire this pharmacy's prescriptions that are past their expiry date."""
    count = expire_prescriptions(pharmacy=request.user.pharmacy)
    return Response({"expired": count}, status=status.HTTP_200_OK)
