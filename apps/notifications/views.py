"""
Views for notifications and alerts.

- In-app notification list, unread count and mark as read
- Alert history and manual alerts over SMS/WhatsApp
- On-demand daily digest
"""

import logging

from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, serializers, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.mixins import PharmacyScopedMixin
from apps.core.permissions import HasPharmacyAccess, IsOwnerOrManager

from .models import SentAlert
from .serializers import MarkReadSerializer, NotificationSerializer, SentAlertSerializer
from .services import (
    SMSDeliveryError,
    format_manual_alert,
    get_unread_count,
    get_user_notifications,
    mark_notifications_as_read,
    send_alert_message,
    send_pharmacy_digest,
)

logger = logging.getLogger(__name__)


class NotificationListView(generics.ListAPIView):
    """
    The user's notifications plus pharmacy-wide ones.

    Supports:
    - unread_only: true/false
    - type: info|success|warning|danger
    """

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess]

    def get_queryset(self):
        return get_user_notifications(
            self.request.user,
            unread_only=self.request.query_params.get("unread_only") == "true",
            notification_type=self.request.query_params.get("type"),
        )


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def unread_count(request):
    return Response({"unread_count": get_unread_count(request.user)}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def mark_as_read(request):
    """
    Mark notifications as read.

    Request body:
    {
        "notification_ids": ["uuid", ...] (optional, defaults to all unread)
    }
    """
    serializer = MarkReadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    count = mark_notifications_as_read(
        request.user, serializer.validated_data.get("notification_ids")
    )
    return Response({"marked": count}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def mark_single_as_read(request, notification_id):
    notification = get_object_or_404(
        get_user_notifications(request.user), id=notification_id
    )
    notification.mark_as_read()
    return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)


class SentAlertListView(PharmacyScopedMixin, generics.ListAPIView):
    serializer_class = SentAlertSerializer
    permission_classes = [permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager]
    queryset = SentAlert.objects.all()


class ManualAlertSerializer(serializers.Serializer):
    alert_type = serializers.ChoiceField(
        choices=["low_stock", "expiring", "expired", "custom"], default="custom"
    )
    message = serializers.CharField(max_length=1600)
    recipient_phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def send_manual_alert(request):
    """
    Send a one-off alert to a phone (defaults to the pharmacy's alert phone).

    Request body:
    {
        "alert_type": "low_stock|expiring|expired|custom",
        "message": "Paracetamol 500mg is nearly out",
        "recipient_phone": "08012345678" (optional)
    }
    """
    serializer = ManualAlertSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    pharmacy = request.user.pharmacy
    phone = (
        serializer.validated_data.get("recipient_phone")
        or pharmacy.alert_recipient_phone
        or pharmacy.phone
    )
    if not phone:
        return Response(
            {"detail": "No recipient phone given and no alert phone configured."},
            status=status.HTTP_400_BAD_REQUEST,
        )

    message = format_manual_alert(
        serializer.validated_data["alert_type"], serializer.validated_data["message"]
    )
    try:
        alert = send_alert_message(pharmacy, phone, message, alert_type=SentAlert.MANUAL)
    except SMSDeliveryError as e:
        return Response({"detail": str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    return Response(SentAlertSerializer(alert).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess, IsOwnerOrManager])
def send_digest_now(request):
    """Run today's alert digest for the user's pharmacy immediately."""
    result = send_pharmacy_digest(request.user.pharmacy)
    logger.info(f"Digest triggered manually by {request.user.username}: {result}")
    return Response(result, status=status.HTTP_200_OK)
