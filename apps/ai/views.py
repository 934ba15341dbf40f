"""
Views for the AI features.

- Invoice scanning (plan feature and monthly quota)
- Smart upsell suggestions and their analytics
- Drug interaction check
- Inventory insights and natural-language inventory search
"""

import logging
from datetime import timedelta

from django.shortcuts import get_object_or_404
from django.utils import timezone

from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core import plans
from apps.core.models import Branch
from apps.core.params import branch_param, int_param
from apps.inventory.serializers import MedicationSerializer
from apps.core.permissions import (
    HasActiveSubscription,
    HasPharmacyAccess,
    HasStaffPermission,
    RequiresPlanFeature,
)

from . import quota
from .gateway import AICreditsExhaustedError, AIProviderError, AIRateLimitError
from .serializers import (
    AISearchSerializer,
    DrugInteractionSerializer,
    ScanInvoiceSerializer,
    SmartUpsellSerializer,
    UpsellEventSerializer,
)
from .services import (
    ai_search,
    check_drug_interactions,
    generate_inventory_insights,
    get_upsell_summary,
    record_upsell_events,
    scan_invoice,
    suggest_upsells,
)

logger = logging.getLogger(__name__)

AI_PERMISSIONS = [
    permissions.IsAuthenticated,
    HasPharmacyAccess,
    HasActiveSubscription,
    RequiresPlanFeature(plans.AI_FEATURES),
]


def ai_error_response(error):
    """Map a provider failure to the status the client expects."""
    if isinstance(error, AIRateLimitError):
        return Response(
            {"detail": "Rate limit exceeded. Please try again in a moment."},
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )
    if isinstance(error, AICreditsExhaustedError):
        return Response(
            {"detail": "AI credits depleted. Please add more credits."},
            status=status.HTTP_402_PAYMENT_REQUIRED,
        )
    return Response(
        {"detail": "AI service is unavailable. Please try again later."},
        status=status.HTTP_502_BAD_GATEWAY,
    )


@api_view(["POST"])
@permission_classes(AI_PERMISSIONS)
def scan_invoice_view(request):
    """
    Extract stock lines from supplier invoice photos.

    Request body:
    {
        "images": ["data:image/jpeg;base64,...", ...]
        or
        "image_url": "https://..."
    }

    Each successful scan counts against the monthly allowance.
    """
    serializer = ScanInvoiceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    pharmacy = request.user.pharmacy
    if quota.is_limit_reached(pharmacy):
        usage = quota.get_scan_usage(pharmacy)
        return Response(
            {
                "detail": "Monthly invoice scan limit reached. Upgrade your plan for more scans.",
                "usage": usage,
            },
            status=status.HTTP_403_FORBIDDEN,
        )

    try:
        result, parsed = scan_invoice(serializer.validated_data["images"])
    except AIProviderError as e:
        logger.error(f"Invoice scan failed for pharmacy {pharmacy.id}: {e}")
        return ai_error_response(e)

    if parsed:
        quota.increment_scan_count(pharmacy)
    result["usage"] = quota.get_scan_usage(pharmacy)
    return Response(result, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def scan_usage(request):
    return Response(quota.get_scan_usage(request.user.pharmacy), status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes(AI_PERMISSIONS)
def smart_upsell(request):
    """
    Suggest up to three complementary products for the cart.

    Request body:
    {
        "cart_item_ids": ["uuid", ...],
        "branch_id": "uuid" (optional)
    }
    """
    serializer = SmartUpsellSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    branch = request.user.branch
    branch_id = serializer.validated_data.get("branch_id")
    if branch_id:
        branch = get_object_or_404(Branch, id=branch_id, pharmacy=request.user.pharmacy)

    try:
        suggestions = suggest_upsells(
            request.user.pharmacy, serializer.validated_data["cart_item_ids"], branch=branch
        )
    except AIProviderError as e:
        logger.error(f"Smart upsell failed for pharmacy {request.user.pharmacy.id}: {e}")
        return ai_error_response(e)

    return Response({"suggestions": suggestions}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasPharmacyAccess])
def upsell_events(request):
    serializer = UpsellEventSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    events = record_upsell_events(
        request.user.pharmacy,
        request.user,
        [dict(s) for s in serializer.validated_data["suggestions"]],
        serializer.validated_data["event_type"],
    )
    return Response({"recorded": len(events)}, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes(
    [permissions.IsAuthenticated, HasPharmacyAccess, HasStaffPermission(plans.VIEW_ANALYTICS)]
)
def upsell_analytics(request):
    """
    Acceptance rate of upsell suggestions.

    Query params: days (default 30)
    """
    days = int_param(request, "days", default=30, min_value=1)
    since = timezone.now() - timedelta(days=days)
    return Response(
        get_upsell_summary(request.user.pharmacy, since=since), status=status.HTTP_200_OK
    )


@api_view(["POST"])
@permission_classes(AI_PERMISSIONS)
def drug_interactions(request):
    """
    Check a list of medications for significant interactions.

    Request body:
    {
        "medications": ["Warfarin", "Aspirin"] or [{"name": "Warfarin"}, ...]
    }
    """
    serializer = DrugInteractionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        result = check_drug_interactions(serializer.validated_data["medications"])
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except AIProviderError as e:
        logger.error(f"Interaction check failed for pharmacy {request.user.pharmacy.id}: {e}")
        return ai_error_response(e)

    return Response(result, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes(AI_PERMISSIONS + [HasStaffPermission(plans.VIEW_DASHBOARD)])
def inventory_insights(request):
    """
    Six model-written insights on expired, expiring, low and total stock.

    Query params: branch (optional)
    """
    pharmacy = request.user.pharmacy
    try:
        result = generate_inventory_insights(pharmacy, branch=branch_param(request))
    except AIProviderError as e:
        logger.error(f"Insight generation failed for pharmacy {pharmacy.id}: {e}")
        return ai_error_response(e)

    metrics = dict(result["metrics"], total_value=str(result["metrics"]["total_value"]))
    return Response({"insights": result["insights"], "metrics": metrics}, status=status.HTTP_200_OK)


@api_view(["POST"])
@permission_classes(AI_PERMISSIONS)
def inventory_search(request):
    """
    Answer a plain-language inventory question with matching batches.

    Request body:
    {
        "query": "what is running out?",
        "branch_id": "uuid" (optional)
    }
    """
    serializer = AISearchSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    branch = None
    branch_id = serializer.validated_data.get("branch_id")
    if branch_id:
        branch = get_object_or_404(Branch, id=branch_id, pharmacy=request.user.pharmacy)

    try:
        result = ai_search(request.user.pharmacy, serializer.validated_data["query"], branch=branch)
    except ValueError as e:
        return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except AIProviderError as e:
        logger.error(f"AI search failed for pharmacy {request.user.pharmacy.id}: {e}")
        return ai_error_response(e)

    result["results"] = MedicationSerializer(
        result["results"], many=True, context={"request": request}
    ).data
    return Response(result, status=status.HTTP_200_OK)
