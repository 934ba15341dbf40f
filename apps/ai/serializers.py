"""
Request serializers for the AI endpoints.
"""

from rest_framework import serializers

from .models import UpsellEvent


class ScanInvoiceSerializer(serializers.Serializer):
    images = serializers.ListField(child=serializers.CharField(), required=False)
    image_url = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        images = [image for image in attrs.get("images", []) if image]
        if attrs.get("image_url"):
            images.append(attrs["image_url"])
        if not images:
            raise serializers.ValidationError({"detail": "At least one image is required."})
        attrs["images"] = images
        return attrs


class SmartUpsellSerializer(serializers.Serializer):
    cart_item_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)
    branch_id = serializers.UUIDField(required=False, allow_null=True)


class UpsellSuggestionSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    product_name = serializers.CharField(max_length=255)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    confidence = serializers.DecimalField(
        max_digits=4, decimal_places=2, required=False, allow_null=True, default=None
    )


class UpsellEventSerializer(serializers.Serializer):
    """Report suggestions the till showed, or the one the customer took."""

    event_type = serializers.ChoiceField(choices=UpsellEvent.EVENT_TYPE_CHOICES)
    suggestions = UpsellSuggestionSerializer(many=True, allow_empty=False)


class DrugInteractionSerializer(serializers.Serializer):
    medications = serializers.ListField(child=serializers.JSONField(), allow_empty=True)


class AISearchSerializer(serializers.Serializer):
    query = serializers.CharField(trim_whitespace=True)
    branch_id = serializers.UUIDField(required=False, allow_null=True)
