"""
Serializers for sales, shifts, held transactions and offline sync.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import Branch
from apps.crm.models import Customer

from .models import HeldTransaction, Sale, SaleItem, Shift
from .services import MAX_TIMESTAMP_MS, complete_sale


class SaleItemCreateSerializer(serializers.Serializer):
    medication_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class SaleCreateSerializer(serializers.Serializer):
    """
    Serializer for completing a sale at the POS.

    Prices come from the medication batches; the client only sends what and
    how many.
    """

    items = SaleItemCreateSerializer(many=True)
    branch_id = serializers.UUIDField(required=False, allow_null=True)
    customer_id = serializers.UUIDField(required=False, allow_null=True)
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, default=Sale.CASH)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value

    def validate_branch_id(self, value):
        if value is None:
            return value
        pharmacy = self.context["request"].user.pharmacy
        if not Branch.objects.filter(id=value, pharmacy=pharmacy, is_active=True).exists():
            raise serializers.ValidationError("Branch not found or inactive.")
        return value

    def validate_customer_id(self, value):
        if value is None:
            return value
        pharmacy = self.context["request"].user.pharmacy
        if not Customer.objects.filter(id=value, pharmacy=pharmacy).exists():
            raise serializers.ValidationError("Customer not found.")
        return value

    def get_branch(self):
        request = self.context["request"]
        branch_id = self.validated_data.get("branch_id")
        if branch_id:
            return Branch.objects.get(id=branch_id)
        return request.user.branch

    def create(self, validated_data):
        request = self.context["request"]
        customer_id = validated_data.get("customer_id")
        customer = Customer.objects.get(id=customer_id) if customer_id else None

        try:
            return complete_sale(
                request.user.pharmacy,
                request.user,
                [dict(item) for item in validated_data["items"]],
                branch=self.get_branch(),
                customer=customer,
                customer_name=validated_data.get("customer_name", ""),
                payment_method=validated_data["payment_method"],
            )
        except ValueError as e:
            raise serializers.ValidationError({"detail": str(e)})


class SaleItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SaleItem
        fields = [
            "id",
            "medication",
            "medication_name",
            "quantity",
            "unit_price",
            "total_price",
            "batch_expiry_info",
        ]
        read_only_fields = fields


class SaleSerializer(serializers.ModelSerializer):
    """Serializer for sale details with items."""

    items = SaleItemSerializer(many=True, read_only=True)
    branch_name = serializers.CharField(source="branch.name", read_only=True, default=None)

    class Meta:
        model = Sale
        fields = [
            "id",
            "receipt_number",
            "branch",
            "branch_name",
            "customer",
            "customer_name",
            "sold_by",
            "staff_name",
            "shift",
            "payment_method",
            "total",
            "status",
            "client_transaction_id",
            "is_offline",
            "offline_created_at",
            "voided_at",
            "void_reason",
            "items",
            "created_at",
        ]
        read_only_fields = fields


class SaleListSerializer(serializers.ModelSerializer):
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = [
            "id",
            "receipt_number",
            "branch",
            "customer_name",
            "staff_name",
            "payment_method",
            "total",
            "status",
            "is_offline",
            "items_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_items_count(self, obj):
        return obj.items.count()


class VoidSaleSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class ShiftSerializer(serializers.ModelSerializer):
    staff_name = serializers.CharField(source="staff.get_display_name", read_only=True)
    is_open = serializers.BooleanField(read_only=True)
    duration_hours = serializers.FloatField(read_only=True)

    class Meta:
        model = Shift
        fields = [
            "id",
            "branch",
            "staff",
            "staff_name",
            "clock_in",
            "clock_out",
            "notes",
            "total_sales",
            "total_transactions",
            "is_open",
            "duration_hours",
        ]
        read_only_fields = fields


class ClockSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)


class HeldTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = HeldTransaction
        fields = ["id", "short_code", "customer_name", "items", "total", "held_at"]
        read_only_fields = ["id", "short_code", "held_at"]

    def validate_items(self, value):
        if not isinstance(value, list) or not value:
            raise serializers.ValidationError("A held cart needs at least one item.")
        return value

    def validate_total(self, value):
        if value < Decimal("0.00"):
            raise serializers.ValidationError("Total cannot be negative.")
        return value


# Offline sync


class OfflineValidateItemSerializer(serializers.Serializer):
    medication_id = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class OfflineValidateTransactionSerializer(serializers.Serializer):
    client_transaction_id = serializers.CharField(max_length=100)
    items = OfflineValidateItemSerializer(many=True)


class OfflineValidateSerializer(serializers.Serializer):
    transactions = OfflineValidateTransactionSerializer(many=True, allow_empty=False)


class OfflineSaleItemSerializer(serializers.Serializer):
    medication_id = serializers.CharField()
    medication_name = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    total_price = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)


class OfflineSaleSerializer(serializers.Serializer):
    """One sale from the device's offline queue."""

    client_transaction_id = serializers.CharField(max_length=100)
    items = OfflineSaleItemSerializer(many=True, allow_empty=False)
    total = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    timestamp = serializers.IntegerField(
        required=False,
        allow_null=True,
        min_value=0,
        max_value=MAX_TIMESTAMP_MS,
        help_text="Epoch milliseconds on the device",
    )
    customer_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    customer_name = serializers.CharField(required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, default=Sale.CASH)
    shift_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    staff_name = serializers.CharField(required=False, allow_blank=True)


class OfflineSyncSerializer(serializers.Serializer):
    sales = OfflineSaleSerializer(many=True, allow_empty=False)
    branch_id = serializers.UUIDField(required=False, allow_null=True)
