"""
Serializers for medications, branch stock and stock transfers.
"""

from rest_framework import serializers

from apps.core.models import Branch

from .models import BranchStock, Medication, StockTransfer


class MedicationSerializer(serializers.ModelSerializer):
    """Serializer for Medication batches."""

    price = serializers.DecimalField(
        source="get_price", max_digits=12, decimal_places=2, read_only=True
    )
    is_expired = serializers.SerializerMethodField()
    is_expiring_soon = serializers.SerializerMethodField()
    is_low_stock = serializers.BooleanField(read_only=True)
    branch = serializers.PrimaryKeyRelatedField(
        queryset=Branch.objects.all(), required=False, allow_null=True
    )

    class Meta:
        model = Medication
        fields = [
            "id",
            "branch",
            "name",
            "category",
            "batch_number",
            "current_stock",
            "reorder_level",
            "expiry_date",
            "manufacturing_date",
            "unit_price",
            "selling_price",
            "wholesale_price",
            "price",
            "barcode_id",
            "is_controlled",
            "nafdac_reg_number",
            "dispensing_unit",
            "is_shelved",
            "is_expired",
            "is_expiring_soon",
            "is_low_stock",
            "last_notified_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "last_notified_at", "created_at", "updated_at"]

    def get_is_expired(self, obj):
        return obj.is_expired()

    def get_is_expiring_soon(self, obj):
        return obj.is_expiring_soon()

    def validate_branch(self, value):
        request = self.context.get("request")
        if value is not None and request and value.pharmacy_id != request.user.pharmacy_id:
            raise serializers.ValidationError("Branch not found.")
        return value

    def validate(self, data):
        manufacturing_date = data.get("manufacturing_date")
        expiry_date = data.get("expiry_date", getattr(self.instance, "expiry_date", None))
        if manufacturing_date and expiry_date and manufacturing_date > expiry_date:
            raise serializers.ValidationError(
                {"expiry_date": "Expiry date cannot be before the manufacturing date."}
            )
        return data


class GroupedProductSerializer(serializers.Serializer):
    """One POS row per product name, priced from the first batch to sell."""

    name = serializers.CharField()
    category = serializers.CharField()
    total_stock = serializers.IntegerField()
    display_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    lowest_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    highest_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    earliest_expiry = serializers.DateField()
    has_multiple_batches = serializers.BooleanField()
    has_expired_batch = serializers.BooleanField()
    has_low_stock = serializers.BooleanField()
    barcode_id = serializers.CharField()
    batches = MedicationSerializer(many=True)


class BranchStockSerializer(serializers.ModelSerializer):
    medication_name = serializers.CharField(source="medication.name", read_only=True)
    branch_name = serializers.CharField(source="branch.name", read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = BranchStock
        fields = [
            "id",
            "branch",
            "branch_name",
            "medication",
            "medication_name",
            "quantity",
            "reorder_level",
            "is_low_stock",
            "updated_at",
        ]
        read_only_fields = fields


class StockMovementSerializer(serializers.Serializer):
    """Receive or deduct stock at a branch."""

    ACTION_RECEIVE = "receive"
    ACTION_DEDUCT = "deduct"

    ACTION_CHOICES = [
        (ACTION_RECEIVE, "Receive stock"),
        (ACTION_DEDUCT, "Deduct stock"),
    ]

    branch_id = serializers.UUIDField()
    medication_id = serializers.UUIDField()
    action = serializers.ChoiceField(choices=ACTION_CHOICES)
    quantity = serializers.IntegerField(min_value=1)

    def validate(self, data):
        pharmacy = self.context["request"].user.pharmacy
        try:
            data["branch"] = Branch.objects.get(id=data["branch_id"], pharmacy=pharmacy)
        except Branch.DoesNotExist:
            raise serializers.ValidationError({"branch_id": "Branch not found."})
        try:
            data["medication"] = Medication.objects.get(id=data["medication_id"], pharmacy=pharmacy)
        except Medication.DoesNotExist:
            raise serializers.ValidationError({"medication_id": "Medication not found."})
        return data


class StockTransferSerializer(serializers.ModelSerializer):
    from_branch_name = serializers.CharField(source="from_branch.name", read_only=True)
    to_branch_name = serializers.CharField(source="to_branch.name", read_only=True)
    medication_name = serializers.CharField(source="medication.name", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    requested_by_name = serializers.CharField(
        source="requested_by.get_display_name", read_only=True
    )

    class Meta:
        model = StockTransfer
        fields = [
            "id",
            "transfer_number",
            "from_branch",
            "from_branch_name",
            "to_branch",
            "to_branch_name",
            "medication",
            "medication_name",
            "quantity",
            "status",
            "status_display",
            "requested_by",
            "requested_by_name",
            "approved_by",
            "approved_at",
            "rejected_at",
            "shipped_at",
            "received_at",
            "notes",
            "rejection_reason",
            "created_at",
        ]
        read_only_fields = fields


class StockTransferCreateSerializer(serializers.Serializer):
    """Serializer for creating stock transfers."""

    from_branch_id = serializers.UUIDField()
    to_branch_id = serializers.UUIDField()
    medication_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    def validate(self, data):
        pharmacy = self.context["request"].user.pharmacy

        if data["from_branch_id"] == data["to_branch_id"]:
            raise serializers.ValidationError(
                {"to_branch_id": "Source and destination branches must be different."}
            )

        branches = {
            branch.id: branch
            for branch in Branch.objects.filter(
                pharmacy=pharmacy, id__in=[data["from_branch_id"], data["to_branch_id"]]
            )
        }
        if data["from_branch_id"] not in branches:
            raise serializers.ValidationError({"from_branch_id": "Source branch not found."})
        if data["to_branch_id"] not in branches:
            raise serializers.ValidationError({"to_branch_id": "Destination branch not found."})

        try:
            medication = Medication.objects.get(id=data["medication_id"], pharmacy=pharmacy)
        except Medication.DoesNotExist:
            raise serializers.ValidationError({"medication_id": "Medication not found."})

        available = (
            BranchStock.objects.filter(branch_id=data["from_branch_id"], medication=medication)
            .values_list("quantity", flat=True)
            .first()
            or 0
        )
        if available < data["quantity"]:
            raise serializers.ValidationError(
                {
                    "quantity": f"Insufficient stock at source branch. "
                    f"Available: {available}, Requested: {data['quantity']}"
                }
            )

        data["from_branch"] = branches[data["from_branch_id"]]
        data["to_branch"] = branches[data["to_branch_id"]]
        data["medication"] = medication
        return data

    def create(self, validated_data):
        request = self.context["request"]
        return StockTransfer.objects.create(
            pharmacy=request.user.pharmacy,
            from_branch=validated_data["from_branch"],
            to_branch=validated_data["to_branch"],
            medication=validated_data["medication"],
            quantity=validated_data["quantity"],
            notes=validated_data.get("notes", ""),
            requested_by=request.user,
        )
