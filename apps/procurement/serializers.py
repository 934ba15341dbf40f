"""
Serializers for suppliers, supplier products and reorder requests.
"""

from rest_framework import serializers

from apps.core.models import Branch
from apps.inventory.models import Medication

from .models import ReorderRequest, Supplier, SupplierProduct


class SupplierSerializer(serializers.ModelSerializer):
    products_count = serializers.SerializerMethodField()

    class Meta:
        model = Supplier
        fields = [
            "id",
            "name",
            "contact_person",
            "email",
            "phone",
            "address",
            "website",
            "payment_terms",
            "notes",
            "is_active",
            "products_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "products_count", "created_at", "updated_at"]

    def get_products_count(self, obj):
        return obj.products.count()


class SupplierProductSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)

    class Meta:
        model = SupplierProduct
        fields = [
            "id",
            "supplier",
            "supplier_name",
            "medication",
            "product_name",
            "sku",
            "unit_price",
            "min_order_quantity",
            "lead_time_days",
            "is_available",
            "created_at",
        ]
        read_only_fields = ["id", "supplier", "supplier_name", "created_at"]

    def validate_medication(self, value):
        request = self.context.get("request")
        if value is not None and request and value.pharmacy_id != request.user.pharmacy_id:
            raise serializers.ValidationError("Medication not found.")
        return value


class ReorderRequestSerializer(serializers.ModelSerializer):
    """
    Serializer for reorder requests.

    Status moves only through the workflow endpoints, and total_amount is
    always quantity x unit_price.
    """

    medication_name = serializers.CharField(
        source="medication.name", read_only=True, default=None
    )
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, default=None)
    medication = serializers.PrimaryKeyRelatedField(queryset=Medication.objects.all())
    supplier = serializers.PrimaryKeyRelatedField(
        queryset=Supplier.objects.all(), required=False, allow_null=True
    )
    branch = serializers.PrimaryKeyRelatedField(
        queryset=Branch.objects.all(), required=False, allow_null=True
    )
    unit_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, min_value=0
    )

    class Meta:
        model = ReorderRequest
        fields = [
            "id",
            "branch",
            "supplier",
            "supplier_name",
            "medication",
            "medication_name",
            "quantity",
            "unit_price",
            "total_amount",
            "status",
            "requested_by",
            "approved_by",
            "approved_at",
            "expected_delivery",
            "actual_delivery",
            "notes",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "total_amount",
            "status",
            "requested_by",
            "approved_by",
            "approved_at",
            "actual_delivery",
            "created_at",
        ]

    def _pharmacy(self):
        return self.context["request"].user.pharmacy

    def validate_medication(self, value):
        if value.pharmacy_id != self._pharmacy().id:
            raise serializers.ValidationError("Medication not found.")
        return value

    def validate_supplier(self, value):
        if value is None:
            return value
        if value.pharmacy_id != self._pharmacy().id:
            raise serializers.ValidationError("Supplier not found.")
        if not value.is_active:
            raise serializers.ValidationError("Supplier is inactive.")
        return value

    def validate_branch(self, value):
        if value is not None and value.pharmacy_id != self._pharmacy().id:
            raise serializers.ValidationError("Branch not found.")
        return value


class DeliverSerializer(serializers.Serializer):
    receive_stock = serializers.BooleanField(default=False)
