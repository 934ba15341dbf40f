"""
Serializers for customers, loyalty points and prescriptions.
"""

from rest_framework import serializers

from .models import Customer, LoyaltyTransaction, Prescription


class CustomerSerializer(serializers.ModelSerializer):
    """Serializer for Customer model."""

    class Meta:
        model = Customer
        fields = [
            "id",
            "full_name",
            "phone",
            "email",
            "date_of_birth",
            "address",
            "notes",
            "loyalty_points",
            "total_purchases",
            "last_purchase_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "loyalty_points",
            "total_purchases",
            "last_purchase_at",
            "created_at",
            "updated_at",
        ]

    def validate_phone(self, value):
        request = self.context.get("request")
        if not value or not request:
            return value
        queryset = Customer.objects.filter(pharmacy=request.user.pharmacy, phone=value)
        if self.instance is not None:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError("A customer with this phone number already exists.")
        return value


class LoyaltyTransactionSerializer(serializers.ModelSerializer):
    receipt_number = serializers.CharField(
        source="sale.receipt_number", read_only=True, default=None
    )

    class Meta:
        model = LoyaltyTransaction
        fields = [
            "id",
            "transaction_type",
            "points",
            "description",
            "sale",
            "receipt_number",
            "created_at",
        ]
        read_only_fields = fields


class LoyaltyPointsSerializer(serializers.Serializer):
    """Redeem points, or add them manually."""

    points = serializers.IntegerField(min_value=1)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)


class PrescriptionItemSerializer(serializers.Serializer):
    medication_name = serializers.CharField(max_length=255)
    dosage = serializers.CharField(max_length=255, required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1, required=False)
    instructions = serializers.CharField(required=False, allow_blank=True)


class PrescriptionSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.full_name", read_only=True)
    items = serializers.ListField(child=PrescriptionItemSerializer(), required=False)
    can_refill = serializers.BooleanField(read_only=True)

    class Meta:
        model = Prescription
        fields = [
            "id",
            "customer",
            "customer_name",
            "prescription_number",
            "prescriber_name",
            "prescriber_phone",
            "status",
            "refill_count",
            "max_refills",
            "can_refill",
            "issued_date",
            "expiry_date",
            "notes",
            "items",
            "created_at",
        ]
        read_only_fields = ["id", "prescription_number", "refill_count", "created_at"]

    def validate_customer(self, value):
        request = self.context.get("request")
        if request and value.pharmacy_id != request.user.pharmacy_id:
            raise serializers.ValidationError("Customer not found.")
        return value

    def validate(self, data):
        issued_date = data.get("issued_date", getattr(self.instance, "issued_date", None))
        expiry_date = data.get("expiry_date", getattr(self.instance, "expiry_date", None))
        if issued_date and expiry_date and expiry_date < issued_date:
            raise serializers.ValidationError(
                {"expiry_date": "Expiry date cannot be before the issue date."}
            )
        return data
