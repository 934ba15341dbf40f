"""
Serializers for pharmacies, branches and staff.
"""

from django.contrib.auth.password_validation import validate_password

from rest_framework import serializers

from apps.core import plans
from apps.core.models import Branch, Pharmacy, User
from apps.core.services import get_effective_permissions, is_branch_within_limit


class PharmacyRegistrationSerializer(serializers.Serializer):
    """Sign-up payload: the pharmacy and its owner account."""

    pharmacy_name = serializers.CharField(max_length=255)
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)

    def validate_username(self, value):
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("A user with that username already exists.")
        return value

    def validate_password(self, value):
        validate_password(value)
        return value


class PharmacySerializer(serializers.ModelSerializer):
    plan_name = serializers.SerializerMethodField()

    class Meta:
        model = Pharmacy
        fields = [
            "id",
            "name",
            "slug",
            "email",
            "phone",
            "address",
            "alert_recipient_phone",
            "alert_channel",
            "subscription_plan",
            "plan_name",
            "subscription_status",
            "trial_ends_at",
            "subscription_ends_at",
            "active_branches_limit",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "slug",
            "subscription_plan",
            "subscription_status",
            "trial_ends_at",
            "subscription_ends_at",
            "active_branches_limit",
            "created_at",
        ]

    def get_plan_name(self, obj):
        return plans.PLAN_DISPLAY_NAMES.get(obj.subscription_plan, "")


class BranchSerializer(serializers.ModelSerializer):
    within_limit = serializers.SerializerMethodField()

    class Meta:
        model = Branch
        fields = [
            "id",
            "name",
            "address",
            "phone",
            "is_main",
            "is_active",
            "within_limit",
            "created_at",
        ]
        read_only_fields = ["id", "is_main", "within_limit", "created_at"]

    def get_within_limit(self, obj):
        return is_branch_within_limit(obj)

    def validate_name(self, value):
        pharmacy = self.context["request"].user.pharmacy
        queryset = Branch.objects.filter(pharmacy=pharmacy, name__iexact=value)
        if self.instance is not None:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError("A branch with this name already exists.")
        return value


class StaffSerializer(serializers.ModelSerializer):
    """Staff member listing and updates."""

    permissions = serializers.SerializerMethodField()
    branch_name = serializers.CharField(source="branch.name", read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "email",
            "phone",
            "role",
            "branch",
            "branch_name",
            "is_active",
            "permissions",
        ]
        read_only_fields = ["id", "username", "permissions"]

    def get_permissions(self, obj):
        return get_effective_permissions(obj)

    def validate_role(self, value):
        if value not in (User.MANAGER, User.STAFF):
            raise serializers.ValidationError("Staff can only be managers or staff.")
        request = self.context.get("request")
        if value == User.MANAGER and request and not request.user.is_owner_or_manager():
            raise serializers.ValidationError(
                "Only pharmacy owners and managers can assign managers."
            )
        return value

    def validate_branch(self, value):
        if value is not None and value.pharmacy_id != self.context["request"].user.pharmacy_id:
            raise serializers.ValidationError("Branch not found.")
        return value


class StaffCreateSerializer(StaffSerializer):
    password = serializers.CharField(write_only=True)

    class Meta(StaffSerializer.Meta):
        fields = StaffSerializer.Meta.fields + ["password"]
        read_only_fields = ["id", "permissions"]

    def validate_username(self, value):
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("A user with that username already exists.")
        return value

    def create(self, validated_data):
        password = validated_data.pop("password")
        user = User(pharmacy=self.context["request"].user.pharmacy, **validated_data)
        user.set_password(password)
        user.save()
        return user


class PermissionUpdateSerializer(serializers.Serializer):
    permission_key = serializers.ChoiceField(choices=plans.PERMISSION_CHOICES)
    is_granted = serializers.BooleanField()


class RoleTemplateSerializer(serializers.Serializer):
    template = serializers.ChoiceField(choices=list(plans.ROLE_TEMPLATES.keys()))


class BranchLimitSerializer(serializers.Serializer):
    active_branches_limit = serializers.IntegerField(min_value=1)


class CurrentUserSerializer(serializers.ModelSerializer):
    pharmacy = PharmacySerializer(read_only=True)
    branch = BranchSerializer(read_only=True)
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "first_name",
            "last_name",
            "email",
            "phone",
            "role",
            "pharmacy",
            "branch",
            "permissions",
        ]

    def get_permissions(self, obj):
        return get_effective_permissions(obj)
