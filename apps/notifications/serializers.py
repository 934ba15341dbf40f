from rest_framework import serializers

from .models import Notification, SentAlert


class NotificationSerializer(serializers.ModelSerializer):
    is_broadcast = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "message",
            "notification_type",
            "priority",
            "link",
            "metadata",
            "is_read",
            "read_at",
            "is_broadcast",
            "created_at",
        ]
        read_only_fields = fields

    def get_is_broadcast(self, obj):
        return obj.user_id is None


class MarkReadSerializer(serializers.Serializer):
    notification_ids = serializers.ListField(
        child=serializers.UUIDField(), required=False, allow_null=True
    )


class SentAlertSerializer(serializers.ModelSerializer):
    class Meta:
        model = SentAlert
        fields = [
            "id",
            "alert_type",
            "channel",
            "recipient_phone",
            "message",
            "status",
            "provider_message_id",
            "items_included",
            "error_message",
            "created_at",
        ]
        read_only_fields = fields
