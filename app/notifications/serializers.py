"""
Serializers for the settlement notification inbox.
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """
    Inbox entry.

    order_id and escrow_id are lifted out of the data payload so clients can
    link straight to the order without parsing it.
    """

    order_id = serializers.SerializerMethodField()
    escrow_id = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            "id",
            "category",
            "title",
            "message",
            "order_id",
            "escrow_id",
            "data",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_order_id(self, obj: Notification) -> str | None:
        return (obj.data or {}).get("order_id")

    def get_escrow_id(self, obj: Notification) -> str | None:
        return (obj.data or {}).get("escrow_id")


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    marked_count = serializers.IntegerField()
