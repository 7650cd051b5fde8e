"""
Serializers for the order read API.

Orders are read-only over HTTP; status and payment fields are written by the
settlement engine only.
"""

from __future__ import annotations

from rest_framework import serializers

from orders.models import Order


class OrderPaymentSerializer(serializers.Serializer):
    provider = serializers.CharField()
    method = serializers.CharField()
    reference = serializers.CharField(allow_null=True)
    transaction_id = serializers.CharField()
    status = serializers.CharField()
    amount_cents = serializers.IntegerField(allow_null=True)
    currency = serializers.CharField()
    initiated_at = serializers.DateTimeField(allow_null=True)
    completed_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)


class OrderSerializer(serializers.ModelSerializer):
    """Order detail with its payment sub-record and escrow status."""

    payment = OrderPaymentSerializer(read_only=True)
    escrow_id = serializers.SerializerMethodField()
    escrow_status = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer",
            "vendor",
            "total_amount_cents",
            "currency",
            "status",
            "delivered_at",
            "payment",
            "escrow_id",
            "escrow_status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def _escrow(self, obj):
        return getattr(obj, "escrow", None)

    def get_escrow_id(self, obj) -> str | None:
        escrow = self._escrow(obj)
        return str(escrow.id) if escrow else None

    def get_escrow_status(self, obj) -> str | None:
        escrow = self._escrow(obj)
        return escrow.status if escrow else None
