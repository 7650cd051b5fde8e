"""
Serializers for the escrow API.

Serializers:
    EscrowSerializer: Read-only escrow detail for parties and admins
    CancelEscrowSerializer: Input for cancelling an unfunded escrow
    EscrowStatsSerializer / AutoReleaseSummarySerializer: Admin responses
"""

from __future__ import annotations

from rest_framework import serializers

from escrow.models import Escrow


class EscrowSerializer(serializers.ModelSerializer):
    """Read-only serializer for Escrow. The escrow API never mutates through it."""

    order_number = serializers.CharField(source="order.order_number", read_only=True)

    class Meta:
        model = Escrow
        fields = [
            "id",
            "order",
            "order_number",
            "buyer",
            "vendor",
            "amount_cents",
            "currency",
            "status",
            "payment_reference",
            "auto_release_after_days",
            "requires_delivery_confirmation",
            "requires_buyer_approval",
            "funded_at",
            "delivered_at",
            "confirmation_deadline",
            "buyer_confirmed_at",
            "released_at",
            "refunded_at",
            "auto_release_date",
            "disputed_at",
            "cancelled_at",
            "release_reason",
            "refund_reason",
            "cancellation_reason",
            "release_amount_cents",
            "refund_amount_cents",
            "transaction_fee_cents",
            "vendor_payout_amount_cents",
            "vendor_payout_status",
            "dispute",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CancelEscrowSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)


class StatusTotalsSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    total_amount_cents = serializers.IntegerField()


class EscrowStatsSerializer(serializers.Serializer):
    total_count = serializers.IntegerField()
    total_amount_cents = serializers.IntegerField()
    by_status = serializers.DictField(child=StatusTotalsSerializer())


class AutoReleaseSummarySerializer(serializers.Serializer):
    ran_at = serializers.DateTimeField()
    candidates = serializers.IntegerField()
    released = serializers.IntegerField()
    skipped = serializers.IntegerField()
    failed = serializers.IntegerField()
    overdue = serializers.IntegerField()
    released_ids = serializers.ListField(child=serializers.CharField())
