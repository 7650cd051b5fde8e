"""
Serializers for the payments API.

Serializers:
    InitializePaymentSerializer: Input for starting a payment
    PaymentSessionSerializer: Created payment returned to the buyer
    PaymentStatusSerializer: Current payment sub-record of an order
"""

from __future__ import annotations

from rest_framework import serializers

from orders.constants import PaymentMethod
from orders.models import Order

from payments.types import MOBILE_MONEY_METHODS


class InitializePaymentSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default="")
    poll = serializers.BooleanField(
        required=False,
        default=False,
        help_text="Queue a background status poll after creating the payment",
    )

    def validate(self, attrs):
        if attrs["method"] in MOBILE_MONEY_METHODS and not attrs.get("phone"):
            raise serializers.ValidationError(
                {"phone": "A phone number is required for mobile money payments."}
            )
        return attrs


class PaymentSessionSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    reference = serializers.CharField()
    payment_id = serializers.CharField()
    status = serializers.CharField()
    checkout_url = serializers.CharField(allow_blank=True)
    expires_at = serializers.CharField(allow_blank=True)


class PaymentStatusSerializer(serializers.ModelSerializer):
    """Payment sub-record as seen by the buyer, vendor or an admin."""

    order_id = serializers.UUIDField(source="id", read_only=True)
    reference = serializers.CharField(source="payment_reference", read_only=True)
    status = serializers.CharField(source="payment_status", read_only=True)
    provider = serializers.CharField(source="payment_provider", read_only=True)
    method = serializers.CharField(source="payment_method", read_only=True)
    transaction_id = serializers.CharField(source="payment_transaction_id", read_only=True)
    amount_cents = serializers.IntegerField(source="payment_amount_cents", read_only=True)
    currency = serializers.CharField(source="payment_currency", read_only=True)
    initiated_at = serializers.DateTimeField(source="payment_initiated_at", read_only=True)
    completed_at = serializers.DateTimeField(source="payment_completed_at", read_only=True)
    order_status = serializers.CharField(source="status", read_only=True)

    class Meta:
        model = Order
        fields = [
            "order_id",
            "order_number",
            "reference",
            "status",
            "provider",
            "method",
            "transaction_id",
            "amount_cents",
            "currency",
            "initiated_at",
            "completed_at",
            "order_status",
        ]
        read_only_fields = fields
