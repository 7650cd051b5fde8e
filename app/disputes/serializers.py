"""
Serializers for the dispute API.

Serializers:
    DisputeSerializer: Read-only dispute detail
    OpenDisputeSerializer: Input for opening a dispute
    ResolveDisputeSerializer: Input for an admin resolution
    RespondDisputeSerializer: Input for the counterparty's answer
    EscalateDisputeSerializer: Input for an admin escalation
    CloseDisputeSerializer: Input for closing a resolved dispute
    DisputeStatsSerializer: Counts per status
"""

from __future__ import annotations

from rest_framework import serializers

from disputes.models import Dispute
from disputes.state_machines import DisputeOutcome, DisputePriority, DisputeReason


class DisputeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Dispute
        fields = [
            "id",
            "order",
            "buyer",
            "vendor",
            "opened_by",
            "reason",
            "description",
            "evidence",
            "respondent_message",
            "respondent_evidence",
            "responded_at",
            "priority",
            "escalation_reason",
            "escalated_at",
            "status",
            "admin",
            "outcome",
            "resolution",
            "refund_amount_cents",
            "reviewed_at",
            "resolved_at",
            "closed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OpenDisputeSerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    reason = serializers.ChoiceField(choices=DisputeReason.choices)
    description = serializers.CharField(max_length=2000)
    evidence = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        default=list,
        max_length=20,
    )


class ResolveDisputeSerializer(serializers.Serializer):
    outcome = serializers.ChoiceField(choices=DisputeOutcome.choices)
    amount_cents = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    resolution = serializers.CharField(required=False, allow_blank=True, default="")


class RespondDisputeSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=2000)
    evidence = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        default=list,
        max_length=20,
    )


class EscalateDisputeSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=2000)
    priority = serializers.ChoiceField(
        choices=DisputePriority.choices,
        required=False,
        default=DisputePriority.HIGH,
    )


class CloseDisputeSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class DisputeStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
