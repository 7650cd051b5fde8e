"""
Dispute model for buyer/vendor disagreements over an order.

Disputes are created by a buyer or vendor and mutated only through
DisputeController. They are never deleted.

Usage:
    from disputes.models import Dispute
    from disputes.state_machines import DisputeStatus

    Dispute.objects.filter(order=order, status__in=ACTIVE_DISPUTE_STATUSES).exists()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from disputes.state_machines import (
    ACTIVE_DISPUTE_STATUSES,
    RESOLVED_DISPUTE_STATUSES,
    DisputeOutcome,
    DisputePriority,
    DisputeReason,
    DisputeStatus,
)


def empty_evidence() -> list:
    return []


class Dispute(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    One disagreement over an order, with its admin resolution.

    Fields:
        order / buyer / vendor: Parties copied from the order
        opened_by: Buyer or vendor who opened the dispute
        reason / description / evidence: The claim
        respondent_message / respondent_evidence: The counterparty's answer
        priority / escalation_reason: Set when an admin escalates
        status: FSM state (protected)
        admin / admin_notes: Reviewing admin
        outcome / resolution / refund_amount_cents / resolved_at: Resolution
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="disputes",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="buyer_disputes",
    )

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="vendor_disputes",
    )

    opened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="opened_disputes",
    )

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_disputes",
        help_text="Admin reviewing or resolving the dispute",
    )

    # ==========================================================================
    # Claim
    # ==========================================================================

    reason = models.CharField(max_length=20, choices=DisputeReason.choices)
    description = models.TextField()
    evidence = models.JSONField(
        default=empty_evidence,
        blank=True,
        help_text="List of evidence URLs or notes",
    )

    # ==========================================================================
    # Response & Escalation
    # ==========================================================================

    respondent_message = models.TextField(blank=True, default="")
    respondent_evidence = models.JSONField(default=empty_evidence, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)

    priority = models.CharField(
        max_length=10,
        choices=DisputePriority.choices,
        default=DisputePriority.MEDIUM,
        db_index=True,
    )
    escalation_reason = models.TextField(blank=True, default="")
    escalated_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # State & Resolution
    # ==========================================================================

    status = FSMField(
        default=DisputeStatus.OPEN,
        choices=DisputeStatus.choices,
        db_index=True,
        protected=True,
    )

    outcome = models.CharField(
        max_length=10,
        choices=DisputeOutcome.choices,
        blank=True,
        default="",
    )
    resolution = models.TextField(blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")
    refund_amount_cents = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount returned to the buyer by the resolution",
    )

    reviewed_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Dispute"
        verbose_name_plural = "Disputes"
        indexes = [
            models.Index(fields=["order", "status"], name="dispute_order_status_idx"),
            models.Index(fields=["buyer", "status"], name="dispute_buyer_status_idx"),
            models.Index(fields=["vendor", "status"], name="dispute_vendor_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(status__in=ACTIVE_DISPUTE_STATUSES),
                name="dispute_one_active_per_order",
            ),
        ]

    def __str__(self) -> str:
        return f"Dispute({self.id}, {self.reason}, {self.status})"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_DISPUTE_STATUSES

    @property
    def counterparty_id(self):
        """The party the dispute was opened against."""
        return self.vendor_id if self.opened_by_id == self.buyer_id else self.buyer_id

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=DisputeStatus.OPEN,
        target=DisputeStatus.UNDER_REVIEW,
    )
    def start_review(self, admin, at):
        self.admin = admin
        self.reviewed_at = at

    @transition(
        field=status,
        source=list(ACTIVE_DISPUTE_STATUSES),
        target=DisputeStatus.RESOLVED_BUYER,
    )
    def resolve_for_buyer(self, admin, resolution: str, refund_amount_cents: int, at):
        self._record_resolution(admin, DisputeOutcome.BUYER, resolution, refund_amount_cents, at)

    @transition(
        field=status,
        source=list(ACTIVE_DISPUTE_STATUSES),
        target=DisputeStatus.RESOLVED_VENDOR,
    )
    def resolve_for_vendor(self, admin, resolution: str, refund_amount_cents: int, at):
        self._record_resolution(admin, DisputeOutcome.VENDOR, resolution, refund_amount_cents, at)

    @transition(
        field=status,
        source=list(RESOLVED_DISPUTE_STATUSES),
        target=DisputeStatus.CLOSED,
    )
    def close(self, notes: str, at):
        if notes:
            self.admin_notes = notes
        self.closed_at = at

    def _record_resolution(self, admin, outcome, resolution, refund_amount_cents, at):
        self.admin = admin
        self.outcome = outcome
        self.resolution = resolution
        self.refund_amount_cents = refund_amount_cents
        self.resolved_at = at
