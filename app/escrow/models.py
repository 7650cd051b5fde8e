"""
Escrow model: the per-order held-funds record and its state machine.

Escrow is the single source of truth for fund status. Every status change
goes through one of the django-fsm transitions below, which are generated
from escrow.state_machines.ESCROW_TRANSITIONS. ConcurrentTransitionMixin
turns each save into a conditional write:

    UPDATE escrow_escrow SET ... WHERE id = %s AND status = <status as loaded>

so two actors advancing the same escrow cannot both succeed. The loser gets
django_fsm.ConcurrentTransition, which EscrowLedger reports as a no-op.

Usage:
    from escrow.models import Escrow
    from escrow.services import EscrowLedger

    escrow = Escrow.objects.get(order=order)
    with EscrowLedger.atomic() as unit:
        result = EscrowLedger.confirm_delivery(unit, escrow, actor=buyer)

Note:
    The status field is protected; reload with Escrow.objects.get() rather
    than refresh_from_db() after another process has moved it.
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from escrow.state_machines import (
    ESCROW_TRANSITIONS,
    EscrowEvent,
    EscrowStatus,
    PayoutStatus,
    RefundReason,
    ReleaseReason,
)


def default_auto_release_after_days() -> int:
    return settings.ESCROW_AUTO_RELEASE_AFTER_DAYS


def _sources(event: str) -> list[str]:
    return list(ESCROW_TRANSITIONS[event].sources)


def _target(event: str) -> str:
    return ESCROW_TRANSITIONS[event].target


class Escrow(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    Funds held against one order until release or refund.

    Fields:
        order: The order these funds belong to (1:1)
        buyer / vendor: Parties copied from the order
        amount_cents: Escrowed amount, immutable once funded
        status: Current FSM state (protected)
        payment_reference: Provider reference that funded the escrow
        auto_release_after_days: Length of the buyer confirmation window
        confirmation_deadline: deliveredAt + auto_release_after_days
        auto_release_date: fundedAt + auto_release_after_days (long-stop, monitored only)
        release_amount_cents / refund_amount_cents: Settlement split
        transaction_fee_cents / vendor_payout_*: Payout bookkeeping
        dispute: Dispute that froze this escrow, if any
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="escrow",
        help_text="Order these funds are held for",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="buyer_escrows",
    )

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="vendor_escrows",
    )

    dispute = models.ForeignKey(
        "disputes.Dispute",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="frozen_escrows",
        help_text="Dispute that froze this escrow",
    )

    # ==========================================================================
    # Amount & State
    # ==========================================================================

    amount_cents = models.PositiveBigIntegerField(
        help_text="Escrowed amount in smallest currency unit",
    )

    currency = models.CharField(
        max_length=3,
        default="SLE",
        help_text="ISO 4217 currency code",
    )

    status = FSMField(
        default=EscrowStatus.PENDING,
        choices=EscrowStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the escrow (managed by FSM)",
    )

    payment_reference = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Provider reference that funded this escrow",
    )

    # ==========================================================================
    # Release Policy
    # ==========================================================================

    auto_release_after_days = models.PositiveSmallIntegerField(
        default=default_auto_release_after_days,
        help_text="Days the buyer has to confirm delivery",
    )

    requires_delivery_confirmation = models.BooleanField(default=True)
    requires_buyer_approval = models.BooleanField(default=True)

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    funded_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    confirmation_deadline = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="After this instant, absent buyer action or dispute, funds auto-release",
    )
    buyer_confirmed_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    auto_release_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Long-stop date computed at funding; reported, never acted on",
    )
    disputed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Outcome
    # ==========================================================================

    release_reason = models.CharField(
        max_length=20,
        choices=ReleaseReason.choices,
        blank=True,
        default="",
    )
    refund_reason = models.CharField(
        max_length=20,
        choices=RefundReason.choices,
        blank=True,
        default="",
    )
    cancellation_reason = models.TextField(blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")

    release_amount_cents = models.PositiveBigIntegerField(null=True, blank=True)
    refund_amount_cents = models.PositiveBigIntegerField(null=True, blank=True)

    # ==========================================================================
    # Vendor Payout
    # ==========================================================================

    transaction_fee_cents = models.PositiveBigIntegerField(default=0)
    vendor_payout_amount_cents = models.PositiveBigIntegerField(null=True, blank=True)
    vendor_payout_id = models.CharField(max_length=100, blank=True, default="")
    vendor_payout_date = models.DateTimeField(null=True, blank=True)
    vendor_payout_status = models.CharField(
        max_length=20,
        choices=PayoutStatus.choices,
        blank=True,
        default="",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Escrow"
        verbose_name_plural = "Escrows"
        indexes = [
            models.Index(
                fields=["status", "confirmation_deadline"],
                name="escrow_status_deadline_idx",
            ),
            models.Index(fields=["buyer", "status"], name="escrow_buyer_status_idx"),
            models.Index(fields=["vendor", "status"], name="escrow_vendor_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_cents__gt=0),
                name="escrow_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(released_at__isnull=True) | Q(refunded_at__isnull=True),
                name="escrow_release_refund_exclusive",
            ),
            models.CheckConstraint(
                condition=Q(release_amount_cents__isnull=True)
                | Q(release_amount_cents__lte=F("amount_cents")),
                name="escrow_release_within_amount",
            ),
            models.CheckConstraint(
                condition=Q(refund_amount_cents__isnull=True)
                | Q(refund_amount_cents__lte=F("amount_cents")),
                name="escrow_refund_within_amount",
            ),
        ]

    def __str__(self) -> str:
        return f"Escrow({self.id}, {self.status}, {self.amount_cents} {self.currency})"

    @property
    def is_settled(self) -> bool:
        return self.released_at is not None or self.refunded_at is not None

    # ==========================================================================
    # Settlement helpers
    # ==========================================================================

    def _settle(self, favoured_amount: int, *, release: bool) -> None:
        remainder = self.amount_cents - favoured_amount
        if release:
            self.release_amount_cents = favoured_amount
            self.refund_amount_cents = remainder
        else:
            self.refund_amount_cents = favoured_amount
            self.release_amount_cents = remainder
        self._record_payout()

    def _record_payout(self) -> None:
        released = self.release_amount_cents or 0
        percent = settings.ESCROW_TRANSACTION_FEE_PERCENT
        self.transaction_fee_cents = int(released * percent / 100)
        self.vendor_payout_amount_cents = released - self.transaction_fee_cents
        self.vendor_payout_status = PayoutStatus.PENDING if released else ""

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=_sources(EscrowEvent.FUND),
        target=_target(EscrowEvent.FUND),
    )
    def fund(self, at, payment_reference: str = ""):
        """
        Record confirmed funds.

        Transition: PENDING -> FUNDED
        """
        self.funded_at = at
        self.auto_release_date = at + timedelta(days=self.auto_release_after_days)
        if payment_reference:
            self.payment_reference = payment_reference

    @transition(
        field=status,
        source=_sources(EscrowEvent.CANCEL),
        target=_target(EscrowEvent.CANCEL),
    )
    def cancel(self, reason: str, at):
        """Transition: PENDING -> CANCELLED"""
        self.cancellation_reason = reason
        self.cancelled_at = at

    @transition(
        field=status,
        source=_sources(EscrowEvent.MARK_DELIVERED),
        target=_target(EscrowEvent.MARK_DELIVERED),
    )
    def mark_delivered(self, at):
        """
        Start the buyer confirmation window.

        Transition: FUNDED -> PENDING_CONFIRMATION

        The confirmation deadline is only ever set here.
        """
        self.delivered_at = at
        self.confirmation_deadline = at + timedelta(days=self.auto_release_after_days)

    @transition(
        field=status,
        source=_sources(EscrowEvent.CONFIRM_BY_BUYER),
        target=_target(EscrowEvent.CONFIRM_BY_BUYER),
    )
    def confirm_by_buyer(self, at):
        """Transition: PENDING_CONFIRMATION -> RELEASED_TO_VENDOR"""
        self.buyer_confirmed_at = at
        self.released_at = at
        self.release_reason = ReleaseReason.BUYER_APPROVAL
        self._settle(self.amount_cents, release=True)

    @transition(
        field=status,
        source=_sources(EscrowEvent.AUTO_RELEASE),
        target=_target(EscrowEvent.AUTO_RELEASE),
    )
    def auto_release(self, at):
        """Transition: PENDING_CONFIRMATION -> RELEASED_TO_VENDOR"""
        self.released_at = at
        self.release_reason = ReleaseReason.AUTO_RELEASE
        self._settle(self.amount_cents, release=True)

    @transition(
        field=status,
        source=_sources(EscrowEvent.FREEZE),
        target=_target(EscrowEvent.FREEZE),
    )
    def freeze(self, dispute, at):
        """
        Freeze funds pending dispute resolution.

        Transition: FUNDED/PENDING_CONFIRMATION -> DISPUTED
        """
        self.dispute = dispute
        self.disputed_at = at

    @transition(
        field=status,
        source=_sources(EscrowEvent.RELEASE_ON_DISPUTE),
        target=_target(EscrowEvent.RELEASE_ON_DISPUTE),
    )
    def release_on_dispute(self, amount_cents: int, at):
        """Transition: DISPUTED -> RELEASED_TO_VENDOR"""
        self.released_at = at
        self.release_reason = ReleaseReason.DISPUTE_RESOLUTION
        self._settle(amount_cents, release=True)

    @transition(
        field=status,
        source=_sources(EscrowEvent.REFUND_ON_DISPUTE),
        target=_target(EscrowEvent.REFUND_ON_DISPUTE),
    )
    def refund_on_dispute(self, amount_cents: int, at):
        """Transition: DISPUTED -> REFUNDED_TO_BUYER"""
        self.refunded_at = at
        self.refund_reason = RefundReason.DISPUTE_RESOLUTION
        self._settle(amount_cents, release=False)
