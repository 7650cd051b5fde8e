"""
Escrow ledger service: the only code path that advances an escrow.

Every transition follows the same shape:
    1. unit.ensure_active() - the caller owns the transaction
    2. django_fsm.can_proceed() - an illegal source status raises
       InvalidStateTransitionError (409)
    3. apply the Escrow transition method and save inside a savepoint;
       the save is a conditional write on the status loaded from the
       database (ConcurrentTransitionMixin)
    4. zero rows updated -> TransitionResult(applied=False): another actor
       moved the escrow first. Not an error, never retried blindly.
    5. applied -> OrderSynchronizer.mirror_escrow() in the same unit

Callers decide whether a no-op is expected (scheduler, duplicate webhook)
or user-visible (an explicit buyer confirmation).

Usage:
    from escrow.services import EscrowLedger

    with EscrowLedger.atomic() as unit:
        result = EscrowLedger.confirm_delivery(unit, escrow, actor=request.user)
    if not result.applied:
        raise ConflictError("Escrow was already settled")
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Count, Sum
from django.utils import timezone

from django_fsm import ConcurrentTransition, can_proceed

from core.exceptions import ConflictError, PermissionDeniedError
from core.services import BaseService

from escrow.exceptions import (
    EscrowNotFoundError,
    InvalidSettlementAmountError,
    InvalidStateTransitionError,
)
from escrow.models import Escrow
from escrow.state_machines import ESCROW_TRANSITIONS, EscrowEvent, EscrowStatus
from orders.models import Order
from orders.synchronizer import OrderSynchronizer

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any

    from authentication.models import User
    from core.transactions import AtomicUnit
    from disputes.models import Dispute


STATS_CACHE_KEY = "escrow:stats"
STATS_CACHE_TIMEOUT = 60


@dataclass(frozen=True)
class TransitionResult:
    """
    Outcome of a ledger transition.

    Attributes:
        applied: False when another actor advanced the escrow first
        escrow: The escrow as written (applied) or as found in the database (no-op)
        event: EscrowEvent that was attempted
        previous_status: Status the caller expected to move from
    """

    applied: bool
    escrow: Escrow
    event: str
    previous_status: str

    def __bool__(self) -> bool:
        return self.applied


class EscrowLedger(BaseService):
    """
    Service owning every escrow mutation.

    Methods:
        open_escrow: Create the pending escrow for a new order
        get / get_for_order: Read access
        fund: pending -> funded (payment reconciler)
        cancel: pending -> cancelled (buyer, vendor or payment cancellation)
        mark_delivered: funded -> pending_confirmation (vendor or admin)
        confirm_delivery: pending_confirmation -> released_to_vendor (buyer)
        auto_release: pending_confirmation -> released_to_vendor (scheduler)
        freeze: funded/pending_confirmation -> disputed (dispute controller)
        release_on_dispute / refund_on_dispute: disputed -> settled
        stats: Count and total per status
    """

    # ==========================================================================
    # Creation & Lookup
    # ==========================================================================

    @classmethod
    def open_escrow(cls, unit: AtomicUnit, order: Order) -> Escrow:
        """
        Create the pending escrow for an order.

        The escrow copies parties, amount and currency from the order.
        """
        unit.ensure_active()
        escrow = Escrow.objects.create(
            order=order,
            buyer_id=order.buyer_id,
            vendor_id=order.vendor_id,
            amount_cents=order.total_amount_cents,
            currency=order.currency,
        )
        cls.get_logger().info(
            "Escrow opened",
            extra={
                "escrow_id": str(escrow.id),
                "order_id": str(order.pk),
                "amount_cents": escrow.amount_cents,
                "currency": escrow.currency,
            },
        )
        OrderSynchronizer.mirror_escrow(unit, escrow)
        cls._invalidate_stats(unit)
        return escrow

    @classmethod
    def get(cls, escrow_id: uuid.UUID | str) -> Escrow:
        try:
            return Escrow.objects.select_related("order").get(pk=escrow_id)
        except (Escrow.DoesNotExist, DjangoValidationError, ValueError):
            raise EscrowNotFoundError(
                "Escrow not found",
                details={"escrow_id": str(escrow_id)},
            ) from None

    @classmethod
    def get_for_order(cls, order_id: uuid.UUID | str) -> Escrow:
        try:
            return Escrow.objects.select_related("order").get(order_id=order_id)
        except (Escrow.DoesNotExist, DjangoValidationError, ValueError):
            raise EscrowNotFoundError(
                "No escrow for order",
                details={"order_id": str(order_id)},
            ) from None

    # ==========================================================================
    # Transitions
    # ==========================================================================

    @classmethod
    def fund(
        cls,
        unit: AtomicUnit,
        escrow: Escrow,
        payment_reference: str = "",
        at: datetime | None = None,
    ) -> TransitionResult:
        """Record confirmed funds: pending -> funded."""
        return cls._apply(
            unit, escrow, EscrowEvent.FUND, at or timezone.now(), payment_reference
        )

    @classmethod
    def cancel(
        cls,
        unit: AtomicUnit,
        escrow: Escrow,
        reason: str,
        actor: User | None = None,
    ) -> TransitionResult:
        """
        Cancel an unfunded escrow: pending -> cancelled.

        actor is None when the provider reported the payment cancelled.
        Parties cannot cancel while a payment is in flight at the provider,
        because the funds may still arrive.
        """
        if actor is not None:
            cls._require_party(escrow, actor)
            cls._require_no_payment_in_flight(escrow)
        return cls._apply(unit, escrow, EscrowEvent.CANCEL, reason, timezone.now())

    @classmethod
    def mark_delivered(
        cls,
        unit: AtomicUnit,
        escrow: Escrow,
        actor: User,
        at: datetime | None = None,
    ) -> TransitionResult:
        """
        Start the buyer confirmation window: funded -> pending_confirmation.

        Only the vendor or an admin may mark delivery.
        """
        if actor.pk != escrow.vendor_id and not actor.is_platform_admin:
            raise PermissionDeniedError(
                "Only the vendor or an admin can mark delivery",
                error_code="NOT_VENDOR",
            )
        return cls._apply(unit, escrow, EscrowEvent.MARK_DELIVERED, at or timezone.now())

    @classmethod
    def confirm_delivery(
        cls,
        unit: AtomicUnit,
        escrow: Escrow,
        actor: User,
    ) -> TransitionResult:
        """Buyer approval: pending_confirmation -> released_to_vendor."""
        if actor.pk != escrow.buyer_id:
            raise PermissionDeniedError(
                "Only the buyer can confirm delivery",
                error_code="NOT_BUYER",
            )
        return cls._apply(unit, escrow, EscrowEvent.CONFIRM_BY_BUYER, timezone.now())

    @classmethod
    def auto_release(
        cls,
        unit: AtomicUnit,
        escrow: Escrow,
        at: datetime | None = None,
    ) -> TransitionResult:
        """
        Release after the confirmation deadline: pending_confirmation -> released_to_vendor.

        Raises:
            ConflictError: The confirmation deadline has not passed yet
        """
        at = at or timezone.now()
        if escrow.confirmation_deadline is None or escrow.confirmation_deadline > at:
            raise ConflictError(
                "Confirmation deadline has not passed",
                error_code="DEADLINE_NOT_REACHED",
                details={
                    "escrow_id": str(escrow.id),
                    "confirmation_deadline": (
                        escrow.confirmation_deadline.isoformat()
                        if escrow.confirmation_deadline
                        else None
                    ),
                },
            )
        return cls._apply(unit, escrow, EscrowEvent.AUTO_RELEASE, at)

    @classmethod
    def freeze(cls, unit: AtomicUnit, escrow: Escrow, dispute: Dispute) -> TransitionResult:
        """Freeze funds for a dispute: funded/pending_confirmation -> disputed."""
        return cls._apply(unit, escrow, EscrowEvent.FREEZE, dispute, timezone.now())

    @classmethod
    def release_on_dispute(
        cls,
        unit: AtomicUnit,
        escrow: Escrow,
        amount_cents: int | None = None,
    ) -> TransitionResult:
        """Resolve for the vendor: disputed -> released_to_vendor."""
        amount = cls.settlement_amount(escrow, amount_cents)
        return cls._apply(unit, escrow, EscrowEvent.RELEASE_ON_DISPUTE, amount, timezone.now())

    @classmethod
    def refund_on_dispute(
        cls,
        unit: AtomicUnit,
        escrow: Escrow,
        amount_cents: int | None = None,
    ) -> TransitionResult:
        """Resolve for the buyer: disputed -> refunded_to_buyer."""
        amount = cls.settlement_amount(escrow, amount_cents)
        return cls._apply(unit, escrow, EscrowEvent.REFUND_ON_DISPUTE, amount, timezone.now())

    @classmethod
    def settlement_amount(cls, escrow: Escrow, amount_cents: int | None) -> int:
        """
        Validate a release/refund amount; default to the full escrowed amount.

        Raises:
            InvalidSettlementAmountError: amount not within (0, escrow.amount_cents]
        """
        if amount_cents is None:
            return escrow.amount_cents
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
            raise InvalidSettlementAmountError(
                "Settlement amount must be an integer in minor units",
                details={"amount_cents": amount_cents},
            )
        if not 0 < amount_cents <= escrow.amount_cents:
            raise InvalidSettlementAmountError(
                "Settlement amount must be greater than zero and at most the escrowed amount",
                details={
                    "amount_cents": amount_cents,
                    "escrow_amount_cents": escrow.amount_cents,
                },
            )
        return amount_cents

    # ==========================================================================
    # Reporting
    # ==========================================================================

    @classmethod
    def stats(cls) -> dict[str, Any]:
        """
        Count and total amount per escrow status.

        Cached for STATS_CACHE_TIMEOUT seconds; every transition invalidates
        the cache on commit.
        """
        cached = cache.get(STATS_CACHE_KEY)
        if cached is not None:
            return cached

        by_status = {
            status: {"count": 0, "total_amount_cents": 0} for status in EscrowStatus.values
        }
        rows = Escrow.objects.values("status").annotate(
            count=Count("id"),
            total=Sum("amount_cents"),
        )
        for row in rows:
            by_status[row["status"]] = {
                "count": row["count"],
                "total_amount_cents": row["total"] or 0,
            }

        stats = {
            "total_count": sum(s["count"] for s in by_status.values()),
            "total_amount_cents": sum(s["total_amount_cents"] for s in by_status.values()),
            "by_status": by_status,
        }
        cache.set(STATS_CACHE_KEY, stats, STATS_CACHE_TIMEOUT)
        return stats

    # ==========================================================================
    # Internals
    # ==========================================================================

    @classmethod
    def _apply(cls, unit: AtomicUnit, escrow: Escrow, event: str, *args) -> TransitionResult:
        unit.ensure_active()
        logger = cls.get_logger()
        previous_status = escrow.status
        method = getattr(escrow, event)

        if not can_proceed(method):
            raise InvalidStateTransitionError(
                f"Cannot {event} escrow in status {previous_status}",
                details={
                    "escrow_id": str(escrow.id),
                    "current_status": previous_status,
                    "event": event,
                    "allowed_from": list(ESCROW_TRANSITIONS[event].sources),
                },
            )

        method(*args)
        try:
            with unit.savepoint():
                escrow.save()
        except ConcurrentTransition:
            current = Escrow.objects.select_related("order").get(pk=escrow.pk)
            logger.info(
                "Escrow transition pre-empted",
                extra={
                    "escrow_id": str(escrow.id),
                    "event": event,
                    "expected_status": previous_status,
                    "current_status": current.status,
                },
            )
            return TransitionResult(
                applied=False,
                escrow=current,
                event=event,
                previous_status=previous_status,
            )

        logger.info(
            "Escrow transition applied",
            extra={
                "escrow_id": str(escrow.id),
                "order_id": str(escrow.order_id),
                "event": event,
                "from_status": previous_status,
                "to_status": escrow.status,
            },
        )
        OrderSynchronizer.mirror_escrow(unit, escrow, event)
        cls._invalidate_stats(unit)
        return TransitionResult(
            applied=True,
            escrow=escrow,
            event=event,
            previous_status=previous_status,
        )

    @classmethod
    def _invalidate_stats(cls, unit: AtomicUnit) -> None:
        unit.on_commit(lambda: cache.delete(STATS_CACHE_KEY))

    @classmethod
    def _require_no_payment_in_flight(cls, escrow: Escrow) -> None:
        order = Order.objects.only("payment_reference", "payment_status").get(pk=escrow.order_id)
        if order.payment_in_flight:
            raise ConflictError(
                "Payment is still in progress for this order",
                error_code="PAYMENT_IN_FLIGHT",
                details={
                    "order_id": str(escrow.order_id),
                    "payment_status": order.payment_status,
                },
            )

    @classmethod
    def _require_party(cls, escrow: Escrow, actor: User) -> None:
        if actor.pk in (escrow.buyer_id, escrow.vendor_id) or actor.is_platform_admin:
            return
        raise PermissionDeniedError(
            "Only the buyer or vendor can perform this action",
            error_code="NOT_A_PARTY",
        )
