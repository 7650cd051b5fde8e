"""
Payment reconciliation: one convergence point for webhook and poll signals.

Both ingestion paths build a PaymentNotice and call apply_notice inside an
atomic unit. The notice is correlated to an order by payment_reference,
never by id.

Idempotency contract:
    - A terminal stored payment status (completed/failed/cancelled) is never
      re-applied; the notice is a successful no-op.
    - Status never moves backwards (processing -> pending is ignored).
    - The sub-record update is conditioned on the payment_status it was
      read with; losing that race is a no-op.
    - Only the transition to completed funds the escrow, and the ledger's
      own conditional write makes that happen at most once.

Usage:
    from payments.services import ReconciliationService

    with ReconciliationService.atomic() as unit:
        result = ReconciliationService.apply_notice(unit, notice)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils import timezone

from core.exceptions import ConflictError
from core.services import BaseService

from escrow.models import Escrow
from escrow.services import EscrowLedger
from escrow.state_machines import EscrowStatus
from orders.constants import PaymentStatus, TERMINAL_PAYMENT_STATUSES
from orders.models import Order
from orders.synchronizer import OrderSynchronizer

from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.types import ReconciliationResult

if TYPE_CHECKING:
    from core.transactions import AtomicUnit
    from payments.types import PaymentNotice


# Ordering used to refuse backwards moves between non-terminal statuses
STATUS_RANK: dict[str, int] = {
    PaymentStatus.PENDING: 0,
    PaymentStatus.PROCESSING: 1,
    PaymentStatus.COMPLETED: 2,
    PaymentStatus.FAILED: 2,
    PaymentStatus.CANCELLED: 2,
}

PROVIDER_CANCELLED_REASON = "Payment cancelled at provider"


class ReconciliationService(BaseService):
    """
    Applies normalised payment notices to orders and the escrow ledger.

    Methods:
        apply_notice: Idempotently apply one notice
        find_order: Look up an order by payment reference
    """

    @classmethod
    def find_order(cls, reference: str) -> Order:
        order = Order.objects.filter(payment_reference=reference).first()
        if order is None:
            cls.get_logger().warning(
                "Payment notice for unknown reference",
                extra={"reference": reference},
            )
            raise PaymentNotFoundError(
                "No order matches payment reference",
                details={"reference": reference},
            )
        return order

    @classmethod
    def apply_notice(cls, unit: AtomicUnit, notice: PaymentNotice) -> ReconciliationResult:
        """
        Apply a payment notice.

        Raises:
            PaymentNotFoundError: Reference does not correlate to an order
            PaymentValidationError: Completed notice disagrees with the order amount/currency
        """
        unit.ensure_active()
        logger = cls.get_logger()
        order = cls.find_order(notice.reference)
        current = order.payment_status
        log_extra = {
            "reference": notice.reference,
            "order_id": str(order.pk),
            "source": notice.source,
            "stored_status": current,
            "notice_status": notice.status,
            "provider_status": notice.provider_status,
        }

        if current in TERMINAL_PAYMENT_STATUSES:
            conflicting = notice.status != current or (
                notice.transaction_id
                and order.payment_transaction_id
                and notice.transaction_id != order.payment_transaction_id
            )
            if conflicting:
                logger.warning("Notice disagrees with terminal payment status", extra=log_extra)
            else:
                logger.info("Duplicate payment notice ignored", extra=log_extra)
            return cls._unchanged(order, current, duplicate=True)

        if STATUS_RANK.get(notice.status, 0) <= STATUS_RANK.get(current, 0):
            logger.info("Stale payment notice ignored", extra=log_extra)
            return cls._unchanged(order, current)

        if notice.status == PaymentStatus.COMPLETED:
            cls._validate_settlement(order, notice)

        now = timezone.now()
        changes = {
            "payment_status": notice.status,
            "payment_updated_at": now,
            "updated_at": now,
        }
        if notice.transaction_id:
            changes["payment_transaction_id"] = notice.transaction_id
        if notice.payment_id:
            changes["payment_id"] = notice.payment_id
        if notice.status == PaymentStatus.COMPLETED:
            changes["payment_completed_at"] = now

        updated = Order.objects.filter(pk=order.pk, payment_status=current).update(**changes)
        if not updated:
            logger.info("Payment sub-record changed concurrently", extra=log_extra)
            latest = Order.objects.values_list("payment_status", flat=True).get(pk=order.pk)
            return cls._unchanged(order, latest)

        logger.info("Payment status updated", extra=log_extra)

        escrow_funded = False
        if notice.status == PaymentStatus.COMPLETED:
            escrow_funded = cls._fund_escrow(unit, order, notice)
        elif notice.status == PaymentStatus.CANCELLED:
            cls._cancel_escrow(unit, order)
        else:
            OrderSynchronizer.mirror_payment(unit, order, notice.status)

        return ReconciliationResult(
            reference=notice.reference,
            order_id=str(order.pk),
            payment_status=notice.status,
            changed=True,
            escrow_funded=escrow_funded,
        )

    # ==========================================================================
    # Internals
    # ==========================================================================

    @classmethod
    def _unchanged(cls, order: Order, status: str, duplicate: bool = False) -> ReconciliationResult:
        return ReconciliationResult(
            reference=order.payment_reference or "",
            order_id=str(order.pk),
            payment_status=status,
            changed=False,
            duplicate=duplicate,
        )

    @classmethod
    def _validate_settlement(cls, order: Order, notice: PaymentNotice) -> None:
        expected_amount = order.payment_amount_cents or order.total_amount_cents
        expected_currency = (order.payment_currency or order.currency).upper()
        mismatches = {}
        if notice.amount_cents is not None and notice.amount_cents != expected_amount:
            mismatches["amount_cents"] = {"expected": expected_amount, "received": notice.amount_cents}
        if notice.currency and notice.currency.upper() != expected_currency:
            mismatches["currency"] = {"expected": expected_currency, "received": notice.currency}
        if mismatches:
            cls.get_logger().error(
                "Completed payment does not match order",
                extra={"reference": notice.reference, "order_id": str(order.pk), **mismatches},
            )
            raise PaymentValidationError(
                "Payment amount or currency does not match the order",
                error_code="PAYMENT_AMOUNT_MISMATCH",
                details=mismatches,
            )

    @classmethod
    def _fund_escrow(cls, unit: AtomicUnit, order: Order, notice: PaymentNotice) -> bool:
        escrow = Escrow.objects.select_related("order").get(order=order)
        try:
            result = EscrowLedger.fund(unit, escrow, payment_reference=notice.reference)
        except ConflictError:
            # Money arrived for an escrow that can no longer take it
            cls.get_logger().error(
                "Completed payment for escrow that is not pending",
                extra={
                    "reference": notice.reference,
                    "order_id": str(order.pk),
                    "escrow_id": str(escrow.id),
                    "escrow_status": escrow.status,
                },
            )
            return False
        return result.applied

    @classmethod
    def _cancel_escrow(cls, unit: AtomicUnit, order: Order) -> None:
        escrow = Escrow.objects.select_related("order").get(order=order)
        if escrow.status == EscrowStatus.PENDING:
            try:
                result = EscrowLedger.cancel(unit, escrow, reason=PROVIDER_CANCELLED_REASON)
            except ConflictError:
                result = None
            if result is not None and result.applied:
                return
        OrderSynchronizer.mirror_payment(unit, order, PaymentStatus.CANCELLED)
