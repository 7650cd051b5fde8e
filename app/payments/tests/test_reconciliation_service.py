"""
Tests for ReconciliationService.apply_notice.

Webhook and poll notices converge here, so the idempotency rules are
exercised directly with PaymentNotice values.
"""

import pytest

from core.transactions import atomic_unit
from escrow.models import Escrow
from escrow.services import EscrowLedger
from escrow.state_machines import EscrowStatus
from orders.constants import OrderStatus, PaymentStatus
from orders.models import Order
from payments.constants import NoticeSource
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.services import ReconciliationService
from payments.tests.factories import REFERENCE
from payments.types import PaymentNotice


def _notice(status, source=NoticeSource.WEBHOOK, **kwargs):
    fields = {"amount_cents": 100_000, "currency": "SLE", "transaction_id": "TX-1"}
    fields.update(kwargs)
    return PaymentNotice(source=source, reference=REFERENCE, status=status, **fields)


def _apply(notice):
    with atomic_unit() as unit:
        return ReconciliationService.apply_notice(unit, notice)


def _order(order):
    return Order.objects.get(pk=order.pk)


@pytest.mark.django_db
class TestApplyNotice:
    """Tests for applying payment notices."""

    def test_completed_funds_escrow(self, awaiting_payment):
        """completed -> payment completed, escrow funded, order confirmed."""
        result = _apply(_notice(PaymentStatus.COMPLETED, payment_id="pay_9"))

        order = _order(awaiting_payment)
        escrow = Escrow.objects.get(order=order)
        assert result.changed
        assert result.escrow_funded
        assert order.payment_status == PaymentStatus.COMPLETED
        assert order.payment_completed_at is not None
        assert order.payment_id == "pay_9"
        assert escrow.status == EscrowStatus.FUNDED
        assert escrow.payment_reference == REFERENCE
        assert order.status == OrderStatus.CONFIRMED

    def test_duplicate_completed_is_a_no_op(self, awaiting_payment):
        """A second completed notice changes nothing."""
        _apply(_notice(PaymentStatus.COMPLETED))
        before = _order(awaiting_payment)

        result = _apply(_notice(PaymentStatus.COMPLETED, source=NoticeSource.POLL))

        after = _order(awaiting_payment)
        assert not result.changed
        assert result.duplicate
        assert result.payment_status == PaymentStatus.COMPLETED
        assert after.payment_updated_at == before.payment_updated_at

    def test_late_failure_after_completion_is_ignored(self, awaiting_payment):
        """Terminal statuses never change, even on a conflicting notice."""
        _apply(_notice(PaymentStatus.COMPLETED))

        result = _apply(_notice(PaymentStatus.FAILED))

        assert result.duplicate
        assert _order(awaiting_payment).payment_status == PaymentStatus.COMPLETED
        assert _order(awaiting_payment).status == OrderStatus.CONFIRMED

    def test_status_never_moves_backwards(self, awaiting_payment):
        """processing then pending leaves the payment processing."""
        _apply(_notice(PaymentStatus.PROCESSING))

        result = _apply(_notice(PaymentStatus.PENDING))

        assert not result.changed
        assert _order(awaiting_payment).payment_status == PaymentStatus.PROCESSING

    def test_failed_marks_order(self, awaiting_payment):
        """failed -> payment_failed order, escrow still pending."""
        result = _apply(_notice(PaymentStatus.FAILED))

        assert result.changed
        assert not result.escrow_funded
        assert _order(awaiting_payment).status == OrderStatus.PAYMENT_FAILED
        assert Escrow.objects.get(order=awaiting_payment).status == EscrowStatus.PENDING

    def test_cancelled_cancels_pending_escrow(self, awaiting_payment):
        """cancelled -> escrow cancelled and order cancelled."""
        _apply(_notice(PaymentStatus.CANCELLED))

        escrow = Escrow.objects.get(order=awaiting_payment)
        assert escrow.status == EscrowStatus.CANCELLED
        assert escrow.cancellation_reason == "Payment cancelled at provider"
        assert _order(awaiting_payment).status == OrderStatus.CANCELLED

    def test_amount_mismatch_rejected(self, awaiting_payment):
        """A completed notice for a different amount is refused."""
        with pytest.raises(PaymentValidationError) as exc_info:
            _apply(_notice(PaymentStatus.COMPLETED, amount_cents=50_000))

        assert exc_info.value.error_code == "PAYMENT_AMOUNT_MISMATCH"
        assert exc_info.value.details["amount_cents"]["expected"] == 100_000
        assert _order(awaiting_payment).payment_status == PaymentStatus.PENDING

    def test_currency_mismatch_rejected(self, awaiting_payment):
        """A completed notice in another currency is refused."""
        with pytest.raises(PaymentValidationError):
            _apply(_notice(PaymentStatus.COMPLETED, currency="USD"))

    def test_unknown_reference(self, db):
        """Notices must correlate to an order by reference."""
        with pytest.raises(PaymentNotFoundError):
            _apply(_notice(PaymentStatus.COMPLETED))

    def test_completed_for_cancelled_escrow_does_not_fund(self, awaiting_payment):
        """Money arriving after the escrow was cancelled leaves it cancelled."""
        with atomic_unit() as unit:
            EscrowLedger.cancel(unit, Escrow.objects.get(order=awaiting_payment), "Payment expired")

        result = _apply(_notice(PaymentStatus.COMPLETED))

        assert result.changed
        assert not result.escrow_funded
        assert Escrow.objects.get(order=awaiting_payment).status == EscrowStatus.CANCELLED
