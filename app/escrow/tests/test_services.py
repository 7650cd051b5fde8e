"""
Tests for EscrowLedger.

Covers the transition paths, actor checks, settlement amounts and stats.
Concurrency between actors is covered in test_concurrency.py.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from core.exceptions import ConflictError, PermissionDeniedError
from core.transactions import atomic_unit
from escrow.exceptions import (
    EscrowNotFoundError,
    InvalidSettlementAmountError,
    InvalidStateTransitionError,
)
from escrow.models import Escrow
from escrow.services import EscrowLedger
from escrow.state_machines import EscrowStatus, ReleaseReason
from escrow.tests.factories import EscrowFactory
from orders.constants import OrderStatus, PaymentStatus
from orders.models import Order

from authentication.tests.factories import BuyerFactory


def _order_status(escrow):
    return Order.objects.values_list("status", flat=True).get(pk=escrow.order_id)


@pytest.mark.django_db
class TestOpenAndLookup:
    """Tests for escrow creation and lookup."""

    def test_open_escrow_copies_order(self, order, buyer, vendor):
        """The escrow copies parties, amount and currency from the order."""
        escrow = Escrow.objects.get(order=order)

        assert escrow.status == EscrowStatus.PENDING
        assert escrow.buyer == buyer
        assert escrow.vendor == vendor
        assert escrow.amount_cents == order.total_amount_cents
        assert escrow.currency == order.currency
        assert escrow.auto_release_after_days == 3

    def test_get_for_order(self, order):
        """get_for_order should find the escrow by its order id."""
        assert EscrowLedger.get_for_order(order.pk).order_id == order.pk

    def test_get_unknown_raises(self):
        """Unknown ids raise EscrowNotFoundError."""
        with pytest.raises(EscrowNotFoundError):
            EscrowLedger.get("not-a-uuid")


@pytest.mark.django_db
class TestDeliveryPath:
    """Tests for fund -> mark_delivered -> confirm_delivery."""

    def test_fund(self, funded_escrow):
        """Funding confirms the order and stamps the long-stop date."""
        escrow = Escrow.objects.get(pk=funded_escrow.pk)

        assert escrow.status == EscrowStatus.FUNDED
        assert escrow.payment_reference == "FT_REF"
        assert escrow.auto_release_date == escrow.funded_at + timedelta(days=3)
        assert _order_status(escrow) == OrderStatus.CONFIRMED

    def test_mark_delivered_by_vendor(self, delivered_escrow):
        """Vendor marks delivery; the deadline is set and the order delivered."""
        escrow = Escrow.objects.get(pk=delivered_escrow.pk)

        assert escrow.status == EscrowStatus.PENDING_CONFIRMATION
        assert escrow.confirmation_deadline == escrow.delivered_at + timedelta(days=3)
        assert _order_status(escrow) == OrderStatus.DELIVERED

    def test_mark_delivered_by_admin(self, funded_escrow, admin_user):
        """Admins may mark delivery on a vendor's behalf."""
        with atomic_unit() as unit:
            result = EscrowLedger.mark_delivered(unit, funded_escrow, actor=admin_user)

        assert result.applied

    def test_mark_delivered_by_buyer_is_refused(self, funded_escrow, buyer):
        """Buyers cannot mark their own order delivered."""
        with pytest.raises(PermissionDeniedError) as exc_info:
            with atomic_unit() as unit:
                EscrowLedger.mark_delivered(unit, funded_escrow, actor=buyer)

        assert exc_info.value.error_code == "NOT_VENDOR"

    def test_mark_delivered_before_funding(self, pending_escrow, vendor):
        """A pending escrow cannot be marked delivered."""
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            with atomic_unit() as unit:
                EscrowLedger.mark_delivered(unit, pending_escrow, actor=vendor)

        assert exc_info.value.details["current_status"] == EscrowStatus.PENDING
        assert exc_info.value.details["allowed_from"] == [EscrowStatus.FUNDED]

    def test_confirm_delivery_releases(self, delivered_escrow, buyer):
        """Buyer confirmation releases the full amount and completes the order."""
        with atomic_unit() as unit:
            result = EscrowLedger.confirm_delivery(unit, delivered_escrow, actor=buyer)

        escrow = Escrow.objects.get(pk=delivered_escrow.pk)
        assert result.applied
        assert escrow.status == EscrowStatus.RELEASED_TO_VENDOR
        assert escrow.release_reason == ReleaseReason.BUYER_APPROVAL
        assert escrow.release_amount_cents + escrow.refund_amount_cents == escrow.amount_cents
        assert escrow.buyer_confirmed_at is not None
        assert _order_status(escrow) == OrderStatus.COMPLETED

    def test_confirm_delivery_by_vendor_is_refused(self, delivered_escrow, vendor):
        """Only the buyer can confirm."""
        with pytest.raises(PermissionDeniedError) as exc_info:
            with atomic_unit() as unit:
                EscrowLedger.confirm_delivery(unit, delivered_escrow, actor=vendor)

        assert exc_info.value.error_code == "NOT_BUYER"

    def test_confirm_twice_is_illegal(self, delivered_escrow, buyer):
        """A released escrow never transitions again."""
        with atomic_unit() as unit:
            EscrowLedger.confirm_delivery(unit, delivered_escrow, actor=buyer)

        escrow = Escrow.objects.get(pk=delivered_escrow.pk)
        with pytest.raises(InvalidStateTransitionError):
            with atomic_unit() as unit:
                EscrowLedger.confirm_delivery(unit, escrow, actor=buyer)


@pytest.mark.django_db
class TestAutoRelease:
    """Tests for the deadline-driven release."""

    def test_before_deadline_is_refused(self, delivered_escrow):
        """Auto-release before the deadline raises DEADLINE_NOT_REACHED."""
        with pytest.raises(ConflictError) as exc_info:
            with atomic_unit() as unit:
                EscrowLedger.auto_release(unit, delivered_escrow)

        assert exc_info.value.error_code == "DEADLINE_NOT_REACHED"

    def test_after_deadline_releases(self, delivered_escrow):
        """Once the deadline passes the escrow is released automatically."""
        at = delivered_escrow.confirmation_deadline + timedelta(seconds=1)

        with atomic_unit() as unit:
            result = EscrowLedger.auto_release(unit, delivered_escrow, at=at)

        assert result.applied
        assert result.escrow.release_reason == ReleaseReason.AUTO_RELEASE
        assert result.escrow.released_at == at

    def test_funded_without_deadline_is_refused(self, funded_escrow):
        """A funded escrow has no confirmation deadline and is never auto-released."""
        with pytest.raises(ConflictError) as exc_info:
            with atomic_unit() as unit:
                EscrowLedger.auto_release(
                    unit, funded_escrow, at=timezone.now() + timedelta(days=30)
                )

        assert exc_info.value.error_code == "DEADLINE_NOT_REACHED"


@pytest.mark.django_db
class TestCancel:
    """Tests for cancelling an unfunded escrow."""

    def test_party_can_cancel_pending(self, pending_escrow, buyer):
        """Buyer cancels before paying."""
        with atomic_unit() as unit:
            result = EscrowLedger.cancel(unit, pending_escrow, "changed my mind", actor=buyer)

        assert result.escrow.status == EscrowStatus.CANCELLED
        assert result.escrow.cancellation_reason == "changed my mind"
        assert _order_status(pending_escrow) == OrderStatus.CANCELLED

    def test_stranger_cannot_cancel(self, pending_escrow):
        """Non-parties are refused."""
        with pytest.raises(PermissionDeniedError) as exc_info:
            with atomic_unit() as unit:
                EscrowLedger.cancel(unit, pending_escrow, "nope", actor=BuyerFactory())

        assert exc_info.value.error_code == "NOT_A_PARTY"

    @pytest.mark.parametrize("status", [PaymentStatus.PENDING, PaymentStatus.PROCESSING])
    def test_party_cannot_cancel_while_payment_in_flight(self, pending_escrow, buyer, status):
        """Once a payment is started at the provider the buyer has to wait for its outcome."""
        Order.objects.filter(pk=pending_escrow.order_id).update(
            payment_reference="FT_REF", payment_status=status
        )

        with pytest.raises(ConflictError) as exc_info:
            with atomic_unit() as unit:
                EscrowLedger.cancel(unit, pending_escrow, "changed my mind", actor=buyer)

        assert exc_info.value.error_code == "PAYMENT_IN_FLIGHT"
        assert Escrow.objects.get(pk=pending_escrow.pk).status == EscrowStatus.PENDING

    def test_party_can_cancel_after_failed_payment(self, pending_escrow, buyer):
        """A failed attempt no longer blocks cancellation."""
        Order.objects.filter(pk=pending_escrow.order_id).update(
            payment_reference="FT_REF", payment_status=PaymentStatus.FAILED
        )

        with atomic_unit() as unit:
            result = EscrowLedger.cancel(unit, pending_escrow, "changed my mind", actor=buyer)

        assert result.escrow.status == EscrowStatus.CANCELLED

    def test_provider_cancel_while_payment_in_flight(self, pending_escrow):
        """The provider reporting the payment cancelled is not blocked."""
        Order.objects.filter(pk=pending_escrow.order_id).update(
            payment_reference="FT_REF", payment_status=PaymentStatus.PROCESSING
        )

        with atomic_unit() as unit:
            result = EscrowLedger.cancel(unit, pending_escrow, "Payment cancelled")

        assert result.escrow.status == EscrowStatus.CANCELLED

    def test_funded_cannot_be_cancelled(self, funded_escrow, buyer):
        """Held funds leave only through release or refund."""
        with pytest.raises(InvalidStateTransitionError):
            with atomic_unit() as unit:
                EscrowLedger.cancel(unit, funded_escrow, "too late", actor=buyer)


class TestSettlementAmount:
    """Tests for settlement amount validation."""

    @pytest.fixture
    def escrow(self):
        return Escrow(amount_cents=10_000)

    def test_defaults_to_full_amount(self, escrow):
        """No amount means the whole escrow."""
        assert EscrowLedger.settlement_amount(escrow, None) == 10_000

    def test_accepts_partial_amount(self, escrow):
        """A positive amount up to the escrow amount is accepted."""
        assert EscrowLedger.settlement_amount(escrow, 2_500) == 2_500

    @pytest.mark.parametrize("amount", [0, -1, 10_001, True, 12.5, "100"])
    def test_rejects_invalid_amounts(self, escrow, amount):
        """Zero, negative, oversized and non-integer amounts are rejected."""
        with pytest.raises(InvalidSettlementAmountError):
            EscrowLedger.settlement_amount(escrow, amount)


@pytest.mark.django_db
class TestStats:
    """Tests for the per-status stats."""

    def test_counts_and_totals(self):
        """Stats count escrows and sum amounts per status."""
        EscrowFactory(amount_cents=1_000)
        EscrowFactory(amount_cents=2_000, funded=True)
        EscrowFactory(amount_cents=3_000, funded=True)

        stats = EscrowLedger.stats()

        assert stats["total_count"] == 3
        assert stats["total_amount_cents"] == 6_000
        assert stats["by_status"][EscrowStatus.FUNDED] == {
            "count": 2,
            "total_amount_cents": 5_000,
        }
        assert stats["by_status"][EscrowStatus.DISPUTED]["count"] == 0

    def test_transition_invalidates_cache(
        self, funded_escrow, vendor, django_capture_on_commit_callbacks
    ):
        """A committed transition clears the cached stats."""
        before = EscrowLedger.stats()
        assert before["by_status"][EscrowStatus.FUNDED]["count"] == 1

        with django_capture_on_commit_callbacks(execute=True):
            with atomic_unit() as unit:
                EscrowLedger.mark_delivered(unit, funded_escrow, actor=vendor)

        after = EscrowLedger.stats()
        assert after["by_status"][EscrowStatus.FUNDED]["count"] == 0
        assert after["by_status"][EscrowStatus.PENDING_CONFIRMATION]["count"] == 1
