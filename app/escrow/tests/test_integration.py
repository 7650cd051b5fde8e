"""
End-to-end settlement scenarios.

Each scenario drives the system through its public surfaces: payment
initialisation, the signed provider webhook, the escrow and dispute APIs
and the auto-release scheduler.
"""

import json
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from django.urls import reverse
from freezegun import freeze_time

from core.transactions import atomic_unit
from disputes.models import Dispute
from disputes.state_machines import DisputeStatus
from escrow.models import Escrow
from escrow.scheduler import AutoReleaseScheduler
from escrow.state_machines import EscrowStatus, ReleaseReason
from orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from orders.models import Order
from orders.services import OrderService
from payments.adapters import SIGNATURE_HEADER, compute_signature
from payments.models import WebhookEvent
from payments.services import PaymentInitiationService
from payments.types import MonimePayment

WEBHOOK_SECRET = "test-webhook-secret"


def _initiate(order, buyer):
    client = MagicMock()
    client.create_payment.side_effect = lambda params: MonimePayment(
        payment_id="pay_123",
        reference=params.reference,
        status="pending",
        checkout_url="https://pay.monime.test/c/123",
    )
    result = PaymentInitiationService.initialize(
        client, order, buyer, PaymentMethod.ORANGE_MONEY, phone="+23276000000"
    )
    assert result.success
    return result.data.reference


def _post_webhook(client, reference, status="completed", transaction_id="TX-1"):
    body = json.dumps(
        {
            "event": f"payment.{status}",
            "data": {
                "payment_id": "pay_123",
                "reference": reference,
                "status": status,
                "amount": 100_000,
                "currency": "SLE",
                "transaction_id": transaction_id,
            },
        }
    ).encode()
    return client.post(
        reverse("payments:monime_webhook"),
        data=body,
        content_type="application/json",
        headers={SIGNATURE_HEADER: compute_signature(WEBHOOK_SECRET, body)},
    )


def _escrow(order):
    return Escrow.objects.get(order=order)


def _order(order):
    return Order.objects.get(pk=order.pk)


@pytest.fixture
def checkout(buyer, vendor):
    """A placed order of 100,000 SLE with a payment initiated for it."""
    with atomic_unit() as unit:
        order = OrderService.place_order(unit, buyer, vendor, amount_cents=100_000)
    reference = _initiate(order, buyer)
    return order, reference


@pytest.fixture
def funded(checkout, client):
    order, reference = checkout
    assert _post_webhook(client, reference).status_code == 200
    return order


@pytest.fixture
def delivered(funded, api_client, vendor):
    api_client.force_authenticate(user=vendor)
    response = api_client.post(
        reverse("escrow:escrow-mark-delivered", kwargs={"order_id": funded.pk})
    )
    assert response.status_code == 200
    api_client.force_authenticate(user=None)
    return funded


@pytest.mark.django_db
class TestSettlementScenarios:
    """Full lifecycle scenarios from checkout to settlement."""

    def test_funding_notification_funds_escrow(self, checkout, client):
        """A completed notification with a matching reference funds the escrow."""
        order, reference = checkout
        assert _escrow(order).status == EscrowStatus.PENDING
        assert _order(order).status == OrderStatus.PENDING_PAYMENT

        response = _post_webhook(client, reference)

        escrow = _escrow(order)
        assert response.status_code == 200
        assert response.json() == {
            "received": True,
            "reference": reference,
            "payment_status": PaymentStatus.COMPLETED,
        }
        assert escrow.status == EscrowStatus.FUNDED
        assert escrow.funded_at is not None
        assert escrow.payment_reference == reference
        assert _order(order).status == OrderStatus.CONFIRMED
        assert _order(order).payment_transaction_id == "TX-1"

    def test_delivery_starts_confirmation_window(self, delivered):
        """Marking delivery sets confirmation_deadline = delivered_at + 3 days."""
        escrow = _escrow(delivered)

        assert escrow.status == EscrowStatus.PENDING_CONFIRMATION
        assert escrow.confirmation_deadline == escrow.delivered_at + timedelta(days=3)
        assert _order(delivered).status == OrderStatus.DELIVERED

    def test_silence_releases_after_three_days(self, delivered):
        """With no buyer action and no dispute, the scheduler releases the funds."""
        deadline = _escrow(delivered).confirmation_deadline

        with freeze_time(deadline + timedelta(minutes=5)):
            summary = AutoReleaseScheduler.run_tick()

        escrow = _escrow(delivered)
        assert summary.released == 1
        assert escrow.status == EscrowStatus.RELEASED_TO_VENDOR
        assert escrow.release_reason == ReleaseReason.AUTO_RELEASE
        assert _order(delivered).status == OrderStatus.COMPLETED

    def test_buyer_confirmation_makes_later_tick_a_no_op(self, delivered, api_client, buyer):
        """Buyer confirms an hour after delivery; the scheduler later does nothing."""
        delivered_at = _escrow(delivered).delivered_at
        api_client.force_authenticate(user=buyer)

        with freeze_time(delivered_at + timedelta(hours=1)):
            response = api_client.post(
                reverse("escrow:escrow-confirm-delivery", kwargs={"order_id": delivered.pk})
            )
        assert response.status_code == 200

        with freeze_time(delivered_at + timedelta(days=4)):
            summary = AutoReleaseScheduler.run_tick()

        escrow = _escrow(delivered)
        assert summary.candidates == 0
        assert escrow.status == EscrowStatus.RELEASED_TO_VENDOR
        assert escrow.release_reason == ReleaseReason.BUYER_APPROVAL
        assert escrow.buyer_confirmed_at == delivered_at + timedelta(hours=1)

    def test_dispute_resolved_for_buyer_refunds(self, funded, api_client, buyer, admin_user):
        """A dispute on a funded escrow, resolved for the buyer, refunds in full."""
        api_client.force_authenticate(user=buyer)
        response = api_client.post(
            reverse("disputes:dispute-list"),
            {
                "order_id": str(funded.pk),
                "reason": "damaged",
                "description": "Box arrived crushed",
            },
            format="json",
        )
        assert response.status_code == 201
        dispute_id = response.data["id"]
        assert _escrow(funded).status == EscrowStatus.DISPUTED
        assert _order(funded).status == OrderStatus.DISPUTED

        api_client.force_authenticate(user=admin_user)
        response = api_client.post(
            reverse("disputes:dispute-resolve", kwargs={"pk": dispute_id}),
            {"outcome": "buyer", "amount_cents": 100_000, "resolution": "Refund approved"},
            format="json",
        )

        escrow = _escrow(funded)
        assert response.status_code == 200
        assert escrow.status == EscrowStatus.REFUNDED_TO_BUYER
        assert escrow.refund_amount_cents == 100_000
        assert escrow.release_amount_cents == 0
        assert Dispute.objects.get(pk=dispute_id).status == DisputeStatus.RESOLVED_BUYER
        assert _order(funded).status == OrderStatus.REFUNDED

    def test_duplicate_notification_changes_nothing(self, funded, client):
        """Redelivering the completed notification is a successful no-op."""
        before = _escrow(funded)
        order_before = _order(funded)
        reference = order_before.payment_reference

        response = _post_webhook(client, reference)

        after = _escrow(funded)
        assert response.status_code == 200
        assert response.json()["payment_status"] == PaymentStatus.COMPLETED
        assert after.status == EscrowStatus.FUNDED
        assert after.funded_at == before.funded_at
        assert after.updated_at == before.updated_at
        assert _order(funded).payment_updated_at == order_before.payment_updated_at
        assert WebhookEvent.objects.get(reference=reference).delivery_count == 2
