"""
Tests for the Monime webhook endpoint.
"""

from unittest.mock import patch

import pytest
from django.urls import reverse

from escrow.models import Escrow
from escrow.state_machines import EscrowStatus
from orders.constants import OrderStatus, PaymentStatus
from orders.models import Order
from payments.adapters import SIGNATURE_HEADER, compute_signature
from payments.constants import WebhookEventStatus
from payments.models import WebhookEvent
from payments.tests.factories import REFERENCE, webhook_body

URL = reverse("payments:monime_webhook")
SECRET = "test-webhook-secret"


def _post(client, body, signature=None):
    headers = {SIGNATURE_HEADER: signature or compute_signature(SECRET, body)}
    return client.post(URL, data=body, content_type="application/json", headers=headers)


@pytest.mark.django_db
class TestMonimeWebhook:
    """Tests for POST /api/v1/payments/webhooks/monime/."""

    def test_get_is_a_liveness_check(self, client):
        """GET answers without touching anything."""
        response = client.get(URL)

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "provider": "monime"}
        assert not WebhookEvent.objects.exists()

    def test_completed_funds_escrow(self, client, awaiting_payment):
        """A signed completed notice funds the escrow and confirms the order."""
        response = _post(client, webhook_body())

        assert response.status_code == 200
        assert response.json() == {
            "received": True,
            "reference": REFERENCE,
            "payment_status": PaymentStatus.COMPLETED,
        }
        order = Order.objects.get(pk=awaiting_payment.pk)
        assert order.payment_status == PaymentStatus.COMPLETED
        assert order.payment_transaction_id == "TX-1"
        assert order.status == OrderStatus.CONFIRMED
        assert Escrow.objects.get(order=order).status == EscrowStatus.FUNDED
        assert WebhookEvent.objects.get().status == WebhookEventStatus.PROCESSED

    def test_duplicate_gets_identical_response(self, client, awaiting_payment):
        """The same notice twice: same response, one funding, delivery count 2."""
        body = webhook_body()

        first = _post(client, body)
        funded_at = Escrow.objects.get(order=awaiting_payment).funded_at
        second = _post(client, body)

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()
        assert Escrow.objects.get(order=awaiting_payment).funded_at == funded_at
        assert WebhookEvent.objects.get().delivery_count == 2

    def test_missing_signature(self, client, awaiting_payment):
        """Unsigned requests are rejected with 401 and change nothing."""
        response = client.post(URL, data=webhook_body(), content_type="application/json")

        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_WEBHOOK_SIGNATURE"
        assert Order.objects.get(pk=awaiting_payment.pk).payment_status == PaymentStatus.PENDING
        assert not WebhookEvent.objects.exists()

    def test_bad_signature(self, client, awaiting_payment):
        """A signature made with another secret is rejected."""
        body = webhook_body()

        response = _post(client, body, signature=compute_signature("wrong", body))

        assert response.status_code == 401

    def test_invalid_json(self, client):
        """A signed body that is not JSON returns 400."""
        response = _post(client, b"not json")

        assert response.status_code == 400
        assert response.json()["error_code"] == "PAYMENT_VALIDATION_ERROR"

    def test_missing_reference(self, client):
        """A body without data.reference returns 400."""
        response = _post(client, b'{"event": "payment.completed", "data": {}}')

        assert response.status_code == 400

    def test_unknown_reference(self, client, db):
        """Unknown references return 404 and the record is rejected."""
        response = _post(client, webhook_body(reference="FT_UNKNOWN"))

        assert response.status_code == 404
        assert response.json()["error_code"] == "PAYMENT_NOT_FOUND"
        assert WebhookEvent.objects.get().status == WebhookEventStatus.REJECTED

    def test_amount_mismatch(self, client, awaiting_payment):
        """A completed notice for the wrong amount is rejected and nothing is funded."""
        response = _post(client, webhook_body(amount=99_999))

        assert response.status_code == 400
        assert response.json()["error_code"] == "PAYMENT_AMOUNT_MISMATCH"
        assert Escrow.objects.get(order=awaiting_payment).status == EscrowStatus.PENDING
        assert Order.objects.get(pk=awaiting_payment.pk).payment_status == PaymentStatus.PENDING

    def test_failed_payment(self, client, awaiting_payment):
        """A failed notice marks the order payment_failed and leaves the escrow pending."""
        response = _post(client, webhook_body(status="failed"))

        assert response.status_code == 200
        assert Order.objects.get(pk=awaiting_payment.pk).status == OrderStatus.PAYMENT_FAILED
        assert Escrow.objects.get(order=awaiting_payment).status == EscrowStatus.PENDING

    def test_unexpected_error_returns_500(self, client, awaiting_payment):
        """Unexpected failures are recorded and reported so the provider retries."""
        with patch(
            "payments.webhooks.views.ReconciliationService.apply_notice",
            side_effect=RuntimeError("database on fire"),
        ):
            response = _post(client, webhook_body())

        assert response.status_code == 500
        assert response.json()["error_code"] == "WEBHOOK_PROCESSING_FAILED"
        record = WebhookEvent.objects.get()
        assert record.status == WebhookEventStatus.FAILED
        assert "RuntimeError" in record.error_message

    def test_put_not_allowed(self, client):
        """Only GET and POST are accepted."""
        assert client.put(URL).status_code == 405
