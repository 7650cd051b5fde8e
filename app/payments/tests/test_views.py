"""
Tests for the payments API.

MonimeClient is patched in payments.views so no request leaves the test.
"""

from unittest.mock import patch

import pytest
from django.urls import reverse

from authentication.tests.factories import BuyerFactory
from orders.constants import PaymentStatus
from payments.exceptions import ExternalGatewayError
from payments.tests.factories import REFERENCE, provider_payment


@pytest.fixture
def patched_client(gateway):
    with patch("payments.views.MonimeClient") as client_cls:
        client_cls.from_settings.return_value.__enter__.return_value = gateway
        yield client_cls


@pytest.mark.django_db
class TestInitializePayment:
    """Tests for POST /api/v1/payments/initialize/."""

    url = reverse("payments:initialize")

    def test_creates_payment(self, api_client, patched_client, order, buyer):
        """201 with the payment session."""
        api_client.force_authenticate(user=buyer)

        response = api_client.post(
            self.url,
            {"order_id": str(order.pk), "method": "orange_money", "phone": "+23276000000"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["order_id"] == str(order.pk)
        assert response.data["reference"].startswith("FT_")
        assert response.data["status"] == PaymentStatus.PENDING
        assert response.data["checkout_url"] == "https://pay.monime.test/c/123"
        patched_client.from_settings.return_value.__exit__.assert_called_once()

    def test_queues_poll_when_asked(self, api_client, patched_client, order, buyer):
        """poll=true queues the background status poll."""
        api_client.force_authenticate(user=buyer)

        with patch("payments.tasks.poll_payment_status.delay") as delay:
            response = api_client.post(
                self.url,
                {
                    "order_id": str(order.pk),
                    "method": "orange_money",
                    "phone": "+23276000000",
                    "poll": True,
                },
                format="json",
            )

        assert response.status_code == 201
        delay.assert_called_once_with(response.data["reference"])

    def test_phone_required_for_mobile_money(self, api_client, patched_client, order, buyer):
        """Mobile money without a phone is a 400 before the provider is called."""
        api_client.force_authenticate(user=buyer)

        response = api_client.post(
            self.url, {"order_id": str(order.pk), "method": "afrimoney"}, format="json"
        )

        assert response.status_code == 400
        patched_client.from_settings.assert_not_called()

    def test_gateway_failure_is_502(self, api_client, patched_client, gateway, order, buyer):
        """Provider failures answer 502 with the error code."""
        gateway.create_payment.side_effect = ExternalGatewayError("Payment provider returned HTTP 500")
        api_client.force_authenticate(user=buyer)

        response = api_client.post(
            self.url,
            {"order_id": str(order.pk), "method": "bank_transfer"},
            format="json",
        )

        assert response.status_code == 502
        assert response.data["success"] is False
        assert response.data["error_code"] == "PAYMENT_GATEWAY_ERROR"

    def test_stranger_forbidden(self, api_client, patched_client, order):
        """Users who are not party to the order get 403."""
        api_client.force_authenticate(user=BuyerFactory())

        response = api_client.post(
            self.url, {"order_id": str(order.pk), "method": "bank_transfer"}, format="json"
        )

        assert response.status_code == 403

    def test_vendor_cannot_pay(self, api_client, patched_client, order, vendor):
        """The vendor is a party but not the payer."""
        api_client.force_authenticate(user=vendor)

        response = api_client.post(
            self.url, {"order_id": str(order.pk), "method": "bank_transfer"}, format="json"
        )

        assert response.status_code == 403
        assert response.data["error_code"] == "NOT_BUYER"


@pytest.mark.django_db
class TestPaymentStatus:
    """Tests for GET /api/v1/payments/status/?reference=R."""

    url = reverse("payments:status")

    def test_returns_refreshed_status(self, api_client, patched_client, gateway, awaiting_payment, buyer):
        """The provider is asked once and the answer reconciled."""
        gateway.get_payment.return_value = provider_payment("completed")
        api_client.force_authenticate(user=buyer)

        response = api_client.get(self.url, {"reference": REFERENCE})

        assert response.status_code == 200
        assert response.data["reference"] == REFERENCE
        assert response.data["status"] == PaymentStatus.COMPLETED
        assert response.data["order_status"] == "confirmed"
        assert response.data["transaction_id"] == "TX-1"

    def test_reference_required(self, api_client, buyer):
        """A missing reference is a 400."""
        api_client.force_authenticate(user=buyer)

        response = api_client.get(self.url)

        assert response.status_code == 400
        assert "reference" in response.data["details"]

    def test_unknown_reference(self, api_client, patched_client, buyer):
        """Unknown references are 404."""
        api_client.force_authenticate(user=buyer)

        response = api_client.get(self.url, {"reference": "FT_NOPE"})

        assert response.status_code == 404
        assert response.data["error_code"] == "PAYMENT_NOT_FOUND"

    def test_stranger_forbidden(self, api_client, patched_client, awaiting_payment):
        """Strangers cannot read someone else's payment."""
        api_client.force_authenticate(user=BuyerFactory())

        response = api_client.get(self.url, {"reference": REFERENCE})

        assert response.status_code == 403
