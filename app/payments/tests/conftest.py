"""
Pytest fixtures for payment tests.

The provider is never contacted: tests hand services a MagicMock client or
a MonimeClient over a mocked requests.Session.
"""

from unittest.mock import MagicMock

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import AdminFactory, BuyerFactory, VendorFactory
from core.transactions import atomic_unit
from orders.constants import OrderStatus
from orders.models import Order
from orders.services import OrderService
from payments.tests.factories import REFERENCE, provider_payment
from payments.types import MonimePayment


@pytest.fixture
def buyer(db):
    return BuyerFactory()


@pytest.fixture
def vendor(db):
    return VendorFactory()


@pytest.fixture
def admin_user(db):
    return AdminFactory()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def order(buyer, vendor):
    """Placed order of 100,000 SLE with its pending escrow and no payment yet."""
    with atomic_unit() as unit:
        return OrderService.place_order(unit, buyer, vendor, amount_cents=100_000)


@pytest.fixture
def awaiting_payment(order):
    """Order with an initiated payment under REFERENCE."""
    Order.objects.filter(pk=order.pk).update(
        payment_reference=REFERENCE,
        payment_amount_cents=100_000,
        payment_currency="SLE",
        status=OrderStatus.PENDING_PAYMENT,
    )
    return Order.objects.get(pk=order.pk)


@pytest.fixture
def gateway():
    """Stand-in MonimeClient."""
    client = MagicMock()
    client.create_payment.side_effect = lambda params: MonimePayment(
        payment_id="pay_123",
        reference=params.reference,
        status="pending",
        checkout_url="https://pay.monime.test/c/123",
        expires_at="2025-01-01T13:00:00Z",
    )
    client.get_payment.return_value = provider_payment()
    return client
