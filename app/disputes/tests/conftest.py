"""
Pytest fixtures for dispute tests.
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import AdminFactory, BuyerFactory, VendorFactory
from core.transactions import atomic_unit
from disputes.services import DisputeController
from escrow.models import Escrow
from escrow.services import EscrowLedger
from orders.models import Order
from orders.services import OrderService


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
def funded_order(buyer, vendor):
    """Order of 100,000 whose escrow is funded."""
    with atomic_unit() as unit:
        order = OrderService.place_order(unit, buyer, vendor, amount_cents=100_000)
        EscrowLedger.fund(unit, Escrow.objects.get(order=order))
    return Order.objects.get(pk=order.pk)


@pytest.fixture
def open_dispute(funded_order, buyer):
    """Dispute opened by the buyer; the escrow is frozen."""
    with atomic_unit() as unit:
        return DisputeController.open_dispute(
            unit,
            funded_order,
            actor=buyer,
            reason="damaged",
            description="Screen cracked on arrival",
            evidence=["https://cdn.example.com/photo1.jpg"],
        )
