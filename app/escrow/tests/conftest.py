"""
Pytest fixtures for escrow tests.
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import AdminFactory, BuyerFactory, VendorFactory
from core.transactions import atomic_unit
from escrow.models import Escrow
from escrow.services import EscrowLedger
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
def order(buyer, vendor):
    with atomic_unit() as unit:
        return OrderService.place_order(unit, buyer, vendor, amount_cents=100_000)


@pytest.fixture
def pending_escrow(order):
    return Escrow.objects.get(order=order)


@pytest.fixture
def funded_escrow(pending_escrow):
    """Escrow funded through the ledger, with the order mirrored to confirmed."""
    with atomic_unit() as unit:
        return EscrowLedger.fund(unit, pending_escrow, payment_reference="FT_REF").escrow


@pytest.fixture
def delivered_escrow(funded_escrow, vendor):
    """Escrow in pending_confirmation with a confirmation deadline three days out."""
    with atomic_unit() as unit:
        return EscrowLedger.mark_delivered(unit, funded_escrow, actor=vendor).escrow
