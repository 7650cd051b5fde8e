"""
Pytest fixtures for order tests.
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import AdminFactory, BuyerFactory, VendorFactory
from core.transactions import atomic_unit
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
def placed_order(buyer, vendor):
    """Order placed through checkout, with its pending escrow."""
    with atomic_unit() as unit:
        return OrderService.place_order(unit, buyer, vendor, amount_cents=100_000)


@pytest.fixture
def api_client():
    return APIClient()
