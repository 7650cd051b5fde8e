"""
Tests for the order read API.
"""

import uuid

import pytest
from django.urls import reverse

from authentication.tests.factories import BuyerFactory


def _url(order_id):
    return reverse("orders:order-detail", kwargs={"order_id": order_id})


@pytest.mark.django_db
class TestOrderDetail:
    """Tests for GET /api/v1/orders/{id}/."""

    def test_buyer_sees_order_with_escrow(self, api_client, placed_order, buyer):
        """The buyer should see the order, its payment sub-record and escrow status."""
        api_client.force_authenticate(user=buyer)

        response = api_client.get(_url(placed_order.pk))

        assert response.status_code == 200
        assert response.data["order_number"] == placed_order.order_number
        assert response.data["escrow_status"] == "pending"
        assert response.data["payment"]["status"] == "pending"

    def test_vendor_can_read(self, api_client, placed_order, vendor):
        """The vendor should see the order too."""
        api_client.force_authenticate(user=vendor)

        assert api_client.get(_url(placed_order.pk)).status_code == 200

    def test_stranger_gets_403(self, api_client, placed_order):
        """Non-parties should be refused with the application error body."""
        api_client.force_authenticate(user=BuyerFactory())

        response = api_client.get(_url(placed_order.pk))

        assert response.status_code == 403
        assert response.data["error_code"] == "NOT_A_PARTY"

    def test_unknown_order_gets_404(self, api_client, buyer):
        """Unknown order ids should return 404."""
        api_client.force_authenticate(user=buyer)

        response = api_client.get(_url(uuid.uuid4()))

        assert response.status_code == 404
        assert response.data["error_code"] == "ORDER_NOT_FOUND"

    def test_requires_authentication(self, api_client, placed_order):
        """Anonymous requests should be rejected."""
        response = api_client.get(_url(placed_order.pk))

        assert response.status_code in (401, 403)
