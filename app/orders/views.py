"""
Views for the order read API.

Endpoints:
    GET /api/v1/orders/{id}/ - Order detail for the buyer, vendor or an admin
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orders.serializers import OrderSerializer
from orders.services import OrderService


@extend_schema(
    operation_id="get_order",
    summary="Get order",
    responses={200: OrderSerializer},
    tags=["Orders"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def order_detail(request, order_id):
    order = OrderService.get_for_party(order_id, request.user)
    return Response(OrderSerializer(order).data)
