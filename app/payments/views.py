"""
Views for the payments API.

Endpoints:
    POST /api/v1/payments/initialize/         - Start a payment (buyer)
    GET  /api/v1/payments/status/?reference=R - Current payment status

The status endpoint asks the provider once per call; clients that want to
wait for a terminal status run their own bounded loop against it.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import ValidationError

from orders.services import OrderService

from payments.adapters import MonimeClient
from payments.serializers import (
    InitializePaymentSerializer,
    PaymentSessionSerializer,
    PaymentStatusSerializer,
)
from payments.services import PaymentInitiationService, PaymentStatusService

logger = logging.getLogger(__name__)


@extend_schema(
    operation_id="initialize_payment",
    summary="Start a payment for an order",
    request=InitializePaymentSerializer,
    responses={201: PaymentSessionSerializer},
    tags=["Payments"],
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def initialize_payment(request):
    serializer = InitializePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    order = OrderService.get_for_party(data["order_id"], request.user)

    with MonimeClient.from_settings() as client:
        result = PaymentInitiationService.initialize(
            client,
            order,
            actor=request.user,
            method=data["method"],
            phone=data["phone"],
        )

    if not result:
        return Response(result.to_response(), status=status.HTTP_502_BAD_GATEWAY)

    session = result.data
    if data["poll"]:
        from payments.tasks import poll_payment_status

        poll_payment_status.delay(session.reference)
        logger.info("Payment status poll queued", extra={"reference": session.reference})

    return Response(PaymentSessionSerializer(session.as_dict()).data, status=status.HTTP_201_CREATED)


@extend_schema(
    operation_id="get_payment_status",
    summary="Get payment status by reference",
    parameters=[
        OpenApiParameter(
            name="reference",
            type=str,
            location=OpenApiParameter.QUERY,
            description="Payment reference returned by initialize",
            required=True,
        ),
    ],
    responses={200: PaymentStatusSerializer},
    tags=["Payments"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def payment_status(request):
    reference = request.query_params.get("reference", "").strip()
    if not reference:
        raise ValidationError(
            "reference query parameter is required",
            details={"reference": ["This field is required."]},
        )

    order = PaymentStatusService.get_order_for_reference(reference, request.user)
    with MonimeClient.from_settings() as client:
        order = PaymentStatusService.refresh(client, order)
    return Response(PaymentStatusSerializer(order).data)
