"""
Payment initialisation.

Creates the payment at the provider and records the payment sub-record on
the order. The provider call happens outside any database transaction; the
sub-record write afterwards is conditioned so that it can never overwrite a
completed payment.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from core.helpers import generate_token
from core.services import BaseService, ServiceResult

from escrow.models import Escrow
from escrow.state_machines import EscrowStatus
from orders.constants import (
    IN_FLIGHT_PAYMENT_STATUSES,
    PRE_PAYMENT_ORDER_STATUSES,
    PaymentMethod,
    PaymentProvider,
    PaymentStatus,
)
from orders.models import Order
from orders.synchronizer import OrderSynchronizer

from payments.exceptions import ExternalGatewayError, PaymentValidationError
from payments.types import CreatePaymentParams, PaymentSession

if TYPE_CHECKING:
    from authentication.models import User
    from payments.adapters import MonimeClient

# A payment that has a reference and is still pending or processing
IN_FLIGHT = (
    Q(payment_status__in=IN_FLIGHT_PAYMENT_STATUSES)
    & Q(payment_reference__isnull=False)
    & ~Q(payment_reference="")
)


def generate_payment_reference(order: Order) -> str:
    """FT_<last 8 of order id>_<ms timestamp>_<6 random hex>, upper-case."""
    order_part = str(order.pk).replace("-", "")[-8:]
    timestamp = int(time.time() * 1000)
    return f"FT_{order_part}_{timestamp}_{generate_token(3)}".upper()


class PaymentInitiationService(BaseService):
    """
    Starts a provider payment for an order.

    Methods:
        initialize: Validate, create the provider payment, store the sub-record
    """

    @classmethod
    def initialize(
        cls,
        client: MonimeClient,
        order: Order,
        actor: User,
        method: str,
        phone: str = "",
    ) -> ServiceResult[PaymentSession]:
        """
        Start a payment for an order.

        Domain errors (wrong user, order not payable, bad method) are raised;
        provider failures come back as a failed ServiceResult so the view can
        answer 502 without a traceback.

        Raises:
            PermissionDeniedError: Actor is not the buyer
            ConflictError: Payment already completed or in flight, or order not payable
            ValidationError: Unsupported method or missing phone number
        """
        logger = cls.get_logger()

        if actor.pk != order.buyer_id:
            logger.warning(
                "Payment initialisation by non-buyer",
                extra={"security_event": True, "order_id": str(order.pk), "user_id": str(actor.pk)},
            )
            raise PermissionDeniedError(
                "Only the buyer can pay for this order",
                error_code="NOT_BUYER",
            )

        cls._ensure_payable(order)

        if method == PaymentMethod.CASH_ON_DELIVERY:
            raise ValidationError(
                "Cash on delivery orders are not paid online",
                error_code="UNSUPPORTED_PAYMENT_METHOD",
                details={"method": [method]},
            )
        if method not in PaymentMethod.values:
            raise ValidationError(
                "Unknown payment method",
                error_code="UNSUPPORTED_PAYMENT_METHOD",
                details={"method": [method]},
            )

        reference = generate_payment_reference(order)
        try:
            params = CreatePaymentParams(
                amount_cents=order.total_amount_cents,
                currency=order.currency,
                reference=reference,
                description=f"Payment for order {order.order_number}",
                method=method,
                customer_name=actor.get_full_name(),
                customer_email=actor.email,
                phone=phone,
                callback_url=settings.MONIME_CALLBACK_URL,
                metadata={"order_id": str(order.pk), "order_number": order.order_number},
            )
        except ValueError as e:
            raise ValidationError(str(e), error_code="INVALID_PAYMENT_REQUEST") from e

        try:
            payment = client.create_payment(params)
        except (ExternalGatewayError, PaymentValidationError) as e:
            return cls.handle_exception(e, f"Payment creation failed for order {order.pk}")

        now = timezone.now()
        with cls.atomic() as unit:
            updated = (
                Order.objects.filter(pk=order.pk, status__in=PRE_PAYMENT_ORDER_STATUSES)
                .exclude(payment_status=PaymentStatus.COMPLETED)
                .exclude(IN_FLIGHT)
                .update(
                    payment_provider=PaymentProvider.MONIME,
                    payment_method=method,
                    payment_reference=reference,
                    payment_id=payment.payment_id,
                    payment_transaction_id="",
                    payment_status=PaymentStatus.PENDING,
                    payment_amount_cents=order.total_amount_cents,
                    payment_currency=order.currency,
                    payment_initiated_at=now,
                    payment_completed_at=None,
                    payment_updated_at=now,
                    updated_at=now,
                )
            )
            if not updated:
                current = Order.objects.filter(pk=order.pk).values_list(
                    "payment_status", flat=True
                ).first()
                if current in IN_FLIGHT_PAYMENT_STATUSES:
                    raise ConflictError(
                        "Another payment was initiated for this order meanwhile",
                        error_code="PAYMENT_ALREADY_INITIATED",
                        details={"order_id": str(order.pk)},
                    )
                raise ConflictError(
                    "Order was paid or changed while the payment was being created",
                    error_code="PAYMENT_ALREADY_COMPLETED",
                    details={"order_id": str(order.pk)},
                )
            OrderSynchronizer.mirror_payment(unit, order, PaymentStatus.PENDING)

        logger.info(
            "Payment initialised",
            extra={
                "order_id": str(order.pk),
                "reference": reference,
                "payment_id": payment.payment_id,
                "method": method,
            },
        )
        return ServiceResult.success(
            PaymentSession(
                order_id=str(order.pk),
                reference=reference,
                payment_id=payment.payment_id,
                status=PaymentStatus.PENDING,
                checkout_url=payment.checkout_url,
                expires_at=payment.expires_at,
            )
        )

    @classmethod
    def _ensure_payable(cls, order: Order) -> None:
        if order.payment_status == PaymentStatus.COMPLETED:
            raise ConflictError(
                "Payment already completed for this order",
                error_code="PAYMENT_ALREADY_COMPLETED",
                details={"order_id": str(order.pk)},
            )
        if order.payment_in_flight:
            raise ConflictError(
                "Payment already initiated for this order",
                error_code="PAYMENT_ALREADY_INITIATED",
                details={"order_id": str(order.pk), "reference": order.payment_reference},
            )
        escrow_status = (
            Escrow.objects.filter(order=order).values_list("status", flat=True).first()
        )
        if order.status not in PRE_PAYMENT_ORDER_STATUSES or escrow_status != EscrowStatus.PENDING:
            raise ConflictError(
                "Order is not awaiting payment",
                error_code="ORDER_NOT_PAYABLE",
                details={"order_id": str(order.pk), "order_status": order.status},
            )
