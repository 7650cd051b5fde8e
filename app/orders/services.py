"""
Order placement and lookup.

OrderService.place_order is the checkout boundary: it creates the Order and
its pending Escrow in the caller's atomic unit, so an order never exists
without an escrow.

Usage:
    from orders.services import OrderService

    with OrderService.atomic() as unit:
        order = OrderService.place_order(unit, buyer, vendor, amount_cents=10_000_000)
"""

from __future__ import annotations

import secrets
import string
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.services import BaseService

from orders.models import Order

if TYPE_CHECKING:
    from authentication.models import User
    from core.transactions import AtomicUnit

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number() -> str:
    """FT-YYYYMMDD-XXXXXX"""
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(6))
    return f"FT-{timezone.now():%Y%m%d}-{suffix}"


class OrderService(BaseService):
    """
    Service for order placement and party-scoped lookup.

    Methods:
        place_order: Create an order with its pending escrow
        get_for_party: Fetch an order visible to the user
    """

    @classmethod
    def place_order(
        cls,
        unit: AtomicUnit,
        buyer: User,
        vendor: User,
        amount_cents: int,
        currency: str | None = None,
    ) -> Order:
        """
        Create an order and open its escrow.

        Raises:
            ValidationError: Non-positive amount or buyer == vendor
        """
        # Deferred: escrow.services imports orders.synchronizer
        from escrow.services import EscrowLedger

        unit.ensure_active()
        if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
            raise ValidationError(
                "Order amount must be a positive integer in minor units",
                details={"amount_cents": amount_cents},
            )
        if buyer.pk == vendor.pk:
            raise ValidationError(
                "Buyer and vendor must be different users",
                error_code="SELF_PURCHASE",
            )

        order = Order.objects.create(
            order_number=generate_order_number(),
            buyer=buyer,
            vendor=vendor,
            total_amount_cents=amount_cents,
            currency=(currency or settings.ESCROW_DEFAULT_CURRENCY).upper(),
        )
        EscrowLedger.open_escrow(unit, order)

        cls.get_logger().info(
            "Order placed",
            extra={
                "order_id": str(order.pk),
                "order_number": order.order_number,
                "buyer_id": str(buyer.pk),
                "vendor_id": str(vendor.pk),
                "amount_cents": amount_cents,
            },
        )
        return order

    @classmethod
    def get_for_party(cls, order_id, user: User) -> Order:
        """
        Fetch an order the user may see (buyer, vendor or admin).

        Raises:
            NotFoundError: Unknown order id
            PermissionDeniedError: User is not a party and not an admin
        """
        try:
            order = Order.objects.select_related("buyer", "vendor").get(pk=order_id)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(
                "Order not found",
                error_code="ORDER_NOT_FOUND",
                details={"order_id": str(order_id)},
            ) from None

        if not (order.is_party(user) or user.is_platform_admin):
            raise PermissionDeniedError(
                "You do not have access to this order",
                error_code="NOT_A_PARTY",
            )
        return order
