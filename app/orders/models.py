"""
Order model with its denormalized payment sub-record.

The order is owned by the marketplace; the settlement engine reads and
writes only two things on it:
    - the visible ``status`` (via OrderSynchronizer)
    - the ``payment_*`` columns (via the payment reconciler)

``payment_reference`` is the idempotency correlation key between the order
and the payment provider. It is unique and indexed.

Usage:
    from orders.models import Order

    order = Order.objects.get(payment_reference="FT_1A2B3C4D_1718000000000_X7Y8Z9")
    order.payment.status  # "completed"
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from django.conf import settings
from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from orders.constants import (
    IN_FLIGHT_PAYMENT_STATUSES,
    OrderStatus,
    PaymentMethod,
    PaymentProvider,
    PaymentStatus,
    TERMINAL_PAYMENT_STATUSES,
)


@dataclass(frozen=True)
class OrderPayment:
    """Read-only view of the payment sub-record."""

    provider: str
    method: str
    reference: str | None
    payment_id: str
    transaction_id: str
    status: str
    amount_cents: int | None
    currency: str
    initiated_at: datetime | None
    completed_at: datetime | None
    updated_at: datetime | None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PAYMENT_STATUSES


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    Marketplace order as seen by the settlement engine.

    Fields:
        order_number: Human-readable order number (FT-YYYYMMDD-XXXXXX)
        buyer: User paying for the order
        vendor: User fulfilling the order and receiving the payout
        total_amount_cents: Order total in smallest currency unit
        currency: ISO 4217 currency code (SLE by default)
        status: Visible order status (mirror of the escrow ledger)
        delivered_at: When delivery was marked
        payment_*: Denormalized payment sub-record
    """

    # ==========================================================================
    # Identity & Parties
    # ==========================================================================

    order_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Human-readable order number",
    )

    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="purchases",
        help_text="User paying for the order",
    )

    vendor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sales",
        help_text="User fulfilling the order",
    )

    # ==========================================================================
    # Amount & Status
    # ==========================================================================

    total_amount_cents = models.PositiveBigIntegerField(
        help_text="Order total in smallest currency unit",
    )

    currency = models.CharField(
        max_length=3,
        default="SLE",
        help_text="ISO 4217 currency code",
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
        db_index=True,
        help_text="Visible order status, mirrored from the escrow ledger",
    )

    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When delivery was marked",
    )

    # ==========================================================================
    # Payment Sub-record
    # ==========================================================================

    payment_provider = models.CharField(
        max_length=20,
        choices=PaymentProvider.choices,
        default=PaymentProvider.MONIME,
        help_text="Payment provider handling this order",
    )

    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        blank=True,
        default="",
        help_text="Payment method chosen by the buyer",
    )

    payment_reference = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        unique=True,
        db_index=True,
        help_text="Provider correlation reference (idempotency key)",
    )

    payment_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Provider payment/session identifier",
    )

    payment_transaction_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Provider transaction identifier",
    )

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
        help_text="Normalized payment status",
    )

    payment_amount_cents = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount snapshot sent to the provider",
    )

    payment_currency = models.CharField(
        max_length=3,
        blank=True,
        default="",
        help_text="Currency snapshot sent to the provider",
    )

    payment_initiated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was initiated",
    )

    payment_completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the provider reported completion",
    )

    payment_updated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment sub-record last changed",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["buyer", "status"], name="order_buyer_status_idx"),
            models.Index(fields=["vendor", "status"], name="order_vendor_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount_cents__gt=0),
                name="order_total_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Order({self.order_number}, {self.status})"

    @property
    def payment(self) -> OrderPayment:
        """Snapshot of the payment sub-record."""
        return OrderPayment(
            provider=self.payment_provider,
            method=self.payment_method,
            reference=self.payment_reference,
            payment_id=self.payment_id,
            transaction_id=self.payment_transaction_id,
            status=self.payment_status,
            amount_cents=self.payment_amount_cents,
            currency=self.payment_currency,
            initiated_at=self.payment_initiated_at,
            completed_at=self.payment_completed_at,
            updated_at=self.payment_updated_at,
        )

    @property
    def payment_in_flight(self) -> bool:
        return bool(self.payment_reference) and self.payment_status in IN_FLIGHT_PAYMENT_STATUSES

    def is_party(self, user) -> bool:
        """Whether the user is the buyer or the vendor on this order."""
        return user is not None and user.pk in (self.buyer_id, self.vendor_id)
