"""
Status and choice enums for orders and their payment sub-record.

Order statuses are a visible mirror of the escrow ledger; payment statuses
are the normalized provider status written by the reconciler.

Import example:
    from orders.constants import OrderStatus, PaymentStatus
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """
    Visible status of an order.

    Written only by orders.synchronizer.OrderSynchronizer.
    """

    PENDING = "pending", "Pending"
    PENDING_PAYMENT = "pending_payment", "Pending Payment"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    COMPLETED = "completed", "Completed"
    REFUNDED = "refunded", "Refunded"
    CANCELLED = "cancelled", "Cancelled"
    DISPUTED = "disputed", "Disputed"
    PAYMENT_FAILED = "payment_failed", "Payment Failed"


class PaymentStatus(models.TextChoices):
    """
    Normalized payment status of the order's payment sub-record.

    Terminal states: COMPLETED, FAILED, CANCELLED

    State Flow:
        PENDING -> PROCESSING -> COMPLETED
        PENDING/PROCESSING -> FAILED
        PENDING/PROCESSING -> CANCELLED
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    CANCELLED = "cancelled", "Cancelled"


class PaymentProvider(models.TextChoices):
    MONIME = "monime", "Monime"
    MANUAL = "manual", "Manual"


class PaymentMethod(models.TextChoices):
    """Mobile money, bank and cash methods accepted at checkout."""

    ORANGE_MONEY = "orange_money", "Orange Money"
    AFRIMONEY = "afrimoney", "Afrimoney"
    AFRICELL_MONEY = "africell_money", "Africell Money"
    BANK_TRANSFER = "bank_transfer", "Bank Transfer"
    CASH_ON_DELIVERY = "cash_on_delivery", "Cash on Delivery"


TERMINAL_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
)

# Orders in these statuses have not been funded yet; payment outcomes may
# still move them.
PRE_PAYMENT_ORDER_STATUSES = frozenset(
    {OrderStatus.PENDING, OrderStatus.PENDING_PAYMENT, OrderStatus.PAYMENT_FAILED}
)

# With a reference set, a payment in these statuses may still be funded by
# the provider.
IN_FLIGHT_PAYMENT_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING})
