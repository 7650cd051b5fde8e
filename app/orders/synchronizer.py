"""
Order synchronizer: mirrors ledger outcomes onto the visible order status.

The synchronizer has no decision authority. The escrow ledger and the
payment reconciler call it after they have changed state, inside the same
atomic unit, so the order can never disagree with the escrow once the
transaction commits. Buyer and vendor notifications are scheduled to run
after commit.

Status mapping (escrow -> order):
    funded               -> confirmed
    pending_confirmation -> delivered
    released_to_vendor   -> completed
    refunded_to_buyer    -> refunded
    disputed             -> disputed
    cancelled            -> cancelled

Payment mapping (only while the order is not yet funded):
    pending / processing -> pending_payment
    failed               -> payment_failed
    cancelled            -> cancelled
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.utils import timezone

from core.services import BaseService

from escrow.state_machines import EscrowStatus
from notifications.models import NotificationCategory
from notifications.services import notify
from orders.constants import OrderStatus, PaymentStatus, PRE_PAYMENT_ORDER_STATUSES
from orders.models import Order

if TYPE_CHECKING:
    from core.transactions import AtomicUnit
    from escrow.models import Escrow


ESCROW_TO_ORDER_STATUS: dict[str, str] = {
    EscrowStatus.FUNDED: OrderStatus.CONFIRMED,
    EscrowStatus.PENDING_CONFIRMATION: OrderStatus.DELIVERED,
    EscrowStatus.RELEASED_TO_VENDOR: OrderStatus.COMPLETED,
    EscrowStatus.REFUNDED_TO_BUYER: OrderStatus.REFUNDED,
    EscrowStatus.DISPUTED: OrderStatus.DISPUTED,
    EscrowStatus.CANCELLED: OrderStatus.CANCELLED,
}

PAYMENT_TO_ORDER_STATUS: dict[str, str] = {
    PaymentStatus.PENDING: OrderStatus.PENDING_PAYMENT,
    PaymentStatus.PROCESSING: OrderStatus.PENDING_PAYMENT,
    PaymentStatus.FAILED: OrderStatus.PAYMENT_FAILED,
    PaymentStatus.CANCELLED: OrderStatus.CANCELLED,
}

# (buyer title, buyer message, vendor title, vendor message)
ESCROW_MESSAGES: dict[str, tuple[str, str, str, str]] = {
    EscrowStatus.PENDING: (
        "Escrow Created",
        "Escrow created - Payment pending",
        "New Order Received",
        "New order received - Payment pending",
    ),
    EscrowStatus.FUNDED: (
        "Payment Confirmed",
        "Payment confirmed - Order processing",
        "Payment Received",
        "Payment received - Please process order",
    ),
    EscrowStatus.PENDING_CONFIRMATION: (
        "Order Delivered",
        "Order delivered - Please confirm receipt",
        "Delivery Recorded",
        "Delivery recorded - Awaiting buyer confirmation",
    ),
    EscrowStatus.RELEASED_TO_VENDOR: (
        "Order Completed",
        "Order completed - Payment released to vendor",
        "Payment Released",
        "Payment released - Order completed",
    ),
    EscrowStatus.REFUNDED_TO_BUYER: (
        "Order Refunded",
        "Order refunded - Payment returned",
        "Order Refunded",
        "Order refunded",
    ),
    EscrowStatus.DISPUTED: (
        "Dispute Initiated",
        "Dispute initiated - Under review",
        "Order Disputed",
        "Order disputed - Under review",
    ),
    EscrowStatus.CANCELLED: (
        "Order Cancelled",
        "Order cancelled",
        "Order Cancelled",
        "Order cancelled",
    ),
}


class OrderSynchronizer(BaseService):
    """
    Only writer of Order.status.

    Methods:
        mirror_escrow: Propagate an escrow transition to its order
        mirror_payment: Propagate a non-funding payment outcome to an order
    """

    @classmethod
    def mirror_escrow(cls, unit: AtomicUnit, escrow: Escrow, event: str | None = None) -> str:
        """
        Copy the escrow outcome onto the order and notify both parties.

        Args:
            unit: Open transactional unit the escrow transition ran in
            escrow: Escrow after a successful transition
            event: EscrowEvent that produced the status (for notification data)

        Returns:
            The order status after mirroring
        """
        unit.ensure_active()
        now = timezone.now()
        target = ESCROW_TO_ORDER_STATUS.get(escrow.status)
        order_status = escrow.order.status

        if target is not None:
            changes = {"status": target, "updated_at": now}
            if escrow.status == EscrowStatus.PENDING_CONFIRMATION:
                changes["delivered_at"] = escrow.delivered_at
            Order.objects.filter(pk=escrow.order_id).update(**changes)
            order_status = target

            cls.get_logger().info(
                "Order status mirrored from escrow",
                extra={
                    "order_id": str(escrow.order_id),
                    "escrow_id": str(escrow.id),
                    "escrow_status": escrow.status,
                    "order_status": target,
                },
            )

        cls._notify_parties(unit, escrow, event)
        return order_status

    @classmethod
    def mirror_payment(cls, unit: AtomicUnit, order: Order, payment_status: str) -> bool:
        """
        Reflect a payment outcome that does not fund the escrow.

        Completed payments are mirrored through the escrow (funded ->
        confirmed), so they are ignored here. The update only applies while
        the order has not been funded; a late failure notice cannot move a
        confirmed order backwards.

        Returns:
            True if the order status changed
        """
        unit.ensure_active()
        target = PAYMENT_TO_ORDER_STATUS.get(payment_status)
        if target is None:
            return False

        updated = (
            Order.objects.filter(pk=order.pk, status__in=PRE_PAYMENT_ORDER_STATUSES)
            .exclude(status=target)
            .update(status=target, updated_at=timezone.now())
        )
        if not updated:
            return False

        cls.get_logger().info(
            "Order status mirrored from payment",
            extra={
                "order_id": str(order.pk),
                "payment_status": payment_status,
                "order_status": target,
            },
        )

        if payment_status == PaymentStatus.FAILED:
            buyer_id = order.buyer_id
            data = {"order_id": str(order.pk), "payment_status": payment_status}
            unit.on_commit(
                lambda: notify(
                    buyer_id,
                    "Payment Failed",
                    "Your payment could not be completed. Please try again.",
                    NotificationCategory.PAYMENT,
                    data=data,
                    idempotency_key=f"payment:{order.pk}:{order.payment_reference}:failed",
                )
            )
        return True

    @classmethod
    def _notify_parties(cls, unit: AtomicUnit, escrow: Escrow, event: str | None) -> None:
        messages = ESCROW_MESSAGES.get(escrow.status)
        if messages is None:
            return
        buyer_title, buyer_message, vendor_title, vendor_message = messages
        category = (
            NotificationCategory.DISPUTE
            if escrow.status == EscrowStatus.DISPUTED
            else NotificationCategory.ESCROW
        )
        data = {
            "escrow_id": str(escrow.id),
            "order_id": str(escrow.order_id),
            "status": escrow.status,
            "event": event or "",
        }
        recipients = (
            (escrow.buyer_id, buyer_title, buyer_message),
            (escrow.vendor_id, vendor_title, vendor_message),
        )
        for user_id, title, message in recipients:
            key = f"escrow:{escrow.id}:{escrow.status}:{user_id}"
            unit.on_commit(
                lambda user_id=user_id, title=title, message=message, key=key: notify(
                    user_id, title, message, category, data=data, idempotency_key=key
                )
            )
