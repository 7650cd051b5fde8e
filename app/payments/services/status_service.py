"""
Payment status reads and poll-driven reconciliation.

Methods:
    refresh: One provider lookup for the status endpoint; falls back to the
        stored status when the provider cannot be reached
    poll_and_reconcile: Run the bounded poll loop, then apply the terminal
        notice exactly like a webhook would
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from core.exceptions import PermissionDeniedError
from core.services import BaseService

from orders.models import Order

from payments.exceptions import ExternalGatewayError, PaymentNotFoundError
from payments.services.poller import PaymentStatusPoller
from payments.services.reconciliation_service import ReconciliationService

if TYPE_CHECKING:
    from authentication.models import User
    from payments.adapters import MonimeClient
    from payments.types import ReconciliationResult


class PaymentStatusService(BaseService):
    """Status lookups that feed the reconciler."""

    @classmethod
    def get_order_for_reference(cls, reference: str, user: User) -> Order:
        """
        Order for a reference, visible to its buyer, vendor or an admin.

        Raises:
            PaymentNotFoundError: Unknown reference
            PermissionDeniedError: User is not a party and not an admin
        """
        order = ReconciliationService.find_order(reference)
        if not (order.is_party(user) or user.is_platform_admin):
            raise PermissionDeniedError(
                "You do not have access to this payment",
                error_code="NOT_A_PARTY",
            )
        return order

    @classmethod
    def refresh(cls, client: MonimeClient, order: Order) -> Order:
        """
        Ask the provider once and reconcile the answer.

        Returns the order re-read from the database. Gateway errors and
        provider-side 404s leave the stored status untouched.
        """
        reference = order.payment_reference
        if not reference or order.payment.is_terminal:
            return order

        try:
            notice = client.get_payment(reference).to_notice()
        except (ExternalGatewayError, PaymentNotFoundError) as e:
            cls.get_logger().warning(
                "Payment status refresh failed, serving stored status",
                extra={"reference": reference, "error_code": e.error_code},
            )
            return order

        with cls.atomic() as unit:
            ReconciliationService.apply_notice(unit, notice)
        return Order.objects.get(pk=order.pk)

    @classmethod
    def poll_and_reconcile(
        cls,
        client: MonimeClient,
        reference: str,
        poller: PaymentStatusPoller | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ReconciliationResult:
        """
        Poll until a terminal status and apply it.

        Raises:
            PaymentTimeoutError: No terminal status within the attempt budget
            PaymentPollCancelledError: cancel_event was set
            PaymentNotFoundError: Reference unknown to the provider or to us
        """
        poller = poller or PaymentStatusPoller(client)
        notice = poller.poll(reference, cancel_event=cancel_event)
        with cls.atomic() as unit:
            return ReconciliationService.apply_notice(unit, notice)
