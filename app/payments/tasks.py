"""
Celery tasks for payment processing.

Tasks:
- poll_payment_status: Bounded background poll for one payment reference,
  queued by payment initialisation when the client asks for it

Usage:
    from payments.tasks import poll_payment_status

    poll_payment_status.delay("FT_1A2B3C4D_1718000000000_X7Y8Z9")
"""

from __future__ import annotations

import logging

from celery import shared_task

from payments.adapters import MonimeClient
from payments.exceptions import PaymentNotFoundError, PaymentTimeoutError
from payments.services import PaymentStatusService

logger = logging.getLogger(__name__)


@shared_task(bind=True, acks_late=True)
def poll_payment_status(self, reference: str) -> dict:
    """
    Poll the provider until the payment is terminal, then reconcile it.

    A timeout is an expected outcome (the webhook may still arrive) and is
    reported in the result rather than raised.

    Returns:
        Dict with the poll outcome and, when applied, the reconciliation result
    """
    logger.info(
        "Starting payment status poll",
        extra={"reference": reference, "task_id": self.request.id},
    )

    with MonimeClient.from_settings() as client:
        try:
            result = PaymentStatusService.poll_and_reconcile(client, reference)
        except PaymentTimeoutError as e:
            return {"status": "timeout", "reference": reference, **e.details}
        except PaymentNotFoundError:
            logger.warning("Polled payment reference not found", extra={"reference": reference})
            return {"status": "not_found", "reference": reference}

    return {"status": "completed", **result.as_dict()}
