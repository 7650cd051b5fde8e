"""
Bounded, cancellable payment status polling.

The poller only reads from the provider. It returns the first terminal
PaymentNotice it observes; applying it is the caller's job (see
PaymentStatusService.poll_and_reconcile), so polling never mutates more
than the notification path would.

Outcomes:
    terminal status observed -> PaymentNotice (completed, failed or cancelled)
    budget exhausted         -> PaymentTimeoutError (not a failure)
    caller cancelled         -> PaymentPollCancelledError
    reference unknown        -> PaymentNotFoundError (immediately, not retried)
    gateway errors           -> retried within the attempt budget
    malformed provider body  -> retried within the attempt budget

Usage:
    poller = PaymentStatusPoller(client)
    notice = poller.poll(reference, cancel_event=threading.Event())
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from django.conf import settings

from orders.constants import TERMINAL_PAYMENT_STATUSES

from payments.exceptions import (
    ExternalGatewayError,
    PaymentPollCancelledError,
    PaymentTimeoutError,
    PaymentValidationError,
)

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable

    from payments.adapters import MonimeClient
    from payments.types import PaymentNotice

logger = logging.getLogger(__name__)


class PaymentStatusPoller:
    """
    Poll GET /v1/payments/{reference} until a terminal status.

    Args:
        client: MonimeClient owned by the caller
        interval: Seconds between attempts (default PAYMENT_POLL_INTERVAL_SECONDS)
        max_attempts: Attempt budget (default PAYMENT_POLL_MAX_ATTEMPTS)
        sleep: Sleep function, replaceable in tests
    """

    def __init__(
        self,
        client: MonimeClient,
        interval: float | None = None,
        max_attempts: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.interval = settings.PAYMENT_POLL_INTERVAL_SECONDS if interval is None else interval
        self.max_attempts = (
            settings.PAYMENT_POLL_MAX_ATTEMPTS if max_attempts is None else max_attempts
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._sleep = sleep

    def poll(self, reference: str, cancel_event: threading.Event | None = None) -> PaymentNotice:
        last_status = None
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            self._check_cancelled(reference, cancel_event, attempt)

            try:
                notice = self.client.get_payment(reference).to_notice()
            except (ExternalGatewayError, PaymentValidationError) as e:
                last_error = e.message
                logger.warning(
                    "Payment status poll attempt failed",
                    extra={"reference": reference, "attempt": attempt, "error_code": e.error_code},
                )
            else:
                last_status = notice.status
                if notice.status in TERMINAL_PAYMENT_STATUSES:
                    logger.info(
                        "Payment reached terminal status",
                        extra={"reference": reference, "attempt": attempt, "status": notice.status},
                    )
                    return notice

            if attempt < self.max_attempts:
                self._wait(reference, cancel_event, attempt)

        logger.warning(
            "Payment status poll timed out",
            extra={
                "reference": reference,
                "attempts": self.max_attempts,
                "last_status": last_status,
            },
        )
        raise PaymentTimeoutError(
            "Payment status is still pending. Please check your order status later.",
            details={
                "reference": reference,
                "attempts": self.max_attempts,
                "last_status": last_status,
                "last_error": last_error,
            },
        )

    def _wait(self, reference: str, cancel_event: threading.Event | None, attempt: int) -> None:
        if cancel_event is None:
            self._sleep(self.interval)
            return
        if cancel_event.wait(self.interval):
            self._check_cancelled(reference, cancel_event, attempt)

    def _check_cancelled(
        self, reference: str, cancel_event: threading.Event | None, attempt: int
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "Payment status poll cancelled",
                extra={"reference": reference, "attempt": attempt},
            )
            raise PaymentPollCancelledError(
                "Payment status polling was cancelled",
                details={"reference": reference, "attempts": attempt},
            )
