"""
Payment-specific exceptions.

Exception Hierarchy:
    ExternalServiceError
    └── ExternalGatewayError - Monime HTTP/network failure (retryable by the poller)
    UnauthorizedError
    └── WebhookSignatureError - Missing or invalid X-Monime-Signature
    NotFoundError
    └── PaymentNotFoundError - No order matches the payment reference
    ValidationError
    └── PaymentValidationError - Malformed notice, amount/currency mismatch
    BaseApplicationError
    ├── PaymentTimeoutError - Poll budget exhausted without a terminal status (504)
    └── PaymentPollCancelledError - Caller cancelled the poll loop

Usage:
    from payments.exceptions import ExternalGatewayError, PaymentTimeoutError

    try:
        notice = poller.poll(reference)
    except PaymentTimeoutError:
        return Response({"detail": "Please check your order status"}, status=504)
"""

from __future__ import annotations

from core.exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


class ExternalGatewayError(ExternalServiceError):
    """
    Raised when the payment provider cannot be reached or rejects a call.

    details carries the HTTP status code when one was received.
    """

    default_error_code = "PAYMENT_GATEWAY_ERROR"


class WebhookSignatureError(UnauthorizedError):
    default_error_code = "INVALID_WEBHOOK_SIGNATURE"


class PaymentNotFoundError(NotFoundError):
    """
    Raised when no order matches a payment reference.

    Example:
        raise PaymentNotFoundError(
            "No order matches payment reference",
            details={"reference": reference},
        )
    """

    default_error_code = "PAYMENT_NOT_FOUND"


class PaymentValidationError(ValidationError):
    default_error_code = "PAYMENT_VALIDATION_ERROR"


class PaymentTimeoutError(BaseApplicationError):
    """
    Raised when polling ends without a terminal status.

    Distinct from a failed payment: the caller should tell the buyer to
    check the order status later, not that the payment failed.
    """

    default_error_code = "PAYMENT_STATUS_TIMEOUT"
    status_code = 504


class PaymentPollCancelledError(BaseApplicationError):
    default_error_code = "PAYMENT_POLL_CANCELLED"
    status_code = 409
