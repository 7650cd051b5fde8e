"""
Base exception classes for application-wide error handling.

Every domain error raised by the settlement engine derives from
BaseApplicationError so that views, Celery tasks and the webhook endpoint
can translate failures the same way.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Bad input, never retried (400)
    ├── NotFoundError - Unknown order/escrow/dispute/reference (404)
    ├── UnauthorizedError - Bad webhook signature or missing identity (401)
    ├── PermissionDeniedError - Actor lacks the role for the operation (403)
    ├── ConflictError - Illegal state transition or lost race (409)
    ├── RateLimitError - Rate limit exceeded (429)
    └── ExternalServiceError - Payment provider communication failure (502)

Usage:
    from core.exceptions import ConflictError, NotFoundError

    raise NotFoundError(
        "No order matches payment reference",
        error_code="ORDER_NOT_FOUND",
        details={"reference": reference},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.status_code)

Note:
    DRF views do not need the try/except above: the
    core.exception_handlers.application_exception_handler registered in
    REST_FRAMEWORK["EXCEPTION_HANDLER"] performs the same translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, identifiers, etc.)
        status_code: HTTP status used when the error reaches an API boundary

    Example:
        try:
            escrow = EscrowLedger.get_for_order(order_id)
        except NotFoundError as e:
            logger.warning(f"Escrow lookup failed: {e.error_code}")
            return Response(e.to_dict(), status=e.status_code)
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Escrow is not awaiting confirmation",
                "error_code": "INVALID_STATE_TRANSITION",
                "details": {"current_status": "released_to_vendor"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Settlement amounts outside (0, escrow.amount]
    - Unknown dispute reasons or outcomes
    - Malformed provider payloads
    - Amount/currency mismatches between a payment notice and its order

    Example:
        raise ValidationError(
            "Settlement amount exceeds escrowed amount",
            error_code="INVALID_SETTLEMENT_AMOUNT",
            details={"amount": amount, "escrow_amount": escrow.amount_cents},
        )

    Note:
        For DRF serializer validation, use DRF's built-in validation.
        Use this for service-layer validation logic.
    """

    default_error_code: str = "VALIDATION_ERROR"
    status_code: int = 400


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        order = Order.objects.filter(payment_reference=reference).first()
        if not order:
            raise NotFoundError(
                "No order matches payment reference",
                error_code="ORDER_NOT_FOUND",
                details={"reference": reference},
            )
    """

    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class UnauthorizedError(BaseApplicationError):
    """
    Raised when the caller's identity cannot be established.

    Use for:
    - Inbound payment notifications with a missing or invalid signature
    - Requests that reach a service without an authenticated actor

    Note:
        Always logged as a security event. Never retried.
    """

    default_error_code: str = "UNAUTHORIZED"
    status_code: int = 401


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when user lacks permission for an operation.

    Use for:
    - A user who is neither buyer nor vendor on the order opening a dispute
    - A non-admin resolving a dispute
    - A vendor confirming delivery on the buyer's behalf

    Example:
        if not actor.is_platform_admin:
            raise PermissionDeniedError(
                "Admin access required",
                error_code="ADMIN_REQUIRED",
            )

    Note:
        For authentication failures (missing/invalid token), use DRF's
        AuthenticationFailed. Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when operation conflicts with current resource state.

    Use for:
    - Escrow transitions attempted from a state not valid for the event
    - A second active dispute for the same order
    - Concurrent modification detected on a user-initiated action

    Example:
        if escrow.status != EscrowStatus.PENDING_CONFIRMATION:
            raise ConflictError(
                "Escrow is not awaiting buyer confirmation",
                error_code="INVALID_STATE_TRANSITION",
                details={"current_status": escrow.status, "event": "confirm"},
            )

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
        The scheduler and the reconciler treat it as an expected outcome.
    """

    default_error_code: str = "CONFLICT"
    status_code: int = 409


class RateLimitError(BaseApplicationError):
    """
    Raised when rate limit is exceeded.

    Note:
        Include retry_after in details when possible to help clients.
        HTTP 429 Too Many Requests is the appropriate status.
    """

    default_error_code: str = "RATE_LIMIT_EXCEEDED"
    status_code: int = 429


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Payment provider HTTP failures
    - Network timeouts
    - Unexpected provider responses

    Note:
        Log the original error for debugging but don't expose
        internal details to clients in production.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = 502
