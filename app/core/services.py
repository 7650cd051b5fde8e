"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures at an integration edge
      (provider rejected a payment session, one scheduler candidate failed)
    - Exceptions: Use for domain errors (core.exceptions hierarchy)

Usage:
    from core.services import BaseService, ServiceResult

    class PaymentInitiationService(BaseService):
        @classmethod
        def initialize(cls, order, actor, method) -> ServiceResult[PaymentSession]:
            with cls.atomic() as unit:
                ...
            return ServiceResult.success(session)

    # In view
    result = PaymentInitiationService.initialize(order, request.user, method)
    if result:
        return Response(result.data.as_dict(), status=201)
    return Response(result.to_response(), status=502)

Related:
    - core.exceptions: Domain error hierarchy
    - core.transactions: AtomicUnit returned by BaseService.atomic()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from core.exceptions import BaseApplicationError
from core.transactions import atomic_unit

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

    from core.transactions import AtomicUnit

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures

    Usage:
        result = PaymentInitiationService.initialize(order, buyer, method)
        if result.success:
            session = result.data
        else:
            logger.warning(f"{result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Create a failed result from an exception.

        Application errors keep their own error code; anything else falls
        back to the exception class name.

        Args:
            exc: The caught exception
            error_code: Optional error code override

        Returns:
            ServiceResult with error details from exception
        """
        if isinstance(exc, BaseApplicationError):
            return cls(
                success=False,
                error=exc.message,
                error_code=error_code or exc.error_code,
            )
        return cls(
            success=False,
            error=str(exc),
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Returns:
            Dict with success status and data or error details
        """
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {
            "success": False,
            "error": self.error,
        }
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Explicit transactional units
    - Exception-to-result conversion

    Design Notes:
        - Use @classmethod (no instance state); collaborators that own
          resources (HTTP clients) are passed in explicitly
        - Functions that mutate Escrow/Order/Dispute take an AtomicUnit
        - Raise core.exceptions for domain failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[AtomicUnit, None, None]:
        """
        Open a database transaction and yield its AtomicUnit.

        Example:
            with cls.atomic() as unit:
                order = Order.objects.create(...)
                EscrowLedger.open_escrow(unit, order)
                # If escrow creation fails, the order is rolled back too
        """
        with atomic_unit() as unit:
            yield unit

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Convert exception to ServiceResult with logging.

        Args:
            exc: The caught exception
            context: Additional context for logging
            log_level: Logging level (default ERROR)

        Returns:
            ServiceResult with error details
        """
        logger = cls.get_logger()
        message = f"{context}: {exc}" if context else str(exc)
        logger.log(log_level, message, exc_info=log_level >= logging.ERROR)
        return ServiceResult.from_exception(exc)

    @classmethod
    def validate_required(cls, **kwargs) -> dict[str, list[str]]:
        """
        Collect field errors for required values that are None or blank.

        Returns:
            Mapping of field name to error list (empty when all present)

        Example:
            errors = cls.validate_required(reason=reason, description=description)
            if errors:
                raise ValidationError("Required fields missing", details=errors)
        """
        errors: dict[str, list[str]] = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]
        return errors
