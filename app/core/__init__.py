"""
Core Application - Infrastructure & Base Classes

Shared building blocks for the settlement apps (orders, escrow, payments,
disputes, notifications). No business rules live here.

Models (import from core.models / core.model_mixins):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Transactions (import from core.transactions):
    - AtomicUnit / atomic_unit: Explicit transaction handle for mutations

Exceptions (import from core.exceptions):
    - BaseApplicationError and its HTTP-mapped subclasses

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

from .exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    UnauthorizedError,
    ValidationError,
)
from .services import BaseService, ServiceResult
from .transactions import AtomicUnit, TransactionRequiredError, atomic_unit

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Transactions
    "AtomicUnit",
    "TransactionRequiredError",
    "atomic_unit",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "PermissionDeniedError",
    "ConflictError",
    "RateLimitError",
    "ExternalServiceError",
]
