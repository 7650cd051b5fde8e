"""
Dispute-specific exceptions.

Exception Hierarchy:
    NotFoundError
    └── DisputeNotFoundError
    ConflictError
    ├── ActiveDisputeExistsError - The order already has an open dispute
    └── DisputeStateError - Dispute or escrow not in a state allowing the action
"""

from core.exceptions import ConflictError, NotFoundError


class DisputeNotFoundError(NotFoundError):
    default_error_code = "DISPUTE_NOT_FOUND"


class ActiveDisputeExistsError(ConflictError):
    default_error_code = "ACTIVE_DISPUTE_EXISTS"


class DisputeStateError(ConflictError):
    """
    Raised when a dispute action does not fit the current state.

    Example:
        raise DisputeStateError(
            "Only open or under-review disputes can be resolved",
            details={"current_status": dispute.status},
        )
    """

    default_error_code = "INVALID_DISPUTE_STATE"
