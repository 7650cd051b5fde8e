"""
Escrow-specific exceptions.

Exception Hierarchy:
    ConflictError
    └── InvalidStateTransitionError - Event not legal from the current status
    NotFoundError
    └── EscrowNotFoundError - No escrow for the id or order
    ValidationError
    └── InvalidSettlementAmountError - Amount outside (0, escrow.amount]

A lost race is not an exception: EscrowLedger returns a TransitionResult
with applied=False instead.
"""

from core.exceptions import ConflictError, NotFoundError, ValidationError


class InvalidStateTransitionError(ConflictError):
    """
    Raised when an escrow event is attempted from a status that does not allow it.

    Example:
        raise InvalidStateTransitionError(
            "Cannot confirm_by_buyer escrow in status released_to_vendor",
            details={"current_status": "released_to_vendor", "event": "confirm_by_buyer"},
        )
    """

    default_error_code = "INVALID_STATE_TRANSITION"


class EscrowNotFoundError(NotFoundError):
    default_error_code = "ESCROW_NOT_FOUND"


class InvalidSettlementAmountError(ValidationError):
    """Raised when a release/refund amount is not within (0, escrow amount]."""

    default_error_code = "INVALID_SETTLEMENT_AMOUNT"
