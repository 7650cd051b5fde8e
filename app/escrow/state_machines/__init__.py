"""
State machine enums and transition table for the escrow ledger.

This module defines the state enums used by the Escrow model with django-fsm.
"""

from escrow.state_machines.states import (
    DISPUTABLE_ESCROW_STATUSES,
    ESCROW_TRANSITIONS,
    TERMINAL_ESCROW_STATUSES,
    EscrowEvent,
    EscrowStatus,
    PayoutStatus,
    RefundReason,
    ReleaseReason,
    TransitionRule,
)

__all__ = [
    "DISPUTABLE_ESCROW_STATUSES",
    "ESCROW_TRANSITIONS",
    "EscrowEvent",
    "EscrowStatus",
    "PayoutStatus",
    "RefundReason",
    "ReleaseReason",
    "TERMINAL_ESCROW_STATUSES",
    "TransitionRule",
]
