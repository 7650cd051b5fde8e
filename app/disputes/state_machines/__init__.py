"""
State machine enums for the Dispute model.
"""

from disputes.state_machines.states import (
    ACTIVE_DISPUTE_STATUSES,
    RESOLVED_DISPUTE_STATUSES,
    DisputeOutcome,
    DisputePriority,
    DisputeReason,
    DisputeStatus,
)

__all__ = [
    "ACTIVE_DISPUTE_STATUSES",
    "DisputeOutcome",
    "DisputePriority",
    "DisputeReason",
    "DisputeStatus",
    "RESOLVED_DISPUTE_STATUSES",
]
