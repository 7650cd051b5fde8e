"""
State enums and the transition table for the escrow ledger.

The table below is the single definition of which escrow events are legal
from which statuses. Escrow's django-fsm transition decorators are built
from ESCROW_TRANSITIONS, so the model cannot drift from it.

Escrow States:
    pending -> funded -> pending_confirmation -> released_to_vendor
    pending -> cancelled
    funded/pending_confirmation -> disputed -> released_to_vendor
    funded/pending_confirmation -> disputed -> refunded_to_buyer

Terminal states: RELEASED_TO_VENDOR, REFUNDED_TO_BUYER, CANCELLED
"""

from __future__ import annotations

from dataclasses import dataclass

from django.db import models


class EscrowStatus(models.TextChoices):
    """
    States for the Escrow model lifecycle.

    Terminal states never transition again; settled escrows are kept
    for audit and never deleted.
    """

    PENDING = "pending", "Pending"
    FUNDED = "funded", "Funded"
    PENDING_CONFIRMATION = "pending_confirmation", "Pending Confirmation"
    RELEASED_TO_VENDOR = "released_to_vendor", "Released to Vendor"
    REFUNDED_TO_BUYER = "refunded_to_buyer", "Refunded to Buyer"
    DISPUTED = "disputed", "Disputed"
    CANCELLED = "cancelled", "Cancelled"


class EscrowEvent(models.TextChoices):
    """Events that advance an escrow. Values match the model method names."""

    FUND = "fund", "Funds confirmed"
    CANCEL = "cancel", "Cancelled before funding"
    MARK_DELIVERED = "mark_delivered", "Delivery marked"
    CONFIRM_BY_BUYER = "confirm_by_buyer", "Buyer confirmed"
    AUTO_RELEASE = "auto_release", "Confirmation deadline elapsed"
    FREEZE = "freeze", "Dispute opened"
    RELEASE_ON_DISPUTE = "release_on_dispute", "Dispute resolved for vendor"
    REFUND_ON_DISPUTE = "refund_on_dispute", "Dispute resolved for buyer"


class ReleaseReason(models.TextChoices):
    BUYER_APPROVAL = "buyer_approval", "Buyer Approval"
    AUTO_RELEASE = "auto_release", "Auto Release"
    # Reserved: no ledger transition records it yet
    ADMIN_RELEASE = "admin_release", "Admin Release"
    DISPUTE_RESOLUTION = "dispute_resolution", "Dispute Resolution"


class RefundReason(models.TextChoices):
    DISPUTE_RESOLUTION = "dispute_resolution", "Dispute Resolution"


class PayoutStatus(models.TextChoices):
    """
    Bookkeeping status of the vendor payout recorded on release.

    State Flow:
        PENDING -> COMPLETED
        PENDING -> FAILED
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


@dataclass(frozen=True)
class TransitionRule:
    """Legal source statuses for an event and the status it produces."""

    sources: tuple[str, ...]
    target: str


ESCROW_TRANSITIONS: dict[str, TransitionRule] = {
    EscrowEvent.FUND: TransitionRule(
        sources=(EscrowStatus.PENDING,),
        target=EscrowStatus.FUNDED,
    ),
    EscrowEvent.CANCEL: TransitionRule(
        sources=(EscrowStatus.PENDING,),
        target=EscrowStatus.CANCELLED,
    ),
    EscrowEvent.MARK_DELIVERED: TransitionRule(
        sources=(EscrowStatus.FUNDED,),
        target=EscrowStatus.PENDING_CONFIRMATION,
    ),
    EscrowEvent.CONFIRM_BY_BUYER: TransitionRule(
        sources=(EscrowStatus.PENDING_CONFIRMATION,),
        target=EscrowStatus.RELEASED_TO_VENDOR,
    ),
    EscrowEvent.AUTO_RELEASE: TransitionRule(
        sources=(EscrowStatus.PENDING_CONFIRMATION,),
        target=EscrowStatus.RELEASED_TO_VENDOR,
    ),
    EscrowEvent.FREEZE: TransitionRule(
        sources=(EscrowStatus.FUNDED, EscrowStatus.PENDING_CONFIRMATION),
        target=EscrowStatus.DISPUTED,
    ),
    EscrowEvent.RELEASE_ON_DISPUTE: TransitionRule(
        sources=(EscrowStatus.DISPUTED,),
        target=EscrowStatus.RELEASED_TO_VENDOR,
    ),
    EscrowEvent.REFUND_ON_DISPUTE: TransitionRule(
        sources=(EscrowStatus.DISPUTED,),
        target=EscrowStatus.REFUNDED_TO_BUYER,
    ),
}

TERMINAL_ESCROW_STATUSES = frozenset(
    {
        EscrowStatus.RELEASED_TO_VENDOR,
        EscrowStatus.REFUNDED_TO_BUYER,
        EscrowStatus.CANCELLED,
    }
)

# A dispute may only be opened while funds are actually held.
DISPUTABLE_ESCROW_STATUSES = frozenset(ESCROW_TRANSITIONS[EscrowEvent.FREEZE].sources)


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
