"""
State enums for the Dispute model.

Dispute States:
    open -> under_review -> resolved_buyer / resolved_vendor -> closed
    open -> resolved_buyer / resolved_vendor (admin resolves directly)

Active states (at most one dispute per order): OPEN, UNDER_REVIEW
"""

from django.db import models


class DisputeStatus(models.TextChoices):
    OPEN = "open", "Open"
    UNDER_REVIEW = "under_review", "Under Review"
    RESOLVED_BUYER = "resolved_buyer", "Resolved for Buyer"
    RESOLVED_VENDOR = "resolved_vendor", "Resolved for Vendor"
    CLOSED = "closed", "Closed"


class DisputeReason(models.TextChoices):
    QUALITY_ISSUES = "quality-issues", "Quality Issues"
    WRONG_ITEM = "wrong-item", "Wrong Item"
    MISSING_ITEM = "missing-item", "Missing Item"
    DAMAGED = "damaged", "Damaged"
    LATE_DELIVERY = "late-delivery", "Late Delivery"
    OTHER = "other", "Other"


class DisputeOutcome(models.TextChoices):
    """Party an admin resolution favours."""

    BUYER = "buyer", "Buyer"
    VENDOR = "vendor", "Vendor"


class DisputePriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


ACTIVE_DISPUTE_STATUSES = (DisputeStatus.OPEN, DisputeStatus.UNDER_REVIEW)
RESOLVED_DISPUTE_STATUSES = (DisputeStatus.RESOLVED_BUYER, DisputeStatus.RESOLVED_VENDOR)


__all__ = [
    "ACTIVE_DISPUTE_STATUSES",
    "DisputeOutcome",
    "DisputePriority",
    "DisputeReason",
    "DisputeStatus",
    "RESOLVED_DISPUTE_STATUSES",
]
