"""
Enums and provider status normalisation for payments.

Provider statuses are normalised once, at ingress, into
orders.constants.PaymentStatus. Anything the table does not know maps to
PENDING, so an unrecognised status can never complete or fail a payment.
"""

from django.db import models

from orders.constants import PaymentStatus


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        RECEIVED -> PROCESSED
        RECEIVED -> FAILED (provider redelivery retries)
        RECEIVED -> REJECTED (unknown reference or invalid notice)
    """

    RECEIVED = "received", "Received"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
    REJECTED = "rejected", "Rejected"


class NoticeSource(models.TextChoices):
    """Ingestion path a payment notice arrived through."""

    WEBHOOK = "webhook", "Webhook"
    POLL = "poll", "Poll"


PROVIDER_STATUS_MAP: dict[str, str] = {
    "pending": PaymentStatus.PENDING,
    "created": PaymentStatus.PENDING,
    "processing": PaymentStatus.PROCESSING,
    "in_progress": PaymentStatus.PROCESSING,
    "completed": PaymentStatus.COMPLETED,
    "success": PaymentStatus.COMPLETED,
    "successful": PaymentStatus.COMPLETED,
    "paid": PaymentStatus.COMPLETED,
    "failed": PaymentStatus.FAILED,
    "declined": PaymentStatus.FAILED,
    "error": PaymentStatus.FAILED,
    "cancelled": PaymentStatus.CANCELLED,
    "canceled": PaymentStatus.CANCELLED,
    "expired": PaymentStatus.CANCELLED,
}


def normalize_provider_status(raw: str | None) -> str:
    """Map a provider status string to a PaymentStatus value."""
    if not raw:
        return PaymentStatus.PENDING
    return PROVIDER_STATUS_MAP.get(str(raw).strip().lower(), PaymentStatus.PENDING)
