"""
WebhookEvent model: audit record of inbound provider notifications.

Each distinct notification body is stored once, keyed by the SHA-256 of the
raw body; redeliveries increment delivery_count. Idempotency of the payment
itself does not depend on this table: the reconciler short-circuits on the
order's terminal payment status.

Usage:
    from payments.models import WebhookEvent

    event = WebhookEvent.record(hash_bytes(body), "payment.completed", reference, payload)
    event.mark(WebhookEventStatus.PROCESSED)
"""

from __future__ import annotations

from django.db import models
from django.db.models import F
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.constants import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    One distinct inbound notification body.

    Fields:
        event_key: SHA-256 hex digest of the raw body (unique)
        event_type: Provider event name (e.g. 'payment.completed')
        reference: Payment reference carried by the notification
        payload: Decoded body
        status: Processing outcome of the latest delivery
        delivery_count: Number of times this exact body was received
        error_message: Error details if processing failed or was rejected
    """

    event_key = models.CharField(
        max_length=64,
        unique=True,
        help_text="SHA-256 of the raw notification body",
    )

    event_type = models.CharField(max_length=100, blank=True, default="")

    reference = models.CharField(max_length=100, blank=True, default="", db_index=True)

    payload = models.JSONField(default=dict)

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.RECEIVED,
        db_index=True,
    )

    delivery_count = models.PositiveIntegerField(default=1)

    processed_at = models.DateTimeField(null=True, blank=True)

    error_message = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="webhook_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.event_type}, {self.reference}, {self.status})"

    @classmethod
    def record(cls, event_key: str, event_type: str, reference: str, payload: dict) -> WebhookEvent:
        """Store a delivery; repeated bodies bump delivery_count."""
        event, created = cls.objects.get_or_create(
            event_key=event_key,
            defaults={
                "event_type": event_type,
                "reference": reference,
                "payload": payload,
            },
        )
        if not created:
            cls.objects.filter(pk=event.pk).update(
                delivery_count=F("delivery_count") + 1,
                updated_at=timezone.now(),
            )
            event.refresh_from_db(fields=["delivery_count"])
        return event

    def mark(self, status: str, error_message: str = "") -> None:
        self.status = status
        self.error_message = error_message
        if status == WebhookEventStatus.PROCESSED:
            self.processed_at = timezone.now()
        self.save(update_fields=["status", "error_message", "processed_at", "updated_at"])
