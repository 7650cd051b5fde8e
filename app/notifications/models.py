"""
Notification model.

Design Decisions:
    - Notification inherits from BaseModel (timestamps, ordering)
    - Recipient uses CASCADE (notifications belong to the user)
    - idempotency_key deduplicates messages raised by retried work
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel


class NotificationCategory(models.TextChoices):
    """Categories for grouping settlement notifications."""

    PAYMENT = "payment", "Payment"
    ESCROW = "escrow", "Escrow"
    ORDER = "order", "Order"
    DISPUTE = "dispute", "Dispute"
    SYSTEM = "system", "System"


class Notification(BaseModel):
    """
    A single in-app notification for a user.

    Fields:
        recipient: User receiving the notification
        category: NotificationCategory value
        title: Short headline
        message: Notification body
        data: Identifiers of the related records (order_id, escrow_id, ...)
        is_read: Whether the recipient has read it
        read_at: When it was marked read
        idempotency_key: Optional unique key preventing duplicates
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        help_text="User receiving the notification",
    )

    category = models.CharField(
        max_length=20,
        choices=NotificationCategory.choices,
        default=NotificationCategory.SYSTEM,
        db_index=True,
        help_text="Notification category",
    )

    title = models.CharField(
        max_length=200,
        help_text="Short headline",
    )

    message = models.TextField(
        blank=True,
        default="",
        help_text="Notification body",
    )

    data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Identifiers of related records",
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the recipient has read the notification",
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the notification was marked read",
    )

    idempotency_key = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Optional key preventing duplicate notifications",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        indexes = [
            models.Index(
                fields=["recipient", "is_read", "created_at"],
                name="notif_recipient_read_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Notification({self.recipient_id}, {self.category}, {self.title!r})"
