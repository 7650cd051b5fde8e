"""
Notification service layer.

Services:
    NotificationService: Notification creation and read status management

Functions:
    notify: Fire-and-forget wrapper used by the settlement components.
        Failures are logged and never propagated, so a broken notification
        can not roll back or fail a financial transition.

Usage:
    from notifications.services import NotificationService, notify

    notify(user.id, "Escrow released", "Funds were released to you", "escrow")

    result = NotificationService.mark_as_read(notification, user)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.utils import timezone

from core.services import BaseService, ServiceResult

from notifications.models import Notification, NotificationCategory

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)


class NotificationService(BaseService):
    """
    Service for notification operations.

    Methods:
        create_notification: Persist a notification for a user
        mark_as_read: Mark a single notification as read
        mark_all_as_read: Mark all of a user's notifications as read
    """

    @classmethod
    def create_notification(
        cls,
        recipient_id,
        title: str,
        message: str = "",
        category: str = NotificationCategory.SYSTEM,
        data: dict | None = None,
        idempotency_key: str | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create a new notification for a user.

        Error codes:
            INVALID_CATEGORY: category is not a NotificationCategory value
            DUPLICATE: a notification with this idempotency_key exists
        """
        if category not in NotificationCategory.values:
            return ServiceResult.failure(
                f"Unknown notification category: {category}",
                error_code="INVALID_CATEGORY",
            )

        try:
            # Savepoint so a duplicate key does not poison an outer transaction
            with transaction.atomic():
                notification = Notification.objects.create(
                    recipient_id=recipient_id,
                    title=title[:200],
                    message=message,
                    category=category,
                    data=data or {},
                    idempotency_key=idempotency_key,
                )
        except IntegrityError:
            cls.get_logger().info(
                "Duplicate notification prevented",
                extra={"idempotency_key": idempotency_key},
            )
            return ServiceResult.failure(
                "Notification already exists",
                error_code="DUPLICATE",
            )

        cls.get_logger().debug(
            "Notification created",
            extra={
                "notification_id": notification.pk,
                "recipient_id": recipient_id,
                "category": category,
            },
        )
        return ServiceResult.success(notification)

    @classmethod
    def mark_as_read(cls, notification: Notification, user: User) -> ServiceResult[Notification]:
        """
        Mark a notification as read. Idempotent.

        Error codes:
            NOT_OWNER: notification belongs to another user
        """
        if notification.recipient_id != user.pk:
            return ServiceResult.failure(
                "Notification does not belong to user",
                error_code="NOT_OWNER",
            )
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        """Mark every unread notification of the user as read."""
        count = Notification.objects.filter(recipient=user, is_read=False).update(
            is_read=True,
            read_at=timezone.now(),
            updated_at=timezone.now(),
        )
        return ServiceResult.success(count)


def notify(
    user_id,
    title: str,
    message: str,
    category: str = NotificationCategory.SYSTEM,
    data: dict | None = None,
    idempotency_key: str | None = None,
) -> None:
    """
    Send an in-app notification without ever raising.

    Args:
        user_id: Recipient primary key
        title: Short headline
        message: Body text
        category: NotificationCategory value
        data: Related identifiers
        idempotency_key: Optional deduplication key
    """
    try:
        result = NotificationService.create_notification(
            recipient_id=user_id,
            title=title,
            message=message,
            category=category,
            data=data,
            idempotency_key=idempotency_key,
        )
        if not result and result.error_code != "DUPLICATE":
            logger.warning(
                f"Notification not sent: {result.error}",
                extra={"user_id": str(user_id), "error_code": result.error_code},
            )
    except Exception:
        logger.exception(
            "Failed to send notification",
            extra={"user_id": str(user_id), "category": category, "title": title},
        )
