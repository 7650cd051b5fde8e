"""
Django admin configuration for notifications.
"""

from django.contrib import admin

from notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-only view of notifications for support."""

    list_display = ["title", "recipient", "category", "is_read", "created_at"]
    list_filter = ["category", "is_read", "created_at"]
    search_fields = ["title", "recipient__email"]
    readonly_fields = [
        "recipient",
        "category",
        "title",
        "message",
        "data",
        "is_read",
        "read_at",
        "idempotency_key",
        "created_at",
        "updated_at",
    ]
