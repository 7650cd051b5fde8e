"""
Django admin configuration for payment webhook records.

WebhookEvent rows are an audit trail and are read-only.
"""

from django.contrib import admin

from payments.models import WebhookEvent


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = [
        "event_type",
        "reference",
        "status",
        "delivery_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type"]
    search_fields = ["reference", "event_key"]
    readonly_fields = [field.name for field in WebhookEvent._meta.fields]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False
