"""
Django admin configuration for disputes.

Resolution happens through the API so the frozen escrow is settled in the
same transaction; the admin is read-only.
"""

from django.contrib import admin

from disputes.models import Dispute


@admin.register(Dispute)
class DisputeAdmin(admin.ModelAdmin):
    list_display = [
        "id", "order", "reason", "status", "priority", "opened_by", "admin", "created_at"
    ]
    list_filter = ["status", "reason", "priority", "outcome"]
    search_fields = ["id", "order__order_number", "buyer__email", "vendor__email"]
    readonly_fields = [field.name for field in Dispute._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
