"""
Django admin configuration for escrows.

Escrows are read-only here. Status changes must go through EscrowLedger so
the conditional write and order mirroring are never bypassed.
"""

from django.contrib import admin

from escrow.models import Escrow


@admin.register(Escrow)
class EscrowAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "order",
        "status",
        "amount_cents",
        "currency",
        "confirmation_deadline",
        "release_reason",
        "created_at",
    ]
    list_filter = ["status", "release_reason", "refund_reason", "vendor_payout_status"]
    search_fields = ["id", "order__order_number", "payment_reference"]
    readonly_fields = [field.name for field in Escrow._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
