"""
Django admin configuration for orders.

Orders are read-only in the admin: status and payment columns are only
written by the settlement engine.
"""

from django.contrib import admin

from orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        "order_number",
        "buyer",
        "vendor",
        "total_amount_cents",
        "currency",
        "status",
        "payment_status",
        "created_at",
    ]
    list_filter = ["status", "payment_status", "payment_provider"]
    search_fields = ["order_number", "payment_reference", "buyer__email", "vendor__email"]
    readonly_fields = [field.name for field in Order._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
