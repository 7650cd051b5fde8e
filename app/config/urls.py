"""
URL configuration for the settlement service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/orders/                - Order endpoints
        {id}/                      - Order detail with payment sub-record
    /api/v1/escrow/                - Escrow endpoints
        stats/                     - Count and total per status (admin)
        auto-release/              - Run a scheduler tick (admin)
        {id}/                      - Escrow detail
        orders/{order_id}/...      - Escrow by order, delivery, confirm, cancel
    /api/v1/payments/              - Payment endpoints
        webhooks/monime/           - Monime notifications (POST) / liveness (GET)
        initialize/                - Start a payment
        status/?reference=R        - Payment status
    /api/v1/disputes/              - Dispute endpoints
        stats/                     - Count per status (admin)
        {id}/review|resolve|close/ - Admin dispute actions
    /api/v1/notifications/         - In-app notifications for the current user

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("orders/", include("orders.urls")),
    path("escrow/", include("escrow.urls")),
    path("payments/", include("payments.urls")),
    path("disputes/", include("disputes.urls")),
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Settlement Admin"
admin.site.site_title = "Settlement Admin Portal"
admin.site.index_title = "Escrows, payments and disputes"
