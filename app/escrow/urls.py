"""
URL configuration for the escrow API.

Routes:
    /                                   - List escrows (GET)
    /stats/                             - Stats (GET, admin)
    /auto-release/                      - Run scheduler tick (POST, admin)
    /{id}/                              - Escrow detail (GET)
    /orders/{order_id}/                 - Escrow by order (GET)
    /orders/{order_id}/mark-delivered/  - Mark delivered (POST)
    /orders/{order_id}/confirm-delivery/ - Confirm delivery (POST)
    /orders/{order_id}/cancel/          - Cancel unfunded escrow (POST)
"""

from django.urls import path
from rest_framework.routers import SimpleRouter

from escrow import views

router = SimpleRouter()
router.register(r"", views.EscrowViewSet, basename="escrow")

app_name = "escrow"

urlpatterns = [
    path("orders/<uuid:order_id>/", views.escrow_for_order, name="escrow-by-order"),
    path(
        "orders/<uuid:order_id>/mark-delivered/",
        views.mark_delivered,
        name="escrow-mark-delivered",
    ),
    path(
        "orders/<uuid:order_id>/confirm-delivery/",
        views.confirm_delivery,
        name="escrow-confirm-delivery",
    ),
    path("orders/<uuid:order_id>/cancel/", views.cancel, name="escrow-cancel"),
] + router.urls
