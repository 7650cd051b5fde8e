"""
URL configuration for the order read API.

Routes:
    /{order_id}/ - Order detail (GET)
"""

from django.urls import path

from orders.views import order_detail

app_name = "orders"

urlpatterns = [
    path("<uuid:order_id>/", order_detail, name="order-detail"),
]
