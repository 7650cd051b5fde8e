"""
URL configuration for the payments app.

Routes:
    - GET/POST /webhooks/monime/ - Monime notification endpoint (GET is a liveness check)
    - POST /initialize/ - Start a payment
    - GET /status/?reference=R - Payment status

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments import views
from payments.webhooks import monime_webhook

app_name = "payments"

urlpatterns = [
    path("webhooks/monime/", monime_webhook, name="monime_webhook"),
    path("initialize/", views.initialize_payment, name="initialize"),
    path("status/", views.payment_status, name="status"),
]
