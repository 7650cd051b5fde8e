"""
Inbound payment notifications from Monime.

Usage:
    # In urls.py
    from payments.webhooks import monime_webhook

    urlpatterns = [
        path("webhooks/monime/", monime_webhook, name="monime_webhook"),
    ]
"""

from payments.webhooks.views import monime_webhook

__all__ = ["monime_webhook"]
