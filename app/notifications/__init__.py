"""
Notifications app for in-app notifications raised by the settlement engine.

This app provides:
- Notification model storing one message per recipient
- notify(): the fire-and-forget collaborator interface used by the order
  synchronizer, the reconciler and the dispute controller
- REST API for listing notifications and marking them read

Push/email delivery is handled by another system that consumes these rows.

Usage:
    from notifications.services import notify

    notify(order.buyer_id, "Payment received", "Your payment is confirmed", "payment")
"""
