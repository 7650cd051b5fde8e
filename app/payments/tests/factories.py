"""
Test data for payment tests: provider payloads and webhook records.

Usage:
    from payments.tests.factories import provider_payment, webhook_body

    client.get_payment.return_value = provider_payment("completed")
"""

import json

import factory

from payments.models import WebhookEvent
from payments.types import MonimePayment

REFERENCE = "FT_TESTREF1_1718000000000_ABC123"


def provider_payment(status="pending", reference=REFERENCE, **overrides):
    """MonimePayment as the provider would report it."""
    fields = {
        "payment_id": "pay_123",
        "reference": reference,
        "status": status,
        "amount_cents": 100_000,
        "currency": "SLE",
        "transaction_id": "TX-1" if status == "completed" else "",
    }
    fields.update(overrides)
    return MonimePayment(**fields)


def webhook_body(reference=REFERENCE, status="completed", amount=100_000, **data):
    """Raw notification body, as bytes."""
    payload = {
        "event": f"payment.{status}",
        "data": {
            "payment_id": "pay_123",
            "reference": reference,
            "status": status,
            "amount": amount,
            "currency": "SLE",
            "transaction_id": "TX-1",
            **data,
        },
    }
    return json.dumps(payload).encode()


class WebhookEventFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = WebhookEvent

    event_key = factory.Sequence(lambda n: f"{n:064x}")
    event_type = "payment.completed"
    reference = REFERENCE
    payload = factory.LazyAttribute(lambda o: {"event": o.event_type, "data": {"reference": o.reference}})
