"""
Factory Boy factories for escrow test data.

Escrows built here bypass EscrowLedger, so the linked order status is not
mirrored. Use the ledger when a test depends on the order status.

Usage:
    from escrow.tests.factories import EscrowFactory

    escrow = EscrowFactory(delivered=True)
"""

from datetime import timedelta

import factory
from django.utils import timezone

from escrow.models import Escrow
from escrow.state_machines import EscrowStatus
from orders.tests.factories import OrderFactory


class EscrowFactory(factory.django.DjangoModelFactory):
    """Factory for escrows; pending by default."""

    class Meta:
        model = Escrow
        skip_postgeneration_save = True

    order = factory.SubFactory(OrderFactory)
    buyer = factory.LazyAttribute(lambda o: o.order.buyer)
    vendor = factory.LazyAttribute(lambda o: o.order.vendor)
    amount_cents = factory.LazyAttribute(lambda o: o.order.total_amount_cents)
    currency = factory.LazyAttribute(lambda o: o.order.currency)
    status = EscrowStatus.PENDING
    auto_release_after_days = 3

    class Params:
        funded = factory.Trait(
            status=EscrowStatus.FUNDED,
            funded_at=factory.LazyFunction(timezone.now),
            auto_release_date=factory.LazyAttribute(
                lambda o: o.funded_at + timedelta(days=o.auto_release_after_days)
            ),
        )
        delivered = factory.Trait(
            status=EscrowStatus.PENDING_CONFIRMATION,
            funded_at=factory.LazyFunction(lambda: timezone.now() - timedelta(days=1)),
            delivered_at=factory.LazyFunction(timezone.now),
            confirmation_deadline=factory.LazyAttribute(
                lambda o: o.delivered_at + timedelta(days=o.auto_release_after_days)
            ),
        )
