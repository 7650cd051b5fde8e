"""
Factory Boy factories for order test data.

Usage:
    from orders.tests.factories import OrderFactory

    order = OrderFactory(total_amount_cents=250_000)
"""

import factory
from django.utils import timezone

from authentication.tests.factories import BuyerFactory, VendorFactory
from orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from orders.models import Order


class OrderFactory(factory.django.DjangoModelFactory):
    """
    Factory for orders awaiting payment.

    The payment reference is set so reconciliation tests can correlate
    notices without going through payment initialisation.
    """

    class Meta:
        model = Order
        skip_postgeneration_save = True

    order_number = factory.Sequence(lambda n: f"FT-20250101-{n:06d}")
    buyer = factory.SubFactory(BuyerFactory)
    vendor = factory.SubFactory(VendorFactory)
    total_amount_cents = 100_000
    currency = "SLE"
    status = OrderStatus.PENDING_PAYMENT

    payment_method = PaymentMethod.ORANGE_MONEY
    payment_reference = factory.Sequence(lambda n: f"FT_TEST{n:04d}_1718000000000_ABC123")
    payment_status = PaymentStatus.PENDING
    payment_amount_cents = factory.SelfAttribute("total_amount_cents")
    payment_currency = factory.SelfAttribute("currency")
    payment_initiated_at = factory.LazyFunction(timezone.now)
