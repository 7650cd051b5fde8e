"""
Factory Boy factories for notification test data.
"""

import factory

from authentication.tests.factories import UserFactory
from notifications.models import Notification, NotificationCategory


class NotificationFactory(factory.django.DjangoModelFactory):
    """Factory for unread escrow notifications."""

    class Meta:
        model = Notification
        skip_postgeneration_save = True

    recipient = factory.SubFactory(UserFactory)
    category = NotificationCategory.ESCROW
    title = factory.Sequence(lambda n: f"Notification {n}")
    message = "Escrow status changed"
    data = factory.LazyFunction(dict)
    is_read = False
