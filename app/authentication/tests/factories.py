"""
Factory Boy factories for user test data.

Usage:
    from authentication.tests.factories import (
        AdminFactory,
        BuyerFactory,
        VendorFactory,
    )

    buyer = BuyerFactory()
    vendor = VendorFactory(full_name="Kadie Stores")
"""

import factory

from authentication.models import UserRole


class UserFactory(factory.django.DjangoModelFactory):
    """Factory for creating User instances (buyer role by default)."""

    class Meta:
        model = "authentication.User"
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Sequence(lambda n: f"User {n}")
    password = factory.PostGenerationMethodCall("set_password", "testpass123")
    role = UserRole.BUYER
    is_active = True


class BuyerFactory(UserFactory):
    email = factory.Sequence(lambda n: f"buyer{n}@example.com")
    role = UserRole.BUYER


class VendorFactory(UserFactory):
    email = factory.Sequence(lambda n: f"vendor{n}@example.com")
    role = UserRole.VENDOR


class AdminFactory(UserFactory):
    email = factory.Sequence(lambda n: f"admin{n}@example.com")
    role = UserRole.ADMIN
