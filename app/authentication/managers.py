"""
Manager and queryset for the marketplace User model.

Users log in with their email address. The role decides what a user may do
in settlement flows; staff accounts are always treated as admins.
"""

from django.contrib.auth.models import BaseUserManager
from django.db import models


class UserQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def platform_admins(self):
        """Active users allowed to review and resolve disputes."""
        return self.active().filter(models.Q(role="admin") | models.Q(is_staff=True))


class UserManager(BaseUserManager.from_queryset(UserQuerySet)):
    """
    Creates users keyed by email.

    Usage:
        buyer = User.objects.create_user(email="buyer@example.com", password="pw")
        vendor = User.objects.create_user(email="shop@example.com", role="vendor")
        reviewers = User.objects.platform_admins()
    """

    def create_user(self, email, password=None, **extra_fields):
        """
        Create a user; without a password the account cannot log in locally
        (tokens come from the marketplace's auth service).

        Raises:
            ValueError: Missing email or unknown role
        """
        if not email:
            raise ValueError("Users must have an email address")

        role = extra_fields.setdefault("role", "buyer")
        valid_roles = {value for value, _ in self.model._meta.get_field("role").choices}
        if role not in valid_roles:
            raise ValueError(f"Unknown role: {role}")

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", "admin")
        extra_fields["is_staff"] = True
        extra_fields["is_superuser"] = True
        return self.create_user(email, password, **extra_fields)
