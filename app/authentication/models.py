"""
Authentication models.

This module defines the User model used by every settlement component:
- User: Custom user model with email-based authentication and a
  marketplace role

Related files:
    - managers.py: Custom user manager for email-based creation
    - permissions.py: DRF permission classes built on the role

Security:
    - User passwords hashed with Django's configured hasher
    - Staff accounts are always treated as platform admins
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """Marketplace role of a user."""

    BUYER = "buyer", "Buyer"
    VENDOR = "vendor", "Vendor"
    ADMIN = "admin", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        full_name: Display name used in notifications
        phone_number: Mobile money number (optional)
        role: Marketplace role (buyer, vendor, admin)
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        buyer = User.objects.create_user(email="buyer@example.com", password="pw")
        vendor = User.objects.create_user(
            email="vendor@example.com", password="pw", role=UserRole.VENDOR
        )
        admin = User.objects.create_superuser(email="ops@example.com", password="pw")
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    full_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Display name used in notifications",
    )

    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Mobile money phone number",
    )

    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.BUYER,
        db_index=True,
        help_text="Marketplace role used for authorization",
    )

    # Account status flags
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    # Timestamps
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        """Return the user's email as string representation."""
        return self.email

    def get_full_name(self):
        """Return the display name, falling back to the email."""
        return self.full_name or self.email

    def get_short_name(self):
        """Return the first word of the display name or the email local part."""
        if self.full_name:
            return self.full_name.split()[0]
        return self.email.split("@")[0]

    @property
    def is_platform_admin(self) -> bool:
        """Whether the user may resolve disputes and run admin operations."""
        return self.role == UserRole.ADMIN or self.is_staff

    @property
    def is_vendor(self) -> bool:
        return self.role == UserRole.VENDOR
