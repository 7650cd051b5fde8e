"""
Authentication application.

Provides the email-based User model and the marketplace roles the
settlement engine authorizes against (buyer, vendor, admin). Login,
registration and token issuance are handled outside this service.

Usage:
    from authentication.models import User, UserRole
    from authentication.permissions import IsPlatformAdmin
"""
