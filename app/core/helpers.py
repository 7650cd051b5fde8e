"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Random token generation (payment reference suffixes)
- Digest computation (webhook body fingerprints)
- HTTP request helpers (client IP extraction for security logs)

Usage:
    from core.helpers import generate_token, hash_bytes, get_client_ip

    suffix = generate_token(3)          # 6 hex characters
    key = hash_bytes(request.body)      # sha256 hex digest
    ip = get_client_ip(request)
"""

from __future__ import annotations

import hashlib
import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.http import HttpRequest


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)

    Returns:
        Hexadecimal token string
    """
    return secrets.token_hex(length)


def hash_bytes(value: bytes, algorithm: str = "sha256") -> str:
    """
    Hash raw bytes using the specified algorithm.

    Args:
        value: Bytes to hash
        algorithm: Hash algorithm name accepted by hashlib.new

    Returns:
        Hexadecimal hash string
    """
    hasher = hashlib.new(algorithm)
    hasher.update(value)
    return hasher.hexdigest()


def get_client_ip(request: HttpRequest) -> str:
    """
    Extract client IP from request, handling proxies.

    Checks X-Forwarded-For header for proxy chains.

    Args:
        request: Django HTTP request

    Returns:
        Client IP address string
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # First entry is the original client
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")
