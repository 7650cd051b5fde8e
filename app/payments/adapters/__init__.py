"""
Payment provider adapters.

All calls to Monime go through MonimeClient so that timeouts, retries,
error translation and signature checks are handled in one place.

Usage:
    from payments.adapters import MonimeClient

    with MonimeClient.from_settings() as client:
        payment = client.get_payment(reference)
"""

from payments.adapters.monime_adapter import (
    SIGNATURE_HEADER,
    MonimeClient,
    compute_signature,
    verify_webhook_signature,
)

__all__ = [
    "SIGNATURE_HEADER",
    "MonimeClient",
    "compute_signature",
    "verify_webhook_signature",
]
