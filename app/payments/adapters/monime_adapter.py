"""
Monime API client.

MonimeClient is constructed explicitly (usually via from_settings()) and
handed to the components that need it. It owns one requests.Session with a
urllib3 retry adapter and must be closed when the owner is done with it;
it is also a context manager.

Configuration (via settings):
- MONIME_BASE_URL: API root (default: https://api.monime.io)
- MONIME_API_KEY / MONIME_SPACE_ID: Credentials sent on every call
- MONIME_WEBHOOK_SECRET: HMAC key for inbound notifications
- MONIME_ENVIRONMENT: sandbox | production
- MONIME_TIMEOUT_SECONDS: Per-request timeout (default: 30)
- MONIME_MAX_RETRIES: Transport-level retries for idempotent calls (default: 3)

Usage:
    from payments.adapters import MonimeClient

    with MonimeClient.from_settings() as client:
        payment = client.get_payment("FT_1A2B3C4D_1718000000000_X7Y8Z9")
        payment.normalized_status  # "completed"
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import TYPE_CHECKING

import requests
from django.conf import settings
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from payments.exceptions import (
    ExternalGatewayError,
    PaymentNotFoundError,
    WebhookSignatureError,
)
from payments.types import CreatePaymentParams, MonimePayment

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Monime-Signature"
SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """Signature header value for a raw body: 'sha256=<hex hmac>'."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_webhook_signature(secret: str, body: bytes, header: str | None) -> None:
    """
    Check the notification signature against the raw request body.

    Raises:
        WebhookSignatureError: Secret unset, header missing, or mismatch
    """
    if not secret:
        raise WebhookSignatureError(
            "Webhook secret is not configured",
            error_code="WEBHOOK_SECRET_MISSING",
        )
    if not header:
        raise WebhookSignatureError("Missing webhook signature")
    expected = compute_signature(secret, body)
    if not hmac.compare_digest(expected, header.strip()):
        raise WebhookSignatureError("Invalid webhook signature")


def _build_session(max_retries: int) -> requests.Session:
    session = requests.Session()
    # POST /v1/payments is not idempotent, so only GET is retried here.
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=0.5,
        status_forcelist=[408, 429, 500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class MonimeClient:
    """
    HTTP client for the Monime payment API.

    Methods:
        create_payment: POST /v1/payments
        get_payment: GET /v1/payments/{reference}
        verify_webhook_signature: HMAC-SHA256 check of an inbound body
        close: Release the underlying session
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        space_id: str,
        webhook_secret: str = "",
        environment: str = "sandbox",
        timeout: float = 30,
        max_retries: int = 3,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.space_id = space_id
        self.webhook_secret = webhook_secret
        self.environment = environment
        self.timeout = timeout
        self._session = session or _build_session(max_retries)
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "X-API-Key": api_key,
                "X-Space-ID": space_id,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        self._closed = False

        if not (api_key and space_id):
            logger.warning(
                "Monime credentials not fully configured",
                extra={"environment": environment},
            )

    @classmethod
    def from_settings(cls, session: requests.Session | None = None) -> MonimeClient:
        return cls(
            base_url=settings.MONIME_BASE_URL,
            api_key=settings.MONIME_API_KEY,
            space_id=settings.MONIME_SPACE_ID,
            webhook_secret=settings.MONIME_WEBHOOK_SECRET,
            environment=settings.MONIME_ENVIRONMENT,
            timeout=settings.MONIME_TIMEOUT_SECONDS,
            max_retries=settings.MONIME_MAX_RETRIES,
            session=session,
        )

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def close(self) -> None:
        if not self._closed:
            self._session.close()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> MonimeClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ==========================================================================
    # API calls
    # ==========================================================================

    def create_payment(self, params: CreatePaymentParams) -> MonimePayment:
        """
        Create a payment at Monime.

        Raises:
            ExternalGatewayError: Transport failure or non-2xx response
        """
        payload = params.to_payload(self.space_id, self.environment)
        data = self._request("POST", "/v1/payments", reference=params.reference, json=payload)
        return MonimePayment.from_response(data, reference=params.reference)

    def get_payment(self, reference: str) -> MonimePayment:
        """
        Fetch the current status of a payment.

        Raises:
            PaymentNotFoundError: Provider does not know the reference (404)
            ExternalGatewayError: Any other transport failure or non-2xx response
        """
        data = self._request("GET", f"/v1/payments/{reference}", reference=reference)
        return MonimePayment.from_response(data, reference=reference)

    def verify_webhook_signature(self, body: bytes, header: str | None) -> None:
        verify_webhook_signature(self.webhook_secret, body, header)

    # ==========================================================================
    # Internals
    # ==========================================================================

    def _request(self, method: str, path: str, reference: str, **kwargs) -> Any:
        if self._closed:
            raise RuntimeError("MonimeClient is closed")

        url = f"{self.base_url}{path}"
        started = time.monotonic()
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code == 404 and method == "GET":
                raise PaymentNotFoundError(
                    "Payment reference unknown to provider",
                    details={"reference": reference},
                ) from e
            logger.warning(
                f"Monime returned HTTP {status_code}",
                extra={"method": method, "path": path, "reference": reference},
            )
            raise ExternalGatewayError(
                f"Payment provider returned HTTP {status_code}",
                details={"status_code": status_code, "reference": reference},
            ) from e
        except requests.exceptions.ConnectionError as e:
            logger.warning(
                "Monime connection failed",
                extra={"method": method, "path": path, "reference": reference},
            )
            raise ExternalGatewayError(
                "Could not connect to payment provider",
                details={"reference": reference},
            ) from e
        except requests.exceptions.Timeout as e:
            raise ExternalGatewayError(
                "Payment provider request timed out",
                error_code="PAYMENT_GATEWAY_TIMEOUT",
                details={"reference": reference, "timeout": self.timeout},
            ) from e
        except requests.exceptions.RequestException as e:
            raise ExternalGatewayError(
                f"Payment provider request failed: {type(e).__name__}",
                details={"reference": reference},
            ) from e

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug(
            "Monime call completed",
            extra={
                "method": method,
                "path": path,
                "reference": reference,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalGatewayError(
                "Payment provider returned a non-JSON response",
                details={"reference": reference},
            ) from e
