"""
Typed payloads exchanged with the payment provider.

Provider JSON is parsed into these dataclasses at the boundary; nothing past
the adapter or the webhook view handles raw dicts.

Types:
    PaymentNotice: Normalised payment signal (webhook or poll) fed to the reconciler
    MonimeWebhookEvent: Parsed inbound notification body
    MonimePayment: Parsed GET /v1/payments/{reference} response
    CreatePaymentParams: Input for POST /v1/payments
    PaymentSession: Result of a created payment
    ReconciliationResult: Outcome of applying one notice

Amounts are integers in minor units on both sides of the wire.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from orders.constants import PaymentMethod

from payments.constants import NoticeSource, normalize_provider_status
from payments.exceptions import PaymentValidationError

if TYPE_CHECKING:
    from typing import Any


MOBILE_MONEY_METHODS = frozenset(
    {
        PaymentMethod.ORANGE_MONEY,
        PaymentMethod.AFRIMONEY,
        PaymentMethod.AFRICELL_MONEY,
    }
)


def parse_amount(value: Any) -> int | None:
    """Accept integers (or integral floats/strings); None when absent."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise PaymentValidationError("Invalid amount", details={"amount": value})
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise PaymentValidationError("Invalid amount", details={"amount": value}) from None
    if number < 0 or not number.is_integer():
        raise PaymentValidationError("Invalid amount", details={"amount": value})
    return int(number)


@dataclass(frozen=True)
class PaymentNotice:
    """
    A payment status signal, normalised.

    Attributes:
        source: NoticeSource the notice came through
        reference: Order payment reference (idempotency key)
        status: Normalised PaymentStatus value
        provider_status: Status string exactly as the provider sent it
    """

    source: str
    reference: str
    status: str
    provider_status: str = ""
    event: str = ""
    transaction_id: str = ""
    payment_id: str = ""
    amount_cents: int | None = None
    currency: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MonimeWebhookEvent:
    """
    Inbound notification body.

    Shape:
        {"event": str, "data": {"payment_id", "reference", "status",
         "amount", "currency", "transaction_id", "metadata"}}
    """

    event: str
    reference: str
    status: str
    payment_id: str = ""
    amount_cents: int | None = None
    currency: str = ""
    transaction_id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> MonimeWebhookEvent:
        """
        Validate and parse a decoded notification body.

        Raises:
            PaymentValidationError: Body does not match the expected shape
        """
        if not isinstance(payload, dict):
            raise PaymentValidationError("Notification body must be a JSON object")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise PaymentValidationError("Notification is missing its data object")

        reference = data.get("reference")
        if not reference or not isinstance(reference, str):
            raise PaymentValidationError(
                "Notification is missing the payment reference",
                details={"event": payload.get("event")},
            )

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            metadata = {}

        return cls(
            event=str(payload.get("event") or ""),
            reference=reference,
            status=str(data.get("status") or ""),
            payment_id=str(data.get("payment_id") or data.get("id") or ""),
            amount_cents=parse_amount(data.get("amount")),
            currency=str(data.get("currency") or "").upper(),
            transaction_id=str(data.get("transaction_id") or ""),
            metadata=metadata,
        )

    def to_notice(self) -> PaymentNotice:
        return PaymentNotice(
            source=NoticeSource.WEBHOOK,
            reference=self.reference,
            status=normalize_provider_status(self.status),
            provider_status=self.status,
            event=self.event,
            transaction_id=self.transaction_id,
            payment_id=self.payment_id,
            amount_cents=self.amount_cents,
            currency=self.currency,
            metadata=self.metadata,
        )


@dataclass(frozen=True)
class MonimePayment:
    """Payment as reported by GET /v1/payments/{reference}."""

    payment_id: str
    reference: str
    status: str
    amount_cents: int | None = None
    currency: str = ""
    transaction_id: str = ""
    checkout_url: str = ""
    expires_at: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: Any, reference: str = "") -> MonimePayment:
        if not isinstance(data, dict):
            raise PaymentValidationError("Unexpected provider response")
        # Some responses wrap the payment in a data envelope
        if isinstance(data.get("data"), dict):
            data = data["data"]
        metadata = data.get("metadata") or {}
        return cls(
            payment_id=str(data.get("id") or data.get("payment_id") or ""),
            reference=str(data.get("reference") or reference),
            status=str(data.get("status") or ""),
            amount_cents=parse_amount(data.get("amount")),
            currency=str(data.get("currency") or "").upper(),
            transaction_id=str(data.get("transaction_id") or ""),
            checkout_url=str(data.get("checkout_url") or data.get("payment_url") or ""),
            expires_at=str(data.get("expires_at") or ""),
            metadata=metadata if isinstance(metadata, dict) else {},
        )

    @property
    def normalized_status(self) -> str:
        return normalize_provider_status(self.status)

    def to_notice(self) -> PaymentNotice:
        return PaymentNotice(
            source=NoticeSource.POLL,
            reference=self.reference,
            status=self.normalized_status,
            provider_status=self.status,
            transaction_id=self.transaction_id,
            payment_id=self.payment_id,
            amount_cents=self.amount_cents,
            currency=self.currency,
            metadata=self.metadata,
        )


@dataclass
class CreatePaymentParams:
    """
    Parameters for POST /v1/payments.

    Attributes:
        amount_cents: Amount in minor units
        currency: ISO 4217 code
        reference: Our payment reference (becomes the correlation key)
        method: PaymentMethod the buyer chose
        phone: Mobile money number (required for mobile money methods)
    """

    amount_cents: int
    currency: str
    reference: str
    description: str
    method: str
    customer_name: str = ""
    customer_email: str = ""
    phone: str = ""
    callback_url: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")
        if not self.reference:
            raise ValueError("reference is required")
        if not self.currency:
            raise ValueError("currency is required")
        if self.method in MOBILE_MONEY_METHODS and not self.phone:
            raise ValueError("phone is required for mobile money payments")

    @property
    def channel(self) -> str:
        if self.method in MOBILE_MONEY_METHODS:
            return "mobile_money"
        return "bank_transfer"

    def to_payload(self, space_id: str, environment: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "amount": self.amount_cents,
            "currency": self.currency,
            "reference": self.reference,
            "description": self.description,
            "customer": {
                "name": self.customer_name,
                "email": self.customer_email,
                "phone": self.phone,
            },
            "channel": self.channel,
            "space_id": space_id,
            "metadata": {**self.metadata, "environment": environment},
        }
        if self.channel == "mobile_money":
            payload["provider"] = self.method
            payload["phone"] = self.phone
        if self.callback_url:
            payload["callback_url"] = self.callback_url
        return payload


@dataclass(frozen=True)
class PaymentSession:
    """A payment created at the provider, returned to the buyer."""

    order_id: str
    reference: str
    payment_id: str
    status: str
    checkout_url: str = ""
    expires_at: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "reference": self.reference,
            "payment_id": self.payment_id,
            "status": self.status,
            "checkout_url": self.checkout_url,
            "expires_at": self.expires_at,
        }


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Outcome of ReconciliationService.apply_notice.

    Attributes:
        changed: The payment sub-record was updated by this notice
        duplicate: The notice repeated an already-terminal payment (no-op)
        escrow_funded: This notice moved the escrow to funded
    """

    reference: str
    order_id: str
    payment_status: str
    changed: bool
    duplicate: bool = False
    escrow_funded: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "reference": self.reference,
            "order_id": self.order_id,
            "payment_status": self.payment_status,
            "changed": self.changed,
            "duplicate": self.duplicate,
            "escrow_funded": self.escrow_funded,
        }
