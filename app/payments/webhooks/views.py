"""
Webhook endpoint for Monime payment notifications.

The view:
1. Verifies the HMAC signature over the raw body
2. Parses the body into a MonimeWebhookEvent
3. Records a WebhookEvent (keyed by the body's SHA-256; repeats bump the
   delivery count)
4. Applies the notice through ReconciliationService in one atomic unit
5. Returns a body built only from stable fields, so a redelivered
   notification gets the same response as the first delivery

Processing is synchronous: one conditioned write per notification, never
waiting on the poll loop.

Responses:
    200: Processed (including duplicate no-ops)
    400: Malformed body or amount/currency mismatch
    401: Missing or invalid signature
    404: Reference does not correlate to a known order
    500: Unexpected failure (the provider retries)
"""

from __future__ import annotations

import json
import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from core.exceptions import NotFoundError, ValidationError
from core.helpers import get_client_ip, hash_bytes
from core.transactions import atomic_unit

from payments.adapters import SIGNATURE_HEADER, verify_webhook_signature
from payments.constants import WebhookEventStatus
from payments.exceptions import PaymentValidationError, WebhookSignatureError
from payments.models import WebhookEvent
from payments.services import ReconciliationService
from payments.types import MonimeWebhookEvent

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def monime_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive a Monime payment notification.

    A GET is a liveness check for the provider's dashboard and touches
    nothing.

    Example X-Monime-Signature header:
        sha256=5d41402abc4b2a76b9719d911017c592...
    """
    if request.method == "GET":
        return JsonResponse({"status": "ok", "provider": "monime"})

    body = request.body

    try:
        verify_webhook_signature(
            settings.MONIME_WEBHOOK_SECRET,
            body,
            request.headers.get(SIGNATURE_HEADER),
        )
    except WebhookSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={
                "security_event": True,
                "error_code": e.error_code,
                "client_ip": get_client_ip(request),
            },
        )
        return JsonResponse(e.to_dict(), status=e.status_code)

    try:
        payload = json.loads(body)
        event = MonimeWebhookEvent.from_payload(payload)
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        return JsonResponse(
            PaymentValidationError("Notification body is not valid JSON").to_dict(),
            status=400,
        )
    except PaymentValidationError as e:
        logger.warning("Malformed webhook notification", extra={"error": e.message})
        return JsonResponse(e.to_dict(), status=e.status_code)

    logger.info(
        f"Received Monime webhook: {event.event}",
        extra={"reference": event.reference, "provider_status": event.status},
    )

    record = WebhookEvent.record(
        event_key=hash_bytes(body),
        event_type=event.event,
        reference=event.reference,
        payload=payload,
    )

    try:
        with atomic_unit() as unit:
            result = ReconciliationService.apply_notice(unit, event.to_notice())
    except NotFoundError as e:
        record.mark(WebhookEventStatus.REJECTED, e.message)
        return JsonResponse(e.to_dict(), status=e.status_code)
    except ValidationError as e:
        record.mark(WebhookEventStatus.REJECTED, e.message)
        return JsonResponse(e.to_dict(), status=e.status_code)
    except Exception as e:
        logger.error(
            f"Webhook processing failed: {type(e).__name__}",
            extra={"reference": event.reference, "webhook_event_id": str(record.id)},
            exc_info=True,
        )
        record.mark(WebhookEventStatus.FAILED, f"{type(e).__name__}: {e}")
        return JsonResponse(
            {"error": "Webhook processing failed", "error_code": "WEBHOOK_PROCESSING_FAILED"},
            status=500,
        )

    record.mark(WebhookEventStatus.PROCESSED)
    return JsonResponse(
        {
            "received": True,
            "reference": result.reference,
            "payment_status": result.payment_status,
        }
    )
