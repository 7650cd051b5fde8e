"""
DRF exception handler for application errors.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"] so that services can raise
core.exceptions errors and views stay free of try/except blocks.

Usage:
    # settings.py
    REST_FRAMEWORK = {
        "EXCEPTION_HANDLER": "core.exception_handlers.application_exception_handler",
    }
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import (
    BaseApplicationError,
    PermissionDeniedError,
    UnauthorizedError,
)

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def application_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """
    Translate BaseApplicationError subclasses into JSON responses.

    Authorization failures are logged as security events. Anything that is
    not an application error falls through to DRF's default handler.
    """
    if not isinstance(exc, BaseApplicationError):
        return exception_handler(exc, context)

    view = context.get("view")
    request = context.get("request")
    log_extra = {
        "error_code": exc.error_code,
        "view": view.__class__.__name__ if view else None,
        "user_id": str(getattr(getattr(request, "user", None), "pk", "") or ""),
    }

    if isinstance(exc, (UnauthorizedError, PermissionDeniedError)):
        logger.warning(
            f"Authorization failure: {exc.message}",
            extra={**log_extra, "security_event": True},
        )
    elif exc.status_code >= 500:
        logger.error(f"Application error: {exc}", extra=log_extra)
    else:
        logger.info(f"Request rejected: {exc}", extra=log_extra)

    return Response(exc.to_dict(), status=exc.status_code)
