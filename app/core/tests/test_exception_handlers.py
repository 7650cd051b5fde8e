"""
Tests for the DRF exception handler and the application error types.
"""

from unittest.mock import MagicMock

from rest_framework.exceptions import NotAuthenticated

from core.exception_handlers import application_exception_handler
from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


def _context():
    request = MagicMock()
    request.user.pk = 7
    return {"view": MagicMock(), "request": request}


class TestApplicationExceptionHandler:
    """Application errors become JSON bodies with their own status code."""

    def test_conflict(self):
        """409 with error, error_code and details."""
        exc = ConflictError(
            "Cannot confirm_by_buyer escrow in status funded",
            error_code="INVALID_STATE_TRANSITION",
            details={"current_status": "funded"},
        )

        response = application_exception_handler(exc, _context())

        assert response.status_code == 409
        assert response.data == {
            "error": "Cannot confirm_by_buyer escrow in status funded",
            "error_code": "INVALID_STATE_TRANSITION",
            "details": {"current_status": "funded"},
        }

    def test_details_omitted_when_empty(self):
        """No details key without details."""
        response = application_exception_handler(NotFoundError("Escrow not found"), _context())

        assert response.status_code == 404
        assert "details" not in response.data
        assert response.data["error_code"] == "NOT_FOUND"

    def test_permission_denied(self):
        """403 for authorization failures."""
        response = application_exception_handler(
            PermissionDeniedError("No", error_code="NOT_A_PARTY"), _context()
        )

        assert response.status_code == 403

    def test_external_service_error(self):
        """Provider failures map to 502."""
        response = application_exception_handler(ExternalServiceError("down"), _context())

        assert response.status_code == 502

    def test_drf_exceptions_fall_through(self):
        """Non-application errors use DRF's default handling."""
        response = application_exception_handler(NotAuthenticated(), _context())

        assert response.status_code in (401, 403)


class TestApplicationErrors:
    def test_str_includes_code(self):
        """str() shows the error code and message."""
        assert str(ValidationError("Bad amount")) == "[VALIDATION_ERROR] Bad amount"

    def test_custom_code_overrides_default(self):
        """An explicit error_code wins over the class default."""
        assert ValidationError("x", error_code="INVALID_AMOUNT").error_code == "INVALID_AMOUNT"
