"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # Escrow stats are cached; tests must not need Redis
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "settlement-tests",
        }
    }

    settings.SECURE_SSL_REDIRECT = False

    # Deterministic provider configuration
    settings.MONIME_BASE_URL = "https://api.monime.test"
    settings.MONIME_API_KEY = "test-api-key"
    settings.MONIME_SPACE_ID = "test-space"
    settings.MONIME_WEBHOOK_SECRET = "test-webhook-secret"
    settings.ESCROW_AUTO_RELEASE_AFTER_DAYS = 3
    settings.ESCROW_TRANSACTION_FEE_PERCENT = 0


@pytest.fixture(autouse=True)
def clear_cache():
    """Start every test with an empty cache (escrow stats are cached)."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full settlement scenarios)
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_serializers.py, test_adapters.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_webhooks.py",
        "test_scheduler.py",
        "test_synchronizer.py",
        "test_reconciliation_service.py",
        "test_poller.py",
        "test_concurrency.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_adapters.py",
        "test_types.py",
        "test_state_transitions.py",
        "test_transactions.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
