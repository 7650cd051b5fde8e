"""
Pytest fixtures for notification tests.
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    """Create a second user for ownership checks."""
    return UserFactory()


@pytest.fixture
def api_client(user):
    """API client authenticated as the test user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client
