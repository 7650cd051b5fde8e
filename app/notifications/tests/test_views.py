"""
Tests for the notification inbox API.
"""

import pytest
from django.urls import reverse

from notifications.tests.factories import NotificationFactory


@pytest.mark.django_db
class TestNotificationViewSet:
    """Tests for listing and marking notifications."""

    def test_list_returns_only_own_notifications(self, api_client, user, other_user):
        """Users should only see their own notifications."""
        NotificationFactory.create_batch(2, recipient=user)
        NotificationFactory(recipient=other_user)

        response = api_client.get(reverse("notifications:notification-list"))

        assert response.status_code == 200
        assert response.data["count"] == 2

    def test_filter_by_category(self, api_client, user):
        """Should filter by category query parameter."""
        NotificationFactory(recipient=user, category="payment")
        NotificationFactory(recipient=user, category="dispute")

        response = api_client.get(
            reverse("notifications:notification-list"), {"category": "dispute"}
        )

        assert response.data["count"] == 1

    def test_filter_by_order(self, api_client, user):
        """?order matches the order id carried in the data payload."""
        order_id = "3f2b8a0e-5d0c-4b61-9f2e-0d6a7c1b9e44"
        NotificationFactory(recipient=user, data={"order_id": order_id, "escrow_id": "e-1"})
        NotificationFactory(recipient=user, data={"order_id": "7c1d2e3f-0000-4000-8000-000000000001"})

        response = api_client.get(
            reverse("notifications:notification-list"), {"order": order_id}
        )

        assert response.data["count"] == 1
        entry = response.data["results"][0]
        assert entry["order_id"] == order_id
        assert entry["escrow_id"] == "e-1"

    def test_filter_by_read_flag(self, api_client, user):
        """?is_read=false hides acknowledged notifications."""
        NotificationFactory(recipient=user)
        NotificationFactory(recipient=user, is_read=True)

        response = api_client.get(
            reverse("notifications:notification-list"), {"is_read": "false"}
        )

        assert response.data["count"] == 1

    def test_unread_count(self, api_client, user):
        """Should count unread notifications."""
        NotificationFactory.create_batch(2, recipient=user)
        NotificationFactory(recipient=user, is_read=True)

        response = api_client.get(reverse("notifications:notification-unread-count"))

        assert response.data == {"unread_count": 2}

    def test_mark_read(self, api_client, user):
        """POST read should mark the notification read."""
        notification = NotificationFactory(recipient=user)

        response = api_client.post(
            reverse("notifications:notification-read", args=[notification.pk])
        )

        assert response.status_code == 200
        assert response.data["is_read"] is True

    def test_cannot_read_other_users_notification(self, api_client, other_user):
        """Another user's notification should not be found."""
        notification = NotificationFactory(recipient=other_user)

        response = api_client.post(
            reverse("notifications:notification-read", args=[notification.pk])
        )

        assert response.status_code == 404

    def test_read_all(self, api_client, user):
        """POST read-all should report how many were marked."""
        NotificationFactory.create_batch(3, recipient=user)

        response = api_client.post(reverse("notifications:notification-read-all"))

        assert response.data == {"marked_count": 3}

    def test_requires_authentication(self, client):
        """Anonymous requests should be rejected."""
        response = client.get(reverse("notifications:notification-list"))

        assert response.status_code in (401, 403)
