"""
Notification inbox for buyers, vendors and admins.

Settlement events (payment failed, escrow funded, delivery, release, refund,
dispute opened/resolved) land here through notifications.services.notify.

Endpoints:
    GET  /api/v1/notifications/                 - Own notifications (?is_read, ?category, ?order)
    GET  /api/v1/notifications/{id}/            - One notification
    GET  /api/v1/notifications/unread-count/    - Unread badge count
    POST /api/v1/notifications/{id}/read/       - Mark one read
    POST /api/v1/notifications/read-all/        - Mark every unread one read
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from notifications.filters import NotificationFilter
from notifications.models import Notification
from notifications.serializers import (
    MarkAllReadResponseSerializer,
    NotificationSerializer,
    UnreadCountSerializer,
)
from notifications.services import NotificationService


@extend_schema_view(
    list=extend_schema(operation_id="list_notifications", tags=["Notifications"]),
    retrieve=extend_schema(operation_id="get_notification", tags=["Notifications"]),
)
class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """Read and acknowledge the current user's settlement notifications."""

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = NotificationFilter

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user)

    @extend_schema(
        operation_id="count_unread_notifications",
        responses={200: UnreadCountSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        unread = self.get_queryset().filter(is_read=False).count()
        return Response(UnreadCountSerializer({"unread_count": unread}).data)

    @extend_schema(
        operation_id="read_notification",
        request=None,
        responses={200: NotificationSerializer},
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        result = NotificationService.mark_as_read(self.get_object(), request.user)
        if result:
            return Response(self.get_serializer(result.data).data)
        return Response(result.to_response(), status=status.HTTP_400_BAD_REQUEST)

    @extend_schema(
        operation_id="read_all_notifications",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        marked = NotificationService.mark_all_as_read(request.user).data
        return Response(MarkAllReadResponseSerializer({"marked_count": marked}).data)
