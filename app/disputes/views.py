"""
Views for the dispute API.

Endpoints:
    GET  /api/v1/disputes/               - List disputes (own; all for admins)
    POST /api/v1/disputes/               - Open a dispute (buyer or vendor)
    GET  /api/v1/disputes/stats/         - Counts per status (admin)
    GET  /api/v1/disputes/{id}/          - Dispute detail
    POST /api/v1/disputes/{id}/respond/  - Counterparty answers the dispute
    POST /api/v1/disputes/{id}/escalate/ - Raise priority for senior review (admin)
    POST /api/v1/disputes/{id}/review/   - open -> under_review (admin)
    POST /api/v1/disputes/{id}/resolve/  - Resolve for buyer or vendor (admin)
    POST /api/v1/disputes/{id}/close/    - Close a resolved dispute (admin)
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import IsPlatformAdmin
from orders.services import OrderService

from disputes.filters import DisputeFilter
from disputes.serializers import (
    CloseDisputeSerializer,
    DisputeSerializer,
    DisputeStatsSerializer,
    EscalateDisputeSerializer,
    OpenDisputeSerializer,
    RespondDisputeSerializer,
    ResolveDisputeSerializer,
)
from disputes.services import DisputeController


@extend_schema_view(
    list=extend_schema(
        operation_id="list_disputes",
        summary="List disputes",
        tags=["Disputes"],
    ),
    retrieve=extend_schema(
        operation_id="get_dispute",
        summary="Get dispute",
        tags=["Disputes"],
    ),
)
class DisputeViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Dispute lifecycle endpoints.

    Buyers and vendors open disputes and see their own; admins review,
    resolve and close them.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = DisputeSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = DisputeFilter
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):
        return DisputeController.visible_to(self.request.user)

    def get_object(self):
        dispute = DisputeController.get(self.kwargs["pk"])
        DisputeController.ensure_can_view(dispute, self.request.user)
        return dispute

    @extend_schema(
        operation_id="open_dispute",
        summary="Open a dispute",
        request=OpenDisputeSerializer,
        responses={201: DisputeSerializer},
        tags=["Disputes"],
    )
    def create(self, request):
        serializer = OpenDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService.get_for_party(data["order_id"], request.user)
        with DisputeController.atomic() as unit:
            dispute = DisputeController.open_dispute(
                unit,
                order,
                actor=request.user,
                reason=data["reason"],
                description=data["description"],
                evidence=data["evidence"],
            )
        return Response(DisputeSerializer(dispute).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="get_dispute_stats",
        summary="Dispute counts per status",
        responses={200: DisputeStatsSerializer},
        tags=["Disputes"],
    )
    @action(detail=False, methods=["get"], permission_classes=[IsPlatformAdmin])
    def stats(self, request):
        return Response(DisputeStatsSerializer(DisputeController.stats()).data)

    @extend_schema(
        operation_id="respond_to_dispute",
        summary="Answer a dispute",
        request=RespondDisputeSerializer,
        responses={200: DisputeSerializer},
        tags=["Disputes"],
    )
    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        serializer = RespondDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dispute = self.get_object()
        with DisputeController.atomic() as unit:
            DisputeController.respond(
                unit,
                dispute,
                actor=request.user,
                message=serializer.validated_data["message"],
                evidence=serializer.validated_data["evidence"],
            )
        return Response(DisputeSerializer(dispute).data)

    @extend_schema(
        operation_id="escalate_dispute",
        summary="Escalate a dispute for senior review",
        request=EscalateDisputeSerializer,
        responses={200: DisputeSerializer},
        tags=["Disputes"],
    )
    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def escalate(self, request, pk=None):
        serializer = EscalateDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dispute = DisputeController.get(pk)
        with DisputeController.atomic() as unit:
            DisputeController.escalate(
                unit,
                dispute,
                admin=request.user,
                reason=serializer.validated_data["reason"],
                priority=serializer.validated_data["priority"],
            )
        return Response(DisputeSerializer(dispute).data)

    @extend_schema(
        operation_id="review_dispute",
        summary="Take a dispute under review",
        request=None,
        responses={200: DisputeSerializer},
        tags=["Disputes"],
    )
    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def review(self, request, pk=None):
        dispute = DisputeController.get(pk)
        with DisputeController.atomic() as unit:
            DisputeController.mark_under_review(unit, dispute, admin=request.user)
        return Response(DisputeSerializer(dispute).data)

    @extend_schema(
        operation_id="resolve_dispute",
        summary="Resolve a dispute",
        request=ResolveDisputeSerializer,
        responses={200: DisputeSerializer},
        tags=["Disputes"],
    )
    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def resolve(self, request, pk=None):
        serializer = ResolveDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dispute = DisputeController.get(pk)
        with DisputeController.atomic() as unit:
            DisputeController.resolve_dispute(
                unit,
                dispute,
                admin=request.user,
                outcome=data["outcome"],
                amount_cents=data.get("amount_cents"),
                resolution=data["resolution"],
            )
        return Response(DisputeSerializer(dispute).data)

    @extend_schema(
        operation_id="close_dispute",
        summary="Close a resolved dispute",
        request=CloseDisputeSerializer,
        responses={200: DisputeSerializer},
        tags=["Disputes"],
    )
    @action(detail=True, methods=["post"], permission_classes=[IsPlatformAdmin])
    def close(self, request, pk=None):
        serializer = CloseDisputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dispute = DisputeController.get(pk)
        with DisputeController.atomic() as unit:
            DisputeController.close_dispute(
                unit,
                dispute,
                admin=request.user,
                notes=serializer.validated_data["notes"],
            )
        return Response(DisputeSerializer(dispute).data)
