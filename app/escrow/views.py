"""
Views for the escrow API.

Endpoints:
    GET  /api/v1/escrow/                                   - List escrows (own; all for admins)
    GET  /api/v1/escrow/stats/                             - Count/total per status (admin)
    POST /api/v1/escrow/auto-release/                      - Run a scheduler tick now (admin)
    GET  /api/v1/escrow/{id}/                              - Escrow by id
    GET  /api/v1/escrow/orders/{order_id}/                 - Escrow by order id
    POST /api/v1/escrow/orders/{order_id}/mark-delivered/  - Vendor marks delivery
    POST /api/v1/escrow/orders/{order_id}/confirm-delivery/ - Buyer confirms receipt
    POST /api/v1/escrow/orders/{order_id}/cancel/          - Cancel before funding

Mutations go through EscrowLedger only; the read endpoints never write.
"""

from __future__ import annotations

from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from authentication.permissions import IsPlatformAdmin
from core.exceptions import ConflictError, PermissionDeniedError

from escrow.filters import EscrowFilter
from escrow.models import Escrow
from escrow.scheduler import AutoReleaseScheduler
from escrow.serializers import (
    AutoReleaseSummarySerializer,
    CancelEscrowSerializer,
    EscrowSerializer,
    EscrowStatsSerializer,
)
from escrow.services import EscrowLedger


def _ensure_can_view(escrow: Escrow, user) -> None:
    if user.pk in (escrow.buyer_id, escrow.vendor_id) or user.is_platform_admin:
        return
    raise PermissionDeniedError(
        "You do not have access to this escrow",
        error_code="NOT_A_PARTY",
    )


def _applied_or_conflict(result):
    if not result.applied:
        raise ConflictError(
            "Escrow was updated by another action",
            error_code="TRANSITION_PREEMPTED",
            details={"current_status": result.escrow.status, "event": result.event},
        )
    return Response(EscrowSerializer(result.escrow).data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_escrows",
        summary="List escrows",
        tags=["Escrow"],
    ),
    retrieve=extend_schema(
        operation_id="get_escrow",
        summary="Get escrow",
        tags=["Escrow"],
    ),
)
class EscrowViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Read access to escrows.

    Buyers and vendors see their own escrows; admins see all of them.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = EscrowSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = EscrowFilter
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):
        user = self.request.user
        queryset = Escrow.objects.select_related("order")
        if not user.is_platform_admin:
            queryset = queryset.filter(Q(buyer=user) | Q(vendor=user))
        return queryset

    @extend_schema(
        operation_id="get_escrow_stats",
        summary="Escrow stats by status",
        responses={200: EscrowStatsSerializer},
        tags=["Escrow"],
    )
    @action(detail=False, methods=["get"], permission_classes=[IsPlatformAdmin])
    def stats(self, request):
        return Response(EscrowStatsSerializer(EscrowLedger.stats()).data)

    @extend_schema(
        operation_id="run_auto_release",
        summary="Run auto-release now",
        request=None,
        responses={200: AutoReleaseSummarySerializer},
        tags=["Escrow"],
    )
    @action(
        detail=False,
        methods=["post"],
        url_path="auto-release",
        permission_classes=[IsPlatformAdmin],
    )
    def auto_release(self, request):
        summary = AutoReleaseScheduler.run_tick()
        return Response(AutoReleaseSummarySerializer(summary.as_dict()).data)


@extend_schema(
    operation_id="get_escrow_by_order",
    summary="Get escrow by order",
    responses={200: EscrowSerializer},
    tags=["Escrow"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def escrow_for_order(request, order_id):
    escrow = EscrowLedger.get_for_order(order_id)
    _ensure_can_view(escrow, request.user)
    return Response(EscrowSerializer(escrow).data)


@extend_schema(
    operation_id="mark_order_delivered",
    summary="Mark order delivered",
    request=None,
    responses={200: EscrowSerializer},
    tags=["Escrow"],
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def mark_delivered(request, order_id):
    escrow = EscrowLedger.get_for_order(order_id)
    with EscrowLedger.atomic() as unit:
        result = EscrowLedger.mark_delivered(unit, escrow, actor=request.user)
    return _applied_or_conflict(result)


@extend_schema(
    operation_id="confirm_order_delivery",
    summary="Confirm delivery and release funds",
    request=None,
    responses={200: EscrowSerializer},
    tags=["Escrow"],
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def confirm_delivery(request, order_id):
    escrow = EscrowLedger.get_for_order(order_id)
    with EscrowLedger.atomic() as unit:
        result = EscrowLedger.confirm_delivery(unit, escrow, actor=request.user)
    return _applied_or_conflict(result)


@extend_schema(
    operation_id="cancel_order_escrow",
    summary="Cancel an unfunded escrow",
    request=CancelEscrowSerializer,
    responses={200: EscrowSerializer},
    tags=["Escrow"],
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cancel(request, order_id):
    serializer = CancelEscrowSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    escrow = EscrowLedger.get_for_order(order_id)
    with EscrowLedger.atomic() as unit:
        result = EscrowLedger.cancel(
            unit,
            escrow,
            reason=serializer.validated_data["reason"],
            actor=request.user,
        )
    return _applied_or_conflict(result)
