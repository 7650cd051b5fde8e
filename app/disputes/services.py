"""
Dispute controller: opens, reviews, resolves and closes disputes.

The controller is the only actor allowed to force a release or refund
outside the delivery-confirmation path. Opening a dispute and resolving one
each touch two records (Dispute and Escrow); both run inside the caller's
atomic unit, so any failure rolls back both and they never disagree.

Usage:
    from disputes.services import DisputeController

    with DisputeController.atomic() as unit:
        dispute = DisputeController.resolve_dispute(
            unit, dispute, admin=request.user, outcome="buyer", amount_cents=10_000_000
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.db.models import Count, Q
from django.utils import timezone

from django_fsm import ConcurrentTransition, can_proceed

from core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from core.services import BaseService

from disputes.exceptions import (
    ActiveDisputeExistsError,
    DisputeNotFoundError,
    DisputeStateError,
)
from disputes.models import Dispute
from disputes.state_machines import (
    ACTIVE_DISPUTE_STATUSES,
    DisputeOutcome,
    DisputePriority,
    DisputeReason,
    DisputeStatus,
)
from escrow.exceptions import EscrowNotFoundError
from escrow.models import Escrow
from escrow.services import EscrowLedger
from escrow.state_machines import DISPUTABLE_ESCROW_STATUSES, EscrowStatus
from notifications.models import NotificationCategory
from notifications.services import notify

if TYPE_CHECKING:
    from typing import Any

    from authentication.models import User
    from core.transactions import AtomicUnit
    from orders.models import Order


class DisputeController(BaseService):
    """
    Service for the dispute lifecycle.

    Methods:
        open_dispute: Buyer or vendor opens a dispute; freezes the escrow
        respond: The counterparty answers an active dispute
        escalate: Admin raises the priority of an active dispute
        mark_under_review: Admin takes the dispute (open -> under_review)
        resolve_dispute: Admin settles the frozen escrow for one party
        close_dispute: Admin closes a resolved dispute
        get / visible_to / stats: Read access
    """

    @classmethod
    def open_dispute(
        cls,
        unit: AtomicUnit,
        order: Order,
        actor: User,
        reason: str,
        description: str,
        evidence: list[str] | None = None,
    ) -> Dispute:
        """
        Open a dispute and freeze the order's escrow.

        Raises:
            PermissionDeniedError: Actor is neither buyer nor vendor
            ValidationError: Unknown reason or missing description
            ActiveDisputeExistsError: The order already has an active dispute
            DisputeStateError: Escrow does not currently hold funds
            ConflictError: Escrow moved while the dispute was being opened
        """
        unit.ensure_active()
        logger = cls.get_logger()

        if not order.is_party(actor):
            logger.warning(
                "Dispute attempt by non-party",
                extra={
                    "security_event": True,
                    "order_id": str(order.pk),
                    "user_id": str(actor.pk),
                },
            )
            raise PermissionDeniedError(
                "Only the buyer or vendor can open a dispute",
                error_code="NOT_A_PARTY",
            )

        errors = cls.validate_required(reason=reason, description=description)
        if errors:
            raise ValidationError("Required fields missing", details=errors)
        if reason not in DisputeReason.values:
            raise ValidationError(
                f"Unknown dispute reason: {reason}",
                error_code="INVALID_DISPUTE_REASON",
                details={"allowed": DisputeReason.values},
            )

        if Dispute.objects.filter(order=order, status__in=ACTIVE_DISPUTE_STATUSES).exists():
            raise ActiveDisputeExistsError(
                "An active dispute already exists for this order",
                details={"order_id": str(order.pk)},
            )

        try:
            escrow = Escrow.objects.select_related("order").get(order=order)
        except Escrow.DoesNotExist:
            raise EscrowNotFoundError(
                "No escrow for order",
                details={"order_id": str(order.pk)},
            ) from None

        if escrow.status not in DISPUTABLE_ESCROW_STATUSES:
            raise DisputeStateError(
                "Disputes can only be opened while funds are held in escrow",
                error_code="ESCROW_NOT_DISPUTABLE",
                details={"escrow_status": escrow.status},
            )

        try:
            with unit.savepoint():
                dispute = Dispute.objects.create(
                    order=order,
                    buyer_id=order.buyer_id,
                    vendor_id=order.vendor_id,
                    opened_by=actor,
                    reason=reason,
                    description=description,
                    evidence=list(evidence or []),
                )
        except IntegrityError:
            raise ActiveDisputeExistsError(
                "An active dispute already exists for this order",
                details={"order_id": str(order.pk)},
            ) from None

        result = EscrowLedger.freeze(unit, escrow, dispute)
        if not result.applied:
            raise ConflictError(
                "Escrow changed while the dispute was being opened",
                error_code="TRANSITION_PREEMPTED",
                details={"escrow_status": result.escrow.status},
            )

        logger.info(
            "Dispute opened",
            extra={
                "dispute_id": str(dispute.id),
                "order_id": str(order.pk),
                "escrow_id": str(escrow.id),
                "opened_by": str(actor.pk),
                "reason": reason,
            },
        )

        other_party_id = order.vendor_id if actor.pk == order.buyer_id else order.buyer_id
        cls._notify(
            unit,
            dispute,
            (
                actor.pk,
                "Dispute Created",
                f"Your dispute for order #{order.order_number} has been submitted and is under review.",
            ),
            (
                other_party_id,
                "Dispute Received",
                f"A dispute has been filed against order #{order.order_number}.",
            ),
        )
        reviewers = (
            get_user_model().objects.platform_admins().values_list("pk", flat=True)
        )
        cls._notify(
            unit,
            dispute,
            *(
                (
                    admin_id,
                    "Dispute Awaiting Review",
                    f"Order #{order.order_number} has a new {reason} dispute.",
                )
                for admin_id in reviewers
            ),
        )
        return dispute

    @classmethod
    def respond(
        cls,
        unit: AtomicUnit,
        dispute: Dispute,
        actor: User,
        message: str,
        evidence: list[str] | None = None,
    ) -> Dispute:
        """
        Record the counterparty's answer to an active dispute.

        The party the dispute was opened against answers once; the message
        and evidence are stored next to the original claim.

        Raises:
            PermissionDeniedError: Actor is not the counterparty
            ValidationError: Missing message
            DisputeStateError: Dispute is no longer open or under review
            ConflictError: The dispute has already been answered
        """
        unit.ensure_active()
        logger = cls.get_logger()

        if actor.pk != dispute.counterparty_id:
            logger.warning(
                "Dispute response by non-respondent",
                extra={
                    "security_event": True,
                    "dispute_id": str(dispute.id),
                    "user_id": str(actor.pk),
                },
            )
            raise PermissionDeniedError(
                "Only the other party can respond to this dispute",
                error_code="NOT_RESPONDENT",
            )

        errors = cls.validate_required(message=message)
        if errors:
            raise ValidationError("Required fields missing", details=errors)
        if not dispute.is_active:
            raise DisputeStateError(
                "Only open or under-review disputes can be answered",
                details={"current_status": dispute.status},
            )

        now = timezone.now()
        evidence = list(evidence or [])
        updated = Dispute.objects.filter(
            pk=dispute.pk,
            status__in=ACTIVE_DISPUTE_STATUSES,
            responded_at__isnull=True,
        ).update(
            respondent_message=message,
            respondent_evidence=evidence,
            responded_at=now,
            updated_at=now,
        )
        if not updated:
            current = Dispute.objects.values_list("status", flat=True).get(pk=dispute.pk)
            if current not in ACTIVE_DISPUTE_STATUSES:
                raise DisputeStateError(
                    "Only open or under-review disputes can be answered",
                    details={"current_status": current},
                )
            raise ConflictError(
                "The dispute has already been answered",
                error_code="DISPUTE_ALREADY_ANSWERED",
                details={"dispute_id": str(dispute.id)},
            )

        dispute.respondent_message = message
        dispute.respondent_evidence = evidence
        dispute.responded_at = now
        dispute.updated_at = now

        logger.info(
            "Dispute answered",
            extra={
                "dispute_id": str(dispute.id),
                "order_id": str(dispute.order_id),
                "respondent_id": str(actor.pk),
                "evidence_count": len(evidence),
            },
        )

        text = "The other party has responded to your dispute."
        recipients = [(dispute.opened_by_id, "Dispute Response Received", text)]
        if dispute.admin_id:
            recipients.append(
                (
                    dispute.admin_id,
                    "Dispute Response Received",
                    "A dispute you are reviewing has a response.",
                )
            )
        cls._notify(unit, dispute, *recipients, event="responded")
        return dispute

    @classmethod
    def escalate(
        cls,
        unit: AtomicUnit,
        dispute: Dispute,
        admin: User,
        reason: str,
        priority: str = DisputePriority.HIGH,
    ) -> Dispute:
        """
        Flag an active dispute for senior review.

        Records the reason and priority and notifies both parties and the
        other platform admins. Escalating again replaces the reason and
        priority; recipients are notified once per priority level.

        Raises:
            PermissionDeniedError: Actor is not an admin
            ValidationError: Missing reason or unknown priority
            DisputeStateError: Dispute is no longer open or under review
        """
        unit.ensure_active()
        cls._require_admin(admin, dispute)

        errors = cls.validate_required(reason=reason)
        if errors:
            raise ValidationError("Required fields missing", details=errors)
        if priority not in DisputePriority.values:
            raise ValidationError(
                f"Unknown dispute priority: {priority}",
                error_code="INVALID_DISPUTE_PRIORITY",
                details={"allowed": DisputePriority.values},
            )
        if not dispute.is_active:
            raise DisputeStateError(
                "Only open or under-review disputes can be escalated",
                details={"current_status": dispute.status},
            )

        now = timezone.now()
        updated = Dispute.objects.filter(
            pk=dispute.pk, status__in=ACTIVE_DISPUTE_STATUSES
        ).update(
            priority=priority,
            escalation_reason=reason,
            escalated_at=now,
            updated_at=now,
        )
        if not updated:
            raise DisputeStateError(
                "Dispute was settled while it was being escalated",
                details={
                    "current_status": Dispute.objects.values_list("status", flat=True).get(
                        pk=dispute.pk
                    )
                },
            )

        dispute.priority = priority
        dispute.escalation_reason = reason
        dispute.escalated_at = now
        dispute.updated_at = now

        cls.get_logger().info(
            "Dispute escalated",
            extra={
                "dispute_id": str(dispute.id),
                "order_id": str(dispute.order_id),
                "admin_id": str(admin.pk),
                "priority": priority,
            },
        )

        reviewers = (
            get_user_model()
            .objects.platform_admins()
            .exclude(pk=admin.pk)
            .values_list("pk", flat=True)
        )
        cls._notify(
            unit,
            dispute,
            (
                dispute.opened_by_id,
                "Dispute Escalated",
                "Your dispute has been escalated for senior review.",
            ),
            (
                dispute.counterparty_id,
                "Dispute Escalated",
                "The dispute has been escalated for senior review.",
            ),
            *(
                (
                    admin_id,
                    "Dispute Escalated",
                    f"A dispute was escalated to {priority} priority: {reason}",
                )
                for admin_id in reviewers
            ),
            event=f"escalated:{priority}",
        )
        return dispute

    @classmethod
    def mark_under_review(cls, unit: AtomicUnit, dispute: Dispute, admin: User) -> Dispute:
        """Admin takes ownership of an open dispute."""
        unit.ensure_active()
        cls._require_admin(admin, dispute)
        cls._transition(unit, dispute, dispute.start_review, admin, timezone.now())
        cls.get_logger().info(
            "Dispute under review",
            extra={"dispute_id": str(dispute.id), "admin_id": str(admin.pk)},
        )
        return dispute

    @classmethod
    def resolve_dispute(
        cls,
        unit: AtomicUnit,
        dispute: Dispute,
        admin: User,
        outcome: str,
        amount_cents: int | None = None,
        resolution: str = "",
    ) -> Dispute:
        """
        Settle the frozen escrow in favour of one party.

        amount_cents is the favoured party's share (default: the full
        escrowed amount); the other party receives the remainder.

        Raises:
            PermissionDeniedError: Actor is not an admin
            ValidationError: Unknown outcome or invalid amount
            DisputeStateError: Dispute is not open/under_review, or escrow is not disputed
            ConflictError: Escrow or dispute moved concurrently
        """
        unit.ensure_active()
        cls._require_admin(admin, dispute)

        if outcome not in DisputeOutcome.values:
            raise ValidationError(
                f"Unknown dispute outcome: {outcome}",
                error_code="INVALID_DISPUTE_OUTCOME",
                details={"allowed": DisputeOutcome.values},
            )
        if not dispute.is_active:
            raise DisputeStateError(
                "Only open or under-review disputes can be resolved",
                details={"current_status": dispute.status},
            )

        escrow = EscrowLedger.get_for_order(dispute.order_id)
        if escrow.status != EscrowStatus.DISPUTED:
            raise DisputeStateError(
                "Escrow is not disputed",
                error_code="ESCROW_NOT_DISPUTED",
                details={"escrow_status": escrow.status},
            )

        if outcome == DisputeOutcome.BUYER:
            result = EscrowLedger.refund_on_dispute(unit, escrow, amount_cents)
        else:
            result = EscrowLedger.release_on_dispute(unit, escrow, amount_cents)
        if not result.applied:
            raise ConflictError(
                "Escrow changed while the dispute was being resolved",
                error_code="TRANSITION_PREEMPTED",
                details={"escrow_status": result.escrow.status},
            )

        settled = result.escrow
        resolve = (
            dispute.resolve_for_buyer
            if outcome == DisputeOutcome.BUYER
            else dispute.resolve_for_vendor
        )
        cls._transition(
            unit,
            dispute,
            resolve,
            admin,
            resolution,
            settled.refund_amount_cents,
            timezone.now(),
        )

        cls.get_logger().info(
            "Dispute resolved",
            extra={
                "dispute_id": str(dispute.id),
                "escrow_id": str(settled.id),
                "admin_id": str(admin.pk),
                "outcome": outcome,
                "release_amount_cents": settled.release_amount_cents,
                "refund_amount_cents": settled.refund_amount_cents,
            },
        )

        message = f"Your dispute has been resolved in favour of the {outcome}."
        cls._notify(
            unit,
            dispute,
            (dispute.buyer_id, "Dispute Resolved", message),
            (dispute.vendor_id, "Dispute Resolved", message),
        )
        return dispute

    @classmethod
    def close_dispute(
        cls,
        unit: AtomicUnit,
        dispute: Dispute,
        admin: User,
        notes: str = "",
    ) -> Dispute:
        """Close a resolved dispute."""
        unit.ensure_active()
        cls._require_admin(admin, dispute)
        cls._transition(unit, dispute, dispute.close, notes, timezone.now())

        message = "Your dispute has been closed."
        if notes:
            message = f"Your dispute has been closed. Reason: {notes}"
        cls._notify(
            unit,
            dispute,
            (dispute.buyer_id, "Dispute Closed", message),
            (dispute.vendor_id, "Dispute Closed", message),
        )
        return dispute

    # ==========================================================================
    # Reads
    # ==========================================================================

    @classmethod
    def get(cls, dispute_id) -> Dispute:
        try:
            return Dispute.objects.select_related("order").get(pk=dispute_id)
        except (Dispute.DoesNotExist, DjangoValidationError, ValueError):
            raise DisputeNotFoundError(
                "Dispute not found",
                details={"dispute_id": str(dispute_id)},
            ) from None

    @classmethod
    def visible_to(cls, user: User):
        """Disputes the user may see: own as buyer or vendor, all for admins."""
        queryset = Dispute.objects.select_related("order")
        if user.is_platform_admin:
            return queryset
        return queryset.filter(Q(buyer=user) | Q(vendor=user))

    @classmethod
    def ensure_can_view(cls, dispute: Dispute, user: User) -> None:
        if user.pk in (dispute.buyer_id, dispute.vendor_id) or user.is_platform_admin:
            return
        raise PermissionDeniedError(
            "You do not have access to this dispute",
            error_code="NOT_A_PARTY",
        )

    @classmethod
    def stats(cls) -> dict[str, Any]:
        by_status = {status: 0 for status in DisputeStatus.values}
        for row in Dispute.objects.values("status").annotate(count=Count("id")):
            by_status[row["status"]] = row["count"]
        return {"total": sum(by_status.values()), "by_status": by_status}

    # ==========================================================================
    # Internals
    # ==========================================================================

    @classmethod
    def _require_admin(cls, user: User, dispute: Dispute) -> None:
        if user.is_platform_admin:
            return
        cls.get_logger().warning(
            "Non-admin attempted dispute administration",
            extra={
                "security_event": True,
                "dispute_id": str(dispute.id),
                "user_id": str(user.pk),
            },
        )
        raise PermissionDeniedError("Admin access required", error_code="ADMIN_REQUIRED")

    @classmethod
    def _transition(cls, unit: AtomicUnit, dispute: Dispute, method, *args) -> None:
        if not can_proceed(method):
            raise DisputeStateError(
                f"Cannot {method.__name__} dispute in status {dispute.status}",
                details={"current_status": dispute.status},
            )
        method(*args)
        try:
            with unit.savepoint():
                dispute.save()
        except ConcurrentTransition:
            raise ConflictError(
                "Dispute was updated by another action",
                error_code="TRANSITION_PREEMPTED",
                details={"dispute_id": str(dispute.id)},
            ) from None

    @classmethod
    def _notify(cls, unit: AtomicUnit, dispute: Dispute, *messages, event: str = "") -> None:
        data = {"dispute_id": str(dispute.id), "order_id": str(dispute.order_id)}
        event = event or dispute.status
        for user_id, title, message in messages:
            key = f"dispute:{dispute.id}:{event}:{user_id}"
            unit.on_commit(
                lambda user_id=user_id, title=title, message=message, key=key: notify(
                    user_id,
                    title,
                    message,
                    NotificationCategory.DISPUTE,
                    data=data,
                    idempotency_key=key,
                )
            )
