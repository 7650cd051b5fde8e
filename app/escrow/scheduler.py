"""
Auto-release scheduler.

Each tick releases escrows whose buyer confirmation window has lapsed:

    status = pending_confirmation AND confirmation_deadline <= now

Every candidate gets its own atomic unit and goes through
EscrowLedger.auto_release, so the conditional write on status decides any
race with a buyer confirmation, a dispute freeze or another scheduler
instance. A lost race is counted as skipped, not failed. Unexpected errors
are logged and the candidate is picked up again on the next tick.

Funded escrows whose long-stop auto_release_date has passed without a
delivery being marked are reported as overdue. They are never released by
the scheduler: confirmation_deadline is the only release trigger.

Usage:
    from escrow.scheduler import AutoReleaseScheduler

    summary = AutoReleaseScheduler.run_tick()
    summary.as_dict()  # {"candidates": 3, "released": 2, "skipped": 1, ...}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from django.utils import timezone

from core.exceptions import ConflictError
from core.services import BaseService
from core.transactions import atomic_unit

from escrow.models import Escrow
from escrow.services import EscrowLedger
from escrow.state_machines import EscrowStatus

# Candidates loaded per query
BATCH_SIZE = 100


@dataclass
class TickSummary:
    """Counters for one scheduler tick."""

    ran_at: datetime
    candidates: int = 0
    released: int = 0
    skipped: int = 0
    failed: int = 0
    overdue: int = 0
    released_ids: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "ran_at": self.ran_at.isoformat(),
            "candidates": self.candidates,
            "released": self.released,
            "skipped": self.skipped,
            "failed": self.failed,
            "overdue": self.overdue,
            "released_ids": self.released_ids,
        }


class AutoReleaseScheduler(BaseService):
    """Periodic job advancing lapsed pending_confirmation escrows."""

    @classmethod
    def due_escrow_ids(cls, now: datetime) -> list:
        return list(
            Escrow.objects.filter(
                status=EscrowStatus.PENDING_CONFIRMATION,
                confirmation_deadline__lte=now,
            )
            .order_by("confirmation_deadline")
            .values_list("pk", flat=True)
        )

    @classmethod
    def run_tick(cls, now: datetime | None = None) -> TickSummary:
        """
        Run one scheduler pass.

        Safe to run concurrently with other instances and to re-run.

        Args:
            now: Reference instant (defaults to timezone.now())

        Returns:
            TickSummary with per-outcome counts
        """
        now = now or timezone.now()
        logger = cls.get_logger()
        summary = TickSummary(ran_at=now)

        ids = cls.due_escrow_ids(now)
        summary.candidates = len(ids)
        logger.info(
            "Auto-release tick started",
            extra={"candidates": summary.candidates, "now": now.isoformat()},
        )

        for start in range(0, len(ids), BATCH_SIZE):
            batch = Escrow.objects.select_related("order").in_bulk(ids[start : start + BATCH_SIZE])
            for escrow in batch.values():
                cls._release_one(escrow, now, summary)

        summary.overdue = cls._report_overdue(now)

        logger.info("Auto-release tick finished", extra=summary.as_dict())
        return summary

    @classmethod
    def _release_one(cls, escrow: Escrow, now: datetime, summary: TickSummary) -> None:
        try:
            with atomic_unit() as unit:
                result = EscrowLedger.auto_release(unit, escrow, at=now)
        except ConflictError as exc:
            summary.skipped += 1
            cls.get_logger().info(
                "Auto-release skipped",
                extra={"escrow_id": str(escrow.id), "error_code": exc.error_code},
            )
            return
        except Exception as exc:
            summary.failed += 1
            cls.handle_exception(exc, context=f"Auto-release failed for escrow {escrow.id}")
            return

        if result.applied:
            summary.released += 1
            summary.released_ids.append(str(escrow.id))
        else:
            summary.skipped += 1

    @classmethod
    def _report_overdue(cls, now: datetime) -> int:
        overdue = Escrow.objects.filter(
            status=EscrowStatus.FUNDED,
            auto_release_date__lte=now,
        ).only("id", "order_id", "auto_release_date")

        count = 0
        for escrow in overdue.iterator(chunk_size=BATCH_SIZE):
            count += 1
            cls.get_logger().warning(
                "Funded escrow past long-stop date without delivery",
                extra={
                    "escrow_id": str(escrow.id),
                    "order_id": str(escrow.order_id),
                    "auto_release_date": escrow.auto_release_date.isoformat(),
                },
            )
        return count
