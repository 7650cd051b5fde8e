"""
Celery tasks for the escrow ledger.

Tasks:
- process_auto_release_escrows: Periodic scheduler tick (celery-beat,
  every ESCROW_AUTO_RELEASE_INTERVAL_MINUTES; see migration 0002)

Usage:
    from escrow.tasks import process_auto_release_escrows

    process_auto_release_escrows.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from escrow.scheduler import AutoReleaseScheduler

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def process_auto_release_escrows(self) -> dict:
    """
    Release escrows whose confirmation deadline has passed.

    Idempotent: candidates already released, confirmed or disputed are
    skipped by the ledger's conditional write.

    Returns:
        Tick summary dict (candidates, released, skipped, failed, overdue)
    """
    logger.info("Starting auto-release run", extra={"task_id": self.request.id})
    summary = AutoReleaseScheduler.run_tick()
    return summary.as_dict()
