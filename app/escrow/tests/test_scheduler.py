"""
Tests for the auto-release scheduler and its Celery task.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone
from freezegun import freeze_time

from core.transactions import atomic_unit
from escrow.models import Escrow
from escrow.scheduler import AutoReleaseScheduler
from escrow.services import EscrowLedger
from escrow.state_machines import EscrowStatus, ReleaseReason
from escrow.tasks import process_auto_release_escrows
from escrow.tests.factories import EscrowFactory
from orders.constants import OrderStatus
from orders.models import Order


@pytest.mark.django_db
class TestRunTick:
    """Tests for AutoReleaseScheduler.run_tick."""

    def test_nothing_due(self, delivered_escrow):
        """An escrow inside its confirmation window is left alone."""
        summary = AutoReleaseScheduler.run_tick(timezone.now())

        assert summary.candidates == 0
        assert summary.released == 0
        assert Escrow.objects.get(pk=delivered_escrow.pk).status == (
            EscrowStatus.PENDING_CONFIRMATION
        )

    def test_releases_after_deadline(self, delivered_escrow):
        """Past the deadline the escrow is released and the order completed."""
        with freeze_time(timezone.now() + timedelta(days=3, minutes=1)):
            summary = AutoReleaseScheduler.run_tick()

        escrow = Escrow.objects.get(pk=delivered_escrow.pk)
        assert summary.candidates == 1
        assert summary.released == 1
        assert summary.released_ids == [str(escrow.id)]
        assert escrow.status == EscrowStatus.RELEASED_TO_VENDOR
        assert escrow.release_reason == ReleaseReason.AUTO_RELEASE
        assert Order.objects.get(pk=escrow.order_id).status == OrderStatus.COMPLETED

    def test_deadline_boundary_is_inclusive(self, delivered_escrow):
        """Exactly at the deadline the escrow is due."""
        summary = AutoReleaseScheduler.run_tick(delivered_escrow.confirmation_deadline)

        assert summary.released == 1

    def test_rerun_is_a_no_op(self, delivered_escrow):
        """A second tick finds nothing to do."""
        later = delivered_escrow.confirmation_deadline + timedelta(hours=1)
        AutoReleaseScheduler.run_tick(later)

        summary = AutoReleaseScheduler.run_tick(later)

        assert summary.candidates == 0
        assert summary.released == 0

    def test_disputed_escrow_is_not_released(self):
        """Disputed escrows are not candidates even past their old deadline."""
        escrow = EscrowFactory(delivered=True)
        Escrow.objects.filter(pk=escrow.pk).update(status=EscrowStatus.DISPUTED)

        summary = AutoReleaseScheduler.run_tick(
            escrow.confirmation_deadline + timedelta(days=1)
        )

        assert summary.candidates == 0
        assert Escrow.objects.get(pk=escrow.pk).status == EscrowStatus.DISPUTED

    def test_candidate_moved_during_tick_is_skipped(self, delivered_escrow, buyer):
        """A buyer confirming between selection and release wins the race."""
        later = delivered_escrow.confirmation_deadline + timedelta(hours=1)
        original = EscrowLedger.auto_release

        def confirm_first(unit, escrow, at=None):
            with atomic_unit() as inner:
                EscrowLedger.confirm_delivery(
                    inner, Escrow.objects.get(pk=escrow.pk), actor=buyer
                )
            return original(unit, escrow, at=at)

        with patch.object(EscrowLedger, "auto_release", side_effect=confirm_first):
            summary = AutoReleaseScheduler.run_tick(later)

        escrow = Escrow.objects.get(pk=delivered_escrow.pk)
        assert summary.released == 0
        assert summary.skipped == 1
        assert escrow.release_reason == ReleaseReason.BUYER_APPROVAL

    def test_unexpected_error_does_not_stop_the_tick(self):
        """One failing candidate is counted and the rest are still released."""
        now = timezone.now()
        first = EscrowFactory(delivered=True, delivered_at=now - timedelta(days=5))
        second = EscrowFactory(delivered=True, delivered_at=now - timedelta(days=4))
        original = EscrowLedger.auto_release

        def fail_first(unit, escrow, at=None):
            if escrow.pk == first.pk:
                raise RuntimeError("boom")
            return original(unit, escrow, at=at)

        with patch.object(EscrowLedger, "auto_release", side_effect=fail_first):
            summary = AutoReleaseScheduler.run_tick(now)

        assert summary.candidates == 2
        assert summary.failed == 1
        assert summary.released_ids == [str(second.pk)]
        assert Escrow.objects.get(pk=first.pk).status == EscrowStatus.PENDING_CONFIRMATION

    def test_overdue_funded_escrows_are_reported_not_released(self):
        """Funded escrows past their long-stop date are only reported."""
        escrow = EscrowFactory(funded=True)

        summary = AutoReleaseScheduler.run_tick(escrow.auto_release_date + timedelta(days=1))

        assert summary.overdue == 1
        assert summary.released == 0
        assert Escrow.objects.get(pk=escrow.pk).status == EscrowStatus.FUNDED


@pytest.mark.django_db
class TestProcessAutoReleaseTask:
    """Tests for the periodic Celery task."""

    def test_task_returns_summary(self, delivered_escrow):
        """The task runs one tick and returns its summary dict."""
        with freeze_time(timezone.now() + timedelta(days=4)):
            result = process_auto_release_escrows.apply().get()

        assert result["released"] == 1
        assert result["released_ids"] == [str(delivered_escrow.pk)]
        assert set(result) >= {"candidates", "skipped", "failed", "overdue", "ran_at"}
