"""
Escrow app: the ledger holding buyer funds against an order.

Components:
    - models.Escrow: held-funds record with its django-fsm state machine
    - services.EscrowLedger: the only code path that advances an escrow
    - scheduler.AutoReleaseScheduler: periodic release of lapsed confirmations
    - tasks.process_auto_release_escrows: Celery entry point for the scheduler

Usage:
    from escrow.services import EscrowLedger

    with EscrowLedger.atomic() as unit:
        result = EscrowLedger.mark_delivered(unit, escrow, actor=vendor)
        if not result.applied:
            ...  # another actor already moved the escrow
"""
