"""
Disputes app: buyer/vendor disputes that freeze and redirect an escrow.

A dispute can only be opened while the order's escrow holds funds (funded
or pending_confirmation). Opening it freezes the escrow; only an admin
resolution releases or refunds the frozen funds.

Usage:
    from disputes.services import DisputeController

    with DisputeController.atomic() as unit:
        dispute = DisputeController.open_dispute(
            unit, order, actor=buyer, reason="damaged", description="Screen cracked"
        )
"""
