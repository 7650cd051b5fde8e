"""
Orders app: the order boundary of the settlement engine.

This app holds the Order record the escrow is attached to, including the
denormalized payment sub-record used to correlate provider notifications,
and the OrderSynchronizer that mirrors ledger outcomes onto the visible
order status.

Related apps:
    - escrow: Escrow ledger (authority on fund status)
    - payments: Reconciler writing the payment sub-record
    - notifications: Buyer/vendor notifications raised on status changes

Usage:
    from orders.services import OrderService
    from orders.synchronizer import OrderSynchronizer

    with OrderService.atomic() as unit:
        order = OrderService.place_order(unit, buyer, vendor, amount_cents=10_000_000)
"""
