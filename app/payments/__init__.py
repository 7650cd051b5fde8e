"""
Payments app: Monime integration and payment reconciliation.

Components:
    - adapters.MonimeClient: explicitly constructed provider HTTP client
    - services.ReconciliationService: converges webhook and poll signals
      onto the order's payment sub-record and the escrow ledger
    - services.PaymentStatusPoller: bounded, cancellable status polling
    - services.PaymentInitiationService: starts a provider payment for an order
    - webhooks.views.monime_webhook: inbound notification endpoint

Both ingestion paths build a PaymentNotice and call
ReconciliationService.apply_notice, which is idempotent: the order's
payment_reference is the correlation key and a terminal payment status is
never re-applied.
"""
