from payments.services.initiation_service import PaymentInitiationService, generate_payment_reference
from payments.services.poller import PaymentStatusPoller
from payments.services.reconciliation_service import ReconciliationService
from payments.services.status_service import PaymentStatusService

__all__ = [
    "PaymentInitiationService",
    "PaymentStatusPoller",
    "PaymentStatusService",
    "ReconciliationService",
    "generate_payment_reference",
]
