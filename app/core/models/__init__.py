from app.core.models.tenant import Tenant
from app.core.models.fee_plan import FeePlan
from app.core.models.student_account import StudentAccount
from app.core.models.invoice import Invoice, InvoiceLineItem
from app.core.models.payment import Payment
from app.core.models.approval_request import ApprovalRequest
from app.core.models.refund import Refund
from app.core.models.audit_event import AuditEvent
from app.core.models.document_sequence import DocumentSequence

__all__ = [
    "ApprovalRequest",
    "AuditEvent",
    "DocumentSequence",
    "FeePlan",
    "Invoice",
    "InvoiceLineItem",
    "Payment",
    "Refund",
    "StudentAccount",
    "Tenant",
]
