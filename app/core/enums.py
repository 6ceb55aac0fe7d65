from enum import Enum


class FeeFrequency(str, Enum):
    ONE_TIME = "ONE_TIME"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    TERM = "TERM"
    ANNUAL = "ANNUAL"


class FeePlanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ARCHIVED = "ARCHIVED"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHECK = "CHECK"
    UPI = "UPI"
    OTHER = "OTHER"


class RefundMethod(str, Enum):
    ORIGINAL_METHOD = "ORIGINAL_METHOD"
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_NOTE = "CREDIT_NOTE"


class RefundStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ApprovalType(str, Enum):
    REFUND = "REFUND"
    FEE_WAIVER = "FEE_WAIVER"
    INVOICE_ADJUSTMENT = "INVOICE_ADJUSTMENT"
    OTHER = "OTHER"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    ESCALATE = "ESCALATE"


class SequenceKind(str, Enum):
    INVOICE = "INV"
    REFUND = "REF"
