"""
Payment recorder.

A payment, the invoice's derived fields and the student account move together in
one transaction under row locks on the invoice and the account, so concurrent
payments against the same invoice can never overpay it.
"""

from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.audit.service import record_audit_event
from app.api.v1.invoices.service import load_invoice
from app.api.v1.student_accounts.service import lock_account, post_payment
from app.auth.schemas import CurrentUser
from app.core.enums import AuditAction, InvoiceStatus, RefundStatus
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.core.models import Payment, Refund
from app.core.money import ZERO, to_money
from app.core.query_specs import TenantListSpec
from app.core.tenancy import assert_access
from app.db.session import transaction

from .schemas import PaymentCreate, PaymentRecordedResponse, PaymentResponse

logger = get_logger(__name__)

RESOURCE_TYPE = "Payment"


def _payment_state(payment: Payment, invoice_status: str) -> Dict:
    return {
        "invoice_id": payment.invoice_id,
        "student_id": payment.student_id,
        "amount": str(to_money(payment.amount)),
        "method": payment.method,
        "payment_date": payment.payment_date,
        "reference": payment.reference,
        "invoice_status": invoice_status,
    }


def next_invoice_status(current: str, paid_amount, balance) -> str:
    if balance <= ZERO:
        return InvoiceStatus.PAID.value
    if paid_amount > ZERO:
        return InvoiceStatus.PARTIAL.value
    return current


async def record_payment(
    db: AsyncSession,
    caller: CurrentUser,
    payload: PaymentCreate,
    origin: Optional[str] = None,
) -> PaymentRecordedResponse:
    amount = to_money(payload.amount)
    if amount <= ZERO:
        raise ValidationError("Payment amount must be greater than zero")

    async with transaction(db):
        invoice = await load_invoice(db, caller, payload.invoice_id, for_update=True)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise ValidationError("Cannot record a payment against a cancelled invoice")
        if amount > to_money(invoice.balance):
            raise ValidationError("Payment amount exceeds invoice balance")

        account = await lock_account(db, invoice.tenant_id, invoice.student_id)
        payment = Payment(
            tenant_id=invoice.tenant_id,
            invoice_id=invoice.id,
            student_id=invoice.student_id,
            amount=amount,
            method=payload.method.value,
            payment_date=payload.payment_date,
            reference=payload.reference,
            notes=payload.notes,
            recorded_by=caller.id,
        )
        db.add(payment)

        paid_amount = to_money(invoice.paid_amount) + amount
        balance = to_money(invoice.total) - paid_amount
        invoice.paid_amount = paid_amount
        invoice.balance = balance
        invoice.status = next_invoice_status(invoice.status, paid_amount, balance)
        post_payment(account, amount)
        await db.flush()

    logger.info(
        "payment_recorded",
        tenant_id=str(payment.tenant_id),
        invoice_id=str(invoice.id),
        amount=str(amount),
        invoice_status=invoice.status,
    )
    response = PaymentRecordedResponse(
        **PaymentResponse.model_validate(payment).model_dump(),
        invoice_status=invoice.status,
        invoice_paid_amount=paid_amount,
        invoice_balance=balance,
    )
    await record_audit_event(
        db, caller, AuditAction.CREATE, RESOURCE_TYPE, payment.id,
        tenant_id=payment.tenant_id, after_state=_payment_state(payment, invoice.status), origin=origin,
    )
    return response


async def refunded_total(db: AsyncSession, payment_id: UUID, statuses: List[str]) -> Decimal:
    """Sum of the payment's refunds in the given statuses, quantized to cents."""
    total = (
        await db.execute(
            select(func.coalesce(func.sum(Refund.amount), 0)).where(
                Refund.payment_id == payment_id,
                Refund.status.in_(statuses),
            )
        )
    ).scalar()
    return to_money(total)


async def list_payments(
    db: AsyncSession,
    caller: CurrentUser,
    *,
    requested_tenant_id: Optional[UUID] = None,
    invoice_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[PaymentResponse]:
    spec = TenantListSpec.for_caller(
        caller,
        requested_tenant_id=requested_tenant_id,
        limit=limit,
        offset=offset,
        invoice_id=invoice_id,
        student_id=student_id,
    )
    stmt = spec.apply(select(Payment), Payment).order_by(Payment.created_at.desc(), Payment.id)
    result = await db.execute(stmt)
    return [PaymentResponse.model_validate(p) for p in result.scalars().all()]


async def get_payment(db: AsyncSession, caller: CurrentUser, payment_id: UUID) -> PaymentResponse:
    payment = (await db.execute(select(Payment).where(Payment.id == payment_id))).scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment not found")
    assert_access(caller, payment.tenant_id)
    response = PaymentResponse.model_validate(payment)
    response.refunded_amount = await refunded_total(db, payment.id, [RefundStatus.APPROVED.value])
    return response
