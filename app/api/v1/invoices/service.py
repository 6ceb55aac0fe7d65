"""Invoice ledger: invoices with their line items, posted to the student account."""

from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.audit.service import record_audit_event
from app.api.v1.student_accounts.service import lock_account, post_invoice, reverse_invoice
from app.auth.schemas import CurrentUser
from app.core.enums import AuditAction, InvoiceStatus, SequenceKind
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.logging_config import get_logger
from app.core.models import FeePlan, Invoice, InvoiceLineItem
from app.core.money import ZERO, line_amount, to_money
from app.core.query_specs import InvoiceQuerySpec, assert_student_visible
from app.core.sequences import allocate_number
from app.core.tenancy import assert_access, require_caller_tenant
from app.db.session import transaction

from .schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate

logger = get_logger(__name__)

RESOURCE_TYPE = "Invoice"


def _invoice_state(invoice: Invoice) -> Dict:
    return {
        "invoice_number": invoice.invoice_number,
        "student_id": invoice.student_id,
        "subtotal": str(to_money(invoice.subtotal)),
        "tax": str(to_money(invoice.tax)),
        "total": str(to_money(invoice.total)),
        "paid_amount": str(to_money(invoice.paid_amount)),
        "balance": str(to_money(invoice.balance)),
        "status": invoice.status,
        "due_date": invoice.due_date,
        "notes": invoice.notes,
    }


def _to_response(invoice: Invoice) -> InvoiceResponse:
    return InvoiceResponse.model_validate(invoice)


async def load_invoice(
    db: AsyncSession,
    caller: CurrentUser,
    invoice_id: UUID,
    for_update: bool = False,
) -> Invoice:
    """Invoice by id after the tenant check; ``for_update`` takes the row lock."""
    stmt = select(Invoice).where(Invoice.id == invoice_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    invoice = (await db.execute(stmt)).scalar_one_or_none()
    if not invoice:
        raise NotFoundError("Invoice not found")
    assert_access(caller, invoice.tenant_id)
    return invoice


async def create_invoice(
    db: AsyncSession,
    caller: CurrentUser,
    payload: InvoiceCreate,
    origin: Optional[str] = None,
) -> InvoiceResponse:
    tenant_id = require_caller_tenant(caller)

    if payload.fee_plan_id:
        fee_plan = (
            await db.execute(
                select(FeePlan.id).where(FeePlan.id == payload.fee_plan_id, FeePlan.tenant_id == tenant_id)
            )
        ).scalar_one_or_none()
        if not fee_plan:
            raise NotFoundError("Fee plan not found")

    amounts = [line_amount(item.quantity, item.unit_price) for item in payload.line_items]
    subtotal = to_money(sum(amounts, ZERO))
    tax = to_money(payload.tax)
    total = subtotal + tax

    async with transaction(db):
        account = await lock_account(db, tenant_id, payload.student_id)
        invoice_number = await allocate_number(db, tenant_id, SequenceKind.INVOICE)
        invoice = Invoice(
            tenant_id=tenant_id,
            invoice_number=invoice_number,
            student_account_id=account.id,
            student_id=payload.student_id,
            fee_plan_id=payload.fee_plan_id,
            subtotal=subtotal,
            tax=tax,
            total=total,
            paid_amount=ZERO,
            balance=total,
            status=payload.status,
            due_date=payload.due_date,
            notes=(payload.notes or "").strip() or None,
            created_by=caller.id,
            line_items=[
                InvoiceLineItem(
                    description=item.description.strip(),
                    quantity=item.quantity,
                    unit_price=to_money(item.unit_price),
                    amount=amount,
                    position=position,
                )
                for position, (item, amount) in enumerate(zip(payload.line_items, amounts))
            ],
        )
        db.add(invoice)
        post_invoice(account, total)
        await db.flush()

    logger.info("invoice_created", tenant_id=str(tenant_id), invoice_number=invoice_number, total=str(total))
    response = _to_response(invoice)
    await record_audit_event(
        db, caller, AuditAction.CREATE, RESOURCE_TYPE, invoice.id,
        tenant_id=tenant_id, after_state=_invoice_state(invoice), origin=origin,
        metadata={"line_item_count": len(amounts)},
    )
    return response


async def list_invoices(
    db: AsyncSession,
    caller: CurrentUser,
    *,
    requested_tenant_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
    status_filter: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[InvoiceResponse]:
    spec = InvoiceQuerySpec.for_caller(
        caller,
        requested_tenant_id=requested_tenant_id,
        student_id=student_id,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    result = await db.execute(spec.apply(select(Invoice), Invoice))
    return [_to_response(inv) for inv in result.scalars().all()]


async def get_invoice(db: AsyncSession, caller: CurrentUser, invoice_id: UUID) -> InvoiceResponse:
    invoice = await load_invoice(db, caller, invoice_id)
    assert_student_visible(caller, "invoices", invoice.student_id)
    return _to_response(invoice)


def _check_status_change(invoice: Invoice, new_status: str) -> None:
    if new_status == invoice.status:
        raise ConflictError(f"Invoice is already {invoice.status.lower()}")
    if invoice.status == InvoiceStatus.CANCELLED.value:
        raise ValidationError("Cancelled invoices cannot change status")
    if new_status == InvoiceStatus.SENT.value and invoice.status != InvoiceStatus.DRAFT.value:
        raise ValidationError("Only draft invoices can be marked as sent")
    if new_status == InvoiceStatus.CANCELLED.value and to_money(invoice.paid_amount) > ZERO:
        raise ValidationError("Cannot cancel an invoice with recorded payments")


async def update_invoice(
    db: AsyncSession,
    caller: CurrentUser,
    invoice_id: UUID,
    payload: InvoiceUpdate,
    origin: Optional[str] = None,
) -> InvoiceResponse:
    changes = payload.model_dump(exclude_unset=True)
    async with transaction(db):
        invoice = await load_invoice(db, caller, invoice_id, for_update=True)
        new_status = changes.get("status")
        if new_status is not None:
            _check_status_change(invoice, new_status)
        before = _invoice_state(invoice)

        if changes.get("due_date") is not None:
            invoice.due_date = changes["due_date"]
        if "notes" in changes:
            invoice.notes = (changes["notes"] or "").strip() or None
        if new_status == InvoiceStatus.CANCELLED.value:
            account = await lock_account(db, invoice.tenant_id, invoice.student_id)
            reverse_invoice(account, to_money(invoice.total))
        if new_status is not None:
            invoice.status = new_status
        await db.flush()

    response = _to_response(invoice)
    await record_audit_event(
        db, caller, AuditAction.UPDATE, RESOURCE_TYPE, invoice.id,
        tenant_id=invoice.tenant_id, before_state=before, after_state=_invoice_state(invoice), origin=origin,
    )
    return response
