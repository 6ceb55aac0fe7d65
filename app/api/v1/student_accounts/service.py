"""
Student account aggregate.

Billing, payment and refund services mutate the aggregate through the ``post_*``
helpers below, inside their own transaction and on a row locked with
``lock_account``. ``reconcile`` replays the ledger to check the aggregate.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import CurrentUser
from app.core.enums import InvoiceStatus, RefundStatus
from app.core.exceptions import NotFoundError
from app.core.logging_config import get_logger
from app.core.models import Invoice, Payment, Refund, StudentAccount
from app.core.money import ZERO, to_money
from app.core.query_specs import assert_student_visible
from app.core.tenancy import resolve_query_tenant
from app.db.session import dialect_insert

from .schemas import AccountTotals, ReconciliationResponse, StudentAccountResponse

logger = get_logger(__name__)


async def lock_account(db: AsyncSession, tenant_id: UUID, student_id: UUID) -> StudentAccount:
    """Row-locked account for (tenant, student), created zeroed on first use. Never commits."""
    insert = dialect_insert(db)
    await db.execute(
        insert(StudentAccount)
        .values(
            tenant_id=tenant_id,
            student_id=student_id,
            total_billed=ZERO,
            total_paid=ZERO,
            total_refunded=ZERO,
            balance=ZERO,
        )
        .on_conflict_do_nothing(index_elements=["tenant_id", "student_id"])
    )
    return (
        await db.execute(
            select(StudentAccount)
            .where(StudentAccount.tenant_id == tenant_id, StudentAccount.student_id == student_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one()


def post_invoice(account: StudentAccount, total: Decimal) -> None:
    account.total_billed = to_money(account.total_billed) + total
    account.balance = to_money(account.balance) + total


def reverse_invoice(account: StudentAccount, total: Decimal) -> None:
    account.total_billed = to_money(account.total_billed) - total
    account.balance = to_money(account.balance) - total


def post_payment(account: StudentAccount, amount: Decimal) -> None:
    account.total_paid = to_money(account.total_paid) + amount
    account.balance = to_money(account.balance) - amount


def post_refund(account: StudentAccount, amount: Decimal) -> None:
    # An approved refund re-increases what the student owes the centre
    account.total_refunded = to_money(account.total_refunded) + amount
    account.balance = to_money(account.balance) + amount


def _totals(account: StudentAccount) -> AccountTotals:
    return AccountTotals(
        total_billed=to_money(account.total_billed),
        total_paid=to_money(account.total_paid),
        total_refunded=to_money(account.total_refunded),
        balance=to_money(account.balance),
    )


async def _load_account(
    db: AsyncSession,
    caller: CurrentUser,
    student_id: UUID,
    requested_tenant_id: Optional[UUID],
) -> StudentAccount:
    assert_student_visible(caller, "student_accounts", student_id)
    tenant_id = resolve_query_tenant(caller, requested_tenant_id)
    account = (
        await db.execute(
            select(StudentAccount).where(
                StudentAccount.tenant_id == tenant_id,
                StudentAccount.student_id == student_id,
            )
        )
    ).scalar_one_or_none()
    if not account:
        raise NotFoundError("Student account not found")
    return account


async def get_student_account(
    db: AsyncSession,
    caller: CurrentUser,
    student_id: UUID,
    requested_tenant_id: Optional[UUID] = None,
) -> StudentAccountResponse:
    account = await _load_account(db, caller, student_id, requested_tenant_id)
    return StudentAccountResponse.model_validate(account)


async def replay_totals(db: AsyncSession, tenant_id: UUID, student_id: UUID) -> AccountTotals:
    """Aggregate recomputed from invoices, payments and approved refunds."""
    billed = (
        await db.execute(
            select(func.coalesce(func.sum(Invoice.total), 0)).where(
                Invoice.tenant_id == tenant_id,
                Invoice.student_id == student_id,
                Invoice.status != InvoiceStatus.CANCELLED.value,
            )
        )
    ).scalar()
    paid = (
        await db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.tenant_id == tenant_id,
                Payment.student_id == student_id,
            )
        )
    ).scalar()
    refunded = (
        await db.execute(
            select(func.coalesce(func.sum(Refund.amount), 0)).where(
                Refund.tenant_id == tenant_id,
                Refund.student_id == student_id,
                Refund.status == RefundStatus.APPROVED.value,
            )
        )
    ).scalar()
    billed, paid, refunded = to_money(billed), to_money(paid), to_money(refunded)
    return AccountTotals(
        total_billed=billed,
        total_paid=paid,
        total_refunded=refunded,
        balance=billed - paid + refunded,
    )


async def reconcile_student_account(
    db: AsyncSession,
    caller: CurrentUser,
    student_id: UUID,
    requested_tenant_id: Optional[UUID] = None,
) -> ReconciliationResponse:
    account = await _load_account(db, caller, student_id, requested_tenant_id)
    stored = _totals(account)
    replayed = await replay_totals(db, account.tenant_id, student_id)
    in_balance = stored == replayed
    if not in_balance:
        logger.warning(
            "student_account_drift",
            tenant_id=str(account.tenant_id),
            student_id=str(student_id),
            stored_balance=str(stored.balance),
            replayed_balance=str(replayed.balance),
        )
    return ReconciliationResponse(
        tenant_id=account.tenant_id,
        student_id=student_id,
        stored=stored,
        replayed=replayed,
        in_balance=in_balance,
    )
