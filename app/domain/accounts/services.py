"""Financial account registry and the owner-scoped account lookups."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.results import ErrorKind, OperationError, OperationResult, operation
from app.core.validation import MAX_CENTS, to_cents

from .models import FinancialAccount
from .schemas import AccountCreate

logger = logging.getLogger(__name__)


async def get_user_account(
    db: AsyncSession,
    *,
    user_id: int,
    account_id: int,
    for_update: bool = False,
) -> FinancialAccount:
    """Return the account owned by ``user_id`` or raise NOT_FOUND."""
    stmt = (
        select(FinancialAccount)
        .where(FinancialAccount.id == account_id, FinancialAccount.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    account = result.scalar_one_or_none()
    if not account:
        raise OperationError(ErrorKind.NOT_FOUND, "Account not found")
    return account


@operation("create_account")
async def create_account(
    db: AsyncSession, *, user_id: int, data: AccountCreate
) -> OperationResult[FinancialAccount]:
    name = (data.name or "").strip()
    if not name:
        raise OperationError(ErrorKind.INVALID_INPUT, "Account name is required")

    try:
        balance = to_cents(data.balance)
    except ValueError:
        raise OperationError(ErrorKind.INVALID_INPUT, "Invalid account balance") from None
    if balance < 0:
        raise OperationError(ErrorKind.INVALID_INPUT, "Initial balance cannot be negative")
    if balance > MAX_CENTS:
        raise OperationError(ErrorKind.INVALID_INPUT, "Initial balance is too large")

    account = FinancialAccount(
        user_id=user_id,
        name=name,
        type=(data.type or "checking").strip(),
        balance=balance,
        currency=data.currency or settings.DEFAULT_CURRENCY,
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)
    return OperationResult.ok(account)


@operation("get_account")
async def get_account(
    db: AsyncSession, *, user_id: int, account_id: int
) -> OperationResult[FinancialAccount]:
    account = await get_user_account(db, user_id=user_id, account_id=account_id)
    return OperationResult.ok(account)


@operation("list_accounts")
async def list_accounts(db: AsyncSession, *, user_id: int) -> OperationResult[list[FinancialAccount]]:
    result = await db.execute(
        select(FinancialAccount)
        .where(FinancialAccount.user_id == user_id)
        .order_by(FinancialAccount.name)
    )
    return OperationResult.ok(list(result.scalars().all()))
