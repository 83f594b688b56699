"""Savings boxes: lifecycle and the deposit/withdraw/transfer ledger.

Every movement runs in a single database transaction: the transaction row is
inserted, the balances are adjusted with datastore-side increments guarded by
``>= amount`` predicates, linked goals are re-synchronized, and only then is
the session committed. Any rejected guard rolls the whole unit back.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.results import ErrorKind, OperationError, OperationResult, operation
from app.core.validation import MAX_CENTS, Amount, format_money, to_cents
from app.domain.accounts.models import FinancialAccount
from app.domain.accounts.services import get_user_account
from app.domain.goals.models import Goal
from app.domain.goals.sync import sync_goals_with_savings_box

from .models import SavingsBox, SavingsTransaction, SavingsTransactionType
from .schemas import SavingsBoxCreate, SavingsBoxUpdate

logger = logging.getLogger(__name__)
ledger_logger = logging.getLogger("app.ledger")
security_logger = logging.getLogger("app.security")

TRANSACTION_DELETE_FORBIDDEN = (
    "Deleting savings transactions is not permitted. Contact support if needed."
)


# ---------------------------------------------------------------------------
# Lookups and guards
# ---------------------------------------------------------------------------

def require_amount(amount: Amount | None, message: str) -> int:
    """Convert a major-unit amount to cents, rejecting anything not positive."""
    if amount is None:
        raise OperationError(ErrorKind.INVALID_INPUT, message)
    try:
        cents = to_cents(amount)
    except ValueError:
        raise OperationError(ErrorKind.INVALID_INPUT, message) from None
    if cents <= 0:
        raise OperationError(ErrorKind.INVALID_INPUT, message)
    if cents > MAX_CENTS:
        raise OperationError(ErrorKind.INVALID_INPUT, "Amount is too large")
    return cents


def _optional_target(value: Decimal | None) -> int | None:
    if value is None:
        return None
    return require_amount(value, "Target amount must be greater than zero")


async def get_user_savings_box(
    db: AsyncSession,
    *,
    user_id: int,
    box_id: int,
    for_update: bool = False,
) -> SavingsBox:
    """Return the savings box owned by ``user_id`` or raise NOT_FOUND."""
    stmt = (
        select(SavingsBox)
        .where(SavingsBox.id == box_id, SavingsBox.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    box = result.scalar_one_or_none()
    if not box:
        raise OperationError(ErrorKind.NOT_FOUND, "Savings box not found")
    return box


def ensure_active(box: SavingsBox) -> None:
    if not box.is_active:
        raise OperationError(ErrorKind.INACTIVE_ENTITY, "Savings box is inactive")


def _box_shortfall(box_name: str, available: int) -> OperationError:
    return OperationError(
        ErrorKind.INSUFFICIENT_FUNDS,
        f'Insufficient balance in savings box "{box_name}". '
        f"Available: {format_money(available)}",
    )


def _account_shortfall(account_name: str, available: int) -> OperationError:
    return OperationError(
        ErrorKind.INSUFFICIENT_FUNDS,
        f"Insufficient balance in account {account_name}. "
        f"Available: {format_money(available)}",
    )


# ---------------------------------------------------------------------------
# Balance mutations (datastore-side, no commit)
# ---------------------------------------------------------------------------

async def _credit_box(db: AsyncSession, *, user_id: int, box_id: int, cents: int) -> None:
    await db.execute(
        update(SavingsBox)
        .where(SavingsBox.id == box_id, SavingsBox.user_id == user_id)
        .values(current_amount=SavingsBox.current_amount + cents)
        .execution_options(synchronize_session=False)
    )


async def _debit_box(db: AsyncSession, *, user_id: int, box: SavingsBox, cents: int) -> None:
    result = await db.execute(
        update(SavingsBox)
        .where(
            SavingsBox.id == box.id,
            SavingsBox.user_id == user_id,
            SavingsBox.current_amount >= cents,
        )
        .values(current_amount=SavingsBox.current_amount - cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = await db.scalar(
            select(SavingsBox.current_amount).where(SavingsBox.id == box.id)
        )
        raise _box_shortfall(box.name, available or 0)


async def credit_account(db: AsyncSession, *, user_id: int, account_id: int, cents: int) -> None:
    await db.execute(
        update(FinancialAccount)
        .where(FinancialAccount.id == account_id, FinancialAccount.user_id == user_id)
        .values(balance=FinancialAccount.balance + cents)
        .execution_options(synchronize_session=False)
    )


async def debit_account(
    db: AsyncSession, *, user_id: int, account: FinancialAccount, cents: int
) -> None:
    result = await db.execute(
        update(FinancialAccount)
        .where(
            FinancialAccount.id == account.id,
            FinancialAccount.user_id == user_id,
            FinancialAccount.balance >= cents,
        )
        .values(balance=FinancialAccount.balance - cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = await db.scalar(
            select(FinancialAccount.balance).where(FinancialAccount.id == account.id)
        )
        raise _account_shortfall(account.name, available or 0)


# ---------------------------------------------------------------------------
# Ledger movements
# ---------------------------------------------------------------------------

async def post_deposit(
    db: AsyncSession,
    *,
    user_id: int,
    box_id: int,
    amount: Amount,
    account_id: int | None = None,
    description: str | None = None,
) -> SavingsTransaction:
    """Validate and stage a deposit; the caller commits."""
    if not box_id:
        raise OperationError(ErrorKind.INVALID_INPUT, "Savings box id is required")
    cents = require_amount(amount, "Deposit amount must be greater than zero")

    box = await get_user_savings_box(db, user_id=user_id, box_id=box_id, for_update=True)
    ensure_active(box)

    account = None
    if account_id:
        account = await get_user_account(
            db, user_id=user_id, account_id=account_id, for_update=True
        )
        if (account.balance or 0) < cents:
            raise _account_shortfall(account.name, account.balance or 0)

    transaction = SavingsTransaction(
        user_id=user_id,
        savings_box_id=box.id,
        source_account_id=account.id if account else None,
        amount=cents,
        type=SavingsTransactionType.DEPOSIT.value,
        description=description or f"Deposit to savings box {box.name}",
    )
    db.add(transaction)
    await db.flush()

    await _credit_box(db, user_id=user_id, box_id=box.id, cents=cents)
    if account is not None:
        await debit_account(db, user_id=user_id, account=account, cents=cents)

    await sync_goals_with_savings_box(db, user_id=user_id, box_id=box.id)
    return transaction


async def post_withdraw(
    db: AsyncSession,
    *,
    user_id: int,
    box_id: int,
    amount: Amount,
    account_id: int | None = None,
    description: str | None = None,
) -> SavingsTransaction:
    """Validate and stage a withdrawal; the caller commits."""
    if not box_id:
        raise OperationError(ErrorKind.INVALID_INPUT, "Savings box id is required")
    cents = require_amount(amount, "Withdrawal amount must be greater than zero")

    box = await get_user_savings_box(db, user_id=user_id, box_id=box_id, for_update=True)
    ensure_active(box)
    if (box.current_amount or 0) < cents:
        raise _box_shortfall(box.name, box.current_amount or 0)

    account = None
    if account_id:
        account = await get_user_account(db, user_id=user_id, account_id=account_id)

    transaction = SavingsTransaction(
        user_id=user_id,
        savings_box_id=box.id,
        source_account_id=account.id if account else None,
        amount=cents,
        type=SavingsTransactionType.WITHDRAW.value,
        description=description or f"Withdrawal from savings box {box.name}",
    )
    db.add(transaction)
    await db.flush()

    await _debit_box(db, user_id=user_id, box=box, cents=cents)
    if account is not None:
        await credit_account(db, user_id=user_id, account_id=account.id, cents=cents)

    await sync_goals_with_savings_box(db, user_id=user_id, box_id=box.id)
    return transaction


@operation("deposit_to_savings_box")
async def deposit_to_savings_box(
    db: AsyncSession,
    *,
    user_id: int,
    box_id: int,
    amount: Amount,
    account_id: int | None = None,
    description: str | None = None,
) -> OperationResult[SavingsTransaction]:
    transaction = await post_deposit(
        db,
        user_id=user_id,
        box_id=box_id,
        amount=amount,
        account_id=account_id,
        description=description,
    )
    await db.commit()
    await db.refresh(transaction)
    ledger_logger.info(
        "Deposit posted [user_id=%s, box_id=%s, account_id=%s, amount=%s, transaction_id=%s]",
        user_id,
        box_id,
        account_id,
        transaction.amount,
        transaction.id,
    )
    return OperationResult.ok(transaction)


@operation("withdraw_from_savings_box")
async def withdraw_from_savings_box(
    db: AsyncSession,
    *,
    user_id: int,
    box_id: int,
    amount: Amount,
    account_id: int | None = None,
    description: str | None = None,
) -> OperationResult[SavingsTransaction]:
    transaction = await post_withdraw(
        db,
        user_id=user_id,
        box_id=box_id,
        amount=amount,
        account_id=account_id,
        description=description,
    )
    await db.commit()
    await db.refresh(transaction)
    ledger_logger.info(
        "Withdrawal posted [user_id=%s, box_id=%s, account_id=%s, amount=%s, transaction_id=%s]",
        user_id,
        box_id,
        account_id,
        transaction.amount,
        transaction.id,
    )
    return OperationResult.ok(transaction)


@operation("transfer_between_boxes")
async def transfer_between_boxes(
    db: AsyncSession,
    *,
    user_id: int,
    from_box_id: int,
    to_box_id: int,
    amount: Amount,
    description: str | None = None,
) -> OperationResult[SavingsTransaction]:
    """Move money between two boxes of the same user.

    A transfer is recorded as ONE row that references both boxes; the source
    is debited and the destination credited in the same transaction.
    """
    if not from_box_id or not to_box_id:
        raise OperationError(ErrorKind.INVALID_INPUT, "Both savings box ids are required")
    if from_box_id == to_box_id:
        raise OperationError(ErrorKind.INVALID_INPUT, "Cannot transfer to the same savings box")
    cents = require_amount(amount, "Transfer amount must be greater than zero")

    result = await db.execute(
        select(SavingsBox)
        .where(
            SavingsBox.id.in_([from_box_id, to_box_id]),
            SavingsBox.user_id == user_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    boxes = {box.id: box for box in result.scalars().all()}
    if len(boxes) != 2:
        raise OperationError(ErrorKind.NOT_FOUND, "One or both savings boxes were not found")

    from_box = boxes[from_box_id]
    to_box = boxes[to_box_id]
    if not from_box.is_active or not to_box.is_active:
        raise OperationError(ErrorKind.INACTIVE_ENTITY, "One of the savings boxes is inactive")
    if (from_box.current_amount or 0) < cents:
        raise _box_shortfall(from_box.name, from_box.current_amount or 0)

    transaction = SavingsTransaction(
        user_id=user_id,
        savings_box_id=from_box.id,
        target_savings_box_id=to_box.id,
        amount=cents,
        type=SavingsTransactionType.TRANSFER.value,
        description=description or f'Transfer from "{from_box.name}" to "{to_box.name}"',
    )
    db.add(transaction)
    await db.flush()

    await _debit_box(db, user_id=user_id, box=from_box, cents=cents)
    await _credit_box(db, user_id=user_id, box_id=to_box.id, cents=cents)

    await sync_goals_with_savings_box(db, user_id=user_id, box_id=from_box.id)
    await sync_goals_with_savings_box(db, user_id=user_id, box_id=to_box.id)

    await db.commit()
    await db.refresh(transaction)
    ledger_logger.info(
        "Transfer posted [user_id=%s, from_box_id=%s, to_box_id=%s, amount=%s, transaction_id=%s]",
        user_id,
        from_box.id,
        to_box.id,
        cents,
        transaction.id,
    )
    return OperationResult.ok(transaction)


@operation("delete_savings_transaction")
async def delete_savings_transaction(
    db: AsyncSession, *, user_id: int, transaction_id: Any
) -> OperationResult[None]:
    """Posted transactions are immutable; deletion is always refused."""
    security_logger.info(
        "Refused savings transaction deletion [user_id=%s, transaction_id=%s]",
        user_id,
        transaction_id,
    )
    return OperationResult.fail(ErrorKind.NOT_PERMITTED, TRANSACTION_DELETE_FORBIDDEN)


@operation("list_savings_transactions")
async def list_savings_transactions(
    db: AsyncSession,
    *,
    user_id: int,
    box_id: int | None = None,
    limit: int | None = None,
) -> OperationResult[list[SavingsTransaction]]:
    """Newest first; with ``box_id`` both outgoing and incoming rows are listed."""
    stmt = (
        select(SavingsTransaction)
        .where(SavingsTransaction.user_id == user_id)
        .order_by(SavingsTransaction.created_at.desc(), SavingsTransaction.id.desc())
    )
    if box_id:
        stmt = stmt.where(
            or_(
                SavingsTransaction.savings_box_id == box_id,
                SavingsTransaction.target_savings_box_id == box_id,
            )
        )
    if limit:
        stmt = stmt.limit(min(limit, settings.TRANSACTIONS_PAGE_LIMIT))
    result = await db.execute(stmt)
    return OperationResult.ok(list(result.scalars().all()))


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@operation("create_savings_box")
async def create_savings_box(
    db: AsyncSession, *, user_id: int, data: SavingsBoxCreate
) -> OperationResult[SavingsBox]:
    name = (data.name or "").strip()
    if not name:
        raise OperationError(ErrorKind.INVALID_INPUT, "Savings box name is required")

    box = SavingsBox(
        user_id=user_id,
        name=name,
        description=data.description or None,
        color=data.color or settings.DEFAULT_BOX_COLOR,
        icon=data.icon or settings.DEFAULT_BOX_ICON,
        current_amount=0,
        target_amount=_optional_target(data.target_amount),
        is_active=True,
    )
    db.add(box)
    await db.commit()
    await db.refresh(box)
    logger.info("Savings box %s created for user %s", box.id, user_id)
    return OperationResult.ok(box)


@operation("update_savings_box")
async def update_savings_box(
    db: AsyncSession, *, user_id: int, box_id: int, data: SavingsBoxUpdate
) -> OperationResult[SavingsBox]:
    box = await get_user_savings_box(db, user_id=user_id, box_id=box_id)

    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        return OperationResult.ok(box)

    if "name" in update_data and not (update_data["name"] or "").strip():
        raise OperationError(ErrorKind.INVALID_INPUT, "Savings box name is required")
    if "target_amount" in update_data:
        update_data["target_amount"] = _optional_target(update_data["target_amount"])
    if "color" in update_data and not update_data["color"]:
        update_data["color"] = settings.DEFAULT_BOX_COLOR
    if "icon" in update_data and not update_data["icon"]:
        update_data["icon"] = settings.DEFAULT_BOX_ICON

    for field, value in update_data.items():
        setattr(box, field, value)

    await db.commit()
    await db.refresh(box)
    return OperationResult.ok(box)


async def _ensure_box_can_be_retired(db: AsyncSession, *, user_id: int, box: SavingsBox) -> None:
    """Guard clauses shared by soft and hard deletion."""
    if (box.current_amount or 0) > 0:
        raise OperationError(
            ErrorKind.CONFLICT,
            f'Cannot delete savings box "{box.name}" because it still holds a balance. '
            "Withdraw the money before deleting it.",
        )

    linked = await db.execute(
        select(Goal.name)
        .where(Goal.savings_box_id == box.id, Goal.user_id == user_id)
        .order_by(Goal.name)
    )
    goal_names = [row[0] for row in linked.all()]
    if goal_names:
        raise OperationError(
            ErrorKind.CONFLICT,
            "Cannot delete the savings box because it is linked to goal(s): "
            f"{', '.join(goal_names)}. Unlink them first.",
        )


@operation("delete_savings_box")
async def delete_savings_box(
    db: AsyncSession, *, user_id: int, box_id: int
) -> OperationResult[None]:
    """Soft delete: the box is deactivated, its history is kept."""
    box = await get_user_savings_box(db, user_id=user_id, box_id=box_id, for_update=True)
    await _ensure_box_can_be_retired(db, user_id=user_id, box=box)

    box.is_active = False
    await db.commit()
    logger.info("Savings box %s deactivated for user %s", box_id, user_id)
    return OperationResult.ok()


@operation("purge_savings_box")
async def purge_savings_box(
    db: AsyncSession, *, user_id: int, box_id: int
) -> OperationResult[None]:
    """Hard delete, only for boxes that never took part in a movement."""
    box = await get_user_savings_box(db, user_id=user_id, box_id=box_id, for_update=True)
    await _ensure_box_can_be_retired(db, user_id=user_id, box=box)

    history = await db.scalar(
        select(func.count(SavingsTransaction.id)).where(
            or_(
                SavingsTransaction.savings_box_id == box.id,
                SavingsTransaction.target_savings_box_id == box.id,
            )
        )
    )
    if history:
        raise OperationError(
            ErrorKind.CONFLICT,
            f'Savings box "{box.name}" has transaction history and can only be deactivated.',
        )

    await db.execute(
        delete(SavingsBox).where(SavingsBox.id == box.id, SavingsBox.user_id == user_id)
    )
    await db.commit()
    logger.info("Savings box %s permanently deleted for user %s", box_id, user_id)
    return OperationResult.ok()


@operation("restore_savings_box")
async def restore_savings_box(
    db: AsyncSession, *, user_id: int, box_id: int
) -> OperationResult[SavingsBox]:
    box = await get_user_savings_box(db, user_id=user_id, box_id=box_id)
    box.is_active = True
    await db.commit()
    await db.refresh(box)
    return OperationResult.ok(box)


@operation("get_savings_box")
async def get_savings_box(
    db: AsyncSession, *, user_id: int, box_id: int
) -> OperationResult[SavingsBox]:
    box = await get_user_savings_box(db, user_id=user_id, box_id=box_id)
    return OperationResult.ok(box)


@operation("list_savings_boxes")
async def list_savings_boxes(
    db: AsyncSession, *, user_id: int, include_inactive: bool = False
) -> OperationResult[list[SavingsBox]]:
    stmt = (
        select(SavingsBox)
        .where(SavingsBox.user_id == user_id)
        .order_by(SavingsBox.created_at.desc(), SavingsBox.id.desc())
        .execution_options(populate_existing=True)
    )
    if not include_inactive:
        stmt = stmt.where(SavingsBox.is_active.is_(True))
    result = await db.execute(stmt)
    return OperationResult.ok(list(result.scalars().all()))
