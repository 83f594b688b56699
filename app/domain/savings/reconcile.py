"""Recompute savings box balances from the transaction log."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.goals.sync import sync_goals_with_savings_box

from .models import SavingsBox, SavingsTransaction, SavingsTransactionType

ledger_logger = logging.getLogger("app.ledger")


@dataclass(slots=True)
class BoxDrift:
    box_id: int
    name: str
    stored: int
    computed: int

    @property
    def diff(self) -> int:
        return self.computed - self.stored


async def _outgoing(db: AsyncSession, user_id: int) -> dict[int, int]:
    """Signed effect of each row on its origin box."""
    signed = case(
        (SavingsTransaction.type == SavingsTransactionType.DEPOSIT.value, SavingsTransaction.amount),
        else_=-SavingsTransaction.amount,
    )
    result = await db.execute(
        select(SavingsTransaction.savings_box_id, func.coalesce(func.sum(signed), 0))
        .where(SavingsTransaction.user_id == user_id)
        .group_by(SavingsTransaction.savings_box_id)
    )
    return {box_id: int(total) for box_id, total in result}


async def _incoming(db: AsyncSession, user_id: int) -> dict[int, int]:
    result = await db.execute(
        select(
            SavingsTransaction.target_savings_box_id,
            func.coalesce(func.sum(SavingsTransaction.amount), 0),
        )
        .where(
            SavingsTransaction.user_id == user_id,
            SavingsTransaction.type == SavingsTransactionType.TRANSFER.value,
            SavingsTransaction.target_savings_box_id.is_not(None),
        )
        .group_by(SavingsTransaction.target_savings_box_id)
    )
    return {box_id: int(total) for box_id, total in result}


async def find_balance_drift(db: AsyncSession, *, user_id: int) -> list[BoxDrift]:
    """Return every box of the user whose stored balance differs from its log."""
    outgoing = await _outgoing(db, user_id)
    incoming = await _incoming(db, user_id)

    result = await db.execute(
        select(SavingsBox.id, SavingsBox.name, SavingsBox.current_amount)
        .where(SavingsBox.user_id == user_id)
        .order_by(SavingsBox.id)
    )
    drift = []
    for box_id, name, stored in result:
        computed = outgoing.get(box_id, 0) + incoming.get(box_id, 0)
        if computed != (stored or 0):
            drift.append(BoxDrift(box_id=box_id, name=name, stored=int(stored or 0), computed=computed))
    return drift


async def reconcile_savings_boxes(
    db: AsyncSession, *, user_id: int, apply: bool = False
) -> list[BoxDrift]:
    """Report drift and, when ``apply`` is set, overwrite the stored balances.

    Linked goals are re-synchronized for every corrected box. A negative
    computed balance is reported but never written.
    """
    drift = await find_balance_drift(db, user_id=user_id)
    if not apply or not drift:
        return drift

    for item in drift:
        if item.computed < 0:
            ledger_logger.error(
                "Savings box %s log sums to a negative balance (%s); left unchanged",
                item.box_id,
                item.computed,
            )
            continue
        await db.execute(
            update(SavingsBox)
            .where(SavingsBox.id == item.box_id, SavingsBox.user_id == user_id)
            .values(current_amount=item.computed)
            .execution_options(synchronize_session=False)
        )
        await sync_goals_with_savings_box(db, user_id=user_id, box_id=item.box_id)
        ledger_logger.warning(
            "Reconciled savings box %s: %s -> %s [user_id=%s]",
            item.box_id,
            item.stored,
            item.computed,
            user_id,
        )

    await db.commit()
    return drift
