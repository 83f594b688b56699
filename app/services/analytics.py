"""Read-side aggregates over savings boxes and their movements.

Pure queries: nothing here writes, and every statement is scoped to one user.
Amounts are returned in minor units.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domain.goals.models import Goal
from app.domain.savings.models import SavingsBox, SavingsTransaction, SavingsTransactionType


@dataclass(slots=True)
class _BoxRow:
    id: int
    name: str
    current_amount: int
    target_amount: int | None
    color: str | None
    icon: str | None


def _progress(current: int, target: int | None) -> float:
    """Completion percentage capped at 100; 0 for boxes without a target."""
    if not target:
        return 0.0
    return min(current / target * 100, 100.0)


async def _active_boxes(user_id: int, db: AsyncSession) -> list[_BoxRow]:
    result = await db.execute(
        select(
            SavingsBox.id,
            SavingsBox.name,
            SavingsBox.current_amount,
            SavingsBox.target_amount,
            SavingsBox.color,
            SavingsBox.icon,
        )
        .where(SavingsBox.user_id == user_id, SavingsBox.is_active.is_(True))
        .order_by(SavingsBox.current_amount.desc(), SavingsBox.id)
    )
    return [
        _BoxRow(
            id=row.id,
            name=row.name,
            current_amount=int(row.current_amount or 0),
            target_amount=row.target_amount,
            color=row.color,
            icon=row.icon,
        )
        for row in result
    ]


async def _linked_goals(user_id: int, db: AsyncSession) -> dict[int, list[dict[str, Any]]]:
    result = await db.execute(
        select(Goal.id, Goal.name, Goal.target_amount, Goal.current_amount, Goal.savings_box_id)
        .where(Goal.user_id == user_id, Goal.savings_box_id.is_not(None))
        .order_by(Goal.id)
    )
    linked: dict[int, list[dict[str, Any]]] = {}
    for row in result:
        linked.setdefault(row.savings_box_id, []).append(
            {
                "id": row.id,
                "name": row.name,
                "target_amount": row.target_amount,
                "current_amount": row.current_amount,
            }
        )
    return linked


async def get_savings_boxes_total(user_id: int, db: AsyncSession) -> int:
    """Sum of the balances of the user's active boxes."""
    total = await db.scalar(
        select(func.coalesce(func.sum(SavingsBox.current_amount), 0)).where(
            SavingsBox.user_id == user_id,
            SavingsBox.is_active.is_(True),
        )
    )
    return int(total or 0)


async def build_savings_boxes_summary(
    user_id: int,
    db: AsyncSession,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Top boxes by balance with progress and goal-link status (dashboard card)."""
    boxes = await _active_boxes(user_id, db)
    linked = await _linked_goals(user_id, db)

    summary = []
    for box in boxes[: limit or settings.SUMMARY_LIMIT]:
        goals = linked.get(box.id, [])
        summary.append(
            {
                "id": box.id,
                "name": box.name,
                "current_amount": box.current_amount,
                "target_amount": box.target_amount,
                "color": box.color or settings.DEFAULT_BOX_COLOR,
                "icon": box.icon or settings.DEFAULT_BOX_ICON,
                "progress_percentage": round(_progress(box.current_amount, box.target_amount)),
                "is_goal_linked": bool(goals),
                "linked_goal": goals[0] if goals else None,
            }
        )
    return summary


async def build_savings_boxes_stats(user_id: int, db: AsyncSession) -> dict[str, Any]:
    """Counts, totals and average completion over the user's active boxes."""
    boxes = await _active_boxes(user_id, db)
    linked = await _linked_goals(user_id, db)

    with_targets = [box for box in boxes if box.target_amount]
    completed = [box for box in with_targets if box.current_amount >= box.target_amount]
    if with_targets:
        average_completion = sum(
            _progress(box.current_amount, box.target_amount) for box in with_targets
        ) / len(with_targets)
    else:
        average_completion = 0.0

    return {
        "total_boxes": len(boxes),
        "total_amount": sum(box.current_amount for box in boxes),
        "total_with_goals": sum(1 for box in boxes if box.id in linked),
        "total_completed_goals": len(completed),
        "average_completion": round(average_completion),
    }


async def build_savings_transactions_stats(
    user_id: int,
    db: AsyncSession,
    box_id: int | None = None,
) -> dict[str, int]:
    """Number of movements and moved amount per type."""
    stmt = (
        select(
            SavingsTransaction.type,
            func.count(SavingsTransaction.id).label("count"),
            func.coalesce(func.sum(SavingsTransaction.amount), 0).label("total"),
        )
        .where(SavingsTransaction.user_id == user_id)
        .group_by(SavingsTransaction.type)
    )
    if box_id:
        stmt = stmt.where(
            or_(
                SavingsTransaction.savings_box_id == box_id,
                SavingsTransaction.target_savings_box_id == box_id,
            )
        )

    result = await db.execute(stmt)
    by_type = {row.type: (int(row.count), int(row.total or 0)) for row in result}

    deposits = by_type.get(SavingsTransactionType.DEPOSIT.value, (0, 0))
    withdraws = by_type.get(SavingsTransactionType.WITHDRAW.value, (0, 0))
    transfers = by_type.get(SavingsTransactionType.TRANSFER.value, (0, 0))

    return {
        "total_transactions": deposits[0] + withdraws[0] + transfers[0],
        "total_deposits": deposits[0],
        "total_withdraws": withdraws[0],
        "total_transfers": transfers[0],
        "total_deposited": deposits[1],
        "total_withdrawn": withdraws[1],
        "total_transferred": transfers[1],
    }
