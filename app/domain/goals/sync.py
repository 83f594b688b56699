"""Keep goals linked to a savings box mirroring the box balance."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.savings.models import SavingsBox

from .models import Goal

logger = logging.getLogger(__name__)


def refresh_completion(goal: Goal) -> bool:
    """Re-evaluate ``is_completed`` from the amounts; returns the new flag."""
    target = goal.target_amount or 0
    goal.is_completed = bool(target) and (goal.current_amount or 0) >= target
    return goal.is_completed


async def sync_goals_with_savings_box(
    db: AsyncSession, *, user_id: int, box_id: int
) -> list[Goal]:
    """Copy the box balance into every goal linked to it.

    Runs inside the caller's transaction and does not commit. Returns the
    goals that were linked to the box.
    """
    current_amount = await db.scalar(
        select(SavingsBox.current_amount).where(
            SavingsBox.id == box_id,
            SavingsBox.user_id == user_id,
        )
    )
    if current_amount is None:
        return []

    result = await db.execute(
        select(Goal)
        .where(Goal.savings_box_id == box_id, Goal.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    goals = list(result.scalars().all())

    changed = 0
    for goal in goals:
        was_completed = bool(goal.is_completed)
        if goal.current_amount != current_amount:
            goal.current_amount = current_amount
            changed += 1
        if refresh_completion(goal) != was_completed:
            logger.info(
                "Goal %s completion changed to %s via savings box %s",
                goal.id,
                goal.is_completed,
                box_id,
            )
        db.add(goal)

    if goals:
        await db.flush()
        logger.debug(
            "Synchronized %s goal(s) with savings box %s (%s updated)",
            len(goals),
            box_id,
            changed,
        )
    return goals
