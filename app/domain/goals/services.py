"""Financial goals and their linkage to savings boxes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.results import ErrorKind, OperationError, OperationResult, operation
from app.core.validation import Amount
from app.domain.accounts.services import get_user_account
from app.domain.savings.services import (
    debit_account,
    ensure_active,
    get_user_savings_box,
    post_deposit,
    require_amount,
)
from app.domain.transactions.models import Transaction

from .models import Goal
from .schemas import GoalCreate, GoalUpdate
from .sync import refresh_completion

logger = logging.getLogger(__name__)
ledger_logger = logging.getLogger("app.ledger")

LinkTransition = Literal["linking", "unlinking", "relinking", "no-op"]

GOAL_CONTRIBUTION_CATEGORY = "goal_contribution"


@dataclass(slots=True)
class GoalLinkOutcome:
    goal: Goal
    transition: LinkTransition


def link_transition(previous_box_id: int | None, new_box_id: int | None) -> LinkTransition:
    if previous_box_id == new_box_id:
        return "no-op"
    if previous_box_id is None:
        return "linking"
    if new_box_id is None:
        return "unlinking"
    return "relinking"


async def get_user_goal(
    db: AsyncSession,
    *,
    user_id: int,
    goal_id: int,
    for_update: bool = False,
) -> Goal:
    """Return the goal owned by ``user_id`` or raise NOT_FOUND."""
    stmt = (
        select(Goal)
        .where(Goal.id == goal_id, Goal.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    goal = result.scalar_one_or_none()
    if not goal:
        raise OperationError(ErrorKind.NOT_FOUND, "Goal not found")
    return goal


def _check_dates(start: date, target: date) -> None:
    if target < start:
        raise OperationError(
            ErrorKind.INVALID_INPUT, "Target date must be on or after the start date"
        )


@operation("create_goal")
async def create_goal(
    db: AsyncSession, *, user_id: int, data: GoalCreate
) -> OperationResult[Goal]:
    name = (data.name or "").strip()
    if not name:
        raise OperationError(ErrorKind.INVALID_INPUT, "Goal name is required")
    target = require_amount(data.target_amount, "Goal target must be greater than zero")
    start = data.start_date or date.today()
    _check_dates(start, data.target_date)

    await get_user_account(db, user_id=user_id, account_id=data.account_id)

    current_amount = 0
    if data.savings_box_id is not None:
        box = await get_user_savings_box(db, user_id=user_id, box_id=data.savings_box_id)
        ensure_active(box)
        current_amount = box.current_amount or 0

    goal = Goal(
        user_id=user_id,
        name=name,
        description=data.description or None,
        target_amount=target,
        current_amount=current_amount,
        start_date=start,
        target_date=data.target_date,
        category_id=data.category_id,
        account_id=data.account_id,
        savings_box_id=data.savings_box_id,
    )
    refresh_completion(goal)
    db.add(goal)
    await db.commit()
    await db.refresh(goal)
    return OperationResult.ok(goal)


@operation("get_goal")
async def get_goal(db: AsyncSession, *, user_id: int, goal_id: int) -> OperationResult[Goal]:
    goal = await get_user_goal(db, user_id=user_id, goal_id=goal_id)
    return OperationResult.ok(goal)


@operation("list_goals")
async def list_goals(db: AsyncSession, *, user_id: int) -> OperationResult[list[Goal]]:
    result = await db.execute(
        select(Goal)
        .where(Goal.user_id == user_id)
        .order_by(Goal.target_date, Goal.id)
        .execution_options(populate_existing=True)
    )
    return OperationResult.ok(list(result.scalars().all()))


@operation("update_goal")
async def update_goal(
    db: AsyncSession, *, user_id: int, goal_id: int, data: GoalUpdate
) -> OperationResult[Goal]:
    goal = await get_user_goal(db, user_id=user_id, goal_id=goal_id)

    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        return OperationResult.ok(goal)

    if "name" in update_data and not (update_data["name"] or "").strip():
        raise OperationError(ErrorKind.INVALID_INPUT, "Goal name is required")
    if "target_amount" in update_data:
        update_data["target_amount"] = require_amount(
            update_data["target_amount"], "Goal target must be greater than zero"
        )
    if "account_id" in update_data:
        if update_data["account_id"] is None:
            raise OperationError(ErrorKind.INVALID_INPUT, "Goal account is required")
        await get_user_account(db, user_id=user_id, account_id=update_data["account_id"])
    for field in ("start_date", "target_date"):
        if field in update_data and update_data[field] is None:
            raise OperationError(ErrorKind.INVALID_INPUT, "Goal dates are required")

    _check_dates(
        update_data.get("start_date", goal.start_date),
        update_data.get("target_date", goal.target_date),
    )

    for field, value in update_data.items():
        setattr(goal, field, value)
    refresh_completion(goal)

    await db.commit()
    await db.refresh(goal)
    return OperationResult.ok(goal)


@operation("delete_goal")
async def delete_goal(db: AsyncSession, *, user_id: int, goal_id: int) -> OperationResult[None]:
    goal = await get_user_goal(db, user_id=user_id, goal_id=goal_id)
    await db.delete(goal)
    await db.commit()
    logger.info("Goal %s deleted for user %s", goal_id, user_id)
    return OperationResult.ok()


@operation("link_goal_to_savings_box")
async def link_goal_to_savings_box(
    db: AsyncSession, *, user_id: int, goal_id: int, box_id: int | None
) -> OperationResult[GoalLinkOutcome]:
    """Link, relink or unlink a goal.

    Linking copies the box balance into the goal in the same update.
    Unlinking keeps the last mirrored amount as a snapshot.
    """
    goal = await get_user_goal(db, user_id=user_id, goal_id=goal_id, for_update=True)
    transition = link_transition(goal.savings_box_id, box_id)

    if box_id is not None:
        box = await get_user_savings_box(db, user_id=user_id, box_id=box_id)
        ensure_active(box)
        goal.current_amount = box.current_amount or 0
    goal.savings_box_id = box_id
    refresh_completion(goal)

    await db.commit()
    await db.refresh(goal)
    logger.info(
        "Goal %s %s [user_id=%s, savings_box_id=%s]", goal.id, transition, user_id, box_id
    )
    return OperationResult.ok(GoalLinkOutcome(goal=goal, transition=transition))


@operation("contribute_to_goal")
async def contribute_to_goal(
    db: AsyncSession, *, user_id: int, goal_id: int, amount: Amount
) -> OperationResult[Goal]:
    """Add money to a goal.

    A linked goal is funded through a deposit into its savings box from the
    goal's account, and mirrors the new box balance. An unlinked goal is
    incremented directly and the account gets an expense row.
    """
    cents = require_amount(amount, "Contribution amount must be greater than zero")
    goal = await get_user_goal(db, user_id=user_id, goal_id=goal_id, for_update=True)

    if goal.savings_box_id:
        # The deposit re-synchronizes every goal linked to the box, this one included.
        await post_deposit(
            db,
            user_id=user_id,
            box_id=goal.savings_box_id,
            amount=amount,
            account_id=goal.account_id,
            description=f"Contribution to goal: {goal.name}",
        )
    else:
        account = await get_user_account(
            db, user_id=user_id, account_id=goal.account_id, for_update=True
        )
        contribution = Transaction(
            user_id=user_id,
            account_id=account.id,
            goal_id=goal.id,
            amount=cents,
            transaction_type="expense",
            category=GOAL_CONTRIBUTION_CATEGORY,
            description=f"Contribution to goal: {goal.name}",
            notes=f"Goal contribution: {goal.name}",
            transaction_date=datetime.utcnow(),
        )
        db.add(contribution)
        await debit_account(db, user_id=user_id, account=account, cents=cents)

        goal.current_amount = (goal.current_amount or 0) + cents
        refresh_completion(goal)
        db.add(goal)

    await db.commit()
    await db.refresh(goal)
    ledger_logger.info(
        "Goal contribution posted [user_id=%s, goal_id=%s, amount=%s, linked=%s]",
        user_id,
        goal.id,
        cents,
        bool(goal.savings_box_id),
    )
    return OperationResult.ok(goal)
