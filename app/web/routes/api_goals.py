"""API routes for financial goals."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.session import get_current_user
from app.domain.goals import services
from app.domain.goals.schemas import (
    GoalContributionRequest,
    GoalCreate,
    GoalLinkOut,
    GoalLinkRequest,
    GoalOut,
    GoalUpdate,
)
from app.domain.users.models import User
from app.web.routes.responses import error_response, ok_response, result_response

router = APIRouter()


@router.get("/")
async def list_goals(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.list_goals(db, user_id=user.id)
    return result_response(result, GoalOut)


@router.post("/")
async def create_goal(
    payload: GoalCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a goal; a linked box must be active and seeds ``current_amount``."""
    result = await services.create_goal(db, user_id=user.id, data=payload)
    return result_response(result, GoalOut, status_code=status.HTTP_201_CREATED)


@router.get("/{goal_id}")
async def get_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.get_goal(db, user_id=user.id, goal_id=goal_id)
    return result_response(result, GoalOut)


@router.put("/{goal_id}")
async def update_goal(
    goal_id: int,
    payload: GoalUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.update_goal(db, user_id=user.id, goal_id=goal_id, data=payload)
    return result_response(result, GoalOut)


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.delete_goal(db, user_id=user.id, goal_id=goal_id)
    return result_response(result)


@router.put("/{goal_id}/savings-box")
async def link_goal_to_savings_box(
    goal_id: int,
    payload: GoalLinkRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Link the goal to a box, or unlink it when ``savings_box_id`` is null."""
    result = await services.link_goal_to_savings_box(
        db, user_id=user.id, goal_id=goal_id, box_id=payload.savings_box_id
    )
    if not result.success:
        return error_response(result.kind, result.error)
    outcome = GoalLinkOut(
        goal=GoalOut.model_validate(result.data.goal),
        transition=result.data.transition,
    )
    return ok_response(outcome.model_dump(mode="json"))


@router.post("/{goal_id}/contribute")
async def contribute_to_goal(
    goal_id: int,
    payload: GoalContributionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.contribute_to_goal(
        db, user_id=user.id, goal_id=goal_id, amount=payload.amount
    )
    return result_response(result, GoalOut)
