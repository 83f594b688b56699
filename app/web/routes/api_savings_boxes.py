"""API routes for savings boxes and their deposit/withdraw/transfer movements."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.session import get_current_user
from app.domain.savings import services
from app.domain.savings.schemas import (
    DepositRequest,
    SavingsBoxCreate,
    SavingsBoxOut,
    SavingsBoxUpdate,
    SavingsTransactionOut,
    TransferRequest,
    WithdrawRequest,
)
from app.domain.users.models import User
from app.services.analytics import (
    build_savings_boxes_stats,
    build_savings_boxes_summary,
    get_savings_boxes_total,
)
from app.web.routes.responses import ok_response, result_response

router = APIRouter()


@router.get("/")
async def list_savings_boxes(
    include_inactive: bool = False,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the user's savings boxes, newest first."""
    result = await services.list_savings_boxes(
        db, user_id=user.id, include_inactive=include_inactive
    )
    return result_response(result, SavingsBoxOut)


@router.post("/")
async def create_savings_box(
    payload: SavingsBoxCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.create_savings_box(db, user_id=user.id, data=payload)
    return result_response(result, SavingsBoxOut, status_code=status.HTTP_201_CREATED)


@router.get("/total")
async def savings_boxes_total(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    total = await get_savings_boxes_total(user.id, db)
    return ok_response({"total": total})


@router.get("/summary")
async def savings_boxes_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok_response(await build_savings_boxes_summary(user.id, db))


@router.get("/stats")
async def savings_boxes_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok_response(await build_savings_boxes_stats(user.id, db))


@router.post("/transfer")
async def transfer_between_boxes(
    payload: TransferRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move money from one savings box to another."""
    result = await services.transfer_between_boxes(
        db,
        user_id=user.id,
        from_box_id=payload.from_box_id,
        to_box_id=payload.to_box_id,
        amount=payload.amount,
        description=payload.description,
    )
    return result_response(result, SavingsTransactionOut, status_code=status.HTTP_201_CREATED)


@router.get("/{box_id}")
async def get_savings_box(
    box_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.get_savings_box(db, user_id=user.id, box_id=box_id)
    return result_response(result, SavingsBoxOut)


@router.put("/{box_id}")
async def update_savings_box(
    box_id: int,
    payload: SavingsBoxUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.update_savings_box(db, user_id=user.id, box_id=box_id, data=payload)
    return result_response(result, SavingsBoxOut)


@router.delete("/{box_id}")
async def delete_savings_box(
    box_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a box with zero balance and no linked goals."""
    result = await services.delete_savings_box(db, user_id=user.id, box_id=box_id)
    return result_response(result)


@router.delete("/{box_id}/purge")
async def purge_savings_box(
    box_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a box that never had any movement."""
    result = await services.purge_savings_box(db, user_id=user.id, box_id=box_id)
    return result_response(result)


@router.post("/{box_id}/restore")
async def restore_savings_box(
    box_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.restore_savings_box(db, user_id=user.id, box_id=box_id)
    return result_response(result, SavingsBoxOut)


@router.post("/{box_id}/deposit")
async def deposit_to_savings_box(
    box_id: int,
    payload: DepositRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Deposit into a box, optionally debiting one of the user's accounts."""
    result = await services.deposit_to_savings_box(
        db,
        user_id=user.id,
        box_id=box_id,
        amount=payload.amount,
        account_id=payload.account_id,
        description=payload.description,
    )
    return result_response(result, SavingsTransactionOut, status_code=status.HTTP_201_CREATED)


@router.post("/{box_id}/withdraw")
async def withdraw_from_savings_box(
    box_id: int,
    payload: WithdrawRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Withdraw from a box, optionally crediting one of the user's accounts."""
    result = await services.withdraw_from_savings_box(
        db,
        user_id=user.id,
        box_id=box_id,
        amount=payload.amount,
        account_id=payload.account_id,
        description=payload.description,
    )
    return result_response(result, SavingsTransactionOut, status_code=status.HTTP_201_CREATED)
