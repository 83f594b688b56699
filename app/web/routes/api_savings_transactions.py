"""API routes for the append-only savings transaction log."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.session import get_current_user
from app.domain.savings import services
from app.domain.savings.schemas import SavingsTransactionOut
from app.domain.users.models import User
from app.services.analytics import build_savings_transactions_stats
from app.web.routes.responses import ok_response, result_response

router = APIRouter()


@router.get("/")
async def list_savings_transactions(
    box_id: Optional[int] = None,
    limit: int = Query(settings.TRANSACTIONS_PAGE_LIMIT, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Movements touching ``box_id`` (as origin or target), newest first."""
    result = await services.list_savings_transactions(
        db, user_id=user.id, box_id=box_id, limit=limit
    )
    return result_response(result, SavingsTransactionOut)


@router.get("/stats")
async def savings_transactions_stats(
    box_id: Optional[int] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ok_response(await build_savings_transactions_stats(user.id, db, box_id=box_id))


@router.delete("/{transaction_id}")
async def delete_savings_transaction(
    transaction_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Always refused: the log is immutable."""
    result = await services.delete_savings_transaction(
        db, user_id=user.id, transaction_id=transaction_id
    )
    return result_response(result)
