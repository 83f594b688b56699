"""API routes for the financial accounts that fund savings boxes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.session import get_current_user
from app.domain.accounts import services
from app.domain.accounts.schemas import AccountCreate, AccountOut
from app.domain.users.models import User
from app.web.routes.responses import result_response

router = APIRouter()


@router.get("/")
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return all accounts for the current user."""
    result = await services.list_accounts(db, user_id=user.id)
    return result_response(result, AccountOut)


@router.post("/")
async def create_account(
    payload: AccountCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create an account; ``balance`` is given in major units."""
    result = await services.create_account(db, user_id=user.id, data=payload)
    return result_response(result, AccountOut, status_code=status.HTTP_201_CREATED)


@router.get("/{account_id}")
async def get_account(
    account_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await services.get_account(db, user_id=user.id, account_id=account_id)
    return result_response(result, AccountOut)
