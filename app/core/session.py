"""Resolve the calling user for API routes."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cookies import SESSION_COOKIE_NAME, parse_session_cookie
from app.core.database import get_db
from app.domain.users.models import User

security_logger = logging.getLogger("app.security")


async def get_session_identifier(
    session_value: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
) -> str:
    try:
        return parse_session_cookie(session_value)
    except HTTPException:
        if session_value:
            security_logger.warning("Rejected tampered or malformed session cookie")
        raise


async def get_current_user(
    email: str = Depends(get_session_identifier),
    db: AsyncSession = Depends(get_db),
) -> User:
    """The authenticated, active user; every service call is scoped to its id."""
    user = await db.scalar(select(User).where(func.lower(User.email) == email))
    if user is None or not user.is_active:
        security_logger.info("Session for unknown or inactive user rejected")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user
