"""Signed session token carried in the ``stash_session`` cookie.

The token only names the caller (by email); ownership checks happen in the
services, which filter every query by the resolved user id.
"""
from __future__ import annotations

from fastapi import HTTPException, status
from itsdangerous import BadSignature, URLSafeSerializer

from app.core.config import settings

SESSION_COOKIE_NAME = "stash_session"
_signer = URLSafeSerializer(settings.SECRET_KEY, salt="stash-session")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def make_session_value(email: str) -> str:
    return _signer.dumps({"email": email.strip().lower()})


def parse_session_cookie(raw_value: str | None) -> str:
    """Return the email inside a valid token; raise 401 otherwise."""
    if not raw_value:
        raise _unauthorized("Not authenticated")
    try:
        payload = _signer.loads(raw_value)
    except BadSignature:
        raise _unauthorized("Invalid session") from None
    email = payload.get("email") if isinstance(payload, dict) else None
    if not email:
        raise _unauthorized("Invalid session")
    return email
