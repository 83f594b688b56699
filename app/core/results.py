"""Uniform result shape for service operations.

Public service functions never raise across their boundary. Guard helpers
raise :class:`OperationError`; the :func:`operation` decorator turns it (and
any datastore failure) into a failed :class:`OperationResult` after rolling
the session back, so a rejected call leaves no partial writes behind.
"""
from __future__ import annotations

import enum
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)
ledger_logger = logging.getLogger("app.ledger")

T = TypeVar("T")

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorKind(str, enum.Enum):
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    INACTIVE_ENTITY = "INACTIVE_ENTITY"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    CONFLICT = "CONFLICT"
    NOT_PERMITTED = "NOT_PERMITTED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class OperationError(Exception):
    """A precondition failure detected inside a service operation."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(slots=True)
class OperationResult(Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "OperationResult[T]":
        return cls(success=False, error=error, kind=kind)


async def _safe_rollback(db: AsyncSession, name: str) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError:
        ledger_logger.error(
            "Rollback failed during %s; manual reconciliation required", name, exc_info=True
        )


def operation(
    name: str,
) -> Callable[[Callable[..., Awaitable[OperationResult]]], Callable[..., Awaitable[OperationResult]]]:
    """Convert raised errors of a service function into failed results."""

    def decorator(func: Callable[..., Awaitable[OperationResult]]):
        @functools.wraps(func)
        async def wrapper(db: AsyncSession, *args: Any, **kwargs: Any) -> OperationResult:
            try:
                return await func(db, *args, **kwargs)
            except OperationError as exc:
                await _safe_rollback(db, name)
                logger.info("%s rejected: %s (%s)", name, exc.message, exc.kind.value)
                return OperationResult.fail(exc.kind, exc.message)
            except SQLAlchemyError:
                logger.exception("Datastore error in %s", name)
                await _safe_rollback(db, name)
                return OperationResult.fail(ErrorKind.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

        return wrapper

    return decorator


__all__ = [
    "ErrorKind",
    "OperationError",
    "OperationResult",
    "operation",
]
