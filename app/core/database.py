"""Async engine, session factory and the declarative base.

Balance updates rely on row locks (``SELECT ... FOR UPDATE``) on PostgreSQL.
SQLite ignores those, so its connections get WAL, enforced foreign keys and a
busy timeout, which serializes writers well enough for local use.
"""
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)

Base = declarative_base()


def install_sqlite_pragmas(async_engine: AsyncEngine) -> None:
    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[arg-type]
        cursor = dbapi_connection.cursor()
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
            if pragma.startswith("PRAGMA journal_mode"):
                cursor.fetchone()
        cursor.close()


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an engine for ``url``, tuned for the backend it points at."""
    async_engine = create_async_engine(url, echo=echo)
    if make_url(url).get_backend_name() == "sqlite":
        install_sqlite_pragmas(async_engine)
    return async_engine


def build_session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services keep using rows after commit; balances are re-read explicitly.
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
AsyncSessionLocal = build_session_factory(engine)


async def get_db():
    """Request-scoped session; anything left uncommitted is rolled back."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create missing tables (development convenience; production uses alembic)."""
    from app.domain import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
