from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from app.core.database import Base, build_engine, build_session_factory, get_db
from app.core.session import get_current_user
from app.core.validation import to_cents
from app.domain import models  # noqa: F401
from app.domain.accounts.models import FinancialAccount
from app.domain.goals.models import Goal
from app.domain.savings.models import SavingsBox, SavingsTransaction
from app.domain.users.models import User


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'stash-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def _add(db, obj):
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def user(db):
    return await _add(db, User(email="saver@example.com", name="Saver"))


@pytest_asyncio.fixture
async def other_user(db):
    return await _add(db, User(email="someone-else@example.com", name="Other"))


@pytest.fixture
def make_account(db, user):
    async def factory(name="Checking", balance="1000.00", owner=None):
        return await _add(
            db,
            FinancialAccount(
                user_id=(owner or user).id,
                name=name,
                type="checking",
                balance=to_cents(balance),
            ),
        )

    return factory


@pytest.fixture
def make_box(db, user):
    async def factory(name="Trip", current="0", target=None, owner=None, is_active=True):
        return await _add(
            db,
            SavingsBox(
                user_id=(owner or user).id,
                name=name,
                current_amount=to_cents(current),
                target_amount=to_cents(target) if target is not None else None,
                is_active=is_active,
            ),
        )

    return factory


@pytest.fixture
def make_goal(db, user):
    async def factory(account, name="New car", target="1000", current="0", box=None):
        return await _add(
            db,
            Goal(
                user_id=user.id,
                name=name,
                target_amount=to_cents(target),
                current_amount=to_cents(current),
                start_date=date.today(),
                target_date=date.today() + timedelta(days=365),
                account_id=account.id,
                savings_box_id=box.id if box else None,
            ),
        )

    return factory


@pytest.fixture
def reload(db):
    """Re-read an entity from the database, bypassing the identity map."""

    async def _reload(obj):
        await db.refresh(obj)
        return obj

    return _reload


@pytest.fixture
def count_savings_transactions(db):
    async def _count():
        return await db.scalar(select(func.count(SavingsTransaction.id)))

    return _count


@pytest_asyncio.fixture
async def client(session_factory, user):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_current_user():
        return user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
