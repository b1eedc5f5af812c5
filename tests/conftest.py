"""Shared fixtures: in-memory SQLite store, user/post factories, API client."""
import itertools

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from community.core.security import create_access_token
from community.db.base import Base
from community.db.session import get_db
from community.main import app
from community.models.post import Post
from community.models.user import User


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def _make(**kwargs) -> User:
        n = next(counter)
        user = User(username=f"user{n}", email=f"user{n}@example.com", display_name=f"User {n}", **kwargs)
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
async def alice(make_user) -> User:
    return await make_user()


@pytest.fixture
async def bob(make_user) -> User:
    return await make_user()


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(is_superadmin=True)


@pytest.fixture
async def banned(make_user) -> User:
    return await make_user(is_restricted=True)


@pytest.fixture
async def post(db, alice) -> Post:
    post = Post(user_id=alice.id, title="Two days in Jeju", contents="Itinerary and tips")
    db.add(post)
    await db.commit()
    return post


async def reload(db: AsyncSession, model, pk):
    """Fetch a row straight from the database, bypassing stale identity-map state."""
    result = await db.execute(select(model).where(model.id == pk).execution_options(populate_existing=True))
    return result.scalar_one_or_none()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
