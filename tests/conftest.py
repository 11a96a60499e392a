import itertools
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from mediafeed.db.database import Base, get_db
from mediafeed.models import Content, User

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db):
    async def _make_user(wallet_address=None, name="Creator", follower_count=0, following_count=0, **fields):
        user = User(
            wallet_address=wallet_address or f"0x{uuid4().hex}",
            name=name,
            follower_count=follower_count,
            following_count=following_count,
            is_creator=False,
            **fields,
        )
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
def make_content(db):
    """Each call is one minute newer than the previous one."""
    minutes = itertools.count(1)

    async def _make_content(author, content_type="video", is_active=True, title="Post", created_at=None, **fields):
        if content_type == "video":
            media = {
                "url": "https://cdn.example/v.mp4",
                "public_id": f"v-{uuid4().hex[:8]}",
                "thumbnail_url": "https://cdn.example/v.jpg",
                "duration": 12.5,
                "order": 0,
            }
        else:
            media = [
                {"url": "https://cdn.example/1.jpg", "public_id": "img-1", "order": 0, "storage_ref": None},
                {"url": "https://cdn.example/2.jpg", "public_id": "img-2", "order": 1, "storage_ref": None},
            ]
        fields.setdefault("hashtags", [])
        fields.setdefault("is_premium", False)
        fields.setdefault("view_count", 0)
        content = Content(
            author_id=author.id,
            content_type=content_type,
            media=media,
            title=title,
            is_active=is_active,
            created_at=created_at or BASE_TIME + timedelta(minutes=next(minutes)),
            **fields,
        )
        db.add(content)
        await db.commit()
        return content

    return _make_content


@pytest.fixture
async def client(session_factory):
    from mediafeed.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
