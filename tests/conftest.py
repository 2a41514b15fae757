import io
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import spoonjoy.models  # noqa: F401
from spoonjoy.core import security
from spoonjoy.core.database import Base, get_db, get_redis
from spoonjoy.core.storage import PhotoStore, get_photo_store
from spoonjoy.domains.user.models import User
from spoonjoy.main import app

from helpers import TEST_PASSWORD, sign_up

# In-memory SQLite shared by every session of one test through StaticPool
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis():
    """AsyncMock standing in for redis.asyncio.Redis, backed by a plain dict."""
    store: dict[str, str] = {}

    async def _set(key, value, ex=None):
        store[key] = value
        return True

    async def _get(key):
        return store.get(key)

    async def _delete(*keys):
        return sum(1 for key in keys if store.pop(key, None) is not None)

    async def _getdel(key):
        return store.pop(key, None)

    redis = AsyncMock()
    redis.set.side_effect = _set
    redis.get.side_effect = _get
    redis.delete.side_effect = _delete
    redis.getdel.side_effect = _getdel
    redis.store = store
    return redis


@pytest.fixture
def photo_store():
    """PhotoStore over a MagicMock S3 client that keeps objects in a dict (``store.s3.objects``)."""
    objects: dict[str, dict] = {}

    def _put_object(Bucket, Key, Body, ContentType):
        objects[Key] = {"Body": Body.read(), "ContentType": ContentType}
        return {}

    def _get_object(Bucket, Key):
        if Key not in objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "Not Found"}}, "GetObject")
        return {"Body": io.BytesIO(objects[Key]["Body"]), "ContentType": objects[Key]["ContentType"]}

    def _delete_object(Bucket, Key):
        objects.pop(Key, None)
        return {}

    s3 = MagicMock()
    s3.put_object.side_effect = _put_object
    s3.get_object.side_effect = _get_object
    s3.delete_object.side_effect = _delete_object
    s3.objects = objects
    return PhotoStore(bucket="test-photos", client=s3)


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, fake_redis, photo_store):
    # Each request gets its own session, as in production
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    async def _get_test_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_redis] = _get_test_redis
    app.dependency_overrides[get_photo_store] = lambda: photo_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authorized_client(client):
    client.user_id = await sign_up(client)
    return client


@pytest_asyncio.fixture
async def test_user(db_session) -> User:
    user = User(email="cook@example.com", username="cook", hashed_password=security.hash_password(TEST_PASSWORD))
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def other_user(db_session) -> User:
    user = User(email="other@example.com", username="other", hashed_password=security.hash_password(TEST_PASSWORD))
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user

