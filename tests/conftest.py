"""Pytest configuration and fixtures."""

import hashlib
import os
import tempfile
from collections.abc import Callable
from io import BytesIO
from typing import AsyncGenerator

_tmp_root = tempfile.mkdtemp(prefix="photoshare-tests-")
os.environ.setdefault("DATA_DIR", os.path.join(_tmp_root, "data"))
os.environ.setdefault("UPLOADS_DIR", os.path.join(_tmp_root, "uploads"))
os.environ.setdefault("ENABLE_SCHEDULER", "false")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from photoshare.core.deps import get_db  # noqa: E402
from photoshare.core.security import create_access_token  # noqa: E402
from photoshare.core.timing import now_ms  # noqa: E402
from photoshare.db import models_registry  # noqa: E402,F401 - Import to register models
from photoshare.db.base import Base  # noqa: E402
from photoshare.main import app  # noqa: E402
from photoshare.models.event import Event, EventStatus  # noqa: E402
from photoshare.models.photo import Photo, PhotoStatus  # noqa: E402
from photoshare.models.user import ROLE_ADMIN, ROLE_ROOT, User  # noqa: E402
from photoshare.services.presence import InMemoryPresenceStore, get_presence_store  # noqa: E402
from photoshare.services.storage import FileStorage, get_storage  # noqa: E402
from photoshare.workers.file_cleanup import FileCleanupWorker, get_file_cleanup  # noqa: E402

# Test database URL (in-memory SQLite shared through a static pool)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def plain_hash(password: str) -> str:
    """Test password hash format understood by ``verify_password``."""
    return f"$plain${hashlib.sha256(password.encode()).hexdigest()}"


def auth_for(user: User) -> dict:
    token = create_access_token(
        data={"sub": str(user.id), "username": user.username, "role": user.role}
    )
    return {"Authorization": f"Bearer {token}"}


def jpeg_bytes(size: tuple[int, int] = (64, 48), color: str = "red") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> FileStorage:
    """Storage rooted in a per-test folder with a fast retry policy."""
    return FileStorage(
        tmp_path / "uploads",
        max_attempts=3,
        initial_delay=0.001,
        max_delay=0.002,
        timeout=1.0,
    )


@pytest.fixture
def presence() -> InMemoryPresenceStore:
    return InMemoryPresenceStore(ttl_seconds=45)


@pytest.fixture
def cleanup(storage: FileStorage, session_maker) -> FileCleanupWorker:
    return FileCleanupWorker(storage=storage, session_factory=session_maker)


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    storage: FileStorage,
    presence: InMemoryPresenceStore,
    cleanup: FileCleanupWorker,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_presence_store] = lambda: presence
    app.dependency_overrides[get_file_cleanup] = lambda: cleanup

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def root_user(db_session: AsyncSession) -> User:
    """Create root user."""
    user = User(
        username="admin",
        hashed_password=plain_hash("admin"),
        role=ROLE_ROOT,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def organizer(db_session: AsyncSession) -> User:
    """Create an organizer (admin role) user."""
    user = User(
        username="organizer",
        hashed_password=plain_hash("organizer"),
        display_name="Event Organizer",
        role=ROLE_ADMIN,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def other_organizer(db_session: AsyncSession) -> User:
    user = User(
        username="someone-else",
        hashed_password=plain_hash("someone-else"),
        role=ROLE_ADMIN,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def root_headers(root_user: User) -> dict:
    return auth_for(root_user)


@pytest.fixture
def auth_headers(organizer: User) -> dict:
    """Create authorization headers for the organizer."""
    return auth_for(organizer)


@pytest.fixture
def other_headers(other_organizer: User) -> dict:
    return auth_for(other_organizer)


@pytest.fixture
def make_event(db_session: AsyncSession, organizer: User) -> Callable:
    """Factory inserting an event owned by the organizer."""

    async def _make(
        status: EventStatus = EventStatus.LIVE,
        name: str = "Summer Party",
        require_moderation: bool = False,
        scheduled_start_at: int | None = None,
        auto_end_at: int | None = None,
        owner_id: int | None = None,
        **fields,
    ) -> Event:
        event = Event(
            name=name,
            date="2026-07-01",
            status=status.value,
            require_moderation=require_moderation,
            scheduled_start_at=scheduled_start_at,
            auto_end_at=auto_end_at,
            owner_id=owner_id if owner_id is not None else organizer.id,
            created_at=now_ms(),
            **fields,
        )
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return _make


@pytest.fixture
def make_photo(db_session: AsyncSession, storage: FileStorage) -> Callable:
    """Factory writing a file to storage and inserting its row."""

    async def _make(
        event: Event,
        filename: str,
        status: PhotoStatus = PhotoStatus.APPROVED,
        likes: int = 0,
        preview_filename: str | None = None,
        data: bytes = b"image-bytes",
    ) -> Photo:
        await storage.write(filename, data)
        if preview_filename:
            await storage.write(preview_filename, b"preview-bytes")
        photo = Photo(
            event_id=event.id,
            filename=filename,
            preview_filename=preview_filename,
            original_name=filename.rsplit("/", 1)[-1],
            status=status.value,
            likes=likes,
        )
        db_session.add(photo)
        await db_session.commit()
        await db_session.refresh(photo)
        return photo

    return _make


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    """Factory for small JPEG payloads."""
    return jpeg_bytes
