import os
import tempfile

# Keep logs, blobs and lock files of the test run out of the real data directory
os.environ.setdefault("TUNEVAULT_DATA_DIR", tempfile.mkdtemp(prefix="tunevault-test-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tunevault.api.deps import get_db
from tunevault.api.main import app
from tunevault.core.models import (
    Album,
    Artist,
    Base,
    FileNode,
    StorageMount,
    Track,
    UserSetting,
)

# Use in-memory DB for better isolation and speed
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Create test-specific engine (NEVER use production engine in tests!)
test_engine = create_async_engine(
    TEST_DB_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

USER = "alice"
HOME_STORAGE = 1
SHARED_STORAGE = 2


@pytest.fixture(scope="function")
async def db_engine():
    """Create test database tables before each test, drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def db_session(db_engine):
    """Provide a test database session."""
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def client(db_session):
    """Create an async test client with DB override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-User-Id": USER},
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def file_tree(db_session):
    """Seed a small host file tree for USER.

    Home storage:
        1  /             (home root)
        10 /Music        (library root, configured)
        11 /Music/Rock
        12 /Music/Rock/Queen
        13 /Music/Jazz
        20 /Documents    (outside the library)
    Shared-in storage (mounted under /Music):
        30 /Music/Shared (shared folder, parent 10)
        31 /Music/Shared/Live
    Storage 3 is not mounted for USER:
        40 /Secret
    """
    db_session.add_all(
        [
            StorageMount(user_id=USER, storage_id=HOME_STORAGE, is_home=True),
            StorageMount(user_id=USER, storage_id=SHARED_STORAGE, is_home=False),
            FileNode(id=1, storage_id=HOME_STORAGE, parent_id=None, name="", path="/"),
            FileNode(id=10, storage_id=HOME_STORAGE, parent_id=1, name="Music", path="/Music"),
            FileNode(id=11, storage_id=HOME_STORAGE, parent_id=10, name="Rock", path="/Music/Rock"),
            FileNode(id=12, storage_id=HOME_STORAGE, parent_id=11, name="Queen", path="/Music/Rock/Queen"),
            FileNode(id=13, storage_id=HOME_STORAGE, parent_id=10, name="Jazz", path="/Music/Jazz"),
            FileNode(id=20, storage_id=HOME_STORAGE, parent_id=1, name="Documents", path="/Documents"),
            FileNode(id=30, storage_id=SHARED_STORAGE, parent_id=10, name="Shared", path="/Shared"),
            FileNode(id=31, storage_id=SHARED_STORAGE, parent_id=30, name="Live", path="/Shared/Live"),
            FileNode(id=40, storage_id=3, parent_id=None, name="Secret", path="/Secret"),
            UserSetting(user_id=USER, key="music_folder_id", value="10"),
        ]
    )
    await db_session.commit()


@pytest.fixture(scope="function")
async def library_data(db_session, file_tree):
    """Seed artists, albums and tracks of USER on top of file_tree.

    Track folders: 12 (Queen), 13 (Jazz), 31 (shared Live), 10 (library
    root) and 40 (not visible to USER). Bob owns one track which must never
    show up for USER.
    """
    db_session.add_all(
        [
            Artist(id=1, user_id=USER, name="Queen"),
            Artist(id=2, user_id=USER, name="Miles Davis"),
            Artist(id=3, user_id="bob", name="Bob's Band"),
            Album(id=1, user_id=USER, name="A Night at the Opera", year=1975, disk=1, album_artist_id=1),
            Album(id=2, user_id=USER, name="Kind of Blue", year=1959, disk=1, album_artist_id=2),
        ]
    )
    await db_session.flush()
    db_session.add_all(
        [
            Track(id=1, user_id=USER, file_id=100, folder_id=12, title="Bohemian Rhapsody", number=11, artist_id=1, album_id=1, mimetype="audio/mpeg", length=354),
            Track(id=2, user_id=USER, file_id=101, folder_id=12, title="Love of My Life", number=9, artist_id=1, album_id=1, mimetype="audio/mpeg", length=219),
            Track(id=3, user_id=USER, file_id=102, folder_id=13, title="So What", number=1, artist_id=2, album_id=2, mimetype="audio/flac", length=562),
            Track(id=4, user_id=USER, file_id=103, folder_id=31, title="Live Track", artist_id=1),
            Track(id=5, user_id=USER, file_id=104, folder_id=10, title="Loose"),
            Track(id=6, user_id=USER, file_id=105, folder_id=40, title="Hidden", number=2, artist_id=2, album_id=2),
            Track(id=7, user_id="bob", file_id=200, folder_id=11, title="Bob's Song", artist_id=3),
        ]
    )
    await db_session.commit()
