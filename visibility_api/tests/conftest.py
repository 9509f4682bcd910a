import asyncio
import os
from typing import List, Set, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# The app reads its settings at import; keep it off the database for API tests.
os.environ.setdefault("VISIBILITY_BACKEND", "memory")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

from src.core.errors import StorageUnavailableError  # noqa: E402
from src.db.base import Base  # noqa: E402
import src.db.models  # noqa: E402,F401
from src.services.visibility import VisibilityStore  # noqa: E402


class RecordingStorage:
    """In-memory PermissionStorage that records the order of writes."""

    def __init__(self, pairs=()):
        self.pairs: Set[Tuple[int, int]] = set(pairs)
        self.ops: List[Tuple[str, int, int]] = []
        self.loads = 0

    async def load_all(self):
        self.loads += 1
        return sorted(self.pairs)

    async def add(self, subject_id, object_id):
        await asyncio.sleep(0)
        self.ops.append(("add", subject_id, object_id))
        self.pairs.add((subject_id, object_id))

    async def remove(self, subject_id, object_id):
        await asyncio.sleep(0)
        self.ops.append(("remove", subject_id, object_id))
        self.pairs.discard((subject_id, object_id))

    async def remove_team(self, team_id):
        await asyncio.sleep(0)
        self.ops.append(("remove_team", team_id, team_id))
        doomed = {p for p in self.pairs if team_id in p}
        self.pairs -= doomed
        return len(doomed)


class BrokenStorage(RecordingStorage):
    """Storage whose writes always fail, as when the database is down."""

    async def add(self, subject_id, object_id):
        raise StorageUnavailableError("grant")

    async def remove(self, subject_id, object_id):
        raise StorageUnavailableError("revoke")

    async def remove_team(self, team_id):
        raise StorageUnavailableError("forget_team")


@pytest.fixture
def store():
    return VisibilityStore()


@pytest.fixture
def recording_storage():
    return RecordingStorage()


@pytest.fixture
def persistent_store(recording_storage):
    return VisibilityStore(recording_storage)


@pytest_asyncio.fixture
async def sqlite_session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    await engine.dispose()
