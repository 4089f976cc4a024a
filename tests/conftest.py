"""Pytest configuration and fixtures."""

import threading

import pytest
from typing import AsyncGenerator, Dict, List

from config import Config
from golinks.common.logging_config import setup_logging
from golinks.database.base import SnapshotStorageBase
from golinks.database.models import Record
from golinks.database.snapshot_file import SnapshotFile
from golinks.database.store import RecordStore
from golinks.exceptions import PersistenceError
from golinks.service import GoLinksService
from golinks.worker import PersistenceWorker


class MemoryStorage(SnapshotStorageBase):
    """In-memory snapshot storage that records every write."""

    def __init__(self, data: bytes = b""):
        self.data = data
        self.writes: List[bytes] = []
        self.fail_writes = False
        self.created = False
        self._lock = threading.Lock()

    def open_or_create(self) -> bool:
        if self.created:
            return False
        self.created = True
        return not self.data

    def read(self) -> bytes:
        return self.data

    def write(self, data: bytes) -> None:
        with self._lock:
            if self.fail_writes:
                raise PersistenceError("disk full")
            self.data = data
            self.writes.append(data)

    def describe(self) -> str:
        return "memory"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def worker(store, memory_storage, clock, logger):
    """Started worker with a fake clock; stopped after the test."""
    w = PersistenceWorker(
        store=store,
        storage=memory_storage,
        sync_interval=5,
        clock=clock,
        logger=logger,
    )
    w.start()
    yield w
    w.stop(timeout=5)


@pytest.fixture
def db_path(tmp_path):
    """Path of a snapshot file that does not exist yet."""
    return tmp_path / "golinks.db"


@pytest.fixture
async def service(db_path, logger) -> AsyncGenerator[GoLinksService, None]:
    """Service over a fresh snapshot file with a running worker."""
    svc = GoLinksService.open(db_path=db_path, sync_interval=5, fsync=False, logger=logger)
    svc.start()

    yield svc

    await svc.close()


@pytest.fixture
def test_config(db_path) -> Config:
    return Config(
        db_path=str(db_path),
        base_url="http://testserver",
        fsync=False,
    )


@pytest.fixture
def sample_records() -> Dict[str, Record]:
    """Sample records keyed by key."""
    records = [
        Record(key="docs", target="example.com/docs", created_at=1000, updated_at=1000),
        Record(key="gh", target="https://github.com/user/repo", created_at=1100, updated_at=1500),
        Record(key="wiki.home", target="http://wiki.internal/Home", created_at=900, updated_at=2000),
    ]
    return {record.key: record for record in records}


@pytest.fixture
def snapshot_file(db_path, logger) -> SnapshotFile:
    return SnapshotFile(db_path, fsync=False, logger=logger)
