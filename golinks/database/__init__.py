"""Storage layer for the go links registry."""

from .base import SnapshotStorageBase
from .codec import SnapshotCodec
from .models import Record, build_record
from .snapshot_file import SnapshotFile
from .store import RecordStore, ReadWriteLock

__all__ = [
    "SnapshotStorageBase",
    "SnapshotCodec",
    "Record",
    "build_record",
    "SnapshotFile",
    "RecordStore",
    "ReadWriteLock",
]
