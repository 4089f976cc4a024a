"""Tests for startup recovery."""

import pytest

from golinks.database.codec import SnapshotCodec
from golinks.exceptions import RecoveryError
from golinks.recovery import recover_store

from conftest import MemoryStorage


class TestRecovery:
    """Test rebuilding the store from durable storage."""

    def test_missing_file_is_created(self, snapshot_file, db_path, logger):
        store = recover_store(snapshot_file, logger=logger)

        assert len(store) == 0
        assert db_path.exists()

    def test_empty_file_starts_fresh(self, snapshot_file, db_path, logger):
        db_path.write_bytes(b"")

        store = recover_store(snapshot_file, logger=logger)

        assert len(store) == 0

    def test_recovers_every_record(self, snapshot_file, sample_records, logger):
        snapshot_file.write(SnapshotCodec().encode(sample_records))

        store = recover_store(snapshot_file, logger=logger)

        assert store.snapshot_copy() == sample_records

    def test_corrupt_file_is_fatal(self, snapshot_file, db_path, sample_records, logger):
        data = SnapshotCodec().encode(sample_records)
        db_path.write_bytes(data[:-3])

        with pytest.raises(RecoveryError, match="unreadable"):
            recover_store(snapshot_file, logger=logger)

    def test_stale_trailing_bytes_are_fatal(self, sample_records, logger):
        codec = SnapshotCodec()
        big = codec.encode(sample_records)
        small = codec.encode({"docs": sample_records["docs"]})
        storage = MemoryStorage(small + big[len(small):])

        with pytest.raises(RecoveryError):
            recover_store(storage, logger=logger)

    def test_unopenable_location_is_fatal(self, tmp_path, logger):
        from golinks.database.snapshot_file import SnapshotFile

        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        storage = SnapshotFile(blocker / "golinks.db", fsync=False)

        with pytest.raises(RecoveryError):
            recover_store(storage, logger=logger)
