"""Tests for file-backed snapshot storage."""

import os
import stat

import pytest

from golinks.database.codec import SnapshotCodec
from golinks.database.models import Record
from golinks.exceptions import PersistenceError


class TestSnapshotFile:
    """Test durable file handling."""

    def test_open_or_create(self, snapshot_file, db_path):
        assert snapshot_file.open_or_create()
        assert db_path.exists()
        assert db_path.stat().st_size == 0

        # Second call finds the existing file
        assert not snapshot_file.open_or_create()

    def test_read_missing_file(self, snapshot_file):
        assert snapshot_file.read() == b""

    def test_write_then_read(self, snapshot_file):
        snapshot_file.write(b"hello")

        assert snapshot_file.read() == b"hello"
        assert not snapshot_file.temp_path.exists()

    def test_shrinking_snapshot_leaves_no_residue(self, snapshot_file, sample_records):
        codec = SnapshotCodec()
        snapshot_file.open_or_create()

        big = codec.encode(sample_records)
        snapshot_file.write(big)

        shrunk = {"docs": sample_records["docs"]}
        small = codec.encode(shrunk)
        assert len(small) < len(big)
        snapshot_file.write(small)

        data = snapshot_file.read()
        assert len(data) == len(small)
        assert codec.decode(data) == shrunk

    def test_write_failure_keeps_previous_snapshot(self, snapshot_file, db_path, monkeypatch):
        snapshot_file.write(b"previous")

        def broken_replace(src, dst):
            raise OSError("simulated failure")

        monkeypatch.setattr(os, "replace", broken_replace)

        with pytest.raises(PersistenceError):
            snapshot_file.write(b"new")

        assert db_path.read_bytes() == b"previous"
        assert not snapshot_file.temp_path.exists()

    def test_write_keeps_owner_only_mode(self, snapshot_file, db_path):
        old_umask = os.umask(0o022)
        try:
            assert snapshot_file.open_or_create()
            assert stat.S_IMODE(db_path.stat().st_mode) == 0o600

            snapshot_file.write(b"data")
        finally:
            os.umask(old_umask)

        assert stat.S_IMODE(db_path.stat().st_mode) == 0o600

    def test_write_ignores_mode_of_leftover_temp_file(self, snapshot_file, db_path):
        snapshot_file.temp_path.write_bytes(b"stale")
        os.chmod(snapshot_file.temp_path, 0o644)

        snapshot_file.write(b"data")

        assert stat.S_IMODE(db_path.stat().st_mode) == 0o600
        assert db_path.read_bytes() == b"data"

    def test_fsync_write(self, db_path):
        from golinks.database.snapshot_file import SnapshotFile

        storage = SnapshotFile(db_path, fsync=True)
        storage.write(b"durable")

        assert storage.read() == b"durable"
