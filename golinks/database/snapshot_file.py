"""File-backed snapshot storage with atomic replacement."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .base import SnapshotStorageBase
from ..exceptions import PersistenceError


FILE_MODE = 0o600


class SnapshotFile(SnapshotStorageBase):
    """Snapshot storage in a single local file.

    Writes go to ``<path>.tmp`` and are moved over the real file with
    ``os.replace``, so the file always holds one complete snapshot.
    """

    def __init__(
        self,
        path: Union[str, Path],
        fsync: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize snapshot file.

        Args:
            path: Durable file path
            fsync: Whether to fsync the data and directory on every write
            logger: Optional logger instance
        """
        self.path = Path(path).expanduser()
        self.fsync = fsync
        self.logger = logger or logging.getLogger(__name__)

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + ".tmp")

    def open_or_create(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create directory for {self.path}: {e}") from e

        try:
            fd = os.open(str(self.path), os.O_RDWR | os.O_CREAT | os.O_EXCL, FILE_MODE)
        except FileExistsError:
            return False
        except OSError as e:
            raise PersistenceError(f"Cannot create {self.path}: {e}") from e

        os.close(fd)
        self.logger.info(f"Created new snapshot file {self.path}")
        return True

    def read(self) -> bytes:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return b""
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

    def write(self, data: bytes) -> None:
        temp_path = self.temp_path
        try:
            # A leftover temp file would keep its old mode through O_TRUNC
            self._discard_temp()
            fd = os.open(str(temp_path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                if self.fsync:
                    os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            self._discard_temp()
            raise PersistenceError(f"Cannot write snapshot to {self.path}: {e}") from e

        if self.fsync:
            self._fsync_directory()

    def describe(self) -> str:
        return str(self.path)

    def _discard_temp(self) -> None:
        try:
            self.temp_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove {self.temp_path}: {e}")

    def _fsync_directory(self) -> None:
        # Not every platform allows opening a directory (Windows)
        try:
            dir_fd = os.open(str(self.path.parent), os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(dir_fd)
        except OSError as e:
            self.logger.debug(f"Directory fsync failed for {self.path.parent}: {e}")
        finally:
            os.close(dir_fd)
