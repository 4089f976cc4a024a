"""Abstract base class for durable snapshot storage."""

from abc import ABC, abstractmethod


class SnapshotStorageBase(ABC):
    """Where the persistence worker keeps the serialized store.

    Recovery reads it once before the worker starts; afterwards only the
    worker writes it.
    """

    @abstractmethod
    def open_or_create(self) -> bool:
        """Make sure the durable location exists.

        Returns:
            True if it was created, False if it already existed
        """
        pass

    @abstractmethod
    def read(self) -> bytes:
        """Read the full stored snapshot.

        Returns:
            Snapshot bytes; empty when nothing has been written yet
        """
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Replace the stored snapshot with ``data``.

        After a successful call, ``read()`` returns exactly ``data``, never
        a mix of old and new bytes.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Human-readable location used in log messages."""
        pass
