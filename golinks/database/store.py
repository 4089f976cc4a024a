"""Concurrent in-memory record store."""

import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterator, List, Optional, Tuple

from .models import Record, build_record
from ..exceptions import InvalidInputError


class ReadWriteLock:
    """Readers/writer lock that prefers waiting writers.

    Any number of readers may hold the lock together; a writer holds it
    alone. New readers queue behind a waiting writer so a steady stream of
    lookups cannot starve commits.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_lock(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_lock(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class RecordStore:
    """Thread-safe mapping from key to :class:`Record`.

    Reads (``lookup``, ``snapshot_copy``) take the shared lock. Mutations
    (``commit``, ``remove``) take the exclusive lock and are reserved for the
    persistence worker, which is the single writer.
    """

    def __init__(self, entries: Optional[Dict[str, Record]] = None):
        """Initialize the store.

        Args:
            entries: Optional initial mapping, typically produced by recovery
        """
        self._lock = ReadWriteLock()
        self._entries: Dict[str, Record] = {}
        for key, record in (entries or {}).items():
            if record.key != key:
                raise InvalidInputError(
                    f"Record key '{record.key}' does not match mapping key '{key}'"
                )
            self._entries[key] = record

    def lookup(self, key: str) -> Tuple[Optional[Record], bool]:
        """Look up a key.

        Args:
            key: The key to look up

        Returns:
            Tuple of (record, found). Absence is a normal outcome.
        """
        with self._lock.read_lock():
            record = self._entries.get(key)
        return record, record is not None

    def upsert(self, key: str, target: str, now: int) -> Record:
        """Build the Record a write would produce, without mutating the store."""
        existing, _ = self.lookup(key)
        return build_record(existing, key, target, now)

    def commit(self, record: Record) -> Record:
        """Write a record under its key, overwriting any prior value.

        The prior ``created_at`` is preserved and ``updated_at`` is never
        moved backwards, so two racing first-writes of the same key cannot
        change its creation time.

        Args:
            record: Fully-formed record

        Returns:
            The record as stored
        """
        if not isinstance(record, Record) or not record.key:
            raise InvalidInputError("Refusing to commit a record without a key")

        with self._lock.write_lock():
            prior = self._entries.get(record.key)
            if prior is not None and (
                prior.created_at != record.created_at
                or record.updated_at < prior.updated_at
            ):
                record = replace(
                    record,
                    created_at=prior.created_at,
                    updated_at=max(record.updated_at, prior.updated_at),
                )
            self._entries[record.key] = record
        return record

    def remove(self, key: str) -> bool:
        """Delete a key. Returns True if it was present."""
        with self._lock.write_lock():
            return self._entries.pop(key, None) is not None

    def snapshot_copy(self) -> Dict[str, Record]:
        """Return a consistent copy of every record for serialization."""
        with self._lock.read_lock():
            return dict(self._entries)

    def keys(self) -> List[str]:
        with self._lock.read_lock():
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        _, found = self.lookup(key)
        return found
