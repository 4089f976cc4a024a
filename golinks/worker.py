"""Background persistence worker.

The worker is the only writer of the record store and the only writer of the
durable snapshot. Callers hand it records through a queue; it commits each one
to the store right away and writes a full snapshot when at least
``sync_interval`` seconds have passed since the previous one.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .database.base import SnapshotStorageBase
from .database.codec import SnapshotCodec
from .database.models import Record
from .database.store import RecordStore
from .exceptions import InvalidInputError, RegistryClosedError


DEFAULT_SYNC_INTERVAL = 5.0

_COMMIT = "commit"
_DELETE = "delete"
_FLUSH = "flush"
_STOP = object()

# Seconds between liveness checks while a submitter waits for its commit
HAND_OFF_POLL_INTERVAL = 0.5


@dataclass
class _Submission:
    kind: str
    record: Optional[Record] = None
    key: Optional[str] = None
    done: threading.Event = field(default_factory=threading.Event)
    result: Any = None
    error: Optional[Exception] = None


class PersistenceWorker:
    """Single-writer thread that commits submissions and snapshots the store."""

    def __init__(
        self,
        store: RecordStore,
        storage: SnapshotStorageBase,
        codec: Optional[SnapshotCodec] = None,
        sync_interval: float = DEFAULT_SYNC_INTERVAL,
        queue_size: int = 0,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize persistence worker.

        Args:
            store: Store to commit submissions into
            storage: Durable snapshot storage
            codec: Snapshot codec (defaults to SnapshotCodec())
            sync_interval: Minimum seconds between interval snapshots
            queue_size: Submission queue bound, 0 for unbounded
            clock: Monotonic clock used to measure the interval
            logger: Optional logger instance
        """
        if sync_interval < 0:
            raise ValueError("sync_interval must be >= 0")

        self.store = store
        self.storage = storage
        self.codec = codec or SnapshotCodec()
        self.sync_interval = sync_interval
        self.logger = logger or logging.getLogger(__name__)

        self._clock = clock
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._state_lock = threading.Lock()
        self._accepting = False
        self._thread: Optional[threading.Thread] = None
        self._last_snapshot = 0.0

        self._submissions_applied = 0
        self._snapshots_written = 0
        self._snapshot_failures = 0
        self._last_snapshot_at: Optional[float] = None
        self._last_snapshot_ok: Optional[bool] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def accepting(self) -> bool:
        return self._accepting

    def start(self) -> None:
        """Start the worker thread. May only be called once."""
        with self._state_lock:
            if self._thread is not None:
                raise RuntimeError("Persistence worker already started")
            self._last_snapshot = self._clock()
            self._accepting = True
            self._thread = threading.Thread(
                target=self._run,
                name="golinks-persistence",
                daemon=True,
            )
            self._thread.start()

        self.logger.info(
            f"Persistence worker started (sync interval {self.sync_interval}s, "
            f"storage {self.storage.describe()})"
        )

    def submit(self, record: Record) -> Record:
        """Hand a record to the worker and wait until it is committed.

        The call returns once the record is visible to lookups. It does not
        wait for the record to reach the durable file.

        Args:
            record: Fully-formed record

        Returns:
            The record as committed (``created_at`` of an existing key wins)

        Raises:
            RegistryClosedError: If the worker is not accepting submissions
        """
        if not isinstance(record, Record):
            raise InvalidInputError(f"Expected a Record, got {type(record).__name__}")
        return self._hand_off(_Submission(kind=_COMMIT, record=record))

    def submit_delete(self, key: str) -> bool:
        """Hand a deletion to the worker. Returns True if the key existed."""
        if not key:
            raise InvalidInputError("Key is required")
        return self._hand_off(_Submission(kind=_DELETE, key=key))

    def flush(self) -> bool:
        """Ask the worker to write a snapshot now.

        Returns:
            True if the snapshot was written
        """
        return self._hand_off(_Submission(kind=_FLUSH))

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop accepting, drain accepted submissions, write a final snapshot.

        Safe to call more than once, and on a worker that never started.
        """
        with self._state_lock:
            thread = self._thread
            if thread is None:
                return
            if self._accepting:
                self._accepting = False
                self._queue.put(_STOP)
                self.logger.info("Persistence worker stopping...")

        thread.join(timeout)
        if thread.is_alive():
            self.logger.warning(f"Persistence worker did not stop within {timeout}s")

    def stats(self) -> Dict[str, Any]:
        """Worker counters for statistics and health endpoints."""
        return {
            "running": self.running,
            "accepting": self._accepting,
            "pending": self._queue.qsize(),
            "submissions_applied": self._submissions_applied,
            "snapshots_written": self._snapshots_written,
            "snapshot_failures": self._snapshot_failures,
            "last_snapshot_at": self._last_snapshot_at,
            "last_snapshot_ok": self._last_snapshot_ok,
            "sync_interval_seconds": self.sync_interval,
        }

    def _hand_off(self, submission: _Submission) -> Any:
        # The state lock keeps a submission from landing behind the stop marker
        with self._state_lock:
            if not self._accepting or not self.running:
                raise RegistryClosedError("Persistence worker is not accepting submissions")
            self._queue.put(submission)

        while not submission.done.wait(HAND_OFF_POLL_INTERVAL):
            if not self.running and not submission.done.is_set():
                raise RegistryClosedError("Persistence worker exited before applying the submission")
        if submission.error is not None:
            raise submission.error
        return submission.result

    def _run(self) -> None:
        try:
            self._serve()
        except Exception as e:
            self.logger.critical(f"Persistence worker died: {e}")
            with self._state_lock:
                self._accepting = False

    def _serve(self) -> None:
        while True:
            submission = self._queue.get()
            if submission is _STOP:
                break

            self._process(submission)

            if self._clock() - self._last_snapshot >= self.sync_interval:
                self._write_snapshot("interval")
                self._last_snapshot = self._clock()

        self._drain()
        self._write_snapshot("shutdown")
        self.logger.info("Persistence worker stopped")

    def _drain(self) -> None:
        while True:
            try:
                submission = self._queue.get_nowait()
            except queue.Empty:
                return
            if submission is not _STOP:
                self._process(submission)

    def _process(self, submission: _Submission) -> None:
        try:
            if submission.kind == _COMMIT:
                submission.result = self.store.commit(submission.record)
                self._submissions_applied += 1
            elif submission.kind == _DELETE:
                submission.result = self.store.remove(submission.key)
                self._submissions_applied += 1
            elif submission.kind == _FLUSH:
                submission.result = self._write_snapshot("flush")
                self._last_snapshot = self._clock()
            else:
                raise ValueError(f"Unknown submission kind '{submission.kind}'")
        except Exception as e:
            self.logger.error(f"Failed to apply {submission.kind} submission: {e}")
            submission.error = e
        finally:
            submission.done.set()

    def _write_snapshot(self, reason: str) -> bool:
        entries = self.store.snapshot_copy()
        try:
            data = self.codec.encode(entries)
            self.storage.write(data)
        except Exception as e:
            self._snapshot_failures += 1
            self._last_snapshot_ok = False
            self.logger.error(
                f"Error persisting data to {self.storage.describe()} ({reason}): {e}"
            )
            return False

        self._snapshots_written += 1
        self._last_snapshot_ok = True
        self._last_snapshot_at = time.time()
        self.logger.info(
            f"Successfully wrote {len(entries)} entries ({len(data)} bytes) "
            f"to {self.storage.describe()} ({reason})"
        )
        return True
