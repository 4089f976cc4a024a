"""Business logic service for the go links registry."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .common.validators import is_valid_key, is_valid_target, normalize_target
from .database.models import Record
from .database.snapshot_file import SnapshotFile
from .database.store import RecordStore
from .exceptions import InvalidInputError
from .recovery import recover_store
from .worker import DEFAULT_SYNC_INTERVAL, PersistenceWorker


class GoLinksService:
    """Service layer between the HTTP handlers and the store.

    Reads go straight to the store. Writes are validated here, turned into
    a Record, and handed to the persistence worker, which is the only
    component that mutates the store.
    """

    def __init__(
        self,
        store: RecordStore,
        worker: PersistenceWorker,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize go links service.

        Args:
            store: Record store (read side)
            worker: Persistence worker bound to the same store (write side)
            logger: Optional logger
            clock: Wall clock for record timestamps
        """
        if worker.store is not store:
            raise ValueError("Worker must be bound to the service's store")

        self.store = store
        self.worker = worker
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock

    @classmethod
    def open(
        cls,
        db_path: Union[str, Path],
        sync_interval: float = DEFAULT_SYNC_INTERVAL,
        queue_size: int = 0,
        fsync: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> "GoLinksService":
        """Recover the store from ``db_path`` and wire up a worker.

        The worker is not started; call :meth:`start` before serving writes.

        Raises:
            RecoveryError: If the durable file cannot be recovered
        """
        logger = logger or logging.getLogger(__name__)
        storage = SnapshotFile(db_path, fsync=fsync, logger=logger)
        store = recover_store(storage, logger=logger)
        worker = PersistenceWorker(
            store=store,
            storage=storage,
            sync_interval=sync_interval,
            queue_size=queue_size,
            logger=logger,
        )
        return cls(store=store, worker=worker, logger=logger)

    def start(self) -> None:
        """Start the persistence worker."""
        self.worker.start()

    async def get_link(self, key: str) -> Optional[Record]:
        """Get the record for a key.

        Args:
            key: The key to look up

        Returns:
            Record or None if not found
        """
        record, found = self.store.lookup(key)
        if not found:
            self.logger.debug(f"Key not found: {key}")
            return None
        return record

    async def resolve(self, key: str) -> Optional[str]:
        """Get the redirect location for a key.

        Returns:
            Absolute http(s) URL, or None if the key is unknown
        """
        record = await self.get_link(key)
        if record is None:
            return None
        return normalize_target(record.target)

    async def link_exists(self, key: str) -> bool:
        _, found = self.store.lookup(key)
        return found

    async def set_link(self, key: str, target: str) -> Record:
        """Create or update a go link.

        Args:
            key: The key to write
            target: Destination URL, with or without an http(s) scheme

        Returns:
            The committed record

        Raises:
            InvalidInputError: If the key or target is invalid
            RegistryClosedError: If the registry is shutting down
        """
        is_valid, error = is_valid_key(key)
        if not is_valid:
            raise InvalidInputError(f"Invalid key: {error}")

        target = target.strip() if isinstance(target, str) else target
        is_valid, error = is_valid_target(target)
        if not is_valid:
            raise InvalidInputError(f"Invalid URL: {error}")

        record = self.store.upsert(key, target, int(self.clock()))
        # submit() blocks until the worker has committed the record
        committed = await asyncio.to_thread(self.worker.submit, record)

        self.logger.info(f"Set go link: {key} -> {target}")
        return committed

    async def delete_link(self, key: str) -> bool:
        """Delete a go link.

        Args:
            key: The key to delete

        Returns:
            True if deleted
        """
        deleted = await asyncio.to_thread(self.worker.submit_delete, key)
        if deleted:
            self.logger.info(f"Deleted go link: {key}")
        return deleted

    async def list_links(self, limit: int = 100) -> List[Record]:
        """List the most recently updated links.

        Args:
            limit: Maximum number to return

        Returns:
            Records, newest update first
        """
        records = self.store.snapshot_copy().values()
        ordered = sorted(records, key=lambda r: (r.updated_at, r.key), reverse=True)
        return ordered[:max(limit, 0)]

    async def flush(self) -> bool:
        """Write a snapshot now instead of waiting for the sync interval."""
        return await asyncio.to_thread(self.worker.flush)

    async def get_statistics(self) -> Dict[str, Any]:
        """Get service statistics.

        Returns:
            Dictionary with link count and persistence counters
        """
        return {
            "total_links": len(self.store),
            "storage": self.worker.storage.describe(),
            **self.worker.stats(),
        }

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        The worker is healthy while it runs and accepts submissions.
        Persistence is healthy until a snapshot write fails, and recovers
        with the next successful one.

        Returns:
            Dictionary with health status
        """
        stats = self.worker.stats()
        worker_healthy = stats["running"] and stats["accepting"]
        persistence_healthy = stats["last_snapshot_ok"] is not False

        if not persistence_healthy:
            self.logger.warning(
                f"Last snapshot to {self.worker.storage.describe()} failed "
                f"({stats['snapshot_failures']} failures so far)"
            )

        return {
            "worker": worker_healthy,
            "persistence": persistence_healthy,
            "overall": worker_healthy and persistence_healthy,
        }

    async def close(self) -> None:
        """Stop the worker: drain pending writes and write a final snapshot."""
        await asyncio.to_thread(self.worker.stop)
