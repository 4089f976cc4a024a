"""Startup recovery of the record store from its durable snapshot."""

import logging
from typing import Optional

from .database.base import SnapshotStorageBase
from .database.codec import SnapshotCodec
from .database.store import RecordStore
from .exceptions import PersistenceError, RecoveryError, SnapshotCodecError


def recover_store(
    storage: SnapshotStorageBase,
    codec: Optional[SnapshotCodec] = None,
    logger: Optional[logging.Logger] = None,
) -> RecordStore:
    """Rebuild the store from durable storage.

    Must run before the persistence worker starts, since it is the only
    other reader or writer of the durable file.

    Args:
        storage: Durable snapshot storage (created if absent)
        codec: Snapshot codec (defaults to SnapshotCodec())
        logger: Optional logger instance

    Returns:
        Store populated with every recovered record

    Raises:
        RecoveryError: If the storage cannot be opened or its contents
            cannot be decoded. Callers must not serve traffic after this.
    """
    logger = logger or logging.getLogger(__name__)
    codec = codec or SnapshotCodec()

    try:
        if storage.open_or_create():
            logger.info(f"Creating DB at {storage.describe()}")
        data = storage.read()
    except PersistenceError as e:
        raise RecoveryError(f"Cannot open {storage.describe()}: {e}") from e

    if not data:
        logger.info(f"No snapshot data in {storage.describe()}, starting fresh")
        return RecordStore()

    try:
        entries = codec.decode(data)
    except SnapshotCodecError as e:
        raise RecoveryError(
            f"Snapshot in {storage.describe()} is unreadable: {e}"
        ) from e

    logger.info(f"Found {len(entries)} entries in {storage.describe()}")
    return RecordStore(entries)
