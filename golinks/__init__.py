"""Core of the go links registry: store, snapshot persistence, recovery."""

from .database.models import Record
from .database.store import RecordStore
from .recovery import recover_store
from .service import GoLinksService
from .worker import PersistenceWorker

__all__ = [
    "Record",
    "RecordStore",
    "recover_store",
    "GoLinksService",
    "PersistenceWorker",
]
