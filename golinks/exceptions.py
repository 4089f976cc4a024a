"""Exception hierarchy for the go links registry."""


class GoLinksError(Exception):
    """Base class for all registry errors."""


class InvalidInputError(GoLinksError, ValueError):
    """Raised when a key or target URL is rejected before a Record is built."""


class SnapshotCodecError(GoLinksError):
    """Raised when snapshot bytes cannot be encoded or decoded."""


class PersistenceError(GoLinksError):
    """Raised when the durable snapshot file cannot be read or written."""


class RecoveryError(GoLinksError):
    """Raised at startup when the durable file exists but cannot be decoded.

    This is fatal: the process must not serve traffic against a
    partially recovered store.
    """


class RegistryClosedError(GoLinksError):
    """Raised when a write is submitted after the worker has been stopped."""
