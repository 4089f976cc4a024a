"""Data models for the go links registry."""

from dataclasses import dataclass, replace
from typing import Optional

from ..exceptions import InvalidInputError


@dataclass(frozen=True)
class Record:
    """One key -> target mapping with its creation and update timestamps.

    Timestamps are integer seconds since the epoch. A Record is immutable;
    updates produce a new Record through :func:`build_record`.
    """

    key: str
    target: str
    created_at: int
    updated_at: int

    def __post_init__(self):
        if not self.key or not isinstance(self.key, str):
            raise InvalidInputError("Record key must be a non-empty string")
        if not isinstance(self.target, str):
            raise InvalidInputError("Record target must be a string")
        if self.updated_at < self.created_at:
            raise InvalidInputError(
                f"Record '{self.key}' has updated_at {self.updated_at} "
                f"before created_at {self.created_at}"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "target": self.target,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Record":
        """Create from dictionary."""
        return cls(
            key=data["key"],
            target=data["target"],
            created_at=int(data["created_at"]),
            updated_at=int(data["updated_at"]),
        )


def build_record(existing: Optional[Record], key: str, target: str, now: int) -> Record:
    """Compute the Record that a write of ``target`` to ``key`` produces.

    Args:
        existing: Current Record for the key, or None for a new key
        key: The key being written
        target: New target URL
        now: Write timestamp (seconds since epoch)

    Returns:
        A new Record. ``created_at`` is carried over from ``existing`` and
        ``updated_at`` never moves backwards.
    """
    now = int(now)
    if existing is None:
        return Record(key=key, target=target, created_at=now, updated_at=now)

    return replace(
        existing,
        target=target,
        updated_at=max(now, existing.updated_at),
    )
