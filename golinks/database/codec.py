"""Binary snapshot codec for the record store.

Format (little endian)::

    magic      4s   b"GLNK"
    version    u16
    count      u32
    count x record:
        key_len     u16, key     (utf-8)
        target_len  u32, target  (utf-8)
        created_at  i64
        updated_at  i64
    crc32      u32  over every preceding byte

A snapshot is always the whole mapping. Zero-length input decodes to an
empty mapping.
"""

import binascii
import struct
from typing import Dict, List

from .models import Record
from ..exceptions import InvalidInputError, SnapshotCodecError


MAGIC = b"GLNK"
VERSION = 1

_HEADER = struct.Struct("<4sHI")
_KEY_LEN = struct.Struct("<H")
_TARGET_LEN = struct.Struct("<I")
_TIMESTAMPS = struct.Struct("<qq")
_CRC = struct.Struct("<I")

MAX_KEY_BYTES = 0xFFFF
MAX_TARGET_BYTES = 0xFFFFFFFF


def calculate_crc32(data: bytes) -> int:
    """Calculate CRC32 checksum."""
    return binascii.crc32(data) & 0xFFFFFFFF


class SnapshotCodec:
    """Encode and decode whole-store snapshots."""

    def encode(self, mapping: Dict[str, Record]) -> bytes:
        """Serialize every record in ``mapping``.

        Args:
            mapping: key -> Record, as returned by ``RecordStore.snapshot_copy``

        Returns:
            Self-contained snapshot bytes

        Raises:
            SnapshotCodecError: If a record cannot be represented
        """
        parts: List[bytes] = [_HEADER.pack(MAGIC, VERSION, len(mapping))]

        # Sorted so identical stores produce identical bytes
        for key in sorted(mapping):
            parts.append(self._encode_record(key, mapping[key]))

        body = b"".join(parts)
        return body + _CRC.pack(calculate_crc32(body))

    def decode(self, data: bytes) -> Dict[str, Record]:
        """Deserialize snapshot bytes.

        Args:
            data: Full contents of the durable file

        Returns:
            key -> Record mapping (empty for empty input)

        Raises:
            SnapshotCodecError: If the bytes are not a single valid snapshot
        """
        if not data:
            return {}

        data = bytes(data)
        if len(data) < _HEADER.size + _CRC.size:
            raise SnapshotCodecError(f"Snapshot too short ({len(data)} bytes)")

        magic, version, count = _HEADER.unpack_from(data, 0)
        if magic != MAGIC:
            raise SnapshotCodecError(f"Bad snapshot magic {magic!r}")
        if version != VERSION:
            raise SnapshotCodecError(f"Unsupported snapshot version {version}")

        offset = _HEADER.size
        entries: Dict[str, Record] = {}
        try:
            for _ in range(count):
                record, offset = self._decode_record(data, offset)
                if record.key in entries:
                    raise SnapshotCodecError(f"Duplicate key '{record.key}' in snapshot")
                entries[record.key] = record
            (crc,) = _CRC.unpack_from(data, offset)
        except struct.error as e:
            raise SnapshotCodecError(f"Truncated snapshot: {e}") from e

        offset += _CRC.size
        if offset != len(data):
            raise SnapshotCodecError(
                f"{len(data) - offset} unexpected trailing bytes after snapshot"
            )

        expected = calculate_crc32(data[: offset - _CRC.size])
        if crc != expected:
            raise SnapshotCodecError(
                f"Snapshot checksum mismatch (stored {crc:#010x}, computed {expected:#010x})"
            )

        return entries

    def _encode_record(self, key: str, record: Record) -> bytes:
        if record.key != key:
            raise SnapshotCodecError(
                f"Record key '{record.key}' does not match mapping key '{key}'"
            )

        key_bytes = key.encode("utf-8")
        target_bytes = record.target.encode("utf-8")
        if len(key_bytes) > MAX_KEY_BYTES:
            raise SnapshotCodecError(f"Key too long to encode ({len(key_bytes)} bytes)")
        if len(target_bytes) > MAX_TARGET_BYTES:
            raise SnapshotCodecError(f"Target too long to encode for key '{key}'")

        try:
            timestamps = _TIMESTAMPS.pack(record.created_at, record.updated_at)
        except struct.error as e:
            raise SnapshotCodecError(f"Bad timestamps for key '{key}': {e}") from e

        return b"".join([
            _KEY_LEN.pack(len(key_bytes)),
            key_bytes,
            _TARGET_LEN.pack(len(target_bytes)),
            target_bytes,
            timestamps,
        ])

    def _decode_record(self, data: bytes, offset: int):
        (key_len,) = _KEY_LEN.unpack_from(data, offset)
        offset += _KEY_LEN.size
        key_bytes = self._take(data, offset, key_len)
        offset += key_len

        (target_len,) = _TARGET_LEN.unpack_from(data, offset)
        offset += _TARGET_LEN.size
        target_bytes = self._take(data, offset, target_len)
        offset += target_len

        created_at, updated_at = _TIMESTAMPS.unpack_from(data, offset)
        offset += _TIMESTAMPS.size

        try:
            record = Record(
                key=key_bytes.decode("utf-8"),
                target=target_bytes.decode("utf-8"),
                created_at=created_at,
                updated_at=updated_at,
            )
        except (UnicodeDecodeError, InvalidInputError) as e:
            raise SnapshotCodecError(f"Invalid record at offset {offset}: {e}") from e

        return record, offset

    @staticmethod
    def _take(data: bytes, offset: int, length: int) -> bytes:
        chunk = data[offset:offset + length]
        if len(chunk) != length:
            raise SnapshotCodecError(
                f"Truncated snapshot: wanted {length} bytes at offset {offset}"
            )
        return chunk
