"""
EDID Checksum Calculations
==========================

Every 128-byte EDID record (the base record and each extension) ends with
a one-byte checksum chosen so that all 128 bytes sum to zero modulo 256:

    checksum = (0 - sum(record[0:127])) mod 256

A mismatch is never fatal. The decoder records it on the ``checksum``
field and keeps going, so a corrupted EDID still shows everything that
could be read.

DisplayID sections carry a second, inner checksum with the same rule over
the section bytes; ``expected_checksum`` serves both.
"""

from dataclasses import dataclass
from typing import Optional

from edidkit.bitstream import Decoder, Field
from edidkit.bitstream import mappers as m
from edidkit.edid.tables import RECORD_SIZE


@dataclass
class ChecksumResult:
    """
    Result of checking one record's checksum.

    Attributes:
        is_valid: True if the stored checksum matches
        stored: The checksum byte found in the record
        calculated: The checksum the record should carry
    """
    is_valid: bool
    stored: int
    calculated: int

    @property
    def message(self) -> str:
        if self.is_valid:
            return f"checksum 0x{self.stored:02X} OK"
        return f"checksum 0x{self.stored:02X} should be 0x{self.calculated:02X}"


def calc_sum(data: bytes) -> int:
    """
    Sum of all bytes modulo 256.

    Example:
        >>> calc_sum(bytes([0xFF, 0x02]))
        1
    """
    return sum(data) & 0xFF


def expected_checksum(data: bytes) -> int:
    """
    The checksum byte that makes ``data`` plus the checksum sum to zero.

    Example:
        >>> expected_checksum(bytes([0x00, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0x00]))
        6
    """
    return (0 - calc_sum(data)) & 0xFF


def verify_record(record: bytes) -> ChecksumResult:
    """
    Check the trailing checksum of a 128-byte record.

    Raises:
        ValueError: If ``record`` is not exactly 128 bytes
    """
    if len(record) != RECORD_SIZE:
        raise ValueError(f"EDID record must be {RECORD_SIZE} bytes, got {len(record)}")
    calculated = expected_checksum(record[:RECORD_SIZE - 1])
    stored = record[RECORD_SIZE - 1]
    return ChecksumResult(stored == calculated, stored, calculated)


def with_checksum(record: bytes) -> bytes:
    """Return the first 127 bytes of ``record`` followed by a correct checksum."""
    body = bytes(record[:RECORD_SIZE - 1])
    return body + bytes([expected_checksum(body)])


def field_checksum(
    d: Decoder,
    first_byte: int,
    n_bytes: int = RECORD_SIZE - 1,
    name: str = "checksum",
) -> Field:
    """
    Emit a checksum byte at the cursor and validate it.

    Args:
        d: The decoder, positioned on the checksum byte
        first_byte: Absolute offset of the first byte covered by the checksum
        n_bytes: Number of bytes covered (127 for a whole record)
        name: Field name

    Returns:
        The emitted field; a mismatch is attached to it as a validation
        failure
    """
    calculated = expected_checksum(d.bytes_range(first_byte, n_bytes))
    first_bit = d.pos
    field = d.emit_field(name, d.read_uint(8), first_bit, 8, m.hex_display)
    if not d.validate_uint(field, calculated):
        field.description = ChecksumResult(False, field.raw, calculated).message
    return field


def record_checksums(data: bytes, count: Optional[int] = None) -> list[ChecksumResult]:
    """Verify every whole 128-byte record in ``data`` (or the first ``count``)."""
    total = len(data) // RECORD_SIZE
    if count is not None:
        total = min(total, count)
    return [
        verify_record(data[i * RECORD_SIZE:(i + 1) * RECORD_SIZE])
        for i in range(total)
    ]
