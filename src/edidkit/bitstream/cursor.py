"""
Bit Cursor
==========

A read head over an immutable byte buffer, addressed in bits.

Bits are numbered MSB-first: bit 0 of the buffer is the most significant
bit of byte 0. A read of n bits returns the next n bits as an unsigned
integer with the first bit read as its most significant bit. For byte
aligned reads whose width is a multiple of 8 the cursor's byte order is
applied, so a little-endian 16-bit read of ``34 12`` yields ``0x1234``.

Frames
------
The cursor keeps a stack of frames. A frame limits reads to a window of
the buffer so a nested decoder cannot wander outside the bytes it was
given:

    >>> cursor = BitCursor(bytes(256))
    >>> with cursor.framed(128 * 8):
    ...     cursor.read_uint(8)
    0

On leaving a frame the cursor is placed at the end of the frame, whatever
the nested decoder consumed.
"""

from contextlib import contextmanager
from typing import Iterator

from edidkit.errors import OutOfBoundsError

BIG_ENDIAN = "big"
LITTLE_ENDIAN = "little"

MAX_READ_BITS = 64


class BitCursor:
    """
    Bit-addressable read cursor with framing and byte order.

    Attributes:
        data: The underlying buffer
        endian: Byte order for aligned multi-byte reads ("big" or "little")
        pos: Current absolute bit offset
    """

    def __init__(self, data: bytes, endian: str = LITTLE_ENDIAN):
        if endian not in (BIG_ENDIAN, LITTLE_ENDIAN):
            raise ValueError(f"Invalid byte order: {endian!r}")
        self.data = bytes(data)
        self.endian = endian
        self.pos = 0
        # (start, end) in absolute bits, outermost first
        self._frames: list[tuple[int, int]] = [(0, len(self.data) * 8)]

    # -------------------------------------------------------------------------
    # Frame bookkeeping
    # -------------------------------------------------------------------------

    @property
    def frame_start(self) -> int:
        return self._frames[-1][0]

    @property
    def frame_end(self) -> int:
        return self._frames[-1][1]

    @property
    def bits_left(self) -> int:
        """Bits remaining before the end of the active frame."""
        return self.frame_end - self.pos

    @property
    def byte_pos(self) -> int:
        return self.pos // 8

    @contextmanager
    def framed(self, n_bits: int) -> Iterator["BitCursor"]:
        """
        Limit reads to the next ``n_bits`` bits.

        Raises:
            OutOfBoundsError: If the frame itself would cross the active frame
        """
        self._check(n_bits)
        start = self.pos
        end = start + n_bits
        self._frames.append((start, end))
        try:
            yield self
        finally:
            self._frames.pop()
        # Only reached when the body did not raise
        self.pos = end

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _check(self, n_bits: int) -> None:
        if n_bits < 0 or self.pos + n_bits > self.frame_end:
            raise OutOfBoundsError(n_bits, self.pos, self.frame_end)

    def _extract(self, first_bit: int, n_bits: int) -> int:
        """Extract ``n_bits`` big-endian bits starting at ``first_bit``."""
        if n_bits == 0:
            return 0
        first_byte = first_bit // 8
        last_byte = (first_bit + n_bits - 1) // 8
        chunk = int.from_bytes(self.data[first_byte:last_byte + 1], "big")
        trailing = (last_byte + 1) * 8 - (first_bit + n_bits)
        return (chunk >> trailing) & ((1 << n_bits) - 1)

    def _ordered(self, value: int, first_bit: int, n_bits: int, endian: str) -> int:
        if endian == LITTLE_ENDIAN and n_bits > 8 and n_bits % 8 == 0 and first_bit % 8 == 0:
            return int.from_bytes(value.to_bytes(n_bits // 8, "big"), "little")
        return value

    def peek_uint(self, n_bits: int, endian: str = None) -> int:
        """Read ``n_bits`` (1-64) without advancing."""
        if not 1 <= n_bits <= MAX_READ_BITS:
            raise ValueError(f"Read width must be 1-{MAX_READ_BITS} bits, got {n_bits}")
        self._check(n_bits)
        value = self._extract(self.pos, n_bits)
        return self._ordered(value, self.pos, n_bits, endian or self.endian)

    def read_uint(self, n_bits: int, endian: str = None) -> int:
        """
        Read ``n_bits`` (1-64) as an unsigned integer and advance.

        Args:
            n_bits: Width of the read
            endian: Override the cursor's byte order for this read

        Raises:
            OutOfBoundsError: If the read would cross the active frame
        """
        value = self.peek_uint(n_bits, endian)
        self.pos += n_bits
        return value

    def read_uint_be(self, n_bits: int) -> int:
        return self.read_uint(n_bits, BIG_ENDIAN)

    def read_uint_le(self, n_bits: int) -> int:
        return self.read_uint(n_bits, LITTLE_ENDIAN)

    def read_bytes(self, n_bytes: int) -> bytes:
        """Read ``n_bytes`` whole bytes (the cursor need not be aligned)."""
        n_bits = n_bytes * 8
        self._check(n_bits)
        if self.pos % 8 == 0:
            start = self.pos // 8
            result = self.data[start:start + n_bytes]
        else:
            value = self._extract(self.pos, n_bits)
            result = value.to_bytes(n_bytes, "big")
        self.pos += n_bits
        return result

    def bytes_range(self, first_byte: int, n_bytes: int) -> bytes:
        """
        Return an absolute byte range of the buffer.

        Not limited by frames: checksums look at whole records regardless of
        which sub-frame is active when they are computed.
        """
        if first_byte < 0 or first_byte + n_bytes > len(self.data):
            raise OutOfBoundsError(n_bytes * 8, first_byte * 8, len(self.data) * 8)
        return self.data[first_byte:first_byte + n_bytes]

    # -------------------------------------------------------------------------
    # Seeking
    # -------------------------------------------------------------------------

    def seek_absolute(self, bit: int) -> None:
        if not self.frame_start <= bit <= self.frame_end:
            raise OutOfBoundsError(bit - self.pos, self.pos, self.frame_end)
        self.pos = bit

    def seek_relative(self, delta_bits: int) -> None:
        """Move the cursor without reading (used for interleaved fields)."""
        self.seek_absolute(self.pos + delta_bits)
