"""
Field Decoder
=============

The Decoder couples a BitCursor with the tree being built. Format code
calls ``field_*`` methods in wire order; each call reads bits, runs the
mapper pipeline and appends a Field to the current struct or array.

Usage
-----
    >>> d = Decoder(data)
    >>> with d.field_struct("header"):
    ...     d.field_raw_assert("identifier", EDID_MAGIC)
    ...     d.field_u16_be("manufacturer_id", manufacturer)
    >>> d.root["header"]["manufacturer_id"].symbol
    'DEL'

Address-based emission
----------------------
Several EDID values are split across non-adjacent bytes. These are read
chunk by chunk with the cursor, reassembled, and emitted once with
``emit_field`` over the union of the physical ranges:

    start = d.pos
    low = d.read_uint(8)
    ...
    high = d.read_uint(4)
    split = SplitValue.join(low, high, 8, start, d.pos)
    d.emit_field("horizontal_blanking", split.raw, split.first_bit, split.n_bits)
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional
import logging

from edidkit.bitstream.cursor import BitCursor, BIG_ENDIAN, LITTLE_ENDIAN
from edidkit.bitstream.mappers import MappedValue, Mapper, apply_mappers, set_bits, sym_map
from edidkit.bitstream.tree import Field, FieldArray, FieldStruct
from edidkit.errors import AssertionMismatch, ValidationFailure

logger = logging.getLogger(__name__)


# =============================================================================
# Split Fields
# =============================================================================

def reassemble(low: int, high: int, low_bits: int) -> int:
    """Combine a low part and a high part: ``low | (high << low_bits)``."""
    return low | (high << low_bits)


@dataclass(frozen=True)
class SplitValue:
    """
    One logical value reassembled from several physical reads.

    Attributes:
        raw: The reassembled value
        first_bit: First bit of the union of the physical ranges
        n_bits: Length of the union of the physical ranges
    """
    raw: int
    first_bit: int
    n_bits: int

    @classmethod
    def join(cls, low: int, high: int, low_bits: int, start: int, end: int) -> "SplitValue":
        return cls(reassemble(low, high, low_bits), start, end - start)


# =============================================================================
# Decoder
# =============================================================================

class Decoder:
    """
    Emits a tree of named, annotated fields while reading a buffer.

    Attributes:
        cursor: The bit cursor
        root: Root struct of the decoded tree
        failures: Every non-fatal validation failure, in detection order
    """

    def __init__(self, data: bytes, endian: str = LITTLE_ENDIAN, root_name: str = "edid"):
        self.cursor = BitCursor(data, endian)
        self.root = FieldStruct(root_name, 0)
        self._stack: list = [self.root]
        self.failures: list[ValidationFailure] = []

    # -------------------------------------------------------------------------
    # Cursor passthrough
    # -------------------------------------------------------------------------

    @property
    def data(self) -> bytes:
        return self.cursor.data

    @property
    def pos(self) -> int:
        return self.cursor.pos

    @property
    def bits_left(self) -> int:
        return self.cursor.bits_left

    def read_uint(self, n_bits: int, endian: Optional[str] = None) -> int:
        return self.cursor.read_uint(n_bits, endian)

    def peek_uint(self, n_bits: int, endian: Optional[str] = None) -> int:
        return self.cursor.peek_uint(n_bits, endian)

    def seek_relative(self, delta_bits: int) -> None:
        self.cursor.seek_relative(delta_bits)

    def seek_absolute(self, bit: int) -> None:
        self.cursor.seek_absolute(bit)

    def bytes_range(self, first_byte: int, n_bytes: int) -> bytes:
        return self.cursor.bytes_range(first_byte, n_bytes)

    def framed(self, n_bits: int):
        return self.cursor.framed(n_bits)

    # -------------------------------------------------------------------------
    # Tree structure
    # -------------------------------------------------------------------------

    @property
    def current(self):
        return self._stack[-1]

    def _child_path(self, name: str) -> str:
        parent = self.current
        if isinstance(parent, FieldArray):
            return f"{parent.path}[{len(parent.items)}]"
        return f"{parent.path}.{name}" if parent.path else name

    def _append(self, node):
        node.path = self._child_path(node.name)
        self.current.append(node)
        return node

    @contextmanager
    def field_struct(self, name: str) -> Iterator[FieldStruct]:
        node = self._append(FieldStruct(name, self.pos))
        self._stack.append(node)
        try:
            yield node
        finally:
            self._stack.pop()

    @contextmanager
    def field_array(self, name: str) -> Iterator[FieldArray]:
        node = self._append(FieldArray(name, self.pos))
        self._stack.append(node)
        try:
            yield node
        finally:
            self._stack.pop()

    # -------------------------------------------------------------------------
    # Field emission
    # -------------------------------------------------------------------------

    def emit_field(
        self,
        name: str,
        value: Any,
        first_bit: int,
        n_bits: int,
        *mappers: Mapper,
    ) -> Field:
        """
        Record a field over an explicit bit range.

        The range may differ from the cursor position, which is how split
        and derived values are attached to the bytes they came from.
        """
        mapped = apply_mappers(MappedValue(value), mappers)
        field = Field(
            name=name,
            first_bit=first_bit,
            n_bits=n_bits,
            value=mapped.actual,
            raw=value,
            symbol=mapped.symbol,
            description=mapped.description,
            unit=mapped.unit,
            hex=mapped.hex,
        )
        return self._append(field)

    def field_uint(
        self,
        name: str,
        n_bits: int,
        *mappers: Mapper,
        endian: Optional[str] = None,
    ) -> int:
        """Read an unsigned integer field and return its raw value."""
        first_bit = self.pos
        raw = self.cursor.read_uint(n_bits, endian)
        self.emit_field(name, raw, first_bit, n_bits, *mappers)
        return raw

    def field_u8(self, name: str, *mappers: Mapper) -> int:
        return self.field_uint(name, 8, *mappers)

    def field_u16(self, name: str, *mappers: Mapper) -> int:
        return self.field_uint(name, 16, *mappers)

    def field_u16_be(self, name: str, *mappers: Mapper) -> int:
        return self.field_uint(name, 16, *mappers, endian=BIG_ENDIAN)

    def field_u16_le(self, name: str, *mappers: Mapper) -> int:
        return self.field_uint(name, 16, *mappers, endian=LITTLE_ENDIAN)

    def field_u32(self, name: str, *mappers: Mapper) -> int:
        return self.field_uint(name, 32, *mappers)

    def field_bool(self, name: str, *mappers: Mapper) -> bool:
        first_bit = self.pos
        value = self.cursor.read_uint(1) == 1
        self.emit_field(name, value, first_bit, 1, *mappers)
        return value

    def field_raw(
        self,
        name: str,
        n_bits: int,
        *mappers: Mapper,
        expect: Optional[bytes] = None,
    ) -> Any:
        """
        Capture ``n_bits`` as an opaque value (bytes when byte sized).

        When ``expect`` is given a mismatch is recorded as a non-fatal
        validation failure. ``expect`` needs a whole number of bytes.

        Raises:
            ValueError: If ``expect`` is given for a sub-byte width
        """
        if expect is not None and n_bits % 8:
            raise ValueError(f"expect needs a byte sized field, got {n_bits} bits")
        first_bit = self.pos
        if n_bits % 8 == 0:
            value = self.cursor.read_bytes(n_bits // 8)
        else:
            value = self.cursor.read_uint(n_bits, BIG_ENDIAN)
        field = self.emit_field(name, value, first_bit, n_bits, *mappers)
        if expect is not None and value != expect:
            self.fail(field, expect, value, f"expected {expect.hex(' ')}, got {value.hex(' ')}")
        return value

    def field_raw_assert(self, name: str, expected: bytes, *mappers: Mapper) -> bytes:
        """
        Capture a constant byte sequence, failing hard on mismatch.

        Raises:
            AssertionMismatch: If the bytes differ from ``expected``
        """
        first_bit = self.pos
        value = self.cursor.read_bytes(len(expected))
        field = self.emit_field(name, value, first_bit, len(expected) * 8, *mappers)
        if value != expected:
            raise AssertionMismatch(field.path, expected, value, first_bit)
        return value

    def field_str(
        self,
        name: str,
        n_bytes: int,
        *mappers: Mapper,
        encoding: str = "cp437",
    ) -> str:
        first_bit = self.pos
        text = self.cursor.read_bytes(n_bytes).decode(encoding, errors="replace")
        field = self.emit_field(name, text, first_bit, n_bytes * 8, *mappers)
        return field.value

    def field_value(self, name: str, value: Any, *mappers: Mapper) -> Field:
        """Emit a synthetic (derived, zero width) field at the cursor."""
        return self.emit_field(name, value, self.pos, 0, *mappers)

    def field_flags(
        self,
        name: str,
        flags: int,
        first_bit: int,
        table: dict,
        width: int = 8,
    ) -> list[Field]:
        """
        Emit one field per set bit of ``flags``.

        Each field's value is the bit index and its symbol the capability
        ``table`` names for that bit. Bits are visited most significant
        first so ranges stay in wire order.
        """
        fields = []
        for bit in set_bits(flags, width):
            position = first_bit + (width - 1 - bit)
            fields.append(self.emit_field(name, bit, position, 1, sym_map(table)))
        return fields

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def fail(self, field: Field, expected: Any, actual: Any, message: str) -> ValidationFailure:
        """Attach a non-fatal validation failure to ``field``."""
        failure = ValidationFailure(
            path=field.path,
            first_bit=field.first_bit,
            n_bits=field.n_bits,
            expected=expected,
            actual=actual,
            message=message,
        )
        field.validations.append(failure)
        self.failures.append(failure)
        logger.warning(f"Validation failed: {failure}")
        return failure

    def validate_uint(self, field: Field, expected: int) -> bool:
        """Check an integer field against an expected value."""
        if field.raw == expected:
            return True
        self.fail(field, expected, field.raw, f"expected 0x{expected:02X}, got 0x{field.raw:02X}")
        return False
