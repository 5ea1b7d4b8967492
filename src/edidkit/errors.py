"""
edidkit Error Hierarchy
=======================

This module defines the exception hierarchy for edidkit. All exceptions
inherit from EDIDError, allowing callers to catch every decoder-related
error with a single except clause if desired.

Exception Hierarchy
-------------------
EDIDError (base)
├── DecodeError - the enclosing record cannot be decoded any further
│   ├── OutOfBoundsError - a read or seek would cross the active frame
│   ├── AssertionMismatch - a hard structural constant did not match
│   └── ChecksumError - strict mode: one or more checksums failed
└── RegistryError - invalid use of an extension registry

Fatal vs Non-Fatal
------------------
Exceptions are reserved for fatal problems. Everything the decoder can
survive (checksum mismatch, unexpected padding, unknown tags, values that
fall outside a lookup table) is recorded as a ValidationFailure attached to
the field where it was detected, and decoding continues.

Error messages follow this format:
    bit 0x0040 (byte 8): error: description
"""

from dataclasses import dataclass
from typing import Any, Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class EDIDError(Exception):
    """
    Base exception for all edidkit errors.

        try:
            result = decode_edid(data)
        except EDIDError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Fatal Decode Errors
# =============================================================================

class DecodeError(EDIDError):
    """
    Base exception for errors that abort decoding of the current record.

    Attributes:
        message: The error description
        bit_offset: Absolute bit offset in the buffer where decoding stopped
            (optional)
    """

    def __init__(self, message: str, bit_offset: Optional[int] = None):
        self.message = message
        self.bit_offset = bit_offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.bit_offset is None:
            return f"error: {self.message}"
        return (
            f"bit 0x{self.bit_offset:04X} (byte {self.bit_offset // 8}): "
            f"error: {self.message}"
        )


class OutOfBoundsError(DecodeError):
    """
    A read or seek would cross the active frame or the end of the buffer.

    Raised by the bit cursor. Nested decoders run inside frames, so this
    also fires when a sub-decoder tries to read past its own window.
    """

    def __init__(
        self,
        requested_bits: int,
        bit_offset: int,
        frame_end: int,
    ):
        self.requested_bits = requested_bits
        self.frame_end = frame_end
        super().__init__(
            f"read of {requested_bits} bits exceeds frame "
            f"({frame_end - bit_offset} bits left)",
            bit_offset,
        )


class AssertionMismatch(DecodeError):
    """
    A hard-coded structural constant did not match.

    Used where there is no way to recover, e.g. the 8-byte EDID magic.
    """

    def __init__(
        self,
        name: str,
        expected: Any,
        actual: Any,
        bit_offset: Optional[int] = None,
    ):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{name}: expected {_format_value(expected)}, "
            f"got {_format_value(actual)}",
            bit_offset,
        )


class ChecksumError(DecodeError):
    """
    One or more record checksums failed while strict checking was enabled.

    The decoded result is still available on the exception so callers can
    inspect what was read.
    """

    def __init__(self, failures: list, result: Any = None):
        self.failures = failures
        self.result = result
        paths = ", ".join(f.path for f in failures)
        super().__init__(f"checksum mismatch in {paths}")


# =============================================================================
# Registry Errors
# =============================================================================

class RegistryError(EDIDError):
    """Invalid use of an extension registry (e.g. duplicate tag)."""
    pass


# =============================================================================
# Non-Fatal Validation Failures
# =============================================================================

@dataclass(frozen=True)
class ValidationFailure:
    """
    A non-fatal problem found while decoding.

    Validation failures are attached to the field where they were detected
    and collected on the decode result. They never stop decoding.

    Attributes:
        path: Dotted path of the field in the decoded tree
        first_bit: First bit of the offending range
        n_bits: Length of the offending range in bits
        expected: The value that was expected (if known)
        actual: The value that was found
        message: Human-readable explanation
    """
    path: str
    first_bit: int
    n_bits: int
    expected: Any
    actual: Any
    message: str

    def __str__(self) -> str:
        return f"{self.path} (byte {self.first_bit // 8}): {self.message}"


def _format_value(value: Any) -> str:
    """Format bytes as spaced hex, integers as hex, everything else as repr."""
    if isinstance(value, (bytes, bytearray)):
        return " ".join(f"{b:02X}" for b in value)
    if isinstance(value, int) and not isinstance(value, bool):
        return f"0x{value:X}"
    return repr(value)
