"""
Bit-Level Decoding Framework
============================

The format-independent half of edidkit:

- **BitCursor**: bit-addressable, framed, endian-aware read head
- **Decoder**: emits a tree of named, annotated fields while reading
- **mappers**: pipeline of value annotations (symbols, units, formulas)
- **FormatRegistry**: tag-keyed sub-format dispatch table
"""

from edidkit.bitstream.cursor import BitCursor, BIG_ENDIAN, LITTLE_ENDIAN
from edidkit.bitstream.decoder import Decoder, SplitValue, reassemble
from edidkit.bitstream.mappers import MappedValue, apply_mappers
from edidkit.bitstream.registry import FormatRegistry, SubFormat
from edidkit.bitstream.tree import Field, FieldArray, FieldStruct

__all__ = [
    "BitCursor",
    "BIG_ENDIAN",
    "LITTLE_ENDIAN",
    "Decoder",
    "SplitValue",
    "reassemble",
    "MappedValue",
    "apply_mappers",
    "FormatRegistry",
    "SubFormat",
    "Field",
    "FieldArray",
    "FieldStruct",
]
