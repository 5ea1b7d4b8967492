"""
edidkit - Structural Decoder for EDID Display Data
==================================================

This package decodes the Extended Display Identification Data (EDID) a
monitor, TV or projector reports to its source over DDC. Every value is
kept together with the exact bits it came from, so a decode can be used
both to answer "what does this display support?" and to pinpoint which
byte of a broken EDID is wrong.

Main Components
---------------
- **bitstream**: Format-independent bit-level decoding
    Framed bit cursor, field tree, mapper pipeline and sub-format registry

- **edid**: EDID record decoders
    Base record, display/timing descriptors, CEA-861 and DisplayID
    extensions, checksums and timing normalization

- **cli**: Command-line tool (edidkit)
    Dump, summarize and validate EDID files

Quick Start
-----------
Decode a buffer:
    >>> from edidkit import decode_edid
    >>> result = decode_edid(open("edid.bin", "rb").read())
    >>> result.manufacturer
    'DEL'
    >>> [str(f) for f in result.failures]
    []

Read a file (binary or hex dump):
    >>> from edidkit import EDIDParser
    >>> parser = EDIDParser.from_file("xrandr-verbose.txt")
    >>> for mode in parser.result.timings():
    ...     print(mode)

Or use the command-line tool:
    $ edidkit info /sys/class/drm/card0-HDMI-A-1/edid
    $ edidkit dump --json edid.bin
    $ edidkit validate edid.bin

Reference Documentation
-----------------------
- EDID overview: https://en.wikipedia.org/wiki/Extended_Display_Identification_Data
- VESA E-EDID Standard, release A revision 2

Version History
---------------
1.0.0 - Initial release with base record, CEA-861 and DisplayID decoding
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from edidkit.config import DecoderConfig
from edidkit.errors import (
    EDIDError,
    DecodeError,
    OutOfBoundsError,
    AssertionMismatch,
    ChecksumError,
    RegistryError,
    ValidationFailure,
)

# Bit-level framework exports
from edidkit.bitstream import (
    BitCursor,
    Decoder,
    Field,
    FieldArray,
    FieldStruct,
    FormatRegistry,
    SubFormat,
)

# EDID module exports
from edidkit.edid import (
    EDIDParser,
    EDIDResult,
    TimingMode,
    collect_timings,
    decode_edid,
    default_registry,
    load_edid_bytes,
    parse_edid_file,
)

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "DecoderConfig",
    # Exception hierarchy
    "EDIDError",
    "DecodeError",
    "OutOfBoundsError",
    "AssertionMismatch",
    "ChecksumError",
    "RegistryError",
    "ValidationFailure",
    # Bit-level framework
    "BitCursor",
    "Decoder",
    "Field",
    "FieldArray",
    "FieldStruct",
    "FormatRegistry",
    "SubFormat",
    # EDID decoding
    "EDIDParser",
    "EDIDResult",
    "TimingMode",
    "collect_timings",
    "decode_edid",
    "default_registry",
    "load_edid_bytes",
    "parse_edid_file",
]
