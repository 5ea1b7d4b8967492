"""
EDID Format Decoders
====================

Decoders for the Extended Display Identification Data block a monitor
reports over DDC: the 128-byte base record and the extension records that
follow it.

This module provides:
- **decode_edid**: Decode a whole EDID buffer into a field tree
- **EDIDParser**: Read and decode EDID files (binary or hex dump)
- **Record decoders**: Base record, descriptors, CEA-861 and DisplayID
- **Checksum utilities**: Validate and calculate record checksums
- **collect_timings**: Flatten every timing encoding into TimingMode records

Quick Start
-----------
    >>> from edidkit.edid import EDIDParser
    >>> parser = EDIDParser.from_file("monitor.bin")
    >>> print(parser.result.get_info())
    >>> for mode in parser.result.timings():
    ...     print(mode)

Supported Extensions
--------------------
- **0x02**: CEA-861 Series Timing Extension
- **0x70**: DisplayID Extension

Every other extension tag is kept as opaque bytes, with its checksum
still validated.

Reference
---------
- VESA Enhanced EDID Standard, release A revision 2
- CTA-861 (data block collection)
- VESA DisplayID 1.3
"""

# =============================================================================
# Public API Exports
# =============================================================================

# Constants and enums
from edidkit.edid.tables import (
    DescriptorTag,
    EDID_MAGIC,
    ExtensionTag,
    RECORD_SIZE,
)

# Checksum utilities
from edidkit.edid.checksum import (
    ChecksumResult,
    calc_sum,
    expected_checksum,
    record_checksums,
    verify_record,
    with_checksum,
)

# Record decoders
from edidkit.edid.base import aspect_ratio, decode_base_record, manufacturer_letters
from edidkit.edid.cea861 import decode_cea861
from edidkit.edid.context import EDIDContext
from edidkit.edid.descriptors import decode_descriptor_slot
from edidkit.edid.displayid import decode_displayid
from edidkit.edid.extensions import decode_extensions, default_registry

# Timing normalization
from edidkit.edid.timings import TimingMode, collect_timings

# Parser classes and functions
from edidkit.edid.parser import (
    EDIDParser,
    EDIDResult,
    decode_edid,
    load_edid_bytes,
    parse_edid_file,
)

__all__ = [
    # Enums and constants
    "DescriptorTag",
    "ExtensionTag",
    "EDID_MAGIC",
    "RECORD_SIZE",
    # Checksums
    "ChecksumResult",
    "calc_sum",
    "expected_checksum",
    "record_checksums",
    "verify_record",
    "with_checksum",
    # Record decoders
    "EDIDContext",
    "aspect_ratio",
    "decode_base_record",
    "decode_cea861",
    "decode_descriptor_slot",
    "decode_displayid",
    "decode_extensions",
    "default_registry",
    "manufacturer_letters",
    # Timings
    "TimingMode",
    "collect_timings",
    # Parser
    "EDIDParser",
    "EDIDResult",
    "decode_edid",
    "load_edid_bytes",
    "parse_edid_file",
]
