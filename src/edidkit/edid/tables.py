"""
EDID Constants and Lookup Tables
================================

Wire constants and the symbol tables used to annotate decoded values.

Record Structure Overview
-------------------------
An EDID is a chain of 128-byte records:

    Base record (128 bytes)
        0-7     Header magic 00 FF FF FF FF FF FF 00
        8-17    Vendor / product identification
        18-19   EDID version / revision
        20-24   Basic display parameters
        25-34   Chromaticity coordinates
        35-37   Established timings
        38-53   Standard timings (8 x 2 bytes)
        54-125  Four 18-byte descriptor slots
        126     Extension count
        127     Checksum
    Extension records (128 bytes each), tag byte first, checksum last

Reference
---------
- VESA Enhanced EDID Standard, release A revision 2
- https://en.wikipedia.org/wiki/Extended_Display_Identification_Data
"""

from enum import IntEnum


# =============================================================================
# Wire Constants
# =============================================================================

EDID_MAGIC = bytes([0x00, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0x00])
RECORD_SIZE = 128
DESCRIPTOR_SIZE = 18
DESCRIPTOR_COUNT = 4

OFF_VENDOR = 8
OFF_VERSION = 18
OFF_BASIC = 20
OFF_CHROMA = 25
OFF_EST_TIMING = 35
OFF_STD_TIMING = 38
OFF_DESCRIPTORS = 54
OFF_EXT_COUNT = 126
OFF_CHECKSUM = 127

# Standard timing slot value marking an unused entry
UNUSED_STANDARD_TIMING = (0x01, 0x01)

# Range limits descriptor padding after the video timing support flags
RANGE_LIMITS_PADDING = bytes([0x0A, 0x20, 0x20, 0x20, 0x20, 0x20, 0x20])


# =============================================================================
# Enumeration Types
# =============================================================================

class ExtensionTag(IntEnum):
    """Extension record tag (first byte of each extension record)."""
    CEA861 = 0x02
    VTB = 0x10
    EDID_20 = 0x20
    DI = 0x40
    LS = 0x50
    MI = 0x60
    DISPLAYID = 0x70
    BLOCK_MAP = 0xF0
    MANUFACTURER = 0xFF

    def get_description(self) -> str:
        return EXTENSION_TAG_DESCRIPTIONS[self]


EXTENSION_TAG_DESCRIPTIONS = {
    ExtensionTag.CEA861: "CEA-861 Series Timing Extension",
    ExtensionTag.VTB: "Video Timing Block Extension (VTB-EXT)",
    ExtensionTag.EDID_20: "EDID 2.0 Extension",
    ExtensionTag.DI: "Display Information Extension (DI-EXT)",
    ExtensionTag.LS: "Localized String Extension (LS-EXT)",
    ExtensionTag.MI: "Microdisplay Interface Extension (MI-EXT)",
    ExtensionTag.DISPLAYID: "DisplayID Extension",
    ExtensionTag.BLOCK_MAP: "Block Map",
    ExtensionTag.MANUFACTURER: "Manufacturer Defined Extension",
}


class DescriptorTag(IntEnum):
    """Display descriptor tag (byte 3 of a display descriptor)."""
    SERIAL_NUMBER = 0xFF
    ASCII_STRING = 0xFE
    RANGE_LIMITS = 0xFD
    PRODUCT_NAME = 0xFC
    COLOR_POINT = 0xFB
    STANDARD_TIMINGS = 0xFA
    DCM = 0xF9
    CVT_CODES = 0xF8
    ESTABLISHED_TIMINGS_III = 0xF7
    DUMMY = 0x10

    @classmethod
    def is_manufacturer(cls, tag: int) -> bool:
        """Tags 0x00-0x0F are reserved for manufacturer use."""
        return tag <= 0x0F


DESCRIPTOR_TAG_DESCRIPTIONS = {
    0xFF: "Display Product Serial Number",
    0xFE: "Alphanumeric Data String (ASCII)",
    0xFD: "Display Range Limits",
    0xFC: "Display Product Name",
    0xFB: "Color Point Data",
    0xFA: "Standard Timing Identifications",
    0xF9: "Display Color Management (DCM) Data",
    0xF8: "CVT 3 Byte Timing Codes",
    0xF7: "Established Timings III",
    0x10: "Dummy Descriptor",
}


# =============================================================================
# Basic Display Parameters
# =============================================================================

INPUT_TYPE = {0: "analog", 1: "digital"}

# Digital input: bits per primary colour (symbol, description)
BIT_DEPTH = {
    0: ("undefined", None),
    1: (6, "6 bits per color"),
    2: (8, "8 bits per color"),
    3: (10, "10 bits per color"),
    4: (12, "12 bits per color"),
    5: (14, "14 bits per color"),
    6: (16, "16 bits per color"),
    7: ("reserved", None),
}

VIDEO_INTERFACE = {
    0: "undefined",
    1: "dvi",
    2: "hdmia",
    3: "hdmib",
    4: "mddi",
    5: "displayport",
}

# Analog input: white and sync levels relative to blank
SYNC_LEVELS = {
    0: "+0.7/-0.3 V",
    1: "+0.714/-0.286 V",
    2: "+1.0/-0.4 V",
    3: "+0.7/0 V (EVC)",
}

DISPLAY_TYPE_DIGITAL = {
    0: "RGB 4:4:4",
    1: "RGB 4:4:4 + YCrCb 4:4:4",
    2: "RGB 4:4:4 + YCrCb 4:2:2",
    3: "RGB 4:4:4 + YCrCb 4:4:4 + YCrCb 4:2:2",
}

DISPLAY_TYPE_ANALOG = {
    0: "Monochrome or Grayscale",
    1: "RGB color",
    2: "Non-RGB color",
    3: "undefined",
}

# Gamma byte value meaning "gamma is defined in an extension block"
GAMMA_IN_EXTENSION = 0xFF

# Aspect ratios produced by GCD reduction that are conventionally written
# another way
ASPECT_RATIO_EDGE_CASES = {
    "8:5": "16:10",
    "5:8": "10:16",
    "7:3": "21:9",
    "3:7": "9:21",
}


# =============================================================================
# Timings
# =============================================================================

# Established timings I (byte 35), keyed by bit index
ESTABLISHED_TIMINGS_I = {
    0: "800x600@60Hz",
    1: "800x600@56Hz",
    2: "640x480@75Hz",
    3: "640x480@72Hz",
    4: "640x480@67Hz",
    5: "640x480@60Hz",
    6: "720x400@88Hz",
    7: "720x400@70Hz",
}

# Established timings II (byte 36), keyed by bit index
ESTABLISHED_TIMINGS_II = {
    0: "1280x1024@75Hz",
    1: "1024x768@75Hz",
    2: "1024x768@70Hz",
    3: "1024x768@60Hz",
    4: "1024x768@87Hz(I)",
    5: "832x624@75Hz",
    6: "800x600@75Hz",
    7: "800x600@72Hz",
}

# Manufacturer timings (byte 37), keyed by bit index
MANUFACTURER_TIMINGS = {
    0: "reserved",
    1: "reserved",
    2: "reserved",
    3: "reserved",
    4: "reserved",
    5: "reserved",
    6: "reserved",
    7: "1152x870@75Hz",
}

# Established timings III descriptor (tag 0xF7): one table per byte,
# keyed by bit index
ESTABLISHED_TIMINGS_III = [
    {
        7: "640x350@85Hz",
        6: "640x400@85Hz",
        5: "720x400@85Hz",
        4: "640x480@85Hz",
        3: "848x480@60Hz",
        2: "800x600@85Hz",
        1: "1024x768@85Hz",
        0: "1152x864@75Hz",
    },
    {
        7: "1280x768@60Hz(RB)",
        6: "1280x768@60Hz",
        5: "1280x768@75Hz",
        4: "1280x768@85Hz",
        3: "1280x960@60Hz",
        2: "1280x960@85Hz",
        1: "1280x1024@60Hz",
        0: "1280x1024@85Hz",
    },
    {
        7: "1360x768@60Hz",
        6: "1440x900@60Hz(RB)",
        5: "1440x900@60Hz",
        4: "1440x900@75Hz",
        3: "1440x900@85Hz",
        2: "1400x1050@60Hz(RB)",
        1: "1400x1050@60Hz",
        0: "1400x1050@75Hz",
    },
    {
        7: "1400x1050@85Hz",
        6: "1680x1050@60Hz(RB)",
        5: "1680x1050@60Hz",
        4: "1680x1050@75Hz",
        3: "1680x1050@85Hz",
        2: "1600x1200@60Hz",
        1: "1600x1200@65Hz",
        0: "1600x1200@70Hz",
    },
    {
        7: "1600x1200@75Hz",
        6: "1600x1200@85Hz",
        5: "1792x1344@60Hz",
        4: "1792x1344@75Hz",
        3: "1856x1392@60Hz",
        2: "1856x1392@75Hz",
        1: "1920x1200@60Hz(RB)",
        0: "1920x1200@60Hz",
    },
    {
        7: "1920x1200@75Hz",
        6: "1920x1200@85Hz",
        5: "1920x1440@60Hz",
        4: "1920x1440@75Hz",
    },
]

# Standard timing aspect ratio (bits 7-6 of the second byte)
STANDARD_TIMING_ASPECT = {
    0: "16:10",
    1: "4:3",
    2: "5:4",
    3: "16:9",
}

# Before EDID 1.3 aspect code 0 meant 1:1
STANDARD_TIMING_ASPECT_PRE_13 = {**STANDARD_TIMING_ASPECT, 0: "1:1"}

# (width, height) factors for each aspect symbol
ASPECT_FACTORS = {
    "16:10": (16, 10),
    "4:3": (4, 3),
    "5:4": (5, 4),
    "16:9": (16, 9),
    "1:1": (1, 1),
}


# =============================================================================
# Detailed Timing Descriptor Flags
# =============================================================================

SIGNAL_INTERFACE = {0: "non-interlaced", 1: "interlaced"}

# Stereo mode keyed by the flags byte masked with 0x61 (bits 6, 5 and 0)
STEREO_MODES = {
    0x00: "normal",
    0x01: "normal",
    0x20: "field_seq_right",
    0x21: "2way_right",
    0x40: "field_seq_left",
    0x41: "2way_left",
    0x60: "4way",
    0x61: "side_by_side",
}
STEREO_MASK = 0x61

# Sync type, keyed by the top two bits of the sync nibble (already shifted
# into nibble position, i.e. masked with 0b1100)
SYNC_TYPE = {
    0b0000: "analog_composite",
    0b0100: "bipolar_analog_composite",
    0b1000: "digital_composite",
    0b1100: "digital_separate",
}
SYNC_DIGITAL_COMPOSITE = 0b1000
SYNC_DIGITAL_SEPARATE = 0b1100

POLARITY = {0: "negative", 1: "positive"}
SYNC_ON = {0: "green_only", 1: "rgb"}


# =============================================================================
# Range Limits Descriptor
# =============================================================================

VIDEO_TIMING_SUPPORT = {
    0x00: "Default GTF supported",
    0x01: "Range limits only",
    0x02: "Secondary GTF supported",
    0x04: "CVT supported",
}


# =============================================================================
# CEA-861 Extension
# =============================================================================

CEA_DATA_BLOCK_TAGS = {
    0: "Reserved",
    1: "Audio Data Block",
    2: "Video Data Block",
    3: "Vendor Specific Data Block",
    4: "Speaker Allocation Data Block",
    5: "VESA DTC Data Block",
    6: "Reserved",
    7: "Extended",
}

CEA_EXTENDED_TAGS = {
    0: "Video Capability Data Block",
    1: "Vendor Specific Video Data Block",
    5: "Colorimetry Data Block",
    6: "HDR Static Metadata Data Block",
    17: "Vendor Specific Audio Data Block",
}

CEA_AUDIO_FORMATS = {
    1: "LPCM",
    2: "AC-3",
    3: "MPEG1",
    4: "MP3",
    5: "MPEG2",
    6: "AAC",
    7: "DTS",
    8: "ATRAC",
    9: "DSD",
    10: "E-AC-3",
    11: "DTS-HD",
    12: "MLP",
    13: "DST",
    14: "WMA Pro",
}

CEA_YCBCR = {0: "none", 1: "4:2:2", 2: "4:4:4", 3: "4:2:2 + 4:4:4"}


# =============================================================================
# DisplayID Extension
# =============================================================================

DISPLAYID_BLOCK_TAGS = {
    0x00: "Product Identification Data Block",
    0x01: "Display Parameters Data Block",
    0x02: "Color Characteristics",
    0x03: "Type I Timing - Detailed",
    0x04: "Type II Timing - Detailed",
    0x05: "Type III Timing - Short",
    0x06: "Type IV Timing - DMT ID Code",
    0x07: "VESA Timing Standard",
    0x08: "CEA Timing Standard",
    0x09: "Video Timing Range Limits",
    0x0A: "Product Serial Number",
    0x0B: "General Purpose ASCII String",
    0x0C: "Display Device Data",
    0x0D: "Interface Power Sequencing Data Block",
    0x0E: "Transfer Characteristics Data Block",
    0x0F: "Display Interface Data Block",
    0x10: "Stereo Display Interface Data Block",
    0x11: "Type V Timing - Short",
    0x12: "Tiled Display Topology Data Block",
    0x13: "Type VI Timing - Detailed",
    0x7F: "Vendor Specific Data Block",
}

DISPLAYID_TYPE_I_TAG = 0x03
DISPLAYID_TYPE_I_SIZE = 20

DISPLAYID_ASPECT = {
    0: "1:1",
    1: "5:4",
    2: "4:3",
    3: "15:9",
    4: "16:9",
    5: "16:10",
    6: "64:27",
    7: "256:135",
    8: "undefined",
}

DISPLAYID_STEREO = {0: "no_stereo", 1: "always_stereo", 2: "switchable_stereo"}
DISPLAYID_SCAN = {0: "progressive", 1: "interlaced"}
