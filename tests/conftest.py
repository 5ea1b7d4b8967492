"""
edidkit Test Configuration
==========================

Sample EDID buffers built byte by byte, with correct checksums, so every
test can state exactly which bytes it is exercising.

The base record describes a 24" 16:10-class DisplayPort monitor:

    Manufacturer   DEL (0x10AC), product 0xA0C4, serial 0x12345678
    Manufactured   week 12, 2015, EDID 1.4
    Input          digital, 8 bits per colour, DisplayPort
    Screen         64 x 36 cm
    Preferred      1920x1080@60Hz, 148.5 MHz
    Descriptors    range limits, name "DELL U2415", serial "7MT0167B0VVL"

Extensions
----------
- CEA-861 revision 3: video/audio/HDMI/speaker/extended data blocks and
  one 1280x720@60Hz DTD
- DisplayID 1.2: one type I timing, 3840x2160 at 533.25 MHz
"""

import pytest

from edidkit.edid.checksum import with_checksum


# =============================================================================
# Building Blocks
# =============================================================================

HEADER = bytes([0x00, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0x00])

# 1920x1080@60Hz, 148.5 MHz, digital separate sync, +h +v
DTD_1080P = bytes([
    0x02, 0x3A, 0x80, 0x18, 0x71, 0x38, 0x2D, 0x40, 0x58,
    0x2C, 0x45, 0x00, 0x13, 0x2A, 0x21, 0x00, 0x00, 0x1E,
])

# 1280x720@60Hz, 74.25 MHz
DTD_720P = bytes([
    0x01, 0x1D, 0x00, 0x72, 0x51, 0xD0, 0x1E, 0x20, 0x6E,
    0x28, 0x55, 0x00, 0x13, 0x2A, 0x21, 0x00, 0x00, 0x1E,
])

RANGE_LIMITS = bytes([
    0x00, 0x00, 0x00, 0xFD, 0x00,
    0x38, 0x4C, 0x1E, 0x53, 0x11, 0x00,
    0x0A, 0x20, 0x20, 0x20, 0x20, 0x20, 0x20,
])


def display_string(tag: int, text: str) -> bytes:
    """An 18-byte string descriptor: text, newline, space padding."""
    payload = text.encode("ascii")
    if len(payload) < 13:
        payload += b"\x0a"
    payload = payload.ljust(13, b"\x20")
    return bytes([0x00, 0x00, 0x00, tag, 0x00]) + payload


def build_base_record(
    extension_count: int = 0,
    descriptors: tuple = None,
    basic: bytes = bytes([0xA5, 0x40, 0x24, 0x78, 0x2E]),
    standard_timings: bytes = None,
    version: tuple = (1, 4),
    fix_checksum: bool = True,
) -> bytes:
    """Assemble a 128-byte base record (with a wrong checksum unless ``fix_checksum``)."""
    if descriptors is None:
        descriptors = (
            DTD_1080P,
            RANGE_LIMITS,
            display_string(0xFC, "DELL U2415"),
            display_string(0xFF, "7MT0167B0VVL"),
        )
    if standard_timings is None:
        standard_timings = bytes([0xD1, 0xC0, 0x81, 0x80, 0x81, 0x00]) + bytes([0x01, 0x01] * 5)

    record = bytearray()
    record += HEADER
    record += bytes([0x10, 0xAC])                   # DEL, big-endian
    record += bytes([0xC4, 0xA0])                   # product code 0xA0C4
    record += bytes([0x78, 0x56, 0x34, 0x12])       # serial 0x12345678
    record += bytes([12, 2015 - 1990])              # week, year
    record += bytes(version)
    record += basic
    record += bytes([0xEE, 0x91, 0xA3, 0x54, 0x4C, 0x99, 0x26, 0x0F, 0x50, 0x54])
    record += bytes([0x21, 0x08, 0x00])             # 800x600@60, 640x480@60, 1024x768@60
    record += standard_timings
    for descriptor in descriptors:
        record += descriptor
    record += bytes([extension_count, 0x00])
    assert len(record) == 128

    record = with_checksum(bytes(record))
    if fix_checksum:
        return record
    return corrupt(record, 127, record[127] ^ 0xFF)


def build_cea_extension(revision: int = 3, blocks: bytes = None, dtds: tuple = None) -> bytes:
    """Assemble a 128-byte CEA-861 extension record."""
    if blocks is None:
        blocks = bytes([
            0x43, 0x90, 0x04, 0x03,                 # video: VIC 16 (native), 4, 3
            0x23, 0x09, 0x07, 0x07,                 # audio: LPCM 2ch, 32/44.1/48 kHz
            0x65, 0x03, 0x0C, 0x00, 0x10, 0x00,     # vendor: HDMI, address 1.0.0.0
            0x83, 0x01, 0x00, 0x00,                 # speakers: FL/FR
            0xE2, 0x00, 0x0F,                       # extended: video capability
        ])
    if dtds is None:
        dtds = (DTD_720P, bytes(18))

    record = bytearray([0x02, revision, 4 + len(blocks), 0xF1])
    record += blocks
    for dtd in dtds:
        record += dtd
    record = record.ljust(127, b"\x00")
    return with_checksum(bytes(record))


def type_i_timing() -> bytes:
    """3840x2160, 533.25 MHz, preferred, 16:9, +hsync -vsync."""
    return bytes([
        0x4C, 0xD0, 0x00,       # pixel clock - 1 = 53324
        0x84,                   # preferred, progressive, aspect 16:9
        0xFF, 0x0E, 0x9F, 0x00, # h active 3840, h blank 160
        0x2F, 0x80, 0x1F, 0x00, # h front porch 48 (+), h sync 32
        0x6F, 0x08, 0x3D, 0x00, # v active 2160, v blank 62
        0x02, 0x00, 0x04, 0x00, # v front porch 3 (-), v sync 5
    ])


def build_displayid_extension(blocks: bytes = None, bytes_of_data: int = None) -> bytes:
    """Assemble a 128-byte DisplayID extension record."""
    if blocks is None:
        blocks = bytes([0x03, 0x00, 20]) + type_i_timing()
    if bytes_of_data is None:
        bytes_of_data = len(blocks)

    section = bytearray([0x12, bytes_of_data, 0x00, 0x00]) + blocks
    section.append((0 - sum(section)) & 0xFF)

    record = bytearray([0x70]) + section
    record = record.ljust(127, b"\x00")
    return with_checksum(bytes(record))


def corrupt(data: bytes, offset: int, value: int) -> bytes:
    """Copy of ``data`` with one byte replaced."""
    result = bytearray(data)
    result[offset] = value
    return bytes(result)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def base_record() -> bytes:
    """A valid 128-byte base record with no extensions."""
    return build_base_record()


@pytest.fixture
def cea_extension() -> bytes:
    return build_cea_extension()


@pytest.fixture
def displayid_extension() -> bytes:
    return build_displayid_extension()


@pytest.fixture
def edid_with_extensions(cea_extension: bytes, displayid_extension: bytes) -> bytes:
    """Base record declaring two extensions, followed by CEA-861 and DisplayID."""
    return build_base_record(extension_count=2) + cea_extension + displayid_extension


@pytest.fixture
def make_base_record():
    """Factory fixture for base records with overrides."""
    return build_base_record


@pytest.fixture
def make_cea_extension():
    return build_cea_extension


@pytest.fixture
def make_displayid_extension():
    return build_displayid_extension
