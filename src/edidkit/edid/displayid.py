"""
DisplayID Extension Decoder
===========================

Extension tag 0x70. The record wraps a DisplayID section:

    Byte  0         Tag (0x70)
    Byte  1         7-4 version | 3-0 revision
    Byte  2         Bytes of data in the section payload (N)
    Byte  3         Product type identifier
    Byte  4         Extension count
    Byte  5..5+N-1  Data blocks
    Byte  5+N       Section checksum (bytes 1 to 5+N sum to zero)
    ...   126       Padding
    Byte  127       Record checksum

Data blocks are ``tag, revision, payload length, payload``. A block with
tag 0 is only meaningful as the first block; anywhere else it marks the
start of padding.

Type I Detailed Timing (20 bytes)
---------------------------------
    Byte  0-2    Pixel clock - 1, 10 kHz units, little-endian
    Byte  3      7 preferred | 6-5 stereo | 4 interlaced | 3-0 aspect ratio
    Byte  4-5    Horizontal active - 1
    Byte  6-7    Horizontal blank - 1
    Byte  8-9    15 hsync polarity | 14-0 horizontal front porch - 1
    Byte 10-11   Horizontal sync width - 1
    Byte 12-19   The same four values for the vertical axis
"""

import logging

from edidkit.bitstream import Decoder
from edidkit.bitstream import mappers as m
from edidkit.edid.checksum import expected_checksum, field_checksum
from edidkit.edid.context import EDIDContext
from edidkit.edid.tables import (
    DISPLAYID_ASPECT,
    DISPLAYID_BLOCK_TAGS,
    DISPLAYID_SCAN,
    DISPLAYID_STEREO,
    DISPLAYID_TYPE_I_SIZE,
    DISPLAYID_TYPE_I_TAG,
    ExtensionTag,
    POLARITY,
    RECORD_SIZE,
)

logger = logging.getLogger(__name__)

SECTION_SIZE = RECORD_SIZE - 2
SECTION_HEADER_SIZE = 4
# Payload limit: the section minus its header and its own checksum
MAX_SECTION_PAYLOAD = SECTION_SIZE - SECTION_HEADER_SIZE - 1
BLOCK_HEADER_SIZE = 3

PRODUCT_TYPES = {
    0: "extension section",
    1: "test structure",
    2: "display panel",
    3: "standalone display device",
    4: "television receiver",
    5: "repeater/translator",
    6: "direct drive monitor",
}


def decode_displayid(d: Decoder, ctx: EDIDContext) -> None:
    """Decode one framed 128-byte DisplayID extension record at the cursor."""
    record_start = d.pos // 8

    d.field_u8("tag", m.hex_display)
    d.validate_uint(d.current["tag"], ExtensionTag.DISPLAYID)

    with d.framed(SECTION_SIZE * 8), d.field_struct("data"):
        decode_section(d)

    field_checksum(d, record_start)


def decode_section(d: Decoder) -> None:
    """Decode the DisplayID section (framed to 126 bytes) at the cursor."""
    section_start = d.pos // 8

    d.field_uint("version", 4)
    d.field_uint("revision", 4)
    bytes_of_data = d.field_u8("bytes_of_data")
    product_type = d.field_u8("product_type", m.sym_map(PRODUCT_TYPES))
    extension_count = d.field_u8("extension_count")

    payload = bytes_of_data
    if bytes_of_data > MAX_SECTION_PAYLOAD:
        d.fail(d.current["bytes_of_data"], f"<= {MAX_SECTION_PAYLOAD}", bytes_of_data,
               "section payload does not fit the record")
        payload = MAX_SECTION_PAYLOAD

    if product_type == 0 and extension_count == 0:
        d.field_value("is_an_extension", True)

    if payload:
        with d.framed(payload * 8), d.field_array("data_blocks"):
            decode_data_blocks(d)

    # Bytes 1 to 5+N inclusive, checksum included, sum to zero
    covered = d.bytes_range(section_start, SECTION_HEADER_SIZE + payload)
    first_bit = d.pos
    field = d.emit_field("section_checksum", d.read_uint(8), first_bit, 8, m.hex_display)
    d.validate_uint(field, expected_checksum(covered))

    if d.bits_left:
        d.field_raw("padding", d.bits_left)


def decode_data_blocks(d: Decoder) -> None:
    """Walk the data blocks of a section payload (framed)."""
    data_start = d.pos
    while d.bits_left >= BLOCK_HEADER_SIZE * 8:
        tag = d.peek_uint(8)
        if tag == 0 and d.pos != data_start:
            break
        with d.field_struct("data_block"):
            decode_data_block(d, tag)

    if d.bits_left:
        d.field_raw("padding", d.bits_left)


def decode_data_block(d: Decoder, tag: int) -> None:
    d.field_u8("tag", m.desc_map(DISPLAYID_BLOCK_TAGS), m.hex_display)
    d.field_uint("block_header", 5)
    d.field_uint("revision", 3)
    size = d.field_u8("payload_bytes")

    available = d.bits_left // 8
    if size > available:
        d.fail(d.current["payload_bytes"], f"<= {available}", size,
               "data block overruns the section payload")
        size = available

    if not size:
        return

    with d.framed(size * 8):
        if tag == DISPLAYID_TYPE_I_TAG:
            with d.field_array("timings"):
                for _ in range(size // DISPLAYID_TYPE_I_SIZE):
                    with d.field_struct("timing"):
                        decode_type_i_timing(d)
            if d.bits_left:
                d.field_raw("padding", d.bits_left)
        else:
            logger.debug(f"DisplayID block 0x{tag:02X} kept as raw payload")
            d.field_raw("payload", d.bits_left)


def decode_type_i_timing(d: Decoder) -> None:
    """Decode one 20-byte type I detailed timing at the cursor."""
    d.field_uint("pixel_clock", 24, m.actual_add(1), m.pixel_clock, m.unit("MHz"))

    d.field_bool("preferred")
    d.field_uint("stereo", 2, m.sym_map(DISPLAYID_STEREO))
    d.field_uint("scan_type", 1, m.sym_map(DISPLAYID_SCAN))
    d.field_uint("aspect_ratio", 4, m.sym_map(DISPLAYID_ASPECT))

    for axis, unit in (("horizontal", "pixels"), ("vertical", "lines")):
        d.field_u16(f"{axis}_active", m.actual_add(1), m.unit(unit))
        d.field_u16(f"{axis}_blank", m.actual_add(1), m.unit(unit))
        _decode_porch(d, axis, unit)
        d.field_u16(f"{axis}_sync_width", m.actual_add(1), m.unit(unit))


def _decode_porch(d: Decoder, axis: str, unit: str) -> None:
    """Front porch (15 bits) sharing a little-endian word with the sync polarity."""
    start = d.pos
    word = d.read_uint(16)
    d.emit_field(f"{axis}_front_porch", word & 0x7FFF, start, 16,
                 m.actual_add(1), m.unit(unit))
    d.emit_field(f"{axis}_sync_polarity", word >> 15, start + 8, 1, m.sym_map(POLARITY))
