"""
CEA-861 Extension Decoder
=========================

Extension tag 0x02, used by practically every TV and HDMI monitor.

Record Layout
-------------
    Byte  0      Tag (0x02)
    Byte  1      Revision
    Byte  2      Offset ``d`` of the first detailed timing descriptor
    Byte  3      Revision 2+: 7 underscan | 6 basic audio | 5 YCbCr 4:4:4 |
                 4 YCbCr 4:2:2 | 3-0 number of native DTDs
    Byte  4..d-1 Data block collection (revision 3+), otherwise reserved
    Byte  d..    Up to two 18-byte descriptor slots, as many as fit
    ...   126    Padding
    Byte  127    Checksum

An offset of 0 means the record carries neither DTDs nor data blocks.

Data Blocks
-----------
Each block starts with a header byte, ``tag << 5 | length``, followed by
``length`` payload bytes. Tag 7 is "extended": the first payload byte is a
second-level tag.
"""

import logging

from edidkit.bitstream import Decoder
from edidkit.bitstream import mappers as m
from edidkit.edid.checksum import field_checksum
from edidkit.edid.context import EDIDContext
from edidkit.edid.descriptors import decode_descriptor_slot
from edidkit.edid.tables import (
    CEA_AUDIO_FORMATS,
    CEA_DATA_BLOCK_TAGS,
    CEA_EXTENDED_TAGS,
    DESCRIPTOR_SIZE,
    ExtensionTag,
    RECORD_SIZE,
)

logger = logging.getLogger(__name__)

# First byte after the four header bytes
DATA_BLOCKS_START = 4
# Largest offset: the data block collection may run up to the checksum byte
MAX_DTD_OFFSET = RECORD_SIZE - 1

DTD_SLOTS = (
    ("third_timing_descriptor", "display_descriptor_3"),
    ("fourth_timing_descriptor", "display_descriptor_4"),
)

AUDIO_BLOCK = 1
VIDEO_BLOCK = 2
VENDOR_BLOCK = 3
SPEAKER_BLOCK = 4
EXTENDED_BLOCK = 7

HDMI_OUI = 0x000C03

SAMPLE_RATES = {
    6: "192kHz",
    5: "176.4kHz",
    4: "96kHz",
    3: "88.2kHz",
    2: "48kHz",
    1: "44.1kHz",
    0: "32kHz",
}

SPEAKER_ALLOCATION = {
    7: "FLW/FRW",
    6: "RLC/RRC",
    5: "FLC/FRC",
    4: "RC",
    3: "RL/RR",
    2: "FC",
    1: "LFE",
    0: "FL/FR",
}


def decode_cea861(d: Decoder, ctx: EDIDContext) -> None:
    """Decode one framed 128-byte CEA-861 extension record at the cursor."""
    record_start = d.pos // 8

    d.field_u8("tag", m.hex_display)
    d.validate_uint(d.current["tag"], ExtensionTag.CEA861)

    revision = d.field_u8("revision")
    offset = d.field_u8("offset")

    if revision >= 2:
        with d.field_struct("format_support"):
            d.field_bool("underscan")
            d.field_bool("basic_audio")
            d.field_bool("ycbcr_444")
            d.field_bool("ycbcr_422")
            d.field_uint("native_dtd_count", 4)
    else:
        d.field_u8("reserved")

    if offset == 0:
        d.field_raw("data", (RECORD_SIZE - 1 - DATA_BLOCKS_START) * 8)
    elif DATA_BLOCKS_START <= offset <= MAX_DTD_OFFSET:
        region_bits = (offset - DATA_BLOCKS_START) * 8
        if region_bits and revision >= 3:
            with d.framed(region_bits), d.field_array("data_block_collection"):
                decode_data_blocks(d)
        elif region_bits:
            d.field_raw("padding", region_bits)

        slots = min(2, (RECORD_SIZE - 1 - offset) // DESCRIPTOR_SIZE)
        if slots < 2:
            logger.debug(f"Data blocks run to byte {offset}, room for {slots} DTD slot(s)")
        for timing_name, display_name in DTD_SLOTS[:slots]:
            decode_descriptor_slot(d, ctx, timing_name, display_name)

        trailing = RECORD_SIZE - 1 - (offset + slots * DESCRIPTOR_SIZE)
        if trailing:
            d.field_raw("data", trailing * 8)
    else:
        offset_field = d.current["offset"]
        d.fail(offset_field, f"0 or {DATA_BLOCKS_START}-{MAX_DTD_OFFSET}", offset,
               f"DTD offset {offset} does not fit the record")
        d.field_raw("data", d.bits_left - 8)

    field_checksum(d, record_start)
    logger.debug(f"Decoded CEA-861 revision {revision} extension at byte {record_start}")


def decode_data_blocks(d: Decoder) -> None:
    """Walk the data block collection (framed) into the current array."""
    while d.bits_left >= 8:
        length = d.peek_uint(8) & 0x1F
        if (1 + length) * 8 > d.bits_left:
            start = d.pos
            header = d.read_uint(8)
            field = d.emit_field("truncated_block", header, start, 8, m.hex_display)
            d.fail(field, f"{length} payload bytes", d.bits_left // 8,
                   "data block overruns the data block collection")
            d.field_raw("data", d.bits_left)
            return
        with d.field_struct("data_block"):
            tag = d.field_uint("tag", 3, m.desc_map(CEA_DATA_BLOCK_TAGS))
            d.field_uint("length", 5)
            with d.framed(length * 8):
                decode_data_block(d, tag, length)


def decode_data_block(d: Decoder, tag: int, length: int) -> None:
    """Decode one data block payload (framed to ``length`` bytes)."""
    if length == 0:
        return

    if tag == AUDIO_BLOCK:
        with d.field_array("short_audio_descriptors"):
            for _ in range(length // 3):
                with d.field_struct("sad"):
                    decode_short_audio_descriptor(d)
    elif tag == VIDEO_BLOCK:
        with d.field_array("short_video_descriptors"):
            for _ in range(length):
                with d.field_struct("svd"):
                    d.field_bool("native")
                    d.field_uint("vic", 7)
    elif tag == VENDOR_BLOCK and length >= 3:
        oui = d.field_uint("ieee_oui", 24, m.hex_display)
        if oui == HDMI_OUI and length >= 5:
            start = d.pos
            address = d.read_uint(16, "big")
            d.emit_field("physical_address", address, start, 16,
                         m.formula(_physical_address))
    elif tag == SPEAKER_BLOCK:
        start = d.pos
        flags = d.read_uint(8)
        d.field_flags("speaker", flags, start, SPEAKER_ALLOCATION)
    elif tag == EXTENDED_BLOCK:
        d.field_u8("extended_tag", m.desc_map(CEA_EXTENDED_TAGS))

    if d.bits_left:
        d.field_raw("payload", d.bits_left)


def decode_short_audio_descriptor(d: Decoder) -> None:
    """Three bytes: format and channels, sample rates, format specific."""
    d.field_uint("reserved", 1)
    d.field_uint("format", 4, m.sym_map(CEA_AUDIO_FORMATS))
    d.field_uint("max_channels", 3, m.add(1))
    d.field_uint("reserved_rate", 1)
    start = d.pos
    rates = d.read_uint(7)
    d.field_flags("sample_rate", rates, start, SAMPLE_RATES, width=7)
    d.field_u8("format_specific")


def _physical_address(address: int) -> str:
    return ".".join(str(address >> shift & 0xF) for shift in (12, 8, 4, 0))
