"""
EDID Base Record Decoder
========================

Decodes the fixed 128-byte primary record field by field, in wire order:

    header                      bytes 0-19
    basic_display_parameters    bytes 20-24
    chromaticity_coordinates    bytes 25-34
    established_timings         bytes 35-37
    standard_timings            bytes 38-53
    detailed_timings            bytes 54-125 (four descriptor slots)
    extension_count             byte 126
    checksum                    byte 127

Multi-byte integers are little-endian, except the manufacturer ID which is
big-endian.
"""

from math import gcd
import logging

from edidkit.bitstream import Decoder, reassemble
from edidkit.bitstream import mappers as m
from edidkit.edid.checksum import field_checksum
from edidkit.edid.context import EDIDContext
from edidkit.edid.descriptors import decode_descriptor_slot, decode_standard_timings
from edidkit.edid.tables import (
    ASPECT_RATIO_EDGE_CASES,
    BIT_DEPTH,
    DESCRIPTOR_COUNT,
    DISPLAY_TYPE_ANALOG,
    DISPLAY_TYPE_DIGITAL,
    EDID_MAGIC,
    ESTABLISHED_TIMINGS_I,
    ESTABLISHED_TIMINGS_II,
    GAMMA_IN_EXTENSION,
    INPUT_TYPE,
    MANUFACTURER_TIMINGS,
    RECORD_SIZE,
    SYNC_LEVELS,
    VIDEO_INTERFACE,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Manufacturer ID
# =============================================================================

def five_bit_letter(code: int) -> str:
    """Letter for a 5-bit code: 1 is 'A', 26 is 'Z'."""
    return chr(64 + code)


def manufacturer_letters(value: int) -> str:
    """
    Decode the 16-bit big-endian manufacturer ID into its three letters.

    Example:
        >>> manufacturer_letters(0x10AC)
        'DEL'
    """
    return (
        five_bit_letter(value >> 10 & 0x1F)
        + five_bit_letter(value >> 5 & 0x1F)
        + five_bit_letter(value & 0x1F)
    )


manufacturer = m.formula(manufacturer_letters)


# =============================================================================
# Aspect Ratio
# =============================================================================

def aspect_ratio_denominator(width: int, height: int) -> str:
    """Reduce ``width:height`` and apply the conventional spellings."""
    divisor = gcd(width, height)
    reduced = f"{width // divisor}:{height // divisor}"
    return ASPECT_RATIO_EDGE_CASES.get(reduced, reduced)


def aspect_ratio(aspect: float) -> str:
    """
    Render a ratio as ``W:H``.

    Tries denominators 1 to 20 and takes the first whose nearest numerator
    is within 0.01 of ``aspect``. Falls back to the float itself.

    Example:
        >>> aspect_ratio(1.6)
        '16:10'
        >>> aspect_ratio(1.78)
        '16:9'
    """
    for n in range(1, 21):
        numerator = int(aspect * n + 0.5)
        if abs(aspect - numerator / n) < 0.01:
            return aspect_ratio_denominator(numerator, n)
    return f"{aspect:f}"


def screen_aspect_ratio(h_size: int, v_size: int) -> str:
    """
    Aspect ratio from the screen size bytes.

    Both zero means undefined. When only one is set the other byte holds
    an encoded ratio: landscape ``(h + 99) / 100``, portrait
    ``100 / (v + 99)``.
    """
    if h_size == 0 and v_size == 0:
        return "undefined"
    if h_size == 0:
        return aspect_ratio(100 / (v_size + 99))
    if v_size == 0:
        return aspect_ratio((h_size + 99) / 100)
    return aspect_ratio(h_size / v_size)


# =============================================================================
# Sections
# =============================================================================

def decode_header(d: Decoder, ctx: EDIDContext) -> None:
    """Bytes 0-19: magic, vendor/product identification, version."""
    d.field_raw_assert("identifier", EDID_MAGIC)

    d.field_u16_be("manufacturer_id", manufacturer)
    d.field_u16("manufacturer_product_code")
    d.field_u32("serial_number")

    week = d.field_u8("week_of_manufacture")
    # Week 0xFF flags the next byte as a model year
    if week == 0xFF:
        d.field_u8("year_of_model", m.year)
    else:
        d.field_u8("year_of_manufacture", m.year)

    ctx.version = d.field_u8("edid_version")
    ctx.revision = d.field_u8("edid_revision")


def decode_basic_display_parameters(d: Decoder, ctx: EDIDContext) -> None:
    """Bytes 20-24: input definition, screen size, gamma, features."""
    ctx.is_digital = d.field_uint("input_type", 1, m.sym_map(INPUT_TYPE)) == 1
    if ctx.is_digital:
        d.field_uint("bit_depth", 3, m.sym_desc_map(BIT_DEPTH))
        d.field_uint("video_interface", 4, m.sym_map(VIDEO_INTERFACE))
    else:
        d.field_uint("white_sync_levels_relative_to_blank", 2, m.desc_map(SYNC_LEVELS))
        d.field_bool("blank_to_black_setup_expected")
        d.field_bool("separate_sync_supported")
        d.field_bool("composite_sync_on_hsync_supported")
        d.field_bool("sync_on_green_supported")
        d.field_bool("serration_on_vsync_supported")

    h_size = d.field_u8("horizontal_screen_size", m.unit("cm"))
    v_size = d.field_u8("vertical_screen_size", m.unit("cm"))
    d.field_value("aspect_ratio", screen_aspect_ratio(h_size, v_size))

    if d.peek_uint(8) == GAMMA_IN_EXTENSION:
        d.field_u8("gamma", m.description("defined in extension"))
    else:
        d.field_u8("gamma", m.gamma)

    d.field_bool("dpms_standby_supported")
    d.field_bool("dpms_suspend_supported")
    d.field_bool("dpms_active_off_supported")
    if ctx.is_digital:
        d.field_uint("display_type", 2, m.desc_map(DISPLAY_TYPE_DIGITAL))
    else:
        d.field_uint("display_type", 2, m.desc_map(DISPLAY_TYPE_ANALOG))
    d.field_bool("standard_srgb_color_space")
    if ctx.revision in (3, 4):
        d.field_bool("preferred_timing_block_includes_npf_rr")
    else:
        d.field_bool("preferred_timing_mode_in_block_1")
    ctx.continuous_frequency = d.field_bool("continuous_frequency_supported")


CHROMATICITY_NAMES = (
    "red_x", "red_y", "green_x", "green_y",
    "blue_x", "blue_y", "white_x", "white_y",
)


def decode_chromaticity_coordinates(d: Decoder) -> None:
    """
    Bytes 25-34: eight 10-bit CIE coordinates.

    Bytes 25-26 hold the low 2 bits of every coordinate, bytes 27-34 the
    high 8 bits. Each coordinate is ``raw / 1024``.
    """
    start = d.pos
    lows = [d.read_uint(2) for _ in CHROMATICITY_NAMES]
    highs = [d.read_uint(8) for _ in CHROMATICITY_NAMES]
    length = d.pos - start

    for name, low, high in zip(CHROMATICITY_NAMES, lows, highs):
        raw = reassemble(low, high, 2)
        d.emit_field(name, raw / 1024, start, length)


def decode_established_timings(d: Decoder) -> None:
    """Bytes 35-37: one field per supported legacy mode."""
    for table in (ESTABLISHED_TIMINGS_I, ESTABLISHED_TIMINGS_II, MANUFACTURER_TIMINGS):
        start = d.pos
        flags = d.read_uint(8)
        d.field_flags("timing", flags, start, table)


# =============================================================================
# Base Record
# =============================================================================

def decode_base_record(d: Decoder, ctx: EDIDContext) -> int:
    """
    Decode the 128-byte base record at the cursor.

    Args:
        d: The decoder, positioned at byte 0 of the record
        ctx: Decode context, updated with version and input type

    Returns:
        The declared extension count

    Raises:
        AssertionMismatch: If the header magic is wrong
        OutOfBoundsError: If fewer than 128 bytes are available
    """
    record_start = d.pos // 8

    with d.framed(RECORD_SIZE * 8):
        with d.framed(20 * 8), d.field_struct("header"):
            decode_header(d, ctx)

        with d.framed(5 * 8), d.field_struct("basic_display_parameters"):
            decode_basic_display_parameters(d, ctx)

        with d.framed(10 * 8), d.field_struct("chromaticity_coordinates"):
            decode_chromaticity_coordinates(d)

        with d.framed(3 * 8), d.field_array("established_timings"):
            decode_established_timings(d)

        with d.framed(16 * 8), d.field_array("standard_timings"):
            decode_standard_timings(d, ctx, 8)

        with d.field_struct("detailed_timings"):
            for block_no in range(1, DESCRIPTOR_COUNT + 1):
                timing_name = (
                    "preferred_timing_mode" if block_no == 1 else "detailed_timing_descriptor"
                )
                decode_descriptor_slot(d, ctx, timing_name, f"display_descriptor_{block_no}")

        extension_count = d.field_u8("extension_count")
        field_checksum(d, record_start)

    logger.debug(
        f"Decoded base record: EDID {ctx.version}.{ctx.revision}, "
        f"{extension_count} extension(s)"
    )
    return extension_count
