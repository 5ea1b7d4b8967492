"""
Descriptor and Timing Decoders
==============================

The base record holds four 18-byte descriptor slots, and the CEA-861
extension embeds more. Each slot is one of two variants, chosen by peeking
its first 16 bits:

- **Detailed timing descriptor** (first two bytes non-zero): a full video
  mode with pixel clock, active/blanking sizes, porches, sync widths,
  image size and a packed flags byte.
- **Display descriptor** (first two bytes zero): three zero bytes, a tag
  byte and a tag-specific 13-byte payload (strings, range limits, colour
  points, extra timings, ...).

Detailed Timing Layout
----------------------
    Byte  0-1   Pixel clock, 10 kHz units, little-endian
    Byte  2     Horizontal active, low 8 bits
    Byte  3     Horizontal blanking, low 8 bits
    Byte  4     7-4 horizontal active high 4 | 3-0 horizontal blanking high 4
    Byte  5     Vertical active, low 8 bits
    Byte  6     Vertical blanking, low 8 bits
    Byte  7     7-4 vertical active high 4 | 3-0 vertical blanking high 4
    Byte  8     Horizontal front porch, low 8 bits
    Byte  9     Horizontal sync pulse width, low 8 bits
    Byte 10     7-4 vertical front porch low 4 | 3-0 vertical sync width low 4
    Byte 11     7-6 hfp high 2 | 5-4 hsw high 2 | 3-2 vfp high 2 | 1-0 vsw high 2
    Byte 12     Horizontal image size (mm), low 8 bits
    Byte 13     Vertical image size (mm), low 8 bits
    Byte 14     7-4 horizontal image size high 4 | 3-0 vertical high 4
    Byte 15     Horizontal border
    Byte 16     Vertical border
    Byte 17     7 interlace | 6-5 stereo | 4-1 sync | 0 stereo

Back porches are not stored; they are derived as
``blanking - front porch - sync width``.

Standard Timings
----------------
Two bytes per entry, shared by the base record and the 0xFA descriptor:
    Byte 0      (horizontal pixels / 8) - 31
    Byte 1      7-6 aspect ratio | 5-0 refresh rate - 60
``01 01`` marks an unused slot.
"""

import logging

from edidkit.bitstream import Decoder, SplitValue, reassemble
from edidkit.bitstream import mappers as m
from edidkit.edid.context import EDIDContext
from edidkit.edid.tables import (
    ASPECT_FACTORS,
    DESCRIPTOR_SIZE,
    DESCRIPTOR_TAG_DESCRIPTIONS,
    DescriptorTag,
    ESTABLISHED_TIMINGS_III,
    POLARITY,
    RANGE_LIMITS_PADDING,
    SIGNAL_INTERFACE,
    STANDARD_TIMING_ASPECT,
    STANDARD_TIMING_ASPECT_PRE_13,
    STEREO_MASK,
    STEREO_MODES,
    SYNC_DIGITAL_COMPOSITE,
    SYNC_DIGITAL_SEPARATE,
    SYNC_ON,
    SYNC_TYPE,
    UNUSED_STANDARD_TIMING,
    VIDEO_TIMING_SUPPORT,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Mappers
# =============================================================================

horizontal_addressable_pixels = m.formula(lambda actual: (actual + 31) * 8)
refresh_rate = m.add(60)
stereo_mode = m.formula(lambda actual: STEREO_MODES[actual & STEREO_MASK])


# =============================================================================
# Slot Dispatch
# =============================================================================

def decode_descriptor_slot(
    d: Decoder,
    ctx: EDIDContext,
    timing_name: str,
    display_name: str,
) -> bool:
    """
    Decode one 18-byte descriptor slot at the cursor.

    Args:
        d: The decoder, positioned at the start of the slot
        ctx: Decode context
        timing_name: Tree name used when the slot holds a detailed timing
        display_name: Tree name used when the slot holds a display descriptor

    Returns:
        True if the slot held a display descriptor, False for a detailed
        timing descriptor
    """
    is_display = d.peek_uint(16) == 0
    with d.field_struct(display_name if is_display else timing_name):
        with d.framed(DESCRIPTOR_SIZE * 8):
            if is_display:
                decode_display_descriptor(d, ctx)
            else:
                decode_detailed_timing(d)
    return is_display


# =============================================================================
# Detailed Timing Descriptor
# =============================================================================

def decode_detailed_timing(d: Decoder) -> None:
    """Decode an 18-byte detailed timing descriptor at the cursor."""
    d.field_u16("pixel_clock", m.pixel_clock, m.unit("MHz"))

    # Bytes 2-4: horizontal active / blanking, low 8 + high 4
    h_start = d.pos
    h_active_low = d.read_uint(8)
    h_blank_low = d.read_uint(8)
    h_active_high = d.read_uint(4)
    h_blank_high = d.read_uint(4)
    h_active = SplitValue.join(h_active_low, h_active_high, 8, h_start, d.pos)
    h_blank = SplitValue.join(h_blank_low, h_blank_high, 8, h_start, d.pos)
    _emit_split(d, "horizontal_addressable_video", h_active, "pixels")
    _emit_split(d, "horizontal_blanking", h_blank, "pixels")

    # Bytes 5-7: vertical active / blanking, low 8 + high 4
    v_start = d.pos
    v_active_low = d.read_uint(8)
    v_blank_low = d.read_uint(8)
    v_active_high = d.read_uint(4)
    v_blank_high = d.read_uint(4)
    v_active = SplitValue.join(v_active_low, v_active_high, 8, v_start, d.pos)
    v_blank = SplitValue.join(v_blank_low, v_blank_high, 8, v_start, d.pos)
    _emit_split(d, "vertical_addressable_video", v_active, "lines")
    _emit_split(d, "vertical_blanking", v_blank, "lines")

    # Bytes 8-11: porches and sync widths
    p_start = d.pos
    hfp_low = d.read_uint(8)
    hsw_low = d.read_uint(8)
    vfp_low = d.read_uint(4)
    vsw_low = d.read_uint(4)
    hfp_high = d.read_uint(2)
    hsw_high = d.read_uint(2)
    vfp_high = d.read_uint(2)
    vsw_high = d.read_uint(2)
    p_end = d.pos

    hfp = SplitValue.join(hfp_low, hfp_high, 8, p_start, p_end)
    hsw = SplitValue.join(hsw_low, hsw_high, 8, p_start, p_end)
    vfp = SplitValue.join(vfp_low, vfp_high, 4, p_start, p_end)
    vsw = SplitValue.join(vsw_low, vsw_high, 4, p_start, p_end)

    _emit_split(d, "horizontal_front_porch", hfp, "pixels")
    _emit_split(d, "horizontal_sync_pulse_width", hsw, "pixels")
    _emit_back_porch(d, "horizontal_back_porch", h_blank, hfp, hsw, "pixels")
    _emit_split(d, "vertical_front_porch", vfp, "lines")
    _emit_split(d, "vertical_sync_pulse_width", vsw, "lines")
    _emit_back_porch(d, "vertical_back_porch", v_blank, vfp, vsw, "lines")

    # Bytes 12-14: image size in millimetres, low 8 + high 4
    i_start = d.pos
    h_size_low = d.read_uint(8)
    v_size_low = d.read_uint(8)
    h_size_high = d.read_uint(4)
    v_size_high = d.read_uint(4)
    _emit_split(d, "horizontal_addressable_video_image_size",
                SplitValue.join(h_size_low, h_size_high, 8, i_start, d.pos), "mm")
    _emit_split(d, "vertical_addressable_video_image_size",
                SplitValue.join(v_size_low, v_size_high, 8, i_start, d.pos), "mm")

    d.field_u8("horizontal_border", m.unit("pixels"))
    d.field_u8("vertical_border", m.unit("lines"))

    decode_timing_flags(d)


def decode_timing_flags(d: Decoder) -> None:
    """
    Decode byte 17 of a detailed timing descriptor.

    The stereo mode spans bits 6-5 and bit 0, with the sync nibble (bits
    4-1) sitting between them, so the nibble is read by seeking back into
    the byte after the stereo bits.
    """
    d.field_uint("signal_interface_type", 1, m.sym_map(SIGNAL_INTERFACE))
    d.field_uint("stereo_viewing_support", 7, stereo_mode)

    d.seek_relative(-5)
    s_start = d.pos
    sync = d.read_uint(4)
    s_len = d.pos - s_start
    d.seek_relative(1)

    sync_type = sync & 0b1100
    d.emit_field("sync_signal", sync_type, s_start, s_len, m.sym_map(SYNC_TYPE))

    third = sync >> 1 & 1
    fourth = sync & 1
    if sync_type == SYNC_DIGITAL_SEPARATE:
        d.emit_field("vsync_polarity", third, s_start, s_len, m.sym_map(POLARITY))
    else:
        d.emit_field("with_serrations", third, s_start, s_len, m.bool_map())

    if sync_type in (SYNC_DIGITAL_SEPARATE, SYNC_DIGITAL_COMPOSITE):
        d.emit_field("hsync_polarity", fourth, s_start, s_len, m.sym_map(POLARITY))
    else:
        d.emit_field("sync_on", fourth, s_start, s_len, m.sym_map(SYNC_ON))


def _emit_split(d: Decoder, name: str, split: SplitValue, unit: str) -> None:
    d.emit_field(name, split.raw, split.first_bit, split.n_bits, m.unit(unit))


def _emit_back_porch(
    d: Decoder,
    name: str,
    blank: SplitValue,
    front: SplitValue,
    sync: SplitValue,
    unit: str,
) -> None:
    value = blank.raw - front.raw - sync.raw
    field = d.emit_field(name, value, front.first_bit, front.n_bits, m.unit(unit))
    if value < 0:
        d.fail(field, ">= 0", value, f"front porch + sync width exceed blanking ({blank.raw})")


# =============================================================================
# Standard Timings
# =============================================================================

def decode_standard_timings(d: Decoder, ctx: EDIDContext, count: int) -> int:
    """
    Decode ``count`` two-byte standard timing slots into the current array.

    Unused slots (``01 01``) are skipped without emitting anything.

    Returns:
        Number of timings emitted
    """
    emitted = 0
    for _ in range(count):
        slot = d.peek_uint(16, "big")
        if (slot >> 8, slot & 0xFF) == UNUSED_STANDARD_TIMING:
            d.seek_relative(16)
            continue
        with d.field_struct("timing"):
            decode_standard_timing(d, ctx)
        emitted += 1
    return emitted


def decode_standard_timing(d: Decoder, ctx: EDIDContext) -> None:
    """Decode a single standard timing entry at the cursor."""
    aspects = STANDARD_TIMING_ASPECT_PRE_13 if ctx.before_1_3 else STANDARD_TIMING_ASPECT

    pixels = d.field_u8("horizontal_addressable_pixels", horizontal_addressable_pixels,
                        m.unit("pixels"))
    aspect = d.field_uint("aspect_ratio", 2, m.sym_map(aspects))
    d.field_uint("refresh_rate", 6, refresh_rate, m.unit("Hz"))

    width = (pixels + 31) * 8
    ratio_w, ratio_h = ASPECT_FACTORS[aspects[aspect]]
    d.field_value("vertical_addressable_pixels", width * ratio_h // ratio_w, m.unit("lines"))


# =============================================================================
# Display Descriptors
# =============================================================================

def decode_display_descriptor(d: Decoder, ctx: EDIDContext) -> None:
    """Decode an 18-byte display descriptor (framed) at the cursor."""
    d.field_raw("identifier", 3 * 8, expect=bytes(3))
    tag = d.field_u8("tag", m.desc_map(DESCRIPTOR_TAG_DESCRIPTIONS), m.hex_display)
    flags = d.field_u8("reserved")

    if tag in (DescriptorTag.SERIAL_NUMBER, DescriptorTag.ASCII_STRING,
               DescriptorTag.PRODUCT_NAME):
        d.field_str("value", 13, m.trim(ctx.config.trim_strings))
    elif tag == DescriptorTag.RANGE_LIMITS:
        with d.field_struct("data"):
            decode_range_limits(d, flags)
    elif tag == DescriptorTag.COLOR_POINT:
        decode_color_point(d)
    elif tag == DescriptorTag.STANDARD_TIMINGS:
        with d.field_array("standard_timings"):
            decode_standard_timings(d, ctx, 6)
        d.field_raw("padding", 8, expect=b"\x0a")
    elif tag == DescriptorTag.ESTABLISHED_TIMINGS_III:
        decode_established_timings_iii(d)
    elif tag == DescriptorTag.CVT_CODES:
        decode_cvt_codes(d)
    elif tag == DescriptorTag.DCM:
        d.field_raw("dcm_data", d.bits_left)
    elif tag == DescriptorTag.DUMMY:
        d.field_raw("dummy", d.bits_left)
    elif DescriptorTag.is_manufacturer(tag):
        d.field_raw("manufacturer_tag", d.bits_left)
    else:
        logger.debug(f"Unknown display descriptor tag 0x{tag:02X}")
        d.field_raw("data", d.bits_left)


def decode_range_limits(d: Decoder, flags: int) -> None:
    """
    Display range limits (tag 0xFD).

    Bits of the flags byte add 255 to the rate limits for displays beyond
    255 Hz / 255 kHz.
    """
    min_vert_offset = 255 if flags & 0x3 == 0x3 else 0
    max_vert_offset = 255 if flags & 0x2 == 0x2 else 0
    min_horiz_offset = 255 if flags >> 2 & 0x3 == 0x3 else 0
    max_horiz_offset = 255 if flags >> 2 & 0x2 == 0x2 else 0

    d.field_u8("min_vertical_refresh", m.actual_add(min_vert_offset), m.unit("Hz"))
    d.field_u8("max_vertical_refresh", m.actual_add(max_vert_offset), m.unit("Hz"))
    d.field_u8("min_horizontal_refresh", m.actual_add(min_horiz_offset), m.unit("kHz"))
    d.field_u8("max_horizontal_refresh", m.actual_add(max_horiz_offset), m.unit("kHz"))
    d.field_u8("max_pixel_clock", m.multiply(10), m.unit("MHz"))

    support = d.field_u8("video_timing_support_flags", m.desc_map(VIDEO_TIMING_SUPPORT))
    if support in (0x00, 0x01):
        d.field_raw("padding", 7 * 8, expect=RANGE_LIMITS_PADDING)
    elif support == 0x02:
        with d.field_struct("secondary_gtf"):
            d.field_u8("reserved")
            d.field_u8("start_break_frequency", m.multiply(2), m.unit("kHz"))
            d.field_u8("c", m.divide(2))
            d.field_u16("m")
            d.field_u8("k")
            d.field_u8("j", m.divide(2))
    else:
        for i in range(1, 8):
            d.field_u8(f"video_timing_data{i}")


def decode_color_point(d: Decoder) -> None:
    """Additional white points (tag 0xFB): two 5-byte entries and padding."""
    with d.field_array("white_points"):
        for _ in range(2):
            with d.field_struct("white_point"):
                d.field_u8("index")
                start = d.pos
                d.read_uint(4)
                x_low = d.read_uint(2)
                y_low = d.read_uint(2)
                x_high = d.read_uint(8)
                y_high = d.read_uint(8)
                x = reassemble(x_low, x_high, 2)
                y = reassemble(y_low, y_high, 2)
                d.emit_field("white_x", x / 1024, start, d.pos - start)
                d.emit_field("white_y", y / 1024, start, d.pos - start)
                d.field_u8("gamma", m.gamma)
    d.field_raw("padding", 3 * 8, expect=b"\x0a\x20\x20")


def decode_established_timings_iii(d: Decoder) -> None:
    """Established timings III (tag 0xF7): 44 more VESA DMT modes."""
    d.field_u8("revision")
    with d.field_array("established_timings"):
        for table in ESTABLISHED_TIMINGS_III:
            start = d.pos
            flags = d.read_uint(8)
            d.field_flags("timing", flags, start, table)
    d.field_raw("reserved", d.bits_left)


# CVT 3-byte code tables
CVT_ASPECT = {0: "4:3", 1: "16:9", 2: "16:10", 3: "15:9"}
CVT_PREFERRED_REFRESH = {0: 50, 1: 60, 2: 75, 3: 85}
CVT_SUPPORTED_REFRESH = {4: "50Hz", 3: "60Hz", 2: "75Hz", 1: "85Hz", 0: "60Hz(RB)"}


def decode_cvt_codes(d: Decoder) -> None:
    """CVT 3-byte timing codes (tag 0xF8): version byte and four codes."""
    d.field_u8("version")
    with d.field_array("cvt_codes"):
        for _ in range(4):
            if d.peek_uint(24) == 0:
                d.seek_relative(24)
                continue
            with d.field_struct("cvt_code"):
                start = d.pos
                lines_low = d.read_uint(8)
                lines_high = d.read_uint(4)
                lines = SplitValue.join(lines_low, lines_high, 8, start, d.pos)
                d.emit_field("addressable_lines", lines.raw, lines.first_bit, lines.n_bits,
                             m.formula(lambda actual: (actual + 1) * 2), m.unit("lines"))
                d.field_uint("aspect_ratio", 2, m.sym_map(CVT_ASPECT))
                d.field_uint("reserved", 2)
                d.field_uint("reserved_bit", 1)
                d.field_uint("preferred_refresh", 2, m.sym_map(CVT_PREFERRED_REFRESH),
                             m.unit("Hz"))
                flags_start = d.pos
                flags = d.read_uint(5)
                d.field_flags("supported_refresh", flags, flags_start, CVT_SUPPORTED_REFRESH,
                              width=5)
