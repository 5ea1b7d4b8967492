"""
Extension Dispatch
==================

After the base record come ``extension_count`` records of 128 bytes each.
The first byte of every record is a tag naming its format; the tag is
peeked and looked up in a FormatRegistry.

- A registered tag is decoded by its sub-decoder, framed to the record.
- An unregistered tag (or any tag when dispatch is disabled) is kept as
  an opaque ``unknown_extension`` with its checksum still validated.
- A sub-decoder that fails hard only loses its own record: the partial
  output is dropped and the record is captured opaquely with the error.

The walk stops early, with a validation failure on ``extension_count``,
when the buffer holds fewer records than declared.
"""

import logging

from edidkit.bitstream import Decoder, FormatRegistry, SubFormat
from edidkit.bitstream import mappers as m
from edidkit.edid.cea861 import decode_cea861
from edidkit.edid.checksum import field_checksum
from edidkit.edid.context import EDIDContext
from edidkit.edid.displayid import decode_displayid
from edidkit.edid.tables import EXTENSION_TAG_DESCRIPTIONS, ExtensionTag, RECORD_SIZE
from edidkit.errors import DecodeError

logger = logging.getLogger(__name__)


def default_registry() -> FormatRegistry:
    """A registry with every extension format edidkit can decode."""
    registry = FormatRegistry()
    registry.register(
        ExtensionTag.CEA861,
        SubFormat("cea861", ExtensionTag.CEA861.get_description(), decode_cea861),
    )
    registry.register(
        ExtensionTag.DISPLAYID,
        SubFormat("displayid", ExtensionTag.DISPLAYID.get_description(), decode_displayid),
    )
    return registry


def decode_extensions(d: Decoder, ctx: EDIDContext, count: int) -> int:
    """
    Decode up to ``count`` extension records at the cursor.

    Args:
        d: The decoder, positioned right after the base record
        ctx: Decode context; supplies the registry and config
        count: Extension count declared by the base record

    Returns:
        Number of extension records decoded
    """
    available = d.bits_left // (RECORD_SIZE * 8)
    limit = min(count, ctx.config.max_extensions)
    if limit > available:
        d.fail(d.root["extension_count"], f"<= {available}", count,
               f"{count} extension(s) declared, buffer holds {available}")
        limit = available
    elif limit < count:
        logger.info(f"Decoding {limit} of {count} extensions (max_extensions)")

    with d.field_array("extensions"):
        for index in range(limit):
            decode_extension(d, ctx, index)
    return limit


def decode_extension(d: Decoder, ctx: EDIDContext, index: int) -> None:
    """Decode one 128-byte extension record at the cursor."""
    start = d.pos
    tag = d.peek_uint(8)

    fmt = None
    if ctx.registry is not None and ctx.config.decode_extensions:
        fmt = ctx.registry.resolve(tag)

    if fmt is None:
        logger.debug(f"Extension {index}: tag 0x{tag:02X} kept opaque")
        with d.framed(RECORD_SIZE * 8), d.field_struct("unknown_extension"):
            decode_opaque_extension(d)
        return

    failures_before = len(d.failures)
    try:
        with d.framed(RECORD_SIZE * 8), d.field_struct(fmt.name):
            fmt.decode(d, ctx)
        logger.debug(f"Extension {index}: decoded as {fmt.name}")
        return
    except DecodeError as e:
        logger.error(f"Extension {index} ({fmt.description}) failed to decode: {e}")
        error = e

    # Drop the partial output of the failed record
    d.current.items.pop()
    del d.failures[failures_before:]
    d.seek_absolute(start)

    with d.framed(RECORD_SIZE * 8), d.field_struct(fmt.name):
        decode_opaque_extension(d)
        d.field_value("error", str(error))


def decode_opaque_extension(d: Decoder) -> None:
    """Capture a framed extension record as tag, raw data and checksum."""
    record_start = d.pos // 8
    d.field_u8("tag", m.desc_map(EXTENSION_TAG_DESCRIPTIONS), m.hex_display)
    d.field_raw("data", (RECORD_SIZE - 2) * 8)
    field_checksum(d, record_start)
