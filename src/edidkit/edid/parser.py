"""
EDID Parser
===========

Entry points that turn a buffer (or a file) into a decoded field tree.

decode_edid
-----------
The core function: decodes the base record, then every extension record
it declares, and returns an EDIDResult holding the tree and every
non-fatal validation failure.

EDIDParser
----------
File-oriented wrapper mirroring how the CLI works: read a file (binary
or a hex dump such as ``xrandr --verbose`` output), decode it, and keep
the outcome.

Usage Examples
--------------
Decoding bytes read from sysfs:
    >>> from edidkit import decode_edid
    >>> data = open("/sys/class/drm/card0-HDMI-A-1/edid", "rb").read()
    >>> result = decode_edid(data)
    >>> result.manufacturer, result.display_name
    ('DEL', 'DELL U2415')
    >>> result.is_valid
    True

Walking the tree:
    >>> dtd = result.tree["detailed_timings"]["preferred_timing_mode"]
    >>> dtd["pixel_clock"].symbol
    148.5

Strict checksums:
    >>> decode_edid(corrupted, config=DecoderConfig(strict_checksums=True))
    Traceback (most recent call last):
    ...
    edidkit.errors.ChecksumError: ...
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union
import logging
import re

from edidkit.bitstream import Decoder, FieldStruct, FormatRegistry, LITTLE_ENDIAN
from edidkit.config import DecoderConfig
from edidkit.edid.base import decode_base_record
from edidkit.edid.context import EDIDContext
from edidkit.edid.extensions import decode_extensions, default_registry
from edidkit.edid.tables import EDID_MAGIC, DescriptorTag
from edidkit.edid.timings import TimingMode, collect_timings
from edidkit.errors import ChecksumError, EDIDError, ValidationFailure

logger = logging.getLogger(__name__)

# Hex dump text: hex digit pairs with optional 0x prefixes, separators and
# whitespace
_HEX_DUMP_RE = re.compile(rb"^(?:\s|0x|[0-9A-Fa-f]{2}|[,:])*$")


# =============================================================================
# Decode Result
# =============================================================================

@dataclass
class EDIDResult:
    """
    Outcome of decoding one EDID buffer.

    Attributes:
        tree: Root struct of the decoded field tree
        failures: Every non-fatal validation failure, in detection order
        version: EDID version byte
        revision: EDID revision byte
        extension_count: Extension count declared by the base record
        extensions_decoded: Extension records actually walked
        trailing_bytes: Bytes left over after the last decoded record
    """
    tree: FieldStruct
    failures: list[ValidationFailure] = field(default_factory=list)
    version: int = 1
    revision: int = 3
    extension_count: int = 0
    extensions_decoded: int = 0
    trailing_bytes: int = 0

    @property
    def is_valid(self) -> bool:
        """True when no validation failed."""
        return not self.failures

    @property
    def checksum_failures(self) -> list[ValidationFailure]:
        """Failed record checksums (byte 127 of each record)."""
        return [f for f in self.failures if f.path.rpartition(".")[2] == "checksum"]

    def _header_field(self, name: str) -> Any:
        node = self.tree["header"][name]
        return node.display

    @property
    def manufacturer(self) -> str:
        return self._header_field("manufacturer_id")

    @property
    def product_code(self) -> int:
        return self._header_field("manufacturer_product_code")

    @property
    def serial_number(self) -> int:
        return self._header_field("serial_number")

    @property
    def edid_version(self) -> str:
        return f"{self.version}.{self.revision}"

    def _descriptor_string(self, tag: int) -> Optional[str]:
        for descriptor in self.tree.walk():
            if (isinstance(descriptor, FieldStruct)
                    and descriptor.name.startswith("display_descriptor")
                    and descriptor["tag"].value == tag
                    and "value" in descriptor):
                return descriptor["value"].value
        return None

    @property
    def display_name(self) -> Optional[str]:
        """Product name string (descriptor 0xFC), if present."""
        return self._descriptor_string(DescriptorTag.PRODUCT_NAME)

    @property
    def display_serial(self) -> Optional[str]:
        """Serial number string (descriptor 0xFF), if present."""
        return self._descriptor_string(DescriptorTag.SERIAL_NUMBER)

    def timings(self) -> list[TimingMode]:
        return collect_timings(self.tree)

    def to_dict(self) -> dict:
        return self.tree.to_dict()

    def get_info(self) -> dict:
        """
        Get summary information about the EDID.

        Returns:
            Dictionary with identification and validity details
        """
        return {
            "manufacturer": self.manufacturer,
            "product_code": f"0x{self.product_code:04X}",
            "serial_number": self.serial_number,
            "display_name": self.display_name,
            "edid_version": self.edid_version,
            "extension_count": self.extension_count,
            "extensions": [node.name for node in self.tree.get("extensions", [])],
            "validation_failures": len(self.failures),
        }


# =============================================================================
# Decoding
# =============================================================================

def decode_edid(
    data: bytes,
    registry: Optional[FormatRegistry] = None,
    config: Optional[DecoderConfig] = None,
) -> EDIDResult:
    """
    Decode an EDID buffer into a field tree.

    Args:
        data: The raw EDID bytes (base record plus extensions)
        registry: Extension formats; defaults to ``default_registry()``
        config: Decoder options; defaults to ``DecoderConfig()``

    Returns:
        The decoded tree and its validation failures

    Raises:
        AssertionMismatch: If the header magic is wrong
        OutOfBoundsError: If the base record is truncated
        ChecksumError: If ``config.strict_checksums`` is set and any
            record checksum failed
    """
    config = config or DecoderConfig()
    if registry is None:
        registry = default_registry()

    d = Decoder(data, LITTLE_ENDIAN)
    ctx = EDIDContext(registry=registry, config=config)

    extension_count = decode_base_record(d, ctx)
    decoded = 0
    if extension_count:
        decoded = decode_extensions(d, ctx, extension_count)

    trailing = d.bits_left // 8
    if trailing:
        logger.debug(f"{trailing} trailing byte(s) after the last record")

    result = EDIDResult(
        tree=d.root,
        failures=list(d.failures),
        version=ctx.version,
        revision=ctx.revision,
        extension_count=extension_count,
        extensions_decoded=decoded,
        trailing_bytes=trailing,
    )

    if config.strict_checksums and result.checksum_failures:
        raise ChecksumError(result.checksum_failures, result)

    return result


def load_edid_bytes(raw: bytes, hex_dump: Optional[bool] = None) -> bytes:
    """
    Accept either a binary EDID or a hex dump of one.

    Text consisting only of hex byte pairs (with optional ``0x``
    prefixes, commas, colons and whitespace) is converted to bytes;
    anything else is returned unchanged. ``hex_dump=True`` forces hex
    parsing, ``False`` disables it.

    Raises:
        ValueError: If ``hex_dump`` is True and ``raw`` is not valid hex

    Example:
        >>> load_edid_bytes(b"00 ff ff ff ff ff ff 00")
        b'\\x00\\xff\\xff\\xff\\xff\\xff\\xff\\x00'
    """
    if hex_dump is None:
        if raw.startswith(EDID_MAGIC) or not raw.strip() or not _HEX_DUMP_RE.match(raw):
            return raw
    elif not hex_dump:
        return raw

    digits = re.sub(rb"0x|[\s,:]", b"", raw)
    if len(digits) % 2 and hex_dump is None:
        return raw
    logger.debug(f"Input looks like a hex dump ({len(digits) // 2} bytes)")
    return bytes.fromhex(digits.decode("ascii"))


# =============================================================================
# EDID Parser
# =============================================================================

@dataclass
class EDIDParser:
    """
    Parser for EDID files.

    Attributes:
        data: The EDID bytes (after hex dump conversion)
        registry: Extension formats
        config: Decoder options
        result: The decode result, once parsed
        is_valid: True if decoding completed without validation failures
        error_message: The fatal error, if decoding aborted

    Example:
        >>> parser = EDIDParser.from_file("monitor.bin")
        >>> print(parser.result.manufacturer)
    """
    # Raw EDID data (private, not exposed in repr)
    data: bytes = field(repr=False)

    registry: Optional[FormatRegistry] = field(default=None, repr=False)
    config: DecoderConfig = field(default_factory=DecoderConfig)

    result: Optional[EDIDResult] = field(default=None, repr=False)
    is_valid: bool = False
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        """Decode the data after initialization."""
        self._parse()

    @classmethod
    def from_file(
        cls,
        filepath: Union[str, Path],
        registry: Optional[FormatRegistry] = None,
        config: Optional[DecoderConfig] = None,
    ) -> "EDIDParser":
        """
        Create an EDIDParser from a file path.

        Raises:
            FileNotFoundError: If the file doesn't exist
            DecodeError: If the EDID cannot be decoded
        """
        data = load_edid_bytes(Path(filepath).read_bytes())
        return cls(data=data, registry=registry, config=config or DecoderConfig())

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        registry: Optional[FormatRegistry] = None,
        config: Optional[DecoderConfig] = None,
    ) -> "EDIDParser":
        return cls(data=load_edid_bytes(data), registry=registry,
                   config=config or DecoderConfig())

    def _parse(self) -> None:
        try:
            self.result = decode_edid(self.data, self.registry, self.config)
            self.is_valid = self.result.is_valid
        except EDIDError as e:
            self.is_valid = False
            self.error_message = str(e)
            logger.error(f"Failed to decode EDID: {e}")
            raise


def parse_edid_file(filepath: Union[str, Path]) -> EDIDResult:
    """
    Decode an EDID file from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        DecodeError: If the EDID cannot be decoded
    """
    return EDIDParser.from_file(filepath).result
