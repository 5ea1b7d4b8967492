"""
Parser Unit Tests
=================

Tests for decode_edid, EDIDResult, hex dump loading and the file-oriented
EDIDParser.
"""

import pytest

from edidkit import (
    ChecksumError,
    DecoderConfig,
    EDIDParser,
    OutOfBoundsError,
    decode_edid,
    load_edid_bytes,
    parse_edid_file,
)
from edidkit.edid.checksum import with_checksum
from conftest import corrupt


# =============================================================================
# EDIDResult Tests
# =============================================================================

class TestEDIDResult:
    """Tests for the result accessors."""

    def test_identification(self, base_record):
        result = decode_edid(base_record)
        assert result.manufacturer == "DEL"
        assert result.product_code == 0xA0C4
        assert result.serial_number == 0x12345678
        assert result.version == 1
        assert result.revision == 4

    def test_missing_display_name(self, make_base_record, base_record):
        dummy = bytes([0x00, 0x00, 0x00, 0x10, 0x00]) + bytes(13)
        data = make_base_record(descriptors=(base_record[54:72], dummy, dummy, dummy))
        result = decode_edid(data)
        assert result.display_name is None
        assert result.display_serial is None

    def test_get_info(self, edid_with_extensions):
        info = decode_edid(edid_with_extensions).get_info()
        assert info == {
            "manufacturer": "DEL",
            "product_code": "0xA0C4",
            "serial_number": 0x12345678,
            "display_name": "DELL U2415",
            "edid_version": "1.4",
            "extension_count": 2,
            "extensions": ["cea861", "displayid"],
            "validation_failures": 0,
        }

    def test_to_dict(self, base_record):
        tree = decode_edid(base_record).to_dict()
        assert tree["header"]["serial_number"] == 0x12345678
        assert tree["basic_display_parameters"]["horizontal_screen_size"] == {
            "value": 64,
            "unit": "cm",
        }
        assert tree["standard_timings"][0]["refresh_rate"]["symbol"] == 60

    def test_to_dict_repeated_names(self, edid_with_extensions):
        """Repeated names inside a struct get numbered keys."""
        tree = decode_edid(edid_with_extensions).to_dict()
        audio = tree["extensions"][0]["data_block_collection"][1]
        sad = audio["short_audio_descriptors"][0]
        assert sad["sample_rate"]["symbol"] == "48kHz"
        assert sad["sample_rate_2"]["symbol"] == "44.1kHz"
        assert sad["sample_rate_3"]["symbol"] == "32kHz"

    def test_checksum_failures(self, make_base_record):
        result = decode_edid(make_base_record(fix_checksum=False))
        assert [f.path for f in result.checksum_failures] == ["checksum"]


# =============================================================================
# decode_edid Tests
# =============================================================================

class TestDecodeEdid:
    """Tests for the top-level decode function."""

    def test_strict_checksums_raise(self, make_base_record):
        config = DecoderConfig(strict_checksums=True)
        with pytest.raises(ChecksumError) as exc_info:
            decode_edid(make_base_record(fix_checksum=False), config=config)
        assert exc_info.value.result.manufacturer == "DEL"
        assert "checksum" in str(exc_info.value)

    def test_strict_ignores_other_failures(self, make_base_record):
        """Only checksum mismatches are escalated in strict mode."""
        dtd = corrupt(make_base_record()[54:72], 8, 0xFF)
        rest = make_base_record()[72:126]
        data = make_base_record(descriptors=(dtd, rest[:18], rest[18:36], rest[36:54]))
        result = decode_edid(data, config=DecoderConfig(strict_checksums=True))
        assert not result.is_valid
        assert result.checksum_failures == []

    def test_strict_ignores_section_checksum(self, make_base_record, displayid_extension):
        """A DisplayID section checksum is not a record checksum."""
        record = with_checksum(corrupt(displayid_extension, 28, displayid_extension[28] ^ 0xFF))
        data = make_base_record(extension_count=1) + record
        result = decode_edid(data, config=DecoderConfig(strict_checksums=True))
        assert [f.path for f in result.failures] == ["extensions[0].data.section_checksum"]
        assert result.checksum_failures == []

    def test_empty_buffer(self):
        with pytest.raises(OutOfBoundsError):
            decode_edid(b"")

    def test_extension_checksum_failure(self, edid_with_extensions):
        data = corrupt(edid_with_extensions, 255, edid_with_extensions[255] ^ 0xFF)
        result = decode_edid(data)
        assert [f.path for f in result.checksum_failures] == ["extensions[0].checksum"]


# =============================================================================
# Hex Dump Loading Tests
# =============================================================================

class TestLoadEdidBytes:
    """Tests for binary / hex dump detection."""

    def test_binary_passthrough(self, base_record):
        assert load_edid_bytes(base_record) == base_record

    def test_plain_hex(self, base_record):
        assert load_edid_bytes(base_record.hex().encode()) == base_record

    def test_spaced_hex(self, base_record):
        assert load_edid_bytes(base_record.hex(" ").encode()) == base_record

    def test_xrandr_style(self, base_record):
        lines = [base_record[i:i + 16].hex() for i in range(0, 128, 16)]
        text = "\n\t\t" + "\n\t\t".join(lines) + "\n"
        assert load_edid_bytes(text.encode()) == base_record

    def test_c_array_style(self):
        assert load_edid_bytes(b"0x00, 0xff, 0x10") == b"\x00\xff\x10"

    def test_forced_hex(self):
        assert load_edid_bytes(b"00ff", hex_dump=True) == b"\x00\xff"

    def test_forced_hex_invalid(self):
        with pytest.raises(ValueError):
            load_edid_bytes(b"zz", hex_dump=True)

    def test_hex_disabled(self):
        assert load_edid_bytes(b"00ff", hex_dump=False) == b"00ff"

    def test_odd_digit_count_left_alone(self):
        assert load_edid_bytes(b"00f") == b"00f"


# =============================================================================
# EDIDParser Tests
# =============================================================================

class TestEDIDParser:
    """Tests for the file-oriented parser."""

    def test_from_file(self, tmp_path, edid_with_extensions):
        path = tmp_path / "edid.bin"
        path.write_bytes(edid_with_extensions)
        parser = EDIDParser.from_file(path)
        assert parser.is_valid
        assert parser.error_message is None
        assert parser.result.extensions_decoded == 2

    def test_from_hex_file(self, tmp_path, base_record):
        path = tmp_path / "edid.txt"
        path.write_text(base_record.hex(" "))
        assert EDIDParser.from_file(str(path)).result.manufacturer == "DEL"

    def test_from_bytes(self, base_record):
        parser = EDIDParser.from_bytes(base_record)
        assert parser.result.display_name == "DELL U2415"

    def test_invalid_but_decoded(self, make_base_record):
        parser = EDIDParser.from_bytes(make_base_record(fix_checksum=False))
        assert not parser.is_valid
        assert parser.result is not None

    def test_fatal_error_propagates(self, base_record):
        with pytest.raises(OutOfBoundsError):
            EDIDParser.from_bytes(base_record[:50])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EDIDParser.from_file(tmp_path / "missing.bin")

    def test_parse_edid_file(self, tmp_path, base_record):
        path = tmp_path / "edid.bin"
        path.write_bytes(base_record)
        assert parse_edid_file(path).edid_version == "1.4"
