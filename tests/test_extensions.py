"""
Extension Unit Tests
====================

Tests for extension dispatch and the CEA-861 and DisplayID decoders.

Test Categories
---------------
1. Dispatch: Registry lookup, opaque capture, count handling, recovery
2. CEA-861: Header, data block collection, embedded descriptors
3. DisplayID: Section header, data blocks, type I timings, checksums
"""

import pytest

from edidkit import DecoderConfig, FormatRegistry, SubFormat, decode_edid
from edidkit.edid.checksum import with_checksum
from edidkit.edid.extensions import default_registry
from conftest import DTD_720P, build_base_record, corrupt, type_i_timing


def with_extensions(*records: bytes, declared: int = None) -> bytes:
    """A base record followed by ``records``."""
    count = len(records) if declared is None else declared
    return build_base_record(extension_count=count) + b"".join(records)


def vtb_extension() -> bytes:
    """A Video Timing Block extension, which edidkit does not decode."""
    return with_checksum(bytes([0x10, 0x01]) + bytes(125))


# =============================================================================
# Dispatch Tests
# =============================================================================

class TestDispatch:
    """Tests for walking the extension records."""

    def test_registered_formats(self, edid_with_extensions):
        result = decode_edid(edid_with_extensions)
        assert [node.name for node in result.tree["extensions"]] == ["cea861", "displayid"]
        assert result.extensions_decoded == 2
        assert result.is_valid

    def test_default_registry(self):
        registry = default_registry()
        assert registry.resolve(0x02).name == "cea861"
        assert registry.resolve(0x70).name == "displayid"
        assert len(registry) == 2

    def test_unknown_tag_kept_opaque(self):
        result = decode_edid(with_extensions(vtb_extension()))
        ext = result.tree["extensions"][0]
        assert ext.name == "unknown_extension"
        assert ext["tag"].description == "Video Timing Block Extension (VTB-EXT)"
        assert len(ext["data"].value) == 126
        assert ext["checksum"].is_valid

    def test_opaque_checksum_still_validated(self):
        record = corrupt(vtb_extension(), 127, 0x00)
        result = decode_edid(with_extensions(record))
        assert [f.path for f in result.failures] == ["extensions[0].checksum"]

    def test_dispatch_disabled(self, edid_with_extensions):
        config = DecoderConfig(decode_extensions=False)
        result = decode_edid(edid_with_extensions, config=config)
        assert [node.name for node in result.tree["extensions"]] == [
            "unknown_extension",
            "unknown_extension",
        ]

    def test_custom_registry(self, cea_extension):
        registry = FormatRegistry()
        result = decode_edid(with_extensions(cea_extension), registry=registry)
        assert result.tree["extensions"][0].name == "unknown_extension"

    def test_declared_count_exceeds_buffer(self, cea_extension):
        result = decode_edid(with_extensions(cea_extension, declared=3))
        assert len(result.tree["extensions"]) == 1
        assert result.extensions_decoded == 1
        failure = result.failures[0]
        assert failure.path == "extension_count"
        assert failure.actual == 3

    def test_max_extensions(self, edid_with_extensions):
        config = DecoderConfig(max_extensions=1)
        result = decode_edid(edid_with_extensions, config=config)
        assert result.extensions_decoded == 1
        assert result.trailing_bytes == 128
        assert result.is_valid

    def test_no_extensions_no_array(self, base_record):
        assert "extensions" not in decode_edid(base_record).tree

    def test_trailing_bytes(self, base_record):
        result = decode_edid(base_record + bytes(10))
        assert result.trailing_bytes == 10


class TestFailedExtensionRecovery:
    """A sub-decoder that fails hard only loses its own record."""

    @pytest.fixture
    def failing_registry(self) -> FormatRegistry:
        def decode_broken(d, ctx):
            tag = d.field_u8("tag")
            d.fail(d.current["tag"], 0x00, tag, "bogus failure")
            d.cursor.read_bytes(200)

        registry = default_registry()
        registry.register(0x10, SubFormat("vtb", "Video Timing Block", decode_broken))
        return registry

    def test_record_captured_with_error(self, failing_registry):
        result = decode_edid(with_extensions(vtb_extension()), registry=failing_registry)
        ext = result.tree["extensions"][0]
        assert ext.name == "vtb"
        assert ext.keys() == ["tag", "data", "checksum", "error"]
        assert ext["error"].value

    def test_partial_failures_discarded(self, failing_registry):
        result = decode_edid(with_extensions(vtb_extension()), registry=failing_registry)
        assert result.is_valid

    def test_later_records_still_decoded(self, failing_registry, cea_extension):
        data = with_extensions(vtb_extension(), cea_extension)
        result = decode_edid(data, registry=failing_registry)
        assert [node.name for node in result.tree["extensions"]] == ["vtb", "cea861"]
        assert result.tree["extensions"][1]["revision"].value == 3


# =============================================================================
# CEA-861 Tests
# =============================================================================

class TestCEA861Header:
    """Tests for bytes 0-3 of the CEA-861 record."""

    @pytest.fixture
    def cea(self, cea_extension):
        return decode_edid(with_extensions(cea_extension)).tree["extensions"][0]

    def test_header(self, cea):
        assert cea["tag"].value == 0x02
        assert cea["revision"].value == 3
        assert cea["offset"].value == 25

    def test_format_support(self, cea):
        support = cea["format_support"]
        assert support["underscan"].value is True
        assert support["basic_audio"].value is True
        assert support["ycbcr_444"].value is True
        assert support["ycbcr_422"].value is True
        assert support["native_dtd_count"].value == 1

    def test_revision_1_has_no_data_blocks(self, make_cea_extension):
        cea = decode_edid(with_extensions(make_cea_extension(revision=1))).tree["extensions"][0]
        assert "format_support" not in cea
        assert "data_block_collection" not in cea
        assert len(cea["padding"].value) == 21

    def test_offset_zero(self):
        record = with_checksum(bytes([0x02, 0x03, 0x00, 0x00]) + bytes(123))
        result = decode_edid(with_extensions(record))
        cea = result.tree["extensions"][0]
        assert len(cea["data"].value) == 123
        assert result.is_valid

    def test_offset_out_of_range(self):
        record = with_checksum(bytes([0x02, 0x03, 0x02, 0x00]) + bytes(123))
        result = decode_edid(with_extensions(record))
        assert [f.path for f in result.failures] == ["extensions[0].offset"]
        assert len(result.tree["extensions"][0]["data"].value) == 123
        assert result.tree["extensions"][0]["checksum"].is_valid

    def test_offset_past_checksum(self):
        record = with_checksum(bytes([0x02, 0x03, 200, 0x00]) + bytes(123))
        result = decode_edid(with_extensions(record))
        assert [f.path for f in result.failures] == ["extensions[0].offset"]

    def test_long_collection_leaves_one_slot(self):
        """Data blocks past byte 91 leave room for a single DTD."""
        video = bytes([0x5F]) + bytes(range(1, 32))
        record = bytes([0x02, 0x03, 100, 0x00]) + video * 3 + DTD_720P
        result = decode_edid(with_extensions(with_checksum(record.ljust(127, b"\x00"))))
        cea = result.tree["extensions"][0]
        assert result.is_valid
        assert len(cea["data_block_collection"]) == 3
        assert cea["third_timing_descriptor"]["pixel_clock"].first_bit == (128 + 100) * 8
        assert "fourth_timing_descriptor" not in cea
        assert "display_descriptor_4" not in cea
        assert len(cea["data"].value) == 127 - 118

    def test_collection_up_to_checksum(self):
        video = bytes([0x5F]) + bytes(range(1, 32))
        record = bytes([0x02, 0x03, 127, 0x00]) + video * 3 + bytes([0x5A]) + bytes(range(1, 27))
        result = decode_edid(with_extensions(with_checksum(record)))
        cea = result.tree["extensions"][0]
        assert result.is_valid
        assert len(cea["data_block_collection"]) == 4
        assert cea.keys()[-2:] == ["data_block_collection", "checksum"]


class TestCEA861DataBlocks:
    """Tests for the data block collection."""

    @pytest.fixture
    def blocks(self, cea_extension):
        tree = decode_edid(with_extensions(cea_extension)).tree
        return tree["extensions"][0]["data_block_collection"]

    def test_block_tags(self, blocks):
        assert [b["tag"].description for b in blocks] == [
            "Video Data Block",
            "Audio Data Block",
            "Vendor Specific Data Block",
            "Speaker Allocation Data Block",
            "Extended",
        ]

    def test_video_block(self, blocks):
        svds = blocks[0]["short_video_descriptors"]
        assert [svd["vic"].value for svd in svds] == [16, 4, 3]
        assert svds[0]["native"].value is True
        assert svds[1]["native"].value is False

    def test_audio_block(self, blocks):
        sad = blocks[1]["short_audio_descriptors"][0]
        assert sad["format"].symbol == "LPCM"
        assert sad["max_channels"].symbol == 2
        assert [f.symbol for f in sad.find_all("sample_rate")] == ["48kHz", "44.1kHz", "32kHz"]

    def test_hdmi_vendor_block(self, blocks):
        vendor = blocks[2]
        assert vendor["ieee_oui"].value == 0x000C03
        assert vendor["physical_address"].symbol == "1.0.0.0"

    def test_speaker_allocation(self, blocks):
        speaker = blocks[3]
        assert [f.symbol for f in speaker.find_all("speaker")] == ["FL/FR"]
        assert speaker["payload"].value == bytes(2)

    def test_extended_block(self, blocks):
        extended = blocks[4]
        assert extended["extended_tag"].description == "Video Capability Data Block"
        assert extended["payload"].value == b"\x0f"

    def test_block_ranges(self, blocks):
        # Record starts at byte 128, data blocks at byte 4 of the record
        assert blocks[0].first_bit == (128 + 4) * 8
        assert blocks[1].first_bit == (128 + 8) * 8

    def test_truncated_block(self, make_cea_extension):
        record = make_cea_extension(blocks=bytes([0x43, 0x90, 0x04, 0x03, 0x45, 0x01]))
        result = decode_edid(with_extensions(record))
        collection = result.tree["extensions"][0]["data_block_collection"]
        assert collection[1].name == "truncated_block"
        assert collection[2].value == b"\x01"
        assert len(result.failures) == 1
        assert result.failures[0].path.startswith("extensions[0].data_block_collection")


class TestCEA861Descriptors:
    """Tests for the descriptors after the data block collection."""

    @pytest.fixture
    def cea(self, cea_extension):
        return decode_edid(with_extensions(cea_extension)).tree["extensions"][0]

    def test_detailed_timing(self, cea):
        dtd = cea["third_timing_descriptor"]
        assert dtd["horizontal_addressable_video"].value == 1280
        assert dtd["horizontal_blanking"].value == 370
        assert dtd["vertical_addressable_video"].value == 720
        assert dtd["vertical_blanking"].value == 30
        assert dtd["pixel_clock"].symbol == pytest.approx(74.25)

    def test_zero_slot_is_display_descriptor(self, cea):
        assert "manufacturer_tag" in cea["display_descriptor_4"]

    def test_trailing_data(self, cea):
        assert len(cea["data"].value) == 127 - 25 - 36


# =============================================================================
# DisplayID Tests
# =============================================================================

class TestDisplayIDSection:
    """Tests for the section header and checksum."""

    @pytest.fixture
    def section(self, displayid_extension):
        return decode_edid(with_extensions(displayid_extension)).tree["extensions"][0]["data"]

    def test_header(self, section):
        assert section["version"].value == 1
        assert section["revision"].value == 2
        assert section["bytes_of_data"].value == 23
        assert section["product_type"].symbol == "extension section"
        assert section["extension_count"].value == 0
        assert section["is_an_extension"].value is True

    def test_section_checksum(self, section):
        checksum = section["section_checksum"]
        assert checksum.is_valid
        assert checksum.first_bit == (128 + 28) * 8

    def test_padding(self, section):
        assert len(section["padding"].value) == 126 - 4 - 23 - 1

    def test_section_checksum_mismatch(self, displayid_extension):
        record = with_checksum(corrupt(displayid_extension, 28, 0x00))
        result = decode_edid(with_extensions(record))
        assert [f.path for f in result.failures] == ["extensions[0].data.section_checksum"]

    def test_product_type_not_an_extension(self, make_displayid_extension):
        record = bytearray(make_displayid_extension())
        record[3] = 0x03
        record[28] = (record[28] - 3) & 0xFF
        result = decode_edid(with_extensions(with_checksum(bytes(record))))
        section = result.tree["extensions"][0]["data"]
        assert section["product_type"].symbol == "standalone display device"
        assert "is_an_extension" not in section
        assert result.is_valid

    def test_oversized_payload(self, make_displayid_extension):
        record = make_displayid_extension(bytes_of_data=200)
        result = decode_edid(with_extensions(record))
        assert "extensions[0].data.bytes_of_data" in [f.path for f in result.failures]


class TestDisplayIDBlocks:
    """Tests for the data block walk."""

    def test_zero_tag_ends_blocks(self, make_displayid_extension):
        blocks = bytes([0x03, 0x00, 20]) + type_i_timing() + bytes(5)
        section = decode_edid(with_extensions(make_displayid_extension(blocks))) \
            .tree["extensions"][0]["data"]
        data_blocks = section["data_blocks"]
        assert [node.name for node in data_blocks] == ["data_block", "padding"]
        assert data_blocks[1].value == bytes(5)

    def test_zero_tag_allowed_first(self, make_displayid_extension):
        blocks = bytes([0x00, 0x00, 0x03]) + b"DEL"
        section = decode_edid(with_extensions(make_displayid_extension(blocks))) \
            .tree["extensions"][0]["data"]
        block = section["data_blocks"][0]
        assert block["tag"].description == "Product Identification Data Block"
        assert block["payload"].value == b"DEL"

    def test_block_overrun_is_clamped(self, make_displayid_extension):
        blocks = bytes([0x03, 0x00, 40]) + type_i_timing()
        result = decode_edid(with_extensions(make_displayid_extension(blocks)))
        block = result.tree["extensions"][0]["data"]["data_blocks"][0]
        assert len(block["timings"]) == 1
        assert "extensions[0].data.data_blocks[0].payload_bytes" in [
            f.path for f in result.failures
        ]


class TestDisplayIDTypeITiming:
    """Tests for the 20-byte type I detailed timing."""

    @pytest.fixture
    def timing(self, displayid_extension):
        tree = decode_edid(with_extensions(displayid_extension)).tree
        return tree["extensions"][0]["data"]["data_blocks"][0]["timings"][0]

    def test_pixel_clock(self, timing):
        assert timing["pixel_clock"].value == 53325
        assert timing["pixel_clock"].symbol == pytest.approx(533.25)

    def test_flags(self, timing):
        assert timing["preferred"].value is True
        assert timing["stereo"].symbol == "no_stereo"
        assert timing["scan_type"].symbol == "progressive"
        assert timing["aspect_ratio"].symbol == "16:9"

    def test_horizontal(self, timing):
        assert timing["horizontal_active"].value == 3840
        assert timing["horizontal_blank"].value == 160
        assert timing["horizontal_front_porch"].value == 48
        assert timing["horizontal_sync_width"].value == 32
        assert timing["horizontal_sync_polarity"].symbol == "positive"

    def test_vertical(self, timing):
        assert timing["vertical_active"].value == 2160
        assert timing["vertical_blank"].value == 62
        assert timing["vertical_front_porch"].value == 3
        assert timing["vertical_sync_width"].value == 5
        assert timing["vertical_sync_polarity"].symbol == "negative"
