"""
Checksum Unit Tests
===================

Tests for record checksum calculation and the checksum field emitted by
the decoder.
"""

import pytest

from edidkit.bitstream import Decoder
from edidkit.edid.checksum import (
    ChecksumResult,
    calc_sum,
    expected_checksum,
    field_checksum,
    record_checksums,
    verify_record,
    with_checksum,
)


class TestChecksumCalculation:
    """Tests for the modulo-256 checksum."""

    def test_calc_sum_wraps(self):
        assert calc_sum(bytes([0xFF, 0x02])) == 0x01

    def test_expected_checksum(self):
        """Header magic sums to 6 * 0xFF = 0x5FA, so the checksum is 0x06."""
        assert expected_checksum(bytes([0x00] + [0xFF] * 6 + [0x00])) == 0x06

    def test_expected_checksum_of_zeros(self):
        assert expected_checksum(bytes(127)) == 0

    def test_with_checksum_sums_to_zero(self, base_record):
        assert calc_sum(with_checksum(base_record)) == 0

    def test_with_checksum_length(self):
        assert len(with_checksum(bytes(128))) == 128


class TestVerifyRecord:
    """Tests for whole-record verification."""

    def test_valid_record(self, base_record):
        result = verify_record(base_record)
        assert result.is_valid
        assert result.stored == result.calculated

    def test_corrupted_record(self, base_record):
        data = bytearray(base_record)
        data[20] ^= 0x01
        result = verify_record(bytes(data))
        assert not result.is_valid
        assert "should be" in result.message

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            verify_record(bytes(127))

    def test_record_checksums(self, edid_with_extensions):
        results = record_checksums(edid_with_extensions)
        assert len(results) == 3
        assert all(r.is_valid for r in results)

    def test_record_checksums_count(self, edid_with_extensions):
        assert len(record_checksums(edid_with_extensions, count=1)) == 1


class TestChecksumField:
    """Tests for the emitted checksum field."""

    def test_valid_checksum_field(self, base_record):
        d = Decoder(base_record)
        d.seek_absolute(127 * 8)
        field = field_checksum(d, 0)
        assert field.is_valid
        assert field.hex
        assert d.failures == []

    def test_mismatch_is_non_fatal(self, base_record):
        data = bytearray(base_record)
        data[127] = (data[127] + 1) & 0xFF
        d = Decoder(bytes(data))
        d.seek_absolute(127 * 8)
        field = field_checksum(d, 0)
        assert not field.is_valid
        assert field.description == ChecksumResult(False, data[127], base_record[127]).message
        assert d.failures[0].expected == base_record[127]
        assert d.bits_left == 0
