"""Tests for status and information response parsers."""

import struct

import pytest

from nipponprinter.exceptions import MalformedPayloadError
from nipponprinter.responses import (
    InfoId,
    InformationResult,
    MileageCounter,
    PrinterStatus,
    decode_info,
    decode_mileage,
    decode_status,
    to_bytes,
)
from nipponprinter.transport import StatusReply


class TestDecodeStatus:
    """Test status word decoding."""

    @pytest.mark.parametrize("raw", range(256))
    def test_error_follows_low_nibble(self, raw):
        """error is set by bits 0-3 only, regardless of bit 7 or bits 4-6."""
        status = decode_status(raw)
        assert status.error == ((raw & 0x0F) != 0)
        assert status.online == (not status.error)
        assert status.ready == (not status.error and not status.printing)
        assert status.printing == bool(raw & 0x80)

    def test_ready(self):
        status = decode_status(0)
        assert status.ready is True
        assert status.online is True
        assert status.error is False
        assert status.printing is False
        assert status.connected is True

    def test_printing_is_online_but_not_ready(self):
        status = decode_status(128)
        assert status.printing is True
        assert status.online is True
        assert status.ready is False
        assert status.error is False

    def test_combined_paper_and_cover(self):
        status = decode_status(7)
        assert status.paper_near_end is True
        assert status.cover_open is True
        assert status.paper_out is True
        assert status.overheat is False
        assert status.error is True

    def test_overheat_alone(self):
        status = decode_status(8)
        assert status.overheat is True
        assert not (status.paper_near_end or status.cover_open or status.paper_out)
        assert status.error is True

    @pytest.mark.parametrize("raw", [0x10, 0x20, 0x40, 0x70])
    def test_reserved_bits_ignored(self, raw):
        status = decode_status(raw)
        assert status.error is False
        assert status.ready is True

    def test_printing_with_paper_out(self):
        status = decode_status(0x84)
        assert status.printing is True
        assert status.paper_out is True
        assert status.online is False
        assert status.ready is False

    def test_raw_status_preserved(self):
        assert decode_status(0x85).raw_status == 0x85

    def test_negative_return_code_gives_error_record(self):
        status = decode_status(0, return_code=-5)
        assert status.error is True
        assert status.connected is False
        assert status.online is False
        assert status.ready is False
        assert status.printing is False
        assert status.paper_out is False
        assert status.return_code == -5
        assert status.error_message == "Printer error (code -5)"

    def test_error_record_ignores_status_bits(self):
        status = decode_status(0x07, return_code=-1, error_message="Device not connected")
        assert status.paper_near_end is False
        assert status.raw_status == 0x07
        assert status.error_message == "Device not connected"

    def test_positive_return_code_still_decodes(self):
        status = decode_status(0x02, return_code=3)
        assert status.cover_open is True
        assert status.connected is True

    def test_connected_flag_from_transport(self):
        assert decode_status(0, connected=False).connected is False
        assert decode_status(0, connected=None).connected is True

    def test_from_reply(self):
        status = PrinterStatus.from_reply(StatusReply(status=0x80, return_code=0))
        assert status.printing is True

    def test_conditions(self):
        assert decode_status(0).conditions() == []
        assert decode_status(0x85).conditions() == ["paper near end", "paper out", "printing"]
        assert decode_status(0, return_code=-5).conditions() == ["disconnected"]

    def test_str(self):
        assert str(decode_status(0)) == "Status: ready (0x00)"
        assert str(decode_status(0x02)) == "Status: cover open (0x02)"
        assert "offline" in str(decode_status(0, return_code=-5))


class TestToBytes:
    """Test payload normalization."""

    def test_none(self):
        assert to_bytes(None) == b""

    def test_bytes_types(self):
        assert to_bytes(b"\x01\x02") == b"\x01\x02"
        assert to_bytes(bytearray(b"\x03")) == b"\x03"
        assert to_bytes(memoryview(b"\x04")) == b"\x04"

    def test_string_one_byte_per_char(self):
        assert to_bytes("A\x00\xff") == b"A\x00\xff"

    def test_int_sequence_masked(self):
        assert to_bytes([1, 255, 256]) == b"\x01\xff\x00"


class TestInformationResult:
    """Test generic information payloads."""

    def test_decode_info_passthrough(self):
        result = decode_info(11, "1.02", 5000)
        assert result == InformationResult(info_id=11, data=b"1.02", timeout=5000)

    def test_text_stops_at_nul(self):
        result = InformationResult(info_id=2, data=b"NP-3511\x00garbage")
        assert result.text == "NP-3511"

    def test_hex(self):
        assert InformationResult(info_id=2, data=b"\x01\xab").hex == "01ab"

    def test_info_ids(self):
        assert InfoId.MODEL_NAME == 2
        assert InfoId.MILEAGE == 9
        assert InfoId.DEVICE_INFO == 10
        assert InfoId.FIRMWARE_VERSION == 11
        assert InfoId.SERIAL_NUMBER == 12


class TestMileageCounter:
    """Test mileage payload parsing."""

    def test_decodes_packed_counters(self):
        data = struct.pack("<4I", 123456, 7890123, 4567, 0xDEADBEEF)
        counter = decode_mileage(data)

        assert counter.supported is True
        assert counter.dot_lines_energizing == 123456
        assert counter.dot_lines_fed == 7890123
        assert counter.cuts == 4567
        assert counter.reserved == 0xDEADBEEF
        assert counter.raw == data.hex()

    def test_max_values(self):
        counter = decode_mileage(b"\xff" * 16)
        assert counter.dot_lines_energizing == 0xFFFFFFFF
        assert counter.cuts == 0xFFFFFFFF

    def test_string_payload(self):
        data = struct.pack("<4I", 1, 2, 3, 4)
        counter = decode_mileage(data.decode("latin-1"))
        assert (counter.dot_lines_energizing, counter.dot_lines_fed, counter.cuts) == (1, 2, 3)

    def test_longer_payload_uses_first_16_bytes(self):
        data = struct.pack("<4I", 10, 20, 30, 40) + b"\x99\x99"
        counter = decode_mileage(data)
        assert counter.reserved == 40

    def test_empty_payload_unsupported(self):
        counter = decode_mileage(b"")
        assert counter.supported is False
        assert "not supported" in counter.message

    def test_empty_list_unsupported(self):
        assert decode_mileage([]).supported is False

    @pytest.mark.parametrize("length", [1, 8, 15])
    def test_short_payload_raises(self, length):
        with pytest.raises(MalformedPayloadError, match=f"got {length} bytes") as exc_info:
            decode_mileage(b"\x01" * length)
        assert exc_info.value.length == length
        assert exc_info.value.raw == b"\x01" * length
        assert "01" * length in str(exc_info.value)

    def test_paper_fed_mm(self):
        counter = MileageCounter(supported=True, dot_lines_fed=8000)
        assert counter.paper_fed_mm() == 1000.0
        assert counter.paper_fed_mm(dots_per_mm=12) == pytest.approx(666.666, rel=1e-3)

    def test_str(self):
        assert str(decode_mileage(b"")) == "Mileage: not supported"
        assert "cuts=3" in str(decode_mileage(struct.pack("<4I", 1, 2, 3, 4)))
