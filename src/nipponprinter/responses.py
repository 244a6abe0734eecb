"""
Response Parsers for Nippon Printer Status and Information Queries.

This module decodes the single-byte status word returned by NGetStatus and
the payloads returned by NGetInformation.

Status word bits:
    Bit  Mask  Meaning
    0    0x01  Paper near end
    1    0x02  Cover open
    2    0x04  Paper out
    3    0x08  Head overheat
    4-6        Reserved (ignored)
    7    0x80  Printing (busy, not an error)
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Union

from .exceptions import MalformedPayloadError

PAPER_NEAR_END = 0x01
COVER_OPEN = 0x02
PAPER_OUT = 0x04
OVERHEAT = 0x08
PRINTING = 0x80
ERROR_MASK = 0x0F


class InfoId(IntEnum):
    """Information IDs understood by NGetInformation."""
    MODEL_NAME = 2
    FIRMWARE = 3
    BOOT_VERSION = 4
    DOT_LINES_ENERGIZING = 6
    DOT_LINES_FED = 7
    CUTS = 8
    MILEAGE = 9  # User maintenance counter (optional per model)
    DEVICE_INFO = 10
    FIRMWARE_VERSION = 11
    SERIAL_NUMBER = 12
    NV_REGISTRATION = 13
    FIRMWARE_CHECKSUM = 28
    COMMUNICATION_STATUS = 31
    LOG_DATA = 41


BytesLike = Union[bytes, bytearray, memoryview, str, Iterable[int], None]


def to_bytes(data: BytesLike) -> bytes:
    """
    Normalize driver data to bytes.

    Strings are treated as one byte per character (the driver hands back
    raw buffers as narrow strings); integer sequences are masked to bytes.
    """
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return bytes(ord(c) & 0xFF for c in data)
    return bytes(int(b) & 0xFF for b in data)


@dataclass
class PrinterStatus:
    """Decoded printer status."""

    raw_status: int
    paper_near_end: bool = False
    cover_open: bool = False
    paper_out: bool = False
    overheat: bool = False
    printing: bool = False
    ready: bool = False
    online: bool = False
    error: bool = False
    connected: bool = True
    return_code: int = 0
    error_message: Optional[str] = None

    @classmethod
    def parse(
        cls,
        raw: int,
        return_code: int = 0,
        connected: Optional[bool] = None,
        error_message: Optional[str] = None,
    ) -> "PrinterStatus":
        """
        Decode a status word.

        Args:
            raw: Status value reported by the driver
            return_code: Driver return code; negative means the query failed
            connected: Connection flag reported by the driver, if any
            error_message: Driver-provided error text, if any

        Returns:
            PrinterStatus instance (never raises)
        """
        if return_code < 0:
            return cls(
                raw_status=raw,
                connected=False,
                error=True,
                return_code=return_code,
                error_message=error_message or f"Printer error (code {return_code})",
            )

        printing = bool(raw & PRINTING)
        has_error = (raw & ERROR_MASK) != 0

        return cls(
            raw_status=raw,
            paper_near_end=bool(raw & PAPER_NEAR_END),
            cover_open=bool(raw & COVER_OPEN),
            paper_out=bool(raw & PAPER_OUT),
            overheat=bool(raw & OVERHEAT),
            printing=printing,
            ready=not has_error and not printing,
            online=not has_error,
            error=has_error,
            connected=connected is not False,
            return_code=return_code,
            error_message=error_message,
        )

    @classmethod
    def from_reply(cls, reply) -> "PrinterStatus":
        """Decode a transport StatusReply."""
        return cls.parse(
            reply.status,
            return_code=reply.return_code,
            connected=reply.connected,
            error_message=reply.error_message,
        )

    def conditions(self) -> list[str]:
        """Names of the active conditions."""
        if not self.connected:
            return ["disconnected"]
        active = []
        if self.paper_near_end:
            active.append("paper near end")
        if self.cover_open:
            active.append("cover open")
        if self.paper_out:
            active.append("paper out")
        if self.overheat:
            active.append("overheat")
        if self.printing:
            active.append("printing")
        return active

    def __str__(self) -> str:
        if not self.connected:
            return f"Status: offline ({self.error_message})"
        state = "ready" if self.ready else ", ".join(self.conditions())
        return f"Status: {state} (0x{self.raw_status:02X})"


def decode_status(
    raw: int,
    return_code: int = 0,
    connected: Optional[bool] = None,
    error_message: Optional[str] = None,
) -> PrinterStatus:
    """Decode a status word. See PrinterStatus.parse."""
    return PrinterStatus.parse(raw, return_code, connected, error_message)


@dataclass
class InformationResult:
    """Raw NGetInformation result."""

    info_id: int
    data: bytes = b""
    timeout: Optional[int] = None

    @property
    def text(self) -> str:
        """Payload as a NUL-terminated string."""
        return self.data.split(b"\x00", 1)[0].decode("latin-1")

    @property
    def hex(self) -> str:
        """Payload as a hex string."""
        return self.data.hex()


def decode_info(info_id: int, data: BytesLike, timeout: Optional[int] = None) -> InformationResult:
    """Wrap an information payload without structural parsing."""
    return InformationResult(info_id=info_id, data=to_bytes(data), timeout=timeout)


@dataclass
class MileageCounter:
    """
    Parsed user maintenance counter (information ID 9).

    Payload structure (16 bytes, little-endian):
        Offset  Length  Field
        0-3     4       Dot lines energizing the head
        4-7     4       Dot lines fed
        8-11    4       Number of cuts
        12-15   4       Reserved
    """

    supported: bool
    dot_lines_energizing: int = 0
    dot_lines_fed: int = 0
    cuts: int = 0
    reserved: int = 0
    raw: str = ""
    message: Optional[str] = None

    PAYLOAD_SIZE = 16

    @classmethod
    def parse(cls, data: BytesLike) -> "MileageCounter":
        """
        Parse a mileage payload.

        Args:
            data: Raw payload (bytes, narrow string, or int sequence)

        Returns:
            MileageCounter; supported=False for an empty payload

        Raises:
            MalformedPayloadError: If the payload is shorter than 16 bytes
        """
        buffer = to_bytes(data)

        # Some models do not implement the counter
        if not buffer:
            return cls(
                supported=False,
                message="Mileage counter not supported by this printer model",
            )

        if len(buffer) < cls.PAYLOAD_SIZE:
            raise MalformedPayloadError(
                f"Expected {cls.PAYLOAD_SIZE} bytes for mileage data, "
                f"got {len(buffer)} bytes. Data: {buffer.hex()}",
                length=len(buffer),
                raw=buffer,
            )

        energizing, fed, cuts, reserved = struct.unpack_from("<4I", buffer, 0)

        return cls(
            supported=True,
            dot_lines_energizing=energizing,
            dot_lines_fed=fed,
            cuts=cuts,
            reserved=reserved,
            raw=buffer.hex(),
        )

    def paper_fed_mm(self, dots_per_mm: int = 8) -> float:
        """Approximate paper fed in millimeters (8 dots/mm = 203 DPI)."""
        return self.dot_lines_fed / dots_per_mm

    def __str__(self) -> str:
        if not self.supported:
            return "Mileage: not supported"
        return (
            f"Mileage(\n"
            f"  dot_lines_energizing={self.dot_lines_energizing},\n"
            f"  dot_lines_fed={self.dot_lines_fed},\n"
            f"  cuts={self.cuts},\n"
            f"  reserved={self.reserved}\n"
            f")"
        )


def decode_mileage(data: BytesLike) -> MileageCounter:
    """Decode an information ID 9 payload. See MileageCounter.parse."""
    return MileageCounter.parse(data)
