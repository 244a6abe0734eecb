"""Nippon Thermal Receipt Printer Driver."""

__version__ = "0.1.0"

from .escpos import (
    Align,
    CutMode,
    ESCPOSCommand,
    PrintOptions,
    Receipt,
    ReceiptItem,
    SizeClass,
    encode_receipt,
    encode_text,
    format_line,
    select_size_class,
)
from .exceptions import (
    AlreadyOpenError,
    CommandError,
    DiscoveryError,
    DriverUnavailableError,
    InfoQueryError,
    MalformedPayloadError,
    NotOpenError,
    OpenError,
    PrinterError,
    StatusQueryError,
    TransmitError,
    TransportError,
)
from .nprinterlib import DriverTransport
from .printer import DocumentInfo, NipponPrinter, PrintResult, quick_print, select_printer
from .responses import (
    InfoId,
    InformationResult,
    MileageCounter,
    PrinterStatus,
    decode_info,
    decode_mileage,
    decode_status,
)
from .transport import Err, MemoryTransport, Ok, StatusReply, Transport

__all__ = [
    "NipponPrinter",
    "PrintResult",
    "DocumentInfo",
    "quick_print",
    "select_printer",
    "Transport",
    "DriverTransport",
    "MemoryTransport",
    "Ok",
    "Err",
    "StatusReply",
    "ESCPOSCommand",
    "PrintOptions",
    "Receipt",
    "ReceiptItem",
    "Align",
    "SizeClass",
    "CutMode",
    "encode_text",
    "encode_receipt",
    "format_line",
    "select_size_class",
    "PrinterStatus",
    "InformationResult",
    "MileageCounter",
    "InfoId",
    "decode_status",
    "decode_info",
    "decode_mileage",
    "PrinterError",
    "NotOpenError",
    "AlreadyOpenError",
    "TransportError",
    "OpenError",
    "TransmitError",
    "StatusQueryError",
    "InfoQueryError",
    "CommandError",
    "MalformedPayloadError",
    "DiscoveryError",
    "DriverUnavailableError",
]
