"""
High-Level Nippon Printer Interface.

Provides an async session API for Nippon thermal receipt printers: open a
printer, send raw or formatted data, and read status and device information.

One NipponPrinter holds at most one open printer. Operations on a session
are serialized, so concurrent callers run in program order.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .escpos import PrintOptions, Receipt, encode_receipt, encode_text
from .exceptions import (
    AlreadyOpenError,
    CommandError,
    DiscoveryError,
    InfoQueryError,
    NotOpenError,
    OpenError,
    PrinterError,
    StatusQueryError,
    TransmitError,
    TransportError,
)
from .responses import (
    InfoId,
    InformationResult,
    MileageCounter,
    PrinterStatus,
    decode_info,
    decode_mileage,
)
from .transport import Err, Ok, Transport, TransportResult

# Printer name fragments preferred by select_printer()
PREFERRED_PRINTERS = ("NPI Integration", "Nippon")

# Printer name fragments skipped by select_printer()
EXCLUDED_PRINTERS = ("BIXOLON", "OneNote")


@dataclass
class SessionState:
    """Open/closed state of one printer session."""
    name: Optional[str] = None
    is_open: bool = False


@dataclass
class PrintResult:
    """Result of a successful print."""
    job_id: Optional[int]
    return_code: int = 0
    success: bool = True


@dataclass
class DocumentInfo:
    """Result of start_doc()."""
    job_id: Optional[int]


def select_printer(
    printers: Sequence[str],
    preferred: Sequence[str] = PREFERRED_PRINTERS,
    exclude: Sequence[str] = EXCLUDED_PRINTERS,
) -> Optional[str]:
    """
    Pick a printer from an enumeration result.

    Printers containing an excluded name fragment are skipped unless every
    printer is excluded. Returns the first remaining printer containing a
    preferred name fragment (checked in order), else the first remaining
    printer, else None.
    """
    candidates = [
        name for name in printers if not any(fragment in name for fragment in exclude)
    ]
    if not candidates:
        candidates = list(printers)

    for fragment in preferred:
        for name in candidates:
            if fragment in name:
                return name
    return candidates[0] if candidates else None


def _default_transport() -> Transport:
    from .nprinterlib import DriverTransport

    return DriverTransport()


class NipponPrinter:
    """High-level interface to a Nippon thermal printer."""

    def __init__(self, transport: Optional[Transport] = None, encoding: str = "utf-8"):
        """
        Initialize a closed printer session.

        Args:
            transport: Driver transport (defaults to NPrinterLib.dll)
            encoding: Codec used for text in print_text/print_receipt
        """
        self.transport = transport if transport is not None else _default_transport()
        self.encoding = encoding
        self.state = SessionState()
        self._lock = asyncio.Lock()
        self._debug = False

    def set_debug(self, enabled: bool):
        """Enable/disable debug output."""
        self._debug = enabled

    def _log(self, message: str):
        """Print debug message if enabled."""
        if self._debug:
            print(f"[NP] {message}")

    @property
    def name(self) -> Optional[str]:
        """Name of the open printer, or None."""
        return self.state.name

    @property
    def is_open(self) -> bool:
        """Check if a printer is open."""
        return self.state.is_open

    def _require_open(self) -> str:
        if not self.state.is_open or self.state.name is None:
            raise NotOpenError()
        return self.state.name

    async def _call(self, error_cls: type, action: str, coro) -> TransportResult:
        """Await a transport call, wrapping transport exceptions."""
        try:
            return await coro
        except PrinterError:
            raise
        except Exception as e:
            raise error_cls(f"Failed to {action}: {e}") from e

    @staticmethod
    def _check(result: TransportResult, error_cls: type, action: str) -> Ok:
        """Return the Ok result or raise error_cls with the driver code."""
        if isinstance(result, Err):
            detail = f": {result.message}" if result.message else ""
            raise error_cls(
                f"{action} failed with code {result.return_code}{detail}",
                return_code=result.return_code,
            )
        return result

    # ---- Discovery ----

    @classmethod
    async def enumerate_printers(cls, transport: Optional[Transport] = None) -> list[str]:
        """List printers known to the driver."""
        transport = transport if transport is not None else _default_transport()
        try:
            return await transport.enumerate()
        except DiscoveryError:
            raise
        except Exception as e:
            raise DiscoveryError(f"Failed to enumerate printers: {e}") from e

    # ---- Lifecycle ----

    async def open(self, name: str) -> bool:
        """
        Open a printer.

        Args:
            name: Printer name as reported by enumerate_printers()

        Returns:
            True when the printer was opened

        Raises:
            AlreadyOpenError: If this session already has a printer open
            OpenError: If the driver refuses to open the printer
        """
        async with self._lock:
            if self.state.is_open:
                raise AlreadyOpenError(
                    f"Session already open on {self.state.name}; close it first"
                )

            self._log(f"Opening {name}...")
            result = await self._call(OpenError, "open printer", self.transport.open(name))
            self._check(result, OpenError, "Open")

            self.state.name = name
            self.state.is_open = True
            self._log("Opened")
            return True

    async def close(self) -> bool:
        """
        Close the printer.

        Closing a session that is not open is a no-op and returns True.
        The session is closed afterwards even if the driver reports failure.
        """
        async with self._lock:
            if not self.state.is_open or self.state.name is None:
                return True

            name = self.state.name
            try:
                result = await self._call(
                    TransportError, "close printer", self.transport.close(name)
                )
            finally:
                self.state.is_open = False
                self.state.name = None

            self._log(f"Closed {name}")
            return isinstance(result, Ok)

    # ---- Printing ----

    async def print(self, data: Union[bytes, bytearray, str]) -> PrintResult:
        """
        Send raw print data (may contain ESC/POS commands).

        Args:
            data: Command stream; strings are encoded with the session codec

        Returns:
            PrintResult with the driver job ID

        Raises:
            NotOpenError: If no printer is open
            TransmitError: If the driver rejects the data
        """
        async with self._lock:
            return await self._transmit(data)

    async def _transmit(self, data: Union[bytes, bytearray, str]) -> PrintResult:
        name = self._require_open()
        if isinstance(data, str):
            data = data.encode(self.encoding)
        data = bytes(data)

        preview = data.hex() if len(data) < 50 else data[:50].hex() + "..."
        self._log(f"TX ({len(data)} bytes): {preview}")

        result = await self._call(TransmitError, "print", self.transport.transmit(name, data))
        ok = self._check(result, TransmitError, "Print")
        self._log(f"Print job {ok.job_id} accepted")
        return PrintResult(job_id=ok.job_id, return_code=ok.return_code)

    async def print_text(
        self,
        text: str,
        options: Optional[PrintOptions] = None,
        **kwargs,
    ) -> PrintResult:
        """
        Print a styled line of text.

        Args:
            text: Text to print
            options: Style options; keyword arguments build one if omitted

        Returns:
            PrintResult with the driver job ID
        """
        async with self._lock:
            self._require_open()
            if options is None:
                options = PrintOptions(**kwargs)
            elif kwargs:
                raise TypeError("Pass either options or keyword arguments, not both")
            return await self._transmit(encode_text(text, options, self.encoding))

    async def print_receipt(self, receipt: Union[Receipt, dict]) -> PrintResult:
        """Print a receipt document as one print job."""
        async with self._lock:
            self._require_open()
            if isinstance(receipt, dict):
                receipt = Receipt.from_dict(receipt)
            return await self._transmit(encode_receipt(receipt, self.encoding))

    # ---- Status and Information ----

    async def get_status(self) -> PrinterStatus:
        """
        Query printer status.

        A failed status query (negative driver code, e.g. a disconnected
        printer) is returned as a status with error=True and
        connected=False rather than raised.
        """
        async with self._lock:
            name = self._require_open()
            reply = await self._call(
                StatusQueryError, "get status", self.transport.query_status(name)
            )
            status = PrinterStatus.from_reply(reply)
            self._log(str(status))
            return status

    async def get_information(self, info_id: int) -> InformationResult:
        """
        Query a printer information ID.

        Args:
            info_id: Information ID (0-255), see InfoId

        Raises:
            NotOpenError: If no printer is open
            ValueError: If info_id is out of range
            InfoQueryError: If the driver reports failure
        """
        async with self._lock:
            name = self._require_open()
            if not 0 <= int(info_id) <= 255:
                raise ValueError(f"Information ID must be 0-255, got {info_id}")

            result = await self._call(
                InfoQueryError, "get information", self.transport.query_info(name, int(info_id))
            )
            ok = self._check(result, InfoQueryError, "Get information")
            info = decode_info(int(info_id), ok.data, ok.timeout)
            self._log(f"Info {int(info_id)}: {info.hex}")
            return info

    async def get_device_info(self) -> str:
        """Get device information (info ID 10)."""
        return (await self.get_information(InfoId.DEVICE_INFO)).text

    async def get_firmware_version(self) -> str:
        """Get firmware version (info ID 11)."""
        return (await self.get_information(InfoId.FIRMWARE_VERSION)).text

    async def get_serial_number(self) -> str:
        """Get serial number (info ID 12)."""
        return (await self.get_information(InfoId.SERIAL_NUMBER)).text

    async def get_model_name(self) -> str:
        """Get model name (info ID 2)."""
        return (await self.get_information(InfoId.MODEL_NAME)).text

    async def get_mileage(self) -> MileageCounter:
        """
        Get the user maintenance counter (info ID 9).

        Returns supported=False on models without the counter.

        Raises:
            MalformedPayloadError: If the payload is truncated
        """
        info = await self.get_information(InfoId.MILEAGE)
        return decode_mileage(info.data)

    # ---- Control ----

    async def reset(self) -> bool:
        """Reset the printer."""
        return await self._command("reset", "reset printer")

    async def end_doc(self) -> bool:
        """End the current document."""
        return await self._command("end_doc", "end document")

    async def cancel_doc(self) -> bool:
        """Cancel the current document."""
        return await self._command("cancel_doc", "cancel document")

    async def start_doc(self) -> DocumentInfo:
        """Start a multi-command document."""
        async with self._lock:
            name = self._require_open()
            result = await self._call(
                CommandError, "start document", self.transport.start_doc(name)
            )
            ok = self._check(result, CommandError, "Start doc")
            self._log(f"Document {ok.job_id} started")
            return DocumentInfo(job_id=ok.job_id)

    async def _command(self, operation: str, action: str) -> bool:
        async with self._lock:
            name = self._require_open()
            call = getattr(self.transport, operation)
            result = await self._call(CommandError, action, call(name))
            self._check(result, CommandError, action.capitalize())
            self._log(f"{action.capitalize()} done")
            return True


async def quick_print(
    text: str,
    printer_name: Optional[str] = None,
    transport: Optional[Transport] = None,
    **options,
) -> PrintResult:
    """
    Convenience function to print one line of text.

    Args:
        text: Text to print
        printer_name: Printer to use (default: select_printer() on enumeration)
        transport: Driver transport (default: NPrinterLib.dll)
        **options: PrintOptions fields

    Raises:
        OpenError: If no printer is available or it cannot be opened
    """
    printer = NipponPrinter(transport)

    if printer_name is None:
        printer_name = select_printer(await NipponPrinter.enumerate_printers(printer.transport))
        if printer_name is None:
            raise OpenError("No printers found")

    try:
        await printer.open(printer_name)
        return await printer.print_text(text, **options)
    finally:
        await printer.close()
