"""
NPrinterLib Driver Transport.

Binds the Nippon Windows driver library (NPrinterLib.dll) with ctypes.
Driver calls are blocking, so they run in the default executor.

All driver entry points return an INT where 0 means success.
"""

import asyncio
import ctypes
from typing import Any, Callable, Optional

from .exceptions import DiscoveryError, DriverUnavailableError
from .responses import InfoId
from .transport import Err, StatusReply, Transport, TransportResult, result_from_code

DEFAULT_LIBRARY = "NPrinterLib.dll"

# NGetInformation output buffer and default timeout (ms)
INFO_BUFFER_SIZE = 65536
INFO_TIMEOUT_MS = 5000

# Information IDs with a fixed binary layout. Everything else is read as a
# NUL-terminated string.
FIXED_LENGTH_INFO = {
    InfoId.MILEAGE: 16,
}

DWORD = ctypes.c_ulong
PDWORD = ctypes.POINTER(DWORD)

# name -> argtypes (all return INT)
PROTOTYPES = {
    "NEnumPrinters": [ctypes.c_wchar_p, ctypes.POINTER(ctypes.c_int)],
    "NOpenPrinter": [ctypes.c_wchar_p, ctypes.c_int, ctypes.c_void_p],
    "NClosePrinter": [ctypes.c_wchar_p],
    "NPrint": [ctypes.c_wchar_p, ctypes.c_char_p, DWORD, PDWORD],
    "NGetStatus": [ctypes.c_wchar_p, PDWORD],
    "NGetInformation": [ctypes.c_wchar_p, ctypes.c_ubyte, ctypes.c_void_p, PDWORD],
    "NResetPrinter": [ctypes.c_wchar_p, ctypes.c_void_p],
    "NStartDoc": [ctypes.c_wchar_p, PDWORD],
    "NEndDoc": [ctypes.c_wchar_p],
    "NCancelDoc": [ctypes.c_wchar_p],
}


def parse_printer_list(value: str) -> list[str]:
    """Split the driver's comma-separated printer list, dropping empty names."""
    return [name for name in value.split(",") if name]


class DriverTransport(Transport):
    """Transport backed by NPrinterLib.dll."""

    def __init__(self, library_path: str = DEFAULT_LIBRARY, library: Any = None):
        """
        Args:
            library_path: DLL name or path, loaded on first use
            library: Already-loaded library object (skips loading)
        """
        self.library_path = library_path
        self._lib = library

    def _load(self) -> Any:
        """Load the DLL and declare the function prototypes."""
        if self._lib is not None:
            return self._lib

        loader = getattr(ctypes, "WinDLL", None)
        if loader is None:
            raise DriverUnavailableError(
                f"{self.library_path} requires Windows (ctypes.WinDLL not available)"
            )
        try:
            lib = loader(self.library_path)
        except OSError as e:
            raise DriverUnavailableError(f"Failed to load {self.library_path}: {e}") from e

        for name, argtypes in PROTOTYPES.items():
            func = getattr(lib, name, None)
            if func is None:
                continue
            func.argtypes = argtypes
            func.restype = ctypes.c_int

        self._lib = lib
        return lib

    def _func(self, name: str) -> Callable[..., int]:
        func = getattr(self._load(), name, None)
        if func is None:
            raise DriverUnavailableError(f"{name} function not available")
        return func

    async def _run(self, func: Callable, *args):
        return await asyncio.get_running_loop().run_in_executor(None, func, *args)

    # ---- Blocking driver calls ----

    def _enumerate(self) -> list[str]:
        func = self._func("NEnumPrinters")

        # First call reports the required buffer size
        size = ctypes.c_int(0)
        ret = func(None, ctypes.byref(size))
        if ret != 0 or size.value == 0:
            return []

        buffer = ctypes.create_unicode_buffer(size.value)
        ret = func(buffer, ctypes.byref(size))
        if ret != 0:
            raise DiscoveryError(f"Failed to enumerate printers (code {ret})")
        return parse_printer_list(buffer.value)

    def _simple(self, name: str, printer: str, *args) -> TransportResult:
        return result_from_code(self._func(name)(printer, *args))

    def _with_job(self, name: str, printer: str, *args) -> TransportResult:
        job_id = DWORD(0)
        ret = self._func(name)(printer, *args, ctypes.byref(job_id))
        return result_from_code(ret, job_id=job_id.value)

    def _query_status(self, printer: str) -> StatusReply:
        status = DWORD(0)
        ret = self._func("NGetStatus")(printer, ctypes.byref(status))
        return StatusReply(status=status.value, return_code=ret)

    def _query_info(self, printer: str, info_id: int) -> TransportResult:
        buffer = ctypes.create_string_buffer(INFO_BUFFER_SIZE)
        timeout = DWORD(INFO_TIMEOUT_MS)
        ret = self._func("NGetInformation")(printer, info_id, buffer, ctypes.byref(timeout))
        if ret != 0:
            return Err(return_code=ret)

        length: Optional[int] = FIXED_LENGTH_INFO.get(info_id)
        if length:
            data = buffer.raw[:length]
            # Driver left the buffer untouched: the model has no such payload
            if not data.strip(b"\x00"):
                data = b""
        else:
            data = buffer.value
        return result_from_code(ret, data=data, timeout=timeout.value)

    # ---- Transport interface ----

    async def enumerate(self) -> list[str]:
        return await self._run(self._enumerate)

    async def open(self, name: str) -> TransportResult:
        return await self._run(self._simple, "NOpenPrinter", name, 1, None)

    async def close(self, name: str) -> TransportResult:
        return await self._run(self._simple, "NClosePrinter", name)

    async def transmit(self, name: str, data: bytes) -> TransportResult:
        return await self._run(self._with_job, "NPrint", name, bytes(data), len(data))

    async def query_status(self, name: str) -> StatusReply:
        return await self._run(self._query_status, name)

    async def query_info(self, name: str, info_id: int) -> TransportResult:
        return await self._run(self._query_info, name, info_id)

    async def reset(self, name: str) -> TransportResult:
        return await self._run(self._simple, "NResetPrinter", name, None)

    async def start_doc(self, name: str) -> TransportResult:
        return await self._run(self._with_job, "NStartDoc", name)

    async def end_doc(self, name: str) -> TransportResult:
        return await self._run(self._simple, "NEndDoc", name)

    async def cancel_doc(self, name: str) -> TransportResult:
        return await self._run(self._simple, "NCancelDoc", name)
