"""
Transport Contract for Nippon Printers.

A transport moves bytes and queries between a NipponPrinter session and the
driver service. Results are a discriminated Ok | Err pair; status queries
always return a StatusReply because a failed status query is reported as
data, not as an error.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class Ok:
    """Successful driver call."""
    return_code: int = 0
    job_id: Optional[int] = None
    data: bytes = b""
    timeout: Optional[int] = None


@dataclass(frozen=True)
class Err:
    """Failed driver call."""
    return_code: int
    message: str = ""


TransportResult = Union[Ok, Err]


@dataclass(frozen=True)
class StatusReply:
    """Raw NGetStatus result."""
    status: int = 0
    return_code: int = 0
    connected: Optional[bool] = None
    error_message: Optional[str] = None


def result_from_code(return_code: int, **fields) -> TransportResult:
    """Map a driver return code (0 = success) to Ok or Err."""
    if return_code == 0:
        return Ok(return_code=return_code, **fields)
    return Err(return_code=return_code)


class Transport(ABC):
    """Driver service used by NipponPrinter."""

    @abstractmethod
    async def enumerate(self) -> list[str]:
        """List available printer names."""

    @abstractmethod
    async def open(self, name: str) -> TransportResult:
        """Open a printer handle."""

    @abstractmethod
    async def close(self, name: str) -> TransportResult:
        """Close a printer handle."""

    @abstractmethod
    async def transmit(self, name: str, data: bytes) -> TransportResult:
        """Send a command stream. Ok carries the job ID."""

    @abstractmethod
    async def query_status(self, name: str) -> StatusReply:
        """Read the status word."""

    @abstractmethod
    async def query_info(self, name: str, info_id: int) -> TransportResult:
        """Read an information payload. Ok carries data and timeout."""

    @abstractmethod
    async def reset(self, name: str) -> TransportResult:
        """Reset the printer."""

    @abstractmethod
    async def start_doc(self, name: str) -> TransportResult:
        """Start a document. Ok carries the job ID."""

    @abstractmethod
    async def end_doc(self, name: str) -> TransportResult:
        """End the current document."""

    @abstractmethod
    async def cancel_doc(self, name: str) -> TransportResult:
        """Cancel the current document."""


@dataclass
class MemoryTransport(Transport):
    """
    In-memory loopback transport.

    Records every call and transmitted stream. Replies are configured up
    front: `failures` maps an operation name to the return code it fails
    with, `info` maps information IDs to payloads.
    """

    printers: list[str] = field(default_factory=lambda: ["Loopback"])
    status: int = 0
    status_code: int = 0
    connected: Optional[bool] = None
    info: dict[int, bytes] = field(default_factory=dict)
    info_timeout: int = 5000
    failures: dict[str, int] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    transmitted: list[bytes] = field(default_factory=list)
    _next_job_id: int = field(default=1, init=False, repr=False)

    def _result(self, operation: str, **fields) -> TransportResult:
        code = self.failures.get(operation, 0)
        if code:
            return Err(return_code=code, message=f"{operation} failed")
        return Ok(**fields)

    def _job_id(self) -> int:
        job_id = self._next_job_id
        self._next_job_id += 1
        return job_id

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def enumerate(self) -> list[str]:
        self.calls.append(("enumerate",))
        return list(self.printers)

    async def open(self, name: str) -> TransportResult:
        self.calls.append(("open", name))
        return self._result("open")

    async def close(self, name: str) -> TransportResult:
        self.calls.append(("close", name))
        return self._result("close")

    async def transmit(self, name: str, data: bytes) -> TransportResult:
        self.calls.append(("transmit", name, data))
        result = self._result("transmit", job_id=self._job_id())
        if isinstance(result, Ok):
            self.transmitted.append(bytes(data))
        return result

    async def query_status(self, name: str) -> StatusReply:
        self.calls.append(("query_status", name))
        return StatusReply(
            status=self.status,
            return_code=self.status_code,
            connected=self.connected,
        )

    async def query_info(self, name: str, info_id: int) -> TransportResult:
        self.calls.append(("query_info", name, info_id))
        return self._result(
            "query_info",
            data=self.info.get(info_id, b""),
            timeout=self.info_timeout,
        )

    async def reset(self, name: str) -> TransportResult:
        self.calls.append(("reset", name))
        return self._result("reset")

    async def start_doc(self, name: str) -> TransportResult:
        self.calls.append(("start_doc", name))
        return self._result("start_doc", job_id=self._job_id())

    async def end_doc(self, name: str) -> TransportResult:
        self.calls.append(("end_doc", name))
        return self._result("end_doc")

    async def cancel_doc(self, name: str) -> TransportResult:
        self.calls.append(("cancel_doc", name))
        return self._result("cancel_doc")
