"""Exception hierarchy for the Nippon printer driver."""

from typing import Optional


class PrinterError(Exception):
    """Base exception for all printer errors."""

    pass


class SessionStateError(PrinterError):
    """Operation not allowed in the current session state."""

    pass


class NotOpenError(SessionStateError):
    """Operation requires an open printer session."""

    def __init__(self, message: str = "Printer not open"):
        super().__init__(message)


class AlreadyOpenError(SessionStateError):
    """Session already holds an open printer."""

    pass


class TransportError(PrinterError):
    """
    Driver reported a failure.

    Carries the driver return code so callers can diagnose the failure.
    """

    def __init__(self, message: str, return_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.return_code = return_code


class OpenError(TransportError):
    """Error opening a printer."""

    pass


class TransmitError(TransportError):
    """Error sending print data."""

    pass


class StatusQueryError(TransportError):
    """Error querying printer status."""

    pass


class InfoQueryError(TransportError):
    """Error querying printer information."""

    pass


class CommandError(TransportError):
    """Error running a control command (reset, document start/end/cancel)."""

    pass


class MalformedPayloadError(PrinterError):
    """Fixed-layout payload has an unexpected size."""

    def __init__(self, message: str, length: int = 0, raw: bytes = b""):
        super().__init__(message)
        self.length = length
        self.raw = raw


class DiscoveryError(PrinterError):
    """Printer enumeration failed."""

    pass


class DriverUnavailableError(PrinterError):
    """The native printer driver library could not be loaded."""

    pass
