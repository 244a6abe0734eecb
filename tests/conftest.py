"""
Pytest configuration for Nippon printer tests.

Provides loopback fixtures and command-line options for hardware tests.
"""

import pytest
import pytest_asyncio

from nipponprinter import MemoryTransport, NipponPrinter


def pytest_addoption(parser):
    """Add command-line options for hardware tests."""
    parser.addoption(
        "--printer",
        action="store",
        default=None,
        help="Printer name for hardware tests",
    )


@pytest.fixture
def printer_name(request):
    """Get the printer name from command line."""
    name = request.config.getoption("--printer")
    if name is None:
        pytest.skip("No printer name provided (use --printer=NAME)")
    return name


@pytest.fixture
def transport():
    """Loopback transport that records every call."""
    return MemoryTransport(printers=["NPI Integration Driver", "Microsoft Print to PDF"])


@pytest.fixture
def printer(transport):
    """Closed printer session on the loopback transport."""
    return NipponPrinter(transport)


@pytest_asyncio.fixture
async def open_printer(printer, transport):
    """Printer session opened on DEV1, with the open call cleared from the log."""
    await printer.open("DEV1")
    transport.calls.clear()

    yield printer

    await printer.close()


@pytest_asyncio.fixture
async def hardware_printer(printer_name):
    """Provide an opened printer on real hardware."""
    printer = NipponPrinter()
    printer.set_debug(True)

    try:
        await printer.open(printer_name)
    except Exception as e:
        pytest.skip(f"Could not open printer {printer_name}: {e}")

    yield printer

    await printer.close()
