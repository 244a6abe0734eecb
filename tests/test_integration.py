"""
Integration tests for Nippon printers.

These tests require a Windows host with NPrinterLib.dll and a connected
printer. By default, tests marked with @pytest.mark.hardware are skipped.
To run them, use:

    pytest tests/ -m hardware --printer="NPI Integration Driver"
"""

import pytest

from nipponprinter import NipponPrinter, PrintOptions, Receipt, ReceiptItem


# Fixtures (printer_name, hardware_printer) are defined in conftest.py


class TestDiscovery:
    """Tests for printer enumeration."""

    @pytest.mark.hardware
    @pytest.mark.asyncio
    async def test_enumerate_lists_printer(self, printer_name):
        """The printer given on the command line is known to the driver."""
        printers = await NipponPrinter.enumerate_printers()
        assert printer_name in printers


class TestQueries:
    """Tests for status and information queries."""

    @pytest.mark.hardware
    @pytest.mark.asyncio
    async def test_status(self, hardware_printer):
        status = await hardware_printer.get_status()
        assert status.connected is True
        print(f"\n{status}")

    @pytest.mark.hardware
    @pytest.mark.asyncio
    async def test_firmware_version(self, hardware_printer):
        version = await hardware_printer.get_firmware_version()
        assert version
        print(f"\nFirmware: {version}")

    @pytest.mark.hardware
    @pytest.mark.asyncio
    async def test_mileage(self, hardware_printer):
        """Mileage either decodes or reports the model doesn't support it."""
        counter = await hardware_printer.get_mileage()
        print(f"\n{counter}")
        if counter.supported:
            assert len(counter.raw) == 32


class TestPrinting:
    """Tests that put paper through the printer."""

    @pytest.mark.hardware
    @pytest.mark.asyncio
    async def test_print_text(self, hardware_printer):
        result = await hardware_printer.print_text(
            "Integration test", PrintOptions(align="center", bold=True, feed=True, cut="partial")
        )
        assert result.success is True

    @pytest.mark.hardware
    @pytest.mark.asyncio
    async def test_print_receipt(self, hardware_printer):
        receipt = Receipt(
            header="TEST STORE",
            subheader="Integration",
            items=[ReceiptItem("Coffee", 3.5), ReceiptItem("Bagel", 2.25)],
            total=5.75,
            footer="Thank you!",
        )
        result = await hardware_printer.print_receipt(receipt)
        assert result.success is True
