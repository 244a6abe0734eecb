"""
Command-Line Interface for Nippon Printers.

Usage:
    nippon-printer list               - List printers known to the driver
    nippon-printer status             - Show printer status
    nippon-printer info ID            - Query an information ID
    nippon-printer device-info        - Show model, firmware and serial number
    nippon-printer mileage            - Show the maintenance counter
    nippon-printer text TEXT          - Print a line of text
    nippon-printer receipt FILE       - Print a receipt from a JSON file
    nippon-printer raw HEX            - Send raw command bytes
"""

import asyncio
import json
import re
import sys
from typing import Awaitable, Callable, Optional

import click

from .escpos import Receipt
from .exceptions import (
    DiscoveryError,
    InfoQueryError,
    MalformedPayloadError,
    OpenError,
    PrinterError,
    TransmitError,
)
from .nprinterlib import DEFAULT_LIBRARY, DriverTransport
from .printer import NipponPrinter, select_printer
from .responses import InfoId
from .transport import MemoryTransport, Transport

# Hex byte string, optionally separated by spaces or colons: "1b40", "1b 40", "1b:40"
HEX_DATA_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}[\s:]?)+$")

DRY_RUN_PRINTER = "Loopback"


def validate_hex_data(ctx, param, value):
    """Validate and decode a hex byte string.

    Args:
        ctx: Click context
        param: Click parameter
        value: Hex string to validate

    Returns:
        Decoded bytes

    Raises:
        click.BadParameter: If the value is not a sequence of hex byte pairs
    """
    if value is None:
        return None
    value = value.strip()
    if not HEX_DATA_PATTERN.match(value):
        raise click.BadParameter(
            f"Invalid hex data: '{value}'. Expected byte pairs like '1b40' or '1b 40'"
        )
    return bytes.fromhex(re.sub(r"[\s:]", "", value))


def make_transport(library: str, dry_run: bool = False) -> Transport:
    """Create the transport for a CLI run."""
    if dry_run:
        return MemoryTransport(printers=[DRY_RUN_PRINTER])
    return DriverTransport(library)


async def choose_printer(transport: Transport) -> Optional[str]:
    """Enumerate printers and let the user select one interactively.

    Returns:
        Selected printer name, or None if no printer was selected
    """
    printers = await NipponPrinter.enumerate_printers(transport)

    if not printers:
        click.echo("No printers found.", err=True)
        return None

    # Auto-select when exactly one printer found
    if len(printers) == 1:
        click.echo(f"Found 1 printer: {printers[0]} - using automatically")
        return printers[0]

    click.echo(f"\nFound {len(printers)} printer(s):\n")
    for i, name in enumerate(printers, 1):
        click.echo(f"  [{i}] {name}")

    suggested = printers.index(select_printer(printers)) + 1
    click.echo()
    while True:
        try:
            choice = click.prompt(
                f"Select printer (1-{len(printers)})", type=int, default=suggested
            )
            if 1 <= choice <= len(printers):
                return printers[choice - 1]
            click.echo(f"Please enter a number between 1 and {len(printers)}", err=True)
        except click.Abort:
            return None


def run_with_printer(
    ctx,
    operation: Callable[[NipponPrinter], Awaitable[None]],
    dry_run: bool = False,
):
    """Open the selected printer, run an operation, and close it.

    Printer errors are reported on stderr and exit with status 1. In dry-run
    mode the loopback transport is used and transmitted bytes are shown.
    """

    async def _run():
        transport = make_transport(ctx.obj["library"], dry_run)
        name = ctx.obj["printer"] or (DRY_RUN_PRINTER if dry_run else None)

        printer = NipponPrinter(transport, encoding=ctx.obj["encoding"])
        printer.set_debug(ctx.obj["debug"])

        try:
            if name is None:
                name = await choose_printer(transport)
                if name is None:
                    sys.exit(1)

            await printer.open(name)
            await operation(printer)

            if dry_run:
                for data in transport.transmitted:
                    click.echo(data.hex())

        except DiscoveryError as e:
            click.echo(f"Discovery error: {e}", err=True)
            sys.exit(1)
        except OpenError as e:
            click.echo(f"Open error: {e}", err=True)
            sys.exit(1)
        except TransmitError as e:
            click.echo(f"Print error: {e}", err=True)
            sys.exit(1)
        except PrinterError as e:
            click.echo(f"Printer error: {e}", err=True)
            sys.exit(1)
        finally:
            await printer.close()

    asyncio.run(_run())


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug output")
@click.option(
    "--printer",
    "-p",
    envvar="NIPPON_PRINTER",
    help="Printer name (if omitted, enumerates and prompts)",
)
@click.option(
    "--library",
    envvar="NIPPON_LIBRARY",
    default=DEFAULT_LIBRARY,
    show_default=True,
    help="Path to the NPrinterLib driver DLL",
)
@click.option("--encoding", default="utf-8", show_default=True, help="Text encoding")
@click.pass_context
def main(ctx, debug, printer, library, encoding):
    """Nippon Thermal Printer CLI."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["printer"] = printer
    ctx.obj["library"] = library
    ctx.obj["encoding"] = encoding


@main.command("list")
@click.pass_context
def list_printers(ctx):
    """List printers known to the driver."""

    async def _list():
        transport = make_transport(ctx.obj["library"])
        try:
            printers = await NipponPrinter.enumerate_printers(transport)
        except PrinterError as e:
            click.echo(f"Discovery error: {e}", err=True)
            sys.exit(1)

        if not printers:
            click.echo("No printers found.")
            return

        click.echo(f"Found {len(printers)} printer(s):\n")
        for name in printers:
            click.echo(f"  {name}")

    asyncio.run(_list())


@main.command()
@click.pass_context
def status(ctx):
    """Show printer status."""

    async def _status(printer: NipponPrinter):
        st = await printer.get_status()
        click.echo(str(st))
        if not st.connected:
            click.echo(f"  Return code: {st.return_code}")
            return
        click.echo(f"  Online:         {st.online}")
        click.echo(f"  Ready:          {st.ready}")
        click.echo(f"  Printing:       {st.printing}")
        click.echo(f"  Paper near end: {st.paper_near_end}")
        click.echo(f"  Cover open:     {st.cover_open}")
        click.echo(f"  Paper out:      {st.paper_out}")
        click.echo(f"  Overheat:       {st.overheat}")

    run_with_printer(ctx, _status)


@main.command()
@click.argument("info_id", type=click.IntRange(0, 255))
@click.pass_context
def info(ctx, info_id):
    """Query information ID INFO_ID (0-255)."""

    async def _info(printer: NipponPrinter):
        result = await printer.get_information(info_id)
        click.echo(f"Info {info_id}:")
        click.echo(f"  Text:    {result.text}")
        click.echo(f"  Hex:     {result.hex}")
        click.echo(f"  Timeout: {result.timeout} ms")

    run_with_printer(ctx, _info)


@main.command("scan-info")
@click.option(
    "--ids",
    default=",".join(str(int(i)) for i in InfoId),
    show_default=True,
    help="Comma-separated information IDs to query",
)
@click.pass_context
def scan_info(ctx, ids):
    """Query a list of information IDs and show what each returns."""
    try:
        id_list = [int(part) for part in ids.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter(f"Invalid ID list: '{ids}'", param_hint="--ids")
    for info_id in id_list:
        if not 0 <= info_id <= 255:
            raise click.BadParameter(f"ID out of range: {info_id}", param_hint="--ids")

    async def _scan(printer: NipponPrinter):
        for info_id in id_list:
            try:
                result = await printer.get_information(info_id)
            except InfoQueryError as e:
                click.echo(f"ID {info_id:3d}: error ({e})")
                continue
            click.echo(f"ID {info_id:3d}: {len(result.data)} bytes  {result.hex[:64]}")

    run_with_printer(ctx, _scan)


@main.command("device-info")
@click.pass_context
def device_info(ctx):
    """Show model name, device info, firmware and serial number."""

    async def _device_info(printer: NipponPrinter):
        queries = [
            ("Model Name", printer.get_model_name),
            ("Device Info", printer.get_device_info),
            ("Firmware Version", printer.get_firmware_version),
            ("Serial Number", printer.get_serial_number),
        ]
        for label, query in queries:
            try:
                value = await query()
            except InfoQueryError:
                value = "not available"
            click.echo(f"{label + ':':<18}{value}")

    run_with_printer(ctx, _device_info)


@main.command()
@click.pass_context
def mileage(ctx):
    """Show the user maintenance counter (information ID 9)."""

    async def _mileage(printer: NipponPrinter):
        try:
            counter = await printer.get_mileage()
        except MalformedPayloadError as e:
            click.echo(f"Malformed mileage data: {e}", err=True)
            sys.exit(1)

        if not counter.supported:
            click.echo(counter.message)
            return

        fed_mm = counter.paper_fed_mm()
        click.echo(f"Dot lines energizing head: {counter.dot_lines_energizing:,}")
        click.echo(f"Dot lines fed:             {counter.dot_lines_fed:,}")
        click.echo(f"Number of cuts:            {counter.cuts:,}")
        click.echo(f"Reserved:                  {counter.reserved}")
        click.echo(f"Raw:                       {counter.raw}")
        click.echo(f"Approx. paper fed:         {fed_mm:.0f} mm ({fed_mm / 1000:.2f} m)")

    run_with_printer(ctx, _mileage)


@main.command("text")
@click.argument("text")
@click.option(
    "--align",
    type=click.Choice(["left", "center", "right"]),
    default="left",
    help="Text alignment",
)
@click.option("--width", type=click.IntRange(1, 8), default=None, help="Width multiplier (1-8)")
@click.option("--height", type=click.IntRange(1, 8), default=None, help="Height multiplier (1-8)")
@click.option("--bold", is_flag=True, help="Bold text")
@click.option("--underline", is_flag=True, help="Underlined text")
@click.option("--feed", type=click.IntRange(min=0), default=0, help="Extra line feeds")
@click.option(
    "--cut",
    type=click.Choice(["full", "partial"]),
    default=None,
    help="Cut paper after printing",
)
@click.option("--no-init", is_flag=True, help="Don't initialize the printer first")
@click.option("--dry-run", is_flag=True, help="Show the command bytes instead of printing")
@click.pass_context
def print_text(ctx, text, align, width, height, bold, underline, feed, cut, no_init, dry_run):
    """Print a line of TEXT."""

    async def _print(printer: NipponPrinter):
        result = await printer.print_text(
            text,
            initialize=not no_init,
            align=align,
            width=width,
            height=height,
            bold=bold,
            underline=underline,
            feed=feed,
            cut=cut,
        )
        click.echo(f"Printed (job {result.job_id})")

    run_with_printer(ctx, _print, dry_run=dry_run)


@main.command()
@click.argument("receipt_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--dry-run", is_flag=True, help="Show the command bytes instead of printing")
@click.pass_context
def receipt(ctx, receipt_file, dry_run):
    """Print a receipt described by a JSON file.

    The file holds an object with optional "header", "subheader",
    "items" (list of {"name", "price"}), "total", "footer" and "width".
    """
    try:
        with open(receipt_file, encoding="utf-8") as f:
            doc = Receipt.from_dict(json.load(f))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        click.echo(f"Invalid receipt file: {e}", err=True)
        sys.exit(1)

    async def _print(printer: NipponPrinter):
        result = await printer.print_receipt(doc)
        click.echo(f"Printed receipt (job {result.job_id})")

    run_with_printer(ctx, _print, dry_run=dry_run)


@main.command()
@click.argument("data", callback=validate_hex_data)
@click.option("--dry-run", is_flag=True, help="Show the command bytes instead of printing")
@click.pass_context
def raw(ctx, data, dry_run):
    """Send raw command bytes given as HEX (e.g. '1b40 0a')."""

    async def _raw(printer: NipponPrinter):
        result = await printer.print(data)
        click.echo(f"Sent {len(data)} bytes (job {result.job_id})")

    run_with_printer(ctx, _raw, dry_run=dry_run)


@main.command()
@click.pass_context
def reset(ctx):
    """Reset the printer."""

    async def _reset(printer: NipponPrinter):
        await printer.reset()
        click.echo("Printer reset")

    run_with_printer(ctx, _reset)


if __name__ == "__main__":
    main()
