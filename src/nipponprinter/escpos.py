"""
ESC/POS Command Encoding for Nippon Thermal Printers.

Builds the byte streams sent to the printer for formatted text and receipts.
Nippon printers speak an ESC/POS dialect: text size is selected with FS !
using three discrete size classes rather than free width/height multipliers.

Command summary:
    ESC @       Initialize printer
    ESC a n     Alignment (0=left, 1=center, 2=right)
    FS ! n      Text size class (0x00 normal, 0x06 double, 0x20 large)
    GS ! n      Character size (receipt header)
    ESC E n     Bold on/off
    ESC - n     Underline on/off
    ESC J n     Feed n dots
    ESC d n     Feed n lines
    ESC i       Full cut
    ESC m       Partial cut
    GS V n      Cut (n=1 partial)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from typing import Optional, Union

ESC = 0x1B
GS = 0x1D
FS = 0x1C
LF = 0x0A


class Align(IntEnum):
    """Text alignment codes for ESC a."""
    LEFT = 0
    CENTER = 1
    RIGHT = 2

    @classmethod
    def from_value(cls, value: Union["Align", str, int, None]) -> "Align":
        """Resolve an alignment name or code. Unknown values mean left."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper(), cls.LEFT)
        if isinstance(value, int) and value in (0, 1, 2):
            return cls(value)
        return cls.LEFT


class SizeClass(IntEnum):
    """Discrete text size classes for FS !."""
    NORMAL = 0x00
    DOUBLE = 0x06  # 2x2
    LARGE = 0x20   # 3x3 and up


class CutMode(IntEnum):
    """Paper cut modes."""
    FULL = 0
    PARTIAL = 1

    @classmethod
    def from_value(cls, value: Union["CutMode", str, bool, None]) -> Optional["CutMode"]:
        """Resolve a cut option. Falsy means no cut; anything but 'full' is partial."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        if isinstance(value, str) and value.strip().lower() == "full":
            return cls.FULL
        return cls.PARTIAL


# Size bounds for FS ! width/height multipliers
MIN_MULTIPLIER = 1
MAX_MULTIPLIER = 8

# Extra feed lines when feed=True
DEFAULT_FEED_LINES = 3

# Dots fed before cutting (ESC J 0x60)
CUT_FEED_DOTS = 0x60

# Receipt layout
DEFAULT_RECEIPT_WIDTH = 48
RECEIPT_END_FEED_LINES = 5
CURRENCY_SYMBOL = "$"
ELLIPSIS = "..."


def select_size_class(width: Optional[int], height: Optional[int]) -> SizeClass:
    """
    Quantize a width/height request into a printer size class.

    LARGE if either dimension is 3 or more, DOUBLE only for exactly 2x2,
    NORMAL for everything else (including 2x1 and 1x2).
    """
    w = width or 1
    h = height or 1
    if max(w, h) >= 3:
        return SizeClass.LARGE
    if w == 2 and h == 2:
        return SizeClass.DOUBLE
    return SizeClass.NORMAL


@dataclass
class PrintOptions:
    """Style options for print_text()."""

    initialize: bool = True
    align: Union[Align, str] = Align.LEFT
    width: Optional[int] = None
    height: Optional[int] = None
    bold: bool = False
    underline: bool = False
    feed: Union[bool, int] = False
    cut: Union[CutMode, str, bool, None] = None

    def __post_init__(self):
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if not MIN_MULTIPLIER <= value <= MAX_MULTIPLIER:
                raise ValueError(
                    f"{name} must be between {MIN_MULTIPLIER} and {MAX_MULTIPLIER}, got {value}"
                )
        if not isinstance(self.feed, bool) and (not isinstance(self.feed, int) or self.feed < 0):
            raise ValueError(f"feed must be a bool or non-negative integer, got {self.feed!r}")

    @property
    def has_size(self) -> bool:
        """True when a size command is requested."""
        return self.width is not None or self.height is not None

    @property
    def feed_lines(self) -> int:
        """Extra line feeds after the text line."""
        if self.feed is True:
            return DEFAULT_FEED_LINES
        if self.feed is False:
            return 0
        return self.feed


@dataclass
class ReceiptItem:
    """A single receipt line item."""

    name: str
    price: Union[int, float, Decimal, str]


@dataclass
class Receipt:
    """Receipt document printed by print_receipt()."""

    header: Optional[str] = None
    subheader: Optional[str] = None
    items: list[ReceiptItem] = field(default_factory=list)
    total: Union[int, float, Decimal, str, None] = None
    footer: Optional[str] = None
    width: int = DEFAULT_RECEIPT_WIDTH

    def __post_init__(self):
        if isinstance(self.width, bool) or not isinstance(self.width, int) or self.width <= 0:
            raise ValueError(f"Receipt width must be a positive integer, got {self.width!r}")
        self.items = [
            item if isinstance(item, ReceiptItem) else ReceiptItem(item["name"], item["price"])
            for item in self.items
        ]

    @classmethod
    def from_dict(cls, data: dict) -> "Receipt":
        """Build a receipt from a JSON-style mapping."""
        return cls(
            header=data.get("header"),
            subheader=data.get("subheader"),
            items=list(data.get("items") or []),
            total=data.get("total"),
            footer=data.get("footer"),
            width=data.get("width", DEFAULT_RECEIPT_WIDTH),
        )


class ESCPOSCommand:
    """
    ESC/POS command builder.

    Accumulates control codes and text, then returns them as one byte string.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._commands: list[bytes] = []

    def clear(self):
        """Clear all queued commands."""
        self._commands.clear()

    def get_commands(self) -> bytes:
        """Get all commands as a single byte string."""
        return b"".join(self._commands)

    def _add_raw(self, data: bytes):
        """Add raw bytes."""
        self._commands.append(data)

    # ---- Setup Commands ----

    def initialize(self):
        """ESC @ - reset printer modes."""
        self._add_raw(bytes([ESC, 0x40]))

    def align(self, align: Align):
        """ESC a n - set justification."""
        self._add_raw(bytes([ESC, 0x61, int(align)]))

    # ---- Text Style Commands ----

    def text_size(self, size: SizeClass):
        """FS ! n - select text size class."""
        self._add_raw(bytes([FS, 0x21, int(size)]))

    def character_size(self, value: int):
        """GS ! n - select character size (high nibble width, low nibble height)."""
        self._add_raw(bytes([GS, 0x21, value & 0xFF]))

    def bold(self, enabled: bool):
        """ESC E n - emphasized mode."""
        self._add_raw(bytes([ESC, 0x45, 1 if enabled else 0]))

    def underline(self, enabled: bool):
        """ESC - n - underline mode."""
        self._add_raw(bytes([ESC, 0x2D, 1 if enabled else 0]))

    # ---- Content Commands ----

    def text(self, content: str):
        """Add text payload as-is."""
        self._add_raw(content.encode(self.encoding, errors="replace"))

    def line(self, content: str = ""):
        """Add text followed by a line feed."""
        if content:
            self.text(content)
        self.newline()

    def newline(self, count: int = 1):
        """Add line feeds, one LF byte each."""
        self._add_raw(bytes([LF]) * count)

    # ---- Paper Commands ----

    def feed_dots(self, dots: int):
        """ESC J n - feed paper by n dots."""
        self._add_raw(bytes([ESC, 0x4A, dots & 0xFF]))

    def feed_lines(self, lines: int):
        """ESC d n - feed paper by n lines."""
        self._add_raw(bytes([ESC, 0x64, lines & 0xFF]))

    def cut(self, mode: CutMode):
        """ESC i (full) / ESC m (partial)."""
        self._add_raw(bytes([ESC, 0x69 if mode == CutMode.FULL else 0x6D]))

    def gs_cut(self, mode: CutMode = CutMode.PARTIAL):
        """GS V n - cut paper."""
        self._add_raw(bytes([GS, 0x56, int(mode)]))


def format_line(
    name: str,
    price: Union[int, float, Decimal, str],
    width: int = DEFAULT_RECEIPT_WIDTH,
    currency: str = CURRENCY_SYMBOL,
) -> str:
    """
    Format a receipt line with the price right-aligned.

    Numeric prices get two decimals and a currency prefix; strings are used
    verbatim. Long names are truncated with an ellipsis. At least one space
    always separates name and price, so very narrow widths may overflow.
    """
    if isinstance(price, (int, float, Decimal)) and not isinstance(price, bool):
        price_str = f"{currency}{price:.2f}"
    else:
        price_str = str(price)

    max_name_length = width - len(price_str) - 2
    if len(name) > max_name_length:
        name = name[:max(0, max_name_length - len(ELLIPSIS))] + ELLIPSIS

    spaces = width - len(name) - len(price_str)
    return name + " " * max(1, spaces) + price_str


def encode_text(
    text: str,
    options: Optional[PrintOptions] = None,
    encoding: str = "utf-8",
) -> bytes:
    """
    Encode a styled text line.

    Args:
        text: Text to print (sent unescaped)
        options: Style options (defaults to PrintOptions())
        encoding: Text codec for the payload

    Returns:
        Complete command stream for the printer
    """
    options = options or PrintOptions()
    cmd = ESCPOSCommand(encoding)

    if options.initialize is not False:
        cmd.initialize()

    cmd.align(Align.from_value(options.align))

    if options.has_size:
        cmd.text_size(select_size_class(options.width, options.height))

    if options.bold:
        cmd.bold(True)
    if options.underline:
        cmd.underline(True)

    cmd.text(text)

    # Reset only what was turned on
    if options.bold:
        cmd.bold(False)
    if options.underline:
        cmd.underline(False)
    if options.has_size:
        cmd.text_size(SizeClass.NORMAL)

    cmd.align(Align.LEFT)

    cmd.newline()
    if options.feed_lines:
        cmd.newline(options.feed_lines)

    cut = CutMode.from_value(options.cut)
    if cut is not None:
        cmd.feed_dots(CUT_FEED_DOTS)
        cmd.cut(cut)

    return cmd.get_commands()


def encode_receipt(receipt: Receipt, encoding: str = "utf-8") -> bytes:
    """Encode a receipt document as a single command stream."""
    width = receipt.width
    cmd = ESCPOSCommand(encoding)
    cmd.initialize()

    if receipt.header:
        cmd.align(Align.CENTER)
        cmd.character_size(0x11)
        cmd.line(receipt.header)
        cmd.character_size(0x00)
        cmd.align(Align.LEFT)
        cmd.newline()

    if receipt.subheader:
        cmd.line(receipt.subheader)
        cmd.newline()

    if receipt.items:
        for item in receipt.items:
            cmd.line(format_line(item.name, item.price, width))
        cmd.newline()
        cmd.line("-" * width)

    if receipt.total is not None:
        cmd.bold(True)
        cmd.line(format_line("TOTAL", receipt.total, width))
        cmd.bold(False)

    if receipt.footer:
        cmd.newline()
        cmd.align(Align.CENTER)
        cmd.line(receipt.footer)
        cmd.align(Align.LEFT)

    cmd.newline(2)
    cmd.feed_lines(RECEIPT_END_FEED_LINES)
    cmd.gs_cut(CutMode.PARTIAL)

    return cmd.get_commands()
