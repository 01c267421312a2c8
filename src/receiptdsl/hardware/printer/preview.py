"""Text preview print surface.

Renders an ASCII approximation of the receipt and records every call it
receives, for the CLI preview and for tests.
"""

import logging
from typing import Any, List, Optional, Tuple

from receiptdsl.hardware.base import PrintSurface
from receiptdsl.printing.models import (
    DEFAULT_PAPER_WIDTH,
    Alignment,
    BarcodeFormat,
    ErrorCorrection,
    HriPosition,
    TextStyleOptions,
)

logger = logging.getLogger(__name__)


class TextPreviewSurface(PrintSurface):
    """Print surface producing a framed text preview.

    Example:
        +----------+
        |  STORE   |
        |----------|
        +----------+
    """

    def __init__(self, chars_per_line: int = DEFAULT_PAPER_WIDTH, frame: bool = True):
        self.chars_per_line = chars_per_line
        self.frame = frame
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self._lines: List[str] = []
        self._reset_state()

    def _reset_state(self) -> None:
        self._alignment = Alignment.LEFT
        self._size = (1, 1)

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    @property
    def texts(self) -> List[str]:
        """Text passed to add_text, in call order."""
        return [args[0] for name, args in self.calls if name == "add_text"]

    @property
    def preview(self) -> str:
        if not self.frame:
            return "\n".join(self._lines)
        border = "+" + "-" * self.chars_per_line + "+"
        body = ["|" + line + "|" for line in self._lines]
        return "\n".join([border, *body, border])

    def _max_chars(self) -> int:
        return max(1, self.chars_per_line // max(1, self._size[0]))

    def _place(self, text: str, alignment: Optional[Alignment] = None) -> None:
        alignment = alignment or self._alignment
        width = self.chars_per_line
        text = text[:width]
        if alignment == Alignment.CENTER:
            text = text.center(width)
        elif alignment == Alignment.RIGHT:
            text = text.rjust(width)
        else:
            text = text.ljust(width)
        self._lines.append(text)

    def clear(self) -> None:
        self.calls = []
        self._lines = []
        self._reset_state()
        self._record("clear")

    def add_text(self, text: str, style: Optional[TextStyleOptions] = None) -> None:
        self._record("add_text", text, style)
        max_chars = self._max_chars()
        for line in text.split("\n"):
            line = line[:max_chars]
            if self._size[0] > 1:
                line = line.upper()
            self._place(line)

    def add_text_align(self, alignment: Alignment) -> None:
        self._record("add_text_align", alignment)
        self._alignment = Alignment(alignment)

    def add_text_size(self, width: int, height: int) -> None:
        self._record("add_text_size", width, height)
        self._size = (max(1, width), max(1, height))

    def add_text_style(self, style: TextStyleOptions) -> None:
        # Plain text has no weight; the call is only traced
        self._record("add_text_style", style)

    def add_feed_line(self, lines: int) -> None:
        self._record("add_feed_line", lines)
        for _ in range(max(0, lines)):
            self._lines.append(" " * self.chars_per_line)

    def add_line_space(self, space: int) -> None:
        self._record("add_line_space", space)

    def add_barcode(
        self,
        data: str,
        fmt: BarcodeFormat,
        width: Optional[int] = None,
        height: Optional[int] = None,
        hri: Optional[HriPosition] = None,
    ) -> None:
        self._record("add_barcode", data, fmt, width, height, hri)
        fmt_name = BarcodeFormat(fmt).value
        if hri in (HriPosition.ABOVE, HriPosition.BOTH):
            self._place(data, Alignment.CENTER)
        self._place(f"[BARCODE {fmt_name}: {data}]", Alignment.CENTER)
        if hri in (HriPosition.BELOW, HriPosition.BOTH):
            self._place(data, Alignment.CENTER)

    def add_qr_code(
        self,
        data: str,
        size: Optional[int] = None,
        error_correction: Optional[ErrorCorrection] = None,
    ) -> None:
        self._record("add_qr_code", data, size, error_correction)
        self._place(f"[QR: {data}]", Alignment.CENTER)

    def cut_paper(self) -> None:
        self._record("cut_paper")
        self._place("- - cut - -", Alignment.CENTER)
