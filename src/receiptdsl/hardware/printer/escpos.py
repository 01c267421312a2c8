"""ESC/POS print surface.

Encodes print surface calls as ESC/POS command bytes for 58mm/80mm
thermal receipt printers. The bytes can be written to a serial port,
USB printer device or file by the caller.

Command reference:
- ESC @: initialize
- ESC a n: alignment, GS ! n: character size
- ESC E n / ESC - n / ESC M n: bold, underline, font
- ESC d n: feed lines, ESC 3 n: line spacing
- GS k: barcode, GS ( k: QR code, GS V: cut
"""

import logging
from typing import List, Optional

from receiptdsl.hardware.base import PrintSurface
from receiptdsl.printing.models import (
    Alignment,
    BarcodeFormat,
    ErrorCorrection,
    HriPosition,
    TextStyleOptions,
)

logger = logging.getLogger(__name__)


class EscPosPrintSurface(PrintSurface):
    """Print surface producing raw ESC/POS bytes."""

    # ESC/POS command constants
    ESC = b'\x1b'
    GS = b'\x1d'
    LF = b'\x0a'

    # GS k function B symbology codes
    BARCODE_SYSTEMS = {
        BarcodeFormat.UPC_A: 65,
        BarcodeFormat.CODE39: 69,
        BarcodeFormat.CODE93: 72,
        BarcodeFormat.CODE128: 73,
    }

    HRI_POSITIONS = {
        HriPosition.NONE: 0,
        HriPosition.ABOVE: 1,
        HriPosition.BELOW: 2,
        HriPosition.BOTH: 3,
    }

    QR_ERROR_LEVELS = {
        ErrorCorrection.L: 48,
        ErrorCorrection.M: 49,
        ErrorCorrection.Q: 50,
        ErrorCorrection.H: 51,
    }

    def __init__(self, encoding: str = "cp437", partial_cut: bool = True):
        """Initialize the surface.

        Args:
            encoding: Code page used for text
            partial_cut: Partial instead of full paper cut
        """
        self.encoding = encoding
        self.partial_cut = partial_cut
        self._commands: List[bytes] = []

    @property
    def raw_commands(self) -> bytes:
        return b''.join(self._commands)

    def _encode(self, text: str) -> bytes:
        return text.encode(self.encoding, errors='replace')

    def clear(self) -> None:
        self._commands = [self._cmd_init()]

    def _cmd_init(self) -> bytes:
        """Initialize printer command."""
        return self.ESC + b'@'

    def _cmd_align(self, alignment: Alignment) -> bytes:
        align_byte = {
            Alignment.LEFT: b'\x00',
            Alignment.CENTER: b'\x01',
            Alignment.RIGHT: b'\x02',
        }
        return self.ESC + b'a' + align_byte.get(Alignment(alignment), b'\x00')

    def _cmd_bold(self, enabled: bool) -> bytes:
        return self.ESC + b'E' + (b'\x01' if enabled else b'\x00')

    def _cmd_underline(self, enabled: bool) -> bytes:
        return self.ESC + b'-' + (b'\x01' if enabled else b'\x00')

    def _cmd_font(self, font_family: str) -> bytes:
        # Printers only offer font A and a condensed font B
        font_b = font_family.strip().lower() in ("b", "font b", "fontb", "condensed")
        return self.ESC + b'M' + (b'\x01' if font_b else b'\x00')

    def _style_commands(self, style: TextStyleOptions) -> List[bytes]:
        commands = []
        if style.bold is not None:
            commands.append(self._cmd_bold(style.bold))
        if style.underline is not None:
            commands.append(self._cmd_underline(style.underline))
        if style.font_family:
            commands.append(self._cmd_font(style.font_family))
        return commands

    def add_text(self, text: str, style: Optional[TextStyleOptions] = None) -> None:
        if style is not None:
            self._commands.extend(self._style_commands(style))
        for line in text.split("\n"):
            self._commands.append(self._encode(line))
            self._commands.append(self.LF)

    def add_text_align(self, alignment: Alignment) -> None:
        self._commands.append(self._cmd_align(alignment))

    def add_text_size(self, width: int, height: int) -> None:
        # GS ! n - high nibble width, low nibble height, 1..8
        w = min(8, max(1, width)) - 1
        h = min(8, max(1, height)) - 1
        self._commands.append(self.GS + b'!' + bytes([(w << 4) | h]))

    def add_text_style(self, style: TextStyleOptions) -> None:
        self._commands.extend(self._style_commands(style))

    def add_feed_line(self, lines: int) -> None:
        # ESC d n - Feed n lines
        self._commands.append(self.ESC + b'd' + bytes([min(255, max(0, lines))]))

    def add_line_space(self, space: int) -> None:
        # ESC 3 n - Line spacing in dots
        self._commands.append(self.ESC + b'3' + bytes([min(255, max(0, space))]))

    def add_barcode(
        self,
        data: str,
        fmt: BarcodeFormat,
        width: Optional[int] = None,
        height: Optional[int] = None,
        hri: Optional[HriPosition] = None,
    ) -> None:
        fmt = BarcodeFormat(fmt)
        payload = self._encode(data)
        if fmt == BarcodeFormat.CODE128:
            # Select code set B
            payload = b'{B' + payload

        if height is not None:
            self._commands.append(self.GS + b'h' + bytes([min(255, max(1, height))]))
        if width is not None:
            self._commands.append(self.GS + b'w' + bytes([min(6, max(2, width))]))
        if hri is not None:
            self._commands.append(self.GS + b'H' + bytes([self.HRI_POSITIONS[HriPosition(hri)]]))

        if len(payload) > 255:
            logger.error(f"Barcode payload too long ({len(payload)} bytes), skipping")
            return

        self._commands.append(
            self.GS + b'k' + bytes([self.BARCODE_SYSTEMS[fmt], len(payload)]) + payload
        )
        self._commands.append(self.LF)

    def _qr_function(self, fn: int, data: bytes) -> bytes:
        # GS ( k pL pH cn fn [data], cn = 49 (QR)
        length = len(data) + 2
        return self.GS + b'(k' + bytes([length & 0xFF, (length >> 8) & 0xFF, 49, fn]) + data

    def add_qr_code(
        self,
        data: str,
        size: Optional[int] = None,
        error_correction: Optional[ErrorCorrection] = None,
    ) -> None:
        level = self.QR_ERROR_LEVELS[ErrorCorrection(error_correction or ErrorCorrection.M)]
        module = min(16, max(1, size or 4))

        self._commands.append(self._qr_function(65, b'\x32\x00'))  # model 2
        self._commands.append(self._qr_function(67, bytes([module])))
        self._commands.append(self._qr_function(69, bytes([level])))
        self._commands.append(self._qr_function(80, b'\x30' + self._encode(data)))
        self._commands.append(self._qr_function(81, b'\x30'))
        self._commands.append(self.LF)

    def cut_paper(self) -> None:
        # GS V m - m = 0: full cut, m = 1: partial cut
        self._commands.append(self.GS + b'V' + (b'\x01' if self.partial_cut else b'\x00'))
