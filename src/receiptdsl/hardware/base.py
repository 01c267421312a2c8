"""
Abstract base class for print surfaces.

The interpreter drives a print surface; canvas renderers, printer
drivers and test doubles all implement this contract. Every call is
fire-and-forget: return values are never consumed.
"""

from abc import ABC, abstractmethod
from typing import Optional

from receiptdsl.printing.models import (
    Alignment,
    BarcodeFormat,
    ErrorCorrection,
    HriPosition,
    TextStyleOptions,
)


class PrintSurface(ABC):
    """Abstract base class for receipt print targets."""

    @abstractmethod
    def clear(self) -> None:
        """Discard everything printed so far and reset styles."""
        ...

    @abstractmethod
    def add_text(self, text: str, style: Optional[TextStyleOptions] = None) -> None:
        """
        Print text followed by a line feed.

        Args:
            text: Text to print, may contain newlines
            style: Per-call bold/underline/font overrides
        """
        ...

    @abstractmethod
    def add_text_align(self, alignment: Alignment) -> None:
        """Set alignment for following text."""
        ...

    @abstractmethod
    def add_text_size(self, width: int, height: int) -> None:
        """Set character magnification for following text."""
        ...

    @abstractmethod
    def add_text_style(self, style: TextStyleOptions) -> None:
        """Set bold/underline/font for following text; None leaves a flag as is."""
        ...

    @abstractmethod
    def add_feed_line(self, lines: int) -> None:
        """Feed paper by the given number of lines."""
        ...

    @abstractmethod
    def add_line_space(self, space: int) -> None:
        """Set extra spacing between lines, in dots."""
        ...

    @abstractmethod
    def add_barcode(
        self,
        data: str,
        fmt: BarcodeFormat,
        width: Optional[int] = None,
        height: Optional[int] = None,
        hri: Optional[HriPosition] = None,
    ) -> None:
        """
        Print a barcode.

        Args:
            data: Encoded payload
            fmt: Barcode symbology
            width: Module width in dots
            height: Bar height in dots
            hri: Position of the human readable text
        """
        ...

    @abstractmethod
    def add_qr_code(
        self,
        data: str,
        size: Optional[int] = None,
        error_correction: Optional[ErrorCorrection] = None,
    ) -> None:
        """
        Print a QR code.

        Args:
            data: Encoded payload
            size: Module size in dots
            error_correction: Error correction level
        """
        ...

    @abstractmethod
    def cut_paper(self) -> None:
        """Cut paper (if cutter available)."""
        ...
