"""Print surfaces for receiptdsl."""

import logging
from typing import Optional

from receiptdsl.config.settings import Settings, get_settings
from receiptdsl.hardware.base import PrintSurface
from receiptdsl.hardware.printer.escpos import EscPosPrintSurface
from receiptdsl.hardware.printer.preview import TextPreviewSurface

logger = logging.getLogger(__name__)

SURFACE_KINDS = ("preview", "canvas", "escpos")


def create_surface(kind: str = "preview", settings: Optional[Settings] = None) -> PrintSurface:
    """Factory function to create a print surface.

    Args:
        kind: One of 'preview', 'canvas' or 'escpos'
        settings: Paper geometry and encoding; defaults to global settings

    Returns:
        Print surface instance
    """
    settings = settings or get_settings()

    if kind == "preview":
        return TextPreviewSurface(chars_per_line=settings.paper_width)
    if kind == "escpos":
        return EscPosPrintSurface(
            encoding=settings.encoding,
            partial_cut=settings.cut_mode == "partial",
        )
    if kind == "canvas":
        # Pillow is only imported when a canvas is requested
        from receiptdsl.hardware.printer.canvas import CanvasPrintSurface

        return CanvasPrintSurface(
            width=settings.device_width_px,
            chars_per_line=settings.paper_width,
            settings=settings.canvas,
        )

    raise ValueError(f"Unknown surface kind: {kind}")


__all__ = [
    "PrintSurface",
    "EscPosPrintSurface",
    "TextPreviewSurface",
    "SURFACE_KINDS",
    "create_surface",
]
