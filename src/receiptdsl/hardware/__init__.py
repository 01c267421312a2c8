"""Hardware abstraction layer for receiptdsl."""

from .base import PrintSurface

__all__ = [
    "PrintSurface",
]
