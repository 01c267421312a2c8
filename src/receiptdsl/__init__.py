"""receiptdsl - receipt layout compiler and interpreter."""

__version__ = "1.0.0"
