"""Configuration for receiptdsl."""

from receiptdsl.config.settings import CanvasSettings, Settings, get_settings

__all__ = ["CanvasSettings", "Settings", "get_settings"]
