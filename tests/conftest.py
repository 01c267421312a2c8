"""Shared fixtures for receiptdsl tests."""

from typing import Any, Dict

import pytest

from receiptdsl.config.settings import Settings
from receiptdsl.hardware.printer.preview import TextPreviewSurface
from receiptdsl.printing.compiler import ReceiptCompiler
from receiptdsl.printing.interpreter import ReceiptInterpreter
from receiptdsl.printing.models import LayoutModel
from receiptdsl.printing.samples import create_sample_layout


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def compiler() -> ReceiptCompiler:
    return ReceiptCompiler()


@pytest.fixture
def sample_layout() -> LayoutModel:
    return create_sample_layout()


@pytest.fixture
def preview_surface() -> TextPreviewSurface:
    return TextPreviewSurface(chars_per_line=80)


@pytest.fixture
def interpreter(preview_surface, settings) -> ReceiptInterpreter:
    return ReceiptInterpreter(preview_surface, settings=settings)


@pytest.fixture
def make_layout():
    """Build a layout from camelCase component dicts."""

    def _make(*components: Dict[str, Any], paper_width: int = 80) -> LayoutModel:
        return LayoutModel.model_validate({
            "metadata": {"name": "test"},
            "components": list(components),
            "settings": {"paperWidth": paper_width},
        })

    return _make
