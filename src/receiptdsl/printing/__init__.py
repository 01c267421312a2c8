"""Printing module for receiptdsl - layout compilation and interpretation.

The interpreter and print manager depend on the hardware layer and are
imported from their own modules.
"""

from receiptdsl.printing.models import LayoutModel, load_layout, save_layout
from receiptdsl.printing.commands import CommandStream, StreamDecodeError
from receiptdsl.printing.compiler import ReceiptCompiler, compile_layout
from receiptdsl.printing.validation import ValidationResult, validate_layout
from receiptdsl.printing.expansion import flatten_dynamic_lists
from receiptdsl.printing.samples import create_sample_layout, generate_component_id
from receiptdsl.printing.tokens import AVAILABLE_TOKENS, replace_tokens

__all__ = [
    # Layout
    "LayoutModel",
    "load_layout",
    "save_layout",
    "create_sample_layout",
    "generate_component_id",
    # Compilation
    "ReceiptCompiler",
    "compile_layout",
    "CommandStream",
    "StreamDecodeError",
    "flatten_dynamic_lists",
    # Validation
    "ValidationResult",
    "validate_layout",
    # Tokens
    "AVAILABLE_TOKENS",
    "replace_tokens",
]
