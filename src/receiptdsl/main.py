#!/usr/bin/env python3
"""Command line entry point for receiptdsl.

Usage:
    receiptdsl sample [-o FILE]              Write the sample layout
    receiptdsl tokens                        List available tokens
    receiptdsl validate LAYOUT               Check a layout for problems
    receiptdsl compile LAYOUT [-o FILE]      Compile a layout to a command stream
    receiptdsl render STREAM [--surface S]   Execute a command stream

Examples:
    receiptdsl sample -o receipt.json
    receiptdsl compile receipt.json -o receipt.stream.json
    receiptdsl render receipt.stream.json
    receiptdsl render receipt.stream.json --surface canvas -o receipt.png
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from receiptdsl import __version__
from receiptdsl.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def _write_output(data: Any, output: Optional[str]) -> None:
    if output is None:
        if isinstance(data, bytes):
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
        else:
            print(data)
        return

    path = Path(output)
    if isinstance(data, bytes):
        path.write_bytes(data)
    else:
        path.write_text(data, encoding="utf-8")
    logger.info(f"Wrote {path}")


def _load_json_file(path: str) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def cmd_sample(args: argparse.Namespace, settings: Settings) -> int:
    """Write the sample store receipt layout."""
    from receiptdsl.printing.samples import create_sample_layout

    _write_output(create_sample_layout().to_json(indent=2), args.output)
    return 0


def cmd_tokens(args: argparse.Namespace, settings: Settings) -> int:
    """List registry tokens with their mock values."""
    from receiptdsl.printing.tokens import AVAILABLE_TOKENS, format_token_value

    for token in AVAILABLE_TOKENS:
        example = format_token_value(
            token.key,
            token.mock_value,
            currency_symbol=settings.currency_symbol,
            date_format=settings.date_format,
        )
        name = "{" + token.key + "}"
        print(f"{name:<20} {token.type.value:<10} {token.description:<28} {example}")
    return 0


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    """Validate a layout file."""
    from receiptdsl.printing.models import load_layout
    from receiptdsl.printing.validation import validate_layout

    layout = load_layout(args.layout)
    result = validate_layout(layout, max_paper_width=args.max_paper_width)

    for error in result.errors:
        print(f"ERROR: {error}")
    for warning in result.warnings:
        print(f"WARNING: {warning}")

    if result.valid:
        print(f"OK: {len(layout.components)} components, {len(result.warnings)} warnings")
        return 0
    return 1


def cmd_compile(args: argparse.Namespace, settings: Settings) -> int:
    """Compile a layout file into a command stream."""
    from receiptdsl.printing.compiler import ReceiptCompiler
    from receiptdsl.printing.expansion import flatten_dynamic_lists
    from receiptdsl.printing.models import load_layout
    from receiptdsl.printing.tokens import create_mock_context

    layout = load_layout(args.layout)

    if args.expand_lists:
        data = create_mock_context()
        if args.data:
            data.update(_load_json_file(args.data))
        layout = flatten_dynamic_lists(layout, data)

    compiler = ReceiptCompiler(reset_text_style=settings.reset_text_style)
    stream = compiler.compile(layout)

    if args.base64:
        _write_output(stream.to_base64(), args.output)
    else:
        _write_output(stream.to_json(indent=2), args.output)
    return 0


def cmd_render(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a command stream on a print surface."""
    from receiptdsl.hardware.printer import create_surface
    from receiptdsl.printing.commands import CommandStream
    from receiptdsl.printing.interpreter import ReceiptInterpreter

    if args.base64:
        stream = CommandStream.from_base64(Path(args.stream).read_text(encoding="utf-8"))
    else:
        stream = CommandStream.load(args.stream)

    if stream.paper_width != settings.paper_width:
        settings = settings.model_copy(update={"paper_width": stream.paper_width})

    surface = create_surface(args.surface, settings)
    interpreter = ReceiptInterpreter(surface, settings=settings, use_mock_tokens=not args.no_mock)

    tokens = None
    if args.tokens:
        interpreter.set_token_context(_load_json_file(args.tokens))
        tokens = interpreter.token_context

    executed = interpreter.execute(stream, tokens)
    logger.info(f"Executed {executed}/{len(stream.commands)} commands on {args.surface}")

    if args.surface == "canvas":
        if not args.output:
            logger.error("Canvas output needs --output FILE")
            return 1
        _write_output(surface.to_png(), args.output)
    elif args.surface == "escpos":
        _write_output(surface.raw_commands, args.output)
    else:
        _write_output(surface.preview, args.output)
    return 0


COMMANDS = {
    "sample": cmd_sample,
    "tokens": cmd_tokens,
    "validate": cmd_validate,
    "compile": cmd_compile,
    "render": cmd_render,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="receiptdsl",
        description="Receipt layout compiler and interpreter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # sample command
    p_sample = subparsers.add_parser("sample", help="Write the sample layout")
    p_sample.add_argument("-o", "--output", help="Output file (default: stdout)")

    # tokens command
    subparsers.add_parser("tokens", help="List available tokens")

    # validate command
    p_validate = subparsers.add_parser("validate", help="Validate a layout")
    p_validate.add_argument("layout", help="Layout JSON file")
    p_validate.add_argument("--max-paper-width", type=int, default=80,
                            help="Widest supported paper in characters (default: 80)")

    # compile command
    p_compile = subparsers.add_parser("compile", help="Compile a layout to a command stream")
    p_compile.add_argument("layout", help="Layout JSON file")
    p_compile.add_argument("-o", "--output", help="Output file (default: stdout)")
    p_compile.add_argument("--base64", action="store_true", help="Emit URL-safe base64")
    p_compile.add_argument("--expand-lists", action="store_true",
                           help="Expand dynamic lists from mock data before compiling")
    p_compile.add_argument("--data", help="JSON object with dynamic list data")

    # render command
    p_render = subparsers.add_parser("render", help="Execute a command stream")
    p_render.add_argument("stream", help="Command stream file")
    p_render.add_argument("--base64", action="store_true", help="Stream file holds base64")
    p_render.add_argument("--tokens", help="JSON object with token values")
    p_render.add_argument("--no-mock", action="store_true", help="Do not fall back to mock token values")
    p_render.add_argument("--surface", choices=["preview", "canvas", "escpos"], default="preview",
                          help="Print surface (default: preview)")
    p_render.add_argument("-o", "--output", help="Output file (default: stdout)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    from dotenv import load_dotenv

    # Load environment variables
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(args.debug or settings.debug)

    if not args.command:
        parser.print_help()
        return 0

    try:
        return COMMANDS[args.command](args, settings)
    except (OSError, ValueError, ValidationError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
