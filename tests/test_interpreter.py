"""Tests for the receipt interpreter."""

import pytest

from receiptdsl.hardware.printer.preview import TextPreviewSurface
from receiptdsl.printing.commands import (
    ColumnLayoutCommand,
    ColumnSpec,
    CommandStream,
    CutPaperCommand,
    ImageCommand,
    SetPositionCommand,
    TextCommand,
)
from receiptdsl.printing.interpreter import InterpreterState, ReceiptInterpreter
from receiptdsl.printing.tokens import TOKEN_PATTERN, is_known_token


def _text_stream(compiler, make_layout, content):
    return compiler.compile(make_layout({"type": "text", "id": "t", "content": content}))


class FailingBarcodeSurface(TextPreviewSurface):
    def add_barcode(self, *args, **kwargs):
        raise RuntimeError("printer jammed")


def test_token_round_trip(compiler, make_layout, interpreter, preview_surface):
    stream = _text_stream(compiler, make_layout, "Hi {store_name}")

    interpreter.execute(stream, {"store_name": "Acme"})
    assert preview_surface.texts == ["Hi Acme"]

    interpreter.execute(stream, {})
    assert preview_surface.texts == ["Hi {store_name}"]


def test_mock_context_by_default(compiler, make_layout, interpreter, preview_surface):
    interpreter.execute(_text_stream(compiler, make_layout, "Total {total}"))
    assert preview_surface.texts == ["Total $27.24"]


def test_without_mock_tokens(compiler, make_layout, preview_surface, settings):
    interpreter = ReceiptInterpreter(preview_surface, settings=settings, use_mock_tokens=False)
    interpreter.execute(_text_stream(compiler, make_layout, "{store_name}"))
    assert preview_surface.texts == ["{store_name}"]


def test_set_token_context_merges(compiler, make_layout, interpreter, preview_surface):
    interpreter.set_token_context({"store_name": "Acme"})
    interpreter.execute(_text_stream(compiler, make_layout, "{store_name} {cashier_name}"))
    assert preview_surface.texts == ["Acme John D."]
    assert interpreter.token_context["store_name"] == "Acme"


def test_currency_symbol_from_settings(compiler, make_layout, preview_surface, settings):
    settings = settings.model_copy(update={"currency_symbol": "€"})
    interpreter = ReceiptInterpreter(preview_surface, settings=settings)
    interpreter.execute(_text_stream(compiler, make_layout, "{tax}"))
    assert preview_surface.texts == ["€2.25"]


def test_clear_first_and_state(compiler, make_layout, interpreter, preview_surface):
    assert interpreter.state is InterpreterState.IDLE
    stream = _text_stream(compiler, make_layout, "x")

    executed = interpreter.execute(stream)

    assert executed == len(stream.commands)
    assert [name for name, _ in preview_surface.calls] == ["clear", "add_text", "cut_paper"]
    assert interpreter.state is InterpreterState.IDLE


def test_surface_calls_for_styled_text(compiler, make_layout, interpreter, preview_surface):
    layout = make_layout({
        "type": "text",
        "id": "h",
        "content": "{store_name}",
        "style": {"alignment": "center", "size": {"width": 2, "height": 2}, "bold": True},
    })
    interpreter.execute(compiler.compile(layout))
    assert [name for name, _ in preview_surface.calls] == [
        "clear", "add_text_align", "add_text_size", "add_text_style", "add_text",
        "add_text_align", "add_text_size", "cut_paper",
    ]
    assert preview_surface.texts == ["Taco Bell #1234"]


def test_barcode_and_qr_data_substituted(compiler, make_layout, interpreter, preview_surface):
    layout = make_layout(
        {"type": "barcode", "id": "b", "data": "{transaction_id}", "options": {"height": 80}},
        {"type": "qrcode", "id": "q", "data": "https://x.test/{order_number}"},
    )
    interpreter.execute(compiler.compile(layout))
    barcode = next(args for name, args in preview_surface.calls if name == "add_barcode")
    qrcode = next(args for name, args in preview_surface.calls if name == "add_qr_code")
    assert barcode[0] == "TXN-2024-001234"
    assert barcode[3] == 80
    assert qrcode[0] == "https://x.test/000123"


def test_column_layout_line(compiler, make_layout, interpreter, preview_surface):
    layout = make_layout({
        "type": "row",
        "id": "r",
        "columns": [
            {"width": "fill", "component": {"type": "text", "id": "l", "content": "Total:"}},
            {"width": 25, "alignment": "right", "component": {"type": "text", "id": "v", "content": "{total}"}},
        ],
    })
    interpreter.execute(compiler.compile(layout))
    line = preview_surface.texts[0]
    assert len(line) == 80
    assert line == "Total:".ljust(60) + "$27.24".rjust(20)


def test_column_overlap_cuts_back_to_start(interpreter):
    command = ColumnLayoutCommand(columns=[
        ColumnSpec(start=0, end=20, content="A" * 20),
        ColumnSpec(start=10, end=20, content="B"),
    ])
    assert interpreter.render_column_line(command) == "A" * 10 + "B" + " " * 9


def test_column_gap_is_padded(interpreter):
    command = ColumnLayoutCommand(columns=[
        ColumnSpec(start=0, end=5, content="ab"),
        ColumnSpec(start=10, end=15, content="cd", alignment="center"),
    ])
    assert interpreter.render_column_line(command) == "ab   " + " " * 5 + " cd  "


def test_failing_command_does_not_abort(compiler, make_layout, settings):
    surface = FailingBarcodeSurface()
    interpreter = ReceiptInterpreter(surface, settings=settings)
    layout = make_layout(
        {"type": "text", "id": "a", "content": "before"},
        {"type": "barcode", "id": "b", "data": "123"},
        {"type": "text", "id": "c", "content": "after"},
    )
    stream = compiler.compile(layout)

    executed = interpreter.execute(stream)

    assert executed == len(stream.commands) - 1
    assert surface.texts == ["before", "after"]
    assert surface.calls[-1][0] == "cut_paper"
    assert interpreter.state is InterpreterState.IDLE


def test_unsupported_commands_are_no_ops(interpreter, preview_surface):
    stream = CommandStream(commands=[
        ImageCommand(image_data="logo.png"),
        SetPositionCommand(x=4),
        TextCommand(value="x"),
        CutPaperCommand(),
    ])
    stream = CommandStream.from_json(stream.to_json())
    assert interpreter.execute(stream) == 4
    assert [name for name, _ in preview_surface.calls] == ["clear", "add_text", "cut_paper"]


def test_unknown_command_is_skipped(interpreter, preview_surface):
    stream = CommandStream.from_json('{"commands": [{"type": "hologram"}, {"type": "cutPaper"}]}')
    interpreter.execute(stream)
    assert [name for name, _ in preview_surface.calls] == ["clear", "cut_paper"]


def test_nested_run_is_rejected(compiler, make_layout, settings):
    errors = []

    class ReentrantSurface(TextPreviewSurface):
        def add_text(self, text, style=None):
            try:
                interpreter.execute(stream)
            except RuntimeError as e:
                errors.append(str(e))
            super().add_text(text, style)

    interpreter = ReceiptInterpreter(ReentrantSurface(), settings=settings)
    stream = _text_stream(compiler, make_layout, "x")
    interpreter.execute(stream)
    assert errors == ["Interpreter is already running"]


def test_end_to_end_sample_leaves_no_tokens(compiler, sample_layout, interpreter, preview_surface):
    interpreter.execute(compiler.compile(sample_layout))

    assert preview_surface.calls
    payloads = list(preview_surface.texts)
    payloads += [args[0] for name, args in preview_surface.calls if name in ("add_barcode", "add_qr_code")]
    assert payloads
    for payload in payloads:
        leftovers = [key for key in TOKEN_PATTERN.findall(payload) if is_known_token(key)]
        assert leftovers == [], payload

    preview = preview_surface.preview
    assert "TACO BELL #1234" in preview
    assert "$27.24" in preview
    assert "Crunchy Taco" in preview
    assert "[BARCODE CODE128: TXN-2024-001234]" in preview


@pytest.mark.parametrize("paper_width", [32, 48, 80])
def test_sample_fits_paper(compiler, sample_layout, settings, paper_width):
    layout = sample_layout.model_copy(
        update={"settings": sample_layout.settings.model_copy(update={"paper_width": paper_width})}
    )
    surface = TextPreviewSurface(chars_per_line=paper_width)
    ReceiptInterpreter(surface, settings=settings).execute(compiler.compile(layout))
    assert all(len(line) == paper_width for line in surface.lines)
