"""Command line tests."""

import json

import pytest

from receiptdsl.main import main
from receiptdsl.printing.commands import CommandStream
from receiptdsl.printing.models import load_layout


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    # Keep a developer's .env out of the run
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def layout_file(tmp_path):
    path = tmp_path / "receipt.json"
    assert main(["sample", "-o", str(path)]) == 0
    return path


def test_sample_writes_layout(layout_file):
    layout = load_layout(layout_file)
    assert layout.metadata.name == "Sample Store Receipt"
    assert len(layout.components) > 10


def test_tokens_lists_registry(capsys):
    assert main(["tokens"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 18
    assert lines[0].startswith("{store_name}")
    assert any("$27.24" in line for line in lines)


def test_validate_ok(layout_file, capsys):
    assert main(["validate", str(layout_file)]) == 0
    assert capsys.readouterr().out.startswith("OK:")


def test_validate_reports_errors(tmp_path, capsys):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"components": []}))
    assert main(["validate", str(path)]) == 1
    assert "ERROR: Layout must have at least one component" in capsys.readouterr().out


def test_compile_and_render_preview(layout_file, tmp_path, capsys):
    stream_path = tmp_path / "receipt.stream.json"
    assert main(["compile", str(layout_file), "-o", str(stream_path)]) == 0
    assert CommandStream.load(stream_path).command_types()[-1] == "cutPaper"

    assert main(["render", str(stream_path)]) == 0
    out = capsys.readouterr().out
    assert "TACO BELL #1234" in out
    assert "$27.24" in out


def test_render_with_token_file(layout_file, tmp_path, capsys):
    stream_path = tmp_path / "receipt.stream.json"
    tokens_path = tmp_path / "tokens.json"
    tokens_path.write_text(json.dumps({"store_name": "Corner Shop", "total": 9.5}))
    main(["compile", str(layout_file), "-o", str(stream_path)])
    capsys.readouterr()

    assert main(["render", str(stream_path), "--tokens", str(tokens_path)]) == 0
    out = capsys.readouterr().out
    assert "CORNER SHOP" in out
    assert "$9.50" in out


def test_render_without_mock_tokens(layout_file, tmp_path, capsys):
    stream_path = tmp_path / "receipt.stream.json"
    main(["compile", str(layout_file), "-o", str(stream_path)])
    capsys.readouterr()

    assert main(["render", str(stream_path), "--no-mock"]) == 0
    assert "{total}" in capsys.readouterr().out


def test_base64_round_trip(layout_file, tmp_path, capsys):
    encoded = tmp_path / "receipt.b64"
    assert main(["compile", str(layout_file), "--base64", "-o", str(encoded)]) == 0
    assert main(["render", str(encoded), "--base64"]) == 0
    assert "Thank you for your visit!" in capsys.readouterr().out


def test_render_escpos_and_canvas(layout_file, tmp_path):
    stream_path = tmp_path / "receipt.stream.json"
    main(["compile", str(layout_file), "-o", str(stream_path)])

    escpos_path = tmp_path / "receipt.bin"
    assert main(["render", str(stream_path), "--surface", "escpos", "-o", str(escpos_path)]) == 0
    assert escpos_path.read_bytes().startswith(b"\x1b@")

    png_path = tmp_path / "receipt.png"
    assert main(["render", str(stream_path), "--surface", "canvas", "-o", str(png_path)]) == 0
    assert png_path.read_bytes().startswith(b"\x89PNG")


def test_compile_expands_lists(tmp_path):
    layout_path = tmp_path / "list.json"
    layout_path.write_text(json.dumps({"components": [{
        "type": "dynamic-list",
        "id": "items",
        "dataSource": "order_items",
        "template": {"type": "text", "id": "line", "content": "{item.name}"},
    }]}))
    stream_path = tmp_path / "list.stream.json"

    assert main(["compile", str(layout_path), "--expand-lists", "-o", str(stream_path)]) == 0
    values = [c.value for c in CommandStream.load(stream_path).commands if c.type == "text"]
    assert values == ["Crunchy Taco", "Baja Blast", "Nacho Fries"]


def test_missing_file_fails(tmp_path):
    assert main(["validate", str(tmp_path / "missing.json")]) == 1
    assert main(["render", str(tmp_path / "missing.json")]) == 1


def test_bad_stream_fails(tmp_path):
    path = tmp_path / "bad.b64"
    path.write_text("definitely not a stream")
    assert main(["render", str(path), "--base64"]) == 1
