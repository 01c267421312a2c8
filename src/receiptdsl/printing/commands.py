"""Printer command stream.

The command stream is the output of the compiler: a flat, ordered list
of printer instructions plus a manifest of the tokens they reference.
String payloads keep their ``{token}`` placeholders unresolved so the
same stream can be stored, sent through a URL as base64 and replayed
with different token values.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import ConfigDict, Discriminator, Field, Tag, ValidationError

from receiptdsl.printing.models import (
    DEFAULT_PAPER_WIDTH,
    Alignment,
    BarcodeFormat,
    ErrorCorrection,
    HriPosition,
    ReceiptModel,
    TextStyleOptions,
)

logger = logging.getLogger(__name__)


DSL_VERSION = "1.0.0"


class StreamDecodeError(ValueError):
    """Raised when a serialized command stream cannot be decoded."""


class CommandType(str, Enum):
    """Discriminants of the command union."""

    TEXT = "text"
    TEXT_ALIGN = "textAlign"
    TEXT_SIZE = "textSize"
    TEXT_STYLE = "textStyle"
    FEED_LINE = "feedLine"
    LINE_SPACE = "lineSpace"
    BARCODE = "barcode"
    QRCODE = "qrcode"
    IMAGE = "image"
    CUT_PAPER = "cutPaper"
    SET_POSITION = "setPosition"
    COLUMN_LAYOUT = "columnLayout"


class TextCommand(ReceiptModel):
    type: Literal["text"] = "text"
    value: str
    x: Optional[int] = None
    width: Optional[int] = None
    style: Optional[TextStyleOptions] = None


class TextAlignCommand(ReceiptModel):
    type: Literal["textAlign"] = "textAlign"
    alignment: Alignment


class TextSizeCommand(ReceiptModel):
    type: Literal["textSize"] = "textSize"
    width: int = 1
    height: int = 1


class TextStyleCommand(ReceiptModel):
    type: Literal["textStyle"] = "textStyle"
    bold: Optional[bool] = None
    underline: Optional[bool] = None
    font_family: Optional[str] = None


class FeedLineCommand(ReceiptModel):
    type: Literal["feedLine"] = "feedLine"
    lines: int = 1


class LineSpaceCommand(ReceiptModel):
    type: Literal["lineSpace"] = "lineSpace"
    space: int


class BarcodeCommand(ReceiptModel):
    type: Literal["barcode"] = "barcode"
    data: str
    format: BarcodeFormat = BarcodeFormat.CODE128
    width: Optional[int] = None
    height: Optional[int] = None
    hri: Optional[HriPosition] = None


class QRCodeCommand(ReceiptModel):
    type: Literal["qrcode"] = "qrcode"
    data: str
    size: Optional[int] = None
    error_correction: Optional[ErrorCorrection] = None


class ImageCommand(ReceiptModel):
    type: Literal["image"] = "image"
    image_data: str
    width: Optional[int] = None
    height: Optional[int] = None
    alignment: Optional[Alignment] = None


class CutPaperCommand(ReceiptModel):
    type: Literal["cutPaper"] = "cutPaper"


class SetPositionCommand(ReceiptModel):
    """Reserved; the interpreter ignores it."""

    type: Literal["setPosition"] = "setPosition"
    x: int


class ColumnSpec(ReceiptModel):
    """One segment of a column layout, offsets in characters."""

    start: int
    end: int
    alignment: Alignment = Alignment.LEFT
    content: str = ""


class ColumnLayoutCommand(ReceiptModel):
    type: Literal["columnLayout"] = "columnLayout"
    columns: List[ColumnSpec] = Field(default_factory=list)


class UnknownCommand(ReceiptModel):
    """A command with an unrecognised discriminant; replayed as a no-op."""

    model_config = ConfigDict(extra="allow")

    type: str = "unknown"


_COMMAND_TAGS = frozenset(t.value for t in CommandType)


def _command_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    if isinstance(tag, Enum):
        tag = tag.value
    return tag if tag in _COMMAND_TAGS else "unknown"


Command = Annotated[
    Union[
        Annotated[TextCommand, Tag("text")],
        Annotated[TextAlignCommand, Tag("textAlign")],
        Annotated[TextSizeCommand, Tag("textSize")],
        Annotated[TextStyleCommand, Tag("textStyle")],
        Annotated[FeedLineCommand, Tag("feedLine")],
        Annotated[LineSpaceCommand, Tag("lineSpace")],
        Annotated[BarcodeCommand, Tag("barcode")],
        Annotated[QRCodeCommand, Tag("qrcode")],
        Annotated[ImageCommand, Tag("image")],
        Annotated[CutPaperCommand, Tag("cutPaper")],
        Annotated[SetPositionCommand, Tag("setPosition")],
        Annotated[ColumnLayoutCommand, Tag("columnLayout")],
        Annotated[UnknownCommand, Tag("unknown")],
    ],
    Discriminator(_command_tag),
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StreamMetadata(ReceiptModel):
    generated_at: str = Field(default_factory=_now_iso)
    layout_id: Optional[str] = None
    paper_width: int = DEFAULT_PAPER_WIDTH


class TokenManifest(ReceiptModel):
    required: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)


class CommandStream(ReceiptModel):
    """Compiled receipt: ordered commands plus the tokens they need."""

    version: str = DSL_VERSION
    metadata: StreamMetadata = Field(default_factory=StreamMetadata)
    commands: List[Command] = Field(default_factory=list)
    tokens: TokenManifest = Field(default_factory=TokenManifest)

    @property
    def paper_width(self) -> int:
        return self.metadata.paper_width

    def command_types(self) -> List[str]:
        return [command.type for command in self.commands]

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "CommandStream":
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise StreamDecodeError(f"Invalid command stream: {e}") from e

    def to_base64(self) -> str:
        """Encode as URL-safe base64 of the compact JSON form."""
        raw = self.to_json().encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    @classmethod
    def from_base64(cls, payload: str) -> "CommandStream":
        payload = payload.strip()
        # Restore padding stripped by URL encoders
        payload += "=" * (-len(payload) % 4)
        try:
            raw = base64.urlsafe_b64decode(payload.encode("ascii"))
            text = raw.decode("utf-8")
        except (binascii.Error, UnicodeError) as e:
            raise StreamDecodeError(f"Invalid base64 payload: {e}") from e
        return cls.from_json(text)

    def save(self, path: Union[str, Path], indent: Optional[int] = 2) -> Path:
        path = Path(path)
        path.write_text(self.to_json(indent=indent), encoding="utf-8")
        logger.debug(f"Saved {len(self.commands)} commands to {path}")
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "CommandStream":
        return cls.from_json(Path(path).read_text(encoding="utf-8"))


CommandStream.model_rebuild()
