"""Layout model for receipt designs.

A layout is an ordered tree of typed components plus paper settings.
It is produced by an editor and is read-only input to the compiler.
JSON documents use camelCase field names; Python attributes are
snake_case and either spelling is accepted on input.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


DEFAULT_PAPER_WIDTH = 80  # characters


class Alignment(str, Enum):
    """Text alignment options."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class BarcodeFormat(str, Enum):
    """Barcode symbologies understood by the printer."""

    CODE39 = "CODE39"
    CODE128 = "CODE128"
    UPC_A = "UPC_A"
    CODE93 = "CODE93"


class HriPosition(str, Enum):
    """Where the human readable barcode text is printed."""

    NONE = "none"
    ABOVE = "above"
    BELOW = "below"
    BOTH = "both"


class ErrorCorrection(str, Enum):
    """QR code error correction level."""

    L = "L"
    M = "M"
    Q = "Q"
    H = "H"


class DividerStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOUBLE = "double"


class ComponentType(str, Enum):
    """Discriminants of the component union."""

    TEXT = "text"
    BARCODE = "barcode"
    QRCODE = "qrcode"
    IMAGE = "image"
    DIVIDER = "divider"
    SPACER = "spacer"
    ROW = "row"
    TABLE = "table"
    DYNAMIC_LIST = "dynamic-list"


class ReceiptModel(BaseModel):
    """Base for every serializable receipt model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TextSize(ReceiptModel):
    """Character magnification (1 = normal)."""

    width: int = 1
    height: int = 1

    @property
    def is_default(self) -> bool:
        return self.width == 1 and self.height == 1


class TextStyleOptions(ReceiptModel):
    """Bold/underline/font flags shared by text components and commands."""

    bold: Optional[bool] = None
    underline: Optional[bool] = None
    font_family: Optional[str] = None


class TextComponentStyle(ReceiptModel):
    size: Optional[TextSize] = None
    bold: Optional[bool] = None
    underline: Optional[bool] = None
    alignment: Optional[Alignment] = None
    font_family: Optional[str] = None


class BarcodeOptions(ReceiptModel):
    width: Optional[int] = None
    height: Optional[int] = None
    show_text: Optional[HriPosition] = None


class QRCodeOptions(ReceiptModel):
    size: Optional[int] = None
    error_correction: Optional[ErrorCorrection] = None


class ImageOptions(ReceiptModel):
    width: Optional[int] = None
    height: Optional[int] = None
    alignment: Optional[Alignment] = None


class TextComponent(ReceiptModel):
    """A block of text; ``content`` may embed ``{token}`` placeholders."""

    id: str
    type: Literal["text"] = "text"
    content: str = ""
    style: Optional[TextComponentStyle] = None


class BarcodeComponent(ReceiptModel):
    id: str
    type: Literal["barcode"] = "barcode"
    data: str = ""
    format: BarcodeFormat = BarcodeFormat.CODE128
    options: Optional[BarcodeOptions] = None


class QRCodeComponent(ReceiptModel):
    id: str
    type: Literal["qrcode"] = "qrcode"
    data: str = ""
    options: Optional[QRCodeOptions] = None


class ImageComponent(ReceiptModel):
    """Image placeholder; accepted by the model, not rendered yet."""

    id: str
    type: Literal["image"] = "image"
    src: str = ""
    options: Optional[ImageOptions] = None


class DividerComponent(ReceiptModel):
    id: str
    type: Literal["divider"] = "divider"
    style: DividerStyle = DividerStyle.SOLID
    character: str = "-"


class SpacerComponent(ReceiptModel):
    id: str
    type: Literal["spacer"] = "spacer"
    lines: int = 1


RowWidth = Union[Literal["auto", "fill"], int, float]


class RowColumn(ReceiptModel):
    """One column of a row; ``width`` is 'auto', 'fill' or a percentage."""

    width: RowWidth = "auto"
    alignment: Alignment = Alignment.LEFT
    component: Component


class RowComponent(ReceiptModel):
    id: str
    type: Literal["row"] = "row"
    columns: List[RowColumn] = Field(default_factory=list)


class TableColumn(ReceiptModel):
    """Table column; ``width`` is 'auto', 'fill' or a percentage like '50%'."""

    key: str
    header: Optional[str] = None
    width: Union[str, int, float] = "auto"
    alignment: Alignment = Alignment.LEFT


class TableComponent(ReceiptModel):
    id: str
    type: Literal["table"] = "table"
    columns: List[TableColumn] = Field(default_factory=list)
    rows: List[Dict[str, TableCell]] = Field(default_factory=list)
    show_header: bool = False
    divider_after_header: bool = False


class DynamicListComponent(ReceiptModel):
    """Repeat-over-data placeholder, expanded before compilation."""

    id: str
    type: Literal["dynamic-list"] = "dynamic-list"
    data_source: str
    template: Component
    separator: Optional[Component] = None


class UnknownComponent(ReceiptModel):
    """A component whose discriminant is not recognised.

    Kept so that a layout produced by a newer editor still loads; the
    compiler contributes no commands for it.
    """

    model_config = ConfigDict(extra="allow")

    id: str = ""
    type: str = "unknown"


_COMPONENT_TAGS = frozenset(t.value for t in ComponentType)


def _component_tag(value: Any) -> str:
    if isinstance(value, dict):
        tag = value.get("type")
    else:
        tag = getattr(value, "type", None)
    if isinstance(tag, Enum):
        tag = tag.value
    return tag if tag in _COMPONENT_TAGS else "unknown"


Component = Annotated[
    Union[
        Annotated[TextComponent, Tag("text")],
        Annotated[BarcodeComponent, Tag("barcode")],
        Annotated[QRCodeComponent, Tag("qrcode")],
        Annotated[ImageComponent, Tag("image")],
        Annotated[DividerComponent, Tag("divider")],
        Annotated[SpacerComponent, Tag("spacer")],
        Annotated[RowComponent, Tag("row")],
        Annotated[TableComponent, Tag("table")],
        Annotated[DynamicListComponent, Tag("dynamic-list")],
        Annotated[UnknownComponent, Tag("unknown")],
    ],
    Discriminator(_component_tag),
]


TableCell = Optional[Union[str, Component]]


# Components that cannot be laid out inside a fixed-width table row.
COMPLEX_COMPONENT_TYPES = frozenset({
    ComponentType.BARCODE.value,
    ComponentType.QRCODE.value,
    ComponentType.IMAGE.value,
    ComponentType.DIVIDER.value,
    ComponentType.SPACER.value,
})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class LayoutMetadata(ReceiptModel):
    name: str = "Untitled receipt"
    description: Optional[str] = None
    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)
    brand_id: Optional[str] = None
    store_id: Optional[str] = None


class LayoutSettings(ReceiptModel):
    paper_width: int = DEFAULT_PAPER_WIDTH
    default_font: str = "monospace"
    locale: str = "en-US"


class LayoutModel(ReceiptModel):
    """Complete receipt layout definition."""

    version: str = "1.0"
    metadata: LayoutMetadata = Field(default_factory=LayoutMetadata)
    components: List[Component] = Field(default_factory=list)
    settings: LayoutSettings = Field(default_factory=LayoutSettings)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "LayoutModel":
        return cls.model_validate_json(text)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


for _model in (RowColumn, RowComponent, TableComponent, DynamicListComponent, LayoutModel):
    _model.model_rebuild()


def component_type(component: Any) -> str:
    """Discriminant of a component as a plain string."""
    tag = getattr(component, "type", None)
    if isinstance(tag, Enum):
        return tag.value
    return str(tag)


def load_layout(path: Union[str, Path]) -> LayoutModel:
    """Load a layout from a JSON file."""
    path = Path(path)
    layout = LayoutModel.from_json(path.read_text(encoding="utf-8"))
    logger.debug(f"Loaded layout '{layout.metadata.name}' from {path}")
    return layout


def save_layout(layout: LayoutModel, path: Union[str, Path]) -> Path:
    """Write a layout to a JSON file."""
    path = Path(path)
    path.write_text(layout.to_json(), encoding="utf-8")
    return path
