"""Receipt compiler.

Turns a layout model into a flat command stream for the interpreter.
Compilation is pure: the layout is never modified and tokens are left
unresolved in every emitted string.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from receiptdsl.printing.columns import resolve_row_widths, resolve_table_widths
from receiptdsl.printing.commands import (
    BarcodeCommand,
    ColumnLayoutCommand,
    ColumnSpec,
    Command,
    CommandStream,
    CutPaperCommand,
    FeedLineCommand,
    ImageCommand,
    QRCodeCommand,
    StreamMetadata,
    TextAlignCommand,
    TextCommand,
    TextSizeCommand,
    TextStyleCommand,
    TokenManifest,
)
from receiptdsl.printing.models import (
    COMPLEX_COMPONENT_TYPES,
    DEFAULT_PAPER_WIDTH,
    Alignment,
    BarcodeComponent,
    ComponentType,
    DividerComponent,
    DividerStyle,
    DynamicListComponent,
    ImageComponent,
    LayoutModel,
    QRCodeComponent,
    RowComponent,
    SpacerComponent,
    TableComponent,
    TextComponent,
    TextStyleOptions,
    component_type,
)
from receiptdsl.printing.tokens import extract_tokens

logger = logging.getLogger(__name__)


IMAGE_MARKER = "[image]"


def dynamic_list_placeholder(component: DynamicListComponent) -> str:
    return f"{{{component.data_source} - dynamic content}}"


def divider_text(style: DividerStyle, character: str, paper_width: int) -> str:
    """Build the literal text of a divider spanning the paper."""
    char = (character or "-")[0]
    if style == DividerStyle.DASHED:
        return ((char + " ") * paper_width)[:paper_width]
    line = char * paper_width
    if style == DividerStyle.DOUBLE:
        return line + "\n" + line
    return line


class ReceiptCompiler:
    """Compiler from layout models to command streams.

    Each component type has one emitter; unknown types emit nothing.
    """

    def __init__(self, reset_text_style: bool = False):
        """Initialize the compiler.

        Args:
            reset_text_style: Also emit a bold/underline reset after
                styled text; by default only alignment and size are reset.
        """
        self.reset_text_style = reset_text_style
        self._emitters: Dict[str, Callable[[Any, int], List[Command]]] = {
            ComponentType.TEXT.value: self._compile_text,
            ComponentType.BARCODE.value: self._compile_barcode,
            ComponentType.QRCODE.value: self._compile_qrcode,
            ComponentType.IMAGE.value: self._compile_image,
            ComponentType.DIVIDER.value: self._compile_divider,
            ComponentType.SPACER.value: self._compile_spacer,
            ComponentType.ROW.value: self._compile_row,
            ComponentType.TABLE.value: self._compile_table,
            ComponentType.DYNAMIC_LIST.value: self._compile_dynamic_list,
        }

    @property
    def supported_types(self) -> List[str]:
        return list(self._emitters)

    def compile(self, layout: LayoutModel) -> CommandStream:
        """Compile a layout to a command stream.

        Args:
            layout: The receipt layout to compile

        Returns:
            Command stream ending with a paper cut
        """
        paper_width = layout.settings.paper_width or DEFAULT_PAPER_WIDTH
        commands: List[Command] = []

        for component in layout.components:
            commands.extend(self.compile_component(component, paper_width))

        commands.append(CutPaperCommand())

        required = self.extract_required_tokens(layout)
        logger.debug(
            f"Compiled '{layout.metadata.name}': {len(layout.components)} components, "
            f"{len(commands)} commands, {len(required)} tokens"
        )

        return CommandStream(
            metadata=StreamMetadata(layout_id=layout.metadata.name, paper_width=paper_width),
            commands=commands,
            tokens=TokenManifest(required=required, optional=[]),
        )

    def compile_component(self, component: Any, paper_width: int = DEFAULT_PAPER_WIDTH) -> List[Command]:
        """Compile a single component, nested ones included."""
        kind = component_type(component)
        emitter = self._emitters.get(kind)
        if emitter is None:
            logger.warning(f"Skipping component of unknown type '{kind}'")
            return []
        return emitter(component, paper_width)

    def _compile_text(self, component: TextComponent, paper_width: int) -> List[Command]:
        style = component.style
        commands: List[Command] = []

        if style and style.alignment:
            commands.append(TextAlignCommand(alignment=style.alignment))
        if style and style.size:
            commands.append(TextSizeCommand(width=style.size.width, height=style.size.height))
        if style and (style.bold or style.underline or style.font_family):
            commands.append(TextStyleCommand(
                bold=style.bold,
                underline=style.underline,
                font_family=style.font_family,
            ))

        commands.append(TextCommand(
            value=component.content,
            style=TextStyleOptions(
                bold=style.bold if style else None,
                underline=style.underline if style else None,
                font_family=style.font_family if style else None,
            ),
        ))

        # Restore printer defaults
        if style and style.alignment and style.alignment != Alignment.LEFT:
            commands.append(TextAlignCommand(alignment=Alignment.LEFT))
        if style and style.size and not style.size.is_default:
            commands.append(TextSizeCommand(width=1, height=1))
        if self.reset_text_style and style and (style.bold or style.underline):
            commands.append(TextStyleCommand(bold=False, underline=False))

        return commands

    def _compile_barcode(self, component: BarcodeComponent, paper_width: int) -> List[Command]:
        options = component.options
        return [BarcodeCommand(
            data=component.data,
            format=component.format,
            width=options.width if options else None,
            height=options.height if options else None,
            hri=options.show_text if options else None,
        )]

    def _compile_qrcode(self, component: QRCodeComponent, paper_width: int) -> List[Command]:
        options = component.options
        return [QRCodeCommand(
            data=component.data,
            size=options.size if options else None,
            error_correction=options.error_correction if options else None,
        )]

    def _compile_image(self, component: ImageComponent, paper_width: int) -> List[Command]:
        options = component.options
        return [ImageCommand(
            image_data=component.src,
            width=options.width if options else None,
            height=options.height if options else None,
            alignment=options.alignment if options else None,
        )]

    def _compile_divider(self, component: DividerComponent, paper_width: int) -> List[Command]:
        return [TextCommand(value=divider_text(component.style, component.character, paper_width))]

    def _compile_spacer(self, component: SpacerComponent, paper_width: int) -> List[Command]:
        return [FeedLineCommand(lines=component.lines)]

    def _compile_row(self, component: RowComponent, paper_width: int) -> List[Command]:
        spans = resolve_row_widths([column.width for column in component.columns], paper_width)

        columns = [
            ColumnSpec(
                start=span.start,
                end=span.end,
                alignment=column.alignment,
                content=self.component_text(column.component),
            )
            for column, span in zip(component.columns, spans)
        ]
        return [ColumnLayoutCommand(columns=columns)]

    def _compile_table(self, component: TableComponent, paper_width: int) -> List[Command]:
        commands: List[Command] = []
        keys = [column.key for column in component.columns]

        # One grid for the whole table so rows line up
        contents: List[List[str]] = []
        for column in component.columns:
            texts: List[str] = []
            if component.show_header and column.header:
                texts.append(column.header)
            for row in component.rows:
                cell = row.get(column.key)
                if cell is not None and (isinstance(cell, str) or not self._is_complex(cell)):
                    texts.append(self._cell_text(cell))
            contents.append(texts)

        spans = resolve_table_widths([column.width for column in component.columns], contents, paper_width)

        def layout_row(texts: List[str]) -> ColumnLayoutCommand:
            return ColumnLayoutCommand(columns=[
                ColumnSpec(start=span.start, end=span.end, alignment=column.alignment, content=text)
                for column, span, text in zip(component.columns, spans, texts)
            ])

        if component.show_header:
            commands.append(layout_row([column.header or "" for column in component.columns]))
            if component.divider_after_header:
                commands.append(TextCommand(value=divider_text(DividerStyle.SOLID, "-", paper_width)))

        for row in component.rows:
            cells = [row.get(key) for key in keys]
            if any(cell is not None and not isinstance(cell, str) and self._is_complex(cell) for cell in cells):
                commands.extend(self._compile_complex_row(component, cells, paper_width))
            else:
                commands.append(layout_row([self._cell_text(cell) for cell in cells]))

        return commands

    def _compile_complex_row(self, table: TableComponent, cells: List[Any], paper_width: int) -> List[Command]:
        """Compile every cell on its own; the row leaves the column grid."""
        commands: List[Command] = []
        for cell in cells:
            if cell is None:
                continue
            if isinstance(cell, str):
                if cell:
                    commands.append(TextCommand(value=cell))
                continue
            if component_type(cell) == ComponentType.TABLE.value:
                logger.warning(f"Table '{table.id}' contains a nested table, skipping cell")
                continue
            commands.extend(self.compile_component(cell, paper_width))
        return commands

    def _compile_dynamic_list(self, component: DynamicListComponent, paper_width: int) -> List[Command]:
        return [TextCommand(value=dynamic_list_placeholder(component))]

    @staticmethod
    def _is_complex(component: Any) -> bool:
        return component_type(component) in COMPLEX_COMPONENT_TYPES

    def _cell_text(self, cell: Any) -> str:
        if cell is None:
            return ""
        if isinstance(cell, str):
            return cell
        return self.component_text(cell)

    def component_text(self, component: Any) -> str:
        """Reduce a component to the text it shows inside a column."""
        kind = component_type(component)
        if kind == ComponentType.TEXT.value:
            return component.content
        if kind in (ComponentType.BARCODE.value, ComponentType.QRCODE.value):
            return component.data
        if kind == ComponentType.DIVIDER.value:
            return (component.character or "-")[0] * 3
        if kind == ComponentType.SPACER.value:
            return ""
        if kind == ComponentType.IMAGE.value:
            return IMAGE_MARKER
        if kind == ComponentType.ROW.value:
            return " ".join(self.component_text(column.component) for column in component.columns)
        if kind == ComponentType.DYNAMIC_LIST.value:
            return dynamic_list_placeholder(component)
        if kind == ComponentType.TABLE.value:
            logger.warning(f"Nested table '{component.id}' cannot be laid out in a column")
        return ""

    def extract_required_tokens(self, layout: LayoutModel) -> List[str]:
        """Collect distinct token keys referenced by the layout, in order."""
        found: Dict[str, None] = {}

        def add(text: Optional[str]) -> None:
            for key in extract_tokens(text or ""):
                found.setdefault(key, None)

        def visit(component: Any) -> None:
            kind = component_type(component)
            if kind == ComponentType.TEXT.value:
                add(component.content)
            elif kind in (ComponentType.BARCODE.value, ComponentType.QRCODE.value):
                add(component.data)
            elif kind == ComponentType.ROW.value:
                for column in component.columns:
                    visit(column.component)
            elif kind == ComponentType.TABLE.value:
                for column in component.columns:
                    if component.show_header:
                        add(column.header)
                for row in component.rows:
                    for cell in row.values():
                        if isinstance(cell, str):
                            add(cell)
                        elif cell is not None:
                            visit(cell)

        for component in layout.components:
            visit(component)

        return list(found)


def compile_layout(layout: LayoutModel, **options: Any) -> CommandStream:
    """Compile a layout with a one-off compiler."""
    return ReceiptCompiler(**options).compile(layout)
