"""Receipt interpreter.

Replays a compiled command stream against a print surface, resolving
tokens and rebuilding fixed-width column text as it goes. A failing
command is logged and skipped.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from receiptdsl.config.settings import Settings, get_settings
from receiptdsl.hardware.base import PrintSurface
from receiptdsl.printing.columns import fit_text
from receiptdsl.printing.commands import (
    BarcodeCommand,
    ColumnLayoutCommand,
    CommandStream,
    CommandType,
    FeedLineCommand,
    ImageCommand,
    LineSpaceCommand,
    QRCodeCommand,
    SetPositionCommand,
    TextAlignCommand,
    TextCommand,
    TextSizeCommand,
    TextStyleCommand,
)
from receiptdsl.printing.models import DEFAULT_PAPER_WIDTH, TextStyleOptions
from receiptdsl.printing.tokens import create_mock_context, replace_tokens

logger = logging.getLogger(__name__)


class InterpreterState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class ReceiptInterpreter:
    """Executes command streams against a print surface.

    The interpreter keeps a token context seeded with the registry's mock
    values. Runs on one surface must not overlap; use one interpreter per
    surface or serialise runs through a PrintManager.
    """

    def __init__(
        self,
        surface: PrintSurface,
        settings: Optional[Settings] = None,
        use_mock_tokens: bool = True,
    ):
        self.surface = surface
        self._settings = settings or get_settings()
        self._token_context: Dict[str, Any] = create_mock_context() if use_mock_tokens else {}
        self._state = InterpreterState.IDLE
        self._run_context: Optional[Dict[str, Any]] = None
        self._paper_width = DEFAULT_PAPER_WIDTH

        self._handlers: Dict[str, Callable[[Any], None]] = {
            CommandType.TEXT.value: self._execute_text,
            CommandType.TEXT_ALIGN.value: self._execute_text_align,
            CommandType.TEXT_SIZE.value: self._execute_text_size,
            CommandType.TEXT_STYLE.value: self._execute_text_style,
            CommandType.FEED_LINE.value: self._execute_feed_line,
            CommandType.LINE_SPACE.value: self._execute_line_space,
            CommandType.BARCODE.value: self._execute_barcode,
            CommandType.QRCODE.value: self._execute_qrcode,
            CommandType.IMAGE.value: self._execute_image,
            CommandType.CUT_PAPER.value: self._execute_cut_paper,
            CommandType.SET_POSITION.value: self._execute_set_position,
            CommandType.COLUMN_LAYOUT.value: self._execute_column_layout,
        }

    @property
    def state(self) -> InterpreterState:
        return self._state

    @property
    def token_context(self) -> Dict[str, Any]:
        return dict(self._token_context)

    def set_token_context(self, context: Mapping[str, Any]) -> None:
        """Merge values into the interpreter's token context."""
        self._token_context.update(context)

    def execute(self, stream: CommandStream, tokens: Optional[Mapping[str, Any]] = None) -> int:
        """Replay a command stream on the surface.

        Args:
            stream: Compiled command stream
            tokens: Token context for this run only; defaults to the
                interpreter's own context

        Returns:
            Number of commands that executed without error
        """
        if self._state is InterpreterState.RUNNING:
            raise RuntimeError("Interpreter is already running")

        context = dict(tokens) if tokens is not None else self._token_context
        self._paper_width = stream.paper_width or DEFAULT_PAPER_WIDTH
        executed = 0

        self._state = InterpreterState.RUNNING
        self._run_context = context
        try:
            self.surface.clear()
            for index, command in enumerate(stream.commands):
                try:
                    self._execute_command(command)
                    executed += 1
                except Exception as e:
                    logger.error(f"Command {index} ({command.type}) failed: {e}")
        finally:
            self._state = InterpreterState.IDLE
            self._run_context = None

        logger.debug(f"Executed {executed}/{len(stream.commands)} commands")
        return executed

    def replace_tokens(self, text: str) -> str:
        context = self._run_context if self._state is InterpreterState.RUNNING else self._token_context
        return replace_tokens(
            text,
            context,
            currency_symbol=self._settings.currency_symbol,
            date_format=self._settings.date_format,
        )

    def _execute_command(self, command: Any) -> None:
        handler = self._handlers.get(command.type)
        if handler is None:
            logger.warning(f"Ignoring unknown command type '{command.type}'")
            return
        handler(command)

    def _execute_text(self, command: TextCommand) -> None:
        self.surface.add_text(self.replace_tokens(command.value), command.style)

    def _execute_text_align(self, command: TextAlignCommand) -> None:
        self.surface.add_text_align(command.alignment)

    def _execute_text_size(self, command: TextSizeCommand) -> None:
        self.surface.add_text_size(command.width, command.height)

    def _execute_text_style(self, command: TextStyleCommand) -> None:
        self.surface.add_text_style(TextStyleOptions(
            bold=command.bold,
            underline=command.underline,
            font_family=command.font_family,
        ))

    def _execute_feed_line(self, command: FeedLineCommand) -> None:
        self.surface.add_feed_line(command.lines)

    def _execute_line_space(self, command: LineSpaceCommand) -> None:
        self.surface.add_line_space(command.space)

    def _execute_barcode(self, command: BarcodeCommand) -> None:
        self.surface.add_barcode(
            self.replace_tokens(command.data),
            command.format,
            width=command.width,
            height=command.height,
            hri=command.hri,
        )

    def _execute_qrcode(self, command: QRCodeCommand) -> None:
        self.surface.add_qr_code(
            self.replace_tokens(command.data),
            size=command.size,
            error_correction=command.error_correction,
        )

    def _execute_image(self, command: ImageCommand) -> None:
        logger.warning("Image commands are not supported yet, skipping")

    def _execute_cut_paper(self, command: Any) -> None:
        self.surface.cut_paper()

    def _execute_set_position(self, command: SetPositionCommand) -> None:
        # Column placement is handled by columnLayout
        logger.debug(f"Ignoring setPosition x={command.x}")

    def _execute_column_layout(self, command: ColumnLayoutCommand) -> None:
        self.surface.add_text(self.render_column_line(command))

    def render_column_line(self, command: ColumnLayoutCommand) -> str:
        """Build the single text line a column layout describes."""
        char_width = self._settings.device_width_px / self._paper_width
        line = ""

        for column in command.columns:
            content = self.replace_tokens(column.content)

            # Snap offsets to whole device pixels, then back to characters
            start_px = int(column.start * char_width)
            end_px = int(column.end * char_width)
            start = round(start_px / char_width)
            end = round(end_px / char_width)
            width = max(0, end - start)

            if len(line) > start:
                logger.debug(f"Column at {start} overlaps previous content, truncating line")
                line = line[:start]
            else:
                line += " " * (start - len(line))

            line += fit_text(content, width, column.alignment)

        return line
