"""Canvas print surface.

Renders receipts to a grayscale Pillow image the width of the printer
head (384 dots for 58mm paper at 203 DPI). Each printed line becomes a
full-width strip; strips are stacked when the image is requested, so the
canvas grows with the receipt.
"""

import logging
from io import BytesIO
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from PIL import Image, ImageDraw, ImageFont

from receiptdsl.config.settings import CanvasSettings
from receiptdsl.hardware.base import PrintSurface
from receiptdsl.printing.models import (
    DEFAULT_PAPER_WIDTH,
    Alignment,
    BarcodeFormat,
    ErrorCorrection,
    HriPosition,
    TextStyleOptions,
)

logger = logging.getLogger(__name__)


WHITE = 255
BLACK = 0

# DejaVu/Liberation mono advance is ~0.6 of the point size
MONO_ADVANCE_RATIO = 0.6

# python-barcode names; it has no CODE93 so CODE128 stands in
BARCODE_CLASSES = {
    BarcodeFormat.CODE39: "code39",
    BarcodeFormat.CODE128: "code128",
    BarcodeFormat.UPC_A: "upca",
    BarcodeFormat.CODE93: "code128",
}


class CanvasPrintSurface(PrintSurface):
    """Pixel canvas standing in for a thermal receipt printer."""

    def __init__(
        self,
        width: int = 384,
        chars_per_line: int = DEFAULT_PAPER_WIDTH,
        settings: Optional[CanvasSettings] = None,
    ):
        """Initialize the canvas.

        Args:
            width: Canvas width in pixels (printer dots)
            chars_per_line: Characters that fit on one line at size 1
            settings: Fonts, margins and symbol defaults
        """
        self.width = width
        self.chars_per_line = chars_per_line
        self.settings = settings or CanvasSettings()
        self._font_cache: Dict[Tuple[int, bool], ImageFont.ImageFont] = {}
        self._strips: List[Image.Image] = []
        self._reset_state()

    def _reset_state(self) -> None:
        self._alignment = Alignment.LEFT
        self._size = (1, 1)
        self._bold = False
        self._underline = False
        self._line_space = 0

    @property
    def base_font_size(self) -> int:
        char_px = self.width / self.chars_per_line
        return max(6, round(char_px / MONO_ADVANCE_RATIO))

    @property
    def height(self) -> int:
        return sum(strip.height for strip in self._strips)

    def _get_font(self, size: int, bold: bool = False):
        """Get a monospace font, with caching."""
        cache_key = (size, bold)
        if cache_key in self._font_cache:
            return self._font_cache[cache_key]

        paths = list(self.settings.bold_font_paths) if bold else []
        paths += list(self.settings.font_paths)
        for path in paths:
            try:
                font = ImageFont.truetype(path, size)
                self._font_cache[cache_key] = font
                return font
            except (OSError, IOError):
                continue

        font = ImageFont.load_default()
        self._font_cache[cache_key] = font
        return font

    def _x_for(self, content_width: int, alignment: Alignment) -> int:
        margin = self.settings.margin_px
        usable = self.width - 2 * margin
        if alignment == Alignment.CENTER:
            x = margin + (usable - content_width) // 2
        elif alignment == Alignment.RIGHT:
            x = margin + usable - content_width
        else:
            x = margin
        return max(0, x)

    def _append_blank(self, height: int) -> None:
        if height > 0:
            self._strips.append(Image.new('L', (self.width, height), WHITE))

    def _append_image(self, img: Image.Image, alignment: Alignment = Alignment.CENTER) -> None:
        """Paste an image on its own strip, shrunk to fit the paper."""
        if img.mode != 'L':
            img = img.convert('L')
        max_width = self.width - 2 * self.settings.margin_px
        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, max(1, int(img.height * ratio))), Image.Resampling.NEAREST)

        strip = Image.new('L', (self.width, img.height + 4), WHITE)
        strip.paste(img, (self._x_for(img.width, alignment), 2))
        self._strips.append(strip)

    def _render_line(self, line: str, bold: bool, underline: bool) -> Image.Image:
        """Render one text line to a full-width strip."""
        width_mult, height_mult = self._size
        font_size = self.base_font_size * height_mult
        font = self._get_font(font_size, bold)

        measure = ImageDraw.Draw(Image.new('L', (1, 1), WHITE))
        try:
            bbox = measure.textbbox((0, 0), line or " ", font=font)
            text_w, text_h = bbox[2], max(bbox[3], font_size)
        except Exception:
            text_w, text_h = len(line) * (font_size // 2), font_size

        line_img = Image.new('L', (max(1, text_w), text_h + 3), WHITE)
        draw = ImageDraw.Draw(line_img)
        draw.text((0, 0), line, font=font, fill=BLACK)
        if bold:
            # Double strike
            draw.text((1, 0), line, font=font, fill=BLACK)
        if underline and line:
            draw.line([(0, text_h + 1), (text_w, text_h + 1)], fill=BLACK, width=1)

        if width_mult != height_mult:
            stretched = max(1, int(line_img.width * width_mult / height_mult))
            line_img = line_img.resize((stretched, line_img.height), Image.Resampling.NEAREST)

        strip = Image.new('L', (self.width, line_img.height + self._line_space), WHITE)
        strip.paste(line_img.crop((0, 0, min(line_img.width, self.width), line_img.height)),
                    (self._x_for(min(line_img.width, self.width), self._alignment), 0))
        return strip

    def clear(self) -> None:
        self._strips = []
        self._reset_state()

    def add_text(self, text: str, style: Optional[TextStyleOptions] = None) -> None:
        bold = self._bold if style is None or style.bold is None else style.bold
        underline = self._underline if style is None or style.underline is None else style.underline
        for line in text.split("\n"):
            self._strips.append(self._render_line(line, bold, underline))

    def add_text_align(self, alignment: Alignment) -> None:
        self._alignment = Alignment(alignment)

    def add_text_size(self, width: int, height: int) -> None:
        self._size = (min(8, max(1, width)), min(8, max(1, height)))

    def add_text_style(self, style: TextStyleOptions) -> None:
        if style.bold is not None:
            self._bold = style.bold
        if style.underline is not None:
            self._underline = style.underline

    def add_feed_line(self, lines: int) -> None:
        line_height = self.base_font_size * self._size[1] + 3 + self._line_space
        self._append_blank(line_height * max(0, lines))

    def add_line_space(self, space: int) -> None:
        self._line_space = max(0, space)

    def add_barcode(
        self,
        data: str,
        fmt: BarcodeFormat,
        width: Optional[int] = None,
        height: Optional[int] = None,
        hri: Optional[HriPosition] = None,
    ) -> None:
        hri = HriPosition(hri) if hri is not None else HriPosition.NONE
        try:
            from barcode import get_barcode_class
            from barcode.writer import ImageWriter

            fmt = BarcodeFormat(fmt)
            if fmt == BarcodeFormat.CODE93:
                logger.debug("CODE93 not available, drawing as CODE128")

            dpi = self.settings.barcode_dpi
            dots_to_mm = 25.4 / dpi
            barcode_cls = get_barcode_class(BARCODE_CLASSES[fmt])
            code = barcode_cls(data, writer=ImageWriter())
            img = code.render(writer_options={
                "module_width": (width or 2) * dots_to_mm,
                "module_height": (height or self.settings.default_barcode_height) * dots_to_mm,
                "quiet_zone": 2.0,
                "dpi": dpi,
                "write_text": False,
            })
        except Exception as e:
            logger.error(f"Failed to render barcode {fmt}: {e}")
            self.add_text(data)
            return

        if hri in (HriPosition.ABOVE, HriPosition.BOTH):
            self._hri_line(data)
        self._append_image(img, Alignment.CENTER)
        if hri in (HriPosition.BELOW, HriPosition.BOTH):
            self._hri_line(data)

    def _hri_line(self, data: str) -> None:
        alignment, self._alignment = self._alignment, Alignment.CENTER
        try:
            self._strips.append(self._render_line(data, False, False))
        finally:
            self._alignment = alignment

    def add_qr_code(
        self,
        data: str,
        size: Optional[int] = None,
        error_correction: Optional[ErrorCorrection] = None,
    ) -> None:
        try:
            import qrcode

            levels = {
                ErrorCorrection.L: qrcode.constants.ERROR_CORRECT_L,
                ErrorCorrection.M: qrcode.constants.ERROR_CORRECT_M,
                ErrorCorrection.Q: qrcode.constants.ERROR_CORRECT_Q,
                ErrorCorrection.H: qrcode.constants.ERROR_CORRECT_H,
            }
            level = ErrorCorrection(error_correction) if error_correction else ErrorCorrection.M

            qr = qrcode.QRCode(
                version=None,
                error_correction=levels[level],
                box_size=max(1, size or self.settings.default_qr_module),
                border=1,
            )
            qr.add_data(data)
            qr.make(fit=True)
            qr_img = qr.make_image(fill_color="black", back_color="white").convert('L')
        except Exception as e:
            logger.error(f"Failed to render QR code: {e}")
            self.add_text(data)
            return

        self._append_image(qr_img, Alignment.CENTER)

    def cut_paper(self) -> None:
        strip = Image.new('L', (self.width, 12), WHITE)
        draw = ImageDraw.Draw(strip)
        dash_len = 8
        gap_len = 4
        x = 0
        while x < self.width:
            draw.line([(x, 6), (min(x + dash_len, self.width), 6)], fill=BLACK, width=1)
            x += dash_len + gap_len
        self._strips.append(strip)

    def to_image(self) -> Image.Image:
        """Stack all strips into one receipt image."""
        img = Image.new('L', (self.width, max(1, self.height)), WHITE)
        y = 0
        for strip in self._strips:
            img.paste(strip, (0, y))
            y += strip.height
        return img

    def to_png(self) -> bytes:
        """Render the receipt to PNG image bytes."""
        buffer = BytesIO()
        self.to_image().save(buffer, format='PNG')
        return buffer.getvalue()

    def get_buffer(self) -> NDArray[np.uint8]:
        """Get the receipt as a (height, width) grayscale array."""
        return np.asarray(self.to_image(), dtype=np.uint8).copy()
