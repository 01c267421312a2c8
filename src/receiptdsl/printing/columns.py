"""Fixed-width column geometry.

Rows and tables lay text out on a grid of ``paper_width`` characters.
These helpers turn width policies ('auto', 'fill', percentages) into
character offsets and fit text into the resulting cells.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from receiptdsl.printing.models import Alignment

logger = logging.getLogger(__name__)


# Auto-sized row columns never exceed this many characters
ROW_AUTO_WIDTH_CAP = 10

# Auto-sized table columns get content length plus padding, at least the minimum
TABLE_AUTO_PADDING = 2
TABLE_AUTO_MIN_WIDTH = 10

FLOAT_TOLERANCE = 1e-9


@dataclass
class ColumnSpan:
    """Character offsets of one column, ``end`` exclusive."""

    start: int
    end: int

    @property
    def width(self) -> int:
        return max(0, self.end - self.start)


def parse_percentage(value: Union[str, int, float, None]) -> Optional[float]:
    """Parse '50%', '50' or 50 into a percentage, None for 'auto'/'fill'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    try:
        return float(text)
    except ValueError:
        return None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _spans_from_widths(widths: Sequence[float], paper_width: int) -> List[ColumnSpan]:
    """Assign start/end offsets left to right, clamped to the paper."""
    spans: List[ColumnSpan] = []
    position = 0.0
    for width in widths:
        # Fractional percentages leave float noise just below whole offsets
        start = min(paper_width, math.floor(position + FLOAT_TOLERANCE))
        end = min(paper_width, math.floor(position + width + FLOAT_TOLERANCE))
        spans.append(ColumnSpan(start=start, end=max(start, end)))
        position += width
    return spans


def resolve_row_widths(widths: Sequence[Union[str, int, float]], paper_width: int) -> List[ColumnSpan]:
    """Resolve row column widths.

    Percentages take their share of the paper. Auto columns take at most
    ``ROW_AUTO_WIDTH_CAP`` characters out of what percentages leave, and
    fill columns share the rest equally.

    Args:
        widths: Per-column width policy ('auto', 'fill' or 1-100)
        paper_width: Line width in characters

    Returns:
        One span per column, in column order
    """
    percent_widths = [
        _clamp(float(w), 0, 100) / 100 * paper_width
        for w in widths if w not in ("auto", "fill")
    ]
    fixed = min(float(paper_width), sum(percent_widths))
    remaining = paper_width - fixed

    auto_count = sum(1 for w in widths if w == "auto")
    fill_count = sum(1 for w in widths if w == "fill")

    auto_width = min(ROW_AUTO_WIDTH_CAP, remaining / auto_count) if auto_count else 0.0
    fill_width = max(0.0, remaining - auto_width * auto_count) / fill_count if fill_count else 0.0

    resolved: List[float] = []
    for width in widths:
        if width == "fill":
            resolved.append(fill_width)
        elif width == "auto":
            resolved.append(auto_width)
        else:
            resolved.append(_clamp(float(width), 0, 100) / 100 * paper_width)

    return _spans_from_widths(resolved, paper_width)


def resolve_table_widths(
    widths: Sequence[Union[str, int, float]],
    contents: Sequence[Sequence[str]],
    paper_width: int,
) -> List[ColumnSpan]:
    """Resolve table column widths.

    Percentages are rescaled to 100 when every column is a percentage
    and they do not already add up, or whenever they add up to more than
    100. Auto columns fit their longest content plus padding. Fill columns
    split what is left evenly; leftover characters go to the earliest
    columns.

    Args:
        widths: Per-column width policy ('auto', 'fill', '50%', 50)
        contents: Per-column texts used to size auto columns
        paper_width: Line width in characters

    Returns:
        One span per column, in column order
    """
    kinds: List[str] = []
    percents: List[float] = []
    for width in widths:
        if width in ("auto", "fill"):
            kinds.append(width)
            percents.append(0.0)
            continue
        percent = parse_percentage(width)
        if percent is None:
            logger.debug(f"Unrecognised table width {width!r}, treating as auto")
            kinds.append("auto")
            percents.append(0.0)
        else:
            kinds.append("percent")
            percents.append(max(0.0, percent))

    percent_total = sum(percents)
    all_percent = bool(kinds) and all(kind == "percent" for kind in kinds)
    if percent_total > 0 and (percent_total > 100 or (all_percent and percent_total != 100)):
        scale = 100 / percent_total
        percents = [p * scale for p in percents]
        percent_total = 100.0

    resolved: List[int] = []
    for index, kind in enumerate(kinds):
        if kind == "percent":
            resolved.append(math.floor(percents[index] / 100 * paper_width))
        elif kind == "auto":
            column_texts = contents[index] if index < len(contents) else []
            longest = max((len(text) for text in column_texts), default=0)
            resolved.append(max(longest + TABLE_AUTO_PADDING, TABLE_AUTO_MIN_WIDTH))
        else:
            resolved.append(0)

    fill_indexes = [i for i, kind in enumerate(kinds) if kind == "fill"]
    leftover = max(0, paper_width - sum(resolved))
    if fill_indexes:
        base, extra = divmod(leftover, len(fill_indexes))
        for position, index in enumerate(fill_indexes):
            resolved[index] = base + (1 if position < extra else 0)
    elif all_percent and math.isclose(percent_total, 100):
        # Percentages own the whole line: hand rounding loss to the first columns
        for index in range(min(leftover, len(resolved))):
            resolved[index] += 1

    return _spans_from_widths(resolved, paper_width)


def fit_text(text: str, width: int, alignment: Alignment = Alignment.LEFT) -> str:
    """Pad or truncate text to exactly ``width`` characters."""
    if width <= 0:
        return ""
    if len(text) >= width:
        return text[:width]

    padding = width - len(text)
    if alignment == Alignment.CENTER:
        left = padding // 2
        return " " * left + text + " " * (padding - left)
    if alignment == Alignment.RIGHT:
        return " " * padding + text
    return text + " " * padding
