"""Advisory layout validation.

Reports structural problems without stopping anything: the compiler
never consults these results and compiles invalid layouts as well.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Set

from receiptdsl.printing.models import (
    DEFAULT_PAPER_WIDTH,
    BarcodeFormat,
    ComponentType,
    LayoutModel,
    component_type,
)
from receiptdsl.printing.tokens import TOKEN_PATTERN, extract_tokens, is_known_token

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of a validation pass."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


class LayoutValidator:
    """Collects errors and warnings while walking a layout."""

    def __init__(self, max_paper_width: int = DEFAULT_PAPER_WIDTH):
        self.max_paper_width = max_paper_width

    def validate(self, layout: LayoutModel) -> ValidationResult:
        result = ValidationResult()
        seen_ids: Set[str] = set()

        if not layout.components:
            result.errors.append("Layout must have at least one component")

        for index, component in enumerate(layout.components):
            self._check_component(component, f"components[{index}]", seen_ids, result, nested=False)

        if layout.settings.paper_width > self.max_paper_width:
            result.warnings.append(
                f"Paper width > {self.max_paper_width} characters may not be supported by all printers"
            )

        if result.errors:
            logger.debug(f"Layout '{layout.metadata.name}' has {len(result.errors)} errors")
        return result

    def _check_tokens(self, text: str, where: str, result: ValidationResult) -> None:
        for key in extract_tokens(text or ""):
            if not is_known_token(key):
                result.warnings.append(f"Unknown token {{{key}}} in {where}")

    def _check_component(
        self,
        component: Any,
        path: str,
        seen_ids: Set[str],
        result: ValidationResult,
        nested: bool,
    ) -> None:
        component_id = getattr(component, "id", "")
        if not component_id:
            result.errors.append(f"Component at {path} is missing an ID")
        elif component_id in seen_ids:
            result.errors.append(f"Duplicate component ID: {component_id}")
        else:
            seen_ids.add(component_id)

        kind = component_type(component)
        where = f"{kind} '{component_id}'"

        if kind == ComponentType.TEXT.value:
            self._check_tokens(component.content, where, result)

        elif kind == ComponentType.BARCODE.value:
            self._check_tokens(component.data, where, result)
            if component.format == BarcodeFormat.UPC_A and not TOKEN_PATTERN.search(component.data):
                if not (component.data.isdigit() and len(component.data) in (11, 12)):
                    result.warnings.append(f"UPC-A data in {where} must be 11 or 12 digits")

        elif kind == ComponentType.QRCODE.value:
            self._check_tokens(component.data, where, result)

        elif kind == ComponentType.SPACER.value:
            if component.lines < 1:
                result.warnings.append(f"Spacer '{component_id}' should feed at least one line")

        elif kind == ComponentType.ROW.value:
            percent_total = 0
            for col_index, column in enumerate(component.columns):
                if isinstance(column.width, (int, float)):
                    if not 1 <= column.width <= 100:
                        result.warnings.append(
                            f"Row '{component_id}' column {col_index} width {column.width}% is outside 1-100"
                        )
                    percent_total += column.width
                self._check_nested(column.component, f"{path}.columns[{col_index}]", seen_ids, result)
            if percent_total > 100:
                result.warnings.append(f"Row '{component_id}' percentages add up to {percent_total}%")

        elif kind == ComponentType.TABLE.value:
            if nested:
                result.errors.append(f"Table '{component_id}' cannot be nested inside a row or table")
            keys = [column.key for column in component.columns]
            for key in sorted({k for k in keys if keys.count(k) > 1}):
                result.errors.append(f"Duplicate column key '{key}' in table '{component_id}'")
            for column in component.columns:
                if component.show_header and column.header:
                    self._check_tokens(column.header, where, result)
            for row_index, row in enumerate(component.rows):
                for key, cell in row.items():
                    if isinstance(cell, str):
                        self._check_tokens(cell, where, result)
                    elif cell is not None:
                        self._check_nested(cell, f"{path}.rows[{row_index}].{key}", seen_ids, result)

        elif kind == ComponentType.DYNAMIC_LIST.value:
            self._check_component(component.template, f"{path}.template", seen_ids, result, nested=False)
            if component.separator is not None:
                self._check_component(component.separator, f"{path}.separator", seen_ids, result, nested=False)

        elif kind not in {t.value for t in ComponentType}:
            result.warnings.append(f"Unknown component type '{kind}' at {path}")

    def _check_nested(self, component: Any, path: str, seen_ids: Set[str], result: ValidationResult) -> None:
        self._check_component(component, path, seen_ids, result, nested=True)


def validate_layout(layout: LayoutModel, max_paper_width: int = DEFAULT_PAPER_WIDTH) -> ValidationResult:
    """Validate a layout; see LayoutValidator."""
    return LayoutValidator(max_paper_width=max_paper_width).validate(layout)
