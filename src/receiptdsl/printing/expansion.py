"""Dynamic list flattening.

The compiler leaves dynamic lists as placeholders. This pass runs before
compilation and replaces each list by one copy of its template per data
item, with ``{item.<field>}`` placeholders filled from the item.
"""

import logging
import re
from typing import Any, List, Mapping

from pydantic import TypeAdapter

from receiptdsl.printing.models import (
    Component,
    ComponentType,
    DynamicListComponent,
    LayoutModel,
    component_type,
)

logger = logging.getLogger(__name__)


ITEM_PATTERN = re.compile(r"\{item(?:\.([A-Za-z0-9_]+))?\}")

_component_adapter = TypeAdapter(Component)


def _format_item_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def fill_item_placeholders(text: str, item: Any) -> str:
    """Replace ``{item}`` / ``{item.field}`` with values from one data item."""

    def _substitute(match: "re.Match[str]") -> str:
        field = match.group(1)
        if field is None:
            return _format_item_value(item)
        if isinstance(item, Mapping) and field in item and item[field] is not None:
            return _format_item_value(item[field])
        return match.group(0)

    return ITEM_PATTERN.sub(_substitute, text)


def _clone(node: Any, item: Any, suffix: str) -> Any:
    if isinstance(node, dict):
        cloned = {}
        is_component = "type" in node
        for key, value in node.items():
            if key == "id" and is_component and isinstance(value, str):
                cloned[key] = f"{value}{suffix}"
            elif key == "type" and is_component:
                cloned[key] = value
            else:
                cloned[key] = _clone(value, item, suffix)
        return cloned
    if isinstance(node, list):
        return [_clone(value, item, suffix) for value in node]
    if isinstance(node, str):
        return fill_item_placeholders(node, item)
    return node


def clone_component(component: Any, item: Any, suffix: str) -> Any:
    """Deep-copy a component for one data item, suffixing every id."""
    raw = component.model_dump(mode="json", by_alias=True, exclude_none=True)
    return _component_adapter.validate_python(_clone(raw, item, suffix))


def expand_dynamic_list(component: DynamicListComponent, items: List[Any]) -> List[Any]:
    expanded: List[Any] = []
    for index, item in enumerate(items):
        if index > 0 and component.separator is not None:
            expanded.append(clone_component(component.separator, item, f"-sep{index}"))
        expanded.append(clone_component(component.template, item, f"-{index}"))
    return expanded


def flatten_dynamic_lists(layout: LayoutModel, data: Mapping[str, Any]) -> LayoutModel:
    """Return a copy of the layout with top-level dynamic lists expanded.

    Args:
        layout: Layout to flatten; left unmodified
        data: Collections by data source name, e.g. a token context

    Returns:
        New layout; lists whose data source is missing stay in place
    """
    components: List[Any] = []
    for component in layout.components:
        if component_type(component) != ComponentType.DYNAMIC_LIST.value:
            components.append(component)
            continue

        items = data.get(component.data_source)
        if not isinstance(items, (list, tuple)):
            logger.debug(f"No data for dynamic list '{component.data_source}', leaving placeholder")
            components.append(component)
            continue

        expanded = expand_dynamic_list(component, list(items))
        logger.debug(f"Expanded '{component.data_source}' into {len(expanded)} components")
        components.extend(expanded)

    return layout.model_copy(update={"components": components}, deep=True)
