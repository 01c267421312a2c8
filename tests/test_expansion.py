"""Tests for dynamic list flattening."""

from receiptdsl.printing.expansion import fill_item_placeholders, flatten_dynamic_lists
from receiptdsl.printing.models import DynamicListComponent
from receiptdsl.printing.tokens import create_mock_context


ITEMS_LIST = {
    "type": "dynamic-list",
    "id": "items",
    "dataSource": "order_items",
    "template": {
        "type": "row",
        "id": "line",
        "columns": [
            {"width": "fill", "component": {"type": "text", "id": "name", "content": "{item.quantity}x {item.name}"}},
            {"width": "auto", "alignment": "right", "component": {"type": "text", "id": "price", "content": "{item.price}"}},
        ],
    },
    "separator": {"type": "divider", "id": "sep", "style": "dashed"},
}


def test_fill_item_placeholders():
    item = {"name": "Taco", "price": 3.5}
    assert fill_item_placeholders("{item.name} {item.price}", item) == "Taco 3.50"
    assert fill_item_placeholders("{item.missing}", item) == "{item.missing}"
    assert fill_item_placeholders("{item}", "plain") == "plain"
    assert fill_item_placeholders("{store_name}", item) == "{store_name}"


def test_flatten_expands_each_item(make_layout):
    layout = make_layout(ITEMS_LIST)
    flattened = flatten_dynamic_lists(layout, create_mock_context())

    ids = [component.id for component in flattened.components]
    assert ids == ["line-0", "sep-sep1", "line-1", "sep-sep2", "line-2"]

    first = flattened.components[0]
    assert first.columns[0].component.content == "2x Crunchy Taco"
    assert first.columns[0].component.id == "name-0"
    assert first.columns[1].component.content == "3.99"


def test_flatten_does_not_modify_input(make_layout):
    layout = make_layout(ITEMS_LIST)
    before = layout.to_dict()
    flatten_dynamic_lists(layout, create_mock_context())
    assert layout.to_dict() == before
    assert isinstance(layout.components[0], DynamicListComponent)


def test_missing_data_source_is_kept(make_layout):
    layout = make_layout(ITEMS_LIST)
    flattened = flatten_dynamic_lists(layout, {})
    assert isinstance(flattened.components[0], DynamicListComponent)


def test_registry_tokens_survive_expansion(make_layout):
    layout = make_layout({
        "type": "dynamic-list",
        "id": "items",
        "dataSource": "lines",
        "template": {"type": "text", "id": "t", "content": "{item} @ {store_name}"},
    })
    flattened = flatten_dynamic_lists(layout, {"lines": ["a", "b"]})
    assert [c.content for c in flattened.components] == ["a @ {store_name}", "b @ {store_name}"]


def test_flattened_layout_compiles(compiler, make_layout):
    layout = flatten_dynamic_lists(make_layout(ITEMS_LIST), create_mock_context())
    stream = compiler.compile(layout)
    assert stream.command_types() == [
        "columnLayout", "text", "columnLayout", "text", "columnLayout", "cutPaper",
    ]
    contents = [c.content for c in stream.commands[0].columns]
    assert contents == ["2x Crunchy Taco", "3.99"]
