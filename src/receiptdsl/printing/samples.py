"""Sample receipt layouts.

Creates ready-made layouts for previews, demos and tests, combining:
- Store header (name, address, phone)
- Order info and item table
- Totals
- Transaction barcode and footer
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from receiptdsl.printing.models import (
    Alignment,
    BarcodeComponent,
    BarcodeFormat,
    BarcodeOptions,
    DividerComponent,
    HriPosition,
    LayoutMetadata,
    LayoutModel,
    LayoutSettings,
    RowColumn,
    RowComponent,
    SpacerComponent,
    TableColumn,
    TableComponent,
    TextComponent,
    TextComponentStyle,
    TextSize,
)
from receiptdsl.printing.tokens import get_token


def generate_component_id() -> str:
    """Generate a unique id for a component."""
    return f"comp_{uuid.uuid4().hex[:12]}"


def _text(content: str, **style: Any) -> TextComponent:
    return TextComponent(
        id=generate_component_id(),
        content=content,
        style=TextComponentStyle(**style) if style else None,
    )


def _label_value_row(label: str, value: str, bold: bool = False) -> RowComponent:
    style = {"bold": True} if bold else {}
    return RowComponent(id=generate_component_id(), columns=[
        RowColumn(width="fill", alignment=Alignment.LEFT, component=_text(label, **style)),
        RowColumn(width="auto", alignment=Alignment.RIGHT, component=_text(value, **style)),
    ])


def mock_item_rows() -> List[Dict[str, str]]:
    """Item table rows built from the registry's mock order items."""
    rows = []
    for item in get_token("order_items").mock_value:
        rows.append({
            "name": item["name"],
            "quantity": str(item["quantity"]),
            "price": f"${item['price']:.2f}",
        })
    return rows


def create_sample_layout() -> LayoutModel:
    """Create a sample store receipt layout."""
    now = datetime.now(timezone.utc).isoformat()

    components = [
        # Header
        _text(
            "{store_name}",
            size=TextSize(width=2, height=2),
            bold=True,
            alignment=Alignment.CENTER,
        ),
        _text("{store_address}", alignment=Alignment.CENTER),
        _text("{store_phone}", alignment=Alignment.CENTER),
        DividerComponent(id=generate_component_id(), character="-"),

        # Order info
        RowComponent(id=generate_component_id(), columns=[
            RowColumn(width="fill", alignment=Alignment.LEFT, component=_text("Order #{order_number}")),
            RowColumn(width=40, alignment=Alignment.RIGHT, component=_text("{date} {time}")),
        ]),
        SpacerComponent(id=generate_component_id(), lines=1),

        # Items
        TableComponent(
            id=generate_component_id(),
            columns=[
                TableColumn(key="name", header="Item", width="fill", alignment=Alignment.LEFT),
                TableColumn(key="quantity", header="Qty", width="auto", alignment=Alignment.CENTER),
                TableColumn(key="price", header="Price", width="auto", alignment=Alignment.RIGHT),
            ],
            rows=mock_item_rows(),
            show_header=True,
            divider_after_header=True,
        ),
        DividerComponent(id=generate_component_id(), character="-"),

        # Totals
        _label_value_row("Subtotal:", "{subtotal}"),
        _label_value_row("Tax:", "{tax}"),
        _label_value_row("Total:", "{total}", bold=True),
        SpacerComponent(id=generate_component_id(), lines=1),

        # Barcode
        BarcodeComponent(
            id=generate_component_id(),
            data="{transaction_id}",
            format=BarcodeFormat.CODE128,
            options=BarcodeOptions(height=80, show_text=HriPosition.BELOW),
        ),

        # Footer
        SpacerComponent(id=generate_component_id(), lines=2),
        _text("Thank you for your visit!", alignment=Alignment.CENTER, bold=True),
        SpacerComponent(id=generate_component_id(), lines=3),
    ]

    return LayoutModel(
        version="1.0",
        metadata=LayoutMetadata(
            name="Sample Store Receipt",
            description="Standard receipt template",
            created_at=now,
            updated_at=now,
        ),
        components=components,
        settings=LayoutSettings(paper_width=80, default_font="monospace", locale="en-US"),
    )
