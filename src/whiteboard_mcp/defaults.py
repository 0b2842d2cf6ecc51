"""
Default values for documents, pages and every node type.
"""

from __future__ import annotations

import uuid
from typing import Optional

from whiteboard_mcp.geometry import Position, Size, Viewport, is_finite_positive
from whiteboard_mcp.models import (
    DataTableData,
    DataTableField,
    DiagramSettings,
    EdgeType,
    NodeRecord,
    NodeStyle,
    NodeType,
)


DEFAULT_VIEWPORT = Viewport(x=0, y=0, zoom=1)

# Grid size of a page created without any settings.  A settings object that
# is present but lacks ``gridSize`` falls back to DiagramSettings' own 10.
DEFAULT_GRID_SIZE = 8

DEFAULT_SETTINGS = DiagramSettings(
    snap_enabled=True,
    grid_size=DEFAULT_GRID_SIZE,
    edge_style=EdgeType.SMOOTHSTEP,
    edge_animated=False,
)

# Data-table geometry (px)
DATA_TABLE_DEFAULT_WIDTH = 300
DATA_TABLE_HEADER_HEIGHT = 38
DATA_TABLE_ROW_HEIGHT = 34
DATA_TABLE_FOOTER_HEIGHT = 36
DATA_TABLE_MIN_ROWS = 1


_DEFAULT_NODE_STYLES: dict[NodeType, tuple[str, str, str]] = {
    NodeType.RECTANGLE: ("#ffffff", "#cbd5e1", "#111827"),
    NodeType.ELLIPSE: ("#eef2ff", "#c7d2fe", "#1f2937"),
    NodeType.STICKY: ("#fef3c7", "#fcd34d", "#1f2937"),
    NodeType.TEXT_NODE: ("transparent", "#00000000", "#111827"),
    NodeType.DATA_TABLE: ("#ffffff", "#cbd5e1", "#111827"),
    NodeType.WIREFRAME_BUTTON: ("#f8fafc", "#cbd5e1", "#0f172a"),
    NodeType.WIREFRAME_INPUT: ("#ffffff", "#d4d4d8", "#3f3f46"),
    NodeType.WIREFRAME_CARD: ("#ffffff", "#d4d4d8", "#111827"),
    NodeType.WIREFRAME_AVATAR: ("#f4f4f5", "#d4d4d8", "#3f3f46"),
    NodeType.WIREFRAME_NAVBAR: ("#fafafa", "#d4d4d8", "#18181b"),
    NodeType.WIREFRAME_SIDEBAR: ("#fafafa", "#d4d4d8", "#18181b"),
    NodeType.WIREFRAME_MODAL: ("#ffffff", "#d4d4d8", "#18181b"),
}

_TEXT_NODE_FONT_SIZE = 16

_DEFAULT_NODE_SIZES: dict[NodeType, tuple[float, float]] = {
    NodeType.RECTANGLE: (180, 92),
    NodeType.ELLIPSE: (180, 110),
    NodeType.STICKY: (190, 135),
    NodeType.TEXT_NODE: (220, 42),
    NodeType.DATA_TABLE: (
        DATA_TABLE_DEFAULT_WIDTH,
        DATA_TABLE_HEADER_HEIGHT
        + DATA_TABLE_ROW_HEIGHT * DATA_TABLE_MIN_ROWS
        + DATA_TABLE_FOOTER_HEIGHT,
    ),
    NodeType.WIREFRAME_BUTTON: (144, 48),
    NodeType.WIREFRAME_INPUT: (220, 52),
    NodeType.WIREFRAME_CARD: (280, 170),
    NodeType.WIREFRAME_AVATAR: (72, 72),
    NodeType.WIREFRAME_NAVBAR: (420, 64),
    NodeType.WIREFRAME_SIDEBAR: (210, 290),
    NodeType.WIREFRAME_MODAL: (320, 208),
}

# Resize floors; types not listed use their default size.
_NODE_MIN_SIZES: dict[NodeType, tuple[float, float]] = {
    NodeType.RECTANGLE: (120, 80),
    NodeType.ELLIPSE: (120, 80),
    NodeType.STICKY: (160, 120),
    NodeType.TEXT_NODE: (120, 48),
    NodeType.DATA_TABLE: (220, 140),
}

_DEFAULT_NODE_TEXT: dict[NodeType, str] = {
    NodeType.RECTANGLE: "Rectangle",
    NodeType.ELLIPSE: "Ellipse",
    NodeType.STICKY: "Sticky note",
    NodeType.TEXT_NODE: "Text",
    NodeType.DATA_TABLE: "Table",
    NodeType.WIREFRAME_BUTTON: "Button",
    NodeType.WIREFRAME_INPUT: "Input",
    NodeType.WIREFRAME_CARD: "Card",
    NodeType.WIREFRAME_AVATAR: "AV",
    NodeType.WIREFRAME_NAVBAR: "Navigation",
    NodeType.WIREFRAME_SIDEBAR: "Sidebar",
    NodeType.WIREFRAME_MODAL: "Modal",
}


def new_id(prefix: str) -> str:
    """Return a fresh random identifier."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def default_node_style(node_type: NodeType) -> NodeStyle:
    fill, stroke, text_color = _DEFAULT_NODE_STYLES[node_type]
    font_size = _TEXT_NODE_FONT_SIZE if node_type == NodeType.TEXT_NODE else None
    return NodeStyle(fill, stroke, text_color, font_size)


def default_node_size(node_type: NodeType) -> Size:
    width, height = _DEFAULT_NODE_SIZES[node_type]
    return Size(width, height)


def default_node_text(node_type: NodeType) -> str:
    return _DEFAULT_NODE_TEXT[node_type]


def node_min_size(node_type: NodeType) -> Size:
    """Smallest size a node of *node_type* may be resized to."""
    width, height = _NODE_MIN_SIZES.get(node_type, _DEFAULT_NODE_SIZES[node_type])
    return Size(width, height)


def node_size_or_default(size: Optional[Size], node_type: NodeType) -> Size:
    """Keep each dimension of *size* that is finite and positive, else use the default."""
    fallback = default_node_size(node_type)
    if size is None:
        return fallback
    return Size(
        size.width if is_finite_positive(size.width) else fallback.width,
        size.height if is_finite_positive(size.height) else fallback.height,
    )


def data_table_height(field_count: int) -> float:
    rows = max(DATA_TABLE_MIN_ROWS, field_count)
    return DATA_TABLE_HEADER_HEIGHT + DATA_TABLE_ROW_HEIGHT * rows + DATA_TABLE_FOOTER_HEIGHT


def default_data_table_data(table_name: str = "Table") -> DataTableData:
    return DataTableData(
        table_name=table_name,
        fields=[DataTableField(id=new_id("field"), name="id", type="int", is_pk=True)],
    )


def create_default_node_record(
    node_id: str,
    node_type: NodeType,
    x: float,
    y: float,
    layer_id: str,
) -> NodeRecord:
    """Build a node of *node_type* at (x, y) with its default size, text and style."""
    data: Optional[DataTableData] = None
    size = default_node_size(node_type)
    if node_type == NodeType.DATA_TABLE:
        data = default_data_table_data()
        size = Size(size.width, data_table_height(len(data.fields)))
    return NodeRecord(
        id=node_id,
        type=node_type,
        position=Position(x, y),
        size=size,
        text=default_node_text(node_type),
        style=default_node_style(node_type),
        layer_id=layer_id,
        data=data,
    )
