"""
Core document model for collaborative diagrams.

A diagram document is a tree of flat collections: pages hold layers,
nodes and edges, and nodes/edges point at their layer by id.  Cross
references are plain identifiers, never object references, so a document
can always be serialized as-is and repaired by id lookups.

The ``to_dict`` methods emit the persisted (camelCase) layout.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from whiteboard_mcp.geometry import NodeBounds, Position, Size, Viewport


DATA_VERSION = 2
LEGACY_DATA_VERSION = 1


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NodeType(Enum):
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    STICKY = "sticky"
    TEXT_NODE = "textNode"
    DATA_TABLE = "dataTable"
    WIREFRAME_BUTTON = "wireframeButton"
    WIREFRAME_INPUT = "wireframeInput"
    WIREFRAME_CARD = "wireframeCard"
    WIREFRAME_AVATAR = "wireframeAvatar"
    WIREFRAME_NAVBAR = "wireframeNavbar"
    WIREFRAME_SIDEBAR = "wireframeSidebar"
    WIREFRAME_MODAL = "wireframeModal"


class EdgeType(Enum):
    """Stored connector routing style.  This is the only stored vocabulary."""
    SMOOTHSTEP = "smoothstep"
    STRAIGHT = "straight"
    STEP = "step"
    BEZIER = "bezier"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class NodeStyle:
    fill: str
    stroke: str
    text_color: str
    font_size: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "fill": self.fill,
            "stroke": self.stroke,
            "textColor": self.text_color,
        }
        if self.font_size is not None:
            out["fontSize"] = self.font_size
        return out


@dataclass
class DiagramSettings:
    """Per-page editing settings."""
    snap_enabled: bool = True
    grid_size: int = 10
    edge_style: EdgeType = EdgeType.SMOOTHSTEP
    edge_animated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "snapEnabled": self.snap_enabled,
            "gridSize": self.grid_size,
            "edgeStyle": self.edge_style.value,
            "edgeAnimated": self.edge_animated,
        }


@dataclass
class Layer:
    """A z-ordered grouping of nodes and edges within a page."""
    id: str
    name: str
    order: int = 0
    is_visible: bool = True
    is_locked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "order": self.order,
            "isVisible": self.is_visible,
            "isLocked": self.is_locked,
        }


@dataclass
class DataTableField:
    id: str
    name: str
    type: str
    is_pk: Optional[bool] = None
    is_fk: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type}
        if self.is_pk is not None:
            out["isPK"] = self.is_pk
        if self.is_fk is not None:
            out["isFK"] = self.is_fk
        return out


@dataclass
class DataTableData:
    """Payload of a ``dataTable`` node: a table name and its columns."""
    table_name: str
    fields: list[DataTableField] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tableName": self.table_name,
            "fields": [f.to_dict() for f in self.fields],
        }


@dataclass
class NodeRecord:
    """A placed shape."""
    id: str
    type: NodeType
    position: Position
    size: Size
    text: str
    style: NodeStyle
    layer_id: str
    data: Optional[DataTableData] = None

    @property
    def bounds(self) -> NodeBounds:
        return NodeBounds(self.position.x, self.position.y,
                          self.size.width, self.size.height)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "position": self.position.to_dict(),
            "size": self.size.to_dict(),
            "text": self.text,
            "style": self.style.to_dict(),
            "layerId": self.layer_id,
        }
        if self.data is not None:
            out["data"] = self.data.to_dict()
        return out


@dataclass
class EdgeRecord:
    """A directed connector between two nodes of the same page."""
    id: str
    source: str
    target: str
    layer_id: str
    type: Optional[EdgeType] = None
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
        }
        if self.source_handle is not None:
            out["sourceHandle"] = self.source_handle
        if self.target_handle is not None:
            out["targetHandle"] = self.target_handle
        if self.type is not None:
            out["type"] = self.type.value
        out["layerId"] = self.layer_id
        return out


@dataclass
class Page:
    """An independently viewported canvas within a document."""
    id: str
    name: str
    layers: list[Layer]
    active_layer_id: str
    viewport: Viewport = field(default_factory=Viewport)
    settings: DiagramSettings = field(default_factory=DiagramSettings)
    nodes: list[NodeRecord] = field(default_factory=list)
    edges: list[EdgeRecord] = field(default_factory=list)

    def find_node(self, node_id: str) -> Optional[NodeRecord]:
        return next((node for node in self.nodes if node.id == node_id), None)

    def edge_type(self, edge: EdgeRecord) -> EdgeType:
        """Effective routing style of *edge*: its own, else the page default."""
        return edge.type if edge.type is not None else self.settings.edge_style

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "viewport": self.viewport.to_dict(),
            "settings": self.settings.to_dict(),
            "layers": [layer.to_dict() for layer in self.layers],
            "activeLayerId": self.active_layer_id,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


@dataclass
class DiagramDocument:
    """Root aggregate: the full versioned state of one diagram."""
    active_page_id: str
    pages: list[Page]
    data_version: int = DATA_VERSION

    @property
    def active_page(self) -> Page:
        return self.find_page(self.active_page_id) or self.pages[0]

    def find_page(self, page_id: str) -> Optional[Page]:
        return next((page for page in self.pages if page.id == page_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataVersion": self.data_version,
            "activePageId": self.active_page_id,
            "pages": [page.to_dict() for page in self.pages],
        }

    def to_json(self, pretty: bool = True) -> str:
        return json.dumps(self.to_dict(), indent=2 if pretty else None)


@dataclass
class LegacyDocument:
    """The version-1, single-page shape.

    Version-1 nodes and edges have no layer; their ``layer_id`` is empty
    until migration assigns one.
    """
    nodes: list[NodeRecord]
    edges: list[EdgeRecord]
    viewport: Optional[Viewport] = None
    settings: Optional[DiagramSettings] = None
