"""
Edge style resolution.

Maps the stored edge styles (``EdgeType``) to the connector kinds used by
the rendering layer and back, and applies a style to a batch of edges.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from whiteboard_mcp.models import EdgeRecord, EdgeType


class RenderKind(Enum):
    """Connector kinds understood by the renderer.  ``DEFAULT`` draws a bezier."""
    DEFAULT = "default"
    STRAIGHT = "straight"
    STEP = "step"
    SMOOTHSTEP = "smoothstep"
    SIMPLE_BEZIER = "simplebezier"


class RoutingLineKind(Enum):
    """Line kinds for the in-progress connection preview."""
    BEZIER = "default"
    STRAIGHT = "straight"
    STEP = "step"
    SMOOTH_STEP = "smoothstep"


class MarkerType(Enum):
    ARROW_CLOSED = "arrowclosed"


EDGE_STYLE_OPTIONS: list[EdgeType] = [
    EdgeType.SMOOTHSTEP,
    EdgeType.STRAIGHT,
    EdgeType.STEP,
    EdgeType.BEZIER,
]

EDGE_STYLE_LABELS: dict[EdgeType, str] = {
    EdgeType.SMOOTHSTEP: "Smooth",
    EdgeType.STRAIGHT: "Straight",
    EdgeType.STEP: "Step",
    EdgeType.BEZIER: "Bezier",
}

# Raw values that decode to a bezier; other unknown values decode to smoothstep.
_BEZIER_SYNONYMS = {
    RenderKind.DEFAULT.value,
    RenderKind.SIMPLE_BEZIER.value,
    EdgeType.BEZIER.value,
}
_PASSTHROUGH = {EdgeType.STRAIGHT.value, EdgeType.STEP.value, EdgeType.SMOOTHSTEP.value}


def to_render_kind(style: EdgeType) -> RenderKind:
    """Stored style -> renderer connector kind.  Only bezier is renamed."""
    if style == EdgeType.BEZIER:
        return RenderKind.DEFAULT
    return RenderKind(style.value)


def to_stored_style(value: Optional[str]) -> EdgeType:
    """Decode any raw value into a stored style.  Never fails.

    ``straight``, ``step`` and ``smoothstep`` pass through; ``default``,
    ``simplebezier`` and ``bezier`` become ``bezier``; anything else,
    including ``None``, becomes ``smoothstep``.
    """
    if isinstance(value, EdgeType):
        return value
    if not isinstance(value, str):
        return EdgeType.SMOOTHSTEP
    if value in _PASSTHROUGH:
        return EdgeType(value)
    if value in _BEZIER_SYNONYMS:
        return EdgeType.BEZIER
    return EdgeType.SMOOTHSTEP


def to_routing_kind(style: EdgeType) -> RoutingLineKind:
    if style == EdgeType.STRAIGHT:
        return RoutingLineKind.STRAIGHT
    if style == EdgeType.STEP:
        return RoutingLineKind.STEP
    if style == EdgeType.BEZIER:
        return RoutingLineKind.BEZIER
    return RoutingLineKind.SMOOTH_STEP


@dataclass(frozen=True)
class RenderEdge:
    """An edge as handed to the renderer."""
    id: str
    source: str
    target: str
    type: RenderKind
    animated: bool = False
    marker_end: MarkerType = MarkerType.ARROW_CLOSED
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
            "animated": self.animated,
            "markerEnd": {"type": self.marker_end.value},
        }
        if self.source_handle is not None:
            out["sourceHandle"] = self.source_handle
        if self.target_handle is not None:
            out["targetHandle"] = self.target_handle
        return out


def apply_edge_style(
    edges: Iterable[EdgeRecord | RenderEdge],
    style: EdgeType,
    animated: bool,
) -> list[RenderEdge]:
    """Give every edge the same connector kind, animation and closed arrowhead.

    Returns new objects; the input is not modified.
    """
    kind = to_render_kind(style)
    return [
        RenderEdge(
            id=edge.id,
            source=edge.source,
            target=edge.target,
            type=kind,
            animated=animated,
            marker_end=MarkerType.ARROW_CLOSED,
            source_handle=edge.source_handle,
            target_handle=edge.target_handle,
        )
        for edge in edges
    ]
