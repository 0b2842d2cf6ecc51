"""
Snap engine: grid quantization and alignment guides.

Called on every drag/resize frame, so everything here is linear in the
number of candidate nodes and allocation-light.  All coordinates are in
document space; ``SnapGuides.to_screen`` projects guides for display.

Two independent mechanisms:

- alignment: the moving node's left/centre/right (top/centre/bottom) are
  compared with the same anchor of every other node.  Within the
  threshold, the closest match wins and yields one guide per axis.
- grid: each axis is rounded to the nearest multiple of the grid size.
  Only used on an axis that did not align, and only when snapping is on.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional

from whiteboard_mcp.geometry import (
    NodeBounds,
    Position,
    Viewport,
    is_finite_positive,
    snap_position,
    to_screen,
)
from whiteboard_mcp.layers import visible_node_ids
from whiteboard_mcp.models import NodeRecord, Page


DEFAULT_SNAP_THRESHOLD = 6

# Anchor kinds, in the order they are tried on each axis.
_X_KINDS = ("left", "center_x", "right")
_Y_KINDS = ("top", "center_y", "bottom")


class XAxisMode(Enum):
    DRAG = "drag"
    RESIZE_LEFT = "resize-left"
    RESIZE_RIGHT = "resize-right"
    RESIZE_NONE = "resize-none"


class YAxisMode(Enum):
    DRAG = "drag"
    RESIZE_TOP = "resize-top"
    RESIZE_BOTTOM = "resize-bottom"
    RESIZE_NONE = "resize-none"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SnapGuides:
    """At most one vertical (x) and one horizontal (y) guide line."""
    x: Optional[float] = None
    y: Optional[float] = None

    def to_screen(self, viewport: Viewport) -> SnapGuides:
        return SnapGuides(
            None if self.x is None else to_screen(self.x, viewport.zoom, viewport.x),
            None if self.y is None else to_screen(self.y, viewport.zoom, viewport.y),
        )

    def to_dict(self) -> dict[str, Optional[float]]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class SnapResult:
    position: Position
    guides: SnapGuides
    snapped_x: bool = False
    snapped_y: bool = False


@dataclass(frozen=True)
class RectSnapResult:
    bounds: NodeBounds
    guides: SnapGuides
    snapped_x: bool = False
    snapped_y: bool = False


@dataclass
class SnapTargets:
    """Alignment anchors of the candidate nodes, keyed by anchor kind."""
    x: dict[str, list[float]]
    y: dict[str, list[float]]

    @property
    def x_points(self) -> list[float]:
        return [v for kind in _X_KINDS for v in self.x[kind]]

    @property
    def y_points(self) -> list[float]:
        return [v for kind in _Y_KINDS for v in self.y[kind]]


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------

def snap_to_grid(position: Position, grid_size: float, enabled: bool = True) -> Position:
    """Quantize *position* when snapping is enabled and the grid is positive."""
    if not enabled or grid_size <= 0:
        return position
    return snap_position(position, grid_size)


def snap_node_position(node: NodeRecord, grid_size: float) -> NodeRecord:
    """Return *node* moved onto the grid; the same object when already on it."""
    snapped = snap_to_grid(node.position, grid_size)
    if snapped == node.position:
        return node
    return replace(node, position=snapped)


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------

def build_snap_targets(bounds: Iterable[NodeBounds]) -> SnapTargets:
    """Collect edge and centre anchors.  Degenerate boxes contribute nothing."""
    targets = SnapTargets(
        x={kind: [] for kind in _X_KINDS},
        y={kind: [] for kind in _Y_KINDS},
    )
    for b in bounds:
        if not b.has_area:
            continue
        targets.x["left"].append(b.x)
        targets.x["center_x"].append(b.cx)
        targets.x["right"].append(b.right)
        targets.y["top"].append(b.y)
        targets.y["center_y"].append(b.cy)
        targets.y["bottom"].append(b.bottom)
    return targets


def _closest(value: float, points: list[float], threshold: float) -> Optional[float]:
    best: Optional[float] = None
    best_distance = float("inf")
    for point in points:
        distance = abs(point - value)
        if distance > threshold or distance >= best_distance:
            continue
        best_distance = distance
        best = point
    return best


def _align_axis(
    start: float,
    length: float,
    kinds: tuple[str, str, str],
    targets: dict[str, list[float]],
    threshold: float,
) -> tuple[Optional[float], Optional[float]]:
    """Best aligned start coordinate and guide on one axis, or (None, None)."""
    anchors = (start, start + length / 2, start + length)
    offsets = (0.0, length / 2, length)
    best_distance = float("inf")
    snapped: Optional[float] = None
    guide: Optional[float] = None
    for kind, anchor, offset in zip(kinds, anchors, offsets):
        target = _closest(anchor, targets[kind], threshold)
        if target is None:
            continue
        distance = abs(target - anchor)
        if distance < best_distance:
            best_distance = distance
            snapped = target - offset
            guide = target
    return snapped, guide


def compute_snap(
    position: Position,
    bounds: NodeBounds,
    targets: SnapTargets,
    threshold: float = DEFAULT_SNAP_THRESHOLD,
) -> SnapResult:
    """Align a dragged box at *position* (size from *bounds*) with *targets*.

    Each anchor is matched only against the same anchor kind of other
    nodes: left with left, centre with centre, right with right.
    """
    threshold = max(threshold, 0)
    x, guide_x = _align_axis(position.x, bounds.width, _X_KINDS, targets.x, threshold)
    y, guide_y = _align_axis(position.y, bounds.height, _Y_KINDS, targets.y, threshold)
    return SnapResult(
        position=Position(position.x if x is None else x, position.y if y is None else y),
        guides=SnapGuides(guide_x, guide_y),
        snapped_x=x is not None,
        snapped_y=y is not None,
    )


def _find_closest_point(
    anchors: list[float],
    points: list[float],
    threshold: float,
) -> Optional[tuple[int, float, float]]:
    """Closest (anchor index, anchor value, target) pair within *threshold*."""
    best_distance = float("inf")
    best: Optional[tuple[int, float, float]] = None
    for index, anchor in enumerate(anchors):
        for point in points:
            distance = abs(point - anchor)
            if distance > threshold or distance >= best_distance:
                continue
            best_distance = distance
            best = (index, anchor, point)
    return best


def _snap_span(
    start: float,
    length: float,
    mode: str,
    points: list[float],
    threshold: float,
) -> tuple[float, float, Optional[float]]:
    """Snap one axis of a box.  Returns (start, length, guide or None).

    *mode* is ``drag``, ``low`` (moving the start edge), ``high`` (moving
    the end edge) or ``none``.  When resizing, the moving edge or the
    centre may snap; a centre match mirrors the moving edge about the
    target, keeping the opposite edge fixed.  A snap that would leave a
    non-positive length is discarded.
    """
    end = start + length
    centre = start + length / 2
    if mode == "drag":
        anchors = [start, centre, end]
    elif mode == "low":
        anchors = [start, centre]
    elif mode == "high":
        anchors = [end, centre]
    else:
        return start, length, None

    hit = _find_closest_point(anchors, points, threshold)
    if hit is None:
        return start, length, None
    index, anchor, target = hit

    if mode == "drag":
        return start + (target - anchor), length, target
    if mode == "low":
        new_start = target if index == 0 else 2 * target - end
        new_length = end - new_start
        if is_finite_positive(new_length):
            return new_start, new_length, target
        return start, length, None
    new_end = target if index == 0 else 2 * target - start
    new_length = new_end - start
    if is_finite_positive(new_length):
        return start, new_length, target
    return start, length, None


_X_SPAN_MODES = {
    XAxisMode.DRAG: "drag",
    XAxisMode.RESIZE_LEFT: "low",
    XAxisMode.RESIZE_RIGHT: "high",
    XAxisMode.RESIZE_NONE: "none",
}
_Y_SPAN_MODES = {
    YAxisMode.DRAG: "drag",
    YAxisMode.RESIZE_TOP: "low",
    YAxisMode.RESIZE_BOTTOM: "high",
    YAxisMode.RESIZE_NONE: "none",
}


def compute_snap_for_rect(
    rect: NodeBounds,
    targets: SnapTargets,
    threshold: float = DEFAULT_SNAP_THRESHOLD,
    x_mode: XAxisMode = XAxisMode.DRAG,
    y_mode: YAxisMode = YAxisMode.DRAG,
) -> RectSnapResult:
    """Snap a box that is being dragged or resized.

    Unlike ``compute_snap``, any anchor may match any target point on the
    same axis, which lets a resized edge land on another node's centre.
    """
    threshold = max(threshold, 0)
    x, width, guide_x = _snap_span(
        rect.x, rect.width, _X_SPAN_MODES[x_mode], targets.x_points, threshold
    )
    y, height, guide_y = _snap_span(
        rect.y, rect.height, _Y_SPAN_MODES[y_mode], targets.y_points, threshold
    )
    return RectSnapResult(
        bounds=NodeBounds(x, y, width, height),
        guides=SnapGuides(guide_x, guide_y),
        snapped_x=guide_x is not None,
        snapped_y=guide_y is not None,
    )


# ---------------------------------------------------------------------------
# Document-level entry points
# ---------------------------------------------------------------------------

def snap_node(
    moving: NodeRecord,
    candidates: Iterable[NodeRecord],
    grid_size: float,
    snap_enabled: bool,
    threshold: float = DEFAULT_SNAP_THRESHOLD,
) -> SnapResult:
    """Target position and guides for *moving* at its current position.

    Alignment with the other *candidates* is always attempted; the moving
    node itself is ignored if present.  An axis that did not align is
    quantized to the grid when *snap_enabled* and *grid_size* > 0.
    With *snap_enabled* false or a zero grid the position is returned
    unchanged only when no candidate aligns.
    """
    targets = build_snap_targets(
        node.bounds for node in candidates if node.id != moving.id
    )
    aligned = compute_snap(moving.position, moving.bounds, targets, threshold)
    grid = snap_to_grid(moving.position, grid_size, snap_enabled)
    return SnapResult(
        position=Position(
            aligned.position.x if aligned.snapped_x else grid.x,
            aligned.position.y if aligned.snapped_y else grid.y,
        ),
        guides=aligned.guides,
        snapped_x=aligned.snapped_x,
        snapped_y=aligned.snapped_y,
    )


def snap_node_on_page(
    page: Page,
    node_id: str,
    position: Optional[Position] = None,
    threshold: float = DEFAULT_SNAP_THRESHOLD,
) -> Optional[SnapResult]:
    """Run ``snap_node`` for a node of *page* using the page's grid settings.

    Candidates are the page's other nodes on visible layers.  *position*
    overrides the node's stored position (the pointer's current drag
    location).  Returns ``None`` for an unknown node.
    """
    node = page.find_node(node_id)
    if node is None:
        return None
    if position is not None:
        node = replace(node, position=position)
    visible = visible_node_ids(page.nodes, page.layers)
    candidates = [n for n in page.nodes if n.id in visible]
    return snap_node(
        node,
        candidates,
        page.settings.grid_size,
        page.settings.snap_enabled,
        threshold,
    )
