"""Tests for grid snapping and alignment guides."""

from dataclasses import replace

import pytest

from whiteboard_mcp.defaults import create_default_node_record
from whiteboard_mcp.geometry import NodeBounds, Position, Size, Viewport
from whiteboard_mcp.layers import create_default_layer, create_default_page
from whiteboard_mcp.models import NodeRecord, NodeType
from whiteboard_mcp.snap import (
    SnapGuides,
    XAxisMode,
    YAxisMode,
    build_snap_targets,
    compute_snap,
    compute_snap_for_rect,
    snap_node,
    snap_node_on_page,
    snap_node_position,
    snap_to_grid,
)


def _node(node_id: str, x: float, y: float, w: float = 50, h: float = 50,
          layer_id: str = "l1") -> NodeRecord:
    node = create_default_node_record(node_id, NodeType.RECTANGLE, x, y, layer_id)
    return replace(node, size=Size(w, h))


# Box at (100, 100) of 50x50: x anchors 100/125/150, y anchors 100/125/150.
TARGETS = build_snap_targets([NodeBounds(100, 100, 50, 50)])


# ===================================================================
# Grid
# ===================================================================


class TestSnapToGrid:
    def test_rounds_to_nearest(self) -> None:
        assert snap_to_grid(Position(14, 16), 10) == Position(10, 20)

    def test_disabled(self) -> None:
        assert snap_to_grid(Position(14, 16), 10, enabled=False) == Position(14, 16)

    @pytest.mark.parametrize("grid", [0, -10])
    def test_non_positive_grid(self, grid) -> None:
        assert snap_to_grid(Position(14, 16), grid) == Position(14, 16)


def test_snap_node_position() -> None:
    node = _node("n1", 14, 16)
    moved = snap_node_position(node, 10)
    assert moved.position == Position(10, 20)
    assert node.position == Position(14, 16)

    on_grid = _node("n2", 10, 20)
    assert snap_node_position(on_grid, 10) is on_grid


# ===================================================================
# Alignment
# ===================================================================


def test_build_targets_skips_degenerate_boxes() -> None:
    targets = build_snap_targets([
        NodeBounds(0, 0, 0, 10),
        NodeBounds(0, 0, 10, float("nan")),
        NodeBounds(10, 20, 30, 40),
    ])
    assert targets.x == {"left": [10], "center_x": [25], "right": [40]}
    assert targets.y == {"top": [20], "center_y": [40], "bottom": [60]}


class TestComputeSnap:
    def test_left_edges_align(self) -> None:
        result = compute_snap(Position(103, 300), NodeBounds(0, 0, 50, 50), TARGETS)
        assert result.position == Position(100, 300)
        assert result.guides == SnapGuides(x=100, y=None)
        assert result.snapped_x is True
        assert result.snapped_y is False

    def test_centers_align(self) -> None:
        result = compute_snap(Position(112, 400), NodeBounds(0, 0, 30, 30), TARGETS)
        assert result.position.x == 110
        assert result.guides.x == 125

    def test_both_axes(self) -> None:
        result = compute_snap(Position(98, 104), NodeBounds(0, 0, 50, 50), TARGETS)
        assert result.position == Position(100, 100)
        assert result.guides == SnapGuides(x=100, y=100)

    def test_only_same_kind_matches(self) -> None:
        # left edge at 148 is next to the target's right edge at 150
        result = compute_snap(Position(148, 400), NodeBounds(0, 0, 20, 20), TARGETS)
        assert result.snapped_x is False
        assert result.position == Position(148, 400)
        assert result.guides == SnapGuides()

    def test_threshold_is_inclusive(self) -> None:
        box = NodeBounds(0, 0, 50, 50)
        assert compute_snap(Position(106, 400), box, TARGETS).snapped_x
        assert not compute_snap(Position(107, 400), box, TARGETS).snapped_x

    def test_closest_target_wins(self) -> None:
        targets = build_snap_targets([
            NodeBounds(100, 0, 10, 10),
            NodeBounds(104, 500, 10, 10),
        ])
        result = compute_snap(Position(103, 300), NodeBounds(0, 0, 50, 50), targets)
        assert result.position.x == 104
        assert result.guides.x == 104

    def test_no_targets(self) -> None:
        result = compute_snap(Position(1, 2), NodeBounds(0, 0, 5, 5), build_snap_targets([]))
        assert result.position == Position(1, 2)
        assert result.guides == SnapGuides()


class TestComputeSnapForRect:
    def test_drag_matches_any_kind(self) -> None:
        result = compute_snap_for_rect(NodeBounds(148, 400, 20, 20), TARGETS)
        assert result.bounds == NodeBounds(150, 400, 20, 20)
        assert result.guides.x == 150
        assert result.snapped_y is False

    def test_resize_right_edge(self) -> None:
        result = compute_snap_for_rect(
            NodeBounds(0, 0, 148, 40), TARGETS,
            x_mode=XAxisMode.RESIZE_RIGHT, y_mode=YAxisMode.RESIZE_NONE,
        )
        assert result.bounds == NodeBounds(0, 0, 150, 40)
        assert result.guides == SnapGuides(x=150, y=None)

    def test_resize_left_centre_match_keeps_right_edge(self) -> None:
        result = compute_snap_for_rect(
            NodeBounds(90, 0, 72, 40), TARGETS,
            x_mode=XAxisMode.RESIZE_LEFT, y_mode=YAxisMode.RESIZE_NONE,
        )
        assert result.bounds == NodeBounds(88, 0, 74, 40)
        assert result.bounds.right == 162
        assert result.guides.x == 125

    def test_resize_bottom(self) -> None:
        result = compute_snap_for_rect(
            NodeBounds(400, 0, 20, 97), TARGETS,
            x_mode=XAxisMode.RESIZE_NONE, y_mode=YAxisMode.RESIZE_BOTTOM,
        )
        assert result.bounds == NodeBounds(400, 0, 20, 100)
        assert result.snapped_y is True
        assert result.snapped_x is False

    def test_collapsing_snap_discarded(self) -> None:
        rect = NodeBounds(151, 0, 2, 10)
        result = compute_snap_for_rect(
            rect, TARGETS, x_mode=XAxisMode.RESIZE_RIGHT, y_mode=YAxisMode.RESIZE_NONE,
        )
        assert result.bounds == rect
        assert result.snapped_x is False


def test_guides_to_screen() -> None:
    guides = SnapGuides(x=100, y=None)
    assert guides.to_screen(Viewport(x=10, y=5, zoom=2)) == SnapGuides(x=210, y=None)
    assert SnapGuides(y=50).to_screen(Viewport(x=0, y=-20, zoom=0.5)).y == 5


# ===================================================================
# Node-level snapping
# ===================================================================


class TestSnapNode:
    def test_grid_only(self) -> None:
        result = snap_node(_node("m", 14, 16), [], grid_size=10, snap_enabled=True)
        assert result.position == Position(10, 20)
        assert result.guides == SnapGuides()

    def test_snap_disabled_leaves_position(self) -> None:
        result = snap_node(_node("m", 14, 16), [], grid_size=10, snap_enabled=False)
        assert result.position == Position(14, 16)

    def test_zero_grid_leaves_position(self) -> None:
        result = snap_node(_node("m", 14, 16), [], grid_size=0, snap_enabled=True)
        assert result.position == Position(14, 16)

    def test_alignment_beats_grid_per_axis(self) -> None:
        other = _node("o", 100, 100)
        result = snap_node(_node("m", 103, 304), [other], grid_size=10, snap_enabled=True)
        assert result.position == Position(100, 300)
        assert result.guides == SnapGuides(x=100, y=None)

    def test_alignment_without_grid(self) -> None:
        other = _node("o", 100, 100)
        result = snap_node(_node("m", 103, 304), [other], grid_size=10, snap_enabled=False)
        assert result.position == Position(100, 304)

    def test_snap_disabled_without_alignment_leaves_position(self) -> None:
        far = _node("o", 500, 500)
        result = snap_node(_node("m", 103, 304), [far], grid_size=10, snap_enabled=False)
        assert result.position == Position(103, 304)
        assert not result.snapped_x and not result.snapped_y

    def test_moving_node_excluded(self) -> None:
        moving = _node("m", 103, 304)
        stale = _node("m", 100, 300)
        result = snap_node(moving, [stale], grid_size=0, snap_enabled=False)
        assert result.position == Position(103, 304)
        assert result.guides == SnapGuides()


class TestSnapNodeOnPage:
    def _page(self):
        page = create_default_page("Page 1")
        visible_id = page.layers[0].id
        hidden = replace(create_default_layer(1), is_visible=False)
        page.layers.append(hidden)
        page.nodes = [
            _node("m", 103, 301, layer_id=visible_id),
            _node("hidden", 100, 100, layer_id=hidden.id),
        ]
        return page, visible_id

    def test_hidden_layers_ignored(self) -> None:
        page, _ = self._page()
        result = snap_node_on_page(page, "m")
        # page grid is 8
        assert result.position == Position(104, 304)
        assert result.guides == SnapGuides()

    def test_visible_candidate_aligns(self) -> None:
        page, visible_id = self._page()
        page.nodes.append(_node("shown", 100, 100, layer_id=visible_id))
        result = snap_node_on_page(page, "m")
        assert result.position == Position(100, 304)
        assert result.guides.x == 100

    def test_position_override(self) -> None:
        page, _ = self._page()
        result = snap_node_on_page(page, "m", Position(13, 13))
        assert result.position == Position(16, 16)
        assert page.find_node("m").position == Position(103, 301)

    def test_unknown_node(self) -> None:
        page, _ = self._page()
        assert snap_node_on_page(page, "ghost") is None
