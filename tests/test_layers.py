"""Tests for page and layer helpers."""

from whiteboard_mcp.defaults import create_default_node_record
from whiteboard_mcp.layers import (
    create_default_layer,
    create_default_page,
    ensure_layer_set,
    ensure_page_layer_refs,
    is_layer_locked,
    is_layer_visible,
    next_page_name,
    normalize_layer_orders,
    reorder_layers,
    resolve_active_layer_id,
    sort_layers,
    upsert_page,
    visible_node_ids,
)
from whiteboard_mcp.models import EdgeRecord, Layer, NodeType


def _layers() -> list[Layer]:
    return [
        Layer(id="c", name="C", order=5),
        Layer(id="a", name="A", order=1),
        Layer(id="b", name="B", order=3, is_visible=False, is_locked=True),
    ]


def test_default_layer_name_follows_order() -> None:
    assert create_default_layer(0).name == "Layer 1"
    assert create_default_layer(2).name == "Layer 3"
    assert create_default_layer(2, "Notes").name == "Notes"
    layer = create_default_layer()
    assert layer.is_visible is True
    assert layer.is_locked is False


def test_sort_and_normalize() -> None:
    assert [layer.id for layer in sort_layers(_layers())] == ["a", "b", "c"]
    normalized = normalize_layer_orders(_layers())
    assert [(layer.id, layer.order) for layer in normalized] == [("a", 0), ("b", 1), ("c", 2)]


def test_normalize_does_not_mutate() -> None:
    layers = _layers()
    normalize_layer_orders(layers)
    assert layers[0].order == 5


def test_ensure_layer_set_creates_default() -> None:
    layers = ensure_layer_set([])
    assert len(layers) == 1
    assert layers[0].name == "Layer 1"
    assert layers[0].order == 0


def test_resolve_active_layer() -> None:
    layers = _layers()
    assert resolve_active_layer_id(layers, "c") == "c"
    assert resolve_active_layer_id(layers, "ghost") == "a"


def test_lock_and_visibility_lookups() -> None:
    layers = _layers()
    assert is_layer_locked(layers, "b") is True
    assert is_layer_locked(layers, "a") is False
    assert is_layer_locked(layers, "ghost") is False
    assert is_layer_visible(layers, "b") is False
    assert is_layer_visible(layers, "ghost") is True


class TestReorderLayers:
    def test_move_down(self) -> None:
        result = reorder_layers(_layers(), "a", "down")
        assert [(layer.id, layer.order) for layer in result] == [("b", 0), ("a", 1), ("c", 2)]

    def test_move_up(self) -> None:
        result = reorder_layers(_layers(), "c", "up")
        assert [layer.id for layer in result] == ["a", "c", "b"]

    def test_past_the_end_is_noop(self) -> None:
        result = reorder_layers(_layers(), "a", "up")
        assert [layer.id for layer in result] == ["a", "b", "c"]

    def test_unknown_layer_is_noop(self) -> None:
        result = reorder_layers(_layers(), "ghost", "down")
        assert [layer.id for layer in result] == ["a", "b", "c"]


def test_create_default_page() -> None:
    page = create_default_page("Page 2", page_id="p2")
    assert page.id == "p2"
    assert page.name == "Page 2"
    assert page.active_layer_id == page.layers[0].id
    assert page.settings.grid_size == 8


def test_ensure_page_layer_refs() -> None:
    page = create_default_page("Page 1")
    layer_id = page.layers[0].id
    page.nodes = [
        create_default_node_record("n1", NodeType.RECTANGLE, 0, 0, layer_id),
        create_default_node_record("n2", NodeType.ELLIPSE, 0, 0, "ghost"),
    ]
    page.edges = [EdgeRecord(id="e1", source="n1", target="n2", layer_id="ghost")]
    page.active_layer_id = "ghost"

    repaired, moved = ensure_page_layer_refs(page)
    assert moved == 2
    assert repaired.active_layer_id == layer_id
    assert [n.layer_id for n in repaired.nodes] == [layer_id, layer_id]
    assert repaired.edges[0].layer_id == layer_id
    # input untouched
    assert page.nodes[1].layer_id == "ghost"


def test_ensure_page_layer_refs_without_layers() -> None:
    page = create_default_page("Page 1")
    page.layers = []
    repaired, _ = ensure_page_layer_refs(page)
    assert len(repaired.layers) == 1
    assert repaired.active_layer_id == repaired.layers[0].id


def test_next_page_name_and_upsert() -> None:
    first = create_default_page("Page 1", page_id="p1")
    pages = [first]
    assert next_page_name(pages) == "Page 2"

    second = create_default_page(next_page_name(pages), page_id="p2")
    pages = upsert_page(pages, second)
    assert [p.id for p in pages] == ["p1", "p2"]

    renamed = create_default_page("Renamed", page_id="p1")
    pages = upsert_page(pages, renamed)
    assert [p.name for p in pages] == ["Renamed", "Page 2"]


def test_visible_node_ids() -> None:
    layers = _layers()
    nodes = [
        create_default_node_record("n1", NodeType.STICKY, 0, 0, "a"),
        create_default_node_record("n2", NodeType.STICKY, 0, 0, "b"),
        create_default_node_record("n3", NodeType.STICKY, 0, 0, "unknown"),
    ]
    assert visible_node_ids(nodes, layers) == {"n1", "n3"}
