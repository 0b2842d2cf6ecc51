"""
Page and layer helpers.

Every function here is pure: it returns new pages/layers rather than
mutating its arguments.  ``ensure_page_layer_refs`` is the per-page half of
document normalization (see ``whiteboard_mcp.migrate``).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from whiteboard_mcp.defaults import DEFAULT_SETTINGS, DEFAULT_VIEWPORT, new_id
from whiteboard_mcp.geometry import Viewport
from whiteboard_mcp.models import (
    DiagramDocument,
    DiagramSettings,
    Layer,
    NodeRecord,
    Page,
)


def create_default_layer(order: int = 0, name: Optional[str] = None) -> Layer:
    """Create a visible, unlocked layer.  The default name is ``Layer {order + 1}``."""
    return Layer(
        id=new_id("layer"),
        name=name if name is not None else f"Layer {order + 1}",
        order=order,
        is_visible=True,
        is_locked=False,
    )


def sort_layers(layers: list[Layer]) -> list[Layer]:
    """Layers by ascending paint order; ties keep their stored order."""
    return sorted(layers, key=lambda layer: layer.order)


def normalize_layer_orders(layers: list[Layer]) -> list[Layer]:
    """Sort layers and renumber their ``order`` to 0..n-1."""
    return _renumber(sort_layers(layers))


def ensure_layer_set(layers: list[Layer]) -> list[Layer]:
    """Return a normalized, non-empty layer list."""
    if not layers:
        return [create_default_layer(0)]
    return normalize_layer_orders(layers)


def resolve_active_layer_id(layers: list[Layer], active_layer_id: str) -> str:
    """Keep *active_layer_id* if it exists, else fall back to the lowest layer."""
    if any(layer.id == active_layer_id for layer in layers):
        return active_layer_id
    ordered = sort_layers(layers)
    if ordered:
        return ordered[0].id
    return create_default_layer(0).id


def is_layer_locked(layers: list[Layer], layer_id: str) -> bool:
    layer = next((item for item in layers if item.id == layer_id), None)
    return layer.is_locked if layer else False


def is_layer_visible(layers: list[Layer], layer_id: str) -> bool:
    layer = next((item for item in layers if item.id == layer_id), None)
    return layer.is_visible if layer else True


def reorder_layers(layers: list[Layer], layer_id: str, direction: str) -> list[Layer]:
    """Swap a layer with its neighbour.

    Args:
        layers: Layers of one page, in any order.
        layer_id: Layer to move.
        direction: ``"up"`` moves towards the bottom of the stack (lower
            order), ``"down"`` towards the top.

    Returns:
        The layers sorted and renumbered.  Unknown ids and moves past
        either end leave the order unchanged.
    """
    ordered = sort_layers(layers)
    index = next((i for i, layer in enumerate(ordered) if layer.id == layer_id), -1)
    if index < 0:
        return ordered
    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= len(ordered):
        return ordered
    ordered[index], ordered[target] = ordered[target], ordered[index]
    return _renumber(ordered)


def _renumber(layers: list[Layer]) -> list[Layer]:
    return [replace(layer, order=i) for i, layer in enumerate(layers)]


def create_default_page(
    name: str,
    settings: Optional[DiagramSettings] = None,
    viewport: Optional[Viewport] = None,
    page_id: Optional[str] = None,
) -> Page:
    """A page with one layer named ``Layer 1`` and no content."""
    layer = create_default_layer(0, "Layer 1")
    return Page(
        id=page_id or new_id("page"),
        name=name,
        viewport=viewport if viewport is not None else DEFAULT_VIEWPORT,
        settings=replace(settings if settings is not None else DEFAULT_SETTINGS),
        layers=[layer],
        active_layer_id=layer.id,
        nodes=[],
        edges=[],
    )


def create_empty_document() -> DiagramDocument:
    """A fresh document: one page ``Page 1`` holding one layer ``Layer 1``."""
    page = create_default_page("Page 1")
    return DiagramDocument(active_page_id=page.id, pages=[page])


def ensure_page_layer_refs(page: Page) -> tuple[Page, int]:
    """Repair every layer reference of *page*.

    Layers are normalized, the active layer is resolved, and nodes/edges
    whose ``layer_id`` does not exist on the page are moved to the first
    layer.  Nothing is dropped.

    Returns:
        The repaired page and the number of nodes/edges that were moved.
    """
    layers = ensure_layer_set(page.layers)
    fallback = layers[0].id
    layer_ids = {layer.id for layer in layers}
    moved = 0

    nodes = []
    for node in page.nodes:
        if node.layer_id not in layer_ids:
            node = replace(node, layer_id=fallback)
            moved += 1
        nodes.append(node)

    edges = []
    for edge in page.edges:
        if edge.layer_id not in layer_ids:
            edge = replace(edge, layer_id=fallback)
            moved += 1
        edges.append(edge)

    repaired = replace(
        page,
        layers=layers,
        active_layer_id=resolve_active_layer_id(layers, page.active_layer_id),
        nodes=nodes,
        edges=edges,
    )
    return repaired, moved


def next_page_name(pages: list[Page]) -> str:
    return f"Page {len(pages) + 1}"


def upsert_page(pages: list[Page], page: Page) -> list[Page]:
    """Replace the page with the same id, or append it."""
    if not any(p.id == page.id for p in pages):
        return [*pages, page]
    return [page if p.id == page.id else p for p in pages]


def visible_node_ids(nodes: list[NodeRecord], layers: list[Layer]) -> set[str]:
    """Ids of nodes not on a hidden layer.  Unknown layers count as visible."""
    hidden = {layer.id for layer in layers if not layer.is_visible}
    return {node.id for node in nodes if node.layer_id not in hidden}
