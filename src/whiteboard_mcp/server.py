"""
Whiteboard MCP Server — diagram documents over Model Context Protocol.

Exposes 3 tools around the document core:

  1. document   — lifecycle: create, load (migrate), get, validate, list,
                  info, add_page, add_layer, delete
  2. snap       — grid and alignment snapping for a node being dragged
  3. edge_style — resolve, list and apply connector styles

Documents live in an in-process registry for the lifetime of the server.
Loading always succeeds: unreadable data opens as an empty document.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

from whiteboard_mcp.edges import (
    EDGE_STYLE_LABELS,
    EDGE_STYLE_OPTIONS,
    apply_edge_style,
    to_render_kind,
    to_routing_kind,
    to_stored_style,
)
from whiteboard_mcp.geometry import Position
from whiteboard_mcp.layers import (
    create_default_layer,
    create_default_page,
    create_empty_document,
    next_page_name,
    upsert_page,
)
from whiteboard_mcp.migrate import migrate_diagram_data
from whiteboard_mcp.models import DiagramDocument, EdgeType, NodeType, Page
from whiteboard_mcp.snap import DEFAULT_SNAP_THRESHOLD, snap_node_on_page
from whiteboard_mcp.validation import (
    ValidationError,
    check_current,
    validate_action,
    validate_bool,
    validate_non_empty_string,
    validate_non_negative_number,
    validate_number,
    _DOCUMENT_ACTIONS,
    _EDGE_STYLE_ACTIONS,
)

# ---------------------------------------------------------------------------
# Logging: suppress routine FastMCP INFO messages that editors show
# as warnings (they go to stderr).
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("whiteboard-mcp")

# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------
mcp = FastMCP(
    "whiteboard-mcp",
    instructions=(
        "MCP server for collaborative whiteboard diagram documents.\n\n"
        "=== 3 TOOLS — use the 'action' parameter to pick the operation ===\n\n"
        "1. document(action, ...) — create, load, get, validate, list, info,\n"
        "   add_page, add_layer, delete.\n"
        "2. snap(name, node_id, x, y, ...) — snapped position + alignment guides.\n"
        "3. edge_style(action, ...) — resolve, list, apply.\n\n"
        "=== RULES ===\n"
        "- load accepts any JSON (current v2, legacy v1, or garbage) and\n"
        "  always yields a usable document.\n"
        "- Coordinates are document space; guides are also returned in\n"
        "  screen space using the page viewport.\n"
    ),
)

# In-memory document registry: name -> DiagramDocument
# Guarded by _documents_lock for thread-safety.
_documents: dict[str, DiagramDocument] = {}
_documents_lock = threading.Lock()


# ===================================================================
# RESOURCES
# ===================================================================

@mcp.resource("whiteboard://schema/node-types")
def node_type_catalog() -> str:
    """Return all node types a document may contain."""
    entries = [f"  {t.value}" for t in NodeType]
    return "Available node types:\n" + "\n".join(entries)


@mcp.resource("whiteboard://schema/edge-styles")
def edge_style_catalog() -> str:
    """Return the stored edge styles with their display labels."""
    entries = [f"  {s.value}: {EDGE_STYLE_LABELS[s]}" for s in EDGE_STYLE_OPTIONS]
    return "Available edge styles:\n" + "\n".join(entries)


# ===================================================================
# TOOL 1: document (lifecycle)
# ===================================================================

@mcp.tool()
def document(
    action: str,
    name: str = "",
    data: str = "",
    page_name: str = "",
    layer_name: str = "",
    page_id: str = "",
) -> str:
    """Document lifecycle management.

    Actions:
      create    — Create a new empty document. Params: name.
      load      — Load persisted JSON, migrating it to the current version.
                  Never fails: unusable data opens as an empty document.
                  Params: name, data.
      get       — Return the document as JSON. Params: name.
      validate  — Check whether JSON is a current-version document without
                  repairing it. Params: data.
      list      — List all in-memory documents.
      info      — Summary of one document. Params: name.
      add_page  — Append a page. Params: name, page_name (optional).
      add_layer — Add a layer to a page. Params: name, layer_name (optional),
                  page_id (optional, defaults to the active page).
      delete    — Remove a document from memory. Params: name.

    Returns:
        Result string or JSON depending on action.
    """
    try:
        action = validate_action(action, "document", _DOCUMENT_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "list":
        with _documents_lock:
            items = list(_documents.items())
        return json.dumps([_summary(n, doc) for n, doc in items], indent=2)

    if action == "validate":
        error = check_current(_decode(data))
        return json.dumps({"valid": error is None, "error": error})

    try:
        name = validate_non_empty_string(name, "name")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "create":
        doc = create_empty_document()
        with _documents_lock:
            _documents[name] = doc
        return f"Document '{name}' created."

    if action == "load":
        doc = migrate_diagram_data(_decode(data))
        with _documents_lock:
            _documents[name] = doc
        return json.dumps(_summary(name, doc), indent=2)

    # Read-modify-write under one lock.
    with _documents_lock:
        doc = _documents.get(name)
        if doc is None:
            return f"Error: document '{name}' not found."

        if action == "get":
            return doc.to_json()

        elif action == "info":
            return json.dumps(_summary(name, doc), indent=2)

        elif action == "add_page":
            page = create_default_page(page_name or next_page_name(doc.pages))
            _documents[name] = replace(doc, pages=upsert_page(doc.pages, page))
            return json.dumps({"page_id": page.id, "name": page.name})

        elif action == "add_layer":
            page = _find_page(doc, page_id)
            if page is None:
                return f"Error: page '{page_id}' not found in document '{name}'."
            order = max((layer.order for layer in page.layers), default=-1) + 1
            layer = create_default_layer(order, layer_name or None)
            page = replace(page, layers=[*page.layers, layer])
            _documents[name] = replace(doc, pages=upsert_page(doc.pages, page))
            return json.dumps({"layer_id": layer.id, "name": layer.name, "page_id": page.id})

        elif action == "delete":
            del _documents[name]
            return f"Document '{name}' deleted."

    return f"Error: unknown document action '{action}'."


# ===================================================================
# TOOL 2: snap (interactive positioning)
# ===================================================================

@mcp.tool()
def snap(
    name: str,
    node_id: str,
    x: float,
    y: float,
    page_id: str = "",
    threshold: float = DEFAULT_SNAP_THRESHOLD,
) -> str:
    """Compute the snapped position of a node dragged to (x, y).

    Uses the page's grid settings (snapEnabled, gridSize).  Alignment
    guides against the other visible nodes of the page are always
    computed.

    Args:
        name: Document name.
        node_id: Node being moved.
        x: Proposed x in document space.
        y: Proposed y in document space.
        page_id: Page holding the node; defaults to the active page.
        threshold: Alignment tolerance in document units.

    Returns:
        JSON with position, guides (document space), screen_guides and
        snapped_x / snapped_y flags.
    """
    try:
        name = validate_non_empty_string(name, "name")
        node_id = validate_non_empty_string(node_id, "node_id")
        x = validate_number(x, "x")
        y = validate_number(y, "y")
        threshold = validate_non_negative_number(threshold, "threshold")
    except ValidationError as exc:
        return f"Error: {exc.message}"

    with _documents_lock:
        doc = _documents.get(name)
    if doc is None:
        return f"Error: document '{name}' not found."
    page = _find_page(doc, page_id)
    if page is None:
        return f"Error: page '{page_id}' not found in document '{name}'."

    result = snap_node_on_page(page, node_id, Position(x, y), threshold)
    if result is None:
        return f"Error: node '{node_id}' not found on page '{page.id}'."
    return json.dumps({
        "position": result.position.to_dict(),
        "guides": result.guides.to_dict(),
        "screen_guides": result.guides.to_screen(page.viewport).to_dict(),
        "snapped_x": result.snapped_x,
        "snapped_y": result.snapped_y,
    })


# ===================================================================
# TOOL 3: edge_style (connector styles)
# ===================================================================

@mcp.tool()
def edge_style(
    action: str,
    value: str = "",
    name: str = "",
    page_id: str = "",
    animated: bool = False,
) -> str:
    """Connector style resolution.

    Actions:
      resolve — Decode a raw style value. Params: value.
      list    — List stored styles with labels.
      apply   — Set the style of a page and all of its edges.
                Params: name, value, page_id (optional), animated.

    Returns:
        JSON.
    """
    try:
        action = validate_action(action, "edge_style", _EDGE_STYLE_ACTIONS)
    except ValidationError as exc:
        return f"Error: {exc.message}"

    if action == "resolve":
        style = to_stored_style(value or None)
        return json.dumps({
            "stored": style.value,
            "render": to_render_kind(style).value,
            "routing": to_routing_kind(style).value,
            "label": EDGE_STYLE_LABELS[style],
        })

    elif action == "list":
        return json.dumps(
            [{"style": s.value, "label": EDGE_STYLE_LABELS[s]} for s in EDGE_STYLE_OPTIONS],
            indent=2,
        )

    elif action == "apply":
        try:
            name = validate_non_empty_string(name, "name")
            animated = validate_bool(animated, "animated")
        except ValidationError as exc:
            return f"Error: {exc.message}"
        style = to_stored_style(value or None)
        with _documents_lock:
            doc = _documents.get(name)
            if doc is None:
                return f"Error: document '{name}' not found."
            page = _find_page(doc, page_id)
            if page is None:
                return f"Error: page '{page_id}' not found in document '{name}'."
            page = _restyle_page(page, style, animated)
            _documents[name] = replace(doc, pages=upsert_page(doc.pages, page))
        logger.debug("Applied edge style %s to %d edge(s)", style.value, len(page.edges))
        return json.dumps(
            [e.to_dict() for e in apply_edge_style(page.edges, style, animated)],
            indent=2,
        )

    return f"Error: unknown edge_style action '{action}'."


# ===================================================================
# Helpers
# ===================================================================

def _decode(data: str) -> Any:
    """Decode JSON text; undecodable text is treated as no data."""
    if not data:
        return None
    try:
        return json.loads(data)
    except (json.JSONDecodeError, RecursionError):
        logger.warning("Document data is not decodable JSON (%d chars)", len(data))
        return None


def _restyle_page(page: Page, style: EdgeType, animated: bool) -> Page:
    settings = replace(page.settings, edge_style=style, edge_animated=animated)
    edges = [replace(edge, type=style) for edge in page.edges]
    return replace(page, settings=settings, edges=edges)


def _summary(name: str, doc: DiagramDocument) -> dict[str, Any]:
    pages: list[dict[str, Any]] = []
    for i, page in enumerate(doc.pages):
        pages.append({
            "index": i,
            "id": page.id,
            "name": page.name,
            "layers": len(page.layers),
            "nodes": len(page.nodes),
            "edges": len(page.edges),
        })
    return {"name": name, "active_page_id": doc.active_page_id, "pages": pages}


def _find_page(doc: DiagramDocument, page_id: str) -> Optional[Page]:
    return doc.find_page(page_id) if page_id else doc.active_page


# ===================================================================
# Entry point
# ===================================================================

def main() -> None:
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
