"""
Version migration and normalization of persisted diagram data.

``migrate_diagram_data`` is total: whatever it is handed (current shape,
version-1 shape, ``None``, garbage) it returns a usable current-version
document.  Resolution is an ordered chain of optional parsers:

1. current shape  -> normalized document
2. version-1 shape -> wrapped into one page and one layer
3. anything else  -> a fresh empty document
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from whiteboard_mcp.defaults import DEFAULT_SETTINGS, DEFAULT_VIEWPORT
from whiteboard_mcp.layers import (
    create_default_layer,
    create_empty_document,
    ensure_page_layer_refs,
)
from whiteboard_mcp.models import DATA_VERSION, DiagramDocument, LegacyDocument, Page
from whiteboard_mcp.validation import parse_legacy, validate_current

logger = logging.getLogger("whiteboard-mcp")

LEGACY_PAGE_ID = "page-1"
LEGACY_PAGE_NAME = "Page 1"
LEGACY_LAYER_NAME = "Layer 1"


def normalize_document(document: DiagramDocument) -> DiagramDocument:
    """Repair dangling references of a structurally valid document.

    Every page gets a normalized layer set, a resolvable active layer and
    nodes/edges that point at one of its own layers.  A dangling
    ``active_page_id`` falls back to the first page.
    """
    pages: list[Page] = []
    moved = 0
    for page in document.pages:
        repaired, count = ensure_page_layer_refs(page)
        pages.append(repaired)
        moved += count

    active_page_id = document.active_page_id
    if not any(page.id == active_page_id for page in pages):
        logger.info("Active page '%s' not found; using '%s'", active_page_id, pages[0].id)
        active_page_id = pages[0].id
    if moved:
        logger.info("Reassigned %d node(s)/edge(s) with unknown layers", moved)

    return DiagramDocument(
        active_page_id=active_page_id,
        pages=pages,
        data_version=DATA_VERSION,
    )


def migrate_legacy_document(legacy: LegacyDocument) -> DiagramDocument:
    """Wrap a version-1 document into a single page with a single layer."""
    layer = create_default_layer(0, LEGACY_LAYER_NAME)
    page = Page(
        id=LEGACY_PAGE_ID,
        name=LEGACY_PAGE_NAME,
        viewport=legacy.viewport if legacy.viewport is not None else DEFAULT_VIEWPORT,
        settings=legacy.settings if legacy.settings is not None else replace(DEFAULT_SETTINGS),
        layers=[layer],
        active_layer_id=layer.id,
        nodes=[replace(node, layer_id=layer.id) for node in legacy.nodes],
        edges=[replace(edge, layer_id=layer.id) for edge in legacy.edges],
    )
    return DiagramDocument(active_page_id=page.id, pages=[page])


def migrate_diagram_data(data: Any) -> DiagramDocument:
    """Convert arbitrary persisted data into a current-version document.  Never raises."""
    if isinstance(data, DiagramDocument):
        data = data.to_dict()
    current = validate_current(data)
    if current is not None:
        logger.debug("Diagram data is current (v%d); normalizing", DATA_VERSION)
        return normalize_document(current)

    legacy = parse_legacy(data)
    if legacy is not None:
        logger.debug(
            "Migrating v1 diagram data (%d nodes, %d edges)",
            len(legacy.nodes), len(legacy.edges),
        )
        return migrate_legacy_document(legacy)

    logger.debug("Unrecognized diagram data (%s); starting empty", type(data).__name__)
    return create_empty_document()
