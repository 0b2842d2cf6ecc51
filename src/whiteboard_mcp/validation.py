"""
Structural validation for diagram documents and MCP tool parameters.

Primitive validators raise ``ValidationError`` with a message naming the
offending field path.  The schema parsers build typed records from
decoded JSON; the two public entry points, ``validate_current`` and
``parse_legacy``, turn a rejection into ``None`` so callers can chain
them as optional parsers.

Validation checks shape and value ranges only.  Dangling layer/page
references are left alone; repairing them is the migrator's job.
"""

from __future__ import annotations

import math
from dataclasses import replace
from enum import Enum
from typing import Any, Optional, TypeVar

from whiteboard_mcp.defaults import DEFAULT_SETTINGS, DEFAULT_VIEWPORT
from whiteboard_mcp.geometry import Position, Size, Viewport
from whiteboard_mcp.models import (
    DATA_VERSION,
    LEGACY_DATA_VERSION,
    DataTableData,
    DataTableField,
    DiagramDocument,
    DiagramSettings,
    EdgeRecord,
    EdgeType,
    Layer,
    LegacyDocument,
    NodeRecord,
    NodeStyle,
    NodeType,
    Page,
)

E = TypeVar("E", bound=Enum)


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Primitive validators
# ---------------------------------------------------------------------------

def validate_non_empty_string(value: Any, field_name: str) -> str:
    """Ensure *value* is a non-empty string after stripping whitespace."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field_name}' must be a non-empty string.")
    return value.strip()


def validate_string(value: Any, field_name: str, *, allow_empty: bool = True) -> str:
    """Ensure *value* is a string (optionally non-empty)."""
    if not isinstance(value, str):
        raise ValidationError(f"'{field_name}' must be a string, got {type(value).__name__}.")
    if not allow_empty and not value:
        raise ValidationError(f"'{field_name}' must not be empty.")
    return value


def validate_number(
    value: Any,
    field_name: str,
    *,
    min_val: float | None = None,
    max_val: float | None = None,
    exclusive_min: bool = False,
) -> float:
    """Validate a finite numeric value and optional range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(
            f"'{field_name}' must be a number, got {type(value).__name__}."
        )
    try:
        val = float(value)
    except OverflowError:
        raise ValidationError(f"'{field_name}' must be finite, got an out-of-range number.")
    if not math.isfinite(val):
        raise ValidationError(f"'{field_name}' must be finite, got {val}.")
    if min_val is not None:
        if exclusive_min and val <= min_val:
            raise ValidationError(f"'{field_name}' must be > {min_val}, got {val}.")
        if not exclusive_min and val < min_val:
            raise ValidationError(f"'{field_name}' must be >= {min_val}, got {val}.")
    if max_val is not None and val > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {val}."
        )
    return val


def validate_positive_number(value: Any, field_name: str) -> float:
    """Validate that a number is strictly positive."""
    return validate_number(value, field_name, min_val=0, exclusive_min=True)


def validate_non_negative_number(value: Any, field_name: str) -> float:
    """Validate that a number is >= 0."""
    return validate_number(value, field_name, min_val=0)


def validate_int(
    value: Any,
    field_name: str,
    *,
    min_val: int | None = None,
    max_val: int | None = None,
) -> int:
    """Validate an integer value and optional range.

    Integral floats such as ``10.0`` are accepted and returned as ``int``;
    decoded JSON does not distinguish the two.
    """
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be an integer, got {type(value).__name__}."
        )
    try:
        float(value)
    except OverflowError:
        raise ValidationError(f"'{field_name}' must be finite, got an out-of-range integer.")
    if min_val is not None and value < min_val:
        raise ValidationError(
            f"'{field_name}' must be >= {min_val}, got {value}."
        )
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"'{field_name}' must be <= {max_val}, got {value}."
        )
    return value


def validate_bool(value: Any, field_name: str) -> bool:
    """Ensure *value* is a boolean."""
    if not isinstance(value, bool):
        raise ValidationError(
            f"'{field_name}' must be a boolean, got {type(value).__name__}."
        )
    return value


def validate_enum(value: Any, field_name: str, enum_cls: type[E]) -> E:
    """Validate that *value* is the stored value of one of *enum_cls*'s members."""
    if not isinstance(value, str):
        raise ValidationError(
            f"'{field_name}' must be a string, got {type(value).__name__}."
        )
    for member in enum_cls:
        if member.value == value:
            return member
    choices = ", ".join(member.value for member in enum_cls)
    raise ValidationError(
        f"'{field_name}' must be one of [{choices}], got '{value}'."
    )


def validate_list(value: Any, field_name: str, *, min_length: int = 0) -> list:
    """Ensure *value* is a list with at least *min_length* items."""
    if not isinstance(value, list):
        raise ValidationError(
            f"'{field_name}' must be a list, got {type(value).__name__}."
        )
    if len(value) < min_length:
        raise ValidationError(
            f"'{field_name}' must have at least {min_length} item(s), got {len(value)}."
        )
    return value


def validate_dict(value: Any, field_name: str) -> dict:
    """Ensure *value* is a dict."""
    if not isinstance(value, dict):
        raise ValidationError(
            f"'{field_name}' must be a dict/object, got {type(value).__name__}."
        )
    return value


def _require(obj: dict, key: str, path: str) -> Any:
    if key not in obj:
        raise ValidationError(f"'{path}' missing required key '{key}'.")
    return obj[key]


# ---------------------------------------------------------------------------
# Tool-level validators
# ---------------------------------------------------------------------------

_DOCUMENT_ACTIONS = {
    "CREATE", "LOAD", "GET", "VALIDATE", "LIST", "INFO",
    "ADD_PAGE", "ADD_LAYER", "DELETE",
}
_EDGE_STYLE_ACTIONS = {"RESOLVE", "LIST", "APPLY"}


def validate_action(value: Any, tool_name: str, allowed: set[str]) -> str:
    """Validate the action parameter for a tool."""
    if not isinstance(value, str) or not value.strip():
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"'{tool_name}' requires an 'action' parameter. Valid actions: {choices}."
        )
    normalized = value.strip().upper()
    if normalized not in allowed:
        choices = ", ".join(sorted(a.lower() for a in allowed))
        raise ValidationError(
            f"Unknown {tool_name} action '{value}'. Valid actions: {choices}."
        )
    return value.strip().lower()


# ---------------------------------------------------------------------------
# Schema parsers
# ---------------------------------------------------------------------------

def parse_viewport(raw: Any, path: str) -> Viewport:
    obj = validate_dict(raw, path)
    return Viewport(
        x=validate_number(_require(obj, "x", path), f"{path}.x"),
        y=validate_number(_require(obj, "y", path), f"{path}.y"),
        zoom=validate_positive_number(_require(obj, "zoom", path), f"{path}.zoom"),
    )


def parse_settings(raw: Any, path: str) -> DiagramSettings:
    """Parse page settings; each missing field takes its own default."""
    obj = validate_dict(raw, path)
    settings = DiagramSettings()
    if "snapEnabled" in obj:
        settings.snap_enabled = validate_bool(obj["snapEnabled"], f"{path}.snapEnabled")
    if "gridSize" in obj:
        settings.grid_size = validate_int(obj["gridSize"], f"{path}.gridSize", min_val=1)
    if "edgeStyle" in obj:
        settings.edge_style = validate_enum(obj["edgeStyle"], f"{path}.edgeStyle", EdgeType)
    if "edgeAnimated" in obj:
        settings.edge_animated = validate_bool(obj["edgeAnimated"], f"{path}.edgeAnimated")
    return settings


def parse_layer(raw: Any, path: str) -> Layer:
    obj = validate_dict(raw, path)
    layer = Layer(
        id=validate_string(_require(obj, "id", path), f"{path}.id", allow_empty=False),
        name=validate_string(_require(obj, "name", path), f"{path}.name", allow_empty=False),
        order=validate_int(_require(obj, "order", path), f"{path}.order", min_val=0),
    )
    if "isVisible" in obj:
        layer.is_visible = validate_bool(obj["isVisible"], f"{path}.isVisible")
    if "isLocked" in obj:
        layer.is_locked = validate_bool(obj["isLocked"], f"{path}.isLocked")
    return layer


def parse_node_style(raw: Any, path: str) -> NodeStyle:
    obj = validate_dict(raw, path)
    style = NodeStyle(
        fill=validate_string(_require(obj, "fill", path), f"{path}.fill", allow_empty=False),
        stroke=validate_string(_require(obj, "stroke", path), f"{path}.stroke", allow_empty=False),
        text_color=validate_string(
            _require(obj, "textColor", path), f"{path}.textColor", allow_empty=False
        ),
    )
    if obj.get("fontSize") is not None:
        style.font_size = validate_positive_number(obj["fontSize"], f"{path}.fontSize")
    return style


def sanitize_data_table(raw: Any) -> Optional[DataTableData]:
    """Best-effort parse of a data-table payload.

    An unusable payload yields ``None`` instead of rejecting the node; an
    unusable field is skipped.
    """
    if not isinstance(raw, dict):
        return None
    table_name = raw.get("tableName")
    if not isinstance(table_name, str) or not table_name:
        return None
    fields: list[DataTableField] = []
    raw_fields = raw.get("fields")
    for item in raw_fields if isinstance(raw_fields, list) else []:
        if not isinstance(item, dict):
            continue
        fid, name, ftype = item.get("id"), item.get("name"), item.get("type")
        if not all(isinstance(v, str) and v for v in (fid, name, ftype)):
            continue
        is_pk = item.get("isPK")
        is_fk = item.get("isFK")
        fields.append(DataTableField(
            id=fid,
            name=name,
            type=ftype,
            is_pk=is_pk if isinstance(is_pk, bool) else None,
            is_fk=is_fk if isinstance(is_fk, bool) else None,
        ))
    return DataTableData(table_name=table_name, fields=fields)


def parse_node(raw: Any, path: str, *, with_layer: bool = True) -> NodeRecord:
    """Parse a node record.  Version-1 nodes are parsed with ``with_layer=False``."""
    obj = validate_dict(raw, path)
    position = validate_dict(_require(obj, "position", path), f"{path}.position")
    size = validate_dict(_require(obj, "size", path), f"{path}.size")
    layer_id = ""
    if with_layer:
        layer_id = validate_string(
            _require(obj, "layerId", path), f"{path}.layerId", allow_empty=False
        )
    return NodeRecord(
        id=validate_string(_require(obj, "id", path), f"{path}.id", allow_empty=False),
        type=validate_enum(_require(obj, "type", path), f"{path}.type", NodeType),
        position=Position(
            validate_number(_require(position, "x", f"{path}.position"), f"{path}.position.x"),
            validate_number(_require(position, "y", f"{path}.position"), f"{path}.position.y"),
        ),
        size=Size(
            validate_positive_number(
                _require(size, "width", f"{path}.size"), f"{path}.size.width"
            ),
            validate_positive_number(
                _require(size, "height", f"{path}.size"), f"{path}.size.height"
            ),
        ),
        text=validate_string(_require(obj, "text", path), f"{path}.text"),
        style=parse_node_style(_require(obj, "style", path), f"{path}.style"),
        layer_id=layer_id,
        data=sanitize_data_table(obj.get("data")),
    )


def parse_edge(raw: Any, path: str, *, with_layer: bool = True) -> EdgeRecord:
    """Parse an edge record.  Version-1 edges are parsed with ``with_layer=False``."""
    obj = validate_dict(raw, path)
    edge = EdgeRecord(
        id=validate_string(_require(obj, "id", path), f"{path}.id", allow_empty=False),
        source=validate_string(_require(obj, "source", path), f"{path}.source", allow_empty=False),
        target=validate_string(_require(obj, "target", path), f"{path}.target", allow_empty=False),
        layer_id="",
    )
    if with_layer:
        edge.layer_id = validate_string(
            _require(obj, "layerId", path), f"{path}.layerId", allow_empty=False
        )
    for key, attr in (("sourceHandle", "source_handle"), ("targetHandle", "target_handle")):
        if obj.get(key) is not None:
            setattr(edge, attr, validate_string(obj[key], f"{path}.{key}", allow_empty=False))
    if obj.get("type") is not None:
        edge.type = validate_enum(obj["type"], f"{path}.type", EdgeType)
    return edge


def parse_page(raw: Any, path: str) -> Page:
    obj = validate_dict(raw, path)
    layers = validate_list(_require(obj, "layers", path), f"{path}.layers", min_length=1)
    nodes = validate_list(obj.get("nodes", []), f"{path}.nodes")
    edges = validate_list(obj.get("edges", []), f"{path}.edges")
    return Page(
        id=validate_string(_require(obj, "id", path), f"{path}.id", allow_empty=False),
        name=validate_string(_require(obj, "name", path), f"{path}.name", allow_empty=False),
        viewport=(
            parse_viewport(obj["viewport"], f"{path}.viewport")
            if "viewport" in obj else DEFAULT_VIEWPORT
        ),
        settings=(
            parse_settings(obj["settings"], f"{path}.settings")
            if "settings" in obj else replace(DEFAULT_SETTINGS)
        ),
        layers=[parse_layer(item, f"{path}.layers[{i}]") for i, item in enumerate(layers)],
        active_layer_id=validate_string(
            _require(obj, "activeLayerId", path), f"{path}.activeLayerId", allow_empty=False
        ),
        nodes=[parse_node(item, f"{path}.nodes[{i}]") for i, item in enumerate(nodes)],
        edges=[parse_edge(item, f"{path}.edges[{i}]") for i, item in enumerate(edges)],
    )


def parse_document(raw: Any) -> DiagramDocument:
    """Parse a current-version document, raising ``ValidationError`` on any mismatch."""
    obj = validate_dict(raw, "document")
    version = _require(obj, "dataVersion", "document")
    if isinstance(version, bool) or version != DATA_VERSION:
        raise ValidationError(
            f"'document.dataVersion' must be {DATA_VERSION}, got {version!r}."
        )
    pages = validate_list(_require(obj, "pages", "document"), "document.pages", min_length=1)
    return DiagramDocument(
        active_page_id=validate_string(
            _require(obj, "activePageId", "document"), "document.activePageId",
            allow_empty=False,
        ),
        pages=[parse_page(item, f"pages[{i}]") for i, item in enumerate(pages)],
    )


def parse_legacy_document(raw: Any) -> LegacyDocument:
    """Parse the version-1 single-page shape, raising ``ValidationError`` on mismatch."""
    obj = validate_dict(raw, "document")
    version = _require(obj, "version", "document")
    if isinstance(version, bool) or version != LEGACY_DATA_VERSION:
        raise ValidationError(
            f"'document.version' must be {LEGACY_DATA_VERSION}, got {version!r}."
        )
    nodes = validate_list(obj.get("nodes", []), "nodes")
    edges = validate_list(obj.get("edges", []), "edges")
    return LegacyDocument(
        nodes=[parse_node(item, f"nodes[{i}]", with_layer=False) for i, item in enumerate(nodes)],
        edges=[parse_edge(item, f"edges[{i}]", with_layer=False) for i, item in enumerate(edges)],
        viewport=(
            parse_viewport(obj["viewport"], "viewport")
            if obj.get("viewport") is not None else None
        ),
        settings=(
            parse_settings(obj["settings"], "settings")
            if obj.get("settings") is not None else None
        ),
    )


# ---------------------------------------------------------------------------
# Optional-result entry points
# ---------------------------------------------------------------------------

def check_current(data: Any) -> Optional[str]:
    """Return the first validation error for *data*, or ``None`` when it is current-shape."""
    try:
        parse_document(data)
    except ValidationError as exc:
        return exc.message
    return None


def validate_current(data: Any) -> Optional[DiagramDocument]:
    """Parse *data* as a current-version document, or return ``None``."""
    try:
        return parse_document(data)
    except ValidationError:
        return None


def parse_legacy(data: Any) -> Optional[LegacyDocument]:
    """Parse *data* as a version-1 document, or return ``None``."""
    try:
        return parse_legacy_document(data)
    except ValidationError:
        return None
