"""
Geometry primitives for diagram documents.

Value objects for positions, sizes and viewports plus the pure arithmetic
used by the snap engine (grid quantization, screen projection).
All values are in document space unless a name says otherwise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Position:
    """A 2-D coordinate in document space."""
    x: float
    y: float

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Size:
    """Width and height of a node; both positive in a valid document."""
    width: float
    height: float

    def to_dict(self) -> dict[str, Any]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True)
class Viewport:
    """Camera state of a page: pan offset and zoom factor."""
    x: float = 0
    y: float = 0
    zoom: float = 1

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}

    def to_screen(self, position: Position) -> Position:
        """Project a document-space position into screen space."""
        return Position(
            to_screen(position.x, self.zoom, self.x),
            to_screen(position.y, self.zoom, self.y),
        )


@dataclass(frozen=True)
class NodeBounds:
    """Axis-aligned bounding box of a node."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    @property
    def has_area(self) -> bool:
        """True when both dimensions are finite and positive."""
        return is_finite_positive(self.width) and is_finite_positive(self.height)


# ---------------------------------------------------------------------------
# Arithmetic helpers
# ---------------------------------------------------------------------------

def is_finite_positive(value: Any) -> bool:
    """True for real numbers that are finite and strictly greater than zero."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return value > 0


def snap_value(value: float, grid_size: float) -> float:
    """Snap a coordinate to the nearest multiple of *grid_size*.

    Ties round away from zero, so with a grid of 10 both 15 and -15 move
    outward (to 20 and -20).  A non-positive grid size leaves the value
    unchanged.
    """
    if grid_size <= 0:
        return value
    steps = math.floor(abs(value) / grid_size + 0.5)
    return math.copysign(steps * grid_size, value) if steps else 0


def snap_position(position: Position, grid_size: float) -> Position:
    """Snap both axes of *position* independently."""
    return Position(
        snap_value(position.x, grid_size),
        snap_value(position.y, grid_size),
    )


def to_screen(value: float, zoom: float, pan: float) -> float:
    """Map a document coordinate to screen space: ``value * zoom + pan``."""
    return value * zoom + pan
