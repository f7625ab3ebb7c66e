"""Planar polygon primitives shared by the containment code.

Polygons are lists of ``(x, y)`` tuples forming a simple ring. The ring may
or may not repeat its first vertex at the end; every function here gives the
same answer either way. Fewer than 3 points is a degenerate polygon, not an
error: its area is 0 and nothing is inside it.

Boundary behaviour of ``point_in_polygon`` is whatever ray casting gives.
A point exactly on an edge may land either side (in practice left and bottom
edges of an axis-aligned box read as inside, right and top edges as
outside). Callers that need boundary-inclusive tests must add their own
tolerance.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .config import SLOPE_EPSILON
from .models import Point, Polygon


class DegenerateGeometryError(ValueError):
    """Raised when a computation is undefined for a zero-area polygon."""


def open_ring(polygon: Polygon) -> Polygon:
    """Drop the repeated closing vertex, if any."""
    if len(polygon) > 1 and tuple(polygon[0]) == tuple(polygon[-1]):
        return list(polygon[:-1])
    return list(polygon)


def point_in_polygon(point: Point, polygon: Polygon) -> bool:
    """Ray-casting point-in-polygon test.

    Casts a horizontal ray towards +x and toggles on every edge crossing.
    ``SLOPE_EPSILON`` keeps horizontal edges from dividing by zero; they
    never satisfy the straddle test anyway.
    """
    if len(polygon) < 3:
        return False
    px, py = point
    n = len(polygon)
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            dy = yj - yi + SLOPE_EPSILON
            intersect_x = (xj - xi) * (py - yi) / dy + xi
            if px < intersect_x:
                inside = not inside
        j = i
    return inside


def _ring_arrays(polygon: Polygon) -> tuple[np.ndarray, np.ndarray]:
    pts = np.asarray(polygon, dtype=np.float64)
    return pts[:, 0], pts[:, 1]


def polygon_signed_area(polygon: Polygon) -> float:
    """Shoelace area, positive for counter-clockwise rings."""
    if len(polygon) < 3:
        return 0.0
    xs, ys = _ring_arrays(polygon)
    cross = xs * np.roll(ys, -1) - np.roll(xs, -1) * ys
    return float(cross.sum()) / 2.0


def polygon_area(polygon: Polygon) -> float:
    """Unsigned shoelace area. 0 for fewer than 3 points."""
    return abs(polygon_signed_area(polygon))


def polygon_centroid(polygon: Polygon) -> Point:
    """Area-weighted centroid of a simple polygon.

    Raises DegenerateGeometryError when the signed area is exactly zero
    (fewer than 3 points, collinear points, or a self-intersecting ring whose
    lobes cancel out). The formula divides by the area, so there is no
    meaningful answer to return.
    """
    if len(polygon) < 3:
        raise DegenerateGeometryError(
            f"Centroid needs at least 3 points, got {len(polygon)}"
        )
    xs, ys = _ring_arrays(polygon)
    xn = np.roll(xs, -1)
    yn = np.roll(ys, -1)
    cross = xs * yn - xn * ys
    area = float(cross.sum()) / 2.0
    if area == 0.0:
        raise DegenerateGeometryError(
            "Centroid undefined for zero-area polygon"
        )
    factor = 1.0 / (6.0 * area)
    cx = float(((xs + xn) * cross).sum()) * factor
    cy = float(((ys + yn) * cross).sum()) * factor
    return (cx, cy)


def safe_centroid(polygon: Polygon) -> Point | None:
    """Centroid, or None for a degenerate polygon."""
    try:
        return polygon_centroid(polygon)
    except DegenerateGeometryError:
        return None


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


def bounding_box(polygon: Polygon) -> BoundingBox:
    """Axis-aligned bounding box. Raises ValueError for an empty polygon."""
    if not polygon:
        raise ValueError("Bounding box of an empty polygon")
    xs = [p[0] for p in polygon]
    ys = [p[1] for p in polygon]
    return BoundingBox(min(xs), min(ys), max(xs), max(ys))


def boxes_overlap(a: BoundingBox, b: BoundingBox) -> bool:
    """True unless the boxes are strictly apart. Touching counts."""
    return not (
        a.max_x < b.min_x
        or b.max_x < a.min_x
        or a.max_y < b.min_y
        or b.max_y < a.min_y
    )


def box_overlap_area(a: BoundingBox, b: BoundingBox) -> float:
    """Area of the intersection of two boxes, 0 if disjoint."""
    width = min(a.max_x, b.max_x) - max(a.min_x, b.min_x)
    height = min(a.max_y, b.max_y) - max(a.min_y, b.min_y)
    if width <= 0 or height <= 0:
        return 0.0
    return width * height
