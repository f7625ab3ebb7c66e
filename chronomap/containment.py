"""Which regions contain a point, and which regions sit inside which.

Two questions drive everything here:

  * **Click disambiguation**: given a point, ``find_containing_regions``
    returns every region around it, smallest first. The first entry is the
    innermost region, the one a click on overlapping regions should select.
  * **Hierarchy**: ``is_percent_contained`` decides whether one region lies
    at least P% inside another. ``find_parent_regions``,
    ``find_child_regions`` and ``build_hierarchy`` use it (with
    ``ContainmentParams.hierarchy_min_percent``) to nest regions, and
    ``find_locations_in_region`` puts locations into them.

Exact containment needs a polygon intersection, which is the expensive
part. ``is_percent_contained`` runs three cheap necessary-condition checks
first (bounding boxes, best-case box overlap, vertex sampling) and only
clips with shapely when all of them pass.

Orderings are total: equal areas fall back to the region id, so results
never depend on input order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import shapely
from loguru import logger
from shapely.geometry import Polygon as ShapelyPolygon

from .config import ContainmentParams
from .geometry import (
    bounding_box,
    box_overlap_area,
    boxes_overlap,
    open_ring,
    point_in_polygon,
    polygon_area,
)
from .models import Entity, Point, Polygon


def _area_key(region: Entity) -> tuple[float, str]:
    return (polygon_area(region.position), region.id)


def find_containing_regions(
    point: Point, regions: list[Entity]
) -> list[Entity]:
    """Regions whose polygon contains ``point``, smallest area first.

    Areas are recomputed from the geometry; a region's cached ``area`` may
    be stale.
    """
    containing = [r for r in regions if point_in_polygon(point, r.position)]
    return sorted(containing, key=_area_key)


def _to_shapely(polygon: Polygon) -> ShapelyPolygon:
    sp = ShapelyPolygon(open_ring(polygon))
    if not sp.is_valid:
        # Self-intersecting rings from hand-drawn shapes.
        sp = shapely.make_valid(sp)
    return sp


def intersection_area(a: Polygon, b: Polygon) -> float:
    """Exact area shared by two polygons. 0 for degenerate input."""
    if len(a) < 3 or len(b) < 3:
        return 0.0
    inter = _to_shapely(a).intersection(_to_shapely(b))
    if inter.is_empty:
        return 0.0
    return float(inter.area)


def containment_ratio(inner: Polygon, outer: Polygon) -> float:
    """Fraction of ``inner``'s area lying inside ``outer``, in [0, 1]."""
    inner_area = polygon_area(inner)
    if inner_area == 0.0 or len(outer) < 3:
        return 0.0
    return min(1.0, intersection_area(inner, outer) / inner_area)


def _sample_vertices(polygon: Polygon, max_samples: int) -> Polygon:
    """Up to ``max_samples`` vertices spread over the whole ring.

    Sample i is taken from the middle of the i-th of k equal slices of the
    ring, so no run of neighbouring vertices can fill every slot.
    """
    ring = open_ring(polygon)
    n = len(ring)
    k = min(max_samples, n)
    return [ring[((2 * i + 1) * n) // (2 * k)] for i in range(k)]


def is_percent_contained(
    inner: Polygon,
    outer: Polygon,
    min_percent: float,
    params: ContainmentParams | None = None,
) -> bool:
    """True if at least ``min_percent`` (0-100) of ``inner`` lies in ``outer``.

    Stages, each a necessary condition for the next:
    1. Bounding boxes must overlap.
    2. The box overlap area, as a share of inner's area, must reach
       ``min_percent``: the real overlap can never be larger.
    3. Of up to ``max_samples`` evenly spaced inner vertices, the share
       inside ``outer`` must reach ``min_percent * sample_reject_factor``.
       This stage is a heuristic. A concave inner whose sampled vertices
       happen to fall outside can be rejected even though most of its area
       is inside (false negative); it never causes a false positive.
    4. Exact intersection area via shapely.

    Polygons with fewer than 3 points (or zero area) are never contained.
    """
    if params is None:
        params = ContainmentParams()
    if len(inner) < 3 or len(outer) < 3:
        return False
    inner_area = polygon_area(inner)
    if inner_area == 0.0:
        return False

    inner_box = bounding_box(inner)
    outer_box = bounding_box(outer)
    if not boxes_overlap(inner_box, outer_box):
        return False

    max_overlap = box_overlap_area(inner_box, outer_box)
    if (max_overlap / inner_area) * 100 < min_percent:
        logger.debug(
            "box overlap {:.1f}% below {}%",
            max_overlap / inner_area * 100,
            min_percent,
        )
        return False

    samples = _sample_vertices(inner, params.max_samples)
    inside = sum(1 for p in samples if point_in_polygon(p, outer))
    sample_percent = inside / len(samples) * 100
    if sample_percent < min_percent * params.sample_reject_factor:
        logger.debug(
            "{}/{} sampled vertices inside, rejecting", inside, len(samples)
        )
        return False

    overlap = intersection_area(inner, outer)
    if overlap == 0.0:
        return False
    return (overlap / inner_area) * 100 >= min_percent


def _ranked_by_ratio(
    pairs: list[tuple[float, Entity]],
) -> list[Entity]:
    pairs.sort(key=lambda p: (-p[0], polygon_area(p[1].position), p[1].id))
    return [r for _, r in pairs]


def find_parent_regions(
    region: Entity,
    regions: list[Entity],
    min_percent: float | None = None,
    params: ContainmentParams | None = None,
) -> list[Entity]:
    """Regions that contain at least ``min_percent`` of ``region``.

    Ordered by containment ratio (highest first), then area (smallest
    first), then id. ``region`` itself is skipped by id.
    """
    if params is None:
        params = ContainmentParams()
    if min_percent is None:
        min_percent = params.hierarchy_min_percent
    pairs: list[tuple[float, Entity]] = []
    for other in regions:
        if other.id == region.id:
            continue
        if is_percent_contained(
            region.position, other.position, min_percent, params
        ):
            pairs.append(
                (containment_ratio(region.position, other.position), other)
            )
    return _ranked_by_ratio(pairs)


def find_child_regions(
    region: Entity,
    regions: list[Entity],
    min_percent: float | None = None,
    params: ContainmentParams | None = None,
) -> list[Entity]:
    """Regions lying at least ``min_percent`` inside ``region``."""
    if params is None:
        params = ContainmentParams()
    if min_percent is None:
        min_percent = params.hierarchy_min_percent
    pairs: list[tuple[float, Entity]] = []
    for other in regions:
        if other.id == region.id:
            continue
        if is_percent_contained(
            other.position, region.position, min_percent, params
        ):
            pairs.append(
                (containment_ratio(other.position, region.position), other)
            )
    return _ranked_by_ratio(pairs)


def find_locations_in_region(
    region: Entity, locations: list[Entity]
) -> list[Entity]:
    """Locations whose point lies inside ``region``, in id order."""
    inside = [
        loc
        for loc in locations
        if point_in_polygon(loc.position, region.position)
    ]
    return sorted(inside, key=lambda loc: loc.id)


@dataclass
class Hierarchy:
    """Nesting of regions and locations at one point in time.

    ``parent_of`` maps an element id to its innermost container's id, or
    None for top-level elements. Region and location ids live in separate
    maps because ids are only unique within a type.
    """

    region_parent: dict[str, str | None] = field(default_factory=dict)
    location_parent: dict[str, str | None] = field(default_factory=dict)

    def parent_of(self, element_type: str, element_id: str) -> str | None:
        if element_type == "region":
            return self.region_parent.get(element_id)
        return self.location_parent.get(element_id)

    def children_of(self, region_id: str) -> list[str]:
        return sorted(
            rid for rid, pid in self.region_parent.items() if pid == region_id
        )

    def locations_in(self, region_id: str) -> list[str]:
        return sorted(
            lid
            for lid, pid in self.location_parent.items()
            if pid == region_id
        )

    def roots(self) -> list[str]:
        return sorted(
            rid for rid, pid in self.region_parent.items() if pid is None
        )


def build_hierarchy(
    regions: list[Entity],
    locations: list[Entity],
    min_percent: float | None = None,
    params: ContainmentParams | None = None,
) -> Hierarchy:
    """Assign every region and location its direct parent region.

    A region's direct parent is the smallest region after it in
    ``(area, id)`` order that contains it at least ``min_percent``. Only
    looking forward in that order keeps two near-identical regions from
    becoming each other's parent. A location's parent is the innermost
    region around its point.
    """
    if params is None:
        params = ContainmentParams()
    if min_percent is None:
        min_percent = params.hierarchy_min_percent

    hierarchy = Hierarchy()
    by_size = sorted(regions, key=_area_key)
    for region in by_size:
        own_key = _area_key(region)
        parent_id = None
        for candidate in by_size:
            if _area_key(candidate) <= own_key:
                continue
            if is_percent_contained(
                region.position, candidate.position, min_percent, params
            ):
                parent_id = candidate.id
                break
        hierarchy.region_parent[region.id] = parent_id

    for loc in locations:
        containing = find_containing_regions(loc.position, regions)
        hierarchy.location_parent[loc.id] = (
            containing[0].id if containing else None
        )

    logger.debug(
        "hierarchy built: {} regions, {} locations",
        len(regions),
        len(locations),
    )
    return hierarchy
