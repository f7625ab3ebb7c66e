"""Data types for map elements and their timeline change records.

Entities (locations and regions) are stored once, in their *current* form.
History is never stored as snapshots: every edit or deletion made while
viewing some year is a ``ChangeRecord`` holding only the fields that changed.

The dict forms mirror the camelCase rows the entity and change stores ship
(``creationYear``, ``elementType``, ``position`` ...). Anything on an entity
that is not identity or geometry is opaque payload, kept in ``fields`` and
diffed/replayed without interpretation.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from loguru import logger

Point = tuple[float, float]
Polygon = list[Point]

ElementType = Literal["location", "region"]
ChangeKind = Literal["updated", "deleted"]

ELEMENT_TYPES: tuple[str, ...] = ("location", "region")
CHANGE_KINDS: tuple[str, ...] = ("updated", "deleted")

FieldValue = Union[
    str, int, float, bool, None, list["FieldValue"], dict[str, "FieldValue"]
]
Delta = dict[str, Any]

# Keys that identify an entity rather than describe it. Never diffed.
IDENTITY_KEYS = frozenset({"id", "elementType", "creationYear"})


class _Deleted:
    """Ledger marker for a ``deleted`` change."""

    _instance: _Deleted | None = None

    def __new__(cls) -> _Deleted:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETED"

    def __reduce__(self):
        return (_Deleted, ())


DELETED = _Deleted()


def check_field_value(value: Any) -> None:
    """Raise TypeError unless ``value`` is a supported payload kind."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            check_field_value(item)
        return
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"Payload object keys must be str, got {k!r}")
            check_field_value(v)
        return
    raise TypeError(
        f"Unsupported payload value of type {type(value).__name__}: {value!r}"
    )


def _to_point(raw: Any) -> Point:
    x, y = raw
    return (float(x), float(y))


def _to_polygon(raw: Any) -> Polygon:
    return [_to_point(p) for p in raw]


def _check_element_type(element_type: str) -> None:
    if element_type not in ELEMENT_TYPES:
        raise ValueError(f"Unknown element type: {element_type!r}")


@dataclass
class Entity:
    """A location or region in its current (latest) state.

    ``position`` is a single point for a location and a ring of points for
    a region. ``area`` is a cached value the store may carry for regions; it
    can be stale and is never trusted by the geometry code.
    """

    id: str
    element_type: ElementType
    creation_year: int
    position: Point | Polygon
    area: float | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_element_type(self.element_type)
        if self.element_type == "location":
            self.position = _to_point(self.position)
        else:
            self.position = _to_polygon(self.position)
        for value in self.fields.values():
            check_field_value(value)

    @property
    def is_region(self) -> bool:
        return self.element_type == "region"

    @staticmethod
    def from_dict(d: dict) -> Entity:
        payload = {
            k: v
            for k, v in d.items()
            if k not in IDENTITY_KEYS and k not in ("position", "area")
        }
        return Entity(
            id=d["id"],
            element_type=d["elementType"],
            creation_year=int(d["creationYear"]),
            position=d["position"],
            area=d.get("area"),
            fields=payload,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "id": self.id,
            "elementType": self.element_type,
            "creationYear": self.creation_year,
        }
        d.update(self.snapshot())
        return d

    def snapshot(self) -> dict[str, Any]:
        """The diffable field map: geometry, cached area and payload."""
        if self.is_region:
            d: dict[str, Any] = {"position": [list(p) for p in self.position]}
            if self.area is not None:
                d["area"] = self.area
        else:
            d = {"position": list(self.position)}
        d.update(self.fields)
        return d

    def with_changes(self, delta: Delta) -> Entity:
        """Return a copy with every field named in ``delta`` replaced whole.

        Payload values are deep-copied, so the result shares no lists or
        dicts with this entity or with ``delta``.
        """
        position = self.position
        area = self.area
        fields = copy.deepcopy(self.fields)
        for key, value in delta.items():
            if key in IDENTITY_KEYS:
                logger.warning(
                    "Ignoring identity key {!r} in delta for {} {}",
                    key,
                    self.element_type,
                    self.id,
                )
            elif key == "position":
                position = value
            elif key == "area":
                area = value
            else:
                fields[key] = copy.deepcopy(value)
        return Entity(
            id=self.id,
            element_type=self.element_type,
            creation_year=self.creation_year,
            position=position,
            area=area,
            fields=fields,
        )


def make_location(
    element_id: str, creation_year: int, position: Point, **fields: Any
) -> Entity:
    return Entity(
        id=element_id,
        element_type="location",
        creation_year=creation_year,
        position=position,
        fields=fields,
    )


def make_region(
    element_id: str,
    creation_year: int,
    position: Polygon,
    area: float | None = None,
    **fields: Any,
) -> Entity:
    return Entity(
        id=element_id,
        element_type="region",
        creation_year=creation_year,
        position=position,
        area=area,
        fields=fields,
    )


@dataclass
class ChangeRecord:
    """One dated diff (or deletion marker) for one entity."""

    year: int
    element_id: str
    element_type: ElementType
    kind: ChangeKind = "updated"
    delta: Delta = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_element_type(self.element_type)
        if self.kind not in CHANGE_KINDS:
            raise ValueError(f"Unknown change kind: {self.kind!r}")
        if self.kind == "deleted":
            self.delta = {}

    @property
    def key(self) -> tuple[int, str, str]:
        return (self.year, self.element_id, self.element_type)

    @staticmethod
    def from_dict(d: dict) -> ChangeRecord:
        return ChangeRecord(
            year=int(d["year"]),
            element_id=d["elementId"],
            element_type=d["elementType"],
            kind=d.get("changeType", "updated"),
            delta=dict(d.get("changes") or {}),
        )

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "elementId": self.element_id,
            "elementType": self.element_type,
            "changeType": self.kind,
            "changes": dict(self.delta),
        }
