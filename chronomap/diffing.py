"""Minimal field-level diff between two entity snapshots.

Used when an edit is saved: the result is what goes into a ``ChangeRecord``.
An empty result means nothing changed and no record should be written.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .models import Entity


def values_equal(a: Any, b: Any) -> bool:
    """Structural equality with JSON value semantics.

    Lists and tuples compare element-wise, dicts key-wise. Unlike Python's
    ``==``, a bool never equals a number (``True`` is not ``1``), since the
    two serialize differently.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(
            values_equal(x, y) for x, y in zip(a, b)
        )
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(
            values_equal(a[k], b[k]) for k in a
        )
    containers = (list, tuple, dict)
    if isinstance(a, containers) or isinstance(b, containers):
        return False
    return a == b


def _as_fields(state: Mapping[str, Any] | Entity) -> Mapping[str, Any]:
    if isinstance(state, Entity):
        return state.snapshot()
    return state


def diff(
    old: Mapping[str, Any] | Entity | None,
    new: Mapping[str, Any] | Entity,
) -> dict[str, Any]:
    """Fields of ``new`` whose values differ from ``old``.

    Only keys present in ``new`` are looked at, so a partial ``new`` never
    reverts fields it does not mention. Changed lists and dicts are
    included whole. With no ``old`` state (first save), all of ``new`` is
    returned.
    """
    new_fields = _as_fields(new)
    if old is None:
        return dict(new_fields)
    old_fields = _as_fields(old)

    changes: dict[str, Any] = {}
    for key, new_value in new_fields.items():
        if key not in old_fields or not values_equal(
            old_fields[key], new_value
        ):
            changes[key] = new_value
    return changes
