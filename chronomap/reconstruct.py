"""Rebuild an entity's state as of a given year from the change ledger.

The base record is the entity's latest state. A year's view is derived by
replaying, in ascending year order, every recorded change from the
creation year up to and including the target year on top of the base
record. Each ``updated`` delta overwrites only the fields it names (whole
values, no nested merge).

Outcomes for ``reconstruct_state_at_year``:

  * target year before creation: ``None`` (not created yet);
  * no recorded changes at all: the base record itself;
  * latest applicable change is a deletion: ``None``;
  * otherwise: a new ``Entity`` with the deltas folded in.

Deletion markers that are not the latest applicable change are handled by
``ReconstructionParams.deletion_policy``; see ``config.py``.

Nothing here mutates its inputs. The explicit sort by year makes results
independent of ledger insertion order.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from .config import ReconstructionParams
from .ledger import ChangeMap
from .models import DELETED, Entity


def reconstruct_state_at_year(
    base: Entity,
    target_year: int,
    change_map: ChangeMap,
    params: ReconstructionParams | None = None,
) -> Entity | None:
    """State of ``base`` in ``target_year``, or None if it does not exist."""
    if target_year < base.creation_year:
        return None

    changes = change_map.changes_for(base.element_type, base.id)
    if not changes:
        return base

    applicable = sorted(
        (year, change)
        for year, change in changes.items()
        if base.creation_year <= year <= target_year
    )
    if not applicable:
        return base

    if applicable[-1][1] is DELETED:
        return None

    if params is None:
        params = ReconstructionParams()
    if params.deletion_policy == "terminal" and any(
        change is DELETED for _, change in applicable
    ):
        return None

    state = base
    for year, change in applicable:
        if change is DELETED:
            logger.warning(
                "{} {} revived after deletion at year {}",
                base.element_type,
                base.id,
                year,
            )
            continue
        state = state.with_changes(change)
    return state


def reconstruct_all(
    entities: Iterable[Entity],
    target_year: int,
    change_map: ChangeMap,
    params: ReconstructionParams | None = None,
) -> list[Entity]:
    """Every entity that exists in ``target_year``, in its state then.

    Entities not yet created or deleted by then are dropped; input order is
    otherwise preserved.
    """
    result: list[Entity] = []
    for entity in entities:
        state = reconstruct_state_at_year(
            entity, target_year, change_map, params
        )
        if state is not None:
            result.append(state)
    return result


def find_entity_at_year(
    entities: Iterable[Entity],
    element_type: str,
    element_id: str,
    target_year: int,
    change_map: ChangeMap,
    params: ReconstructionParams | None = None,
) -> Entity | None:
    """Look up one entity by id and reconstruct it.

    Unknown ids return None like absent entities do: a dangling reference
    (say, a stale mention in a description) is expected, not an error.
    """
    for entity in entities:
        if entity.element_type == element_type and entity.id == element_id:
            return reconstruct_state_at_year(
                entity, target_year, change_map, params
            )
    return None
