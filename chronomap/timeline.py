"""Turn edits made while viewing a year into change records.

An edit in year Y is diffed against the entity's state just before Y: the
base record when Y is the creation year, otherwise the reconstruction at
Y - 1. Only the changed fields are recorded, at year Y, replacing any
record already stored for the same ``(year, id, type)``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from .diffing import diff
from .ledger import ChangeMap, build_change_map, upsert_change
from .models import ChangeRecord, Entity
from .reconstruct import reconstruct_state_at_year


def prior_state(
    base: Entity, year: int, change_map: ChangeMap
) -> Entity | None:
    """The state an edit in ``year`` is compared against."""
    if year == base.creation_year:
        return base
    return reconstruct_state_at_year(base, year - 1, change_map)


def record_edit(
    base: Entity,
    year: int,
    new_values: Mapping[str, Any] | Entity,
    change_map: ChangeMap,
) -> ChangeRecord | None:
    """Change record for saving ``new_values`` in ``year``, or None.

    None means the values match the prior state and nothing needs storing.
    Raises ValueError when editing before the entity was created or while
    it is deleted.
    """
    if year < base.creation_year:
        raise ValueError(
            f"Cannot edit {base.element_type} {base.id} in {year}: "
            f"created in {base.creation_year}"
        )
    prior = prior_state(base, year, change_map)
    if prior is None:
        raise ValueError(
            f"Cannot edit {base.element_type} {base.id} in {year}: "
            "it does not exist the year before"
        )
    delta = diff(prior, new_values)
    if not delta:
        logger.debug(
            "no-op edit of {} {} in {}", base.element_type, base.id, year
        )
        return None
    return ChangeRecord(year, base.id, base.element_type, "updated", delta)


def record_deletion(base: Entity, year: int) -> ChangeRecord:
    """Deletion marker for ``base`` as of ``year``."""
    if year < base.creation_year:
        raise ValueError(
            f"Cannot delete {base.element_type} {base.id} in {year}: "
            f"created in {base.creation_year}"
        )
    return ChangeRecord(year, base.id, base.element_type, "deleted")


def apply_edit(
    records: list[ChangeRecord],
    base: Entity,
    year: int,
    new_values: Mapping[str, Any] | Entity,
) -> list[ChangeRecord]:
    """Records after saving an edit; unchanged if the edit is a no-op."""
    change = record_edit(base, year, new_values, build_change_map(records))
    if change is None:
        return list(records)
    return upsert_change(records, change)
