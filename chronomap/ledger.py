"""Change ledger: per-entity, year-indexed view of all change records.

``build_change_map`` is the only way to get a ``ChangeMap``. It is a pure
projection of the record collection: rebuild it whenever the records
change, never patch it. The returned map hands out read-only views, so one
map can serve any number of reconstructions (threads included).

Also holds the helpers the change store's callers need around the ledger:
upsert with replace-on-conflict, conversion to and from the year-grouped
timeline entry format, and finding later changes for an entity.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Any, Mapping, Union

from loguru import logger

from .models import DELETED, ChangeRecord, _Deleted

LedgerValue = Union[Mapping[str, Any], _Deleted]
YearMap = Mapping[int, LedgerValue]

_PLURAL = {"location": "locations", "region": "regions"}


class ChangeMap:
    """Read-only index: ``(element_type, element_id) -> {year: change}``.

    Each change is either the record's delta or ``DELETED``.
    """

    def __init__(self, index: dict[tuple[str, str], dict[int, LedgerValue]]):
        self._index: dict[tuple[str, str], YearMap] = {
            key: MappingProxyType(years) for key, years in index.items()
        }

    def changes_for(
        self, element_type: str, element_id: str
    ) -> YearMap | None:
        return self._index.get((element_type, element_id))

    def years_for(self, element_type: str, element_id: str) -> list[int]:
        years = self._index.get((element_type, element_id))
        return sorted(years) if years else []

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(sorted(self._index))

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"ChangeMap({len(self._index)} entities)"


def build_change_map(records: Iterable[ChangeRecord]) -> ChangeMap:
    """Group records by entity and year. Later duplicates replace earlier."""
    index: dict[tuple[str, str], dict[int, LedgerValue]] = {}
    for rec in records:
        years = index.setdefault((rec.element_type, rec.element_id), {})
        if rec.year in years:
            logger.debug(
                "replacing {} {} change at year {}",
                rec.element_type,
                rec.element_id,
                rec.year,
            )
        if rec.kind == "deleted":
            years[rec.year] = DELETED
        else:
            years[rec.year] = MappingProxyType(copy.deepcopy(rec.delta))
    return ChangeMap(index)


def upsert_change(
    records: list[ChangeRecord], record: ChangeRecord
) -> list[ChangeRecord]:
    """Return ``records`` with ``record`` added, replacing any same-key one.

    Keys are ``(year, element_id, element_type)``; the replaced record's
    position in the list is kept.
    """
    result: list[ChangeRecord] = []
    replaced = False
    for rec in records:
        if rec.key == record.key:
            if not replaced:
                result.append(record)
                replaced = True
            continue
        result.append(rec)
    if not replaced:
        result.append(record)
    return result


def is_empty_changes(changes: Mapping[str, Any]) -> bool:
    """True if a timeline entry's ``changes`` block records nothing."""
    modified = changes.get("modified") or {}
    deleted = changes.get("deleted") or {}
    return not any(modified.get(p) for p in _PLURAL.values()) and not any(
        deleted.get(p) for p in _PLURAL.values()
    )


def records_from_entries(
    entries: Iterable[Mapping[str, Any]],
) -> list[ChangeRecord]:
    """Flatten year-grouped timeline entries into change records.

    Entry shape::

        {"year": 12,
         "changes": {"modified": {"locations": {id: delta}, "regions": {...}},
                     "deleted": {"locations": [id, ...], "regions": [...]}}}

    Entries without ``changes`` (notes-only years) contribute nothing. A
    deletion listed in the same entry as a modification wins, matching the
    order the two blocks are read in.
    """
    records: list[ChangeRecord] = []
    for entry in entries:
        changes = entry.get("changes")
        if not changes:
            continue
        year = int(entry["year"])
        modified = changes.get("modified") or {}
        deleted = changes.get("deleted") or {}
        for element_type, plural in _PLURAL.items():
            for element_id, delta in (modified.get(plural) or {}).items():
                records.append(
                    ChangeRecord(
                        year, element_id, element_type, "updated", dict(delta)
                    )
                )
            for element_id in deleted.get(plural) or []:
                records.append(
                    ChangeRecord(year, element_id, element_type, "deleted")
                )
    return records


def entries_from_records(records: Iterable[ChangeRecord]) -> list[dict]:
    """Group change records back into timeline entries, sorted by year."""
    by_year: dict[int, dict] = {}
    for rec in records:
        changes = by_year.setdefault(
            rec.year,
            {
                "modified": {"locations": {}, "regions": {}},
                "deleted": {"locations": [], "regions": []},
            },
        )
        plural = _PLURAL[rec.element_type]
        if rec.kind == "deleted":
            changes["modified"][plural].pop(rec.element_id, None)
            if rec.element_id not in changes["deleted"][plural]:
                changes["deleted"][plural].append(rec.element_id)
        else:
            if rec.element_id in changes["deleted"][plural]:
                changes["deleted"][plural].remove(rec.element_id)
            changes["modified"][plural][rec.element_id] = dict(rec.delta)
    return [
        {"year": year, "changes": by_year[year]}
        for year in sorted(by_year)
        if not is_empty_changes(by_year[year])
    ]


def future_change_years(
    element_type: str,
    element_id: str,
    current_year: int,
    records: Iterable[ChangeRecord],
) -> list[int]:
    """Years after ``current_year`` that hold a change for the entity."""
    return sorted(
        {
            rec.year
            for rec in records
            if rec.element_type == element_type
            and rec.element_id == element_id
            and rec.year > current_year
        }
    )
