"""Tests for the field-level diff."""

from __future__ import annotations

import pytest

from chronomap.diffing import diff, values_equal
from chronomap.models import make_location, make_region


class TestValuesEqual:
    @pytest.mark.parametrize(
        "a, b",
        [
            (1, 1),
            (1, 1.0),
            ("a", "a"),
            (None, None),
            ([1, [2, 3]], [1, [2, 3]]),
            ((1, 2), [1, 2]),
            ({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]}),
        ],
    )
    def test_equal(self, a, b):
        assert values_equal(a, b)

    @pytest.mark.parametrize(
        "a, b",
        [
            (1, 2),
            (True, 1),
            (False, 0),
            (None, ""),
            ([1, 2], [2, 1]),
            ([1, 2], [1, 2, 3]),
            ({"a": 1}, {"a": 1, "b": 2}),
            ({"a": 1}, [("a", 1)]),
            ("[1]", [1]),
        ],
    )
    def test_not_equal(self, a, b):
        assert not values_equal(a, b)


class TestDiff:
    def test_identical_is_empty(self):
        loc = make_location(
            "l1", 0, (1, 2), name="Oakford", fields={"k": "v"}, showLabel=True
        )
        assert diff(loc, loc) == {}
        assert diff(loc.snapshot(), loc.snapshot()) == {}

    def test_only_changed_primitives(self):
        old = {"name": "Oakford", "type": "Town", "prominence": 3}
        new = {"name": "Oakford", "type": "City", "prominence": 3}
        assert diff(old, new) == {"type": "City"}

    def test_changed_nested_included_whole(self):
        old = {"fields": {"ruler": "Ysolde", "motto": "Ever"}}
        new = {"fields": {"ruler": "Aldric", "motto": "Ever"}}
        assert diff(old, new) == {
            "fields": {"ruler": "Aldric", "motto": "Ever"}
        }

    def test_structurally_equal_lists_are_unchanged(self):
        old = {"position": [[0, 0], [1, 0], [1, 1]]}
        new = {"position": [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)]}
        assert diff(old, new) == {}

    def test_fields_absent_from_new_not_inspected(self):
        old = {"name": "Oakford", "color": "#fff"}
        assert diff(old, {"name": "Oakford"}) == {}
        assert diff(old, {"name": "Elmford"}) == {"name": "Elmford"}

    def test_new_key(self):
        assert diff({"name": "a"}, {"name": "a", "label": None}) == {
            "label": None
        }

    def test_bool_to_int_is_a_change(self):
        assert diff({"showLabel": True}, {"showLabel": 1}) == {"showLabel": 1}

    def test_no_old_state(self):
        new = {"name": "Oakford"}
        result = diff(None, new)
        assert result == new
        assert result is not new

    def test_entities(self):
        old = make_region("r1", 0, [(0, 0), (4, 0), (4, 4)], name="Vale")
        new = old.with_changes({"position": [[0, 0], [8, 0], [8, 8]]})
        assert diff(old, new) == {
            "position": [[0.0, 0.0], [8.0, 0.0], [8.0, 8.0]]
        }
