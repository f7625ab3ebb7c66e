"""Tests for epoch-relative year display."""

from __future__ import annotations

import pytest

from chronomap.epochs import (
    Epoch,
    display_year,
    find_epoch,
    format_change_years,
    format_epoch_range,
    format_year,
)

BEFORE = Epoch(
    id="e0",
    name="Before the Crowning",
    start_year=-500,
    end_year=-1,
    year_suffix="BC",
    reverse_years=True,
)
CROWNED = Epoch(
    id="e1",
    name="Age of Crowns",
    start_year=0,
    end_year=999,
    year_prefix="AC",
    restart_at_zero=True,
)
PLAIN = Epoch(id="e2", name="Modern", start_year=1000, end_year=2000)


class TestDisplayYear:
    def test_reverse(self):
        assert display_year(-1, BEFORE) == 1
        assert display_year(-10, BEFORE) == 10

    def test_restart(self):
        assert display_year(0, CROWNED) == 1
        assert display_year(41, CROWNED) == 42

    def test_plain(self):
        assert display_year(1500, PLAIN) == 1500


class TestFormatting:
    def test_format_year(self):
        epochs = [BEFORE, CROWNED, PLAIN]
        assert format_year(-10, epochs) == "10 BC"
        assert format_year(41, epochs) == "AC 42"
        assert format_year(1500, epochs) == "1500"
        assert format_year(5000, epochs) == "5000"

    def test_find_epoch(self):
        assert find_epoch(0, [BEFORE, CROWNED]) is CROWNED
        assert find_epoch(-501, [BEFORE, CROWNED]) is None

    def test_epoch_range(self):
        assert format_epoch_range(CROWNED) == "AC 1 - 1000"
        assert format_epoch_range(BEFORE) == "500 - 1 BC"

    def test_epoch_range_hidden_end(self):
        hidden_rev = Epoch(
            id="h",
            name="h",
            start_year=-50,
            end_year=-1,
            year_suffix="BC",
            reverse_years=True,
            show_end_date=False,
        )
        hidden = Epoch(
            id="h2", name="h2", start_year=10, end_year=20, show_end_date=False
        )
        assert format_epoch_range(hidden_rev) == "1 BC"
        assert format_epoch_range(hidden) == "10"

    def test_format_change_years(self):
        assert format_change_years([-3, 5], [BEFORE, CROWNED]) == [
            "3 BC",
            "AC 6",
        ]


def test_from_dict():
    epoch = Epoch.from_dict(
        {
            "id": "e1",
            "name": "Age of Crowns",
            "startYear": 0,
            "endYear": 999,
            "yearPrefix": "AC",
            "restartAtZero": True,
        }
    )
    assert epoch == CROWNED


def test_inverted_range_rejected():
    with pytest.raises(ValueError):
        Epoch(id="bad", name="bad", start_year=10, end_year=5)
