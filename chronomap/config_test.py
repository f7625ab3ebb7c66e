"""Tests for parameter dataclasses."""

from __future__ import annotations

import pytest

from chronomap.config import (
    DEFAULT_HIERARCHY_MIN_PERCENT,
    ContainmentParams,
    ReconstructionParams,
)


def test_containment_defaults():
    p = ContainmentParams.from_dict(None)
    assert p.hierarchy_min_percent == DEFAULT_HIERARCHY_MIN_PERCENT == 90.0
    assert p.max_samples == 10
    assert p.sample_reject_factor == 0.5


def test_containment_from_dict():
    p = ContainmentParams.from_dict(
        {"hierarchy_min_percent": 80, "max_samples": 4}
    )
    assert p.hierarchy_min_percent == 80.0
    assert p.max_samples == 4
    assert p.sample_reject_factor == 0.5


@pytest.mark.parametrize(
    "d",
    [
        {"hierarchy_min_percent": 101},
        {"hierarchy_min_percent": -1},
        {"max_samples": 0},
        {"sample_reject_factor": -0.1},
    ],
)
def test_containment_rejects_bad_values(d):
    with pytest.raises(ValueError):
        ContainmentParams.from_dict(d)


def test_reconstruction_params():
    assert ReconstructionParams.from_dict({}).deletion_policy == "latest_wins"
    p = ReconstructionParams.from_dict({"deletion_policy": "terminal"})
    assert p.deletion_policy == "terminal"
    with pytest.raises(ValueError):
        ReconstructionParams(deletion_policy="sometimes")
