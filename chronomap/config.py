"""Tunable parameters for containment and reconstruction.

Parameters are passed explicitly to the functions that use them; nothing
here is read from globals at call time. Each params class accepts a plain
dict (e.g. a settings row from the store) via ``from_dict``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Literal

DeletionPolicy = Literal["latest_wins", "terminal"]
DELETION_POLICIES: tuple[str, ...] = ("latest_wins", "terminal")

# Region counts as a child of another when at least this % of it is inside.
DEFAULT_HIERARCHY_MIN_PERCENT = 90.0

# Vertex sampling stage of is_percent_contained.
DEFAULT_MAX_SAMPLES = 10
DEFAULT_SAMPLE_REJECT_FACTOR = 0.5

# Guard on the edge slope denominator in ray casting.
SLOPE_EPSILON = sys.float_info.epsilon


@dataclass
class ContainmentParams:
    hierarchy_min_percent: float = DEFAULT_HIERARCHY_MIN_PERCENT
    max_samples: int = DEFAULT_MAX_SAMPLES
    sample_reject_factor: float = DEFAULT_SAMPLE_REJECT_FACTOR

    def __post_init__(self) -> None:
        if not 0.0 <= self.hierarchy_min_percent <= 100.0:
            raise ValueError(
                "hierarchy_min_percent must be within [0, 100], got "
                f"{self.hierarchy_min_percent}"
            )
        if self.max_samples < 1:
            raise ValueError(
                f"max_samples must be positive, got {self.max_samples}"
            )
        if self.sample_reject_factor < 0.0:
            raise ValueError(
                "sample_reject_factor must be non-negative, got "
                f"{self.sample_reject_factor}"
            )

    @staticmethod
    def from_dict(d: dict | None) -> ContainmentParams:
        if not d:
            return ContainmentParams()
        return ContainmentParams(
            hierarchy_min_percent=float(
                d.get("hierarchy_min_percent", DEFAULT_HIERARCHY_MIN_PERCENT)
            ),
            max_samples=int(d.get("max_samples", DEFAULT_MAX_SAMPLES)),
            sample_reject_factor=float(
                d.get("sample_reject_factor", DEFAULT_SAMPLE_REJECT_FACTOR)
            ),
        )


@dataclass
class ReconstructionParams:
    """How replay treats deletion markers.

    ``latest_wins``: the latest record at or before the target year decides.
    A deletion followed by a later update revives the entity, with every
    earlier update still folded in.

    ``terminal``: once a deletion is among the selected records the entity
    is gone, whatever comes after it.
    """

    deletion_policy: DeletionPolicy = "latest_wins"

    def __post_init__(self) -> None:
        if self.deletion_policy not in DELETION_POLICIES:
            raise ValueError(
                f"Unknown deletion policy: {self.deletion_policy!r}"
            )

    @staticmethod
    def from_dict(d: dict | None) -> ReconstructionParams:
        if not d:
            return ReconstructionParams()
        return ReconstructionParams(
            deletion_policy=d.get("deletion_policy", "latest_wins"),
        )
