"""Epochs: named year ranges that control how years are displayed.

Internally every year is a plain integer on one continuous axis. An epoch
can relabel the years inside it: count from 1 at its start
(``restart_at_zero``), count backwards to 1 at its end (``reverse_years``,
for "before the reckoning" eras), and wrap the number in a prefix and/or
suffix.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Epoch:
    id: str
    name: str
    start_year: int
    end_year: int
    description: str = ""
    color: str | None = None
    year_prefix: str | None = None
    year_suffix: str | None = None
    restart_at_zero: bool = False
    reverse_years: bool = False
    show_end_date: bool = True

    def __post_init__(self) -> None:
        if self.end_year < self.start_year:
            raise ValueError(
                f"Epoch {self.id} ends ({self.end_year}) before it starts "
                f"({self.start_year})"
            )

    def contains(self, year: int) -> bool:
        return self.start_year <= year <= self.end_year

    @staticmethod
    def from_dict(d: dict) -> Epoch:
        return Epoch(
            id=d["id"],
            name=d["name"],
            start_year=int(d["startYear"]),
            end_year=int(d["endYear"]),
            description=d.get("description", ""),
            color=d.get("color"),
            year_prefix=d.get("yearPrefix"),
            year_suffix=d.get("yearSuffix"),
            restart_at_zero=d.get("restartAtZero", False),
            reverse_years=d.get("reverseYears", False),
            show_end_date=d.get("showEndDate", True),
        )


def display_year(year: int, epoch: Epoch) -> int:
    """The number shown for ``year`` inside ``epoch``."""
    if epoch.reverse_years:
        return epoch.end_year - year + 1
    if epoch.restart_at_zero:
        return year - epoch.start_year + 1
    return year


def _wrap(text: str, epoch: Epoch) -> str:
    prefix = f"{epoch.year_prefix} " if epoch.year_prefix else ""
    suffix = f" {epoch.year_suffix}" if epoch.year_suffix else ""
    return f"{prefix}{text}{suffix}"


def find_epoch(year: int, epochs: list[Epoch]) -> Epoch | None:
    """First epoch (in list order) covering ``year``."""
    for epoch in epochs:
        if epoch.contains(year):
            return epoch
    return None


def format_year(year: int, epochs: list[Epoch]) -> str:
    """``year`` as shown to the user, e.g. ``"Age 12 AR"``."""
    epoch = find_epoch(year, epochs)
    if epoch is None:
        return str(year)
    return _wrap(str(display_year(year, epoch)), epoch)


def format_epoch_range(epoch: Epoch) -> str:
    """Header text for an epoch: its range, or one year if the end is hidden.

    With the end hidden, reverse epochs show their end year (the one that
    reads as 1) and others their start year.
    """
    if not epoch.show_end_date:
        year = epoch.end_year if epoch.reverse_years else epoch.start_year
        return _wrap(str(display_year(year, epoch)), epoch)
    start = display_year(epoch.start_year, epoch)
    end = display_year(epoch.end_year, epoch)
    return _wrap(f"{start} - {end}", epoch)


def format_change_years(years: list[int], epochs: list[Epoch]) -> list[str]:
    """Display strings for a list of years, e.g. from future_change_years."""
    return [format_year(year, epochs) for year in years]
