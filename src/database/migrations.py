"""Planning of the cumulative-column migration.

The plan is a pure function of the current column set of the numbers table,
so it can be inspected and tested without touching a database. Applying the
plan is the job of ``DatabaseManager.ensure_cumulative_columns``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .models import TOTAL_CASES_COLUMN, TOTAL_DEATHS_COLUMN

# derived column -> raw column it accumulates
CUMULATIVE_COLUMNS = {
    TOTAL_CASES_COLUMN: "cases",
    TOTAL_DEATHS_COLUMN: "deaths",
}


@dataclass(frozen=True)
class AddColumn:
    column: str

    def describe(self) -> str:
        return f"add column {self.column}"


@dataclass(frozen=True)
class ComputeTotals:
    column: str
    source: str

    def describe(self) -> str:
        return f"compute {self.column} as running sum of {self.source}"


def plan_cumulative_migration(existing_columns: Iterable[str], refresh: bool = False) -> List:
    """Return the actions needed to bring the cumulative columns up to date.

    Missing columns are added and filled. Present columns are left alone
    unless ``refresh`` is set, in which case they are recomputed in place.
    All ``AddColumn`` actions come before any ``ComputeTotals`` action.
    """
    existing = set(existing_columns)
    adds: List[AddColumn] = []
    computes: List[ComputeTotals] = []
    for column, source in CUMULATIVE_COLUMNS.items():
        if column not in existing:
            adds.append(AddColumn(column))
            computes.append(ComputeTotals(column, source))
        elif refresh:
            computes.append(ComputeTotals(column, source))
    return [*adds, *computes]


__all__ = ["AddColumn", "ComputeTotals", "CUMULATIVE_COLUMNS", "plan_cumulative_migration"]
