"""Export of the raw numbers to a CSV file in the ECDC layout."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from .errors import QueryError
from .manager import DatabaseManager

LOGGER = logging.getLogger(__name__)

CSV_HEADER = [
    "dateRep",
    "day",
    "month",
    "year",
    "cases",
    "deaths",
    "countriesAndTerritories",
    "geoId",
    "countryterritoryCode",
    "popData2019",
    "continentExp",
    "Cumulative_number_for_14_days_of_COVID-19_cases_per_100000",
]


def ecdc_frame(records: pd.DataFrame) -> pd.DataFrame:
    """Reshape ``DatabaseManager.records_frame()`` output to the ECDC columns."""
    dates = records["date"].astype(str).str.slice(0, 10)
    out = pd.DataFrame(
        {
            "dateRep": dates,
            "day": dates.str.slice(8, 10),
            "month": dates.str.slice(5, 7),
            "year": dates.str.slice(0, 4),
            "cases": records["cases"].fillna(0).astype("int64"),
            "deaths": records["deaths"].fillna(0).astype("int64"),
            "countriesAndTerritories": records["name"],
            "geoId": records["geoId"],
            "countryterritoryCode": records["countryCode"].fillna(""),
            "popData2019": records["population"].fillna(0).astype("int64"),
            "continentExp": records["continent"],
            CSV_HEADER[-1]: records["incidence14"],
        }
    )
    return out[CSV_HEADER]


def export_csv(db: DatabaseManager, csv_path: str | Path) -> int:
    """Write all records of ``db`` to ``csv_path``.

    Refuses to overwrite an existing file.

    Returns:
        Number of data rows written.
    """
    path = Path(csv_path)
    if path.exists():
        raise FileExistsError(f"A file or directory named {path} already exists!")
    records = db.records_frame()
    if records.empty:
        raise QueryError(f"Could not find any numbers in the database {db.config.sqlite_path}!")
    frame = ecdc_frame(records)
    frame.to_csv(path, index=False, encoding="utf-8")
    LOGGER.info(f"Wrote {len(frame)} records to {path}")
    return len(frame)


__all__ = ["CSV_HEADER", "ecdc_frame", "export_csv"]
