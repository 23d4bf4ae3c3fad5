"""Import of a CSV file in the ECDC layout into a new corona database.

This is the counterpart of ``database.export``: a file written by
``export_csv`` can be imported again. Files straight from the ECDC may carry
a thirteenth column with the 7-day incidence, which is ignored.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import List, Tuple

import pandas as pd

from .config import DatabaseConfig
from .errors import CsvFormatError, StorageError, StorageWriteError
from .export import CSV_HEADER
from .manager import DatabaseManager
from .models import CREATE_TABLES_SQL, Entity, TimeSeriesRecord

LOGGER = logging.getLogger(__name__)

INCIDENCE7_HEADER = "Cumulative_number_for_7_days_of_COVID-19_cases_per_100000"
ACCEPTED_HEADERS = (CSV_HEADER, CSV_HEADER + [INCIDENCE7_HEADER])

INSERT_COUNTRY_SQL = (
    "INSERT INTO country (countryId, name, population, geoId, countryCode, continent)"
    " VALUES (:id, :name, :population, :short_code, :country_code, :group_tag)"
)
INSERT_NUMBERS_SQL = (
    "INSERT INTO covid19 (countryId, date, cases, deaths, incidence14)"
    " VALUES (:entity_id, :date, :cases, :deaths, :incidence14)"
)


def read_ecdc_csv(csv_path: str | Path) -> pd.DataFrame:
    """Read the CSV file as text columns and check its header."""
    try:
        frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False, encoding="utf-8")
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CsvFormatError(f"Could not read CSV file {csv_path}: {e}") from e
    if list(frame.columns) not in ACCEPTED_HEADERS:
        raise CsvFormatError(
            "CSV headers do not match the expected headers. "
            f"Found the following headers: {list(frame.columns)}"
        )
    if frame.empty:
        raise CsvFormatError(f"CSV file {csv_path} does not contain any records!")
    incomplete = frame[CSV_HEADER].isna().any(axis=1)
    if incomplete.any():
        raise CsvFormatError(f"Line {_line(incomplete)} of {csv_path} has too few data elements!")
    return frame


def _line(mask: pd.Series) -> int:
    # first flagged row; +2 for the header line and 1-based counting
    return int(mask.to_numpy().argmax()) + 2


def _counts(column: pd.Series, what: str) -> pd.Series:
    # empty fields count as zero
    parsed = pd.to_numeric(column.str.strip().replace("", "0"), errors="coerce")
    invalid = parsed.isna() | (parsed != parsed.round())
    if invalid.any():
        raise CsvFormatError(f"Got invalid {what} numbers on line {_line(invalid)}.")
    return parsed.astype("int64")


def _dates(frame: pd.DataFrame) -> pd.Series:
    dates = (
        frame["year"].str.strip()
        + "-"
        + frame["month"].str.strip().str.zfill(2)
        + "-"
        + frame["day"].str.strip().str.zfill(2)
    )
    invalid = pd.to_datetime(dates, format="%Y-%m-%d", errors="coerce").isna()
    if invalid.any():
        raise CsvFormatError(f"Got invalid date on line {_line(invalid)}.")
    return dates


def parse_ecdc_frame(frame: pd.DataFrame) -> Tuple[List[Entity], List[TimeSeriesRecord]]:
    """Countries and daily records of an ECDC frame.

    Countries get ids in order of their first appearance. Unknown population
    values become -1, unknown incidence values None.
    """
    parsed = pd.DataFrame(
        {
            "geo_id": frame["geoId"].str.strip(),
            "date": _dates(frame),
            "cases": _counts(frame["cases"], "case"),
            "deaths": _counts(frame["deaths"], "death"),
            "incidence": pd.to_numeric(frame[CSV_HEADER[-1]], errors="coerce"),
        }
    )
    population = pd.to_numeric(frame["popData2019"], errors="coerce").fillna(-1).astype("int64")

    entities: List[Entity] = []
    ids = {}
    for pos in parsed.drop_duplicates("geo_id").index:
        geo_id = parsed.at[pos, "geo_id"]
        ids[geo_id] = len(entities) + 1
        entities.append(
            Entity(
                id=ids[geo_id],
                name=frame.at[pos, "countriesAndTerritories"].replace("_", " "),
                population=int(population.at[pos]),
                short_code=geo_id,
                group_tag=frame.at[pos, "continentExp"],
                country_code=frame.at[pos, "countryterritoryCode"],
            )
        )

    records = [
        TimeSeriesRecord(
            entity_id=ids[row.geo_id],
            date=date.fromisoformat(row.date),
            cases=int(row.cases),
            deaths=int(row.deaths),
            incidence14=None if pd.isna(row.incidence) else float(row.incidence),
        )
        for row in parsed.itertuples(index=False)
    ]
    return entities, records


def import_csv(csv_path: str | Path, db_path: str | Path) -> int:
    """Create the database ``db_path`` from an ECDC CSV file.

    The accumulated columns are filled right away. The database file must not
    exist yet; it is removed again if the import fails.

    Returns:
        Number of imported records.
    """
    db_file = Path(db_path)
    if db_file.exists():
        raise FileExistsError(f"A file or directory named {db_file} already exists!")
    entities, records = parse_ecdc_frame(read_ecdc_csv(csv_path))

    try:
        conn = sqlite3.connect(db_file)
        try:
            conn.executescript(CREATE_TABLES_SQL)
            with conn:
                conn.executemany(INSERT_COUNTRY_SQL, [e.to_dict() for e in entities])
                conn.executemany(INSERT_NUMBERS_SQL, [r.to_dict() for r in records])
        finally:
            conn.close()
        with DatabaseManager(DatabaseConfig(sqlite_path=str(db_file))) as db:
            db.ensure_cumulative_columns()
    except sqlite3.Error as e:
        db_file.unlink(missing_ok=True)
        raise StorageWriteError(f"Could not write numbers into {db_file}: {e}") from e
    except StorageError:
        db_file.unlink(missing_ok=True)
        raise

    LOGGER.info(f"Imported {len(records)} records of {len(entities)} countries into {db_file}")
    return len(records)


__all__ = ["ACCEPTED_HEADERS", "read_ecdc_csv", "parse_ecdc_frame", "import_csv"]
