"""SQLite access to the corona numbers database.

``DatabaseManager`` exposes the daily, accumulated and incidence series used
by the page generator and owns the one-time migration that adds the
accumulated columns (totalCases, totalDeaths) to the numbers table.
"""

import logging
import sqlite3
from datetime import date
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .config import DatabaseConfig
from .errors import NotConnected, QueryError, StorageWriteError
from .migrations import AddColumn, ComputeTotals, plan_cumulative_migration
from .models import (
    COUNTRY_TABLE,
    EXCLUDED_GROUP,
    INCIDENCE_COLUMN,
    NUMBERS_TABLE,
    DailyNumbers,
    Entity,
    IncidencePoint,
)

ENTITY_COLUMNS = "countryId, name, population, geoId, continent"
COUNTRY_CODE_COLUMN = "countryCode"


def _parse_date(value) -> date:
    # dates are stored as 'YYYY-MM-DD' text, sometimes with a time part
    return date.fromisoformat(str(value)[:10])


class DatabaseManager:
    """Read access plus the cumulative-column migration (SQLite only)."""

    def __init__(self, config: DatabaseConfig, connect: bool = True):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.conn: Optional[sqlite3.Connection] = None
        self._columns: Optional[List[str]] = None
        self._country_columns: Optional[List[str]] = None
        if connect:
            self.connect()

    # --- connection handling --- #
    def connect(self) -> None:
        """Open the database file. It has to exist already."""
        path = Path(self.config.sqlite_path)
        if not self.config.sqlite_path or not path.is_file():
            raise NotConnected(
                f"Database file {self.config.sqlite_path!r} does not exist or is not readable!"
            )
        mode = "ro" if self.config.read_only else "rw"
        try:
            self.conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode={mode}", uri=True)
        except sqlite3.Error as e:
            self.conn = None
            self.logger.warning(f"Connection to database failed: {e}")
            raise NotConnected(f"Connection to database failed: {e}") from e
        self._columns = None
        self._country_columns = None
        self.logger.info(f"Opened SQLite database {path} (mode={mode})")

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    @property
    def is_connected(self) -> bool:
        return self.conn is not None

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise NotConnected()
        return self.conn

    def _query(self, sql: str, params: tuple = ()) -> list:
        conn = self._require_connection()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise QueryError(f"Query failed: {e}", sql) from e

    # --- schema --- #
    def numbers_columns(self) -> List[str]:
        """Column names of the numbers table, cached until the next migration."""
        if self._columns is None:
            rows = self._query(f"PRAGMA table_info({NUMBERS_TABLE});")
            self._columns = [r[1] for r in rows]
        return self._columns

    def country_columns(self) -> List[str]:
        if self._country_columns is None:
            rows = self._query(f"PRAGMA table_info({COUNTRY_TABLE});")
            self._country_columns = [r[1] for r in rows]
        return self._country_columns

    def _country_code(self, prefix: str = "") -> str:
        # older databases have no countryCode column
        if COUNTRY_CODE_COLUMN in self.country_columns():
            return prefix + COUNTRY_CODE_COLUMN
        return f"'' AS {COUNTRY_CODE_COLUMN}"

    def ensure_cumulative_columns(self) -> list:
        """Add and fill totalCases/totalDeaths where they are missing.

        Does nothing when both columns exist, unless the configuration asks
        for a refresh. The whole change is applied in one transaction.

        Returns:
            The list of applied migration actions (empty for a no-op).

        Raises:
            StorageWriteError: if a column cannot be added or the update fails.
        """
        conn = self._require_connection()
        actions = plan_cumulative_migration(self.numbers_columns(), self.config.refresh_totals)
        if not actions:
            self.logger.debug("Accumulated columns present, nothing to do")
            return []

        computes = [a for a in actions if isinstance(a, ComputeTotals)]
        frame = self._raw_counts_frame()
        try:
            conn.execute("BEGIN")
            for action in actions:
                if isinstance(action, AddColumn):
                    self.logger.info(f"Adding column {action.column} to {NUMBERS_TABLE}")
                    conn.execute(f"ALTER TABLE {NUMBERS_TABLE} ADD COLUMN {action.column} INTEGER;")
            for action in computes:
                self.logger.info(
                    f"Calculating accumulated {action.source} for each day and country. "
                    "This may take a while..."
                )
                totals = running_totals(frame, action.source)
                conn.executemany(
                    f"UPDATE {NUMBERS_TABLE} SET {action.column}=? WHERE rowid=?",
                    zip(totals.tolist(), frame["rid"].tolist()),
                )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageWriteError(
                f"Could not calculate accumulated numbers: {e}"
            ) from e
        finally:
            self._columns = None

        self.logger.info("Applied: " + "; ".join(a.describe() for a in actions))
        return actions

    def _raw_counts_frame(self) -> pd.DataFrame:
        conn = self._require_connection()
        sql = f"SELECT rowid AS rid, countryId, date, cases, deaths FROM {NUMBERS_TABLE}"
        try:
            return pd.read_sql_query(sql, conn)
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            raise QueryError(f"Could not read raw numbers: {e}", sql) from e

    # --- entities --- #
    def _entities(self, rows) -> List[Entity]:
        return [
            Entity(
                id=int(r[0]),
                name=r[1] or "",
                population=int(r[2] or 0),
                short_code=r[3] or "",
                group_tag=r[4] or "",
                country_code=r[5] or "",
            )
            for r in rows
        ]

    def list_entities(self) -> List[Entity]:
        """All countries with a geoId and a real continent, ordered by name."""
        rows = self._query(
            f"SELECT {ENTITY_COLUMNS}, {self._country_code()} FROM {COUNTRY_TABLE}"
            " WHERE geoId <> '' AND continent <> '' AND continent <> ?"
            " ORDER BY name ASC;",
            (EXCLUDED_GROUP,),
        )
        return self._entities(rows)

    def list_groups(self) -> List[str]:
        """Names of all continents, ordered alphabetically."""
        rows = self._query(
            f"SELECT DISTINCT continent FROM {COUNTRY_TABLE}"
            " WHERE continent <> '' AND continent <> ?"
            " ORDER BY continent ASC;",
            (EXCLUDED_GROUP,),
        )
        return [r[0] for r in rows]

    def entities_in_group(self, group_tag: str) -> List[Entity]:
        rows = self._query(
            f"SELECT {ENTITY_COLUMNS}, {self._country_code()} FROM {COUNTRY_TABLE}"
            " WHERE geoId <> '' AND continent = ?"
            " ORDER BY name ASC;",
            (group_tag,),
        )
        return self._entities(rows)

    # --- numbers --- #
    @staticmethod
    def _numbers(rows) -> List[DailyNumbers]:
        return [DailyNumbers(_parse_date(r[0]), int(r[1] or 0), int(r[2] or 0)) for r in rows]

    def daily_series(self, entity_id: int) -> List[DailyNumbers]:
        rows = self._query(
            f"SELECT date, cases, deaths FROM {NUMBERS_TABLE}"
            " WHERE countryId = ? ORDER BY date ASC;",
            (entity_id,),
        )
        return self._numbers(rows)

    def cumulative_series(self, entity_id: int) -> List[DailyNumbers]:
        rows = self._query(
            f"SELECT date, totalCases, totalDeaths FROM {NUMBERS_TABLE}"
            " WHERE countryId = ? ORDER BY date ASC;",
            (entity_id,),
        )
        return self._numbers(rows)

    def world_daily_series(self) -> List[DailyNumbers]:
        rows = self._query(
            f"SELECT date, SUM(cases), SUM(deaths) FROM {NUMBERS_TABLE}"
            " GROUP BY date ORDER BY date ASC;"
        )
        return self._numbers(rows)

    def world_cumulative_series(self) -> List[DailyNumbers]:
        rows = self._query(
            f"SELECT date, SUM(totalCases), SUM(totalDeaths) FROM {NUMBERS_TABLE}"
            " GROUP BY date ORDER BY date ASC;"
        )
        return self._numbers(rows)

    def derived_incidence_series(self, entity_id: int) -> List[IncidencePoint]:
        """14-day incidence values of one country.

        Returns an empty list when no incidence is known, including databases
        without an incidence14 column.
        """
        if INCIDENCE_COLUMN not in self.numbers_columns():
            return []
        rows = self._query(
            f"SELECT date, round({INCIDENCE_COLUMN}, 2) FROM {NUMBERS_TABLE}"
            f" WHERE countryId = ? AND IFNULL({INCIDENCE_COLUMN}, -1.0) >= 0.0"
            " ORDER BY date ASC;",
            (entity_id,),
        )
        return [IncidencePoint(_parse_date(r[0]), float(r[1])) for r in rows]

    def records_frame(self) -> pd.DataFrame:
        """All raw records joined with their country, ordered by country and date."""
        conn = self._require_connection()
        incidence = (
            f"n.{INCIDENCE_COLUMN}"
            if INCIDENCE_COLUMN in self.numbers_columns()
            else f"NULL AS {INCIDENCE_COLUMN}"
        )
        sql = (
            f"SELECT n.date, n.cases, n.deaths, c.name, c.geoId, {self._country_code('c.')},"
            f" c.population, c.continent, {incidence}"
            f" FROM {NUMBERS_TABLE} n JOIN {COUNTRY_TABLE} c ON n.countryId = c.countryId"
            " WHERE c.geoId <> '' AND c.continent <> '' AND c.continent <> ?"
            " ORDER BY c.name ASC, n.date ASC"
        )
        try:
            return pd.read_sql_query(sql, conn, params=(EXCLUDED_GROUP,))
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            raise QueryError(f"Could not read records: {e}", sql) from e


def running_totals(frame: pd.DataFrame, source: str) -> pd.Series:
    """Running sum of ``source`` per country over dates, aligned to ``frame``.

    Every row gets the sum of the raw values of its country on all dates up
    to and including its own date. Missing raw values count as zero.
    """
    if frame.empty:
        return pd.Series([], index=frame.index, dtype="int64")
    ordered = frame.sort_values(["countryId", "date"], kind="stable")
    cumulative = ordered[source].fillna(0).astype("int64").groupby(ordered["countryId"]).cumsum()
    # rows sharing a date must all see the sum including each other
    cumulative = cumulative.groupby([ordered["countryId"], ordered["date"]]).transform("last")
    return cumulative.reindex(frame.index).astype("int64")
