"""
Database models for the corona numbers site generator.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional


@dataclass
class Entity:
    """A country (or territory) for which numbers are reported."""

    id: int
    name: str = ""
    population: int = 0
    short_code: str = ""  # geoId, e.g. "DE"
    group_tag: str = ""  # continent, e.g. "Europe"
    country_code: str = ""  # ISO 3166-1 alpha-3, may be empty

    @property
    def slug(self) -> str:
        """Lower-cased short code as used in file names and plot ids."""
        return self.short_code.lower()

    @property
    def label(self) -> str:
        return f"{self.name} ({self.short_code})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "population": self.population,
            "short_code": self.short_code,
            "group_tag": self.group_tag,
            "country_code": self.country_code,
        }


@dataclass
class TimeSeriesRecord:
    """One row of the covid19 table."""

    entity_id: int
    date: date
    cases: int = 0
    deaths: int = 0
    total_cases: Optional[int] = None
    total_deaths: Optional[int] = None
    incidence14: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "date": self.date.isoformat(),
            "cases": self.cases,
            "deaths": self.deaths,
            "total_cases": self.total_cases,
            "total_deaths": self.total_deaths,
            "incidence14": self.incidence14,
        }


@dataclass(frozen=True)
class DailyNumbers:
    """Infections and deaths on one day (raw or accumulated)."""

    date: date
    cases: int
    deaths: int


@dataclass(frozen=True)
class IncidencePoint:
    """14-day incidence per 100000 inhabitants on one day."""

    date: date
    incidence: float


# Table and column names of the external database.
COUNTRY_TABLE = "country"
NUMBERS_TABLE = "covid19"
TOTAL_CASES_COLUMN = "totalCases"
TOTAL_DEATHS_COLUMN = "totalDeaths"
INCIDENCE_COLUMN = "incidence14"

# Continent value of entries that are not real countries.
EXCLUDED_GROUP = "Other"

# Schema of the input database. Used to create fixture databases, the
# generator itself never creates these tables.
CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS country (
    countryId INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    population INTEGER NOT NULL DEFAULT 0,
    geoId TEXT NOT NULL DEFAULT '',
    countryCode TEXT NOT NULL DEFAULT '',
    continent TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS covid19 (
    countryId INTEGER NOT NULL,
    date TEXT NOT NULL,
    cases INTEGER NOT NULL DEFAULT 0,
    deaths INTEGER NOT NULL DEFAULT 0,
    incidence14 REAL NULL,
    FOREIGN KEY (countryId) REFERENCES country (countryId),
    UNIQUE (countryId, date)
);

CREATE INDEX IF NOT EXISTS idx_covid19_country_date ON covid19(countryId, date);
CREATE INDEX IF NOT EXISTS idx_covid19_date ON covid19(date);
"""
