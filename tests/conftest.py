import sys, pathlib
import sqlite3

import pytest

# Ensure project src directory is on path for tests
PROJECT_ROOT = pathlib.Path(__file__).parent.parent
SRC = PROJECT_ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from database.models import CREATE_TABLES_SQL  # noqa: E402

# countryId, name, population, geoId, countryCode, continent
COUNTRIES = [
    (1, "Germany", 83019213, "DE", "DEU", "Europe"),
    (2, "France", 67012883, "FR", "FRA", "Europe"),
    (3, "Kenya", 52573967, "KE", "KEN", "Africa"),
    (4, "Xanadu", 1000, "XX", "", "Asia"),
    (5, "Cases on an international conveyance Japan", 3000, "JPG11668", "", "Other"),
    (6, "Nowhere", 10, "", "", "Europe"),
]

# countryId, date, cases, deaths, incidence14
NUMBERS = [
    (1, "2020-01-01", 5, 0, 1.234),
    (1, "2020-01-02", 3, 1, 2.0),
    (1, "2020-01-03", 4, 0, None),
    (2, "2020-01-01", 2, 0, None),
    (2, "2020-01-03", 7, 2, None),
    (3, "2020-01-02", 1, 0, -1.0),
    (4, "2020-01-01", 5, 0, None),
    (4, "2020-01-02", 3, 0, None),
    (5, "2020-01-02", 10, 1, None),
]


def make_db(
    path: pathlib.Path,
    countries=COUNTRIES,
    numbers=NUMBERS,
    with_incidence=True,
    with_country_code=True,
) -> pathlib.Path:
    conn = sqlite3.connect(path)
    try:
        conn.executescript(CREATE_TABLES_SQL)
        if not with_incidence:
            conn.executescript(
                "CREATE TABLE covid19_new (countryId INTEGER, date TEXT, cases INTEGER, deaths INTEGER);"
                "DROP TABLE covid19; ALTER TABLE covid19_new RENAME TO covid19;"
            )
            numbers = [n[:4] for n in numbers]
        if with_country_code:
            conn.executemany("INSERT INTO country VALUES (?,?,?,?,?,?)", countries)
        else:
            conn.executescript(
                "DROP TABLE country;"
                "CREATE TABLE country (countryId INTEGER PRIMARY KEY, name TEXT,"
                " population INTEGER, geoId TEXT, continent TEXT);"
            )
            conn.executemany(
                "INSERT INTO country VALUES (?,?,?,?,?)",
                [(c[0], c[1], c[2], c[3], c[5]) for c in countries],
            )
        placeholders = ",".join("?" * len(numbers[0])) if numbers else ""
        if numbers:
            conn.executemany(f"INSERT INTO covid19 VALUES ({placeholders})", numbers)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def corona_db(tmp_path) -> pathlib.Path:
    return make_db(tmp_path / "corona.db")


@pytest.fixture
def no_country_code_db(tmp_path) -> pathlib.Path:
    """Database whose country table has no countryCode column."""
    return make_db(tmp_path / "corona-plain.db", with_country_code=False)


@pytest.fixture
def db_manager(corona_db):
    from database import DatabaseConfig, DatabaseManager

    db = DatabaseManager(DatabaseConfig(sqlite_path=str(corona_db)))
    yield db
    db.close()
