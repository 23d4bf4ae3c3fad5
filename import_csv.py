#!/usr/bin/env python3
"""
Create a corona database from a CSV file in the ECDC layout.

usage: python import_csv.py /path/to/input.csv /path/to/corona.db
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from utils import setup_logging  # noqa: E402
from database import StorageError  # noqa: E402
from database.importer import import_csv  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import ECDC corona numbers into a new SQLite database")
    parser.add_argument("csv_path", help="CSV file with ECDC headers")
    parser.add_argument("db_path", help="SQLite database to create, must not exist yet")
    args = parser.parse_args(argv)
    setup_logging()

    try:
        rows = import_csv(args.csv_path, args.db_path)
    except (StorageError, OSError) as e:
        logging.error(f"CSV import failed: {e}")
        print("Creation of SQLite database failed!")
        return 1

    print(f"Creation of SQLite database was successful ({rows} records).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
