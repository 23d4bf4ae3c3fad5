#!/usr/bin/env python3
"""
Export the numbers of the corona database into a CSV file (ECDC layout).

usage: python export_csv.py /path/to/corona.db /path/to/output.csv
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from utils import setup_logging  # noqa: E402
from database import DatabaseConfig, DatabaseManager, StorageError  # noqa: E402
from database.export import export_csv  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Export corona numbers to CSV")
    parser.add_argument("db_path", help="path to the SQLite database (corona.db)")
    parser.add_argument("csv_path", help="CSV file to create, must not exist yet")
    args = parser.parse_args(argv)
    setup_logging()

    config = DatabaseConfig.from_env(sqlite_path=args.db_path)
    config.read_only = True
    try:
        with DatabaseManager(config) as db:
            rows = export_csv(db, args.csv_path)
    except (StorageError, OSError) as e:
        logging.error(f"CSV export failed: {e}")
        print("Creation of CSV file failed!")
        return 1

    print(f"Creation of CSV file was successful ({rows} records).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
