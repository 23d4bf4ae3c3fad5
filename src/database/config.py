"""
Database configuration and settings.
"""

import os
from typing import Optional

from utils import as_bool, read_config_file


class DatabaseConfig:
    """Configuration for access to the corona SQLite database."""

    def __init__(
        self,
        sqlite_path: str = "",
        read_only: bool = False,
        refresh_totals: bool = False,
    ):
        self.sqlite_path = sqlite_path
        # A read-only handle cannot add the cumulative columns.
        self.read_only = read_only
        # Recompute totalCases/totalDeaths even when the columns already exist.
        self.refresh_totals = refresh_totals

    @classmethod
    def from_env(cls, sqlite_path: Optional[str] = None) -> "DatabaseConfig":
        """Create config from environment variables."""
        return cls(
            sqlite_path=sqlite_path or os.getenv("CORONA_DB_PATH", ""),
            read_only=as_bool(os.getenv("CORONA_DB_READ_ONLY")),
            refresh_totals=as_bool(os.getenv("CORONA_REFRESH_TOTALS")),
        )

    @classmethod
    def from_config_file(
        cls, config_path: str = "generator.conf", sqlite_path: Optional[str] = None
    ) -> "DatabaseConfig":
        """Create config from configuration file."""
        config = read_config_file(config_path)
        return cls(
            sqlite_path=sqlite_path or config.get("sqlite_path", ""),
            read_only=as_bool(config.get("read_only")),
            refresh_totals=as_bool(config.get("refresh_totals")),
        )

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(sqlite_path={self.sqlite_path!r}, read_only={self.read_only}, "
            f"refresh_totals={self.refresh_totals})"
        )
