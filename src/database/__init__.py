"""Storage layer: SQLite access, cumulative-column migration, CSV import and export."""

from .config import DatabaseConfig
from .errors import CsvFormatError, NotConnected, QueryError, StorageError, StorageWriteError
from .manager import DatabaseManager
from .models import DailyNumbers, Entity, IncidencePoint, TimeSeriesRecord

__all__ = [
    "DatabaseManager",
    "DatabaseConfig",
    "DailyNumbers",
    "Entity",
    "IncidencePoint",
    "TimeSeriesRecord",
    "StorageError",
    "NotConnected",
    "QueryError",
    "StorageWriteError",
    "CsvFormatError",
]
