"""Errors raised by the storage layer."""

from __future__ import annotations


class StorageError(Exception):
    """Base class for all storage failures."""


class NotConnected(StorageError):
    def __init__(self, message: str = "There is no database connection!"):
        super().__init__(message)


class QueryError(StorageError):
    """A read query was malformed or failed to execute."""

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(message)
        self.sql = sql


class StorageWriteError(StorageError):
    """A schema change or bulk update could not be applied."""


class CsvFormatError(StorageError):
    """An input CSV file does not have the expected layout or values."""


__all__ = ["StorageError", "NotConnected", "QueryError", "StorageWriteError", "CsvFormatError"]
