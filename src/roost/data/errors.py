"""Data layer error hierarchy."""

from roost.errors import RoostError


class DataError(RoostError):
    """Base for all roost.data errors."""


class QueryError(DataError):
    """Raised when a SQL statement fails."""
