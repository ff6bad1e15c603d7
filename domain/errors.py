from typing import Iterable, Optional, Tuple


class QueryError(Exception):
    """Base class for every error raised by the query engine before storage is touched."""


class InvalidCriteriaError(QueryError):
    """A search criteria field is unrecognized or carries a value of the wrong type."""

    def __init__(self, message: str, fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.fields: Tuple[str, ...] = tuple(fields or ())


class IllegalFetchCombinationError(QueryError):
    """The fetch plan cannot be honored without duplicating or mis-paginating rows."""


class InvalidPageError(QueryError):
    """Offset or limit outside the accepted range."""


class ProjectionShapeError(QueryError):
    """A projection references a column path the engine cannot flatten."""
