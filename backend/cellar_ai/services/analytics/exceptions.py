"""Errors raised by the natural-language analytics pipeline."""

from typing import Optional


class AnalyticsError(Exception):
    """Base exception for analytics pipeline failures."""

    pass


class QueryError(AnalyticsError):
    """The store rejected the query text (syntax, unknown identifier, type mismatch).

    Only this kind of failure is eligible for the repair loop.
    """

    def __init__(self, message: str, query_text: Optional[str] = None):
        super().__init__(message)
        self.query_text = query_text


class StoreUnavailableError(AnalyticsError):
    """The relational store could not be reached or timed out."""

    pass


class TerminalError(AnalyticsError):
    """The repair loop used every attempt without a successful query."""

    def __init__(self, last_error: str, attempts: int):
        super().__init__(f"Query failed after {attempts} attempt(s): {last_error}")
        self.last_error = last_error
        self.attempts = attempts


class ShapingError(AnalyticsError):
    """A chart field is missing from every result row."""

    def __init__(self, field_name: str):
        super().__init__(f"Field '{field_name}' is absent from all result rows")
        self.field_name = field_name
