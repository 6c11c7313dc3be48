"""Security module for validating and auditing generated queries."""

from .audit_logger import QueryAuditLogger
from .exceptions import QueryValidationError, SecurityError
from .query_guard import (
    OWNER_PARAM,
    OWNER_SCOPED_WINE,
    ReadOnlyQuery,
    ReadOnlyQueryValidator,
    ValidationResult,
    strip_code_fences,
)

__all__ = [
    "SecurityError",
    "QueryValidationError",
    "ReadOnlyQuery",
    "ReadOnlyQueryValidator",
    "ValidationResult",
    "OWNER_PARAM",
    "OWNER_SCOPED_WINE",
    "strip_code_fences",
    "QueryAuditLogger",
]
