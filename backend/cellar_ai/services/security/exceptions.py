"""Security-related exceptions for generated query handling."""


class SecurityError(Exception):
    """Base exception for security violations."""

    pass


class QueryValidationError(SecurityError):
    """Exception raised when a generated query fails read-only validation."""

    def __init__(self, message: str, violation_type: str = None, details: dict = None):
        super().__init__(message)
        self.violation_type = violation_type
        self.details = details or {}
