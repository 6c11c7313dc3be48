"""
Custom exception classes for LLM service error handling.

Every failure of the hosted completion service is converted into one of these so
callers can tell "the model is unavailable" apart from their own errors:

- LLMUnavailableError: Base for any failure to obtain a usable completion
- TransientLLMError: Temporary errors (rate limits, timeouts, connection drops)
- PermanentLLMError: Errors that will not resolve on their own (auth, bad request)
- TokenLimitError: Context length exceeded
- MalformedResponseError: Structured output could not be parsed into the schema
"""

from typing import Optional


class LLMError(Exception):
    """
    Base exception for all LLM-related errors.

    This is the parent class for all custom LLM exceptions, allowing
    catch-all error handling when needed.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize LLM error.

        Args:
            message: Human-readable error message
            provider: LLM provider name (openai, anthropic, google)
            model: Model name that failed
            original_error: Original exception that was wrapped
        """
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.original_error = original_error

    def __str__(self) -> str:
        """Return formatted error message with context."""
        parts = [super().__str__()]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.model:
            parts.append(f"model={self.model}")
        return " | ".join(parts)


class LLMUnavailableError(LLMError):
    """
    The completion service could not produce a usable answer.

    Raised directly for failures that fit none of the subclasses below.
    """

    pass


class TransientLLMError(LLMUnavailableError):
    """
    Temporary errors that may succeed on a later request:
    - HTTP 429: Rate limit exceeded
    - HTTP 503: Service unavailable
    - HTTP 504: Gateway timeout
    - HTTP 408: Request timeout
    - Connection errors and per-call timeouts
    """

    pass


class PermanentLLMError(LLMUnavailableError):
    """
    Errors that won't resolve by asking again:
    - HTTP 400: Bad request (malformed input)
    - HTTP 401: Unauthorized (invalid API key)
    - HTTP 403: Forbidden (insufficient permissions)
    - HTTP 402: Payment required (billing issue)
    - Provider not configured (missing API key)
    """

    pass


class TokenLimitError(LLMUnavailableError):
    """Context length exceeded."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None,
        tokens_sent: Optional[int] = None,
        max_tokens: Optional[int] = None,
    ):
        super().__init__(message, provider, model, original_error)
        self.tokens_sent = tokens_sent
        self.max_tokens = max_tokens

    def __str__(self) -> str:
        """Return formatted error message with token info."""
        parts = [super().__str__()]
        if self.tokens_sent and self.max_tokens:
            parts.append(f"tokens={self.tokens_sent}/{self.max_tokens}")
        return " | ".join(parts)


class MalformedResponseError(LLMUnavailableError):
    """The model answered, but not in the requested structured shape."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        original_error: Optional[Exception] = None,
        schema_name: Optional[str] = None,
    ):
        super().__init__(message, provider, model, original_error)
        self.schema_name = schema_name
