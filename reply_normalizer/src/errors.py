"""Exception types raised while turning model output into structured values.

Every parse failure is a ``ParseError``. The ``kind`` attribute is what the
retry controller looks at: ``json_parsing_failed``, ``schema_validation_failed``
and ``empty_response`` are worth another attempt, ``max_retries_exceeded`` and
``unknown`` end the request.
"""

from __future__ import annotations

from typing import List, Optional

RETRYABLE_KINDS = frozenset({"json_parsing_failed", "schema_validation_failed", "empty_response"})


class ParseError(ValueError):
    """Base class for failures while parsing a model response."""

    kind = "unknown"

    def __init__(self, message: str, *, content: str = "") -> None:
        super().__init__(message)
        self.content = content

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    @property
    def description(self) -> str:
        return str(self)


class EmptyContentError(ParseError):
    kind = "empty_response"

    def __init__(self, message: str = "Response content is empty", *, content: str = "") -> None:
        super().__init__(message, content=content)


class InvalidJSONError(ParseError):
    kind = "json_parsing_failed"

    def __init__(self, details: str, *, content: str = "") -> None:
        super().__init__(f"Invalid JSON: {details}", content=content)
        self.details = details


class DecodingFailedError(ParseError):
    """JSON was well formed but could not be coerced into the target type."""

    kind = "schema_validation_failed"

    def __init__(self, details: str, *, field: Optional[str] = None, content: str = "") -> None:
        where = f" at '{field}'" if field else ""
        super().__init__(f"Decoding failed{where}: {details}", content=content)
        self.field = field
        self.details = details


class SchemaValidationFailedError(ParseError):
    kind = "schema_validation_failed"

    def __init__(self, field: str, details: List[str], *, content: str = "") -> None:
        summary = "; ".join(details) if details else "schema mismatch"
        super().__init__(f"Schema validation failed for field '{field}': {summary}", content=content)
        self.field = field
        self.details = list(details)


class MaxRetriesExceededError(ParseError):
    kind = "max_retries_exceeded"

    def __init__(self, attempts: int, last_error: str) -> None:
        super().__init__(f"Max retries exceeded after {attempts} attempts. Last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class UnknownParseError(ParseError):
    kind = "unknown"


class TransportError(RuntimeError):
    """Raised by connectors when the backend cannot produce a response."""


__all__ = [
    "RETRYABLE_KINDS",
    "ParseError",
    "EmptyContentError",
    "InvalidJSONError",
    "DecodingFailedError",
    "SchemaValidationFailedError",
    "MaxRetriesExceededError",
    "UnknownParseError",
    "TransportError",
]
