"""
Exception hierarchy for the forecasting engine.

Every failure is scoped to a single call and carries enough context to tell
the caller *where* it happened:

  ForecastInputError       bad request or missing project/site; nothing started
  NotFoundError            unknown forecast id
  PredictionServiceError   LLM endpoint unreachable, timed out, or non-2xx
  ForecastGenerationError  a forecast run failed at ``stage``; nothing persisted
    ForecastParseError     the LLM reply was not a single valid forecast object
  PersistenceError         the SQLite store failed during ``operation``

Nothing here is retried automatically; retry policy belongs to the caller.
"""

from __future__ import annotations

from typing import Any, Optional


class SEOForecasterError(RuntimeError):
    """Base class for all engine errors."""


class ForecastInputError(SEOForecasterError):
    """Raised when a forecast request is invalid or its context is missing."""


class NotFoundError(SEOForecasterError):
    """Raised when a requested entity does not exist.

    Attributes:
        entity: Kind of entity looked up, e.g. ``"forecast"``.
        key:    The identifier that was not found.
    """

    def __init__(self, entity: str, key: str) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' not found.")


class PredictionServiceError(SEOForecasterError):
    """Raised by the LLM client when the completion call itself fails.

    Attributes:
        retryable:   True for timeouts, transport errors, 429 and 5xx responses.
        status_code: HTTP status of the failed response, if one was received.
    """

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        status_code: Optional[int] = None,
    ) -> None:
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(message)


class ForecastGenerationError(SEOForecasterError):
    """Raised when ``generate_forecast`` fails after input validation.

    Attributes:
        stage: ``"prediction"`` (collaborator call) or ``"validation"``
            (collaborator reply rejected).
    """

    def __init__(self, message: str, stage: str) -> None:
        self.stage = stage
        super().__init__(f"[{stage}] {message}")


class ForecastParseError(ForecastGenerationError):
    """Raised when the collaborator reply is not exactly one valid forecast object.

    Attributes:
        errors: Structured validation errors (pydantic ``errors()`` entries or
            plain messages), empty when no object could be found at all.
    """

    def __init__(self, message: str, errors: Optional[list[Any]] = None) -> None:
        self.errors = errors or []
        super().__init__(message, stage="validation")


class PersistenceError(SEOForecasterError):
    """Raised when the store fails to read or write.

    Attributes:
        operation: Store operation that failed, e.g. ``"insert_forecast"``.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")
