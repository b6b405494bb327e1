"""Closed error taxonomy shared by every pipeline stage.

Each stage raises :class:`AnalysisError` with the :class:`ErrorKind` that
describes its failure.  The HTTP layer maps the kind to a status code and
never inspects any other exception type to make that decision.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    FETCH_TIMEOUT = "FetchTimeout"
    BOT_PROTECTED = "BotProtected"
    NO_CONTENT_FOUND = "NoContentFound"
    CONFIGURATION_MISSING = "ConfigurationMissing"
    MODEL_AUTH_FAILURE = "ModelAuthFailure"
    MODEL_RATE_LIMITED = "ModelRateLimited"
    MODEL_UNAVAILABLE = "ModelUnavailable"
    INVALID_JSON = "InvalidJson"
    SCHEMA_MISMATCH = "SchemaMismatch"


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.FETCH_TIMEOUT: 400,
    ErrorKind.BOT_PROTECTED: 400,
    ErrorKind.NO_CONTENT_FOUND: 400,
    ErrorKind.CONFIGURATION_MISSING: 500,
    ErrorKind.MODEL_AUTH_FAILURE: 500,
    ErrorKind.MODEL_RATE_LIMITED: 429,
    ErrorKind.MODEL_UNAVAILABLE: 500,
    ErrorKind.INVALID_JSON: 500,
    ErrorKind.SCHEMA_MISMATCH: 500,
}


class AnalysisError(Exception):
    """A failure at any stage of the fetch → extract → analyze pipeline.

    Args:
        kind: Which failure this is.  Fixed at the raise site.
        message: Human-readable summary, returned as ``error`` in API bodies.
        details: Optional extra context (elapsed timeout, upstream message).
        raw_response: Truncated model output, for InvalidJson/SchemaMismatch.
        retry_after: Upstream ``Retry-After`` value, for ModelRateLimited.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: str | None = None,
        raw_response: str | None = None,
        retry_after: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details
        self.raw_response = raw_response
        self.retry_after = retry_after

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.kind]

    def to_payload(self) -> dict[str, Any]:
        """Render the ``{error, details?, rawResponse?}`` API error body."""
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        if self.raw_response is not None:
            payload["rawResponse"] = self.raw_response
        return payload

    def __repr__(self) -> str:
        return f"AnalysisError({self.kind.value}, {self.message!r})"
