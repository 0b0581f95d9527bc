from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    PARSE_ERROR = "PARSE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INVALID_INPUT = "INVALID_INPUT"


class KitsuneError(Exception):
    """Base class for every expected failure of a public operation.

    Raised by the fetcher, sources and operation handlers. Caught only by
    the HTTP layer (transport.py), which serialises it into the JSON error
    envelope using ``http_status``. The operations layer may catch it to try
    a fallback source, but must re-raise once the chain is exhausted.
    """

    code: ErrorCode = ErrorCode.UPSTREAM_ERROR
    http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        suggestion: str = "",
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.code}
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


class NetworkError(KitsuneError):
    """Connection, DNS or redirect-loop failure."""

    code = ErrorCode.NETWORK_ERROR


class FetchTimeoutError(KitsuneError):
    """An outbound call exceeded its deadline."""

    code = ErrorCode.TIMEOUT


class ParseError(KitsuneError):
    """Payload was not in the expected JSON or markup shape."""

    code = ErrorCode.PARSE_ERROR


class NotFoundError(KitsuneError):
    code = ErrorCode.NOT_FOUND
    http_status = 404


class UpstreamError(KitsuneError):
    """Upstream answered but signalled failure (error status, empty dataset)."""

    code = ErrorCode.UPSTREAM_ERROR


class ValidationError(KitsuneError):
    """A required request parameter is missing or malformed."""

    code = ErrorCode.INVALID_INPUT
    http_status = 400
