"""Error taxonomy for the AI gateway."""

from __future__ import annotations

from enum import Enum
from typing import Any

GENERIC_API_ERROR_MESSAGE = "OpenRouter returned an error response"


class ErrorKind(str, Enum):
    """Machine-readable failure categories."""

    MISSING_API_KEY = "missing_api_key"
    INVALID_CONFIG = "invalid_config"
    INVALID_INPUT = "invalid_input"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    INVALID_JSON = "invalid_json"
    API_ERROR = "api_error"


class GatewayError(RuntimeError):
    """Raised for every failure surfaced by the gateway.

    The underlying exception, when there is one, is chained with
    ``raise ... from exc`` and exposed through :attr:`cause`.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.details = details

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    @property
    def is_transient(self) -> bool:
        """True when an immediate retry is likely to succeed."""

        if self.kind == ErrorKind.NETWORK_ERROR:
            return True
        if self.kind == ErrorKind.API_ERROR and self.status_code is not None:
            return 500 <= self.status_code <= 599
        return False

    @classmethod
    def from_api_response(cls, status_code: int, body: Any) -> "GatewayError":
        return cls(
            ErrorKind.API_ERROR,
            _extract_error_message(body),
            status_code=status_code,
            details=body,
        )

    def __repr__(self) -> str:
        return (
            f"GatewayError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )


def _extract_error_message(body: Any) -> str:
    if not isinstance(body, dict):
        return GENERIC_API_ERROR_MESSAGE

    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    elif isinstance(error, str) and error:
        return error
    return GENERIC_API_ERROR_MESSAGE
