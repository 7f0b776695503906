"""Utilities for translating gateway errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from ..errors import ErrorKind, GatewayError

UNAVAILABLE_MESSAGE = "The AI service is temporarily unavailable. Please try again shortly."
CONFIG_MESSAGE = "The AI service is misconfigured. Please contact the administrator."
INPUT_MESSAGE = "Invalid input for the AI service."
UNEXPECTED_MESSAGE = "An unexpected error occurred while calling the AI service."


def error_detail(code: str, message: str) -> dict[str, dict[str, str]]:
    return {"error": {"code": code, "message": message}}


def map_exception(exc: Exception) -> HTTPException:
    if not isinstance(exc, GatewayError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("INTERNAL_ERROR", UNEXPECTED_MESSAGE),
        )

    if exc.kind in (ErrorKind.MISSING_API_KEY, ErrorKind.INVALID_CONFIG):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail("OPENROUTER_CONFIG_ERROR", CONFIG_MESSAGE),
        )

    if exc.kind == ErrorKind.INVALID_INPUT:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("VALIDATION_ERROR", INPUT_MESSAGE),
        )

    if exc.kind in (ErrorKind.NETWORK_ERROR, ErrorKind.TIMEOUT):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_detail("OPENROUTER_NETWORK_ERROR", UNAVAILABLE_MESSAGE),
        )

    if exc.kind in (ErrorKind.API_ERROR, ErrorKind.INVALID_JSON):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error_detail("OPENROUTER_API_ERROR", UNAVAILABLE_MESSAGE),
        )

    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error_detail("INTERNAL_ERROR", UNAVAILABLE_MESSAGE),
    )


def debug_status_code(exc: GatewayError) -> int:
    """Status for the diagnostics endpoint: upstream status when it is an error."""

    if exc.status_code is not None and exc.status_code >= 400:
        return exc.status_code
    if exc.kind in (ErrorKind.NETWORK_ERROR, ErrorKind.TIMEOUT):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR
