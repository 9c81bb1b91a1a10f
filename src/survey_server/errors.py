"""Global exception handlers — map service exceptions to HTTP status codes.

``SurveyService`` raises ``ValueError`` for missing sessions, completed
sessions and bad input.  The handler inspects the message to pick the
status code so route handlers stay on the happy path.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# --- Keyword patterns in ValueError messages and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    ("not found", 404),
    ("already completed", 409),
]

# Client-safe messages; the raw message (with ids) stays in the server log.
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Session already completed",
    400: "Invalid request",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map ``ValueError`` to 404 / 409 / 400 by message content."""
    msg = str(exc)
    status = 400
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    return JSONResponse(
        status_code=status,
        content={"detail": _SAFE_MESSAGES.get(status, "Invalid request")},
    )


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (unknown catalog question) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all — log the traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
