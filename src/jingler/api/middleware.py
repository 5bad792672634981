"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from jingler.models.errors import (
    ConfigurationError,
    ErrorResponse,
    ForbiddenError,
    JinglerError,
    NotFoundError,
    PayloadTooLarge,
    QuotaExceeded,
    UnsupportedFormat,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)


async def jingler_error_handler(request: Request, exc: JinglerError) -> JSONResponse:
    """Render JinglerError exceptions as ErrorResponse JSON."""
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error(
            "%s in %s on %s: %s %s",
            type(exc).__name__,
            exc.component,
            request.url.path,
            exc.message,
            exc.details,
        )
    else:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)

    response = ErrorResponse.from_exception(
        exc, guidance=_get_guidance(exc), retry=_is_retryable(exc)
    )
    return JSONResponse(status_code=status_code, content=response.model_dump())


def _get_status_code(exc: JinglerError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, ValidationError):
        return 400
    elif isinstance(exc, (QuotaExceeded, ForbiddenError)):
        return 403
    elif isinstance(exc, NotFoundError):
        return 404
    elif isinstance(exc, PayloadTooLarge):
        return 413
    elif isinstance(exc, UnsupportedFormat):
        return 415
    elif isinstance(exc, ConfigurationError):
        return 503
    elif isinstance(exc, UpstreamError):
        return 502
    return 500


def _get_guidance(exc: JinglerError) -> str:
    """Generate actionable guidance based on error type."""
    if isinstance(exc, QuotaExceeded):
        return "Upgrade to PRO or try again tomorrow."
    if isinstance(exc, (ValidationError, UnsupportedFormat)):
        return "Check the source URL or file and try again."
    if isinstance(exc, PayloadTooLarge):
        return "Use a file smaller than 50MB."
    if isinstance(exc, NotFoundError):
        return "Check the identifier, staged audio expires after 10 minutes."
    return "Please try again or contact support."


def _is_retryable(exc: JinglerError) -> bool:
    """Determine if the error is retryable."""
    return isinstance(exc, UpstreamError) and not isinstance(exc, ConfigurationError)
