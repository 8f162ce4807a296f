"""
Handler for domain exceptions raised by the service layer.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from ngurra_pathways.core.errors import NgurraError, RateLimitError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.core.monitoring import log_error

logger = get_logger(__name__)


async def domain_exception_handler(request: Request, exc: NgurraError) -> JSONResponse:
    """Translate a ``NgurraError`` into its JSON error response."""
    content = {"detail": exc.message, "error_type": type(exc).__name__, **exc.extra}
    headers = None
    if isinstance(exc, RateLimitError):
        content["retry_after"] = exc.retry_after
        headers = {"Retry-After": str(exc.retry_after)}

    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
        log_error(type(exc).__name__, exc.message, {"method": request.method, "path": request.url.path})
    else:
        logger.debug(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)
