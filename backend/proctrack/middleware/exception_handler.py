"""Turns ProcTrackException into the structured JSON error body."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import ProcTrackException

logger = logging.getLogger(__name__)


async def proctrack_exception_handler(request: Request, exc: ProcTrackException) -> JSONResponse:
    """Log the failure with its code and respond with ``exc.to_dict()``.

    Client errors are logged at warning level, server errors at error level.
    """
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"{exc.error_code.value}: {exc.message}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "details": exc.details,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
