"""Middleware classes for the phoenixduck mock server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from .shared import ServerError, error_body

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware to turn exceptions into Avatica error responses.

    ServerError keeps its status code and Phoenix error code. Anything else
    becomes an HTTP 500 with the unknown error code, so a client never sees a
    non-JSON error body.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except ServerError as e:
            logger.info("Request failed: %s", e.message)
            return JSONResponse(error_body(e), status_code=e.status_code)
        except Exception as e:
            logger.exception("Unhandled error")
            error = ServerError(status_code=500, message=f"Unhandled error: {e}")
            return JSONResponse(error_body(error), status_code=500)
