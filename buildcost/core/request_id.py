"""Request ID tracking: accept or assign X-Request-ID and echo it back."""

import logging
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from buildcost.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Stores the id on request.state so error handlers can log it."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        logger.debug(
            "Request started",
            extra=build_log_context(
                request_id=request_id,
                route=request.url.path,
                method=request.method,
            ),
        )
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
