"""Request context middleware for log correlation."""

import uuid
from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds a request ID and the requesting user to every log record.

    The request ID comes from the X-Request-ID header when the host proxy
    provides one, otherwise an 8-character UUID prefix is generated. It is
    echoed back in the response headers.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        user_id = request.headers.get("X-User-Id") or "-"
        with logger.contextualize(request_id=request_id, user_id=user_id):
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
