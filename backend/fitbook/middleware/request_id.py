# backend/fitbook/middleware/request_id.py
"""
Request correlation middleware.

Takes ``X-Request-ID`` from the caller (or mints one), binds it to the
logging context for the lifetime of the request, and echoes it back.
"""

import time
from typing import Callable
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.request_context import reset_request_id, set_request_id


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = set_request_id(request_id)
        start_time = time.time()
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-MS"] = str(int((time.time() - start_time) * 1000))
        return response
