"""Custom HTTP middleware."""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging_config import RequestLogger, get_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with its status code and timing."""

    def __init__(self, app, request_logger: RequestLogger | None = None):
        super().__init__(app)
        self.request_logger = request_logger or RequestLogger(get_logger("lecturelab.requests"))

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start_time) * 1000

        # Route handlers stash the acting user on request.state when known
        user_id = getattr(request.state, "user_id", None) or request.query_params.get("userId")

        self.request_logger.log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            client_ip=request.client.host if request.client else "unknown",
            user_id=user_id,
        )
        return response
