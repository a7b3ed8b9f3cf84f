"""
Logging Middleware for Request/Response Logging

This middleware logs all HTTP requests and responses for observability.
It captures:
- Request method and path
- Response status code
- Request processing time
- Client IP address
- Authenticated user id, when the auth middleware found one

Design Decisions:
- Uses Starlette's BaseHTTPMiddleware for compatibility
- Logs to the "url_shortener" logger configured by setup_logging()
"""

import logging
import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("url_shortener")


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Handles proxies and load balancers by checking X-Forwarded-For header.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return forwarded_for.split(",")[0].strip()

    return request.client.host if request.client else "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    Adds an X-Process-Time header (seconds) to every response.
    """

    async def dispatch(self, request: Request, call_next):
        client_ip = get_client_ip(request)
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        user_id = getattr(request.state, "user_id", None) or "-"

        # Format: METHOD PATH STATUS_CODE PROCESS_TIME_MS CLIENT_IP USER
        logger.info(
            f"{request.method} {request.url.path} "
            f"{response.status_code} {process_time*1000:.2f}ms "
            f"IP:{client_ip} user:{user_id}"
        )

        response.headers["X-Process-Time"] = str(process_time)

        return response


def add_logging_middleware(app: FastAPI) -> None:
    app.add_middleware(LoggingMiddleware)
