"""
Auth Middleware

Identifies the caller by a signed token and hands out tokens to new callers.

Token lookup order:
1. Authorization: Bearer <token>
2. auth_token cookie

Rules:
- A valid token sets request.state.user_id and request.state.authenticated
- A POST without a valid token gets a fresh user id; the response carries
  the new token in the auth_token cookie and the Authorization header
- Other requests without a valid token pass through anonymously;
  endpoints that need a user reject them (see shortener.api.deps.require_user)
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shortener.core.security import decode_token, issue_token, new_user_id

logger = logging.getLogger(__name__)

AUTH_COOKIE = "auth_token"
BEARER_PREFIX = "Bearer "


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Attach the caller's user id to the request.

    Args:
        app: The ASGI application
        secret: HMAC secret used to sign and check tokens
        ttl: Lifetime of issued tokens
    """

    def __init__(self, app, secret: str, ttl: timedelta = timedelta(hours=24)):
        super().__init__(app)
        self.secret = secret
        self.ttl = ttl

    async def dispatch(self, request: Request, call_next):
        user_id = None
        token = self._get_token(request)
        if token:
            user_id = decode_token(token, self.secret)

        request.state.authenticated = user_id is not None
        issued_token = None

        if user_id is None and request.method == "POST":
            user_id = new_user_id()
            issued_token = issue_token(user_id, self.secret, self.ttl)
            logger.debug(f"Issued auth token for new user {user_id}")

        request.state.user_id = user_id

        response = await call_next(request)

        if issued_token is not None:
            response.set_cookie(
                AUTH_COOKIE,
                issued_token,
                max_age=int(self.ttl.total_seconds()),
                httponly=True,
                secure=True,
                samesite="strict",
            )
            response.headers["Authorization"] = f"{BEARER_PREFIX}{issued_token}"

        return response

    def _get_token(self, request: Request) -> Optional[str]:
        header = request.headers.get("Authorization", "")
        if header.startswith(BEARER_PREFIX):
            return header[len(BEARER_PREFIX):].strip()
        return request.cookies.get(AUTH_COOKIE)
