"""
FastAPI dependencies shared by the endpoints.
"""

from typing import Optional

from fastapi import HTTPException, Request, status

from shortener.services.url_service import ShortenerService


def get_service(request: Request) -> ShortenerService:
    """Return the ShortenerService built at application startup."""
    return request.app.state.service


def get_user_id(request: Request) -> Optional[str]:
    """User id set by AuthMiddleware; None for anonymous GET requests."""
    return getattr(request.state, "user_id", None)


def require_user(request: Request) -> str:
    """
    Return the id of a caller that presented a valid token.

    Raises:
        HTTPException 401: No valid token came with the request
    """
    user_id = getattr(request.state, "user_id", None)
    if not getattr(request.state, "authenticated", False) or not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Valid auth token required"
        )
    return user_id
