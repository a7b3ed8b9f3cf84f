"""
Rate Limiting Configuration

This module provides rate limiting functionality for API endpoints.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Different limits for creation and redirect endpoints
- IP-based limiting
- Limits and the on/off switch come from settings
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from shortener.core.setting import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "shorten": settings.RATE_LIMIT_SHORTEN,
    "redirect": settings.RATE_LIMIT_REDIRECT,
}
