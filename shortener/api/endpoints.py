"""
FastAPI Endpoints for URL Shortener Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request parsing (Pydantic models, plain text bodies)
- Rate limiting
- Mapping service exceptions to HTTP status codes
- Delegating to the service layer

Design Principles:
- Thin endpoints: Only parsing, rate limiting and status mapping
- Service layer: All business logic
- Error handling: try/except around every service call, HTTPException out

Route order matters: /ping and the /api routes are registered before the
catch-all /{short_key} redirect.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response

from shortener.api.deps import get_service, get_user_id, require_user
from shortener.api.schemas import (
    BatchRequestItem,
    BatchResponseItem,
    ShortenRequest,
    ShortenResponse,
    UserURL,
)
from shortener.core.exceptions import (
    BulkWriteError,
    EmptyInputError,
    InvalidURLError,
    ShortKeyCollisionError,
    ShortKeyNotFoundError,
    StorageUnavailableError,
    URLDeletedError,
)
from shortener.core.rate_limit import RATE_LIMITS, limiter
from shortener.core.validators import sanitize_short_key
from shortener.services.background_tasks import mark_deleted_background
from shortener.services.url_service import ShortenerService

logger = logging.getLogger(__name__)

router = APIRouter()


def _server_error(e: Exception) -> HTTPException:
    logger.error(f"Request failed: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_class=PlainTextResponse,
    summary="Create a short URL from a plain text body",
)
@limiter.limit(RATE_LIMITS["shorten"])
async def shorten_text(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    service: ShortenerService = Depends(get_service),
    user_id: Optional[str] = Depends(get_user_id),
) -> PlainTextResponse:
    """
    Shorten the URL sent as the raw request body.

    Returns:
        201 with the short URL, or 409 with the short URL issued earlier
    """
    body = (await request.body()).decode("utf-8", errors="replace").strip()
    if not body:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must contain a URL"
        )

    try:
        result = await service.shorten(body, user_id)
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (ShortKeyCollisionError, StorageUnavailableError) as e:
        raise _server_error(e)

    status_code = status.HTTP_201_CREATED if result.created else status.HTTP_409_CONFLICT
    return PlainTextResponse(result.short_url, status_code=status_code)


@router.get(
    "/ping",
    response_class=PlainTextResponse,
    summary="Storage health check",
)
async def ping(service: ShortenerService = Depends(get_service)) -> PlainTextResponse:
    try:
        await service.health_check()
    except StorageUnavailableError as e:
        raise _server_error(e)
    return PlainTextResponse("OK")


@router.post(
    "/api/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and returns its short URL in the result field"
)
@limiter.limit(RATE_LIMITS["shorten"])
async def shorten_json(
    request: Request,
    body: ShortenRequest,
    service: ShortenerService = Depends(get_service),
    user_id: Optional[str] = Depends(get_user_id),
):
    """
    Returns:
        201 {"result": short_url}, or 409 {"result": short_url} when the
        URL was shortened before
    """
    try:
        result = await service.shorten(body.url, user_id)
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (ShortKeyCollisionError, StorageUnavailableError) as e:
        raise _server_error(e)

    if not result.created:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=ShortenResponse(result=result.short_url).model_dump()
        )
    return ShortenResponse(result=result.short_url)


@router.post(
    "/api/shorten/batch",
    response_model=list[BatchResponseItem],
    status_code=status.HTTP_201_CREATED,
    summary="Create short URLs in bulk",
)
@limiter.limit(RATE_LIMITS["shorten"])
async def shorten_batch(
    request: Request,
    items: list[BatchRequestItem],
    service: ShortenerService = Depends(get_service),
    user_id: Optional[str] = Depends(get_user_id),
) -> list[BatchResponseItem]:
    """
    Shorten every original_url of the batch.

    URLs that were shortened before keep their key; the response is 201
    for the whole batch either way.
    """
    try:
        pairs = await service.create_batch(
            user_id,
            [(item.correlation_id, item.original_url) for item in items]
        )
    except (EmptyInputError, InvalidURLError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (BulkWriteError, StorageUnavailableError) as e:
        raise _server_error(e)

    return [
        BatchResponseItem(correlation_id=correlation_id, short_url=short_url)
        for correlation_id, short_url in pairs
    ]


@router.get(
    "/api/user/urls",
    response_model=list[UserURL],
    summary="List the caller's short URLs",
    responses={204: {"description": "The caller has no URLs"}},
)
async def list_user_urls(
    service: ShortenerService = Depends(get_service),
    user_id: str = Depends(require_user),
):
    try:
        pairs = await service.list_by_user(user_id)
    except StorageUnavailableError as e:
        raise _server_error(e)

    if not pairs:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return [UserURL(short_url=short_url, original_url=original_url) for short_url, original_url in pairs]


@router.delete(
    "/api/user/urls",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Delete the caller's short URLs",
    description="Accepts a JSON list of short keys; deletion runs after the response is sent"
)
async def delete_user_urls(
    background_tasks: BackgroundTasks,
    short_keys: list[str] = Body(...),
    service: ShortenerService = Depends(get_service),
    user_id: str = Depends(require_user),
) -> Response:
    short_keys = [key.strip() for key in short_keys if key and key.strip()]
    if not short_keys:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one short key is required"
        )

    background_tasks.add_task(mark_deleted_background, service, short_keys, user_id)
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.get(
    "/{short_key}",
    status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    summary="Redirect to original URL",
    description="Takes a short key and redirects to the original long URL"
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_to_url(
    short_key: str,
    request: Request,
    service: ShortenerService = Depends(get_service),
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short key.

    Raises:
        HTTPException 400: If short key format is invalid
        HTTPException 404: If short key not found
        HTTPException 410: If the URL was deleted
        HTTPException 429: If rate limit exceeded
    """
    sanitized_key = sanitize_short_key(short_key)
    if not sanitized_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid short key format: '{short_key}'. Short keys must contain only letters."
        )

    try:
        record = await service.get(sanitized_key)
    except ShortKeyNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except URLDeletedError as e:
        raise HTTPException(status_code=status.HTTP_410_GONE, detail=str(e))
    except StorageUnavailableError as e:
        raise _server_error(e)

    return RedirectResponse(
        url=record.original_url,
        status_code=status.HTTP_307_TEMPORARY_REDIRECT
    )
