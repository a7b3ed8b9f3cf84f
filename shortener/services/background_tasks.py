"""
Background Task Helpers

Work scheduled with FastAPI BackgroundTasks runs after the response is sent,
so failures can only be logged, never reported to the client.
"""

import logging
from typing import Sequence

from shortener.core.exceptions import BatchDeleteError, URLShortenerException
from shortener.services.url_service import ShortenerService

logger = logging.getLogger(__name__)


async def mark_deleted_background(
    service: ShortenerService,
    short_keys: Sequence[str],
    user_id: str
) -> None:
    """
    Background task to soft-delete a user's short keys.

    Args:
        service: The shortener service of the running application
        short_keys: Keys to delete
        user_id: Owner of the keys
    """
    try:
        await service.mark_deleted(short_keys, user_id)
    except BatchDeleteError as e:
        for error in e.errors:
            logger.error(f"Delete batch failed for user {user_id}: {error}")
    except URLShortenerException as e:
        logger.error(
            f"Failed to delete {len(short_keys)} key(s) for user {user_id}: {str(e)}",
            exc_info=True
        )
