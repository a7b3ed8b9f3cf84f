"""
Auth Tokens

Issues and validates the HS256 JWTs that identify anonymous users.
A token carries only the user id and an expiry.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
USER_ID_CLAIM = "user_id"


def new_user_id() -> str:
    return str(uuid.uuid4())


def issue_token(user_id: str, secret: str, ttl: timedelta = timedelta(hours=24)) -> str:
    """
    Create a signed token for the given user id.

    Args:
        user_id: Owner id stored in the token
        secret: HMAC secret
        ttl: Token lifetime

    Returns:
        Encoded JWT
    """
    payload = {
        USER_ID_CLAIM: user_id,
        "exp": datetime.now(timezone.utc) + ttl,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> Optional[str]:
    """
    Validate a token and extract its user id.

    Returns:
        The user id, or None when the token is expired, malformed,
        signed with another key or missing the user id claim
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except InvalidTokenError as e:
        logger.debug(f"Rejected auth token: {e}")
        return None

    user_id = payload.get(USER_ID_CLAIM)
    if not user_id or not isinstance(user_id, str):
        return None
    return user_id
