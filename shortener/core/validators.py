"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.

Security Considerations:
- Short keys are restricted to ASCII letters before they reach storage
"""

import re
from typing import Optional

MAX_SHORT_KEY_LENGTH = 20
_SHORT_KEY_PATTERN = re.compile(r"^[a-zA-Z]+$")


def sanitize_short_key(short_key: str) -> Optional[str]:
    """
    Sanitize and validate short key format.

    Short keys only contain ASCII letters: [a-zA-Z]

    Args:
        short_key: The short key to sanitize

    Returns:
        Sanitized short key if valid, None otherwise
    """
    if not short_key or not isinstance(short_key, str):
        return None

    short_key = short_key.strip()

    if len(short_key) > MAX_SHORT_KEY_LENGTH:
        return None

    if not _SHORT_KEY_PATTERN.match(short_key):
        return None

    return short_key

