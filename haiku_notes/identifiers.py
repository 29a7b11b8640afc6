"""
Haiku Notes Backend: Identifier Generation
===========================================

What:  Server-side generation and validation of user and note identifiers.
How:   96 bytes from the operating system CSPRNG, encoded as URL-safe base64
       without padding, which is always exactly 128 ASCII characters.
Who:   Routes call generate_id() before inserting a user or a note, and
       is_valid_id() when checking path parameters.

Format:
    ┌────────────────────────── 128 characters ──────────────────────────┐
    │ A-Z a-z 0-9 - _   (RFC 4648 §5 alphabet, no '=' padding)            │
    └─────────────────────────────────────────────────────────────────────┘

    Identifiers are safe to place in a URL path segment and in a JSON string
    without escaping. The generator gives no uniqueness guarantee of its own:
    the primary key constraint rejects a collision at insert time, which the
    store reports as a ConflictError.
"""

import logging
import re
import secrets
from typing import NewType

from haiku_notes.exceptions import IdentifierGenerationError

logger = logging.getLogger(__name__)

# Length of every identifier, in characters
ID_LENGTH = 128

# 96 bytes encode to 4 * 96 / 3 = 128 base64 characters with no padding
ID_ENTROPY_BYTES = 96

_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{%d}" % ID_LENGTH)

UserId = NewType("UserId", str)
NoteId = NewType("NoteId", str)


def generate_id() -> str:
    """
    Produce a new random identifier.

    Raises:
        IdentifierGenerationError: the entropy source is unavailable.
    """
    try:
        return secrets.token_urlsafe(ID_ENTROPY_BYTES)
    except (OSError, NotImplementedError) as e:
        logger.error("Entropy source failed while generating an identifier: %s", e)
        raise IdentifierGenerationError(context={"error": type(e).__name__}) from e


def is_valid_id(value: str | None) -> bool:
    """True when `value` has the exact shape generate_id() produces."""
    if not value:
        return False
    return _ID_PATTERN.fullmatch(value) is not None
