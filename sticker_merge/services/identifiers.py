"""
Turns free-form user input into canonical source collection identifiers.
"""
from __future__ import annotations

import re
from typing import Optional

from .collaborators import NormalizationError

LINK_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?(?:t|telegram)\.me/addstickers/([A-Za-z0-9_]+)",
    re.IGNORECASE,
)
BARE_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,}$")


def normalize_identifier(text: Optional[str], forwarded_id: Optional[str] = None) -> str:
    """
    Accepts a forwarded item's collection id, an ``addstickers`` link or a bare
    identifier and returns the identifier. Raises ``NormalizationError`` otherwise.
    """
    if forwarded_id:
        return forwarded_id

    trimmed = (text or "").strip()
    match = LINK_PATTERN.search(trimmed)
    if match:
        return match.group(1)
    if BARE_IDENTIFIER_PATTERN.match(trimmed):
        return trimmed
    raise NormalizationError(f"Not a collection name or link: {trimmed!r}", details={"input": trimmed})
