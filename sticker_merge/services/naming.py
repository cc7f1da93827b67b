"""
Destination short-name finalisation.
"""
from __future__ import annotations

import logging
import re
import threading
from typing import Callable, Optional

from .collaborators import CollaboratorError, OwnerHandleError
from .models import MAX_SHORT_NAME_LENGTH

logger = logging.getLogger(__name__)

INVALID_SHORT_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")


class OwnerHandleCache:
    """
    Lazily resolves the owner handle once per process.

    Concurrent first callers share a single lookup. Failures are not cached, so a later
    call tries again.
    """

    def __init__(self, loader: Callable[[], str]) -> None:
        self._loader = loader
        self._value: Optional[str] = None
        self._lock = threading.Lock()

    def get(self) -> str:
        if self._value is not None:
            return self._value
        with self._lock:
            if self._value is None:
                try:
                    handle = self._loader()
                except OwnerHandleError:
                    raise
                except CollaboratorError as exc:
                    raise OwnerHandleError("Unable to resolve owner handle", description=exc.description) from exc
                if not handle:
                    raise OwnerHandleError("Owner handle is empty")
                self._value = handle
                logger.debug("Resolved owner handle '%s'", handle)
        return self._value


def sanitize_short_name(raw: str) -> str:
    return INVALID_SHORT_NAME_CHARS.sub("", (raw or "").strip())[:MAX_SHORT_NAME_LENGTH]


class NameFinalizer:
    """Makes a user supplied short name unique per owner: ``<base>[_<n>]_by_<owner>``."""

    def __init__(self, owner_handle: Callable[[], str]) -> None:
        self._owner_handle = owner_handle

    def suffix(self) -> str:
        return f"_by_{self._owner_handle().lower()}"

    def finalize(self, raw: str, chunk_index: int = 0) -> str:
        suffix = self.suffix()
        base = sanitize_short_name(raw)
        if base.lower().endswith(suffix):
            if chunk_index == 0:
                return base
            base = base[: len(base) - len(suffix)]

        with_index = base if chunk_index == 0 else f"{base}_{chunk_index + 1}"
        max_base_length = max(0, MAX_SHORT_NAME_LENGTH - len(suffix))
        return f"{with_index[:max_base_length]}{suffix}"
