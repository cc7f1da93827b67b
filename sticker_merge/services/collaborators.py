"""
Remote collaborator abstractions used by the merge conversation.
"""
from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable

from .models import CollectionKind, Item, ItemFormat, SourceCollection


class MergeError(RuntimeError):
    """Base class for user-visible failures raised by the merge core."""

    code = "merge_error"

    def __init__(self, message: str, *, details: Optional[Mapping[str, object]] = None) -> None:
        super().__init__(message)
        self.details = dict(details or {})


class NormalizationError(MergeError, ValueError):
    code = "unrecognized_identifier"


class CollaboratorError(MergeError):
    """Raised when a remote platform call fails in a recoverable way."""

    code = "collaborator_error"

    def __init__(
        self,
        message: str,
        *,
        description: Optional[str] = None,
        details: Optional[Mapping[str, object]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.description = description or message


class CollectionNotFound(CollaboratorError):
    code = "collection_not_found"


class TagNotFound(CollaboratorError):
    code = "tag_not_found"


class OwnerHandleError(CollaboratorError):
    code = "owner_handle_unavailable"


def describe_error(exc: BaseException) -> str:
    """Short human readable reason for a failed remote call."""
    description = getattr(exc, "description", None)
    return str(description or exc or exc.__class__.__name__)


@runtime_checkable
class StickerPlatform(Protocol):
    """Everything the conversation needs from the remote sticker platform."""

    def fetch_collection(self, identifier: str) -> SourceCollection:
        ...

    def resolve_tag_content(self, tag_id: str) -> Item:
        ...

    def download_content(self, content_id: str) -> bytes:
        ...

    def upload_content(self, owner: int, data: bytes, item_format: ItemFormat) -> str:
        ...

    def create_collection(
        self,
        owner: int,
        short_name: str,
        title: str,
        first_content_id: str,
        first_item: Item,
        kind: CollectionKind,
    ) -> None:
        ...

    def append_item(self, owner: int, short_name: str, content_id: str, item: Item) -> None:
        ...

    def resolve_owner_handle(self) -> str:
        ...
