import os
import sys
from typing import Dict, Iterable, List, Optional, Sequence

import pytest

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from sticker_merge.services.collaborators import (
    CollaboratorError,
    CollectionNotFound,
    OwnerHandleError,
    TagNotFound,
)
from sticker_merge.services.models import CollectionKind, Item, ItemFormat, SourceCollection


def make_collection(
    name: str,
    size: int,
    item_format: ItemFormat = ItemFormat.STATIC,
    tags: Optional[Sequence[Optional[str]]] = None,
) -> SourceCollection:
    tags = list(tags or [None] * size)
    items = tuple(
        Item(content_id=f"{name}-{index}", format=item_format, source_index=index, tag=tags[index], collection_id=name)
        for index in range(size)
    )
    return SourceCollection(identifier=name, items=items, title=name.title())


class FakePlatform:
    """Deterministic in-memory stand-in for the remote sticker platform."""

    def __init__(
        self,
        collections: Iterable[SourceCollection] = (),
        tags: Optional[Dict[str, Item]] = None,
        owner_handle: Optional[str] = "bot",
    ) -> None:
        self.collections = {collection.identifier: collection for collection in collections}
        self.tags = dict(tags or {})
        self.owner_handle = owner_handle
        self.fail_create: set = set()
        self.fail_append: set = set()
        self.fail_download: set = set()
        self.calls: List[tuple] = []
        self.created: Dict[str, List[str]] = {}
        self.titles: Dict[str, str] = {}
        self.kinds: Dict[str, CollectionKind] = {}
        self.handle_lookups = 0

    def fetch_collection(self, identifier: str) -> SourceCollection:
        self.calls.append(("fetch", identifier))
        if identifier not in self.collections:
            raise CollectionNotFound(f"{identifier} not found", description="STICKERSET_INVALID")
        return self.collections[identifier]

    def resolve_tag_content(self, tag_id: str) -> Item:
        self.calls.append(("tag", tag_id))
        if tag_id not in self.tags:
            raise TagNotFound(f"{tag_id} not found")
        return self.tags[tag_id]

    def download_content(self, content_id: str) -> bytes:
        self.calls.append(("download", content_id))
        if content_id in self.fail_download:
            raise CollaboratorError("download failed", description="file is too big")
        return content_id.encode()

    def upload_content(self, owner: int, data: bytes, item_format: ItemFormat) -> str:
        self.calls.append(("upload", data.decode(), item_format))
        return f"up-{data.decode()}"

    def create_collection(self, owner, short_name, title, first_content_id, first_item, kind) -> None:
        self.calls.append(("create", short_name, first_content_id))
        if short_name in self.fail_create:
            raise CollaboratorError("create failed", description="Bad Request: STICKERSET_NAME_OCCUPIED")
        self.created[short_name] = [first_item.content_id]
        self.titles[short_name] = title
        self.kinds[short_name] = kind

    def append_item(self, owner, short_name, content_id, item) -> None:
        self.calls.append(("append", short_name, content_id))
        if item.content_id in self.fail_append:
            raise CollaboratorError("append failed", description="Bad Request: STICKER_PNG_DIMENSIONS")
        self.created[short_name].append(item.content_id)

    def resolve_owner_handle(self) -> str:
        self.handle_lookups += 1
        if self.owner_handle is None:
            raise OwnerHandleError("no handle", description="Unauthorized")
        return self.owner_handle


@pytest.fixture
def two_static_sets():
    return [make_collection("a", 3), make_collection("b", 3)]


@pytest.fixture
def platform(two_static_sets):
    return FakePlatform(two_static_sets)
