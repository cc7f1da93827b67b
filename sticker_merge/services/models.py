"""
Shared data models for the sticker merge conversation core.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

MAX_PER_DESTINATION = 120
PAGE_SIZE = 20
MAX_SHORT_NAME_LENGTH = 64


class ItemFormat(str, Enum):
    STATIC = "static"
    ANIMATED = "animated"
    VIDEO = "video"


class Stage(str, Enum):
    IDLE = "idle"
    AWAITING_SOURCES = "awaiting_sources"
    AWAITING_TAGS = "awaiting_tags"
    REVIEWING_SOURCES = "reviewing_sources"
    AWAITING_SELECTION = "awaiting_selection"
    CONFIRMING_CREATION = "confirming_creation"
    CREATING = "creating"


class SelectionMode(str, Enum):
    RANGES = "ranges"
    TAGS = "tags"


class TagCollectionMode(str, Enum):
    ITEMS = "items"
    FULL_SETS = "full_sets"


class CollectionKind(str, Enum):
    """Destination flavour: sticker sets for picked refs, emoji sets for the tag path."""

    REGULAR = "regular"
    CUSTOM_EMOJI = "custom_emoji"


@dataclass(frozen=True)
class Item:
    """One content unit of a source collection."""

    content_id: str
    format: ItemFormat
    source_index: int
    tag: Optional[str] = None
    collection_id: Optional[str] = None


@dataclass(frozen=True)
class SourceCollection:
    identifier: str
    items: Tuple[Item, ...] = ()
    title: Optional[str] = None

    def item_at(self, index: int) -> Item:
        return self.items[index]


@dataclass(frozen=True)
class ChosenRef:
    source_collection_id: str
    index_in_source: int

    def key(self) -> Tuple[str, int]:
        return (self.source_collection_id, self.index_in_source)


@dataclass(frozen=True)
class SessionState:
    """
    Per-user conversation record.

    Instances are immutable; transitions build a new state with ``dataclasses.replace``.
    """

    stage: Stage = Stage.IDLE
    source_inputs: Tuple[str, ...] = ()
    source_collections: Tuple[SourceCollection, ...] = ()
    selection_mode: SelectionMode = SelectionMode.RANGES
    selection_query: str = ""
    chosen_refs: Tuple[ChosenRef, ...] = ()
    desired_title: Optional[str] = None
    desired_short_name: Optional[str] = None
    collected_tag_ids: Tuple[str, ...] = ()
    tag_collection_mode: TagCollectionMode = TagCollectionMode.ITEMS
    tag_items: Tuple[Item, ...] = ()

    @classmethod
    def initial(cls) -> "SessionState":
        return cls()

    @property
    def uses_tag_path(self) -> bool:
        return bool(self.tag_items)

    def total_source_items(self) -> int:
        return sum(len(collection.items) for collection in self.source_collections)


@dataclass(frozen=True)
class ChunkPlan:
    short_name: str
    title: str
    format: ItemFormat
    items: Tuple[Item, ...]
    kind: CollectionKind = CollectionKind.REGULAR

    @property
    def refs(self) -> List[ChosenRef]:
        return [
            ChosenRef(source_collection_id=item.collection_id or "", index_in_source=item.source_index)
            for item in self.items
        ]


@dataclass
class SkippedItem:
    reason: str
    index: int


@dataclass
class ChunkResult:
    short_name: str
    title: str
    format: ItemFormat
    total: int
    added: int = 0
    skipped: List[SkippedItem] = field(default_factory=list)
    kind: CollectionKind = CollectionKind.REGULAR
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Dialogue surface
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Button:
    text: str
    callback_data: str


@dataclass
class Reply:
    """Plain text answer with optional inline keyboard rows."""

    text: str
    buttons: Sequence[Sequence[Button]] = field(default_factory=list)


@dataclass(frozen=True)
class Command:
    name: str


@dataclass(frozen=True)
class TextMessage:
    text: str
    tag_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ForwardedItem:
    collection_id: Optional[str] = None


@dataclass(frozen=True)
class SelectionModeChosen:
    mode: SelectionMode


@dataclass(frozen=True)
class PageRequested:
    page: int
