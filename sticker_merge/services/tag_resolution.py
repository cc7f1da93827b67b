"""
Resolves collected tag ids into creation items.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence, Tuple

from .collaborators import CollaboratorError, StickerPlatform, describe_error
from .models import Item, TagCollectionMode

logger = logging.getLogger(__name__)


def dedupe_by_content(items: Sequence[Item]) -> List[Item]:
    seen = set()
    unique: List[Item] = []
    for item in items:
        if item.content_id in seen:
            continue
        seen.add(item.content_id)
        unique.append(item)
    return unique


def number_in_order(items: Sequence[Item]) -> List[Item]:
    """Tag-path items are numbered by their position in the collected order."""
    return [replace(item, source_index=position) for position, item in enumerate(items)]


def resolve_tag_items(
    tag_ids: Sequence[str],
    mode: TagCollectionMode,
    platform: StickerPlatform,
) -> Tuple[List[Item], List[str]]:
    """
    ``items`` mode returns one item per resolvable tag id. ``full_sets`` mode pulls in
    every item of each collection owning a resolved tag, deduplicated by content id.
    Returns ``(items, errors)``.
    """
    errors: List[str] = []
    tagged: List[Item] = []
    for tag_id in dict.fromkeys(tag_ids):
        try:
            tagged.append(platform.resolve_tag_content(tag_id))
        except CollaboratorError as exc:
            logger.warning("Unable to resolve tag %s: %s", tag_id, exc)
            errors.append(f"{tag_id}: {describe_error(exc)}")

    if TagCollectionMode(mode) is TagCollectionMode.ITEMS:
        return number_in_order(dedupe_by_content(tagged)), errors

    expanded: List[Item] = []
    fetched = set()
    unavailable = set()
    for item in tagged:
        owner_id = item.collection_id
        if not owner_id or owner_id in unavailable:
            expanded.append(item)
            continue
        if owner_id in fetched:
            continue
        try:
            collection = platform.fetch_collection(owner_id)
        except CollaboratorError as exc:
            logger.warning("Unable to expand collection %s: %s", owner_id, exc)
            errors.append(f"{owner_id}: {describe_error(exc)}")
            unavailable.add(owner_id)
            expanded.append(item)
            continue
        fetched.add(owner_id)
        expanded.extend(collection.items)
    return number_in_order(dedupe_by_content(expanded)), errors
