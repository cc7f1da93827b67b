"""
Groups chosen items by format and splits each group into size-bounded chunks.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, List, Sequence

from .models import (
    MAX_PER_DESTINATION,
    ChosenRef,
    ChunkPlan,
    CollectionKind,
    Item,
    ItemFormat,
    SourceCollection,
)
from .naming import NameFinalizer

logger = logging.getLogger(__name__)


class PlanningError(LookupError):
    """A chosen reference does not point into the loaded source collections."""


def items_for_refs(refs: Sequence[ChosenRef], collections: Sequence[SourceCollection]) -> List[Item]:
    by_identifier: Dict[str, SourceCollection] = {}
    for collection in collections:
        by_identifier.setdefault(collection.identifier, collection)

    items: List[Item] = []
    for ref in refs:
        collection = by_identifier.get(ref.source_collection_id)
        if collection is None or not 0 <= ref.index_in_source < len(collection.items):
            raise PlanningError(f"Unknown item {ref.source_collection_id}#{ref.index_in_source}")
        item = collection.item_at(ref.index_in_source)
        if item.collection_id != collection.identifier:
            item = replace(item, collection_id=collection.identifier)
        items.append(item)
    return items


def group_by_format(items: Sequence[Item]) -> Dict[ItemFormat, List[Item]]:
    groups: Dict[ItemFormat, List[Item]] = {}
    for item in items:
        groups.setdefault(item.format, []).append(item)
    return groups


def chunk_title(title: str, ordinal: int) -> str:
    return title if ordinal == 0 else f"{title} ({ordinal + 1})"


class ChunkPlanner:
    def __init__(self, finalizer: NameFinalizer, max_per_destination: int = MAX_PER_DESTINATION) -> None:
        if max_per_destination < 1:
            raise ValueError("max_per_destination must be positive")
        self._finalizer = finalizer
        self._max = max_per_destination

    def plan(
        self,
        items: Sequence[Item],
        title: str,
        raw_short_name: str,
        kind: CollectionKind = CollectionKind.REGULAR,
    ) -> List[ChunkPlan]:
        """
        Format groups come in order of first appearance; each yields ``ceil(N / max)``
        chunks. The ordinal used for titles and names runs across the whole plan so
        every destination gets a distinct short name. Numbering is not restarted per
        format group, so a second group starts at ``<base>_<n+1>`` and ``"<title> (n+1)"``.
        """
        plans: List[ChunkPlan] = []
        for item_format, group in group_by_format(items).items():
            chunk_count = math.ceil(len(group) / self._max)
            for chunk_index in range(chunk_count):
                ordinal = len(plans)
                chunk = group[chunk_index * self._max : (chunk_index + 1) * self._max]
                plans.append(
                    ChunkPlan(
                        short_name=self._finalizer.finalize(raw_short_name, ordinal),
                        title=chunk_title(title, ordinal),
                        format=item_format,
                        items=tuple(chunk),
                        kind=kind,
                    )
                )
        logger.debug("Planned %s destination(s) for %s item(s)", len(plans), len(items))
        return plans
