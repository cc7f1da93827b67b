"""
Sequential creation of destination collections with per-item failure tracking.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from .collaborators import CollaboratorError, StickerPlatform, describe_error
from .models import ChunkPlan, ChunkResult, Item, SkippedItem

logger = logging.getLogger(__name__)


class CreationExecutor:
    """
    Creates every planned destination from its first item, then appends the rest
    one at a time. Network calls are never issued concurrently.
    """

    def __init__(
        self,
        platform: StickerPlatform,
        *,
        on_chunk_done: Optional[Callable[[ChunkResult], None]] = None,
    ) -> None:
        self._platform = platform
        self._on_chunk_done = on_chunk_done

    def execute(self, owner: int, plans: Sequence[ChunkPlan]) -> List[ChunkResult]:
        results: List[ChunkResult] = []
        for plan in plans:
            result = self.execute_chunk(owner, plan)
            results.append(result)
            if self._on_chunk_done:
                self._on_chunk_done(result)
        return results

    def execute_chunk(self, owner: int, plan: ChunkPlan) -> ChunkResult:
        result = ChunkResult(
            short_name=plan.short_name,
            title=plan.title,
            format=plan.format,
            total=len(plan.items),
            kind=plan.kind,
        )
        if not plan.items:
            return result

        first, rest = plan.items[0], plan.items[1:]
        try:
            uploaded = self._transfer(owner, first, plan)
            self._platform.create_collection(owner, plan.short_name, plan.title, uploaded, first, plan.kind)
        except CollaboratorError as exc:
            logger.warning("Failed to create %s: %s", plan.short_name, exc)
            result.error = describe_error(exc)
            return result
        result.added = 1
        logger.info("Created %s (%s, %s item(s) planned)", plan.short_name, plan.format.value, result.total)

        for item in rest:
            try:
                uploaded = self._transfer(owner, item, plan)
                self._platform.append_item(owner, plan.short_name, uploaded, item)
            except CollaboratorError as exc:
                logger.warning("Skipping item %s for %s: %s", item.source_index, plan.short_name, exc)
                result.skipped.append(SkippedItem(reason=describe_error(exc), index=item.source_index))
                continue
            result.added += 1
        return result

    def _transfer(self, owner: int, item: Item, plan: ChunkPlan) -> str:
        data = self._platform.download_content(item.content_id)
        return self._platform.upload_content(owner, data, plan.format)
