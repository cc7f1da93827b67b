"""
Selection parsing over the flattened list of source items, plus list pagination.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Generic, Iterable, List, Sequence, Tuple, TypeVar

from .models import ChosenRef, Item, SelectionMode, SourceCollection

T = TypeVar("T")

RANGE_TOKEN_PATTERN = re.compile(r"^(\d+)(?:-(\d+))?$")
TOKEN_SEPARATORS = re.compile(r"[\s,]+")
TAG_FIELD_MARKER = ":"


@dataclass
class ParsedSelection:
    chosen: List[ChosenRef] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def flatten(collections: Sequence[SourceCollection]) -> List[Tuple[SourceCollection, int, Item]]:
    """Collection order first, then item order within the collection."""
    return [
        (collection, index, item)
        for collection in collections
        for index, item in enumerate(collection.items)
    ]


def _split_tokens(text: str) -> List[str]:
    return [token.strip() for token in TOKEN_SEPARATORS.split(text) if token.strip()]


def _dedupe(refs: Iterable[ChosenRef]) -> List[ChosenRef]:
    seen = set()
    unique: List[ChosenRef] = []
    for ref in refs:
        if ref.key() in seen:
            continue
        seen.add(ref.key())
        unique.append(ref)
    return unique


def _parse_ranges(text: str, flat: Sequence[Tuple[SourceCollection, int, Item]]) -> ParsedSelection:
    result = ParsedSelection()
    tokens = _split_tokens(text)
    if not tokens:
        result.errors.append("No numbers or ranges provided")
        return result

    for token in tokens:
        match = RANGE_TOKEN_PATTERN.match(token)
        if not match:
            result.errors.append(f"Invalid range token: {token}")
            continue
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2) else start
        if start < 1 or end < start:
            result.errors.append(f"Invalid bounds: {token}")
            continue
        for collection, index, _item in flat[start - 1 : min(end, len(flat))]:
            result.chosen.append(ChosenRef(source_collection_id=collection.identifier, index_in_source=index))
    return result


def _parse_tags(text: str, flat: Sequence[Tuple[SourceCollection, int, Item]]) -> ParsedSelection:
    result = ParsedSelection()
    requested = set(_split_tokens(text.replace(TAG_FIELD_MARKER, " ")))
    if not requested:
        result.errors.append("No tags provided")
        return result

    for collection, index, item in flat:
        if item.tag and item.tag in requested:
            result.chosen.append(ChosenRef(source_collection_id=collection.identifier, index_in_source=index))
    return result


def parse_selection(text: str, collections: Sequence[SourceCollection], mode: SelectionMode) -> ParsedSelection:
    """
    Parse a selection utterance such as ``"1-5, 7, 10-12"`` (ranges) or ``":😀,😂"`` (tags).

    Positions are 1-based over the concatenation of all collections. The result is
    deduplicated by ``(collection, index)`` keeping first-seen order.
    """
    flat = flatten(collections)
    if SelectionMode(mode) is SelectionMode.RANGES:
        parsed = _parse_ranges(text, flat)
    else:
        parsed = _parse_tags(text, flat)
    parsed.chosen = _dedupe(parsed.chosen)
    return parsed


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    pages: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


def paginate(items: Sequence[T], page: int, per_page: int) -> Page[T]:
    if per_page < 1:
        raise ValueError("per_page must be positive")
    total = len(items)
    pages = max(1, math.ceil(total / per_page))
    clamped = min(max(1, page), pages)
    start = (clamped - 1) * per_page
    return Page(
        items=list(items[start : start + per_page]),
        total=total,
        page=clamped,
        pages=pages,
        per_page=per_page,
    )
