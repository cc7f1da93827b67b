"""
Text rendering for the source listing and the final creation report.
"""
from __future__ import annotations

from typing import List, Sequence

from . import messages
from .models import PAGE_SIZE, Button, ChunkResult, CollectionKind, Reply, SelectionMode, SourceCollection
from .selection import Page, flatten, paginate

PAGE_CALLBACK_PREFIX = "page:"
MODE_CALLBACK_PREFIX = "mode:"


def source_labels(collections: Sequence[SourceCollection]) -> List[str]:
    labels: List[str] = []
    for collection, index, item in flatten(collections):
        labels.append(f"{collection.identifier} #{index + 1} {item.tag or ''}".strip())
    return labels


def _keyboard(page: Page[str]) -> List[List[Button]]:
    navigation: List[Button] = []
    if page.has_previous:
        navigation.append(Button(messages.PREVIOUS_PAGE, f"{PAGE_CALLBACK_PREFIX}{page.page - 1}"))
    if page.has_next:
        navigation.append(Button(messages.NEXT_PAGE, f"{PAGE_CALLBACK_PREFIX}{page.page + 1}"))
    modes = [
        Button(messages.MODE_RANGES_BUTTON, f"{MODE_CALLBACK_PREFIX}{SelectionMode.RANGES.value}"),
        Button(messages.MODE_TAGS_BUTTON, f"{MODE_CALLBACK_PREFIX}{SelectionMode.TAGS.value}"),
    ]
    return [row for row in (navigation, modes) if row]


def render_source_page(
    collections: Sequence[SourceCollection],
    page: int = 1,
    per_page: int = PAGE_SIZE,
) -> Reply:
    current = paginate(source_labels(collections), page, per_page)
    body = "\n".join(f"{current.offset + number}. {label}" for number, label in enumerate(current.items, start=1))
    text = messages.SOURCES_SUMMARY.format(
        total=current.total,
        page=current.page,
        pages=current.pages,
        body=body or messages.EMPTY_LISTING,
    )
    return Reply(text=text, buttons=_keyboard(current))


def destination_link(result: ChunkResult) -> str:
    template = messages.EMOJI_LINK if result.kind is CollectionKind.CUSTOM_EMOJI else messages.STICKER_LINK
    return template.format(short_name=result.short_name)


def render_result(result: ChunkResult) -> str:
    skipped = messages.REPORT_SKIPPED.format(count=len(result.skipped)) if result.skipped else ""
    text = messages.REPORT_LINE.format(
        title=result.title,
        format=result.format.value,
        added=result.added,
        total=result.total,
        skipped=skipped,
        link=destination_link(result),
    )
    if result.error:
        text = f"{text}\n{messages.REPORT_CREATE_FAILED.format(reason=result.error)}"
    return text


def render_report(results: Sequence[ChunkResult]) -> str:
    if not results:
        return messages.NOTHING_CREATED
    return "\n\n".join(render_result(result) for result in results)
