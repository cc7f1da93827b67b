"""
Maps raw Telegram ``Update`` payloads onto dialogue events.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from sticker_merge.services.models import (
    Command,
    ForwardedItem,
    PageRequested,
    SelectionMode,
    SelectionModeChosen,
    TextMessage,
)
from sticker_merge.services.session_machine import Event
from sticker_merge.services.summary import MODE_CALLBACK_PREFIX, PAGE_CALLBACK_PREFIX


@dataclass
class RoutedUpdate:
    user_id: int
    chat_id: int
    event: Event
    callback_query_id: Optional[str] = None


def custom_emoji_ids(entities: Optional[Iterable[Mapping[str, Any]]]) -> List[str]:
    return [
        entity["custom_emoji_id"]
        for entity in entities or []
        if entity.get("type") == "custom_emoji" and entity.get("custom_emoji_id")
    ]


def parse_command(text: str) -> Optional[Command]:
    """``/tag_done@merge_bot extra`` -> ``Command("tag_done")``."""
    if not text.startswith("/"):
        return None
    head = text[1:].split(maxsplit=1)[0] if len(text) > 1 else ""
    name = head.split("@", 1)[0].lower()
    if not name:
        return None
    return Command(name=name)


def parse_callback(data: str) -> Optional[Event]:
    if data.startswith(MODE_CALLBACK_PREFIX):
        try:
            return SelectionModeChosen(mode=SelectionMode(data[len(MODE_CALLBACK_PREFIX) :]))
        except ValueError:
            return None
    if data.startswith(PAGE_CALLBACK_PREFIX):
        try:
            return PageRequested(page=int(data[len(PAGE_CALLBACK_PREFIX) :]))
        except ValueError:
            return None
    return None


def _message_event(message: Mapping[str, Any]) -> Optional[Event]:
    sticker = message.get("sticker")
    if sticker is not None:
        return ForwardedItem(collection_id=sticker.get("set_name") or None)

    text = message.get("text")
    entities = message.get("entities")
    if text is None:
        text = message.get("caption")
        entities = message.get("caption_entities")
    if text is None:
        return None

    text = text.strip()
    command = parse_command(text)
    if command is not None:
        return command
    return TextMessage(text=text, tag_ids=tuple(custom_emoji_ids(entities)))


def route_update(update: Mapping[str, Any]) -> Optional[RoutedUpdate]:
    """Returns ``None`` for updates the dialogue does not care about."""
    callback = update.get("callback_query")
    if callback:
        event = parse_callback(callback.get("data") or "")
        user = callback.get("from") or {}
        chat = ((callback.get("message") or {}).get("chat")) or {}
        if event is None or "id" not in user:
            return None
        return RoutedUpdate(
            user_id=int(user["id"]),
            chat_id=int(chat.get("id", user["id"])),
            event=event,
            callback_query_id=callback.get("id"),
        )

    message = update.get("message")
    if not message:
        return None
    user = message.get("from") or {}
    chat = message.get("chat") or {}
    if "id" not in user:
        return None
    event = _message_event(message)
    if event is None:
        return None
    return RoutedUpdate(user_id=int(user["id"]), chat_id=int(chat.get("id", user["id"])), event=event)
