# sticker_merge/telegram/bot_api_client.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import requests
from requests import Response

from sticker_merge.services.collaborators import (
    CollaboratorError,
    CollectionNotFound,
    OwnerHandleError,
    TagNotFound,
)
from sticker_merge.services.models import Button, CollectionKind, Item, ItemFormat, SourceCollection

logger = logging.getLogger(__name__)


# --------------------------
# Endpoints
# --------------------------
_DEFAULT_API_URL = "https://api.telegram.org"
_DEFAULT_FILE_URL = "https://api.telegram.org/file"

MESSAGE_LIMIT = 4096
DEFAULT_TAG = "⭐"

_UPLOAD_FILENAMES = {
    ItemFormat.STATIC: "sticker.webp",
    ItemFormat.ANIMATED: "sticker.tgs",
    ItemFormat.VIDEO: "sticker.webm",
}
_MISSING_SET_MARKERS = ("STICKERSET_INVALID", "STICKERSET_NOT_FOUND")


class TelegramApiError(CollaboratorError):
    code = "telegram_api_error"

    def __init__(
        self,
        message: str,
        *,
        method: str,
        status_code: Optional[int] = None,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(message, description=description, details={"method": method, "status_code": status_code})
        self.method = method
        self.status_code = status_code


def _default_session_factory() -> requests.Session:
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(max_retries=0)  # failures surface to the dialogue
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def sticker_format(sticker: Mapping[str, Any]) -> ItemFormat:
    if sticker.get("is_animated"):
        return ItemFormat.ANIMATED
    if sticker.get("is_video"):
        return ItemFormat.VIDEO
    return ItemFormat.STATIC


def sticker_to_item(sticker: Mapping[str, Any], index: int, collection_id: Optional[str] = None) -> Item:
    return Item(
        content_id=sticker["file_id"],
        format=sticker_format(sticker),
        source_index=index,
        tag=sticker.get("emoji") or None,
        collection_id=collection_id or sticker.get("set_name") or None,
    )


def inline_keyboard(buttons: Sequence[Sequence[Button]]) -> Dict[str, Any]:
    return {
        "inline_keyboard": [
            [{"text": button.text, "callback_data": button.callback_data} for button in row] for row in buttons
        ]
    }


def split_message(text: str, limit: int = MESSAGE_LIMIT) -> List[str]:
    """Split on line breaks, cutting overlong lines, so each part fits one message."""
    if len(text) <= limit:
        return [text]
    parts: List[str] = []
    current = ""
    for line in text.split("\n"):
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            parts.append(current)
        while len(line) > limit:
            parts.append(line[:limit])
            line = line[limit:]
        current = line
    if current:
        parts.append(current)
    return parts


# --------------------------
# Bot API client
# --------------------------
@dataclass
class TelegramBotClient:
    """
    Synchronous Telegram Bot API client.

    Implements the ``StickerPlatform`` collaborator used by the merge conversation and
    the few messaging calls the hosting layer needs. Every call is issued once; there
    are no automatic retries.
    """

    token: str
    api_url: str = _DEFAULT_API_URL
    file_url: str = _DEFAULT_FILE_URL
    timeout: int = 60
    default_tag: str = DEFAULT_TAG
    session_factory: Callable[[], requests.Session] = _default_session_factory
    _session: Optional[requests.Session] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("A bot token is required (set BOT_TOKEN).")

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    # ----------------------------- transport ------------------------------ #

    def call(
        self,
        method: str,
        payload: Optional[Mapping[str, Any]] = None,
        *,
        files: Optional[Mapping[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> Any:
        url = f"{self.api_url}/bot{self.token}/{method}"
        data = {key: self._encode(value) for key, value in (payload or {}).items() if value is not None}
        try:
            resp: Response = self.session.post(url, data=data, files=files, timeout=timeout or self.timeout)
        except requests.RequestException as exc:
            logger.warning("Telegram HTTP error on %s: %s", method, exc)
            raise TelegramApiError(f"Telegram request {method} failed", method=method, description=str(exc)) from exc

        try:
            body = resp.json()
        except ValueError:
            body = {"ok": False, "description": resp.text}

        if resp.status_code // 100 == 2 and body.get("ok"):
            return body.get("result")

        description = body.get("description") or f"HTTP {resp.status_code}"
        raise TelegramApiError(
            f"Telegram API error on {method}: {description}",
            method=method,
            status_code=resp.status_code,
            description=description,
        )

    @staticmethod
    def _encode(value: Any) -> Any:
        if isinstance(value, (dict, list, tuple)):
            return json.dumps(value, ensure_ascii=False)
        if isinstance(value, bool):
            return "true" if value else "false"
        return value

    # ----------------------------- collaborator --------------------------- #

    def fetch_collection(self, identifier: str) -> SourceCollection:
        try:
            result = self.call("getStickerSet", {"name": identifier})
        except TelegramApiError as exc:
            if any(marker in (exc.description or "") for marker in _MISSING_SET_MARKERS):
                raise CollectionNotFound(f"Sticker set {identifier} not found", description=exc.description) from exc
            raise
        name = result.get("name") or identifier
        items = tuple(sticker_to_item(sticker, index, name) for index, sticker in enumerate(result.get("stickers", [])))
        return SourceCollection(identifier=name, items=items, title=result.get("title"))

    def resolve_tag_content(self, tag_id: str) -> Item:
        result = self.call("getCustomEmojiStickers", {"custom_emoji_ids": [tag_id]}) or []
        if not result:
            raise TagNotFound(f"Custom emoji {tag_id} not found")
        return sticker_to_item(result[0], 0)

    def download_content(self, content_id: str) -> bytes:
        file_info = self.call("getFile", {"file_id": content_id})
        file_path = (file_info or {}).get("file_path")
        if not file_path:
            raise TelegramApiError("File has no download path", method="getFile", description="file_path missing")
        url = f"{self.file_url}/bot{self.token}/{file_path}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TelegramApiError("File download failed", method="download", description=str(exc)) from exc
        if resp.status_code // 100 != 2:
            raise TelegramApiError(
                f"Failed to download file: {resp.status_code}",
                method="download",
                status_code=resp.status_code,
                description=f"download returned HTTP {resp.status_code}",
            )
        return resp.content

    def upload_content(self, owner: int, data: bytes, item_format: ItemFormat) -> str:
        item_format = ItemFormat(item_format)
        result = self.call(
            "uploadStickerFile",
            {"user_id": owner, "sticker_format": item_format.value},
            files={"sticker": (_UPLOAD_FILENAMES[item_format], data)},
        )
        return result["file_id"]

    def create_collection(
        self,
        owner: int,
        short_name: str,
        title: str,
        first_content_id: str,
        first_item: Item,
        kind: CollectionKind,
    ) -> None:
        self.call(
            "createNewStickerSet",
            {
                "user_id": owner,
                "name": short_name,
                "title": title,
                "sticker_type": CollectionKind(kind).value,
                "stickers": [self._input_sticker(first_content_id, first_item)],
            },
        )

    def append_item(self, owner: int, short_name: str, content_id: str, item: Item) -> None:
        self.call(
            "addStickerToSet",
            {"user_id": owner, "name": short_name, "sticker": self._input_sticker(content_id, item)},
        )

    def resolve_owner_handle(self) -> str:
        try:
            me = self.call("getMe")
        except TelegramApiError as exc:
            raise OwnerHandleError("Unable to resolve bot username", description=exc.description) from exc
        username = (me or {}).get("username")
        if not username:
            raise OwnerHandleError("Bot account has no username")
        return username

    def _input_sticker(self, content_id: str, item: Item) -> Dict[str, Any]:
        return {
            "sticker": content_id,
            "format": item.format.value,
            "emoji_list": [item.tag or self.default_tag],
        }

    # ----------------------------- messaging ------------------------------ #

    def send_message(self, chat_id: int, text: str, buttons: Sequence[Sequence[Button]] = ()) -> None:
        parts = split_message(text)
        for position, part in enumerate(parts):
            payload: Dict[str, Any] = {"chat_id": chat_id, "text": part}
            if buttons and position == len(parts) - 1:
                payload["reply_markup"] = inline_keyboard(buttons)
            self.call("sendMessage", payload)

    def answer_callback_query(self, callback_query_id: str) -> None:
        self.call("answerCallbackQuery", {"callback_query_id": callback_query_id})

    def get_updates(self, offset: Optional[int] = None, timeout: int = 50) -> List[Dict[str, Any]]:
        payload = {"offset": offset, "timeout": timeout, "allowed_updates": ["message", "callback_query"]}
        return self.call("getUpdates", payload, timeout=timeout + 10) or []

    def set_webhook(self, url: str, secret_token: Optional[str] = None) -> None:
        self.call("setWebhook", {"url": url, "secret_token": secret_token})
