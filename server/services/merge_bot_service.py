from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from sticker_merge.services.models import Reply
from sticker_merge.services.session_machine import SessionMachine, Transition
from sticker_merge.telegram.bot_api_client import TelegramApiError, TelegramBotClient
from server.data_access.session_repository import SessionRepository

from .update_router import RoutedUpdate, route_update

logger = logging.getLogger(__name__)


class MergeBotService:
    """
    Thin adaptor that exposes the merge ``SessionMachine`` to the server layer.

    Owns per-user session storage and makes sure one user's events are handled one at
    a time, the way a chat-bot framework would.
    """

    def __init__(
        self,
        client: TelegramBotClient,
        machine: Optional[SessionMachine] = None,
        repository: Optional[SessionRepository] = None,
    ) -> None:
        self._client = client
        self._machine = machine or SessionMachine(client)
        self._repository = repository or SessionRepository()

    @property
    def client(self) -> TelegramBotClient:
        return self._client

    @property
    def repository(self) -> SessionRepository:
        return self._repository

    def handle_update(self, update: Mapping[str, Any]) -> bool:
        routed = route_update(update)
        if routed is None:
            logger.debug("Ignoring update %s", update.get("update_id"))
            return False

        if routed.callback_query_id:
            self._answer_callback(routed.callback_query_id)
        self.handle_event(routed)
        return True

    def handle_event(self, routed: RoutedUpdate) -> Transition:
        user_id = routed.user_id
        with self._repository.exclusive(user_id):
            state = self._repository.get(user_id)
            try:
                transition = self._machine.dispatch(
                    state,
                    routed.event,
                    owner=user_id,
                    on_state=lambda pending: self._repository.save(user_id, pending),
                    notify=lambda reply: self._send(routed.chat_id, reply),
                )
            except Exception:
                self._repository.reset(user_id)
                raise
            self._repository.save(user_id, transition.state)
            for reply in transition.replies:
                self._send(routed.chat_id, reply)
        return transition

    def session_snapshot(self, user_id: int) -> Dict[str, object]:
        state = self._repository.get(user_id)
        return {
            "user_id": user_id,
            "stage": state.stage.value,
            "source_inputs": list(state.source_inputs),
            "source_collections": [collection.identifier for collection in state.source_collections],
            "total_items": state.total_source_items(),
            "selection_mode": state.selection_mode.value,
            "chosen_count": len(state.chosen_refs),
            "collected_tag_count": len(state.collected_tag_ids),
            "tag_collection_mode": state.tag_collection_mode.value,
            "desired_title": state.desired_title,
        }

    def _send(self, chat_id: int, reply: Reply) -> None:
        try:
            self._client.send_message(chat_id, reply.text, reply.buttons)
        except TelegramApiError as exc:
            logger.warning("Failed to deliver reply to chat %s: %s", chat_id, exc)

    def _answer_callback(self, callback_query_id: str) -> None:
        try:
            self._client.answer_callback_query(callback_query_id)
        except TelegramApiError as exc:
            logger.warning("Failed to answer callback %s: %s", callback_query_id, exc)


def build_bot_service(config: Mapping[str, object]) -> MergeBotService:
    client = TelegramBotClient(
        token=str(config["BOT_TOKEN"]),
        api_url=str(config["TELEGRAM_API_URL"]),
        file_url=str(config["TELEGRAM_FILE_URL"]),
        timeout=int(config["REQUEST_TIMEOUT"]),
        default_tag=str(config["DEFAULT_TAG"]),
    )
    machine = SessionMachine(
        client,
        max_per_destination=int(config["MAX_PER_DESTINATION"]),
        page_size=int(config["PAGE_SIZE"]),
    )
    return MergeBotService(client, machine=machine)
