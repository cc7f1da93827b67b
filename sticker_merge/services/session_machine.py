"""
Finite-state dialogue dispatcher for the sticker merge conversation.

Each stage has one transition function. A transition never mutates the incoming
``SessionState``; it returns the next state together with the replies to send.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Union

from . import messages
from .collaborators import CollaboratorError, NormalizationError, StickerPlatform, describe_error
from .executor import CreationExecutor
from .identifiers import normalize_identifier
from .models import (
    MAX_PER_DESTINATION,
    PAGE_SIZE,
    CollectionKind,
    Command,
    ForwardedItem,
    PageRequested,
    Reply,
    SelectionMode,
    SelectionModeChosen,
    SessionState,
    SourceCollection,
    Stage,
    TagCollectionMode,
    TextMessage,
)
from .naming import NameFinalizer, OwnerHandleCache, sanitize_short_name
from .planner import ChunkPlanner, items_for_refs
from .selection import parse_selection
from .summary import render_report, render_source_page
from .tag_resolution import resolve_tag_items

logger = logging.getLogger(__name__)

Event = Union[Command, TextMessage, ForwardedItem, SelectionModeChosen, PageRequested]

CMD_START = "start"
CMD_CANCEL = "cancel"
CMD_DONE = "done"
CMD_TAG_MODE = "tag_mode"
CMD_TAG_MODE_FULL = "tag_mode_full"
CMD_TAG_MODE_ITEMS = "tag_mode_items"
CMD_TAG_DONE = "tag_done"

TAG_MODE_COMMANDS = {
    CMD_TAG_MODE: TagCollectionMode.ITEMS,
    CMD_TAG_MODE_ITEMS: TagCollectionMode.ITEMS,
    CMD_TAG_MODE_FULL: TagCollectionMode.FULL_SETS,
}
KNOWN_COMMANDS = {CMD_START, CMD_CANCEL, CMD_DONE, CMD_TAG_DONE, *TAG_MODE_COMMANDS}


@dataclass
class CreationRequest:
    title: str
    raw_short_name: str
    uses_tag_path: bool


@dataclass
class Transition:
    state: SessionState
    replies: List[Reply] = field(default_factory=list)
    creation: Optional[CreationRequest] = None


def _say(state: SessionState, *texts: str) -> Transition:
    return Transition(state=state, replies=[Reply(text=text) for text in texts])


class SessionMachine:
    """Coordinates one user's dialogue: sources, selection, naming and creation."""

    def __init__(
        self,
        platform: StickerPlatform,
        *,
        owner_handle: Optional[OwnerHandleCache] = None,
        planner: Optional[ChunkPlanner] = None,
        executor: Optional[CreationExecutor] = None,
        max_per_destination: int = MAX_PER_DESTINATION,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._platform = platform
        self._owner_handle = owner_handle or OwnerHandleCache(platform.resolve_owner_handle)
        self._planner = planner or ChunkPlanner(NameFinalizer(self._owner_handle.get), max_per_destination)
        self._executor = executor or CreationExecutor(platform)
        self._page_size = page_size
        self._stage_handlers: Dict[Stage, Callable[[SessionState, Event], Transition]] = {
            Stage.IDLE: self._on_idle,
            Stage.AWAITING_SOURCES: self._on_awaiting_sources,
            Stage.AWAITING_TAGS: self._on_awaiting_tags,
            Stage.REVIEWING_SOURCES: self._on_reviewing_sources,
            Stage.AWAITING_SELECTION: self._on_awaiting_selection,
            Stage.CONFIRMING_CREATION: self._on_confirming_creation,
            Stage.CREATING: self._on_creating,
        }

    # ----------------------------- entry points --------------------------- #

    def handle(self, state: SessionState, event: Event) -> Transition:
        """Pure stage transition; creation is only requested, never run here."""
        if isinstance(event, Command):
            reset = self._handle_reset_command(event)
            if reset is not None:
                return reset
            if event.name not in KNOWN_COMMANDS:
                return _say(state, messages.UNKNOWN_COMMAND)
        transition = self._stage_handlers[state.stage](state, event)
        if transition.state.stage is not state.stage:
            logger.debug("Stage %s -> %s", state.stage.value, transition.state.stage.value)
        return transition

    def dispatch(
        self,
        state: SessionState,
        event: Event,
        owner: int,
        *,
        on_state: Optional[Callable[[SessionState], None]] = None,
        notify: Optional[Callable[[Reply], None]] = None,
    ) -> Transition:
        """
        Runs ``handle`` and, when the transition asks for it, the creation itself.

        ``on_state`` observes the intermediate ``creating`` state and ``notify`` receives
        replies that should reach the user before the (slow) creation starts.
        """
        transition = self.handle(state, event)
        if transition.creation is None:
            return transition

        replies = list(transition.replies)
        if on_state:
            on_state(transition.state)
        if notify:
            for reply in replies:
                notify(reply)
            replies = []
        replies.extend(self.create(transition.state, transition.creation, owner))
        return Transition(state=SessionState.initial(), replies=replies)

    def create(self, state: SessionState, request: CreationRequest, owner: int) -> List[Reply]:
        if request.uses_tag_path:
            items = list(state.tag_items)
            kind = CollectionKind.CUSTOM_EMOJI
        else:
            items = items_for_refs(state.chosen_refs, state.source_collections)
            kind = CollectionKind.REGULAR

        try:
            plans = self._planner.plan(items, request.title, request.raw_short_name, kind)
        except CollaboratorError as exc:
            logger.warning("Planning failed for owner %s: %s", owner, exc)
            return [Reply(text=messages.CREATION_FAILED.format(reason=describe_error(exc)))]

        results = self._executor.execute(owner, plans)
        return [Reply(text=render_report(results))]

    def render_sources(self, state: SessionState, page: int = 1) -> Reply:
        return render_source_page(state.source_collections, page, self._page_size)

    # ----------------------------- global commands ------------------------ #

    def _handle_reset_command(self, command: Command) -> Optional[Transition]:
        if command.name == CMD_CANCEL:
            return _say(SessionState.initial(), messages.CANCELLED)
        if command.name == CMD_START:
            return _say(replace(SessionState.initial(), stage=Stage.AWAITING_SOURCES), messages.WELCOME)
        if command.name in TAG_MODE_COMMANDS:
            mode = TAG_MODE_COMMANDS[command.name]
            state = replace(SessionState.initial(), stage=Stage.AWAITING_TAGS, tag_collection_mode=mode)
            text = messages.TAG_MODE_FULL if mode is TagCollectionMode.FULL_SETS else messages.TAG_MODE_ITEMS
            return _say(state, text)
        return None

    def _out_of_place(self, state: SessionState, event: Event) -> Transition:
        if isinstance(event, Command) and event.name == CMD_DONE:
            return _say(state, messages.DONE_OUT_OF_PLACE)
        if isinstance(event, Command) and event.name == CMD_TAG_DONE:
            return _say(state, messages.TAG_DONE_OUT_OF_PLACE)
        if isinstance(event, (SelectionModeChosen, PageRequested)):
            return _say(state, messages.MODE_OUT_OF_PLACE)
        return _say(state, messages.IDLE_HINT)

    # ----------------------------- stage handlers ------------------------- #

    def _on_idle(self, state: SessionState, event: Event) -> Transition:
        return self._out_of_place(state, event)

    def _on_awaiting_sources(self, state: SessionState, event: Event) -> Transition:
        if isinstance(event, Command) and event.name == CMD_DONE:
            if not state.source_inputs:
                return _say(state, messages.NO_SOURCES_YET)
            return self._resolve_sources(state)

        if isinstance(event, ForwardedItem):
            if not event.collection_id:
                return _say(state, messages.FORWARDED_WITHOUT_SET)
            identifier = normalize_identifier(None, forwarded_id=event.collection_id)
        elif isinstance(event, TextMessage):
            try:
                identifier = normalize_identifier(event.text)
            except NormalizationError:
                return _say(state, messages.SOURCE_UNRECOGNIZED)
        else:
            return self._out_of_place(state, event)

        updated = replace(state, source_inputs=state.source_inputs + (identifier,))
        return _say(updated, messages.SOURCE_ADDED.format(identifier=identifier))

    def _resolve_sources(self, state: SessionState) -> Transition:
        replies: List[Reply] = []
        loaded: List[SourceCollection] = []
        for identifier in state.source_inputs:
            if any(collection.identifier.lower() == identifier.lower() for collection in loaded):
                continue
            try:
                collection = self._platform.fetch_collection(identifier)
            except CollaboratorError as exc:
                logger.warning("Failed to load collection %s: %s", identifier, exc)
                replies.append(
                    Reply(text=messages.SOURCE_FETCH_FAILED.format(identifier=identifier, reason=describe_error(exc)))
                )
                continue
            if any(existing.identifier == collection.identifier for existing in loaded):
                continue
            loaded.append(collection)

        if not loaded:
            replies.append(Reply(text=messages.NO_SOURCES_RESOLVED))
            return Transition(state=SessionState.initial(), replies=replies)

        updated = replace(state, stage=Stage.REVIEWING_SOURCES, source_collections=tuple(loaded))
        replies.append(self.render_sources(updated, 1))
        return Transition(state=updated, replies=replies)

    def _on_awaiting_tags(self, state: SessionState, event: Event) -> Transition:
        if isinstance(event, Command) and event.name == CMD_TAG_DONE:
            if not state.collected_tag_ids:
                return _say(state, messages.NO_TAGS_YET)
            return self._resolve_tags(state)

        if not isinstance(event, TextMessage):
            return _say(state, messages.NO_TAGS_IN_MESSAGE)
        if not event.tag_ids:
            return _say(state, messages.NO_TAGS_IN_MESSAGE)

        collected = tuple(dict.fromkeys(state.collected_tag_ids + tuple(event.tag_ids)))
        added = len(collected) - len(state.collected_tag_ids)
        updated = replace(state, collected_tag_ids=collected)
        return _say(updated, messages.TAGS_ADDED.format(added=added, total=len(collected)))

    def _resolve_tags(self, state: SessionState) -> Transition:
        items, errors = resolve_tag_items(state.collected_tag_ids, state.tag_collection_mode, self._platform)
        replies: List[Reply] = []
        if errors:
            replies.append(Reply(text=messages.TAG_RESOLUTION_FAILED.format(errors="\n- ".join(errors))))

        if not items:
            # Unresolvable ids are dropped so the user can send replacements.
            replies.append(Reply(text=messages.NO_TAGS_YET))
            return Transition(state=replace(state, collected_tag_ids=()), replies=replies)

        updated = replace(state, stage=Stage.CONFIRMING_CREATION, tag_items=tuple(items))
        replies.append(Reply(text=messages.TAGS_COLLECTED.format(count=len(items))))
        return Transition(state=updated, replies=replies)

    def _on_reviewing_sources(self, state: SessionState, event: Event) -> Transition:
        if isinstance(event, SelectionModeChosen):
            return self._choose_mode(state, event.mode)
        if isinstance(event, PageRequested):
            return Transition(state=state, replies=[self.render_sources(state, event.page)])
        if isinstance(event, Command):
            return self._out_of_place(state, event)
        return _say(state, messages.TEXT_OUT_OF_PLACE)

    def _choose_mode(self, state: SessionState, mode: SelectionMode) -> Transition:
        mode = SelectionMode(mode)
        updated = replace(state, stage=Stage.AWAITING_SELECTION, selection_mode=mode)
        text = messages.MODE_RANGES_CHOSEN if mode is SelectionMode.RANGES else messages.MODE_TAGS_CHOSEN
        return _say(updated, text)

    def _on_awaiting_selection(self, state: SessionState, event: Event) -> Transition:
        if isinstance(event, SelectionModeChosen):
            return self._choose_mode(state, event.mode)
        if isinstance(event, PageRequested):
            return Transition(state=state, replies=[self.render_sources(state, event.page)])
        if not isinstance(event, TextMessage):
            return self._out_of_place(state, event)

        parsed = parse_selection(event.text, state.source_collections, state.selection_mode)
        queried = replace(state, selection_query=event.text)
        if parsed.errors:
            return _say(queried, messages.SELECTION_ERRORS.format(errors="\n- ".join(parsed.errors)))
        if not parsed.chosen:
            return _say(queried, messages.SELECTION_EMPTY)

        updated = replace(queried, stage=Stage.CONFIRMING_CREATION, chosen_refs=tuple(parsed.chosen))
        return _say(updated, messages.SELECTION_ACCEPTED.format(count=len(parsed.chosen)))

    def _on_confirming_creation(self, state: SessionState, event: Event) -> Transition:
        if not isinstance(event, TextMessage):
            return self._out_of_place(state, event)

        text = event.text.strip()
        if state.desired_title is None:
            if not text:
                return _say(state, messages.TITLE_EMPTY)
            return _say(replace(state, desired_title=text), messages.SHORT_NAME_PROMPT)

        if not sanitize_short_name(text):
            return _say(state, messages.SHORT_NAME_INVALID)

        updated = replace(state, stage=Stage.CREATING, desired_short_name=text)
        request = CreationRequest(
            title=state.desired_title,
            raw_short_name=text,
            uses_tag_path=state.uses_tag_path,
        )
        count = len(state.tag_items) if state.uses_tag_path else len(state.chosen_refs)
        return Transition(
            state=updated,
            replies=[Reply(text=messages.CREATION_STARTED.format(count=count))],
            creation=request,
        )

    def _on_creating(self, state: SessionState, event: Event) -> Transition:
        return _say(state, messages.CREATION_IN_PROGRESS)
