import pytest

from conftest import FakePlatform, make_collection
from sticker_merge.services.models import (
    ChosenRef,
    CollectionKind,
    Command,
    ForwardedItem,
    ItemFormat,
    PageRequested,
    SelectionMode,
    SelectionModeChosen,
    SessionState,
    Stage,
    TagCollectionMode,
    TextMessage,
)
from sticker_merge.services.session_machine import SessionMachine

OWNER = 42


def run(machine, state, *events):
    """Feed events one by one, returning the final transition and every reply text."""
    texts = []
    transition = None
    for event in events:
        transition = machine.dispatch(state, event, OWNER)
        texts.extend(reply.text for reply in transition.replies)
        state = transition.state
    return transition, texts


@pytest.fixture
def machine(platform):
    return SessionMachine(platform)


def test_merge_two_sets_end_to_end(machine, platform):
    transition, texts = run(
        machine,
        SessionState.initial(),
        Command("start"),
        TextMessage("t.me/addstickers/a"),
        TextMessage("t.me/addstickers/b"),
        Command("done"),
        SelectionModeChosen(SelectionMode.RANGES),
        TextMessage("2-4"),
        TextMessage("Pack"),
        TextMessage("mypack"),
    )

    assert transition.state == SessionState.initial()
    assert platform.created == {"mypack_by_bot": ["a-1", "a-2", "b-0"]}
    assert platform.titles == {"mypack_by_bot": "Pack"}
    assert platform.kinds["mypack_by_bot"] is CollectionKind.REGULAR
    assert texts[-1] == "Pack [static]: added 3/3\nt.me/addstickers/mypack_by_bot"


def test_stage_progression_and_accumulated_state(machine):
    state = SessionState.initial()

    state = machine.handle(state, Command("start")).state
    assert state.stage is Stage.AWAITING_SOURCES

    state = machine.handle(state, TextMessage("t.me/addstickers/a")).state
    state = machine.handle(state, ForwardedItem("a")).state
    assert state.source_inputs == ("a", "a")

    transition = machine.handle(state, Command("done"))
    state = transition.state
    assert state.stage is Stage.REVIEWING_SOURCES
    assert [collection.identifier for collection in state.source_collections] == ["a"]
    assert transition.replies[-1].text.startswith("Total stickers: 3. Page 1/1.")

    state = machine.handle(state, SelectionModeChosen(SelectionMode.TAGS)).state
    assert state.stage is Stage.AWAITING_SELECTION
    assert state.selection_mode is SelectionMode.TAGS

    state = machine.handle(state, SelectionModeChosen(SelectionMode.RANGES)).state
    assert state.selection_mode is SelectionMode.RANGES

    state = machine.handle(state, TextMessage("1,3")).state
    assert state.stage is Stage.CONFIRMING_CREATION
    assert state.chosen_refs == (ChosenRef("a", 0), ChosenRef("a", 2))
    assert state.selection_query == "1,3"

    state = machine.handle(state, TextMessage("  My Title ")).state
    assert state.desired_title == "My Title"

    transition = machine.handle(state, TextMessage("short"))
    assert transition.state.stage is Stage.CREATING
    assert transition.creation.raw_short_name == "short"
    assert transition.creation.title == "My Title"


def test_transitions_do_not_mutate_the_incoming_state(machine):
    start = machine.handle(SessionState.initial(), Command("start")).state

    after = machine.handle(start, TextMessage("cats_pack")).state

    assert start.source_inputs == ()
    assert after.source_inputs == ("cats_pack",)


def test_unrecognized_source_keeps_stage_and_inputs(machine):
    state = machine.handle(SessionState.initial(), Command("start")).state

    transition = machine.handle(state, TextMessage("no way!"))

    assert transition.state == state
    assert "does not look like a set name" in transition.replies[0].text


def test_forwarded_item_without_set_is_rejected(machine):
    state = machine.handle(SessionState.initial(), Command("start")).state

    transition = machine.handle(state, ForwardedItem(None))

    assert transition.state == state
    assert "no public set name" in transition.replies[0].text


def test_done_requires_at_least_one_source(machine):
    state = machine.handle(SessionState.initial(), Command("start")).state

    transition = machine.handle(state, Command("done"))

    assert transition.state.stage is Stage.AWAITING_SOURCES
    assert transition.replies[0].text == "Add at least one set first."


def test_partial_resolution_reports_each_failure(machine):
    events = (Command("start"), TextMessage("missing"), TextMessage("t.me/addstickers/b"))
    state = run(machine, SessionState.initial(), *events)[0].state

    transition = machine.handle(state, Command("done"))

    assert transition.state.stage is Stage.REVIEWING_SOURCES
    assert [collection.identifier for collection in transition.state.source_collections] == ["b"]
    assert transition.replies[0].text.startswith("Could not load set missing: STICKERSET_INVALID")


def test_no_resolved_sources_resets_the_session(machine):
    state = run(machine, SessionState.initial(), Command("start"), TextMessage("missing"))[0].state

    transition = machine.handle(state, Command("done"))

    assert transition.state == SessionState.initial()
    assert transition.replies[-1].text == "Could not load any of the sets. Use /start to try again."


@pytest.mark.parametrize(
    "events",
    [
        [Command("start")],
        [Command("start"), TextMessage("t.me/addstickers/a"), Command("done")],
        [Command("tag_mode"), TextMessage("x", tag_ids=("t1",))],
    ],
)
def test_cancel_resets_from_any_stage(machine, events):
    transition, _ = run(machine, SessionState.initial(), *events)

    cancelled = machine.handle(transition.state, Command("cancel"))

    assert cancelled.state == SessionState.initial()
    assert cancelled.replies[0].text.startswith("Reset.")


def test_selection_errors_are_reported_together_and_do_not_advance(machine):
    transition, _ = run(
        machine,
        SessionState.initial(),
        Command("start"),
        TextMessage("t.me/addstickers/a"),
        Command("done"),
        SelectionModeChosen(SelectionMode.RANGES),
    )

    failed = machine.handle(transition.state, TextMessage("x, 3-1"))

    assert failed.state.stage is Stage.AWAITING_SELECTION
    assert failed.replies[0].text == "Errors:\n- Invalid range token: x\n- Invalid bounds: 3-1"


def test_selection_matching_nothing_is_refused(machine):
    transition, _ = run(
        machine,
        SessionState.initial(),
        Command("start"),
        TextMessage("t.me/addstickers/a"),
        Command("done"),
        SelectionModeChosen(SelectionMode.RANGES),
    )

    refused = machine.handle(transition.state, TextMessage("50-60"))

    assert refused.state.stage is Stage.AWAITING_SELECTION
    assert refused.state.chosen_refs == ()


def test_page_navigation_renders_without_changing_state():
    platform = FakePlatform([make_collection("big", 45)])
    machine = SessionMachine(platform)
    transition, _ = run(machine, SessionState.initial(), Command("start"), TextMessage("big"), Command("done"))

    paged = machine.handle(transition.state, PageRequested(3))

    assert paged.state == transition.state
    assert paged.replies[0].text.startswith("Total stickers: 45. Page 3/3.\n41. big #41")


def test_invalid_short_name_is_refused(machine):
    transition, _ = run(
        machine,
        SessionState.initial(),
        Command("start"),
        TextMessage("t.me/addstickers/a"),
        Command("done"),
        SelectionModeChosen(SelectionMode.RANGES),
        TextMessage("1"),
        TextMessage("Title"),
    )

    refused = machine.handle(transition.state, TextMessage("!!!"))

    assert refused.state == transition.state
    assert refused.creation is None


def test_owner_handle_failure_is_reported_and_session_resets(two_static_sets):
    platform = FakePlatform(two_static_sets, owner_handle=None)
    machine = SessionMachine(platform)

    transition, texts = run(
        machine,
        SessionState.initial(),
        Command("start"),
        TextMessage("t.me/addstickers/a"),
        Command("done"),
        SelectionModeChosen(SelectionMode.RANGES),
        TextMessage("1-3"),
        TextMessage("Pack"),
        TextMessage("mypack"),
    )

    assert transition.state == SessionState.initial()
    assert texts[-1] == "Could not create the sets: Unauthorized"
    assert platform.created == {}


def test_dispatch_reports_creating_state_and_notifies_before_creation(machine, platform):
    transition, _ = run(
        machine,
        SessionState.initial(),
        Command("start"),
        TextMessage("t.me/addstickers/a"),
        Command("done"),
        SelectionModeChosen(SelectionMode.RANGES),
        TextMessage("1-3"),
        TextMessage("Pack"),
    )
    seen_states = []
    notified = []

    final = machine.dispatch(
        transition.state,
        TextMessage("mypack"),
        OWNER,
        on_state=seen_states.append,
        notify=lambda reply: notified.append((reply.text, len(platform.created))),
    )

    assert [state.stage for state in seen_states] == [Stage.CREATING]
    assert notified == [("Creating sets from 3 item(s)...", 0)]
    assert [reply.text for reply in final.replies] == ["Pack [static]: added 3/3\nt.me/addstickers/mypack_by_bot"]
    assert final.state == SessionState.initial()


def test_tag_path_creates_custom_emoji_sets():
    emoji_set = make_collection("emoji_set", 3, ItemFormat.STATIC, tags=["😀", "😂", "🐱"])
    platform = FakePlatform([emoji_set], tags={"t1": emoji_set.items[1]})
    machine = SessionMachine(platform)

    state = machine.handle(SessionState.initial(), Command("tag_mode_full")).state
    assert state.stage is Stage.AWAITING_TAGS
    assert state.tag_collection_mode is TagCollectionMode.FULL_SETS

    hint = machine.handle(state, TextMessage("no emoji here"))
    assert hint.state == state

    added = machine.handle(state, TextMessage("look", tag_ids=("t1", "t1")))
    assert added.state.collected_tag_ids == ("t1",)
    assert added.replies[0].text == "Emoji added: +1. Total: 1. Send more or /tag_done."

    collected = machine.handle(added.state, Command("tag_done"))
    assert collected.state.stage is Stage.CONFIRMING_CREATION
    assert [item.content_id for item in collected.state.tag_items] == ["emoji_set-0", "emoji_set-1", "emoji_set-2"]

    final, texts = run(machine, collected.state, TextMessage("Emoji"), TextMessage("emo"))

    assert platform.created == {"emo_by_bot": ["emoji_set-0", "emoji_set-1", "emoji_set-2"]}
    assert platform.kinds["emo_by_bot"] is CollectionKind.CUSTOM_EMOJI
    assert texts[-1] == "Emoji [static]: added 3/3\nt.me/addemoji/emo_by_bot"
    assert final.state == SessionState.initial()


def test_tag_done_requires_collected_tags(machine):
    state = machine.handle(SessionState.initial(), Command("tag_mode")).state

    transition = machine.handle(state, Command("tag_done"))

    assert transition.state == state
    assert transition.replies[0].text.startswith("No emoji collected yet.")


def test_tag_done_with_only_unresolvable_tags_stays_collecting(machine):
    state = machine.handle(SessionState.initial(), Command("tag_mode_items")).state
    state = machine.handle(state, TextMessage("x", tag_ids=("ghost",))).state

    transition = machine.handle(state, Command("tag_done"))

    assert transition.state.stage is Stage.AWAITING_TAGS
    assert transition.state.collected_tag_ids == ()
    assert transition.replies[0].text.startswith("Could not resolve some emoji:\n- ghost:")


def test_commands_out_of_place_leave_state_untouched(machine):
    idle = SessionState.initial()

    for event in (Command("done"), Command("tag_done"), TextMessage("hi"), PageRequested(2), Command("nope")):
        assert machine.handle(idle, event).state == idle
