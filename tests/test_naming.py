import threading

import pytest

from sticker_merge.services.collaborators import CollaboratorError, OwnerHandleError
from sticker_merge.services.naming import NameFinalizer, OwnerHandleCache, sanitize_short_name


@pytest.fixture
def finalizer():
    return NameFinalizer(lambda: "bot")


def test_first_chunk_gets_owner_suffix(finalizer):
    assert finalizer.finalize("mypack", 0) == "mypack_by_bot"


def test_later_chunks_get_index_before_suffix(finalizer):
    assert finalizer.finalize("mypack", 1) == "mypack_2_by_bot"
    assert finalizer.finalize("mypack", 9) == "mypack_10_by_bot"


def test_invalid_characters_are_stripped(finalizer):
    assert finalizer.finalize("  my pack-2024!  ", 0) == "mypack2024_by_bot"


def test_finalizing_a_finalized_name_is_idempotent(finalizer):
    once = finalizer.finalize("mypack", 0)

    assert finalizer.finalize(once, 0) == once


def test_existing_suffix_is_kept_for_first_chunk_case_insensitively(finalizer):
    assert finalizer.finalize("Pack_BY_BOT", 0) == "Pack_BY_BOT"


def test_existing_suffix_is_replaced_for_later_chunks(finalizer):
    assert finalizer.finalize("mypack_by_bot", 1) == "mypack_2_by_bot"


def test_result_never_exceeds_64_characters(finalizer):
    name = finalizer.finalize("a" * 100, 3)

    assert len(name) == 64
    assert name.endswith("_by_bot")


def test_owner_handle_is_lowercased():
    assert NameFinalizer(lambda: "MergeBot").finalize("pack") == "pack_by_mergebot"


def test_sanitize_short_name_truncates_to_64():
    assert sanitize_short_name("x" * 80) == "x" * 64
    assert sanitize_short_name("!!!") == ""


def test_owner_handle_is_resolved_once_for_concurrent_callers():
    release = threading.Event()
    calls = []

    def loader():
        calls.append(1)
        release.wait(timeout=2)
        return "bot"

    cache = OwnerHandleCache(loader)
    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get())) for _ in range(5)]
    for thread in threads:
        thread.start()
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert results == ["bot"] * 5
    assert len(calls) == 1


def test_owner_handle_failures_are_not_cached():
    attempts = []

    def loader():
        attempts.append(1)
        if len(attempts) == 1:
            raise CollaboratorError("getMe failed", description="Bad Gateway")
        return "bot"

    cache = OwnerHandleCache(loader)

    with pytest.raises(OwnerHandleError):
        cache.get()
    assert cache.get() == "bot"
    assert cache.get() == "bot"
    assert len(attempts) == 2
