import pytest

from conftest import make_collection
from sticker_merge.services.models import ChosenRef, SelectionMode
from sticker_merge.services.selection import paginate, parse_selection


def test_ranges_span_collections_in_flattened_order(two_static_sets):
    parsed = parse_selection("2-4", two_static_sets, SelectionMode.RANGES)

    assert parsed.errors == []
    assert parsed.chosen == [ChosenRef("a", 1), ChosenRef("a", 2), ChosenRef("b", 0)]


@pytest.mark.parametrize(
    "query, expected",
    [
        ("1-6", 6),
        ("5-100", 2),
        ("7-9", 0),
        ("6", 1),
        ("1,3 5", 3),
    ],
)
def test_ranges_are_clipped_to_available_items(two_static_sets, query, expected):
    parsed = parse_selection(query, two_static_sets, SelectionMode.RANGES)

    assert parsed.errors == []
    assert len(parsed.chosen) == expected


def test_invalid_tokens_are_reported_together_without_aborting(two_static_sets):
    parsed = parse_selection("abc, 0-2, 5-3, 1", two_static_sets, SelectionMode.RANGES)

    assert parsed.errors == ["Invalid range token: abc", "Invalid bounds: 0-2", "Invalid bounds: 5-3"]
    assert parsed.chosen == [ChosenRef("a", 0)]


def test_empty_range_query_is_an_error(two_static_sets):
    parsed = parse_selection(" ,  ", two_static_sets, SelectionMode.RANGES)

    assert parsed.errors
    assert parsed.chosen == []


def test_overlapping_ranges_are_deduplicated_in_first_seen_order(two_static_sets):
    parsed = parse_selection("4, 1-3, 2-5", two_static_sets, SelectionMode.RANGES)

    assert [ref.key() for ref in parsed.chosen] == [("b", 0), ("a", 0), ("a", 1), ("a", 2), ("b", 1)]


def test_tag_selection_returns_matching_items_in_flattened_order():
    sets = [
        make_collection("s", 3, tags=["😀", "😂", "😀"]),
        make_collection("t", 2, tags=["😂", "🐱"]),
    ]

    parsed = parse_selection(":😂,😀", sets, SelectionMode.TAGS)

    assert parsed.errors == []
    assert [ref.key() for ref in parsed.chosen] == [("s", 0), ("s", 1), ("s", 2), ("t", 0)]


def test_tag_selection_without_tokens_is_an_error():
    parsed = parse_selection(":", [make_collection("s", 2, tags=["😀", "😂"])], SelectionMode.TAGS)

    assert parsed.errors == ["No tags provided"]


def test_tag_selection_ignores_untagged_items():
    sets = [make_collection("s", 2, tags=[None, "😀"])]

    parsed = parse_selection("😀 🐶", sets, SelectionMode.TAGS)

    assert parsed.chosen == [ChosenRef("s", 1)]


def test_paginate_lists():
    items = list(range(45))

    first = paginate(items, 1, 20)
    last = paginate(items, 3, 20)

    assert len(first.items) == 20
    assert len(last.items) == 5
    assert last.pages == 3
    assert last.items == [40, 41, 42, 43, 44]


@pytest.mark.parametrize("requested, expected", [(0, 1), (-4, 1), (2, 2), (99, 2)])
def test_paginate_clamps_requested_page(requested, expected):
    page = paginate(list(range(40)), requested, 20)

    assert page.page == expected
    assert len(page.items) == 20


def test_paginate_empty_list_has_one_page():
    page = paginate([], 3, 20)

    assert page.pages == 1
    assert page.page == 1
    assert page.items == []
    assert not page.has_next
