"""
Tests for the terminal front-end helpers that do not need a terminal.
"""

from binsql.tui import OutputView, _fragments, _pad_between


def test_view_follows_newest_lines():
    lines = list(range(10))
    view = OutputView()
    assert view.window(lines, 3) == [7, 8, 9]
    assert view.window(lines, 0) == []
    assert view.window(lines[:2], 5) == [0, 1]


def test_scrolling_is_clamped():
    lines = list(range(10))
    view = OutputView()

    view.scroll_up(4, len(lines), 3)
    assert view.window(lines, 3) == [3, 4, 5]

    view.scroll_up(100, len(lines), 3)
    assert view.offset == 7
    assert view.window(lines, 3) == [0, 1, 2]

    view.scroll_down(100)
    assert view.offset == 0

    view.scroll_up(2, len(lines), 3)
    view.follow()
    assert view.window(lines, 3) == [7, 8, 9]


def test_fragments():
    assert _fragments([("error", "boom"), ("", "plain")]) == [
        ("class:error", "boom"),
        ("", "\n"),
        ("", "plain"),
    ]


def test_pad_between():
    assert _pad_between(10, "hint", 20) == "      hint"
    assert _pad_between(10, "a long hint", 14) == "  a "
    assert _pad_between(10, "hint", 11) == ""
