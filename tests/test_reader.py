"""Tests for reader navigation and header visibility."""

from __future__ import annotations

import pytest

from conftest import make_chapter
from reader import ReaderNavigation, ReaderView, header_visible, sort_chapters
from schemas import Chapter

pytestmark = pytest.mark.unit


def _chapters(*pairs):
    return [Chapter.model_validate(make_chapter(cid, "t1", number)) for cid, number in pairs]


@pytest.fixture
def three_chapters():
    # deliberately out of order
    return _chapters(("c3", 3), ("c1", 1), ("c2", 2))


class TestNavigation:
    def test_middle_chapter_has_both_neighbours(self, three_chapters):
        nav = ReaderNavigation(three_chapters, "c2")

        assert nav.current.id == "c2"
        assert nav.previous.id == "c1"
        assert nav.next.id == "c3"

    def test_first_chapter_has_no_previous(self, three_chapters):
        nav = ReaderNavigation(three_chapters, "c1")

        assert nav.previous is None
        assert nav.next.id == "c2"

    def test_last_chapter_has_no_next(self, three_chapters):
        nav = ReaderNavigation(three_chapters, "c3")

        assert nav.previous.id == "c2"
        assert nav.next is None

    def test_gaps_in_numbering_do_not_break_adjacency(self):
        chapters = _chapters(("a", 1), ("b", 5), ("c", 12.5))

        nav = ReaderNavigation(chapters, "b")

        assert nav.previous.id == "a"
        assert nav.next.id == "c"

    def test_unknown_chapter(self, three_chapters):
        nav = ReaderNavigation(three_chapters, "zz")

        assert nav.current is None
        assert nav.previous is None
        assert nav.next is None

    def test_sort_is_stable_for_duplicate_numbers(self):
        chapters = _chapters(("x", 2), ("y", 1), ("z", 2))

        assert [c.id for c in sort_chapters(chapters)] == ["y", "x", "z"]


class TestHeader:
    @pytest.mark.parametrize("offset,visible", [(0, True), (0.0, True), (1, False), (840.5, False)])
    def test_header_visible(self, offset, visible):
        assert header_visible(offset) is visible

    def test_view_hides_on_scroll_and_resets_on_chapter_change(self, three_chapters):
        view = ReaderView(three_chapters, "c1")
        assert view.show_header is True

        view.on_scroll(320)
        assert view.show_header is False

        moved_to = view.go_next()
        assert moved_to.id == "c2"
        assert view.show_header is True
        assert view.scroll_offset == 0

    def test_view_stops_at_ends(self, three_chapters):
        view = ReaderView(three_chapters, "c1")

        assert view.go_previous() is None
        assert view.navigation.current.id == "c1"
