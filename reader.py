"""
Chapter reader navigation.

Neighbours are found by position in the number-sorted chapter list, so gaps
or duplicates in chapter numbering never break previous/next.
"""
from typing import List, Optional, Sequence

from schemas import Chapter


def sort_chapters(chapters: Sequence[Chapter]) -> List[Chapter]:
    return sorted(chapters, key=lambda c: c.number)


def header_visible(scroll_offset: float) -> bool:
    return scroll_offset == 0


class ReaderNavigation:
    def __init__(self, chapters: Sequence[Chapter], current_id: str):
        self.chapters = sort_chapters(chapters)
        self.current_id = current_id
        self.index = next(
            (i for i, c in enumerate(self.chapters) if c.id == current_id), None
        )

    @property
    def current(self) -> Optional[Chapter]:
        if self.index is None:
            return None
        return self.chapters[self.index]

    @property
    def previous(self) -> Optional[Chapter]:
        if self.index is None or self.index == 0:
            return None
        return self.chapters[self.index - 1]

    @property
    def next(self) -> Optional[Chapter]:
        if self.index is None or self.index + 1 >= len(self.chapters):
            return None
        return self.chapters[self.index + 1]


class ReaderView:
    """Presentation state of an open chapter: which chapter, header shown or hidden."""

    def __init__(self, chapters: Sequence[Chapter], current_id: str):
        self.navigation = ReaderNavigation(chapters, current_id)
        self.scroll_offset = 0.0
        self.show_header = True

    def on_scroll(self, offset: float) -> None:
        self.scroll_offset = offset
        self.show_header = header_visible(offset)

    def go_to(self, chapter_id: str) -> Optional[Chapter]:
        """Switch chapters and jump back to the top of the page."""
        self.navigation = ReaderNavigation(self.navigation.chapters, chapter_id)
        self.on_scroll(0)
        return self.navigation.current

    def go_previous(self) -> Optional[Chapter]:
        target = self.navigation.previous
        return self.go_to(target.id) if target else None

    def go_next(self) -> Optional[Chapter]:
        target = self.navigation.next
        return self.go_to(target.id) if target else None
