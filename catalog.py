"""
Client-side catalog views.

All filtering and sorting happens on the already-fetched title list; the
API takes no filter or sort parameters.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import List, Sequence

from schemas import Manga

GENRES = [
    "Action", "Romance", "Fantasy", "Comedy", "Drama", "Sci-Fi", "Horror", "Mystery",
    "Slice of Life", "Adventure", "Martial Arts", "Supernatural", "Magic", "School",
]
STATUSES = ["Ongoing", "Completed", "Hiatus"]

FEATURED_COUNT = 3
LATEST_COUNT = 6


class SortKey(str, Enum):
    TITLE = "title"
    RATING = "rating"
    VIEWS = "views"
    UPDATED = "updated"


@dataclass(frozen=True)
class CatalogFilter:
    query: str = ""
    genre: str = ""
    status: str = ""
    sort_by: SortKey = SortKey.TITLE

    @property
    def is_active(self) -> bool:
        return bool(self.query or self.genre or self.status)

    def cleared(self) -> "CatalogFilter":
        """Drop search, genre and status; the chosen sort key stays."""
        return replace(self, query="", genre="", status="")


def matches_query(manga: Manga, query: str) -> bool:
    needle = query.lower()
    return (
        needle in manga.title.lower()
        or needle in manga.author.lower()
        or any(needle in g.lower() for g in manga.genre)
    )


def _updated_key(manga: Manga) -> datetime:
    return manga.updated_at or datetime.min


def sort_manga(manga: Sequence[Manga], sort_by: SortKey) -> List[Manga]:
    if sort_by is SortKey.TITLE:
        return sorted(manga, key=lambda m: m.title.casefold())
    if sort_by is SortKey.RATING:
        return sorted(manga, key=lambda m: m.rating, reverse=True)
    if sort_by is SortKey.VIEWS:
        return sorted(manga, key=lambda m: m.views, reverse=True)
    if sort_by is SortKey.UPDATED:
        return sorted(manga, key=_updated_key, reverse=True)
    return list(manga)


def filter_catalog(manga: Sequence[Manga], catalog_filter: CatalogFilter) -> List[Manga]:
    """Apply search, genre and status predicates, then sort. ``manga`` is left untouched."""
    results = list(manga)
    if catalog_filter.query:
        results = [m for m in results if matches_query(m, catalog_filter.query)]
    if catalog_filter.genre:
        results = [m for m in results if catalog_filter.genre in m.genre]
    if catalog_filter.status:
        results = [m for m in results if m.status == catalog_filter.status]
    return sort_manga(results, catalog_filter.sort_by)


def featured(manga: Sequence[Manga]) -> List[Manga]:
    return list(manga[:FEATURED_COUNT])


def latest(manga: Sequence[Manga]) -> List[Manga]:
    return list(manga[:LATEST_COUNT])
