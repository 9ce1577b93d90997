"""Tests for client-side catalog filtering and sorting."""

from __future__ import annotations

from datetime import datetime

import pytest

from catalog import (
    GENRES,
    STATUSES,
    CatalogFilter,
    SortKey,
    featured,
    filter_catalog,
    latest,
)
from conftest import make_manga
from schemas import Manga

pytestmark = pytest.mark.unit


def _manga(manga_id, title, genre, status, rating, views, updated):
    doc = make_manga(
        manga_id, title=title, author=f"Author {manga_id}", genre=genre, status=status,
        rating=rating, views=views,
    )
    doc["updatedAt"] = datetime(2024, 1, updated)
    return Manga.model_validate(doc)


@pytest.fixture
def six_titles():
    return [
        _manga("1", "Dragon Quest", ["Action", "Adventure"], "Ongoing", 4.8, 15420, 15),
        _manga("2", "Mystic Warriors", ["Action", "Drama"], "Completed", 4.6, 12350, 2),
        _manga("3", "Starlight Academy", ["Romance", "School"], "Ongoing", 4.7, 18920, 10),
        _manga("4", "Cyber Detective", ["Sci-Fi", "Mystery"], "Ongoing", 4.5, 9870, 12),
        _manga("5", "Autumn Letters", ["Romance", "Drama"], "Ongoing", 4.9, 7560, 8),
        _manga("6", "Blossom Vow", ["Romance"], "Completed", 4.4, 20100, 5),
    ]


class TestFilter:
    def test_genre_and_status_both_apply(self, six_titles):
        f = CatalogFilter(genre="Romance", status="Ongoing", sort_by=SortKey.RATING)

        result = filter_catalog(six_titles, f)

        assert [m.id for m in result] == ["5", "3"]
        assert all("Romance" in m.genre and m.status == "Ongoing" for m in result)

    def test_clear_restores_full_list(self, six_titles):
        f = CatalogFilter(genre="Romance", status="Ongoing", sort_by=SortKey.VIEWS)

        cleared = f.cleared()
        result = filter_catalog(six_titles, cleared)

        assert not cleared.is_active
        assert cleared.sort_by is SortKey.VIEWS
        assert len(result) == 6
        assert [m.id for m in result] == ["6", "3", "1", "2", "4", "5"]

    def test_query_matches_title_author_or_genre(self, six_titles):
        by_title = filter_catalog(six_titles, CatalogFilter(query="dragon"))
        by_author = filter_catalog(six_titles, CatalogFilter(query="author 4"))
        by_genre = filter_catalog(six_titles, CatalogFilter(query="sci"))

        assert [m.id for m in by_title] == ["1"]
        assert [m.id for m in by_author] == ["4"]
        assert [m.id for m in by_genre] == ["4"]

    def test_genre_is_exact_membership(self, six_titles):
        assert filter_catalog(six_titles, CatalogFilter(genre="Roman")) == []

    def test_input_not_mutated(self, six_titles):
        original = [m.id for m in six_titles]

        filter_catalog(six_titles, CatalogFilter(sort_by=SortKey.TITLE))

        assert [m.id for m in six_titles] == original


class TestSort:
    @pytest.mark.parametrize(
        "sort_by,expected",
        [
            (SortKey.TITLE, ["5", "6", "4", "1", "2", "3"]),
            (SortKey.RATING, ["5", "1", "3", "2", "4", "6"]),
            (SortKey.VIEWS, ["6", "3", "1", "2", "4", "5"]),
            (SortKey.UPDATED, ["1", "4", "3", "5", "6", "2"]),
        ],
    )
    def test_sort_keys(self, six_titles, sort_by, expected):
        assert [m.id for m in filter_catalog(six_titles, CatalogFilter(sort_by=sort_by))] == expected


class TestHomeSlices:
    def test_featured_and_latest(self, six_titles):
        assert [m.id for m in featured(six_titles)] == ["1", "2", "3"]
        assert len(latest(six_titles)) == 6
        assert latest(six_titles[:2]) == six_titles[:2]

    def test_option_lists(self):
        assert "Romance" in GENRES
        assert STATUSES == ["Ongoing", "Completed", "Hiatus"]
