"""Tests for management form helpers."""

from __future__ import annotations

import re

import pytest

from admin import new_record_id, next_chapter_number, parse_genres, parse_page_urls, today_iso

pytestmark = pytest.mark.unit


def test_new_record_ids_are_unique():
    ids = {new_record_id() for _ in range(100)}

    assert len(ids) == 100


def test_parse_page_urls_skips_blank_lines():
    text = "https://a/1.jpg\n\n  https://a/2.jpg  \n   \n"

    assert parse_page_urls(text) == ["https://a/1.jpg", "https://a/2.jpg"]


def test_parse_genres():
    assert parse_genres("Action, Romance ,, Slice of Life") == ["Action", "Romance", "Slice of Life"]
    assert parse_genres("") == []


def test_next_chapter_number():
    assert next_chapter_number([]) == 1
    assert next_chapter_number(["c1", "c2"]) == 3


def test_today_iso_format():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", today_iso())
