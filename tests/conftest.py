"""Shared fixtures: an in-memory MongoDB, the store on top of it, and the API app."""

from __future__ import annotations

from typing import AsyncGenerator

import mongomock
import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport

from client import MangaApiClient
from config import Settings
from database import CatalogStore
from main import create_app

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def mongo_db():
    """Fresh in-memory database per test."""
    return mongomock.MongoClient()["manga-test"]


@pytest.fixture
def store(mongo_db) -> CatalogStore:
    return CatalogStore.from_database(mongo_db)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, admin_token=ADMIN_TOKEN, database_name="manga-test")


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Token": ADMIN_TOKEN}


@pytest.fixture
async def api(app) -> AsyncGenerator[MangaApiClient, None]:
    """SDK client wired straight to the ASGI app, holding the admin token."""
    sdk = MangaApiClient(
        base_url="http://test/api",
        admin_token=ADMIN_TOKEN,
        transport=ASGITransport(app=app),
    )
    yield sdk
    await sdk.close()


def make_manga(manga_id: str = "t1", **overrides) -> dict:
    doc = {
        "id": manga_id,
        "title": "X",
        "author": "Y",
        "genre": ["Action"],
        "rating": 4.5,
        "views": 0,
        "coverImage": "https://img.example/cover.jpg",
        "status": "Ongoing",
        "lastUpdated": "2024-01-15",
        "description": "A story.",
        "year": 2020,
        "alternativeTitles": ["Ex"],
    }
    doc.update(overrides)
    return doc


def make_chapter(chapter_id: str = "c1", manga_id: str = "t1", number=1, **overrides) -> dict:
    doc = {
        "id": chapter_id,
        "mangaId": manga_id,
        "title": f"Chapter {number}",
        "number": number,
        "date": "2024-01-15",
        "pages": ["u1", "u2"],
    }
    doc.update(overrides)
    return doc


def make_comment(comment_id: str = "m1", manga_id: str = "t1", **overrides) -> dict:
    doc = {"id": comment_id, "mangaId": manga_id, "name": "Reader", "message": "Great!"}
    doc.update(overrides)
    return doc
