"""
Tab-lifetime client state.

``CatalogState`` fetches the full title list once, keeps it in memory and
reloads it after any write that affects titles. Per-title chapters and
comments are always read through to the API.
"""
from enum import Enum
from typing import List, Optional, Tuple

from admin import new_record_id, next_chapter_number, parse_genres, parse_page_urls, today_iso
from client import MangaApiClient
from errors import ApiConnectionError, ApiError, StateNotReadyError
from logging_config import get_logger
from schemas import (
    Chapter,
    ChapterCreate,
    ChapterUpdate,
    Comment,
    CommentCreate,
    Manga,
    MangaCreate,
    MangaUpdate,
)

logger = get_logger(__name__)

LOAD_ERROR_MESSAGE = "Failed to connect to server. Please check if the backend is running."
REFRESH_ERROR_MESSAGE = "Failed to refresh manga data"


class LoadStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class CatalogState:
    def __init__(self, api: MangaApiClient):
        self.api = api
        self.manga: List[Manga] = []
        self.status = LoadStatus.LOADING
        self.error: Optional[str] = None
        self._ready = False
        self._refresh_seq = 0

    @property
    def ready(self) -> bool:
        return self._ready

    def _require_ready(self) -> None:
        if not self._ready:
            raise StateNotReadyError("Catalog not loaded. Call initialize() first.")

    async def initialize(self) -> None:
        """Load the title list. Call again to retry after an ERROR status."""
        self.status = LoadStatus.LOADING
        self.error = None
        try:
            self.manga = await self.api.list_manga()
        except (ApiError, ApiConnectionError) as e:
            logger.error("catalog_initialize_failed", error=str(e))
            self._ready = False
            self.status = LoadStatus.ERROR
            self.error = LOAD_ERROR_MESSAGE
            return
        self._ready = True
        self.status = LoadStatus.READY
        logger.info("catalog_loaded", count=len(self.manga))

    async def refresh(self) -> None:
        self._require_ready()
        self._refresh_seq += 1
        seq = self._refresh_seq
        self.status = LoadStatus.LOADING
        try:
            manga = await self.api.list_manga()
        except (ApiError, ApiConnectionError) as e:
            logger.error("catalog_refresh_failed", error=str(e))
            if seq == self._refresh_seq:
                self.status = LoadStatus.ERROR
                self.error = REFRESH_ERROR_MESSAGE
            return
        # An older refresh finishing late must not overwrite a newer one.
        if seq != self._refresh_seq:
            return
        self.manga = manga
        self.status = LoadStatus.READY
        self.error = None

    def find_cached(self, manga_id: str) -> Optional[Manga]:
        return next((m for m in self.manga if m.id == manga_id), None)

    # --------------------- Read-through accessors ---------------------

    async def get_manga_with_chapters(self, manga_id: str) -> Tuple[Optional[Manga], List[Chapter]]:
        """Title plus its chapters; also records a view, whose failure is ignored."""
        self._require_ready()
        manga = await self.api.get_manga(manga_id)
        if manga is None:
            return None, []
        chapters = await self.api.list_chapters(manga_id)
        try:
            await self.api.increment_views(manga_id)
        except (ApiError, ApiConnectionError) as e:
            logger.warning("increment_views_failed", manga_id=manga_id, error=str(e))
        return manga, chapters

    async def get_comments(self, manga_id: str) -> List[Comment]:
        self._require_ready()
        return await self.api.list_comments(manga_id)

    async def add_comment(self, manga_id: str, name: str, message: str) -> Comment:
        self._require_ready()
        return await self.api.create_comment(
            CommentCreate(id=new_record_id(), manga_id=manga_id, name=name, message=message)
        )

    # --------------------- Management ---------------------

    async def admin_login(self, token: str) -> bool:
        return await self.api.open_admin_session(token)

    async def create_manga(self, manga: MangaCreate) -> Manga:
        self._require_ready()
        created = await self.api.create_manga(manga)
        await self.refresh()
        return created

    async def update_manga(self, manga_id: str, updates: MangaUpdate) -> None:
        self._require_ready()
        await self.api.update_manga(manga_id, updates)
        await self.refresh()

    async def delete_manga(self, manga_id: str) -> None:
        self._require_ready()
        await self.api.delete_manga(manga_id)
        await self.refresh()

    async def create_chapter(self, chapter: ChapterCreate) -> Chapter:
        self._require_ready()
        created = await self.api.create_chapter(chapter)
        # the owning title's updatedAt moved, so list order may have changed
        await self.refresh()
        return created

    async def update_chapter(self, chapter_id: str, updates: ChapterUpdate) -> None:
        self._require_ready()
        await self.api.update_chapter(chapter_id, updates)

    async def delete_chapter(self, chapter_id: str) -> None:
        self._require_ready()
        await self.api.delete_chapter(chapter_id)

    async def delete_comment(self, comment_id: str) -> None:
        self._require_ready()
        await self.api.delete_comment(comment_id)

    # --------------------- Management forms ---------------------

    async def add_manga_from_form(self, title: str, author: str, genres: str = "", **fields) -> Manga:
        """Create a title from panel input; ``genres`` is comma-separated text."""
        if not title.strip() or not author.strip():
            raise ValueError("Title and author are required")
        last_updated = fields.pop("last_updated", None) or today_iso()
        manga = MangaCreate(
            id=new_record_id(),
            title=title.strip(),
            author=author.strip(),
            genre=parse_genres(genres),
            last_updated=last_updated,
            **fields,
        )
        return await self.create_manga(manga)

    async def add_chapter_from_form(self, manga_id: str, title: str, page_urls: str) -> Chapter:
        """Create the next chapter of a title; ``page_urls`` holds one URL per line."""
        pages = parse_page_urls(page_urls)
        if not title.strip() or not pages:
            raise ValueError("Chapter title and at least one page URL are required")
        self._require_ready()
        existing = await self.api.list_chapters(manga_id)
        chapter = ChapterCreate(
            id=new_record_id(),
            manga_id=manga_id,
            title=title.strip(),
            number=next_chapter_number(existing),
            date=today_iso(),
            pages=pages,
        )
        return await self.create_chapter(chapter)
