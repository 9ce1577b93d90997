"""HTTP client for the Manga Catalog API.

One async method per API route. Every call goes to the network: there is
no retry and no caching. Single-record reads return ``None`` on 404; any
other non-success status raises ``ApiError``.
"""

import os
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from errors import ApiConnectionError, ApiError
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

DEFAULT_API_URL = "http://localhost:8000/api"


class MangaApiClient:
    """Async HTTP client for the Manga Catalog API.

    Example:
        >>> async with MangaApiClient() as api:
        ...     for manga in await api.list_manga():
        ...         print(manga.title, manga.views)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        admin_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: API base URL. Defaults to MANGA_API_URL env var
                      or http://localhost:8000/api
            timeout: Request timeout in seconds
            admin_token: Operator token sent on management calls
            transport: Optional httpx transport (e.g. ASGITransport in tests)
        """
        self.base_url: str = base_url or os.getenv("MANGA_API_URL") or DEFAULT_API_URL
        self.timeout = timeout
        self.admin_token = admin_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "MangaApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        admin: bool = False,
        allow_not_found: bool = False,
    ) -> Optional[Any]:
        client = await self._get_client()
        headers = {}
        if admin and self.admin_token:
            headers["X-Admin-Token"] = self.admin_token
        try:
            response = await client.request(method, path, json=json, headers=headers)
        except httpx.TransportError as e:
            logger.error("api_request_failed", method=method, path=path, error=str(e))
            raise ApiConnectionError(f"{method} {path} failed: {e}") from e

        if allow_not_found and response.status_code == 404:
            return None
        if response.is_error:
            message = _error_message(response)
            logger.warning("api_error", method=method, path=path, status=response.status_code, detail=message)
            raise ApiError(response.status_code, message)
        return response.json()

    # -------------------------------------------------------------------------
    # Manga
    # -------------------------------------------------------------------------

    async def list_manga(self) -> List[Manga]:
        data = await self._request("GET", "/manga")
        return [Manga.model_validate(m) for m in data]

    async def get_manga(self, manga_id: str) -> Optional[Manga]:
        data = await self._request("GET", _path("manga", manga_id), allow_not_found=True)
        return Manga.model_validate(data) if data is not None else None

    async def increment_views(self, manga_id: str) -> None:
        await self._request("POST", _path("manga", manga_id, "views"))

    async def create_manga(self, manga: MangaCreate) -> Manga:
        data = await self._request("POST", "/manga", json=manga.to_document(), admin=True)
        return Manga.model_validate(data)

    async def update_manga(self, manga_id: str, updates: MangaUpdate) -> None:
        """Raises ApiError 404 when no title matches and 400 when nothing changed."""
        await self._request("PUT", _path("manga", manga_id), json=updates.to_document(partial=True), admin=True)

    async def delete_manga(self, manga_id: str) -> None:
        await self._request("DELETE", _path("manga", manga_id), admin=True)

    # -------------------------------------------------------------------------
    # Chapters
    # -------------------------------------------------------------------------

    async def list_chapters(self, manga_id: str) -> List[Chapter]:
        data = await self._request("GET", _path("manga", manga_id, "chapters"))
        return [Chapter.model_validate(c) for c in data]

    async def get_chapter(self, chapter_id: str) -> Optional[Chapter]:
        data = await self._request("GET", _path("chapters", chapter_id), allow_not_found=True)
        return Chapter.model_validate(data) if data is not None else None

    async def create_chapter(self, chapter: ChapterCreate) -> Chapter:
        data = await self._request("POST", "/chapters", json=chapter.to_document(), admin=True)
        return Chapter.model_validate(data)

    async def update_chapter(self, chapter_id: str, updates: ChapterUpdate) -> None:
        await self._request("PUT", _path("chapters", chapter_id), json=updates.to_document(partial=True), admin=True)

    async def delete_chapter(self, chapter_id: str) -> None:
        await self._request("DELETE", _path("chapters", chapter_id), admin=True)

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def list_comments(self, manga_id: str) -> List[Comment]:
        data = await self._request("GET", _path("manga", manga_id, "comments"))
        return [Comment.model_validate(c) for c in data]

    async def create_comment(self, comment: CommentCreate) -> Comment:
        data = await self._request("POST", "/comments", json=comment.to_document())
        return Comment.model_validate(data)

    async def delete_comment(self, comment_id: str) -> None:
        await self._request("DELETE", _path("comments", comment_id), admin=True)

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    async def open_admin_session(self, token: str) -> bool:
        """Check ``token`` with the server; on success it is kept for management calls."""
        try:
            await self._request("POST", "/admin/session", json={"token": token})
        except ApiError as e:
            if e.status_code in (401, 403):
                return False
            raise
        self.admin_token = token
        return True


def _path(*segments: str) -> str:
    """Join path segments, percent-encoding each one so free-form ids such as 'a#b' stay one segment."""
    return "/" + "/".join(quote(segment, safe="") for segment in segments)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("detail"), str):
        return body["detail"]
    return str(body)
