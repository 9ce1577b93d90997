import secrets
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader

from config import Settings, get_settings
from database import CatalogStore, UpdateOutcome
from errors import DuplicateIdError, StorageError, StoreNotReadyError
from logging_config import configure_logging, get_logger
from schemas import (
    AdminSessionRequest,
    ChapterCreate,
    ChapterUpdate,
    CommentCreate,
    HealthResponse,
    MangaCreate,
    MangaUpdate,
    SuccessResponse,
)

logger = get_logger(__name__)

ADMIN_TOKEN_HEADER = "X-Admin-Token"


# --------------------- Dependencies ---------------------

def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


admin_token_header = APIKeyHeader(name=ADMIN_TOKEN_HEADER, auto_error=False)


def token_matches(settings: Settings, candidate: Optional[str]) -> bool:
    """Constant-time check of ``candidate`` against the configured operator token."""
    if settings.admin_token is None:
        raise HTTPException(status_code=403, detail="Management access is disabled")
    if not candidate:
        return False
    expected = settings.admin_token.get_secret_value()
    return secrets.compare_digest(candidate.encode(), expected.encode())


def require_admin(request: Request, token: Optional[str] = Security(admin_token_header)) -> None:
    if not token_matches(request.app.state.settings, token):
        logger.warning("admin_auth_rejected", path=request.url.path)
        raise HTTPException(status_code=401, detail="Invalid admin token")


# --------------------- Routes ---------------------

router = APIRouter(prefix="/api")


# Manga
@router.get("/manga")
def list_manga(store: CatalogStore = Depends(get_store)):
    return store.list_manga()


@router.get("/manga/{manga_id}")
def get_manga(manga_id: str, store: CatalogStore = Depends(get_store)):
    doc = store.get_manga(manga_id)
    if not doc:
        raise HTTPException(404, "Manga not found")
    return doc


@router.post("/manga", dependencies=[Depends(require_admin)])
def create_manga(manga: MangaCreate, store: CatalogStore = Depends(get_store)):
    doc = store.create_manga(manga.to_document())
    logger.info("manga_created", manga_id=doc["id"])
    return doc


@router.put("/manga/{manga_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def update_manga(manga_id: str, updates: MangaUpdate, store: CatalogStore = Depends(get_store)):
    outcome = store.update_manga(manga_id, updates.to_document(partial=True))
    if outcome is UpdateOutcome.NOT_FOUND:
        logger.info("manga_update_no_match", manga_id=manga_id)
        raise HTTPException(404, "No manga found to update.")
    if outcome is UpdateOutcome.UNCHANGED:
        raise HTTPException(400, "Manga not modified.")
    return {"success": True}


@router.delete("/manga/{manga_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def delete_manga(manga_id: str, store: CatalogStore = Depends(get_store)):
    if not store.delete_manga(manga_id):
        raise HTTPException(404, "Manga not found")
    logger.info("manga_deleted", manga_id=manga_id)
    return {"success": True}


@router.post("/manga/{manga_id}/views", response_model=SuccessResponse)
def increment_views(manga_id: str, store: CatalogStore = Depends(get_store)):
    store.increment_views(manga_id)
    return {"success": True}


# Chapters
@router.get("/manga/{manga_id}/chapters")
def list_chapters(manga_id: str, store: CatalogStore = Depends(get_store)):
    return store.list_chapters(manga_id)


@router.get("/chapters/{chapter_id}")
def get_chapter(chapter_id: str, store: CatalogStore = Depends(get_store)):
    doc = store.get_chapter(chapter_id)
    if not doc:
        raise HTTPException(404, "Chapter not found")
    return doc


@router.post("/chapters", dependencies=[Depends(require_admin)])
def create_chapter(chapter: ChapterCreate, store: CatalogStore = Depends(get_store)):
    doc = store.create_chapter(chapter.to_document())
    logger.info("chapter_created", chapter_id=doc["id"], manga_id=doc["mangaId"])
    return doc


@router.put("/chapters/{chapter_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def update_chapter(chapter_id: str, updates: ChapterUpdate, store: CatalogStore = Depends(get_store)):
    outcome = store.update_chapter(chapter_id, updates.to_document(partial=True))
    if outcome is UpdateOutcome.NOT_FOUND:
        logger.info("chapter_update_no_match", chapter_id=chapter_id)
        raise HTTPException(404, "No chapter found to update.")
    if outcome is UpdateOutcome.UNCHANGED:
        raise HTTPException(400, "Chapter not modified.")
    return {"success": True}


@router.delete("/chapters/{chapter_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def delete_chapter(chapter_id: str, store: CatalogStore = Depends(get_store)):
    if not store.delete_chapter(chapter_id):
        raise HTTPException(404, "Chapter not found")
    return {"success": True}


# Comments
@router.get("/manga/{manga_id}/comments")
def list_comments(manga_id: str, store: CatalogStore = Depends(get_store)):
    return store.list_comments(manga_id)


@router.post("/comments")
def add_comment(comment: CommentCreate, store: CatalogStore = Depends(get_store)):
    return store.create_comment(comment.to_document())


@router.delete("/comments/{comment_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
def delete_comment(comment_id: str, store: CatalogStore = Depends(get_store)):
    if not store.delete_comment(comment_id):
        raise HTTPException(404, "Comment not found")
    return {"success": True}


# Admin
@router.post("/admin/session", response_model=SuccessResponse)
def open_admin_session(body: AdminSessionRequest, request: Request):
    if not token_matches(request.app.state.settings, body.token):
        logger.warning("admin_login_rejected")
        raise HTTPException(401, "Invalid admin token")
    return {"success": True}


# --------------------- Error handlers ---------------------

def store_not_ready_handler(request: Request, exc: StoreNotReadyError):
    logger.error("store_not_ready", path=request.url.path)
    return JSONResponse(status_code=503, content={"detail": "Database not ready"})


def duplicate_id_handler(request: Request, exc: DuplicateIdError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def storage_error_handler(request: Request, exc: StorageError):
    logger.error("storage_error", path=request.url.path, error=str(exc), cause=repr(exc.__cause__))
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# --------------------- App ---------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    store: CatalogStore = app.state.store
    owns_connection = not store.is_ready
    if owns_connection:
        store.connect()
    yield
    if owns_connection:
        store.close()


def create_app(settings: Optional[Settings] = None, store: Optional[CatalogStore] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(title="Manga Catalog API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store or CatalogStore.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StoreNotReadyError, store_not_ready_handler)
    app.add_exception_handler(DuplicateIdError, duplicate_id_handler)
    app.add_exception_handler(StorageError, storage_error_handler)

    @app.get("/")
    def root():
        return {"message": "Manga Catalog backend running"}

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request):
        store: CatalogStore = request.app.state.store
        response = {
            "backend": "running",
            "database": "not connected",
            "database_name": store.database_name,
            "collections": [],
        }
        if store.is_ready and store.ping():
            response["database"] = "connected"
            response["collections"] = store.collection_names()
        return response

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.port)
