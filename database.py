"""
MongoDB access layer for the manga catalog.

``CatalogStore`` owns the client handle and exposes one method per catalog
operation. It is constructed explicitly and handed to the API app; calling an
operation before ``connect()`` raises ``StoreNotReadyError``.
"""
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from errors import DuplicateIdError, StorageError, StoreNotReadyError
from logging_config import get_logger
from schemas import CHAPTER_COLLECTION, COMMENT_COLLECTION, MANGA_COLLECTION

logger = get_logger(__name__)

# Never written by an update payload
PROTECTED_FIELDS = frozenset({"_id", "createdAt", "updatedAt"})
# The view counter only moves through increment_views
MANGA_PROTECTED_FIELDS = PROTECTED_FIELDS | {"views"}


class UpdateOutcome(str, Enum):
    NOT_FOUND = "not_found"
    UNCHANGED = "unchanged"
    UPDATED = "updated"


class MonotonicClock:
    """UTC wall clock at BSON (millisecond) precision that never repeats a value.

    Returns naive datetimes, the way pymongo hands them back by default.
    """

    def __init__(self):
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = datetime.now(timezone.utc).replace(tzinfo=None)
            current = current.replace(microsecond=current.microsecond // 1000 * 1000)
            if self._last is not None and current <= self._last:
                current = self._last + timedelta(milliseconds=1)
            self._last = current
            return current


def serialize_id(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return doc
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


@contextmanager
def _store_errors(operation: str, collection: str, record_id: Optional[str] = None):
    try:
        yield
    except DuplicateKeyError as e:
        logger.warning("duplicate_id", operation=operation, collection=collection, record_id=record_id)
        raise DuplicateIdError(collection, record_id or "") from e
    except PyMongoError as e:
        logger.error(f"{operation}_failed", collection=collection, record_id=record_id, error=str(e))
        raise StorageError(f"{operation} failed") from e


class CatalogStore:
    def __init__(
        self,
        database_url: str = "mongodb://localhost:27017",
        database_name: str = "manga-reader-db",
        timeout_ms: int = 5000,
        clock: Optional[MonotonicClock] = None,
    ):
        self.database_url = database_url
        self.database_name = database_name
        self.timeout_ms = timeout_ms
        self.clock = clock or MonotonicClock()
        self._client: Optional[MongoClient] = None
        self._db: Optional[Database] = None

    @classmethod
    def from_settings(cls, settings) -> "CatalogStore":
        return cls(
            database_url=settings.database_url,
            database_name=settings.database_name,
            timeout_ms=settings.mongo_timeout_ms,
        )

    @classmethod
    def from_database(cls, db: Database, clock: Optional[MonotonicClock] = None) -> "CatalogStore":
        """Wrap an already-open database handle (the caller owns its client)."""
        store = cls(database_name=db.name, clock=clock)
        store._attach(db)
        return store

    # --------------------- Lifecycle ---------------------

    @property
    def is_ready(self) -> bool:
        return self._db is not None

    def connect(self) -> None:
        if self.is_ready:
            return
        logger.info("connecting_to_database", database=self.database_name)
        client = MongoClient(self.database_url, serverSelectionTimeoutMS=self.timeout_ms)
        try:
            client.admin.command("ping")
            self._attach(client[self.database_name])
        except PyMongoError as e:
            client.close()
            logger.error("database_connection_failed", database=self.database_name, error=str(e))
            raise StorageError(f"Failed to connect to MongoDB: {e}") from e
        self._client = client
        logger.info("database_connected", database=self.database_name)

    def close(self) -> None:
        if self._client is not None:
            logger.info("closing_database_connection")
            self._client.close()
        self._client = None
        self._db = None

    def _attach(self, db: Database) -> None:
        self._db = db
        self.ensure_indexes()

    def ensure_indexes(self) -> None:
        db = self._database()
        with _store_errors("ensure_indexes", "*"):
            for name in (MANGA_COLLECTION, CHAPTER_COLLECTION, COMMENT_COLLECTION):
                db[name].create_index("id", unique=True)
            db[CHAPTER_COLLECTION].create_index("mangaId")
            db[COMMENT_COLLECTION].create_index("mangaId")
            db[MANGA_COLLECTION].create_index([("updatedAt", DESCENDING)])

    def _database(self) -> Database:
        if self._db is None:
            raise StoreNotReadyError("Database not initialized. Call connect() first.")
        return self._db

    def _collection(self, name: str) -> Collection:
        return self._database()[name]

    def ping(self) -> bool:
        try:
            self._database().command("ping")
            return True
        except (PyMongoError, StoreNotReadyError) as e:
            logger.error("health_check_failed", error=str(e))
            return False

    def collection_names(self) -> List[str]:
        with _store_errors("list_collections", "*"):
            return sorted(self._database().list_collection_names())

    # --------------------- Generic helpers ---------------------

    def _find(self, name: str, query: Dict[str, Any], sort_key: str, direction: int) -> List[dict]:
        collection = self._collection(name)
        with _store_errors(f"list_{name}", name):
            return [serialize_id(d) for d in collection.find(query).sort(sort_key, direction)]

    def _find_one(self, name: str, record_id: str) -> Optional[dict]:
        collection = self._collection(name)
        with _store_errors(f"get_{name}", name, record_id):
            return serialize_id(collection.find_one({"id": record_id}))

    def _insert(self, name: str, fields: Dict[str, Any], now: datetime, touch: bool = True) -> dict:
        doc = {k: v for k, v in fields.items() if k not in PROTECTED_FIELDS}
        doc["createdAt"] = now
        if touch:
            doc["updatedAt"] = now
        collection = self._collection(name)
        with _store_errors(f"create_{name}", name, doc.get("id")):
            collection.insert_one(doc)
        return serialize_id(doc)

    def _update(
        self,
        name: str,
        record_id: str,
        fields: Dict[str, Any],
        protected: frozenset = PROTECTED_FIELDS,
    ) -> UpdateOutcome:
        """Merge ``fields`` into one record and refresh ``updatedAt`` if anything differs."""
        changes = {k: v for k, v in fields.items() if k not in protected}
        collection = self._collection(name)
        with _store_errors(f"update_{name}", name, record_id):
            if changes:
                query = {"id": record_id, "$or": [{k: {"$ne": v}} for k, v in changes.items()]}
                result = collection.update_one(
                    query, {"$set": {**changes, "updatedAt": self.clock.now()}}
                )
                if result.matched_count:
                    return UpdateOutcome.UPDATED
            if collection.find_one({"id": record_id}, {"_id": 1}) is None:
                return UpdateOutcome.NOT_FOUND
        return UpdateOutcome.UNCHANGED

    def _delete(self, name: str, record_id: str) -> bool:
        collection = self._collection(name)
        with _store_errors(f"delete_{name}", name, record_id):
            return collection.delete_one({"id": record_id}).deleted_count > 0

    # --------------------- Manga ---------------------

    def list_manga(self) -> List[dict]:
        return self._find(MANGA_COLLECTION, {}, "updatedAt", DESCENDING)

    def get_manga(self, manga_id: str) -> Optional[dict]:
        return self._find_one(MANGA_COLLECTION, manga_id)

    def create_manga(self, fields: Dict[str, Any]) -> dict:
        return self._insert(MANGA_COLLECTION, fields, self.clock.now())

    def update_manga(self, manga_id: str, fields: Dict[str, Any]) -> UpdateOutcome:
        return self._update(MANGA_COLLECTION, manga_id, fields, MANGA_PROTECTED_FIELDS)

    def delete_manga(self, manga_id: str) -> bool:
        # Chapters and comments of the title are left in place.
        return self._delete(MANGA_COLLECTION, manga_id)

    def increment_views(self, manga_id: str) -> None:
        collection = self._collection(MANGA_COLLECTION)
        with _store_errors("increment_views", MANGA_COLLECTION, manga_id):
            collection.update_one({"id": manga_id}, {"$inc": {"views": 1}})

    # --------------------- Chapters ---------------------

    def list_chapters(self, manga_id: str) -> List[dict]:
        return self._find(CHAPTER_COLLECTION, {"mangaId": manga_id}, "number", ASCENDING)

    def get_chapter(self, chapter_id: str) -> Optional[dict]:
        return self._find_one(CHAPTER_COLLECTION, chapter_id)

    def create_chapter(self, fields: Dict[str, Any]) -> dict:
        """Insert a chapter, then bump the owning title's ``updatedAt``.

        The two writes are independent. If the second one fails the chapter
        stays written and the title keeps its old timestamp.
        """
        now = self.clock.now()
        chapter = self._insert(CHAPTER_COLLECTION, fields, now)
        manga_id = chapter.get("mangaId")
        try:
            self._collection(MANGA_COLLECTION).update_one(
                {"id": manga_id}, {"$max": {"updatedAt": now}}
            )
        except PyMongoError as e:
            logger.warning(
                "manga_touch_failed", manga_id=manga_id, chapter_id=chapter.get("id"), error=str(e)
            )
        return chapter

    def update_chapter(self, chapter_id: str, fields: Dict[str, Any]) -> UpdateOutcome:
        return self._update(CHAPTER_COLLECTION, chapter_id, fields)

    def delete_chapter(self, chapter_id: str) -> bool:
        return self._delete(CHAPTER_COLLECTION, chapter_id)

    # --------------------- Comments ---------------------

    def list_comments(self, manga_id: str) -> List[dict]:
        return self._find(COMMENT_COLLECTION, {"mangaId": manga_id}, "createdAt", DESCENDING)

    def create_comment(self, fields: Dict[str, Any]) -> dict:
        return self._insert(COMMENT_COLLECTION, fields, self.clock.now(), touch=False)

    def delete_comment(self, comment_id: str) -> bool:
        return self._delete(COMMENT_COLLECTION, comment_id)
