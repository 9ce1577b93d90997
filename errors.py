"""Error types for the manga catalog.

Store-side errors are raised by ``database.CatalogStore`` and translated to
HTTP status codes in ``main``. Client-side errors are raised by
``client.MangaApiClient`` and ``state.CatalogState``.
"""


class MangaCatalogError(Exception):
    """Base exception for all catalog errors."""

    pass


class StorageError(MangaCatalogError):
    """Error during a document store operation."""

    pass


class StoreNotReadyError(StorageError):
    """Store used before ``connect()`` or after ``close()``."""

    pass


class DuplicateIdError(StorageError):
    """A record with the same application identifier already exists."""

    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection} record with id '{record_id}' already exists")
        self.collection = collection
        self.record_id = record_id


class ApiError(MangaCatalogError):
    """Non-success response from the catalog API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ApiConnectionError(MangaCatalogError):
    """The catalog API could not be reached (connect error, timeout)."""

    pass


class StateNotReadyError(MangaCatalogError):
    """Client state accessed before the title list was loaded."""

    pass
