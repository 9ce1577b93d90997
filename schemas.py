"""
Schemas for the Manga Catalog

Each entity model maps to a MongoDB collection:
- Manga -> "manga"
- Chapter -> "chapters"
- Comment -> "comments"

Documents are stored and served with camelCase keys (coverImage, mangaId,
createdAt, ...). Python code uses the snake_case attribute names.
"""
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


MANGA_COLLECTION = "manga"
CHAPTER_COLLECTION = "chapters"
COMMENT_COLLECTION = "comments"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_document(self, partial: bool = False) -> dict:
        """Dump with wire (camelCase) keys; ``partial`` keeps only fields the caller set."""
        return self.model_dump(by_alias=True, exclude_unset=partial)


# --------------------- Manga ---------------------

class MangaCreate(CamelModel):
    id: str = Field(..., description="Application identifier, assigned by the client")
    title: str = Field(..., description="Display name")
    author: str = Field("", description="Creator name")
    genre: List[str] = Field(default_factory=list, description="Genre tags, order irrelevant")
    rating: float = Field(0.0, description="Numeric rating")
    views: int = Field(0, description="View counter")
    cover_image: str = Field("", description="Cover image URL")
    status: str = Field("Ongoing", description="Ongoing | Completed | Hiatus (open string)")
    last_updated: str = Field("", description="Free-text display date")
    description: str = Field("", description="Synopsis")
    year: Optional[int] = Field(None, description="Publication year")
    alternative_titles: List[str] = Field(default_factory=list, description="Alternate names")


class MangaUpdate(CamelModel):
    id: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    genre: Optional[List[str]] = None
    rating: Optional[float] = None
    cover_image: Optional[str] = None
    status: Optional[str] = None
    last_updated: Optional[str] = None
    description: Optional[str] = None
    year: Optional[int] = None
    alternative_titles: Optional[List[str]] = None


class Manga(MangaCreate):
    record_id: Optional[str] = Field(None, alias="_id", description="Store-internal record id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --------------------- Chapters ---------------------

class ChapterCreate(CamelModel):
    id: str = Field(..., description="Application identifier, assigned by the client")
    manga_id: str = Field(..., description="Owning manga's application id")
    title: str = Field("", description="Chapter title")
    number: Union[int, float] = Field(..., description="Ordinal number; gaps and duplicates tolerated")
    date: str = Field("", description="Publication date")
    pages: List[str] = Field(default_factory=list, description="Ordered page image URLs")


class ChapterUpdate(CamelModel):
    id: Optional[str] = None
    manga_id: Optional[str] = None
    title: Optional[str] = None
    number: Optional[Union[int, float]] = None
    date: Optional[str] = None
    pages: Optional[List[str]] = None


class Chapter(ChapterCreate):
    record_id: Optional[str] = Field(None, alias="_id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# --------------------- Comments ---------------------

class CommentCreate(CamelModel):
    id: str = Field(..., description="Application identifier, assigned by the client")
    manga_id: str = Field(..., description="Target manga's application id")
    name: str = Field(..., description="Commenter's display name (unauthenticated)")
    message: str = Field(..., description="Comment text")


class Comment(CommentCreate):
    record_id: Optional[str] = Field(None, alias="_id")
    created_at: Optional[datetime] = None


# --------------------- Responses / misc ---------------------

class SuccessResponse(BaseModel):
    success: bool = True


class AdminSessionRequest(BaseModel):
    token: str


class HealthResponse(BaseModel):
    backend: str
    database: str
    database_name: str
    collections: List[str] = Field(default_factory=list)
