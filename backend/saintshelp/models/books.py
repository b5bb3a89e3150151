"""Book (searchable document) models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class Book(BaseModel):
    """Searchable source document.

    Usable for retrieval only once ``index_handle`` is populated.
    """

    id: UUID
    title: str
    owner_user_id: UUID | None = None
    index_handle: str | None = None

    @property
    def indexed(self) -> bool:
        return bool(self.index_handle)


class BookSummary(BaseModel):
    """Book row for listing."""

    id: UUID
    title: str
    indexed: bool
    created_at: datetime


class BookListResponse(BaseModel):
    """Response for GET /books."""

    books: list[BookSummary]


class BookUploadResponse(BaseModel):
    """Response for POST /books/upload."""

    book: BookSummary
