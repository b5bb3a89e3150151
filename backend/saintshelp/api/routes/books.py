"""Book endpoints - GET /books, POST /books/upload, DELETE /books/{id}."""

import logging
import re
import time
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile

from backend.saintshelp.api.auth import get_current_user, require_admin
from backend.saintshelp.api.dependencies import get_book_repository, get_index_builder
from backend.saintshelp.db.context import RequestContext
from backend.saintshelp.db.repositories import BookRecord, BookRepository
from backend.saintshelp.errors import BadRequestError, NotFoundError, SaintsHelpError, UpstreamError
from backend.saintshelp.models.books import BookListResponse, BookSummary, BookUploadResponse
from backend.saintshelp.search.indexing import IndexBuilder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/books", tags=["books"])

PDF_CONTENT_TYPE = "application/pdf"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def storage_path_for(user_id: uuid.UUID, filename: str) -> str:
    """Build a storage key for an uploaded file: ``<user>/<epoch ms>_<safe name>``."""
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", filename or "book.pdf")
    return f"{user_id}/{int(time.time() * 1000)}_{safe_name}"


def _summary(record: BookRecord) -> BookSummary:
    return BookSummary(
        id=record.book_id,
        title=record.title,
        indexed=bool(record.index_handle),
        created_at=record.created_at,
    )


@router.get("", response_model=BookListResponse)
async def list_books(
    ctx: Annotated[RequestContext, Depends(get_current_user)],
    books: Annotated[BookRepository, Depends(get_book_repository)],
) -> BookListResponse:
    """List books visible to the caller, newest first."""
    try:
        records = await books.list_books(ctx.user_id)
    except Exception as e:
        logger.error(f"[GET /books] Listing failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    return BookListResponse(books=[_summary(r) for r in records])


@router.post("/upload", response_model=BookUploadResponse)
async def upload_book(
    ctx: Annotated[RequestContext, Depends(require_admin)],
    books: Annotated[BookRepository, Depends(get_book_repository)],
    index_builder: Annotated[IndexBuilder, Depends(get_index_builder)],
    file: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str, Form()] = "",
) -> BookUploadResponse:
    """Index an uploaded PDF and register it as a global book.

    The row is written only after indexing completes, so a listed book
    without an index handle never comes from this endpoint.

    Raises:
        BadRequestError: Missing file or title, or not a PDF
        ForbiddenError: Caller is not an admin
        UpstreamError: Indexing or persistence failed
    """
    if file is None:
        raise BadRequestError("Missing file")

    title = title.strip()
    if not title:
        raise BadRequestError("Missing title")

    if file.content_type != PDF_CONTENT_TYPE:
        raise BadRequestError("Only PDF supported")

    filename = file.filename or "book.pdf"

    try:
        data = await file.read()
        built = await index_builder.build(title=title, filename=filename, data=data)

        record = await books.create_book(
            owner_user_id=None,
            title=title,
            storage_path=storage_path_for(ctx.user_id, filename),
            index_handle=built.index_handle,
            index_file_id=built.file_id,
        )
    except SaintsHelpError:
        raise
    except Exception as e:
        logger.error(f"[POST /books/upload] Upload failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    logger.info(f"[POST /books/upload] Admin {ctx.user_id} added book {record.book_id}")

    return BookUploadResponse(book=_summary(record))


@router.delete("/{book_id}")
async def delete_book(
    book_id: uuid.UUID,
    ctx: Annotated[RequestContext, Depends(require_admin)],
    books: Annotated[BookRepository, Depends(get_book_repository)],
    index_builder: Annotated[IndexBuilder, Depends(get_index_builder)],
) -> dict[str, bool]:
    """Delete a book. Index cleanup is best-effort; the row is always removed.

    Raises:
        NotFoundError: Book does not exist
        UpstreamError: The row could not be read or removed
    """
    try:
        record = await books.get_book(book_id)
        if record is None:
            raise NotFoundError("Book not found")

        await index_builder.remove(index_handle=record.index_handle, file_id=record.index_file_id)
        await books.delete_book(book_id)
    except SaintsHelpError:
        raise
    except Exception as e:
        logger.error(f"[DELETE /books/{book_id}] Delete failed: {e}", exc_info=True)
        raise UpstreamError(str(e) or "Unexpected server error") from e

    logger.info(f"[DELETE /books/{book_id}] Deleted by admin {ctx.user_id}")

    return {"success": True}
