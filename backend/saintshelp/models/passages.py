"""Passage models - ephemeral candidates, stored passages, client passages.

A stored passage carries the full reconstructed unit and is persisted inside
an assistant turn. A client passage is the projection that is safe to return
before the caller explicitly asks for the full text.
"""

import uuid
from dataclasses import dataclass
from uuid import UUID

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Candidate:
    """Retrieved, cleaned passage before deduplication and ranking (never persisted)."""

    book_id: UUID
    book_title: str
    score: float | None
    preview_text: str
    full_text: str


class ClientPassage(BaseModel):
    """Passage as returned to the caller - preview text only."""

    id: UUID
    book_id: UUID
    book_title: str
    score: float | None = None
    text: str = Field(..., description="Preview; truncation is marked by a trailing ellipsis")


class StoredPassage(BaseModel):
    """Passage as persisted in an assistant turn."""

    id: UUID
    book_id: UUID
    book_title: str
    score: float | None = None
    text: str = Field(..., description="Preview text (prefix view of full_text)")
    full_text: str


def store_candidate(candidate: Candidate) -> StoredPassage:
    """Assign a fresh passage id to a ranked candidate."""
    return StoredPassage(
        id=uuid.uuid4(),
        book_id=candidate.book_id,
        book_title=candidate.book_title,
        score=candidate.score,
        text=candidate.preview_text,
        full_text=candidate.full_text,
    )


def to_client_passage(stored: StoredPassage) -> ClientPassage:
    """Project a stored passage onto the client-safe shape (drops full_text)."""
    return ClientPassage(
        id=stored.id,
        book_id=stored.book_id,
        book_title=stored.book_title,
        score=stored.score,
        text=stored.text,
    )
