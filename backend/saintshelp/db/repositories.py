"""Repository protocol interfaces for data access."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Protocol
from uuid import UUID

from backend.saintshelp.models.books import Book
from backend.saintshelp.models.passages import StoredPassage


class TurnRole(str, Enum):
    """Conversation turn role."""

    user = "user"
    assistant = "assistant"


class ProfileStatus(str, Enum):
    """Account approval status."""

    pending = "pending"
    approved = "approved"
    blocked = "blocked"


@dataclass
class ProfileRecord:
    """Profile data record."""

    user_id: UUID
    email: str | None
    status: ProfileStatus
    is_admin: bool


@dataclass
class ConversationRecord:
    """Conversation data record."""

    conversation_id: UUID
    user_id: UUID
    title: str
    created_at: datetime


@dataclass
class TurnRecord:
    """Conversation turn data record."""

    turn_id: UUID
    conversation_id: UUID
    role: TurnRole
    question: str | None
    selected_book_ids: list[str] | None
    passages: list[StoredPassage] | None
    created_at: datetime


@dataclass
class BookRecord:
    """Book data record."""

    book_id: UUID
    owner_user_id: UUID | None
    title: str
    storage_path: str | None
    index_handle: str | None
    index_file_id: str | None
    created_at: datetime

    def to_book(self) -> Book:
        return Book(
            id=self.book_id,
            title=self.title,
            owner_user_id=self.owner_user_id,
            index_handle=self.index_handle,
        )


class ProfileRepository(Protocol):
    """Repository for caller approval data."""

    async def get_profile(self, user_id: UUID) -> ProfileRecord | None:
        """Get profile by user ID.

        Args:
            user_id: User ID (token subject)

        Returns:
            Profile record or None if the user has no profile
        """
        ...


class ConversationRepository(Protocol):
    """Repository for conversations and their append-only turns."""

    async def get_conversation(self, conversation_id: UUID) -> ConversationRecord | None:
        """Get conversation by ID regardless of owner (callers check ownership)."""
        ...

    async def create_conversation(self, user_id: UUID, title: str) -> ConversationRecord:
        """Create a new conversation.

        Args:
            user_id: Owning user
            title: Display title

        Returns:
            Created conversation record
        """
        ...

    async def list_conversations(self, user_id: UUID) -> list[ConversationRecord]:
        """List a user's conversations, newest first."""
        ...

    async def delete_conversation(self, conversation_id: UUID) -> None:
        """Delete a conversation and all of its turns."""
        ...

    async def append_user_turn(
        self, conversation_id: UUID, question: str, selected_book_ids: Sequence[str]
    ) -> TurnRecord:
        """Append a user turn.

        Args:
            conversation_id: Conversation ID
            question: Question text
            selected_book_ids: Documents selected for the question

        Returns:
            Written turn record
        """
        ...

    async def append_assistant_turn(
        self, conversation_id: UUID, passages: Sequence[StoredPassage]
    ) -> TurnRecord:
        """Append an assistant turn carrying the full stored passages.

        Args:
            conversation_id: Conversation ID
            passages: Ranked stored passages (including full text)

        Returns:
            Written turn record
        """
        ...

    async def list_turns(self, conversation_id: UUID) -> list[TurnRecord]:
        """List a conversation's turns in creation order."""
        ...

    async def recent_assistant_turns(self, limit: int) -> list[TurnRecord]:
        """List the most recent assistant turns across all conversations, newest first."""
        ...


class BookRepository(Protocol):
    """Repository for searchable documents."""

    async def get_accessible_books(
        self, book_ids: Sequence[UUID], user_id: UUID
    ) -> list[BookRecord]:
        """Get the selected books that the user may search (own or global)."""
        ...

    async def list_books(self, user_id: UUID) -> list[BookRecord]:
        """List books visible to the user, newest first."""
        ...

    async def get_book(self, book_id: UUID) -> BookRecord | None:
        """Get book by ID."""
        ...

    async def create_book(
        self,
        *,
        owner_user_id: UUID | None,
        title: str,
        storage_path: str | None,
        index_handle: str | None,
        index_file_id: str | None,
    ) -> BookRecord:
        """Create a book row (after its index has been built)."""
        ...

    async def delete_book(self, book_id: UUID) -> None:
        """Delete the book row."""
        ...


class QuotaCounter(Protocol):
    """Atomic per-user, per-day counter."""

    async def increment(self, user_id: UUID, day: date, limit: int) -> bool:
        """Atomically increment the counter and compare it with the limit.

        Args:
            user_id: User ID
            day: Calendar day the counter belongs to
            limit: Maximum allowed count for the day

        Returns:
            True if this call is within the limit, False if it is over
        """
        ...


class PromptRepository(Protocol):
    """Repository for example questions."""

    async def random_questions(self, limit: int) -> list[str]:
        """Return up to ``limit`` active example questions in random order."""
        ...
