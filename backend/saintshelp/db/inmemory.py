"""In-memory implementations of repository interfaces."""

import random
import uuid
from collections.abc import Sequence
from datetime import date

from backend.saintshelp.db.models import utcnow
from backend.saintshelp.db.repositories import (
    BookRecord,
    ConversationRecord,
    ProfileRecord,
    TurnRecord,
    TurnRole,
)
from backend.saintshelp.models.passages import StoredPassage


class InMemoryProfileRepository:
    """In-memory implementation of ProfileRepository."""

    def __init__(self, profiles: Sequence[ProfileRecord] = ()) -> None:
        self._profiles: dict[uuid.UUID, ProfileRecord] = {p.user_id: p for p in profiles}

    def add(self, profile: ProfileRecord) -> None:
        self._profiles[profile.user_id] = profile

    async def get_profile(self, user_id: uuid.UUID) -> ProfileRecord | None:
        """Get profile by user ID."""
        return self._profiles.get(user_id)


class InMemoryConversationRepository:
    """In-memory implementation of ConversationRepository."""

    def __init__(self) -> None:
        self._conversations: dict[uuid.UUID, ConversationRecord] = {}
        self._turns: list[TurnRecord] = []

    async def get_conversation(self, conversation_id: uuid.UUID) -> ConversationRecord | None:
        """Get conversation by ID."""
        return self._conversations.get(conversation_id)

    async def create_conversation(self, user_id: uuid.UUID, title: str) -> ConversationRecord:
        """Create a new conversation."""
        record = ConversationRecord(
            conversation_id=uuid.uuid4(),
            user_id=user_id,
            title=title,
            created_at=utcnow(),
        )
        self._conversations[record.conversation_id] = record
        return record

    async def list_conversations(self, user_id: uuid.UUID) -> list[ConversationRecord]:
        """List a user's conversations, newest first."""
        owned = [c for c in self._conversations.values() if c.user_id == user_id]
        return sorted(owned, key=lambda c: c.created_at, reverse=True)

    async def delete_conversation(self, conversation_id: uuid.UUID) -> None:
        """Delete a conversation and its turns."""
        self._turns = [t for t in self._turns if t.conversation_id != conversation_id]
        self._conversations.pop(conversation_id, None)

    async def append_user_turn(
        self, conversation_id: uuid.UUID, question: str, selected_book_ids: Sequence[str]
    ) -> TurnRecord:
        """Append a user turn."""
        return self._append(
            conversation_id,
            role=TurnRole.user,
            question=question,
            selected_book_ids=list(selected_book_ids),
            passages=None,
        )

    async def append_assistant_turn(
        self, conversation_id: uuid.UUID, passages: Sequence[StoredPassage]
    ) -> TurnRecord:
        """Append an assistant turn."""
        return self._append(
            conversation_id,
            role=TurnRole.assistant,
            question=None,
            selected_book_ids=None,
            passages=list(passages),
        )

    async def list_turns(self, conversation_id: uuid.UUID) -> list[TurnRecord]:
        """List turns in creation order."""
        return [t for t in self._turns if t.conversation_id == conversation_id]

    async def recent_assistant_turns(self, limit: int) -> list[TurnRecord]:
        """List the most recent assistant turns, newest first."""
        assistant = [t for t in self._turns if t.role == TurnRole.assistant]
        return list(reversed(assistant))[:limit]

    def _append(
        self,
        conversation_id: uuid.UUID,
        *,
        role: TurnRole,
        question: str | None,
        selected_book_ids: list[str] | None,
        passages: list[StoredPassage] | None,
    ) -> TurnRecord:
        if conversation_id not in self._conversations:
            raise KeyError(f"Unknown conversation {conversation_id}")

        record = TurnRecord(
            turn_id=uuid.uuid4(),
            conversation_id=conversation_id,
            role=role,
            question=question,
            selected_book_ids=selected_book_ids,
            passages=passages,
            created_at=utcnow(),
        )
        self._turns.append(record)
        return record


class InMemoryBookRepository:
    """In-memory implementation of BookRepository."""

    def __init__(self, books: Sequence[BookRecord] = ()) -> None:
        self._books: dict[uuid.UUID, BookRecord] = {b.book_id: b for b in books}

    async def get_accessible_books(
        self, book_ids: Sequence[uuid.UUID], user_id: uuid.UUID
    ) -> list[BookRecord]:
        """Get selected books owned by the user or global."""
        wanted = set(book_ids)
        return [
            b
            for b in self._books.values()
            if b.book_id in wanted and b.owner_user_id in (None, user_id)
        ]

    async def list_books(self, user_id: uuid.UUID) -> list[BookRecord]:
        """List visible books, newest first."""
        visible = [b for b in self._books.values() if b.owner_user_id in (None, user_id)]
        return sorted(visible, key=lambda b: b.created_at, reverse=True)

    async def get_book(self, book_id: uuid.UUID) -> BookRecord | None:
        """Get book by ID."""
        return self._books.get(book_id)

    async def create_book(
        self,
        *,
        owner_user_id: uuid.UUID | None,
        title: str,
        storage_path: str | None,
        index_handle: str | None,
        index_file_id: str | None,
    ) -> BookRecord:
        """Create a book."""
        record = BookRecord(
            book_id=uuid.uuid4(),
            owner_user_id=owner_user_id,
            title=title,
            storage_path=storage_path,
            index_handle=index_handle,
            index_file_id=index_file_id,
            created_at=utcnow(),
        )
        self._books[record.book_id] = record
        return record

    async def delete_book(self, book_id: uuid.UUID) -> None:
        """Delete a book."""
        self._books.pop(book_id, None)


class InMemoryQuotaCounter:
    """In-memory implementation of QuotaCounter.

    Not shared across processes; meant for tests and local development.
    """

    def __init__(self) -> None:
        self._counts: dict[tuple[uuid.UUID, date], int] = {}

    async def increment(self, user_id: uuid.UUID, day: date, limit: int) -> bool:
        """Increment the counter for (user, day) unless it is already at the limit."""
        key = (user_id, day)
        current = self._counts.get(key, 0)
        if current >= limit:
            return False
        self._counts[key] = current + 1
        return True

    def count(self, user_id: uuid.UUID, day: date) -> int:
        return self._counts.get((user_id, day), 0)


class InMemoryPromptRepository:
    """In-memory implementation of PromptRepository."""

    def __init__(self, questions: Sequence[str] = ()) -> None:
        self._questions = list(questions)

    async def random_questions(self, limit: int) -> list[str]:
        """Return up to ``limit`` questions in random order."""
        return random.sample(self._questions, min(limit, len(self._questions)))
