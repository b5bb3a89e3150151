"""SQL implementations of repository interfaces."""

import uuid
from collections.abc import Sequence
from datetime import date

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.saintshelp.db.models import (
    Book,
    Conversation,
    ConversationTurn,
    Profile,
    QuestionPrompt,
    UsageDaily,
)
from backend.saintshelp.db.queries import select_owned_conversations, select_visible_books
from backend.saintshelp.db.repositories import (
    BookRecord,
    ConversationRecord,
    ProfileRecord,
    ProfileStatus,
    TurnRecord,
    TurnRole,
)
from backend.saintshelp.models.passages import StoredPassage


def _conversation_record(row: Conversation) -> ConversationRecord:
    return ConversationRecord(
        conversation_id=row.conversation_id,
        user_id=row.user_id,
        title=row.title,
        created_at=row.created_at,
    )


def _turn_record(row: ConversationTurn) -> TurnRecord:
    passages = None
    if row.answer_passages is not None:
        passages = [
            StoredPassage.model_validate(p) for p in row.answer_passages.get("passages", [])
        ]

    return TurnRecord(
        turn_id=row.turn_id,
        conversation_id=row.conversation_id,
        role=TurnRole(row.role),
        question=row.question,
        selected_book_ids=row.selected_book_ids,
        passages=passages,
        created_at=row.created_at,
    )


def _book_record(row: Book) -> BookRecord:
    return BookRecord(
        book_id=row.book_id,
        owner_user_id=row.owner_user_id,
        title=row.title,
        storage_path=row.storage_path,
        index_handle=row.index_handle,
        index_file_id=row.index_file_id,
        created_at=row.created_at,
    )


class SqlProfileRepository:
    """SQL implementation of ProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_profile(self, user_id: uuid.UUID) -> ProfileRecord | None:
        """Get profile by user ID."""
        profile = await self._session.get(Profile, user_id)
        if profile is None:
            return None

        return ProfileRecord(
            user_id=profile.user_id,
            email=profile.email,
            status=ProfileStatus(profile.status),
            is_admin=profile.is_admin,
        )


class SqlConversationRepository:
    """SQL implementation of ConversationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_conversation(self, conversation_id: uuid.UUID) -> ConversationRecord | None:
        """Get conversation by ID."""
        row = await self._session.get(Conversation, conversation_id)
        return _conversation_record(row) if row is not None else None

    async def create_conversation(self, user_id: uuid.UUID, title: str) -> ConversationRecord:
        """Create a new conversation."""
        row = Conversation(conversation_id=uuid.uuid4(), user_id=user_id, title=title)
        self._session.add(row)
        await self._session.commit()
        return _conversation_record(row)

    async def list_conversations(self, user_id: uuid.UUID) -> list[ConversationRecord]:
        """List a user's conversations, newest first."""
        result = await self._session.scalars(
            select_owned_conversations(user_id).order_by(Conversation.created_at.desc())
        )
        return [_conversation_record(row) for row in result]

    async def delete_conversation(self, conversation_id: uuid.UUID) -> None:
        """Delete turns, then the conversation."""
        # Explicit turn delete; SQLite does not enforce ON DELETE CASCADE by default
        await self._session.execute(
            delete(ConversationTurn).where(ConversationTurn.conversation_id == conversation_id)
        )
        await self._session.execute(
            delete(Conversation).where(Conversation.conversation_id == conversation_id)
        )
        await self._session.commit()

    async def append_user_turn(
        self, conversation_id: uuid.UUID, question: str, selected_book_ids: Sequence[str]
    ) -> TurnRecord:
        """Append a user turn."""
        row = ConversationTurn(
            turn_id=uuid.uuid4(),
            conversation_id=conversation_id,
            role=TurnRole.user.value,
            question=question,
            selected_book_ids=list(selected_book_ids),
        )
        return await self._write_turn(row)

    async def append_assistant_turn(
        self, conversation_id: uuid.UUID, passages: Sequence[StoredPassage]
    ) -> TurnRecord:
        """Append an assistant turn with the full stored passages."""
        row = ConversationTurn(
            turn_id=uuid.uuid4(),
            conversation_id=conversation_id,
            role=TurnRole.assistant.value,
            answer_passages={"passages": [p.model_dump(mode="json") for p in passages]},
        )
        return await self._write_turn(row)

    async def list_turns(self, conversation_id: uuid.UUID) -> list[TurnRecord]:
        """List turns in creation order."""
        result = await self._session.scalars(
            select(ConversationTurn)
            .where(ConversationTurn.conversation_id == conversation_id)
            .order_by(ConversationTurn.created_at.asc())
        )
        return [_turn_record(row) for row in result]

    async def recent_assistant_turns(self, limit: int) -> list[TurnRecord]:
        """List the most recent assistant turns, newest first."""
        result = await self._session.scalars(
            select(ConversationTurn)
            .where(ConversationTurn.role == TurnRole.assistant.value)
            .order_by(ConversationTurn.created_at.desc())
            .limit(limit)
        )
        return [_turn_record(row) for row in result]

    async def _write_turn(self, row: ConversationTurn) -> TurnRecord:
        self._session.add(row)
        await self._session.commit()
        return _turn_record(row)


class SqlBookRepository:
    """SQL implementation of BookRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_accessible_books(
        self, book_ids: Sequence[uuid.UUID], user_id: uuid.UUID
    ) -> list[BookRecord]:
        """Get selected books owned by the user or global."""
        if not book_ids:
            return []

        result = await self._session.scalars(
            select_visible_books(user_id).where(Book.book_id.in_(list(book_ids)))
        )
        return [_book_record(row) for row in result]

    async def list_books(self, user_id: uuid.UUID) -> list[BookRecord]:
        """List visible books, newest first."""
        result = await self._session.scalars(
            select_visible_books(user_id).order_by(Book.created_at.desc())
        )
        return [_book_record(row) for row in result]

    async def get_book(self, book_id: uuid.UUID) -> BookRecord | None:
        """Get book by ID."""
        row = await self._session.get(Book, book_id)
        return _book_record(row) if row is not None else None

    async def create_book(
        self,
        *,
        owner_user_id: uuid.UUID | None,
        title: str,
        storage_path: str | None,
        index_handle: str | None,
        index_file_id: str | None,
    ) -> BookRecord:
        """Create a book row."""
        row = Book(
            book_id=uuid.uuid4(),
            owner_user_id=owner_user_id,
            title=title,
            storage_path=storage_path,
            index_handle=index_handle,
            index_file_id=index_file_id,
        )
        self._session.add(row)
        await self._session.commit()
        return _book_record(row)

    async def delete_book(self, book_id: uuid.UUID) -> None:
        """Delete a book row."""
        await self._session.execute(delete(Book).where(Book.book_id == book_id))
        await self._session.commit()


class SqlQuotaCounter:
    """SQL implementation of QuotaCounter backed by ``usage_daily``.

    The increment is a single conditional UPDATE so concurrent requests
    cannot both pass at the limit.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def increment(self, user_id: uuid.UUID, day: date, limit: int) -> bool:
        """Increment the (user, day) row unless it is already at the limit."""
        if limit <= 0:
            return False

        if await self._conditional_increment(user_id, day, limit):
            return True

        # No row for today yet, or the row is at the limit
        exists = await self._session.scalar(
            select(func.count())
            .select_from(UsageDaily)
            .where(UsageDaily.user_id == user_id, UsageDaily.day == day)
        )
        if exists:
            return False

        self._session.add(UsageDaily(user_id=user_id, day=day, count=1))
        try:
            await self._session.commit()
        except IntegrityError:
            # Lost the insert race; the row exists now
            await self._session.rollback()
            return await self._conditional_increment(user_id, day, limit)
        return True

    async def _conditional_increment(self, user_id: uuid.UUID, day: date, limit: int) -> bool:
        result = await self._session.execute(
            update(UsageDaily)
            .where(
                UsageDaily.user_id == user_id,
                UsageDaily.day == day,
                UsageDaily.count < limit,
            )
            .values(count=UsageDaily.count + 1)
        )
        await self._session.commit()
        return result.rowcount == 1


class SqlPromptRepository:
    """SQL implementation of PromptRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def random_questions(self, limit: int) -> list[str]:
        """Return up to ``limit`` active questions in random order."""
        result = await self._session.scalars(
            select(QuestionPrompt.question_text)
            .where(QuestionPrompt.active.is_(True))
            .order_by(func.random())
            .limit(limit)
        )
        return list(result)
