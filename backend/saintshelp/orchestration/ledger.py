"""Conversation ledger - conversations, append-only turns, passage lookup.

Conversation lifecycle: nonexistent -> active (created lazily on the first
question) -> deleted (explicit, takes its turns with it).
"""

import logging
import uuid
from collections.abc import Sequence

from backend.saintshelp.db.repositories import (
    ConversationRecord,
    ConversationRepository,
    TurnRecord,
    TurnRole,
)
from backend.saintshelp.errors import ForbiddenError, NotFoundError
from backend.saintshelp.models.conversations import (
    AssistantMessage,
    ConversationDetailResponse,
    ConversationHeader,
    ConversationSummary,
    UserMessage,
)
from backend.saintshelp.models.passages import StoredPassage, to_client_passage

logger = logging.getLogger(__name__)


def parse_uuid(value: str | None) -> uuid.UUID | None:
    """Parse a client-supplied identifier; anything malformed is treated as absent."""
    if not value:
        return None
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


class ConversationLedger:
    """Owns conversation and turn persistence for one caller's requests."""

    def __init__(
        self,
        conversations: ConversationRepository,
        *,
        title_chars: int = 60,
        lookup_window: int = 300,
    ) -> None:
        """Initialize ledger.

        Args:
            conversations: Conversation/turn repository
            title_chars: Length of a new conversation's title (taken from the question)
            lookup_window: Number of recent assistant turns scanned by passage lookup
        """
        self._conversations = conversations
        self._title_chars = title_chars
        self._lookup_window = lookup_window

    async def resolve_or_create(
        self, conversation_id: str | None, user_id: uuid.UUID, question: str
    ) -> ConversationRecord:
        """Reuse the caller's conversation, or start a new one titled from the question.

        A supplied id that is unknown, malformed, or owned by someone else
        starts a new conversation rather than failing.
        """
        parsed = parse_uuid(conversation_id)
        if parsed is not None:
            existing = await self._conversations.get_conversation(parsed)
            if existing is not None and existing.user_id == user_id:
                return existing
            logger.info(f"Conversation {parsed} not usable by {user_id}, starting a new one")

        return await self._conversations.create_conversation(
            user_id, question[: self._title_chars]
        )

    async def append_user_turn(
        self, conversation_id: uuid.UUID, question: str, selected_book_ids: Sequence[str]
    ) -> TurnRecord:
        """Record the question and selected documents."""
        return await self._conversations.append_user_turn(
            conversation_id, question, selected_book_ids
        )

    async def append_assistant_turn(
        self, conversation_id: uuid.UUID, passages: Sequence[StoredPassage]
    ) -> TurnRecord:
        """Record the ranked passages, full text included."""
        return await self._conversations.append_assistant_turn(conversation_id, passages)

    async def lookup_full_passage(
        self, passage_id: uuid.UUID, user_id: uuid.UUID
    ) -> StoredPassage:
        """Find a previously returned passage in the recent assistant turns.

        Args:
            passage_id: Passage identifier returned by /ask
            user_id: Caller

        Returns:
            Stored passage (with full text)

        Raises:
            NotFoundError: If no recent turn carries the passage
            ForbiddenError: If the passage belongs to another user's conversation
        """
        turns = await self._conversations.recent_assistant_turns(self._lookup_window)

        for turn in turns:
            hit = next((p for p in turn.passages or [] if p.id == passage_id), None)
            if hit is None:
                continue

            conversation = await self._conversations.get_conversation(turn.conversation_id)
            if conversation is None or conversation.user_id != user_id:
                raise ForbiddenError("Not allowed")
            return hit

        raise NotFoundError("Passage not found")

    async def list_conversations(self, user_id: uuid.UUID) -> list[ConversationSummary]:
        """List the caller's conversations, newest first."""
        records = await self._conversations.list_conversations(user_id)
        return [
            ConversationSummary(id=r.conversation_id, title=r.title, created_at=r.created_at)
            for r in records
        ]

    async def replay(
        self, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> ConversationDetailResponse:
        """Rebuild a conversation's messages; full passage text stays withheld."""
        conversation = await self._owned(conversation_id, user_id)
        turns = await self._conversations.list_turns(conversation_id)

        messages: list[UserMessage | AssistantMessage] = []
        for turn in turns:
            if turn.role == TurnRole.user:
                messages.append(UserMessage(text=turn.question or ""))
            else:
                messages.append(
                    AssistantMessage(
                        passages=[to_client_passage(p) for p in turn.passages or []]
                    )
                )

        return ConversationDetailResponse(
            conversation=ConversationHeader(
                id=conversation.conversation_id, title=conversation.title
            ),
            messages=messages,
        )

    async def delete(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """Delete the caller's conversation and all of its turns."""
        await self._owned(conversation_id, user_id)
        await self._conversations.delete_conversation(conversation_id)
        logger.info(f"Deleted conversation {conversation_id}")

    async def _owned(self, conversation_id: uuid.UUID, user_id: uuid.UUID) -> ConversationRecord:
        conversation = await self._conversations.get_conversation(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            raise NotFoundError("Conversation not found")
        return conversation
