"""Ask flow - from a question to persisted, ranked verbatim passages.

Order of work:
    validate -> quota -> (resolve conversation | fetch books) -> user turn
    -> aggregate -> dedupe -> rank -> top N -> assistant turn -> respond

The quota is consumed before any retrieval starts and the user turn is
written before the index is queried. The assistant turn is written once,
after ranking, with the complete top-N list.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass

from backend.saintshelp.db.repositories import BookRepository
from backend.saintshelp.errors import BadRequestError
from backend.saintshelp.models.ask import AskRequest, AskResponse
from backend.saintshelp.models.passages import store_candidate, to_client_passage
from backend.saintshelp.orchestration.ledger import ConversationLedger, parse_uuid
from backend.saintshelp.quota import QuotaGate
from backend.saintshelp.retrieval.aggregator import CandidateAggregator
from backend.saintshelp.retrieval.dedupe import dedupe
from backend.saintshelp.retrieval.ranker import Ranker
from backend.saintshelp.utils.metrics import PrometheusAskMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidAsk:
    """Ask request after validation."""

    question: str
    selected_ids: list[str]
    conversation_id: str | None


def validate_ask(request: AskRequest) -> ValidAsk:
    """Check the request before anything is consumed.

    Raises:
        BadRequestError: Missing question or empty document selection
    """
    question = request.question.strip()
    if not question:
        raise BadRequestError("Missing question")

    selected = [s.strip() for s in request.selected_document_ids if s and s.strip()]
    if not selected:
        raise BadRequestError("Select at least one book")

    conversation_id = (request.conversation_id or "").strip() or None
    return ValidAsk(question=question, selected_ids=selected, conversation_id=conversation_id)


class AskService:
    """Runs one ask request against injected collaborators."""

    def __init__(
        self,
        *,
        quota: QuotaGate,
        ledger: ConversationLedger,
        books: BookRepository,
        aggregator: CandidateAggregator,
        ranker: Ranker,
        top_passages: int = 3,
        title_chars: int = 60,
        metrics: PrometheusAskMetrics | None = None,
    ) -> None:
        self._quota = quota
        self._ledger = ledger
        self._books = books
        self._aggregator = aggregator
        self._ranker = ranker
        self._top_passages = top_passages
        self._title_chars = title_chars
        self._metrics = metrics or PrometheusAskMetrics()

    async def ask(self, request: AskRequest, user_id: uuid.UUID) -> AskResponse:
        """Answer a question with ranked passages.

        Args:
            request: Ask request body
            user_id: Authenticated caller

        Returns:
            AskResponse with preview passages (possibly empty)

        Raises:
            BadRequestError: Invalid request or no indexed book selected
            QuotaExceededError: Daily limit reached
        """
        valid = validate_ask(request)

        await self._quota.consume_or_raise(user_id)

        book_ids = [bid for bid in (parse_uuid(s) for s in valid.selected_ids) if bid]
        try:
            async with asyncio.TaskGroup() as tg:
                conversation_task = tg.create_task(
                    self._ledger.resolve_or_create(valid.conversation_id, user_id, valid.question)
                )
                books_task = tg.create_task(self._books.get_accessible_books(book_ids, user_id))
        except ExceptionGroup as eg:
            # The sibling lookup is already cancelled; surface the first failure
            raise eg.exceptions[0]

        conversation_id = conversation_task.result().conversation_id
        book_records = books_task.result()

        await self._ledger.append_user_turn(conversation_id, valid.question, valid.selected_ids)

        books = [record.to_book() for record in book_records]
        usable = [book for book in books if book.indexed]
        if not usable:
            raise BadRequestError("Selected books are not indexed yet.")

        candidates = await self._aggregator.search(valid.question, usable)
        unique = dedupe(candidates)
        self._metrics.add_candidates("deduped", len(unique))

        if not unique:
            logger.info(f"No passages survived cleaning for conversation {conversation_id}")
            await self._ledger.append_assistant_turn(conversation_id, [])
            return AskResponse(conversation_id=conversation_id, passages=[])

        ranked = await self._ranker.rank(unique, valid.question)
        stored = [store_candidate(c) for c in ranked[: self._top_passages]]

        await self._ledger.append_assistant_turn(conversation_id, stored)

        return AskResponse(
            conversation_id=conversation_id,
            conversation_title=valid.question[: self._title_chars],
            passages=[to_client_passage(p) for p in stored],
        )
