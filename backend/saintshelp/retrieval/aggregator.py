"""Candidate aggregator - fan out one index query per book and clean the hits.

A book whose query fails or times out contributes zero candidates; the
other books are unaffected. Failed queries are not retried.
"""

import asyncio
import logging
import time
from typing import Any

from backend.saintshelp.config import NoiseThresholds, UnitLimits
from backend.saintshelp.models.books import Book
from backend.saintshelp.models.passages import Candidate
from backend.saintshelp.passages.pipeline import clean_hit, query_terms
from backend.saintshelp.search.client import DocumentSearchClient, SearchHit
from backend.saintshelp.utils.metrics import PrometheusAskMetrics

logger = logging.getLogger(__name__)


class CandidateAggregator:
    """Queries every usable book concurrently and builds cleaned candidates."""

    def __init__(
        self,
        search_client: DocumentSearchClient,
        *,
        candidates_per_book: int = 10,
        search_timeout_ms: int = 8000,
        limits: UnitLimits | None = None,
        thresholds: NoiseThresholds | None = None,
        metrics: PrometheusAskMetrics | None = None,
    ) -> None:
        """Initialize aggregator.

        Args:
            search_client: Index search collaborator
            candidates_per_book: Hits requested from each book's index
            search_timeout_ms: Per-book query timeout
            limits: Unit extraction limits
            thresholds: Noise classification thresholds
            metrics: Metrics sink
        """
        self._search_client = search_client
        self._candidates_per_book = candidates_per_book
        self._timeout_s = search_timeout_ms / 1000
        self._limits = limits or UnitLimits()
        self._thresholds = thresholds or NoiseThresholds()
        self._metrics = metrics or PrometheusAskMetrics()

    async def search(self, question: str, books: list[Book]) -> list[Candidate]:
        """Retrieve and clean candidates for ``question`` across ``books``.

        Args:
            question: User question (also the index query)
            books: Books to search; books without an index handle are skipped

        Returns:
            Candidates flattened in book order, then hit order
        """
        usable = [book for book in books if book.indexed]
        terms = query_terms(question)

        per_book = await asyncio.gather(
            *(self._search_book(book, question, terms) for book in usable)
        )

        candidates = [candidate for batch in per_book for candidate in batch]
        self._metrics.add_candidates("kept", len(candidates))
        return candidates

    async def _search_book(self, book: Book, question: str, terms: list[str]) -> list[Candidate]:
        hits = await self._query_index(book, question)
        self._metrics.add_candidates("raw", len(hits))

        candidates: list[Candidate] = []
        for hit in hits:
            if not hit.text.strip():
                continue

            passage = clean_hit(hit.text, terms, limits=self._limits, thresholds=self._thresholds)
            if passage is None:
                continue

            candidates.append(
                Candidate(
                    book_id=book.id,
                    book_title=book.title,
                    score=hit.score,
                    preview_text=passage.preview_text,
                    full_text=passage.full_text,
                )
            )
        return candidates

    async def _query_index(self, book: Book, question: str) -> list[SearchHit]:
        index_handle = book.index_handle or ""

        start = time.perf_counter()
        outcome = "success"
        hits: list[SearchHit] = []
        try:
            hits = await asyncio.wait_for(
                self._search_client.search(
                    index_handle, question, self._candidates_per_book
                ),
                timeout=self._timeout_s,
            )
        except TimeoutError:
            outcome = "timeout"
            logger.warning(f"Index query for book {book.id} timed out after {self._timeout_s}s")
        except Exception:
            outcome = "error"
            logger.warning(f"Index query for book {book.id} failed", exc_info=True)

        latency_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_search(outcome, latency_ms)
        self._log_outcome(book, outcome, len(hits), latency_ms)
        return hits

    def _log_outcome(self, book: Book, outcome: str, hit_count: int, latency_ms: float) -> None:
        log_data: dict[str, Any] = {
            "book_id": str(book.id),
            "outcome": outcome,
            "hits": hit_count,
            "latency_ms": round(latency_ms, 2),
        }
        log_msg = f"Book search: {book.title} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
