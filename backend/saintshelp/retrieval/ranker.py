"""Ranker - orders candidates, optionally through an external reranker.

The reranker may only reorder. Whatever it returns is repaired into a total
ordering of the input; when it fails or returns nothing usable the index's
own scores decide.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import TypeVar

from backend.saintshelp.llm.reranker import Reranker
from backend.saintshelp.models.passages import Candidate
from backend.saintshelp.utils.metrics import PrometheusAskMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def score_sort(candidates: Sequence[Candidate]) -> list[Candidate]:
    """Sort by score descending; a missing score counts as 0. Stable for ties."""
    return sorted(candidates, key=lambda c: c.score if c.score is not None else 0.0, reverse=True)


def apply_ranking(items: Sequence[T], ranked_indices: Sequence[int]) -> list[T]:
    """Reorder ``items`` by ``ranked_indices``.

    Out-of-range and repeated indices are ignored; items the ranking does not
    mention follow in their original order. The result is always a
    permutation of ``items``.
    """
    ordered: list[T] = []
    used: set[int] = set()
    for index in ranked_indices:
        if 0 <= index < len(items) and index not in used:
            ordered.append(items[index])
            used.add(index)

    ordered.extend(item for i, item in enumerate(items) if i not in used)
    return ordered


class Ranker:
    """Orders deduplicated candidates, most relevant first."""

    def __init__(
        self,
        reranker: Reranker | None = None,
        *,
        rerank_candidate_cap: int = 18,
        rerank_timeout_ms: int = 10000,
        metrics: PrometheusAskMetrics | None = None,
    ) -> None:
        """Initialize ranker.

        Args:
            reranker: External reranker, or None for score ordering only
            rerank_candidate_cap: Number of leading candidates shown to the reranker
            rerank_timeout_ms: Reranker call timeout
            metrics: Metrics sink
        """
        self._reranker = reranker
        self._cap = rerank_candidate_cap
        self._timeout_s = rerank_timeout_ms / 1000
        self._metrics = metrics or PrometheusAskMetrics()

    async def rank(self, candidates: list[Candidate], question: str) -> list[Candidate]:
        """Order ``candidates`` for ``question``.

        Only the first ``rerank_candidate_cap`` candidates are sent to the
        reranker; the remainder follow them in score order.

        Returns:
            The same candidates, reordered
        """
        if not candidates:
            return []

        if self._reranker is None:
            self._metrics.inc_rerank("disabled")
            return score_sort(candidates)

        head = candidates[: self._cap]
        tail = candidates[self._cap :]

        ranked_indices = await self._rerank(self._reranker, question, head)
        if not any(0 <= i < len(head) for i in ranked_indices):
            self._metrics.inc_rerank("fallback")
            return score_sort(candidates)

        self._metrics.inc_rerank("reranked")
        return apply_ranking(head, ranked_indices) + score_sort(tail)

    async def _rerank(
        self, reranker: Reranker, question: str, head: list[Candidate]
    ) -> list[int]:
        blocks = [(c.book_title, c.preview_text) for c in head]
        try:
            return await asyncio.wait_for(
                reranker.rank_indices(question, blocks), timeout=self._timeout_s
            )
        except TimeoutError:
            logger.warning(f"Reranker timed out after {self._timeout_s}s, using score order")
        except Exception:
            logger.warning("Reranker call failed, using score order", exc_info=True)
        return []
