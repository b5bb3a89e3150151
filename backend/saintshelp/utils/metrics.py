"""Prometheus metrics for the ask pipeline."""

from prometheus_client import Counter, Histogram

ask_requests_total = Counter(
    "ask_requests_total",
    "Total ask requests by outcome",
    ["outcome"],
)

book_search_latency_ms = Histogram(
    "book_search_latency_ms",
    "Per-book index query latency in milliseconds",
    ["outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000],
)

candidates_total = Counter(
    "candidates_total",
    "Candidates seen at each pipeline stage",
    ["stage"],
)

rerank_total = Counter(
    "rerank_total",
    "Ranking outcomes",
    ["outcome"],
)


class PrometheusAskMetrics:
    """Prometheus-based ask pipeline metrics implementation."""

    def record_search(self, outcome: str, latency_ms: float) -> None:
        """Record one book's index query latency."""
        book_search_latency_ms.labels(outcome=outcome).observe(latency_ms)

    def add_candidates(self, stage: str, count: int) -> None:
        """Count candidates at a stage (raw, kept, deduped)."""
        candidates_total.labels(stage=stage).inc(count)

    def inc_rerank(self, outcome: str) -> None:
        """Count a ranking outcome (reranked, fallback, disabled)."""
        rerank_total.labels(outcome=outcome).inc()

    def inc_request(self, outcome: str) -> None:
        """Count an ask request outcome."""
        ask_requests_total.labels(outcome=outcome).inc()
