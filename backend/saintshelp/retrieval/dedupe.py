"""Candidate deduplication."""

from backend.saintshelp.models.passages import Candidate


def dedupe(candidates: list[Candidate]) -> list[Candidate]:
    """Drop candidates whose (book, preview) pair was already seen.

    Overlapping index chunks often reconstruct to the same unit. The first
    occurrence wins and input order is preserved.
    """
    seen: set[tuple[object, str]] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        key = (candidate.book_id, candidate.preview_text)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique
