"""Logical unit extractor - expand a retrieved chunk to a citable unit.

Priority:
    1. Numbered item ("110. The elder said...") when the text has two or more markers
    2. Paragraph (blank-line delimited)
    3. Fixed-radius window around the first query-term hit, ellipsis-marked
"""

import re
from dataclasses import dataclass

from backend.saintshelp.config import UnitLimits

ELLIPSIS = "\u2026"
DEFAULT_LIMITS = UnitLimits()

_NUMBERED_ITEM = re.compile(r"^\s*\d+\.\s+")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class LogicalUnit:
    """Extracted unit: full text plus a bounded preview."""

    full: str
    preview: str


def make_preview(full: str, max_chars: int = DEFAULT_LIMITS.max_preview_chars) -> str:
    """Truncate ``full`` to ``max_chars`` and mark truncation with an ellipsis."""
    full = full.strip()
    if len(full) <= max_chars:
        return full
    return full[:max_chars].rstrip() + ELLIPSIS


def is_preview_of(preview: str, full: str) -> bool:
    """Check that ``preview`` equals ``full`` or is a strict prefix plus ellipsis."""
    if preview == full:
        return True
    for marker in (ELLIPSIS, "..."):
        if preview.endswith(marker):
            head = preview[: -len(marker)]
            return len(head) < len(full) and full.startswith(head)
    return False


def find_anchor(text: str, terms: list[str]) -> int:
    """Offset of the first hit of any term, scanning terms in order.

    Case-insensitive. Returns 0 when no term occurs.
    """
    lower = text.lower()
    for term in terms:
        if not term:
            continue
        idx = lower.find(term.lower())
        if idx != -1:
            return idx
    return 0


def numbered_item_starts(text: str) -> list[int]:
    """Character offsets of lines that open a numbered item."""
    starts: list[int] = []
    pos = 0
    for line in text.split("\n"):
        if _NUMBERED_ITEM.match(line):
            starts.append(pos)
        pos += len(line) + 1
    return starts


def _numbered_unit(text: str, anchor: int) -> str | None:
    starts = numbered_item_starts(text)
    if len(starts) < 2:
        return None

    start = 0
    for offset in starts:
        if offset <= anchor:
            start = offset

    end = len(text)
    for offset in starts:
        if offset > anchor:
            end = offset
            break

    return text[start:end].strip()


def _paragraph_unit(text: str, anchor: int) -> str:
    breaks = [m.start() for m in _PARAGRAPH_BREAK.finditer(text)]

    start = 0
    for offset in breaks:
        if offset < anchor:
            start = offset

    end = len(text)
    for offset in breaks:
        if offset > anchor:
            end = offset
            break

    return text[start:end].strip()


def _window_unit(text: str, anchor: int, radius: int) -> str:
    start = max(0, anchor - radius)
    end = min(len(text), anchor + radius)

    snippet = text[start:end].strip()
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def extract_logical_unit(
    text: str,
    terms: list[str],
    limits: UnitLimits = DEFAULT_LIMITS,
) -> LogicalUnit:
    """Locate the best matching region of ``text`` and expand it to a unit.

    Args:
        text: Cleaned chunk text (newlines intact)
        terms: Query terms, scanned in order; first hit wins
        limits: Length limits (minimum unit size, window radius, preview cap)

    Returns:
        LogicalUnit with trimmed ``full`` and ``preview`` (never empty unless
        ``text`` is empty)
    """
    anchor = find_anchor(text, terms)

    unit = _numbered_unit(text, anchor)
    if unit is None or len(unit) < limits.min_unit_chars:
        unit = _paragraph_unit(text, anchor)
        if len(unit) < limits.min_unit_chars:
            unit = _window_unit(text, anchor, limits.window_radius)

    full = unit.strip()
    return LogicalUnit(full=full, preview=make_preview(full, limits.max_preview_chars))
