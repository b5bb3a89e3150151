"""Passage cleaning pipeline - raw search hit to citable (full, preview) pair.

The stages run in a fixed order and each one relies on its predecessors:

    normalize + strip header/footer lines
    -> strip heading lines          (line-based; needs newlines intact)
    -> extract logical unit         (needs paragraph breaks intact)
    -> strip header/footer lines    (on full and preview)
    -> dewrap                       (joins lines; headings must already be gone)
    -> strip inline headers         (works on joined prose)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from backend.saintshelp.config import NoiseThresholds, UnitLimits
from backend.saintshelp.passages.dewrap import dewrap
from backend.saintshelp.passages.extract import (
    LogicalUnit,
    extract_logical_unit,
    is_preview_of,
    make_preview,
)
from backend.saintshelp.passages.noise import (
    looks_like_noise,
    strip_header_footer_lines,
    strip_heading_lines,
    strip_inline_headers,
)
from backend.saintshelp.passages.normalize import normalize_text

logger = logging.getLogger(__name__)

# Applied to the extracted unit, in order, to both full and preview text
UNIT_STAGES: tuple[Callable[[str], str], ...] = (
    strip_header_footer_lines,
    dewrap,
    strip_inline_headers,
)


@dataclass(frozen=True)
class CleanedPassage:
    """Result of the cleaning pipeline for one search hit."""

    full_text: str
    preview_text: str


def query_terms(question: str) -> list[str]:
    """Split a question into extractor query terms (whitespace separated)."""
    return [term for term in question.split() if term]


def clean_source_text(text: str) -> str:
    """Normalize raw hit text and drop page furniture and headings.

    Output still carries its newlines so that unit boundaries can be found.
    """
    cleaned = strip_header_footer_lines(normalize_text(text))
    return strip_heading_lines(cleaned)


def reflow_unit(unit: LogicalUnit, max_preview_chars: int) -> CleanedPassage:
    """Run the post-extraction stages over a unit's full and preview text."""
    full = unit.full
    preview = unit.preview
    for stage in UNIT_STAGES:
        full = stage(full)
        preview = stage(preview)

    # Stages can shift text differently at the truncation seam
    if not is_preview_of(preview, full):
        preview = make_preview(full, max_preview_chars)

    return CleanedPassage(full_text=full, preview_text=preview)


def clean_hit(
    text: str,
    terms: list[str],
    *,
    limits: UnitLimits,
    thresholds: NoiseThresholds,
) -> CleanedPassage | None:
    """Turn one raw search hit into a cleaned passage.

    Args:
        text: Raw hit content (multi-part content already joined)
        terms: Query terms used to anchor the unit
        limits: Unit and length limits
        thresholds: Noise classification thresholds

    Returns:
        CleanedPassage, or None when the hit is empty, noise, or too short
    """
    source = clean_source_text(text)
    if not source:
        return None

    unit = extract_logical_unit(source, terms, limits)
    passage = reflow_unit(unit, limits.max_preview_chars)

    # Line-shaped signals only survive in the unit as extracted
    if (
        looks_like_noise(unit.full, thresholds)
        or looks_like_noise(passage.full_text, thresholds)
        or looks_like_noise(passage.preview_text, thresholds)
    ):
        logger.debug("Dropping hit classified as noise")
        return None

    if (
        len(passage.full_text) < limits.min_full_chars
        or len(passage.preview_text) < limits.min_preview_chars
    ):
        return None

    return passage
