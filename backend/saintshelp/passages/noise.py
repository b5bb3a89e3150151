"""Structural noise filter - tables of contents, running headers, page numbers.

Three independent line/inline passes plus one classifier:

- ``looks_like_noise``: classify a candidate unit as TOC/index clutter
- ``strip_header_footer_lines``: drop page-number and running-header lines
- ``strip_heading_lines``: drop chapter/book/part headings (must run before reflow)
- ``strip_inline_headers``: clean headers that survived reflow into prose

Blank lines are always preserved by the line-level passes so that paragraph
boundaries survive for the unit extractor.
"""

import re

from backend.saintshelp.config import NoiseThresholds

DEFAULT_THRESHOLDS = NoiseThresholds()

_DOT_LEADER = re.compile(r"(?:\.\s?){5,}")
_PAGE_REF = re.compile(r"\bpp?\.\s*\d+", re.IGNORECASE)
_HEADING_WORD_LINE = re.compile(
    r"^\s*(?:table\s+of\s+)?(?:contents|index)\s*:?\s*$",
    re.IGNORECASE | re.MULTILINE,
)
# Reflow joins a heading onto the first entry ("Index Abraham, 12, 45")
_HEADING_WORD_OPENING = re.compile(r"\A\s*(?:table\s+of\s+)?(?:contents|index)\b", re.IGNORECASE)

_PAGE_NUMBER_LINE = re.compile(r"^\s*[-\u2013\u2014]?\s*\d{1,4}\s*[-\u2013\u2014]?\s*$")
_PAGE_REF_LINE = re.compile(r"^\s*pp?\.\s*\d+\s*$", re.IGNORECASE)
_ROMAN_PAGE_LINE = re.compile(r"^\s*[ivxlc]{1,7}\s*$")
RUNNING_HEADER_PATTERNS: tuple[re.Pattern[str], ...] = (
    # "Page 12", "Page 12 of 300", "pg. 4"
    re.compile(r"^\s*(?:page|pg\.?)\s*\d+(?:\s*(?:of|/)\s*\d+)?\s*$", re.IGNORECASE),
    # "12 THE SAYINGS OF THE DESERT FATHERS"
    re.compile(r"^\s*\d{1,4}\s+[A-Z][A-Z\s',:\-]{3,60}$"),
    # "THE SAYINGS OF THE DESERT FATHERS 12"
    re.compile(r"^\s*[A-Z][A-Z\s',:\-]{3,60}\s+\d{1,4}\s*$"),
    # bare URL footers
    re.compile(r"^\s*(?:www\.|https?://)\S+\s*$", re.IGNORECASE),
)

_NUMBERED_ITEM = re.compile(r"^\s*\d+\.\s+")
_CARDINALS = (
    "one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve|thirteen|"
    "fourteen|fifteen|sixteen|seventeen|eighteen|nineteen|twenty"
)
_ORDINALS = (
    "first|second|third|fourth|fifth|sixth|seventh|eighth|ninth|tenth|eleventh|"
    "twelfth|thirteenth|fourteenth|fifteenth|sixteenth|seventeenth|eighteenth|"
    "nineteenth|twentieth"
)
_NUMERAL = rf"(?:[ivxlcdm]+|\d+|{_CARDINALS}|{_ORDINALS})"
_HEADING_LINE = re.compile(
    rf"^(?:chapter|book|part|section)\s+(?:the\s+)?{_NUMERAL}\b[^\n]{{0,50}}$",
    re.IGNORECASE,
)
_ORDINAL_HEADING_LINE = re.compile(
    rf"^(?:the\s+)?(?:{_ORDINALS})\s+(?:chapter|book|part|section)\b[^\n]{{0,50}}$",
    re.IGNORECASE,
)
_MAX_CAPS_HEADING_WORDS = 5

_INLINE_MARKER = re.compile(
    rf"\b(?:CHAPTER|Chapter|BOOK|Book|PART|Part|SECTION|Section)\s+"
    rf"(?:[IVXLCDM]+|\d+|(?i:{_CARDINALS}))\b[.:]?"
    r"(?:\s+[A-Z][^.!?\n]{0,50}[.!?])?"
)
_REPEATED_WORDS = re.compile(r"\b((?:[\w'\u2019]+[\s,;:]+){1,7}[\w'\u2019]+)\s+\1\b")
_HEADER_WITH_PAGE = re.compile(
    r"\b[A-Z][a-z'\u2019]+(?:\s+(?:of|the|and|in|on|to|[A-Z][a-z'\u2019]+)){1,6}\d{2,4}\b"
)
_MULTI_SPACE = re.compile(r"[ \t]{2,}")
_MAX_DEDUP_PASSES = 5


def count_dot_leaders(text: str) -> int:
    """Count runs of five or more dots (spaced or not)."""
    return len(_DOT_LEADER.findall(text))


def count_page_refs(text: str) -> int:
    """Count page-style references such as ``p. 12`` or ``pp. 4``."""
    return len(_PAGE_REF.findall(text))


def looks_like_noise(text: str, thresholds: NoiseThresholds = DEFAULT_THRESHOLDS) -> bool:
    """Classify text as table-of-contents / index clutter rather than prose.

    Signals are combined conservatively so that prose carrying ordinary
    scripture cross-references (``Matt. 5:3; cf. Luke 6:20``) is kept.

    Args:
        text: Candidate unit text
        thresholds: Tunable detection thresholds

    Returns:
        True if the text should be discarded
    """
    if not text or not text.strip():
        return True

    if _HEADING_WORD_LINE.search(text) or _HEADING_WORD_OPENING.match(text):
        return True

    dot_leaders = count_dot_leaders(text)
    page_refs = count_page_refs(text)

    if dot_leaders >= thresholds.dot_leader_runs:
        return True
    if page_refs >= thresholds.page_refs:
        return True
    if dot_leaders >= 1 and page_refs >= thresholds.mixed_page_refs:
        return True

    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if len(lines) >= thresholds.min_lines and dot_leaders >= 1:
        short = sum(1 for line in lines if len(line) <= thresholds.short_line_chars)
        if short / len(lines) > thresholds.short_line_ratio:
            return True

    return False


def _is_header_footer_line(line: str) -> bool:
    if _PAGE_NUMBER_LINE.match(line) or _PAGE_REF_LINE.match(line):
        return True
    if _ROMAN_PAGE_LINE.match(line):
        return True
    return any(pattern.match(line) for pattern in RUNNING_HEADER_PATTERNS)


def strip_header_footer_lines(text: str) -> str:
    """Remove page numbers, ``p. N`` lines and known running headers.

    Blank lines are always kept.
    """
    kept = [
        line
        for line in text.split("\n")
        if not line.strip() or not _is_header_footer_line(line)
    ]
    return "\n".join(kept)


def _is_heading_line(line: str) -> bool:
    stripped = line.strip()

    # Headings start with a capital; prose wrapped mid-sentence usually does not
    if stripped[:1].isupper() and (
        _HEADING_LINE.match(stripped) or _ORDINAL_HEADING_LINE.match(stripped)
    ):
        return True

    # Short all-caps line; numbered items ("110. ABBA ANTONY") are content
    if _NUMBERED_ITEM.match(stripped):
        return False
    letters = [ch for ch in stripped if ch.isalpha()]
    if not letters or any(ch.islower() for ch in letters):
        return False
    return len(stripped.split()) <= _MAX_CAPS_HEADING_WORDS


def strip_heading_lines(text: str) -> str:
    """Remove chapter/book/part/section heading lines before reflow.

    Matches roman or arabic numerals, spelled-out cardinals and ordinals,
    and short all-caps lines of at most five words. Blank lines are kept.
    """
    kept = [line for line in text.split("\n") if not line.strip() or not _is_heading_line(line)]
    return "\n".join(kept)


def strip_inline_headers(text: str) -> str:
    """Remove header debris that survived reflow into continuous prose.

    - Inline chapter/section markers, with an optional short title sentence
    - Immediate repetition of a 2-8 word sequence (overlapping chunk seams)
    - Running header fused to a page number (``Desert Fathers123``)
    """
    result = _INLINE_MARKER.sub(" ", text)

    for _ in range(_MAX_DEDUP_PASSES):
        deduped = _REPEATED_WORDS.sub(r"\1", result)
        if deduped == result:
            break
        result = deduped

    result = _HEADER_WITH_PAGE.sub(" ", result)
    result = _MULTI_SPACE.sub(" ", result)

    return "\n".join(line.strip() for line in result.split("\n")).strip()
