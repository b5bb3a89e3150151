"""Text normalizer - canonicalize raw extracted text.

Pure function with no I/O. Normalizing already-normalized text is a no-op.
"""

import re
import unicodedata

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_INVALID_CODEPOINTS = re.compile("[\ufeff\ufffc\ufffd\ufffe\uffff]")
_ZERO_WIDTH = re.compile("[\u00ad\u180e\u200b\u200c\u200d\u2060]")
# Any whitespace except newline and tab: NBSP, thin, ideographic, em spaces, etc.
_OTHER_WHITESPACE = re.compile(r"[^\S\n\t]+")
_TRAILING_WHITESPACE = re.compile(r"[ \t]+\n")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def normalize_text(text: str) -> str:
    """Normalize raw text extracted from a source document.

    Steps (order matters):
        1. Line endings (CRLF, CR, U+2028/U+2029) become newlines
        2. Unsafe control characters removed (newline and tab kept)
        3. Unicode NFKC canonicalization
        4. Byte-order marks and invalid/replacement codepoints removed
        5. Zero-width characters removed
        6. Remaining whitespace runs collapsed to one ASCII space
        7. Trailing whitespace before newlines trimmed
        8. Three or more newlines collapsed to exactly two
        9. Leading/trailing whitespace trimmed

    Args:
        text: Raw string (may be empty)

    Returns:
        Normalized string, possibly empty
    """
    if not text:
        return ""

    result = text.replace("\r\n", "\n").replace("\r", "\n")
    result = result.replace("\u2028", "\n").replace("\u2029", "\n\n")
    result = _CONTROL_CHARS.sub("", result)
    result = unicodedata.normalize("NFKC", result)
    result = _INVALID_CODEPOINTS.sub("", result)
    result = _ZERO_WIDTH.sub("", result)
    result = _OTHER_WHITESPACE.sub(" ", result)
    result = _TRAILING_WHITESPACE.sub("\n", result)
    result = _EXCESS_NEWLINES.sub("\n\n", result)

    return result.strip()
