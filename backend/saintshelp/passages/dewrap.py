"""Dewrap/reflow - undo hard line-wraps from the source pagination.

Must run after heading lines have been stripped; otherwise heading text is
fused into the surrounding prose and can no longer be removed line-wise.
"""

import re

_BLANK_LINE = re.compile(r"\n[ \t]+\n")
_SINGLE_NEWLINE = re.compile(r"(?<!\n)\n(?!\n)")
_SPACES = re.compile(r"[ \t]+")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def dewrap(text: str) -> str:
    """Join wrapped lines into prose while keeping paragraph breaks.

    Single newlines become spaces; double newlines survive as paragraph
    breaks. Runs of spaces/tabs collapse to one space.
    """
    result = text.replace("\r\n", "\n").replace("\r", "\n")
    result = _BLANK_LINE.sub("\n\n", result)
    result = _SINGLE_NEWLINE.sub(" ", result)
    result = _SPACES.sub(" ", result)
    result = _EXCESS_NEWLINES.sub("\n\n", result)
    result = "\n".join(line.strip() for line in result.split("\n"))
    return result.strip()
