from __future__ import annotations
from typing import Sequence

from .models import Context


def extract(words: Sequence[str], delimiters: Sequence[str], index: int, width: int) -> Context:
    """
    Window of up to `width` words on each side of words[index].

    The window is clipped at the text boundaries; the returned Context keeps
    the delimiters around the window words so it can be rendered back.
    """
    if width < 0:
        raise ValueError(f"context width must be >= 0, got {width}")
    if not 0 <= index < len(words):
        raise ValueError(f"word index {index} out of range for {len(words)} words")
    if len(delimiters) != len(words) + 1:
        raise ValueError("delimiters must hold exactly one more item than words")

    start = max(0, index - width)
    end = min(len(words) - 1, index + width)
    return Context(
        words=tuple(words[start:end + 1]),
        delimiters=tuple(delimiters[start:end + 2]),
        index=index - start,
        start=start,
    )


def from_words(words: Sequence[str], index: int, width: int) -> Context:
    """Context for a bare word list (delimiters taken as single spaces)."""
    delimiters = [""] + [" "] * (len(words) - 1) + [""] if words else [""]
    return extract(words, delimiters, index, width)
