from __future__ import annotations
from typing import Dict, Iterable

from .models import Abbreviation, TokenizedText

MODES = ("expand", "explain")


def rebuild(tokens: TokenizedText, abbreviations: Iterable[Abbreviation], mode: str = "expand") -> str:
    """
    Reassemble the text, touching only words that are scored abbreviations.

    expand:  the word is replaced by its best expansion
    explain: the best expansion follows the word in parentheses
    Delimiters are copied through unchanged.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown rebuild mode: {mode!r} (expected one of {MODES})")

    best: Dict[int, str] = {}
    for abbr in abbreviations:
        top = abbr.best_expansion
        if top is not None:
            best[abbr.index] = top.value

    out: list[str] = []
    for i, (delim, word) in enumerate(zip(tokens.delimiters, tokens.words)):
        out.append(delim)
        expansion = best.get(i)
        if expansion is None:
            out.append(word)
        elif mode == "expand":
            out.append(expansion)
        else:
            out.append(f"{word} ({expansion})")
    out.append(tokens.delimiters[-1])
    return "".join(out)
