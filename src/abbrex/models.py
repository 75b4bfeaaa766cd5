# src/abbrex/models.py
"""
Data models for the abbreviation expander.

- TokenizedText: a text split into words and the delimiters between them.
- Context: the window of words around one abbreviation occurrence.
- Expansion: a candidate full form with its confidence.
- Abbreviation: a detected abbreviation, its context and ranked expansions.

These classes hold no scoring logic. Abbreviation and Expansion objects are
built per call by the detector/predictor and are never persisted.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

_BOLD = "\033[1m"
_RESET = "\033[0m"


def _interleave(words: Tuple[str, ...], delimiters: Tuple[str, ...]) -> list[str]:
    parts: list[str] = []
    for delim, word in zip(delimiters, words):
        parts.append(delim)
        parts.append(word)
    parts.append(delimiters[-1])
    return parts


@dataclass(frozen=True, slots=True)
class TokenizedText:
    """
    Attributes
    ----------
    text : str
        The exact input text.
    words : tuple[str, ...]
        Maximal runs of word characters, in order.
    delimiters : tuple[str, ...]
        Maximal runs of non-word characters. Always len(words) + 1 items; the
        first and last entries are "" when the text starts/ends with a word.
    """
    text: str
    words: Tuple[str, ...]
    delimiters: Tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.delimiters) != len(self.words) + 1:
            raise ValueError(
                f"expected {len(self.words) + 1} delimiters for {len(self.words)} words, "
                f"got {len(self.delimiters)}"
            )

    def full_split(self) -> list[str]:
        """Delimiters and words interleaved: d0, w0, d1, w1, ..., dn."""
        return _interleave(self.words, self.delimiters)


@dataclass(frozen=True, slots=True)
class Context:
    """
    Words surrounding an abbreviation, clipped at the text boundaries.

    `index` is the abbreviation's position inside `words`; `start` is the
    absolute word index of words[0] in the source text.
    """
    words: Tuple[str, ...]
    delimiters: Tuple[str, ...]
    index: int
    start: int = 0

    @property
    def word(self) -> str:
        return self.words[self.index]

    def distance(self, i: int) -> int:
        """Signed distance of window position i from the abbreviation."""
        return i - self.index

    def neighbours(self) -> Iterator[tuple[int, str]]:
        """(distance, word) for every window word except the abbreviation."""
        for i, w in enumerate(self.words):
            if i != self.index:
                yield i - self.index, w

    def side(self, distance: int) -> list[int]:
        """All in-window distances on the same side as `distance`."""
        if distance < 0:
            return list(range(-self.index, 0))
        if distance > 0:
            return list(range(1, len(self.words) - self.index))
        return []

    def render(self, highlight: bool = False) -> str:
        words = list(self.words)
        if highlight:
            words[self.index] = f"{_BOLD}{words[self.index]}{_RESET}"
        return "".join(_interleave(tuple(words), self.delimiters))

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True, slots=True)
class Expansion:
    id: int
    value: str
    confidence: float = 0.0


@dataclass(frozen=True, slots=True)
class Abbreviation:
    """
    A word of the text that matches a known abbreviation.

    Attributes
    ----------
    value : str
        The word as it appears in the text.
    index : int
        Position in the word-only array (not the interleaved split).
    id : Optional[int]
        Store id of the abbreviation, when known.
    always : bool
        True when the word never stands for itself.
    context : Optional[Context]
        Window of surrounding words used for scoring.
    expansions : tuple[Expansion, ...]
        Ranked candidates, highest confidence first. Empty before scoring.
    """
    value: str
    index: int
    id: Optional[int] = None
    always: bool = False
    context: Optional[Context] = None
    expansions: Tuple[Expansion, ...] = ()

    @property
    def best_expansion(self) -> Optional[Expansion]:
        best: Optional[Expansion] = None
        for e in self.expansions:
            if best is None or e.confidence > best.confidence:
                best = e
        return best

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "index": self.index,
            "id": self.id,
            "always": self.always,
            "expansions": [
                {"id": e.id, "value": e.value, "confidence": e.confidence}
                for e in self.expansions
            ],
        }
