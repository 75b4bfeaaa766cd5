from __future__ import annotations
import re
from typing import Iterable

from .config import WORD_CHARS
from .models import TokenizedText


class Tokenizer:
    """
    Splits text into alternating delimiter/word runs.

    `word_chars` is the body of a regex character class ("A-Za-z_" by default).
    Everything outside it is a delimiter. Nothing is dropped, so composing the
    full split always gives back the input text.
    """

    def __init__(self, word_chars: str = WORD_CHARS) -> None:
        self.word_chars = word_chars
        self._word_run = re.compile(f"[{word_chars}]+")

    def words(self, text: str) -> list[str]:
        return self._word_run.findall(text)

    def delimiters(self, text: str) -> list[str]:
        # re.split on word runs yields "" at the edges when text starts/ends with a word
        return self._word_run.split(text)

    def tokenize(self, text: str) -> TokenizedText:
        return TokenizedText(
            text=text,
            words=tuple(self.words(text)),
            delimiters=tuple(self.delimiters(text)),
        )

    def full_split(self, text: str) -> list[str]:
        return self.tokenize(text).full_split()

    def word_index_at(self, text: str, offset: int) -> int:
        """Index of the word covering text[offset], or of the first word after it."""
        index = 0
        for m in self._word_run.finditer(text):
            if m.end() > offset:
                return index
            index += 1
        return index


def compose(parts: Iterable[str]) -> str:
    """Concatenate a full split (or any run of strings) back into text."""
    return "".join(parts)


def tokenize(text: str, word_chars: str = WORD_CHARS) -> TokenizedText:
    return Tokenizer(word_chars).tokenize(text)
