from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from .DB.api import ExpansionStore
from .context import extract
from .models import Abbreviation, TokenizedText

log = logging.getLogger(__name__)


def lookup(store: ExpansionStore, word: str) -> Optional[Tuple[int, bool]]:
    """
    (abbreviation id, always flag) for a known abbreviation, else None.

    A failing id lookup reads as "not an abbreviation"; a failing flag lookup
    reads as always=False.
    """
    try:
        abbr_id = store.abbreviation_exists(word)
    except Exception as exc:
        log.warning("Abbreviation lookup for %r failed (%r); skipping", word, exc)
        return None
    if abbr_id is None:
        return None
    try:
        always = bool(store.is_always_abbreviation(abbr_id))
    except Exception as exc:
        log.warning("Always-abbreviation flag for %r failed (%r); assuming False", word, exc)
        always = False
    return abbr_id, always


def find_abbreviations(tokens: TokenizedText, store: ExpansionStore, width: int) -> List[Abbreviation]:
    """
    Candidate abbreviations of a tokenized text, in text order.

    A word is a candidate when the store knows it as an abbreviation. No
    expansions are attached here.
    """
    found: List[Abbreviation] = []
    for i, word in enumerate(tokens.words):
        hit = lookup(store, word)
        if hit is None:
            continue
        abbr_id, always = hit
        found.append(
            Abbreviation(
                value=word,
                index=i,
                id=abbr_id,
                always=always,
                context=extract(tokens.words, tokens.delimiters, i, width),
            )
        )
    found.sort(key=lambda a: a.index)
    return found
