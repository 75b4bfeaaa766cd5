# abbrex/engine.py
from __future__ import annotations

import os
import logging
from typing import List, Optional, Sequence, Union

from .config import EngineConfig
from .context import from_words
from .detector import find_abbreviations, lookup
from .models import Abbreviation, Expansion, TokenizedText
from .predictor import Predictor
from .rebuild import rebuild
from .tokenizer import Tokenizer
from .DB.api import ExpansionStore, ExpansionRef, make_store

log = logging.getLogger(__name__)


class Engine:
    """
    Thin orchestration layer that glues together:
      - tokenization (Tokenizer),
      - detection of known abbreviations (detector.find_abbreviations),
      - confidence scoring (Predictor) backed by an ExpansionStore,
      - text reconstruction (rebuild.rebuild).

    Public API (used by CLI/Flask/GUI):
      * find_abbreviations(text):    candidates, no scoring
      * predict_abbreviations(text): candidates with ranked expansions
      * expand(text) / explain(text)
      * add_example(context, index, expansion): train on one labelled usage
      * shutdown():                  close the store

    Storage DSNs (via abbrex.DB.api.make_store):
      - "sqlite:///path/to/stats.sqlite"
      - "memory://"
    """

    # ------------- lifecycle -------------

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        store: Optional[ExpansionStore] = None,
        verbose: bool = False,
    ) -> None:
        if verbose:
            logging.basicConfig(level=logging.INFO)
            os.environ["ABBREX_VERBOSE"] = "1"

        self.config = config or EngineConfig()
        self.tokenizer = Tokenizer(self.config.word_chars)
        if store is None:
            log.info("Initializing expansion store: %s", self.config.store_dsn)
            store = make_store(self.config.store_dsn)
        self._store: Optional[ExpansionStore] = store
        self._predictor = Predictor(
            store,
            threshold=self.config.threshold,
            prior_weighting=self.config.prior_weighting,
        )

    @property
    def store(self) -> ExpansionStore:
        if self._store is None:
            raise RuntimeError("Engine has been shut down.")
        return self._store

    # ------------- query -------------

    # /* ~~~ Words the store knows as abbreviations, without expansions ~~~ */
    def find_abbreviations(self, text: str) -> List[Abbreviation]:
        tokens = self.tokenizer.tokenize(text)
        return find_abbreviations(tokens, self.store, self.config.context_width)

    # /* ~~~ Candidates that kept at least one expansion, in text order ~~~ */
    def predict_abbreviations(self, text: str) -> List[Abbreviation]:
        return self._predict(self.tokenizer.tokenize(text))

    def predict_expansions(self, words: Sequence[str], index: int) -> List[Expansion]:
        """Ranked expansions for words[index] of an already split text."""
        hit = lookup(self.store, words[index])
        if hit is None:
            return []
        abbr_id, always = hit
        context = from_words(words, index, self.config.context_width)
        return self._predictor.rank(abbr_id, context, always)

    def expand(self, text: str) -> str:
        return self._rebuild(text, "expand")

    def explain(self, text: str) -> str:
        return self._rebuild(text, "explain")

    # ------------- training -------------

    # /* ~~~ Record one labelled usage; all-or-nothing ~~~ */
    def add_example(
        self,
        context: Union[str, Sequence[str]],
        index: int,
        expansion: ExpansionRef,
    ) -> bool:
        words = self.tokenizer.words(context) if isinstance(context, str) else list(context)
        ok = self.store.insert_abbreviation_example(words, index, expansion)
        if ok:
            log.info("Added example: %r -> %r (%d context words)",
                     words[index], expansion, len(words) - 1)
        return ok

    def mark_always_abbreviation(self, word: str, always: bool = True) -> int:
        abbr_id = self.store.set_always_abbreviation(word, always)
        log.info("Marked %r (id=%d) always_abbreviation=%s", word, abbr_id, always)
        return abbr_id

    # ------------- teardown -------------

    def shutdown(self) -> None:
        try:
            if self._store is not None:
                self._store.close()
        finally:
            self._store = None
            log.info("Engine shutdown complete")

    # ------------- internals -------------

    def _rebuild(self, text: str, mode: str) -> str:
        tokens = self.tokenizer.tokenize(text)
        if not tokens.words:
            return text
        return rebuild(tokens, self._predict(tokens), mode)

    def _predict(self, tokens: TokenizedText) -> List[Abbreviation]:
        predicted = []
        for abbr in find_abbreviations(tokens, self.store, self.config.context_width):
            scored = self._predictor.predict(abbr)
            if scored.expansions:
                predicted.append(scored)
        return predicted
