# abbrex/DB/memory_store.py
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .api import ExpansionStore, ExpansionRef, check_example

log = logging.getLogger(__name__)


@dataclass
class _State:
    abbreviations: Dict[str, int] = field(default_factory=dict)      # value -> id
    always: Dict[int, bool] = field(default_factory=dict)            # abbr id -> flag
    expansions: Dict[str, int] = field(default_factory=dict)         # value -> id
    expansion_values: Dict[int, str] = field(default_factory=dict)   # id -> value
    links: Dict[int, Dict[int, int]] = field(default_factory=dict)   # abbr id -> {expansion id: examples}
    words: Dict[str, int] = field(default_factory=dict)              # value -> id
    counts: Dict[Tuple[int, int, int], int] = field(default_factory=dict)  # (exp, dist, word) -> n
    totals: Dict[Tuple[int, int], int] = field(default_factory=dict)       # (exp, dist) -> n
    seen: Dict[int, Set[int]] = field(default_factory=dict)          # exp id -> word ids in context
    next_id: int = 1


class _Journal:
    """
    Writes to the live state, remembering how to undo each one.

    rollback() replays the undo steps newest first, which leaves the state
    exactly as it was before the first write.
    """

    def __init__(self, st: _State) -> None:
        self.st = st
        self._undo: List[Callable[[], None]] = []

    def set(self, d: dict, key, value) -> None:
        if key in d:
            old = d[key]
            self._undo.append(lambda: d.__setitem__(key, old))
        else:
            self._undo.append(lambda: d.pop(key, None))
        d[key] = value

    def add(self, s: set, item) -> None:
        if item not in s:
            s.add(item)
            self._undo.append(lambda: s.discard(item))

    def new_id(self) -> int:
        st = self.st
        i = st.next_id
        self._undo.append(lambda: setattr(st, "next_id", i))
        st.next_id = i + 1
        return i

    def __len__(self) -> int:
        return len(self._undo)

    def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()


class MemoryStore(ExpansionStore):
    """In-memory statistics (useful for tests or ephemeral runs)."""
    def __init__(self) -> None:
        self._state = _State()
        self._lock = threading.RLock()
        self._last_journal_size = 0

    # ---- Abbreviations ----
    def abbreviation_exists(self, word: str) -> Optional[int]:
        with self._lock:
            return self._state.abbreviations.get(word)

    def is_always_abbreviation(self, abbr_id: int) -> bool:
        with self._lock:
            return self._state.always.get(int(abbr_id), False)

    def set_always_abbreviation(self, value: str, always: bool = True) -> int:
        with self._lock:
            j = _Journal(self._state)
            try:
                abbr_id = self._upsert_abbreviation(j, value)
                j.set(self._state.always, abbr_id, bool(always))
            except Exception:
                j.rollback()
                raise
        return abbr_id

    # ---- Expansions ----
    def get_expansions(self, abbr_id: int) -> list[tuple[int, str]]:
        with self._lock:
            st = self._state
            return [(eid, st.expansion_values[eid]) for eid in st.links.get(int(abbr_id), {})]

    def count_examples(self, abbr_id: int, expansion_id: int) -> int:
        with self._lock:
            return self._state.links.get(int(abbr_id), {}).get(int(expansion_id), 0)

    # ---- Context statistics ----
    def word_exists_for_expansion(self, word: str, expansion_id: int) -> Optional[int]:
        with self._lock:
            st = self._state
            word_id = st.words.get(word)
            if word_id is None or word_id not in st.seen.get(int(expansion_id), ()):
                return None
            return word_id

    def count_word_occurrences_at_distance(self, expansion_id: int, distance: int, word_id: int) -> int:
        with self._lock:
            return self._state.counts.get((int(expansion_id), int(distance), int(word_id)), 0)

    def count_all_occurrences_at_distance(self, expansion_id: int, distance: int) -> int:
        with self._lock:
            return self._state.totals.get((int(expansion_id), int(distance)), 0)

    # ---- Training ----
    def insert_abbreviation_example(
        self, context: Sequence[str], abbr_index: int, expansion: ExpansionRef
    ) -> bool:
        try:
            check_example(context, abbr_index, expansion)
        except ValueError:
            log.exception("Example for %r rejected; store left unchanged", expansion)
            return False

        with self._lock:
            j = _Journal(self._state)
            try:
                abbr_id = self._upsert_abbreviation(j, context[abbr_index])
                expansion_id = self._link_expansion(j, abbr_id, expansion)
                examples = self._state.links[abbr_id]
                j.set(examples, expansion_id, examples[expansion_id] + 1)
                for i, word in enumerate(context):
                    if i == abbr_index:
                        continue
                    word_id = self._upsert_word(j, word)
                    self._increment(j, expansion_id, i - abbr_index, word_id)
            except Exception:
                j.rollback()
                log.exception("Example for %r rejected; store left unchanged", expansion)
                return False
            finally:
                self._last_journal_size = len(j)
        return True

    # ---- internals (every write goes through the journal) ----
    @staticmethod
    def _upsert_abbreviation(j: _Journal, value: str) -> int:
        st = j.st
        abbr_id = st.abbreviations.get(value)
        if abbr_id is None:
            abbr_id = j.new_id()
            j.set(st.abbreviations, value, abbr_id)
            j.set(st.always, abbr_id, False)
            j.set(st.links, abbr_id, {})
        return abbr_id

    @staticmethod
    def _link_expansion(j: _Journal, abbr_id: int, expansion: ExpansionRef) -> int:
        st = j.st
        if isinstance(expansion, str):
            expansion_id = st.expansions.get(expansion)
            if expansion_id is None:
                expansion_id = j.new_id()
                j.set(st.expansions, expansion, expansion_id)
                j.set(st.expansion_values, expansion_id, expansion)
        else:
            expansion_id = int(expansion)
            if expansion_id not in st.expansion_values:
                raise KeyError(expansion_id)
        if expansion_id not in st.links[abbr_id]:
            j.set(st.links[abbr_id], expansion_id, 0)
        return expansion_id

    def _upsert_word(self, j: _Journal, word: str) -> int:
        st = j.st
        word_id = st.words.get(word)
        if word_id is None:
            word_id = j.new_id()
            j.set(st.words, word, word_id)
        return word_id

    @staticmethod
    def _increment(j: _Journal, expansion_id: int, distance: int, word_id: int) -> None:
        st = j.st
        key = (expansion_id, distance, word_id)
        j.set(st.counts, key, st.counts.get(key, 0) + 1)
        j.set(st.totals, (expansion_id, distance), st.totals.get((expansion_id, distance), 0) + 1)
        if expansion_id not in st.seen:
            j.set(st.seen, expansion_id, set())
        j.add(st.seen[expansion_id], word_id)

    def close(self) -> None:
        with self._lock:
            self._state = _State()
