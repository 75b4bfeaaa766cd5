# abbrex/DB/api.py
from __future__ import annotations
import os
from typing import Protocol, Optional, Sequence, Union

# an existing expansion id, or the text of a (possibly new) expansion
ExpansionRef = Union[int, str]


class ExpansionStore(Protocol):
    # Abbreviations
    def abbreviation_exists(self, word: str) -> Optional[int]: ...
    def is_always_abbreviation(self, abbr_id: int) -> bool: ...
    def set_always_abbreviation(self, value: str, always: bool = True) -> int: ...
    # Expansions
    def get_expansions(self, abbr_id: int) -> list[tuple[int, str]]: ...
    def count_examples(self, abbr_id: int, expansion_id: int) -> int: ...
    # Context statistics
    def word_exists_for_expansion(self, word: str, expansion_id: int) -> Optional[int]: ...
    def count_word_occurrences_at_distance(self, expansion_id: int, distance: int, word_id: int) -> int: ...
    def count_all_occurrences_at_distance(self, expansion_id: int, distance: int) -> int: ...
    # Training (one transaction per example)
    def insert_abbreviation_example(
        self, context: Sequence[str], abbr_index: int, expansion: ExpansionRef
    ) -> bool: ...
    # lifecycle
    def close(self) -> None: ...


def check_example(context: Sequence[str], abbr_index: int, expansion: ExpansionRef) -> None:
    """Shared argument validation for insert_abbreviation_example()."""
    if not context:
        raise ValueError("example context is empty")
    if not 0 <= abbr_index < len(context):
        raise ValueError(f"abbreviation index {abbr_index} out of range for {len(context)} words")
    if isinstance(expansion, bool) or not isinstance(expansion, (int, str)):
        raise ValueError(f"expansion must be an id or a text value, got {expansion!r}")
    if isinstance(expansion, str) and not expansion.strip():
        raise ValueError("expansion text is empty")


def make_store(dsn: str) -> ExpansionStore:
    """
    Factory:
      - sqlite:///path -> SQLiteStore (schema created if missing)
      - memory://      -> MemoryStore
    """
    if dsn.startswith("sqlite:///"):
        path = dsn.removeprefix("sqlite:///")
        if path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)

        # Lazy import to avoid a circular import
        from .sqlite_store import SQLiteStore
        return SQLiteStore(path)

    if dsn.startswith("memory://"):
        from .memory_store import MemoryStore
        return MemoryStore()

    raise ValueError(f"Unsupported store DSN: {dsn}")
