# abbrex/DB/sqlite_store.py
from __future__ import annotations
import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from .api import ExpansionStore, ExpansionRef, check_example

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS abbreviations (
  id INTEGER PRIMARY KEY,
  value TEXT NOT NULL UNIQUE,
  is_always_abbreviation INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS expansions (
  id INTEGER PRIMARY KEY,
  value TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS abbreviation_expansion (
  abbreviation_id INTEGER NOT NULL REFERENCES abbreviations(id),
  expansion_id INTEGER NOT NULL REFERENCES expansions(id),
  examples INTEGER NOT NULL DEFAULT 0,
  PRIMARY KEY (abbreviation_id, expansion_id)
);
CREATE TABLE IF NOT EXISTS words (
  id INTEGER PRIMARY KEY,
  value TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS context (
  expansion_id INTEGER NOT NULL REFERENCES expansions(id),
  distance INTEGER NOT NULL,
  word_id INTEGER NOT NULL REFERENCES words(id),
  count INTEGER NOT NULL DEFAULT 0,
  PRIMARY KEY (expansion_id, distance, word_id)
);
CREATE INDEX IF NOT EXISTS context_word ON context(word_id, expansion_id);
"""


class SQLiteStore(ExpansionStore):
    """Statistics persisted in a single SQLite file."""
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        # autocommit mode; writes open their own BEGIN IMMEDIATE transaction
        self.conn: sqlite3.Connection = sqlite3.connect(
            db_path, isolation_level=None, check_same_thread=False
        )
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(_SCHEMA)
        self._lock = threading.RLock()

    # ---- Abbreviations ----
    def abbreviation_exists(self, word: str) -> Optional[int]:
        return self._scalar("SELECT id FROM abbreviations WHERE value=?", (word,))

    def is_always_abbreviation(self, abbr_id: int) -> bool:
        row = self._scalar(
            "SELECT is_always_abbreviation FROM abbreviations WHERE id=?", (int(abbr_id),)
        )
        return bool(row)

    def set_always_abbreviation(self, value: str, always: bool = True) -> int:
        with self._transaction() as cur:
            abbr_id = self._upsert_abbreviation(cur, value)
            cur.execute(
                "UPDATE abbreviations SET is_always_abbreviation=? WHERE id=?",
                (1 if always else 0, abbr_id),
            )
        return abbr_id

    # ---- Expansions ----
    def get_expansions(self, abbr_id: int) -> list[tuple[int, str]]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT e.id, e.value FROM expansions e "
                "JOIN abbreviation_expansion ae ON e.id = ae.expansion_id "
                "WHERE ae.abbreviation_id=? ORDER BY ae.rowid",
                (int(abbr_id),),
            ).fetchall()
        return [(int(i), v) for i, v in rows]

    def count_examples(self, abbr_id: int, expansion_id: int) -> int:
        n = self._scalar(
            "SELECT examples FROM abbreviation_expansion WHERE abbreviation_id=? AND expansion_id=?",
            (int(abbr_id), int(expansion_id)),
        )
        return int(n or 0)

    # ---- Context statistics ----
    def word_exists_for_expansion(self, word: str, expansion_id: int) -> Optional[int]:
        return self._scalar(
            "SELECT c.word_id FROM context c JOIN words w ON c.word_id = w.id "
            "WHERE w.value=? AND c.expansion_id=? LIMIT 1",
            (word, int(expansion_id)),
        )

    def count_word_occurrences_at_distance(self, expansion_id: int, distance: int, word_id: int) -> int:
        n = self._scalar(
            "SELECT count FROM context WHERE expansion_id=? AND distance=? AND word_id=?",
            (int(expansion_id), int(distance), int(word_id)),
        )
        return int(n or 0)

    def count_all_occurrences_at_distance(self, expansion_id: int, distance: int) -> int:
        n = self._scalar(
            "SELECT COALESCE(SUM(count), 0) FROM context WHERE expansion_id=? AND distance=?",
            (int(expansion_id), int(distance)),
        )
        return int(n or 0)

    # ---- Training ----
    def insert_abbreviation_example(
        self, context: Sequence[str], abbr_index: int, expansion: ExpansionRef
    ) -> bool:
        try:
            check_example(context, abbr_index, expansion)
            with self._transaction() as cur:
                abbr_id = self._upsert_abbreviation(cur, context[abbr_index])
                expansion_id = self._link_expansion(cur, abbr_id, expansion)
                cur.execute(
                    "UPDATE abbreviation_expansion SET examples = examples + 1 "
                    "WHERE abbreviation_id=? AND expansion_id=?",
                    (abbr_id, expansion_id),
                )
                for i, word in enumerate(context):
                    if i == abbr_index:
                        continue
                    word_id = self._upsert_word(cur, word)
                    self._increment(cur, expansion_id, i - abbr_index, word_id)
        except Exception:
            log.exception("Example for %r rejected; transaction rolled back", expansion)
            return False
        return True

    # ---- internals ----
    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            cur = self.conn.cursor()
            cur.execute("BEGIN IMMEDIATE")
            try:
                yield cur
            except BaseException:
                cur.execute("ROLLBACK")
                raise
            else:
                cur.execute("COMMIT")
            finally:
                cur.close()

    def _scalar(self, sql: str, params: tuple):
        with self._lock:
            row = self.conn.execute(sql, params).fetchone()
        return None if row is None else row[0]

    @staticmethod
    def _upsert_abbreviation(cur: sqlite3.Cursor, value: str) -> int:
        cur.execute("INSERT OR IGNORE INTO abbreviations(value) VALUES (?)", (value,))
        return int(cur.execute("SELECT id FROM abbreviations WHERE value=?", (value,)).fetchone()[0])

    @staticmethod
    def _link_expansion(cur: sqlite3.Cursor, abbr_id: int, expansion: ExpansionRef) -> int:
        if isinstance(expansion, str):
            cur.execute("INSERT OR IGNORE INTO expansions(value) VALUES (?)", (expansion,))
            expansion_id = int(
                cur.execute("SELECT id FROM expansions WHERE value=?", (expansion,)).fetchone()[0]
            )
        else:
            row = cur.execute("SELECT id FROM expansions WHERE id=?", (int(expansion),)).fetchone()
            if row is None:
                raise KeyError(expansion)
            expansion_id = int(row[0])
        cur.execute(
            "INSERT OR IGNORE INTO abbreviation_expansion(abbreviation_id, expansion_id) VALUES (?,?)",
            (abbr_id, expansion_id),
        )
        return expansion_id

    def _upsert_word(self, cur: sqlite3.Cursor, word: str) -> int:
        cur.execute("INSERT OR IGNORE INTO words(value) VALUES (?)", (word,))
        return int(cur.execute("SELECT id FROM words WHERE value=?", (word,)).fetchone()[0])

    @staticmethod
    def _increment(cur: sqlite3.Cursor, expansion_id: int, distance: int, word_id: int) -> None:
        cur.execute(
            "INSERT INTO context(expansion_id, distance, word_id, count) VALUES (?,?,?,1) "
            "ON CONFLICT(expansion_id, distance, word_id) DO UPDATE SET count = count + 1",
            (expansion_id, distance, word_id),
        )

    # ---- lifecycle ----
    def close(self) -> None:
        with self._lock:
            self.conn.close()
