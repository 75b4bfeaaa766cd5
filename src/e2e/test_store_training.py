# src/e2e/test_store_training.py

from pathlib import Path
import threading
import pytest

from abbrex.DB.api import make_store
from abbrex.DB.memory_store import MemoryStore
from abbrex.DB.sqlite_store import SQLiteStore

CONTEXT = ["An", "abbr", "is", "a", "shortened", "form"]


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    s = make_store("memory://") if request.param == "memory" else make_store(
        f"sqlite:///{tmp_path / 'stats.sqlite'}"
    )
    yield s
    s.close()


def _snapshot(store, expansion_id: int, words, distances) -> dict:
    """Every statistic the predictor could read for these words/distances."""
    snap = {}
    for w in words:
        wid = store.word_exists_for_expansion(w, expansion_id)
        snap[("word", w)] = wid
        for d in distances:
            snap[("total", d)] = store.count_all_occurrences_at_distance(expansion_id, d)
            if wid is not None:
                snap[("count", w, d)] = store.count_word_occurrences_at_distance(expansion_id, d, wid)
    return snap


def test_factory_picks_implementation(tmp_path: Path):
    assert isinstance(make_store("memory://"), MemoryStore)
    s = make_store(f"sqlite:///{tmp_path / 'nested' / 'db.sqlite'}")
    try:
        assert isinstance(s, SQLiteStore)
        assert (tmp_path / "nested" / "db.sqlite").exists()
    finally:
        s.close()


def test_factory_rejects_unknown_dsn():
    with pytest.raises(ValueError):
        make_store("postgres://localhost/stats")


def test_example_with_new_expansion_text(store):
    assert store.insert_abbreviation_example(CONTEXT, 1, "abbreviation") is True

    abbr_id = store.abbreviation_exists("abbr")
    assert abbr_id is not None
    [(eid, value)] = store.get_expansions(abbr_id)
    assert value == "abbreviation"

    wid = store.word_exists_for_expansion("shortened", eid)
    assert wid is not None
    assert store.count_word_occurrences_at_distance(eid, 3, wid) == 1
    assert store.count_word_occurrences_at_distance(eid, 2, wid) == 0
    assert store.count_all_occurrences_at_distance(eid, -1) == 1
    assert store.count_all_occurrences_at_distance(eid, 0) == 0
    assert store.word_exists_for_expansion("abbr", eid) is None
    assert store.word_exists_for_expansion("missing", eid) is None
    assert store.count_examples(abbr_id, eid) == 1


def test_repeated_examples_increment_by_one_and_link_once(store):
    for _ in range(3):
        assert store.insert_abbreviation_example(CONTEXT, 1, "abbreviation")
    abbr_id = store.abbreviation_exists("abbr")
    [(eid, _)] = store.get_expansions(abbr_id)
    wid = store.word_exists_for_expansion("An", eid)
    assert store.count_word_occurrences_at_distance(eid, -1, wid) == 3
    assert store.count_examples(abbr_id, eid) == 3


def test_example_with_existing_expansion_id(store):
    store.insert_abbreviation_example(CONTEXT, 1, "abbreviation")
    abbr_id = store.abbreviation_exists("abbr")
    [(eid, _)] = store.get_expansions(abbr_id)

    assert store.insert_abbreviation_example(["see", "abbr"], 1, eid) is True
    wid = store.word_exists_for_expansion("see", eid)
    assert store.count_word_occurrences_at_distance(eid, -1, wid) == 1
    assert store.count_all_occurrences_at_distance(eid, -1) == 2


def test_existing_expansion_gets_linked_to_another_abbreviation(store):
    store.insert_abbreviation_example(["the", "abbr"], 1, "abbreviation")
    [(eid, _)] = store.get_expansions(store.abbreviation_exists("abbr"))
    assert store.insert_abbreviation_example(["the", "abbrev"], 1, eid)
    assert store.get_expansions(store.abbreviation_exists("abbrev")) == [(eid, "abbreviation")]


def test_expansions_keep_insertion_order(store):
    store.insert_abbreviation_example(["x", "ab"], 1, "first")
    store.insert_abbreviation_example(["y", "ab"], 1, "second")
    store.insert_abbreviation_example(["z", "ab"], 1, "first")
    values = [v for _, v in store.get_expansions(store.abbreviation_exists("ab"))]
    assert values == ["first", "second"]


@pytest.mark.parametrize(
    "context, index, expansion",
    [
        ([], 0, "x"),
        (["a", "b"], 2, "x"),
        (["a", "b"], -1, "x"),
        (["a", "b"], 0, ""),
        (["a", "b"], 0, 9999),
        (["a", "b"], 0, None),
    ],
)
def test_invalid_examples_return_false_and_write_nothing(store, context, index, expansion):
    assert store.insert_abbreviation_example(context, index, expansion) is False
    assert store.abbreviation_exists("a") is None


def test_failure_midway_rolls_back_everything(store, monkeypatch):
    assert store.insert_abbreviation_example(CONTEXT, 1, "abbreviation")
    abbr_id = store.abbreviation_exists("abbr")
    [(eid, _)] = store.get_expansions(abbr_id)
    words = CONTEXT + ["brand", "new"]
    before = _snapshot(store, eid, words, range(-3, 8))
    examples_before = store.count_examples(abbr_id, eid)

    real = store._upsert_word
    calls = {"n": 0}

    def flaky(*args):
        calls["n"] += 1
        if calls["n"] == 4:
            raise RuntimeError("disk full")
        return real(*args)

    monkeypatch.setattr(store, "_upsert_word", flaky)
    ok = store.insert_abbreviation_example(["new", "abbr", "is", "a", "brand", "new", "form"], 1, "abbreviation")
    assert ok is False
    assert calls["n"] == 4

    assert _snapshot(store, eid, words, range(-3, 8)) == before
    assert store.count_examples(abbr_id, eid) == examples_before

    # a brand-new abbreviation and expansion vanish too
    calls["n"] = 0
    assert store.insert_abbreviation_example(["one", "two", "xyz", "three", "four"], 2, "ex why zed") is False
    assert store.abbreviation_exists("xyz") is None


def test_always_flag(store):
    assert store.abbreviation_exists("DIY") is None
    abbr_id = store.set_always_abbreviation("DIY")
    assert store.abbreviation_exists("DIY") == abbr_id
    assert store.is_always_abbreviation(abbr_id) is True
    assert store.get_expansions(abbr_id) == []

    assert store.set_always_abbreviation("DIY", False) == abbr_id
    assert store.is_always_abbreviation(abbr_id) is False


def test_new_abbreviations_are_not_always(store):
    store.insert_abbreviation_example(["x", "ab"], 1, "E")
    assert store.is_always_abbreviation(store.abbreviation_exists("ab")) is False


def test_sqlite_statistics_survive_reopen(tmp_path: Path):
    dsn = f"sqlite:///{tmp_path / 'stats.sqlite'}"
    s = make_store(dsn)
    s.insert_abbreviation_example(CONTEXT, 1, "abbreviation")
    s.set_always_abbreviation("abbr")
    s.close()

    s = make_store(dsn)
    try:
        abbr_id = s.abbreviation_exists("abbr")
        assert s.is_always_abbreviation(abbr_id)
        [(eid, value)] = s.get_expansions(abbr_id)
        assert value == "abbreviation"
        assert s.count_all_occurrences_at_distance(eid, 4) == 1
    finally:
        s.close()


def test_concurrent_examples_lose_no_updates(store):
    threads, repeats = 8, 25
    results: list[bool] = []
    barrier = threading.Barrier(threads)

    def worker():
        barrier.wait()
        for _ in range(repeats):
            results.append(store.insert_abbreviation_example(["x", "ab"], 1, "E"))

    pool = [threading.Thread(target=worker) for _ in range(threads)]
    for t in pool:
        t.start()
    for t in pool:
        t.join()

    assert results.count(True) == threads * repeats
    abbr_id = store.abbreviation_exists("ab")
    [(eid, _)] = store.get_expansions(abbr_id)
    wid = store.word_exists_for_expansion("x", eid)
    assert store.count_word_occurrences_at_distance(eid, -1, wid) == threads * repeats
    assert store.count_all_occurrences_at_distance(eid, -1) == threads * repeats
    assert store.count_examples(abbr_id, eid) == threads * repeats


def test_memory_insert_work_does_not_grow_with_the_store():
    store = MemoryStore()
    live = store._state
    example = ["one", "two", "ab", "three", "four"]
    store.insert_abbreviation_example(example, 2, "E")
    store.insert_abbreviation_example(example, 2, "E")
    repeat_cost = store._last_journal_size
    # examples counter, then count + total per context word
    assert repeat_cost == 1 + 2 * 4

    for n in range(2000):
        store.insert_abbreviation_example([f"w{n}", "ab", f"v{n}"], 1, f"E{n}")
    store.insert_abbreviation_example(example, 2, "E")

    assert store._last_journal_size == repeat_cost
    # statistics are updated in place, never copied
    assert store._state is live
