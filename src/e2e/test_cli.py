from pathlib import Path
import json
import pytest

from abbrex.__main__ import main

TEXT = "An abbr is a shortened form of a word."


def _dsn(tmp: Path) -> str:
    return f"sqlite:///{tmp / 'cli.sqlite'}"


@pytest.mark.e2e
def test_train_then_explain_across_runs(tmp_path: Path, capsys):
    db = _dsn(tmp_path)
    assert main(["--db", db, "--train", TEXT, "--index", "1", "--expansion", "abbreviation"]) == 0
    assert capsys.readouterr().out.strip() == "example added"

    assert main(["--db", db, "--mode", "explain", "--q", TEXT]) == 0
    assert capsys.readouterr().out.strip() == "An abbr (abbreviation) is a shortened form of a word."

    assert main(["--db", db, "--q", TEXT, "--json"]) == 0
    assert json.loads(capsys.readouterr().out) == {"text": "An abbreviation is a shortened form of a word."}


@pytest.mark.e2e
def test_rejected_example_exits_1(tmp_path: Path, capsys):
    rc = main(["--db", _dsn(tmp_path), "--train", TEXT, "--index", "40", "--expansion", "x", "--json"])
    assert rc == 1
    assert json.loads(capsys.readouterr().out) == {"ok": False}


@pytest.mark.e2e
def test_predict_json(tmp_path: Path, capsys):
    db = _dsn(tmp_path)
    main(["--db", db, "--train", "x ab", "--index", "1", "--expansion", "first"])
    main(["--db", db, "--train", "y ab", "--index", "1", "--expansion", "second"])
    capsys.readouterr()

    assert main(["--db", db, "--always", "ab", "--mode", "predict", "--q", "x ab", "--json"]) == 0
    [row] = json.loads(capsys.readouterr().out)
    assert row["value"] == "ab" and row["always"] is True
    assert [e["value"] for e in row["expansions"]] == ["first", "second"]


@pytest.mark.e2e
def test_predict_table_shows_each_context(tmp_path: Path, capsys):
    db = _dsn(tmp_path)
    main(["--db", db, "--train", TEXT, "--index", "1", "--expansion", "abbreviation"])
    capsys.readouterr()

    assert main(["--db", db, "--mode", "predict", "--q", "Oh, an abbr is a shortened form of a word!"]) == 0
    out = capsys.readouterr().out
    # window of four words each side, delimiters kept, no colour when not a tty
    assert "context: Oh, an abbr is a shortened form" in out
    assert "abbreviation" in out


@pytest.mark.e2e
def test_train_needs_index_and_expansion(tmp_path: Path):
    with pytest.raises(SystemExit):
        main(["--db", _dsn(tmp_path), "--train", TEXT])
