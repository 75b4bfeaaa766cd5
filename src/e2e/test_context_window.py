import pytest

from abbrex.context import extract, from_words
from abbrex.tokenizer import tokenize


def _ctx(text: str, index: int, width: int):
    t = tokenize(text)
    return extract(t.words, t.delimiters, index, width)


def test_window_is_clipped_at_the_start():
    c = _ctx("An abbr is a shortened form of a word.", 1, 4)
    assert c.words == ("An", "abbr", "is", "a", "shortened", "form")
    assert c.index == 1
    assert c.start == 0
    assert c.word == "abbr"


def test_window_is_clipped_at_the_end():
    c = _ctx("one two three four five", 4, 2)
    assert c.words == ("three", "four", "five")
    assert c.index == 2
    assert c.start == 2


def test_neighbours_carry_signed_distances_and_skip_the_abbreviation():
    c = _ctx("a b ab c d e", 2, 2)
    assert list(c.neighbours()) == [(-2, "a"), (-1, "b"), (1, "c"), (2, "d")]


def test_side_lists_only_in_window_distances():
    c = _ctx("a b ab c", 2, 4)
    assert c.side(-1) == [-2, -1]
    assert c.side(1) == [1]
    assert c.side(0) == []


def test_render_keeps_delimiters_and_can_highlight():
    c = _ctx("Hi, DIY fans!", 1, 1)
    assert c.render() == "Hi, DIY fans!"
    assert c.render(highlight=True) == "Hi, \033[1mDIY\033[0m fans!"


def test_zero_width_holds_only_the_abbreviation():
    c = _ctx("x ab y", 1, 0)
    assert c.words == ("ab",)
    assert list(c.neighbours()) == []


def test_from_words_uses_single_spaces():
    c = from_words(["x", "ab", "y"], 1, 4)
    assert str(c) == "x ab y"


@pytest.mark.parametrize("index, width", [(5, 2), (-1, 2), (0, -1)])
def test_bad_arguments_raise(index, width):
    with pytest.raises(ValueError):
        _ctx("a b c", index, width)
