import io
import random

import pytest
from PIL import Image

from zeroplugins.wordle import (
    Dictionary,
    LengthError,
    LetterState,
    UnknownWordError,
    WordleError,
    WordleGame,
    class_length,
    score_guess,
)

WORDS = ["apple", "angle", "ample", "brick", "crane", "plane", "stone"]


@pytest.fixture
def dictionary():
    return Dictionary(WORDS + ["", "  "])


def test_dictionary_membership(dictionary):
    assert "apple" in dictionary
    assert "zzzzz" not in dictionary
    assert "" not in dictionary
    assert len(dictionary) == len(WORDS)


def test_random_word_from_dictionary(dictionary):
    rng = random.Random(3)
    for _ in range(20):
        assert dictionary.random_word(rng) in dictionary


def test_empty_dictionary_random_word():
    with pytest.raises(WordleError):
        Dictionary([]).random_word()


def test_score_guess_exact():
    assert score_guess("apple", "apple") == [LetterState.MATCH] * 5


def test_score_guess_mixed():
    assert score_guess("angle", "apple") == [
        LetterState.MATCH,
        LetterState.NOTEXIST,
        LetterState.NOTEXIST,
        LetterState.MATCH,
        LetterState.MATCH,
    ]


def test_score_guess_exist():
    states = score_guess("plane", "apple")
    assert states[0] == LetterState.EXIST


def test_class_length():
    assert class_length("") == 5
    assert class_length("五阶") == 5
    assert class_length("六阶") == 6
    assert class_length("七阶") == 7
    with pytest.raises(ValueError):
        class_length("八阶")


def test_win(dictionary):
    game = WordleGame("apple", dictionary)
    result = game.guess("APPLE")
    assert result.win
    assert result.word == "apple"
    assert all(s == LetterState.MATCH for s in result.states)
    with pytest.raises(WordleError):
        game.guess("angle")


def test_length_error(dictionary):
    game = WordleGame("apple", dictionary)
    with pytest.raises(LengthError):
        game.guess("app")
    assert game.history == []


def test_unknown_word(dictionary):
    game = WordleGame("apple", dictionary)
    with pytest.raises(UnknownWordError):
        game.guess("qwert")
    assert game.history == []


def test_exhaustion(dictionary):
    game = WordleGame("apple", dictionary)
    guesses = ["angle", "ample", "brick", "crane", "plane", "stone"]
    results = [game.guess(g) for g in guesses]
    assert [r.exhausted for r in results] == [False] * 5 + [True]
    assert not any(r.win for r in results)
    assert game.finished
    with pytest.raises(WordleError):
        game.guess("angle")


def _image(data):
    return Image.open(io.BytesIO(data)).convert("RGB")


def test_render_is_png(dictionary):
    data = WordleGame("apple", dictionary).render()
    assert data[:8] == b"\x89PNG\r\n\x1a\n"


def test_render_empty_board(dictionary):
    img = _image(WordleGame("apple", dictionary).render())
    assert img.getpixel((11, 11)) == LetterState.UNDONE.color
    assert img.getpixel((15, 15)) == (255, 255, 255)


def test_render_guess_colors(dictionary):
    game = WordleGame("apple", dictionary)
    game.guess("angle")
    img = _image(game.render())
    assert img.getpixel((11, 11)) == LetterState.MATCH.color
    assert img.getpixel((35, 11)) == LetterState.NOTEXIST.color
    assert img.getpixel((11, 35)) == LetterState.UNDONE.color


def test_render_size_grows_with_length():
    small = _image(WordleGame("apple", Dictionary(["apple"])).render())
    large = _image(WordleGame("orange", Dictionary(["orange"])).render())
    assert large.width > small.width
    assert large.height > small.height
    assert small.height > small.width