"""Word guessing game with a rendered board."""

from __future__ import annotations

import bisect
import io
import random
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from PIL import Image, ImageDraw, ImageFont

_WHITE = (255, 255, 255)
_SIDE = 20
_SPACE = 10
_STEP = _SIDE + 4

CLASS_LENGTHS = {
    "": 5,
    "五阶": 5,
    "六阶": 6,
    "七阶": 7,
}


class LetterState(Enum):
    """How a guessed letter relates to the hidden word."""

    MATCH = 0
    EXIST = 1
    NOTEXIST = 2
    UNDONE = 3

    @property
    def color(self) -> tuple[int, int, int]:
        return _COLORS[self]


_COLORS = {
    LetterState.MATCH: (125, 166, 108),
    LetterState.EXIST: (199, 183, 96),
    LetterState.NOTEXIST: (123, 123, 123),
    LetterState.UNDONE: (219, 219, 219),
}


class WordleError(Exception):
    """Base error of the game."""


class LengthError(WordleError):
    """The guess has the wrong length."""

    def __init__(self) -> None:
        super().__init__("length not enough")


class UnknownWordError(WordleError):
    """The guess is not a known word."""

    def __init__(self) -> None:
        super().__init__("unknown word")


@dataclass(frozen=True)
class GuessResult:
    """Outcome of one accepted guess."""

    word: str
    states: tuple[LetterState, ...]
    win: bool
    exhausted: bool


class Dictionary:
    """A sorted word list with fast membership tests."""

    def __init__(self, words: Iterable[str]) -> None:
        self._words = sorted({w.strip() for w in words if w.strip()})

    def __contains__(self, word: object) -> bool:
        if not isinstance(word, str):
            return False
        i = bisect.bisect_left(self._words, word)
        return i < len(self._words) and self._words[i] == word

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self):
        return iter(self._words)

    def random_word(self, rng: random.Random | None = None) -> str:
        """Pick a word at random."""
        if not self._words:
            raise WordleError("dictionary is empty")
        return (rng or random).choice(self._words)


def score_guess(guess: str, target: str) -> list[LetterState]:
    """Colour each letter of ``guess`` against ``target``."""
    if len(guess) != len(target):
        raise LengthError()
    states = []
    for g, t in zip(guess, target):
        if g == t:
            states.append(LetterState.MATCH)
        elif g in target:
            states.append(LetterState.EXIST)
        else:
            states.append(LetterState.NOTEXIST)
    return states


def class_length(name: str) -> int:
    """Word length for a difficulty name such as ``六阶``."""
    try:
        return CLASS_LENGTHS[name]
    except KeyError:
        raise ValueError(f"unknown class: {name!r}") from None


class WordleGame:
    """One round: the hidden word and the guesses made so far."""

    def __init__(self, target: str, dictionary: Dictionary) -> None:
        self.target = target.lower()
        self.dictionary = dictionary
        self.max_attempts = len(self.target) + 1
        self.history: list[str] = []
        self.finished = False

    def guess(self, word: str) -> GuessResult:
        """Submit a guess; raise on a wrong length or an unknown word."""
        if self.finished:
            raise WordleError("game is over")
        word = word.lower()
        win = word == self.target
        if not win:
            if len(word) != len(self.target):
                raise LengthError()
            if word not in self.dictionary:
                raise UnknownWordError()
        self.history.append(word)
        exhausted = len(self.history) >= self.max_attempts
        self.finished = win or exhausted
        return GuessResult(
            word=word,
            states=tuple(score_guess(word, self.target)),
            win=win,
            exhausted=exhausted,
        )

    def render(self) -> bytes:
        """Draw the board as PNG bytes."""
        n = len(self.target)
        size = (_STEP * n + _SPACE * 2 - 4, _STEP * (n + 1) + _SPACE * 2 - 4)
        img = Image.new("RGB", size, _WHITE)
        draw = ImageDraw.Draw(img)
        font = ImageFont.load_default()
        for i in range(n + 1):
            y0 = _SPACE + i * _STEP
            if i < len(self.history):
                word = self.history[i]
                for j, state in enumerate(score_guess(word, self.target)):
                    x0 = _SPACE + j * _STEP
                    draw.rectangle(
                        (x0, y0, x0 + _SIDE - 1, y0 + _SIDE - 1), fill=state.color
                    )
                    draw.text((x0 + 7, y0 + 4), word[j].upper(), fill=_WHITE, font=font)
            else:
                for j in range(n):
                    x0 = _SPACE + j * _STEP + 1
                    draw.rectangle(
                        (x0, y0 + 1, x0 + _SIDE - 3, y0 + _SIDE - 2),
                        outline=LetterState.UNDONE.color,
                        width=1,
                    )
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()