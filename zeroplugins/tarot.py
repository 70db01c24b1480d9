"""Tarot card draws, spreads and card descriptions."""

from __future__ import annotations

import json
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

BED = "https://gitcode.net/shudorcl/zbp-tarot/-/raw/master/"
MAJOR_COUNT = 22
MAX_DRAW = 20

_POSITIONS = ("『正位』", "『逆位』")
_REVERSE_DIR = "Reverse/"
_REASONS = ("您抽到的是~\n", "锵锵锵，塔罗牌的预言是~\n", "诶，让我看看您抽到了~\n")


@dataclass(frozen=True)
class Card:
    """One tarot card and its meanings."""

    name: str
    description: str = ""
    reverse_description: str = ""
    img_url: str = ""


@dataclass(frozen=True)
class Formation:
    """A spread: how many cards it takes and what each position stands for."""

    cards_num: int
    is_cut: bool = False
    represent: tuple[tuple[str, ...], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DrawnCard:
    """A card as it came out of the deck, upright or reversed."""

    card: Card
    reversed_: bool

    @property
    def position(self) -> str:
        return _POSITIONS[int(self.reversed_)]

    @property
    def description(self) -> str:
        return self.card.reverse_description if self.reversed_ else self.card.description

    @property
    def image_url(self) -> str:
        return image_url(self.card, self.reversed_)

    @property
    def image_name(self) -> str:
        """Cache name of the card image."""
        prefix = _REVERSE_DIR[:-1] if self.reversed_ else ""
        return prefix + self.card.name


def image_url(card: Card, reversed_: bool) -> str:
    """Where the image of ``card`` is hosted, in the given orientation."""
    return BED + (_REVERSE_DIR if reversed_ else "") + card.img_url


def arcana_range(card_type: str) -> tuple[int, int]:
    """First card index and number of cards for a deck name."""
    if "小" in card_type:
        return 22, 55
    if card_type == "混合":
        return 0, 77
    return 0, MAJOR_COUNT


def parse_draw_count(text: str) -> int:
    """Number of cards asked for by text such as ``3张``; empty means one."""
    if not text:
        return 1
    n = int(text.removesuffix("张"))
    if n <= 0:
        raise ValueError("张数必须为正")
    if n > MAX_DRAW:
        raise ValueError("抽取张数过多")
    return n


def _load(data: Any) -> Any:
    if isinstance(data, (str, bytes, bytearray)):
        return json.loads(data)
    return data


class Deck:
    """All cards by index, and the known spreads by name."""

    def __init__(self, cards: Mapping[int, Card], formations: Mapping[str, Formation]) -> None:
        self.cards = dict(cards)
        self.formations = dict(formations)
        self._by_name = {card.name: card for card in self.cards.values()}
        self.major_arcana = [
            self.cards[i].name if i in self.cards else "" for i in range(MAJOR_COUNT)
        ]

    @classmethod
    def from_json(cls, cards_data: Any, formations_data: Any) -> Deck:
        """Build a deck from the card and spread JSON documents."""
        cards = {}
        for key, value in _load(cards_data).items():
            info = value.get("info", {}) or {}
            cards[int(key)] = Card(
                name=value.get("name", ""),
                description=info.get("description", ""),
                reverse_description=info.get("reverseDescription", ""),
                img_url=info.get("imgUrl", ""),
            )
        formations = {}
        for name, value in _load(formations_data).items():
            formations[name] = Formation(
                cards_num=int(value.get("cards_num", 0)),
                is_cut=bool(value.get("is_cut", False)),
                represent=tuple(tuple(row) for row in value.get("represent", []) or []),
            )
        return cls(cards, formations)

    def _pick(self, n: int, card_type: str, rng: random.Random | None) -> list[DrawnCard]:
        start, length = arcana_range(card_type)
        if n < 1:
            raise ValueError("张数必须为正")
        if n > length:
            raise ValueError("抽取张数过多")
        rng = rng or random.Random()
        return [
            DrawnCard(self.cards[start + j], bool(rng.randrange(2)))
            for j in rng.sample(range(length), n)
        ]

    def draw(self, n: int, arcana: str, rng: random.Random | None = None) -> list[DrawnCard]:
        """Draw ``n`` distinct cards from the named part of the deck."""
        return self._pick(n, arcana, rng)

    def draw_formation(
        self, name: str, arcana: str, rng: random.Random | None = None
    ) -> list[tuple[str, DrawnCard]]:
        """Lay out a spread; return each position's meaning with its card."""
        formation = self.formations.get(name)
        if formation is None:
            raise KeyError(
                f"没有找到{name}噢~\n现有牌阵列表: \n" + "\n".join(self.formations)
            )
        drawn = self._pick(formation.cards_num, arcana, rng)
        meanings = formation.represent[0] if formation.represent else ()
        return [(meanings[i], card) for i, card in enumerate(drawn)]

    def card_list_text(self) -> str:
        """Text listing every card name that can be looked up."""
        major = self.major_arcana
        return (
            "塔罗牌列表\n大阿尔卡纳:\n"
            + " ".join(major[:7])
            + "\n"
            + " ".join(major[7:14])
            + "\n"
            + " ".join(major[14:22])
            + "\n小阿尔卡纳:\n[圣杯|星币|宝剑|权杖] [0-10|侍从|骑士|王后|国王]"
        )

    def describe(self, name: str) -> str:
        """Both meanings of the named card."""
        card = self._by_name.get(name)
        if card is None:
            raise KeyError(f"没有找到{name}噢~")
        return (
            f"\n{name}的含义是~\n『正位』:{card.description}"
            f"\n『逆位』:{card.reverse_description}"
        )


def draw_text(drawn: DrawnCard, rng: random.Random | None = None) -> str:
    """Announcement of a single drawn card."""
    reason = (rng or random).choice(_REASONS)
    return f"{reason}{drawn.position}的『{drawn.card.name}』\n其释义为: {drawn.description}"


def formation_text(owner: str, name: str, layout: Sequence[tuple[str, DrawnCard]]) -> str:
    """Summary text of a laid-out spread."""
    parts = [f"{owner}---{name}\n"]
    for meaning, drawn in layout:
        parts.append(
            f"{meaning}:{drawn.position}的『{drawn.card.name}』\n其释义为: \n"
            f"{drawn.description}\n"
        )
    return "".join(parts)