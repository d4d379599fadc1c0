from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

Language = Literal["zh", "en"]


class Suit(str, Enum):
    characters = "m"
    dots = "p"
    bamboo = "s"
    honor = "z"


MAX_COPIES = 4

_GLYPHS = {
    Suit.characters: "🀇🀈🀉🀊🀋🀌🀍🀎🀏",
    Suit.dots: "🀙🀚🀛🀜🀝🀞🀟🀠🀡",
    Suit.bamboo: "🀐🀑🀒🀓🀔🀕🀖🀗🀘",
    Suit.honor: "🀀🀁🀂🀃🀆🀅🀄",
}
_HONOR_NAMES = {
    "en": ["East Wind", "South Wind", "West Wind", "North Wind", "White Dragon", "Green Dragon", "Red Dragon"],
    "zh": ["东风", "南风", "西风", "北风", "白板", "发财", "红中"],
}
_SUIT_NAMES = {
    "en": {Suit.characters: "Character", Suit.dots: "Dot", Suit.bamboo: "Bamboo"},
    "zh": {Suit.characters: "万", Suit.dots: "筒", Suit.bamboo: "条"},
}
_ZH_NUMERALS = "一二三四五六七八九"


@dataclass(frozen=True)
class TileKind:
    suit: Suit
    rank: int

    @property
    def code(self) -> str:
        return f"{self.suit.value}{self.rank}"

    @property
    def symbol(self) -> str:
        return _GLYPHS[self.suit][self.rank - 1]

    @property
    def is_honor(self) -> bool:
        return self.suit is Suit.honor

    def display_name(self, lang: Language = "en") -> str:
        if self.is_honor:
            return _HONOR_NAMES[lang][self.rank - 1]
        suit_name = _SUIT_NAMES[lang][self.suit]
        if lang == "zh":
            return f"{_ZH_NUMERALS[self.rank - 1]}{suit_name}"
        return f"{self.rank} {suit_name}"


def _build_catalog() -> tuple[TileKind, ...]:
    kinds = []
    for suit in Suit:
        top = 7 if suit is Suit.honor else 9
        kinds.extend(TileKind(suit, rank) for rank in range(1, top + 1))
    return tuple(kinds)


CATALOG: tuple[TileKind, ...] = _build_catalog()
_BY_CODE = {kind.code: kind for kind in CATALOG}


def lookup(suit: Suit | str, rank: int) -> TileKind | None:
    try:
        suit = Suit(suit)
    except ValueError:
        return None
    return _BY_CODE.get(f"{suit.value}{rank}")


def from_code(code: str) -> TileKind | None:
    """Resolve a wire code such as ``s8`` or ``z5``; unknown codes give None."""
    return _BY_CODE.get(code)
