from __future__ import annotations

from collections import Counter
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field

from guobiao_assist.tiles import MAX_COPIES, Suit, TileKind

MAX_STANDING_TILES = 14


class Wind(str, Enum):
    east = "East"
    south = "South"
    west = "West"
    north = "North"


class MeldType(str, Enum):
    chow = "Chow"
    pung = "Pung"
    kong = "Kong"
    pair = "Pair"


class Tile(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    suit: Suit
    rank: int

    @classmethod
    def of(cls, kind: TileKind) -> Tile:
        return cls(suit=kind.suit, rank=kind.rank)

    @computed_field
    @property
    def code(self) -> str:
        return f"{self.suit.value}{self.rank}"


class Meld(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    type: MeldType
    concealed: bool = False
    tiles: list[Tile] = Field(default_factory=list)

    @property
    def limit(self) -> int:
        return 4 if self.type is MeldType.kong else 3

    @property
    def is_full(self) -> bool:
        return len(self.tiles) >= self.limit


class GameContext(BaseModel):
    prevalent_wind: Wind = Wind.east
    seat_wind: Wind = Wind.east
    self_drawn: bool = False
    last_tile: bool = False
    rob_kong: bool = False
    kong_bloom: bool = False


class HandState(BaseModel):
    exposed_melds: list[Meld] = Field(default_factory=list)
    standing_tiles: list[Tile] = Field(default_factory=list)
    winning_tile: Tile | None = None
    table_tiles: list[Tile] = Field(default_factory=list)
    context: GameContext = Field(default_factory=GameContext)

    @property
    def free_standing_slots(self) -> int:
        return max(MAX_STANDING_TILES - len(self.standing_tiles), 0)

    def find_meld(self, meld_id: UUID) -> Meld | None:
        return next((m for m in self.exposed_melds if m.id == meld_id), None)

    def all_tiles(self) -> list[Tile]:
        tiles = list(self.standing_tiles)
        for meld in self.exposed_melds:
            tiles.extend(meld.tiles)
        if self.winning_tile is not None:
            tiles.append(self.winning_tile)
        tiles.extend(self.table_tiles)
        return tiles

    def kind_counts(self) -> Counter[str]:
        return Counter(tile.code for tile in self.all_tiles())

    def over_limit_codes(self) -> list[str]:
        """Codes present more often than a physical set allows."""
        return sorted(code for code, n in self.kind_counts().items() if n > MAX_COPIES)

    def scoring_payload(self) -> dict:
        return {
            "standingTiles": [t.code for t in self.standing_tiles],
            "melds": [
                {"type": m.type.value, "isConcealed": m.concealed, "tiles": [t.code for t in m.tiles]}
                for m in self.exposed_melds
            ],
            "winningTile": self.winning_tile.code if self.winning_tile else None,
            "gameContext": {
                "prevalentWind": self.context.prevalent_wind.value,
                "seatWind": self.context.seat_wind.value,
                "winBySelfDraw": self.context.self_drawn,
                "lastTileDraw": self.context.last_tile,
                "robbingTheKong": self.context.rob_kong,
                "kongBloom": self.context.kong_bloom,
            },
        }

    def advice_payload(self) -> dict:
        return {
            "hand": [t.code for t in self.standing_tiles],
            "exposed": [[t.code for t in m.tiles] for m in self.exposed_melds],
            "tableDiscards": [t.code for t in self.table_tiles],
        }
