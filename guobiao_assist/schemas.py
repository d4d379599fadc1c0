from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from guobiao_assist.hand import GameContext, HandState, MeldType, Wind

TileCode = str


def _camel(name: str, camel: str) -> AliasChoices:
    return AliasChoices(camel, name)


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict | None = None


class ErrorResponse(BaseModel):
    error: ErrorBody


class ScoringItem(BaseModel):
    name: str
    fan: float
    description: str | None = None


class ScoreResult(BaseModel):
    total_fan: float = Field(validation_alias=_camel("total_fan", "totalFan"))
    breakdown: list[ScoringItem] = Field(default_factory=list)
    reasoning: str = ""


class StrategyAdvice(BaseModel):
    recommended_discard: TileCode = Field(validation_alias=_camel("recommended_discard", "recommendedDiscard"))
    target_fan_patterns: list[str] = Field(
        default_factory=list, validation_alias=_camel("target_fan_patterns", "targetFanPatterns")
    )
    advice: str = ""
    keep_tiles: list[TileCode] = Field(default_factory=list, validation_alias=_camel("keep_tiles", "keepTiles"))


class Section(str, Enum):
    standing = "standing"
    winning = "winning"
    meld = "meld"
    table = "table"


class RecognitionTarget(str, Enum):
    standing = "standing"
    table = "table"
    meld = "meld"


class EntryTarget(BaseModel):
    section: Section = Section.standing
    meld_id: UUID | None = None


class DisplayState(BaseModel):
    language: Literal["zh", "en"] = "zh"
    result: ScoreResult | None = None
    advice: StrategyAdvice | None = None
    error: str | None = None
    scoring: bool = False
    advising: bool = False
    recognizing: bool = False

    @property
    def is_frozen(self) -> bool:
        return self.result is not None


class Session(BaseModel):
    hand: HandState = Field(default_factory=HandState)
    target: EntryTarget = Field(default_factory=EntryTarget)
    display: DisplayState = Field(default_factory=DisplayState)


class SessionView(BaseModel):
    session_id: UUID
    expires_at: datetime
    hand: HandState
    target: EntryTarget
    display: DisplayState
    over_limit: list[TileCode] = Field(default_factory=list)


class TargetRequest(BaseModel):
    section: Section
    meld_id: UUID | None = None


class StartMeldRequest(BaseModel):
    type: MeldType
    concealed: bool = False


class ChooseTileRequest(BaseModel):
    code: TileCode


class ContextUpdate(BaseModel):
    prevalent_wind: Wind | None = None
    seat_wind: Wind | None = None
    self_drawn: bool | None = None
    last_tile: bool | None = None
    rob_kong: bool | None = None
    kong_bloom: bool | None = None

    model_config = ConfigDict(extra="forbid")

    def apply(self, context: GameContext) -> GameContext:
        return context.model_copy(update=self.model_dump(exclude_none=True))


class CatalogEntry(BaseModel):
    code: TileCode
    suit: str
    rank: int
    symbol: str
    name: str


class CatalogResponse(BaseModel):
    tiles: list[CatalogEntry]
