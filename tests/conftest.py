from __future__ import annotations

import pytest

from guobiao_assist.errors import OracleError, RecognitionError
from guobiao_assist.hand import HandState
from guobiao_assist.schemas import ScoreResult, StrategyAdvice
from tests.helpers import make_image


class FakeOracle:
    def __init__(self) -> None:
        self.tiles: list[str] = []
        self.groups: list[list[str]] = []
        self.score_result = ScoreResult(total_fan=8, breakdown=[{"name": "Mixed Straight", "fan": 8}], reasoning="ok")
        self.advice = StrategyAdvice(recommended_discard="z1", target_fan_patterns=["All Chows"], advice="keep going")
        self.fail_vision = False
        self.fail_oracle = False
        self.calls: list[str] = []
        self.images: list[bytes] = []

    async def identify_tiles(self, image: bytes) -> list[str]:
        self.calls.append("identify_tiles")
        self.images.append(image)
        if self.fail_vision:
            raise RecognitionError("Failed to identify tiles.")
        return list(self.tiles)

    async def identify_melds(self, image: bytes) -> list[list[str]]:
        self.calls.append("identify_melds")
        self.images.append(image)
        if self.fail_vision:
            raise RecognitionError("Failed to identify melds.")
        return [list(g) for g in self.groups]

    async def score(self, hand: HandState, lang: str) -> ScoreResult:
        self.calls.append("score")
        if self.fail_oracle:
            raise OracleError("Failed to calculate score. Please try again.")
        return self.score_result

    async def advise(self, hand: HandState, lang: str) -> StrategyAdvice:
        self.calls.append("advise")
        if self.fail_oracle:
            raise OracleError("Failed to get advice.")
        return self.advice


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def image_bytes() -> bytes:
    return make_image()
