from __future__ import annotations

import base64
import json
import logging
from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError as PydanticValidationError

from guobiao_assist.config import Settings, settings
from guobiao_assist.errors import ConfigurationError, OracleError, RecognitionError
from guobiao_assist.hand import HandState
from guobiao_assist.schemas import ScoreResult, StrategyAdvice

logger = logging.getLogger(__name__)


class TileOracle(Protocol):
    async def identify_tiles(self, image: bytes) -> list[str]: ...

    async def identify_melds(self, image: bytes) -> list[list[str]]: ...

    async def score(self, hand: HandState, lang: str) -> ScoreResult: ...

    async def advise(self, hand: HandState, lang: str) -> StrategyAdvice: ...


TILE_LEGEND = """Tile codes: m1-m9 Characters, p1-p9 Dots, s1-s9 Bamboo,
z1 East, z2 South, z3 West, z4 North, z5 White, z6 Green, z7 Red."""

TILES_PROMPT = f"""You are a Mahjong tile counter.
Read the image row by row, left to right, and list every tile you see.
{TILE_LEGEND}
Count the marks on each face before deciding:
- s1 is a bird; s2 is a single vertical stick; s8 is two stacked W shapes.
- s6 is 2 sticks over 4; s9 is three rows of 3.
- p7 has 3 diagonal circles over a square of 4; p6 is two columns of 3.
- Characters carry a Chinese numeral on top.
A set holds only 4 copies of each tile.
Return JSON only: {{"reasoning": string, "tiles": [code, ...]}}"""

MELDS_PROMPT = f"""Detect the separate groups of Mahjong tiles (melds) in the image.
{TILE_LEGEND}
A group usually has 3 or 4 tiles.
Return JSON only: {{"groups": [[code, ...], ...]}}"""

_LANGUAGE = {"zh": "Simplified Chinese (zh-CN)", "en": "English"}


def _score_prompt(lang: str) -> str:
    return f"""You are a referee for Chinese Official Mahjong (Guobiao).
Compute the fan of the winning hand from the standing tiles, the melds and the winning tile.
Use only the 81 standard Guobiao fan and apply the non-repeat principle.
Pick the grouping that scores highest.
{TILE_LEGEND}
Respond in {_LANGUAGE.get(lang, "English")}.
Return JSON only:
{{"totalFan": number, "breakdown": [{{"name": string, "fan": number, "description": string}}], "reasoning": string}}"""


def _advice_prompt(lang: str) -> str:
    return f"""You are a Guobiao Mahjong expert. Analyse the hand and the table discards.
1. Recommend the best discard as a tile code only (for example "m1").
2. Suggest Guobiao fan patterns worth aiming for.
3. List the tiles to keep as tile codes only.
4. Take the table discards into account for defence.
{TILE_LEGEND}
Respond in {_LANGUAGE.get(lang, "English")}.
Return JSON only:
{{"recommendedDiscard": code, "targetFanPatterns": [string], "advice": string, "keepTiles": [code]}}"""


def _clean_code(raw: Any) -> str:
    return str(raw).strip().lower()


class OpenAIOracle:
    """Vision, scoring and advice backed by an OpenAI chat model in JSON mode."""

    def __init__(self, config: Settings = settings, client: AsyncOpenAI | None = None) -> None:
        if not config.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set.")
        self.model = config.openai_model
        self._client = client or AsyncOpenAI(
            api_key=config.openai_api_key, timeout=config.openai_timeout_seconds
        )

    async def _complete_json(self, system: str, user: str | list[dict[str, Any]]) -> dict[str, Any]:
        response = await self._client.chat.completions.create(
            model=self.model,
            temperature=0,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        if not response.choices:
            raise ValueError("model returned no choices")
        output_text = response.choices[0].message.content
        if not output_text:
            raise ValueError("empty response from model")
        payload = json.loads(output_text)
        if not isinstance(payload, dict):
            raise ValueError("model did not return a JSON object")
        return payload

    async def _look(self, prompt: str, image: bytes) -> dict[str, Any]:
        image_b64 = base64.b64encode(image).decode("ascii")
        content = [
            {"type": "text", "text": "Return strict JSON."},
            {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{image_b64}"}},
        ]
        try:
            return await self._complete_json(prompt, content)
        except (OpenAIError, ValueError) as exc:
            logger.exception("vision request failed")
            raise RecognitionError("Failed to identify tiles.") from exc

    async def identify_tiles(self, image: bytes) -> list[str]:
        payload = await self._look(TILES_PROMPT, image)
        tiles = payload.get("tiles") or []
        if not isinstance(tiles, list):
            raise RecognitionError("Failed to identify tiles.", details={"tiles": tiles})
        return [_clean_code(code) for code in tiles]

    async def identify_melds(self, image: bytes) -> list[list[str]]:
        payload = await self._look(MELDS_PROMPT, image)
        groups = payload.get("groups") or []
        if not isinstance(groups, list) or not all(isinstance(g, list) for g in groups):
            raise RecognitionError("Failed to identify melds.", details={"groups": groups})
        return [[_clean_code(code) for code in group] for group in groups]

    async def score(self, hand: HandState, lang: str) -> ScoreResult:
        state = json.dumps(hand.scoring_payload(), ensure_ascii=False)
        try:
            payload = await self._complete_json(_score_prompt(lang), f"Calculate score for: {state}")
            return ScoreResult.model_validate(payload)
        except (OpenAIError, ValueError, PydanticValidationError) as exc:
            logger.exception("scoring request failed")
            message = "计算失败，请重试" if lang == "zh" else "Failed to calculate score. Please try again."
            raise OracleError(message) from exc

    async def advise(self, hand: HandState, lang: str) -> StrategyAdvice:
        state = json.dumps(hand.advice_payload(), ensure_ascii=False)
        try:
            payload = await self._complete_json(_advice_prompt(lang), f"Analyze this Mahjong state: {state}")
            advice = StrategyAdvice.model_validate(payload)
        except (OpenAIError, ValueError, PydanticValidationError) as exc:
            logger.exception("advice request failed")
            raise OracleError("获取建议失败" if lang == "zh" else "Failed to get advice.") from exc
        return advice.model_copy(
            update={
                "recommended_discard": _clean_code(advice.recommended_discard),
                "keep_tiles": [_clean_code(code) for code in advice.keep_tiles],
            }
        )
