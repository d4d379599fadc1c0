from __future__ import annotations

import logging
from uuid import UUID

from fastapi.concurrency import run_in_threadpool

from guobiao_assist.config import Settings, settings
from guobiao_assist.errors import OracleError, RecognitionError
from guobiao_assist.hand import HandState, Meld, Tile
from guobiao_assist.imaging import prepare_image
from guobiao_assist.oracle import TileOracle
from guobiao_assist.reconciler import groups_to_melds, merge_melds, merge_tiles, recognize_tiles
from guobiao_assist.repository import SessionStore, Transition
from guobiao_assist.schemas import (
    EntryTarget,
    RecognitionTarget,
    ScoreResult,
    Section,
    Session,
    StrategyAdvice,
)
from guobiao_assist.validators import validate_advice_request, validate_score_request

logger = logging.getLogger(__name__)

UNEXPECTED_FAILURE = "Request failed. Please try again."


def _display(session: Session, **changes) -> Session:
    return session.model_copy(update={"display": session.display.model_copy(update=changes)})


def begin_score(lang: str) -> Transition:
    return lambda s: _display(s, language=lang, advice=None, error=None, scoring=True)


def score_succeeded(result: ScoreResult) -> Transition:
    return lambda s: _display(s, result=result, advice=None, error=None, scoring=False)


def score_failed(message: str) -> Transition:
    return lambda s: _display(s, result=None, error=message, scoring=False)


def begin_advice(lang: str) -> Transition:
    return lambda s: _display(s, language=lang, result=None, error=None, advising=True)


def advice_succeeded(advice: StrategyAdvice) -> Transition:
    return lambda s: _display(s, advice=advice, result=None, error=None, advising=False)


def advice_failed(message: str) -> Transition:
    return lambda s: _display(s, advice=None, error=message, advising=False)


def begin_recognition(session: Session) -> Session:
    return _display(session, error=None, recognizing=True)


def recognition_failed(message: str) -> Transition:
    return lambda s: _display(s, error=message, recognizing=False)


def tiles_recognized(tiles: list[Tile], target: RecognitionTarget) -> Transition:
    def apply(session: Session) -> Session:
        hand = merge_tiles(session.hand, tiles, target)
        return _display(session.model_copy(update={"hand": hand}), recognizing=False)

    return apply


def melds_recognized(melds: list[Meld]) -> Transition:
    def apply(session: Session) -> Session:
        changes: dict = {"hand": merge_melds(session.hand, melds)}
        if melds:
            changes["target"] = EntryTarget(section=Section.meld, meld_id=melds[-1].id)
        return _display(session.model_copy(update=changes), recognizing=False)

    return apply


class RequestOrchestrator:
    """Runs oracle requests for a stored session.

    The hand is read when a request starts; results are written to whatever
    the session holds when the request completes, so the last request to
    finish wins.
    """

    def __init__(self, store: SessionStore, oracle: TileOracle, config: Settings = settings) -> None:
        self.store = store
        self.oracle = oracle
        self.config = config

    def _hand(self, session_id: UUID) -> HandState:
        stored = self.store.get(session_id)
        if stored is None:
            raise LookupError(f"session {session_id} not found")
        return stored.session.hand

    async def request_score(self, session_id: UUID, lang: str) -> ScoreResult:
        hand = self._hand(session_id)
        validate_score_request(hand)
        self.store.update(session_id, begin_score(lang))
        try:
            result = await self.oracle.score(hand, lang)
        except OracleError as exc:
            self.store.update(session_id, score_failed(exc.message))
            raise
        except Exception:
            logger.exception("scoring request for %s failed unexpectedly", session_id)
            self.store.update(session_id, score_failed(UNEXPECTED_FAILURE))
            raise
        self.store.update(session_id, score_succeeded(result))
        return result

    async def request_advice(self, session_id: UUID, lang: str) -> StrategyAdvice:
        hand = self._hand(session_id)
        validate_advice_request(hand)
        self.store.update(session_id, begin_advice(lang))
        try:
            advice = await self.oracle.advise(hand, lang)
        except OracleError as exc:
            self.store.update(session_id, advice_failed(exc.message))
            raise
        except Exception:
            logger.exception("advice request for %s failed unexpectedly", session_id)
            self.store.update(session_id, advice_failed(UNEXPECTED_FAILURE))
            raise
        self.store.update(session_id, advice_succeeded(advice))
        return advice

    async def recognize(self, session_id: UUID, image_bytes: bytes, target: RecognitionTarget) -> None:
        self._hand(session_id)
        self.store.update(session_id, begin_recognition)
        try:
            image = await run_in_threadpool(
                prepare_image, image_bytes, self.config.max_image_edge, self.config.jpeg_quality
            )
            if target is RecognitionTarget.meld:
                groups = await self.oracle.identify_melds(image)
                transition = melds_recognized(groups_to_melds(groups))
            else:
                codes = await self.oracle.identify_tiles(image)
                transition = tiles_recognized(recognize_tiles(codes), target)
        except RecognitionError as exc:
            logger.warning("recognition for %s failed: %s", target.value, exc.message)
            self.store.update(session_id, recognition_failed(exc.message))
            raise
        except Exception:
            logger.exception("recognition for %s failed unexpectedly", target.value)
            self.store.update(session_id, recognition_failed(UNEXPECTED_FAILURE))
            raise
        self.store.update(session_id, transition)
