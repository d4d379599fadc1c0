from __future__ import annotations

import logging
from typing import Literal
from uuid import UUID

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from guobiao_assist import builder
from guobiao_assist.config import settings
from guobiao_assist.errors import AssistError, ValidationError
from guobiao_assist.oracle import OpenAIOracle, TileOracle
from guobiao_assist.orchestrator import RequestOrchestrator
from guobiao_assist.repository import SessionStore, StoredSession, Transition
from guobiao_assist.schemas import (
    CatalogEntry,
    CatalogResponse,
    ChooseTileRequest,
    ContextUpdate,
    ErrorBody,
    ErrorResponse,
    RecognitionTarget,
    Section,
    SessionView,
    StartMeldRequest,
    TargetRequest,
)
from guobiao_assist.tiles import CATALOG
from guobiao_assist.validators import validate_tile

logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

Lang = Literal["zh", "en"]

app = FastAPI(title="Guobiao Hand Assistant", version="0.1.0")
store = SessionStore(ttl_hours=settings.session_ttl_hours)


@app.exception_handler(AssistError)
async def assist_error_handler(request: Request, exc: AssistError) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=exc.code, message=exc.message, details=exc.details))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


def get_oracle() -> TileOracle:
    return OpenAIOracle(settings)


def get_orchestrator(oracle: TileOracle = Depends(get_oracle)) -> RequestOrchestrator:
    return RequestOrchestrator(store, oracle, settings)


def _view(item: StoredSession) -> SessionView:
    session = item.session
    return SessionView(
        session_id=item.id,
        expires_at=item.expires_at,
        hand=session.hand,
        target=session.target,
        display=session.display,
        over_limit=session.hand.over_limit_codes(),
    )


def _get_or_404(session_id: UUID) -> StoredSession:
    item = store.get(session_id)
    if not item:
        raise HTTPException(status_code=404, detail="session not found or expired")
    return item


def _apply(session_id: UUID, transition: Transition) -> SessionView:
    item = store.update(session_id, transition)
    if not item:
        raise HTTPException(status_code=404, detail="session not found or expired")
    return _view(item)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Guobiao Hand Assistant API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/v1/tiles", response_model=CatalogResponse)
def list_tiles(lang: Lang = "en") -> CatalogResponse:
    return CatalogResponse(
        tiles=[
            CatalogEntry(
                code=kind.code,
                suit=kind.suit.value,
                rank=kind.rank,
                symbol=kind.symbol,
                name=kind.display_name(lang),
            )
            for kind in CATALOG
        ]
    )


@app.post("/api/v1/sessions", response_model=SessionView)
def create_session(lang: Lang | None = None) -> SessionView:
    item = store.create(builder.new_session(lang or settings.default_language))
    return _view(item)


@app.get("/api/v1/sessions/{session_id}", response_model=SessionView)
def get_session(session_id: UUID) -> SessionView:
    return _view(_get_or_404(session_id))


@app.post("/api/v1/sessions/{session_id}/reset", response_model=SessionView)
def reset_session(session_id: UUID) -> SessionView:
    return _apply(session_id, builder.reset)


@app.post("/api/v1/sessions/{session_id}/target", response_model=SessionView)
def select_target(session_id: UUID, req: TargetRequest) -> SessionView:
    if req.section is Section.meld:
        item = _get_or_404(session_id)
        if req.meld_id is None or item.session.hand.find_meld(req.meld_id) is None:
            raise ValidationError("Start a meld before selecting it as the target.")
    return _apply(session_id, lambda s: builder.select_target(s, req.section, req.meld_id))


@app.post("/api/v1/sessions/{session_id}/melds", response_model=SessionView)
def start_meld(session_id: UUID, req: StartMeldRequest) -> SessionView:
    return _apply(session_id, lambda s: builder.start_meld(s, req.type, req.concealed))


@app.delete("/api/v1/sessions/{session_id}/melds/{meld_id}", response_model=SessionView)
def delete_meld(session_id: UUID, meld_id: UUID) -> SessionView:
    return _apply(session_id, lambda s: builder.delete_meld(s, meld_id))


@app.post("/api/v1/sessions/{session_id}/tiles", response_model=SessionView)
def choose_tile(session_id: UUID, req: ChooseTileRequest) -> SessionView:
    kind = validate_tile(req.code)
    return _apply(session_id, lambda s: builder.choose_tile(s, kind))


@app.delete("/api/v1/sessions/{session_id}/standing/{tile_id}", response_model=SessionView)
def remove_standing_tile(session_id: UUID, tile_id: UUID) -> SessionView:
    return _apply(session_id, lambda s: builder.remove_standing_tile(s, tile_id))


@app.delete("/api/v1/sessions/{session_id}/table/{tile_id}", response_model=SessionView)
def remove_table_tile(session_id: UUID, tile_id: UUID) -> SessionView:
    return _apply(session_id, lambda s: builder.remove_table_tile(s, tile_id))


@app.delete("/api/v1/sessions/{session_id}/winning", response_model=SessionView)
def clear_winning_tile(session_id: UUID) -> SessionView:
    return _apply(session_id, builder.clear_winning_tile)


@app.patch("/api/v1/sessions/{session_id}/context", response_model=SessionView)
def update_context(session_id: UUID, req: ContextUpdate) -> SessionView:
    return _apply(session_id, lambda s: builder.update_context(s, req.apply(s.hand.context)))


@app.post("/api/v1/sessions/{session_id}/recognize", response_model=SessionView)
async def recognize(
    session_id: UUID,
    image: UploadFile = File(...),
    target: RecognitionTarget = Form(RecognitionTarget.standing),
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> SessionView:
    _get_or_404(session_id)
    image_bytes = await image.read()
    await orchestrator.recognize(session_id, image_bytes, target)
    return _view(_get_or_404(session_id))


@app.post("/api/v1/sessions/{session_id}/score", response_model=SessionView)
async def score(
    session_id: UUID,
    lang: Lang | None = None,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> SessionView:
    item = _get_or_404(session_id)
    await orchestrator.request_score(session_id, lang or item.session.display.language)
    return _view(_get_or_404(session_id))


@app.post("/api/v1/sessions/{session_id}/advice", response_model=SessionView)
async def advice(
    session_id: UUID,
    lang: Lang | None = None,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> SessionView:
    item = _get_or_404(session_id)
    await orchestrator.request_advice(session_id, lang or item.session.display.language)
    return _view(_get_or_404(session_id))
