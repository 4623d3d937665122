"""
FastAPI app: WebSocket endpoint for story dictation; HTTP API for draft recovery.

The browser page runs the speech-recognition API and forwards its notifications
as JSON; the server accumulates committed text and answers with engine commands:
{ "type": "engine" | "transcript" | "interim" | "state" | "session" | "error", ... }
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from dictation.config import get_settings
from dictation.draft_store import delete_draft, get_draft
from dictation.exceptions import DictationError, DraftNotFoundError
from dictation.schemas.drafts import DraftDeleteResponse, DraftResponse
from dictation.websocket_manager import DictationSession

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging() -> None:
    """Apply LOG_LEVEL to the root logger; add a file handler when LOG_FILE is set."""
    settings = get_settings()
    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    log_file = (settings.LOG_FILE or "").strip()
    if not log_file:
        return
    path = os.path.abspath(log_file)
    if any(getattr(h, "baseFilename", None) == path for h in root.handlers):
        return
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        logger.warning("Cannot open log file %s: %s", path, e)
        return
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()
    logger.info(
        "Dictation service ready (lang=%s, restart_delay=%dms)",
        settings.RECOGNITION_LANG,
        settings.RESTART_DELAY_MS,
    )
    yield


app = FastAPI(
    title="Memory Dictation",
    description="Speech-to-text dictation for family memory stories",
    lifespan=lifespan,
)


@app.exception_handler(DictationError)
async def dictation_error_handler(request: Request, exc: DictationError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "detail": exc.detail},
    )


@app.websocket("/ws/dictate")
async def websocket_dictate(websocket: WebSocket) -> None:
    """
    WebSocket: client sends JSON (hello first, then start/stop and engine notifications).
    Server sends JSON: session, engine commands, transcript/interim updates, state.
    """
    await websocket.accept()
    session = DictationSession(websocket)
    try:
        await session.run()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Dictation session %s failed", session.session_id)
        try:
            await websocket.close()
        except Exception:
            pass


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/api/drafts/{session_id}", response_model=DraftResponse)
async def read_draft(session_id: str) -> DraftResponse:
    """Committed text of a dictation session, for a form reloading after a dropped connection."""
    draft = get_draft(session_id)
    if draft is None:
        raise DraftNotFoundError(session_id)
    return DraftResponse(session_id=session_id, text=draft["text"], updated_at=draft["updated_at"])


@app.delete("/api/drafts/{session_id}", response_model=DraftDeleteResponse)
async def remove_draft(session_id: str) -> DraftDeleteResponse:
    if not delete_draft(session_id):
        raise DraftNotFoundError(session_id)
    return DraftDeleteResponse(session_id=session_id)
