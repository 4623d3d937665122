"""
DictationSession: one WebSocket = one story-field dictation session.

The browser page owns the real speech-recognition object and forwards its
result / error / end notifications here; the server runs the accumulator and
answers with engine commands (start / stop / abort) plus transcript updates.
All outbound messages go through one queue so engine commands and transcript
updates reach the client in the order the accumulator produced them.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket
from pydantic import ValidationError

from dictation.config import get_settings
from dictation.draft_store import ensure_draft, generate_session_id, get_draft, update_draft_text
from dictation.exceptions import InvalidClientMessageError, SpeechUnsupportedError
from dictation.recognition.base import RecognitionEvent, classify_error
from dictation.recognition.remote import RemoteSpeechEngine
from dictation.schemas.messages import (
    ClientMessage,
    ErrorMessage,
    InterimUpdate,
    SessionMessage,
    StateUpdate,
    TranscriptUpdate,
)
from dictation.transcript.accumulator import AccumulatorState, TranscriptAccumulator

logger = logging.getLogger(__name__)


def parse_client_message(raw: str) -> ClientMessage:
    try:
        return ClientMessage.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise InvalidClientMessageError(f"Malformed JSON: {e.msg}") from e
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        raise InvalidClientMessageError(f"Invalid message: {first.get('msg', 'validation failed')}") from e


class DictationSession:
    """
    Lifecycle: hello -> (start / result / error / end / stop)* -> disconnect.
    The accumulator is created on hello, seeded with the form's current text,
    and stopped when the socket closes.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._ws = websocket
        self._settings = get_settings()
        self._outbox: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()
        self._sender_task: asyncio.Task[Any] | None = None
        self._closed = False
        self._session_id: str | None = None
        self._engine: RemoteSpeechEngine | None = None
        self._accumulator: TranscriptAccumulator | None = None

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def _enqueue(self, payload: dict[str, Any]) -> None:
        if self._closed:
            return
        self._outbox.put_nowait(payload)

    async def _sender(self) -> None:
        while True:
            item = await self._outbox.get()
            if item is None:
                break
            if self._closed:
                continue
            try:
                await self._ws.send_text(json.dumps(item))
            except Exception:
                self._closed = True

    def _on_commit(self, committed: str) -> None:
        if self._session_id and self._settings.DRAFTS_ENABLED:
            update_draft_text(self._session_id, committed)
        interim = self._accumulator.interim_text if self._accumulator else ""
        self._enqueue(TranscriptUpdate(committed=committed, interim=interim).model_dump())

    def _on_interim(self, text: str) -> None:
        self._enqueue(InterimUpdate(text=text).model_dump())

    def _on_listening_change(self, listening: bool) -> None:
        self._enqueue(StateUpdate(listening=listening).model_dump())

    def _send_error(self, code: str, detail: str) -> None:
        self._enqueue(ErrorMessage(code=code, detail=detail).model_dump())

    def _handle_hello(self, msg: ClientMessage) -> None:
        if self._accumulator is not None:
            raise InvalidClientMessageError("hello already received")
        session_id = msg.session_id if msg.session_id and get_draft(msg.session_id) else None
        if session_id is None:
            session_id = generate_session_id()
        self._session_id = session_id

        text = msg.text
        if self._settings.DRAFTS_ENABLED:
            draft = ensure_draft(session_id, text or "")
            if text is None:
                text = draft["text"]
            else:
                update_draft_text(session_id, text)
        text = text or ""

        # Clients without speech recognition get an unsupported accumulator (typing only)
        if msg.supported:
            self._engine = RemoteSpeechEngine(self._outbox)
        self._accumulator = TranscriptAccumulator(
            self._engine,
            on_commit=self._on_commit,
            on_interim=self._on_interim,
            on_listening_change=self._on_listening_change,
            state=AccumulatorState(base_text=text),
        )
        logger.info("Dictation session %s opened (supported=%s)", session_id, msg.supported)
        self._enqueue(
            SessionMessage(
                session_id=session_id,
                unsupported=self._accumulator.unsupported,
                text=text,
            ).model_dump()
        )

    def handle_message(self, msg: ClientMessage) -> None:
        """Dispatch one client message. Raises InvalidClientMessageError on protocol misuse."""
        if msg.type == "hello":
            self._handle_hello(msg)
            return
        acc = self._accumulator
        if acc is None:
            raise InvalidClientMessageError("hello required before other messages")

        if msg.type == "start":
            text = msg.text if msg.text is not None else acc.committed_text
            try:
                acc.start(text)
            except SpeechUnsupportedError as e:
                self._send_error(e.code, e.detail)
                return
            if self._session_id and self._settings.DRAFTS_ENABLED:
                update_draft_text(self._session_id, acc.committed_text)
        elif msg.type == "stop":
            acc.stop()
        elif msg.type == "reset":
            acc.reset(msg.text or "")
            if self._session_id and self._settings.DRAFTS_ENABLED:
                update_draft_text(self._session_id, acc.committed_text)
            self._enqueue(TranscriptUpdate(committed=acc.committed_text).model_dump())
        elif self._engine is None:
            # result / error / end from a client that said it has no engine
            logger.debug("Ignoring %s from unsupported client", msg.type)
        elif msg.type == "result":
            self._engine.deliver_result(RecognitionEvent.from_payload(msg.results))
        elif msg.type == "error":
            self._engine.deliver_error(classify_error(msg.error))
        elif msg.type == "end":
            self._engine.deliver_end()

    async def run(self) -> None:
        """Main loop: receive JSON text frames, dispatch, until disconnect."""
        self._sender_task = asyncio.create_task(self._sender())
        try:
            while not self._closed:
                try:
                    frame = await self._ws.receive()
                except Exception:
                    break
                if frame.get("type") == "websocket.disconnect":
                    break
                raw = frame.get("text")
                if raw is None:
                    continue
                try:
                    self.handle_message(parse_client_message(raw))
                except InvalidClientMessageError as e:
                    logger.debug("Rejected client message: %s", e.detail)
                    self._send_error(e.code, e.detail)
        finally:
            if self._accumulator is not None:
                self._accumulator.stop()
            self._closed = True
            self._outbox.put_nowait(None)
            if self._sender_task:
                try:
                    await asyncio.wait_for(self._sender_task, timeout=5.0)
                except (asyncio.CancelledError, asyncio.TimeoutError):
                    self._sender_task.cancel()
            logger.info("Dictation session %s closed", self._session_id)
