"""
RemoteSpeechEngine: the browser's speech-recognition API, driven over WebSocket.

Commands go out as JSON on an outbound queue (the WebSocket sender drains it);
result / error / end notifications come back through deliver_*() and are
dispatched to the registered handlers.
"""
from __future__ import annotations

import asyncio
from typing import Any

from dictation.config import get_settings
from dictation.exceptions import EngineAlreadyStartedError
from dictation.recognition.base import ErrorKind, RecognitionEvent, SpeechEngine


class RemoteSpeechEngine(SpeechEngine):
    """
    One browser recognition object. A session is active from start() until the
    client reports end; start() in between raises EngineAlreadyStartedError,
    the same way the browser rejects a second start with InvalidStateError.
    """

    def __init__(self, outbox: asyncio.Queue[dict[str, Any]]) -> None:
        super().__init__()
        settings = get_settings()
        self._outbox = outbox
        self._lang = settings.RECOGNITION_LANG
        self._continuous = settings.RECOGNITION_CONTINUOUS
        self._interim_results = settings.RECOGNITION_INTERIM_RESULTS
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def configure(self, lang: str, continuous: bool, interim_results: bool) -> None:
        self._lang = lang
        self._continuous = continuous
        self._interim_results = interim_results

    def start(self) -> None:
        if self._active:
            raise EngineAlreadyStartedError()
        self._active = True
        self._send(
            {
                "type": "engine",
                "action": "start",
                "lang": self._lang,
                "continuous": self._continuous,
                "interim_results": self._interim_results,
            }
        )

    def stop(self) -> None:
        if self._active:
            self._send({"type": "engine", "action": "stop"})

    def abort(self) -> None:
        if self._active:
            self._send({"type": "engine", "action": "abort"})

    def deliver_result(self, event: RecognitionEvent) -> None:
        self.emit_result(event)

    def deliver_error(self, kind: ErrorKind) -> None:
        self.emit_error(kind)

    def deliver_end(self) -> None:
        """Client reported end of session; a new start() is allowed again."""
        self._active = False
        self.emit_end()

    def _send(self, command: dict[str, Any]) -> None:
        self._outbox.put_nowait(command)
