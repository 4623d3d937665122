"""
SpeechEngine: abstract speech-recognition capability consumed by the accumulator.

The engine is injected instead of read from ambient global state, so tests can
drive the accumulator with a fake. Implementations: RemoteSpeechEngine (the
browser's Web Speech API, driven over WebSocket).

Notifications (result batch, error, end) are delivered through handlers that the
consumer registers with set_handlers(); implementations call emit_*().
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

ErrorKind = Literal["no-speech", "other"]


@dataclass
class RecognitionResult:
    """One indexed result: best-guess transcript and whether it is final."""

    transcript: str
    is_final: bool = False


@dataclass
class RecognitionEvent:
    """
    Batch notification from the engine. results are indexed from 0 for the
    lifetime of one recognition session; engines may re-report earlier indices.
    """

    results: list[RecognitionResult] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "RecognitionEvent":
        """
        Build an event from a JSON list of results. Accepts both the flat shape
        {"transcript": str, "is_final": bool} and the browser shape
        {"isFinal": bool, "alternatives": [{"transcript": str}]}.
        Malformed entries become empty interim results so indices stay aligned.
        """
        results: list[RecognitionResult] = []
        if not isinstance(payload, list):
            return cls(results=results)
        for item in payload:
            if not isinstance(item, dict):
                results.append(RecognitionResult(transcript=""))
                continue
            transcript = item.get("transcript")
            if transcript is None:
                alternatives = item.get("alternatives") or []
                if alternatives and isinstance(alternatives[0], dict):
                    transcript = alternatives[0].get("transcript")
            is_final = item.get("is_final", item.get("isFinal", False))
            results.append(
                RecognitionResult(
                    transcript=transcript if isinstance(transcript, str) else "",
                    is_final=bool(is_final),
                )
            )
        return cls(results=results)


def classify_error(raw: str | None) -> ErrorKind:
    """Map an engine error code to a coarse kind. Only no-speech is transient."""
    if (raw or "").strip().lower() == "no-speech":
        return "no-speech"
    return "other"


ResultHandler = Callable[[RecognitionEvent], Any]
ErrorHandler = Callable[[ErrorKind], Any]
EndHandler = Callable[[], Any]


class SpeechEngine(ABC):
    """
    Abstract speech-recognition capability. One session at a time:
    start() while a session is active must raise EngineAlreadyStartedError.
    """

    def __init__(self) -> None:
        self._on_result: ResultHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._on_end: EndHandler | None = None

    def set_handlers(
        self,
        on_result: ResultHandler | None = None,
        on_error: ErrorHandler | None = None,
        on_end: EndHandler | None = None,
    ) -> None:
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    @abstractmethod
    def configure(self, lang: str, continuous: bool, interim_results: bool) -> None:
        """Apply session options; takes effect on the next start()."""
        ...

    @abstractmethod
    def start(self) -> None:
        """Begin a recognition session. Non-blocking."""
        ...

    @abstractmethod
    def stop(self) -> None:
        """End the current session. The engine still reports end afterwards."""
        ...

    def abort(self) -> None:
        """Drop the current session without waiting for pending results."""
        self.stop()

    def emit_result(self, event: RecognitionEvent) -> None:
        if self._on_result is not None:
            self._on_result(event)

    def emit_error(self, kind: ErrorKind) -> None:
        if self._on_error is not None:
            self._on_error(kind)

    def emit_end(self) -> None:
        if self._on_end is not None:
            self._on_end()
