"""
Dictation exception hierarchy.

All application errors inherit from DictationError so the HTTP layer can
turn them into JSON responses with one handler.
"""
from __future__ import annotations


class DictationError(Exception):
    """Base exception for dictation errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "DICTATION_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        super().__init__(detail)


class SpeechUnsupportedError(DictationError):
    """Raised when dictation is requested but no speech engine is available."""

    def __init__(self) -> None:
        super().__init__(
            detail="Speech recognition is not supported in this environment",
            code="SPEECH_UNSUPPORTED",
            status_code=400,
        )


class EngineAlreadyStartedError(DictationError):
    """Raised by an engine when start() is called while a session is active."""

    def __init__(self) -> None:
        super().__init__(
            detail="Recognition session already started",
            code="ENGINE_ALREADY_STARTED",
            status_code=409,
        )


class DraftNotFoundError(DictationError):
    """Raised when a draft session_id does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            detail=f"Draft not found: {session_id}",
            code="DRAFT_NOT_FOUND",
            status_code=404,
        )


class InvalidClientMessageError(DictationError):
    """Raised when a WebSocket client message cannot be parsed."""

    def __init__(self, detail: str = "Invalid message") -> None:
        super().__init__(detail=detail, code="INVALID_MESSAGE", status_code=400)
