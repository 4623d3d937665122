"""Pydantic schemas for API request/response and WebSocket messages."""
from dictation.schemas.drafts import DraftDeleteResponse, DraftResponse
from dictation.schemas.messages import (
    ClientMessage,
    ErrorMessage,
    InterimUpdate,
    SessionMessage,
    StateUpdate,
    TranscriptUpdate,
)

__all__ = [
    "DraftDeleteResponse",
    "DraftResponse",
    "ClientMessage",
    "ErrorMessage",
    "InterimUpdate",
    "SessionMessage",
    "StateUpdate",
    "TranscriptUpdate",
]
