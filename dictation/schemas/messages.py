"""
Schemas for the dictation WebSocket.

Client -> server: hello (first), start, stop, result, error, end, reset.
Server -> client: session, engine, transcript, interim, state, error.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class ClientMessage(BaseModel):
    """One JSON message from the browser page."""

    type: Literal["hello", "start", "stop", "result", "error", "end", "reset"]
    supported: bool = Field(True, description="hello: whether the browser has speech recognition")
    session_id: str | None = Field(None, description="hello: resume an existing draft")
    text: str | None = Field(None, description="hello/start/reset: text currently shown in the story field")
    results: list[Any] = Field(default_factory=list, description="result: full result list of the event")
    error: str | None = Field(None, description="error: engine error code, e.g. 'no-speech'")


class SessionMessage(BaseModel):
    type: Literal["session"] = "session"
    session_id: str
    unsupported: bool = False
    text: str = ""


class TranscriptUpdate(BaseModel):
    """Sent when final text was committed; committed replaces the story field."""

    type: Literal["transcript"] = "transcript"
    committed: str
    interim: str = ""


class InterimUpdate(BaseModel):
    type: Literal["interim"] = "interim"
    text: str = ""


class StateUpdate(BaseModel):
    type: Literal["state"] = "state"
    listening: bool


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    code: str
    detail: str
