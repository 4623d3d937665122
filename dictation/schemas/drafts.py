"""Schemas for the draft HTTP API."""
from __future__ import annotations

from pydantic import BaseModel, Field


class DraftResponse(BaseModel):
    """Response body for GET /api/drafts/{session_id}."""

    session_id: str
    text: str = Field("", description="Committed story text (typed base + dictated finals)")
    updated_at: float = Field(0.0, description="Unix seconds of the last commit")


class DraftDeleteResponse(BaseModel):
    session_id: str
    deleted: bool = True
