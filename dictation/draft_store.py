"""
In-memory draft store. session_id is generated on the backend (WebSocket).
Draft text is updated only by the dictation WebSocket; the HTTP API only reads or deletes it.
"""
from __future__ import annotations

import time
import uuid
from typing import Any

# session_id -> {
#   "text": str,          # committed story text (base + dictated finals)
#   "created_at": float,
#   "updated_at": float,
# }
_draft_store: dict[str, dict[str, Any]] = {}


def generate_session_id() -> str:
    """Generate a new session_id (UUID hex, 12 chars). Backend only."""
    return uuid.uuid4().hex[:12]


def get_draft(session_id: str) -> dict[str, Any] | None:
    """Return draft dict or None if not found."""
    return _draft_store.get(session_id)


def ensure_draft(session_id: str, text: str = "") -> dict[str, Any]:
    """Create draft if not exists and return it. Existing drafts keep their text."""
    draft = _draft_store.get(session_id)
    if draft is None:
        now = time.time()
        draft = {"text": text, "created_at": now, "updated_at": now}
        _draft_store[session_id] = draft
    return draft


def update_draft_text(session_id: str, text: str) -> None:
    """Replace the draft text. Only the dictation WebSocket calls this."""
    draft = _draft_store.get(session_id)
    if draft is None:
        return
    draft["text"] = text
    draft["updated_at"] = time.time()


def delete_draft(session_id: str) -> bool:
    """Remove draft from store. Return True if it existed."""
    if session_id in _draft_store:
        del _draft_store[session_id]
        return True
    return False


def clear_drafts() -> None:
    _draft_store.clear()
