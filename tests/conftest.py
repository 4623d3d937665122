"""Shared pytest fixtures for the dictation test suite.

Provides a fake speech engine and a manually-fired scheduler so accumulator
behavior (restarts, replays, fatal errors) can be tested without audio.
"""

from dataclasses import dataclass, field
from typing import Callable

import pytest

from dictation.draft_store import clear_drafts
from dictation.exceptions import EngineAlreadyStartedError
from dictation.recognition.base import RecognitionEvent, RecognitionResult, SpeechEngine

# ---------------------------------------------------------------------------
# Engine Fixtures
# ---------------------------------------------------------------------------


class FakeEngine(SpeechEngine):
    """Records commands; rejects start() while a session is active, like a browser."""

    def __init__(self) -> None:
        super().__init__()
        self.active = False
        self.start_attempts = 0
        self.starts = 0
        self.stops = 0
        self.aborts = 0
        self.config: tuple[str, bool, bool] | None = None

    def configure(self, lang: str, continuous: bool, interim_results: bool) -> None:
        self.config = (lang, continuous, interim_results)

    def start(self) -> None:
        self.start_attempts += 1
        if self.active:
            raise EngineAlreadyStartedError()
        self.active = True
        self.starts += 1

    def stop(self) -> None:
        self.stops += 1

    def abort(self) -> None:
        self.aborts += 1

    def end(self) -> None:
        """Simulate the engine ending its session."""
        self.active = False
        self.emit_end()


@pytest.fixture
def engine():
    return FakeEngine()


# ---------------------------------------------------------------------------
# Scheduler Fixtures
# ---------------------------------------------------------------------------


@dataclass
class ManualHandle:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """Collects delayed callbacks; tests fire them explicitly."""

    handles: list[ManualHandle] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        handle = ManualHandle(delay=delay, callback=callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[ManualHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire_all(self) -> int:
        """Run every pending callback once; returns how many fired."""
        count = 0
        for handle in self.pending:
            handle.fired = True
            handle.callback()
            count += 1
        return count


@pytest.fixture
def scheduler():
    return ManualScheduler()


# ---------------------------------------------------------------------------
# Event helpers
# ---------------------------------------------------------------------------


def make_event(*results: tuple[str, bool]) -> RecognitionEvent:
    """Build an event from (transcript, is_final) pairs in index order."""
    return RecognitionEvent(results=[RecognitionResult(t, f) for t, f in results])


@pytest.fixture(autouse=True)
def _clean_drafts():
    clear_drafts()
    yield
    clear_drafts()


@pytest.fixture(name="make_event")
def make_event_fixture():
    return make_event
