"""
TranscriptAccumulator: turns a restarting speech-recognition result stream into
one append-only committed text plus an ephemeral interim preview.

- COMMITTED: base text (whatever the form showed at start) + every final
  fragment, each followed by one space. Never shortened or rewritten.
- INTERIM: concatenation of the not-yet-final results of the latest event;
  replaced on every event, cleared on stop and on restart.

Duplicate prevention:
- Within one engine session, indices below last_processed_index (and final
  indices above it that were already appended) are never reprocessed. Engines
  re-report the whole result list on every event.
- Engines end sessions on their own (mobile browsers after a short max
  duration); the accumulator restarts them after a short, cancellable delay.
  Some platforms replay the previous session's finals at indices 0..n in the
  new session; the replay guard skips those as long as they match in order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from dictation.config import get_settings
from dictation.exceptions import EngineAlreadyStartedError, SpeechUnsupportedError
from dictation.recognition.base import ErrorKind, RecognitionEvent, SpeechEngine
from dictation.recognition.scheduler import AsyncioScheduler, Scheduler, TimerHandle

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """Returned by on_event when final text was produced."""

    committed_text: str
    interim_text: str


@dataclass
class AccumulatorState:
    """State owned by one accumulator instance."""

    base_text: str = ""
    last_processed_index: int = 0
    interim_text: str = ""
    listening: bool = False
    # Final indices >= last_processed_index already appended (finals can arrive out of order)
    committed_indices: set[int] = field(default_factory=set)
    # index -> final transcript, for the current engine session (feeds the replay guard)
    session_finals: dict[int, str] = field(default_factory=dict)
    # Finals of the session that ended before the last automatic restart
    replay_guard: list[str] = field(default_factory=list)


class TranscriptAccumulator:
    """
    Consumes engine notifications (on_event / on_engine_error / on_engine_end)
    and reports committed text through on_commit. Single-threaded: all calls come
    from one event loop, so there is no locking.

    engine=None means the environment has no speech recognition; the accumulator
    is then unsupported and only exposes state.
    """

    def __init__(
        self,
        engine: SpeechEngine | None,
        on_commit: Callable[[str], None] | None = None,
        on_interim: Callable[[str], None] | None = None,
        on_listening_change: Callable[[bool], None] | None = None,
        scheduler: Scheduler | None = None,
        lang: str | None = None,
        continuous: bool | None = None,
        interim_results: bool | None = None,
        restart_delay_ms: int | None = None,
        no_speech_restart_delay_ms: int | None = None,
        state: AccumulatorState | None = None,
    ) -> None:
        settings = get_settings()
        self._engine = engine
        self._on_commit = on_commit
        self._on_interim = on_interim
        self._on_listening_change = on_listening_change
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._lang = lang or settings.RECOGNITION_LANG
        self._continuous = continuous if continuous is not None else settings.RECOGNITION_CONTINUOUS
        self._interim_results = (
            interim_results if interim_results is not None else settings.RECOGNITION_INTERIM_RESULTS
        )
        self._restart_delay = (
            restart_delay_ms if restart_delay_ms is not None else settings.RESTART_DELAY_MS
        ) / 1000.0
        self._no_speech_delay = (
            no_speech_restart_delay_ms
            if no_speech_restart_delay_ms is not None
            else settings.NO_SPEECH_RESTART_DELAY_MS
        ) / 1000.0
        self._state = state or AccumulatorState()
        self._restart_handle: TimerHandle | None = None

        if engine is not None:
            engine.set_handlers(
                on_result=self.on_event,
                on_error=self.on_engine_error,
                on_end=self.on_engine_end,
            )

    @property
    def unsupported(self) -> bool:
        return self._engine is None

    @property
    def listening(self) -> bool:
        return self._state.listening

    @property
    def committed_text(self) -> str:
        return self._state.base_text

    @property
    def interim_text(self) -> str:
        return self._state.interim_text

    @property
    def last_processed_index(self) -> int:
        return self._state.last_processed_index

    @property
    def restart_pending(self) -> bool:
        return self._restart_handle is not None

    @property
    def state(self) -> AccumulatorState:
        return self._state

    def start(self, current_text: str = "") -> None:
        """
        Begin dictating after current_text. The snapshot becomes the base, so
        dictation appends to what the form shows instead of replacing it.
        """
        if self._engine is None:
            raise SpeechUnsupportedError()
        s = self._state
        if s.listening:
            logger.debug("start() ignored: already listening")
            return
        self._cancel_restart()
        s.base_text = current_text or ""
        s.replay_guard = []
        s.listening = True
        self._begin_session()
        logger.info("Dictation started (lang=%s, base=%d chars)", self._lang, len(s.base_text))
        self._notify_listening()

    def stop(self) -> None:
        """Stop dictating. Idempotent; a pending restart never fires after this."""
        s = self._state
        was_active = s.listening or self._restart_handle is not None
        s.listening = False
        self._cancel_restart()
        self._set_interim("")
        if not was_active:
            return
        if self._engine is not None:
            self._engine.stop()
        logger.info("Dictation stopped (%d chars committed)", len(s.base_text))
        self._notify_listening()

    def reset(self, text: str = "") -> None:
        """Stop and discard all committed text (the form cleared its draft)."""
        self.stop()
        s = self._state
        s.base_text = text
        s.last_processed_index = 0
        s.committed_indices.clear()
        s.session_finals.clear()
        s.replay_guard = []

    def on_event(self, event: RecognitionEvent) -> CommitResult | None:
        """
        Process one result batch. Returns CommitResult when final text was
        appended this call, else None (only the interim preview changed).
        """
        s = self._state
        results = event.results if event is not None else None
        if not results:
            self._set_interim("")
            return None

        interim = ""
        final = ""
        for i in range(s.last_processed_index, len(results)):
            if i in s.committed_indices:
                continue
            result = results[i]
            transcript = result.transcript or ""
            if self._is_replayed(i, result.transcript, result.is_final):
                if result.is_final:
                    s.committed_indices.add(i)
                    s.session_finals[i] = transcript
                continue
            if result.is_final:
                s.committed_indices.add(i)
                s.session_finals[i] = transcript
                if transcript.strip():
                    final += transcript + " "
            elif s.listening:
                # Late interims after stop or a fatal error are not previewed
                interim += transcript

        # Consumed prefix: advance past every contiguous finalized index
        while s.last_processed_index in s.committed_indices:
            s.committed_indices.discard(s.last_processed_index)
            s.last_processed_index += 1

        if final:
            s.base_text = s.base_text + final
            s.interim_text = interim
            logger.debug("Committed %r (total %d chars)", final, len(s.base_text))
            if self._on_commit is not None:
                self._on_commit(s.base_text)
            return CommitResult(committed_text=s.base_text, interim_text=s.interim_text)

        self._set_interim(interim)
        return None

    def on_engine_error(self, kind: ErrorKind) -> None:
        """no-speech: restart after a short delay. Anything else: fail closed."""
        s = self._state
        if kind == "no-speech":
            if not s.listening:
                return
            logger.debug("No speech detected; restarting recognition")
            if self._engine is not None:
                self._engine.abort()
            self._schedule_restart(self._no_speech_delay)
            return

        logger.warning("Speech recognition error (%s); dictation stopped", kind)
        self._cancel_restart()
        if not s.listening:
            return
        s.listening = False
        self._set_interim("")
        self._notify_listening()

    def on_engine_end(self) -> None:
        """Engine ended the session; relaunch it if we are still dictating."""
        if not self._state.listening or self._restart_handle is not None:
            return
        self._schedule_restart(self._restart_delay)

    def _is_replayed(self, index: int, transcript: str | None, is_final: bool) -> bool:
        """True when the result repeats the previous session's history at the same index."""
        s = self._state
        if not s.replay_guard:
            return False
        if index >= len(s.replay_guard):
            if is_final:
                s.replay_guard = []
            return False
        expected = s.replay_guard[index].strip()
        text = (transcript or "").strip()
        if is_final:
            if text == expected:
                return True
            logger.debug("Replay guard released at index %d", index)
            s.replay_guard = []
            return False
        return bool(text) and expected.startswith(text)

    def _begin_session(self) -> None:
        s = self._state
        s.last_processed_index = 0
        s.committed_indices.clear()
        s.session_finals.clear()
        self._set_interim("")
        if self._engine is None:
            return
        self._engine.configure(self._lang, self._continuous, self._interim_results)
        try:
            self._engine.start()
        except EngineAlreadyStartedError:
            logger.debug("Engine already started; ignoring")

    def _schedule_restart(self, delay: float) -> None:
        if self._restart_handle is not None:
            return
        self._restart_handle = self._scheduler.call_later(delay, self._restart)

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

    def _restart(self) -> None:
        self._restart_handle = None
        s = self._state
        if not s.listening:
            return
        # Keep base_text as committed so far; a rejected start leaves session_finals empty
        if s.session_finals:
            s.replay_guard = [s.session_finals[i] for i in sorted(s.session_finals)]
        logger.info("Restarting recognition session (guard=%d)", len(s.replay_guard))
        self._begin_session()

    def _set_interim(self, text: str) -> None:
        s = self._state
        if s.interim_text == text:
            return
        s.interim_text = text
        if self._on_interim is not None:
            self._on_interim(text)

    def _notify_listening(self) -> None:
        if self._on_listening_change is not None:
            self._on_listening_change(self._state.listening)
