"""Tests for TranscriptAccumulator (committed vs interim dictation text).

Covers the commit rule (base text + final fragments with one trailing space),
duplicate prevention within a session, interim replacement, and the
start/stop/reset lifecycle.
"""

import pytest

from dictation.exceptions import SpeechUnsupportedError
from dictation.transcript.accumulator import AccumulatorState, TranscriptAccumulator


@pytest.fixture
def commits():
    return []


@pytest.fixture
def interims():
    return []


@pytest.fixture
def listening_changes():
    return []


@pytest.fixture
def acc(engine, scheduler, commits, interims, listening_changes):
    return TranscriptAccumulator(
        engine,
        on_commit=commits.append,
        on_interim=interims.append,
        on_listening_change=listening_changes.append,
        scheduler=scheduler,
        lang="es-ES",
        continuous=True,
        interim_results=True,
        restart_delay_ms=300,
        no_speech_restart_delay_ms=100,
    )


class TestCommitRule:
    """Base text is kept as-is; each final fragment gets one trailing space."""

    def test_final_appends_to_base(self, acc, make_event, commits):
        acc.start("Hola")
        result = acc.on_event(make_event(("mundo", True)))

        assert result is not None
        assert result.committed_text == "Holamundo "
        assert result.interim_text == ""
        assert commits == ["Holamundo "]

    def test_interim_then_final_at_same_index(self, acc, make_event, commits):
        acc.start("")
        assert acc.on_event(make_event(("buenos", False))) is None
        assert acc.interim_text == "buenos"
        assert acc.committed_text == ""
        assert commits == []

        acc.on_event(make_event(("buenos dias", True)))
        assert acc.committed_text == "buenos dias "
        assert acc.interim_text == ""

    def test_several_finals_in_one_event(self, acc, make_event):
        acc.start("")
        acc.on_event(make_event(("uno", True), ("dos", True)))
        assert acc.committed_text == "uno dos "
        assert acc.last_processed_index == 2

    def test_empty_final_is_consumed_without_text(self, acc, make_event, commits):
        acc.start("x")
        assert acc.on_event(make_event(("  ", True))) is None
        assert acc.committed_text == "x"
        assert acc.last_processed_index == 1
        assert commits == []

    def test_engine_configured_on_start(self, acc, engine):
        acc.start("")
        assert engine.config == ("es-ES", True, True)
        assert engine.starts == 1


class TestNoDuplication:
    """Re-reported indices are never appended twice within a session."""

    def test_cumulative_events(self, acc, make_event):
        acc.start("")
        acc.on_event(make_event(("a", True)))
        acc.on_event(make_event(("a", True), ("b", False)))
        acc.on_event(make_event(("a", True), ("b", True)))
        acc.on_event(make_event(("a", True), ("b", True), ("c", True)))

        assert acc.committed_text == "a b c "
        assert acc.last_processed_index == 3

    def test_matches_single_pass(self, acc, engine, scheduler, make_event):
        """Replaying every prefix gives the same text as processing each final once."""
        finals = ["uno", "dos", "tres", "cuatro"]
        acc.start("Base ")
        for n in range(1, len(finals) + 1):
            acc.on_event(make_event(*[(t, True) for t in finals[:n]]))

        single = TranscriptAccumulator(engine, scheduler=scheduler)
        engine.active = False
        single.start("Base ")
        single.on_event(make_event(*[(t, True) for t in finals]))

        assert acc.committed_text == single.committed_text == "Base uno dos tres cuatro "

    def test_final_after_interim_at_lower_index(self, acc, make_event):
        """A final above an interim index is committed once; the interim index stays open."""
        acc.start("")
        acc.on_event(make_event(("a", False), ("b", True)))
        assert acc.committed_text == "b "
        assert acc.interim_text == "a"
        assert acc.last_processed_index == 0

        acc.on_event(make_event(("a", True), ("b", True)))
        assert acc.committed_text == "b a "
        assert acc.last_processed_index == 2

    def test_committed_text_only_grows(self, acc, make_event):
        acc.start("Hola ")
        events = [
            make_event(("que", False)),
            make_event(("que tal", True)),
            make_event(("que tal", True), ("hoy", False)),
            make_event(("que tal", True), ("hoy", True)),
            make_event(),
        ]
        previous = acc.committed_text
        for ev in events:
            acc.on_event(ev)
            assert acc.committed_text.startswith(previous)
            previous = acc.committed_text


class TestInterim:
    """Interim text is replaced per event and never survives without interim results."""

    def test_interim_concatenates_without_separator(self, acc, make_event):
        acc.start("")
        acc.on_event(make_event(("hola", False), (" amigo", False)))
        assert acc.interim_text == "hola amigo"

    def test_interim_cleared_by_final_only_event(self, acc, make_event, interims):
        acc.start("")
        acc.on_event(make_event(("hola", False)))
        acc.on_event(make_event(("hola", True)))
        assert acc.interim_text == ""
        assert interims == ["hola"]

    def test_interim_cleared_by_empty_event(self, acc, make_event):
        acc.start("")
        acc.on_event(make_event(("hola", False)))
        acc.on_event(make_event())
        assert acc.interim_text == ""

    def test_interim_cleared_on_stop(self, acc, make_event, interims):
        acc.start("")
        acc.on_event(make_event(("hola", False)))
        acc.stop()
        assert acc.interim_text == ""
        assert interims == ["hola", ""]

    def test_late_interim_after_stop_not_previewed(self, acc, make_event, interims):
        acc.start("")
        acc.stop()
        assert acc.on_event(make_event(("tarde", False))) is None
        assert acc.listening is False
        assert acc.interim_text == ""
        assert interims == []

    def test_late_interim_after_fatal_error_not_previewed(self, acc, make_event):
        acc.start("")
        acc.on_event(make_event(("algo", False)))
        acc.on_engine_error("other")
        acc.on_event(make_event(("algo mas", False)))
        assert acc.interim_text == ""

    def test_interim_does_not_touch_committed(self, acc, make_event, commits):
        acc.start("texto")
        acc.on_event(make_event(("algo", False)))
        assert acc.committed_text == "texto"
        assert commits == []


class TestLifecycle:
    """start/stop/reset transitions and the unsupported state."""

    def test_start_after_stop_reseeds(self, acc, make_event):
        acc.start("primero ")
        acc.on_event(make_event(("uno", True), ("dos", True)))
        acc.stop()

        acc.start("nuevo ")
        assert acc.committed_text == "nuevo "
        assert acc.last_processed_index == 0

        acc.on_event(make_event(("otra", True)))
        assert acc.committed_text == "nuevo otra "

    def test_start_while_listening_is_ignored(self, acc, engine):
        acc.start("a")
        acc.start("b")
        assert acc.committed_text == "a"
        assert engine.start_attempts == 1

    def test_stop_while_idle_is_noop(self, acc, engine, listening_changes):
        acc.stop()
        assert acc.listening is False
        assert engine.stops == 0
        assert listening_changes == []

    def test_stop_twice(self, acc, engine, listening_changes):
        acc.start("")
        acc.stop()
        acc.stop()
        assert engine.stops == 1
        assert listening_changes == [True, False]

    def test_rejected_start_is_not_an_error(self, acc, engine):
        engine.active = True
        acc.start("")
        assert acc.listening is True
        assert engine.start_attempts == 1
        assert engine.starts == 0

    def test_final_after_stop_is_committed(self, acc, make_event, commits):
        """The engine flushes pending finals after stop(); they still reach the text."""
        acc.start("Hola ")
        acc.on_event(make_event(("mun", False)))
        acc.stop()

        result = acc.on_event(make_event(("mundo", True), ("y", False)))
        assert result is not None
        assert result.committed_text == "Hola mundo "
        assert result.interim_text == ""
        assert commits == ["Hola mundo "]
        assert acc.listening is False

    def test_reset_discards_text(self, acc, make_event):
        acc.start("algo ")
        acc.on_event(make_event(("mas", True)))
        acc.reset()
        assert acc.committed_text == ""
        assert acc.listening is False
        assert acc.last_processed_index == 0

    def test_unsupported(self, scheduler):
        acc = TranscriptAccumulator(None, scheduler=scheduler)
        assert acc.unsupported is True
        assert acc.listening is False
        with pytest.raises(SpeechUnsupportedError):
            acc.start("hola")
        acc.stop()
        assert acc.listening is False

    def test_explicit_state(self, engine, scheduler, make_event):
        """A constructed state is used as-is: indices below the marker are skipped."""
        state = AccumulatorState(base_text="ya ", last_processed_index=2, listening=True)
        acc = TranscriptAccumulator(engine, scheduler=scheduler, state=state)
        acc.on_event(make_event(("a", True), ("b", True), ("c", True)))
        assert acc.committed_text == "ya c "
        assert state.last_processed_index == 3

    def test_engine_handlers_registered(self, acc, engine, make_event):
        acc.start("")
        engine.emit_result(make_event(("hola", True)))
        assert acc.committed_text == "hola "
