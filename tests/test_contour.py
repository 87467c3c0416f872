"""Tests for the melodic contour tracker."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator.config import EngineConfig  # noqa: E402
from chord_generator.contour import ContourState, MelodicContourTracker  # noqa: E402

LONG_PHRASE = 16


def test_first_note_scores_zero():
    """The first note only seeds the state."""
    tracker = MelodicContourTracker()
    assert tracker.update(60, LONG_PHRASE) == 0.0
    assert tracker.state.last_melody_note == 60
    assert tracker.state.phrase_position == 0


def test_evaluate_does_not_change_state():
    """Scoring a candidate leaves the tracker untouched."""
    tracker = MelodicContourTracker()
    tracker.update(60, LONG_PHRASE)
    before = ContourState(**vars(tracker.state))
    tracker.evaluate(72, LONG_PHRASE)
    tracker.evaluate(59, LONG_PHRASE, tonic_midi=60)
    assert tracker.state == before


def test_evaluate_matches_update():
    """``evaluate`` predicts the delta ``update`` will commit."""
    tracker = MelodicContourTracker()
    tracker.update(64, LONG_PHRASE)
    predicted = tracker.evaluate(55, LONG_PHRASE)
    assert tracker.update(55, LONG_PHRASE) == predicted


def test_large_leap_penalised():
    """Leaps beyond a fifth cost per extra semitone."""
    tracker = MelodicContourTracker()
    tracker.update(60, LONG_PHRASE)
    assert tracker.update(72, LONG_PHRASE) == pytest.approx(15.0)
    assert tracker.state.leap_occurred
    assert tracker.state.leap_size == 12


def test_leap_resolved_by_contrary_step():
    """A step against the leap direction is rewarded."""
    tracker = MelodicContourTracker()
    tracker.update(60, LONG_PHRASE)
    tracker.update(67, LONG_PHRASE)
    assert tracker.update(65, LONG_PHRASE) == pytest.approx(-2.0)
    assert not tracker.state.leap_occurred


def test_leap_followed_by_step_same_direction():
    """Continuing in the leap direction is penalised."""
    tracker = MelodicContourTracker()
    tracker.update(60, LONG_PHRASE)
    tracker.update(67, LONG_PHRASE)
    assert tracker.update(69, LONG_PHRASE) == pytest.approx(3.0)


def test_leading_tone_rises_to_tonic():
    """Resolving the leading tone at the cadence scores well."""
    tracker = MelodicContourTracker()
    tracker.update(71, 3)
    assert tracker.update(72, 3, tonic_midi=72) == pytest.approx(-7.0)


def test_leading_tone_failure():
    """A leading tone that does not rise is penalised."""
    tracker = MelodicContourTracker()
    tracker.update(71, LONG_PHRASE)
    assert tracker.update(67, LONG_PHRASE, tonic_midi=72) == pytest.approx(5.0)


def test_static_melody_penalised():
    """Repeating the melody note costs a little."""
    tracker = MelodicContourTracker()
    tracker.update(60, LONG_PHRASE)
    assert tracker.update(60, LONG_PHRASE) == pytest.approx(1.0)


def test_long_runs_penalised():
    """Moving in one direction too long adds a growing penalty."""
    tracker = MelodicContourTracker(EngineConfig(direction_run_limit=2))
    tracker.update(60, LONG_PHRASE)
    tracker.update(62, LONG_PHRASE)
    tracker.update(64, LONG_PHRASE)
    assert tracker.update(65, LONG_PHRASE) == pytest.approx(1.0)
    assert tracker.state.direction_steps == 3


def test_reset_starts_new_phrase():
    """``reset`` forgets the previous melody."""
    tracker = MelodicContourTracker()
    tracker.update(60, LONG_PHRASE)
    tracker.update(64, LONG_PHRASE)
    tracker.reset()
    assert tracker.state == ContourState()


def test_trackers_are_independent():
    """Two trackers never share state."""
    first = MelodicContourTracker()
    second = MelodicContourTracker()
    first.update(60, LONG_PHRASE)
    assert second.state.last_melody_note is None
