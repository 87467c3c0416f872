"""Tests for harmonic rhythm patterns."""

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator.chords import VoicedChord  # noqa: E402
from chord_generator.harmonic_rhythm import (  # noqa: E402
    RHYTHM_PATTERNS,
    apply_rhythm,
    create_rhythm_pattern,
    list_rhythm_patterns,
    normalize_durations,
    pattern_key,
)


@pytest.mark.parametrize(
    "pattern, expected",
    [
        ("uniform", [1.0, 1.0, 1.0, 1.0]),
        ("waltz", [2.0, 1.0, 1.0, 2.0]),
        ("long_short", [2.0, 1.0, 2.0, 1.0]),
        ("shortLong", [1.0, 2.0, 1.0, 2.0]),
        ("cadential", [1.0, 1.0, 1.5, 2.0]),
        ("rubato", [2.0, 1.0, 1.0, 2.0]),
    ],
)
def test_named_patterns(pattern, expected):
    """Named patterns produce one duration per chord."""
    assert create_rhythm_pattern(4, pattern) == expected


def test_accelerating_and_decelerating_shapes():
    """Accelerating durations shrink and decelerating ones grow."""
    accelerating = create_rhythm_pattern(6, "accelerating")
    decelerating = create_rhythm_pattern(6, "decelerating")
    assert accelerating == sorted(accelerating, reverse=True)
    assert decelerating == sorted(decelerating)
    assert create_rhythm_pattern(1, "decelerating") == [1.0]


@pytest.mark.parametrize(
    "name, key",
    [("longShort", "long_short"), ("short-long", "short_long"), ("WALTZ", "waltz"), (" Rubato ", "rubato")],
)
def test_pattern_key(name, key):
    """Spelling variants map to the same pattern key."""
    assert pattern_key(name) == key


def test_unknown_pattern_falls_back_to_uniform(caplog):
    """Unknown names log a warning and use equal durations."""
    caplog.set_level(logging.WARNING)
    assert create_rhythm_pattern(3, "swing") == [1.0, 1.0, 1.0]
    assert "Unknown rhythm pattern" in caplog.text


def test_explicit_list_is_repeated():
    """A list of durations repeats over the progression."""
    assert create_rhythm_pattern(3, [1, 3]) == [1.0, 3.0, 1.0]


def test_callable_pattern():
    """Callables receive the length; wrong sized results fall back."""
    assert create_rhythm_pattern(3, lambda n: [0.5] * n) == [0.5, 0.5, 0.5]
    assert create_rhythm_pattern(3, lambda n: [1.0]) == [1.0, 1.0, 1.0]


def test_length_below_one():
    """Empty progressions still get a single beat."""
    assert create_rhythm_pattern(0, "waltz") == [1.0]


def test_normalize_durations():
    """Durations are scaled proportionally to the total."""
    assert normalize_durations([2, 1, 1], 8) == [4.0, 2.0, 2.0]
    assert normalize_durations([2, 1]) == [2.0, 1.0]


def test_normalize_durations_rejects_bad_totals():
    """Non-positive totals and sums raise ``ValueError``."""
    with pytest.raises(ValueError, match="total_beats must be positive"):
        normalize_durations([1, 1], 0)
    with pytest.raises(ValueError, match="sum to a positive"):
        normalize_durations([0, 0], 4)


def test_apply_rhythm_sets_durations():
    """Chords receive durations without mutating the input."""
    chords = [VoicedChord("C", "major", "C3", ["C3", "E3", "G3"]) for _ in range(3)]
    result = apply_rhythm(chords, "waltz", total_beats=12)
    assert [c.duration for c in result] == [6.0, 3.0, 3.0]
    assert sum(c.duration for c in result) == pytest.approx(12)
    assert all(c.duration is None for c in chords)
    assert apply_rhythm([], "waltz") == []


def test_listed_patterns_are_available():
    """Every listed pattern has a builder."""
    assert {name for name, _ in list_rhythm_patterns()} == set(RHYTHM_PATTERNS)
