"""Tests for cadence templates, suggestion and splicing."""

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator.cadences import (  # noqa: E402
    CadencePatternLibrary,
    cadence_types_for,
    get_cadence_pattern,
)
from chord_generator.config import EngineConfig  # noqa: E402
from chord_generator.modes import MODE_NAMES  # noqa: E402


@pytest.mark.parametrize(
    "mode, cadence, expected",
    [
        ("ionian", "authentic", ["V", "I"]),
        ("ionian", "extended", ["ii", "V", "I"]),
        ("aeolian", "natural", ["VII", "i"]),
        ("mixolydian", "authentic", ["v", "I"]),
        ("phrygian", "phrygian", ["II", "i"]),
        ("dorian", "picardy", ["V", "I"]),
        ("ionian", "unheard-of", ["V", "I"]),
    ],
)
def test_get_cadence_pattern(mode, cadence, expected):
    """Mode tables win over family tables and unknown types fall back."""
    assert get_cadence_pattern(mode, cadence) == expected


def test_get_cadence_pattern_returns_copy():
    """Callers may mutate the returned template safely."""
    pattern = get_cadence_pattern("ionian", "authentic")
    pattern.append("IV")
    assert get_cadence_pattern("ionian", "authentic") == ["V", "I"]


def test_strict_apply_splices_template():
    """Strict application replaces the final chords with the template."""
    library = CadencePatternLibrary(random.Random(0))
    result = library.apply(["I", "IV", "ii", "vi"], "ionian", "authentic", strict=True)
    assert result == ["I", "IV", "V", "I"]


def test_short_progression_keeps_its_length():
    """A progression shorter than the template receives its tail."""
    library = CadencePatternLibrary(random.Random(0))
    assert library.apply(["I", "vi"], "ionian", "extended", strict=True) == ["V", "I"]
    assert library.apply(["I"], "ionian", "authentic", strict=True) == ["I"]


def test_skip_probability_leaves_progression():
    """Non-strict application may leave the progression unchanged."""
    library = CadencePatternLibrary(random.Random(0), EngineConfig(cadence_skip_probability=1.0))
    assert library.apply(["I", "IV", "vi", "ii"], "ionian", "authentic") == ["I", "IV", "vi", "ii"]


def test_existing_valid_cadence_is_kept():
    """An ending that already is a cadence survives when keeping is certain."""
    config = EngineConfig(cadence_skip_probability=0.0, keep_existing_cadence_probability=1.0)
    library = CadencePatternLibrary(random.Random(0), config)
    assert library.apply(["I", "vi", "IV", "I"], "ionian", "deceptive") == ["I", "vi", "IV", "I"]


def test_ends_with_valid_cadence():
    """Valid endings are looked up per mode."""
    library = CadencePatternLibrary(random.Random(0))
    assert library.ends_with_valid_cadence(["I", "V", "I"], "ionian")
    assert library.ends_with_valid_cadence(["i", "VII", "i"], "aeolian")
    assert not library.ends_with_valid_cadence(["I", "V"], "ionian")
    assert not library.ends_with_valid_cadence(["I"], "ionian")


def test_suggest_empty_progression_is_authentic():
    """Without context the authentic cadence is suggested."""
    assert CadencePatternLibrary(random.Random(0)).suggest([], "lydian") == "authentic"


@pytest.mark.parametrize("mode", MODE_NAMES)
def test_suggest_and_apply_stay_valid(mode):
    """Suggested cadences belong to the mode and never change the length."""
    for seed in range(25):
        library = CadencePatternLibrary(random.Random(seed))
        progression = ["I", "IV", "V", "vi", "ii"]
        suggestion = library.suggest(progression, mode)
        assert suggestion in cadence_types_for(mode)
        assert len(library.apply(progression, mode, suggestion)) == len(progression)


def test_apply_cadential_patterns_strict():
    """A strict request always applies the named cadence."""
    library = CadencePatternLibrary(random.Random(5))
    result = library.apply_cadential_patterns(["i", "VI", "III", "VII"], "aeolian", "plagal", strict=True)
    assert result[-2:] == ["iv", "i"]


def test_apply_cadential_patterns_probabilities():
    """Requested and suggested cadences respect their probabilities."""
    config = EngineConfig(requested_cadence_probability=0.0, suggested_cadence_probability=0.0)
    library = CadencePatternLibrary(random.Random(0), config)
    progression = ["I", "vi", "IV", "ii"]
    assert library.apply_cadential_patterns(progression, "ionian", "authentic") == progression
    assert library.apply_cadential_patterns(progression, "ionian") == progression
