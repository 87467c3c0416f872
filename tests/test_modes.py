"""Tests for the mode registry and transition table fallbacks."""

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator.modes import (  # noqa: E402
    IONIAN,
    MODES,
    Mode,
    get_mode,
    list_modes,
    modal_root,
    mode_family,
    tonic_numeral,
    transitions_for,
)


def test_seven_modes_in_scale_order():
    """The registry lists the church modes starting from Ionian."""
    assert list_modes() == [
        "ionian",
        "dorian",
        "phrygian",
        "lydian",
        "mixolydian",
        "aeolian",
        "locrian",
    ]


def test_every_mode_has_seven_degrees():
    """Each mode defines seven intervals and seven triad qualities."""
    for mode in MODES.values():
        assert len(mode.intervals) == 7
        assert len(mode.chord_qualities) == 7
        assert mode.intervals[0] == 0


def test_get_mode_is_case_insensitive():
    """Mode lookups ignore case and surrounding whitespace."""
    assert get_mode(" Dorian ").name == "dorian"
    assert get_mode(IONIAN) is IONIAN
    assert get_mode(None) is IONIAN


def test_unknown_mode_falls_back_to_ionian(caplog):
    """An unknown mode name logs a warning and yields Ionian."""
    caplog.set_level(logging.WARNING)
    assert get_mode("hypermixolydian") is IONIAN
    assert "Unknown mode" in caplog.text


@pytest.mark.parametrize(
    "name, family",
    [
        ("ionian", "major"),
        ("lydian", "major"),
        ("mixolydian", "major"),
        ("dorian", "minor"),
        ("phrygian", "minor"),
        ("aeolian", "minor"),
        ("locrian", "minor"),
    ],
)
def test_mode_family(name, family):
    """Modes are grouped by the quality of their tonic triad."""
    assert mode_family(get_mode(name)) == family


def test_tonic_numeral_case():
    """Major family modes use ``I`` and minor family modes ``i``."""
    assert tonic_numeral(get_mode("lydian")) == "I"
    assert tonic_numeral(get_mode("locrian")) == "i"


@pytest.mark.parametrize(
    "mode, expected",
    [("ionian", "C"), ("dorian", "D"), ("phrygian", "E"), ("aeolian", "A"), ("locrian", "B")],
)
def test_modal_root_from_parent_key(mode, expected):
    """A parent major key maps to the tonic of each of its modes."""
    assert modal_root("C", mode) == expected


def test_mode_requires_seven_intervals():
    """Constructing a mode with the wrong number of intervals fails."""
    with pytest.raises(ValueError, match="7 intervals"):
        Mode("broken", (0, 2, 4), {"I": "major"}, {})


def test_missing_transition_rows_use_family_defaults(caplog):
    """Absent rows are copied from the family default with a warning."""
    partial = Mode(
        "partial",
        IONIAN.intervals,
        dict(IONIAN.chord_qualities),
        {"I": {"IV": 0.5, "V": 0.5}},
    )
    caplog.set_level(logging.WARNING)
    table = transitions_for(partial)
    assert table["I"] == {"IV": 0.5, "V": 0.5}
    assert "V" in table and table["V"]
    assert "No transition probabilities for V" in caplog.text


def test_empty_transition_table_uses_defaults(caplog):
    """A mode without any transitions gets the whole default table."""
    bare = Mode("bare", IONIAN.intervals, dict(IONIAN.chord_qualities), {})
    caplog.set_level(logging.WARNING)
    table = transitions_for(bare)
    assert set(table) == set(IONIAN.chord_qualities)
    assert "No transitions defined" in caplog.text
