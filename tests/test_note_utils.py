"""Unit tests for note, MIDI and frequency conversion helpers.

Round trips between note names and MIDI numbers must be exact, flats must map
to their sharp spellings and malformed input must raise ``ValueError`` with a
readable message rather than produce a wrong pitch.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator.note_utils import (  # noqa: E402
    midi_to_frequency,
    midi_to_note,
    midi_to_pitch,
    normalize_pitch,
    note_to_midi,
    pitch_class,
    pitch_to_midi,
    split_note,
)


def test_middle_c_round_trip():
    """``C`` in octave 4 is MIDI 60 and converts back to ``C4``."""
    assert pitch_to_midi("C", 4) == 60
    assert midi_to_pitch(pitch_to_midi("C", 4)) == "C4"


def test_a4_is_concert_pitch():
    """A4 is MIDI 69 sounding at 440 Hz."""
    assert note_to_midi("A4") == 69
    assert midi_to_frequency(69) == pytest.approx(440.0)
    assert midi_to_frequency(81) == pytest.approx(880.0)


@pytest.mark.parametrize(
    "name, expected",
    [("Db", "C#"), ("e", "E"), ("Bb", "A#"), ("Cb", "B"), ("E#", "F"), ("G♭", "F#")],
)
def test_normalize_pitch_prefers_sharps(name, expected):
    """Flats, lower case and unicode accidentals normalise to sharp names."""
    assert normalize_pitch(name) == expected


def test_flat_note_matches_sharp():
    """Enharmonic spellings share a MIDI number."""
    assert note_to_midi("Db4") == note_to_midi("C#4") == 61


def test_midi_to_note_uses_sharps():
    """MIDI numbers are spelled with sharps."""
    assert midi_to_note(61) == "C#4"
    assert midi_to_note(0) == "C-1"


def test_invalid_note_format_raises():
    """Strings without an octave are rejected."""
    with pytest.raises(ValueError, match="Invalid note format"):
        note_to_midi("C")


def test_out_of_range_note_raises():
    """Notes beyond MIDI 127 are rejected."""
    with pytest.raises(ValueError, match="out of range"):
        note_to_midi("G10")


def test_midi_to_note_range_check():
    """Negative MIDI numbers cannot be named."""
    with pytest.raises(ValueError, match="out of range"):
        midi_to_note(-1)


def test_unknown_pitch_name_raises():
    """Letters outside A-G are not pitch names."""
    with pytest.raises(ValueError, match="Unknown note name"):
        normalize_pitch("H")


def test_split_and_pitch_class():
    """Notes split into canonical pitch and octave."""
    assert split_note("Db3") == ("C#", 3)
    assert pitch_class("Bb2") == 10
