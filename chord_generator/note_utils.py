"""Utility functions for translating between pitch names, MIDI and frequency.

Every other module talks about notes as ``"C#3"`` style strings so the
engine's output can be handed to audio or MIDI collaborators unchanged. The
helpers here are the single place where those strings are converted to MIDI
numbers. They follow scientific pitch notation: ``C4`` is MIDI ``60`` and
``A4`` is MIDI ``69`` sounding at 440 Hz.

Example
-------
>>> from chord_generator.note_utils import pitch_to_midi, midi_to_pitch
>>> pitch_to_midi("C", 4)
60
>>> midi_to_pitch(60)
'C4'
"""

# Modification Summary
# ---------------------
# * ``pitch_to_midi`` and ``midi_to_pitch`` expose the pitch class / octave
#   form used by the voicing code so callers no longer assemble note strings
#   by hand.
# * ``midi_to_frequency`` added for playback collaborators that need Hz.
# * Flats are normalised through ``normalize_pitch`` which is shared by the
#   chord resolver and the CLI key validation.

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Tuple

from . import NOTE_TO_SEMITONE, NOTES

__all__ = [
    "normalize_pitch",
    "pitch_index",
    "note_to_midi",
    "midi_to_note",
    "pitch_to_midi",
    "midi_to_pitch",
    "midi_to_frequency",
    "split_note",
    "pitch_class",
]

_NOTE_PATTERN = re.compile(r"([A-Ga-g][#b]?)(-?\d+)")


def normalize_pitch(pitch: str) -> str:
    """Return the canonical sharp spelling of ``pitch``.

    ``Db`` becomes ``C#`` and ``e`` becomes ``E``. Unicode accidentals are
    accepted as well.

    Raises
    ------
    ValueError
        If ``pitch`` is not a recognised pitch class name.
    """

    name = pitch.strip().replace("♭", "b").replace("♯", "#")
    if not name:
        raise ValueError("Empty pitch name")
    name = name[0].upper() + name[1:]
    if name not in NOTE_TO_SEMITONE:
        raise ValueError(f"Unknown note name: {pitch}")
    return NOTES[NOTE_TO_SEMITONE[name]]


def pitch_index(pitch: str) -> int:
    """Return the semitone offset ``0-11`` of ``pitch`` above ``C``."""

    return NOTE_TO_SEMITONE[normalize_pitch(pitch)]


@lru_cache(maxsize=None)
def note_to_midi(note: str) -> int:
    """Convert a note string such as ``C#4`` into a MIDI number.

    Parameters
    ----------
    note:
        Note name including octave. Octaves may be negative.

    Returns
    -------
    int
        MIDI note number in the range ``0-127``.

    Raises
    ------
    ValueError
        If ``note`` is not properly formatted or the computed MIDI value falls
        outside ``0-127``.
    """

    match = _NOTE_PATTERN.fullmatch(note)
    if not match:
        logging.error("Invalid note format: %s", note)
        raise ValueError(f"Invalid note format: {note}")

    note_name, octave_str = match.groups()
    midi_val = pitch_to_midi(note_name, int(octave_str))

    if not 0 <= midi_val <= 127:
        logging.error("MIDI value out of range: %s -> %d", note, midi_val)
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for note {note}"
        )
    return midi_val


def midi_to_note(midi_note: int) -> str:
    """Convert a MIDI number into a note name using sharps.

    Examples
    --------
    >>> midi_to_note(61)
    'C#4'
    >>> midi_to_note(-1)
    Traceback (most recent call last):
        ...
    ValueError: MIDI note -1 out of range 0-127
    """

    if not 0 <= midi_note <= 127:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")

    octave = midi_note // 12 - 1
    name = NOTES[midi_note % 12]
    return f"{name}{octave}"


def pitch_to_midi(pitch: str, octave: int) -> int:
    """Return the MIDI number for ``pitch`` in ``octave``.

    The conversion is ``index + (octave + 1) * 12`` so ``pitch_to_midi("C", 4)``
    is ``60``. No range check is applied; callers that need a playable note
    should go through :func:`note_to_midi`.
    """

    return pitch_index(pitch) + (octave + 1) * 12


def midi_to_pitch(midi_note: int) -> str:
    """Alias of :func:`midi_to_note` mirroring :func:`pitch_to_midi`."""

    return midi_to_note(midi_note)


def midi_to_frequency(midi_note: float) -> float:
    """Return the equal-tempered frequency in Hz for ``midi_note``."""

    return 440.0 * 2 ** ((midi_note - 69) / 12)


def split_note(note: str) -> Tuple[str, int]:
    """Split ``"C#3"`` into ``("C#", 3)`` with a canonical pitch spelling."""

    match = _NOTE_PATTERN.fullmatch(note)
    if not match:
        raise ValueError(f"Invalid note format: {note}")
    return normalize_pitch(match.group(1)), int(match.group(2))


def pitch_class(note: str) -> int:
    """Return the pitch class ``0-11`` of a note string with octave."""

    return pitch_index(split_note(note)[0])
