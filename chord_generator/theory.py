"""Theory labels for display alongside a generated progression.

:func:`annotate_progression` attaches a :class:`~chord_generator.chords.ChordTheory`
to every chord naming

* its harmonic function (Tonic, Dominant, ...),
* the cadence it completes, if any, and
* for chords outside the mode, the scale it is most likely borrowed from.

The labels are descriptive only; nothing in the generation pipeline reads
them back.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence, Union

from .chords import ChordTheory, RomanToken, VoicedChord, base_triad
from .modes import Mode, get_mode, mode_family
from .note_utils import pitch_index

__all__ = [
    "FUNCTION_NAMES",
    "scale_degree",
    "chord_function",
    "borrowed_source",
    "detect_cadence",
    "annotate_progression",
]

FUNCTION_NAMES = (
    "Tonic",
    "Supertonic",
    "Mediant",
    "Subdominant",
    "Dominant",
    "Submediant",
)


def _token(chord: VoicedChord) -> Optional[RomanToken]:
    if not chord.roman:
        return None
    try:
        return RomanToken.parse(chord.roman)
    except ValueError:
        return None


def scale_degree(chord: VoicedChord, key: str, mode: Union[str, Mode, None]) -> Optional[int]:
    """Return the zero-based degree of ``chord``'s root, ``None`` if chromatic.

    Roots outside the scale fall back to the degree written in the chord's
    Roman numeral, so ``bVII`` in Ionian still counts as the seventh degree.
    """

    mode = get_mode(mode)
    interval = (pitch_index(chord.root) - pitch_index(key)) % 12
    if interval in mode.intervals:
        return mode.intervals.index(interval)
    token = _token(chord)
    if token is not None and token.secondary_target is None:
        return token.degree
    return None


def chord_function(chord: VoicedChord, key: str, mode: Union[str, Mode, None]) -> Optional[str]:
    """Return the function name of ``chord`` in ``key``/``mode``."""

    token = _token(chord)
    if token is not None and token.secondary_target is not None:
        return "Secondary Dominant"
    degree = scale_degree(chord, key, mode)
    if degree is None:
        return None
    if degree < 6:
        return FUNCTION_NAMES[degree]
    interval = (pitch_index(chord.root) - pitch_index(key)) % 12
    return "Leading Tone" if interval == 11 else "Subtonic"


def _is_diatonic(chord: VoicedChord, key: str, mode: Mode) -> bool:
    interval = (pitch_index(chord.root) - pitch_index(key)) % 12
    if interval not in mode.intervals:
        return False
    expected = mode.quality_for_degree(mode.intervals.index(interval))
    return base_triad(chord.quality) == expected


def borrowed_source(chord: VoicedChord, key: str, mode: Union[str, Mode, None]) -> Optional[str]:
    """Return where a non-diatonic ``chord`` is borrowed from, else ``None``.

    A major dominant in a minor mode comes from the harmonic minor. Other
    chords in major modes come from the parallel minor and those in minor
    modes from the parallel major.
    """

    mode = get_mode(mode)
    token = _token(chord)
    if token is not None and token.secondary_target is not None:
        return None
    if _is_diatonic(chord, key, mode):
        return None
    family = mode_family(mode)
    degree = scale_degree(chord, key, mode)
    if family == "minor" and degree == 4 and base_triad(chord.quality) == "major":
        return "harmonic minor"
    return "parallel minor" if family == "major" else "parallel major"


def detect_cadence(
    previous: Optional[VoicedChord],
    chord: VoicedChord,
    key: str,
    mode: Union[str, Mode, None],
    *,
    final: bool = False,
) -> Optional[str]:
    """Return the cadence completed by ``chord`` after ``previous``.

    Cadences are recognised by scale degree: dominant to tonic is authentic,
    subdominant to tonic plagal, dominant to submediant deceptive and the
    subtonic or supertonic to the tonic modal. A final chord on the dominant
    is a half cadence.
    """

    mode = get_mode(mode)
    degree = scale_degree(chord, key, mode)
    if previous is not None:
        before = scale_degree(previous, key, mode)
        if before == 4 and degree == 0:
            return "Authentic Cadence"
        if before == 3 and degree == 0:
            return "Plagal Cadence"
        if before == 4 and degree == 5:
            return "Deceptive Cadence"
        if before in (1, 6) and degree == 0:
            return "Modal Cadence"
    if final and degree == 4:
        return "Half Cadence"
    return None


def annotate_progression(
    chords: Sequence[VoicedChord],
    key: str,
    mode: Union[str, Mode, None],
) -> List[VoicedChord]:
    """Return copies of ``chords`` with :class:`ChordTheory` attached."""

    mode = get_mode(mode)
    result = []
    for index, chord in enumerate(chords):
        previous = chords[index - 1] if index > 0 else None
        theory = ChordTheory(
            function=chord_function(chord, key, mode),
            cadence=detect_cadence(previous, chord, key, mode, final=index == len(chords) - 1),
            borrowed_from=borrowed_source(chord, key, mode),
        )
        result.append(replace(chord, theory=theory))
    return result
