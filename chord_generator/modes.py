"""Static table of the seven diatonic modes.

Each :class:`Mode` carries its scale intervals, the triad quality built on
every degree (keyed by Roman numeral, in degree order) and a first-order
Markov table describing how likely each chord is to follow another. Some
tables are normalised probabilities while others are raw weights; consumers
treat every row as relative weights so both forms behave the same.

Lookups never fail. :func:`get_mode` substitutes Ionian for an unknown name
and :func:`transitions_for` fills in missing rows from a per-family default
table, logging a warning in both cases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from . import NOTES
from .note_utils import pitch_index

__all__ = [
    "Mode",
    "MODES",
    "MODE_NAMES",
    "DEFAULT_TRANSITIONS",
    "DEFAULT_NEXT_CHORDS",
    "get_mode",
    "list_modes",
    "tonic_numeral",
    "mode_family",
    "transitions_for",
    "modal_root",
]


@dataclass(frozen=True)
class Mode:
    """Immutable description of a mode."""

    name: str
    intervals: Tuple[int, ...]
    chord_qualities: Dict[str, str] = field(compare=False)
    transitions: Dict[str, Dict[str, float]] = field(compare=False, repr=False)
    description: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        if len(self.intervals) != 7:
            raise ValueError(f"Mode {self.name} must define 7 intervals")

    @property
    def numerals(self) -> List[str]:
        """Roman numerals of the diatonic triads in degree order."""

        return list(self.chord_qualities)

    def numeral_for_degree(self, degree: int) -> str:
        """Return the diatonic Roman numeral sitting on ``degree`` (0-6)."""

        return self.numerals[degree % 7]

    def quality_for_degree(self, degree: int) -> str:
        """Return the diatonic triad quality on ``degree`` (0-6)."""

        return self.chord_qualities[self.numeral_for_degree(degree)]


IONIAN = Mode(
    name="ionian",
    intervals=(0, 2, 4, 5, 7, 9, 11),
    chord_qualities={
        "I": "major",
        "ii": "minor",
        "iii": "minor",
        "IV": "major",
        "V": "major",
        "vi": "minor",
        "vii": "diminished",
    },
    transitions={
        "I": {"I": 0.026, "ii": 0.211, "iii": 0.079, "IV": 0.237, "V": 0.237, "vi": 0.158, "vii": 0.053},
        "ii": {"I": 0.095, "ii": 0.048, "iii": 0.095, "IV": 0.143, "V": 0.429, "vi": 0.143, "vii": 0.048},
        "iii": {"I": 0.077, "ii": 0.115, "iii": 0.038, "IV": 0.269, "V": 0.115, "vi": 0.308, "vii": 0.077},
        "IV": {"I": 0.276, "ii": 0.138, "iii": 0.069, "IV": 0.034, "V": 0.310, "vi": 0.103, "vii": 0.034},
        "V": {"I": 0.333, "ii": 0.111, "iii": 0.074, "IV": 0.111, "V": 0.037, "vi": 0.259, "vii": 0.074},
        "vi": {"I": 0.111, "ii": 0.296, "iii": 0.074, "IV": 0.259, "V": 0.185, "vi": 0.037, "vii": 0.074},
        "vii": {"I": 0.375, "ii": 0.083, "iii": 0.042, "IV": 0.083, "V": 0.333, "vi": 0.083, "vii": 0.042},
    },
    description=(
        "The Ionian mode is the major scale. It has a bright, stable sound and "
        "is the most common mode in Western music."
    ),
)

DORIAN = Mode(
    name="dorian",
    intervals=(0, 2, 3, 5, 7, 9, 10),
    chord_qualities={
        "i": "minor",
        "ii": "minor",
        "III": "major",
        "IV": "major",
        "v": "minor",
        "vi": "diminished",
        "VII": "major",
    },
    transitions={
        "i": {"i": 0.1, "ii": 0.7, "III": 0.4, "IV": 0.8, "v": 0.8, "vi": 0.3, "VII": 0.4},
        "ii": {"i": 0.3, "ii": 0.1, "III": 0.3, "IV": 0.4, "v": 0.8, "vi": 0.2, "VII": 0.2},
        "III": {"i": 0.8, "ii": 0.3, "III": 0.1, "IV": 0.6, "v": 0.4, "vi": 0.2, "VII": 0.7},
        "IV": {"i": 0.7, "ii": 0.3, "III": 0.3, "IV": 0.1, "v": 0.8, "vi": 0.2, "VII": 0.3},
        "v": {"i": 0.8, "ii": 0.4, "III": 0.3, "IV": 0.3, "v": 0.1, "vi": 0.2, "VII": 0.8},
        "vi": {"i": 0.7, "ii": 0.2, "III": 0.3, "IV": 0.2, "v": 0.8, "vi": 0.1, "VII": 0.3},
        "VII": {"i": 0.9, "ii": 0.3, "III": 0.4, "IV": 0.3, "v": 0.7, "vi": 0.2, "VII": 0.1},
    },
    description=(
        "Dorian is a minor mode with a major sixth, contemplative with a slight "
        "brightness from the raised sixth."
    ),
)

PHRYGIAN = Mode(
    name="phrygian",
    intervals=(0, 1, 3, 5, 7, 8, 10),
    chord_qualities={
        "i": "minor",
        "II": "major",
        "III": "major",
        "iv": "minor",
        "v": "minor",
        "VI": "major",
        "vii": "diminished",
    },
    transitions={
        "i": {"i": 0.1, "II": 0.5, "III": 0.4, "iv": 0.6, "v": 0.5, "VI": 0.4, "vii": 0.2},
        "II": {"i": 0.6, "II": 0.1, "III": 0.4, "iv": 0.3, "v": 0.3, "VI": 0.4, "vii": 0.2},
        "III": {"i": 0.5, "II": 0.3, "III": 0.1, "iv": 0.6, "v": 0.4, "VI": 0.4, "vii": 0.2},
        "iv": {"i": 0.6, "II": 0.3, "III": 0.3, "iv": 0.1, "v": 0.5, "VI": 0.4, "vii": 0.2},
        "v": {"i": 0.7, "II": 0.4, "III": 0.3, "iv": 0.3, "v": 0.1, "VI": 0.4, "vii": 0.3},
        "VI": {"i": 0.6, "II": 0.3, "III": 0.3, "iv": 0.4, "v": 0.4, "VI": 0.1, "vii": 0.2},
        "vii": {"i": 0.6, "II": 0.3, "III": 0.2, "iv": 0.3, "v": 0.4, "VI": 0.4, "vii": 0.1},
    },
    description=(
        "Phrygian has a lowered second degree which gives it a dark, Spanish "
        "or Middle Eastern flavour."
    ),
)

LYDIAN = Mode(
    name="lydian",
    intervals=(0, 2, 4, 6, 7, 9, 11),
    chord_qualities={
        "I": "major",
        "II": "major",
        "iii": "minor",
        "iv": "diminished",
        "V": "major",
        "vi": "minor",
        "vii": "minor",
    },
    transitions={
        "I": {"I": 0.029, "II": 0.257, "iii": 0.143, "iv": 0.086, "V": 0.229, "vi": 0.171, "vii": 0.086},
        "II": {"I": 0.226, "II": 0.032, "iii": 0.194, "iv": 0.065, "V": 0.258, "vi": 0.129, "vii": 0.097},
        "iii": {"I": 0.200, "II": 0.133, "iii": 0.033, "iv": 0.100, "V": 0.267, "vi": 0.233, "vii": 0.133},
        "iv": {"I": 0.241, "II": 0.103, "iii": 0.138, "iv": 0.034, "V": 0.276, "vi": 0.138, "vii": 0.069},
        "V": {"I": 0.310, "II": 0.138, "iii": 0.103, "iv": 0.069, "V": 0.034, "vi": 0.241, "vii": 0.103},
        "vi": {"I": 0.188, "II": 0.219, "iii": 0.125, "iv": 0.063, "V": 0.250, "vi": 0.031, "vii": 0.125},
        "vii": {"I": 0.276, "II": 0.138, "iii": 0.103, "iv": 0.069, "V": 0.241, "vi": 0.138, "vii": 0.034},
    },
    description=(
        "Lydian is major with a raised fourth, giving a bright floating quality "
        "often heard in film scores."
    ),
)

MIXOLYDIAN = Mode(
    name="mixolydian",
    intervals=(0, 2, 4, 5, 7, 9, 10),
    chord_qualities={
        "I": "major",
        "ii": "minor",
        "iii": "diminished",
        "IV": "major",
        "v": "minor",
        "vi": "minor",
        "VII": "major",
    },
    transitions={
        "I": {"I": 0.025, "ii": 0.175, "iii": 0.075, "IV": 0.200, "v": 0.175, "vi": 0.125, "VII": 0.225},
        "ii": {"I": 0.167, "ii": 0.028, "iii": 0.083, "IV": 0.194, "v": 0.222, "vi": 0.111, "VII": 0.194},
        "iii": {"I": 0.206, "ii": 0.118, "iii": 0.029, "IV": 0.176, "v": 0.147, "vi": 0.088, "VII": 0.235},
        "IV": {"I": 0.205, "ii": 0.147, "iii": 0.059, "IV": 0.029, "v": 0.205, "vi": 0.118, "VII": 0.235},
        "v": {"I": 0.242, "ii": 0.121, "iii": 0.061, "IV": 0.091, "v": 0.030, "vi": 0.152, "VII": 0.273},
        "vi": {"I": 0.167, "ii": 0.194, "iii": 0.083, "IV": 0.139, "v": 0.167, "vi": 0.028, "VII": 0.222},
        "VII": {"I": 0.375, "ii": 0.125, "iii": 0.083, "IV": 0.250, "v": 0.167, "vi": 0.125, "VII": 0.042},
    },
    description=(
        "Mixolydian is major with a lowered seventh, a bluesy dominant colour "
        "common in rock and folk."
    ),
)

AEOLIAN = Mode(
    name="aeolian",
    intervals=(0, 2, 3, 5, 7, 8, 10),
    chord_qualities={
        "i": "minor",
        "ii": "diminished",
        "III": "major",
        "iv": "minor",
        "v": "minor",
        "VI": "major",
        "VII": "major",
    },
    transitions={
        "i": {"i": 0.023, "ii": 0.091, "III": 0.159, "iv": 0.182, "v": 0.205, "VI": 0.182, "VII": 0.159},
        "ii": {"i": 0.212, "ii": 0.030, "III": 0.152, "iv": 0.182, "v": 0.242, "VI": 0.121, "VII": 0.091},
        "III": {"i": 0.167, "ii": 0.083, "III": 0.028, "iv": 0.194, "v": 0.139, "VI": 0.222, "VII": 0.167},
        "iv": {"i": 0.200, "ii": 0.086, "III": 0.114, "iv": 0.029, "v": 0.257, "VI": 0.171, "VII": 0.143},
        "v": {"i": 0.257, "ii": 0.057, "III": 0.086, "iv": 0.114, "v": 0.029, "VI": 0.200, "VII": 0.229},
        "VI": {"i": 0.159, "ii": 0.079, "III": 0.132, "iv": 0.159, "v": 0.211, "VI": 0.026, "VII": 0.237},
        "VII": {"i": 0.310, "ii": 0.069, "III": 0.138, "iv": 0.103, "v": 0.207, "VI": 0.172, "VII": 0.034},
    },
    description=(
        "Aeolian is the natural minor scale with a dark, melancholic quality "
        "used widely in rock, metal and classical music."
    ),
)

LOCRIAN = Mode(
    name="locrian",
    intervals=(0, 1, 3, 5, 6, 8, 10),
    chord_qualities={
        "i": "diminished",
        "II": "major",
        "iii": "minor",
        "iv": "minor",
        "V": "major",
        "VI": "major",
        "vii": "minor",
    },
    transitions={
        "i": {"i": 0.1, "II": 0.9, "iii": 0.5, "iv": 0.6, "V": 0.8, "VI": 0.7, "vii": 0.4},
        "II": {"i": 0.7, "II": 0.1, "iii": 0.6, "iv": 0.5, "V": 0.8, "VI": 0.6, "vii": 0.3},
        "iii": {"i": 0.6, "II": 0.7, "iii": 0.1, "iv": 0.7, "V": 0.5, "VI": 0.6, "vii": 0.4},
        "iv": {"i": 0.7, "II": 0.5, "iii": 0.4, "iv": 0.1, "V": 0.8, "VI": 0.6, "vii": 0.3},
        "V": {"i": 0.8, "II": 0.6, "iii": 0.3, "iv": 0.4, "V": 0.1, "VI": 0.7, "vii": 0.5},
        "VI": {"i": 0.7, "II": 0.6, "iii": 0.4, "iv": 0.5, "V": 0.8, "VI": 0.1, "vii": 0.4},
        "vii": {"i": 0.8, "II": 0.7, "iii": 0.3, "iv": 0.4, "V": 0.6, "VI": 0.5, "vii": 0.1},
    },
    description=(
        "Locrian has a diminished fifth above the tonic. It is the most "
        "unstable mode and is rarely used as a home key."
    ),
)

MODES: Dict[str, Mode] = {
    mode.name: mode
    for mode in (IONIAN, DORIAN, PHRYGIAN, LYDIAN, MIXOLYDIAN, AEOLIAN, LOCRIAN)
}

MODE_NAMES: Tuple[str, ...] = tuple(MODES)

# Substituted when a mode ships no table, or for individual missing rows.
DEFAULT_TRANSITIONS: Dict[str, Dict[str, Dict[str, float]]] = {
    "major": {
        "I": {"ii": 0.2, "IV": 0.3, "V": 0.3, "vi": 0.2},
        "ii": {"V": 0.6, "IV": 0.2, "vii": 0.2},
        "iii": {"vi": 0.4, "IV": 0.3, "ii": 0.3},
        "IV": {"V": 0.4, "I": 0.3, "ii": 0.3},
        "V": {"I": 0.6, "vi": 0.3, "iii": 0.1},
        "vi": {"ii": 0.3, "IV": 0.4, "V": 0.3},
        "vii": {"I": 0.7, "iii": 0.3},
    },
    "minor": {
        "i": {"iv": 0.3, "v": 0.3, "VI": 0.2, "VII": 0.2},
        "ii": {"v": 0.6, "i": 0.2, "VII": 0.2},
        "III": {"VI": 0.4, "iv": 0.3, "VII": 0.3},
        "iv": {"v": 0.4, "i": 0.3, "VII": 0.3},
        "v": {"i": 0.6, "VI": 0.3, "III": 0.1},
        "VI": {"III": 0.3, "iv": 0.4, "ii": 0.3},
        "VII": {"III": 0.4, "i": 0.6},
    },
}

# Used by the walk when the current state has no outgoing weights at all.
DEFAULT_NEXT_CHORDS: Dict[str, Dict[str, List[str]]] = {
    "major": {
        "I": ["IV", "V", "vi", "ii"],
        "ii": ["V", "vii", "iii"],
        "iii": ["vi", "IV", "ii"],
        "IV": ["V", "I", "ii"],
        "V": ["I", "vi", "IV"],
        "vi": ["ii", "IV", "V"],
        "vii": ["I", "iii"],
    },
    "minor": {
        "i": ["iv", "v", "VI", "VII"],
        "ii": ["v", "i", "VII"],
        "III": ["VI", "iv", "VII"],
        "iv": ["v", "i", "VII"],
        "v": ["i", "VI", "III"],
        "VI": ["III", "iv", "ii"],
        "VII": ["III", "i", "v"],
    },
}

FALLBACK_NEXT_CHORDS: Dict[str, List[str]] = {
    "major": ["I", "IV", "V"],
    "minor": ["i", "iv", "v"],
}


def get_mode(name: Union[str, Mode, None]) -> Mode:
    """Return the :class:`Mode` called ``name``.

    Names are matched case-insensitively. ``None`` selects Ionian silently
    while an unrecognised name selects Ionian and logs a warning. A
    :class:`Mode` instance is returned unchanged so callers may pass custom
    modes straight through.
    """

    if isinstance(name, Mode):
        return name
    if name is None:
        return IONIAN
    mode = MODES.get(str(name).strip().lower())
    if mode is None:
        logging.warning("Unknown mode '%s'; falling back to ionian", name)
        return IONIAN
    return mode


def list_modes() -> List[str]:
    """Return the names of all built-in modes."""

    return list(MODE_NAMES)


def tonic_numeral(mode: Mode) -> str:
    """Return ``"I"`` or ``"i"`` depending on the quality of the tonic triad."""

    quality = mode.chord_qualities.get("I") or mode.chord_qualities.get("i")
    return "I" if quality in ("major", "augmented") else "i"


def mode_family(mode: Mode) -> str:
    """Return ``"major"`` for modes with a major tonic, ``"minor"`` otherwise.

    Ionian, Lydian and Mixolydian are major; Dorian, Phrygian, Aeolian and
    Locrian are minor.
    """

    return "major" if tonic_numeral(mode) == "I" else "minor"


def transitions_for(mode: Mode) -> Dict[str, Dict[str, float]]:
    """Return a copy of ``mode``'s transition table with gaps filled in.

    When the mode defines no table at all the family default is used. When
    only some diatonic states are missing or empty, each one is copied from
    the family default if available. Every substitution logs a warning.
    """

    family = mode_family(mode)
    defaults = DEFAULT_TRANSITIONS[family]
    if not mode.transitions:
        logging.warning("No transitions defined for %s mode, using defaults", mode.name)
        return {state: dict(row) for state, row in defaults.items()}

    table = {state: dict(row) for state, row in mode.transitions.items() if row}
    for numeral in mode.numerals:
        if numeral in table:
            continue
        if numeral in defaults:
            logging.warning(
                "No transition probabilities for %s in %s mode, using %s defaults",
                numeral,
                mode.name,
                family,
            )
            table[numeral] = dict(defaults[numeral])
    return table


def modal_root(key: str, mode: Union[str, Mode]) -> str:
    """Return the tonic of ``mode`` when ``key`` names the parent major scale.

    ``modal_root("C", "dorian")`` is ``"D"`` because D Dorian shares its notes
    with C major.
    """

    mode = get_mode(mode)
    step = MODE_NAMES.index(mode.name) if mode.name in MODES else 0
    return NOTES[(pitch_index(key) + IONIAN.intervals[step]) % 12]
