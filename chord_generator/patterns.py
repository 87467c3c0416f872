"""Named harmonic templates used instead of the random walk.

A request may ask for a structural pattern such as ``two_five_one`` or
``descending_fifths``. The template is chosen for the mode family (major or
minor tonic) and then repeated or cut so the progression has exactly the
requested number of chords.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple, Union

from .harmonic_rhythm import pattern_key
from .modes import Mode, get_mode, mode_family

__all__ = [
    "HARMONIC_PATTERNS",
    "list_harmonic_patterns",
    "fit_to_length",
    "generate_pattern_progression",
]

_DESCENDING_FIFTHS = {
    "major": ["I", "IV", "vii°", "iii", "vi", "ii", "V", "I"],
    "minor": ["i", "iv", "VII", "III", "VI", "ii°", "V", "i"],
}

_ASCENDING_FIFTHS = {
    "major": ["I", "V", "ii", "vi", "iii", "vii°", "IV", "I"],
    "minor": ["i", "V", "ii°", "VI", "III", "VII", "iv", "i"],
}


def _cycle(sequence: List[str], length: int) -> List[str]:
    return [sequence[i % len(sequence)] for i in range(length)]


def _major_minor_twist(length: int, minor: bool) -> List[str]:
    home, parallel = ("i", "I") if minor else ("I", "i")
    return [home if i % 2 == 0 else parallel for i in range(length)]


# name -> (description, builder(length, minor))
HARMONIC_PATTERNS: Dict[str, Tuple[str, Callable[[int, bool], List[str]]]] = {
    "basic_cadence": ("Basic authentic cadence (V-I)", lambda n, minor: ["V", "I"]),
    "plagal_cadence": ("Plagal cadence (IV-I)", lambda n, minor: ["IV", "I"]),
    "two_five_one": (
        "ii-V-I jazz",
        lambda n, minor: ["ii°", "V", "i"] if minor else ["ii", "V", "I"],
    ),
    "four_one_deceptive": (
        "IV-I-vi pop",
        lambda n, minor: ["iv", "i", "VI"] if minor else ["IV", "I", "vi"],
    ),
    "descending_fifths": (
        "Circle of fifths",
        lambda n, minor: _cycle(_DESCENDING_FIFTHS["minor" if minor else "major"], n),
    ),
    "ascending_fifths": (
        "Reverse circle of fifths",
        lambda n, minor: _cycle(_ASCENDING_FIFTHS["minor" if minor else "major"], n),
    ),
    "modal_mixture": (
        "Modal mixture",
        lambda n, minor: ["i", "IV", "V", "i"] if minor else ["I", "iv", "V", "I"],
    ),
    "major_minor_twist": ("Alternating major and minor tonic", _major_minor_twist),
}


def list_harmonic_patterns() -> List[Tuple[str, str]]:
    """Return ``(name, description)`` pairs for the built-in patterns."""

    return [(name, entry[0]) for name, entry in HARMONIC_PATTERNS.items()]


def fit_to_length(sequence: List[str], length: int) -> List[str]:
    """Repeat or truncate ``sequence`` to exactly ``length`` chords."""

    if not sequence or length <= 0:
        return []
    repeats = -(-length // len(sequence))
    return (sequence * repeats)[:length]


def generate_pattern_progression(
    name: str,
    length: int,
    mode: Union[str, Mode, None] = None,
) -> List[str]:
    """Return the Roman numerals of pattern ``name`` fitted to ``length``.

    Unknown names log a warning and produce ``I IV V I`` (or the minor
    equivalent) fitted to ``length``.
    """

    mode = get_mode(mode)
    minor = mode_family(mode) == "minor"
    length = max(1, length)
    entry = HARMONIC_PATTERNS.get(pattern_key(name or ""))
    if entry is None:
        logging.warning("Pattern %s not found, using default sequence", name)
        sequence = ["i", "iv", "V", "i"] if minor else ["I", "IV", "V", "I"]
    else:
        sequence = entry[1](length, minor)
    return fit_to_length(sequence, length)
