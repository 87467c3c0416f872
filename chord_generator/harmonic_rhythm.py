"""Harmonic rhythm: how long each chord of a progression lasts.

Durations are measured in beats. A rhythm is chosen by name from
:data:`RHYTHM_PATTERNS`, given directly as a list that is repeated to the
progression length, or supplied as a callable receiving the length. When a
total number of beats is requested the durations are scaled so they add up
to it.

Example
-------
>>> create_rhythm_pattern(4, "waltz")
[2.0, 1.0, 1.0, 2.0]
>>> normalize_durations([2.0, 1.0, 1.0], 8)
[4.0, 2.0, 2.0]
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .chords import VoicedChord

__all__ = [
    "RHYTHM_PATTERNS",
    "RHYTHM_DESCRIPTIONS",
    "RhythmSpec",
    "pattern_key",
    "list_rhythm_patterns",
    "create_rhythm_pattern",
    "normalize_durations",
    "apply_rhythm",
]


def _repeat(pattern: Sequence[float], length: int) -> List[float]:
    if not pattern:
        return [1.0] * length
    return [float(pattern[i % len(pattern)]) for i in range(length)]


def _uniform(length: int) -> List[float]:
    return [1.0] * length


def _cadential(length: int) -> List[float]:
    durations = [1.0] * length
    if length > 1:
        durations[-1] = 2.0
        durations[-2] = 1.5
    return durations


def _rubato(length: int) -> List[float]:
    durations = []
    for i in range(length):
        if i == 0 or i == length - 1:
            durations.append(2.0)
        elif i % 3 == 0:
            durations.append(1.5)
        else:
            durations.append(1.0)
    return durations


def _accelerating(length: int) -> List[float]:
    return [1 + max(0.5, 1 - i / (length * 1.5)) for i in range(length)]


def _decelerating(length: int) -> List[float]:
    if length == 1:
        return [1.0]
    return [min(1.5, i / (length - 1) + 0.5) for i in range(length)]


RHYTHM_PATTERNS: Dict[str, Callable[[int], List[float]]] = {
    "uniform": _uniform,
    "waltz": lambda length: _repeat([2, 1, 1], length),
    "long_short": lambda length: _repeat([2, 1], length),
    "short_long": lambda length: _repeat([1, 2], length),
    "cadential": _cadential,
    "rubato": _rubato,
    "accelerating": _accelerating,
    "decelerating": _decelerating,
}

RHYTHM_DESCRIPTIONS: Dict[str, str] = {
    "uniform": "Uniform (equal)",
    "waltz": "Waltz (3-beat)",
    "long_short": "Long-Short",
    "short_long": "Short-Long",
    "cadential": "Cadential (slower end)",
    "rubato": "Rubato (varied)",
    "accelerating": "Accelerating",
    "decelerating": "Decelerating",
}

RhythmSpec = Union[str, Sequence[float], Callable[[int], Sequence[float]], None]


def pattern_key(name: str) -> str:
    """Map ``longShort``, ``long-short`` and ``long_short`` to one key."""

    key = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name.strip()).replace("-", "_")
    return key.lower()


def list_rhythm_patterns() -> List[Tuple[str, str]]:
    """Return ``(name, description)`` pairs for the built-in patterns."""

    return list(RHYTHM_DESCRIPTIONS.items())


def create_rhythm_pattern(length: int, pattern: RhythmSpec = "uniform") -> List[float]:
    """Return one duration per chord for a progression of ``length``.

    Parameters
    ----------
    length:
        Number of chords. Values below one yield ``[1.0]``.
    pattern:
        A pattern name, an explicit list of durations (repeated or cut to
        ``length``) or a callable returning durations for a length. Unknown
        names and callables returning the wrong number of durations fall
        back to the uniform rhythm with a warning.
    """

    if length < 1:
        return [1.0]
    if pattern is None:
        return _uniform(length)
    if isinstance(pattern, str):
        builder = RHYTHM_PATTERNS.get(pattern_key(pattern))
        if builder is None:
            logging.warning("Unknown rhythm pattern '%s'; using uniform", pattern)
            return _uniform(length)
        return builder(length)
    if callable(pattern):
        durations = list(pattern(length))
        if len(durations) != length:
            logging.warning(
                "Rhythm callable returned %d durations for %d chords; using uniform",
                len(durations),
                length,
            )
            return _uniform(length)
        return [float(d) for d in durations]
    return _repeat(list(pattern), length)


def normalize_durations(durations: Sequence[float], total_beats: Optional[float] = None) -> List[float]:
    """Scale ``durations`` so they sum to ``total_beats``.

    ``None`` returns the durations unchanged.

    Raises
    ------
    ValueError
        If ``total_beats`` is not positive or the durations sum to zero.
    """

    values = [float(d) for d in durations]
    if total_beats is None or not values:
        return values
    if total_beats <= 0:
        raise ValueError("total_beats must be positive")
    total = sum(values)
    if total <= 0:
        raise ValueError("durations must sum to a positive value")
    return [d / total * total_beats for d in values]


def apply_rhythm(
    chords: Sequence[VoicedChord],
    pattern: RhythmSpec = "uniform",
    total_beats: Optional[float] = None,
) -> List[VoicedChord]:
    """Return copies of ``chords`` carrying a ``duration`` from ``pattern``."""

    if not chords:
        return []
    durations = normalize_durations(create_rhythm_pattern(len(chords), pattern), total_beats)
    return [replace(chord, duration=duration) for chord, duration in zip(chords, durations)]
