"""High level entry points wiring the harmony pipeline together.

Modification summary
--------------------
* ``generate_progression`` degrades instead of raising: an unknown key falls
  back to C, an out of range octave is clamped and a chord that cannot be
  built is replaced with C major, each with a warning.
* ``GenerationRequest.from_dict`` accepts the camelCase names used by saved
  settings files (``modeName``, ``useInversions``...) as well as snake case.
* ``parent_key`` lets ``key`` name the parent major scale instead of the
  modal tonic so ``key="C", mode="dorian"`` produces D Dorian.

A single ``random.Random`` instance drives every probabilistic stage so a
request carrying a ``seed`` reproduces its result exactly.

Example
-------
>>> chords = generate(length=4, key="G", mode="mixolydian", seed=3)
>>> len(chords)
4
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, fields
from typing import Any, List, Mapping, Optional, Union

from . import MAX_OCTAVE, MIN_OCTAVE
from .cadences import CadencePatternLibrary
from .chords import (
    ChordSymbol,
    InvalidMusicTheoryInput,
    VoicedChord,
    resolve,
    roman_to_chord_symbol,
)
from .config import EngineConfig
from .extensions import ChordExtensionEngine
from .harmonic_rhythm import RhythmSpec, apply_rhythm
from .modes import Mode, get_mode, modal_root
from .note_utils import normalize_pitch
from .optimizer import VoiceLeadingOptimizer
from .patterns import generate_pattern_progression
from .progression import SHORT_PROGRESSION_MAX, ProgressionGenerator
from .theory import annotate_progression

__all__ = ["GenerationRequest", "generate_progression", "generate"]


@dataclass
class GenerationRequest:
    """Parameters of one call to :func:`generate_progression`."""

    length: int = 4
    key: str = "C"
    mode_name: str = "ionian"
    use_inversions: bool = True
    root_octave: int = 3
    chord_extension_level: str = "none"
    cadence_type: Optional[str] = None
    strict_cadence: bool = False
    rhythm_pattern: RhythmSpec = "uniform"
    pattern_type: Optional[str] = None
    total_beats: Optional[float] = None
    seed: Optional[int] = None
    parent_key: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "GenerationRequest":
        """Build a request from a settings mapping.

        Keys may be snake case or camelCase and ``mode`` is accepted for
        ``mode_name``. Unknown keys are ignored with a warning.
        """

        known = {f.name for f in fields(cls)}
        values = {}
        for name, value in (data or {}).items():
            field_name = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()
            if field_name == "mode":
                field_name = "mode_name"
            if field_name not in known:
                logging.warning("Ignoring unknown request setting: %s", name)
                continue
            values[field_name] = value
        return cls(**values)


def _validate_key(key: str) -> str:
    try:
        return normalize_pitch(key)
    except (ValueError, AttributeError):
        logging.warning("Invalid key '%s'; using C", key)
        return "C"


def _clamp_octave(octave: int) -> int:
    clamped = min(MAX_OCTAVE, max(MIN_OCTAVE, int(octave)))
    if clamped != octave:
        logging.warning(
            "Root octave %s outside %d-%d; using %d", octave, MIN_OCTAVE, MAX_OCTAVE, clamped
        )
    return clamped


def _realize(roman: str, key: str, mode: Mode, octave: int) -> VoicedChord:
    """Turn one Roman numeral into a root position :class:`VoicedChord`."""

    symbol = roman_to_chord_symbol(roman, key, mode)
    try:
        notes = resolve(symbol, octave)
    except InvalidMusicTheoryInput as exc:
        logging.warning("Could not build chord %s (%s); using C major", roman, exc)
        symbol = ChordSymbol("C", "major")
        notes = resolve(symbol, octave)
    return VoicedChord(
        root=symbol.root,
        quality=symbol.quality,
        bass=notes[0],
        notes=notes,
        roman=roman,
    )


def generate_progression(
    request: GenerationRequest,
    rng: Optional[random.Random] = None,
    config: Optional[EngineConfig] = None,
) -> List[VoicedChord]:
    """Generate a voiced progression for ``request``.

    Parameters
    ----------
    request:
        What to generate.
    rng:
        Source of randomness. When omitted a ``random.Random`` seeded with
        ``request.seed`` is created.
    config:
        Engine constants; defaults to :class:`EngineConfig`.

    Returns
    -------
    List[VoicedChord]
        Exactly ``max(1, request.length)`` chords, each carrying its Roman
        numeral, duration and theory labels.
    """

    rng = rng or random.Random(request.seed)
    config = config or EngineConfig()
    mode = get_mode(request.mode_name)
    key = _validate_key(request.key)
    tonic = modal_root(key, mode) if request.parent_key else key
    octave = _clamp_octave(request.root_octave)
    length = request.length
    if length < 1:
        logging.warning("Progression length %s is below 1; using 1", length)
        length = 1

    cadences = CadencePatternLibrary(rng, config)
    if request.pattern_type:
        romans = generate_pattern_progression(request.pattern_type, length, mode)
        if request.cadence_type:
            romans = cadences.apply_cadential_patterns(
                romans, mode, request.cadence_type, request.strict_cadence
            )
    else:
        romans = ProgressionGenerator(rng, config).generate(length, mode)
        # Short progressions come from the curated cadential list already;
        # only a strict request may replace them.
        if length > SHORT_PROGRESSION_MAX or (request.cadence_type and request.strict_cadence):
            romans = cadences.apply_cadential_patterns(
                romans, mode, request.cadence_type, request.strict_cadence
            )
    romans = ChordExtensionEngine(rng, config).apply(romans, mode, request.chord_extension_level)
    logging.debug("Progression in %s %s: %s", tonic, mode.name, " ".join(romans))

    chords = [_realize(roman, tonic, mode, octave) for roman in romans]
    chords = VoiceLeadingOptimizer(rng, config).optimize(chords, tonic, request.use_inversions)

    try:
        chords = apply_rhythm(chords, request.rhythm_pattern, request.total_beats)
    except ValueError as exc:
        logging.warning("Ignoring total beats %s: %s", request.total_beats, exc)
        chords = apply_rhythm(chords, request.rhythm_pattern)

    return annotate_progression(chords, tonic, mode)


def generate(
    length: int = 4,
    key: str = "C",
    mode: Union[str, Mode] = "ionian",
    *,
    rng: Optional[random.Random] = None,
    config: Optional[EngineConfig] = None,
    **options: Any,
) -> List[VoicedChord]:
    """Keyword convenience wrapper around :func:`generate_progression`.

    Extra keyword arguments are :class:`GenerationRequest` fields, for
    example ``generate(8, "A", "aeolian", chord_extension_level="full")``.
    """

    mode_name = mode.name if isinstance(mode, Mode) else mode
    request = GenerationRequest(length=length, key=key, mode_name=mode_name, **options)
    return generate_progression(request, rng=rng, config=config)

