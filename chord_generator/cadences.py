"""Cadence templates and splicing.

Cadences are stored as short Roman numeral tails keyed first by mode name and
then by mode family (``major``/``minor``). :func:`get_cadence_pattern`
consults the mode table, then the family table, and finally the family's
authentic cadence, so every lookup produces a usable template.

:class:`CadencePatternLibrary` adds the probabilistic layer. ``apply``
sometimes leaves a progression alone or keeps an ending that is already a
valid cadence; ``apply_cadential_patterns`` decides whether a cadence is
applied at all based on what the request asked for.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .config import EngineConfig
from .modes import Mode, get_mode, mode_family

__all__ = [
    "CADENCE_PATTERNS",
    "CADENCE_WEIGHTS",
    "VALID_CADENCES",
    "CADENCE_TYPES",
    "CadencePatternLibrary",
    "get_cadence_pattern",
    "cadence_types_for",
]

CADENCE_PATTERNS: Dict[str, Dict[str, List[str]]] = {
    "major": {
        "authentic": ["V", "I"],
        "perfect": ["V", "I"],
        "plagal": ["IV", "I"],
        "half": ["I", "V"],
        "deceptive": ["V", "vi"],
        "picardy": ["V", "I"],
        "extended": ["ii", "V", "I"],
        "elongated": ["IV", "V", "I"],
    },
    "minor": {
        "authentic": ["V", "i"],
        "perfect": ["V", "i"],
        "plagal": ["iv", "i"],
        "half": ["i", "V"],
        "deceptive": ["V", "VI"],
        "picardy": ["V", "I"],
        "extended": ["iio", "V", "i"],
        "elongated": ["iv", "V", "i"],
        "natural": ["VII", "i"],
        "phrygian": ["II", "i"],
    },
    "mixolydian": {
        "authentic": ["v", "I"],
        "extended": ["IV", "v", "I"],
        "plagal": ["IV", "I"],
        "natural": ["VII", "I"],
    },
    "lydian": {
        "authentic": ["V", "I"],
        "extended": ["II", "V", "I"],
        "plagal": ["IV", "I"],
        "deceptive": ["V", "vi"],
    },
    "dorian": {
        "authentic": ["V", "i"],
        "extended": ["IV", "V", "i"],
        "plagal": ["IV", "i"],
        "natural": ["VII", "i"],
    },
    "phrygian": {
        "authentic": ["V", "i"],
        "phrygian": ["II", "i"],
        "extended": ["II", "v", "i"],
        "natural": ["VII", "i"],
        "modal": ["iv", "III", "i"],
    },
    "locrian": {
        "authentic": ["V", "i"],
        "locrian": ["II", "i"],
        "extended": ["VII", "V", "i"],
        "modal": ["IV", "v", "i"],
    },
}

CADENCE_TYPES: Tuple[str, ...] = (
    "authentic",
    "perfect",
    "plagal",
    "half",
    "deceptive",
    "picardy",
    "extended",
    "elongated",
    "natural",
    "phrygian",
    "modal",
    "locrian",
)

# Weighted choices used by ``suggest``. Weights per mode sum to one.
CADENCE_WEIGHTS: Dict[str, List[Tuple[str, float]]] = {
    "ionian": [("authentic", 0.45), ("plagal", 0.25), ("deceptive", 0.15), ("extended", 0.15)],
    "lydian": [("authentic", 0.4), ("extended", 0.3), ("plagal", 0.2), ("deceptive", 0.1)],
    "mixolydian": [("authentic", 0.35), ("natural", 0.25), ("plagal", 0.25), ("extended", 0.15)],
    "aeolian": [("authentic", 0.4), ("natural", 0.25), ("plagal", 0.2), ("deceptive", 0.15)],
    "dorian": [("authentic", 0.35), ("extended", 0.25), ("plagal", 0.25), ("natural", 0.15)],
    "phrygian": [("authentic", 0.25), ("phrygian", 0.35), ("natural", 0.2), ("modal", 0.2)],
    "locrian": [("authentic", 0.3), ("locrian", 0.3), ("modal", 0.25), ("extended", 0.15)],
}

# Endings already accepted as a cadence, as (penultimate, final) pairs.
VALID_CADENCES: Dict[str, List[Tuple[str, str]]] = {
    "ionian": [("V", "I"), ("IV", "I"), ("vii", "I")],
    "lydian": [("V", "I"), ("II", "I"), ("vii", "I")],
    "mixolydian": [("v", "I"), ("IV", "I"), ("VII", "I")],
    "aeolian": [("V", "i"), ("iv", "i"), ("VII", "i")],
    "dorian": [("V", "i"), ("IV", "i"), ("VII", "i")],
    "phrygian": [("V", "i"), ("II", "i"), ("VII", "i"), ("iv", "i")],
    "locrian": [("V", "i"), ("II", "i"), ("VI", "i")],
}


def get_cadence_pattern(mode: Union[str, Mode, None], cadence_type: str = "authentic") -> List[str]:
    """Return the Roman numeral tail for ``cadence_type`` in ``mode``.

    Mode specific templates win over family templates. Unknown types fall
    back to the family's authentic cadence.
    """

    mode = get_mode(mode)
    family = mode_family(mode)
    specific = CADENCE_PATTERNS.get(mode.name, {})
    if cadence_type in specific:
        return list(specific[cadence_type])
    generic = CADENCE_PATTERNS[family]
    return list(generic.get(cadence_type) or generic["authentic"])


def cadence_types_for(mode: Union[str, Mode, None]) -> List[str]:
    """Return the cadence types ``suggest`` may pick for ``mode``."""

    mode = get_mode(mode)
    weights = CADENCE_WEIGHTS.get(mode.name) or CADENCE_WEIGHTS["ionian"]
    return [name for name, _ in weights]


def _valid_endings(mode: Mode, final: str) -> Sequence[Tuple[str, str]]:
    if mode.name in VALID_CADENCES:
        return VALID_CADENCES[mode.name]
    return VALID_CADENCES["ionian"] if final == "I" else VALID_CADENCES["aeolian"]


class CadencePatternLibrary:
    """Suggest cadences and splice them onto progressions."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.config = config or EngineConfig()

    def suggest(self, progression: Sequence[str], mode: Union[str, Mode, None]) -> str:
        """Return a cadence type drawn from ``mode``'s weight table.

        An empty progression always gets ``"authentic"``.
        """

        if not progression:
            return "authentic"
        mode = get_mode(mode)
        options = CADENCE_WEIGHTS.get(mode.name) or CADENCE_WEIGHTS["ionian"]
        draw = self.rng.random()
        cumulative = 0.0
        for name, weight in options:
            cumulative += weight
            if draw <= cumulative:
                return name
        return "authentic"

    def ends_with_valid_cadence(self, progression: Sequence[str], mode: Union[str, Mode, None]) -> bool:
        if len(progression) < 2:
            return False
        mode = get_mode(mode)
        ending = (progression[-2], progression[-1])
        return ending in _valid_endings(mode, progression[-1])

    def apply(
        self,
        progression: Sequence[str],
        mode: Union[str, Mode, None],
        cadence_type: str = "authentic",
        *,
        strict: bool = False,
    ) -> List[str]:
        """Splice ``cadence_type`` onto the end of ``progression``.

        Without ``strict`` there is a 25% chance the progression is returned
        unchanged, and a progression that already ends in a valid cadence is
        kept half of the time. Otherwise the trailing chords are replaced by
        the template. A progression no longer than the template is replaced
        by the template's last ``len(progression)`` chords so the length never
        changes.
        """

        result = list(progression)
        if len(result) < 2:
            return result
        if not strict and self.rng.random() < self.config.cadence_skip_probability:
            return result

        cadence = get_cadence_pattern(mode, cadence_type)
        if len(result) <= len(cadence):
            return cadence[len(cadence) - len(result):]

        if (
            not strict
            and self.ends_with_valid_cadence(result, mode)
            and self.rng.random() < self.config.keep_existing_cadence_probability
        ):
            return result

        return result[: len(result) - len(cadence)] + cadence

    def apply_cadential_patterns(
        self,
        progression: Sequence[str],
        mode: Union[str, Mode, None],
        cadence_type: Optional[str] = None,
        strict: bool = False,
    ) -> List[str]:
        """Apply a cadence according to the request.

        * ``strict`` with a ``cadence_type`` always splices that cadence.
        * A ``cadence_type`` alone is applied half of the time.
        * Without a type, a suggested cadence is applied 40% of the time.
        """

        result = list(progression)
        if len(result) < 2:
            return result
        if cadence_type and strict:
            return self.apply(result, mode, cadence_type, strict=True)
        if cadence_type:
            if self.rng.random() < self.config.requested_cadence_probability:
                return self.apply(result, mode, cadence_type)
            return result
        if self.rng.random() < self.config.suggested_cadence_probability:
            return self.apply(result, mode, self.suggest(result, mode))
        return result
