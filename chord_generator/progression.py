"""Roman numeral progression generation.

:class:`ProgressionGenerator` walks a mode's transition table as a
first-order Markov chain. The walk is steered in three ways:

* Progressions of three chords or fewer skip the walk entirely and come
  from a curated list of idiomatic short progressions for the mode.
* With variety enabled (about 70% of generations) each step has a small
  chance to jump to any other state, which keeps long walks from settling
  into the same loop.
* Most generations (70%) end by splicing a cadential resolution to the
  tonic over the last slots; the rest take one more ordinary step.

The generator never fails for lack of data. States without outgoing
weights use a fixed list of plausible successors for the mode family.

Example
-------
>>> import random
>>> from chord_generator.progression import ProgressionGenerator
>>> ProgressionGenerator(random.Random(3)).generate(4, "ionian")  # doctest: +SKIP
['I', 'vi', 'V', 'I']
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Union

from .config import EngineConfig
from .modes import (
    DEFAULT_NEXT_CHORDS,
    FALLBACK_NEXT_CHORDS,
    Mode,
    get_mode,
    mode_family,
    tonic_numeral,
    transitions_for,
)

__all__ = [
    "SHORT_PROGRESSIONS",
    "SHORT_PROGRESSION_MAX",
    "CADENTIAL_ENDINGS",
    "ProgressionGenerator",
    "short_progressions",
    "cadential_endings",
]

# Progressions up to this length are drawn whole from ``SHORT_PROGRESSIONS``.
SHORT_PROGRESSION_MAX = 3

# Idiomatic progressions for one to three chords. Entries keyed by mode name
# take precedence over the family entries.
SHORT_PROGRESSIONS: Dict[str, Dict[int, List[List[str]]]] = {
    "major": {
        2: [["V", "I"], ["IV", "I"], ["I", "V"], ["ii", "V"]],
        3: [["ii", "V", "I"], ["IV", "V", "I"], ["I", "IV", "I"], ["vi", "V", "I"]],
    },
    "minor": {
        2: [["V", "i"], ["iv", "i"], ["i", "V"], ["VII", "i"]],
        3: [["iv", "V", "i"], ["VI", "VII", "i"], ["iio", "V", "i"], ["i", "iv", "V"]],
    },
    "lydian": {
        2: [["II", "I"], ["V", "I"], ["I", "II"], ["I", "V"]],
        3: [["I", "II", "I"], ["II", "V", "I"], ["vi", "II", "I"]],
    },
    "mixolydian": {
        2: [["VII", "I"], ["IV", "I"], ["v", "I"], ["I", "VII"]],
        3: [["I", "VII", "I"], ["IV", "v", "I"], ["VII", "IV", "I"]],
    },
    "dorian": {
        2: [["IV", "i"], ["V", "i"], ["VII", "i"], ["i", "IV"]],
        3: [["i", "IV", "i"], ["IV", "V", "i"], ["ii", "VII", "i"]],
    },
    "phrygian": {
        2: [["II", "i"], ["VII", "i"], ["iv", "i"], ["i", "II"]],
        3: [["i", "II", "i"], ["iv", "II", "i"], ["VI", "VII", "i"]],
    },
    "locrian": {
        2: [["II", "i"], ["V", "i"], ["VI", "i"]],
        3: [["i", "II", "i"], ["VI", "V", "i"], ["iv", "II", "i"]],
    },
}

# Two-chord endings spliced over the tail of a walk to force a resolution.
CADENTIAL_ENDINGS: Dict[str, List[List[str]]] = {
    "major": [["V", "I"], ["IV", "I"], ["ii", "I"], ["vii", "I"]],
    "minor": [["V", "i"], ["iv", "i"], ["iio", "i"], ["VII", "i"]],
    "lydian": [["V", "I"], ["II", "I"], ["vii", "I"]],
    "mixolydian": [["v", "I"], ["IV", "I"], ["VII", "I"], ["ii", "I"]],
    "dorian": [["IV", "i"], ["V", "i"], ["VII", "i"], ["ii", "i"]],
    "phrygian": [["II", "i"], ["VII", "i"], ["iv", "i"], ["V", "i"]],
    "locrian": [["II", "i"], ["V", "i"], ["VI", "i"]],
}


def short_progressions(mode: Mode, length: int) -> List[List[str]]:
    """Return the curated progressions of ``length`` (1-3) for ``mode``."""

    if length <= 1:
        return [[tonic_numeral(mode)]]
    table = SHORT_PROGRESSIONS.get(mode.name) or SHORT_PROGRESSIONS[mode_family(mode)]
    return table.get(length) or SHORT_PROGRESSIONS[mode_family(mode)][length]


def cadential_endings(mode: Mode) -> List[List[str]]:
    """Return the cadential endings that resolve to ``mode``'s tonic."""

    return CADENTIAL_ENDINGS.get(mode.name) or CADENTIAL_ENDINGS[mode_family(mode)]


class ProgressionGenerator:
    """Generate Roman numeral progressions with a weighted random walk."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        """Create a generator.

        Parameters
        ----------
        rng:
            Source of randomness. A fresh unseeded ``random.Random`` is used
            when omitted; pass a seeded instance for reproducible output.
        config:
            Probabilities controlling the walk. Defaults to
            :class:`EngineConfig`.
        """

        self.rng = rng or random.Random()
        self.config = config or EngineConfig()

    def select_next_chord(
        self,
        current: str,
        transitions: Optional[Dict[str, Dict[str, float]]],
        mode: Union[str, Mode, None],
        variety: bool = False,
    ) -> str:
        """Return the chord following ``current``.

        The row ``transitions[current]`` is treated as relative weights and
        sampled by cumulative probability. When ``variety`` is set there is a
        small chance to jump uniformly to any other state in the table
        instead. A missing or empty row falls back to a fixed list of
        successors for the mode family.
        """

        mode = get_mode(mode)
        if not transitions or not current:
            return tonic_numeral(mode)

        row = transitions.get(current)
        if not row:
            family = mode_family(mode)
            logging.debug(
                "No transition probabilities found for %s in %s mode", current, mode.name
            )
            options = DEFAULT_NEXT_CHORDS[family].get(current) or FALLBACK_NEXT_CHORDS[family]
            return self.rng.choice(options)

        if variety and self.rng.random() < self.config.variety_jump_probability:
            others = [state for state in transitions if state != current]
            if others:
                return self.rng.choice(others)

        total = sum(weight for weight in row.values() if weight > 0)
        if total <= 0:
            return self.rng.choice(list(row))

        threshold = self.rng.random() * total
        cumulative = 0.0
        for chord, weight in row.items():
            if weight <= 0:
                continue
            cumulative += weight
            if threshold <= cumulative:
                return chord
        # Rounding can leave the threshold a hair above the final sum.
        return next(iter(row))

    def generate(self, length: int, mode: Union[str, Mode, None] = None) -> List[str]:
        """Return a progression of exactly ``length`` Roman numerals.

        Lengths below one are treated as one. If a walk ever produces the
        wrong number of chords it is truncated when too long and restarted
        when too short; after ``max_generation_attempts`` restarts the result
        is padded with the tonic.
        """

        mode = get_mode(mode)
        if length < 1:
            logging.warning("Progression length %s is below 1; using 1", length)
            length = 1

        if length <= SHORT_PROGRESSION_MAX:
            return list(self.rng.choice(short_progressions(mode, length)))

        transitions = transitions_for(mode)
        progression: List[str] = []
        for attempt in range(max(1, self.config.max_generation_attempts)):
            progression = self._walk(length, mode, transitions)
            if len(progression) > length:
                progression = progression[:length]
            if len(progression) == length:
                return progression
            logging.debug(
                "Walk produced %d of %d chords; restarting (attempt %d)",
                len(progression),
                length,
                attempt + 1,
            )

        logging.warning("Could not generate %d chords; padding with the tonic", length)
        tonic = tonic_numeral(mode)
        return (progression + [tonic] * length)[:length]

    def _walk(
        self,
        length: int,
        mode: Mode,
        transitions: Dict[str, Dict[str, float]],
    ) -> List[str]:
        """Run one weighted walk with cadential steering at the end."""

        tonic = tonic_numeral(mode)
        if self.rng.random() < self.config.start_on_tonic_probability:
            start = tonic
        else:
            others = [state for state in transitions if state != tonic]
            start = self.rng.choice(others) if others else tonic

        variety = self.rng.random() < self.config.variety_probability
        progression = [start]
        while len(progression) < length - 1:
            progression.append(
                self.select_next_chord(progression[-1], transitions, mode, variety)
            )

        if self.rng.random() < self.config.cadential_ending_probability:
            # Overwrites the last walked chord unless it already is the approach.
            approach, resolution = self.rng.choice(cadential_endings(mode))
            progression[-1] = approach
            progression.append(resolution)
        else:
            progression.append(
                self.select_next_chord(progression[-1], transitions, mode, variety)
            )
        return progression
