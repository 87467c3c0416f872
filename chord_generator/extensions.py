"""Seventh, ninth and secondary-dominant upgrades for Roman numeral progressions.

The engine works on the Roman numeral level, after cadences are applied and
before the numerals are resolved to concrete chords. Extensions colour a
progression but too many of them blur its function, so every level shares a
small **budget** sized from the progression length::

    budget = max(1, min(cap, floor(len(progression) * ratio)))

with ``(cap, ratio)`` of ``(2, 0.35)`` for ``sevenths`` and ``extended`` and
``(3, 0.4)`` for ``full``. The budget is spent in priority order:

1. a dominant approaching the tonic (the cadential V),
2. a supertonic leading into a dominant,
3. a subdominant leading into a dominant,
4. any other dominant that is not the final chord.

``extended`` then turns some dominant sevenths into ninths (more often inside
a ii-V-I) and extends tonic and submediant chords while budget remains.
``full`` additionally substitutes secondary dominants (``V7/x``) and may
extend the final chord. Lower levels strip extensions from the final chord
unless it closes a dominant-to-tonic cadence.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple, Union

from .chords import RomanToken
from .config import EngineConfig
from .modes import Mode, get_mode, mode_family

__all__ = [
    "LEVELS",
    "EXTENSION_BUDGETS",
    "ChordExtensionEngine",
    "extension_budget",
    "seventh_suffix",
]

LEVELS: Tuple[str, ...] = ("none", "sevenths", "extended", "full")

EXTENSION_BUDGETS: Dict[str, Tuple[int, float]] = {
    "sevenths": (2, 0.35),
    "extended": (2, 0.35),
    "full": (3, 0.4),
}


def extension_budget(length: int, level: str) -> int:
    """Return how many chords ``level`` may extend in a progression of ``length``."""

    if level not in EXTENSION_BUDGETS:
        return 0
    cap, ratio = EXTENSION_BUDGETS[level]
    return max(1, min(cap, math.floor(length * ratio)))


def _triad_quality(token: RomanToken, mode: Mode) -> str:
    """Return the triad quality underneath ``token`` ignoring extensions."""

    if token.suffix in ("o", "°", "dim", "o7", "°7", "dim7", "ø", "ø7", "m7b5"):
        return "diminished"
    if token.suffix in ("+", "aug"):
        return "augmented"
    if token.suffix in ("sus2", "sus4"):
        return token.suffix
    if not token.accidental and token.numeral in mode.chord_qualities:
        return mode.chord_qualities[token.numeral]
    return "major" if token.is_upper else "minor"


def seventh_suffix(token: RomanToken, mode: Union[str, Mode, None]) -> Optional[str]:
    """Return the suffix that adds a diatonic-sounding seventh to ``token``.

    Diminished triads become half-diminished, minor triads minor sevenths and
    major triads major sevenths, except where the seventh above a major triad
    is flat in the mode: the dominant, the subtonic of the minor modes and
    the Mixolydian tonic take a dominant seventh. Augmented and suspended
    chords are left alone (``None``).
    """

    mode = get_mode(mode)
    quality = _triad_quality(token, mode)
    if quality == "diminished":
        return "ø7"
    if quality == "minor":
        return "7"
    if quality != "major":
        return None
    if token.accidental == 0 and (
        token.degree == 4
        or (token.degree == 6 and mode_family(mode) == "minor")
        or (token.degree == 0 and mode.name == "mixolydian")
    ):
        return "7"
    return "maj7"


def _is_dominant(token: Optional[RomanToken]) -> bool:
    return (
        token is not None
        and token.degree == 4
        and token.accidental == 0
        and token.secondary_target is None
    )


def _is_tonic(token: Optional[RomanToken]) -> bool:
    return (
        token is not None
        and token.degree == 0
        and token.accidental == 0
        and token.secondary_target is None
    )


def _parse(text: Union[str, RomanToken]) -> Optional[RomanToken]:
    try:
        return RomanToken.parse(text)
    except ValueError:
        logging.debug("Leaving unparseable chord %r unextended", text)
        return None


class ChordExtensionEngine:
    """Add sevenths, ninths and secondary dominants under a budget.

    Parameters
    ----------
    rng:
        Random source for the probabilistic upgrades.
    config:
        Supplies the ninth, secondary dominant and final-chord probabilities.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.config = config or EngineConfig()

    def apply(
        self,
        seq: Sequence[Union[str, RomanToken]],
        mode: Union[str, Mode, None],
        level: str = "none",
    ) -> List[str]:
        """Return ``seq`` with extensions added according to ``level``.

        ``level`` is one of ``none``, ``sevenths``, ``extended`` or ``full``.
        ``none`` returns an equal new list. Unknown levels log a warning and
        behave like ``none``. Chords that fail to parse are passed through
        untouched.
        """

        level = (level or "none").strip().lower()
        if level not in LEVELS:
            logging.warning("Unknown chord extension level '%s'; using none", level)
            level = "none"
        if level == "none" or not seq:
            return [str(chord) for chord in seq]

        mode = get_mode(mode)
        result = [str(chord) for chord in seq]
        tokens = [_parse(chord) for chord in seq]
        budget = extension_budget(len(seq), level)
        extended: Set[int] = {i for i, t in enumerate(tokens) if t is not None and t.is_extended}
        added = 0

        def commit(index: int, token: RomanToken) -> None:
            tokens[index] = token
            result[index] = str(token)

        for index in self._priority_indices(tokens):
            if added >= budget:
                break
            token = tokens[index]
            suffix = seventh_suffix(token, mode)
            if suffix is None:
                continue
            commit(index, token.with_suffix(suffix))
            extended.add(index)
            added += 1

        if level in ("extended", "full"):
            for index in sorted(extended):
                token = tokens[index]
                if not _is_dominant(token) or token.suffix != "7":
                    continue
                chance = (
                    self.config.two_five_one_ninth_probability
                    if self._in_two_five_one(tokens, index)
                    else self.config.ninth_probability
                )
                if self.rng.random() < chance:
                    commit(index, token.with_suffix("9"))

            for index in self._tonic_and_submediant_indices(tokens, extended):
                if added >= budget:
                    break
                token = tokens[index]
                suffix = seventh_suffix(token, mode)
                if suffix is None:
                    continue
                if token.degree == 0 and suffix in ("maj7", "7"):
                    if self.rng.random() < self.config.tonic_ninth_probability:
                        suffix = "maj9" if suffix == "maj7" else "9"
                commit(index, token.with_suffix(suffix))
                extended.add(index)
                added += 1

        if level == "full":
            for index in range(1, len(tokens) - 1):
                if added >= budget:
                    break
                target = self._tonicizable_target(tokens, index, extended, mode)
                if target is None:
                    continue
                if self.rng.random() < self.config.secondary_dominant_probability:
                    secondary = RomanToken("V", 4, suffix="7", secondary_target=target)
                    commit(index, secondary)
                    extended.add(index)
                    added += 1
                    logging.debug("Inserted secondary dominant %s at %d", secondary, index)

            last = len(tokens) - 1
            final = tokens[last]
            if (
                final is not None
                and last not in extended
                and added < budget
                and self.rng.random() < self.config.final_extension_probability
            ):
                suffix = seventh_suffix(final, mode)
                if suffix is not None:
                    commit(last, final.with_suffix(suffix))
        else:
            self._strip_final(tokens, result)

        return result

    @staticmethod
    def _priority_indices(tokens: Sequence[Optional[RomanToken]]) -> Iterator[int]:
        """Yield non-final, unextended indices in budget priority order."""

        last = len(tokens) - 1
        seen: Set[int] = set()

        def candidates(predicate) -> Iterator[int]:
            for i in range(last):
                token = tokens[i]
                if i in seen or token is None or token.is_extended:
                    continue
                if predicate(i, token):
                    seen.add(i)
                    yield i

        yield from candidates(lambda i, t: _is_dominant(t) and _is_tonic(tokens[i + 1]))
        yield from candidates(lambda i, t: t.degree == 1 and _is_dominant(tokens[i + 1]))
        yield from candidates(lambda i, t: t.degree == 3 and _is_dominant(tokens[i + 1]))
        yield from candidates(lambda i, t: _is_dominant(t))

    @staticmethod
    def _in_two_five_one(tokens: Sequence[Optional[RomanToken]], index: int) -> bool:
        before = tokens[index - 1] if index > 0 else None
        after = tokens[index + 1] if index + 1 < len(tokens) else None
        return before is not None and before.degree == 1 and _is_tonic(after)

    @staticmethod
    def _tonic_and_submediant_indices(
        tokens: Sequence[Optional[RomanToken]], extended: Set[int]
    ) -> Iterator[int]:
        for i, token in enumerate(tokens[:-1]):
            if i in extended or token is None or token.accidental:
                continue
            if token.degree in (0, 5) and token.secondary_target is None:
                yield i

    @staticmethod
    def _tonicizable_target(
        tokens: Sequence[Optional[RomanToken]],
        index: int,
        extended: Set[int],
        mode: Mode,
    ) -> Optional[RomanToken]:
        """Return the chord after ``index`` if a secondary dominant may target it."""

        token = tokens[index]
        target = tokens[index + 1]
        if token is None or target is None or index in extended or _is_dominant(token):
            return None
        if target.secondary_target is not None or _is_tonic(target):
            return None
        if _triad_quality(target, mode) == "diminished":
            return None
        return RomanToken(target.numeral, target.degree, target.accidental)

    @staticmethod
    def _strip_final(tokens: List[Optional[RomanToken]], result: List[str]) -> None:
        """Remove extensions from the final chord unless it closes V -> I."""

        final = tokens[-1]
        if final is None or not final.is_extended:
            return
        before = tokens[-2] if len(tokens) > 1 else None
        if _is_dominant(before) and _is_tonic(final):
            return
        stripped = final.stripped()
        tokens[-1] = stripped
        result[-1] = str(stripped)
