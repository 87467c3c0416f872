"""Contour tracking for the top voice of a progression.

The voice-leading optimizer treats the highest note of each voicing as a
melody and asks :class:`MelodicContourTracker` how well a candidate note
continues the line so far. The tracker scores

* leaps larger than a fifth, and whether a leap is followed by a step in the
  other direction,
* a leading tone that fails to rise to the tonic,
* long runs in one direction,
* the choice of note over the last two chords of the phrase, and
* a melody that does not move at all.

Lower scores are better. A tracker belongs to one generation call: create a
new one (or call :meth:`MelodicContourTracker.reset`) for every progression.
:meth:`~MelodicContourTracker.evaluate` scores a candidate without touching
the state so it can be called once per candidate; only
:meth:`~MelodicContourTracker.update` commits the chosen note.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .config import EngineConfig

__all__ = ["ContourState", "MelodicContourTracker"]


@dataclass
class ContourState:
    """Snapshot of the melody seen so far.

    Attributes
    ----------
    direction:
        ``-1`` descending, ``0`` not yet moving, ``1`` ascending.
    direction_steps:
        Consecutive moves in ``direction``.
    last_melody_note:
        MIDI number of the previous melody note or ``None`` before the first.
    phrase_position:
        Number of moves made since the first note.
    leap_occurred:
        ``True`` when the previous move was a leap awaiting resolution.
    leap_size:
        Size in semitones of the most recent leap.
    """

    direction: int = 0
    direction_steps: int = 0
    last_melody_note: Optional[int] = None
    phrase_position: int = 0
    leap_occurred: bool = False
    leap_size: int = 0


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class MelodicContourTracker:
    """Score melody notes against the contour built up so far."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        self.state = ContourState()

    def reset(self) -> None:
        """Forget the melody and start a new phrase."""

        self.state = ContourState()

    def evaluate(self, new_midi: int, length: int, tonic_midi: Optional[int] = None) -> float:
        """Return the score change for ``new_midi`` without committing it."""

        delta, _ = self._score(self.state, new_midi, length, tonic_midi)
        return delta

    def update(self, new_midi: int, length: int, tonic_midi: Optional[int] = None) -> float:
        """Score ``new_midi`` and make it the latest melody note."""

        delta, self.state = self._score(self.state, new_midi, length, tonic_midi)
        return delta

    def _score(
        self,
        state: ContourState,
        new_midi: int,
        length: int,
        tonic_midi: Optional[int],
    ) -> Tuple[float, ContourState]:
        cfg = self.config
        state = replace(state)
        previous = state.last_melody_note
        if previous is None:
            state.last_melody_note = new_midi
            return 0.0, state

        distance = abs(new_midi - previous)
        direction = _sign(new_midi - previous)
        state.phrase_position += 1
        total = 0.0

        if distance > cfg.leap_threshold:
            state.leap_occurred = True
            state.leap_size = distance
            if distance > cfg.large_leap_threshold:
                total += (distance - cfg.large_leap_threshold) * cfg.large_leap_weight
        elif state.leap_occurred:
            if direction != state.direction:
                total += cfg.leap_resolution_reward
            else:
                total += cfg.unresolved_leap_penalty
            state.leap_occurred = False

        if tonic_midi is not None and tonic_midi - previous == 1:
            if new_midi == tonic_midi:
                total += cfg.leading_tone_resolution_reward
            else:
                total += cfg.leading_tone_failure_penalty

        if direction != 0:
            if direction == state.direction:
                state.direction_steps += 1
                if state.direction_steps > cfg.direction_run_limit:
                    total += state.direction_steps - cfg.direction_run_limit
            else:
                if state.direction_steps > 1:
                    total += cfg.direction_change_reward
                state.direction = direction
                state.direction_steps = 1

        if state.phrase_position >= length - 2:
            if tonic_midi is None:
                total += cfg.cadential_no_tonic_penalty
            else:
                to_tonic = abs(new_midi - tonic_midi)
                if to_tonic == 0:
                    total += cfg.cadential_tonic_reward
                elif to_tonic == 2:
                    total += cfg.cadential_step_reward
                else:
                    total += cfg.cadential_other_penalty

        if distance == 0:
            total += cfg.static_melody_penalty

        state.last_melody_note = new_midi
        return total, state
