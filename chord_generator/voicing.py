"""Voicing strategies used to build inversion candidates.

For every chord the optimizer rotates the chord tones so that each one takes
a turn in the bass and then asks each :class:`VoicingStrategy` to place the
rotation in concrete octaves. Three strategies ship with the package:

``CloseVoicing``
    Every voice sits as close as possible above the one below it.
``OpenVoicing``
    The close voicing with the third, the seventh and any extension lifted an
    octave while the bass and fifth stay put.
``Drop2Voicing``
    The close voicing with its second-highest voice dropped an octave. Only
    offered for chords of four or more notes.

Strategies work on MIDI numbers and only move notes by octaves, so every
candidate keeps the chord's pitch classes. New strategies can be passed to
:class:`~chord_generator.optimizer.VoiceLeadingOptimizer` without touching
the scoring code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .chords import CHORD_INTERVALS, VoicedChord, get_chord_notes
from .note_utils import midi_to_note, pitch_index, pitch_to_midi, split_note

__all__ = [
    "Candidate",
    "VoicingStrategy",
    "CloseVoicing",
    "OpenVoicing",
    "Drop2Voicing",
    "DEFAULT_STRATEGIES",
    "rotations",
    "generate_candidates",
]


@dataclass(frozen=True)
class Candidate:
    """One way of voicing a chord.

    Attributes
    ----------
    notes:
        Note names from the bass upward.
    inversion:
        Index of the bass note within the root position chord tones.
    strategy:
        Name of the :class:`VoicingStrategy` that produced the voicing.
    """

    notes: Tuple[str, ...]
    inversion: int
    strategy: str

    @property
    def midi_notes(self) -> List[int]:
        return [pitch_to_midi(*split_note(note)) for note in self.notes]

    @property
    def top(self) -> int:
        return pitch_to_midi(*split_note(self.notes[-1]))


class VoicingStrategy:
    """Base class for strategies turning a pitch order into MIDI numbers."""

    name = "base"
    min_notes = 1

    def applies_to(self, order: Sequence[str]) -> bool:
        return len(order) >= self.min_notes

    def voice(self, order: Sequence[str], octave: int) -> List[int]:
        """Return MIDI numbers for ``order`` with ``order[0]`` in ``octave``."""

        raise NotImplementedError


def _stack(order: Sequence[str], octave: int) -> List[int]:
    """Place ``order`` strictly ascending with the bass in ``octave``."""

    midis = [pitch_to_midi(order[0], octave)]
    for pitch in order[1:]:
        step = (pitch_index(pitch) - midis[-1]) % 12 or 12
        midis.append(midis[-1] + step)
    return midis


class CloseVoicing(VoicingStrategy):
    name = "close"

    def voice(self, order: Sequence[str], octave: int) -> List[int]:
        return _stack(order, octave)


class OpenVoicing(VoicingStrategy):
    """Lift the third, seventh and extensions an octave."""

    name = "open"
    min_notes = 3

    def voice(self, order: Sequence[str], octave: int) -> List[int]:
        close = _stack(order, octave)
        upper = [
            midi + 12 if position == 1 or position >= 3 else midi
            for position, midi in enumerate(close[1:], start=1)
        ]
        return [close[0]] + sorted(upper)


class Drop2Voicing(VoicingStrategy):
    """Drop the second-highest voice of the close voicing an octave."""

    name = "drop2"
    min_notes = 4

    def voice(self, order: Sequence[str], octave: int) -> List[int]:
        close = _stack(order, octave)
        close[-2] -= 12
        return sorted(close)


DEFAULT_STRATEGIES: Tuple[VoicingStrategy, ...] = (
    CloseVoicing(),
    OpenVoicing(),
    Drop2Voicing(),
)


def rotations(pitches: Sequence[str]) -> List[List[str]]:
    """Return every rotation of ``pitches`` starting with the original order."""

    return [list(pitches[i:]) + list(pitches[:i]) for i in range(len(pitches))]


def _inversion_of(bass_pitch: str, pitches: Sequence[str]) -> int:
    return list(pitches).index(bass_pitch) if bass_pitch in pitches else 0


def generate_candidates(
    chord: VoicedChord,
    strategies: Optional[Sequence[VoicingStrategy]] = None,
) -> List[Candidate]:
    """Return every inversion of ``chord`` under every applicable strategy.

    The bass of each candidate is placed in the octave of ``chord``'s current
    bass. Candidates reaching outside the MIDI range are skipped and duplicate
    voicings are reported once. Chords with an unknown quality yield no
    candidates.
    """

    if chord.quality not in CHORD_INTERVALS or not chord.notes:
        return []
    strategies = DEFAULT_STRATEGIES if strategies is None else strategies
    pitches = get_chord_notes(chord.root, chord.quality)
    octave = split_note(chord.notes[0])[1]

    candidates: List[Candidate] = []
    seen = set()
    for order in rotations(pitches):
        for strategy in strategies:
            if not strategy.applies_to(order):
                continue
            midis = strategy.voice(order, octave)
            if min(midis) < 0 or max(midis) > 127:
                continue
            key = tuple(midis)
            if key in seen:
                continue
            seen.add(key)
            notes = tuple(midi_to_note(m) for m in midis)
            inversion = _inversion_of(split_note(notes[0])[0], pitches)
            candidates.append(Candidate(notes, inversion, strategy.name))
    return candidates
