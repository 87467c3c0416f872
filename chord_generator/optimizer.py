"""Greedy voice-leading optimizer.

:class:`VoiceLeadingOptimizer` walks a resolved progression from left to
right. For each chord it builds every inversion under every voicing strategy
(:mod:`chord_generator.voicing`), scores them against the chord already
chosen before it (:mod:`chord_generator.voice_leading`) and decides whether
the best candidate is worth leaving root position for.

The incoming voicing (root position unless the leading-tone pass moved a
voice) is the default. A candidate replaces it when its motion and
spacing score beats that voicing by more than ``inversion_margin``, with
these adjustments:

* the first chord inverts only one time in five even then, and the last
  chord only one time in ten;
* a root position voicing with severe spacing problems is replaced when an
  alternative is clearly cleaner;
* near the cadence a candidate that alone resolves the leading tone into a
  root position tonic is always taken;
* a root position voicing with parallel fifths or octaves in the outer
  voices is replaced whenever a parallel-free candidate scores as well.

The contour tracker used for the top voice is created for each call so the
optimizer holds no state between progressions.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .chords import VoicedChord
from .config import EngineConfig
from .contour import MelodicContourTracker
from .note_utils import midi_to_note, pitch_class, pitch_index
from .voice_leading import (
    cadential_analysis,
    detect_parallel_intervals,
    inversion_bias,
    leading_tone_resolution,
    nearest_octave,
    score_voice_leading,
    spacing_penalty,
)
from .voicing import DEFAULT_STRATEGIES, Candidate, VoicingStrategy, generate_candidates

__all__ = ["ScoredCandidate", "VoiceLeadingOptimizer"]

# Root above the following root, in semitones, for chords that carry its
# leading tone: the dominant and the leading-tone chord.
_LEADING_TONE_RELATIONS = (7, 11)


@dataclass
class ScoredCandidate:
    """A candidate together with the numbers used to pick it.

    ``score`` ranks candidates. ``assessment`` (motion plus spacing) decides
    whether the winner is worth leaving root position for.
    """

    candidate: Candidate
    score: float
    assessment: float = 0.0
    spacing: float = 0.0
    outer_parallel: bool = False
    resolves_into_next: Optional[bool] = None


def _midi_notes(chord: VoicedChord) -> Optional[List[int]]:
    try:
        return chord.midi_notes
    except ValueError:
        return None


class VoiceLeadingOptimizer:
    """Choose inversions and voicings for a resolved progression."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        config: Optional[EngineConfig] = None,
        strategies: Optional[Sequence[VoicingStrategy]] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.config = config or EngineConfig()
        self.strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES

    def optimize(
        self,
        chords: Sequence[VoicedChord],
        key: str = "C",
        use_inversions: bool = True,
    ) -> List[VoicedChord]:
        """Return ``chords`` revoiced for smooth voice leading.

        The leading-tone pre-pass always runs; inversions are only chosen
        when ``use_inversions`` is set.
        """

        result = self.optimize_leading_tones(chords)
        if not use_inversions:
            return result
        return self.apply_inversions(result, key)

    def apply_inversions(self, chords: Sequence[VoicedChord], key: str = "C") -> List[VoicedChord]:
        """Pick a voicing for every chord, left to right."""

        tracker = MelodicContourTracker(self.config)
        length = len(chords)
        result: List[VoicedChord] = []
        previous: Optional[VoicedChord] = None

        for index, chord in enumerate(chords):
            next_chord = chords[index + 1] if index + 1 < length else None
            if index == 0 and self.rng.random() < self.config.root_position_first_probability:
                chosen = chord
            else:
                chosen = self._choose(chord, previous, next_chord, index, length, key, tracker)

            midis = _midi_notes(chosen)
            if midis:
                tonic_midi = None
                if index >= length - 2:
                    tonic_midi = nearest_octave(pitch_index(key), midis[-1])
                tracker.update(midis[-1], length, tonic_midi)
                previous = chosen
            result.append(chosen)
        return result

    def score_candidate(
        self,
        candidate: Candidate,
        chord: VoicedChord,
        previous: Optional[VoicedChord],
        next_chord: Optional[VoicedChord],
        index: int,
        length: int,
        key: str,
        tracker: Optional[MelodicContourTracker] = None,
    ) -> ScoredCandidate:
        """Return the selection score of ``candidate`` voicing ``chord``."""

        cfg = self.config
        spacing = spacing_penalty(candidate.midi_notes, cfg)
        motion = 0.0
        outer = False
        if previous is not None:
            motion = score_voice_leading(
                previous,
                candidate.notes,
                chord,
                next_chord,
                index,
                length,
                tracker=tracker,
                tonic=key,
                config=cfg,
            )
            outer = detect_parallel_intervals(previous.midi_notes, candidate.midi_notes).outer

        score = motion + spacing + inversion_bias(candidate.inversion, index, length, cfg)
        if candidate.strategy == "open":
            score += cfg.open_voicing_bonus
        elif candidate.strategy == "drop2":
            score += cfg.drop2_voicing_bonus

        if next_chord is not None and index >= length - 2:
            authentic, perfect = cadential_analysis(chord.root, next_chord)
            if authentic:
                score += cfg.selection_cadence_reward
                if perfect:
                    score += cfg.selection_perfect_cadence_reward

        resolves = self._resolves_into_next(candidate, chord, next_chord)
        if resolves is True:
            score += cfg.selection_leading_tone_reward
        elif resolves is False:
            score += cfg.selection_leading_tone_penalty

        return ScoredCandidate(
            candidate=candidate,
            score=score,
            assessment=motion + spacing,
            spacing=spacing,
            outer_parallel=outer,
            resolves_into_next=resolves,
        )

    @staticmethod
    def select_candidate(scored: Sequence[ScoredCandidate]) -> Optional[ScoredCandidate]:
        """Return the lowest scoring candidate.

        On equal scores a candidate without outer-voice parallels wins.
        """

        if not scored:
            return None
        return min(scored, key=lambda item: (item.score, item.outer_parallel))

    def optimize_leading_tones(self, chords: Sequence[VoicedChord]) -> List[VoicedChord]:
        """Move an inner leading tone into the top voice before a cadence.

        Applies to the final two chords when the chord holds exactly one
        leading tone of the following root in an inner voice, and then only
        with ``leading_tone_optimization_probability`` so cadences keep some
        variety. Pitch classes are unchanged; only octaves move.
        """

        result = list(chords)
        length = len(result)
        if length < 2:
            return result
        for index in range(max(0, length - 2), length - 1):
            chord, next_chord = result[index], result[index + 1]
            moved = self._leading_tone_on_top(chord, next_chord.root)
            if moved is None:
                continue
            if self.rng.random() < self.config.leading_tone_optimization_probability:
                logging.debug("Moved leading tone of %s to the top voice", next_chord.root)
                result[index] = moved
        return result

    @staticmethod
    def _leading_tone_on_top(chord: VoicedChord, target_root: str) -> Optional[VoicedChord]:
        midis = _midi_notes(chord)
        if not midis or len(midis) < 3:
            return None
        leading_tone = (pitch_index(target_root) - 1) % 12
        positions = [i for i, midi in enumerate(midis) if midi % 12 == leading_tone]
        if len(positions) != 1 or not 0 < positions[0] < len(midis) - 1:
            return None

        position = positions[0]
        bass = midis[0]
        soprano = midis[-1]
        moved = soprano % 12 + (midis[position] // 12) * 12
        while moved <= bass:
            moved += 12
        others = [m for i, m in enumerate(midis[1:-1], start=1) if i != position] + [moved]
        top = leading_tone + (soprano // 12) * 12
        while top <= max(others):
            top += 12
        if top > 127:
            return None

        notes = [midi_to_note(m) for m in [bass] + sorted(others) + [top]]
        return chord.with_notes(notes)

    def _resolves_into_next(
        self,
        candidate: Candidate,
        chord: VoicedChord,
        next_chord: Optional[VoicedChord],
    ) -> Optional[bool]:
        if next_chord is None or not next_chord.notes:
            return None
        leading_tone = (pitch_index(next_chord.root) - 1) % 12
        if not any(pitch_class(note) == leading_tone for note in candidate.notes):
            return None
        return leading_tone_resolution(
            candidate.notes,
            next_chord.notes,
            chord.root,
            next_chord.root,
            relations=_LEADING_TONE_RELATIONS,
        )

    def _choose(
        self,
        chord: VoicedChord,
        previous: Optional[VoicedChord],
        next_chord: Optional[VoicedChord],
        index: int,
        length: int,
        key: str,
        tracker: MelodicContourTracker,
    ) -> VoicedChord:
        cfg = self.config
        candidates = generate_candidates(chord, self.strategies)
        if not candidates or _midi_notes(chord) is None:
            return chord

        # The incoming voicing is the baseline. It is usually the close root
        # position but the leading-tone pass may already have revoiced it.
        current = Candidate(tuple(chord.notes), chord.inversion, "close")
        candidates = [current] + [c for c in candidates if c.notes != current.notes]
        scored = [
            self.score_candidate(c, chord, previous, next_chord, index, length, key, tracker)
            for c in candidates
        ]
        best = self.select_candidate(scored)
        root_scored = scored[0]
        if best is None or best is root_scored:
            return chord

        should_invert = root_scored.assessment - best.assessment > cfg.inversion_margin
        if index == 0:
            should_invert = should_invert and self.rng.random() > cfg.first_chord_inversion_threshold

        if next_chord is not None and index >= length - 2:
            if (
                pitch_index(chord.root) != pitch_index(next_chord.root)
                and next_chord.inversion == 0
                and root_scored.resolves_into_next is False
                and best.resolves_into_next is True
            ):
                should_invert = True

        if index == length - 1:
            should_invert = should_invert and self.rng.random() > cfg.last_chord_inversion_threshold

        if (
            root_scored.spacing > cfg.muddy_spacing_threshold
            and best.spacing < root_scored.spacing * cfg.muddy_improvement_ratio
        ):
            should_invert = True

        if root_scored.outer_parallel and not best.outer_parallel:
            should_invert = True

        if not should_invert:
            return chord
        logging.debug(
            "Chord %d (%s): %s voicing inversion %d replaces root position",
            index,
            chord.symbol,
            best.candidate.strategy,
            best.candidate.inversion,
        )
        return chord.with_notes(list(best.candidate.notes))
