"""Scoring rules for moving from one chord voicing to the next.

This module holds the individual heuristics combined by the optimizer. Each
rule takes MIDI numbers or :class:`~chord_generator.chords.VoicedChord`
objects and returns either a classification or a score contribution where
**lower is better**:

* ``detect_parallel_intervals`` finds voice pairs moving in parallel fifths
  or octaves.
* ``second_inversion_context`` classifies a chord with its fifth in the bass
  as cadential, passing, pedal or unprepared.
* ``cadential_analysis`` recognises a dominant-to-tonic approach.
* ``leading_tone_resolution`` checks whether a leading tone rises to the
  tonic in the same voice.
* ``spacing_penalty`` and ``inversion_bias`` score a voicing on its own.
* ``score_voice_leading`` adds up the motion based rules for one candidate.

Voices of chords with different sizes are matched bass to bass and top to
top; the remaining inner voices are matched from the bottom.

Example
-------
>>> detect_parallel_intervals([48, 55, 64], [50, 57, 65]).fifths
[(0, 1)]

Design Notes
------------
- ``numpy`` vectorises the pairwise interval checks. Every chord has at most
  five voices so the arrays are tiny, but the comparison of all voice pairs
  in both chords reads naturally as a matrix operation.
- Only the rules a listener notices are encoded. They nudge the greedy
  search rather than forbid anything outright.
"""

# Modification Summary
# ---------------------
# * Parallel detection works on whole chords instead of a melody/bass pair
#   and reports the offending voice pairs so outer and inner voices can be
#   weighted differently.
# * Added second inversion, cadence, leading tone, spacing and inversion
#   heuristics used by the voice-leading optimizer.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import numpy as np

from .config import EngineConfig
from .note_utils import note_to_midi, pitch_class, pitch_index, split_note

if TYPE_CHECKING:  # pragma: no cover - imported for annotations only
    from .chords import VoicedChord
    from .contour import MelodicContourTracker

__all__ = [
    "ParallelMotion",
    "aligned_voices",
    "detect_parallel_intervals",
    "motion_cost",
    "second_inversion_context",
    "cadential_analysis",
    "leading_tone_resolution",
    "spacing_penalty",
    "inversion_bias",
    "nearest_octave",
    "score_voice_leading",
]


@dataclass
class ParallelMotion:
    """Voice pairs moving in parallel perfect intervals.

    Pairs are ``(lower, upper)`` indices into the aligned voices.
    """

    voices: int = 0
    fifths: List[Tuple[int, int]] = field(default_factory=list)
    octaves: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def detected(self) -> bool:
        return bool(self.fifths or self.octaves)

    @property
    def outer(self) -> bool:
        """``True`` if the bass and top voice are one of the pairs."""

        outer_pair = (0, self.voices - 1)
        return outer_pair in self.fifths or outer_pair in self.octaves


def aligned_voices(prev: Sequence[int], curr: Sequence[int]) -> Tuple[np.ndarray, np.ndarray]:
    """Return equally sized voice arrays matching bass and top voices."""

    count = min(len(prev), len(curr))
    if count == 0:
        return np.zeros(0, dtype=np.int16), np.zeros(0, dtype=np.int16)

    def pick(notes: Sequence[int]) -> List[int]:
        if count == 1:
            return [notes[0]]
        return list(notes[: count - 1]) + [notes[-1]]

    return np.asarray(pick(prev), dtype=np.int16), np.asarray(pick(curr), dtype=np.int16)


def detect_parallel_intervals(prev: Sequence[int], curr: Sequence[int]) -> ParallelMotion:
    """Return the voice pairs of ``prev`` -> ``curr`` in parallel fifths/octaves.

    A pair counts when it forms a perfect fifth (or octave/unison, modulo 12)
    in both chords and both voices move in the same direction.
    """

    a, b = aligned_voices(prev, curr)
    result = ParallelMotion(voices=len(a))
    if len(a) < 2:
        return result

    lower, upper = np.triu_indices(len(a), k=1)
    before = np.abs(a[upper] - a[lower]) % 12
    after = np.abs(b[upper] - b[lower]) % 12
    motion = np.sign(b - a)
    same_direction = (motion[lower] == motion[upper]) & (motion[lower] != 0)

    fifths = same_direction & (before == 7) & (after == 7)
    octaves = same_direction & (before == 0) & (after == 0)
    result.fifths = [(int(i), int(j)) for i, j in zip(lower[fifths], upper[fifths])]
    result.octaves = [(int(i), int(j)) for i, j in zip(lower[octaves], upper[octaves])]
    return result


def motion_cost(prev: Sequence[int], curr: Sequence[int], config: Optional[EngineConfig] = None) -> float:
    """Return the weighted bass and inner-voice movement of ``prev`` -> ``curr``.

    The melody is excluded; :func:`score_voice_leading` scores it together
    with the contour.
    """

    cfg = config or EngineConfig()
    a, b = aligned_voices(prev, curr)
    if len(a) == 0:
        return 0.0
    distances = np.abs(b.astype(np.int32) - a.astype(np.int32))
    total = float(distances[0]) * cfg.bass_weight
    inner = distances[1:-1]
    if inner.size:
        total += float(inner.sum()) * cfg.inner_weight
        leaps = inner[inner > cfg.inner_leap_threshold] - cfg.inner_leap_threshold
        total += float(leaps.sum()) * cfg.inner_leap_weight
    return total


def second_inversion_context(
    root: str,
    bass: str,
    note_count: int,
    prev_chord: Optional["VoicedChord"] = None,
    next_chord: Optional["VoicedChord"] = None,
) -> Optional[str]:
    """Classify a chord whose fifth is in the bass.

    Returns ``None`` when the chord is not a second inversion triad, otherwise
    one of ``"cadential"`` (the next chord sits a fifth above the root),
    ``"passing"`` (the same harmony surrounds it), ``"pedal"`` (the bass is
    held from the previous chord) or ``"unprepared"``.
    """

    if note_count < 3:
        return None
    root_pc = pitch_index(root)
    bass_pc = pitch_index(bass)
    if (bass_pc - root_pc) % 12 != 7:
        return None
    if next_chord is not None and pitch_index(next_chord.root) == (root_pc + 7) % 12:
        return "cadential"
    if (
        prev_chord is not None
        and next_chord is not None
        and pitch_index(prev_chord.root) == pitch_index(next_chord.root)
        and prev_chord.quality == next_chord.quality
    ):
        return "passing"
    if prev_chord is not None and pitch_index(prev_chord.bass_pitch) == bass_pc:
        return "pedal"
    return "unprepared"


def cadential_analysis(current_root: str, next_chord: Optional["VoicedChord"]) -> Tuple[bool, bool]:
    """Return ``(authentic, perfect)`` for ``current_root`` moving to ``next_chord``.

    The move is authentic when the current root lies a perfect fifth above
    the next root and the next chord is in root position. It is perfect when
    the next chord also has its root in the top voice.
    """

    if next_chord is None or not next_chord.notes:
        return False, False
    current_pc = pitch_index(current_root)
    next_pc = pitch_index(next_chord.root)
    if (current_pc - next_pc) % 12 != 7:
        return False, False
    if pitch_index(next_chord.bass_pitch) != next_pc:
        return False, False
    return True, pitch_class(next_chord.notes[-1]) == next_pc


def _aligned_index(index: int, size_from: int, size_to: int) -> int:
    if index == size_from - 1:
        return size_to - 1
    return min(index, size_to - 1)


def leading_tone_resolution(
    prev_notes: Sequence[str],
    curr_notes: Sequence[str],
    prev_root: str,
    curr_root: str,
    *,
    relations: Tuple[int, ...] = (7,),
) -> Optional[bool]:
    """Return whether the leading tone of ``curr_root`` resolves upward.

    Only applies when ``prev_root`` lies ``relations`` semitones above
    ``curr_root`` (a perfect fifth by default) and ``prev_notes`` contains
    the note a semitone below ``curr_root``. Returns ``None`` when the rule
    does not apply, ``True`` if the voice holding the leading tone moves to
    the new root and ``False`` otherwise.
    """

    if not prev_notes or not curr_notes:
        return None
    curr_pc = pitch_index(curr_root)
    if (pitch_index(prev_root) - curr_pc) % 12 not in relations:
        return None
    leading_tone = (curr_pc - 1) % 12
    for index, note in enumerate(prev_notes):
        if pitch_class(note) == leading_tone:
            target = curr_notes[_aligned_index(index, len(prev_notes), len(curr_notes))]
            return pitch_class(target) == curr_pc
    return None


def spacing_penalty(midis: Sequence[int], config: Optional[EngineConfig] = None) -> float:
    """Return a penalty for muddy or overly wide spacing.

    Adjacent voices closer than ``close_interval`` cost more the lower they
    sit. Gaps wider than an octave cost a little, very wide gaps more. A
    voicing squeezed into less than an octave low in the register and three
    or more notes below ``low_register_midi`` are penalised heavily.
    """

    cfg = config or EngineConfig()
    if len(midis) < 2:
        return 0.0
    notes = np.sort(np.asarray(midis, dtype=np.float64))
    gaps = np.diff(notes)
    low = cfg.low_register_midi
    penalty = 0.0

    close = gaps < cfg.close_interval
    if close.any():
        register = np.maximum(0.0, (low - notes[:-1][close]) / 12.0)
        penalty += float(((cfg.close_interval - gaps[close]) * (register * 2 + 1)).sum())

    wide = (gaps > cfg.wide_interval) & (gaps < cfg.very_wide_interval)
    penalty += float((gaps[wide] - cfg.wide_interval).sum()) * cfg.wide_interval_weight
    very_wide = gaps >= cfg.very_wide_interval
    penalty += float((gaps[very_wide] - cfg.wide_interval).sum()) * cfg.very_wide_interval_weight

    span = notes[-1] - notes[0]
    if span < cfg.compressed_range and notes[0] < low:
        penalty += (cfg.compressed_range - span) * cfg.compressed_range_weight

    low_count = int((notes < low).sum())
    if low_count >= cfg.low_cluster_size:
        penalty += low_count * cfg.low_cluster_weight
    return penalty


def inversion_bias(inversion: int, index: int, length: int, config: Optional[EngineConfig] = None) -> float:
    """Return the positional preference for ``inversion`` at ``index``.

    Root position is favoured at both ends of the progression and a first
    inversion is slightly favoured on the penultimate chord.
    """

    cfg = config or EngineConfig()
    bias = cfg.inversion_bias.get(inversion, 0.0)
    if index == 0:
        bias += inversion * cfg.first_chord_inversion_weight
    if index == length - 1:
        bias += inversion * cfg.last_chord_inversion_weight
    if index == length - 2 and inversion == 1:
        bias += cfg.penultimate_first_inversion_bonus
    return bias


def nearest_octave(pc: int, reference: int) -> int:
    """Return the MIDI number of pitch class ``pc`` closest to ``reference``."""

    base = reference - (reference - pc) % 12
    return base if reference - base <= base + 12 - reference else base + 12


def score_voice_leading(
    previous: "VoicedChord",
    notes: Sequence[str],
    current: "VoicedChord",
    next_chord: Optional["VoicedChord"],
    index: int,
    length: int,
    *,
    tracker: Optional["MelodicContourTracker"] = None,
    tonic: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> float:
    """Return the motion based score of voicing ``current`` as ``notes``.

    Parameters
    ----------
    previous:
        The chord already chosen before this one.
    notes:
        Candidate voicing for ``current``, bass first.
    current:
        The chord being voiced; supplies root and quality.
    next_chord:
        The following chord as resolved, or ``None`` at the end.
    index, length:
        Position of ``current`` and size of the progression.
    tracker:
        Contour tracker scoring the top voice. It is only evaluated, never
        updated.
    tonic:
        Key tonic. Over the final two chords the top voice is judged against
        the tonic nearest to it.
    config:
        Weights; defaults to :class:`EngineConfig`.

    Returns
    -------
    float
        Sum of the bass, inner and melody motion, parallel interval, second
        inversion, cadence and leading tone terms. Lower is better.
    """

    cfg = config or EngineConfig()
    prev_midis = previous.midi_notes
    curr_midis = [note_to_midi(note) for note in notes]
    if not prev_midis or not curr_midis:
        return float("inf")

    total = motion_cost(prev_midis, curr_midis, cfg)

    parallels = detect_parallel_intervals(prev_midis, curr_midis)
    if parallels.outer:
        total += cfg.outer_parallel_penalty
    elif parallels.detected:
        total += len(parallels.fifths) * cfg.inner_fifth_penalty
        total += len(parallels.octaves) * cfg.inner_octave_penalty

    bass_pitch = split_note(notes[0])[0]
    context = second_inversion_context(current.root, bass_pitch, len(notes), previous, next_chord)
    if context == "cadential":
        total += cfg.cadential_six_four_reward
    elif context in ("passing", "pedal"):
        total += cfg.passing_six_four_reward
    elif context == "unprepared":
        total += cfg.unprepared_six_four_penalty

    if next_chord is not None and length - 2 <= index < length - 1:
        authentic, perfect = cadential_analysis(current.root, next_chord)
        if authentic:
            total += cfg.authentic_cadence_reward
            if perfect:
                total += cfg.perfect_cadence_reward

    if len(notes) >= 3:
        resolution = leading_tone_resolution(previous.notes, notes, previous.root, current.root)
        if resolution is True:
            total += cfg.leading_tone_voice_reward
        elif resolution is False:
            total += cfg.leading_tone_voice_penalty

    if len(curr_midis) > 1 and len(prev_midis) > 1:
        top = curr_midis[-1]
        total += abs(top - prev_midis[-1]) * cfg.melody_weight
        if tracker is not None:
            tonic_midi = None
            if tonic is not None and index >= length - 2:
                tonic_midi = nearest_octave(pitch_index(tonic), top)
            total += tracker.evaluate(top, length, tonic_midi)

    return total
