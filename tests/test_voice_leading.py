"""Tests for the individual voice-leading rules."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator import voice_leading as vl  # noqa: E402
from chord_generator.chords import VoicedChord  # noqa: E402
from chord_generator.config import EngineConfig  # noqa: E402


def test_detects_inner_parallel_fifths():
    """Bass and middle voice moving up a step in fifths are reported."""
    motion = vl.detect_parallel_intervals([48, 55, 64], [50, 57, 65])
    assert motion.fifths == [(0, 1)]
    assert motion.octaves == []
    assert motion.detected
    assert not motion.outer


def test_detects_outer_parallel_octaves():
    """Outer voices moving in octaves are flagged as outer."""
    motion = vl.detect_parallel_intervals([48, 60], [50, 62])
    assert motion.octaves == [(0, 1)]
    assert motion.outer


def test_static_and_contrary_motion_are_not_parallel():
    """Held voices and contrary motion are never parallels."""
    assert not vl.detect_parallel_intervals([48, 55], [48, 55]).detected
    assert not vl.detect_parallel_intervals([48, 55], [43, 62]).detected


def test_aligned_voices_match_bass_and_top():
    """Chords of different size are matched bass to bass and top to top."""
    prev, curr = vl.aligned_voices([48, 52, 55, 58], [50, 53, 57])
    assert prev.tolist() == [48, 52, 58]
    assert curr.tolist() == [50, 53, 57]


def test_motion_cost():
    """Bass motion weighs double and large inner leaps cost extra."""
    assert vl.motion_cost([48, 52, 55], [48, 52, 55]) == 0.0
    assert vl.motion_cost([48, 52, 55], [50, 52, 55]) == pytest.approx(4.0)
    assert vl.motion_cost([48, 52, 60], [48, 60, 60]) == pytest.approx(10.9)


def test_second_inversion_contexts():
    """Six-four chords are classified by what surrounds them."""
    g_major = VoicedChord("G", "major", "G2", ["G2", "B2", "D3"])
    assert vl.second_inversion_context("C", "C", 3) is None
    assert vl.second_inversion_context("C", "G", 3, None, g_major) == "cadential"
    f_major = VoicedChord("F", "major", "F3", ["F3", "A3", "C4"])
    assert vl.second_inversion_context("C", "G", 3, f_major, f_major) == "passing"
    assert vl.second_inversion_context("C", "G", 3, g_major, None) == "pedal"
    assert vl.second_inversion_context("C", "G", 3) == "unprepared"
    assert vl.second_inversion_context("C", "G", 2) is None


def test_cadential_analysis():
    """Dominant to root position tonic is authentic, perfect with root on top."""
    tonic_root_top = VoicedChord("C", "major", "C3", ["C3", "E3", "G3", "C4"])
    tonic_third_top = VoicedChord("C", "major", "C3", ["C3", "G3", "E4"])
    tonic_inverted = VoicedChord("C", "major", "E3", ["E3", "G3", "C4"])
    assert vl.cadential_analysis("G", tonic_root_top) == (True, True)
    assert vl.cadential_analysis("G", tonic_third_top) == (True, False)
    assert vl.cadential_analysis("G", tonic_inverted) == (False, False)
    assert vl.cadential_analysis("F", tonic_root_top) == (False, False)
    assert vl.cadential_analysis("G", None) == (False, False)


def test_leading_tone_resolution():
    """The voice holding the leading tone must move to the tonic."""
    assert vl.leading_tone_resolution(["G3", "D4", "B4"], ["C3", "E4", "C5"], "G", "C") is True
    assert vl.leading_tone_resolution(["G3", "B3", "D4"], ["C3", "E3", "C4"], "G", "C") is False
    assert vl.leading_tone_resolution(["F3", "A3", "C4"], ["C3", "E3", "G3"], "F", "C") is None
    assert vl.leading_tone_resolution(
        ["B2", "D3", "F3"], ["C3", "E3", "G3"], "B", "C", relations=(7, 11)
    ) is True


def test_spacing_penalty_prefers_clear_voicings():
    """Low clusters cost more than an open mid-register triad."""
    assert vl.spacing_penalty([60]) == 0.0
    assert vl.spacing_penalty([36, 38, 40]) > vl.spacing_penalty([48, 55, 64])
    assert vl.spacing_penalty([48, 55, 64]) == pytest.approx(0.0)


def test_inversion_bias():
    """Inversions are discouraged at the ends and first inversion helps late."""
    cfg = EngineConfig()
    assert vl.inversion_bias(0, 1, 4, cfg) == 0.0
    assert vl.inversion_bias(1, 2, 4, cfg) == pytest.approx(-0.5)
    assert vl.inversion_bias(1, 0, 4, cfg) == pytest.approx(0.3)
    assert vl.inversion_bias(2, 3, 4, cfg) == pytest.approx(1.7)


@pytest.mark.parametrize("pc, reference, expected", [(0, 70, 72), (0, 65, 60), (7, 60, 55), (4, 64, 64)])
def test_nearest_octave(pc, reference, expected):
    """Pitch classes are placed in the octave closest to the reference."""
    assert vl.nearest_octave(pc, reference) == expected


def test_outer_parallels_raise_the_score():
    """A voicing with outer parallel fifths scores worse than the same motion without."""
    previous = VoicedChord("C", "major", "C3", ["C3", "E3", "G3"])
    current = VoicedChord("D", "minor", "D3", ["D3", "F3", "A3"])
    cfg = EngineConfig(outer_parallel_penalty=100.0)
    parallel = vl.score_voice_leading(previous, ["D3", "F3", "A3"], current, None, 1, 4, config=cfg)
    plain = vl.score_voice_leading(
        previous, ["D3", "F3", "A3"], current, None, 1, 4, config=EngineConfig(outer_parallel_penalty=0.0)
    )
    assert parallel - plain == pytest.approx(100.0)
