"""Command line interface tests.

Every invocation passes ``--settings-file`` pointing into ``tmp_path`` so the
user's real preferences are never read or overwritten.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chord_generator import cli  # noqa: E402  # isort:skip
from chord_generator.chords import ChordTheory, VoicedChord  # noqa: E402  # isort:skip


@pytest.fixture
def settings_file(tmp_path):
    return tmp_path / "settings.json"


def run(settings_file, *args):
    cli.run_cli(["--settings-file", str(settings_file), *args])


def test_list_modes(settings_file, capsys):
    """``--list-modes`` prints every mode with its description."""
    run(settings_file, "--list-modes")
    out = capsys.readouterr().out
    for name in ("ionian", "dorian", "phrygian", "lydian", "mixolydian", "aeolian", "locrian"):
        assert name in out


def test_list_patterns(settings_file, capsys):
    """``--list-patterns`` prints harmonic and rhythm patterns."""
    run(settings_file, "--list-patterns")
    out = capsys.readouterr().out
    assert "Harmonic patterns:" in out
    assert "two_five_one" in out
    assert "Rhythm patterns:" in out
    assert "waltz" in out


def test_json_output(settings_file, capsys):
    """``--json`` prints one object per chord."""
    run(settings_file, "--json", "--seed", "4", "--length", "5", "--key", "Eb", "--mode", "Dorian")
    data = json.loads(capsys.readouterr().out)
    assert len(data) == 5
    assert {"root", "quality", "notes", "roman", "duration", "theory"} <= set(data[0])


def test_table_output(settings_file, capsys):
    """The default output is one line per chord."""
    run(settings_file, "--seed", "1", "--length", "6")
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 6


@pytest.mark.parametrize(
    "args, message",
    [
        (["--key", "H"], "Invalid key: H"),
        (["--mode", "bebop"], "Unknown mode: bebop"),
        (["--octave", "9"], "Octave must be between 0 and 7"),
        (["--length", "0"], "Length must be a positive integer"),
        (["--total-beats", "-4"], "Total beats must be positive"),
        (["--bpm", "0"], "BPM must be a positive integer"),
    ],
)
def test_invalid_options_exit(settings_file, caplog, args, message):
    """Invalid values are logged and exit with status 1."""
    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as excinfo:
            run(settings_file, *args)
    assert excinfo.value.code == 1
    assert message in caplog.text


def test_invalid_extension_level(settings_file):
    """argparse rejects unknown extension levels."""
    with pytest.raises(SystemExit) as excinfo:
        run(settings_file, "--extensions", "lots")
    assert excinfo.value.code == 2


def test_output_writes_midi(settings_file, tmp_path, capsys):
    """``--output`` writes a MIDI file in a new directory."""
    out = tmp_path / "midi" / "prog.mid"
    run(settings_file, "--seed", "2", "--output", str(out), "--bpm", "90")
    assert out.is_file()
    assert out.stat().st_size > 0


def test_output_error_is_reported(settings_file, tmp_path, monkeypatch, caplog):
    """A failing write is logged and exits with status 1."""
    from chord_generator import midi_io

    def _fail(*_args, **_kwargs):
        raise OSError("permission denied")

    monkeypatch.setattr(midi_io, "write_midi", _fail)
    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as excinfo:
            run(settings_file, "--seed", "2", "--output", str(tmp_path / "x.mid"))
    assert excinfo.value.code == 1
    assert "Could not write MIDI file" in caplog.text


def test_settings_provide_defaults(settings_file, capsys):
    """Values in the settings file are used when no option is given."""
    settings_file.write_text(json.dumps({"length": 3, "mode": "aeolian"}), encoding="utf-8")
    run(settings_file, "--json", "--seed", "7")
    assert len(json.loads(capsys.readouterr().out)) == 3


def test_numeric_settings_stored_as_strings(settings_file, capsys):
    """Numbers saved as strings in the settings file are converted."""
    settings_file.write_text(
        json.dumps({"length": "5", "root_octave": "3", "total_beats": "10", "bpm": "90"}),
        encoding="utf-8",
    )
    run(settings_file, "--json", "--seed", "1", "--no-inversions")
    data = json.loads(capsys.readouterr().out)
    assert len(data) == 5
    assert all(chord["bass"].endswith("3") for chord in data)
    assert sum(chord["duration"] for chord in data) == pytest.approx(10)


@pytest.mark.parametrize(
    "settings, message",
    [
        ({"length": "five"}, "Length must be a positive integer"),
        ({"root_octave": "high"}, "Octave must be between 0 and 7"),
        ({"root_octave": None}, "Octave must be between 0 and 7"),
        ({"total_beats": "many"}, "Total beats must be positive"),
        ({"bpm": "fast"}, "BPM must be a positive integer"),
    ],
)
def test_non_numeric_settings_exit(settings_file, caplog, settings, message):
    """A settings value that is not a number is logged and exits with status 1."""
    settings_file.write_text(json.dumps(settings), encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        with pytest.raises(SystemExit) as excinfo:
            run(settings_file, "--seed", "1")
    assert excinfo.value.code == 1
    assert message in caplog.text


def test_options_override_settings(settings_file, capsys):
    """Explicit options win over stored settings."""
    settings_file.write_text(json.dumps({"length": 3}), encoding="utf-8")
    run(settings_file, "--json", "--seed", "7", "--length", "5")
    assert len(json.loads(capsys.readouterr().out)) == 5


def test_save_settings(settings_file, capsys):
    """``--save-settings`` stores the effective options without the seed."""
    settings_file.write_text(json.dumps({"engine": {"bass_weight": 1.5}}), encoding="utf-8")
    run(settings_file, "--save-settings", "--seed", "3", "--key", "G", "--mode", "lydian", "--bpm", "100")
    stored = json.loads(settings_file.read_text(encoding="utf-8"))
    assert stored["key"] == "G"
    assert stored["mode_name"] == "lydian"
    assert stored["bpm"] == 100
    assert stored["engine"] == {"bass_weight": 1.5}
    assert "seed" not in stored


def test_format_progression():
    """The table shows the numeral, notes and labels."""
    chords = [
        VoicedChord("F", "minor", "F3", ["F3", "G#3", "C4"], duration=2.0, roman="iv",
                    theory=ChordTheory("Subdominant", None, "parallel minor")),
        VoicedChord("C", "major", "C3", ["C3", "E3", "G3"], roman="I",
                    theory=ChordTheory("Tonic", "Plagal Cadence")),
    ]
    lines = cli.format_progression(chords).splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("iv")
    assert "borrowed from parallel minor" in lines[0]
    assert "F3 G#3 C4" in lines[0]
    assert "Plagal Cadence" in lines[1]
    assert " - " in lines[1]
