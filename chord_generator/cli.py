"""Command line interface for Chord Generator.

Modification summary
--------------------
* Request defaults are read from the JSON settings file so a user can keep a
  preferred key, mode and extension level between runs. ``--save-settings``
  writes the effective options back.
* Invalid keys, modes and numeric options are rejected up front with
  ``logging.error`` and exit code ``1`` rather than being silently replaced
  as the library API does.
* The output directory is created on demand and ``OSError`` while writing the
  MIDI file is reported instead of surfacing a traceback.

The ``run_cli`` function parses arguments, generates a progression and prints
it (as a table or JSON). When ``--output`` is given the chords are also
written to a MIDI file. :func:`main` configures logging and delegates to
``run_cli``.

Example
-------
Running ``python -m chord_generator --key D --mode dorian --length 8 \
    --extensions full --output dorian.mid`` prints an eight chord D Dorian
progression with jazz extensions and saves it to ``dorian.mid``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence

from . import (
    DEFAULT_SETTINGS_FILE,
    MAX_OCTAVE,
    MIN_OCTAVE,
    load_settings,
    save_settings,
)
from .cadences import CADENCE_TYPES
from .chords import VoicedChord
from .config import load_engine_config
from .engine import GenerationRequest, generate_progression
from .extensions import LEVELS
from .harmonic_rhythm import list_rhythm_patterns
from .modes import MODES
from .note_utils import normalize_pitch
from .patterns import list_harmonic_patterns

__all__ = ["build_parser", "format_progression", "run_cli", "main"]

# Settings keys consumed by the CLI itself rather than by ``GenerationRequest``.
_CLI_SETTINGS = ("engine", "bpm")


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser used by :func:`run_cli`.

    Options default to ``None`` so values from the settings file can fill in
    whatever the user did not pass explicitly.
    """

    parser = argparse.ArgumentParser(
        prog="chord-generator",
        description="Generate a voiced chord progression and optionally save it as MIDI.",
    )
    parser.add_argument("--list-modes", action="store_true", help="List the supported modes and exit")
    parser.add_argument(
        "--list-patterns",
        action="store_true",
        help="List the harmonic and rhythm patterns and exit",
    )
    parser.add_argument("--length", type=int, help="Number of chords (default: 4)")
    parser.add_argument("--key", type=str, help="Tonic pitch class such as C, F# or Bb (default: C)")
    parser.add_argument("--mode", type=str, help="Mode name (default: ionian)")
    parser.add_argument(
        "--parent-key",
        action="store_true",
        default=None,
        help="Treat --key as the parent major scale, so C dorian starts on D",
    )
    parser.add_argument(
        "--no-inversions",
        dest="use_inversions",
        action="store_false",
        default=None,
        help="Keep every chord in root position",
    )
    parser.add_argument(
        "--octave",
        type=int,
        help=f"Octave of the bass register ({MIN_OCTAVE}-{MAX_OCTAVE}, default: 3)",
    )
    parser.add_argument("--extensions", type=str, choices=LEVELS, help="Chord extension level (default: none)")
    parser.add_argument("--cadence", type=str, choices=CADENCE_TYPES, help="Requested cadence type")
    parser.add_argument(
        "--strict-cadence",
        action="store_true",
        default=None,
        help="Always apply --cadence instead of most of the time",
    )
    parser.add_argument("--pattern", type=str, help="Structural harmonic pattern such as two_five_one")
    parser.add_argument("--rhythm", type=str, help="Harmonic rhythm pattern (default: uniform)")
    parser.add_argument("--total-beats", type=float, help="Scale chord durations to this many beats")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--output", type=str, help="Write the progression to this MIDI file")
    parser.add_argument("--bpm", type=int, help="Tempo of the MIDI file (default: 120)")
    parser.add_argument("--json", action="store_true", help="Print the progression as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log debugging information")
    parser.add_argument("--settings-file", type=str, help="Path to the JSON settings file")
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Store the effective options in the settings file",
    )
    return parser


def format_progression(chords: Sequence[VoicedChord]) -> str:
    """Return a plain text table with one chord per line."""

    lines = []
    for chord in chords:
        theory = chord.theory
        labels = []
        if theory is not None:
            labels = [label for label in (theory.function, theory.cadence) if label]
            if theory.borrowed_from:
                labels.append(f"borrowed from {theory.borrowed_from}")
        duration = f"{chord.duration:g}" if chord.duration is not None else "-"
        lines.append(
            f"{chord.roman or '?':<8} {chord.symbol:<8} {duration:>5}  "
            f"{' '.join(chord.notes):<24} {', '.join(labels)}".rstrip()
        )
    return "\n".join(lines)


def _fail(message: str) -> None:
    logging.error(message)
    sys.exit(1)


def _build_request(args: argparse.Namespace, settings: dict) -> GenerationRequest:
    defaults = {k: v for k, v in settings.items() if k not in _CLI_SETTINGS}
    request = GenerationRequest.from_dict(defaults)
    overrides = {
        "length": args.length,
        "key": args.key,
        "mode_name": args.mode,
        "parent_key": args.parent_key,
        "use_inversions": args.use_inversions,
        "root_octave": args.octave,
        "chord_extension_level": args.extensions,
        "cadence_type": args.cadence,
        "strict_cadence": args.strict_cadence,
        "pattern_type": args.pattern,
        "rhythm_pattern": args.rhythm,
        "total_beats": args.total_beats,
        "seed": args.seed,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(request, name, value)
    return request


def _as_number(value, cast, message: str):
    try:
        return cast(value)
    except (TypeError, ValueError):
        _fail(message)


def _validate(request: GenerationRequest, bpm) -> int:
    """Check ``request`` and ``bpm`` in place and return ``bpm`` as an int.

    Settings files may hold numbers as strings, so numeric fields are
    converted before their ranges are checked.
    """

    length_message = "Length must be a positive integer."
    request.length = _as_number(request.length, int, length_message)
    if request.length <= 0:
        _fail(length_message)
    try:
        request.key = normalize_pitch(str(request.key))
    except ValueError:
        _fail(f"Invalid key: {request.key}")
    if str(request.mode_name).lower() not in MODES:
        _fail(f"Unknown mode: {request.mode_name}. Use --list-modes to see the options.")
    request.mode_name = str(request.mode_name).lower()
    octave_message = f"Octave must be between {MIN_OCTAVE} and {MAX_OCTAVE}."
    request.root_octave = _as_number(request.root_octave, int, octave_message)
    if not MIN_OCTAVE <= request.root_octave <= MAX_OCTAVE:
        _fail(octave_message)
    if request.total_beats is not None:
        beats_message = "Total beats must be positive."
        request.total_beats = _as_number(request.total_beats, float, beats_message)
        if request.total_beats <= 0:
            _fail(beats_message)
    bpm_message = "BPM must be a positive integer."
    bpm = _as_number(bpm, int, bpm_message)
    if bpm <= 0:
        _fail(bpm_message)
    return bpm


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse ``argv`` (defaults to ``sys.argv[1:]``) and run one generation.

    Exits with status ``1`` after logging an error when an option is invalid
    or the MIDI file cannot be written.
    """

    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.list_modes:
        for name, mode in MODES.items():
            print(f"{name:<12} {mode.description}")
        return
    if args.list_patterns:
        print("Harmonic patterns:")
        for name, description in list_harmonic_patterns():
            print(f"  {name:<20} {description}")
        print("Rhythm patterns:")
        for name, description in list_rhythm_patterns():
            print(f"  {name:<20} {description}")
        return

    settings_path = Path(args.settings_file).expanduser() if args.settings_file else DEFAULT_SETTINGS_FILE
    settings = load_settings(settings_path)
    config = load_engine_config(settings)
    request = _build_request(args, settings)
    bpm = args.bpm if args.bpm is not None else settings.get("bpm", 120)
    bpm = _validate(request, bpm)

    chords = generate_progression(request, config=config)
    if args.json:
        print(json.dumps([chord.to_dict() for chord in chords], indent=2))
    else:
        print(format_progression(chords))

    if args.output:
        from .midi_io import write_midi

        try:
            write_midi(chords, args.output, bpm)
        except (OSError, ValueError, ImportError) as exc:
            logging.error("Could not write MIDI file: %s", exc)
            sys.exit(1)
        logging.info("Saved %d chords to %s", len(chords), args.output)

    if args.save_settings:
        stored = {k: v for k, v in asdict(request).items() if k != "seed" and not callable(v)}
        stored["bpm"] = bpm
        if "engine" in settings:
            stored["engine"] = settings["engine"]
        save_settings(stored, settings_path)


def main() -> None:
    """Console script entry point."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli()
