"""Chord Generator library.

This package builds short chord progressions for a key and mode and voices
them so they can be played back or written to MIDI.  A typical workflow is to
create a :class:`GenerationRequest`, pass it to :func:`generate_progression`
and hand the resulting :class:`VoicedChord` list to
:func:`chord_generator.midi_io.write_midi` or any other consumer that
understands ``"C#3"`` style note names.

Underlying Algorithm
--------------------
Progressions are produced in a fixed pipeline::

    mode = get_mode(mode_name)
    romans = ProgressionGenerator.generate(length, mode)   # Markov walk
    romans = CadencePatternLibrary.apply_cadential_patterns(romans, ...)
    romans = ChordExtensionEngine.apply(romans, mode, level)
    chords = [resolve(roman_to_chord_symbol(r, key, mode)) for r in romans]
    chords = VoiceLeadingOptimizer.optimize(chords, key)
    chords = apply_rhythm(chords, rhythm_pattern)

Every probabilistic step draws from a single ``random.Random`` instance so a
seed reproduces the whole result.  Recoverable problems such as an unknown
mode or a malformed chord are logged and replaced with safe defaults rather
than aborting generation.

Features include:
- Seven diatonic modes with per-mode transition tables.
- Mode-aware cadence templates and a weighted cadence suggester.
- Seventh, ninth and secondary-dominant extensions under a fixed budget.
- A greedy voice-leading optimizer with close, open and drop-2 voicings.
- Harmonic rhythm patterns, structural progression templates and theory
  annotations for display.
- A command line interface and MIDI export built on ``mido``.
"""

__version__ = "0.1.0"

import json
import logging
import os
from pathlib import Path

# Default path for storing user preferences. The environment variable lets
# tests and packaged installs redirect the file without touching the home
# directory.
env_path = os.environ.get("CHORD_GENERATOR_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".chord_generator_settings.json"

# ``MIN_OCTAVE`` and ``MAX_OCTAVE`` bound the base octave a progression may be
# voiced in. Chords stack up to two octaves above the base so the upper limit
# keeps every generated note inside the MIDI range.
MIN_OCTAVE = 0
MAX_OCTAVE = 7

# Sharp spellings are canonical. Flats are accepted on input and mapped to the
# same semitone so ``Db`` and ``C#`` resolve identically.
NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

NOTE_TO_SEMITONE = {
    "C": 0,
    "B#": 0,
    "C#": 1,
    "Db": 1,
    "D": 2,
    "D#": 3,
    "Eb": 3,
    "E": 4,
    "Fb": 4,
    "E#": 5,
    "F": 5,
    "F#": 6,
    "Gb": 6,
    "G": 7,
    "G#": 8,
    "Ab": 8,
    "A": 9,
    "A#": 10,
    "Bb": 10,
    "B": 11,
    "Cb": 11,
}


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    # A missing or corrupt file never blocks generation; defaults apply.
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logging.error(f"Could not load settings: {exc}")
            return {}
        if isinstance(data, dict):
            return data
        logging.error("Could not load settings: top level JSON value must be an object")
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except (OSError, TypeError) as exc:
        logging.error(f"Could not save settings: {exc}")


from .note_utils import (  # noqa: E402,F401
    midi_to_frequency,
    midi_to_note,
    midi_to_pitch,
    note_to_midi,
    pitch_to_midi,
)
from .config import EngineConfig  # noqa: E402,F401
from .modes import MODES, Mode, get_mode  # noqa: E402,F401
from .chords import (  # noqa: E402,F401
    CHORD_INTERVALS,
    ChordSymbol,
    InvalidMusicTheoryInput,
    RomanToken,
    VoicedChord,
    get_chord_notes,
    resolve,
    roman_to_chord_symbol,
)
from .progression import ProgressionGenerator  # noqa: E402,F401
from .cadences import CadencePatternLibrary  # noqa: E402,F401
from .extensions import ChordExtensionEngine  # noqa: E402,F401
from .contour import ContourState, MelodicContourTracker  # noqa: E402,F401
from .optimizer import VoiceLeadingOptimizer  # noqa: E402,F401
from .engine import GenerationRequest, generate, generate_progression  # noqa: E402,F401


def main() -> None:
    """Run the command line interface."""

    from .cli import main as cli_main

    cli_main()
