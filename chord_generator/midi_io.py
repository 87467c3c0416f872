"""Write generated progressions to Standard MIDI Files.

Modification summary
--------------------
* ``write_midi`` creates the destination directory automatically so callers
  can pass a path in a new folder without preparing it.
* ``bpm`` and ``velocity`` are validated before any events are built so bad
  values raise ``ValueError`` instead of producing a broken file.
* Imports from ``mido`` are deferred inside ``write_midi`` so the engine can
  be used without the MIDI dependency installed.

Each chord becomes a block of simultaneous ``note_on`` events followed by the
matching ``note_off`` events one chord duration later. Durations are read
from ``VoicedChord.duration`` (in beats); chords without one last
``beats_per_chord`` beats.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence, Union

if TYPE_CHECKING:
    from mido import MidiFile

from .chords import VoicedChord

__all__ = ["TICKS_PER_BEAT", "write_midi"]

TICKS_PER_BEAT = 480


def write_midi(
    chords: Sequence[VoicedChord],
    output_file: Union[str, Path],
    bpm: int = 120,
    *,
    beats_per_chord: float = 2.0,
    velocity: int = 80,
    program: int = 0,
) -> "MidiFile":
    """Write ``chords`` to ``output_file`` and return the ``MidiFile``.

    Parameters
    ----------
    chords:
        Voiced chords in playing order.
    output_file:
        Destination path. Missing parent directories are created.
    bpm:
        Tempo in beats per minute; must be positive.
    beats_per_chord:
        Duration used for chords whose ``duration`` is ``None``.
    velocity:
        Note-on velocity between 1 and 127.
    program:
        General MIDI program number for the chord track.

    Raises
    ------
    ValueError
        For a non-positive tempo or chord duration or an out of range
        velocity or program.
    ImportError
        If ``mido`` is not installed.
    """
    try:
        import mido
        from mido import Message, MetaMessage, MidiFile, MidiTrack
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to create MIDI files; install it with 'pip install mido'"
        ) from exc

    if bpm <= 0:
        raise ValueError("bpm must be a positive integer")
    if beats_per_chord <= 0:
        raise ValueError("beats_per_chord must be positive")
    if not 1 <= velocity <= 127:
        raise ValueError("velocity must be between 1 and 127")
    if not 0 <= program <= 127:
        raise ValueError("program must be between 0 and 127")

    mid = MidiFile(ticks_per_beat=TICKS_PER_BEAT)
    track = MidiTrack()
    mid.tracks.append(track)
    track.append(MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm)))
    track.append(Message("program_change", program=program, time=0))

    # Rests never occur, so every chord starts exactly when the previous ends.
    for chord in chords:
        beats = chord.duration if chord.duration is not None else beats_per_chord
        if beats <= 0:
            raise ValueError(f"Chord {chord.symbol} has a non-positive duration")
        ticks = int(round(beats * TICKS_PER_BEAT))
        midis = chord.midi_notes
        for midi in midis:
            track.append(Message("note_on", note=midi, velocity=velocity, time=0))
        for i, midi in enumerate(midis):
            track.append(Message("note_off", note=midi, velocity=0, time=ticks if i == 0 else 0))

    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    mid.save(str(output_path))
    return mid
