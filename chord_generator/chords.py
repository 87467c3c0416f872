"""Chord value types and Roman numeral resolution.

Three small value objects flow through the engine:

``RomanToken``
    A parsed Roman numeral such as ``V7``, ``bVII``, ``iiø7`` or ``V7/vi``.
    Tokens are parsed once with :meth:`RomanToken.parse`; the text form is
    restored with ``str(token)``.
``ChordSymbol``
    A concrete chord: root pitch class, quality and optional slash bass.
``VoicedChord``
    The engine's output: a chord together with the octave-placed notes of its
    chosen voicing, bass first.

Resolution mirrors the way the scale works: the degree picks an interval
from the mode, the interval is added to the key and the quality comes from
the token's suffix, the mode's triad table or, failing both, the case of the
numeral.

Example
-------
>>> from chord_generator.chords import roman_to_chord_symbol, resolve
>>> symbol = roman_to_chord_symbol("V7", "C", "ionian")
>>> str(symbol)
'G7'
>>> resolve(symbol, 3)
['G3', 'B3', 'D4', 'F4']
"""

# Modification Summary
# ---------------------
# * Roman numeral parsing adopts the ``accidental / numeral / suffix`` split
#   used by the chord progression parser and returns a typed token instead of
#   a tuple so consumers no longer re-run the regular expression.
# * Secondary dominants (``V7/x``) resolve recursively through their target.
# * ``get_chord_notes`` raises ``InvalidMusicTheoryInput`` so the engine can
#   tell theory errors apart from programming errors.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Union

from . import NOTES
from .modes import Mode, get_mode
from .note_utils import midi_to_note, normalize_pitch, pitch_index, pitch_to_midi, split_note

__all__ = [
    "CHORD_INTERVALS",
    "QUALITY_SYMBOLS",
    "InvalidMusicTheoryInput",
    "RomanToken",
    "ChordSymbol",
    "ChordTheory",
    "VoicedChord",
    "get_chord_notes",
    "base_triad",
    "roman_to_chord_symbol",
    "resolve",
]


class InvalidMusicTheoryInput(ValueError):
    """Raised when a root or chord quality has no interval definition."""


# Semitones above the root. Ninths are written as 14 so stacked voicings keep
# the ninth above the seventh.
CHORD_INTERVALS: Dict[str, List[int]] = {
    "major": [0, 4, 7],
    "minor": [0, 3, 7],
    "diminished": [0, 3, 6],
    "augmented": [0, 4, 8],
    "sus2": [0, 2, 7],
    "sus4": [0, 5, 7],
    "dominant7": [0, 4, 7, 10],
    "major7": [0, 4, 7, 11],
    "minor7": [0, 3, 7, 10],
    "minor_major7": [0, 3, 7, 11],
    "diminished7": [0, 3, 6, 9],
    "half_diminished7": [0, 3, 6, 10],
    "dominant9": [0, 4, 7, 10, 14],
    "major9": [0, 4, 7, 11, 14],
    "minor9": [0, 3, 7, 10, 14],
    "add9": [0, 4, 7, 14],
}

QUALITY_SYMBOLS: Dict[str, str] = {
    "major": "",
    "minor": "m",
    "diminished": "dim",
    "augmented": "aug",
    "sus2": "sus2",
    "sus4": "sus4",
    "dominant7": "7",
    "major7": "maj7",
    "minor7": "m7",
    "minor_major7": "mM7",
    "diminished7": "dim7",
    "half_diminished7": "m7b5",
    "dominant9": "9",
    "major9": "maj9",
    "minor9": "m9",
    "add9": "add9",
}

_SYMBOL_QUALITIES: Dict[str, str] = {symbol: quality for quality, symbol in QUALITY_SYMBOLS.items()}
_SYMBOL_QUALITIES.update({"min": "minor", "M7": "major7", "ø7": "half_diminished7", "°": "diminished"})

# Triad family of every quality, used for diatonic comparisons.
_BASE_TRIADS: Dict[str, str] = {
    "major": "major",
    "minor": "minor",
    "diminished": "diminished",
    "augmented": "augmented",
    "sus2": "sus2",
    "sus4": "sus4",
    "dominant7": "major",
    "major7": "major",
    "minor7": "minor",
    "minor_major7": "minor",
    "diminished7": "diminished",
    "half_diminished7": "diminished",
    "dominant9": "major",
    "major9": "major",
    "minor9": "minor",
    "add9": "major",
}

_ROMAN_DEGREES: Dict[str, int] = {
    "i": 0,
    "ii": 1,
    "iii": 2,
    "iv": 3,
    "v": 4,
    "vi": 5,
    "vii": 6,
}

_ACCIDENTAL_OFFSETS: Dict[str, int] = {"b": -1, "#": 1}

# Suffixes whose quality does not depend on the case of the numeral.
_FIXED_SUFFIX_QUALITIES: Dict[str, str] = {
    "maj7": "major7",
    "M7": "major7",
    "maj9": "major9",
    "add9": "add9",
    "o": "diminished",
    "°": "diminished",
    "dim": "diminished",
    "o7": "diminished7",
    "°7": "diminished7",
    "dim7": "diminished7",
    "ø": "half_diminished7",
    "ø7": "half_diminished7",
    "m7b5": "half_diminished7",
    "+": "augmented",
    "aug": "augmented",
    "sus2": "sus2",
    "sus4": "sus4",
    "mM7": "minor_major7",
}

# Suffixes that add chord tones beyond the triad. Triad markers such as ``o``
# are absent so stripping an extension keeps a diminished chord
# diminished.
EXTENSION_SUFFIXES = frozenset(
    {"7", "9", "maj7", "M7", "maj9", "add9", "o7", "°7", "dim7", "ø", "ø7", "m7b5", "mM7"}
)

_ROMAN_PATTERN = re.compile(r"^([b#]*)([ivxIVX]+)(.*)$")


def _normalise_roman_text(text: str) -> str:
    """Replace unicode accidentals and trim surrounding whitespace."""

    return text.replace("♭", "b").replace("♯", "#").strip()


@dataclass(frozen=True)
class RomanToken:
    """A Roman numeral chord label parsed into its parts.

    Attributes
    ----------
    numeral:
        The bare numeral, e.g. ``"V"`` or ``"ii"``. Upper case marks a major
        based chord, lower case a minor based one.
    degree:
        Zero-based scale degree (``0`` for ``I``).
    accidental:
        Chromatic offset in semitones from leading ``b``/``#`` characters.
    suffix:
        Quality or extension marker such as ``"7"``, ``"maj7"`` or ``"o"``.
    secondary_target:
        For ``V7/vi`` style tokens, the chord being tonicised.
    """

    numeral: str
    degree: int
    accidental: int = 0
    suffix: str = ""
    secondary_target: Optional["RomanToken"] = None

    @classmethod
    def parse(cls, text: Union[str, "RomanToken"]) -> "RomanToken":
        """Parse ``text`` into a token.

        Raises
        ------
        ValueError
            If ``text`` is not a recognised Roman numeral or carries an
            unknown suffix.
        """

        if isinstance(text, RomanToken):
            return text
        cleaned = _normalise_roman_text(str(text))
        if "/" in cleaned:
            head, target = cleaned.split("/", 1)
            return replace(cls.parse(head), secondary_target=cls.parse(target))

        match = _ROMAN_PATTERN.match(cleaned)
        if not match:
            raise ValueError(f"Invalid Roman numeral: {text}")
        accidentals, numeral, suffix = match.groups()
        if not (numeral.isupper() or numeral.islower()):
            raise ValueError(f"Mixed case Roman numeral: {text}")
        degree = _ROMAN_DEGREES.get(numeral.lower())
        if degree is None:
            raise ValueError(f"Invalid Roman numeral: {text}")
        if suffix and suffix not in _FIXED_SUFFIX_QUALITIES and suffix not in ("7", "9"):
            raise ValueError(f"Unknown chord suffix '{suffix}' in {text}")
        offset = sum(_ACCIDENTAL_OFFSETS[ch] for ch in accidentals)
        return cls(numeral=numeral, degree=degree, accidental=offset, suffix=suffix)

    @property
    def is_upper(self) -> bool:
        return self.numeral.isupper()

    @property
    def base(self) -> str:
        """Return the numeral with accidentals but without suffix."""

        prefix = "b" * -self.accidental if self.accidental < 0 else "#" * self.accidental
        return f"{prefix}{self.numeral}"

    @property
    def is_extended(self) -> bool:
        return self.suffix in EXTENSION_SUFFIXES

    def with_suffix(self, suffix: str) -> "RomanToken":
        return replace(self, suffix=suffix)

    def stripped(self) -> "RomanToken":
        """Return the token without extension tones, keeping triad markers."""

        if self.suffix in ("o7", "°7", "dim7"):
            return replace(self, suffix="o", secondary_target=None)
        if self.suffix in ("ø", "ø7", "m7b5"):
            return replace(self, suffix="o", secondary_target=None)
        if self.is_extended:
            return replace(self, suffix="", secondary_target=None)
        return self

    def quality(self, base_quality: Optional[str] = None) -> str:
        """Return the chord quality implied by the suffix.

        ``base_quality`` is the diatonic triad quality on this degree and is
        used when the suffix does not fully determine the chord, for example
        ``ii7`` over a diminished supertonic becomes half-diminished.
        """

        if base_quality is None:
            base_quality = "major" if self.is_upper else "minor"
        if self.suffix in _FIXED_SUFFIX_QUALITIES:
            return _FIXED_SUFFIX_QUALITIES[self.suffix]
        if self.suffix == "7":
            if self.is_upper:
                return "dominant7"
            return "half_diminished7" if base_quality == "diminished" else "minor7"
        if self.suffix == "9":
            return "dominant9" if self.is_upper else "minor9"
        return base_quality

    def __str__(self) -> str:
        text = f"{self.base}{self.suffix}"
        if self.secondary_target is not None:
            text += f"/{self.secondary_target}"
        return text


@dataclass(frozen=True)
class ChordSymbol:
    """A concrete chord such as ``G7`` or ``C/E``."""

    root: str
    quality: str = "major"
    bass: Optional[str] = None

    _PATTERN = re.compile(r"^([A-G][#b]?)([A-Za-z0-9°ø]*)(?:/([A-G][#b]?))?$")

    @classmethod
    def parse(cls, text: str) -> "ChordSymbol":
        """Parse a chord symbol like ``"F#m7"`` or ``"C/E"``.

        Raises
        ------
        ValueError
            If the text does not look like a chord symbol.
        """

        match = cls._PATTERN.match(text.strip())
        if not match:
            raise ValueError(f"Invalid chord symbol: {text}")
        root, suffix, bass = match.groups()
        quality = _SYMBOL_QUALITIES.get(suffix)
        if quality is None:
            raise ValueError(f"Unknown chord quality '{suffix}' in {text}")
        return cls(
            root=normalize_pitch(root),
            quality=quality,
            bass=normalize_pitch(bass) if bass else None,
        )

    @property
    def intervals(self) -> List[int]:
        try:
            return list(CHORD_INTERVALS[self.quality])
        except KeyError:
            raise InvalidMusicTheoryInput(f"Invalid chord quality: {self.quality}") from None

    def __str__(self) -> str:
        text = f"{self.root}{QUALITY_SYMBOLS.get(self.quality, '')}"
        if self.bass and self.bass != self.root:
            text += f"/{self.bass}"
        return text


@dataclass
class ChordTheory:
    """Display metadata attached to a voiced chord."""

    function: Optional[str] = None
    cadence: Optional[str] = None
    borrowed_from: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "function": self.function,
            "cadence": self.cadence,
            "borrowed_from": self.borrowed_from,
        }


@dataclass
class VoicedChord:
    """A chord realised as concrete notes, bass first."""

    root: str
    quality: str
    bass: str
    notes: List[str]
    duration: Optional[float] = None
    roman: Optional[str] = None
    theory: Optional[ChordTheory] = field(default=None, repr=False)

    @property
    def midi_notes(self) -> List[int]:
        return [pitch_to_midi(*split_note(note)) for note in self.notes]

    @property
    def bass_pitch(self) -> str:
        return split_note(self.bass)[0]

    @property
    def inversion(self) -> int:
        """Index of the bass note within the root position chord tones."""

        intervals = CHORD_INTERVALS.get(self.quality, [0])
        offset = (pitch_index(self.bass_pitch) - pitch_index(self.root)) % 12
        for index, interval in enumerate(intervals):
            if interval % 12 == offset:
                return index
        return 0

    @property
    def symbol(self) -> str:
        return str(ChordSymbol(self.root, self.quality, self.bass_pitch))

    def with_notes(self, notes: List[str]) -> "VoicedChord":
        """Return a copy voiced with ``notes``; the bass follows ``notes[0]``."""

        return replace(self, notes=list(notes), bass=notes[0])

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "root": self.root,
            "quality": self.quality,
            "bass": self.bass,
            "notes": list(self.notes),
            "symbol": self.symbol,
        }
        if self.duration is not None:
            data["duration"] = self.duration
        if self.roman is not None:
            data["roman"] = self.roman
        if self.theory is not None:
            data["theory"] = self.theory.to_dict()
        return data


def get_chord_notes(root: str, quality: str) -> List[str]:
    """Return the pitch classes of ``quality`` built on ``root``.

    Raises
    ------
    InvalidMusicTheoryInput
        If ``root`` is not a pitch class name or ``quality`` is unknown.
    """

    try:
        root_index = pitch_index(root)
    except ValueError:
        raise InvalidMusicTheoryInput(f"Invalid root note: {root}") from None
    intervals = CHORD_INTERVALS.get(quality)
    if intervals is None:
        raise InvalidMusicTheoryInput(f"Invalid chord type: {quality}")
    return [NOTES[(root_index + interval) % 12] for interval in intervals]


def base_triad(quality: str) -> str:
    """Return the triad family (``major``, ``minor`` ...) of ``quality``."""

    return _BASE_TRIADS.get(quality, quality)


def _diatonic_quality(token: RomanToken, mode: Mode) -> Optional[str]:
    if token.accidental:
        return None
    return mode.chord_qualities.get(token.numeral)


def roman_to_chord_symbol(
    token: Union[str, RomanToken],
    key: str,
    mode: Union[str, Mode, None],
) -> ChordSymbol:
    """Resolve a Roman numeral to a concrete chord in ``key``.

    The root is ``key + mode.intervals[degree]`` (mod 12) adjusted by any
    accidental. Secondary dominants are built a perfect fifth above the
    resolved root of their target. Tokens that cannot be parsed resolve to a
    major triad on the tonic and log a warning.
    """

    mode = get_mode(mode)
    try:
        key_index = pitch_index(key)
    except ValueError:
        logging.warning("Invalid key '%s'; using C", key)
        key_index = 0

    try:
        parsed = RomanToken.parse(token)
    except ValueError as exc:
        logging.warning("Could not resolve Roman numeral %r (%s); using tonic major", token, exc)
        return ChordSymbol(NOTES[key_index], "major")

    if parsed.secondary_target is not None:
        target = roman_to_chord_symbol(parsed.secondary_target, key, mode)
        root_index = (pitch_index(target.root) + 7) % 12
        head = replace(parsed, secondary_target=None)
        return ChordSymbol(NOTES[root_index], head.quality("major"))

    root_index = (key_index + mode.intervals[parsed.degree] + parsed.accidental) % 12
    quality = parsed.quality(_diatonic_quality(parsed, mode))
    return ChordSymbol(NOTES[root_index], quality)


def resolve(symbol: Union[str, ChordSymbol], octave: int = 3) -> List[str]:
    """Expand ``symbol`` into octave-placed notes starting at ``octave``.

    Notes are stacked upward from the root (or from the slash bass when one
    is given) so the list is always ordered low to high. A string that does
    not parse as a chord symbol degrades to a one-note list holding the
    string itself.

    Raises
    ------
    InvalidMusicTheoryInput
        If the symbol names an unknown root or quality.
    """

    if isinstance(symbol, str):
        try:
            symbol = ChordSymbol.parse(symbol)
        except ValueError:
            logging.warning("Unparseable chord symbol %r; using it as a single note", symbol)
            return [symbol]

    pitches = get_chord_notes(symbol.root, symbol.quality)
    root_midi = pitch_to_midi(symbol.root, octave)
    midis = [root_midi + interval for interval in CHORD_INTERVALS[symbol.quality]]

    if symbol.bass and symbol.bass != symbol.root and symbol.bass in pitches:
        start = pitches.index(symbol.bass)
        order = pitches[start:] + pitches[:start]
        midis = [pitch_to_midi(order[0], octave)]
        for pitch in order[1:]:
            step = (pitch_index(pitch) - midis[-1]) % 12 or 12
            midis.append(midis[-1] + step)

    return [midi_to_note(m) for m in midis]
