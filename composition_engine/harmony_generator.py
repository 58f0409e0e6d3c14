"""Emotion driven chord progression tables.

Each emotion has a fixed four chord progression per mode, written as
triples of scale degrees (root, third, fifth).  Degrees above the scale
length wrap, so ``(4, 6, 8)`` in a seven note scale is the dominant triad
with the tonic on top.  The lookup is a pure function: the same mode and
emotion always return the same progression.

``parse_progression`` reads a progression typed by the user instead, as
Roman numerals relative to a scale or as chord names.

Example
-------
>>> generate_progression(Mode.MAJOR, Emotion.HAPPY)
((0, 2, 4), (3, 5, 7), (4, 6, 8), (0, 2, 4))
>>> progression = progression_for(MelodyParameters("Pop", "Happy", bars=4))
>>> [str(c) for c in progression.chords]
['C', 'F', 'G', 'C']
>>> [str(c) for c in parse_progression("ii-V-I Am:2", Scale.from_name("C")).chords]
['Dm', 'G', 'C', 'Am']
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .parameters import Emotion, MelodyParameters
from .note_utils import parse_pitch_class
from .theory import Chord, ChordProgression, Scale, chord_from_degree

__all__ = [
    "Mode",
    "DegreeTriple",
    "PROGRESSIONS",
    "mode_for_scale",
    "generate_progression",
    "progression_for",
    "DEFAULT_CHORD_BEATS",
    "MAX_PROGRESSION_LENGTH",
    "parse_chord_symbol",
    "parse_progression",
]

DegreeTriple = Tuple[int, int, int]


class Mode(Enum):
    MAJOR = "major"
    MINOR = "minor"


_I = (0, 2, 4)
_II = (1, 3, 5)
_III = (2, 4, 6)
_IV = (3, 5, 7)
_V = (4, 6, 8)
_VI = (5, 7, 9)
_VII = (6, 8, 10)
# Leading tone triad spelled from the seventh degree with wrapped upper notes.
_VII_DIM = (6, 1, 3)

_DEFAULT_MAJOR = (_I, _V, _VI, _IV)  # I-V-vi-IV
_DEFAULT_MINOR = (_I, _VI, _VII, _V)  # i-VI-VII-V

PROGRESSIONS: Mapping[Tuple[Emotion, Mode], Tuple[DegreeTriple, ...]] = MappingProxyType(
    {
        (Emotion.HAPPY, Mode.MAJOR): (_I, _IV, _V, _I),
        (Emotion.SAD, Mode.MAJOR): (_I, _III, _IV, _VI),
        (Emotion.ENERGETIC, Mode.MAJOR): (_I, _V, _VI, _IV),
        (Emotion.CALM, Mode.MAJOR): (_I, _VI, _IV, _V),
        (Emotion.MYSTERIOUS, Mode.MAJOR): (_I, _II, _III, _VII_DIM),
        (Emotion.ROMANTIC, Mode.MAJOR): (_I, _VI, _II, _V),
        (Emotion.STANDARD, Mode.MAJOR): _DEFAULT_MAJOR,
        (Emotion.HAPPY, Mode.MINOR): (_I, _IV, _VI, _VII),
        (Emotion.SAD, Mode.MINOR): (_I, _VI, _VII, _V),
        (Emotion.ENERGETIC, Mode.MINOR): (_I, _III, _VI, _IV),
        (Emotion.CALM, Mode.MINOR): (_I, _IV, _VII, _VI),
        (Emotion.MYSTERIOUS, Mode.MINOR): (_I, _III, _VI, _VII),
        (Emotion.ROMANTIC, Mode.MINOR): (_I, _VI, _III, _V),
        (Emotion.STANDARD, Mode.MINOR): _DEFAULT_MINOR,
    }
)


def mode_for_scale(scale: Scale) -> Mode:
    """Return :attr:`Mode.MAJOR` when the scale's third degree is a major third."""
    return Mode.MAJOR if scale.is_major else Mode.MINOR


def generate_progression(mode: Mode, emotion: Emotion) -> Tuple[DegreeTriple, ...]:
    """Return the four degree triples for ``mode`` and ``emotion``.

    Unknown combinations fall back to I-V-vi-IV in major and i-VI-VII-V in
    minor.
    """

    default = _DEFAULT_MAJOR if mode is Mode.MAJOR else _DEFAULT_MINOR
    return PROGRESSIONS.get((emotion, mode), default)


def progression_for(params: MelodyParameters) -> ChordProgression:
    """Resolve the emotion's progression against ``params.scale``.

    The four chord cycle repeats once per bar until ``params.bars`` chords
    have been produced, each lasting four beats.
    """

    scale = params.scale
    mode = mode_for_scale(scale)
    degrees = generate_progression(mode, params.emotion)
    progression = ChordProgression(
        key=scale.root, mode="Major" if mode is Mode.MAJOR else "Minor"
    )
    for bar in range(params.bars):
        root_degree = degrees[bar % len(degrees)][0]
        progression.append(chord_from_degree(scale, root_degree), 4)
    return progression


# Chord symbols are separated by dashes, whitespace, commas or semicolons.
_SEPARATORS = re.compile(r"[-\s,;]+")
_ROMAN = re.compile(r"^([b#]*)([ivxIVX]+)(.*)$")
_NOTE_NAME = re.compile(r"^([A-Ga-g][#b]?)(.*)$")

_ROMAN_DEGREES: Dict[str, int] = {
    "i": 0,
    "ii": 1,
    "iii": 2,
    "iv": 3,
    "v": 4,
    "vi": 5,
    "vii": 6,
}

_QUALITY_SUFFIXES: Dict[str, Optional[str]] = {
    "": None,
    "maj": "Major",
    "m": "Minor",
    "min": "Minor",
    "dim": "Diminished",
    "°": "Diminished",
    "o": "Diminished",
    "aug": "Augmented",
    "+": "Augmented",
}

_TRIAD_INTERVALS: Dict[str, Tuple[int, int]] = {
    "Major": (4, 7),
    "Minor": (3, 7),
    "Diminished": (3, 6),
    "Augmented": (4, 8),
}

DEFAULT_CHORD_BEATS = 4
MAX_CHORD_BEATS = 16
MAX_PROGRESSION_LENGTH = 128
# I-IV-V-vi, cycled by position, replaces symbols that cannot be parsed.
_FALLBACK_DEGREES = (0, 3, 4, 5)


def _quality(suffix: str, default: str) -> str:
    # Sevenths are voiced as their underlying triad.
    if suffix.endswith("7"):
        suffix = suffix[:-1]
    if suffix == "M":
        return "Major"
    key = suffix.lower()
    if key not in _QUALITY_SUFFIXES:
        raise ValueError(f"Unsupported chord suffix: {suffix!r}")
    return _QUALITY_SUFFIXES[key] or default


def _triad(root: int, quality: str) -> Chord:
    third, fifth = _TRIAD_INTERVALS[quality]
    return Chord(root % 12, (root + third) % 12, (root + fifth) % 12, quality)


def parse_chord_symbol(symbol: str, scale: Scale) -> Tuple[Chord, int]:
    """Return ``(chord, beats)`` for one chord symbol.

    Parameters
    ----------
    symbol:
        A Roman numeral relative to ``scale`` (``"IV"``, ``"vi"``,
        ``"bVII"``, ``"vii°"``) or a chord name (``"Am"``, ``"F#dim"``,
        ``"Bb"``), optionally followed by ``:beats``.
    scale:
        Scale the Roman numerals are resolved against.

    Returns
    -------
    tuple[Chord, int]
        The triad and its length in beats (four when not given).

    Raises
    ------
    ValueError
        If the symbol or its length cannot be parsed.
    """

    name, sep, beats_text = symbol.strip().partition(":")
    beats = DEFAULT_CHORD_BEATS
    if sep:
        if not beats_text.isdigit() or not 1 <= int(beats_text) <= MAX_CHORD_BEATS:
            raise ValueError(f"Chord length must be 1-{MAX_CHORD_BEATS} beats: {symbol}")
        beats = int(beats_text)

    roman = _ROMAN.match(name)
    if roman:
        accidentals, numeral, suffix = roman.groups()
        degree = _ROMAN_DEGREES.get(numeral.lower())
        if degree is None:
            raise ValueError(f"Unsupported Roman numeral: {numeral}")
        offset = sum(1 if ch == "#" else -1 for ch in accidentals)
        default = "Major" if numeral.isupper() else "Minor"
        return _triad(scale.degree(degree) + offset, _quality(suffix, default)), beats

    note = _NOTE_NAME.match(name)
    if note is None:
        raise ValueError(f"Unknown chord: {symbol}")
    root_name, suffix = note.groups()
    return _triad(parse_pitch_class(root_name), _quality(suffix, "Major")), beats


def parse_progression(text: str, scale: Scale) -> ChordProgression:
    """Build a :class:`ChordProgression` from text such as ``"I-IV-V"`` or ``"C G Am:2 F:2"``.

    Symbols that cannot be parsed are replaced by the I-IV-V-vi chord for
    their position with a warning, so one typo does not discard the rest
    of the progression.

    Raises
    ------
    ValueError
        If ``text`` holds no symbols or more than ``MAX_PROGRESSION_LENGTH``.
    """

    symbols = [s for s in _SEPARATORS.split(text or "") if s]
    if not symbols:
        raise ValueError("Chord progression must contain at least one chord")
    if len(symbols) > MAX_PROGRESSION_LENGTH:
        raise ValueError(
            f"Chord progression is limited to {MAX_PROGRESSION_LENGTH} chords, got {len(symbols)}"
        )

    mode = "Major" if mode_for_scale(scale) is Mode.MAJOR else "Minor"
    progression = ChordProgression(key=scale.root, mode=mode)
    for index, symbol in enumerate(symbols):
        try:
            chord, beats = parse_chord_symbol(symbol, scale)
        except ValueError as exc:
            chord = chord_from_degree(scale, _FALLBACK_DEGREES[index % len(_FALLBACK_DEGREES)])
            beats = DEFAULT_CHORD_BEATS
            logging.warning("Could not parse chord %r (%s); using %s", symbol, exc, chord)
        progression.append(chord, beats)
    return progression
