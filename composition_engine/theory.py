"""Pitch-class, scale and chord primitives shared by every generator.

All pitch arithmetic in the package is performed on integer pitch classes
(``0`` == C through ``11`` == B) so transposition is plain modular
addition.  A :class:`Scale` stores its root and the semitone steps between
consecutive degrees; degree ``i`` resolves to the root plus the sum of the
first ``i`` steps.  Chords are stacked thirds taken from a scale, which keeps
every chord the generators produce diatonic to the active scale.

Example
-------
>>> scale = Scale.create(0, ScaleType.MAJOR)
>>> scale.pitch_classes
(0, 2, 4, 5, 7, 9, 11)
>>> chord_from_degree(scale, 4).notes()
[7, 11, 2]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

__all__ = [
    "TICKS_PER_QUARTER",
    "TICKS_PER_STEP",
    "STEPS_PER_BAR",
    "NOTES",
    "NOTE_TO_SEMITONE",
    "ScaleType",
    "SCALE_INTERVALS",
    "Scale",
    "Chord",
    "chord_from_degree",
    "ChordProgression",
    "NoteEvent",
]

# Timing grid. Melodies are placed on sixteenth-note steps.
TICKS_PER_QUARTER = 480
TICKS_PER_STEP = 120
STEPS_PER_BAR = 16

NOTES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Both spellings are accepted on input; output always uses ``NOTES``.
NOTE_TO_SEMITONE: Dict[str, int] = {
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


class ScaleType(Enum):
    """Named interval patterns understood by :meth:`Scale.create`."""

    MAJOR = "Major"
    MINOR = "Minor"
    PENTATONIC = "Pentatonic"
    BLUES = "Blues"
    HARMONIC_MINOR = "HarmonicMinor"
    MELODIC_MINOR = "MelodicMinor"
    DORIAN = "Dorian"
    MIXOLYDIAN = "Mixolydian"

    @classmethod
    def parse(cls, name: str) -> "ScaleType":
        """Return the member matching ``name`` ignoring case and separators."""
        wanted = name.strip().lower().replace("_", "").replace("-", "").replace(" ", "")
        for member in cls:
            if member.value.lower() == wanted:
                return member
        raise ValueError(f"Unknown scale type: {name}")


SCALE_INTERVALS: Dict[ScaleType, Tuple[int, ...]] = {
    ScaleType.MAJOR: (2, 2, 1, 2, 2, 2, 1),
    ScaleType.MINOR: (2, 1, 2, 2, 1, 2, 2),
    ScaleType.PENTATONIC: (2, 2, 3, 2, 3),
    ScaleType.BLUES: (3, 2, 1, 1, 3, 2),
    ScaleType.HARMONIC_MINOR: (2, 1, 2, 2, 1, 3, 1),
    ScaleType.MELODIC_MINOR: (2, 1, 2, 2, 2, 2, 1),
    ScaleType.DORIAN: (2, 1, 2, 2, 2, 1, 2),
    ScaleType.MIXOLYDIAN: (2, 2, 1, 2, 2, 1, 2),
}

_TYPE_BY_INTERVALS: Dict[Tuple[int, ...], ScaleType] = {
    steps: kind for kind, steps in SCALE_INTERVALS.items()
}


@lru_cache(maxsize=None)
def _degrees(root: int, intervals: Tuple[int, ...]) -> Tuple[int, ...]:
    """Return the pitch classes of a scale built from ``root``."""

    pcs = []
    current = root
    for step in intervals:
        pcs.append(current % 12)
        current += step
    return tuple(pcs)


@dataclass(frozen=True)
class Scale:
    """A root pitch class plus the semitone steps between its degrees."""

    root: int
    intervals: Tuple[int, ...]

    def __post_init__(self) -> None:
        if not 0 <= self.root <= 11:
            raise ValueError(f"root must be a pitch class 0-11, got {self.root}")
        if not self.intervals:
            raise ValueError("a scale needs at least one interval")
        if any(step <= 0 for step in self.intervals):
            raise ValueError("scale intervals must be positive integers")
        # Lists are accepted for convenience but stored as a tuple so the
        # instance stays hashable.
        object.__setattr__(self, "intervals", tuple(int(s) for s in self.intervals))

    @classmethod
    def create(cls, root: int, scale_type: ScaleType) -> "Scale":
        return cls(root % 12, SCALE_INTERVALS[scale_type])

    @classmethod
    def from_name(cls, root: str, scale_type: str = "major") -> "Scale":
        """Build a scale from a note name such as ``"F#"`` and a type name."""
        from .note_utils import parse_pitch_class

        return cls.create(parse_pitch_class(root), ScaleType.parse(scale_type))

    @property
    def pitch_classes(self) -> Tuple[int, ...]:
        return _degrees(self.root, self.intervals)

    @property
    def scale_type(self) -> Optional[ScaleType]:
        """Named type for the intervals or ``None`` for custom patterns."""
        return _TYPE_BY_INTERVALS.get(self.intervals)

    @property
    def is_major(self) -> bool:
        """``True`` when the third degree sits a major third above the root."""
        pcs = self.pitch_classes
        if len(pcs) < 3:
            return True
        return (pcs[2] - pcs[0]) % 12 == 4

    def degree(self, index: int) -> int:
        """Pitch class of ``index``; indices wrap around the scale length."""
        pcs = self.pitch_classes
        return pcs[index % len(pcs)]

    def index_of(self, pitch_class: int) -> int:
        """Return the degree holding ``pitch_class`` or ``-1`` when absent."""
        try:
            return self.pitch_classes.index(pitch_class % 12)
        except ValueError:
            return -1

    def __contains__(self, pitch_class: object) -> bool:
        return isinstance(pitch_class, int) and (pitch_class % 12) in self.pitch_classes

    def __len__(self) -> int:
        return len(self.intervals)

    def __str__(self) -> str:
        kind = self.scale_type.value if self.scale_type else "Custom"
        return f"{NOTES[self.root]} {kind}"


@dataclass(frozen=True)
class Chord:
    """Root/third/fifth triad of pitch classes."""

    root: int
    third: int
    fifth: int
    chord_type: str = "Major"

    def notes(self) -> List[int]:
        return [self.root, self.third, self.fifth]

    def __str__(self) -> str:
        suffix = {
            "Major": "",
            "Minor": "m",
            "Diminished": "dim",
            "Augmented": "aug",
        }.get(self.chord_type, "?")
        return NOTES[self.root] + suffix


def _triad_quality(root: int, third: int, fifth: int) -> str:
    lower = (third - root) % 12
    upper = (fifth - third) % 12
    return {
        (4, 3): "Major",
        (3, 4): "Minor",
        (3, 3): "Diminished",
        (4, 4): "Augmented",
    }.get((lower, upper), "Other")


def chord_from_degree(scale: Scale, degree: int) -> Chord:
    """Stack thirds on ``degree`` of ``scale``.

    Degrees wrap modulo the scale length so progression tables may use
    values such as ``7`` (the tonic an octave up) directly.
    """

    n = len(scale)
    d = degree % n
    root = scale.degree(d)
    third = scale.degree((d + 2) % n)
    fifth = scale.degree((d + 4) % n)
    return Chord(root, third, fifth, _triad_quality(root, third, fifth))


@dataclass
class ChordProgression:
    """Chords with their lengths in beats."""

    chords: List[Optional[Chord]] = field(default_factory=list)
    durations: List[int] = field(default_factory=list)
    time_signature: int = 4
    key: int = 0
    mode: str = "Major"

    def __post_init__(self) -> None:
        if len(self.chords) != len(self.durations):
            raise ValueError(
                f"chords ({len(self.chords)}) and durations ({len(self.durations)}) "
                "must have the same length"
            )

    def append(self, chord: Chord, duration: int) -> None:
        self.chords.append(chord)
        self.durations.append(duration)

    def __len__(self) -> int:
        return len(self.chords)

    @property
    def total_beats(self) -> int:
        return sum(self.durations)


@dataclass(frozen=True)
class NoteEvent:
    """A single note placed on the 480 ticks-per-quarter timeline."""

    pitch_class: int
    octave: int
    start_tick: int
    duration_tick: int
    velocity: int

    def __post_init__(self) -> None:
        if not 0 <= self.pitch_class <= 11:
            raise ValueError(f"pitch_class must be 0-11, got {self.pitch_class}")
        if self.start_tick < 0:
            raise ValueError(f"start_tick must be >= 0, got {self.start_tick}")
        if self.duration_tick <= 0:
            raise ValueError(f"duration_tick must be > 0, got {self.duration_tick}")
        if not 0 <= self.velocity <= 127:
            raise ValueError(f"velocity must be 0-127, got {self.velocity}")

    @property
    def midi_number(self) -> int:
        # Scientific pitch notation: C4 == 60.
        return self.pitch_class + (self.octave + 1) * 12

    @property
    def end_tick(self) -> int:
        return self.start_tick + self.duration_tick

    @property
    def name(self) -> str:
        return f"{NOTES[self.pitch_class]}{self.octave}"

