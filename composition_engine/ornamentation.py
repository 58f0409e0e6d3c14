"""Style specific ornaments applied to a chosen scale degree.

Every style family owns a catalogue of named outcomes and six weight
vectors, one per :class:`PhraseRole`.  A single uniform draw against the
normalised cumulative weights picks the outcome, whose function may shift
the degree and may describe a multi-note figure through an
:class:`OrnamentSpec`.  The composer expands the spec into grace notes when
it renders the note.

Styles without a catalogue of their own (Blues) use a small generic rule
set of passing, neighbour and auxiliary tones.

Example
-------
>>> rng = random.Random(3)
>>> degree, spec = ornament(Style.CLASSICAL, 2, 7, 0, 16, rng, Emotion.CALM)
>>> 0 <= degree < 7
True
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .parameters import Emotion, Style

__all__ = [
    "OrnamentKind",
    "OrnamentSpec",
    "PhraseRole",
    "phrase_role",
    "Catalogue",
    "CATALOGUES",
    "select_outcome",
    "ornament_probability",
    "apply_outcome",
    "generic_ornament",
    "nudge_for_emotion",
    "ornament",
]


class OrnamentKind(Enum):
    TRILL = "trill"
    MORDENT = "mordent"
    APPOGGIATURA = "appoggiatura"
    PASSING_TONE = "passing_tone"
    NEIGHBOR_TONE = "neighbor_tone"
    AUXILIARY_TONE = "auxiliary_tone"
    BLUE_NOTE = "blue_note"
    GLISSANDO = "glissando"
    JAZZ_PASSING_TONE = "jazz_passing_tone"
    JAZZ_TRILL = "jazz_trill"
    SLIDE = "slide"
    POWER_CHORD = "power_chord"
    PERCUSSIVE = "percussive"
    FAST_PASSING_TONE = "fast_passing_tone"
    OCTAVE_REPEAT = "octave_repeat"
    ARPEGGIATOR = "arpeggiator"
    SYNTH = "synth"
    JUMP = "jump"
    REPEAT = "repeat"
    NONE = "none"


@dataclass(frozen=True)
class OrnamentSpec:
    """Ornament chosen for a note.

    ``target_degree`` is the auxiliary degree of multi-note figures (the
    upper note of a trill, the start of a glissando, the fifth of a power
    chord) and ``None`` for single-note kinds.
    """

    kind: OrnamentKind
    target_degree: Optional[int] = None


class PhraseRole(Enum):
    START = "start"
    END = "end"
    MIDPOINT = "midpoint"
    STRONG_BEAT = "strong_beat"
    WEAK_BEAT = "weak_beat"
    OTHER = "other"


def phrase_role(position: int, phrase_length: int) -> PhraseRole:
    """Classify ``position`` within a phrase; earlier rules win."""

    if position == 0:
        return PhraseRole.START
    if position == phrase_length - 1:
        return PhraseRole.END
    if position == phrase_length // 2:
        return PhraseRole.MIDPOINT
    if position % 4 == 0 and phrase_length > 4:
        return PhraseRole.STRONG_BEAT
    if position % 2 == 1:
        return PhraseRole.WEAK_BEAT
    return PhraseRole.OTHER


@dataclass(frozen=True)
class Catalogue:
    """Ordered outcomes with one weight vector per phrase role."""

    outcomes: Tuple[OrnamentKind, ...]
    weights: Mapping[PhraseRole, Tuple[float, ...]]

    def __post_init__(self) -> None:
        for role in PhraseRole:
            vector = self.weights[role]
            if len(vector) != len(self.outcomes):
                raise ValueError(f"{role.value} weights do not match the outcome list")
            if sum(vector) <= 0:
                raise ValueError(f"{role.value} weights must have a positive sum")


_K = OrnamentKind
_R = PhraseRole

_CLASSICAL = Catalogue(
    (_K.TRILL, _K.MORDENT, _K.APPOGGIATURA, _K.PASSING_TONE, _K.NEIGHBOR_TONE, _K.AUXILIARY_TONE, _K.NONE),
    {
        _R.START: (0.10, 0.10, 0.05, 0.25, 0.05, 0.10, 0.35),
        _R.END: (0.35, 0.25, 0.10, 0.05, 0.05, 0.05, 0.15),
        _R.MIDPOINT: (0.20, 0.15, 0.30, 0.10, 0.05, 0.10, 0.10),
        _R.STRONG_BEAT: (0.25, 0.20, 0.20, 0.10, 0.05, 0.05, 0.15),
        _R.WEAK_BEAT: (0.15, 0.15, 0.10, 0.20, 0.05, 0.25, 0.10),
        _R.OTHER: (0.25, 0.20, 0.15, 0.15, 0.05, 0.10, 0.10),
    },
)

_JAZZ = Catalogue(
    (_K.BLUE_NOTE, _K.GLISSANDO, _K.JAZZ_PASSING_TONE, _K.JAZZ_TRILL, _K.NONE),
    {
        _R.START: (0.30, 0.15, 0.10, 0.10, 0.35),
        _R.END: (0.20, 0.30, 0.15, 0.15, 0.20),
        _R.MIDPOINT: (0.20, 0.15, 0.30, 0.20, 0.15),
        _R.STRONG_BEAT: (0.30, 0.15, 0.15, 0.15, 0.25),
        _R.WEAK_BEAT: (0.15, 0.15, 0.25, 0.25, 0.20),
        _R.OTHER: (0.25, 0.20, 0.20, 0.15, 0.20),
    },
)

_POP_ROCK = Catalogue(
    (_K.SLIDE, _K.POWER_CHORD, _K.PERCUSSIVE, _K.FAST_PASSING_TONE, _K.OCTAVE_REPEAT, _K.NONE),
    {
        _R.START: (0.15, 0.25, 0.10, 0.10, 0.15, 0.25),
        _R.END: (0.30, 0.10, 0.10, 0.10, 0.20, 0.20),
        _R.MIDPOINT: (0.15, 0.15, 0.25, 0.15, 0.10, 0.20),
        _R.STRONG_BEAT: (0.15, 0.25, 0.15, 0.10, 0.10, 0.25),
        _R.WEAK_BEAT: (0.20, 0.10, 0.15, 0.25, 0.10, 0.20),
        _R.OTHER: (0.20, 0.15, 0.15, 0.15, 0.10, 0.25),
    },
)

_ELECTRONIC = Catalogue(
    (_K.ARPEGGIATOR, _K.SYNTH, _K.JUMP, _K.REPEAT, _K.NONE),
    {
        _R.START: (0.30, 0.25, 0.10, 0.10, 0.25),
        _R.END: (0.15, 0.15, 0.25, 0.25, 0.20),
        _R.MIDPOINT: (0.20, 0.25, 0.25, 0.15, 0.15),
        _R.STRONG_BEAT: (0.30, 0.20, 0.15, 0.10, 0.25),
        _R.WEAK_BEAT: (0.15, 0.15, 0.20, 0.25, 0.25),
        _R.OTHER: (0.25, 0.20, 0.15, 0.15, 0.25),
    },
)

CATALOGUES: Mapping[Style, Catalogue] = {
    Style.CLASSICAL: _CLASSICAL,
    Style.JAZZ: _JAZZ,
    Style.POP: _POP_ROCK,
    Style.ROCK: _POP_ROCK,
    Style.ELECTRONIC: _ELECTRONIC,
}


def select_outcome(catalogue: Catalogue, role: PhraseRole, rng: random.Random) -> OrnamentKind:
    """Draw one outcome from ``catalogue`` using the weights for ``role``."""

    weights = np.asarray(catalogue.weights[role], dtype=float)
    cumulative = np.cumsum(weights / weights.sum())
    index = int(np.searchsorted(cumulative, rng.random(), side="right"))
    return catalogue.outcomes[min(index, len(catalogue.outcomes) - 1)]


_STYLE_BASE = {
    Style.CLASSICAL: 0.7,
    Style.JAZZ: 0.8,
    Style.ROCK: 0.4,
    Style.POP: 0.5,
    Style.ELECTRONIC: 0.3,
}

_EMOTION_FACTOR = {
    Emotion.HAPPY: 1.1,
    Emotion.SAD: 0.8,
    Emotion.ENERGETIC: 1.2,
    Emotion.CALM: 0.7,
    Emotion.MYSTERIOUS: 0.9,
}


def ornament_probability(
    style: Style, emotion: Optional[Emotion], position: int, phrase_length: int
) -> float:
    """Chance that a note routed to the ornament pass receives an ornament."""

    probability = _STYLE_BASE.get(style, 0.6)
    if emotion is not None:
        probability *= _EMOTION_FACTOR.get(emotion, 1.0)
    if position == 0 or position == phrase_length - 1:
        probability *= 1.2
    elif position % 4 == 0 and phrase_length > 4:
        probability *= 1.1
    return max(0.1, min(0.95, probability))


OutcomeResult = Tuple[int, Optional[OrnamentSpec]]


def _in_range(degree: int, n: int) -> bool:
    return 0 <= degree < n


def _direction(rng: random.Random) -> int:
    return 1 if rng.random() < 0.5 else -1


def _trill(d: int, n: int, rng: random.Random) -> OutcomeResult:
    target = d + (1 if rng.random() < 0.7 else 2)
    return d, OrnamentSpec(_K.TRILL, target) if target < n else None


def _mordent(d: int, n: int, rng: random.Random) -> OutcomeResult:
    target = d + (1 if rng.random() < 0.7 else -1)
    return d, OrnamentSpec(_K.MORDENT, target) if _in_range(target, n) else None


def _appoggiatura(d: int, n: int, rng: random.Random) -> OutcomeResult:
    # The leaning note sounds first and resolves to ``d``.
    target = d + (1 if rng.random() < 0.6 else 2)
    return d, OrnamentSpec(_K.APPOGGIATURA, target) if target < n else None


def _step(kind: OrnamentKind) -> Callable[[int, int, random.Random], OutcomeResult]:
    def outcome(d: int, n: int, rng: random.Random) -> OutcomeResult:
        moved = d + _direction(rng)
        if _in_range(moved, n):
            return moved, OrnamentSpec(kind)
        return d, None

    return outcome


def _auxiliary(d: int, n: int, rng: random.Random) -> OutcomeResult:
    moved = d + _direction(rng) * (1 if rng.random() < 0.7 else 2)
    if _in_range(moved, n):
        return moved, OrnamentSpec(_K.AUXILIARY_TONE)
    return d, None


def _blue_note(d: int, n: int, rng: random.Random) -> OutcomeResult:
    # Third, fifth and seventh degrees take the blue inflection.
    return d, OrnamentSpec(_K.BLUE_NOTE) if d % 7 in (2, 4, 6) else None


def _glissando(d: int, n: int, rng: random.Random) -> OutcomeResult:
    start = d + 2 * _direction(rng)
    return d, OrnamentSpec(_K.GLISSANDO, start) if _in_range(start, n) else None


def _jazz_trill(d: int, n: int, rng: random.Random) -> OutcomeResult:
    interval = rng.choice([1, 2, 3])
    target = d + (interval if rng.random() < 0.7 else -interval)
    return d, OrnamentSpec(_K.JAZZ_TRILL, target) if _in_range(target, n) else None


def _slide(d: int, n: int, rng: random.Random) -> OutcomeResult:
    start = max(0, d - rng.randint(1, 3))
    return d, OrnamentSpec(_K.SLIDE, start) if start != d else None


def _power_chord(d: int, n: int, rng: random.Random) -> OutcomeResult:
    fifth = d + 4
    return d, OrnamentSpec(_K.POWER_CHORD, fifth) if fifth < n else None


def _marker(kind: OrnamentKind) -> Callable[[int, int, random.Random], OutcomeResult]:
    def outcome(d: int, n: int, rng: random.Random) -> OutcomeResult:
        return d, OrnamentSpec(kind)

    return outcome


def _leap(kind: OrnamentKind, intervals: Sequence[int]) -> Callable[[int, int, random.Random], OutcomeResult]:
    def outcome(d: int, n: int, rng: random.Random) -> OutcomeResult:
        moved = d + rng.choice(intervals) * _direction(rng)
        if _in_range(moved, n):
            return moved, OrnamentSpec(kind)
        return d, None

    return outcome


_OUTCOMES: Dict[OrnamentKind, Callable[[int, int, random.Random], OutcomeResult]] = {
    _K.TRILL: _trill,
    _K.MORDENT: _mordent,
    _K.APPOGGIATURA: _appoggiatura,
    _K.PASSING_TONE: _step(_K.PASSING_TONE),
    _K.NEIGHBOR_TONE: _step(_K.NEIGHBOR_TONE),
    _K.AUXILIARY_TONE: _auxiliary,
    _K.BLUE_NOTE: _blue_note,
    _K.GLISSANDO: _glissando,
    _K.JAZZ_PASSING_TONE: _step(_K.JAZZ_PASSING_TONE),
    _K.JAZZ_TRILL: _jazz_trill,
    _K.SLIDE: _slide,
    _K.POWER_CHORD: _power_chord,
    _K.PERCUSSIVE: _marker(_K.PERCUSSIVE),
    _K.FAST_PASSING_TONE: _step(_K.FAST_PASSING_TONE),
    _K.OCTAVE_REPEAT: _marker(_K.OCTAVE_REPEAT),
    _K.ARPEGGIATOR: _marker(_K.ARPEGGIATOR),
    _K.SYNTH: _leap(_K.SYNTH, (3, 4, 5, 7)),
    _K.JUMP: _leap(_K.JUMP, (3, 4)),
    _K.REPEAT: _marker(_K.REPEAT),
    _K.NONE: lambda d, n, rng: (d, None),
}


def apply_outcome(kind: OrnamentKind, degree: int, scale_size: int, rng: random.Random) -> OutcomeResult:
    """Run the outcome function for ``kind`` on ``degree``."""
    return _OUTCOMES[kind](degree, scale_size, rng)


def generic_ornament(degree: int, scale_size: int, position: int, rng: random.Random) -> OutcomeResult:
    """Fallback for styles without a catalogue."""

    choice = rng.randint(0, 3)
    if choice == 0:
        return apply_outcome(_K.PASSING_TONE, degree, scale_size, rng)
    if choice == 1:
        return apply_outcome(_K.NEIGHBOR_TONE, degree, scale_size, rng)
    if choice == 2 and position % 2 == 1:
        return apply_outcome(_K.AUXILIARY_TONE, degree, scale_size, rng)
    return degree, None


def nudge_for_emotion(degree: int, scale_size: int, emotion: Emotion, rng: random.Random) -> int:
    """Small emotion driven shift applied after an ornament was chosen."""

    if emotion is Emotion.HAPPY and rng.random() < 0.3:
        return min(degree + 1, scale_size - 1)
    if emotion is Emotion.SAD and rng.random() < 0.3:
        return max(degree - 1, 0)
    if emotion is Emotion.ENERGETIC and rng.random() < 0.2:
        shift = rng.randint(1, 2) * _direction(rng)
        return max(0, min(scale_size - 1, degree + shift))
    return degree


def ornament(
    style: Style,
    degree: int,
    scale_size: int,
    position: int,
    phrase_length: int,
    rng: random.Random,
    emotion: Optional[Emotion] = None,
) -> Tuple[int, Optional[OrnamentSpec]]:
    """Possibly ornament ``degree`` at ``position`` of a phrase.

    Parameters
    ----------
    style:
        Selects the catalogue; styles without one use :func:`generic_ornament`.
    degree, scale_size:
        Current degree and the number of degrees in the scale.
    position, phrase_length:
        Location within the phrase, used for the phrase role.
    rng:
        Source of randomness.
    emotion:
        Scales the ornament probability and drives the final nudge.

    Returns
    -------
    tuple
        ``(degree, spec)`` where ``spec`` is ``None`` when no figure needs
        rendering.  The degree is not clamped; callers clamp it.
    """

    if rng.random() >= ornament_probability(style, emotion, position, phrase_length):
        return degree, None

    catalogue = CATALOGUES.get(style)
    if catalogue is None:
        degree, spec = generic_ornament(degree, scale_size, position, rng)
    else:
        kind = select_outcome(catalogue, phrase_role(position, phrase_length), rng)
        degree, spec = apply_outcome(kind, degree, scale_size, rng)

    if emotion is not None:
        degree = nudge_for_emotion(degree, scale_size, emotion, rng)
    return degree, spec
