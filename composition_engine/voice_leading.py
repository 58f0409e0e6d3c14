"""Melodic coherence rules applied to each newly chosen scale degree.

The composer picks degrees locally; the helpers here relate each choice
to its surroundings.  :func:`enforce_coherence` limits the leap from the
previous note, :func:`adapt_to_chord` pulls degrees on chosen beats onto
the current chord and :func:`choose_octave` keeps the register stable.

Chord tones are handled as scale degrees.  Progression triples may hold
values above the scale length (``(4, 6, 8)``); they are compared modulo
the scale size.

Example
-------
>>> nearest_chord_degree(3, 7, (0, 2, 4))
2
>>> closest_chord_tone(0, 1, (0, 2, 4), 7)
2
"""

from __future__ import annotations

import random
from typing import Mapping, Optional, Sequence

from .parameters import Style
from .phrase_planner import phrase_length
from .theory import Scale

__all__ = [
    "MAX_INTERVALS",
    "max_allowed_interval",
    "degree_of_pitch",
    "chord_members",
    "closest_chord_tone",
    "nearest_chord_degree",
    "smooth_transition",
    "enforce_coherence",
    "adapt_to_chord",
    "choose_octave",
]

# Largest leap in scale degrees left untouched between consecutive notes.
MAX_INTERVALS: Mapping[Style, int] = {
    Style.CLASSICAL: 3,
    Style.JAZZ: 5,
    Style.POP: 4,
    Style.ROCK: 4,
    Style.ELECTRONIC: 5,
    Style.BLUES: 4,
}


def max_allowed_interval(style: Style) -> int:
    return MAX_INTERVALS.get(style, 4)


def degree_of_pitch(pitch_class: int, scale: Scale) -> int:
    """Scale degree of ``pitch_class``; pitches outside the scale map to the tonic."""
    index = scale.index_of(pitch_class)
    return index if index >= 0 else 0


def chord_members(chord_degrees: Sequence[int], scale_size: int) -> list:
    """Chord degrees reduced into ``[0, scale_size)`` keeping their order."""
    members = []
    for degree in chord_degrees:
        reduced = degree % scale_size
        if reduced not in members:
            members.append(reduced)
    return members


def closest_chord_tone(from_degree: int, direction: int, chord_degrees: Sequence[int], scale_size: int) -> int:
    """Chord tone nearest ``from_degree`` in ``direction``.

    When no chord tone lies in that direction the closest one either way
    is returned.  ``-1`` signals an empty chord.
    """

    members = chord_members(chord_degrees, scale_size)
    if not members:
        return -1
    if direction > 0:
        ahead = sorted(t for t in members if t > from_degree)
    else:
        ahead = sorted((t for t in members if t < from_degree), reverse=True)
    if ahead:
        return ahead[0]
    return min(members, key=lambda t: abs(t - from_degree))


def nearest_chord_degree(degree: int, scale_size: int, chord_degrees: Sequence[int]) -> int:
    """Chord degree closest to ``degree`` measured around the scale circle.

    The first chord tone wins ties; an empty chord returns ``degree``.
    """

    nearest = degree
    best = None
    for tone in chord_members(chord_degrees, scale_size):
        direct = abs(tone - degree)
        distance = min(direct, scale_size - direct)
        if best is None or distance < best:
            best = distance
            nearest = tone
    return nearest


def smooth_transition(
    last_degree: int,
    target_degree: int,
    scale_size: int,
    complexity: float,
    direction: int,
    chord_degrees: Sequence[int],
    rng: random.Random,
) -> int:
    """Shrink the leap ``last_degree`` -> ``target_degree``.

    Steps of a second are accepted as they are.  Otherwise the note snaps
    to the nearest chord tone in the leap direction with probability 0.4;
    failing that, leaps wider than a fifth are halved unless
    ``complexity`` is at least 0.7.
    """

    raw = abs(target_degree - last_degree)
    if raw <= 2:
        return target_degree

    if chord_degrees and rng.random() < 0.4:
        tone = closest_chord_tone(last_degree, direction, chord_degrees, scale_size)
        if tone != -1:
            return tone

    interval = raw % scale_size
    if interval > 4 and complexity < 0.7:
        return last_degree + direction * (interval // 2)
    return target_degree


def enforce_coherence(
    degree: int,
    previous_degree: Optional[int],
    scale_size: int,
    style: Style,
    complexity: float,
    chord_degrees: Sequence[int],
    rng: random.Random,
) -> int:
    """Return ``degree`` adjusted to connect smoothly to ``previous_degree``.

    Parameters
    ----------
    degree:
        Candidate scale degree.
    previous_degree:
        Degree of the last placed note or ``None`` at the start of a piece.
    scale_size:
        Number of degrees in the scale; the result lies in
        ``[0, scale_size - 1]``.
    style:
        Sets the largest leap left untouched (see :data:`MAX_INTERVALS`).
    complexity:
        ``0.0``-``1.0``; high values keep wide leaps.
    chord_degrees:
        Degrees of the current chord, used as snapping targets.
    rng:
        Source of randomness.
    """

    if previous_degree is None:
        return max(0, min(scale_size - 1, degree))

    interval = abs(degree - previous_degree)
    direction = 1 if degree > previous_degree else -1

    if interval > max_allowed_interval(style) and rng.random() < 0.9:
        degree = smooth_transition(
            previous_degree, degree, scale_size, complexity, direction, chord_degrees, rng
        )
        interval = abs(degree - previous_degree)

    # A step that changes degree parity is widened to a whole step.
    if interval == 1 and (previous_degree & 1) != (degree & 1):
        if rng.random() < 0.6:
            degree = previous_degree + direction * 2

    return max(0, min(scale_size - 1, degree))


def adapt_to_chord(
    degree: int,
    scale_size: int,
    position: int,
    chord_degrees: Sequence[int],
    rng: random.Random,
) -> int:
    """Move ``degree`` onto the current chord with beat dependent probability.

    Even positions count as strong beats and snap with probability 0.7;
    odd positions snap with probability 0.4 * 0.5.
    """

    if not chord_degrees:
        return degree
    members = chord_members(chord_degrees, scale_size)
    if position % 2 == 0:
        if rng.random() < 0.7 and degree % scale_size not in members:
            return nearest_chord_degree(degree, scale_size, chord_degrees)
    elif rng.random() < 0.4 and degree % scale_size not in members:
        if rng.random() < 0.5:
            return nearest_chord_degree(degree, scale_size, chord_degrees)
    return degree


def choose_octave(
    base_octave: int,
    degree: int,
    position: int,
    style: Style,
    previous_octave: Optional[int] = None,
) -> int:
    """Octave for a note at ``position`` of a phrase.

    High degrees late in the phrase move up an octave.  When the base
    octave lies more than one octave away from the previous note, the
    previous octave is reused.
    """

    if degree >= 5 and position > 0.7 * phrase_length(style):
        return base_octave + 1
    if previous_octave is not None and abs(base_octave - previous_octave) > 1:
        return previous_octave
    return base_octave
