"""Derive a chord progression from an existing melody.

The melody is split into ``bars`` equal groups of notes.  Within each group
every note is snapped to the nearest scale pitch class and weighted by its
duration times its relative velocity.  The tonic, subdominant and dominant
triads are scored by the weight of their three pitch classes and the best
scoring one becomes the chord of that bar.

Because weights are relative, scaling every velocity by the same positive
factor never changes the chosen chords.

Example
-------
>>> scale = Scale.create(0, ScaleType.MAJOR)
>>> bar = [NoteEvent(7, 4, 0, 480, 100), NoteEvent(11, 4, 480, 480, 100)]
>>> str(analyze(bar, scale, 1).chords[0])
'G'
"""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .theory import Chord, ChordProgression, NoteEvent, Scale, ScaleType, chord_from_degree

__all__ = [
    "PREFERRED_DEGREES",
    "PREFERRED_BONUS",
    "nearest_scale_pitch_class",
    "bar_weights",
    "chord_fitness",
    "analyze_bar",
    "split_bars",
    "analyze",
    "ChordAnalyzer",
]

PREFERRED_DEGREES = (0, 3, 4)
PREFERRED_BONUS = 0.5


def nearest_scale_pitch_class(pitch_class: int, scale: Scale) -> int:
    """Return ``pitch_class`` when it is in ``scale``, else the closest scale tone.

    Distance is measured around the pitch circle; ties go to the earlier
    scale degree.
    """

    pitch_class %= 12
    pcs = scale.pitch_classes
    if pitch_class in pcs:
        return pitch_class
    best = pcs[0]
    best_distance = 12
    for candidate in pcs:
        direct = abs(candidate - pitch_class)
        distance = min(direct, 12 - direct)
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best


def bar_weights(notes: Sequence[NoteEvent], scale: Scale) -> np.ndarray:
    """Length-12 vector of ``duration * velocity / 127`` per snapped pitch class."""

    weights = np.zeros(12, dtype=float)
    for note in notes:
        weights[nearest_scale_pitch_class(note.pitch_class, scale)] += (
            note.duration_tick * note.velocity / 127.0
        )
    return weights


def chord_fitness(degree: int, weights: np.ndarray, scale: Scale) -> float:
    """Score of the triad on ``degree``; lower is a better fit."""

    chord = chord_from_degree(scale, degree)
    fitness = float(np.sum(weights[chord.notes()]))
    if degree in PREFERRED_DEGREES:
        fitness += PREFERRED_BONUS
    return -fitness


def analyze_bar(notes: Sequence[NoteEvent], scale: Scale) -> Chord:
    """Best fitting triad for one bar; an empty bar yields the tonic triad."""

    if not notes:
        return chord_from_degree(scale, 0)
    weights = bar_weights(notes, scale)
    scores = np.array([chord_fitness(d, weights, scale) for d in PREFERRED_DEGREES])
    return chord_from_degree(scale, PREFERRED_DEGREES[int(np.argmin(scores))])


def split_bars(
    melody: Sequence[NoteEvent], bars: int, keep_remainder: bool = False
) -> List[List[NoteEvent]]:
    """Split ``melody`` into ``bars`` groups of ``len(melody) // bars`` notes.

    Notes that do not fill a whole group are dropped unless
    ``keep_remainder`` is set, in which case they join the last group.
    """

    if bars <= 0:
        raise ValueError("bars must be a positive integer")
    per_bar = len(melody) // bars
    groups = [list(melody[i * per_bar:(i + 1) * per_bar]) for i in range(bars)]
    if keep_remainder and len(melody) > per_bar * bars:
        groups[-1].extend(melody[per_bar * bars:])
    return groups


def analyze(
    melody: Sequence[NoteEvent], scale: Scale, bars: int, *, keep_remainder: bool = False
) -> ChordProgression:
    """Return one four-beat chord per bar of ``melody``.

    Raises
    ------
    ValueError
        If ``bars`` is not positive.
    """

    groups = split_bars(melody, bars, keep_remainder)
    dropped = len(melody) - sum(len(g) for g in groups)
    if dropped:
        logging.debug("Chord analysis ignored %d trailing notes", dropped)
    progression = ChordProgression(
        key=scale.root, mode="Major" if scale.is_major else "Minor"
    )
    for group in groups:
        progression.append(analyze_bar(group, scale), 4)
    return progression


class ChordAnalyzer:
    """Object wrapper around :func:`analyze` bound to one scale."""

    def __init__(self, scale: Scale | None = None, *, keep_remainder: bool = False) -> None:
        self.scale = scale or Scale.create(0, ScaleType.MAJOR)
        self.keep_remainder = keep_remainder

    def analyze(self, melody: Sequence[NoteEvent], bars: int) -> ChordProgression:
        return analyze(melody, self.scale, bars, keep_remainder=self.keep_remainder)
