"""Note durations and velocities for composed melodies.

Durations come from a small style table keyed by the position within the
beat group.  Velocities multiply an emotion/style/tempo base value by a
position-in-phrase curve, a context factor derived from the melodic
direction and articulation, and an occasional expressive marking, then
apply a ±5 % jitter so repeated notes do not sound mechanical.
"""

from __future__ import annotations

import math
import random
from enum import Enum
from functools import lru_cache
from typing import Sequence

from .parameters import Emotion, MelodyParameters, Style

__all__ = [
    "SIXTEENTH",
    "EIGHTH",
    "QUARTER",
    "DOTTED_QUARTER",
    "HALF",
    "Articulation",
    "articulation_for",
    "note_duration",
    "base_velocity",
    "velocity_curve",
    "context_adjustment",
    "expression_effect",
    "note_velocity",
]

SIXTEENTH = 60
EIGHTH = 120
QUARTER = 240
DOTTED_QUARTER = 360
HALF = 480


class Articulation(Enum):
    NORMAL = "normal"
    STACCATO = "staccato"
    LEGATO = "legato"
    MARCATO = "marcato"
    TENUTO = "tenuto"


def articulation_for(duration: int) -> Articulation:
    """Short notes are staccato, notes of a half note or longer legato."""
    if duration <= SIXTEENTH:
        return Articulation.STACCATO
    if duration >= HALF:
        return Articulation.LEGATO
    return Articulation.NORMAL


@lru_cache(maxsize=None)
def note_duration(style: Style, position: int, is_phrase_end: bool) -> int:
    """Duration in ticks for a note at ``position`` of a phrase."""

    if is_phrase_end:
        return HALF
    mod = position % 4
    if style is Style.CLASSICAL:
        return HALF if mod == 0 else QUARTER
    if style is Style.JAZZ:
        return EIGHTH
    if style is Style.ROCK:
        return DOTTED_QUARTER if mod == 0 else EIGHTH
    return QUARTER


_BASE_VELOCITY = {
    Emotion.HAPPY: 90,
    Emotion.SAD: 70,
    Emotion.ENERGETIC: 110,
    Emotion.CALM: 60,
    Emotion.MYSTERIOUS: 80,
    Emotion.ROMANTIC: 85,
}

_STYLE_FACTOR = {
    Style.CLASSICAL: 0.9,
    Style.ROCK: 1.1,
    Style.ELECTRONIC: 1.1,
    Style.JAZZ: 0.95,
    Style.POP: 1.0,
}


def base_velocity(params: MelodyParameters) -> int:
    """Emotion velocity scaled by style and tempo, truncated at each step."""

    velocity = _BASE_VELOCITY.get(params.emotion, 80)
    velocity = int(velocity * _STYLE_FACTOR.get(params.style, 1.0))
    if params.bpm > 120:
        velocity = int(velocity * 1.05)
    elif params.bpm < 80:
        velocity = int(velocity * 0.95)
    return velocity


def velocity_curve(ratio: float, emotion: Emotion, rng: random.Random) -> float:
    """Multiplier for a note at ``ratio`` (``0.0``-``1.0``) through its phrase."""

    if emotion is Emotion.HAPPY:
        if ratio < 0.2:
            return 0.9
        if ratio < 0.5:
            return 1.1
        if ratio < 0.8:
            return 0.95
        return 1.2
    if emotion is Emotion.SAD:
        if ratio < 0.3:
            return 0.8
        if ratio < 0.6:
            return 1.1
        return 0.7
    if emotion is Emotion.ENERGETIC:
        if ratio < 0.2:
            return 1.1
        if ratio < 0.4:
            return 0.9
        if ratio < 0.7:
            return 1.2
        return 1.1
    if emotion is Emotion.CALM:
        if ratio < 0.4:
            return 0.9
        if ratio < 0.7:
            return 1.0
        return 0.9
    if emotion is Emotion.MYSTERIOUS:
        if rng.random() < 0.6:
            return 0.9 + rng.random() * 0.3
        return 0.8 + ratio * 0.4
    if emotion is Emotion.ROMANTIC:
        return 0.8 + math.sin(ratio * math.pi) * 0.3
    if ratio < 0.2:
        return 0.9
    if ratio < 0.7:
        return 1.1
    return 1.0


def context_adjustment(
    previous_pitches: Sequence[int],
    current_pitch: int,
    duration: int,
    articulation: Articulation,
) -> float:
    """Factor derived from the melodic direction, length and articulation.

    ``previous_pitches`` are MIDI numbers of the notes already placed.  A
    melody without history is left unchanged.
    """

    if not previous_pitches:
        return 1.0
    adjustment = 1.0
    if len(previous_pitches) >= 2:
        last = previous_pitches[-1]
        if last < current_pitch:
            adjustment = 1.05
        elif last > current_pitch:
            adjustment = 0.95
    # Notes longer than a quarter carry more weight.
    if duration > QUARTER:
        adjustment *= 1.1
    if articulation is Articulation.STACCATO:
        adjustment *= 1.15
    elif articulation is Articulation.LEGATO:
        adjustment *= 0.95
    return adjustment


def expression_effect(position: int, phrase_length: int, rng: random.Random) -> float:
    """Occasional crescendo, decrescendo, sforzando, piano or forte plus jitter."""

    effect = 1.0
    if rng.random() < 0.15:
        marking = rng.randrange(5)
        ratio = position / phrase_length
        if marking == 0:
            if phrase_length * 0.2 < position < phrase_length * 0.7:
                effect = 1.0 + ratio * 0.3
        elif marking == 1:
            if position > phrase_length * 0.3:
                effect = 1.2 - ratio * 0.3
        elif marking == 2:
            if rng.random() < 0.3:
                effect = 1.3
        elif marking == 3:
            effect = 0.8
        else:
            effect = 1.2
    return effect * (0.95 + rng.random() * 0.1)


def note_velocity(
    params: MelodyParameters,
    position: int,
    phrase_length: int,
    previous_pitches: Sequence[int],
    current_pitch: int,
    duration: int,
    rng: random.Random,
) -> int:
    """Velocity in ``[10, 127]`` for a note at ``position`` of a phrase."""

    ratio = position / phrase_length
    value = (
        base_velocity(params)
        * velocity_curve(ratio, params.emotion, rng)
        * context_adjustment(previous_pitches, current_pitch, duration, articulation_for(duration))
        * expression_effect(position, phrase_length, rng)
    )
    return max(10, min(127, int(value)))
