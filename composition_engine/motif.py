"""Short scale-degree motifs and their variation.

A motif is a list of two to four scale degrees generated by a constrained
random walk whose shape depends on the emotion.  The composer reuses the
same motif across phrases and regenerates it after three repetitions;
each placement either keeps the motif degree or varies it with a style
and emotion specific transform.

Example
-------
>>> rng = random.Random(1)
>>> motif = create_motif(Emotion.HAPPY, 7, rng)
>>> all(0 <= d < 7 for d in motif)
True
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .parameters import Emotion, Style

__all__ = [
    "MAX_REPETITIONS",
    "FLOWING_PATTERN",
    "create_motif",
    "MotifState",
    "motif_keep_probability",
    "vary_for_emotion",
    "vary_degree",
    "motif_degree",
]

MAX_REPETITIONS = 3
FLOWING_PATTERN = (0, 2, 1, 3, 1, 2, 0)


def _clamp(degree: int, scale_size: int) -> int:
    return max(0, min(scale_size - 1, degree))


def _stepwise(length: int, scale_size: int, rng: random.Random) -> List[int]:
    motif = [0]
    for _ in range(length - 1):
        motif.append(_clamp(motif[-1] + rng.choice([1, -1, 0]), scale_size))
    return motif


def _upward(length: int, scale_size: int, rng: random.Random) -> List[int]:
    motif = [0]
    for _ in range(length - 1):
        step = 1 if rng.random() < 0.8 else -1
        motif.append(max(0, min(motif[-1] + step, scale_size - 1)))
    return motif


def _downward(length: int, scale_size: int, rng: random.Random) -> List[int]:
    motif = [min(4, scale_size - 1)]
    for _ in range(length - 1):
        step = -1 if rng.random() < 0.7 else 1
        motif.append(min(max(motif[-1] + step, 0), scale_size - 1))
    return motif


def _walk(steps: Sequence[int], length: int, scale_size: int, rng: random.Random) -> List[int]:
    motif = [0]
    for _ in range(length - 1):
        motif.append(_clamp(motif[-1] + rng.choice(steps), scale_size))
    return motif


def _flowing(length: int, scale_size: int) -> List[int]:
    return [min(FLOWING_PATTERN[i % len(FLOWING_PATTERN)], scale_size - 1) for i in range(length)]


def create_motif(emotion: Emotion, scale_size: int, rng: random.Random) -> List[int]:
    """Return a new motif for ``emotion`` within a scale of ``scale_size`` degrees.

    Parameters
    ----------
    emotion:
        Selects the walk: upward for Happy, downward for Sad, leaps for
        Energetic, tritone-like jumps for Mysterious, a fixed flowing
        contour for Romantic and small steps otherwise.
    scale_size:
        Number of degrees in the active scale. Every motif degree lies in
        ``[0, scale_size - 1]``.
    rng:
        Source of randomness.

    Returns
    -------
    list[int]
        Between two and four scale degrees.
    """

    if scale_size <= 0:
        raise ValueError("scale_size must be positive")
    length = 2 + rng.randint(0, 2)
    if emotion is Emotion.HAPPY:
        return _upward(length, scale_size, rng)
    if emotion is Emotion.SAD:
        return _downward(length, scale_size, rng)
    if emotion is Emotion.ENERGETIC:
        return _walk((2, 3, -2, -3), length, scale_size, rng)
    if emotion is Emotion.MYSTERIOUS:
        return _walk((1, 4, -1, -4), length, scale_size, rng)
    if emotion is Emotion.ROMANTIC:
        return _flowing(length, scale_size)
    return _stepwise(length, scale_size, rng)


@dataclass
class MotifState:
    """Active motif, read position and repetition count for one composition."""

    motif: List[int] = field(default_factory=list)
    position: int = 0
    repetitions: int = 0

    def refresh(self, emotion: Emotion, scale_size: int, rng: random.Random) -> None:
        """Start a new pass over the motif, regenerating it when worn out."""
        if not self.motif or self.repetitions >= MAX_REPETITIONS:
            self.motif = create_motif(emotion, scale_size, rng)
            self.repetitions = 0
        else:
            self.repetitions += 1
        self.position = 0

    def advance(self) -> None:
        self.position += 1


_CLASSICAL_KEEP = {
    Emotion.HAPPY: 0.6,
    Emotion.ROMANTIC: 0.6,
    Emotion.SAD: 0.7,
    Emotion.CALM: 0.7,
    Emotion.MYSTERIOUS: 0.4,
}


def motif_keep_probability(style: Style, emotion: Emotion) -> float:
    """Probability that a placement repeats the motif degree unchanged."""

    if style is Style.CLASSICAL:
        return _CLASSICAL_KEEP.get(emotion, 0.5)
    if style is Style.JAZZ:
        return 0.3 if emotion in (Emotion.HAPPY, Emotion.ENERGETIC) else 0.4
    if style in (Style.ROCK, Style.POP):
        return 0.4 if emotion is Emotion.ENERGETIC else 0.6
    if style is Style.ELECTRONIC:
        return 0.3 if emotion in (Emotion.MYSTERIOUS, Emotion.ENERGETIC) else 0.5
    return 0.5


def vary_for_emotion(base: int, scale_size: int, emotion: Emotion, rng: random.Random) -> int:
    """Apply the emotion's variation to ``base``."""

    if emotion is Emotion.HAPPY:
        return min(base + rng.randint(1, 2), scale_size - 1)
    if emotion is Emotion.SAD:
        return max(base - rng.randint(1, 2), 0)
    if emotion is Emotion.ENERGETIC:
        return _clamp(base + rng.choice([-2, -1, 1, 2]), scale_size)
    if emotion is Emotion.MYSTERIOUS:
        return _clamp(base + rng.choice([-1, 1, -3, 3]), scale_size)
    return _clamp(base + rng.choice([-1, 0, 1]), scale_size)


def vary_degree(
    base: int,
    scale_size: int,
    style: Style,
    emotion: Emotion,
    position: int,
    phrase_length: int,
    rng: random.Random,
) -> int:
    """Vary a motif degree according to style, falling back to the emotion transform."""

    if style is Style.CLASSICAL:
        if rng.random() < 0.7:
            return vary_for_emotion(base, scale_size, emotion, rng)
        if position == phrase_length // 2:
            return min(base + 2, scale_size - 1)
        return vary_for_emotion(base, scale_size, emotion, rng)

    if style is Style.JAZZ:
        return _clamp(base + rng.choice([-2, -1, 1, 2, 3, -3]), scale_size)

    if style in (Style.ROCK, Style.POP):
        steps = [-3, 3] if emotion is Emotion.ENERGETIC else [-1, 1]
        return _clamp(base + rng.choice(steps), scale_size)

    if style is Style.ELECTRONIC:
        if position % 4 == 0:
            if rng.random() < 0.6:
                return base
            return _clamp(base + rng.choice([-1, 1]), scale_size)
        return _clamp(base + rng.choice([-2, -1, 1, 2, 4, -4]), scale_size)

    return vary_for_emotion(base, scale_size, emotion, rng)


def motif_degree(
    state: MotifState,
    contour: Optional[Sequence[int]],
    style: Style,
    emotion: Emotion,
    position: int,
    phrase_length: int,
    scale_size: int,
    rng: random.Random,
) -> int:
    """Return the degree for a phrase body position.

    With an active motif the degree at ``state.position`` is kept with the
    style/emotion probability (raised by 0.2 at the phrase edges, lowered
    by 0.1 at the midpoint) and otherwise varied.  Without a motif the
    section contour supplies the degree.  Long phrases occasionally pull
    strong beats one step down.
    """

    if state.motif:
        base = state.motif[state.position % len(state.motif)]
        keep = motif_keep_probability(style, emotion)
        if position == 0 or position == phrase_length - 1:
            keep += 0.2
        elif position == phrase_length // 2:
            keep -= 0.1
        if rng.random() < keep:
            degree = base
        else:
            degree = vary_degree(base, scale_size, style, emotion, position, phrase_length, rng)
    elif contour:
        if style is Style.JAZZ:
            index = position % len(contour)
        else:
            index = position * len(contour) // phrase_length
        degree = contour[index % len(contour)]
    else:
        degree = 0

    if phrase_length > 8 and position % 4 == 0:
        degree = min(degree, scale_size - 1)
        if rng.random() < 0.3:
            degree = max(0, degree - 1)
    return _clamp(degree, scale_size)
