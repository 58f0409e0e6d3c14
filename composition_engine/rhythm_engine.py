"""Onset patterns deciding which sixteenth steps start a note.

A pattern is a list of ``0``/``1`` flags cycled over the steps of a section.
Each style (and a few style/emotion pairs) has a base pattern; variations
add syncopation, which moves a hit onto an off-beat, or a fill that
densifies the second half of the pattern.  Section types choose between
the base pattern and its variations.

Patterns returned by these helpers are fresh lists so callers may modify
them without affecting the tables.
"""

from __future__ import annotations

import random
from typing import Dict, List, Sequence, Tuple

from .parameters import Emotion, Style
from .phrase_planner import SectionKind

__all__ = [
    "base_rhythm_pattern",
    "add_syncopation",
    "add_rhythmic_fill",
    "variation_chance",
    "add_rhythm_variations",
    "melodic_rhythm_pattern",
    "invert_pattern",
    "section_rhythm",
    "has_onset",
]

_STYLE_EMOTION_PATTERNS: Dict[Tuple[Style, Emotion], Tuple[int, ...]] = {
    (Style.POP, Emotion.HAPPY): (1, 0, 1, 0, 1, 1, 1, 0),
    (Style.POP, Emotion.SAD): (1, 0, 0, 0, 1, 0, 1, 0),
    (Style.POP, Emotion.ENERGETIC): (1, 1, 1, 0, 1, 1, 1, 1),
    (Style.CLASSICAL, Emotion.CALM): (1, 0, 0, 0, 1, 0, 1, 0, 0, 0, 1, 0),
    (Style.ROCK, Emotion.ENERGETIC): (1, 1, 0, 1, 1, 0, 1, 1),
}

_STYLE_PATTERNS: Dict[Style, Tuple[int, ...]] = {
    Style.POP: (1, 0, 1, 1, 0, 1, 1, 0),
    Style.CLASSICAL: (1, 0, 0, 1, 0, 1, 1, 0, 1, 0, 0, 1, 0, 1, 0, 0),
    Style.JAZZ: (1, 0, 1, 1, 1, 0, 1, 0),
    Style.ROCK: (1, 0, 0, 1, 1, 0, 1, 0),
    Style.ELECTRONIC: (1, 1, 0, 0, 1, 1, 1, 1),
    Style.BLUES: (1, 0, 1, 0, 1, 1, 0, 1, 0, 1, 0, 1),
}

_EMOTION_PATTERNS: Dict[Emotion, Tuple[int, ...]] = {
    Emotion.MYSTERIOUS: (1, 0, 1, 0, 0, 1, 0, 0, 1, 0),
    Emotion.ROMANTIC: (1, 0, 1, 0, 0, 1, 0, 1, 0, 1),
}

_DEFAULT_PATTERN = (1, 0, 1, 0, 1, 0, 1, 0)


def base_rhythm_pattern(style: Style, emotion: Emotion) -> List[int]:
    """Return the unvaried pattern for ``style`` and ``emotion``."""

    if (style, emotion) in _STYLE_EMOTION_PATTERNS:
        return list(_STYLE_EMOTION_PATTERNS[(style, emotion)])
    if style in _STYLE_PATTERNS:
        return list(_STYLE_PATTERNS[style])
    return list(_EMOTION_PATTERNS.get(emotion, _DEFAULT_PATTERN))


def add_syncopation(pattern: Sequence[int], rng: random.Random) -> List[int]:
    """Place a hit on a random off-beat, sometimes removing the hit before it."""

    result = list(pattern)
    candidates = [i for i in range(len(result)) if i % 4 not in (0, 2)]
    if not candidates:
        return result
    pos = rng.choice(candidates)
    result[pos] = 1
    if rng.random() < 0.5 and pos > 0:
        result[pos - 1] = 0
    return result


def add_rhythmic_fill(pattern: Sequence[int], rng: random.Random) -> List[int]:
    """Randomly densify up to four steps starting at the pattern midpoint."""

    result = list(pattern)
    start = len(result) // 2
    for i in range(start, start + min(4, len(result) - start)):
        if rng.random() < 0.7:
            result[i] = 1
    return result


def variation_chance(style: Style, emotion: Emotion) -> int:
    """Percentage chance of syncopating a pattern for ``style``/``emotion``."""

    if style in (Style.JAZZ, Style.BLUES):
        chance = 40
    elif style is Style.CLASSICAL:
        chance = 35
    elif style is Style.ELECTRONIC:
        chance = 20
    else:
        chance = 30

    if emotion in (Emotion.SAD, Emotion.CALM):
        chance -= 10
    elif emotion in (Emotion.ENERGETIC, Emotion.MYSTERIOUS):
        chance += 10
    return max(20, min(45, chance))


def add_rhythm_variations(
    pattern: Sequence[int], style: Style, emotion: Emotion, rng: random.Random
) -> List[int]:
    """Apply syncopation and a fill, each with a style dependent chance."""

    result = list(pattern)
    chance = variation_chance(style, emotion)
    if rng.randint(0, 99) < chance and len(result) >= 4:
        result = add_syncopation(result, rng)
    if rng.randint(0, 99) < chance - 10 and len(result) >= 8:
        result = add_rhythmic_fill(result, rng)
    return result


def melodic_rhythm_pattern(style: Style, emotion: Emotion, rng: random.Random) -> List[int]:
    return add_rhythm_variations(base_rhythm_pattern(style, emotion), style, emotion, rng)


def invert_pattern(pattern: Sequence[int]) -> List[int]:
    return [0 if step else 1 for step in pattern]


def section_rhythm(kind: SectionKind, style: Style, emotion: Emotion, rng: random.Random) -> List[int]:
    """Return the onset pattern used by a section of ``kind``.

    ``style`` and ``emotion`` are the section adjusted values, so the
    first variation receives the Jazz base pattern before syncopation.
    """

    base = base_rhythm_pattern(style, emotion)
    if kind in (SectionKind.CHORUS, SectionKind.VARIATION_1):
        return add_syncopation(base, rng)
    if kind is SectionKind.VARIATION_2:
        return melodic_rhythm_pattern(style, emotion, rng)
    if kind is SectionKind.VARIATION_3:
        return invert_pattern(base)
    return base


def has_onset(step: int, pattern: Sequence[int]) -> bool:
    """``True`` when ``pattern`` starts a note at ``step``."""
    if not pattern:
        return False
    return pattern[step % len(pattern)] == 1
