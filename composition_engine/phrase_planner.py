"""Section structure, per-section parameters and melodic contours.

A composition is laid out as a :class:`Structure` (AABA, verse/chorus,
rondo ...) made of :class:`Section` objects.  Each section type nudges the
emotion of the base parameters, and the Theme/Variation form also swaps
the style, emotion or scale for its variations.  Contours are short lists
of scale degrees the composer falls back on when no motif is active.

Example
-------
>>> [(s.kind.value, s.bars) for s in layout_sections(Structure.AABA, 8)]
[('A', 2), ('A', 2), ('B', 2), ('A', 2)]
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .parameters import Emotion, MelodyParameters, Style
from .theory import Scale

__all__ = [
    "SectionKind",
    "Structure",
    "Section",
    "STRUCTURE_TEMPLATES",
    "select_structure",
    "layout_sections",
    "PHRASE_LENGTHS",
    "phrase_length",
    "variation_scale",
    "adjust_for_section",
    "EMOTION_CONTOURS",
    "CONTOUR_FAMILIES",
    "VARIATION_CONTOURS",
    "emotion_contour",
    "contour_from_family",
    "section_contour",
]


class SectionKind(Enum):
    A = "A"
    B = "B"
    C = "C"
    VERSE = "Verse"
    CHORUS = "Chorus"
    INTRO = "Intro"
    OUTRO = "Outro"
    THEME = "Theme"
    VARIATION_1 = "Variation-1"
    VARIATION_2 = "Variation-2"
    VARIATION_3 = "Variation-3"


class Structure(Enum):
    AABA = "AABA"
    ABAB = "ABAB"
    VERSE_CHORUS = "VerseChorus"
    RONDO = "Rondo"
    THEME_VARIATION = "ThemeVariation"


@dataclass(frozen=True)
class Section:
    kind: SectionKind
    bars: int


# Section kinds with relative lengths; intro and outro are half a section.
STRUCTURE_TEMPLATES: Mapping[Structure, Tuple[Tuple[SectionKind, int], ...]] = {
    Structure.AABA: (
        (SectionKind.A, 2),
        (SectionKind.A, 2),
        (SectionKind.B, 2),
        (SectionKind.A, 2),
    ),
    Structure.ABAB: (
        (SectionKind.A, 2),
        (SectionKind.B, 2),
        (SectionKind.A, 2),
        (SectionKind.B, 2),
    ),
    Structure.VERSE_CHORUS: (
        (SectionKind.INTRO, 1),
        (SectionKind.VERSE, 2),
        (SectionKind.CHORUS, 2),
        (SectionKind.VERSE, 2),
        (SectionKind.CHORUS, 2),
        (SectionKind.OUTRO, 1),
    ),
    Structure.RONDO: (
        (SectionKind.A, 2),
        (SectionKind.B, 2),
        (SectionKind.A, 2),
        (SectionKind.C, 2),
        (SectionKind.A, 2),
    ),
    Structure.THEME_VARIATION: (
        (SectionKind.THEME, 2),
        (SectionKind.VARIATION_1, 2),
        (SectionKind.VARIATION_2, 2),
        (SectionKind.VARIATION_3, 2),
    ),
}


def select_structure(style: Style, emotion: Emotion, rng: random.Random) -> Structure:
    """Pick the section structure for ``style``.

    ``emotion`` is accepted so callers pass the full creative direction;
    the current tables depend on the style alone.
    """

    if style is Style.POP:
        return Structure.AABA if rng.random() < 0.6 else Structure.VERSE_CHORUS
    if style is Style.CLASSICAL:
        return Structure.THEME_VARIATION if rng.random() < 0.5 else Structure.RONDO
    if style is Style.JAZZ:
        return Structure.AABA
    if style is Style.ROCK:
        return Structure.VERSE_CHORUS if rng.random() < 0.7 else Structure.ABAB
    if style is Style.ELECTRONIC:
        return Structure.VERSE_CHORUS if rng.random() < 0.6 else Structure.THEME_VARIATION
    return Structure.AABA


def layout_sections(structure: Structure, total_bars: int) -> List[Section]:
    """Distribute exactly ``total_bars`` bars over the template of ``structure``.

    Every section receives its proportional share rounded down; the bars
    left over go one each to the heaviest sections in template order.
    Sections that end up with no bars are omitted, so very short pieces
    keep only the leading sections.

    Raises
    ------
    ValueError
        If ``total_bars`` is not positive.
    """

    if total_bars <= 0:
        raise ValueError("total_bars must be positive")
    template = STRUCTURE_TEMPLATES[structure]
    total_weight = sum(weight for _, weight in template)
    shares = [total_bars * weight // total_weight for _, weight in template]
    leftover = total_bars - sum(shares)
    by_weight = sorted(range(len(template)), key=lambda i: -template[i][1])
    for index in by_weight[:leftover]:
        shares[index] += 1
    return [
        Section(kind, bars)
        for (kind, _), bars in zip(template, shares)
        if bars > 0
    ]


PHRASE_LENGTHS: Mapping[Style, int] = {
    Style.POP: 8,
    Style.CLASSICAL: 16,
    Style.JAZZ: 12,
    Style.ROCK: 8,
    Style.ELECTRONIC: 4,
    Style.BLUES: 12,
}


def phrase_length(style: Style) -> int:
    """Number of sixteenth steps per phrase for ``style``."""
    return PHRASE_LENGTHS.get(style, 8)


def variation_scale(scale: Scale, rng: random.Random) -> Scale:
    """Return a modal neighbour of ``scale`` for the third variation.

    Major becomes Mixolydian and natural minor becomes Dorian.  Pentatonic
    and blues scales receive fixed alterations; any other scale has one or
    two intervals nudged by ``-1..1`` while staying within ``1..4``.
    """

    steps = tuple(scale.intervals)
    if steps == (2, 2, 1, 2, 2, 2, 1):
        return Scale(scale.root, (2, 2, 1, 2, 2, 1, 2))
    if steps == (2, 1, 2, 2, 1, 2, 2):
        return Scale(scale.root, (2, 1, 2, 2, 2, 1, 2))
    if steps == (2, 2, 3, 2, 3):
        return Scale(scale.root, (2, 1, 2, 2, 3, 2))
    if steps == (3, 2, 1, 1, 3, 2):
        return Scale(scale.root, (3, 2, 2, 1, 2, 2))

    values = list(steps)
    changes = rng.randint(1, 2)
    positions = set()
    while len(positions) < min(changes, len(values)):
        positions.add(rng.randrange(len(values)))
    for pos in sorted(positions):
        adjusted = values[pos] + rng.randint(-1, 1)
        if 1 <= adjusted <= 4:
            values[pos] = adjusted
    return Scale(scale.root, tuple(values))


_SECTION_EMOTION_SWAPS: Dict[SectionKind, Dict[Emotion, Emotion]] = {
    SectionKind.B: {Emotion.HAPPY: Emotion.ENERGETIC, Emotion.SAD: Emotion.MYSTERIOUS},
    SectionKind.VERSE: {Emotion.ENERGETIC: Emotion.HAPPY, Emotion.MYSTERIOUS: Emotion.CALM},
    SectionKind.CHORUS: {Emotion.HAPPY: Emotion.ENERGETIC, Emotion.CALM: Emotion.ROMANTIC},
}


def adjust_for_section(
    params: MelodyParameters, kind: SectionKind, rng: Optional[random.Random] = None
) -> MelodyParameters:
    """Return the parameters a section of ``kind`` is rendered with.

    Scale, octave and bar count of ``params`` are pinned on the copy so
    every section shares the tonal centre and register of the piece; only
    the third variation replaces the scale.  ``rng`` is needed only for
    scales :func:`variation_scale` has no fixed alteration for.
    """

    style = params.style
    emotion = params.emotion
    scale = params.scale

    if kind in _SECTION_EMOTION_SWAPS:
        emotion = _SECTION_EMOTION_SWAPS[kind].get(emotion, emotion)
    elif kind in (SectionKind.INTRO, SectionKind.OUTRO):
        emotion = Emotion.CALM
    elif kind is SectionKind.C:
        emotion = Emotion.ROMANTIC if emotion is Emotion.HAPPY else Emotion.HAPPY
    elif kind is SectionKind.VARIATION_1:
        style = Style.JAZZ
    elif kind is SectionKind.VARIATION_2:
        emotion = Emotion.ROMANTIC
    elif kind is SectionKind.VARIATION_3:
        scale = variation_scale(scale, rng or random.Random())

    return params.copy(
        style=style,
        emotion=emotion,
        scale=scale,
        octave=params.octave,
        bars=params.bars,
    )


EMOTION_CONTOURS: Mapping[Emotion, Tuple[int, ...]] = {
    Emotion.HAPPY: (0, 2, 4, 2, 4, 6, 4, 2),
    Emotion.SAD: (2, 1, 0, 1, 0, 1, 2, 1),
    Emotion.ENERGETIC: (0, 4, 2, 6, 4, 2, 0, 4),
    Emotion.CALM: (0, 1, 2, 1, 0, 1, 2, 1),
    Emotion.MYSTERIOUS: (3, 2, 1, 4, 3, 2, 3, 2),
    Emotion.ROMANTIC: (0, 2, 3, 5, 3, 2, 0, 2),
}
_DEFAULT_CONTOUR = (0, 2, 4, 2, 0, 1, 0, 2)

# Each family lists (threshold, contour) pairs tried in order with a fresh
# draw per pair; the final contour has no threshold.
CONTOUR_FAMILIES: Mapping[str, Tuple[Tuple[Optional[float], Tuple[int, ...]], ...]] = {
    "calm": (
        (0.3, (0, 1, 0, 1, 2, 1, 0)),
        (0.6, (0, 1, 2, 1, 0, 1, 0)),
        (None, (1, 0, 2, 1, 3, 2, 1)),
    ),
    "expressive": (
        (0.3, (0, 3, 1, 4, 2, 5, 3, 0)),
        (0.6, (0, 2, 4, 6, 4, 2, 0, 1, 3)),
        (None, (0, 4, 2, 5, 1, 6, 3, 0)),
    ),
    "mixed": (
        (0.3, (0, 2, 4, 2, 0, 1, 3, 1)),
        (0.6, (1, 3, 0, 2, 4, 1, 3, 5, 2)),
        (None, (2, 0, 4, 1, 5, 3, 7, 5, 2)),
    ),
    "ascending": (
        (0.3, (0, 1, 2, 3, 4, 5, 6, 7)),
        (0.6, (0, 2, 1, 3, 2, 4, 3, 5, 4, 6, 5, 7)),
        (None, (0, 3, 1, 4, 2, 5, 3, 6, 4, 7)),
    ),
    "descending": (
        (0.3, (7, 6, 5, 4, 3, 2, 1, 0)),
        (0.6, (7, 5, 6, 4, 5, 3, 4, 2, 3, 1, 2, 0)),
        (None, (7, 4, 6, 3, 5, 2, 4, 1, 3, 0)),
    ),
    "arch": (
        (0.4, (0, 2, 4, 6, 7, 6, 4, 2, 0)),
        (None, (1, 3, 5, 7, 5, 3, 1)),
    ),
    "wave": (
        (0.3, (3, 5, 3, 1, 3, 5, 3, 1)),
        (0.6, (4, 2, 5, 3, 6, 4, 7, 5, 3)),
        (None, (2, 4, 1, 5, 0, 6, 3, 7)),
    ),
    "motivic": (
        (0.3, (0, 1, 3, 0, 1, 4, 0, 1, 5)),
        (0.6, (0, 2, 1, 0, 2, 1, 3, 5, 4)),
        (None, (0, 3, 2, 1, 3, 2, 4, 6, 5)),
    ),
    "harmonic": (
        (0.3, (0, 2, 4, 0, 4, 2, 0)),
        (0.6, (0, 2, 4, 6, 4, 2, 0)),
        (None, (0, 3, 4, 7, 4, 3, 0)),
    ),
    "ornamental": (
        (0.3, (0, 1, 0, 2, 1, 0, 3, 2, 1, 0)),
        (0.6, (0, 1, 2, 1, 2, 3, 2, 3, 4, 3, 2, 1, 0)),
        (None, (0, 1, 0, 2, 3, 2, 4, 5, 4, 6, 7, 6, 4, 2, 0)),
    ),
}

VARIATION_CONTOURS: Mapping[SectionKind, Tuple[int, ...]] = {
    SectionKind.VARIATION_1: (0, 2, 4, 6, 4, 2, 0),
    SectionKind.VARIATION_2: (0, 1, 3, 2, 4, 5, 3, 1, 0),
    SectionKind.VARIATION_3: (7, 5, 3, 1, 0, 1, 3, 5, 7),
}

# Families each section chooses between, tried in order like the families
# themselves.
_SECTION_FAMILIES: Mapping[SectionKind, Tuple[Tuple[Optional[float], str], ...]] = {
    SectionKind.VERSE: ((0.4, "calm"), (0.7, "wave"), (None, "harmonic")),
    SectionKind.CHORUS: (
        (0.3, "expressive"),
        (0.6, "arch"),
        (0.8, "ascending"),
        (None, "ornamental"),
    ),
    SectionKind.C: (
        (0.3, "mixed"),
        (0.6, "harmonic"),
        (0.8, "motivic"),
        (None, "ornamental"),
    ),
}


def _cascade(options: Sequence[Tuple[Optional[float], object]], rng: random.Random):
    for threshold, value in options:
        if threshold is None or rng.random() < threshold:
            return value
    return options[-1][1]


def emotion_contour(emotion: Emotion) -> List[int]:
    return list(EMOTION_CONTOURS.get(emotion, _DEFAULT_CONTOUR))


def contour_from_family(name: str, rng: random.Random) -> List[int]:
    """Draw one contour from the family called ``name``."""
    return list(_cascade(CONTOUR_FAMILIES[name], rng))


def section_contour(kind: SectionKind, emotion: Emotion, rng: random.Random) -> List[int]:
    """Return the melodic contour for a section of ``kind``.

    A and Theme sections use the emotion contour and B sections play it
    backwards.  Verse, Chorus and C sections draw from contour families;
    intros and outros favour a short rise and fall.
    """

    if kind in VARIATION_CONTOURS:
        return list(VARIATION_CONTOURS[kind])
    if kind is SectionKind.B:
        return emotion_contour(emotion)[::-1]
    if kind in _SECTION_FAMILIES:
        return contour_from_family(_cascade(_SECTION_FAMILIES[kind], rng), rng)
    if kind in (SectionKind.INTRO, SectionKind.OUTRO):
        if rng.random() < 0.4:
            return [0, 1, 2, 1, 0]
        family = "calm" if rng.random() < 0.7 else "harmonic"
        return contour_from_family(family, rng)
    return emotion_contour(emotion)
