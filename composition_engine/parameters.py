"""Creative parameters for a composition request.

:class:`MelodyParameters` carries the style, emotion and tempo chosen by the
caller.  Bar count, scale and base octave may be supplied explicitly; when
left unset they are derived on first read from the other fields using the
tables below, and the object remembers which values were overridden so
:meth:`MelodyParameters.describe` can explain where each setting came from.

Derived values are pure functions of the explicit fields, so a parameter
object can be shared freely between generators for the duration of a call.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .theory import Scale, ScaleType

__all__ = [
    "Style",
    "Emotion",
    "MelodyParameters",
    "recommend_scale_type",
    "default_bars",
    "default_root",
    "default_octave",
]


class _ParsableEnum(Enum):
    @classmethod
    def parse(cls, name: str):
        """Return the member called ``name`` ignoring case."""
        wanted = name.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown {cls.__name__.lower()}: {name} (choose from {choices})")


class Style(_ParsableEnum):
    POP = "Pop"
    ROCK = "Rock"
    JAZZ = "Jazz"
    CLASSICAL = "Classical"
    ELECTRONIC = "Electronic"
    BLUES = "Blues"


class Emotion(_ParsableEnum):
    STANDARD = "Standard"
    HAPPY = "Happy"
    SAD = "Sad"
    ENERGETIC = "Energetic"
    CALM = "Calm"
    MYSTERIOUS = "Mysterious"
    ROMANTIC = "Romantic"


_BARS_BY_STYLE = {
    Style.POP: 8,
    Style.JAZZ: 16,
    Style.CLASSICAL: 16,
    Style.ELECTRONIC: 4,
    Style.BLUES: 12,
}

_BARS_BY_EMOTION = {
    Emotion.CALM: 12,
    Emotion.ROMANTIC: 8,
    Emotion.MYSTERIOUS: 10,
    Emotion.SAD: 8,
    Emotion.HAPPY: 8,
    Emotion.ENERGETIC: 12,
}

_ROOT_BY_EMOTION = {
    Emotion.HAPPY: 0,  # C
    Emotion.SAD: 9,  # A
    Emotion.ENERGETIC: 7,  # G
    Emotion.CALM: 2,  # D
    Emotion.MYSTERIOUS: 5,  # F
    Emotion.ROMANTIC: 4,  # E
}

_SCALE_BY_STYLE_EMOTION = {
    (Style.POP, Emotion.HAPPY): ScaleType.MAJOR,
    (Style.POP, Emotion.SAD): ScaleType.MINOR,
    (Style.CLASSICAL, Emotion.ROMANTIC): ScaleType.MAJOR,
    (Style.CLASSICAL, Emotion.SAD): ScaleType.HARMONIC_MINOR,
}

_SCALE_BY_STYLE = {
    Style.ROCK: ScaleType.MIXOLYDIAN,
    Style.JAZZ: ScaleType.MELODIC_MINOR,
    Style.ELECTRONIC: ScaleType.PENTATONIC,
    Style.BLUES: ScaleType.BLUES,
}

_SCALE_BY_EMOTION = {
    Emotion.MYSTERIOUS: ScaleType.DORIAN,
    Emotion.ENERGETIC: ScaleType.MAJOR,
    Emotion.CALM: ScaleType.PENTATONIC,
}


def default_bars(style: Style, emotion: Emotion) -> int:
    if style is Style.ROCK:
        return 12 if emotion is Emotion.ENERGETIC else 8
    if style in _BARS_BY_STYLE:
        return _BARS_BY_STYLE[style]
    return _BARS_BY_EMOTION.get(emotion, 8)


def default_root(emotion: Emotion) -> int:
    return _ROOT_BY_EMOTION.get(emotion, 0)


def recommend_scale_type(style: Style, emotion: Emotion) -> ScaleType:
    """Return the scale type conventionally paired with ``style`` and ``emotion``."""

    if (style, emotion) in _SCALE_BY_STYLE_EMOTION:
        return _SCALE_BY_STYLE_EMOTION[(style, emotion)]
    if style in _SCALE_BY_STYLE:
        return _SCALE_BY_STYLE[style]
    return _SCALE_BY_EMOTION.get(emotion, ScaleType.MAJOR)


def default_octave(style: Style, emotion: Emotion, bpm: int) -> int:
    """Return the melody register for ``style``/``emotion`` at ``bpm``.

    Slow tempos sit lower: below 60 bpm the base is octave 3, up to and
    including 120 bpm it is 4 and faster tempos use 5.  Each style then
    shifts the base; only styles without a rule of their own would fall
    through to the emotion adjustments.
    """

    if bpm < 60:
        base = 3
    elif bpm <= 120:
        base = 4
    else:
        base = 5

    if style in (Style.CLASSICAL, Style.ROCK, Style.JAZZ):
        return base
    if style is Style.POP:
        return min(6, base + 1)
    if style is Style.ELECTRONIC:
        return base + 1
    if style is Style.BLUES:
        return max(3, base - 1)

    if emotion is Emotion.HAPPY:
        return min(6, base + 1)
    if emotion in (Emotion.SAD, Emotion.CALM):
        return max(3, base - 1)
    return base


class MelodyParameters:
    """Style, emotion, tempo and optional overrides for one composition.

    Parameters
    ----------
    style, emotion:
        Creative direction. Strings are accepted and parsed case-insensitively.
    bpm:
        Tempo in beats per minute.
    bars, scale, octave:
        Optional overrides. ``None`` means "derive from the other fields".
    complexity:
        ``0.0``-``1.0``. Values below ``0.7`` make the composer halve large
        leaps instead of keeping them.
    """

    def __init__(
        self,
        style: Style | str = Style.POP,
        emotion: Emotion | str = Emotion.HAPPY,
        bpm: int = 120,
        bars: Optional[int] = None,
        scale: Optional[Scale] = None,
        octave: Optional[int] = None,
        complexity: float = 0.5,
    ) -> None:
        self.style = Style.parse(style) if isinstance(style, str) else style
        self.emotion = Emotion.parse(emotion) if isinstance(emotion, str) else emotion
        self.bpm = bpm
        if bars is not None and bars <= 0:
            raise ValueError("bars must be a positive integer")
        if not 0.0 <= complexity <= 1.0:
            raise ValueError("complexity must be between 0.0 and 1.0")
        self._bars = bars
        self._scale = scale
        self._octave = octave
        self.complexity = complexity

    @property
    def tempo(self) -> int:
        return self.bpm

    @tempo.setter
    def tempo(self, value: int) -> None:
        self.bpm = value

    @property
    def bars(self) -> int:
        if self._bars is not None:
            return self._bars
        return default_bars(self.style, self.emotion)

    @bars.setter
    def bars(self, value: Optional[int]) -> None:
        if value is not None and value <= 0:
            raise ValueError("bars must be a positive integer")
        self._bars = value

    @property
    def scale(self) -> Scale:
        if self._scale is not None:
            return self._scale
        return Scale.create(
            default_root(self.emotion), recommend_scale_type(self.style, self.emotion)
        )

    @scale.setter
    def scale(self, value: Optional[Scale]) -> None:
        self._scale = value

    @property
    def octave(self) -> int:
        if self._octave is not None:
            return self._octave
        return default_octave(self.style, self.emotion, self.bpm)

    @octave.setter
    def octave(self, value: Optional[int]) -> None:
        self._octave = value

    @property
    def has_custom_bars(self) -> bool:
        return self._bars is not None

    @property
    def has_custom_scale(self) -> bool:
        return self._scale is not None

    @property
    def has_custom_octave(self) -> bool:
        return self._octave is not None

    def copy(self, **changes) -> "MelodyParameters":
        """Return a new instance with ``changes`` applied.

        Unset fields stay unset so they keep deriving from the (possibly
        changed) style and emotion of the copy.
        """

        fields = {
            "style": self.style,
            "emotion": self.emotion,
            "bpm": self.bpm,
            "bars": self._bars,
            "scale": self._scale,
            "octave": self._octave,
            "complexity": self.complexity,
        }
        unknown = set(changes) - set(fields)
        if unknown:
            raise TypeError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        fields.update(changes)
        return MelodyParameters(**fields)

    def describe(self) -> str:
        """Return a human readable summary marking custom and derived values."""

        def origin(custom: bool) -> str:
            return "(custom)" if custom else "(auto)"

        lines = [
            f"Style: {self.style.value}",
            f"Emotion: {self.emotion.value}",
            f"Tempo: {self.bpm} BPM",
            f"Bars: {self.bars} {origin(self.has_custom_bars)}",
            f"Scale: {self.scale} {origin(self.has_custom_scale)}",
            f"Octave: {self.octave} {origin(self.has_custom_octave)}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"MelodyParameters(style={self.style.value!r}, emotion={self.emotion.value!r}, "
            f"bpm={self.bpm}, bars={self.bars}, scale={str(self.scale)!r}, octave={self.octave})"
        )
