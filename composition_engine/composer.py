"""Structured melody composition.

:class:`MelodyComposer` turns :class:`~composition_engine.parameters.MelodyParameters`
into a list of :class:`~composition_engine.theory.NoteEvent` objects.  The
piece is laid out as a section structure; each section adjusts the
parameters, picks an onset pattern and a contour, and walks its sixteenth
steps phrase by phrase.  Every placed note goes through the same pipeline:

1. choose a degree from the phrase role (stable, resolution or climax
   tone) or from the motif and contour,
2. pull it onto the current chord on selected beats,
3. possibly ornament it,
4. limit the leap from the previous note,
5. pick octave, duration and velocity,
6. expand the ornament into grace notes where it has a figure.

All mutable state lives in a :class:`_CompositionContext` created per call,
so one composer may serve concurrent requests as long as each passes its
own ``random.Random``.

Example
-------
>>> params = MelodyParameters("Pop", "Happy", bpm=120, bars=8)
>>> notes = compose_melody(params, seed=7)
>>> all(0 <= n.velocity <= 127 for n in notes)
True
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .config import MidiConfig
from .dynamics import SIXTEENTH, note_duration, note_velocity
from .harmony_generator import DegreeTriple, generate_progression, mode_for_scale
from .motif import MotifState, motif_degree
from .ornamentation import OrnamentKind, OrnamentSpec, ornament
from .parameters import Emotion, MelodyParameters
from .phrase_planner import (
    Section,
    SectionKind,
    Structure,
    adjust_for_section,
    layout_sections,
    phrase_length,
    section_contour,
    select_structure,
)
from .rhythm_engine import has_onset, section_rhythm
from .theory import STEPS_PER_BAR, TICKS_PER_STEP, NoteEvent, Scale
from .voice_leading import adapt_to_chord, choose_octave, degree_of_pitch, enforce_coherence

__all__ = [
    "STABLE_TONES",
    "RESOLUTION_TONES",
    "CLIMAX_TONES",
    "ORNAMENT_PROBABILITY",
    "basic_degree",
    "render_ornament",
    "SectionPlan",
    "MelodyComposer",
    "compose_melody",
]

logger = logging.getLogger(__name__)

STABLE_TONES: Dict[Emotion, int] = {
    Emotion.STANDARD: 0,
    Emotion.HAPPY: 0,
    Emotion.SAD: 2,
    Emotion.ENERGETIC: 4,
    Emotion.CALM: 0,
    Emotion.MYSTERIOUS: 3,
    Emotion.ROMANTIC: 2,
}

RESOLUTION_TONES: Dict[Emotion, int] = {
    Emotion.HAPPY: 0,
    Emotion.SAD: 0,
    Emotion.CALM: 0,
    Emotion.ROMANTIC: 0,
    Emotion.ENERGETIC: 4,
    Emotion.MYSTERIOUS: 1,
}

CLIMAX_TONES: Dict[Emotion, int] = {
    Emotion.HAPPY: 6,
    Emotion.SAD: 4,
    Emotion.ENERGETIC: 6,
    Emotion.CALM: 4,
    Emotion.MYSTERIOUS: 5,
    Emotion.ROMANTIC: 5,
}

ORNAMENT_PROBABILITY = 0.35
GRACE_TICKS = 30


def basic_degree(emotion: Emotion, scale_size: int, rng: random.Random) -> int:
    """Emotion dependent random degree used when no contour applies."""

    if emotion is Emotion.SAD:
        return rng.randrange(0, min(4, scale_size))
    if emotion is Emotion.ENERGETIC:
        return rng.randrange(max(0, scale_size - 4), scale_size)
    if emotion is Emotion.CALM and scale_size > 1:
        return rng.randrange(1, min(5, scale_size))
    return rng.randrange(0, scale_size)


def _neighbour(scale: Scale, degree: int, note: NoteEvent, other: int) -> Tuple[int, int]:
    """Pitch class and octave of degree ``other`` next to ``note`` (at ``degree``)."""

    low, high = sorted((degree, other))
    span = sum(scale.intervals[low:high])
    value = note.octave * 12 + note.pitch_class + (span if other > degree else -span)
    return value % 12, value // 12


def render_ornament(
    note: NoteEvent, spec: Optional[OrnamentSpec], degree: int, scale: Scale
) -> List[NoteEvent]:
    """Expand ``note`` according to ``spec``.

    Parameters
    ----------
    note:
        The plain note chosen by the composer.
    spec:
        Ornament to render or ``None``.
    degree:
        Scale degree of ``note``; auxiliary degrees are placed relative to it.
    scale:
        Scale the degrees refer to.

    Returns
    -------
    list[NoteEvent]
        The note itself when the ornament does not fit the duration,
        otherwise the events making up the figure.
    """

    if spec is None or spec.kind is OrnamentKind.NONE:
        return [note]
    kind = spec.kind
    start, length = note.start_tick, note.duration_tick

    if kind is OrnamentKind.PERCUSSIVE:
        return [replace(note, velocity=min(127, int(note.velocity * 1.15)))]
    if kind is OrnamentKind.OCTAVE_REPEAT:
        return [note, replace(note, octave=note.octave + 1)]
    if spec.target_degree is None:
        return [note]

    pc, octave = _neighbour(scale, degree, note, spec.target_degree)
    aux = replace(note, pitch_class=pc, octave=octave)

    if kind in (OrnamentKind.TRILL, OrnamentKind.JAZZ_TRILL):
        if length < 2 * SIXTEENTH:
            return [note]
        events = []
        offset = 0
        while offset < length:
            part = min(SIXTEENTH, length - offset)
            voice = note if (offset // SIXTEENTH) % 2 == 0 else aux
            events.append(replace(voice, start_tick=start + offset, duration_tick=part))
            offset += part
        return events

    if kind is OrnamentKind.MORDENT:
        if length <= 2 * SIXTEENTH:
            return [note]
        return [
            replace(note, duration_tick=SIXTEENTH),
            replace(aux, start_tick=start + SIXTEENTH, duration_tick=SIXTEENTH),
            replace(note, start_tick=start + 2 * SIXTEENTH, duration_tick=length - 2 * SIXTEENTH),
        ]

    if kind is OrnamentKind.APPOGGIATURA:
        half = length // 2
        if half == 0:
            return [note]
        return [
            replace(aux, duration_tick=half),
            replace(note, start_tick=start + half, duration_tick=length - half),
        ]

    if kind in (OrnamentKind.GLISSANDO, OrnamentKind.SLIDE):
        step = 1 if degree > spec.target_degree else -1
        path = list(range(spec.target_degree, degree, step))
        grace_total = len(path) * GRACE_TICKS
        if not path or grace_total >= length:
            return [note]
        events = []
        for i, grace in enumerate(path):
            g_pc, g_octave = _neighbour(scale, degree, note, grace)
            events.append(
                replace(
                    note,
                    pitch_class=g_pc,
                    octave=g_octave,
                    start_tick=start + i * GRACE_TICKS,
                    duration_tick=GRACE_TICKS,
                )
            )
        events.append(replace(note, start_tick=start + grace_total, duration_tick=length - grace_total))
        return events

    if kind is OrnamentKind.POWER_CHORD:
        return [note, aux]

    return [note]


@dataclass
class SectionPlan:
    """Adjusted parameters, onset pattern and contour of one section type."""

    params: MelodyParameters
    rhythm: List[int]
    contour: List[int]


@dataclass
class _CompositionContext:
    rng: random.Random
    progression: Sequence[DegreeTriple]
    motif: MotifState = field(default_factory=MotifState)
    chord_index: int = 0
    chord: Tuple[int, ...] = ()
    previous: List[NoteEvent] = field(default_factory=list)
    plans: Dict[tuple, SectionPlan] = field(default_factory=dict)

    def plan_for(self, kind: SectionKind, params: MelodyParameters) -> SectionPlan:
        """Section plan for ``kind``; repeated sections reuse their first plan."""

        key = (kind, params.style, params.emotion, params.scale, params.octave)
        if key not in self.plans:
            adjusted = adjust_for_section(params, kind, self.rng)
            self.plans[key] = SectionPlan(
                adjusted,
                section_rhythm(kind, adjusted.style, adjusted.emotion, self.rng),
                section_contour(kind, adjusted.emotion, self.rng),
            )
        return self.plans[key]

    def update_chord(self, beat: int, phrase_len: int) -> None:
        """Move the chord cursor; the chord changes twice per phrase."""

        if not self.progression:
            return
        beats_per_chord = max(1, phrase_len // 2)
        self.chord_index = (beat // beats_per_chord) % len(self.progression)
        self.chord = tuple(self.progression[self.chord_index])


def _clamp(degree: int, scale_size: int) -> int:
    return max(0, min(scale_size - 1, degree))


class MelodyComposer:
    """Compose melodies from :class:`MelodyParameters`.

    ``config`` supplies the fallback octave and tempo used when the
    parameters carry values the renderer cannot use.
    """

    def __init__(self, config: Optional[MidiConfig] = None) -> None:
        self.config = config or MidiConfig()

    def _normalise(self, params: MelodyParameters) -> MelodyParameters:
        if params is None:
            raise TypeError("params must not be None")
        changes = {}
        if not 1 <= params.octave <= 9:
            logger.warning(
                "Octave %s out of range, using default %s", params.octave, self.config.default_octave
            )
            changes["octave"] = self.config.default_octave
        if params.bpm <= 0:
            logger.warning("BPM %s invalid, using default %s", params.bpm, self.config.default_bpm)
            changes["bpm"] = self.config.default_bpm
        return params.copy(**changes) if changes else params

    def compose_sections(
        self, params: MelodyParameters, rng: Optional[random.Random] = None
    ) -> Tuple[Structure, List[Tuple[Section, List[NoteEvent]]]]:
        """Compose ``params`` and return the structure with notes per section."""

        rng = rng or random.Random()
        params = self._normalise(params)
        ctx = _CompositionContext(
            rng, generate_progression(mode_for_scale(params.scale), params.emotion)
        )
        structure = select_structure(params.style, params.emotion, rng)
        phrase_len = phrase_length(params.style)
        sections = layout_sections(structure, params.bars)
        logger.debug("Structure %s over %d bars", structure.value, params.bars)

        result = []
        offset = 0
        for section in sections:
            plan = ctx.plan_for(section.kind, params)
            section_steps = section.bars * STEPS_PER_BAR
            notes: List[NoteEvent] = []
            for step in range(section_steps):
                if has_onset(step, plan.rhythm):
                    notes.extend(self._create_note(ctx, plan, step, offset, phrase_len))
            # Ornament figures may outlast the next onset.
            notes.sort(key=lambda n: n.start_tick)
            logger.debug(
                "Section %s: %d bars, %d notes", section.kind.value, section.bars, len(notes)
            )
            result.append((section, notes))
            offset += section_steps * TICKS_PER_STEP
        return structure, result

    def compose(self, params: MelodyParameters, rng: Optional[random.Random] = None) -> List[NoteEvent]:
        """Return the melody for ``params`` as note events ordered by onset."""
        _, sections = self.compose_sections(params, rng)
        return [note for _, notes in sections for note in notes]

    def _create_note(
        self,
        ctx: _CompositionContext,
        plan: SectionPlan,
        step: int,
        offset: int,
        phrase_len: int,
    ) -> List[NoteEvent]:
        params = plan.params
        scale = params.scale
        position = step % phrase_len
        if position == 0 or position == phrase_len // 2:
            ctx.update_chord(step, phrase_len)

        degree, spec = self._select_degree(ctx, plan, step, position, phrase_len)
        previous_octave = ctx.previous[-1].octave if ctx.previous else None
        octave = choose_octave(params.octave, degree, position, params.style, previous_octave)
        pitch_class = scale.degree(degree)
        duration = note_duration(params.style, position, position == phrase_len - 1)
        velocity = note_velocity(
            params,
            position,
            phrase_len,
            [n.midi_number for n in ctx.previous[-2:]],
            pitch_class + (octave + 1) * 12,
            duration,
            ctx.rng,
        )
        note = NoteEvent(pitch_class, octave, offset + step * TICKS_PER_STEP, duration, velocity)
        ctx.previous.append(note)
        ctx.motif.advance()
        return render_ornament(note, spec, degree, scale)

    def _select_degree(
        self,
        ctx: _CompositionContext,
        plan: SectionPlan,
        step: int,
        position: int,
        phrase_len: int,
    ) -> Tuple[int, Optional[OrnamentSpec]]:
        params = plan.params
        rng = ctx.rng
        size = len(params.scale)
        emotion = params.emotion

        if position == 0:
            ctx.motif.refresh(emotion, size, rng)

        if position == 0:
            degree = STABLE_TONES.get(emotion, 0)
        elif position == phrase_len - 1:
            degree = RESOLUTION_TONES.get(emotion, 0)
        elif position == phrase_len // 2:
            degree = CLIMAX_TONES.get(emotion, 4)
        elif plan.contour and ctx.motif.position < len(plan.contour):
            degree = motif_degree(
                ctx.motif, plan.contour, params.style, emotion, position, phrase_len, size, rng
            )
        else:
            degree = basic_degree(emotion, size, rng)
        degree = _clamp(degree, size)

        if position % 4 == 0 or position == phrase_len - 1:
            degree = adapt_to_chord(degree, size, position, ctx.chord, rng)
            degree = _clamp(degree, size)

        spec = None
        if rng.random() < ORNAMENT_PROBABILITY:
            degree, spec = ornament(params.style, degree, size, position, phrase_len, rng, emotion)
            degree = _clamp(degree, size)

        if ctx.previous:
            ornamented = degree
            previous_degree = degree_of_pitch(ctx.previous[-1].pitch_class, params.scale)
            degree = enforce_coherence(
                degree, previous_degree, size, params.style, params.complexity, ctx.chord, rng
            )
            if spec is not None and spec.target_degree is not None and degree != ornamented:
                # Keep the figure's shape when coherence moved the main note.
                target = spec.target_degree + degree - ornamented
                spec = OrnamentSpec(spec.kind, target) if 0 <= target < size else None
        return degree, spec


def compose_melody(
    params: MelodyParameters, seed: Optional[int] = None, config: Optional[MidiConfig] = None
) -> List[NoteEvent]:
    """Compose a melody with a fresh ``random.Random(seed)``."""
    return MelodyComposer(config).compose(params, random.Random(seed))
