"""Accompaniment patterns for a chord progression.

Every chord of a :class:`~composition_engine.theory.ChordProgression` is
voiced with one base pattern chosen by style:

* ``arpeggio`` cycles the chord tones in eighth notes,
* ``block`` sounds all chord tones together for the whole chord,
* ``rhythmic`` walks a table of ``(ticks, velocity, play_chord, play_bass)``
  steps and draws its bass notes from a per-style bass line.

Style elements are layered on top once per chord: walking bass and
extensions for Jazz, blue notes for Blues, low percussion for Rock, high
fills and stabs for Electronic, a pedal tone with grace figures for
Classical and pickup notes for Pop.

Example
-------
>>> gen = AccompanimentGenerator()
>>> params = MelodyParameters("Pop", "Happy", bars=4)
>>> notes = gen.generate(progression_for(params), params, random.Random(3))
>>> min(n.start_tick for n in notes)
0
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from .parameters import Emotion, MelodyParameters, Style
from .theory import TICKS_PER_QUARTER, Chord, ChordProgression, NoteEvent

__all__ = [
    "PatternKind",
    "PATTERN_FOR_STYLE",
    "BASS_PATTERNS",
    "RHYTHM_PATTERNS",
    "bass_pattern",
    "rhythm_pattern",
    "seventh_pitch_class",
    "blue_notes",
    "arpeggio_pattern",
    "block_pattern",
    "rhythmic_pattern",
    "AccompanimentGenerator",
]

logger = logging.getLogger(__name__)

BassStep = Tuple[int, int]
RhythmStep = Tuple[int, int, bool, bool]


class PatternKind(Enum):
    ARPEGGIO = "arpeggio"
    BLOCK = "block"
    RHYTHMIC = "rhythmic"


PATTERN_FOR_STYLE: Mapping[Style, PatternKind] = MappingProxyType(
    {
        Style.POP: PatternKind.BLOCK,
        Style.ROCK: PatternKind.RHYTHMIC,
        Style.JAZZ: PatternKind.ARPEGGIO,
        Style.CLASSICAL: PatternKind.ARPEGGIO,
        Style.ELECTRONIC: PatternKind.RHYTHMIC,
        Style.BLUES: PatternKind.RHYTHMIC,
    }
)

# (ticks, semitones above the chord root)
BASS_PATTERNS: Mapping[Style, Tuple[BassStep, ...]] = MappingProxyType(
    {
        Style.ROCK: ((480, 0), (240, 0), (240, 7)),
        Style.POP: ((360, 0), (360, 7), (360, 0), (360, 4)),
        Style.BLUES: ((180, 0), (180, 4), (180, 7), (180, 2), (180, 4), (180, 7)),
        Style.JAZZ: tuple((120, offset) for offset in (0, 2, 4, 5, 7, 9, 11, 0)),
        Style.ELECTRONIC: ((240, 0), (240, 0), (240, 7), (240, 7)),
        Style.CLASSICAL: ((960, 0),),
    }
)
_DEFAULT_BASS: Tuple[BassStep, ...] = ((480, 0),)

# Keys with ``None`` as emotion apply to every emotion of the style.
RHYTHM_PATTERNS: Mapping[Tuple[Style, Optional[Emotion]], Tuple[RhythmStep, ...]] = MappingProxyType(
    {
        (Style.ROCK, Emotion.ENERGETIC): (
            (120, 90, True, True),
            (120, 70, False, False),
            (120, 80, True, False),
            (120, 60, False, False),
        ),
        (Style.ROCK, None): (
            (240, 85, True, True),
            (240, 75, False, False),
        ),
        (Style.POP, Emotion.HAPPY): (
            (180, 80, True, True),
            (180, 70, False, False),
            (180, 75, True, False),
            (180, 65, False, False),
        ),
        (Style.POP, Emotion.SAD): (
            (240, 70, True, True),
            (240, 60, False, False),
            (240, 65, True, False),
            (240, 55, False, False),
        ),
        (Style.ELECTRONIC, None): (
            (120, 95, True, True),
            (120, 0, False, False),
            (120, 85, False, True),
            (120, 0, False, False),
            (120, 90, True, False),
            (120, 0, False, False),
        ),
        (Style.BLUES, None): (
            (180, 75, True, True),
            (180, 65, False, False),
            (180, 70, True, False),
            (180, 60, False, False),
            (180, 68, False, True),
            (180, 58, False, False),
        ),
        (Style.JAZZ, None): (
            (120, 70, True, True),
            (120, 60, False, False),
            (120, 65, False, True),
            (120, 55, True, False),
            (120, 63, False, False),
            (120, 58, True, True),
        ),
    }
)
_DEFAULT_RHYTHM: Tuple[RhythmStep, ...] = (
    (240, 80, True, True),
    (240, 70, False, False),
)

FILLER_PROBABILITY = 0.3


def bass_pattern(style: Style) -> Tuple[BassStep, ...]:
    return BASS_PATTERNS.get(style, _DEFAULT_BASS)


def rhythm_pattern(style: Style, emotion: Emotion) -> Tuple[RhythmStep, ...]:
    """Steps for ``style`` and ``emotion``; the style wide row is the fallback."""
    pattern = RHYTHM_PATTERNS.get((style, emotion))
    if pattern is None:
        pattern = RHYTHM_PATTERNS.get((style, None), _DEFAULT_RHYTHM)
    return pattern


def seventh_pitch_class(root: int, params: MelodyParameters) -> Optional[int]:
    """Scale tone six degrees above ``root`` or ``None`` when ``root`` is not diatonic."""
    scale = params.scale
    index = scale.index_of(root)
    if index < 0:
        return None
    return scale.degree((index + 6) % len(scale))


def blue_notes(root: int) -> List[int]:
    """Flat third, flat fifth and flat seventh above ``root``."""
    return [(root + 3) % 12, (root + 6) % 12, (root + 10) % 12]


def _note(pitch_class: int, octave: int, start: int, duration: int, velocity: int) -> NoteEvent:
    return NoteEvent(pitch_class % 12, max(0, octave), start, duration, velocity)


def arpeggio_pattern(chord: Chord, params: MelodyParameters, duration: int, start_tick: int) -> List[NoteEvent]:
    """Chord tones in turn, one eighth note each, an octave below the melody."""

    tones = chord.notes()
    step = 120
    notes = []
    for offset in range(0, duration * TICKS_PER_QUARTER, step):
        pitch = tones[(offset // step) % len(tones)]
        notes.append(_note(pitch, params.octave - 1, start_tick + offset, step, 70))
    return notes


def block_pattern(chord: Chord, params: MelodyParameters, duration: int, start_tick: int) -> List[NoteEvent]:
    """All distinct chord tones together for the full chord duration."""

    notes = []
    for pitch in dict.fromkeys(chord.notes()):
        notes.append(
            _note(pitch, params.octave - 1, start_tick, duration * TICKS_PER_QUARTER, 60)
        )
    return notes


def rhythmic_pattern(
    chord: Chord,
    params: MelodyParameters,
    duration: int,
    start_tick: int,
    rng: random.Random,
) -> List[NoteEvent]:
    """Walk the style's rhythm table across the chord.

    Steps flagged ``play_bass`` take the next note of the bass line two
    octaves down; steps flagged ``play_chord`` sound the triad.  Other
    steps sound a single filler note with probability 0.3, either the
    pending bass note or an alternation of root and fifth.  Steps with a
    table velocity of zero are rests.
    """

    steps = rhythm_pattern(params.style, params.emotion)
    bass = bass_pattern(params.style)
    end = start_tick + duration * TICKS_PER_QUARTER
    octave = params.octave
    notes: List[NoteEvent] = []

    time = start_tick
    index = 0
    bass_index = 0
    while time < end:
        step_ticks, velocity, play_chord, play_bass = steps[index % len(steps)]
        if play_bass:
            bass_ticks, bass_offset = bass[bass_index % len(bass)]
            notes.append(
                _note(
                    chord.root + bass_offset,
                    octave - 2,
                    time,
                    min(step_ticks * 2, bass_ticks),
                    int(velocity * 0.8),
                )
            )
            bass_index += 1
        if play_chord:
            for pitch in chord.notes():
                notes.append(_note(pitch, octave - 1, time, step_ticks, velocity))
        elif velocity > 0 and rng.random() < FILLER_PROBABILITY:
            if rng.random() < 0.5:
                pitch = chord.root + bass[bass_index % len(bass)][1]
            else:
                pitch = chord.root if index % 2 == 0 else chord.fifth
            notes.append(_note(pitch, octave - 1, time, step_ticks, int(velocity * 0.6)))
        time += step_ticks
        index += 1
    return notes


class AccompanimentGenerator:
    """Voice a chord progression as accompaniment notes."""

    def generate(
        self,
        progression: ChordProgression,
        params: MelodyParameters,
        rng: Optional[random.Random] = None,
    ) -> List[NoteEvent]:
        """Return accompaniment notes for every chord of ``progression``.

        Chords are placed back to back, each lasting its duration in beats.
        A ``None`` chord leaves its slot silent.  A chord whose pattern
        cannot be built is logged and skipped so the rest of the
        progression is still voiced.

        Raises
        ------
        TypeError
            If ``progression`` or ``params`` is ``None``.
        ValueError
            If the progression has no chords or no durations.
        """

        if progression is None:
            raise TypeError("progression must not be None")
        if params is None:
            raise TypeError("params must not be None")
        if not progression.chords or not progression.durations:
            logger.error("Cannot accompany an empty chord progression")
            raise ValueError("progression must contain at least one chord and duration")
        rng = rng or random.Random()

        logger.debug(
            "Accompanying %d chords for %s/%s",
            len(progression.chords),
            params.style.value,
            params.emotion.value,
        )
        accompaniment: List[NoteEvent] = []
        current = 0
        for index, (chord, duration) in enumerate(zip(progression.chords, progression.durations)):
            if chord is None:
                logger.warning("Chord %d is missing; leaving it silent", index)
            else:
                try:
                    notes = self.generate_chord_pattern(chord, params, duration, current, rng)
                    self.add_style_elements(notes, chord, params, current, duration, rng)
                except ValueError:
                    logger.exception("Skipping chord %d (%s)", index, chord)
                else:
                    accompaniment.extend(notes)
            current += max(duration, 0) * TICKS_PER_QUARTER
        logger.debug("Generated %d accompaniment notes over %d ticks", len(accompaniment), current)
        return accompaniment

    def generate_chord_pattern(
        self,
        chord: Chord,
        params: MelodyParameters,
        duration: int,
        start_tick: int,
        rng: Optional[random.Random] = None,
    ) -> List[NoteEvent]:
        """Base pattern for one chord, without style elements.

        Parameters
        ----------
        chord:
            Triad to voice.
        params:
            Supplies style, emotion and the melody octave.
        duration:
            Length of the chord in beats; must be positive.
        start_tick:
            Absolute onset of the chord; must not be negative.
        rng:
            Source of randomness for the rhythmic filler notes.
        """

        if chord is None:
            raise TypeError("chord must not be None")
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        if start_tick < 0:
            raise ValueError(f"start_tick must not be negative, got {start_tick}")
        rng = rng or random.Random()

        kind = PATTERN_FOR_STYLE.get(params.style, PatternKind.BLOCK)
        if kind is PatternKind.ARPEGGIO:
            return arpeggio_pattern(chord, params, duration, start_tick)
        if kind is PatternKind.RHYTHMIC:
            return rhythmic_pattern(chord, params, duration, start_tick, rng)
        return block_pattern(chord, params, duration, start_tick)

    def add_style_elements(
        self,
        notes: List[NoteEvent],
        chord: Chord,
        params: MelodyParameters,
        start_tick: int,
        duration: int,
        rng: random.Random,
    ) -> None:
        """Append the style's idiomatic figures for one chord to ``notes``."""

        handler = {
            Style.ROCK: _rock_percussion,
            Style.ELECTRONIC: _electronic_elements,
            Style.JAZZ: _jazz_elements,
            Style.BLUES: _blues_elements,
            Style.CLASSICAL: _classical_elements,
            Style.POP: _pop_elements,
        }.get(params.style)
        if handler is not None:
            handler(notes, chord, params, start_tick, duration, rng)


def _pop_elements(notes, chord, params, start, duration, rng) -> None:
    # Pickup an eighth before each later downbeat of the chord.
    for time in range(start + 480, start + duration * TICKS_PER_QUARTER, 480):
        if rng.random() < 0.6:
            notes.append(_note(chord.root, params.octave, time - 60, 120, 70))


def _rock_percussion(notes, chord, params, start, duration, rng) -> None:
    for time in range(start, start + duration * TICKS_PER_QUARTER, 120):
        strong = (time - start) % 480 == 0
        notes.append(
            _note(
                chord.root if strong else chord.fifth,
                params.octave - 3,
                time,
                60,
                100 if strong else 80,
            )
        )


def _electronic_elements(notes, chord, params, start, duration, rng) -> None:
    end = start + duration * TICKS_PER_QUARTER
    tones = chord.notes()
    for time in range(start + 60, end, 60):
        if rng.random() < 0.4:
            pitch = tones[((time - start) // 60) % len(tones)]
            notes.append(_note(pitch, params.octave + 1, time, 30, 60))
    for time in range(start + 240, end, 480):
        notes.append(_note(chord.root, params.octave + 2, time, 60, 50))


def _classical_elements(notes, chord, params, start, duration, rng) -> None:
    total = duration * TICKS_PER_QUARTER
    notes.append(_note(chord.root, params.octave - 2, start, total, 70))
    for time in range(start + 120, start + total, 240):
        if rng.random() < 0.3:
            for i, pitch in enumerate((chord.root, chord.third, chord.fifth)):
                notes.append(_note(pitch, params.octave, time + i * 30, 60, 65))


def _walking_bass(notes, line, octave, start, total, velocity) -> None:
    for time in range(start, start + total, 120):
        pitch = line[((time - start) // 120) % len(line)]
        notes.append(_note(pitch, octave, time, 120, velocity))


def _jazz_elements(notes, chord, params, start, duration, rng) -> None:
    total = duration * TICKS_PER_QUARTER
    seventh = seventh_pitch_class(chord.root, params)
    if seventh is not None:
        notes.append(_note(seventh, params.octave - 1, start + 240, 240, 70))

    root = chord.root
    line = [root, root + 2, chord.third, root + 5, chord.fifth, root + 7, root + 10, root + 9]
    _walking_bass(notes, line, params.octave - 2, start, total, 75)

    # Ninth, eleventh and thirteenth spread over the chord.
    extensions = [(root + 2) % 12, (root + 5) % 12, (root + 9) % 12]
    added = 0
    for pitch in extensions:
        if rng.random() < 0.4:
            time = start + added * total // (len(extensions) + 1) + 120
            time = min(time, start + total - 180)
            notes.append(_note(pitch, params.octave, time, 180, 60))
            added += 1
    if duration >= 2 and rng.random() < 0.5:
        late = extensions[rng.randrange(len(extensions))]
        notes.append(_note(late, params.octave, start + total * 3 // 4, 240, 55))


def _blues_elements(notes, chord, params, start, duration, rng) -> None:
    for pitch in blue_notes(chord.root):
        if rng.random() < 0.5:
            notes.append(_note(pitch, params.octave - 1, start + 180, 90, 65))
    root = chord.root
    line = [root, root + 4, chord.fifth, root + 7]
    _walking_bass(notes, line, params.octave - 2, start, duration * TICKS_PER_QUARTER, 70)
