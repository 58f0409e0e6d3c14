"""Tests for the structured melody composer."""

import importlib
import logging
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

composer = importlib.import_module("composition_engine.composer")
parameters = importlib.import_module("composition_engine.parameters")
planner = importlib.import_module("composition_engine.phrase_planner")
orn = importlib.import_module("composition_engine.ornamentation")
theory = importlib.import_module("composition_engine.theory")
Style = parameters.Style
Emotion = parameters.Emotion
Kind = orn.OrnamentKind

BAR_TICKS = theory.STEPS_PER_BAR * theory.TICKS_PER_STEP
C_MAJOR = theory.Scale.create(0, theory.ScaleType.MAJOR)


@pytest.mark.parametrize("style", list(Style))
@pytest.mark.parametrize("emotion", [Emotion.HAPPY, Emotion.SAD, Emotion.MYSTERIOUS, Emotion.STANDARD])
def test_melody_note_bounds(style, emotion):
    """Every composed note has a valid velocity, duration and onset."""
    params = parameters.MelodyParameters(style, emotion, bars=4)
    notes = composer.MelodyComposer().compose(params, random.Random(1))
    assert notes
    for note in notes:
        assert 0 <= note.velocity <= 127
        assert note.duration_tick > 0
        assert note.start_tick >= 0
    # Figures on the final note may start inside its half-note tail.
    assert max(n.start_tick for n in notes) < 4 * BAR_TICKS + 480


def test_notes_are_ordered_by_onset():
    """The flattened melody is sorted by start tick."""
    params = parameters.MelodyParameters("Classical", "Romantic", bars=8)
    starts = [n.start_tick for n in composer.compose_melody(params, seed=5)]
    assert starts == sorted(starts)


def test_same_seed_same_melody():
    """A seeded ``random.Random`` makes composition reproducible."""
    params = parameters.MelodyParameters("Jazz", "Energetic", bars=6)
    first = composer.MelodyComposer().compose(params, random.Random(42))
    second = composer.MelodyComposer().compose(params, random.Random(42))
    assert first == second


def test_pop_happy_end_to_end():
    """Pop/Happy over eight bars uses C major, octave 5 and an 8-step phrase."""
    params = parameters.MelodyParameters(Style.POP, Emotion.HAPPY, bpm=120, bars=8)
    assert str(params.scale) == "C Major"
    assert params.octave == 5
    assert planner.phrase_length(params.style) == 8
    seen = set()
    for seed in range(30):
        structure, sections = composer.MelodyComposer().compose_sections(params, random.Random(seed))
        seen.add(structure)
        assert sum(section.bars for section, _ in sections) == 8
    assert seen == {planner.Structure.AABA, planner.Structure.VERSE_CHORUS}


def test_melody_pitches_come_from_the_scale():
    """Plain notes of a major-key piece stay in its scale."""
    params = parameters.MelodyParameters("Pop", "Calm", bars=4, scale=C_MAJOR)
    in_scale = [n.pitch_class in C_MAJOR for n in composer.compose_melody(params, seed=9)]
    # Section variations never replace the scale outside theme/variation form.
    assert all(in_scale)


def test_invalid_octave_and_tempo_fall_back(caplog):
    """Out of range octave and tempo use the configured defaults."""
    params = parameters.MelodyParameters("Pop", "Happy", bpm=0, bars=2, octave=12)
    with caplog.at_level(logging.WARNING):
        notes = composer.MelodyComposer().compose(params, random.Random(0))
    assert "out of range" in caplog.text
    assert "BPM" in caplog.text
    assert max(n.octave for n in notes) <= 6


def test_none_parameters_rejected():
    """Composing without parameters is a caller error."""
    with pytest.raises(TypeError):
        composer.MelodyComposer().compose(None)


def _note(duration=240):
    return theory.NoteEvent(0, 4, 0, duration, 80)


def test_render_trill_alternates_sixteenths():
    """A trill alternates main and upper note every sixteenth."""
    events = composer.render_ornament(_note(), orn.OrnamentSpec(Kind.TRILL, 1), 0, C_MAJOR)
    assert [(e.pitch_class, e.start_tick, e.duration_tick) for e in events] == [
        (0, 0, 60),
        (2, 60, 60),
        (0, 120, 60),
        (2, 180, 60),
    ]


def test_short_trill_is_not_rendered():
    """Notes shorter than two sixteenths keep their plain form."""
    note = _note(60)
    assert composer.render_ornament(note, orn.OrnamentSpec(Kind.TRILL, 1), 0, C_MAJOR) == [note]


def test_render_mordent():
    """A mordent plays main, neighbour, then the sustained main note."""
    events = composer.render_ornament(_note(), orn.OrnamentSpec(Kind.MORDENT, 1), 0, C_MAJOR)
    assert [(e.pitch_class, e.start_tick, e.duration_tick) for e in events] == [
        (0, 0, 60),
        (2, 60, 60),
        (0, 120, 120),
    ]


def test_render_appoggiatura_resolves():
    """The leaning note takes the first half and resolves to the main note."""
    events = composer.render_ornament(_note(), orn.OrnamentSpec(Kind.APPOGGIATURA, 1), 0, C_MAJOR)
    assert [(e.pitch_class, e.start_tick, e.duration_tick) for e in events] == [(2, 0, 120), (0, 120, 120)]


def test_render_glissando_steps_towards_main():
    """Glissando grace notes walk from the start degree to the main note."""
    events = composer.render_ornament(_note(), orn.OrnamentSpec(Kind.GLISSANDO, 2), 0, C_MAJOR)
    assert [(e.pitch_class, e.start_tick, e.duration_tick) for e in events] == [
        (4, 0, 30),
        (2, 30, 30),
        (0, 60, 180),
    ]


def test_render_power_chord_and_octave_repeat():
    """Power chords add the fifth; octave repeats add the octave above."""
    power = composer.render_ornament(_note(), orn.OrnamentSpec(Kind.POWER_CHORD, 4), 0, C_MAJOR)
    assert [(e.pitch_class, e.octave, e.start_tick) for e in power] == [(0, 4, 0), (7, 4, 0)]
    octave = composer.render_ornament(_note(), orn.OrnamentSpec(Kind.OCTAVE_REPEAT), 0, C_MAJOR)
    assert [e.octave for e in octave] == [4, 5]


def test_render_percussive_accents():
    """Percussive ornaments only raise the velocity."""
    (event,) = composer.render_ornament(_note(), orn.OrnamentSpec(Kind.PERCUSSIVE), 0, C_MAJOR)
    assert event.velocity == 92


def test_auxiliary_uses_absolute_span():
    """Auxiliary notes sit the summed scale steps away from the main note."""
    events = composer.render_ornament(
        theory.NoteEvent(0, 4, 0, 240, 80), orn.OrnamentSpec(Kind.APPOGGIATURA, 6), 0, C_MAJOR
    )
    # Degree 6 above the tonic is B4.
    assert (events[0].pitch_class, events[0].octave) == (11, 4)
