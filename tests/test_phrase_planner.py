"""Tests for section structures, section parameters and contours."""

import importlib
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

planner = importlib.import_module("composition_engine.phrase_planner")
parameters = importlib.import_module("composition_engine.parameters")
theory = importlib.import_module("composition_engine.theory")
Structure = planner.Structure
Kind = planner.SectionKind
Style = parameters.Style
Emotion = parameters.Emotion


def test_aaba_over_eight_bars():
    """Eight bars of AABA give four two-bar sections."""
    sections = planner.layout_sections(Structure.AABA, 8)
    assert [(s.kind, s.bars) for s in sections] == [
        (Kind.A, 2),
        (Kind.A, 2),
        (Kind.B, 2),
        (Kind.A, 2),
    ]


@pytest.mark.parametrize("structure", list(Structure))
@pytest.mark.parametrize("bars", [1, 3, 8, 12, 17])
def test_layout_covers_all_bars(structure, bars):
    """Section lengths always add up to the requested bar count."""
    sections = planner.layout_sections(structure, bars)
    assert sum(s.bars for s in sections) == bars
    assert all(s.bars > 0 for s in sections)


def test_layout_rejects_non_positive_bars():
    """Zero bars cannot be laid out."""
    with pytest.raises(ValueError):
        planner.layout_sections(Structure.ABAB, 0)


def test_pop_structures():
    """Pop pieces are AABA or verse/chorus; jazz is always AABA."""
    rng = random.Random(0)
    seen = {planner.select_structure(Style.POP, Emotion.HAPPY, rng) for _ in range(200)}
    assert seen == {Structure.AABA, Structure.VERSE_CHORUS}
    assert planner.select_structure(Style.JAZZ, Emotion.SAD, rng) is Structure.AABA


@pytest.mark.parametrize("style,length", [(Style.POP, 8), (Style.CLASSICAL, 16), (Style.JAZZ, 12), (Style.ELECTRONIC, 4)])
def test_phrase_length(style, length):
    """Phrase lengths are fixed per style."""
    assert planner.phrase_length(style) == length


def test_adjust_for_section_pins_scale_and_register():
    """Sections change the mood but keep the tonal centre and register."""
    params = parameters.MelodyParameters("Pop", "Happy", bars=8)
    chorus = planner.adjust_for_section(params, Kind.CHORUS)
    assert chorus.emotion is Emotion.ENERGETIC
    assert chorus.scale == params.scale
    assert chorus.octave == params.octave
    assert chorus.bars == 8
    intro = planner.adjust_for_section(params, Kind.INTRO)
    assert intro.emotion is Emotion.CALM
    assert intro.scale == params.scale


def test_variations_swap_style_emotion_and_scale():
    """Theme variations change style, emotion and scale in turn."""
    params = parameters.MelodyParameters("Classical", "Happy", bars=8)
    assert planner.adjust_for_section(params, Kind.VARIATION_1).style is Style.JAZZ
    assert planner.adjust_for_section(params, Kind.VARIATION_2).emotion is Emotion.ROMANTIC
    third = planner.adjust_for_section(params, Kind.VARIATION_3, random.Random(1))
    assert third.scale != params.scale
    assert third.scale.root == params.scale.root


def test_variation_scale_modal_neighbours():
    """Major turns Mixolydian and minor turns Dorian."""
    rng = random.Random(0)
    major = theory.Scale.create(0, theory.ScaleType.MAJOR)
    minor = theory.Scale.create(9, theory.ScaleType.MINOR)
    assert planner.variation_scale(major, rng).scale_type is theory.ScaleType.MIXOLYDIAN
    assert planner.variation_scale(minor, rng).scale_type is theory.ScaleType.DORIAN


def test_variation_scale_keeps_intervals_positive():
    """Random nudges keep every step between one and four semitones."""
    rng = random.Random(9)
    custom = theory.Scale(0, (2, 1, 3, 1, 2, 3))
    for _ in range(50):
        varied = planner.variation_scale(custom, rng)
        assert all(1 <= step <= 4 for step in varied.intervals)


def test_section_contours():
    """B sections reverse the emotion contour; variations use fixed shapes."""
    rng = random.Random(3)
    happy = planner.emotion_contour(Emotion.HAPPY)
    assert planner.section_contour(Kind.A, Emotion.HAPPY, rng) == happy
    assert planner.section_contour(Kind.B, Emotion.HAPPY, rng) == happy[::-1]
    assert planner.section_contour(Kind.VARIATION_3, Emotion.HAPPY, rng) == [7, 5, 3, 1, 0, 1, 3, 5, 7]


def test_family_contours_come_from_tables():
    """Chorus contours are drawn from the contour families."""
    rng = random.Random(12)
    known = {c for family in planner.CONTOUR_FAMILIES.values() for _, c in family}
    for _ in range(30):
        assert tuple(planner.section_contour(Kind.CHORUS, Emotion.HAPPY, rng)) in known
