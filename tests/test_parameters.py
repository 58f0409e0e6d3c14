"""Tests for parameter parsing and derived defaults."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

parameters = importlib.import_module("composition_engine.parameters")
theory = importlib.import_module("composition_engine.theory")
MelodyParameters = parameters.MelodyParameters
Style = parameters.Style
Emotion = parameters.Emotion


def test_pop_happy_derives_c_major_octave_five():
    """Pop/Happy at 120 BPM resolves to C major in octave 5."""
    params = MelodyParameters(Style.POP, Emotion.HAPPY, bpm=120, bars=8)
    assert str(params.scale) == "C Major"
    assert params.octave == 5
    assert params.bars == 8
    assert not params.has_custom_scale and not params.has_custom_octave


def test_strings_are_parsed_case_insensitively():
    """Style and emotion names may be given as strings."""
    params = MelodyParameters("jazz", "CALM")
    assert params.style is Style.JAZZ
    assert params.emotion is Emotion.CALM


@pytest.mark.parametrize(
    "kwargs",
    [
        {"style": "Polka"},
        {"emotion": "Angry"},
        {"bars": 0},
        {"complexity": 1.5},
    ],
)
def test_invalid_parameters_raise(kwargs):
    """Unknown names and out of range values raise ``ValueError``."""
    with pytest.raises(ValueError):
        MelodyParameters(**kwargs)


@pytest.mark.parametrize(
    "style,emotion,bpm,octave",
    [
        (Style.POP, Emotion.HAPPY, 130, 6),
        (Style.CLASSICAL, Emotion.SAD, 50, 3),
        (Style.ELECTRONIC, Emotion.ENERGETIC, 128, 6),
        (Style.BLUES, Emotion.SAD, 90, 3),
        (Style.ROCK, Emotion.ENERGETIC, 140, 5),
    ],
)
def test_default_octave(style, emotion, bpm, octave):
    """Register follows tempo with a per-style shift."""
    assert parameters.default_octave(style, emotion, bpm) == octave


@pytest.mark.parametrize(
    "style,emotion,scale_type",
    [
        (Style.POP, Emotion.SAD, theory.ScaleType.MINOR),
        (Style.BLUES, Emotion.HAPPY, theory.ScaleType.BLUES),
        (Style.CLASSICAL, Emotion.SAD, theory.ScaleType.HARMONIC_MINOR),
        (Style.ROCK, Emotion.CALM, theory.ScaleType.MIXOLYDIAN),
    ],
)
def test_recommended_scale_type(style, emotion, scale_type):
    """Scale recommendations prefer style/emotion pairs, then the style."""
    assert parameters.recommend_scale_type(style, emotion) is scale_type


def test_copy_keeps_unset_fields_derived():
    """A copy with a new emotion re-derives the unset scale."""
    params = MelodyParameters("Pop", "Happy")
    sad = params.copy(emotion=Emotion.SAD)
    assert str(sad.scale) == "A Minor"
    with pytest.raises(TypeError):
        params.copy(tempo_map=[1, 2])


def test_describe_marks_origin():
    """``describe`` labels derived values as auto and overrides as custom."""
    params = MelodyParameters("Pop", "Happy", bars=4)
    text = params.describe()
    assert "Bars: 4 (custom)" in text
    assert "Scale: C Major (auto)" in text
    assert "Octave: 5 (auto)" in text


def test_tempo_alias():
    """``tempo`` reads and writes ``bpm``."""
    params = MelodyParameters()
    params.tempo = 90
    assert params.bpm == 90
