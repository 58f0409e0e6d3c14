"""Tests for leap limiting, chord adaptation and octave choice."""

import importlib
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

vl = importlib.import_module("composition_engine.voice_leading")
parameters = importlib.import_module("composition_engine.parameters")
theory = importlib.import_module("composition_engine.theory")
Style = parameters.Style


def test_nearest_chord_degree_is_circular():
    """Distance wraps around the scale; the first tone wins ties."""
    assert vl.nearest_chord_degree(3, 7, (0, 2, 4)) == 2
    assert vl.nearest_chord_degree(6, 7, (0, 2, 4)) == 0
    assert vl.nearest_chord_degree(5, 7, (4, 6, 8)) == 4
    assert vl.nearest_chord_degree(3, 7, ()) == 3


def test_closest_chord_tone_direction():
    """Tones in the leap direction are preferred."""
    assert vl.closest_chord_tone(0, 1, (0, 2, 4), 7) == 2
    assert vl.closest_chord_tone(5, -1, (0, 2, 4), 7) == 4
    assert vl.closest_chord_tone(6, 1, (0, 2, 4), 7) == 4
    assert vl.closest_chord_tone(3, 1, (), 7) == -1


def test_chord_members_reduce_and_dedupe():
    """Degrees above the scale wrap and duplicates are dropped."""
    assert vl.chord_members((4, 6, 8, 11), 7) == [4, 6, 1]


def test_degree_of_pitch_falls_back_to_tonic():
    """Pitch classes outside the scale map to degree zero."""
    scale = theory.Scale.create(0, theory.ScaleType.MAJOR)
    assert vl.degree_of_pitch(7, scale) == 4
    assert vl.degree_of_pitch(1, scale) == 0


@pytest.mark.parametrize("style", list(Style))
def test_enforce_coherence_stays_in_scale(style):
    """Adjusted degrees always fall inside the scale."""
    rng = random.Random(13)
    for _ in range(300):
        degree = rng.randrange(-2, 10)
        previous = rng.choice([None, rng.randrange(7)])
        result = vl.enforce_coherence(degree, previous, 7, style, 0.3, (0, 2, 4), rng)
        assert 0 <= result < 7


def test_enforce_coherence_shrinks_large_leaps():
    """Low complexity leaps beyond the style limit are mostly reduced."""
    rng = random.Random(2)
    shrunk = sum(
        abs(vl.enforce_coherence(6, 0, 7, Style.CLASSICAL, 0.2, (), rng)) < 6
        for _ in range(200)
    )
    assert shrunk > 150


def test_smooth_transition_keeps_steps():
    """Steps of up to two degrees are left alone."""
    rng = random.Random(0)
    assert vl.smooth_transition(3, 5, 7, 0.1, 1, (0, 2, 4), rng) == 5


def test_adapt_to_chord_only_moves_non_members():
    """Chord tones are never moved."""
    rng = random.Random(6)
    for _ in range(100):
        assert vl.adapt_to_chord(2, 7, 0, (0, 2, 4), rng) == 2
        assert vl.adapt_to_chord(3, 7, 0, (0, 2, 4), rng) in (2, 3)


def test_choose_octave():
    """High degrees late in the phrase lift; large register jumps are damped."""
    assert vl.choose_octave(4, 5, 7, Style.POP) == 5
    assert vl.choose_octave(4, 2, 7, Style.POP) == 4
    assert vl.choose_octave(6, 1, 0, Style.POP, previous_octave=4) == 4
    assert vl.choose_octave(5, 1, 0, Style.POP, previous_octave=4) == 5
