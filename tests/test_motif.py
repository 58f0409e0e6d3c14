"""Tests for motif creation and variation."""

import importlib
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

motif = importlib.import_module("composition_engine.motif")
parameters = importlib.import_module("composition_engine.parameters")
Emotion = parameters.Emotion
Style = parameters.Style


@pytest.mark.parametrize("emotion", list(Emotion))
@pytest.mark.parametrize("scale_size", [5, 6, 7])
def test_motif_stays_in_scale(emotion, scale_size):
    """Motifs hold two to four degrees inside the scale."""
    rng = random.Random(11)
    for _ in range(50):
        m = motif.create_motif(emotion, scale_size, rng)
        assert 2 <= len(m) <= 4
        assert all(0 <= d < scale_size for d in m)


def test_sad_motif_starts_high_and_romantic_flows():
    """Sad motifs start on the fifth degree; Romantic follows the fixed contour."""
    rng = random.Random(2)
    assert motif.create_motif(Emotion.SAD, 7, rng)[0] == 4
    flowing = motif.create_motif(Emotion.ROMANTIC, 7, rng)
    assert flowing == list(motif.FLOWING_PATTERN[: len(flowing)])


def test_create_motif_rejects_empty_scale():
    """A scale without degrees cannot hold a motif."""
    with pytest.raises(ValueError):
        motif.create_motif(Emotion.HAPPY, 0, random.Random(0))


def test_motif_state_regenerates_after_max_repetitions():
    """The motif is reused three times and then replaced."""
    rng = random.Random(4)
    state = motif.MotifState()
    state.refresh(Emotion.HAPPY, 7, rng)
    first = list(state.motif)
    for expected in range(1, motif.MAX_REPETITIONS + 1):
        state.advance()
        state.refresh(Emotion.HAPPY, 7, rng)
        assert state.repetitions == expected
        assert state.motif == first
        assert state.position == 0
    state.refresh(Emotion.HAPPY, 7, rng)
    assert state.repetitions == 0


@pytest.mark.parametrize("style", list(Style))
def test_vary_degree_stays_in_scale(style):
    """Variations are clamped to the scale for every style."""
    rng = random.Random(8)
    for base in range(7):
        for position in range(8):
            d = motif.vary_degree(base, 7, style, Emotion.ENERGETIC, position, 8, rng)
            assert 0 <= d < 7


def test_motif_degree_uses_contour_without_motif():
    """Without a motif the contour is sampled proportionally."""
    rng = random.Random(0)
    state = motif.MotifState()
    contour = [0, 2, 4, 6]
    degrees = [
        motif.motif_degree(state, contour, Style.POP, Emotion.CALM, pos, 8, 7, rng)
        for pos in range(1, 8, 2)
    ]
    assert degrees == [0, 2, 4, 6]


def test_keep_probability_table():
    """Energetic rock varies its motif more than calm rock."""
    assert motif.motif_keep_probability(Style.ROCK, Emotion.ENERGETIC) == 0.4
    assert motif.motif_keep_probability(Style.ROCK, Emotion.CALM) == 0.6
    assert motif.motif_keep_probability(Style.BLUES, Emotion.CALM) == 0.5
