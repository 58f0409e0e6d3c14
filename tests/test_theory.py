"""Tests for scales, chords, progressions and note events."""

import importlib
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

theory = importlib.import_module("composition_engine.theory")
Scale = theory.Scale
ScaleType = theory.ScaleType


def test_major_scale_pitch_classes():
    """C major spans the white keys in order."""
    scale = Scale.create(0, ScaleType.MAJOR)
    assert scale.pitch_classes == (0, 2, 4, 5, 7, 9, 11)
    assert len(scale) == 7
    assert str(scale) == "C Major"


def test_from_name_accepts_flats_and_separators():
    """Flat spellings and separators in the type name are understood."""
    scale = Scale.from_name("Bb", "harmonic-minor")
    assert scale.root == 10
    assert scale.scale_type is ScaleType.HARMONIC_MINOR


def test_index_of_missing_pitch_returns_minus_one():
    """Pitch classes outside the scale report ``-1`` instead of raising."""
    scale = Scale.create(0, ScaleType.MAJOR)
    assert scale.index_of(1) == -1
    assert scale.index_of(7) == 4
    assert 7 in scale and 6 not in scale


def test_degree_wraps():
    """Degrees past the scale length wrap to the start."""
    scale = Scale.create(0, ScaleType.PENTATONIC)
    assert scale.degree(5) == scale.degree(0)


@pytest.mark.parametrize(
    "scale_type,major",
    [
        (ScaleType.MAJOR, True),
        (ScaleType.MINOR, False),
        (ScaleType.DORIAN, False),
        (ScaleType.MIXOLYDIAN, True),
    ],
)
def test_is_major_uses_third_degree(scale_type, major):
    """Mode detection looks at the interval to the third degree."""
    assert Scale.create(0, scale_type).is_major is major


def test_invalid_scales_rejected():
    """Bad roots and intervals raise ``ValueError``."""
    with pytest.raises(ValueError):
        Scale(12, (2, 2, 1))
    with pytest.raises(ValueError):
        Scale(0, ())
    with pytest.raises(ValueError):
        Scale(0, (2, 0, 3))
    with pytest.raises(ValueError):
        ScaleType.parse("lydian")


@pytest.mark.parametrize(
    "degree,name",
    [(0, "C"), (1, "Dm"), (3, "F"), (4, "G"), (5, "Am"), (6, "Bdim"), (7, "C")],
)
def test_chord_from_degree_in_c_major(degree, name):
    """Triads stacked on C major degrees carry the expected quality."""
    scale = Scale.create(0, ScaleType.MAJOR)
    assert str(theory.chord_from_degree(scale, degree)) == name


def test_progression_lengths_must_match():
    """Chords and durations stay paired."""
    chord = theory.Chord(0, 4, 7)
    with pytest.raises(ValueError):
        theory.ChordProgression([chord, chord], [4])
    progression = theory.ChordProgression()
    progression.append(chord, 4)
    progression.append(chord, 2)
    assert len(progression.chords) == len(progression.durations) == 2
    assert progression.total_beats == 6


@pytest.mark.parametrize(
    "args",
    [
        (12, 4, 0, 120, 80),
        (0, 4, -1, 120, 80),
        (0, 4, 0, 0, 80),
        (0, 4, 0, 120, 128),
        (0, 4, 0, 120, -1),
    ],
)
def test_note_event_validation(args):
    """Out of range note fields are rejected at construction."""
    with pytest.raises(ValueError):
        theory.NoteEvent(*args)


def test_note_event_properties():
    """MIDI number follows scientific pitch notation."""
    note = theory.NoteEvent(9, 4, 240, 120, 90)
    assert note.midi_number == 69
    assert note.end_tick == 360
    assert note.name == "A4"
