"""Composition engine library.

This package composes melodies and accompaniments from a small set of
creative parameters: a style, an emotion and a tempo.  A typical workflow
builds :class:`MelodyParameters`, hands them to :func:`compose_melody` and
writes the result with :func:`create_midi_file`.  The command line wraps
the same calls.

Underlying Algorithm
--------------------
A piece is laid out as a section structure (AABA, verse/chorus, rondo and
so on).  Each section chooses a sixteenth-note onset pattern and a melodic
contour.  Notes come from phrase-role tone tables or from a repeating
motif shaped by the contour, are pulled onto the current chord on selected
beats, occasionally ornamented and finally smoothed against the previous
note::

    structure = select_structure(style, emotion)
    for section in layout_sections(structure, bars):
        rhythm, contour = plan(section)
        for step in section_steps:
            if onset(step, rhythm):
                degree = choose_degree(role, motif, contour)
                degree = adapt_to_chord(degree)
                degree, ornament = maybe_ornament(degree)
                degree = enforce_coherence(degree, previous)
                emit(degree, octave, duration, velocity, ornament)

The chord analyzer works the other way round and derives one triad per bar
from an existing melody; the accompaniment generator voices a progression
with style-specific block, arpeggio or rhythmic patterns.
"""

from __future__ import annotations

from .accompaniment import AccompanimentGenerator
from .chord_analyzer import ChordAnalyzer, analyze
from .composer import MelodyComposer, compose_melody
from .config import MidiConfig, load_config, save_config
from .harmony_generator import Mode, generate_progression, parse_progression, progression_for
from .midi_io import create_midi_file, read_melody
from .parameters import Emotion, MelodyParameters, Style
from .theory import (
    TICKS_PER_QUARTER,
    Chord,
    ChordProgression,
    NoteEvent,
    Scale,
    ScaleType,
)

__version__ = "0.1.0"

__all__ = [
    "AccompanimentGenerator",
    "ChordAnalyzer",
    "analyze",
    "MelodyComposer",
    "compose_melody",
    "MidiConfig",
    "load_config",
    "save_config",
    "Mode",
    "generate_progression",
    "progression_for",
    "parse_progression",
    "create_midi_file",
    "read_melody",
    "Emotion",
    "MelodyParameters",
    "Style",
    "TICKS_PER_QUARTER",
    "Chord",
    "ChordProgression",
    "NoteEvent",
    "Scale",
    "ScaleType",
    "run_cli",
    "main",
]


def run_cli():
    from .cli import run_cli as _run_cli
    _run_cli()


def main():
    from .cli import main as _main
    _main()
