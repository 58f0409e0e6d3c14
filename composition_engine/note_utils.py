"""Conversions between note names, pitch classes and MIDI numbers.

The generators work with integer pitch classes while users, files and the
command line speak in note names (``"F#"``, ``"Bb4"``) or MIDI numbers.  The
helpers here translate between those forms and raise ``ValueError`` with a
descriptive message whenever the input cannot be represented.

Example
-------
>>> from composition_engine.note_utils import to_midi, from_midi
>>> to_midi(0, 4)
60
>>> from_midi(61)
(1, 4)
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Tuple

from .theory import NOTE_TO_SEMITONE, NOTES

__all__ = ["note_name", "parse_pitch_class", "parse_note", "to_midi", "from_midi"]


def note_name(pitch_class: int) -> str:
    """Return the sharp spelling of ``pitch_class`` (taken modulo 12)."""
    return NOTES[pitch_class % 12]


@lru_cache(maxsize=None)
def parse_pitch_class(name: str) -> int:
    """Convert a note name without octave (``"Db"``, ``"c#"``) to a pitch class.

    Raises
    ------
    ValueError
        If ``name`` is not a recognised spelling.
    """

    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Note name must not be empty")
    cleaned = cleaned[0].upper() + cleaned[1:].lower()
    try:
        return NOTE_TO_SEMITONE[cleaned]
    except KeyError:
        logging.error("Unknown note name: %s", name)
        raise ValueError(f"Unknown note name: {name}") from None


def parse_note(note: str) -> Tuple[int, int]:
    """Split ``note`` such as ``"C#4"`` into ``(pitch_class, octave)``."""

    match = re.fullmatch(r"\s*([A-Ga-g][#b]?)(-?\d+)\s*", note)
    if not match:
        logging.error("Invalid note format: %s", note)
        raise ValueError(f"Invalid note format: {note}")
    name, octave = match.groups()
    return parse_pitch_class(name), int(octave)


def to_midi(pitch_class: int, octave: int) -> int:
    """Return the MIDI number for ``pitch_class`` in ``octave`` (C4 == 60).

    Raises
    ------
    ValueError
        If the resulting number falls outside ``0-127``.
    """

    midi_val = pitch_class % 12 + (octave + 1) * 12
    if not 0 <= midi_val <= 127:
        logging.error("MIDI value out of range: %s%d -> %d", note_name(pitch_class), octave, midi_val)
        raise ValueError(
            f"Computed MIDI value {midi_val} out of range 0-127 for "
            f"{note_name(pitch_class)}{octave}"
        )
    return midi_val


def from_midi(midi_note: int) -> Tuple[int, int]:
    """Return ``(pitch_class, octave)`` for a MIDI note number."""

    if not 0 <= midi_note <= 127:
        raise ValueError(f"MIDI note {midi_note} out of range 0-127")
    return midi_note % 12, midi_note // 12 - 1
