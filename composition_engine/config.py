"""MIDI rendering defaults and their JSON persistence.

:class:`MidiConfig` holds the fallbacks used when a note cannot be rendered
or read as requested: note numbers outside the configured range or outside
MIDI altogether, invalid velocities, missing tempo or octave, notes left
sounding at the end of a file and the key assumed when analysing a file
without one.  Settings are stored as JSON using either the camelCase names
(``minNoteNumber``) or the snake_case attribute names.

Example
-------
>>> cfg = load_config(Path("missing.json"))
>>> cfg.default_bpm
120
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Dict

from .note_utils import parse_pitch_class

__all__ = ["MidiConfig", "DEFAULT_CONFIG_FILE", "load_config", "save_config"]

env_path = os.environ.get("COMPOSITION_ENGINE_CONFIG")
if env_path:
    DEFAULT_CONFIG_FILE = Path(env_path).expanduser()
else:
    DEFAULT_CONFIG_FILE = Path.home() / ".composition_engine.json"


@dataclass
class MidiConfig:
    """Fallback values applied while rendering note events.

    ``default_note_number`` replaces notes in octaves MIDI cannot
    represent, ``default_duration`` (in ticks) closes notes a file never
    releases and ``default_note_name`` is the key assumed when analysing a
    file.
    """

    min_note_number: int = 0
    max_note_number: int = 127
    default_note_name: str = "C"
    default_octave: int = 4
    default_note_number: int = 60
    default_velocity: int = 64
    default_bpm: int = 120
    default_duration: int = 480

    def __post_init__(self) -> None:
        if not 0 <= self.min_note_number <= self.max_note_number <= 127:
            raise ValueError(
                "note range must satisfy 0 <= min_note_number <= max_note_number <= 127"
            )
        if not 0 <= self.default_note_number <= 127:
            raise ValueError("default_note_number must be between 0 and 127")
        parse_pitch_class(self.default_note_name)
        if not 0 <= self.default_velocity <= 127:
            raise ValueError("default_velocity must be between 0 and 127")
        if self.default_bpm <= 0:
            raise ValueError("default_bpm must be positive")
        if self.default_duration <= 0:
            raise ValueError("default_duration must be positive")

    def clamp_note(self, midi_number: int) -> int:
        """Return ``midi_number`` limited to the configured note range."""
        return max(self.min_note_number, min(self.max_note_number, midi_number))

    def note_number(self, pitch_class: int, octave: int) -> int:
        """Note number to write for ``pitch_class`` in ``octave``.

        Octaves MIDI cannot represent (outside -1 to 9) give
        ``default_note_number``; the result is then limited to the
        configured range.
        """
        if not -1 <= octave <= 9:
            logging.warning("Octave %s outside MIDI range; using note %s", octave, self.default_note_number)
            return self.clamp_note(self.default_note_number)
        return self.clamp_note(pitch_class + (octave + 1) * 12)

    def velocity_or_default(self, velocity: int) -> int:
        return velocity if 0 < velocity <= 127 else self.default_velocity


# camelCase spelling used by exported settings files.
_CAMEL_KEYS: Dict[str, str] = {
    "minNoteNumber": "min_note_number",
    "maxNoteNumber": "max_note_number",
    "defaultNoteName": "default_note_name",
    "defaultOctave": "default_octave",
    "defaultNoteNumber": "default_note_number",
    "defaultVelocity": "default_velocity",
    "defaultBPM": "default_bpm",
    "defaultDuration": "default_duration",
}


def _normalise_keys(data: dict) -> dict:
    known = {f.name for f in fields(MidiConfig)}
    result = {}
    for key, value in data.items():
        name = _CAMEL_KEYS.get(key, key)
        if name in known:
            result[name] = value
        else:
            logging.warning("Ignoring unknown config option: %s", key)
    return result


def load_config(path: Path = DEFAULT_CONFIG_FILE) -> MidiConfig:
    """Load a :class:`MidiConfig` from ``path``.

    Missing or unreadable files yield the defaults; the failure is logged
    so generation can continue with sensible values.
    """

    path = Path(path)
    if not path.is_file():
        return MidiConfig()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError("config root must be a JSON object")
        return MidiConfig(**_normalise_keys(data))
    except (OSError, ValueError, TypeError) as exc:
        logging.error("Could not load config %s: %s", path, exc)
        return MidiConfig()


def save_config(config: MidiConfig, path: Path = DEFAULT_CONFIG_FILE) -> None:
    """Write ``config`` to ``path`` as indented JSON using camelCase keys."""

    path = Path(path)
    snake_to_camel = {v: k for k, v in _CAMEL_KEYS.items()}
    payload = {snake_to_camel[k]: v for k, v in asdict(config).items()}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
    except OSError as exc:
        logging.error("Could not save config %s: %s", path, exc)
