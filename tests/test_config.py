"""Tests for ``MidiConfig`` and its JSON persistence."""

import importlib
import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

config = importlib.import_module("composition_engine.config")
MidiConfig = config.MidiConfig


def test_missing_file_returns_defaults(tmp_path):
    """A missing settings file silently yields the defaults."""
    cfg = config.load_config(tmp_path / "absent.json")
    assert cfg == MidiConfig()
    assert cfg.default_velocity == 64
    assert cfg.default_duration == 480


def test_camel_case_keys_are_accepted(tmp_path):
    """Exported camelCase option names map onto the dataclass fields."""
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"defaultBPM": 90, "minNoteNumber": 21, "default_octave": 3}))
    cfg = config.load_config(path)
    assert cfg.default_bpm == 90
    assert cfg.min_note_number == 21
    assert cfg.default_octave == 3


def test_save_then_load_round_trip(tmp_path):
    """Saved settings load back unchanged, creating parent folders."""
    path = tmp_path / "nested" / "cfg.json"
    original = MidiConfig(default_velocity=100, default_bpm=140)
    config.save_config(original, path)
    assert "defaultVelocity" in json.loads(path.read_text())
    assert config.load_config(path) == original


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", json.dumps({"defaultBPM": -5})])
def test_invalid_file_logs_and_falls_back(tmp_path, caplog, content):
    """Malformed or invalid settings are logged and replaced by defaults."""
    path = tmp_path / "cfg.json"
    path.write_text(content)
    with caplog.at_level(logging.ERROR):
        cfg = config.load_config(path)
    assert cfg == MidiConfig()
    assert "Could not load config" in caplog.text


def test_unknown_keys_are_ignored(tmp_path, caplog):
    """Unrecognised options are reported and skipped."""
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"defaultVelocity": 70, "reverb": True}))
    with caplog.at_level(logging.WARNING):
        cfg = config.load_config(path)
    assert cfg.default_velocity == 70
    assert "reverb" in caplog.text


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_note_number": 80, "max_note_number": 40},
        {"max_note_number": 200},
        {"default_velocity": 128},
        {"default_bpm": 0},
        {"default_duration": -1},
        {"default_note_number": 128},
        {"default_note_name": "H"},
    ],
)
def test_invalid_values_rejected(kwargs):
    """Construction validates ranges."""
    with pytest.raises(ValueError):
        MidiConfig(**kwargs)


def test_fallback_helpers():
    """Note clamping and velocity fallback use the configured values."""
    cfg = MidiConfig(min_note_number=36, max_note_number=84, default_velocity=50)
    assert cfg.clamp_note(20) == 36
    assert cfg.clamp_note(100) == 84
    assert cfg.clamp_note(60) == 60
    assert cfg.velocity_or_default(0) == 50
    assert cfg.velocity_or_default(90) == 90


@pytest.mark.parametrize(
    "pitch_class,octave,expected",
    [
        (0, 4, 60),
        (0, 1, 48),
        (11, 9, 84),
        (7, 12, 62),
        (7, -2, 62),
    ],
)
def test_note_number(pitch_class, octave, expected, caplog):
    """Octaves outside MIDI use the default note; the rest are clamped."""
    cfg = MidiConfig(min_note_number=48, max_note_number=84, default_note_number=62)
    with caplog.at_level(logging.WARNING):
        assert cfg.note_number(pitch_class, octave) == expected
    assert ("outside MIDI range" in caplog.text) == (not -1 <= octave <= 9)
