"""Tests for MIDI file writing and reading."""

import importlib
import logging
import sys
from pathlib import Path

import pytest

mido = pytest.importorskip("mido")

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

midi_io = importlib.import_module("composition_engine.midi_io")
config = importlib.import_module("composition_engine.config")
theory = importlib.import_module("composition_engine.theory")

MELODY = [
    theory.NoteEvent(0, 4, 0, 480, 90),
    theory.NoteEvent(4, 4, 480, 240, 80),
    theory.NoteEvent(7, 4, 720, 240, 70),
]


def _notes(track, kind="note_on"):
    return [msg for msg in track if msg.type == kind]


def test_create_midi_file_writes_melody(tmp_path):
    """The returned file holds tempo, meter, program and one note per event."""
    out = tmp_path / "nested" / "song.mid"
    mid = midi_io.create_midi_file(MELODY, str(out), bpm=100, program=5)
    assert isinstance(mid, mido.MidiFile)
    assert out.exists()
    assert mid.ticks_per_beat == 480
    track = mid.tracks[0]
    assert track[0].type == "set_tempo"
    assert track[0].tempo == mido.bpm2tempo(100)
    assert track[1].type == "time_signature"
    assert track[2].type == "program_change" and track[2].program == 5
    assert [m.note for m in _notes(track)] == [60, 64, 67]


def test_default_tempo(tmp_path, caplog):
    """Missing or invalid tempos fall back to 120 BPM."""
    mid = midi_io.create_midi_file(MELODY, str(tmp_path / "a.mid"))
    assert mid.tracks[0][0].tempo == 500000
    with caplog.at_level(logging.WARNING):
        mid = midi_io.create_midi_file(MELODY, str(tmp_path / "b.mid"), bpm=-5)
    assert "Invalid tempo" in caplog.text
    assert mid.tracks[0][0].tempo == 500000


def test_round_trip(tmp_path):
    """Reading a written file gives back the same notes."""
    out = tmp_path / "round.mid"
    midi_io.create_midi_file(MELODY, str(out))
    assert midi_io.read_melody(str(out)) == MELODY


def test_notes_are_clamped_and_velocities_defaulted(tmp_path):
    """Out of range notes are clamped and zero velocities use the default."""
    cfg = config.MidiConfig(min_note_number=48, max_note_number=72)
    melody = [theory.NoteEvent(0, 1, 0, 480, 0), theory.NoteEvent(0, 8, 480, 480, 100)]
    mid = midi_io.create_midi_file(melody, str(tmp_path / "c.mid"), config=cfg)
    ons = _notes(mid.tracks[0])
    assert [m.note for m in ons] == [48, 72]
    assert [m.velocity for m in ons] == [64, 100]


def test_repeated_pitch_retriggers(tmp_path):
    """An off at the same tick as the next on comes first."""
    melody = [theory.NoteEvent(0, 4, 0, 240, 80), theory.NoteEvent(0, 4, 240, 240, 80)]
    mid = midi_io.create_midi_file(melody, str(tmp_path / "r.mid"))
    kinds = [m.type for m in mid.tracks[0] if m.type in ("note_on", "note_off")]
    assert kinds == ["note_on", "note_off", "note_on", "note_off"]


def test_accompaniment_track(tmp_path):
    """Accompaniment goes to a second track on channel 1."""
    chords = [theory.NoteEvent(0, 3, 0, 1920, 60), theory.NoteEvent(7, 3, 0, 1920, 60)]
    out = tmp_path / "acc.mid"
    mid = midi_io.create_midi_file(MELODY, str(out), accompaniment=chords)
    assert len(mid.tracks) == 2
    assert {m.channel for m in mid.tracks[1] if not m.is_meta} == {midi_io.ACCOMPANIMENT_CHANNEL}
    assert len(midi_io.read_melody(str(out), channel=midi_io.ACCOMPANIMENT_CHANNEL)) == 2


def test_read_melody_rescales_ticks(tmp_path):
    """Files at another resolution are converted to 480 ticks per quarter."""
    mid = mido.MidiFile(ticks_per_beat=96)
    track = mido.MidiTrack()
    track.append(mido.Message("note_on", note=62, velocity=70, time=96))
    track.append(mido.Message("note_on", note=62, velocity=0, time=48))
    track.append(mido.Message("note_on", note=65, velocity=70, time=0))
    mid.tracks.append(track)
    out = tmp_path / "low.mid"
    mid.save(str(out))
    first, last = midi_io.read_melody(str(out))
    assert (first.pitch_class, first.octave, first.start_tick, first.duration_tick) == (2, 4, 480, 240)
    # Never released, so it lasts the configured default.
    assert (last.pitch_class, last.octave, last.start_tick, last.duration_tick) == (5, 4, 720, 480)


def test_read_missing_file(tmp_path):
    """Missing files raise ``OSError``."""
    with pytest.raises(OSError):
        midi_io.read_melody(str(tmp_path / "missing.mid"))


def test_unterminated_notes_use_configured_duration(tmp_path):
    """``default_duration`` closes notes the file never releases."""
    mid = mido.MidiFile()
    track = mido.MidiTrack()
    track.append(mido.Message("note_on", note=67, velocity=80, time=0))
    mid.tracks.append(track)
    out = tmp_path / "hang.mid"
    mid.save(str(out))
    (note,) = midi_io.read_melody(str(out), config=config.MidiConfig(default_duration=960))
    assert (note.pitch_class, note.octave, note.duration_tick) == (7, 4, 960)


def test_unplayable_octave_uses_default_note(tmp_path, caplog):
    """Notes in octaves MIDI cannot represent are written as the default note."""
    cfg = config.MidiConfig(default_note_number=62)
    melody = [theory.NoteEvent(0, 12, 0, 480, 90), theory.NoteEvent(11, 9, 480, 480, 90)]
    with caplog.at_level(logging.WARNING):
        mid = midi_io.create_midi_file(melody, str(tmp_path / "high.mid"), config=cfg)
    assert [m.note for m in _notes(mid.tracks[0])] == [62, 127]
    assert "Octave 12 outside MIDI range" in caplog.text
