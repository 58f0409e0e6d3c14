"""Write note events to MIDI files and read them back.

``create_midi_file`` renders a melody (and optionally its accompaniment on a
second channel) at 480 ticks per quarter note.  Note numbers outside the
configured range are clamped, notes in octaves MIDI cannot represent and
invalid velocities are replaced by the configured defaults, so any list
of :class:`NoteEvent` objects produces a playable file.  ``read_melody``
performs the reverse conversion so existing files can be fed to the chord
analyzer.

Imports from ``mido`` are deferred so the generators can be used without
touching the MIDI layer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from mido import MidiFile

from .config import MidiConfig
from .note_utils import from_midi
from .theory import TICKS_PER_QUARTER, NoteEvent

__all__ = ["MELODY_CHANNEL", "ACCOMPANIMENT_CHANNEL", "create_midi_file", "read_melody"]

MELODY_CHANNEL = 0
# Zero based, shown as "channel 2" by most sequencers.
ACCOMPANIMENT_CHANNEL = 1


def _import_mido():
    try:
        import mido
    except ModuleNotFoundError as exc:
        raise ImportError(
            "mido is required to read or write MIDI files; install it with 'pip install mido'"
        ) from exc
    return mido


def _events_to_track(mido, notes: Sequence[NoteEvent], channel: int, config: MidiConfig):
    """Return a ``MidiTrack`` holding ``notes`` with delta times."""

    timed: List[Tuple[int, int, object]] = []
    for note in notes:
        number = config.note_number(note.pitch_class, note.octave)
        velocity = config.velocity_or_default(note.velocity)
        # Offs sort before ons at the same tick so repeated pitches retrigger.
        timed.append(
            (note.start_tick, 1, mido.Message("note_on", note=number, velocity=velocity, channel=channel))
        )
        timed.append(
            (note.end_tick, 0, mido.Message("note_off", note=number, velocity=velocity, channel=channel))
        )
    timed.sort(key=lambda item: (item[0], item[1]))

    track = mido.MidiTrack()
    last = 0
    for tick, _, msg in timed:
        msg.time = tick - last
        track.append(msg)
        last = tick
    return track


def create_midi_file(
    melody: Sequence[NoteEvent],
    output_file: str,
    *,
    accompaniment: Optional[Sequence[NoteEvent]] = None,
    bpm: Optional[int] = None,
    config: Optional[MidiConfig] = None,
    program: int = 0,
) -> "MidiFile":
    """Write ``melody`` to ``output_file`` and return the ``MidiFile``.

    Parameters
    ----------
    melody:
        Note events of the melody, in any order.
    output_file:
        Destination path. Missing parent directories are created.
    accompaniment:
        Optional note events written to a second track on
        :data:`ACCOMPANIMENT_CHANNEL`.
    bpm:
        Tempo; ``None`` or a non-positive value uses ``config.default_bpm``.
    config:
        Rendering fallbacks; defaults to :class:`MidiConfig`.
    program:
        General MIDI program for both channels.
    """

    mido = _import_mido()
    config = config or MidiConfig()
    if bpm is None or bpm <= 0:
        if bpm is not None:
            logging.warning("Invalid tempo %s; using %s BPM", bpm, config.default_bpm)
        bpm = config.default_bpm

    mid = mido.MidiFile(ticks_per_beat=TICKS_PER_QUARTER)
    track = _events_to_track(mido, melody, MELODY_CHANNEL, config)
    track.insert(0, mido.Message("program_change", program=program, time=0, channel=MELODY_CHANNEL))
    track.insert(0, mido.MetaMessage("time_signature", numerator=4, denominator=4))
    track.insert(0, mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm)))
    mid.tracks.append(track)

    if accompaniment:
        acc_track = _events_to_track(mido, accompaniment, ACCOMPANIMENT_CHANNEL, config)
        acc_track.insert(
            0, mido.Message("program_change", program=program, time=0, channel=ACCOMPANIMENT_CHANNEL)
        )
        mid.tracks.append(acc_track)

    Path(output_file).expanduser().parent.mkdir(parents=True, exist_ok=True)
    mid.save(output_file)
    logging.info("MIDI file saved to %s", output_file)
    return mid


def read_melody(
    path: str, channel: int = MELODY_CHANNEL, config: Optional[MidiConfig] = None
) -> List[NoteEvent]:
    """Return the notes played on ``channel`` of the MIDI file at ``path``.

    Tick values are rescaled to 480 ticks per quarter note when the file
    uses another resolution.  A ``note_on`` with velocity zero counts as a
    ``note_off``; notes left sounding at the end of a track last
    ``config.default_duration`` ticks.

    Raises
    ------
    OSError
        If the file cannot be read.
    """

    config = config or MidiConfig()
    mido = _import_mido()
    mid = mido.MidiFile(path)
    scale = TICKS_PER_QUARTER / mid.ticks_per_beat
    notes: List[NoteEvent] = []
    for track in mid.tracks:
        now = 0
        sounding: Dict[int, Tuple[int, int]] = {}
        for msg in track:
            now += msg.time
            if msg.type not in ("note_on", "note_off") or msg.channel != channel:
                continue
            if msg.type == "note_on" and msg.velocity > 0:
                sounding[msg.note] = (now, msg.velocity)
                continue
            started = sounding.pop(msg.note, None)
            if started is None:
                continue
            start, velocity = started
            begin = int(round(start * scale))
            length = int(round((now - start) * scale))
            if length <= 0:
                continue
            pitch_class, octave = from_midi(msg.note)
            notes.append(NoteEvent(pitch_class, octave, begin, length, velocity))
        if sounding:
            logging.debug("Closing %d unterminated notes in %s", len(sounding), path)
        for number, (start, velocity) in sounding.items():
            pitch_class, octave = from_midi(number)
            notes.append(
                NoteEvent(pitch_class, octave, int(round(start * scale)), config.default_duration, velocity)
            )
    notes.sort(key=lambda n: (n.start_tick, n.midi_number))
    return notes
