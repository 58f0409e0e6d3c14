"""Command line interface for the composition engine.

``run_cli`` parses the arguments, composes a melody (optionally with an
accompaniment) and writes it as a MIDI file.  With ``--analyze`` it instead
reads an existing MIDI file and prints the chord progression the analyzer
derives from its melody channel.

Validation problems are reported through ``logging.error`` followed by
``sys.exit(1)`` so shell scripts can rely on the exit status.

Example
-------
Running ``python -m composition_engine --style Jazz --emotion Calm --bars 8 \
    --seed 3 --accompaniment --output jazz.mid`` writes an eight bar jazz
melody with a walking bass accompaniment to ``jazz.mid``.  Adding
``--chords "ii-V-I"`` voices that progression instead of the one derived
from the emotion.
"""

from __future__ import annotations

import argparse
import logging
import math
import random
import sys
from pathlib import Path
from typing import List, Optional

from .accompaniment import AccompanimentGenerator
from .chord_analyzer import analyze
from .composer import MelodyComposer
from .config import DEFAULT_CONFIG_FILE, MidiConfig, load_config
from .harmony_generator import parse_progression, progression_for
from .midi_io import create_midi_file, read_melody
from .parameters import Emotion, MelodyParameters, Style, default_root, recommend_scale_type
from .theory import NOTES, STEPS_PER_BAR, TICKS_PER_STEP, Scale, ScaleType

__all__ = ["build_parser", "run_cli", "main"]

MIN_OCTAVE = 1
MAX_OCTAVE = 9


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="composition-engine",
        description="Compose a melody from a style and an emotion and save it as a MIDI file.",
    )
    parser.add_argument("--list-styles", action="store_true", help="List the supported styles and exit")
    parser.add_argument("--list-emotions", action="store_true", help="List the supported emotions and exit")
    parser.add_argument("--style", type=str, default=Style.POP.value, help="Musical style (default: Pop)")
    parser.add_argument("--emotion", type=str, default=Emotion.HAPPY.value, help="Emotion (default: Happy)")
    parser.add_argument("--bpm", type=int, default=120, help="Beats per minute (default: 120)")
    parser.add_argument("--bars", type=int, help="Number of bars; derived from style and emotion when omitted")
    parser.add_argument("--key", type=str, help="Root note of the scale, e.g. C or F#")
    parser.add_argument(
        "--scale",
        type=str,
        help="Scale type ({}); recommended from style and emotion when omitted".format(
            ", ".join(t.value for t in ScaleType)
        ),
    )
    parser.add_argument("--octave", type=int, help="Base octave of the melody")
    parser.add_argument("--complexity", type=float, default=0.5, help="0.0-1.0, higher keeps wider leaps")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible output")
    parser.add_argument("--output", type=str, help="Output MIDI file path")
    parser.add_argument("--accompaniment", action="store_true", help="Add an accompaniment track")
    parser.add_argument(
        "--chords",
        type=str,
        help="Chord progression for the accompaniment, e.g. 'I-IV-V-I' or 'C G Am:2 F:2'; implies --accompaniment",
    )
    parser.add_argument("--instrument", type=int, default=0, help="MIDI program number (default: 0)")
    parser.add_argument("--analyze", type=str, metavar="FILE", help="Print the chords of an existing MIDI file and exit")
    parser.add_argument("--explain", action="store_true", help="Print the resolved parameters and structure")
    parser.add_argument("--config", type=str, help=f"Settings file (default: {DEFAULT_CONFIG_FILE})")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def _scale_from_args(args: argparse.Namespace, style: Style, emotion: Emotion) -> Optional[Scale]:
    if args.key is None and args.scale is None:
        return None
    key = args.key or NOTES[default_root(emotion)]
    scale_type = args.scale or recommend_scale_type(style, emotion).value
    return Scale.from_name(key, scale_type)


def _load_config(args: argparse.Namespace) -> MidiConfig:
    return load_config(Path(args.config)) if args.config else load_config()


def _analyze_file(args: argparse.Namespace, config: MidiConfig) -> None:
    try:
        melody = read_melody(args.analyze, config=config)
    except OSError as exc:
        logging.error("Could not read MIDI file: %s", exc)
        sys.exit(1)
    if not melody:
        logging.error("No notes found in %s", args.analyze)
        sys.exit(1)
    scale = _scale_from_args(args, Style.POP, Emotion.HAPPY) or Scale.from_name(config.default_note_name)
    bar_ticks = STEPS_PER_BAR * TICKS_PER_STEP
    bars = args.bars or max(1, math.ceil(max(n.end_tick for n in melody) / bar_ticks))
    progression = analyze(melody, scale, bars)
    print(" ".join(str(chord) for chord in progression.chords))


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Parse ``argv`` (defaults to ``sys.argv[1:]``) and run the request."""

    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.list_styles:
        print("\n".join(s.value for s in Style))
        return
    if args.list_emotions:
        print("\n".join(e.value for e in Emotion))
        return

    try:
        if args.analyze:
            _analyze_file(args, _load_config(args))
            return
        style = Style.parse(args.style)
        emotion = Emotion.parse(args.emotion)
        scale = _scale_from_args(args, style, emotion)
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    if args.output is None:
        logging.error("--output is required unless --analyze or a --list option is used.")
        sys.exit(1)
    if args.bpm <= 0:
        logging.error("BPM must be a positive integer.")
        sys.exit(1)
    if args.octave is not None and not MIN_OCTAVE <= args.octave <= MAX_OCTAVE:
        logging.error(f"Octave must be between {MIN_OCTAVE} and {MAX_OCTAVE}.")
        sys.exit(1)
    if not 0 <= args.instrument <= 127:
        logging.error("Instrument must be between 0 and 127.")
        sys.exit(1)

    try:
        params = MelodyParameters(
            style,
            emotion,
            bpm=args.bpm,
            bars=args.bars,
            scale=scale,
            octave=args.octave,
            complexity=args.complexity,
        )
        progression = parse_progression(args.chords, params.scale) if args.chords is not None else None
    except ValueError as exc:
        logging.error(str(exc))
        sys.exit(1)

    config = _load_config(args)
    if args.seed is not None:
        logging.info("Using random seed %s", args.seed)
    rng = random.Random(args.seed)

    structure, sections = MelodyComposer(config).compose_sections(params, rng)
    melody = [note for _, notes in sections for note in notes]
    if args.explain:
        print(params.describe())
        layout = ", ".join(f"{section.kind.value} ({section.bars})" for section, _ in sections)
        print(f"Structure: {structure.value} -> {layout}")

    if progression is None and args.accompaniment:
        progression = progression_for(params)
    accompaniment = None
    if progression is not None:
        accompaniment = AccompanimentGenerator().generate(progression, params, rng)

    try:
        create_midi_file(
            melody,
            args.output,
            accompaniment=accompaniment,
            bpm=params.bpm,
            config=config,
            program=args.instrument,
        )
    except OSError as exc:
        logging.error("Could not write MIDI file: %s", exc)
        sys.exit(1)
    logging.info("Composition complete: %d melody notes.", len(melody))


def main() -> None:
    """Console entry point configuring logging before running the CLI."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    run_cli()
