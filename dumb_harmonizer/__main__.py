import argparse
import logging
import random
import sys

from dumb_harmonizer.config.read_config import load_config_from_yaml
from dumb_harmonizer.difficulty import settings_from_difficulty
from dumb_harmonizer.errors import GenerationError, InvalidInputError
from dumb_harmonizer.export import write_musicxml
from dumb_harmonizer.harmonizer import Harmonizer, HarmonizerSettings
from dumb_harmonizer.pitch_utils.music21_handler import Music21Backend
from dumb_harmonizer.pitch_utils.types import GenerationStyle
from dumb_harmonizer.progression import draft_progression
from dumb_harmonizer.rhythmist import RhythmStrategy
from dumb_harmonizer.shared_classes import print_diagnostics
from dumb_harmonizer.utils.logs import configure_logging

DEFAULT_N_MEASURES = 8

# (command-line option dest, settings field)
SETTINGS_OPTIONS = (
    ("smoothness", "melodic_smoothness"),
    ("strictness", "dissonance_strictness"),
    ("rhythmic_complexity", "rhythmic_complexity"),
    ("harmonic_complexity", "harmonic_complexity"),
    ("accompaniment_voices", "num_accompaniment_voices"),
    ("rhythm_strategy", "rhythm_strategy"),
    ("style", "generation_style"),
)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dumb_harmonizer",
        description="Harmonize a roman-numeral progression and write MusicXML.",
    )
    parser.add_argument(
        "progression",
        nargs="*",
        help="roman numerals, one per measure (e.g., I IV V7 I); if omitted, "
        "a progression is drafted",
    )
    parser.add_argument("-n", "--n-measures", type=int, help="number of measures")
    parser.add_argument("-k", "--key", default="C", help="key, e.g. C, F#m, Bb")
    parser.add_argument("-m", "--meter", default="4/4", help="meter, e.g. 3/4")
    parser.add_argument(
        "--style", choices=[s.value for s in GenerationStyle], default=None
    )
    settings_source = parser.add_mutually_exclusive_group()
    settings_source.add_argument(
        "-d", "--difficulty", type=float, help="0-10; sets all the settings below"
    )
    settings_source.add_argument("-c", "--config", help="path to yaml settings")
    parser.add_argument("--smoothness", type=float, help="melodic smoothness 0-10")
    parser.add_argument("--strictness", type=float, help="dissonance strictness 0-10")
    parser.add_argument("--rhythmic-complexity", type=int, help="0-10")
    parser.add_argument("--harmonic-complexity", type=int, help="0-10")
    parser.add_argument(
        "--accompaniment-voices",
        type=int,
        help="number of accompaniment voices (MelodyAccompaniment style only)",
    )
    parser.add_argument(
        "--rhythm-strategy", choices=[s.value for s in RhythmStrategy], default=None
    )
    parser.add_argument("-o", "--output-file", help="path to MusicXML output")
    parser.add_argument("-l", "--log-file", help="path to log file")
    parser.add_argument(
        "-L",
        "--log-level",
        choices=("debug", "info", "warning"),
        default="warning",
        help="log level",
    )
    parser.add_argument(
        "--append-to-log",
        action="store_true",
        help="append to log file (if it exists)",
    )
    parser.add_argument("-s", "--seed", type=int, default=None)
    return parser


def get_settings(args: argparse.Namespace, rng: random.Random) -> HarmonizerSettings:
    overrides = {
        field: getattr(args, dest)
        for dest, field in SETTINGS_OPTIONS
        if getattr(args, dest) is not None
    }
    if args.difficulty is not None:
        style = overrides.pop("generation_style", GenerationStyle.SATB)
        return settings_from_difficulty(args.difficulty, style, **overrides)
    return load_config_from_yaml(HarmonizerSettings, args.config, rng=rng, **overrides)


def main(argv=None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_file, args.log_level, args.append_to_log)
    if args.output_file is None:
        logging.warning("No output file provided, skipping output")
    if args.seed is not None:
        logging.debug(f"Setting seed {args.seed}")
    rng = random.Random(args.seed)

    try:
        settings = get_settings(args, rng)
        backend = Music21Backend()
        key = backend.parse_key(args.key)
        progression = args.progression
        if not progression:
            n_measures = args.n_measures
            if n_measures is None:
                n_measures = DEFAULT_N_MEASURES
            progression = draft_progression(
                n_measures, settings.harmonic_complexity, rng, key.mode
            )
        harmonizer = Harmonizer(settings, backend=backend, rng=rng)
        piece = harmonizer(progression, key, args.meter, n_measures=args.n_measures)
    except (InvalidInputError, GenerationError) as exc:
        parser.error(str(exc))

    print(f"Harmonized {' '.join(piece.progression)} in {piece.key}, {piece.meter}")
    print_diagnostics(piece)
    if args.output_file is not None:
        print(f"Writing {args.output_file}")
        write_musicxml(piece, args.output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
