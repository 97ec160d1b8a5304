"""Command line interface: ``lcftrans DIRECTORY (-c | -u | -m MDIR)``."""

import argparse
import logging
import sys

from . import __version__
from .config import SETTINGS_FILE, build_config, load_settings, resolve_encoding
from .errors import ConfigError
from .utils import terms
from .workflow import run

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_ENCODING = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lcftrans",
        description="Translate RPG Maker 2000/2003 projects",
        epilog="Game data is read from the XML export of liblcf's lcf2xml "
               "(RPG_RT.edb, RPG_RT.emt, Map*.emu).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("directory", metavar="DIRECTORY", help="Game directory")

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("-c", "--create", action="store_true",
                       help="Create a new translation")
    group.add_argument("-u", "--update", action="store_true",
                       help="Update an existing translation")
    group.add_argument("-m", "--match", metavar="MDIR",
                       help="Match the translations in MDIR and DIRECTORY. When matched "
                            "the original in MDIR becomes the translation of DIRECTORY. "
                            "Used to generate translations from games where the "
                            "translation is hardcoded in the game files.")

    parser.add_argument("-e", "--encoding", metavar="ENC",
                        help="When not specified, is read from the settings file, "
                             "RPG_RT.ini or defaults to utf-8")
    parser.add_argument("-o", "--output", metavar="OUTDIR",
                        help="Output directory (default: working directory)")
    parser.add_argument("--threshold", type=float, metavar="RATIO",
                        help="Similarity needed for a fuzzy match (default: 0.9)")
    parser.add_argument("--settings", default=SETTINGS_FILE, metavar="FILE",
                        help=f"JSON settings file (default: {SETTINGS_FILE})")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug output")
    # Old style: encoding as last positional argument
    parser.add_argument("additional", nargs="*", help=argparse.SUPPRESS)
    return parser


def _print_report(report):
    for f in report.files:
        if report.mode == "match":
            print(f"Matching {f.name}")
            if f.error:
                print(f" Failed: {f.error}")
                continue
            print(f" {terms(f.matched)} matched")
            if f.fuzzy:
                print(f" {terms(f.fuzzy)} fuzzy matched")
            if f.unmatched:
                print(f" {terms(f.unmatched)} unmatched")
            continue

        print(f"{f.name}")
        if f.error:
            print(f" Failed: {f.error}")
        elif f.skipped:
            print(" Skipped. No terms found.")
        else:
            print(f" {terms(f.terms)}, {f.translated} translated")
            if f.stale:
                print(f" {terms(f.stale)} stale")


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    encoding = args.encoding
    if args.additional:
        if len(args.additional) > 1:
            print("Found additional, unrecognized arguments.", file=sys.stderr)
            print(parser.format_usage(), file=sys.stderr)
            return EXIT_FAILURE
        print("Specifying ENCODING as last argument is deprecated, "
              "`-e ENC` is the replacement.", file=sys.stderr)
        encoding = encoding or args.additional[0]

    mode = "match" if args.match else "update" if args.update else "create"
    config = build_config(
        load_settings(args.settings),
        input_dir=args.directory,
        output_dir=args.output,
        mode=mode,
        match_dir=args.match,
        encoding=encoding,
        fuzzy_threshold=args.threshold,
        log_level="DEBUG" if args.verbose else None,
    )

    try:
        config.validate()
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE
    logging.basicConfig(level=str(config.log_level).upper(),
                        format="%(levelname)s %(name)s: %(message)s")

    print("LcfTrans")
    if mode != "match":
        try:
            config.encoding = resolve_encoding(config)
        except ConfigError as exc:
            print(exc, file=sys.stderr)
            return EXIT_BAD_ENCODING
        print(f"Using encoding {config.encoding}")

    try:
        report = run(config)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE
    _print_report(report)

    if report.failed:
        log.warning("%d file(s) failed", len(report.failed))
        return EXIT_FAILURE
    return EXIT_OK
