"""
Main entry point for ATX Inspector.

This module provides the main() function behind the ``atx-inspector``
console script: it expands the file patterns, decodes each ATX image and
prints one rich report per file.
"""

import argparse
import glob
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.text import Text

from atx_inspector import __version__
from atx_inspector.analysis import render_failure, render_report
from atx_inspector.core.errors import AtxError, SettingsError
from atx_inspector.core.settings import AppSettings, UnknownChunkPolicy, load_settings
from atx_inspector.imaging import decode_file
from atx_inspector.utils import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DECODE_FAILED = 1
EXIT_NO_FILES = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atx-inspector",
        description="Decode and validate ATX (AT8X) floppy disk images.",
    )
    parser.add_argument("patterns", nargs="+", metavar="PATTERN",
                        help="ATX files or glob patterns")
    parser.add_argument("--verbose", action="store_true",
                        help="Also check sector and track counts against the geometry")
    parser.add_argument("--skip-unknown-chunks", action="store_true",
                        help="Skip unknown chunk types instead of failing the track")
    parser.add_argument("--sectors", action="store_true",
                        help="Print a sector table for every track")
    parser.add_argument("--layout", action="store_true",
                        help="Print the angular sector layout of every track")
    parser.add_argument("--config", type=Path, default=None,
                        help="Settings file (default: platform settings file)")
    parser.add_argument("--log-file", default=None, help="Write a log file")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def expand_patterns(patterns: Sequence[str]) -> List[Path]:
    """
    Expand glob patterns into a sorted, de-duplicated list of files.

    A pattern without wildcards that names an existing file is taken as-is.
    """
    paths: List[Path] = []
    seen = set()
    for pattern in patterns:
        matches = sorted(glob.glob(pattern)) if glob.has_magic(pattern) else [pattern]
        for match in matches:
            path = Path(match)
            if not path.is_file() or path in seen:
                continue
            seen.add(path)
            paths.append(path)
    return paths


def apply_overrides(settings: AppSettings, args: argparse.Namespace) -> AppSettings:
    """Merge command line flags over the loaded settings."""
    decoder = settings.decoder
    report = settings.report

    if args.verbose:
        decoder = decoder.model_copy(update={"verbose": True})
    if args.skip_unknown_chunks:
        decoder = decoder.model_copy(
            update={"unknown_chunk_policy": UnknownChunkPolicy.SKIP_CHUNK})
    if args.sectors:
        report = report.model_copy(update={"show_sectors": True})
    if args.layout:
        report = report.model_copy(update={"show_layout": True})

    update = {"decoder": decoder, "report": report}
    if args.log_file is not None:
        update["log_file"] = args.log_file
    if args.log_level is not None:
        # Validate through the model so a bad level fails like a bad config
        update["log_level"] = AppSettings(log_level=args.log_level).log_level
    return settings.model_copy(update=update)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for ATX Inspector.

    Returns:
        0 if every file decoded, 1 if any file could not be decoded or the
        settings are invalid, 2 if no file matched the patterns
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    console = Console()

    try:
        settings = apply_overrides(load_settings(args.config), args)
    except (SettingsError, ValueError) as e:
        console.print(Text.assemble(("Settings error: ", "bold red"), str(e)))
        return EXIT_DECODE_FAILED

    # The report already prints every diagnostic; the log console is for DEBUG
    level = logging.getLevelName(settings.log_level)
    setup_logging(settings.log_file, level, console=level <= logging.DEBUG)

    paths = expand_patterns(args.patterns)
    if not paths:
        console.print(Text("No files matched: " + " ".join(args.patterns)))
        return EXIT_NO_FILES

    exit_code = EXIT_OK
    for path in paths:
        try:
            result = decode_file(path, settings=settings.decoder)
        except (AtxError, OSError) as e:
            logger.error("Failed to decode %s: %s", path, e)
            render_failure(console, path, e)
            exit_code = EXIT_DECODE_FAILED
            continue
        render_report(console, path, result, settings.report)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
