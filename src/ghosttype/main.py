"""Entry point for the ghosttype CLI."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from ghosttype.errors import GhosttypeError
from ghosttype.renderer import Styles
from ghosttype.results import SessionResult, format_summary
from ghosttype.samples import SavedSample, load_samples, normalize_sample, save_samples
from ghosttype.session import TypingSession
from ghosttype.settings import SettingsManager
from ghosttype.terminal import ProcessTerminal

logger = logging.getLogger("ghosttype")

EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghosttype",
        description="ghosttype: typing practice against the ghost of your best run",
    )
    parser.add_argument("--samples", default=None, help="Saved samples JSON file")
    parser.add_argument("--sample", type=int, default=None, help="Index of the sample to type")
    parser.add_argument("--no-ghost", action="store_true", help="Do not replay the previous best run")
    parser.add_argument("--log-file", default=None, help="Write logs to this file")
    parser.add_argument("--log-level", default=None, choices=["debug", "info", "warning", "error"])
    return parser


def configure_logging(log_file: str | None, level: str) -> None:
    """Log to *log_file* if given; stdout belongs to the session screen."""
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=getattr(logging, level.upper()),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.getLogger("ghosttype").addHandler(logging.NullHandler())


async def _run(
    terminal: ProcessTerminal,
    saved: SavedSample,
    settings: SettingsManager,
) -> SessionResult:
    text = normalize_sample(saved.text)
    recorded = saved.char_times
    if recorded and len(recorded) != len(text):
        logger.warning(
            "ignoring %d recorded timings for a %d character sample",
            len(recorded),
            len(text),
        )
        recorded = []

    terminal.enter_raw_mode()
    geometry = terminal.query_size(settings.get_geometry_query_timeout())
    if geometry is None:
        geometry = terminal.size()
    logger.info("terminal is %dx%d", geometry.width, geometry.height)

    session = TypingSession(
        terminal,
        text,
        recorded=recorded,
        prior_best_ns=saved.prior_best_ns if recorded else None,
        geometry=geometry,
        styles=Styles.from_mapping(settings.get_styles()),
        ghost=settings.get_ghost_enabled(),
    )
    return await session.run()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = SettingsManager.create(os.getcwd())
    except GhosttypeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    settings.apply_overrides(
        {
            "samplesFile": args.samples,
            "sampleIndex": args.sample,
            "ghost": False if args.no_ghost else None,
            "logFile": args.log_file,
            "logLevel": args.log_level,
        }
    )
    configure_logging(settings.get_log_file(), settings.get_log_level())

    samples_file = settings.get_samples_file()
    terminal = ProcessTerminal()
    try:
        samples = load_samples(samples_file)
        index = settings.get_sample_index()
        if not 0 <= index < len(samples):
            print(f"Error: no sample {index} in {samples_file}", file=sys.stderr)
            return 1
        saved = samples[index]
        result = asyncio.run(_run(terminal, saved, settings))
    except GhosttypeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        terminal.stop()

    if result.interrupted:
        logger.info("session interrupted")
        return EXIT_INTERRUPTED

    terminal.write("\x1b[2J\x1b[H")
    terminal.write(format_summary(result))
    if saved.apply(result):
        logger.info("new personal best: %d ns", result.elapsed_ns)
        try:
            save_samples(samples_file, samples)
        except OSError as exc:
            print(f"Error: saving samples: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
