"""Command-line interface for the read-aloud assistant.

WHY: The assistant runs on a small box next to a camera. A single
command should start the control API and the auto-capture timer, and
a couple of one-shot commands help set up a device (check the word
list, try one capture without the server).

HOW: argparse with three subcommands:
  serve        build the runtime and run the FastAPI app under uvicorn
  once         run one manual cycle headless and print what was spoken
  check-words  load the word list and report which words it knows
Settings come from the environment (config.load_settings) and are
overridden by flags. Status messages go to stderr via logging.

RULES:
- serve is the default when no subcommand is given
- once exits 0 on SPOKEN or NO_TEXT_FOUND, 1 on any failure outcome
- check-words exits 1 if any queried word is unknown
- --verbose switches logging to DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from read_aloud import __version__
from read_aloud.adapters.word_list import FileWordListSource
from read_aloud.config import Settings, load_settings
from read_aloud.core.models import CycleOutcome, CycleReport
from read_aloud.core.words import load_word_set

logger = logging.getLogger(__name__)

_OK_OUTCOMES = (CycleOutcome.SPOKEN, CycleOutcome.NO_TEXT_FOUND)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of the environment settings."""
    settings = load_settings()
    overrides = {}
    if getattr(args, "word_list", None) is not None:
        overrides["word_list_path"] = args.word_list
    if getattr(args, "camera", None) is not None:
        overrides["camera_index"] = args.camera
    if getattr(args, "interval_ms", None) is not None:
        if args.interval_ms <= 0:
            raise ValueError("--interval-ms must be positive")
        overrides["capture_interval_ms"] = args.interval_ms
    if getattr(args, "auto", None) is not None:
        overrides["auto_start"] = args.auto
    if getattr(args, "host", None) is not None:
        overrides["host"] = args.host
    if getattr(args, "port", None) is not None:
        overrides["port"] = args.port
    return dataclasses.replace(settings, **overrides)


def _log_report(report: CycleReport) -> None:
    logger.info("Cycle %d (%s): %s", report.cycle_id, report.outcome.value, report.message)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_serve(settings: Settings) -> int:
    import uvicorn

    from read_aloud.bootstrap import build_runtime
    from read_aloud.server.app import create_app

    runtime = build_runtime(settings, on_report=_log_report)
    app = create_app(
        runtime.controller,
        timer=runtime.timer,
        camera=runtime.camera,
        surface=runtime.surface,
    )
    try:
        uvicorn.run(app, host=settings.host, port=settings.port)
    finally:
        runtime.close()
    return 0


async def _run_once(settings: Settings) -> CycleReport:
    from read_aloud.bootstrap import build_runtime

    runtime = build_runtime(settings)
    try:
        runtime.camera.start_preview()
        report = await runtime.controller.capture_once()
        # Let the words finish before the speech worker is closed
        while runtime.speech.is_speaking():
            await asyncio.sleep(0.1)
        return report
    finally:
        runtime.close()


def _cmd_once(settings: Settings) -> int:
    report = asyncio.run(_run_once(settings))
    print(report.message, file=sys.stderr, flush=True)
    if report.spoken:
        print(" ".join(report.spoken))
    return 0 if report.outcome in _OK_OUTCOMES else 1


def _cmd_check_words(settings: Settings, queries: List[str]) -> int:
    words = load_word_set(FileWordListSource(settings.word_list_path))
    if not len(words):
        print(
            "Warning: word list {} is empty or unreadable".format(settings.word_list_path),
            file=sys.stderr,
        )
    missing = 0
    for query in queries:
        known = words.contains(query)
        if not known:
            missing += 1
        print("{}\t{}".format(query, "known" if known else "unknown"))
    return 1 if missing else 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Keeping parser construction out of main() lets tests inspect
    the parsed namespace without touching hardware.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--word-list",
        default=None,
        help="Path to the word list (one word per line).",
    )
    common.add_argument(
        "--camera",
        type=int,
        default=None,
        help="OpenCV camera index.",
    )
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    parser = argparse.ArgumentParser(
        prog="read-aloud",
        description="Read printed words aloud from a camera and draw boxes around detected text.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)

    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser(
        "serve",
        parents=[common],
        help="Run the control API and the auto-capture timer (default).",
    )
    serve.add_argument(
        "--interval-ms",
        type=int,
        default=None,
        help="Auto-capture tick period in milliseconds.",
    )
    serve.add_argument(
        "--auto",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Start with auto-capture enabled.",
    )
    serve.add_argument("--host", default=None, help="Bind address for the control API.")
    serve.add_argument("--port", type=int, default=None, help="Port for the control API.")

    subparsers.add_parser(
        "once",
        parents=[common],
        help="Capture one frame, speak its known words and exit.",
    )

    check = subparsers.add_parser(
        "check-words",
        parents=[common],
        help="Report which words the word list knows.",
    )
    check.add_argument("words", nargs="+", help="Words to look up.")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``read-aloud`` and ``python -m read_aloud``.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(getattr(args, "verbose", False))

    try:
        settings = _settings_from_args(args)
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(2)

    command = args.command or "serve"
    try:
        if command == "once":
            code = _cmd_once(settings)
        elif command == "check-words":
            code = _cmd_check_words(settings, args.words)
        else:
            code = _cmd_serve(settings)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
