"""CLI entrypoint for typedupes."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import REPORT_FORMATS, ConfigError, load_config
from .errors import InvocationError
from .logging import configure_logging, shutdown_logging
from .pipeline import Pipeline, validate_root
from .report import ReportEmitter


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typedupes",
        description="Find duplicate TypeScript type aliases and interfaces across a source tree.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Directory to scan (defaults to current directory).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show parse and IO diagnostics collected during the scan.",
    )
    parser.add_argument(
        "--format",
        dest="report_format",
        choices=REPORT_FORMATS,
        default=None,
        help="Report format (defaults to text, or report.format from .typedupes.yml).",
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Number of files parsed in parallel.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs of the scan to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for typedupes."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    except OSError as exc:
        parser.error(f"cannot open log file {args.log_file}: {exc.strerror or exc}")

    try:
        _run(parser, args)
    finally:
        shutdown_logging()


def _run(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    root = Path(args.path) if args.path else Path.cwd()
    try:
        config = load_config(validate_root(root))
    except InvocationError as exc:
        parser.error(str(exc))
    except ConfigError as exc:
        parser.exit(1, f"typedupes: {exc}\n")

    config.verbose = bool(args.verbose)
    if args.report_format:
        config.report_format = args.report_format
    if args.workers:
        config.workers = args.workers

    try:
        result = Pipeline(config).run()
    except InvocationError as exc:
        parser.error(str(exc))
    except KeyboardInterrupt:
        parser.exit(130, "typedupes: interrupted\n")

    emitter = ReportEmitter(report_format=config.report_format, verbose=config.verbose)
    print(emitter.render(result))


if __name__ == "__main__":
    main(sys.argv[1:])
