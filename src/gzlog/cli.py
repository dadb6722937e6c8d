"""Command line interface for appending to and managing gzlog streams."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List

from .config import LogConfig, parse_mode, parse_size
from .errors import GzLogError
from .handle import GzLog


def build_log(config: LogConfig) -> GzLog:
    return config.open()


def _write(log: GzLog, texts: Iterable[str]) -> int:
    count = 0
    for text in texts:
        if text.strip():
            count += 1
        log.write(text)
    return count


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gzlog", description="Size-bounded, self-compressing append log")
    parser.add_argument("--dir", dest="directory", default="logs", help="Log directory")
    parser.add_argument("--name", dest="basename", default="app", help="Log basename, without extension")
    parser.add_argument("--max-size", default="10M", help="Rotate once a file reaches this size (0 disables)")
    parser.add_argument("--mode", default="644", help="Octal permission bits for new log files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print gzlog diagnostics to stderr")

    commands = parser.add_subparsers(dest="command", required=True)
    write = commands.add_parser("write", help="Append records; reads stdin lines when no TEXT is given")
    write.add_argument("texts", nargs="*", metavar="TEXT")
    commands.add_parser("current", help="Print the path of the active log file")
    commands.add_parser("compress", help="Archive the active log file now")
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = LogConfig(
            directory=Path(args.directory),
            basename=args.basename,
            max_size=parse_size(args.max_size),
            file_mode=parse_mode(args.mode),
        )
        with build_log(config) as log:
            if args.command == "write":
                texts = args.texts or (line.rstrip("\n") for line in sys.stdin)
                count = _write(log, texts)
                logging.getLogger(__name__).debug("Appended %d record(s) to %s", count, log.filename)
            elif args.command == "current":
                print(log.filename)
            elif args.command == "compress":
                print(log.compress_now())
    except GzLogError as exc:
        print(f"gzlog: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
