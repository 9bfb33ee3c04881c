"""Command-line interface."""
from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from streamcloud.config import CloudConfig
from streamcloud.controller.session import CloudSession
from streamcloud.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamcloud",
        description="Live word cloud of a stream of short text messages.",
    )
    parser.add_argument("source", nargs="?", default=None,
                        help="text file with one message per line, or '-' for stdin")
    parser.add_argument("--headless", action="store_true",
                        help="run the tick loop without a window and log the top words")
    parser.add_argument("--rate", type=float, default=None,
                        help="pace the source to this many messages per second")
    parser.add_argument("--ticks", type=int, default=None,
                        help="headless: stop after this many ticks")
    parser.add_argument("--threshold", type=int, default=None,
                        help="only show words seen more than this many times")
    parser.add_argument("--deterministic", action="store_true",
                        help="seed the layout's random source with a fixed constant")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", default=None)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    overrides = {}
    if args.deterministic:
        overrides["deterministic"] = True
    if args.threshold is not None:
        overrides["count_threshold"] = args.threshold
    session = CloudSession(CloudConfig.from_env(**overrides))

    if args.headless:
        from streamcloud.main import run_headless

        source = args.source if args.source is not None else "-"
        return run_headless(session, source=source, rate=args.rate, max_ticks=args.ticks)

    from streamcloud.app.main import main as gui_main

    return gui_main(session=session, source=args.source, rate=args.rate, count_threshold=args.threshold)


if __name__ == "__main__":
    sys.exit(main())
