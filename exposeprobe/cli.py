from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .candidates import SUFFIX_PRESETS, ExposeProbeError, resolve_suffixes
from .config import DEFAULT_USER_AGENT, STRATEGIES, CrawlConfiguration
from .reporter import print_results, print_summary, write_json
from .results import ResultAggregator
from .scanner import run_crawl


# logrus numbering: 0 panic, 1 fatal, 2 error, 3 warn, 4 info, 5 debug, 6 trace
_LOGRUS_LEVELS = {
    0: logging.CRITICAL,
    1: logging.CRITICAL,
    2: logging.ERROR,
    3: logging.WARNING,
    4: logging.INFO,
    5: logging.DEBUG,
    6: logging.DEBUG,
}


def log_level(args: argparse.Namespace) -> int:
    if args.debug:
        return logging.DEBUG
    if args.verbose:
        return logging.INFO
    if args.logLevel is not None:
        return _LOGRUS_LEVELS[args.logLevel]
    return logging.WARNING


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=level <= logging.DEBUG,
                markup=False,
                show_time=False,
                show_path=False,
            )
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exposeprobe",
        description="Probe hostnames for publicly exposed sensitive paths such as .git and .env.",
    )
    parser.add_argument(
        "--file",
        default="urls.txt",
        help="File containing the hostnames to probe, one per line (default: urls.txt)",
    )
    parser.add_argument("--concurrent", type=int, default=150, help="Max number of concurrent requests or workers")
    parser.add_argument("--reqTimeout", type=float, default=5.0, help="Seconds before a request is aborted")
    parser.add_argument("--connTimeout", type=float, default=10.0, help="Seconds allowed to open a connection")
    parser.add_argument(
        "--sleep",
        type=float,
        default=0.0,
        help="Seconds to sleep after each batch of --concurrent requests (batched strategy)",
    )
    parser.add_argument("--request-delay", type=float, default=0.0, help="Seconds to wait between request submissions")
    parser.add_argument("--strategy", choices=STRATEGIES, default="pool")
    parser.add_argument("--preset", choices=sorted(SUFFIX_PRESETS), default=None, help="Named suffix set (default: minimal)")
    parser.add_argument(
        "--uri",
        action="append",
        default=[],
        metavar="SUFFIX",
        help="Suffix path to probe, may be repeated",
    )
    parser.add_argument(
        "--show-results",
        "--showResults",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Print the URLs that returned a success status",
    )
    parser.add_argument("--show-all", action="store_true", help="Print every candidate as <url>:<bool>")
    parser.add_argument("--skip-invalid", action="store_true", help="Skip malformed hostname lines instead of aborting")
    parser.add_argument("--json-output", help="Write all results as JSON to the given path")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT)
    parser.add_argument("--insecure", action="store_true", help="Disable TLS verification")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--logLevel",
        type=int,
        choices=sorted(_LOGRUS_LEVELS),
        default=None,
        help="Numeric log level, 0 (panic) to 6 (trace)",
    )
    parser.add_argument("--tui", action="store_true", help="Launch Textual TUI instead of Rich CLI")
    return parser


def config_from_args(args: argparse.Namespace) -> CrawlConfiguration:
    preset = args.preset or (None if args.uri else "minimal")
    return CrawlConfiguration(
        max_connections=args.concurrent,
        request_timeout=args.reqTimeout,
        connect_timeout=args.connTimeout,
        delay_after_max_connections=args.sleep,
        delay_after_single_request=args.request_delay,
        uris=resolve_suffixes(preset, args.uri),
        src=args.file,
        show_results=args.show_results,
        strategy=args.strategy,
        skip_invalid=args.skip_invalid,
        user_agent=args.user_agent,
        verify_tls=not args.insecure,
    )


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(log_level(args))
    log = logging.getLogger(__name__)
    err = Console(stderr=True)

    try:
        cfg = config_from_args(args)
    except ValueError as e:
        err.print(f"[red]Invalid configuration:[/red] {escape(str(e))}", soft_wrap=True)
        return 1
    log.debug("Starting the crawling process with the following configuration: %s", cfg)

    if args.tui:
        from .tui import ExposureProbeApp

        app = ExposureProbeApp(cfg)
        app.run()
        if app.error:
            err.print(f"[red]Failed to obtain the candidates from {escape(cfg.src)}:[/red] {escape(app.error)}", soft_wrap=True)
            return 1
        if app.results is None:
            # Quit before the crawl finished
            err.print("[yellow]Interrupted.[/yellow]")
            return 130
        # The table already showed the results; only explicit output requests are honoured here
        if args.show_all:
            print_results(app.results, show_all=True)
        _write_json(app.results, args.json_output, err)
        return 0

    try:
        results = run_crawl(cfg)
    except ExposeProbeError as e:
        err.print(f"[red]Failed to obtain the candidates from {escape(cfg.src)}:[/red] {escape(str(e))}", soft_wrap=True)
        return 1
    except KeyboardInterrupt:
        err.print("[yellow]Interrupted.[/yellow]")
        return 130

    print_results(results, show_results=cfg.show_results, show_all=args.show_all)
    print_summary(results, console=err)
    _write_json(results, args.json_output, err)
    return 0


def _write_json(results: ResultAggregator, path: Optional[str], err: Console) -> None:
    if not path:
        return
    out_path = write_json(results, Path(path))
    err.print(f"[green]JSON results written to[/green] {out_path}")


if __name__ == "__main__":
    sys.exit(main())
