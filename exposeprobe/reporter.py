from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import ProbeStatus
from .results import ResultAggregator


def print_results(
    results: ResultAggregator,
    *,
    show_results: bool = True,
    show_all: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Print result lines to stdout.

    ``show_all`` prints every entry as ``<url>:<bool>``; otherwise, when
    ``show_results`` is set, only positives are printed as ``<url>``.
    """
    console = console or Console()
    if show_all:
        for url, ok in sorted(results.all().items()):
            _line(console, f"{url}:{str(ok).lower()}")
    elif show_results:
        for url in sorted(results.positive()):
            _line(console, url)


def _line(console: Console, text: str) -> None:
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def print_summary(results: ResultAggregator, console: Optional[Console] = None) -> None:
    console = console or Console(stderr=True)
    counts = results.counts()

    summary = Table.grid(expand=False)
    summary.add_column(justify="left")
    summary.add_column(justify="right")
    summary.add_row("Candidates", str(len(results)))
    summary.add_row("Exposed", f"[red]{len(results.positive())}[/red]")
    summary.add_row("Redirect", str(counts[ProbeStatus.REDIRECT]))
    summary.add_row("Denied", f"[magenta]{counts[ProbeStatus.DENIED]}[/magenta]")
    summary.add_row("Not found", str(counts[ProbeStatus.NOT_FOUND]))
    summary.add_row("HTTP error", str(counts[ProbeStatus.HTTP_ERROR]))
    summary.add_row("Timeout", f"[yellow]{counts[ProbeStatus.TIMEOUT]}[/yellow]")
    summary.add_row("Unreachable", f"[yellow]{counts[ProbeStatus.UNREACHABLE]}[/yellow]")

    console.print(Panel(summary, title="exposeprobe", border_style="blue", box=box.ROUNDED))


def write_json(results: ResultAggregator, path: Union[str, Path]) -> Path:
    out_path = Path(path)
    details = results.details()
    rows = []
    for url, ok in sorted(results.all().items()):
        res = details.get(url)
        rows.append(
            {
                "url": url,
                "exposed": ok,
                "status": res.status.value if res else None,
                "status_code": res.status_code if res else None,
                "error": res.error if res else None,
            }
        )
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(rows, f, indent=2, ensure_ascii=False)
    return out_path
