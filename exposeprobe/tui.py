from __future__ import annotations

from typing import Optional

import httpx
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Label, LoadingIndicator

from .candidates import ExposeProbeError
from .config import CrawlConfiguration
from .results import ResultAggregator
from .scanner import crawl_async


class ExposureProbeApp(App):
    CSS = """
    Screen {
        align: center middle;
    }
    """
    BINDINGS = [("q", "quit", "Quit")]

    def __init__(self, cfg: CrawlConfiguration, client: Optional[httpx.AsyncClient] = None) -> None:
        super().__init__()
        self.cfg = cfg
        self.client = client
        self.results: Optional[ResultAggregator] = None
        self.error: Optional[str] = None
        self.progress_label = Label("Preparing scan…")
        self.table = DataTable(zebra_stripes=True)
        self.spinner = LoadingIndicator()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Vertical(
            Label("exposeprobe - exposed path prober", id="title"),
            self.progress_label,
            self.spinner,
            self.table,
        )
        yield Footer()

    def on_mount(self) -> None:
        self.table.add_columns("Exposed", "Status", "Code", "URL")
        self.spinner.display = True
        self.run_worker(self.run_scan(), exclusive=True)

    async def run_scan(self) -> None:
        try:
            self.results = await crawl_async(self.cfg, client=self.client, progress_cb=self._update_progress)
        except ExposeProbeError as e:
            self.error = str(e)
            self.progress_label.update(Text(f"Error: {e}", style="bold red"))
            return
        finally:
            self.spinner.display = False
        self._populate_table(self.results)
        self.progress_label.update(
            f"Done: {len(self.results)} candidates, {len(self.results.positive())} exposed"
        )

    def _update_progress(self, done: int, tot: int) -> None:
        self.progress_label.update(f"Probing candidates: {done}/{tot}")

    def _populate_table(self, results: ResultAggregator) -> None:
        details = results.details()
        # Exposed entries first
        for url, ok in sorted(results.all().items(), key=lambda kv: (not kv[1], kv[0])):
            res = details.get(url)
            self.table.add_row(
                "yes" if ok else "no",
                res.status.value if res else "",
                str(res.status_code or "") if res else "",
                url,
            )
