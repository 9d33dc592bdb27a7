"""Shared fixtures for the exposeprobe test-suite."""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from exposeprobe.candidates import generate_candidates
from exposeprobe.config import CrawlConfiguration
from exposeprobe.models import Candidate


@pytest.fixture()
def hostnames_file(tmp_path: Path) -> Path:
    """Source list used by the default test configuration."""
    path = tmp_path / "urls.txt"
    path.write_text("example.com\n", encoding="utf-8")
    return path


@pytest.fixture()
def make_config(hostnames_file: Path) -> Callable[..., CrawlConfiguration]:
    """Return a factory for small, fast CrawlConfiguration objects."""

    def _make(**overrides) -> CrawlConfiguration:
        values = dict(
            max_connections=4,
            request_timeout=2.0,
            connect_timeout=1.0,
            uris=(".git",),
            src=str(hostnames_file),
        )
        values.update(overrides)
        return CrawlConfiguration(**values)

    return _make


@pytest.fixture()
def make_candidates() -> Callable[[int], List[Candidate]]:
    """Return a factory producing *n* distinct candidates (bare host only)."""

    def _make(n: int) -> List[Candidate]:
        out: List[Candidate] = []
        for i in range(n):
            out.extend(c for c in generate_candidates(f"host{i}.test", [".git"]) if not c.www)
        return out

    return _make


@pytest.fixture()
def stub_client() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient answering from a ``{url: status}`` table.

    URLs missing from the table fail with a connection error. Every request
    seen is appended to ``client.seen``.
    """

    def _make(routes: Dict[str, int], headers: Optional[Dict[str, Dict[str, str]]] = None) -> httpx.AsyncClient:
        seen: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            seen.append(url)
            if url not in routes:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(routes[url], headers=(headers or {}).get(url), content=b"stub body")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=False)
        client.seen = seen  # type: ignore[attr-defined]
        return client

    return _make
