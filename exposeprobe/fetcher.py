from __future__ import annotations

import asyncio
import logging

import httpx

from .config import CrawlConfiguration
from .models import Candidate, FetchResult, ProbeStatus, classify_status

log = logging.getLogger(__name__)


def build_client(cfg: CrawlConfiguration) -> httpx.AsyncClient:
    """Create the client shared by every probe of a run.

    Redirects are never followed so that a 3xx is judged on its own and not on
    whatever the redirect target answers.
    """
    return httpx.AsyncClient(
        follow_redirects=False,
        verify=cfg.verify_tls,
        headers={"User-Agent": cfg.user_agent, "Accept": "*/*"},
        timeout=httpx.Timeout(cfg.request_timeout, connect=cfg.connect_timeout),
        limits=httpx.Limits(
            max_connections=cfg.max_connections,
            max_keepalive_connections=cfg.max_connections,
        ),
    )


async def fetch_candidate(
    candidate: Candidate,
    client: httpx.AsyncClient,
    cfg: CrawlConfiguration,
) -> FetchResult:
    """GET a candidate URL and classify the response.

    The whole exchange, body included, runs under ``cfg.request_timeout``.
    Failures never escape: they come back as TIMEOUT or UNREACHABLE results.
    """
    url = candidate.url
    log.debug("GET %s", url)
    try:
        status_code = await asyncio.wait_for(_get(client, url), timeout=cfg.request_timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        log.info("Timed out fetching %s", url)
        return FetchResult(candidate, ProbeStatus.TIMEOUT, error=f"{type(e).__name__}: {e}")
    except Exception as e:
        log.info("Failed to fetch %s: %s: %s", url, type(e).__name__, e)
        return FetchResult(candidate, ProbeStatus.UNREACHABLE, error=f"{type(e).__name__}: {e}")

    status = classify_status(status_code)
    if status is ProbeStatus.SUCCESS:
        log.info("[ Exposed ] %s", url)
    else:
        log.debug("%s -> %s", url, status_code)
    return FetchResult(candidate, status, status_code=status_code)


async def _get(client: httpx.AsyncClient, url: str) -> int:
    async with client.stream("GET", url) as r:
        # Drain the body so the connection goes back to the pool and read errors surface
        async for _ in r.aiter_bytes():
            pass
        return r.status_code


async def probe(candidate: Candidate, client: httpx.AsyncClient, cfg: CrawlConfiguration) -> bool:
    return (await fetch_candidate(candidate, client, cfg)).exposed
