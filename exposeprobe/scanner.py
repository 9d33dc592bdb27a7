from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterable, List, Optional

import httpx

from .candidates import generate_from_file
from .config import CrawlConfiguration
from .fetcher import build_client, fetch_candidate
from .models import Candidate, FetchResult, ProbeStatus
from .results import ResultAggregator

log = logging.getLogger(__name__)

ProbeFn = Callable[[Candidate], Awaitable[FetchResult]]
ProgressFn = Callable[[int, int], None]


async def dispatch(
    candidates: Iterable[Candidate],
    cfg: CrawlConfiguration,
    *,
    client: Optional[httpx.AsyncClient] = None,
    probe: Optional[ProbeFn] = None,
    progress_cb: Optional[ProgressFn] = None,
) -> ResultAggregator:
    """Probe every candidate exactly once and return the frozen results.

    At most ``cfg.max_connections`` probes are in flight at any time.
    ``probe`` replaces the HTTP probe (the shared client is then never built);
    ``progress_cb`` is invoked with (completed, total) after each probe. If it
    raises, the remaining candidates are still probed and the first error is
    re-raised once the run is over.
    """
    # One probe per URL even if several candidates map onto it
    ordered = sorted({c.url: c for c in candidates}.values(), key=lambda c: c.url)
    results = ResultAggregator(ordered)
    if not ordered:
        log.debug("No candidates to probe")
        return results.freeze()

    if probe is not None:
        await _run(ordered, cfg, probe, results, progress_cb)
        return results.freeze()

    async with _client_scope(cfg, client) as c:

        async def http_probe(cand: Candidate) -> FetchResult:
            return await fetch_candidate(cand, c, cfg)

        await _run(ordered, cfg, http_probe, results, progress_cb)
    return results.freeze()


@asynccontextmanager
async def _client_scope(
    cfg: CrawlConfiguration, client: Optional[httpx.AsyncClient]
) -> AsyncIterator[httpx.AsyncClient]:
    # A caller supplied client stays open; one we build is closed here
    if client is not None:
        yield client
        return
    async with build_client(cfg) as own:
        yield own


async def _run(
    candidates: List[Candidate],
    cfg: CrawlConfiguration,
    probe: ProbeFn,
    results: ResultAggregator,
    progress_cb: Optional[ProgressFn],
) -> None:
    total = len(candidates)
    completed = 0
    errors: List[Exception] = []

    async def run_one(cand: Candidate) -> None:
        nonlocal completed
        result = await _guarded(probe, cand)
        try:
            results.record(result)
            completed += 1
            if progress_cb:
                progress_cb(completed, total)
        except Exception as e:
            # Workers must keep draining the queue; the first error is raised after the run
            log.error("Recording %s failed: %s: %s", cand.url, type(e).__name__, e)
            errors.append(e)

    log.debug(
        "Dispatching %d candidates (strategy=%s, max_connections=%d)",
        total,
        cfg.strategy,
        cfg.max_connections,
    )
    if cfg.strategy == "batched":
        await _dispatch_batched(candidates, cfg, run_one)
    else:
        await _dispatch_pool(candidates, cfg, run_one)
    if errors:
        raise errors[0]


async def _guarded(probe: ProbeFn, cand: Candidate) -> FetchResult:
    """Run a probe and turn anything it raises into a failed result."""
    try:
        return await probe(cand)
    except Exception as e:
        log.info("Probe for %s raised %s: %s", cand.url, type(e).__name__, e)
        return FetchResult(cand, ProbeStatus.UNREACHABLE, error=f"{type(e).__name__}: {e}")


async def _dispatch_pool(
    candidates: List[Candidate],
    cfg: CrawlConfiguration,
    run_one: Callable[[Candidate], Awaitable[None]],
) -> None:
    queue: "asyncio.Queue[Optional[Candidate]]" = asyncio.Queue()

    async def worker() -> None:
        while True:
            cand = await queue.get()
            try:
                if cand is None:
                    return
                await run_one(cand)
            finally:
                queue.task_done()

    workers = [asyncio.create_task(worker()) for _ in range(min(cfg.max_connections, len(candidates)))]
    try:
        for i, cand in enumerate(candidates):
            if i and cfg.delay_after_single_request:
                await asyncio.sleep(cfg.delay_after_single_request)
            queue.put_nowait(cand)
        # One stop sentinel per worker, queued behind every job
        for _ in workers:
            queue.put_nowait(None)
        await queue.join()
        await asyncio.gather(*workers)
    finally:
        for w in workers:
            if not w.done():
                w.cancel()


async def _dispatch_batched(
    candidates: List[Candidate],
    cfg: CrawlConfiguration,
    run_one: Callable[[Candidate], Awaitable[None]],
) -> None:
    size = cfg.max_connections
    for start in range(0, len(candidates), size):
        if start and cfg.delay_after_max_connections:
            log.debug("Batch limit reached, sleeping %ss", cfg.delay_after_max_connections)
            await asyncio.sleep(cfg.delay_after_max_connections)
        tasks = []
        for i, cand in enumerate(candidates[start : start + size]):
            if i and cfg.delay_after_single_request:
                await asyncio.sleep(cfg.delay_after_single_request)
            tasks.append(asyncio.create_task(run_one(cand)))
        await asyncio.gather(*tasks)


async def crawl_async(
    cfg: CrawlConfiguration,
    *,
    client: Optional[httpx.AsyncClient] = None,
    progress_cb: Optional[ProgressFn] = None,
) -> ResultAggregator:
    """Read ``cfg.src``, generate candidates and probe them all.

    SourceReadError and MalformedCandidateError propagate; no partial results
    are returned in that case.
    """
    log.debug("Getting the hostnames from: %s", cfg.src)
    candidates = generate_from_file(cfg.src, cfg.uris, skip_invalid=cfg.skip_invalid)
    log.debug("%d candidates to scan", len(candidates))
    results = await dispatch(candidates, cfg, client=client, progress_cb=progress_cb)
    log.debug("Finished probing %d candidates, %d exposed", len(results), len(results.positive()))
    return results


def run_crawl(cfg: CrawlConfiguration) -> ResultAggregator:
    """Synchronous wrapper to run the async crawl."""
    return asyncio.run(crawl_async(cfg))
