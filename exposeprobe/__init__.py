"""exposeprobe - exposed sensitive path prober

Probes a list of hostnames for publicly reachable sensitive paths
(.git, .env, ...) with bounded concurrency.
Designed to be used as both a script and a library.
"""

from .candidates import MalformedCandidateError, SourceReadError, generate_candidates
from .config import CrawlConfiguration
from .scanner import crawl_async, dispatch, run_crawl

__all__ = [
    "CrawlConfiguration",
    "MalformedCandidateError",
    "SourceReadError",
    "crawl_async",
    "dispatch",
    "generate_candidates",
    "run_crawl",
]
__version__ = "0.1.0"
