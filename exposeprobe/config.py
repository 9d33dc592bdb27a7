from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

DEFAULT_SUFFIXES: Tuple[str, ...] = (".env", ".git")
STRATEGIES = ("pool", "batched")
DEFAULT_USER_AGENT = "exposeprobe/0.1"


@dataclass(frozen=True)
class CrawlConfiguration:
    """Settings for a single crawl. Built once, never mutated by the core.

    Timeouts and delays are in seconds.
    """

    max_connections: int = 150
    request_timeout: float = 5.0
    connect_timeout: float = 10.0
    delay_after_max_connections: float = 0.0
    delay_after_single_request: float = 0.0
    uris: Tuple[str, ...] = field(default=DEFAULT_SUFFIXES)
    src: str = "urls.txt"
    show_results: bool = True
    strategy: str = "pool"  # pool | batched
    skip_invalid: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    verify_tls: bool = True

    def __post_init__(self) -> None:
        # Accept any sequence for uris but store a tuple so the value stays hashable
        object.__setattr__(self, "uris", tuple(self.uris))

        if self.max_connections < 1:
            raise ValueError(f"max_connections must be >= 1, got {self.max_connections}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got {self.request_timeout}")
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be > 0, got {self.connect_timeout}")
        if self.delay_after_max_connections < 0 or self.delay_after_single_request < 0:
            raise ValueError("delays must not be negative")
        if not self.uris:
            raise ValueError("at least one suffix path is required")
        if self.strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy {self.strategy!r}, expected one of {STRATEGIES}")
