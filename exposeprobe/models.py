from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProbeStatus(str, Enum):
    SUCCESS = "SUCCESS"
    REDIRECT = "REDIRECT"
    DENIED = "DENIED"
    NOT_FOUND = "NOT_FOUND"
    HTTP_ERROR = "HTTP_ERROR"
    TIMEOUT = "TIMEOUT"
    UNREACHABLE = "UNREACHABLE"


@dataclass(frozen=True)
class Candidate:
    # Identity is the URL alone; suffixes that normalise to the same path collapse
    url: str
    hostname: str = field(compare=False)
    suffix: str = field(compare=False)
    www: bool = field(default=False, compare=False)

    def __str__(self) -> str:
        return self.url


@dataclass
class FetchResult:
    candidate: Candidate
    status: ProbeStatus
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def url(self) -> str:
        return self.candidate.url

    @property
    def exposed(self) -> bool:
        # Only a received 2xx counts; everything else collapses to False
        return self.status is ProbeStatus.SUCCESS


def classify_status(status_code: int) -> ProbeStatus:
    """Map an HTTP status code onto a ProbeStatus bucket."""
    if 200 <= status_code < 300:
        return ProbeStatus.SUCCESS
    if 300 <= status_code < 400:
        return ProbeStatus.REDIRECT
    if status_code in (401, 403):
        return ProbeStatus.DENIED
    if status_code in (404, 410):
        return ProbeStatus.NOT_FOUND
    return ProbeStatus.HTTP_ERROR
