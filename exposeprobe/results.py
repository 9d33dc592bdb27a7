from __future__ import annotations

import threading
from collections import Counter
from typing import Dict, Iterable, Set

from .models import Candidate, FetchResult


class ResultAggregator:
    """Outcome of every candidate of one run.

    Every candidate starts out as ``False`` so failed or never-answered probes
    are still present. Writes are serialised by a lock; once :meth:`freeze` is
    called the mapping is read-only and the accessors need no locking.
    """

    def __init__(self, candidates: Iterable[Candidate] = ()):
        self._lock = threading.Lock()
        self._frozen = False
        self._outcomes: Dict[str, bool] = {}
        self._details: Dict[str, FetchResult] = {}
        for cand in candidates:
            self._outcomes[cand.url] = False

    def record(self, result: FetchResult) -> None:
        url = result.url
        with self._lock:
            if self._frozen:
                raise RuntimeError("result set is frozen")
            if url not in self._outcomes:
                raise KeyError(f"unknown candidate: {url}")
            self._outcomes[url] = result.exposed
            self._details[url] = result

    def freeze(self) -> "ResultAggregator":
        with self._lock:
            self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def all(self) -> Dict[str, bool]:
        return dict(self._outcomes)

    def positive(self) -> Set[str]:
        return {url for url, ok in self._outcomes.items() if ok}

    def details(self) -> Dict[str, FetchResult]:
        return dict(self._details)

    def counts(self) -> Counter:
        return Counter(r.status for r in self._details.values())

    def __len__(self) -> int:
        return len(self._outcomes)
