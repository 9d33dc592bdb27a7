from __future__ import annotations

import ipaddress
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union
from urllib.parse import urlsplit, urlunsplit

import httpx

from .config import DEFAULT_SUFFIXES
from .models import Candidate

log = logging.getLogger(__name__)

SUFFIX_PRESETS: Dict[str, Tuple[str, ...]] = {
    "minimal": DEFAULT_SUFFIXES,
    "standard": DEFAULT_SUFFIXES + (".svn", ".hg"),
    "extended": DEFAULT_SUFFIXES
    + (
        ".svn",
        ".hg",
        ".bzr",
        ".aws",
        ".ssh",
        ".docker",
        ".idea",
        ".vscode",
        "backup",
        "private",
        "logs",
        "tmp",
    ),
}

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_LABEL_RE = re.compile(r"^[A-Za-z0-9_](?:[A-Za-z0-9_-]{0,61}[A-Za-z0-9_])?$")


class ExposeProbeError(Exception):
    """Base class for errors that abort a run."""


class SourceReadError(ExposeProbeError):
    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"cannot read {path}: {reason}")
        self.path = str(path)
        self.reason = reason


class MalformedCandidateError(ExposeProbeError):
    def __init__(self, value: str, reason: str, line: Optional[int] = None):
        super().__init__(value, reason)
        self.value = value
        self.reason = reason
        self.line = line

    def __str__(self) -> str:
        where = f"line {self.line}: " if self.line is not None else ""
        return f"{where}malformed candidate {self.value!r} ({self.reason})"


def join_path(base_path: str, suffix: str) -> str:
    """Join *suffix* under *base_path* with exactly one slash between segments.

    The result always starts and ends with a single ``/``. Empty and ``.``
    segments are dropped, ``..`` removes the previous segment. Feeding the
    output back in with an empty suffix returns it unchanged.
    """
    segments: List[str] = []
    for part in f"{base_path}/{suffix}".split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if segments:
                segments.pop()
            continue
        segments.append(part)
    if not segments:
        return "/"
    return "/" + "/".join(segments) + "/"


def format_url(prefix: str, suffix: str) -> str:
    """Join ``prefix`` (scheme + host [+ path]) and ``suffix`` into a validated URL."""
    if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in prefix + suffix):
        raise MalformedCandidateError(prefix + "/" + suffix, "whitespace or control character")
    try:
        sp = urlsplit(prefix)
    except ValueError as exc:
        raise MalformedCandidateError(prefix, str(exc)) from exc
    if sp.query or sp.fragment:
        raise MalformedCandidateError(prefix, "query or fragment in hostname")
    url = urlunsplit((sp.scheme, sp.netloc, join_path(sp.path, suffix), "", ""))
    _validate_url(url)
    return url


def _validate_url(url: str) -> None:
    try:
        sp = urlsplit(url)
        port = sp.port
    except ValueError as exc:
        raise MalformedCandidateError(url, str(exc)) from exc

    if sp.scheme != "https":
        raise MalformedCandidateError(url, "scheme must be https")
    if not sp.netloc or sp.netloc.endswith(":") or "@" in sp.netloc:
        raise MalformedCandidateError(url, "invalid authority")
    if port is not None and port == 0:
        raise MalformedCandidateError(url, "invalid port")

    host = sp.hostname or ""
    if not host:
        raise MalformedCandidateError(url, "missing host")
    if sp.netloc.startswith("["):
        try:
            ipaddress.IPv6Address(host)
        except ValueError as exc:
            raise MalformedCandidateError(url, str(exc)) from exc
    else:
        _validate_hostname(url, host)

    try:
        httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise MalformedCandidateError(url, str(exc)) from exc


def _validate_hostname(url: str, host: str) -> None:
    if not host.isascii():
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError as exc:
            raise MalformedCandidateError(url, f"hostname is not IDNA encodable: {exc}") from exc
    host = host.rstrip(".")
    if not host or len(host) > 253:
        raise MalformedCandidateError(url, "invalid hostname length")
    for label in host.split("."):
        if not _LABEL_RE.match(label):
            raise MalformedCandidateError(url, f"invalid hostname label {label!r}")


def generate_candidates(hostname: str, suffixes: Sequence[str]) -> Set[Candidate]:
    """Build the bare and ``www.`` candidate for every suffix of one hostname line.

    Raises MalformedCandidateError when a joined URL does not validate.
    """
    host = _SCHEME_RE.sub("", hostname.strip())
    if not host:
        return set()

    out: Set[Candidate] = set()
    for suffix in suffixes:
        out.add(Candidate(format_url(f"https://{host}", suffix), host, suffix, www=False))
        out.add(Candidate(format_url(f"https://www.{host}", suffix), host, suffix, www=True))
    return out


def generate_from_lines(
    lines: Iterable[str],
    suffixes: Sequence[str],
    skip_invalid: bool = False,
) -> Set[Candidate]:
    candidates: Set[Candidate] = set()
    for idx, raw in enumerate(lines, start=1):
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            candidates |= generate_candidates(stripped, suffixes)
        except MalformedCandidateError as exc:
            exc.line = idx
            if not skip_invalid:
                raise
            log.warning("Skipping %s", exc)
    return candidates


def load_hostnames(path: Union[str, Path]) -> List[str]:
    """Read the source list. Any OS level failure is fatal for the run."""
    p = Path(path)
    log.debug("Reading hostnames from %s", p)
    try:
        return p.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError as exc:
        raise SourceReadError(p, exc.strerror or str(exc)) from exc


def generate_from_file(
    path: Union[str, Path],
    suffixes: Sequence[str],
    skip_invalid: bool = False,
) -> Set[Candidate]:
    return generate_from_lines(load_hostnames(path), suffixes, skip_invalid=skip_invalid)


def resolve_suffixes(preset: Optional[str], extra: Iterable[str] = ()) -> Tuple[str, ...]:
    """Combine a named preset with custom suffixes, keeping first-seen order."""
    base: Tuple[str, ...] = SUFFIX_PRESETS[preset] if preset else ()
    seen: Dict[str, None] = {}
    for s in (*base, *extra):
        s = s.strip()
        if s:
            seen.setdefault(s, None)
    return tuple(seen)
