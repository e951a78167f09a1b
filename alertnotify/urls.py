"""URL helpers for building dashboard, panel and silence links."""
from __future__ import annotations

import posixpath
import re
from typing import Dict, List, Mapping, Sequence
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit, urlunsplit

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def parse_url(raw: str) -> SplitResult:
    """Split ``raw`` into URL components, rejecting what a strict parser would.

    Raises ``ValueError`` for control characters, a missing scheme in front of
    ``://``, a colon in a relative first path segment, malformed IPv6 hosts and
    non-numeric ports.
    """
    if _CONTROL_CHARS.search(raw):
        raise ValueError(f"invalid control character in URL {raw!r}")
    if raw.startswith(":"):
        raise ValueError(f"missing protocol scheme in URL {raw!r}")
    parts = urlsplit(raw)
    if not parts.scheme and not parts.netloc:
        first_segment = parts.path.split("/", 1)[0]
        if ":" in first_segment:
            raise ValueError(f"first path segment in URL cannot contain colon: {raw!r}")
    # .port validates the port and raises ValueError when it is not a number
    parts.port
    return parts


def join_path(*elems: str) -> str:
    """Join slash separated path elements and clean the result."""
    parts = [e for e in elems if e]
    if not parts:
        return ""
    cleaned = posixpath.normpath("/".join(parts))
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def parse_query(query: str) -> Dict[str, List[str]]:
    values: Dict[str, List[str]] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        values.setdefault(key, []).append(value)
    return values


def encode_query(values: Mapping[str, Sequence[str]]) -> str:
    """Form-encode ``values`` with keys sorted; order within a key is kept."""
    return urlencode([(key, v) for key in sorted(values) for v in values[key]])


def url_string(parts: SplitResult) -> str:
    return urlunsplit(parts)
