"""Link extraction from raw chat text (core domain)."""

from __future__ import annotations

import re
from typing import List
from urllib.parse import urlsplit

# Candidates stop at whitespace, quotes, angle brackets and control characters
# so links wrapped in <...> or "..." are still picked up cleanly.
_CANDIDATE = re.compile(r"https?://[^\s<>\"'\x00-\x1f\x7f]+", re.IGNORECASE)

# Unsafe characters from RFC 1738; a token containing any of them is rejected.
_UNSAFE = re.compile(r"[{}|\\^`]")

_TRAILING_PUNCTUATION = ".,;:!?'\""
_BRACKETS = {")": "(", "]": "[", "}": "{"}


def _trim_trailing(candidate: str) -> str:
    """Drop sentence punctuation and unbalanced closing brackets at the end."""

    while candidate:
        last = candidate[-1]
        if last in _TRAILING_PUNCTUATION:
            candidate = candidate[:-1]
            continue
        opener = _BRACKETS.get(last)
        if opener and candidate.count(opener) < candidate.count(last):
            candidate = candidate[:-1]
            continue
        break
    return candidate


def is_valid_link(candidate: str) -> bool:
    """Return True for absolute http(s) URLs with a host and a sane port."""

    if _UNSAFE.search(candidate):
        return False
    try:
        parts = urlsplit(candidate)
        # Accessing .port validates it and raises ValueError when out of range.
        parts.port
    except ValueError:
        return False
    if parts.scheme.lower() not in ("http", "https"):
        return False
    return bool(parts.hostname)


def extract_links(text: str) -> List[str]:
    """Return the http(s) links in ``text`` in first-seen order, without repeats."""

    links: List[str] = []
    seen: set[str] = set()
    for match in _CANDIDATE.finditer(text):
        candidate = _trim_trailing(match.group(0))
        if not is_valid_link(candidate) or candidate in seen:
            continue
        seen.add(candidate)
        links.append(candidate)
    return links
