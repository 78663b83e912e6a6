"""Reply formatting helpers.

Keeping formatting here prevents drift between the chat adapter and the
``get`` command, and keeps replies consistent regardless of delivery channel.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from linkscope.core.config import ReplyConfig
from linkscope.core.extractors import ELLIPSIS, human_size
from linkscope.core.models import (
    FailureKind,
    FailureSummary,
    HistoryEntry,
    MediaSummary,
    Summary,
    TitleSummary,
)

# One distinct tag per failure kind, as seen in channel transcripts.
FAILURE_TAGS = {
    FailureKind.TIMEOUT: "timed out",
    FailureKind.TOO_LARGE: "response too large",
    FailureKind.BAD_STATUS: "bad status",
    FailureKind.REDIRECT_LOOP: "too many redirects",
    FailureKind.CONNECTION_FAILED: "connection failed",
    FailureKind.COOKIES_REQUIRED: "requires cookies",
    FailureKind.UNSUPPORTED: "unsupported content",
    FailureKind.NO_TITLE: "no title found",
    FailureKind.UNDECODABLE: "undecodable image",
}

ZERO_WIDTH_NON_JOINER = "\u200c"
_CONTROL = re.compile(r"[\x00-\x1f\x7f]+")


def failure_tag(summary: FailureSummary) -> str:
    tag = FAILURE_TAGS[summary.kind]
    if summary.kind is FailureKind.BAD_STATUS and summary.status is not None:
        return f"{tag} {summary.status}"
    return tag


def mask_nick(nick: str) -> str:
    """Insert a zero-width non-joiner after the first character of ``nick``.

    Combining marks stay attached to the first character so the name renders
    unchanged while no longer matching highlight rules.
    """

    if not nick:
        return ZERO_WIDTH_NON_JOINER
    split = 1
    while split < len(nick) and unicodedata.combining(nick[split]):
        split += 1
    return nick[:split] + ZERO_WIDTH_NON_JOINER + nick[split:]


def utf8_truncate(text: str, max_bytes: int) -> str:
    """Clip ``text`` to ``max_bytes`` of UTF-8 without splitting a code point."""

    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def render_summary(summary: Summary) -> str:
    """Render a summary without any history annotation."""

    if isinstance(summary, TitleSummary):
        return summary.text
    if isinstance(summary, MediaSummary):
        if summary.dimensions is not None:
            width, height = summary.dimensions
            return f"{summary.format} image, {width}×{height}, {human_size(summary.size_bytes)}"
        return f"{summary.kind} {human_size(summary.size_bytes)}"
    if isinstance(summary, FailureSummary):
        return f"error: {failure_tag(summary)}"
    raise TypeError(f"Unknown summary: {summary!r}")


def format_repost(previous: HistoryEntry, config: ReplyConfig) -> str:
    when = previous.timestamp.strftime("%Y-%m-%d %H:%M")
    nick = mask_nick(previous.nick) if config.mask_highlights else previous.nick
    return f"→ {when} {nick} ({previous.channel})"


def fit_line(text: str, max_bytes: int) -> str:
    """Flatten ``text`` to one line and bound it to ``max_bytes``."""

    line = _CONTROL.sub(" ", text).strip()
    if len(line.encode("utf-8")) <= max_bytes:
        return line
    marker_bytes = len(ELLIPSIS.encode("utf-8"))
    if max_bytes < marker_bytes:
        return utf8_truncate(line, max_bytes)
    return utf8_truncate(line, max_bytes - marker_bytes).rstrip() + ELLIPSIS


def format_reply(
    summary: Summary,
    previous: Optional[HistoryEntry],
    config: ReplyConfig,
) -> str:
    """Compose the single reply line for one link."""

    text = render_summary(summary)
    if previous is not None and not isinstance(summary, FailureSummary):
        text = f"{text} {format_repost(previous, config)}"
    return fit_line(f"{config.prefix}{text}", config.max_bytes)
