"""Single-link resolution: fetch, classify, extract, check history, format.

This module is integration-agnostic. It only relies on ports for fetching
and history, so the ``get`` command and the chat adapter share one path.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from linkscope.core.classifier import classify
from linkscope.core.config import ExtractConfig, ReplyConfig
from linkscope.core.extractors import describe_unsupported, summarize
from linkscope.core.formatting import format_reply
from linkscope.core.models import (
    ErrorRecord,
    FailureKind,
    FailureSummary,
    FetchError,
    HistoryEntry,
    MediaSummary,
    Summary,
)
from linkscope.core.ports import FetcherPort, HistoryPort, NullHistory

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def summary_from_error(error: FetchError, config: ExtractConfig) -> Summary:
    if error.kind is FailureKind.UNSUPPORTED and error.content_type:
        return describe_unsupported(error.content_type, error.content_length, config)
    return FailureSummary(kind=error.kind, status=error.status)


class LinkResolver:
    """Turns one link into one reply line."""

    def __init__(
        self,
        fetcher: FetcherPort,
        history: Optional[HistoryPort] = None,
        extract_config: Optional[ExtractConfig] = None,
        reply_config: Optional[ReplyConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetcher = fetcher
        self._history = history or NullHistory()
        self._extract = extract_config or ExtractConfig()
        self._reply = reply_config or ReplyConfig()
        self._clock = clock

    async def summarize(self, url: str) -> tuple[Summary, Optional[str]]:
        """Return the summary for ``url`` and the post-redirect URL when it is a posting.

        Failures and bare MIME lines come back with ``None`` and are never
        recorded in history.
        """

        result = await self._fetcher.fetch(url)
        if isinstance(result, FetchError):
            LOGGER.info("Fetch failed for %s: %s %s", url, result.kind.value, result.detail)
            self._log_error(url, result.kind, result.status, result.detail)
            return summary_from_error(result, self._extract), None

        kind = classify(result)
        summary = summarize(result, kind, self._extract)
        if isinstance(summary, FailureSummary):
            self._log_error(result.final_url, summary.kind, result.status, "")
            return summary, None
        if isinstance(summary, MediaSummary) and summary.format is None:
            # Bare MIME lines are never postings, whichever stage produced them.
            return summary, None
        return summary, result.final_url

    async def resolve(self, url: str, channel: str, nick: str) -> str:
        """Resolve ``url`` posted by ``nick`` in ``channel`` into a reply."""

        summary, final_url = await self.summarize(url)
        if final_url is None:
            return format_reply(summary, None, self._reply)

        # Lookup must precede record so this posting never reports itself.
        previous = self._lookup(final_url)
        self._record(HistoryEntry(url=final_url, nick=nick, channel=channel, timestamp=self._clock()))
        return format_reply(summary, previous, self._reply)

    def failure_reply(self, kind: FailureKind) -> str:
        return format_reply(FailureSummary(kind=kind), None, self._reply)

    def _lookup(self, url: str) -> Optional[HistoryEntry]:
        try:
            return self._history.lookup(url)
        except Exception:
            LOGGER.exception("History lookup failed for %s; replying without it", url)
            return None

    def _record(self, entry: HistoryEntry) -> None:
        try:
            self._history.record(entry)
        except Exception:
            LOGGER.exception("History record failed for %s", entry.url)

    def _log_error(self, url: str, kind: FailureKind, status: Optional[int], detail: str) -> None:
        try:
            self._history.record_error(
                ErrorRecord(url=url, kind=kind, status=status, detail=detail, timestamp=self._clock())
            )
        except Exception:
            LOGGER.exception("Error log write failed for %s", url)
