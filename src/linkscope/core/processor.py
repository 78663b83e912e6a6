"""Core message processing pipeline.

This module is integration-agnostic. It only sees (channel, nick, text) and
returns reply strings, enabling other chat adapters without changes here.

The pipeline enforces a strict order per message:
1) Fast-reject ignored senders and untracked channels
2) Extract links (deduplicated, capped at url_limit)
3) Resolve every link concurrently under a process-wide fetch limit
4) Return replies in extraction order
"""

from __future__ import annotations

import asyncio
import logging
from typing import List

from linkscope.core.config import PipelineConfig
from linkscope.core.links import extract_links
from linkscope.core.models import FailureKind
from linkscope.core.resolver import LinkResolver

LOGGER = logging.getLogger(__name__)


class MessageProcessor:
    """Orchestrates extraction, resolution and ordering for one message."""

    def __init__(self, resolver: LinkResolver, config: PipelineConfig) -> None:
        self._resolver = resolver
        self._config = config
        self._ignore_nicks = {nick.lower() for nick in config.ignore_nicks}
        self._channels = set(config.channels)
        self._fetch_slots = asyncio.Semaphore(max(1, config.max_concurrent_fetches))

    def should_ignore(self, channel: str, nick: str) -> bool:
        """Return True when a message must be skipped before any network work."""

        if nick.lower() in self._ignore_nicks:
            return True
        return bool(self._channels) and channel not in self._channels

    async def handle(self, channel: str, nick: str, text: str) -> List[str]:
        """Process one message and return one reply per link, in link order."""

        if self.should_ignore(channel, nick):
            return []

        links = extract_links(text)[: self._config.url_limit]
        if not links:
            return []

        LOGGER.debug("Resolving %s link(s) from %s in %s", len(links), nick, channel)
        # gather() keeps results in argument order whatever the completion order.
        replies = await asyncio.gather(*(self._resolve_one(url, channel, nick) for url in links))
        return list(replies)

    async def _resolve_one(self, url: str, channel: str, nick: str) -> str:
        async with self._fetch_slots:
            try:
                return await self._resolver.resolve(url, channel, nick)
            except Exception:
                # One broken link must not take the rest of the message with it.
                LOGGER.exception("Unexpected error while resolving %s", url)
                return self._resolver.failure_reply(FailureKind.CONNECTION_FAILED)
