"""Telegram reply adapter.

Sends each reply line back to the chat the link was posted in, threaded
under the original message.
"""

from __future__ import annotations

from typing import Iterable

from linkscope.adapters.telegram_mapper import InboundMessage


class TelegramReplier:
    """Reply adapter that answers in the originating chat."""

    def __init__(self, client, silent: bool = False) -> None:
        self._client = client
        self._silent = silent

    async def send(self, inbound: InboundMessage, replies: Iterable[str]) -> None:
        """Send replies one by one, in order, as separate messages."""

        for reply in replies:
            await self._client.send_message(
                inbound.chat_id,
                reply,
                reply_to=inbound.message_id,
                link_preview=False,
                silent=self._silent,
                parse_mode=None,
            )
