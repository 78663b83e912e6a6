"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline, which only
knows about (channel, nick, text).
"""

from __future__ import annotations

from dataclasses import dataclass

from telethon.tl.custom import Message


@dataclass(frozen=True)
class InboundMessage:
    """A chat message reduced to what the core and the reply sender need."""

    channel: str
    nick: str
    text: str
    chat_id: int
    message_id: int


def channel_from_message(message: Message) -> str:
    """Return "@username" for public chats, otherwise "chat_id:<id>"."""

    chat = getattr(message, "chat", None)
    username = getattr(chat, "username", None)

    if isinstance(username, str) and username:
        return f"@{username.lower()}"

    # Private chats and groups without a username.
    return f"chat_id:{message.chat_id}"


def nick_from_sender(sender) -> str:
    """Return the display nick for a sender: username, then names, then id."""

    username = getattr(sender, "username", None)
    if isinstance(username, str) and username:
        return username

    first = getattr(sender, "first_name", None)
    last = getattr(sender, "last_name", None)
    if first or last:
        return " ".join(part for part in [first, last] if part)

    title = getattr(sender, "title", None)
    if title:
        return str(title)

    sender_id = getattr(sender, "id", None)
    return f"user_id:{sender_id}" if sender_id is not None else "unknown"


async def build_inbound(message: Message) -> InboundMessage:
    """Build an InboundMessage from a Telethon Message."""

    sender = await message.get_sender()
    return InboundMessage(
        channel=channel_from_message(message),
        nick=nick_from_sender(sender),
        text=message.raw_text or "",
        chat_id=message.chat_id,
        message_id=message.id,
    )
