from __future__ import annotations

import asyncio

from linkscope.adapters.telegram_mapper import InboundMessage, build_inbound, nick_from_sender
from linkscope.adapters.telegram_replier import TelegramReplier


class DummyChat:
    def __init__(self, username: "str | None" = None) -> None:
        self.username = username


class DummySender:
    def __init__(
        self,
        username: "str | None" = None,
        first_name: "str | None" = None,
        last_name: "str | None" = None,
        sender_id: int = 42,
    ) -> None:
        self.username = username
        self.first_name = first_name
        self.last_name = last_name
        self.id = sender_id


class DummyMessage:
    def __init__(self, *, chat_id: int, message_id: int, text: "str | None", chat=None, sender=None) -> None:
        self.chat_id = chat_id
        self.id = message_id
        self.raw_text = text
        self.chat = chat
        self._sender = sender

    async def get_sender(self):
        return self._sender


class FakeClient:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str, dict]] = []

    async def send_message(self, entity, message, **kwargs) -> None:
        self.sent.append((entity, message, kwargs))


def test_build_inbound_public_chat() -> None:
    message = DummyMessage(
        chat_id=-100123,
        message_id=7,
        text="see https://example.com",
        chat=DummyChat(username="LinkLovers"),
        sender=DummySender(username="alice"),
    )
    inbound = asyncio.run(build_inbound(message))
    assert inbound == InboundMessage(
        channel="@linklovers",
        nick="alice",
        text="see https://example.com",
        chat_id=-100123,
        message_id=7,
    )


def test_build_inbound_private_group_falls_back_to_chat_id() -> None:
    message = DummyMessage(chat_id=-555, message_id=1, text=None, chat=DummyChat(), sender=None)
    inbound = asyncio.run(build_inbound(message))
    assert inbound.channel == "chat_id:-555"
    assert inbound.nick == "unknown"
    assert inbound.text == ""


def test_nick_from_sender_fallbacks() -> None:
    assert nick_from_sender(DummySender(first_name="Ada", last_name="Lovelace")) == "Ada Lovelace"
    assert nick_from_sender(DummySender(first_name="Ada")) == "Ada"
    assert nick_from_sender(DummySender(sender_id=9)) == "user_id:9"


def test_replier_sends_in_order_threaded_and_without_preview() -> None:
    client = FakeClient()
    inbound = InboundMessage(channel="@chat", nick="alice", text="", chat_id=-1, message_id=99)

    asyncio.run(TelegramReplier(client, silent=True).send(inbound, ["first", "second"]))

    assert [message for _, message, _ in client.sent] == ["first", "second"]
    entity, _, kwargs = client.sent[0]
    assert entity == -1
    assert kwargs["reply_to"] == 99
    assert kwargs["link_preview"] is False
    assert kwargs["silent"] is True
