from __future__ import annotations

from datetime import datetime, timezone

from linkscope.core.config import ReplyConfig
from linkscope.core.formatting import (
    FAILURE_TAGS,
    ZERO_WIDTH_NON_JOINER,
    fit_line,
    format_reply,
    mask_nick,
    utf8_truncate,
)
from linkscope.core.models import FailureKind, FailureSummary, HistoryEntry, MediaSummary, TitleSummary

FIRST_POST = HistoryEntry(
    url="https://example.com/page",
    nick="alice",
    channel="@chat",
    timestamp=datetime(2024, 1, 1, 12, 30, tzinfo=timezone.utc),
)


def test_plain_title() -> None:
    assert format_reply(TitleSummary("Hello World"), None, ReplyConfig()) == "Hello World"


def test_prefix_is_applied() -> None:
    assert format_reply(TitleSummary("Hi"), None, ReplyConfig(prefix="⤷ ")) == "⤷ Hi"


def test_repost_annotation_names_first_poster() -> None:
    reply = format_reply(TitleSummary("Hello World"), FIRST_POST, ReplyConfig())
    assert reply == "Hello World → 2024-01-01 12:30 alice (@chat)"


def test_masked_highlight() -> None:
    reply = format_reply(TitleSummary("Hello"), FIRST_POST, ReplyConfig(mask_highlights=True))
    assert f"a{ZERO_WIDTH_NON_JOINER}lice" in reply
    assert "alice" not in reply


def test_failure_tags_are_distinct() -> None:
    rendered = {format_reply(FailureSummary(kind), None, ReplyConfig()) for kind in FailureKind}
    assert len(rendered) == len(FailureKind)
    assert set(FAILURE_TAGS) == set(FailureKind)
    assert format_reply(FailureSummary(FailureKind.TIMEOUT), None, ReplyConfig()) == "error: timed out"
    assert format_reply(FailureSummary(FailureKind.BAD_STATUS, 404), None, ReplyConfig()) == "error: bad status 404"


def test_failure_never_carries_repost_annotation() -> None:
    reply = format_reply(FailureSummary(FailureKind.COOKIES_REQUIRED), FIRST_POST, ReplyConfig())
    assert reply == "error: requires cookies"


def test_media_rendering() -> None:
    image = MediaSummary(kind="image", format="PNG", dimensions=(800, 400), size_bytes=1341)
    assert format_reply(image, None, ReplyConfig()) == "PNG image, 800×400, 1.31KB"
    mime = MediaSummary(kind="application/pdf", size_bytes=1341)
    assert format_reply(mime, None, ReplyConfig()) == "application/pdf 1.31KB"


def test_output_never_exceeds_limit() -> None:
    for limit in (5, 16, 64, 510):
        for title in ("x" * 1000, "é" * 1000, "\U0001F603" * 300, "short"):
            reply = format_reply(TitleSummary(title), FIRST_POST, ReplyConfig(max_bytes=limit))
            assert len(reply.encode("utf-8")) <= limit


def test_overflow_has_visible_marker() -> None:
    reply = format_reply(TitleSummary("word " * 200), None, ReplyConfig(max_bytes=50))
    assert reply.endswith("…")


def test_single_line_output() -> None:
    assert fit_line("one\ntwo\r\nthree", 100) == "one two three"


def test_utf8_truncate_respects_code_points() -> None:
    assert utf8_truncate("", 10) == ""
    assert utf8_truncate("♥", 3) == "♥"
    assert utf8_truncate("♥", 2) == ""
    assert utf8_truncate("hello \U0001F603 world!", 9) == "hello "


def test_mask_nick() -> None:
    assert mask_nick("") == ZERO_WIDTH_NON_JOINER
    assert mask_nick("foo") == f"f{ZERO_WIDTH_NON_JOINER}oo"
    assert mask_nick("éva") == f"é{ZERO_WIDTH_NON_JOINER}va"
