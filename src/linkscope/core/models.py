"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types. Each union below is a closed set:
consumers dispatch on the concrete class with ``isinstance``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping, Optional, Tuple, Union


class FailureKind(str, Enum):
    """Why a link could not be summarized."""

    TIMEOUT = "timeout"
    TOO_LARGE = "too_large"
    BAD_STATUS = "bad_status"
    REDIRECT_LOOP = "redirect_loop"
    CONNECTION_FAILED = "connection_failed"
    COOKIES_REQUIRED = "cookies_required"
    UNSUPPORTED = "unsupported"
    NO_TITLE = "no_title"
    UNDECODABLE = "undecodable"


@dataclass(frozen=True)
class FetchOk:
    """A successful (2xx) response with its body fully buffered."""

    status: int
    headers: Mapping[str, str]
    body: bytes
    final_url: str
    content_type: Optional[str] = None
    charset: Optional[str] = None


@dataclass(frozen=True)
class FetchError:
    """A classified fetch failure.

    ``content_type`` and ``content_length`` are filled in when the failure
    happened after response headers arrived (e.g. unsupported content).
    """

    kind: FailureKind
    status: Optional[int] = None
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    detail: str = ""


FetchResult = Union[FetchOk, FetchError]


@dataclass(frozen=True)
class HtmlContent:
    pass


@dataclass(frozen=True)
class ImageContent:
    format: str


@dataclass(frozen=True)
class UnsupportedContent:
    mime: str


ContentKind = Union[HtmlContent, ImageContent, UnsupportedContent]


@dataclass(frozen=True)
class TitleSummary:
    text: str


@dataclass(frozen=True)
class MediaSummary:
    """Metadata for non-HTML content (images, or bare MIME reporting)."""

    kind: str
    size_bytes: Optional[int]
    format: Optional[str] = None
    dimensions: Optional[Tuple[int, int]] = None


@dataclass(frozen=True)
class FailureSummary:
    kind: FailureKind
    status: Optional[int] = None


Summary = Union[TitleSummary, MediaSummary, FailureSummary]


@dataclass(frozen=True)
class HistoryEntry:
    """One posting event of a URL in a channel."""

    url: str
    nick: str
    channel: str
    timestamp: datetime


@dataclass(frozen=True)
class ErrorRecord:
    """Persisted representation of a failed resolution."""

    url: str
    kind: FailureKind
    status: Optional[int]
    detail: str
    timestamp: datetime
